"""Command-line entrypoint."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from enum import IntEnum

import click
import structlog

from bluegreen.config import get_settings
from bluegreen.container import ServiceContainer
from bluegreen.infrastructure.observability.logging import setup_logging
from bluegreen.jobs.factory import InvalidInvocationError, JobFactory


logger = structlog.get_logger(__name__)


class ReturnCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    CMDLINE_ERROR = 1
    PROCESSING_ERROR = 2


def parse_parameters(pairs: Sequence[str]) -> dict[str, str]:
    """Parses 'name=value' arguments."""
    parameters: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected name=value, got '{pair}'", param_hint="PARAMETERS")
        parameters[name] = value
    return parameters


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--noop", is_flag=True, help="Explain what each task would do, change nothing.")
@click.argument("job_name")
@click.argument("parameters", nargs=-1)
@click.pass_obj
def cli(
    container: ServiceContainer, noop: bool, job_name: str, parameters: tuple[str, ...]
) -> None:
    """Run JOB_NAME with PARAMETERS given as name=value pairs."""
    job = container.job_factory().make_job(job_name, parse_parameters(parameters), noop=noop)
    job.process()


def run(argv: Sequence[str] | None = None, container: ServiceContainer | None = None) -> ReturnCode:
    """Runs one job and maps the outcome to a return code.

    Configuration errors count as processing errors, like any other failure
    after the command line has been accepted.
    """
    try:
        settings = get_settings()
        setup_logging(settings.observability.log_level, settings.observability.json_logs)
        container = container or ServiceContainer(settings)
        cli.main(
            args=list(argv) if argv is not None else None,
            prog_name="bluegreen",
            standalone_mode=False,
            obj=container,
        )
    except (click.ClickException, InvalidInvocationError) as e:
        click.echo(JobFactory.explain_valid_jobs(), err=True)
        logger.error("cmdline_error", error=str(e))
        return ReturnCode.CMDLINE_ERROR
    except Exception:
        logger.exception("processing_error")
        return ReturnCode.PROCESSING_ERROR
    finally:
        if container is not None:
            container.close()
    return ReturnCode.SUCCESS


def main() -> None:
    sys.exit(int(run()))


if __name__ == "__main__":
    main()
