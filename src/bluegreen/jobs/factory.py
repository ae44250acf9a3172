"""Builds named jobs from command-line parameters."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import NamedTuple

import structlog

from bluegreen.config import Settings
from bluegreen.domain.models.environment import DatabaseType, Environment, EnvironmentStateError
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import (
    ApplicationClient,
    DatabaseControlPlane,
    RemoteShellClient,
    Sleeper,
)
from bluegreen.jobs.base import Job, TaskSequenceJob
from bluegreen.tasks.base import Task
from bluegreen.tasks.database_discovery import DatabaseDiscoveryTask
from bluegreen.tasks.rds_snapshot_restore import RdsSnapshotRestoreTask
from bluegreen.tasks.ssh_vm_create import SshVmCreateTask


logger = structlog.get_logger(__name__)

PARAM_ENV = "env"
PARAM_LIVE_ENV = "live_env"
PARAM_STAGE_ENV = "stage_env"
PARAM_LOG_NAME = "log_name"


class JobSpec(NamedTuple):
    required_parameters: tuple[str, ...]
    description: str


# Known without any collaborator, so usage errors can be explained offline.
VALID_JOBS: dict[str, JobSpec] = {
    "ssh-vm-create": JobSpec(
        (PARAM_ENV,),
        "Creates an application vm over ssh and adds it to the environment.",
    ),
    "rds-stage-copy": JobSpec(
        (PARAM_LIVE_ENV, PARAM_STAGE_ENV),
        "Copies each live RDS database to a new instance for the stage environment.",
    ),
    "discover-database": JobSpec(
        (PARAM_ENV, PARAM_LOG_NAME),
        "Asks the environment's applications which database they use and records it.",
    ),
    "staging-deploy": JobSpec(
        (PARAM_LIVE_ENV, PARAM_STAGE_ENV),
        "Copies the live databases to the stage environment, then creates a stage vm.",
    ),
}


class JobFactory:
    """Knows the valid jobs and assembles their tasks.

    The environment store and external clients are obtained through providers
    so that a job only connects to the systems its tasks actually use.
    """

    def __init__(
        self,
        settings: Settings,
        environment_tx_provider: Callable[[], EnvironmentTx],
        sleeper: Sleeper,
        shell_client_provider: Callable[[], RemoteShellClient],
        control_plane_provider: Callable[[], DatabaseControlPlane],
        application_client_provider: Callable[[], ApplicationClient],
    ) -> None:
        self._settings = settings
        self._environment_tx_provider = environment_tx_provider
        self._sleeper = sleeper
        self._shell_client_provider = shell_client_provider
        self._control_plane_provider = control_plane_provider
        self._application_client_provider = application_client_provider
        self._builders: dict[str, Callable[[Mapping[str, str], bool], Job]] = {
            "ssh-vm-create": self._make_ssh_vm_create_job,
            "rds-stage-copy": self._make_rds_stage_copy_job,
            "discover-database": self._make_discover_database_job,
            "staging-deploy": self._make_staging_deploy_job,
        }

    @property
    def job_names(self) -> list[str]:
        return sorted(VALID_JOBS)

    @property
    def _environment_tx(self) -> EnvironmentTx:
        return self._environment_tx_provider()

    @staticmethod
    def explain_valid_jobs() -> str:
        lines = ["Valid jobs:"]
        for name in sorted(VALID_JOBS):
            job_spec = VALID_JOBS[name]
            params = " ".join(f"{p}=<value>" for p in job_spec.required_parameters)
            lines.append(f"  {name} {params}")
            lines.append(f"      {job_spec.description}")
        return "\n".join(lines)

    def make_job(self, job_name: str, parameters: Mapping[str, str], noop: bool = False) -> Job:
        job_spec = VALID_JOBS.get(job_name)
        if job_spec is None:
            raise UnknownJobError(f"Unknown job '{job_name}'")
        missing = [p for p in job_spec.required_parameters if not parameters.get(p)]
        if missing:
            raise InvalidJobParametersError(
                f"Job '{job_name}' requires parameters: {', '.join(missing)}"
            )
        logger.info("job_requested", job=job_name, parameters=dict(parameters), noop=noop)
        return self._builders[job_name](parameters, noop)

    def _make_ssh_vm_create_job(self, parameters: Mapping[str, str], noop: bool) -> Job:
        environment = self._environment_tx.find_named_environment(parameters[PARAM_ENV])
        tasks = [self._ssh_vm_create_task(1, environment)]
        return TaskSequenceJob("ssh-vm-create", environment.env_name, tasks, noop)

    def _make_rds_stage_copy_job(self, parameters: Mapping[str, str], noop: bool) -> Job:
        live_environment, stage_environment = self._load_live_and_stage(parameters)
        tasks = self._rds_copy_tasks(1, live_environment, stage_environment)
        return TaskSequenceJob("rds-stage-copy", stage_environment.env_name, tasks, noop)

    def _make_discover_database_job(self, parameters: Mapping[str, str], noop: bool) -> Job:
        environment = self._environment_tx.find_named_environment(parameters[PARAM_ENV])
        task = DatabaseDiscoveryTask(
            1,
            environment,
            parameters[PARAM_LOG_NAME],
            self._application_client_provider(),
            self._environment_tx,
        )
        return TaskSequenceJob("discover-database", environment.env_name, [task], noop)

    def _make_staging_deploy_job(self, parameters: Mapping[str, str], noop: bool) -> Job:
        live_environment, stage_environment = self._load_live_and_stage(parameters)
        tasks = self._rds_copy_tasks(1, live_environment, stage_environment)
        tasks.append(self._ssh_vm_create_task(len(tasks) + 1, stage_environment))
        return TaskSequenceJob("staging-deploy", stage_environment.env_name, tasks, noop)

    def _load_live_and_stage(
        self, parameters: Mapping[str, str]
    ) -> tuple[Environment, Environment]:
        if parameters[PARAM_LIVE_ENV] == parameters[PARAM_STAGE_ENV]:
            raise InvalidJobParametersError("Live and stage environments must differ")
        live_environment = self._environment_tx.find_named_environment(parameters[PARAM_LIVE_ENV])
        stage_environment = self._environment_tx.find_named_environment(
            parameters[PARAM_STAGE_ENV]
        )
        return live_environment, stage_environment

    def _rds_copy_tasks(
        self, first_position: int, live_environment: Environment, stage_environment: Environment
    ) -> list[Task]:
        log_names = sorted(
            logical_database.log_name
            for logical_database in live_environment.logical_databases
            if logical_database.physical_database is not None
            and logical_database.physical_database.db_type == DatabaseType.RDS
        )
        if not log_names:
            raise EnvironmentStateError(
                f"Live environment '{live_environment.env_name}' has no RDS databases to copy"
            )
        control_plane = self._control_plane_provider()
        return [
            RdsSnapshotRestoreTask(
                first_position + offset,
                stage_environment,
                live_environment,
                log_name,
                control_plane,
                self._environment_tx,
                self._sleeper,
                self._settings.rds,
            )
            for offset, log_name in enumerate(log_names)
        ]

    def _ssh_vm_create_task(self, position: int, environment: Environment) -> Task:
        return SshVmCreateTask(
            position,
            environment,
            self._shell_client_provider(),
            self._settings.ssh_target,
            self._settings.ssh_vm_create,
            self._environment_tx,
            self._sleeper,
        )


class InvalidInvocationError(Exception):
    """Base for errors in how a job was requested."""


class UnknownJobError(InvalidInvocationError):
    """Raised for a job name the factory does not know."""


class InvalidJobParametersError(InvalidInvocationError):
    """Raised when a job's parameters are missing or inconsistent."""
