"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys

import structlog


# Chatty below WARNING: paramiko logs every channel, botocore every request.
NOISY_LIBRARY_LOGGERS = ("paramiko", "botocore", "boto3", "urllib3")


def _level_number(log_level: str) -> int:
    return getattr(logging, log_level.upper(), logging.INFO)


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog for one job run.

    Output goes to stderr so that stdout stays free for command results. Job and
    environment names bound with ``structlog.contextvars`` appear on every line.
    """
    level = _level_number(log_level)
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ],
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr, level=level)
    for name in NOISY_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
