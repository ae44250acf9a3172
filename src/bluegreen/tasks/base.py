"""Base task implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

import structlog

from bluegreen.domain.models.environment import Environment, LogicalDatabase, PhysicalDatabase
from bluegreen.domain.models.task import TaskStatus
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import Sleeper
from bluegreen.domain.services.waiter import ProgressChecker, Waiter, WaiterParameters


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Task(ABC):
    """One unit of orchestration work at a fixed position in a job.

    ``process(noop=True)`` only explains what would be done: no mutating
    external call and nothing persisted. ``process(noop=False)`` does the work,
    persists the result and returns DONE. A task that cannot complete raises.
    """

    def __init__(self, position: int, environment: Environment) -> None:
        self._position = position
        self._environment = environment
        self._log = logger.bind(
            task=type(self).__name__,
            env_name=environment.env_name,
            position=position,
        )

    @property
    def position(self) -> int:
        return self._position

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def name(self) -> str:
        return type(self).__name__

    def context(self) -> str:
        """Prefix for messages: '[envName#position]: '."""
        return f"[{self._environment.env_name}#{self._position}]: "

    @staticmethod
    def noop_remark(noop: bool) -> str:
        return " (noop)" if noop else ""

    @abstractmethod
    def process(self, noop: bool) -> TaskStatus:
        """Perform (or, when noop, explain) this task."""

    def wait_for(
        self,
        progress_checker: ProgressChecker[T],
        parameters: WaiterParameters,
        sleeper: Sleeper,
    ) -> T | None:
        """Checks the kickoff output, then polls until done; None on timeout."""
        progress_checker.initial_check()
        waiter = Waiter(parameters, sleeper, progress_checker)
        return waiter.wait_til_done()


class DatabaseTask(Task):
    """A task whose outcome is a physical database behind a logical database."""

    def __init__(
        self,
        position: int,
        environment: Environment,
        log_name: str,
        environment_tx: EnvironmentTx,
    ) -> None:
        super().__init__(position, environment)
        self._log_name = log_name
        self._environment_tx = environment_tx

    @property
    def log_name(self) -> str:
        return self._log_name

    def record_physical_database(self, physical_database: PhysicalDatabase) -> PhysicalDatabase:
        """Points the logical database at the physical one and persists the environment.

        The in-memory aggregate is restored if persisting fails.
        """
        logical_database = self.environment.find_logical_database(self._log_name)
        created = logical_database is None
        if logical_database is None:
            logical_database = LogicalDatabase(log_name=self._log_name)
            self.environment.add_logical_database(logical_database)
        previous = logical_database.physical_database
        if previous is not None and previous.is_same_instance(physical_database):
            physical_database = physical_database.model_copy(update={"id": previous.id})
        logical_database.physical_database = physical_database
        try:
            self._environment_tx.update_environment(self.environment)
        except Exception:
            logical_database.physical_database = previous
            if created:
                self.environment.logical_databases.remove(logical_database)
            raise
        return physical_database
