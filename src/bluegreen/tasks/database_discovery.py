"""Discovery of the physical database an environment's applications are using."""

from __future__ import annotations

from bluegreen.domain.models.discovery import DiscoveryResult
from bluegreen.domain.models.environment import (
    Environment,
    EnvironmentStateError,
    PhysicalDatabase,
)
from bluegreen.domain.models.task import TaskStatus
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import ApplicationClient
from bluegreen.domain.services.locking import check_lock_errors
from bluegreen.tasks.base import DatabaseTask


class DatabaseDiscoveryTask(DatabaseTask):
    """Asks every application in the environment which database it uses, and
    records the answer as the physical database behind a logical database.

    Each application locks itself during discovery. All lock failures are
    gathered before the task gives up.
    """

    def __init__(
        self,
        position: int,
        environment: Environment,
        log_name: str,
        application_client: ApplicationClient,
        environment_tx: EnvironmentTx,
    ) -> None:
        super().__init__(position, environment, log_name, environment_tx)
        self._application_client = application_client

    def process(self, noop: bool) -> TaskStatus:
        applications = self.environment.applications
        if not applications:
            raise EnvironmentStateError(f"{self.context()}Environment has no applications to ask")
        self._log.info(
            "database_discovery_starting",
            log_name=self._log_name,
            applications=len(applications),
            noop=noop,
        )
        if noop:
            return TaskStatus.NOOP

        ask = self._application_client.discover_database
        results = [
            (application.make_hostname_uri(), ask(application)) for application in applications
        ]
        check_lock_errors(results, self.context())
        discovered = self._agreed_physical_database(results)
        self._persist_model(discovered)
        return TaskStatus.DONE

    def _agreed_physical_database(
        self, results: list[tuple[str, DiscoveryResult]]
    ) -> PhysicalDatabase:
        errors = [
            f"{uri}: {result.discovery_error}"
            for uri, result in results
            if result.discovery_error
        ]
        if errors:
            raise DiscoveryError(f"{self.context()}Discovery errors: " + "; ".join(errors))
        discovered: PhysicalDatabase | None = None
        for uri, result in results:
            physical_database = result.usable_physical_database
            if physical_database is None:
                raise DiscoveryError(f"{self.context()}{uri} reported no physical database")
            if discovered is None:
                discovered = physical_database
            elif not discovered.is_same_instance(physical_database):
                raise DiscoveryError(
                    f"{self.context()}Applications disagree on the physical database: "
                    f"'{discovered.instance_name}' vs '{physical_database.instance_name}'"
                )
        assert discovered is not None
        return discovered

    def _persist_model(self, discovered: PhysicalDatabase) -> None:
        recorded = self.record_physical_database(discovered)
        self._log.info(
            "database_discovered",
            log_name=self._log_name,
            instance_name=recorded.instance_name,
            live=recorded.live,
            physical_database_id=recorded.id,
        )


class DiscoveryError(Exception):
    """Raised when discovery answers are missing, erroneous or inconsistent."""
