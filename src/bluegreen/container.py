"""Composition root for one job run."""

from __future__ import annotations

from bluegreen.config import Settings
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import (
    ApplicationClient,
    DatabaseControlPlane,
    RemoteShellClient,
    Sleeper,
)
from bluegreen.infrastructure.aws.rds_copier import create_rds_client, RdsCopier
from bluegreen.infrastructure.http.application_client import HttpApplicationClient
from bluegreen.infrastructure.persistence.database import DatabaseManager
from bluegreen.infrastructure.persistence.repositories.environment_tx import (
    SqlAlchemyEnvironmentTx,
)
from bluegreen.infrastructure.sleeper import ThreadSleeper
from bluegreen.infrastructure.ssh.client import ParamikoShellClient
from bluegreen.jobs.factory import JobFactory


class ServiceContainer:
    """Simple dependency injection container.

    Collaborators are built lazily, constructed once per job run and released
    by close().
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._sleeper: Sleeper = ThreadSleeper()
        self._database: DatabaseManager | None = None
        self._environment_tx: EnvironmentTx | None = None
        self._shell_client: RemoteShellClient | None = None
        self._control_plane: DatabaseControlPlane | None = None
        self._application_client: ApplicationClient | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def sleeper(self) -> Sleeper:
        return self._sleeper

    @property
    def environment_tx(self) -> EnvironmentTx:
        if self._environment_tx is None:
            self._database = DatabaseManager(self._settings.database)
            self._database.initialize()
            self._environment_tx = SqlAlchemyEnvironmentTx(self._database)
        return self._environment_tx

    @property
    def shell_client(self) -> RemoteShellClient:
        if self._shell_client is None:
            self._shell_client = ParamikoShellClient(self._settings.ssh_target)
        return self._shell_client

    @property
    def control_plane(self) -> DatabaseControlPlane:
        if self._control_plane is None:
            self._control_plane = RdsCopier(create_rds_client(self._settings.rds))
        return self._control_plane

    @property
    def application_client(self) -> ApplicationClient:
        if self._application_client is None:
            self._application_client = HttpApplicationClient(self._settings.application_client)
        return self._application_client

    def job_factory(self) -> JobFactory:
        return JobFactory(
            settings=self._settings,
            environment_tx_provider=lambda: self.environment_tx,
            sleeper=self._sleeper,
            shell_client_provider=lambda: self.shell_client,
            control_plane_provider=lambda: self.control_plane,
            application_client_provider=lambda: self.application_client,
        )

    def close(self) -> None:
        if self._shell_client is not None:
            self._shell_client.close()
        if self._database is not None:
            self._database.close()
