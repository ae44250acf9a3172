"""Unit tests for the service container."""

from __future__ import annotations

from bluegreen.config import DatabaseSettings, Settings
from bluegreen.container import ServiceContainer
from bluegreen.infrastructure.aws.rds_copier import RdsCopier
from bluegreen.infrastructure.http.application_client import HttpApplicationClient
from bluegreen.infrastructure.persistence.repositories.environment_tx import (
    SqlAlchemyEnvironmentTx,
)
from bluegreen.infrastructure.ssh.client import ParamikoShellClient
from bluegreen.jobs.factory import JobFactory


def make_container() -> ServiceContainer:
    return ServiceContainer(Settings(database=DatabaseSettings(url="sqlite://")))


class TestServiceContainer:
    def test_collaborators_built_lazily_once(self) -> None:
        container = make_container()
        assert isinstance(container.environment_tx, SqlAlchemyEnvironmentTx)
        assert container.environment_tx is container.environment_tx
        assert isinstance(container.shell_client, ParamikoShellClient)
        assert container.shell_client is container.shell_client
        assert isinstance(container.application_client, HttpApplicationClient)
        container.close()

    def test_control_plane(self) -> None:
        container = make_container()
        assert isinstance(container.control_plane, RdsCopier)

    def test_job_factory(self) -> None:
        container = make_container()
        assert isinstance(container.job_factory(), JobFactory)
        container.close()

    def test_close_without_use(self) -> None:
        make_container().close()
