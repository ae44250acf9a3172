"""Shared test fixtures and fakes."""

from __future__ import annotations

from collections.abc import Callable, Collection
from typing import Any

import pytest

from bluegreen.config import RdsSettings, SshTargetSettings, SshVmCreateSettings
from bluegreen.domain.models.discovery import DiscoveryResult
from bluegreen.domain.models.environment import (
    Application,
    ApplicationVm,
    DatabaseType,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.domain.ports.services import (
    ApplicationClient,
    DatabaseControlPlane,
    RemoteShellClient,
    Sleeper,
)
from bluegreen.infrastructure.persistence.repositories.in_memory import InMemoryEnvironmentTx


class RecordingSleeper(Sleeper):
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.sleeps: list[int] = []

    def sleep(self, milliseconds: int) -> None:
        self.sleeps.append(milliseconds)


class FakeShellClient(RemoteShellClient):
    """Answers commands from a script of outputs, keyed by command prefix."""

    def __init__(self, responder: Callable[[str], str]) -> None:
        self._responder = responder
        self.commands: list[str] = []
        self.closed = False

    def exec_command(self, command: str) -> str:
        self.commands.append(command)
        return self._responder(command)

    def close(self) -> None:
        self.closed = True


class FakeControlPlane(DatabaseControlPlane):
    """In-memory RDS whose instances and snapshots walk through scripted statuses."""

    def __init__(self) -> None:
        self.instances: dict[str, dict[str, Any]] = {}
        self.snapshots: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.status_scripts: dict[str, list[str]] = {}

    def add_instance(self, instance: dict[str, Any]) -> None:
        self.instances[instance["DBInstanceIdentifier"]] = instance

    def _advance(self, key: str, resource: dict[str, Any], status_key: str) -> None:
        script = self.status_scripts.get(key)
        if script:
            resource[status_key] = script.pop(0)

    def describe_instance(self, instance_name: str) -> dict[str, Any]:
        self.calls.append(("describe_instance", (instance_name,)))
        instance = self.instances[instance_name]
        self._advance(instance_name, instance, "DBInstanceStatus")
        return dict(instance)

    def describe_snapshot(self, snapshot_id: str) -> dict[str, Any]:
        self.calls.append(("describe_snapshot", (snapshot_id,)))
        snapshot = self.snapshots[snapshot_id]
        self._advance(snapshot_id, snapshot, "Status")
        return dict(snapshot)

    def create_snapshot(self, snapshot_id: str, instance_name: str) -> dict[str, Any]:
        self.calls.append(("create_snapshot", (snapshot_id, instance_name)))
        self.snapshots[snapshot_id] = {
            "DBSnapshotIdentifier": snapshot_id,
            "DBInstanceIdentifier": instance_name,
            "Status": "creating",
        }
        return dict(self.snapshots[snapshot_id])

    def copy_parameter_group(
        self, source_param_group_name: str, dest_param_group_name: str
    ) -> dict[str, Any]:
        self.calls.append(("copy_parameter_group", (source_param_group_name, dest_param_group_name)))
        return {"DBParameterGroupName": dest_param_group_name}

    def restore_instance_from_snapshot(
        self, instance_name: str, snapshot_id: str
    ) -> dict[str, Any]:
        self.calls.append(("restore_instance_from_snapshot", (instance_name, snapshot_id)))
        self.instances[instance_name] = {
            "DBInstanceIdentifier": instance_name,
            "DBInstanceStatus": "creating",
            "Endpoint": {"Address": f"{instance_name}.rds.example.com", "Port": 3306},
            "VpcSecurityGroups": [{"VpcSecurityGroupId": "sg-default", "Status": "active"}],
            "DBParameterGroups": [{"DBParameterGroupName": "default.mysql5.6"}],
        }
        return dict(self.instances[instance_name])

    def modify_instance(
        self,
        instance_name: str,
        security_group_ids: Collection[str],
        param_group_name: str,
    ) -> dict[str, Any]:
        self.calls.append(
            ("modify_instance", (instance_name, tuple(security_group_ids), param_group_name))
        )
        instance = self.instances[instance_name]
        instance["DBInstanceStatus"] = "modifying"
        instance["VpcSecurityGroups"] = [
            {"VpcSecurityGroupId": group_id, "Status": "active"} for group_id in security_group_ids
        ]
        instance["DBParameterGroups"] = [{"DBParameterGroupName": param_group_name}]
        return dict(instance)

    def call_names(self) -> list[str]:
        return [name for name, _args in self.calls]


class FakeApplicationClient(ApplicationClient):
    """Returns canned discovery results by application uri."""

    def __init__(self, results: dict[str, DiscoveryResult]) -> None:
        self._results = results
        self.asked: list[str] = []

    def discover_database(self, application: Application) -> DiscoveryResult:
        uri = application.make_hostname_uri()
        self.asked.append(uri)
        return self._results[uri]


@pytest.fixture(autouse=True)
def clear_stores() -> None:
    """Clear in-memory stores before each test."""
    InMemoryEnvironmentTx.clear()


@pytest.fixture
def environment_tx() -> InMemoryEnvironmentTx:
    return InMemoryEnvironmentTx()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def ssh_target() -> SshTargetSettings:
    return SshTargetSettings(hostname="vmhost.example.com", username="provisioner")


@pytest.fixture
def vm_create_settings() -> SshVmCreateSettings:
    return SshVmCreateSettings(
        initial_command="create-vm ${envName}",
        initial_regexp_hostname=r"creating\s+(\S+)\s+at",
        initial_regexp_ipaddress=r"\sat\s+(\d+\.\d+\.\d+\.\d+)",
        followup_command="check-vm ${hostname}",
        followup_regexp_done=r"^AVAILABLE",
        followup_regexp_error=r"^ERROR",
        max_num_waits=5,
        wait_report_interval=2,
        wait_delay_milliseconds=10,
    )


@pytest.fixture
def rds_settings() -> RdsSettings:
    return RdsSettings(
        region="us-west-2",
        stage_security_group_ids=[],
        max_num_waits=10,
        wait_report_interval=3,
        wait_delay_milliseconds=5,
    )


@pytest.fixture
def live_environment(environment_tx: InMemoryEnvironmentTx) -> Environment:
    """A persisted live environment with one vm, one app and one RDS database."""
    vm = ApplicationVm(
        hostname="app1.example.com",
        ip_address="10.0.0.1",
        applications=[Application(scheme="https", port=8443, url_path="/shop")],
    )
    environment = Environment(env_name="blue")
    environment.add_application_vm(vm)
    environment.add_logical_database(LogicalDatabase(
        log_name="shopdb",
        physical_database=PhysicalDatabase(
            db_type=DatabaseType.RDS,
            instance_name="shopdb-live",
            live=True,
            driver_class_name="com.mysql.jdbc.Driver",
            url="jdbc:mysql://shopdb-live.rds.example.com:3306/shop",
            username="shop",
        ),
    ))
    environment_tx.update_environment(environment)
    return environment


@pytest.fixture
def stage_environment(environment_tx: InMemoryEnvironmentTx) -> Environment:
    environment = Environment(env_name="green")
    environment_tx.update_environment(environment)
    return environment


@pytest.fixture
def make_shell_client() -> Callable[[Callable[[str], str]], FakeShellClient]:
    return FakeShellClient


@pytest.fixture
def make_application_client() -> Callable[[dict[str, DiscoveryResult]], FakeApplicationClient]:
    return FakeApplicationClient
