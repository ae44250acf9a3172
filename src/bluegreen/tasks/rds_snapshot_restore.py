"""Copies the live environment's RDS instance into the stage environment."""

from __future__ import annotations

from typing import Any

from bluegreen.config import RdsSettings
from bluegreen.domain.models.environment import (
    DatabaseType,
    Environment,
    EnvironmentStateError,
    PhysicalDatabase,
)
from bluegreen.domain.models.task import TaskStatus
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import DatabaseControlPlane, Sleeper
from bluegreen.domain.services.waiter import WaiterParameters
from bluegreen.tasks.base import DatabaseTask
from bluegreen.tasks.rds_progress import (
    RdsInstanceProgressChecker,
    RdsSnapshotProgressChecker,
)


class RdsSnapshotRestoreTask(DatabaseTask):
    """Snapshots the live database instance and restores it as a new stage instance.

    Sequence: snapshot the live instance, copy its parameter group (nonshared,
    so read_only can be toggled per environment), restore a new instance from
    the snapshot, attach security groups and the copied parameter group, then
    record the new instance as the stage environment's physical database.
    """

    def __init__(
        self,
        position: int,
        environment: Environment,
        live_environment: Environment,
        log_name: str,
        control_plane: DatabaseControlPlane,
        environment_tx: EnvironmentTx,
        sleeper: Sleeper,
        settings: RdsSettings,
    ) -> None:
        super().__init__(position, environment, log_name, environment_tx)
        self._live_environment = live_environment
        self._control_plane = control_plane
        self._sleeper = sleeper
        self._settings = settings

    @property
    def waiter_parameters(self) -> WaiterParameters:
        return WaiterParameters(
            max_num_waits=self._settings.max_num_waits,
            wait_report_interval=self._settings.wait_report_interval,
            wait_delay_milliseconds=self._settings.wait_delay_milliseconds,
        )

    def live_physical_database(self) -> PhysicalDatabase:
        logical_database = self._live_environment.find_logical_database(self._log_name)
        if logical_database is None or logical_database.physical_database is None:
            raise EnvironmentStateError(
                f"{self.context()}Live environment '{self._live_environment.env_name}' has no "
                f"physical database for logical database '{self._log_name}'"
            )
        physical_database = logical_database.physical_database
        if physical_database.db_type != DatabaseType.RDS:
            raise EnvironmentStateError(
                f"{self.context()}Live database '{physical_database.instance_name}' is not an "
                f"RDS instance"
            )
        return physical_database

    def make_stage_instance_name(self, live_instance_name: str) -> str:
        return f"{live_instance_name}-{self.environment.env_name}"

    def make_snapshot_id(self, live_instance_name: str) -> str:
        return f"{live_instance_name}-{self.environment.env_name}-snapshot"

    def make_stage_param_group_name(self, live_param_group_name: str) -> str:
        return f"{live_param_group_name}-{self.environment.env_name}"

    def process(self, noop: bool) -> TaskStatus:
        live_database = self.live_physical_database()
        live_instance_name = live_database.instance_name
        stage_instance_name = self.make_stage_instance_name(live_instance_name)
        snapshot_id = self.make_snapshot_id(live_instance_name)
        self._log.info(
            "rds_copy_planned",
            live_env=self._live_environment.env_name,
            log_name=self._log_name,
            live_instance=live_instance_name,
            snapshot_id=snapshot_id,
            stage_instance=stage_instance_name,
            noop=noop,
        )
        if noop:
            return TaskStatus.NOOP

        live_instance = self._control_plane.describe_instance(live_instance_name)
        live_param_group_name = self._param_group_name_of(live_instance)
        security_group_ids = list(self._settings.stage_security_group_ids) or [
            group["VpcSecurityGroupId"] for group in live_instance.get("VpcSecurityGroups", [])
        ]

        self._snapshot_live_instance(snapshot_id, live_instance_name)
        stage_param_group_name = self.make_stage_param_group_name(live_param_group_name)
        self._control_plane.copy_parameter_group(live_param_group_name, stage_param_group_name)
        self._log.info("rds_param_group_copied", param_group=stage_param_group_name)

        restored = self._control_plane.restore_instance_from_snapshot(
            stage_instance_name, snapshot_id
        )
        self._wait_for_instance(stage_instance_name, restored)
        modified = self._control_plane.modify_instance(
            stage_instance_name, security_group_ids, stage_param_group_name
        )
        stage_instance = self._wait_for_instance(
            stage_instance_name,
            modified,
            expected_security_group_ids=security_group_ids,
            expected_param_group_name=stage_param_group_name,
        )
        self._persist_model(live_database, live_instance, stage_instance)
        return TaskStatus.DONE

    def _snapshot_live_instance(self, snapshot_id: str, live_instance_name: str) -> None:
        snapshot = self._control_plane.create_snapshot(snapshot_id, live_instance_name)
        progress_checker = RdsSnapshotProgressChecker(
            snapshot_id, snapshot, self.context(), self._control_plane
        )
        if self.wait_for(progress_checker, self.waiter_parameters, self._sleeper) is None:
            raise DatabaseNotAvailableError(
                f"{self.context()}{progress_checker.description} did not become available"
            )

    def _wait_for_instance(
        self,
        instance_name: str,
        kickoff: dict[str, Any],
        **expectations: Any,
    ) -> dict[str, Any]:
        progress_checker = RdsInstanceProgressChecker(
            instance_name, kickoff, self.context(), self._control_plane, **expectations
        )
        instance = self.wait_for(progress_checker, self.waiter_parameters, self._sleeper)
        if instance is None:
            raise DatabaseNotAvailableError(
                f"{self.context()}{progress_checker.description} did not become available"
            )
        return instance

    def _param_group_name_of(self, instance: dict[str, Any]) -> str:
        groups = instance.get("DBParameterGroups") or []
        if not groups:
            raise EnvironmentStateError(
                f"{self.context()}Live instance '{instance.get('DBInstanceIdentifier')}' has no "
                f"parameter group"
            )
        return groups[0]["DBParameterGroupName"]

    def _persist_model(
        self,
        live_database: PhysicalDatabase,
        live_instance: dict[str, Any],
        stage_instance: dict[str, Any],
    ) -> None:
        """Points the stage logical database at the new instance and persists."""
        stage_database = PhysicalDatabase(
            db_type=DatabaseType.RDS,
            instance_name=stage_instance["DBInstanceIdentifier"],
            live=False,
            driver_class_name=live_database.driver_class_name,
            url=make_stage_url(live_database.url, live_instance, stage_instance),
            username=live_database.username,
        )
        recorded = self.record_physical_database(stage_database)
        self._log.info(
            "rds_copy_recorded",
            log_name=self._log_name,
            stage_instance=recorded.instance_name,
            physical_database_id=recorded.id,
        )


def make_stage_url(
    live_url: str, live_instance: dict[str, Any], stage_instance: dict[str, Any]
) -> str:
    """Swaps the live endpoint address for the stage one in the live connection url."""
    live_address = (live_instance.get("Endpoint") or {}).get("Address")
    stage_endpoint = stage_instance.get("Endpoint") or {}
    stage_address = stage_endpoint.get("Address")
    if not stage_address:
        return ""
    if live_url and live_address and live_address in live_url:
        return live_url.replace(live_address, stage_address)
    port = stage_endpoint.get("Port")
    return f"{stage_address}:{port}" if port else stage_address


class DatabaseNotAvailableError(Exception):
    """Raised when a snapshot or instance never became available within the wait budget."""
