"""Copies and tweaks Amazon RDS instances."""

from __future__ import annotations

import time
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from typing import Any

import boto3
import structlog

from bluegreen.config import RdsSettings
from bluegreen.domain.ports.services import DatabaseControlPlane
from bluegreen.infrastructure.observability.metrics import CONTROL_PLANE_CALL_DURATION


logger = structlog.get_logger(__name__)

PARAM_GROUP_DESCRIPTION = "Nonshared so we can toggle read_only param."


class RdsCopier(DatabaseControlPlane):
    """Amazon RDS implementation of the database control plane.

    The boto3 client is synchronous: each request blocks until RDS answers.
    Every call is timed.
    """

    def __init__(self, rds_client: Any) -> None:
        self._rds = rds_client

    @contextmanager
    def _timed(self, operation: str) -> Iterator[None]:
        logger.debug("rds_call_started", operation=operation)
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            CONTROL_PLANE_CALL_DURATION.labels(operation=operation).observe(elapsed)
            logger.debug("rds_call_finished", operation=operation, elapsed_seconds=round(elapsed, 3))

    def describe_instance(self, instance_name: str) -> dict[str, Any]:
        """Gets a description of the requested RDS instance. Raises if not found."""
        with self._timed("describe_db_instances"):
            response = self._rds.describe_db_instances(DBInstanceIdentifier=instance_name)
            instances = (response or {}).get("DBInstances") or []
            if not instances:
                raise ControlPlaneError(f"RDS cannot find instance '{instance_name}'")
            if len(instances) > 1:
                # Ambiguous target: proceeds with the first match.
                logger.warning(
                    "rds_ambiguous_instance_name",
                    instance_name=instance_name,
                    match_count=len(instances),
                    using=instances[0].get("DBInstanceIdentifier"),
                )
            return instances[0]

    def describe_snapshot(self, snapshot_id: str) -> dict[str, Any]:
        with self._timed("describe_db_snapshots"):
            response = self._rds.describe_db_snapshots(DBSnapshotIdentifier=snapshot_id)
            snapshots = (response or {}).get("DBSnapshots") or []
            if not snapshots:
                raise ControlPlaneError(f"RDS cannot find snapshot '{snapshot_id}'")
            return snapshots[0]

    def create_snapshot(self, snapshot_id: str, instance_name: str) -> dict[str, Any]:
        """Creates an RDS instance snapshot using the specified snapshot id."""
        with self._timed("create_db_snapshot"):
            response = self._rds.create_db_snapshot(
                DBSnapshotIdentifier=snapshot_id,
                DBInstanceIdentifier=instance_name,
            )
            return response["DBSnapshot"]

    def copy_parameter_group(
        self, source_param_group_name: str, dest_param_group_name: str
    ) -> dict[str, Any]:
        with self._timed("copy_db_parameter_group"):
            response = self._rds.copy_db_parameter_group(
                SourceDBParameterGroupIdentifier=source_param_group_name,
                TargetDBParameterGroupIdentifier=dest_param_group_name,
                TargetDBParameterGroupDescription=PARAM_GROUP_DESCRIPTION,
            )
            return response["DBParameterGroup"]

    def restore_instance_from_snapshot(
        self, instance_name: str, snapshot_id: str
    ) -> dict[str, Any]:
        """Restores a snapshot to a brand new instance.

        The new instance gets the default security group, otherwise it matches
        the snapshot.
        """
        with self._timed("restore_db_instance_from_db_snapshot"):
            response = self._rds.restore_db_instance_from_db_snapshot(
                DBInstanceIdentifier=instance_name,
                DBSnapshotIdentifier=snapshot_id,
            )
            return response["DBInstance"]

    def modify_instance(
        self,
        instance_name: str,
        security_group_ids: Collection[str],
        param_group_name: str,
    ) -> dict[str, Any]:
        with self._timed("modify_db_instance"):
            response = self._rds.modify_db_instance(
                DBInstanceIdentifier=instance_name,
                VpcSecurityGroupIds=list(security_group_ids),
                DBParameterGroupName=param_group_name,
                ApplyImmediately=True,
            )
            return response["DBInstance"]


def create_rds_client(settings: RdsSettings) -> Any:
    """Factory function to create a synchronous boto3 RDS client."""
    return boto3.client("rds", region_name=settings.region)


class ControlPlaneError(Exception):
    """Raised when the control plane answers without the requested resource."""
