"""Progress checkers keyed on the status of Amazon RDS resources."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Collection
from typing import Any

import structlog

from bluegreen.domain.ports.services import DatabaseControlPlane
from bluegreen.domain.services.output_matching import OutputParseError
from bluegreen.domain.services.waiter import ProgressChecker, RemoteOperationFailedError


logger = structlog.get_logger(__name__)

STATUS_AVAILABLE = "available"

INSTANCE_FAILURE_STATUSES = frozenset({
    "failed",
    "inaccessible-encryption-credentials",
    "incompatible-credentials",
    "incompatible-network",
    "incompatible-option-group",
    "incompatible-parameters",
    "incompatible-restore",
    "restore-error",
    "storage-full",
})

SNAPSHOT_FAILURE_STATUSES = frozenset({"failed", "error"})


class RdsStatusProgressChecker(ProgressChecker[dict[str, Any]]):
    """Waits for an RDS resource to report 'available', failing fast on a
    failure status.

    Seeded with the description returned by the kickoff call.
    """

    resource_kind = "resource"
    identifier_key = ""
    status_key = ""
    failure_statuses: frozenset[str] = frozenset()

    def __init__(
        self,
        identifier: str,
        initial_description: dict[str, Any] | None,
        log_context: str,
        control_plane: DatabaseControlPlane,
    ) -> None:
        self._identifier = identifier
        self._initial_description = initial_description
        self._log_context = log_context
        self._control_plane = control_plane
        self._done = False
        self._result: dict[str, Any] | None = None
        self._last_status: str | None = None

    @property
    def description(self) -> str:
        return f"RDS {self.resource_kind} '{self._identifier}'"

    def context(self) -> str:
        return f"{self._log_context}{self.description}: "

    @abstractmethod
    def _describe(self) -> dict[str, Any]:
        """One probe of the control plane."""

    def _is_settled(self, description: dict[str, Any]) -> bool:
        """Extra completion condition beyond the available status."""
        return True

    def initial_check(self) -> None:
        if not self._initial_description:
            raise OutputParseError(f"{self._log_context}Blank initial output from {self.description}")
        reported = self._initial_description.get(self.identifier_key)
        if not reported or str(reported).lower() != self._identifier.lower():
            raise OutputParseError(
                f"{self._log_context}Could not find result value '{self.identifier_key}' "
                f"matching '{self._identifier}' in initial output"
            )
        self._last_status = self._status_of(self._initial_description)
        logger.info("rds_operation_started", context=self.context(), status=self._last_status)

    def followup_check(self, wait_num: int) -> None:
        description = self._describe()
        status = self._status_of(description)
        if status != self._last_status:
            logger.info("rds_status_changed", context=self.context(), wait_num=wait_num, status=status)
            self._last_status = status
        if status in self.failure_statuses:
            raise RemoteOperationFailedError(f"{self.context()}FAILED with status '{status}'")
        if status == STATUS_AVAILABLE and self._is_settled(description):
            self._done = True
            self._result = description

    def _status_of(self, description: dict[str, Any]) -> str:
        return str(description.get(self.status_key, "")).lower()

    def is_done(self) -> bool:
        return self._done

    @property
    def result(self) -> dict[str, Any] | None:
        return self._result

    def timeout(self) -> dict[str, Any] | None:
        logger.error(
            "rds_operation_timed_out", context=self.context(), last_status=self._last_status
        )
        return None


class RdsSnapshotProgressChecker(RdsStatusProgressChecker):
    """Waits for a new snapshot to become available."""

    resource_kind = "snapshot"
    identifier_key = "DBSnapshotIdentifier"
    status_key = "Status"
    failure_statuses = SNAPSHOT_FAILURE_STATUSES

    def _describe(self) -> dict[str, Any]:
        return self._control_plane.describe_snapshot(self._identifier)


class RdsInstanceProgressChecker(RdsStatusProgressChecker):
    """Waits for an instance to become available.

    After a modification the instance can still report 'available' before the
    change starts, so expected security groups and parameter group may be
    required as well.
    """

    resource_kind = "instance"
    identifier_key = "DBInstanceIdentifier"
    status_key = "DBInstanceStatus"
    failure_statuses = INSTANCE_FAILURE_STATUSES

    def __init__(
        self,
        identifier: str,
        initial_description: dict[str, Any] | None,
        log_context: str,
        control_plane: DatabaseControlPlane,
        expected_security_group_ids: Collection[str] = (),
        expected_param_group_name: str | None = None,
    ) -> None:
        super().__init__(identifier, initial_description, log_context, control_plane)
        self._expected_security_group_ids = frozenset(expected_security_group_ids)
        self._expected_param_group_name = expected_param_group_name

    def _describe(self) -> dict[str, Any]:
        return self._control_plane.describe_instance(self._identifier)

    def _is_settled(self, description: dict[str, Any]) -> bool:
        if self._expected_security_group_ids:
            active = {
                group.get("VpcSecurityGroupId")
                for group in description.get("VpcSecurityGroups", [])
                if group.get("Status") == "active"
            }
            if active != self._expected_security_group_ids:
                return False
        if self._expected_param_group_name:
            names = {
                group.get("DBParameterGroupName")
                for group in description.get("DBParameterGroups", [])
            }
            if self._expected_param_group_name not in names:
                return False
        return True
