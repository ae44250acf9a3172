"""Service port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection
from typing import Any

from bluegreen.domain.models.discovery import DiscoveryResult
from bluegreen.domain.models.environment import Application


class Sleeper(ABC):
    """Port for the only time-delay primitive, substitutable in tests."""

    @abstractmethod
    def sleep(self, milliseconds: int) -> None:
        """Pause the calling thread."""


class RemoteShellClient(ABC):
    """Port for running commands on a remote host over a shell session."""

    @abstractmethod
    def exec_command(self, command: str) -> str:
        """Run a command and return its output. Raises on transport failure."""

    @abstractmethod
    def close(self) -> None:
        """Release the session."""


class DatabaseControlPlane(ABC):
    """Port for a managed-database control plane (Amazon RDS style).

    Every call blocks until the control plane has accepted or answered the
    request; long-running effects must be polled with describe calls.
    """

    @abstractmethod
    def describe_instance(self, instance_name: str) -> dict[str, Any]:
        """Describe one database instance. Raises if not found."""

    @abstractmethod
    def describe_snapshot(self, snapshot_id: str) -> dict[str, Any]:
        """Describe one database snapshot. Raises if not found."""

    @abstractmethod
    def create_snapshot(self, snapshot_id: str, instance_name: str) -> dict[str, Any]:
        """Start a snapshot of an instance."""

    @abstractmethod
    def copy_parameter_group(
        self, source_param_group_name: str, dest_param_group_name: str
    ) -> dict[str, Any]:
        """Copy a parameter group."""

    @abstractmethod
    def restore_instance_from_snapshot(
        self, instance_name: str, snapshot_id: str
    ) -> dict[str, Any]:
        """Start restoring a snapshot to a brand new instance."""

    @abstractmethod
    def modify_instance(
        self,
        instance_name: str,
        security_group_ids: Collection[str],
        param_group_name: str,
    ) -> dict[str, Any]:
        """Apply new security groups and parameter group to an instance."""


class ApplicationClient(ABC):
    """Port for talking to a bluegreen-aware application."""

    @abstractmethod
    def discover_database(self, application: Application) -> DiscoveryResult:
        """Ask the application which physical database it is using.

        The application locks itself against concurrent discovery; failing to
        lock is reported in the result rather than raised.
        """
