"""Domain models package."""

from bluegreen.domain.models.base import (
    PersistedEntity,
    UNASSIGNED_ID,
    ValueObject,
)
from bluegreen.domain.models.discovery import (
    DiscoveryResult,
    Lockable,
)
from bluegreen.domain.models.environment import (
    Application,
    ApplicationVm,
    DatabaseType,
    Environment,
    EnvironmentStateError,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.domain.models.task import TaskStatus


__all__ = [
    "Application",
    "ApplicationVm",
    "DatabaseType",
    "DiscoveryResult",
    "Environment",
    "EnvironmentStateError",
    "Lockable",
    "LogicalDatabase",
    "PersistedEntity",
    "PhysicalDatabase",
    "TaskStatus",
    "UNASSIGNED_ID",
    "ValueObject",
]
