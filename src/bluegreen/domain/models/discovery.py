"""Results of database discovery, returned by a bluegreen-aware application."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from bluegreen.domain.models.environment import PhysicalDatabase


@runtime_checkable
class Lockable(Protocol):
    """Anything that can report it failed to lock its target."""

    def is_lock_error(self) -> bool:
        ...


class DiscoveryResult(BaseModel):
    """Ephemeral outcome of asking one application which database it uses.

    Never persisted. A lock error is data, not an exception, so that callers can
    aggregate lock failures across many targets before deciding to abort.
    """

    physical_database: PhysicalDatabase | None = None
    discovery_error: str | None = None
    lock_error: bool = False

    def is_lock_error(self) -> bool:
        return self.lock_error

    @property
    def usable_physical_database(self) -> PhysicalDatabase | None:
        """The discovered database, or None if the target could not be locked or errored."""
        if self.lock_error or self.discovery_error:
            return None
        return self.physical_database
