"""Base domain model classes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


UNASSIGNED_ID = 0


class PersistedEntity(BaseModel):
    """Base class for entities whose identity is assigned by persistence.

    Equality and hash depend solely on the persisted id, never on mutable
    fields, so a transient copy compares equal to its persisted counterpart.
    An entity with an unassigned id (0) is only equal to itself.
    """

    id: int = UNASSIGNED_ID

    model_config = {"frozen": False, "validate_assignment": True}

    @property
    def is_persisted(self) -> bool:
        return self.id != UNASSIGNED_ID

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PersistedEntity) or type(self) is not type(other):
            return NotImplemented
        if not self.is_persisted or not other.is_persisted:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        if not self.is_persisted:
            return object.__hash__(self)
        return hash((type(self).__name__, self.id))


class ValueObject(BaseModel):
    """Base class for value objects (immutable)."""

    model_config = {"frozen": True}
