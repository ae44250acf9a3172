"""In-memory environment transaction boundary for development and testing."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from typing import Any

from bluegreen.domain.models.base import PersistedEntity
from bluegreen.domain.models.environment import Environment
from bluegreen.domain.ports.repositories import EnvironmentNotFoundError, EnvironmentTx


# Module-level shared store keeps a single clear point for test isolation.
# Environments are stored as snapshots so in-memory edits never leak into
# "persisted" state without an update_environment call.
_environment_store: dict[str, dict[str, Any]] = {}
_id_sequence = itertools.count(1)


class InMemoryEnvironmentTx(EnvironmentTx):
    """In-memory EnvironmentTx for testing and dry runs."""

    def __init__(self) -> None:
        self._store = _environment_store
        self.update_count = 0

    def find_named_environment(self, env_name: str) -> Environment:
        snapshot = self._store.get(env_name)
        if snapshot is None:
            raise EnvironmentNotFoundError(f"Environment '{env_name}' not found")
        return Environment.model_validate(snapshot).link_children()

    def update_environment(self, environment: Environment) -> None:
        for entity in _walk(environment):
            if not entity.is_persisted:
                entity.id = next(_id_sequence)
        for env_name, snapshot in list(self._store.items()):
            if snapshot["id"] == environment.id and env_name != environment.env_name:
                del self._store[env_name]
        self._store[environment.env_name] = environment.model_dump()
        self.update_count += 1

    def snapshot(self, env_name: str) -> dict[str, Any] | None:
        """Persisted state of an environment, for assertions."""
        return self._store.get(env_name)

    @classmethod
    def clear(cls) -> None:
        """Clear the shared store and restart ids. Used by test fixtures for isolation."""
        global _id_sequence
        _environment_store.clear()
        _id_sequence = itertools.count(1)


def _walk(environment: Environment) -> Iterator[PersistedEntity]:
    yield environment
    for application_vm in environment.application_vms:
        yield application_vm
        yield from application_vm.applications
    for logical_database in environment.logical_databases:
        yield logical_database
        if logical_database.physical_database is not None:
            yield logical_database.physical_database
