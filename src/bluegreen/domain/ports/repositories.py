"""Repository port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bluegreen.domain.models.environment import Environment


class EnvironmentTx(ABC):
    """Port for transactional reads and writes of the environment aggregate.

    Each call is its own transaction: the environment, its vms, applications
    and databases are written all-or-nothing, and nothing is written when the
    call raises.
    """

    @abstractmethod
    def find_named_environment(self, env_name: str) -> Environment:
        """Load an environment aggregate by name. Raises EnvironmentNotFoundError."""

    @abstractmethod
    def update_environment(self, environment: Environment) -> None:
        """Persist the aggregate, cascading to newly attached children.

        New entities receive their persisted identity in place.
        """


class EnvironmentNotFoundError(Exception):
    """Raised when no environment exists with the requested name."""
