"""Environment transaction implementations."""

from bluegreen.infrastructure.persistence.repositories.environment_tx import (
    SqlAlchemyEnvironmentTx,
)
from bluegreen.infrastructure.persistence.repositories.in_memory import (
    InMemoryEnvironmentTx,
)


__all__ = [
    "InMemoryEnvironmentTx",
    "SqlAlchemyEnvironmentTx",
]
