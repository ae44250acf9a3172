"""Aggregation of advisory lock failures across discovery targets."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from bluegreen.domain.models.discovery import Lockable


logger = structlog.get_logger(__name__)


class LockErrorAggregator:
    """Collects lock outcomes from heterogeneous targets, then decides once."""

    def __init__(self) -> None:
        self._failed: list[str] = []
        self._checked = 0

    def add(self, target: str, lockable: Lockable) -> None:
        self._checked += 1
        if lockable.is_lock_error():
            logger.warning("target_lock_failed", target=target)
            self._failed.append(target)

    @property
    def failed_targets(self) -> list[str]:
        return list(self._failed)

    @property
    def has_lock_errors(self) -> bool:
        return bool(self._failed)

    def raise_if_any(self, log_context: str = "") -> None:
        if self._failed:
            raise LockError(
                f"{log_context}{len(self._failed)} of {self._checked} targets failed to lock: "
                + ", ".join(self._failed)
            )


def check_lock_errors(results: Iterable[tuple[str, Lockable]], log_context: str = "") -> None:
    """Raises LockError naming every target whose result reports a lock error.

    Results are (target, lockable) pairs; a target may appear more than once.
    """
    aggregator = LockErrorAggregator()
    for target, lockable in results:
        aggregator.add(target, lockable)
    aggregator.raise_if_any(log_context)


class LockError(Exception):
    """Raised when one or more targets could not be locked."""
