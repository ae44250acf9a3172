"""Unit tests for lock error aggregation."""

from __future__ import annotations

import pytest

from bluegreen.domain.models.discovery import DiscoveryResult
from bluegreen.domain.services.locking import check_lock_errors, LockError, LockErrorAggregator


class AlwaysLocked:
    def is_lock_error(self) -> bool:
        return True


class TestLockErrorAggregator:
    def test_no_errors(self) -> None:
        aggregator = LockErrorAggregator()
        aggregator.add("a", DiscoveryResult())
        assert not aggregator.has_lock_errors
        aggregator.raise_if_any()

    def test_collects_every_failed_target(self) -> None:
        aggregator = LockErrorAggregator()
        aggregator.add("a", DiscoveryResult(lock_error=True))
        aggregator.add("b", DiscoveryResult())
        aggregator.add("c", AlwaysLocked())
        assert aggregator.failed_targets == ["a", "c"]
        with pytest.raises(LockError, match=r"2 of 3 targets failed to lock: a, c"):
            aggregator.raise_if_any()


class TestCheckLockErrors:
    def test_raises_naming_all_targets(self) -> None:
        results = [
            ("http://h1:80/", DiscoveryResult(lock_error=True)),
            ("http://h2:80/", DiscoveryResult(lock_error=True)),
        ]
        with pytest.raises(LockError) as exc_info:
            check_lock_errors(results, "[blue#1]: ")
        message = str(exc_info.value)
        assert message.startswith("[blue#1]: ")
        assert "http://h1:80/" in message
        assert "http://h2:80/" in message

    def test_passes_when_all_locked(self) -> None:
        check_lock_errors([("x", DiscoveryResult()), ("y", DiscoveryResult())])

    def test_repeated_target_counted_each_time(self) -> None:
        results = [
            ("http://h1:80/", DiscoveryResult(lock_error=True)),
            ("http://h1:80/", DiscoveryResult(lock_error=True)),
        ]
        with pytest.raises(LockError, match=r"2 of 2 targets failed to lock"):
            check_lock_errors(results)
