"""Unit tests for the real-time sleeper."""

from __future__ import annotations

import pytest

from bluegreen.infrastructure import sleeper as sleeper_module
from bluegreen.infrastructure.sleeper import ThreadSleeper


class TestThreadSleeper:
    def test_sleeps_in_seconds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        slept: list[float] = []
        monkeypatch.setattr(sleeper_module.time, "sleep", slept.append)
        ThreadSleeper().sleep(1500)
        assert slept == [1.5]
