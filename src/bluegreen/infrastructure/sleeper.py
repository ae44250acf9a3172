"""Real-time sleeper."""

from __future__ import annotations

import time

from bluegreen.domain.ports.services import Sleeper


class ThreadSleeper(Sleeper):
    """Blocks the calling thread; the only suspension point of a job."""

    def sleep(self, milliseconds: int) -> None:
        time.sleep(milliseconds / 1000.0)
