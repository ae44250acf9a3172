"""Bounded-retry polling of long-running external operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

import structlog
from pydantic import Field

from bluegreen.domain.models.base import ValueObject
from bluegreen.domain.ports.services import Sleeper


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ProgressChecker(ABC, Generic[T]):
    """Knows how to recognize start, success and failure of one kind of
    asynchronous external operation.

    The checker is constructed with the output of the operation's kickoff.
    Callers run ``initial_check()`` once before handing the checker to a Waiter.
    """

    @property
    @abstractmethod
    def description(self) -> str:
        """Describes the operation being watched. Must not depend on values
        discovered by the initial check.
        """

    @abstractmethod
    def initial_check(self) -> None:
        """Extracts what is needed to watch progress from the kickoff output.

        Raises if there is nothing to poll; this is never retried.
        """

    @abstractmethod
    def followup_check(self, wait_num: int) -> None:
        """Probes the external system once.

        Raises as soon as a failure is recognized; records completion when a
        success is recognized; otherwise leaves the checker not done.
        """

    @abstractmethod
    def is_done(self) -> bool:
        """True once a success was recognized."""

    @property
    @abstractmethod
    def result(self) -> T | None:
        """The value produced by the operation, non-None only once done."""

    @abstractmethod
    def timeout(self) -> T | None:
        """Called once when the wait budget is exhausted. Must not raise.

        Returns None: the caller decides whether a timeout is fatal.
        """


class WaiterParameters(ValueObject):
    """How long and how often to wait."""

    max_num_waits: int = Field(ge=0)
    wait_report_interval: int = Field(ge=1)
    wait_delay_milliseconds: int = Field(ge=0)

    @property
    def max_wait_milliseconds(self) -> int:
        return self.max_num_waits * self.wait_delay_milliseconds


class Waiter(Generic[T]):
    """Sleeps and probes until the progress checker is done, fails, or the
    fixed wait budget runs out. No backoff.
    """

    def __init__(
        self,
        parameters: WaiterParameters,
        sleeper: Sleeper,
        progress_checker: ProgressChecker[T],
    ) -> None:
        self._parameters = parameters
        self._sleeper = sleeper
        self._progress_checker = progress_checker

    def wait_til_done(self) -> T | None:
        """Returns the checker's result, or the checker's timeout value (None)."""
        description = self._progress_checker.description
        max_num_waits = self._parameters.max_num_waits
        for wait_num in range(1, max_num_waits + 1):
            self._sleeper.sleep(self._parameters.wait_delay_milliseconds)
            self._progress_checker.followup_check(wait_num)
            if self._progress_checker.is_done():
                logger.info("wait_done", operation=description, wait_num=wait_num)
                return self._progress_checker.result
            if wait_num % self._parameters.wait_report_interval == 0:
                logger.info(
                    "wait_progress",
                    operation=description,
                    wait_num=wait_num,
                    max_num_waits=max_num_waits,
                    elapsed_milliseconds=wait_num * self._parameters.wait_delay_milliseconds,
                )
        logger.warning("wait_timed_out", operation=description, max_num_waits=max_num_waits)
        return self._progress_checker.timeout()


class RemoteOperationFailedError(Exception):
    """Raised by a progress checker that recognized a failure of the watched operation."""
