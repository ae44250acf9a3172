"""Jobs: ordered sequences of tasks bound to one environment."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, Field

from bluegreen.domain.models.task import TaskStatus
from bluegreen.infrastructure.observability.metrics import JOBS_TOTAL, TASK_DURATION, TASKS_TOTAL
from bluegreen.tasks.base import Task


logger = structlog.get_logger(__name__)


class TaskResult(BaseModel):
    """Outcome of one task within a job run."""

    position: int
    task_name: str
    status: TaskStatus
    duration_seconds: float = 0.0
    error_message: str = ""


class JobResult(BaseModel):
    """Aggregate outcome of a job run."""

    job_name: str
    env_name: str
    noop: bool = False
    task_results: list[TaskResult] = Field(default_factory=list)
    failed_position: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.failed_position is None

    def status_at(self, position: int) -> TaskStatus | None:
        for task_result in self.task_results:
            if task_result.position == position:
                return task_result.status
        return None


class Job(ABC):
    """Something the command line can ask to be processed."""

    @abstractmethod
    def process(self) -> JobResult:
        """Run the job. Raises JobFailedError if it could not complete."""


class TaskSequenceJob(Job):
    """Runs tasks strictly in position order and stops at the first failure.

    Tasks that already completed keep their persisted effects; there is no
    rollback.
    """

    def __init__(
        self,
        job_name: str,
        env_name: str,
        tasks: Sequence[Task],
        noop: bool = False,
    ) -> None:
        self._job_name = job_name
        self._env_name = env_name
        self._tasks = sorted(tasks, key=lambda task: task.position)
        self._noop = noop

    @property
    def job_name(self) -> str:
        return self._job_name

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def process(self) -> JobResult:
        with structlog.contextvars.bound_contextvars(job=self._job_name, noop=self._noop):
            return self._process_tasks()

    def _process_tasks(self) -> JobResult:
        result = JobResult(job_name=self._job_name, env_name=self._env_name, noop=self._noop)
        logger.info("job_started", env_name=self._env_name, task_count=len(self._tasks))
        for task in self._tasks:
            start = time.perf_counter()
            try:
                status = task.process(self._noop)
            except Exception as e:
                elapsed = time.perf_counter() - start
                result.task_results.append(TaskResult(
                    position=task.position,
                    task_name=task.name,
                    status=TaskStatus.ERROR,
                    duration_seconds=elapsed,
                    error_message=str(e),
                ))
                result.failed_position = task.position
                TASKS_TOTAL.labels(task=task.name, status=TaskStatus.ERROR.value).inc()
                JOBS_TOTAL.labels(job=self._job_name, result="failed").inc()
                logger.error(
                    "task_failed",
                    env_name=task.environment.env_name,
                    position=task.position,
                    task=task.name,
                    error=str(e),
                )
                raise JobFailedError(
                    f"{task.context()}{task.name} failed: {e}", result
                ) from e
            elapsed = time.perf_counter() - start
            result.task_results.append(TaskResult(
                position=task.position,
                task_name=task.name,
                status=status,
                duration_seconds=elapsed,
            ))
            TASKS_TOTAL.labels(task=task.name, status=status.value).inc()
            TASK_DURATION.labels(task=task.name).observe(elapsed)
            logger.info(
                "task_processed",
                position=task.position,
                task=task.name,
                status=status.value,
            )
        JOBS_TOTAL.labels(job=self._job_name, result="succeeded").inc()
        logger.info(
            "job_completed",
            env_name=self._env_name,
            statuses={r.position: r.status.value for r in result.task_results},
        )
        return result


class JobFailedError(Exception):
    """Raised when a task of a job fails; carries the partial job result."""

    def __init__(self, message: str, result: JobResult) -> None:
        super().__init__(message)
        self.result = result

    @property
    def failed_position(self) -> int | None:
        return self.result.failed_position
