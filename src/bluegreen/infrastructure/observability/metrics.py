"""Prometheus metrics configuration."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Histogram,
    Info,
)


# Application info
APP_INFO = Info("bluegreen", "Blue-green manager application info")
APP_INFO.info({
    "version": "0.1.0",
    "service": "blue-green-manager",
})

# Job metrics
JOBS_TOTAL = Counter(
    "bluegreen_jobs_total",
    "Total number of jobs processed",
    ["job", "result"],  # result: "succeeded", "failed"
)

# Task metrics
TASKS_TOTAL = Counter(
    "bluegreen_tasks_total",
    "Total number of tasks processed",
    ["task", "status"],
)

TASK_DURATION = Histogram(
    "bluegreen_task_duration_seconds",
    "Time taken for task processing",
    ["task"],
    buckets=[1, 10, 60, 300, 900, 1800, 3600, 7200],
)

# Control plane metrics
CONTROL_PLANE_CALL_DURATION = Histogram(
    "bluegreen_control_plane_call_duration_seconds",
    "Database control plane call duration",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Remote shell metrics
SHELL_COMMANDS_TOTAL = Counter(
    "bluegreen_shell_commands_total",
    "Total commands executed over ssh",
    ["exit_status"],
)
