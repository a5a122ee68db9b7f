"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable before settings are imported so
no .env file leaks into the test run.
"""

from __future__ import annotations

import os
from typing import Callable

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("RATE_LIMIT_ENABLE_CLEANUP", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from ratewarden.adapters.rate_limit.store import ScheduledTask, Scheduler  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


class ManualTask(ScheduledTask):
    def __init__(self, interval_ms: int, callback: Callable[[], object]) -> None:
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler whose tasks only run when the test fires them."""

    def __init__(self) -> None:
        self.tasks: list[ManualTask] = []

    def schedule(self, interval_ms: int, callback: Callable[[], object]) -> ScheduledTask:
        task = ManualTask(interval_ms, callback)
        self.tasks.append(task)
        return task

    @property
    def active_tasks(self) -> list[ManualTask]:
        return [t for t in self.tasks if t.active]

    def fire(self) -> None:
        for task in self.active_tasks:
            task.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
