"""Entry storage and periodic eviction.

The store is the only mutable shared state of a limiter. It is a plain
key -> entry mapping guarded by one lock; the eviction sweep takes the same
lock for a single linear pass and only ever deletes.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EntryStore:
    """Thread-safe mapping from lookup key to per-key state."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"EntryStore(size={len(self._entries)})"

    @property
    def lock(self):
        """Lock callers hold across a read-modify-write of one entry."""
        return self._lock

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: Any) -> None:
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self, is_expired: Callable[[Any], bool]) -> int:
        """Delete every entry for which ``is_expired`` returns True.

        Args:
            is_expired: Predicate evaluated once per entry.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            expired_keys = [k for k, entry in self._entries.items() if is_expired(entry)]
            for key in expired_keys:
                del self._entries[key]
            return len(expired_keys)


class ScheduledTask(ABC):
    """Handle for a repeating job."""

    @abstractmethod
    def cancel(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def active(self) -> bool:
        raise NotImplementedError


class Scheduler(ABC):
    """Runs a callback every ``interval_ms`` until cancelled."""

    @abstractmethod
    def schedule(self, interval_ms: int, callback: Callable[[], object]) -> ScheduledTask:
        raise NotImplementedError


class _ThreadTask(ScheduledTask):
    def __init__(self, interval_ms: int, callback: Callable[[], object], name: str) -> None:
        self._interval_s = interval_ms / 1000
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def cancel(self) -> None:
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self._interval_s):
            try:
                self._callback()
            except Exception:
                logger.exception("rate_limit.sweep_failed")


class ThreadScheduler(Scheduler):
    """Scheduler backed by one daemon thread per task.

    Daemon threads never keep the host process alive, mirroring an
    unreferenced timer.
    """

    def __init__(self, name: str = "rate-limit-sweeper") -> None:
        self._name = name

    def schedule(self, interval_ms: int, callback: Callable[[], object]) -> ScheduledTask:
        task = _ThreadTask(interval_ms, callback, self._name)
        task.start()
        return task
