"""Clock abstraction so verification time can be injected in tests."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Supplies the current time as seconds since the Unix epoch."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time in epoch seconds."""


class SystemClock(Clock):
    """Clock backed by the system wall clock."""

    def now(self) -> float:
        return time.time()


class FixedClock(Clock):
    """Clock that only moves when told to. Useful for tests and local runs."""

    def __init__(self, now: float):
        self._now = float(now)
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._now

    def set(self, now: float) -> None:
        with self._lock:
            self._now = float(now)

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds
