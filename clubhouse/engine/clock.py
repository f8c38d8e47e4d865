"""
clubhouse.engine.clock — Trusted Millisecond Clock
===================================================

Message timestamps come from a clock the caller cannot influence.  The
service layer takes any object with ``now_ms()``; production uses
:class:`SystemClock`, tests pin time with :class:`FixedClock`.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol

__all__ = ["Clock", "SystemClock", "FixedClock", "system_clock"]


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    """Wall clock, milliseconds since the Unix epoch."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock:
    """Deterministic clock that advances only when told to.

    Thread-safe; ``step_ms`` is added after every read so consecutive
    messages get distinct timestamps.
    """

    def __init__(self, start_ms: int = 1_700_000_000_000, step_ms: int = 0) -> None:
        self._lock = threading.Lock()
        self._now = start_ms
        self._step = step_ms

    def now_ms(self) -> int:
        with self._lock:
            value = self._now
            self._now += self._step
            return value

    def advance(self, ms: int) -> None:
        with self._lock:
            self._now += ms


system_clock = SystemClock()
