"""Monotonic simulation tick counter."""
from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock


@dataclass
class TickClock:
    """Tracks the current simulation tick in a threadsafe way.

    Ticks only ever move forward; every time comparison made by the fire
    control components reads this counter.
    """

    _tick: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def advance(self, steps: int = 1) -> int:
        """Advance the tick counter and return the new value."""

        if steps < 0:
            raise ValueError("tick clock cannot run backwards")
        with self._lock:
            self._tick += steps
            return self._tick

    def current(self) -> int:
        """Return the most recently published tick."""

        with self._lock:
            return self._tick


__all__ = ["TickClock"]
