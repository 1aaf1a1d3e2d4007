"""Fixed tick-rate simulation loop."""
from __future__ import annotations

import time
from typing import Callable, Optional

from gunnery.engine.clock import TickClock


class TickLoop:
    """Runs a deterministic fixed-rate tick update.

    The update callback receives the tick number being simulated; the clock
    is advanced after each update. When ``realtime`` is off the loop runs
    ticks back to back, which is what tests and batch runs want.
    """

    def __init__(
        self,
        update: Callable[[int], None],
        clock: TickClock,
        tick_rate: float = 20.0,
        realtime: bool = False,
        max_frame_time: float = 0.25,
    ) -> None:
        if tick_rate <= 0.0:
            raise ValueError("tick_rate must be positive")
        self.update = update
        self.clock = clock
        self.tick_dt = 1.0 / tick_rate
        self.realtime = realtime
        self.max_frame_time = max_frame_time
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def _step(self) -> None:
        self.update(self.clock.current())
        self.clock.advance()

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Run until stopped or ``max_ticks`` ticks elapsed; return ticks run."""

        self._running = True
        ticks_run = 0
        if not self.realtime:
            while self._running and (max_ticks is None or ticks_run < max_ticks):
                self._step()
                ticks_run += 1
            self._running = False
            return ticks_run

        accumulator = 0.0
        last_time = time.perf_counter()
        while self._running and (max_ticks is None or ticks_run < max_ticks):
            now = time.perf_counter()
            frame_time = now - last_time
            last_time = now
            if frame_time > self.max_frame_time:
                frame_time = self.max_frame_time
            accumulator += frame_time
            while accumulator >= self.tick_dt and self._running:
                if max_ticks is not None and ticks_run >= max_ticks:
                    break
                self._step()
                ticks_run += 1
                accumulator -= self.tick_dt
            remaining = self.tick_dt - accumulator
            if remaining > 0.0:
                time.sleep(remaining)
        self._running = False
        return ticks_run


__all__ = ["TickLoop"]
