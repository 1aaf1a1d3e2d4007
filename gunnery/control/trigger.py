"""Fire-control trigger: a small state machine over the tick clock.

The trigger turns a stream of boolean fire commands into an output signal.
With a repeater fitted the output is a pulse train of one-tick-high pulses
every ``2 * delay_steps`` ticks; without one the output simply follows the
command. If commands stop arriving for more than ``FAILSAFE_TICKS`` the
trigger shuts itself off, so a stalled gunnery loop cannot leave a cannon
firing.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from gunnery.engine.clock import TickClock
from gunnery.engine.logger import ChannelLogger, channel_or

LOGGER = logging.getLogger(__name__)

FAILSAFE_TICKS = 10
DEFAULT_PERIOD_TICKS = 2
MIN_DELAY_STEPS = 1
MAX_DELAY_STEPS = 4
NO_TICK = -1

RepeaterProbe = Callable[[], Optional[int]]
OutputListener = Callable[[bool], None]


class TriggerMode(Enum):
    OFF = "off"
    STEADY_ON = "steady_on"
    PULSING = "pulsing"


def _no_repeater() -> Optional[int]:
    return None


def pulse_period(delay_steps: Optional[int]) -> int:
    """Ticks between rising edges for a repeater delay setting."""

    if delay_steps is None:
        return DEFAULT_PERIOD_TICKS
    steps = max(MIN_DELAY_STEPS, min(MAX_DELAY_STEPS, int(delay_steps)))
    return steps * 2


class FireTrigger:
    def __init__(
        self,
        clock: TickClock,
        repeater_probe: Optional[RepeaterProbe] = None,
        listener: Optional[OutputListener] = None,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self.clock = clock
        self.repeater_probe = repeater_probe or _no_repeater
        self.listener = listener
        self._log = channel_or(logger, LOGGER)
        self._mode = TriggerMode.OFF
        self._output = False
        self.last_command_tick = NO_TICK
        self.next_pulse_tick = NO_TICK
        self.pulse_off_tick = NO_TICK

    @property
    def mode(self) -> TriggerMode:
        return self._mode

    @property
    def output(self) -> bool:
        return self._output

    @property
    def pulsing(self) -> bool:
        return self._mode is TriggerMode.PULSING

    # ------------------------------------------------------------------
    # Commands

    def set(self, powered: bool) -> None:
        """Accept a fire command; every call refreshes the failsafe window."""

        now = self.clock.current()
        self.last_command_tick = now

        delay_steps = self.repeater_probe() if powered else None
        if powered and delay_steps is not None:
            self._mode = TriggerMode.PULSING
            if self.next_pulse_tick < 0 or now >= self.next_pulse_tick:
                self._start_pulse(now, delay_steps)
            return

        self.next_pulse_tick = NO_TICK
        self.pulse_off_tick = NO_TICK
        self._mode = TriggerMode.STEADY_ON if powered else TriggerMode.OFF
        self._set_output(bool(powered))

    def tick(self) -> None:
        """Advance the machine by one tick: failsafe, pulse-off, pulse-on."""

        now = self.clock.current()
        if (
            self._mode is not TriggerMode.OFF
            and self.last_command_tick >= 0
            and now - self.last_command_tick > FAILSAFE_TICKS
        ):
            self._log.info(
                "Trigger failsafe: no command since tick %d (now %d)",
                self.last_command_tick,
                now,
            )
            self.reset()
            return

        if self._mode is not TriggerMode.PULSING:
            return
        if self.pulse_off_tick >= 0 and now >= self.pulse_off_tick:
            self.pulse_off_tick = NO_TICK
            self._set_output(False)
        if self.next_pulse_tick >= 0 and now >= self.next_pulse_tick:
            self._start_pulse(now, self.repeater_probe())

    def reset(self) -> None:
        """Drop to OFF with no pending pulses."""

        self._mode = TriggerMode.OFF
        self.next_pulse_tick = NO_TICK
        self.pulse_off_tick = NO_TICK
        self._set_output(False)

    # ------------------------------------------------------------------
    # Persistence

    def as_dict(self) -> Dict[str, object]:
        return {
            "powered": self._output,
            "pulsing": self.pulsing,
            "nextPulseTick": self.next_pulse_tick,
            "pulseOffTick": self.pulse_off_tick,
        }

    def load_dict(self, data: Dict[str, object]) -> None:
        self._output = bool(data.get("powered", False))
        pulsing = bool(data.get("pulsing", False))
        self.next_pulse_tick = int(data.get("nextPulseTick", NO_TICK))
        self.pulse_off_tick = int(data.get("pulseOffTick", NO_TICK))
        if pulsing:
            self._mode = TriggerMode.PULSING
        elif self._output:
            self._mode = TriggerMode.STEADY_ON
        else:
            self._mode = TriggerMode.OFF

    # ------------------------------------------------------------------
    # Internals

    def _start_pulse(self, now: int, delay_steps: Optional[int]) -> None:
        self._set_output(True)
        self.pulse_off_tick = now + 1
        self.next_pulse_tick = now + pulse_period(delay_steps)

    def _set_output(self, value: bool) -> None:
        if self._output == value:
            return
        self._output = value
        self._log.debug("Trigger output %s at tick %d", "high" if value else "low", self.clock.current())
        if self.listener is not None:
            self.listener(value)


__all__ = [
    "FAILSAFE_TICKS",
    "FireTrigger",
    "TriggerMode",
    "pulse_period",
]
