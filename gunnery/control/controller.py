"""Fire controller: owns a trigger and keeps its network endpoint current."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from gunnery.control.trigger import FireTrigger, OutputListener, RepeaterProbe
from gunnery.engine.clock import TickClock
from gunnery.engine.logger import ChannelLogger, channel_or
from gunnery.network.registry import BlockPos, WeaponNetwork, block_pos

LOGGER = logging.getLogger(__name__)

SYNC_INTERVAL_TICKS = 40


class FireController:
    def __init__(
        self,
        position: BlockPos,
        dimension: str,
        network: WeaponNetwork,
        clock: TickClock,
        repeater_probe: Optional[RepeaterProbe] = None,
        listener: Optional[OutputListener] = None,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self.position = block_pos(*position)
        self.dimension = dimension
        self.network = network
        self.clock = clock
        self.last_known_pos = self.position
        self._log = channel_or(logger, LOGGER)
        self.trigger = FireTrigger(clock, repeater_probe, listener, logger)

    @property
    def powered(self) -> bool:
        return self.trigger.output

    def set_powered(self, powered: bool) -> None:
        self.trigger.set(powered)

    def move_to(self, position: BlockPos) -> None:
        """Relocate the controller; the registry catches up on the next sync."""

        self.position = block_pos(*position)

    def tick(self) -> None:
        self.trigger.tick()
        if self.clock.current() % SYNC_INTERVAL_TICKS == 0:
            self.sync_endpoint()

    def sync_endpoint(self) -> bool:
        """Push the current position to the registry; commit only if accepted."""

        accepted = self.network.move(self.dimension, self.last_known_pos, self.position)
        if accepted and self.last_known_pos != self.position:
            self._log.debug("Controller moved %s -> %s", self.last_known_pos, self.position)
            self.last_known_pos = self.position
        return accepted

    def on_load(self) -> None:
        """Re-attach after a reload; a stale fire schedule is never resumed."""

        self.sync_endpoint()
        self.trigger.reset()

    # ------------------------------------------------------------------
    # Persistence

    def as_dict(self) -> Dict[str, object]:
        data = self.trigger.as_dict()
        data["lastKnownPos"] = list(self.last_known_pos)
        return data

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, object],
        position: BlockPos,
        dimension: str,
        network: WeaponNetwork,
        clock: TickClock,
        repeater_probe: Optional[RepeaterProbe] = None,
        listener: Optional[OutputListener] = None,
        logger: Optional[ChannelLogger] = None,
    ) -> "FireController":
        controller = cls(position, dimension, network, clock, repeater_probe, listener, logger)
        controller.trigger.load_dict(data)
        stored = data.get("lastKnownPos")
        if isinstance(stored, (list, tuple)) and len(stored) == 3:
            controller.last_known_pos = block_pos(*stored)
        return controller


__all__ = ["FireController", "SYNC_INTERVAL_TICKS"]
