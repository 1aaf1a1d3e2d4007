"""Weapon-endpoint registry, keyed per world dimension."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from gunnery.engine.logger import ChannelLogger, channel_or

LOGGER = logging.getLogger(__name__)

BlockPos = Tuple[int, int, int]


def block_pos(x: int, y: int, z: int) -> BlockPos:
    return (int(x), int(y), int(z))


class WeaponNetwork:
    """Tracks where each fire controller endpoint lives.

    Endpoints are integer block positions grouped by dimension and tagged
    with the id of the weapon network they belong to.
    """

    def __init__(self, logger: Optional[ChannelLogger] = None) -> None:
        self._endpoints: Dict[str, Dict[BlockPos, str]] = {}
        self._log = channel_or(logger, LOGGER)

    def register(self, dimension: str, pos: BlockPos, network_id: str) -> None:
        self._endpoints.setdefault(dimension, {})[block_pos(*pos)] = network_id

    def unregister(self, dimension: str, pos: BlockPos) -> Optional[str]:
        return self._endpoints.get(dimension, {}).pop(block_pos(*pos), None)

    def network_at(self, dimension: str, pos: BlockPos) -> Optional[str]:
        return self._endpoints.get(dimension, {}).get(block_pos(*pos))

    def endpoints(self, dimension: str) -> Iterable[BlockPos]:
        return tuple(self._endpoints.get(dimension, {}).keys())

    def move(self, dimension: str, old: BlockPos, new: BlockPos) -> bool:
        """Re-key an endpoint from ``old`` to ``new``; True when accepted.

        Moving an endpoint onto itself is accepted, so periodic callers can
        invoke this unconditionally.
        """

        old = block_pos(*old)
        new = block_pos(*new)
        entries = self._endpoints.get(dimension, {})
        network_id = entries.get(old)
        if network_id is None:
            self._log.debug("Endpoint move rejected: nothing registered at %s in %s", old, dimension)
            return False
        if old == new:
            return True
        if new in entries:
            self._log.warning(
                "Endpoint move rejected: %s -> %s in %s is occupied by network %s",
                old,
                new,
                dimension,
                entries[new],
            )
            return False
        del entries[old]
        entries[new] = network_id
        self._log.debug("Endpoint moved %s -> %s in %s", old, new, dimension)
        return True


__all__ = ["BlockPos", "WeaponNetwork", "block_pos"]
