"""Registry of weapon-network endpoints."""

from .registry import BlockPos, WeaponNetwork, block_pos

__all__ = [
    "BlockPos",
    "WeaponNetwork",
    "block_pos",
]
