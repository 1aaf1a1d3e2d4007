"""Cannon and munition data, and the ballistics lookup built on them."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from gunnery.math.ballistics import BallisticParams


@dataclass
class MunitionData:
    id: str
    name: str
    muzzle_speed: float
    gravity: float
    drag: float
    fuze: str = "impact"

    @classmethod
    def from_dict(cls, data: Dict) -> "MunitionData":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            muzzle_speed=float(data.get("muzzleSpeed", 0.0)),
            gravity=float(data.get("gravity", -0.05)),
            drag=float(data.get("drag", 0.0)),
            fuze=data.get("fuze", "impact"),
        )


@dataclass
class CannonData:
    id: str
    name: str
    barrel_length: int
    velocity_multiplier: float = 1.0
    fire_delay_ticks: int = 0
    max_sim_distance: float = 512.0

    @classmethod
    def from_dict(cls, data: Dict) -> "CannonData":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            barrel_length=int(data.get("barrelLength", 0)),
            velocity_multiplier=float(data.get("velocityMultiplier", 1.0)),
            fire_delay_ticks=max(0, int(data.get("fireDelayTicks", 0))),
            max_sim_distance=float(data.get("maxSimDistance", 512.0)),
        )


def _load_entries(directory: Path):
    if not directory.exists():
        return
    for path in sorted(directory.glob("*.json")):
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            data = [data]
        yield from data


class MunitionDatabase:
    def __init__(self) -> None:
        self.munitions: Dict[str, MunitionData] = {}

    def load_directory(self, directory: Path) -> None:
        for entry in _load_entries(directory):
            munition = MunitionData.from_dict(entry)
            self.munitions[munition.id] = munition

    def get(self, munition_id: str) -> MunitionData:
        return self.munitions[munition_id]


class CannonDatabase:
    """Cannon frames plus the munitions they can be loaded with."""

    def __init__(self, munitions: Optional[MunitionDatabase] = None) -> None:
        self.cannons: Dict[str, CannonData] = {}
        self.munitions = munitions or MunitionDatabase()

    def load_directory(self, directory: Path) -> None:
        for entry in _load_entries(directory):
            cannon = CannonData.from_dict(entry)
            self.cannons[cannon.id] = cannon

    def get(self, cannon_id: str) -> CannonData:
        return self.cannons[cannon_id]

    def ballistics_for(self, cannon_id: str, munition_id: Optional[str]) -> BallisticParams:
        """Launch properties for a cannon and its loaded munition.

        An empty breech (``munition_id`` None) reports zero muzzle speed,
        which the lead solver treats as "hold fire".
        """

        cannon = self.get(cannon_id)
        if munition_id is None:
            return BallisticParams(
                muzzle_speed=0.0, gravity=0.0, drag=0.0, barrel_length=cannon.barrel_length
            )
        munition = self.munitions.get(munition_id)
        return BallisticParams(
            muzzle_speed=munition.muzzle_speed * cannon.velocity_multiplier,
            gravity=munition.gravity,
            drag=munition.drag,
            barrel_length=cannon.barrel_length,
        )


__all__ = [
    "CannonData",
    "CannonDatabase",
    "MunitionData",
    "MunitionDatabase",
]
