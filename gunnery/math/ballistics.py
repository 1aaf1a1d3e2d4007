"""Tick-based projectile flight model.

Projectiles move in whole ticks: each tick gravity is added to the velocity,
the velocity is optionally damped by ``(1 - drag)``, and the position then
advances by the new velocity. The damping model is only meaningful for small
positive drag values.
"""
from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Tuple

from pygame.math import Vector3

STALL_SPEED_SQR = 1.0e-4
MIN_SIM_TICKS = 60
HARD_MAX_SIM_TICKS = 8000
ARC_HEADROOM_TICKS = 40
SPEED_EPS = 1.0e-6


@dataclass(frozen=True)
class BallisticParams:
    """Launch properties of one shot.

    muzzle_speed is blocks/tick, gravity blocks/tick^2 (negative pulls down),
    drag a per-tick damping fraction and barrel_length blocks.
    """

    muzzle_speed: float
    gravity: float = -0.05
    drag: float = 0.0
    barrel_length: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.muzzle_speed > 0.0


@dataclass(frozen=True)
class SimResult:
    ticks: int
    position: Vector3
    velocity: Vector3


def step_projectile(
    position: Vector3,
    velocity: Vector3,
    gravity: float,
    drag: float,
    apply_drag: bool = True,
) -> Tuple[Vector3, Vector3]:
    """Advance a projectile by one tick and return the new (position, velocity)."""

    velocity = Vector3(velocity.x, velocity.y + gravity, velocity.z)
    if apply_drag and drag != 0.0:
        velocity = velocity * (1.0 - drag)
    return position + velocity, velocity


def simulate_flight(
    muzzle_pos: Vector3,
    shooter_velocity: Vector3,
    direction: Vector3,
    muzzle_speed: float,
    gravity: float,
    drag: float,
    target_point: Vector3,
    target_horizontal_dist: float,
    max_ticks: int,
    apply_drag: bool = True,
) -> SimResult:
    """Fly a projectile until it covers ``target_horizontal_dist`` in XZ.

    The run also ends when the projectile stalls or the tick budget runs out;
    in the latter case ``ticks == max_ticks``. Reaching the target's column is
    all that is checked here: whether the shot is at the right height is the
    pitch solver's concern. ``target_point`` is carried for callers that want
    to measure the vertical miss against the final position.
    """

    position = Vector3(muzzle_pos)
    velocity = shooter_velocity + direction * muzzle_speed
    target_dist_sqr = target_horizontal_dist * target_horizontal_dist

    for tick in range(max_ticks + 1):
        dx = position.x - muzzle_pos.x
        dz = position.z - muzzle_pos.z
        if dx * dx + dz * dz >= target_dist_sqr:
            return SimResult(tick, position, velocity)
        if velocity.length_squared() < STALL_SPEED_SQR:
            return SimResult(tick, position, velocity)
        position, velocity = step_projectile(position, velocity, gravity, drag, apply_drag)

    return SimResult(max_ticks, position, velocity)


def compute_max_sim_ticks(
    target_horizontal_dist: float, muzzle_speed: float, max_sim_distance: float
) -> int:
    """Tick budget for one simulator run, with headroom for arcing shots."""

    speed = max(SPEED_EPS, muzzle_speed)
    capped_dist = min(target_horizontal_dist, max(0.0, max_sim_distance))
    ticks = int(ceil(capped_dist / speed)) + ARC_HEADROOM_TICKS
    return max(MIN_SIM_TICKS, min(HARD_MAX_SIM_TICKS, ticks))


__all__ = [
    "BallisticParams",
    "SimResult",
    "compute_max_sim_ticks",
    "simulate_flight",
    "step_projectile",
    "HARD_MAX_SIM_TICKS",
    "MIN_SIM_TICKS",
]
