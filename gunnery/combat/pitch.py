"""Launch pitch root finders.

A pitch solver maps ``(shooter_pos, aim_point, ballistics)`` to the launch
pitches, in degrees, that put a shot through the aim point. Roots are
ordered low arc first; an empty list means the point is out of reach.
"""
from __future__ import annotations

from math import atan, cos, degrees, radians, sqrt
from typing import List, Optional, Protocol, Sequence

from pygame.math import Vector3

from gunnery.math.aim import (
    direction_from_yaw_pitch,
    horizontal_length,
    pitch_from_vector,
    yaw_from_vector,
)
from gunnery.math.ballistics import BallisticParams, compute_max_sim_ticks, simulate_flight

GRAVITY_EPS = 1.0e-9
RANGE_EPS = 1.0e-6


class PitchSolver(Protocol):
    def __call__(
        self, shooter_pos: Vector3, aim_point: Vector3, ballistics: BallisticParams
    ) -> Sequence[float]:
        ...


def no_pitch_candidates(
    shooter_pos: Vector3, aim_point: Vector3, ballistics: BallisticParams
) -> List[float]:
    """Never offers a root, so callers fall back to line of sight."""

    return []


def ballistic_pitch_candidates(
    shooter_pos: Vector3, aim_point: Vector3, ballistics: BallisticParams
) -> List[float]:
    """Drag-free closed-form launch angles for the given muzzle speed."""

    if ballistics.muzzle_speed <= 0.0:
        return []
    offset = aim_point - shooter_pos
    x = horizontal_length(offset)
    y = offset.y
    g = -ballistics.gravity
    if abs(g) < GRAVITY_EPS or x < RANGE_EPS:
        return [degrees(pitch_from_vector(offset))]

    v2 = ballistics.muzzle_speed * ballistics.muzzle_speed
    disc = v2 * v2 - g * (g * x * x + 2.0 * y * v2)
    if disc < 0.0:
        return []
    root = sqrt(disc)
    low = degrees(atan((v2 - root) / (g * x)))
    high = degrees(atan((v2 + root) / (g * x)))
    if root == 0.0:
        return [low]
    return sorted((low, high))


class SimulatedPitchSolver:
    """Finds pitch roots by flying the tick simulator, so drag counts.

    Pitches are sampled across ``[min_pitch, max_pitch]``; every bracket
    where the vertical miss at the aim point's range changes sign is refined
    by bisection.
    """

    def __init__(
        self,
        step_deg: float = 1.0,
        refine_iters: int = 24,
        max_sim_distance: float = 512.0,
        min_pitch: float = -85.0,
        max_pitch: float = 85.0,
        apply_drag: bool = True,
    ) -> None:
        if step_deg <= 0.0:
            raise ValueError("step_deg must be positive")
        self.step_deg = step_deg
        self.refine_iters = refine_iters
        self.max_sim_distance = max_sim_distance
        self.min_pitch = min_pitch
        self.max_pitch = max_pitch
        self.apply_drag = apply_drag

    def vertical_miss(
        self,
        pitch_deg: float,
        shooter_pos: Vector3,
        aim_point: Vector3,
        ballistics: BallisticParams,
    ) -> Optional[float]:
        """Height above the aim point when the shot reaches its range, or None."""

        yaw = yaw_from_vector(aim_point - shooter_pos)
        direction = direction_from_yaw_pitch(yaw, radians(pitch_deg))
        muzzle = shooter_pos + direction * ballistics.barrel_length
        distance = horizontal_length(aim_point - muzzle)
        # Steep shots cover ground slowly; budget by horizontal speed.
        horizontal_speed = ballistics.muzzle_speed * cos(radians(pitch_deg))
        budget = compute_max_sim_ticks(distance, horizontal_speed, self.max_sim_distance)
        result = simulate_flight(
            muzzle,
            Vector3(),
            direction,
            ballistics.muzzle_speed,
            ballistics.gravity,
            ballistics.drag,
            aim_point,
            distance,
            budget,
            self.apply_drag,
        )
        reached = horizontal_length(result.position - muzzle)
        if reached < distance - RANGE_EPS:
            return None
        if result.ticks == 0:
            return result.position.y - aim_point.y
        previous = result.position - result.velocity
        before = horizontal_length(previous - muzzle)
        span = reached - before
        fraction = 1.0 if span <= RANGE_EPS else max(0.0, min(1.0, (distance - before) / span))
        height = previous.y + (result.position.y - previous.y) * fraction
        return height - aim_point.y

    def __call__(
        self, shooter_pos: Vector3, aim_point: Vector3, ballistics: BallisticParams
    ) -> List[float]:
        if ballistics.muzzle_speed <= 0.0:
            return []
        roots: List[float] = []
        prev_pitch: Optional[float] = None
        prev_miss: Optional[float] = None
        pitch = self.min_pitch
        while pitch <= self.max_pitch + 1e-9:
            miss = self.vertical_miss(pitch, shooter_pos, aim_point, ballistics)
            if miss == 0.0:
                roots.append(pitch)
            elif miss is not None and prev_miss is not None and prev_miss * miss < 0.0:
                roots.append(
                    self._bisect(prev_pitch, prev_miss, pitch, shooter_pos, aim_point, ballistics)
                )
            prev_pitch, prev_miss = pitch, miss
            pitch += self.step_deg
        return roots

    def _bisect(
        self,
        lo: float,
        lo_miss: float,
        hi: float,
        shooter_pos: Vector3,
        aim_point: Vector3,
        ballistics: BallisticParams,
    ) -> float:
        for _ in range(self.refine_iters):
            mid = 0.5 * (lo + hi)
            miss = self.vertical_miss(mid, shooter_pos, aim_point, ballistics)
            if miss is None:
                # Lost range inside the bracket; keep the half that still reaches.
                hi = mid
                continue
            if (miss < 0.0) == (lo_miss < 0.0):
                lo, lo_miss = mid, miss
            else:
                hi = mid
        return 0.5 * (lo + hi)


__all__ = [
    "PitchSolver",
    "SimulatedPitchSolver",
    "ballistic_pitch_candidates",
    "no_pitch_candidates",
]
