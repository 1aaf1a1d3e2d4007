"""Iterative ballistic lead solver.

Given the present motion of a shooter and a target, the solver finds the
aim point, yaw, pitch and flight time for a projectile that leaves the
muzzle ``fire_delay_ticks`` from now and meets the target at impact.

Flight time, aim direction and predicted target position depend on one
another, so the solver runs a fixed-point iteration: guess a flight time,
extrapolate the target, pick a pitch for that point, fly the shot through
the tick simulator and feed the simulated flight time back in. It stops when
two successive flight times agree to within half a tick, or after
``max_iters`` rounds.

All motion is anchored at fire time. The target is expressed relative to
the shooter's predicted position when the shot leaves, so the extrapolation
inside the loop advances by flight time plus latency only; the fire delay
has already been applied to both bodies.

Inputs and outputs are in blocks and ticks. Failures are reported as
``None`` and logged; the solver does not raise.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from math import degrees, radians
from typing import Optional

from pygame.math import Vector3

from gunnery.combat.pitch import PitchSolver, ballistic_pitch_candidates
from gunnery.engine.logger import ChannelLogger, channel_or
from gunnery.math.aim import (
    direction_from_yaw_pitch,
    horizontal_length,
    pitch_from_vector,
    yaw_from_vector,
)
from gunnery.math.ballistics import BallisticParams, compute_max_sim_ticks, simulate_flight
from gunnery.math.kinematics import KinematicState

LOGGER = logging.getLogger(__name__)

VEL_EPS = 0.01
VEL_EPS_SQR = VEL_EPS * VEL_EPS
CONVERGENCE_TOLERANCE_TICKS = 0.5
SPEED_EPS = 1.0e-6


class SolveError(Enum):
    MISSING_INPUT = "missing_input"
    INVALID_BALLISTICS = "invalid_ballistics"
    NO_CONVERGE = "no_converge"


@dataclass(frozen=True)
class SolverConfig:
    """Tunables shared by every solve call."""

    latency_ticks: float = 2.0
    max_iters: int = 8
    max_sim_distance: float = 512.0
    apply_drag: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "SolverConfig":
        return cls(
            latency_ticks=max(0.0, float(data.get("latencyTicks", 2.0))),
            max_iters=max(1, int(data.get("maxIters", 8))),
            max_sim_distance=float(data.get("maxSimDistance", 512.0)),
            apply_drag=bool(data.get("applyDrag", True)),
        )


@dataclass(frozen=True)
class LeadSolution:
    aim_point: Vector3
    yaw_rad: float
    pitch_deg: float
    flight_ticks: int
    converged: bool = True
    iterations: int = 0

    @property
    def direction(self) -> Vector3:
        return direction_from_yaw_pitch(self.yaw_rad, radians(self.pitch_deg))


def lead_time(flight_ticks: float, latency_ticks: float) -> float:
    """Ticks to extrapolate a fire-time-anchored target.

    The fire delay is deliberately absent: the relative state this feeds has
    already been advanced to the moment the shot leaves the muzzle.
    """

    return flight_ticks + latency_ticks


def solve_constant_velocity(
    shooter: Optional[KinematicState],
    target: Optional[KinematicState],
    ballistics: Optional[BallisticParams],
    fire_delay_ticks: int,
    max_sim_distance: Optional[float] = None,
    *,
    config: Optional[SolverConfig] = None,
    pitch_solver: Optional[PitchSolver] = None,
    logger: Optional[ChannelLogger] = None,
) -> Optional[LeadSolution]:
    """Lead a target assuming neither body accelerates.

    Accelerations on the passed states are ignored.
    """

    return _solve(
        shooter,
        target,
        ballistics,
        fire_delay_ticks,
        max_sim_distance,
        use_acceleration=False,
        config=config,
        pitch_solver=pitch_solver,
        logger=logger,
    )


def solve_with_acceleration(
    shooter: Optional[KinematicState],
    target: Optional[KinematicState],
    ballistics: Optional[BallisticParams],
    fire_delay_ticks: int,
    max_sim_distance: Optional[float] = None,
    *,
    config: Optional[SolverConfig] = None,
    pitch_solver: Optional[PitchSolver] = None,
    logger: Optional[ChannelLogger] = None,
) -> Optional[LeadSolution]:
    """Lead a target with both bodies under constant acceleration."""

    return _solve(
        shooter,
        target,
        ballistics,
        fire_delay_ticks,
        max_sim_distance,
        use_acceleration=True,
        config=config,
        pitch_solver=pitch_solver,
        logger=logger,
    )


def _solve(
    shooter: Optional[KinematicState],
    target: Optional[KinematicState],
    ballistics: Optional[BallisticParams],
    fire_delay_ticks: int,
    max_sim_distance: Optional[float],
    *,
    use_acceleration: bool,
    config: Optional[SolverConfig],
    pitch_solver: Optional[PitchSolver],
    logger: Optional[ChannelLogger],
) -> Optional[LeadSolution]:
    log = channel_or(logger, LOGGER)
    config = config or SolverConfig()
    pitch_solver = pitch_solver or ballistic_pitch_candidates
    if max_sim_distance is None:
        max_sim_distance = config.max_sim_distance

    if (
        shooter is None
        or target is None
        or ballistics is None
        or fire_delay_ticks is None
        or not shooter.is_complete()
        or not target.is_complete()
    ):
        log.debug(
            "[LEAD] %s shooter=%s target=%s ballistics=%s",
            SolveError.MISSING_INPUT.value,
            shooter,
            target,
            ballistics,
        )
        return None

    muzzle_speed = ballistics.muzzle_speed
    if muzzle_speed <= 0.0:
        log.debug(
            "[LEAD] %s muzzle_speed=%s (no ammo loaded?) shooter_pos=%s fire_delay=%s",
            SolveError.INVALID_BALLISTICS.value,
            muzzle_speed,
            shooter.position,
            fire_delay_ticks,
        )
        return None

    if not use_acceleration:
        shooter = shooter.without_acceleration()
        target = target.without_acceleration()
    if shooter.at_rest(VEL_EPS):
        # Tiny shooter motion is sensor noise; treat the mount as fixed.
        shooter = KinematicState(Vector3(shooter.position))

    shooter_at_fire = shooter.advance(fire_delay_ticks)
    origin = shooter_at_fire.position

    if target.at_rest(VEL_EPS):
        to_target = target.position - origin
        return LeadSolution(
            aim_point=Vector3(target.position),
            yaw_rad=yaw_from_vector(to_target),
            pitch_deg=degrees(pitch_from_vector(to_target)),
            flight_ticks=0,
        )

    relative = target.advance(fire_delay_ticks).relative_to(shooter_at_fire)
    t_guess = horizontal_length(relative.position) / max(SPEED_EPS, muzzle_speed)

    aim_point = origin + relative.position
    yaw = yaw_from_vector(relative.position)
    pitch = pitch_from_vector(relative.position)
    flight_ticks = int(round(t_guess))
    converged = False
    iterations = 0

    for iterations in range(1, config.max_iters + 1):
        aim_rel = relative.advance(lead_time(t_guess, config.latency_ticks)).position
        aim_point = origin + aim_rel

        yaw = yaw_from_vector(aim_rel)
        pitch = pitch_from_vector(aim_rel)
        roots = pitch_solver(Vector3(origin), Vector3(aim_point), ballistics)
        if roots:
            pitch = radians(roots[0])

        direction = direction_from_yaw_pitch(yaw, pitch)
        muzzle_pos = origin + direction * ballistics.barrel_length
        horizontal = horizontal_length(aim_point - muzzle_pos)

        sim = simulate_flight(
            muzzle_pos,
            shooter_at_fire.velocity,
            direction,
            muzzle_speed,
            ballistics.gravity,
            ballistics.drag,
            aim_point,
            horizontal,
            compute_max_sim_ticks(horizontal, muzzle_speed, max_sim_distance),
            config.apply_drag,
        )

        flight_ticks = sim.ticks
        if abs(flight_ticks - t_guess) < CONVERGENCE_TOLERANCE_TICKS:
            converged = True
            break
        t_guess = float(flight_ticks)

    if not converged:
        log.debug(
            "[LEAD] %s after %d iterations; last flight=%d aim=%s",
            SolveError.NO_CONVERGE.value,
            iterations,
            flight_ticks,
            aim_point,
        )

    return LeadSolution(
        aim_point=aim_point,
        yaw_rad=yaw,
        pitch_deg=degrees(pitch),
        flight_ticks=flight_ticks,
        converged=converged,
        iterations=iterations,
    )


__all__ = [
    "LeadSolution",
    "SolveError",
    "SolverConfig",
    "lead_time",
    "solve_constant_velocity",
    "solve_with_acceleration",
]
