"""Headless shooter-versus-target engagement.

Each tick the shooter solves a lead on the target, keeps the trigger
commanded while a solution exists and, on every rising edge of the trigger,
schedules a shot to leave the muzzle ``fire_delay_ticks`` later. Live
projectiles are moved with the same per-tick integrator the solver predicts
with, and each shot's closest approach to the target is recorded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from math import ceil, radians
from typing import Dict, List, Optional, Sequence

from pygame.math import Vector3

from gunnery.combat.lead import LeadSolution, SolverConfig, solve_with_acceleration
from gunnery.combat.pitch import PitchSolver
from gunnery.control.trigger import FireTrigger
from gunnery.engine.clock import TickClock
from gunnery.engine.logger import ChannelLogger, channel_or
from gunnery.engine.loop import TickLoop
from gunnery.math.aim import direction_from_yaw_pitch, horizontal_length
from gunnery.math.ballistics import BallisticParams, step_projectile
from gunnery.math.kinematics import KinematicState

LOGGER = logging.getLogger(__name__)

RETIRE_MARGIN_TICKS = 20


def _vector(data: Optional[Sequence[float]]) -> Vector3:
    if not data:
        return Vector3()
    return Vector3(float(data[0]), float(data[1]), float(data[2]))


def _state_from_dict(data: Dict) -> KinematicState:
    return KinematicState(
        _vector(data.get("position")),
        _vector(data.get("velocity")),
        _vector(data.get("acceleration")),
    )


@dataclass
class EngagementConfig:
    cannon: str = "medium_cannon"
    munition: Optional[str] = "solid_shot"
    fire_delay_ticks: Optional[int] = None
    ticks: int = 200
    repeater_delay: Optional[int] = 2
    hit_radius: float = 1.5
    max_projectile_ticks: int = 400
    shooter: KinematicState = field(default_factory=lambda: KinematicState(Vector3()))
    target: KinematicState = field(
        default_factory=lambda: KinematicState(Vector3(120.0, 0.0, 0.0), Vector3(0.0, 0.0, 0.5))
    )

    @classmethod
    def from_dict(cls, data: Dict) -> "EngagementConfig":
        defaults = cls()
        fire_delay = data.get("fireDelayTicks")
        return cls(
            cannon=data.get("cannon", defaults.cannon),
            munition=data.get("munition", defaults.munition),
            fire_delay_ticks=None if fire_delay is None else max(0, int(fire_delay)),
            ticks=max(1, int(data.get("ticks", defaults.ticks))),
            repeater_delay=data.get("repeaterDelay", defaults.repeater_delay),
            hit_radius=float(data.get("hitRadius", defaults.hit_radius)),
            max_projectile_ticks=int(data.get("maxProjectileTicks", defaults.max_projectile_ticks)),
            shooter=_state_from_dict(data["shooter"]) if "shooter" in data else defaults.shooter,
            target=_state_from_dict(data["target"]) if "target" in data else defaults.target,
        )


@dataclass
class ShotRecord:
    fired_tick: int
    predicted_flight: int
    closest_miss: float = float("inf")
    closest_tick: int = -1

    def hit(self, radius: float) -> bool:
        return self.closest_miss <= radius


@dataclass
class EngagementReport:
    ticks_run: int = 0
    solutions: int = 0
    failures: int = 0
    shots: List[ShotRecord] = field(default_factory=list)
    hit_radius: float = 1.5

    @property
    def hits(self) -> int:
        return sum(1 for shot in self.shots if shot.hit(self.hit_radius))

    @property
    def best_miss(self) -> float:
        return min((shot.closest_miss for shot in self.shots), default=float("inf"))

    def summary(self) -> str:
        lines = [
            f"Ticks run      : {self.ticks_run}",
            f"Lead solutions : {self.solutions} ({self.failures} failed)",
            f"Shots fired    : {len(self.shots)}",
            f"Hits (<= {self.hit_radius:.1f}) : {self.hits}",
        ]
        if self.shots:
            lines.append(f"Best miss      : {self.best_miss:.2f} blocks")
        return "\n".join(lines)


@dataclass
class _PendingShot:
    spawn_tick: int
    solution: LeadSolution


@dataclass
class _LiveProjectile:
    position: Vector3
    velocity: Vector3
    age: int
    record: ShotRecord
    retire_age: int


class Engagement:
    def __init__(
        self,
        shooter: KinematicState,
        target: KinematicState,
        ballistics: BallisticParams,
        fire_delay_ticks: int = 0,
        max_sim_distance: Optional[float] = None,
        solver_config: Optional[SolverConfig] = None,
        pitch_solver: Optional[PitchSolver] = None,
        clock: Optional[TickClock] = None,
        repeater_delay: Optional[int] = 2,
        hit_radius: float = 1.5,
        max_projectile_ticks: int = 400,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self.shooter = shooter.copy()
        self.target = target.copy()
        self.ballistics = ballistics
        self.fire_delay_ticks = fire_delay_ticks
        self.max_sim_distance = max_sim_distance
        self.solver_config = solver_config or SolverConfig()
        self.pitch_solver = pitch_solver
        self.clock = clock or TickClock()
        self.max_projectile_ticks = max_projectile_ticks
        self.logger = logger
        self._log = channel_or(logger, LOGGER)
        self.report = EngagementReport(hit_radius=hit_radius)
        self.solution: Optional[LeadSolution] = None
        self._pending: List[_PendingShot] = []
        self._projectiles: List[_LiveProjectile] = []
        self.trigger = FireTrigger(
            self.clock,
            repeater_probe=lambda: repeater_delay,
            listener=self._on_trigger_output,
            logger=logger,
        )

    @property
    def projectiles_in_flight(self) -> int:
        return len(self._projectiles)

    def run(self, ticks: int) -> EngagementReport:
        """Run back to back for ``ticks`` ticks and return the report."""

        TickLoop(self.update, self.clock).run(ticks)
        return self.report

    def update(self, tick: int) -> None:
        self.solution = solve_with_acceleration(
            self.shooter,
            self.target,
            self.ballistics,
            self.fire_delay_ticks,
            self.max_sim_distance,
            config=self.solver_config,
            pitch_solver=self.pitch_solver,
            logger=self.logger,
        )
        if self.solution is None:
            self.report.failures += 1
        else:
            self.report.solutions += 1
        self.trigger.set(self.solution is not None)
        self.trigger.tick()

        self._spawn_due(tick)
        self._advance_projectiles(tick)
        self.shooter = self.shooter.advance(1)
        self.target = self.target.advance(1)
        self.report.ticks_run += 1

    def _on_trigger_output(self, high: bool) -> None:
        if not high or self.solution is None:
            return
        spawn_tick = self.clock.current() + self.fire_delay_ticks
        self._pending.append(_PendingShot(spawn_tick, self.solution))
        self._log.debug(
            "Fire command at tick %d, shot leaves at %d (yaw=%.3f pitch=%.2f flight=%d)",
            self.clock.current(),
            spawn_tick,
            self.solution.yaw_rad,
            self.solution.pitch_deg,
            self.solution.flight_ticks,
        )

    def _spawn_due(self, tick: int) -> None:
        due = [shot for shot in self._pending if shot.spawn_tick <= tick]
        if not due:
            return
        self._pending = [shot for shot in self._pending if shot.spawn_tick > tick]
        for shot in due:
            solution = shot.solution
            direction = direction_from_yaw_pitch(solution.yaw_rad, radians(solution.pitch_deg))
            muzzle = self.shooter.position + direction * self.ballistics.barrel_length
            velocity = self.shooter.velocity + direction * self.ballistics.muzzle_speed
            record = ShotRecord(fired_tick=tick, predicted_flight=solution.flight_ticks)
            self.report.shots.append(record)
            retire_age = min(
                self.max_projectile_ticks,
                self._expected_flight(solution, muzzle, velocity) + RETIRE_MARGIN_TICKS,
            )
            self._projectiles.append(_LiveProjectile(muzzle, velocity, 0, record, retire_age))

    def _expected_flight(self, solution: LeadSolution, muzzle: Vector3, velocity: Vector3) -> int:
        if solution.flight_ticks > 0:
            return solution.flight_ticks
        # Direct aim carries no flight estimate; derive one from the range.
        speed = horizontal_length(velocity)
        if speed <= 0.0:
            return self.max_projectile_ticks
        return int(ceil(horizontal_length(self.target.position - muzzle) / speed))

    def _advance_projectiles(self, tick: int) -> None:
        survivors: List[_LiveProjectile] = []
        for projectile in self._projectiles:
            miss = projectile.position.distance_to(self.target.position)
            record = projectile.record
            if miss < record.closest_miss:
                record.closest_miss = miss
                record.closest_tick = tick
            if projectile.age >= projectile.retire_age:
                self._log.debug(
                    "Shot from tick %d retired: closest miss %.2f at tick %d",
                    record.fired_tick,
                    record.closest_miss,
                    record.closest_tick,
                )
                continue
            projectile.position, projectile.velocity = step_projectile(
                projectile.position,
                projectile.velocity,
                self.ballistics.gravity,
                self.ballistics.drag,
                self.solver_config.apply_drag,
            )
            projectile.age += 1
            survivors.append(projectile)
        self._projectiles = survivors


__all__ = ["Engagement", "EngagementConfig", "EngagementReport", "ShotRecord"]
