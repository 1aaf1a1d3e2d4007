"""Iterative lead solver."""
from __future__ import annotations

from math import isclose, pi
from pathlib import Path
import logging
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from pygame.math import Vector3

from gunnery.combat.lead import (
    SolverConfig,
    lead_time,
    solve_constant_velocity,
    solve_with_acceleration,
)
from gunnery.combat.targeting import lead_by_blocks
from gunnery.math.aim import horizontal_length
from gunnery.math.ballistics import BallisticParams, compute_max_sim_ticks
from gunnery.math.kinematics import KinematicState

NO_LATENCY = SolverConfig(latency_ticks=0.0)
FLAT = BallisticParams(4.0, gravity=0.0)


def _state(position, velocity=(0, 0, 0), acceleration=(0, 0, 0)) -> KinematicState:
    return KinematicState(Vector3(position), Vector3(velocity), Vector3(acceleration))


def test_lead_time_never_includes_fire_delay() -> None:
    assert lead_time(25.0, 2.0) == 27.0
    assert lead_time(0.0, 0.0) == 0.0


def test_stationary_target_gets_direct_aim() -> None:
    solution = solve_constant_velocity(_state((0, 0, 0)), _state((100, 0, 0)), FLAT, 0)
    assert solution is not None
    assert solution.flight_ticks == 0
    assert isclose(solution.yaw_rad, 0.0, abs_tol=1e-9)
    assert isclose(solution.pitch_deg, 0.0, abs_tol=1e-9)
    assert solution.aim_point == Vector3(100, 0, 0)
    assert solution.converged


def test_crossing_target_converges() -> None:
    solution = solve_constant_velocity(
        _state((0, 0, 0)), _state((100, 0, 0), (0, 0, 1)), FLAT, 0, config=NO_LATENCY
    )
    assert solution is not None
    assert solution.converged
    assert solution.flight_ticks == 26
    assert solution.aim_point.z == pytest.approx(26.0)
    assert 0.0 < solution.yaw_rad < pi / 2


def test_iteration_cap_reports_best_effort() -> None:
    config = SolverConfig(latency_ticks=0.0, max_iters=1)
    solution = solve_constant_velocity(
        _state((0, 0, 0)), _state((100, 0, 0), (0, 0, 1)), FLAT, 0, config=config
    )
    assert solution is not None
    assert not solution.converged
    assert solution.iterations == 1


def test_falling_shot_at_stationary_target_aims_straight_down_the_line() -> None:
    ballistics = BallisticParams(4.0, gravity=-0.05)
    solution = solve_constant_velocity(_state((0, 50, 0)), _state((80, 0, 0)), ballistics, 0)
    assert solution is not None
    assert solution.flight_ticks == 0
    assert solution.aim_point == Vector3(80, 0, 0)
    assert solution.pitch_deg == pytest.approx(-32.0, abs=0.01)


def test_falling_shot_at_slow_target_uses_low_arc() -> None:
    ballistics = BallisticParams(4.0, gravity=-0.05)
    solution = solve_constant_velocity(
        _state((0, 50, 0)), _state((80, 0, 0), (0, 0, 0.02)), ballistics, 0, config=NO_LATENCY
    )
    assert solution is not None
    assert solution.pitch_deg < 0.0
    assert 15 <= solution.flight_ticks <= 30


def test_lead_is_measured_from_fire_time_position() -> None:
    shooter = _state((0, 0, 0))
    target = _state((100, 0, 0), (1, 0, 0))
    solution = solve_constant_velocity(shooter, target, FLAT, 10, config=NO_LATENCY)
    assert solution is not None
    assert solution.flight_ticks == 37
    assert solution.aim_point.x == pytest.approx(110.0 + solution.flight_ticks)

    latent = solve_constant_velocity(shooter, target, FLAT, 10, config=SolverConfig(latency_ticks=2.0))
    assert latent is not None
    assert latent.flight_ticks == 38
    assert latent.aim_point.x == pytest.approx(110.0 + latent.flight_ticks + 2.0)


def test_no_muzzle_speed_means_no_solution() -> None:
    shooter = _state((0, 0, 0))
    target = _state((100, 0, 0), (0, 0, 1))
    assert solve_constant_velocity(shooter, target, BallisticParams(0.0), 0) is None
    assert solve_with_acceleration(shooter, target, BallisticParams(-1.0), 0) is None


def test_missing_input_means_no_solution() -> None:
    target = _state((100, 0, 0), (0, 0, 1))
    assert solve_constant_velocity(None, target, FLAT, 0) is None
    assert solve_constant_velocity(_state((0, 0, 0)), target, None, 0) is None
    assert solve_constant_velocity(KinematicState(Vector3(), None), target, FLAT, 0) is None


def test_invalid_ballistics_is_logged_quietly(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="gunnery.combat.lead")
    solve_constant_velocity(_state((0, 0, 0)), _state((10, 0, 0), (0, 0, 1)), BallisticParams(0.0), 3)
    solve_constant_velocity(None, _state((10, 0, 0)), FLAT, 3)
    assert "invalid_ballistics" in caplog.text
    assert "missing_input" in caplog.text
    assert all(record.levelno < logging.WARNING for record in caplog.records)


def test_fire_delay_shifts_aim_with_a_moving_mount() -> None:
    shooter = _state((0, 0, 0), (0, 0, 0.5))
    target = _state((100, 0, 0), (0, 0, 0.5))
    early = solve_constant_velocity(shooter, target, FLAT, 4, config=NO_LATENCY)
    late = solve_constant_velocity(shooter, target, FLAT, 8, config=NO_LATENCY)
    assert early is not None and late is not None
    assert late.aim_point.z - early.aim_point.z == pytest.approx(2.0)
    assert late.flight_ticks == early.flight_ticks


def test_acceleration_form_leads_further() -> None:
    shooter = _state((0, 0, 0))
    target = _state((100, 0, 0), (0, 0, 0.5), (0, 0, 0.02))
    plain = solve_constant_velocity(shooter, target, FLAT, 0, config=NO_LATENCY)
    accel = solve_with_acceleration(shooter, target, FLAT, 0, config=NO_LATENCY)
    assert plain is not None and accel is not None
    assert plain.aim_point.z == pytest.approx(13.0)
    assert accel.flight_ticks == 26
    assert accel.aim_point.z == pytest.approx(19.76)
    assert accel.aim_point.z > plain.aim_point.z


def test_shooter_jitter_is_ignored() -> None:
    target = _state((100, 0, 0), (0, 0, 1))
    still = solve_constant_velocity(_state((0, 0, 0)), target, FLAT, 5, config=NO_LATENCY)
    jitter = solve_constant_velocity(_state((0, 0, 0), (0.005, 0, 0)), target, FLAT, 5, config=NO_LATENCY)
    assert still is not None and jitter is not None
    assert jitter.flight_ticks == still.flight_ticks
    assert jitter.aim_point == still.aim_point


def test_barrel_length_shortens_flight() -> None:
    shooter = _state((0, 0, 0))
    target = _state((100, 0, 0), (0, 0, 1))
    bare = solve_constant_velocity(shooter, target, FLAT, 0, config=NO_LATENCY)
    barrel = solve_constant_velocity(
        shooter, target, BallisticParams(4.0, gravity=0.0, barrel_length=8.0), 0, config=NO_LATENCY
    )
    assert bare is not None and barrel is not None
    assert barrel.flight_ticks <= bare.flight_ticks


def test_solution_direction_matches_yaw_and_pitch() -> None:
    solution = solve_constant_velocity(
        _state((0, 0, 0)), _state((100, 0, 0), (0, 0, 1)), FLAT, 0, config=NO_LATENCY
    )
    assert solution is not None
    direction = solution.direction
    assert isclose(direction.length(), 1.0)
    assert direction.z > 0.0


def test_solver_config_from_dict() -> None:
    config = SolverConfig.from_dict({"latencyTicks": -3, "maxIters": 0, "applyDrag": False})
    assert config.latency_ticks == 0.0
    assert config.max_iters == 1
    assert config.max_sim_distance == 512.0
    assert not config.apply_drag


def test_lead_by_blocks_splits_along_velocity() -> None:
    measurement = lead_by_blocks(Vector3(100, 0, 0), Vector3(100, 0, 26), Vector3(0, 0, 1))
    assert measurement is not None
    assert measurement.total == pytest.approx(26.0)
    assert measurement.directional == pytest.approx(26.0)

    still = lead_by_blocks(Vector3(100, 0, 0), Vector3(100, 3, 4), Vector3())
    assert still is not None
    assert still.total == pytest.approx(5.0)
    assert still.directional == 0.0

    assert lead_by_blocks(None, Vector3(), Vector3()) is None


def test_repeated_solves_are_identical() -> None:
    shooter = _state((3, 10, -2), (0.2, 0, 0.1))
    target = _state((90, 4, 30), (-0.3, 0, 0.6), (0, 0, 0.01))
    ballistics = BallisticParams(4.0, gravity=-0.05, drag=0.01, barrel_length=3.0)
    first = solve_with_acceleration(shooter, target, ballistics, 4)
    second = solve_with_acceleration(shooter, target, ballistics, 4)
    assert first is not None and second is not None
    assert first.aim_point == second.aim_point
    assert first.yaw_rad == second.yaw_rad
    assert first.pitch_deg == second.pitch_deg
    assert first.flight_ticks == second.flight_ticks
    assert first.converged == second.converged
    assert first.iterations == second.iterations


def test_unreachable_target_stays_within_budget() -> None:
    config = SolverConfig(latency_ticks=0.0, max_iters=5, max_sim_distance=10.0)
    ballistics = BallisticParams(0.5, gravity=-0.05)
    target = _state((100, 0, 0), (0, 0, 0.1))
    solution = solve_constant_velocity(_state((0, 0, 0)), target, ballistics, 0, config=config)
    assert solution is not None
    budget = compute_max_sim_ticks(horizontal_length(solution.aim_point), 0.5, config.max_sim_distance)
    assert budget == 60
    assert solution.flight_ticks <= budget
    assert solution.iterations <= config.max_iters
