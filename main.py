"""Entry point for a headless gunnery engagement run."""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Tuple

from gunnery.assets.content import ContentManager
from gunnery.combat.lead import SolverConfig
from gunnery.combat.pitch import SimulatedPitchSolver, ballistic_pitch_candidates
from gunnery.engine.clock import TickClock
from gunnery.engine.logger import GunneryLogger, init_logger
from gunnery.engine.loop import TickLoop
from gunnery.world.engagement import Engagement, EngagementConfig


SETTINGS_PATH = Path("settings.json")


def load_settings(path: Path = SETTINGS_PATH) -> Dict[str, Any]:
    if not path.exists():
        return {"tickRate": 20}
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError:
        return {"tickRate": 20}


def build_engagement(
    settings: Dict[str, Any], content: ContentManager, logger: GunneryLogger
) -> Tuple[Engagement, EngagementConfig]:
    config = EngagementConfig.from_dict(settings.get("engagement", {}))
    solver_config = SolverConfig.from_dict(settings.get("solver", {}))
    cannon = content.cannons.get(config.cannon)
    ballistics = content.cannons.ballistics_for(config.cannon, config.munition)
    fire_delay = cannon.fire_delay_ticks if config.fire_delay_ticks is None else config.fire_delay_ticks

    # The simulated solver honours drag but flies hundreds of shots per solve.
    if settings.get("pitchSolver", "ballistic") == "simulated":
        pitch_solver = SimulatedPitchSolver(
            step_deg=float(settings.get("pitchStepDeg", 2.0)),
            max_sim_distance=cannon.max_sim_distance,
            apply_drag=solver_config.apply_drag,
        )
    else:
        pitch_solver = ballistic_pitch_candidates

    return Engagement(
        config.shooter,
        config.target,
        ballistics,
        fire_delay_ticks=fire_delay,
        max_sim_distance=cannon.max_sim_distance,
        solver_config=solver_config,
        pitch_solver=pitch_solver,
        clock=TickClock(),
        repeater_delay=config.repeater_delay,
        hit_radius=config.hit_radius,
        max_projectile_ticks=config.max_projectile_ticks,
        logger=logger.channel("engagement"),
    ), config


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a headless gunnery engagement.")
    parser.add_argument("--settings", type=Path, default=SETTINGS_PATH)
    parser.add_argument("--ticks", type=int, default=None, help="override the engagement length")
    parser.add_argument("--realtime", action="store_true", help="pace ticks at the configured rate")
    args = parser.parse_args()

    settings = load_settings(args.settings)
    logger = init_logger(args.settings)

    content = ContentManager()
    content.load()

    engagement, config = build_engagement(settings, content, logger)
    loop = TickLoop(
        engagement.update,
        engagement.clock,
        tick_rate=settings.get("tickRate", 20),
        realtime=args.realtime,
    )
    try:
        loop.run(args.ticks or config.ticks)
    except KeyboardInterrupt:
        loop.stop()
    print(engagement.report.summary())


if __name__ == "__main__":
    main()
