"""Lead diagnostics for tuning the gunnery loop."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pygame.math import Vector3

from gunnery.engine.logger import ChannelLogger, channel_or

LOGGER = logging.getLogger(__name__)

DIRECTION_EPS_SQR = 1.0e-9


@dataclass(frozen=True)
class LeadMeasurement:
    lead: Vector3
    total: float
    directional: float


def lead_by_blocks(
    target_pos_now: Optional[Vector3],
    aim_point: Optional[Vector3],
    target_velocity: Optional[Vector3],
    logger: Optional[ChannelLogger] = None,
) -> Optional[LeadMeasurement]:
    """How far ahead of the target the solver aimed, in blocks.

    ``directional`` is the part of the lead along the target's velocity; it
    is zero for a target at rest.
    """

    if target_pos_now is None or aim_point is None:
        return None
    lead = aim_point - target_pos_now
    total = lead.length()
    directional = 0.0
    if target_velocity is not None and target_velocity.length_squared() > DIRECTION_EPS_SQR:
        directional = lead.dot(target_velocity.normalize())
    channel_or(logger, LOGGER).debug(
        "Lead debug total=%.3f directional=%.3f lead=%s target_vel=%s",
        total,
        directional,
        lead,
        target_velocity,
    )
    return LeadMeasurement(lead, total, directional)


__all__ = ["LeadMeasurement", "lead_by_blocks"]
