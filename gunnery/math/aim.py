"""Yaw/pitch conversions for turret aiming.

Yaw is measured in the XZ plane from +X toward +Z; pitch is elevation above
the XZ plane. Both are radians.
"""
from __future__ import annotations

from math import atan2, cos, sin, sqrt

from pygame.math import Vector3

HORIZONTAL_EPS = 1.0e-6


def horizontal_length_squared(vector: Vector3) -> float:
    return vector.x * vector.x + vector.z * vector.z


def horizontal_length(vector: Vector3) -> float:
    return sqrt(horizontal_length_squared(vector))


def direction_from_yaw_pitch(yaw: float, pitch: float) -> Vector3:
    direction = Vector3(cos(pitch) * cos(yaw), sin(pitch), cos(pitch) * sin(yaw))
    return direction.normalize()


def yaw_from_vector(vector: Vector3) -> float:
    return atan2(vector.z, vector.x)


def pitch_from_vector(vector: Vector3) -> float:
    # Clamped so a target straight overhead still yields +90 degrees.
    return atan2(vector.y, max(HORIZONTAL_EPS, horizontal_length(vector)))


__all__ = [
    "HORIZONTAL_EPS",
    "direction_from_yaw_pitch",
    "horizontal_length",
    "horizontal_length_squared",
    "pitch_from_vector",
    "yaw_from_vector",
]
