"""Closed-form motion under constant acceleration, in tick units."""
from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector3


def advance_position(
    position: Vector3, velocity: Vector3, acceleration: Vector3, ticks: float
) -> Vector3:
    """Return ``p + v*t + a*t^2/2``; blocks, blocks/tick, blocks/tick^2."""

    return position + velocity * ticks + acceleration * (0.5 * ticks * ticks)


def advance_velocity(velocity: Vector3, acceleration: Vector3, ticks: float) -> Vector3:
    return velocity + acceleration * ticks


@dataclass(frozen=True)
class KinematicState:
    """Position, velocity and acceleration of a shooter or target.

    The vectors are treated as read-only; every operation returns a new
    state built from fresh vectors.
    """

    position: Vector3
    velocity: Vector3 = field(default_factory=Vector3)
    acceleration: Vector3 = field(default_factory=Vector3)

    def is_complete(self) -> bool:
        return (
            self.position is not None
            and self.velocity is not None
            and self.acceleration is not None
        )

    def advance(self, ticks: float) -> "KinematicState":
        return KinematicState(
            advance_position(self.position, self.velocity, self.acceleration, ticks),
            advance_velocity(self.velocity, self.acceleration, ticks),
            Vector3(self.acceleration),
        )

    def relative_to(self, origin: "KinematicState") -> "KinematicState":
        """State of ``self`` as seen from ``origin``."""

        return KinematicState(
            self.position - origin.position,
            self.velocity - origin.velocity,
            self.acceleration - origin.acceleration,
        )

    def without_acceleration(self) -> "KinematicState":
        return KinematicState(Vector3(self.position), Vector3(self.velocity), Vector3())

    def at_rest(self, eps: float) -> bool:
        return self.velocity.length_squared() < eps * eps

    def copy(self) -> "KinematicState":
        return KinematicState(
            Vector3(self.position), Vector3(self.velocity), Vector3(self.acceleration)
        )


__all__ = ["KinematicState", "advance_position", "advance_velocity"]
