"""
Force affectors for the ballistic engine.

An affector is called once per tick with ``(state, dt)`` and its only
observable effect is adding to ``state.acceleration``. Affectors never write
position or velocity, so their registration order does not change the
physics: each one is an independent additive contribution to one
accumulator.

Any callable with the signature ``(ShotState, float) -> None`` can be used
as an affector; the classes below are the standard set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from .physics import (
    G_STANDARD,
    SEA_LEVEL_AIR_DENSITY,
    SPHERE_DRAG_COEFFICIENT,
    ShotState,
    Vector3D,
)


AffectorFn = Callable[[ShotState, float], None]


class Affector(ABC):
    """Base class for per-tick force contributors."""

    @abstractmethod
    def __call__(self, state: ShotState, dt: float) -> None:
        """Add this affector's acceleration to ``state.acceleration``."""


class Gravity(Affector):
    """Constant downward acceleration."""

    def __init__(self, gravity: float = G_STANDARD):
        self.gravity = gravity

    def __call__(self, state: ShotState, dt: float) -> None:
        state.acceleration.z -= self.gravity

    def __repr__(self) -> str:
        return f"Gravity(gravity={self.gravity})"


class AirResistance(Affector):
    """
    Quadratic aerodynamic drag.

    a_drag = (1/2 * rho * v^2 * Cd * A) / m, applied opposite to velocity.
    A stationary shell feels no drag.
    """

    def __init__(
        self,
        air_density: float = SEA_LEVEL_AIR_DENSITY,
        drag_coefficient: float = SPHERE_DRAG_COEFFICIENT
    ):
        self.air_density = air_density
        self.drag_coefficient = drag_coefficient

    def drag_acceleration(self, state: ShotState) -> Vector3D:
        """
        Drag acceleration for the given state, without applying it.

        Args:
            state: Current shot state

        Returns:
            Acceleration vector (m/s^2), zero for a stationary shell
        """
        speed = state.velocity.magnitude
        if speed == 0:
            return Vector3D.zero()

        drag_force = 0.5 * self.air_density * speed ** 2 * self.drag_coefficient * state.surface_area
        drag_accel = drag_force / state.mass
        return -state.velocity.normalized() * drag_accel

    def __call__(self, state: ShotState, dt: float) -> None:
        if state.velocity.is_zero:
            return
        state.acceleration.add_inplace(self.drag_acceleration(state))

    def __repr__(self) -> str:
        return (f"AirResistance(air_density={self.air_density}, "
                f"drag_coefficient={self.drag_coefficient})")


class Wind(Affector):
    """
    Wind pushing on the shell's cross-section.

    ``wind_vector`` is an acceleration per square meter of surface area, so
    the contribution is ``wind_vector * surface_area`` regardless of the
    shell's velocity.
    """

    def __init__(self, wind_vector: Vector3D):
        self.wind_vector = wind_vector.copy()

    def __call__(self, state: ShotState, dt: float) -> None:
        state.acceleration.add_inplace(self.wind_vector.scale(state.surface_area))

    def __repr__(self) -> str:
        return f"Wind(wind_vector={self.wind_vector!r})"


def default_affectors(
    gravity: float = G_STANDARD,
    air_density: float = SEA_LEVEL_AIR_DENSITY,
    drag_coefficient: float = SPHERE_DRAG_COEFFICIENT
) -> list[Affector]:
    """Gravity followed by air resistance, the set every engine starts with."""
    return [
        Gravity(gravity),
        AirResistance(air_density=air_density, drag_coefficient=drag_coefficient),
    ]
