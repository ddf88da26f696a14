"""
Flight hooks: conditional mid-flight events.

Hooks run before or after integration on every tick and may mutate the shot
state directly. Each hook tracks whether it has already fired so that
one-shot events trigger at most once per simulation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from .physics import ShotState, Vector3D


HookFn = Callable[[ShotState, float], None]

# Fraction of velocity kept when a parachute opens
PARACHUTE_DAMPING = 0.3


class FlightHook(ABC):
    """Base class for conditional, state-mutating flight events."""

    @abstractmethod
    def __call__(self, state: ShotState, dt: float) -> None:
        """Inspect the state and mutate it if the event triggers."""

    def reset(self) -> None:
        """Re-arm the hook before a new simulation."""


class ParachuteDeploy(FlightHook):
    """
    Parachute deployment for illumination or cargo shells.

    Deploys when ANY configured trigger is met:
    - altitude at or below ``deploy_altitude``
    - elapsed time at or above ``deploy_time``
    - straight-line distance from the launch point at or above
      ``deploy_distance``

    The launch point is the position seen on the hook's first invocation.
    On deployment velocity is scaled by PARACHUTE_DAMPING once.
    """

    def __init__(
        self,
        deploy_altitude: Optional[float] = None,
        deploy_time: Optional[float] = None,
        deploy_distance: Optional[float] = None,
        damping: float = PARACHUTE_DAMPING
    ):
        if deploy_altitude is None and deploy_time is None and deploy_distance is None:
            raise ValueError("ParachuteDeploy needs at least one trigger")
        self.deploy_altitude = deploy_altitude
        self.deploy_time = deploy_time
        self.deploy_distance = deploy_distance
        self.damping = damping
        self.deployed = False
        self.deployed_at: Optional[float] = None
        self._origin: Optional[Vector3D] = None

    def reset(self) -> None:
        self.deployed = False
        self.deployed_at = None
        self._origin = None

    def should_deploy(self, state: ShotState) -> bool:
        """Check the configured triggers against the current state."""
        if self.deploy_altitude is not None and state.altitude <= self.deploy_altitude:
            return True
        if self.deploy_time is not None and state.time >= self.deploy_time:
            return True
        if self.deploy_distance is not None and self._origin is not None:
            if state.position.distance_to(self._origin) >= self.deploy_distance:
                return True
        return False

    def __call__(self, state: ShotState, dt: float) -> None:
        if self._origin is None:
            self._origin = state.position.copy()
        if self.deployed:
            return
        if self.should_deploy(state):
            self.deployed = True
            self.deployed_at = state.time
            state.velocity = state.velocity * self.damping

    def __repr__(self) -> str:
        return (f"ParachuteDeploy(altitude={self.deploy_altitude}, "
                f"time={self.deploy_time}, distance={self.deploy_distance}, "
                f"deployed={self.deployed})")
