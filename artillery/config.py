"""
Simulation configuration.

Defaults match the canonical engine; every value can be overridden through
environment variables (optionally from a ``.env`` file):

    ARTILLERY_TICK_SECONDS      integration step (s)
    ARTILLERY_MAX_TICKS         tick ceiling before giving up
    ARTILLERY_GRAVITY           gravitational acceleration (m/s^2)
    ARTILLERY_AIR_DENSITY       air density (kg/m^3)
    ARTILLERY_DRAG_COEFFICIENT  shell drag coefficient
    ARTILLERY_LAUNCH_HEIGHT     muzzle height above ground (m)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .physics import G_STANDARD, SEA_LEVEL_AIR_DENSITY, SPHERE_DRAG_COEFFICIENT


# Fixed integration step (seconds)
TICK_SECONDS = 0.05

# Tick ceiling: 5000 s of flight at the default step
MAX_TICKS = 100_000

# Muzzle height of the canonical engine (meters)
DEFAULT_LAUNCH_HEIGHT = 1.0

ENV_PREFIX = "ARTILLERY_"


@dataclass(frozen=True)
class SimulationConfig:
    """
    Tunables for the ballistic engine.

    Attributes:
        tick_seconds: Fixed integration step (seconds)
        max_ticks: Ticks allowed before the shot is declared non-terminating
        gravity: Gravitational acceleration (m/s^2)
        air_density: Air density for drag (kg/m^3)
        drag_coefficient: Shell drag coefficient
        launch_height: Muzzle height above ground (meters)
    """
    tick_seconds: float = TICK_SECONDS
    max_ticks: int = MAX_TICKS
    gravity: float = G_STANDARD
    air_density: float = SEA_LEVEL_AIR_DENSITY
    drag_coefficient: float = SPHERE_DRAG_COEFFICIENT
    launch_height: float = DEFAULT_LAUNCH_HEIGHT

    def __post_init__(self) -> None:
        if self.tick_seconds <= 0:
            raise ValueError(f"tick_seconds must be > 0, got {self.tick_seconds}")
        if self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be > 0, got {self.max_ticks}")
        if self.air_density < 0:
            raise ValueError(f"air_density must be >= 0, got {self.air_density}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None
    ) -> SimulationConfig:
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (no .env
                loading happens when given)
            dotenv_path: Explicit .env file to load into ``os.environ``

        Returns:
            Configuration with overrides applied

        Raises:
            ValueError: If a variable is present but not a valid number.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        overrides: dict[str, float | int] = {}
        for name, caster in (
            ("tick_seconds", float),
            ("max_ticks", int),
            ("gravity", float),
            ("air_density", float),
            ("drag_coefficient", float),
            ("launch_height", float),
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides[name] = caster(raw)
            except ValueError as e:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
                ) from e

        return cls(**overrides)
