"""
Error types raised by the artillery shot core.

Construction-time validation problems derive from ValueError so callers that
only care about "bad input" can catch the builtin; everything derives from
ArtilleryError.
"""

from __future__ import annotations

from typing import Optional


class ArtilleryError(Exception):
    """Base class for all errors raised by this package."""


class MissingModifierError(ArtilleryError, ValueError):
    """A mechanism definition lacks modifier keys its runtime depends on."""

    def __init__(self, mechanism_name: str, missing_keys: list[str]):
        self.mechanism_name = mechanism_name
        self.missing_keys = list(missing_keys)
        super().__init__(
            f"{mechanism_name} is missing required modifiers: {', '.join(self.missing_keys)}"
        )


class FrozenContextError(ArtilleryError, RuntimeError):
    """A transform was applied to a pipeline context after it was frozen."""


class PipelineResolutionError(ArtilleryError):
    """A mechanism runtime failed while the pipeline was resolving a turn."""

    def __init__(self, mechanism_id: object, runtime_name: str, message: str):
        self.mechanism_id = mechanism_id
        self.runtime_name = runtime_name
        super().__init__(f"{runtime_name} (mechanism {mechanism_id}) failed: {message}")


class SimulationDidNotTerminateError(ArtilleryError, RuntimeError):
    """The projectile never returned to the ground within the tick ceiling."""

    def __init__(self, ticks: int, altitude: Optional[float] = None):
        self.ticks = ticks
        self.altitude = altitude
        detail = f" (altitude {altitude:.2f} m)" if altitude is not None else ""
        super().__init__(f"Simulation did not terminate after {ticks} ticks{detail}")


class UnknownPlatformError(ArtilleryError, KeyError):
    """No platform is registered under the requested key."""

    def __init__(self, platform_key: str):
        self.platform_key = platform_key
        super().__init__(f"Unknown platform: '{platform_key}'")

    def __str__(self) -> str:
        return self.args[0]


class UnknownMechanismKindError(ArtilleryError, ValueError):
    """A mechanism kind string does not name any known mechanism."""
