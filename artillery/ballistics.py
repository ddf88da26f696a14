"""
Ballistic Engine for the artillery shot simulator.

Integrates a shell's 3D trajectory with a fixed timestep:
- Resolved firing parameters -> initial ShotState (spherical decomposition)
- Before-tick hooks, affectors, explicit Euler step, after-tick hooks
- Per-tick position trace for playback
- Termination on ground contact, bounded by a tick ceiling

The default affector set is gravity followed by air resistance; callers
append extra affectors (wind, ...) and supply hooks (parachute, ...).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from .affectors import AffectorFn, default_affectors
from .config import SimulationConfig
from .errors import SimulationDidNotTerminateError
from .hooks import HookFn
from .physics import ShotState, Vector3D, launch_velocity

logger = logging.getLogger(__name__)


# Keys a resolver must provide for the engine to run at all
REQUIRED_INPUT_KEYS = ("angle_deg", "initial_velocity", "shell_weight")


# =============================================================================
# ENGINE INPUT / OUTPUT
# =============================================================================

@dataclass(frozen=True)
class BallisticInputs:
    """
    Resolved firing parameters for one shot.

    Attributes:
        angle_deg: Elevation above horizontal (degrees)
        initial_velocity: Muzzle speed (m/s), must be positive
        shell_weight: Shell mass (kg), must be positive
        deflection_deg: Horizontal bearing offset (degrees)
        area_of_effect: Blast radius, passed through untouched
        surface_area: Shell cross-section (m^2)
        initial_height: Muzzle height (m); None uses the engine config
    """
    angle_deg: float
    initial_velocity: float
    shell_weight: float
    deflection_deg: float = 0.0
    area_of_effect: float = 0.0
    surface_area: float = 0.0
    initial_height: Optional[float] = None

    def __post_init__(self) -> None:
        if self.initial_velocity <= 0:
            raise ValueError(f"initial_velocity must be > 0, got {self.initial_velocity}")
        if self.shell_weight <= 0:
            raise ValueError(f"shell_weight must be > 0, got {self.shell_weight}")
        if self.surface_area < 0:
            raise ValueError(f"surface_area must be >= 0, got {self.surface_area}")

    @classmethod
    def from_mapping(cls, attributes: Mapping[str, Any]) -> BallisticInputs:
        """
        Build inputs from a resolver's attribute mapping.

        Args:
            attributes: Mapping with at least angle_deg, initial_velocity and
                shell_weight

        Returns:
            Validated BallisticInputs

        Raises:
            ValueError: If a mandatory key is missing or a value is invalid.
        """
        for key in REQUIRED_INPUT_KEYS:
            if attributes.get(key) is None:
                raise ValueError(f"Missing {key}")

        return cls(
            angle_deg=float(attributes["angle_deg"]),
            initial_velocity=float(attributes["initial_velocity"]),
            shell_weight=float(attributes["shell_weight"]),
            deflection_deg=float(attributes.get("deflection_deg") or 0.0),
            area_of_effect=float(attributes.get("area_of_effect") or 0.0),
            surface_area=float(attributes.get("surface_area") or 0.0),
            initial_height=attributes.get("initial_height"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form."""
        return {
            "angle_deg": self.angle_deg,
            "initial_velocity": self.initial_velocity,
            "shell_weight": self.shell_weight,
            "deflection_deg": self.deflection_deg,
            "area_of_effect": self.area_of_effect,
            "surface_area": self.surface_area,
            "initial_height": self.initial_height,
        }


@dataclass
class ShotResult:
    """
    Outcome of a simulated shot.

    Attributes:
        impact_xyz: Final position, rounded to 2 decimals
        flight_time: Time of flight (seconds)
        trace: Position after every tick, for playback
        ticks: Number of integration steps taken
    """
    impact_xyz: tuple[float, float, float]
    flight_time: float
    trace: list[list[float]] = field(default_factory=list)
    ticks: int = 0

    @property
    def impact_point(self) -> Vector3D:
        """Impact position as a vector."""
        return Vector3D.from_tuple(self.impact_xyz)

    @property
    def max_altitude(self) -> float:
        """Highest point reached along the trace."""
        if not self.trace:
            return self.impact_xyz[2]
        return max(point[2] for point in self.trace)

    @property
    def ground_range(self) -> float:
        """Horizontal distance from the gun to the impact point."""
        x, y, _ = self.impact_xyz
        return (x ** 2 + y ** 2) ** 0.5

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form consumed by collaborators."""
        return {
            "impact_xyz": list(self.impact_xyz),
            "flight_time": self.flight_time,
            "trace": [list(point) for point in self.trace],
        }


# =============================================================================
# BALLISTIC ENGINE
# =============================================================================

class BallisticEngine:
    """
    Fixed-timestep 3D ballistic integrator.

    Tick sequence while the shell is above ground:
    1. before-tick hooks (registration order)
    2. affectors (registration order, additive into acceleration)
    3. explicit Euler: v += a dt, p += v dt, t += dt, a = 0
    4. after-tick hooks
    5. snapshot into the trace
    """

    def __init__(
        self,
        affectors: Iterable[AffectorFn] = (),
        before_tick_hooks: Iterable[HookFn] = (),
        after_tick_hooks: Iterable[HookFn] = (),
        config: Optional[SimulationConfig] = None,
        include_default_affectors: bool = True
    ):
        """
        Args:
            affectors: Extra affectors appended after the defaults
            before_tick_hooks: Hooks run before forces are applied
            after_tick_hooks: Hooks run after integration
            config: Engine tunables (defaults to SimulationConfig())
            include_default_affectors: Prepend gravity and air resistance
        """
        self.config = config or SimulationConfig()
        base: list[AffectorFn] = []
        if include_default_affectors:
            base = list(default_affectors(
                gravity=self.config.gravity,
                air_density=self.config.air_density,
                drag_coefficient=self.config.drag_coefficient,
            ))
        self.affectors: list[AffectorFn] = base + list(affectors)
        self.before_tick_hooks: list[HookFn] = list(before_tick_hooks)
        self.after_tick_hooks: list[HookFn] = list(after_tick_hooks)

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        affectors: Iterable[AffectorFn] = (),
        hooks: Iterable[HookFn] = ()
    ) -> BallisticEngine:
        """Engine with configured defaults; ``hooks`` run before each tick."""
        return cls(affectors=affectors, before_tick_hooks=hooks, config=config)

    @property
    def tick(self) -> float:
        """Integration step (seconds)."""
        return self.config.tick_seconds

    def initial_state(self, inputs: BallisticInputs) -> ShotState:
        """
        Build the launch state for a shot.

        Args:
            inputs: Resolved firing parameters

        Returns:
            ShotState at the muzzle with zero acceleration
        """
        height = inputs.initial_height
        if height is None:
            height = self.config.launch_height

        return ShotState(
            time=0.0,
            mass=inputs.shell_weight,
            surface_area=inputs.surface_area,
            position=Vector3D(0.0, 0.0, float(height)),
            velocity=launch_velocity(
                inputs.initial_velocity, inputs.angle_deg, inputs.deflection_deg
            ),
            acceleration=Vector3D.zero(),
        )

    def step(self, state: ShotState) -> None:
        """Advance ``state`` by one tick (hooks, forces, integration, hooks)."""
        dt = self.tick
        for hook in self.before_tick_hooks:
            hook(state, dt)

        for affector in self.affectors:
            affector(state, dt)

        self._integrate(state, dt)

        for hook in self.after_tick_hooks:
            hook(state, dt)

    def simulate(self, inputs: BallisticInputs | Mapping[str, Any]) -> ShotResult:
        """
        Run a shot until it reaches the ground.

        Args:
            inputs: BallisticInputs or a mapping accepted by
                BallisticInputs.from_mapping

        Returns:
            ShotResult with impact point, flight time and trace

        Raises:
            ValueError: If the inputs are incomplete or invalid.
            SimulationDidNotTerminateError: If the tick ceiling is reached.
        """
        if not isinstance(inputs, BallisticInputs):
            inputs = BallisticInputs.from_mapping(inputs)

        for hook in self._all_hooks():
            reset = getattr(hook, "reset", None)
            if callable(reset):
                reset()

        state = self.initial_state(inputs)
        trace: list[list[float]] = []
        ticks = 0

        while state.position.z > 0:
            if ticks >= self.config.max_ticks:
                logger.error(
                    "Shot still airborne after %d ticks at altitude %.2f m",
                    ticks, state.altitude,
                )
                raise SimulationDidNotTerminateError(ticks, state.altitude)

            self.step(state)
            ticks += 1
            trace.append(state.position.to_list())

        result = ShotResult(
            impact_xyz=tuple(round(v, 2) for v in state.position.to_tuple()),
            flight_time=round(state.time, 2),
            trace=trace,
            ticks=ticks,
        )
        logger.debug(
            "Shot landed at %s after %d ticks (%.2f s)",
            result.impact_xyz, ticks, result.flight_time,
        )
        return result

    def _integrate(self, state: ShotState, dt: float) -> None:
        state.velocity.add_inplace(state.acceleration.scale(dt))
        state.position.add_inplace(state.velocity.scale(dt))
        state.time += dt
        state.acceleration = Vector3D.zero()

    def _all_hooks(self) -> Sequence[HookFn]:
        return self.before_tick_hooks + self.after_tick_hooks
