"""
Entry points used by the game's turn orchestration.

- resolve_turn: equipped mechanisms + player input -> ballistic attributes,
  turn delay, UI metadata, assistance data and extra engine modules
- simulate_shot: ballistic attributes + extra modules -> impact and trace
- fire: both of the above, plus match wind
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from .affectors import AffectorFn, Wind
from .ballistics import BallisticEngine, ShotResult
from .config import SimulationConfig
from .hooks import HookFn
from .mechanisms import MatchContext, MechanismDefinition, MechanismRuntime
from .resolver import PipelineResolver


@dataclass(frozen=True)
class EquippedMechanism:
    """A mechanism definition paired with the seed for its runtime."""
    definition: MechanismDefinition
    seed: int

    def to_runtime(self, match: Optional[MatchContext] = None) -> MechanismRuntime:
        return self.definition.to_runtime(match=match, random_seed=self.seed)


@dataclass
class TurnResolution:
    """
    Everything the pipeline produced for one turn.

    Attributes:
        ballistic_attributes: Engine inputs with defaults filled in
        turn_order_delay: Seconds added to the player's next turn
        ui_metadata: Rendering data per mechanism
        assistance_data: Merged aiming assistance
        extra_affectors: Affectors contributed by mechanisms
        extra_hooks: Hooks contributed by mechanisms
    """
    ballistic_attributes: dict[str, float]
    turn_order_delay: float
    ui_metadata: list[dict[str, Any]] = field(default_factory=list)
    assistance_data: dict[str, Any] = field(default_factory=dict)
    extra_affectors: list[AffectorFn] = field(default_factory=list)
    extra_hooks: list[HookFn] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form (engine modules are omitted)."""
        return {
            "ballistic_attributes": dict(self.ballistic_attributes),
            "turn_order_delay": self.turn_order_delay,
            "ui_metadata": list(self.ui_metadata),
            "assistance_data": dict(self.assistance_data),
        }


@dataclass
class ShotReport:
    """A resolved turn together with the simulated shot."""
    resolution: TurnResolution
    result: ShotResult

    def to_dict(self) -> dict[str, Any]:
        data = self.resolution.to_dict()
        data["shot"] = self.result.to_dict()
        return data


def build_runtimes(
    equipped: Iterable[EquippedMechanism],
    match: Optional[MatchContext] = None
) -> list[MechanismRuntime]:
    """Instantiate runtimes for a match, preserving loadout order."""
    return [item.to_runtime(match) for item in equipped]


def resolve_runtimes(
    runtimes: Sequence[MechanismRuntime],
    player_input: Mapping[str, Any]
) -> TurnResolution:
    """
    Resolve a turn with runtimes built earlier in the match.

    The context is resolved once and shared by the ballistic and
    assistance outputs.
    """
    resolver = PipelineResolver(runtimes, player_input)
    context = resolver.resolve()
    return TurnResolution(
        ballistic_attributes=context.to_ballistic_inputs(),
        turn_order_delay=resolver.turn_order_delay(),
        ui_metadata=resolver.ui_metadata(),
        assistance_data=resolver.assistance_data(context),
        extra_affectors=resolver.engine_affectors(),
        extra_hooks=resolver.engine_hooks(),
    )


def resolve_turn(
    equipped: Iterable[EquippedMechanism],
    player_input: Mapping[str, Any],
    match: Optional[MatchContext] = None
) -> TurnResolution:
    """
    Resolve raw player input against an equipped loadout.

    Args:
        equipped: Mechanisms with their per-match seeds
        player_input: Raw input, e.g. {"elevation": 30, "powder_charges": 3}
        match: Match-level context

    Returns:
        TurnResolution for the turn
    """
    return resolve_runtimes(build_runtimes(equipped, match), player_input)


def simulate_shot(
    ballistic_attributes: Mapping[str, Any],
    extra_affectors: Iterable[AffectorFn] = (),
    extra_hooks: Iterable[HookFn] = (),
    config: Optional[SimulationConfig] = None
) -> ShotResult:
    """
    Fly a shot with the default affectors plus any extras.

    Extra hooks run before each tick.
    """
    engine = BallisticEngine(
        affectors=extra_affectors,
        before_tick_hooks=extra_hooks,
        config=config,
    )
    return engine.simulate(ballistic_attributes)


def fire(
    equipped: Iterable[EquippedMechanism],
    player_input: Mapping[str, Any],
    match: Optional[MatchContext] = None,
    config: Optional[SimulationConfig] = None
) -> ShotReport:
    """
    Resolve a turn and fly the resulting shot.

    Match wind, when present, is added after the mechanisms' affectors.
    """
    resolution = resolve_turn(equipped, player_input, match)
    affectors = list(resolution.extra_affectors)
    if match is not None and match.wind is not None and not match.wind.is_zero:
        affectors.append(Wind(match.wind))

    result = simulate_shot(
        resolution.ballistic_attributes,
        extra_affectors=affectors,
        extra_hooks=resolution.extra_hooks,
        config=config,
    )
    return ShotReport(resolution=resolution, result=result)
