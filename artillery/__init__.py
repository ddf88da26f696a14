"""Artillery shot simulation core: ballistic engine and mechanism pipeline."""

from .affectors import (
    Affector,
    AirResistance,
    Gravity,
    Wind,
    default_affectors,
)

from .ballistics import (
    BallisticEngine,
    BallisticInputs,
    ShotResult,
)

from .config import SimulationConfig

from .errors import (
    ArtilleryError,
    FrozenContextError,
    MissingModifierError,
    PipelineResolutionError,
    SimulationDidNotTerminateError,
    UnknownMechanismKindError,
    UnknownPlatformError,
)

from .hooks import (
    FlightHook,
    ParachuteDeploy,
)

from .mechanisms import (
    AssistanceProvider,
    MatchContext,
    MechanismDefinition,
    MechanismKind,
    MechanismRuntime,
    derive_rng,
    priority_band,
)

from .physics import (
    ShotState,
    Vector3D,
)

from .pipeline import (
    PipelineContext,
    PipelineOperation,
    PipelineTransform,
)

from .platforms import (
    Platform,
    PlatformRegistry,
    SlotRequirement,
    default_registry,
    load_loadout_data,
    create_definitions_from_loadout_data,
    create_equipped_from_loadout_data,
)

from .resolver import (
    MechanismOrderer,
    PipelineResolver,
)

from .turn import (
    EquippedMechanism,
    ShotReport,
    TurnResolution,
    fire,
    resolve_turn,
    simulate_shot,
)

__all__ = [
    # Physics
    "ShotState",
    "Vector3D",
    # Engine
    "BallisticEngine",
    "BallisticInputs",
    "ShotResult",
    "SimulationConfig",
    # Affectors and hooks
    "Affector",
    "AirResistance",
    "Gravity",
    "Wind",
    "default_affectors",
    "FlightHook",
    "ParachuteDeploy",
    # Pipeline
    "PipelineContext",
    "PipelineOperation",
    "PipelineTransform",
    "MechanismOrderer",
    "PipelineResolver",
    # Mechanisms
    "AssistanceProvider",
    "MatchContext",
    "MechanismDefinition",
    "MechanismKind",
    "MechanismRuntime",
    "derive_rng",
    "priority_band",
    # Platforms
    "Platform",
    "PlatformRegistry",
    "SlotRequirement",
    "default_registry",
    "load_loadout_data",
    "create_definitions_from_loadout_data",
    "create_equipped_from_loadout_data",
    # Turn entry points
    "EquippedMechanism",
    "ShotReport",
    "TurnResolution",
    "fire",
    "resolve_turn",
    "simulate_shot",
    # Errors
    "ArtilleryError",
    "FrozenContextError",
    "MissingModifierError",
    "PipelineResolutionError",
    "SimulationDidNotTerminateError",
    "UnknownMechanismKindError",
    "UnknownPlatformError",
]
