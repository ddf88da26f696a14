"""
Mechanism definitions and the runtime base class.

A mechanism is one equippable gun component (elevation dial, cartridge,
barrel, ...). Its definition is immutable for a match; at match start it is
turned into a runtime seeded from ``(match seed, mechanism identity)``. The
runtime draws its randomized calibration once, at construction, and then
answers every turn the owning player takes with the same constants.

Priority bands (lower runs earlier in the pipeline):
- 0-9    player-input converters (dials, screws)
- 10-19  base-value sources (cartridge)
- 20-39  multiplicative / additive modifiers (barrel, recoil)
- 40-89  non-ballistic mechanics (breech timing)
- 90-99  read-only metadata / assistance providers (sight)
"""

from __future__ import annotations

import hashlib
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from .errors import MissingModifierError, UnknownMechanismKindError
from .pipeline import PipelineContext, PipelineOperation, PipelineTransform
from .physics import Vector3D

if TYPE_CHECKING:
    from .affectors import AffectorFn
    from .hooks import HookFn


# =============================================================================
# MECHANISM KINDS
# =============================================================================

class MechanismKind(Enum):
    """Every mechanism the pipeline knows how to run."""
    ELEVATION_DIAL = "elevation_dial"
    DEFLECTION_SCREW = "deflection_screw"
    CARTRIDGE_85MM = "cartridge_85mm"
    BARREL_85MM = "barrel_85mm"
    RECOIL_SYSTEM = "recoil_system"
    BREECH_QF = "breech_qf"
    OPTICAL_SIGHT = "optical_sight"

    @classmethod
    def parse(cls, value: str | MechanismKind) -> MechanismKind:
        """Coerce a string to a kind."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownMechanismKindError(f"Unknown mechanism kind: {value!r}") from None


@dataclass(frozen=True)
class KindSpec:
    """
    Static facts about a mechanism kind.

    Attributes:
        slot_key: Logical role the mechanism fills
        default_priority: Pipeline rank when the definition gives none
        input_keys: Player-input keys consumed
        output_keys: Pipeline keys produced
    """
    slot_key: str
    default_priority: int
    input_keys: tuple[str, ...] = ()
    output_keys: tuple[str, ...] = ()


KIND_SPECS: dict[MechanismKind, KindSpec] = {
    MechanismKind.ELEVATION_DIAL: KindSpec(
        "elevation", 5, input_keys=("elevation",), output_keys=("angle_deg",)),
    MechanismKind.DEFLECTION_SCREW: KindSpec(
        "deflection", 5, input_keys=("deflection",), output_keys=("deflection_deg",)),
    MechanismKind.CARTRIDGE_85MM: KindSpec(
        "cartridge", 10,
        input_keys=("powder_charges",),
        output_keys=("base_initial_velocity", "shell_weight", "surface_area", "caliber_mm")),
    MechanismKind.BARREL_85MM: KindSpec(
        "barrel", 20, output_keys=("base_initial_velocity", "angle_deg")),
    MechanismKind.RECOIL_SYSTEM: KindSpec(
        "recoil_system", 30, output_keys=("angle_deg",)),
    MechanismKind.BREECH_QF: KindSpec("breech", 50),
    MechanismKind.OPTICAL_SIGHT: KindSpec("sight", 95),
}

PRIORITY_BANDS: tuple[tuple[int, int, str], ...] = (
    (0, 9, "input_converter"),
    (10, 19, "base_source"),
    (20, 39, "modifier"),
    (40, 89, "non_ballistic"),
    (90, 99, "assistance"),
)


def priority_band(priority: int) -> Optional[str]:
    """Name of the conventional band a priority falls in, or None."""
    for low, high, name in PRIORITY_BANDS:
        if low <= priority <= high:
            return name
    return None


# =============================================================================
# DEFINITIONS AND MATCH CONTEXT
# =============================================================================

@dataclass(frozen=True)
class MechanismDefinition:
    """
    Immutable descriptor of one equipped mechanism.

    Attributes:
        mechanism_id: Stable identity, mixed into the runtime's seed
        kind: Which mechanism this is
        slot_key: Logical role (defaults from the kind)
        priority: Pipeline rank (defaults from the kind; a ``priority``
            modifier overrides it)
        upgrade_level: Upgrade tier, >= 0
        modifiers: Kind-specific named configuration values
        name: Display name
    """
    mechanism_id: int | str
    kind: MechanismKind
    slot_key: Optional[str] = None
    priority: Optional[int] = None
    upgrade_level: int = 0
    modifiers: Mapping[str, Any] = field(default_factory=dict, hash=False)
    name: Optional[str] = None

    def __post_init__(self) -> None:
        kind = MechanismKind.parse(self.kind)
        spec = KIND_SPECS[kind]
        modifiers = MappingProxyType(dict(self.modifiers))

        priority = self.priority
        if modifiers.get("priority") is not None:
            priority = modifiers["priority"]
        if priority is None:
            priority = spec.default_priority
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise ValueError(f"priority must be an integer, got {priority!r}")
        if self.upgrade_level < 0:
            raise ValueError(f"upgrade_level must be >= 0, got {self.upgrade_level}")

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "modifiers", modifiers)
        object.__setattr__(self, "priority", priority)
        object.__setattr__(self, "slot_key", self.slot_key or spec.slot_key)
        object.__setattr__(self, "name", self.name or kind.value.replace("_", " ").title())

    @property
    def identity(self) -> str:
        """Stable identity string used for seed derivation."""
        return f"{self.kind.value}:{self.mechanism_id}"

    @property
    def input_keys(self) -> tuple[str, ...]:
        """Player-input keys this mechanism consumes."""
        return KIND_SPECS[self.kind].input_keys

    @property
    def output_keys(self) -> tuple[str, ...]:
        """Pipeline keys this mechanism produces."""
        return KIND_SPECS[self.kind].output_keys

    def to_runtime(
        self,
        match: Optional[MatchContext] = None,
        random_seed: int = 0
    ) -> MechanismRuntime:
        """
        Instantiate the runtime for a match.

        Args:
            match: Match-level context (target distance, wind)
            random_seed: Match seed shared by every mechanism

        Returns:
            Seeded runtime for this mechanism
        """
        from .runtimes import runtime_class_for

        return runtime_class_for(self.kind)(self, match=match, random_seed=random_seed)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MechanismDefinition:
        """
        Build a definition from plain data (e.g. loadout JSON).

        Raises:
            KeyError: If ``id`` or ``kind`` is missing.
            UnknownMechanismKindError: If ``kind`` is not recognized.
        """
        return cls(
            mechanism_id=data["id"],
            kind=MechanismKind.parse(data["kind"]),
            slot_key=data.get("slot_key"),
            priority=data.get("priority"),
            upgrade_level=int(data.get("upgrade_level", 0)),
            modifiers=data.get("modifiers", {}),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class MatchContext:
    """
    Match-level facts runtimes may consult.

    Attributes:
        match_id: Identifier of the match
        target_distance: True distance to the target (meters)
        wind: Wind acceleration per m^2 of cross-section, if any
    """
    match_id: int | str = 0
    target_distance: float = 500.0
    wind: Optional[Vector3D] = None


# =============================================================================
# SEEDING
# =============================================================================

def derive_seed(seed: int, identity: str, *salt: Any) -> int:
    """
    Mix a match seed with a mechanism identity into a PRNG seed.

    The seed is the first 16 hex digits of SHA-256 over
    ``"seed:identity:salt..."``.
    """
    material = ":".join(str(part) for part in (seed, identity, *salt))
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def derive_rng(seed: int, identity: str, *salt: Any) -> random.Random:
    """PRNG seeded from :func:`derive_seed`."""
    return random.Random(derive_seed(seed, identity, *salt))


def upgrade_factor(upgrade_level: int, per_level: float) -> float:
    """``1 - upgrade_level * per_level``, never below zero."""
    return max(0.0, 1.0 - upgrade_level * per_level)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


# =============================================================================
# RUNTIME BASE
# =============================================================================

class MechanismRuntime(ABC):
    """
    Per-match behaviour of one mechanism.

    Subclasses list the modifier keys they depend on in
    ``REQUIRED_MODIFIERS`` and draw their calibration in
    ``initialize_runtime``. Once construction finishes the runtime is
    sealed: attribute assignment raises AttributeError.
    """

    REQUIRED_MODIFIERS: tuple[str, ...] = ()

    def __init__(
        self,
        mechanism: MechanismDefinition,
        match: Optional[MatchContext] = None,
        random_seed: int = 0
    ):
        self.mechanism = mechanism
        self.match = match or MatchContext()
        self.random_seed = int(random_seed)
        self.validate_required_modifiers(self.REQUIRED_MODIFIERS)
        self.initialize_runtime(self.rng())
        self._sealed = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise AttributeError(
                f"{type(self).__name__} is immutable after construction (tried to set {name!r})"
            )
        super().__setattr__(name, value)

    @property
    def name(self) -> str:
        """Runtime class name, used in errors and logs."""
        return type(self).__name__

    @property
    def modifiers(self) -> Mapping[str, Any]:
        """The definition's modifiers."""
        return self.mechanism.modifiers

    def rng(self, *salt: Any) -> random.Random:
        """Deterministic PRNG for this mechanism, optionally salted."""
        return derive_rng(self.random_seed, self.mechanism.identity, *salt)

    def initialize_runtime(self, rng: random.Random) -> None:
        """Draw randomized constants. Called once from ``__init__``."""

    @abstractmethod
    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        """
        Produce this mechanism's transforms for the current context.

        Args:
            context: Values accumulated by earlier pipeline stages

        Returns:
            Zero or more transforms, applied in order
        """

    def validate_required_modifiers(self, required_keys: Iterable[str]) -> None:
        """
        Fail fast if the definition lacks modifiers this runtime needs.

        Raises:
            MissingModifierError: If any required key is absent.
        """
        missing = [key for key in required_keys if key not in self.mechanism.modifiers]
        if missing:
            raise MissingModifierError(self.name, missing)

    def modifier(self, key: str, default: Any = None) -> Any:
        """Modifier value, falling back to ``default`` when absent or None."""
        value = self.mechanism.modifiers.get(key)
        return default if value is None else value

    def transform(
        self,
        key: str,
        value: float,
        operation: PipelineOperation | str = PipelineOperation.SET
    ) -> PipelineTransform:
        """Build a transform."""
        return PipelineTransform(key, value, operation)

    def metadata(self) -> dict[str, Any]:
        """UI rendering data; empty when the mechanism has nothing to show."""
        return {}

    def turn_order_delay(self) -> float:
        """Seconds this mechanism adds to the owner's next turn."""
        return 0.0

    def affectors(self) -> list[AffectorFn]:
        """Extra engine affectors contributed by this mechanism."""
        return []

    def hooks(self) -> list[HookFn]:
        """Extra engine hooks contributed by this mechanism."""
        return []

    def __repr__(self) -> str:
        return (f"{self.name}(mechanism_id={self.mechanism.mechanism_id!r}, "
                f"priority={self.mechanism.priority})")


class AssistanceProvider(ABC):
    """Optional capability: aiming assistance computed from the final context."""

    @abstractmethod
    def assistance_data(self, context: PipelineContext) -> dict[str, Any]:
        """
        Assistance for the player, read from a fully resolved context.

        Args:
            context: Context after every pipeline stage has run

        Returns:
            Named assistance values
        """
