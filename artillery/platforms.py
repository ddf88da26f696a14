"""
Artillery platforms and loadouts.

A platform (e.g. the Ordnance QF 18-pounder) defines which slots a loadout
must fill and which mechanism kinds each slot accepts. Platforms live in an
explicit PlatformRegistry value that callers construct and pass around.

Loadouts can be described as JSON (see data/qf_18_pounder.json) and turned
into mechanism definitions for the pipeline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from .errors import UnknownPlatformError
from .mechanisms import MechanismDefinition, MechanismKind
from .turn import EquippedMechanism


DEFAULT_LOADOUT_PATH = Path(__file__).parent.parent / "data" / "qf_18_pounder.json"


# =============================================================================
# SLOTS AND PLATFORMS
# =============================================================================

@dataclass(frozen=True)
class SlotRequirement:
    """
    Rule for one loadout slot.

    Attributes:
        slot_key: Slot identifier (e.g. "barrel")
        allowed_kinds: Mechanism kinds accepted in the slot
        required: Whether the slot must be filled
        description: Human-readable description
    """
    slot_key: str
    allowed_kinds: tuple[MechanismKind, ...]
    required: bool = True
    description: str = ""

    def allows(self, definition: MechanismDefinition) -> bool:
        """Whether a mechanism may fill this slot."""
        return definition.kind in self.allowed_kinds


@dataclass(frozen=True)
class Platform:
    """
    A gun and the loadout constraints it imposes.

    Attributes:
        key: Unique identifier
        name: Display name
        description: Flavour text
        slot_requirements: Slot rules, in display order
        engine_type: Engine used to fly this gun's shells
        ui_characteristics: Display-only facts
    """
    key: str
    name: str
    description: str
    slot_requirements: tuple[SlotRequirement, ...]
    engine_type: str = "ballistic_3d"
    ui_characteristics: dict[str, Any] = field(default_factory=dict)

    def slot_requirement_for(self, slot_key: str) -> Optional[SlotRequirement]:
        """Requirement for a slot, or None if the platform has no such slot."""
        for requirement in self.slot_requirements:
            if requirement.slot_key == slot_key:
                return requirement
        return None

    @property
    def required_slot_keys(self) -> list[str]:
        return [req.slot_key for req in self.slot_requirements if req.required]

    @property
    def defined_slot_keys(self) -> list[str]:
        return [req.slot_key for req in self.slot_requirements]

    def mechanism_allowed_in_slot(self, slot_key: str, definition: MechanismDefinition) -> bool:
        """Whether ``definition`` may fill ``slot_key`` on this platform."""
        requirement = self.slot_requirement_for(slot_key)
        return requirement is not None and requirement.allows(definition)

    def validate_loadout(
        self,
        platform_key: str,
        mechanisms: Sequence[MechanismDefinition]
    ) -> list[str]:
        """
        Check a loadout against this platform.

        Args:
            platform_key: Platform the loadout was built for
            mechanisms: Mechanisms in the loadout

        Returns:
            Error messages; empty when the loadout is valid
        """
        if platform_key != self.key:
            return [f"Loadout platform_type must be '{self.key}'"]

        errors = []
        by_slot: dict[str, list[MechanismDefinition]] = {}
        for definition in mechanisms:
            by_slot.setdefault(definition.slot_key, []).append(definition)

        for requirement in self.slot_requirements:
            filled = by_slot.get(requirement.slot_key, [])
            if not filled:
                if requirement.required:
                    errors.append(f"Required slot '{requirement.slot_key}' is not filled")
                continue
            for definition in filled:
                if not requirement.allows(definition):
                    errors.append(
                        f"Mechanism {definition.kind.value} is not allowed in slot "
                        f"'{requirement.slot_key}'"
                    )

        extra = [slot for slot in by_slot if slot not in self.defined_slot_keys]
        if extra:
            errors.append(f"Loadout contains undefined slots: {', '.join(extra)}")

        duplicated = [slot for slot, items in by_slot.items() if len(items) > 1]
        if duplicated:
            errors.append(f"Slots filled more than once: {', '.join(duplicated)}")

        return errors


# =============================================================================
# REGISTRY
# =============================================================================

class PlatformRegistry:
    """Lookup of platforms by key."""

    def __init__(self, platforms: Iterable[Platform] = ()):
        self._platforms: dict[str, Platform] = {}
        for platform in platforms:
            self.register(platform)

    def register(self, platform: Platform) -> None:
        """Add or replace a platform."""
        self._platforms[platform.key] = platform

    def get(self, key: str) -> Platform:
        """
        Platform by key.

        Raises:
            UnknownPlatformError: If no platform is registered under ``key``.
        """
        try:
            return self._platforms[str(key)]
        except KeyError:
            raise UnknownPlatformError(str(key)) from None

    def all(self) -> list[Platform]:
        return list(self._platforms.values())

    def keys(self) -> list[str]:
        return list(self._platforms)

    def registered(self, key: str) -> bool:
        return str(key) in self._platforms


QF_18_POUNDER = Platform(
    key="qf_18_pounder",
    name="Ordnance QF 18-pounder",
    description=(
        "British field gun of the early 20th century. Quick-firing breech, "
        "accurate deflection control, and reliable recoil system."
    ),
    slot_requirements=(
        SlotRequirement("elevation", (MechanismKind.ELEVATION_DIAL,),
                        description="Vertical aiming mechanism (dial or quadrant)"),
        SlotRequirement("deflection", (MechanismKind.DEFLECTION_SCREW,),
                        description="Horizontal aiming mechanism (screw or wheel)"),
        SlotRequirement("cartridge", (MechanismKind.CARTRIDGE_85MM,),
                        description="Ammunition type - must be 85mm caliber"),
        SlotRequirement("barrel", (MechanismKind.BARREL_85MM,),
                        description="Gun barrel - must be 85mm caliber"),
        SlotRequirement("breech", (MechanismKind.BREECH_QF,),
                        description="Quick-firing breech mechanism"),
        SlotRequirement("recoil_system", (MechanismKind.RECOIL_SYSTEM,),
                        description="Hydro-pneumatic or spring recoil system"),
        SlotRequirement("sight", (MechanismKind.OPTICAL_SIGHT,),
                        description="Telescopic or iron sights"),
    ),
    ui_characteristics={
        "era": "Edwardian",
        "country": "United Kingdom",
        "role": "Field Artillery",
        "crew_size": 5,
        "max_range_meters": 6525,
        "shell_weight_kg_range": [8.1, 8.5],
        "muzzle_velocity_range": [492, 502],
    },
)


def default_registry() -> PlatformRegistry:
    """A fresh registry holding the built-in platforms."""
    return PlatformRegistry([QF_18_POUNDER])


# =============================================================================
# LOADOUT DATA
# =============================================================================

def load_loadout_data(filepath: str | Path = DEFAULT_LOADOUT_PATH) -> dict:
    """
    Load a loadout description from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(filepath, "r") as f:
        return json.load(f)


def create_definitions_from_loadout_data(loadout_data: dict) -> list[MechanismDefinition]:
    """
    Build mechanism definitions from loadout data.

    Raises:
        KeyError: If the data has no ``mechanisms`` list or an entry lacks
            ``id``/``kind``.
    """
    return [MechanismDefinition.from_dict(entry) for entry in loadout_data["mechanisms"]]


def create_equipped_from_loadout_data(loadout_data: dict, seed: int) -> list[EquippedMechanism]:
    """Definitions from loadout data, all seeded with the match seed."""
    return [
        EquippedMechanism(definition, seed)
        for definition in create_definitions_from_loadout_data(loadout_data)
    ]
