"""Shared fixtures for the artillery test suite."""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from artillery.mechanisms import MatchContext, MechanismDefinition, MechanismKind
from artillery.platforms import (
    create_definitions_from_loadout_data,
    create_equipped_from_loadout_data,
    load_loadout_data,
)


MATCH_SEED = 98765

DIAL_MODIFIERS = {
    "graduations": "standard",
    "degrees_per_click": 1.0,
    "max_elevation": 45,
    "min_elevation": 5,
}

SCREW_MODIFIERS = {
    "degrees_per_turn": 0.5,
    "max_deflection": 8,
    "thread_pitch": "standard",
}

CARTRIDGE_MODIFIERS = {
    "shell_weight_kg": 8.4,
    "charge_velocity_per_unit": 50,
    "base_velocity": 400,
    "caliber_mm": 84.5,
}

BARREL_MODIFIERS = {
    "construction": "steel",
    "length_meters": 2.5,
    "wear_factor": 1.0,
}

RECOIL_MODIFIERS = {
    "recoil_type": "hydropneumatic",
    "recovery_time_base": 1.5,
    "accuracy_penalty": 0.3,
}

BREECH_MODIFIERS = {
    "breech_type": "interrupted_screw",
    "base_loading_time": 3.0,
}

SIGHT_MODIFIERS = {
    "sight_type": "telescopic",
    "magnification": 4.0,
}

DEFAULT_MODIFIERS = {
    MechanismKind.ELEVATION_DIAL: DIAL_MODIFIERS,
    MechanismKind.DEFLECTION_SCREW: SCREW_MODIFIERS,
    MechanismKind.CARTRIDGE_85MM: CARTRIDGE_MODIFIERS,
    MechanismKind.BARREL_85MM: BARREL_MODIFIERS,
    MechanismKind.RECOIL_SYSTEM: RECOIL_MODIFIERS,
    MechanismKind.BREECH_QF: BREECH_MODIFIERS,
    MechanismKind.OPTICAL_SIGHT: SIGHT_MODIFIERS,
}


@pytest.fixture
def make_definition():
    """Factory for mechanism definitions with sensible default modifiers."""
    def _make(kind, mechanism_id=1, modifiers=None, **kwargs):
        kind = MechanismKind.parse(kind)
        if modifiers is None:
            modifiers = DEFAULT_MODIFIERS[kind]
        return MechanismDefinition(
            mechanism_id=mechanism_id, kind=kind, modifiers=modifiers, **kwargs
        )
    return _make


@pytest.fixture
def make_runtime(make_definition):
    """Factory for seeded runtimes."""
    def _make(kind, seed=MATCH_SEED, match=None, **kwargs):
        return make_definition(kind, **kwargs).to_runtime(match=match, random_seed=seed)
    return _make


@pytest.fixture
def match():
    """Match with the default 500 m target."""
    return MatchContext(match_id=1, target_distance=500.0)


@pytest.fixture
def loadout_data():
    """Default QF 18-pounder loadout from the data directory."""
    data_path = Path(__file__).parent.parent / "data" / "qf_18_pounder.json"
    return load_loadout_data(data_path)


@pytest.fixture
def loadout_definitions(loadout_data):
    """Mechanism definitions for the default loadout."""
    return create_definitions_from_loadout_data(loadout_data)


@pytest.fixture
def equipped(loadout_data):
    """Default loadout seeded with the match seed."""
    return create_equipped_from_loadout_data(loadout_data, MATCH_SEED)


@pytest.fixture
def loadout_runtimes(equipped, match):
    """Runtimes for the default loadout."""
    return [item.to_runtime(match) for item in equipped]
