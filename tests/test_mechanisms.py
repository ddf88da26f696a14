"""
Tests for mechanism definitions, seeding and the runtime base class.

Tests cover:
1. Definition defaults, validation and parsing from plain data
2. Priority bands
3. Seed derivation
4. Runtime sealing and modifier validation
"""

import dataclasses

import pytest

from artillery.errors import MissingModifierError, UnknownMechanismKindError
from artillery.mechanisms import (
    KIND_SPECS,
    MechanismDefinition,
    MechanismKind,
    MechanismRuntime,
    clamp,
    derive_rng,
    derive_seed,
    priority_band,
    upgrade_factor,
)
from artillery.pipeline import PipelineOperation


# =============================================================================
# DEFINITIONS
# =============================================================================

class TestMechanismDefinition:
    """Tests for MechanismDefinition."""

    @pytest.mark.parametrize("kind,slot,priority", [
        (MechanismKind.ELEVATION_DIAL, "elevation", 5),
        (MechanismKind.DEFLECTION_SCREW, "deflection", 5),
        (MechanismKind.CARTRIDGE_85MM, "cartridge", 10),
        (MechanismKind.BARREL_85MM, "barrel", 20),
        (MechanismKind.RECOIL_SYSTEM, "recoil_system", 30),
        (MechanismKind.BREECH_QF, "breech", 50),
        (MechanismKind.OPTICAL_SIGHT, "sight", 95),
    ])
    def test_defaults_from_kind(self, make_definition, kind, slot, priority):
        """Slot and priority default from the kind."""
        definition = make_definition(kind)
        assert definition.slot_key == slot
        assert definition.priority == priority

    def test_kind_string_is_parsed(self):
        """A kind string is coerced to the enum."""
        definition = MechanismDefinition(mechanism_id=1, kind="breech_qf")
        assert definition.kind is MechanismKind.BREECH_QF

    def test_unknown_kind(self):
        """Unknown kinds raise UnknownMechanismKindError (a ValueError)."""
        with pytest.raises(UnknownMechanismKindError):
            MechanismDefinition(mechanism_id=1, kind="trebuchet")
        with pytest.raises(ValueError):
            MechanismKind.parse("trebuchet")

    def test_explicit_priority(self, make_definition):
        """An explicit priority overrides the kind default."""
        assert make_definition("barrel_85mm", priority=25).priority == 25

    def test_priority_modifier_overrides(self, make_definition):
        """A ``priority`` modifier overrides everything else."""
        definition = make_definition(
            "breech_qf", priority=60,
            modifiers={"breech_type": "screw", "base_loading_time": 3.0, "priority": 45},
        )
        assert definition.priority == 45

    @pytest.mark.parametrize("priority", [1.5, "10", True])
    def test_priority_must_be_int(self, make_definition, priority):
        """Non-integer priorities are rejected."""
        with pytest.raises(ValueError, match="priority"):
            make_definition("breech_qf", priority=priority)

    def test_negative_upgrade_rejected(self, make_definition):
        """upgrade_level must be >= 0."""
        with pytest.raises(ValueError, match="upgrade_level"):
            make_definition("breech_qf", upgrade_level=-1)

    def test_modifiers_are_read_only(self, make_definition):
        """Modifiers cannot be changed after construction."""
        raw = {"breech_type": "screw", "base_loading_time": 3.0}
        definition = make_definition("breech_qf", modifiers=raw)
        raw["base_loading_time"] = 99.0
        assert definition.modifiers["base_loading_time"] == 3.0
        with pytest.raises(TypeError):
            definition.modifiers["base_loading_time"] = 1.0

    def test_definition_is_frozen(self, make_definition):
        """Definitions are immutable."""
        definition = make_definition("breech_qf")
        with pytest.raises(dataclasses.FrozenInstanceError):
            definition.priority = 1

    def test_definition_is_hashable(self, make_definition):
        """Definitions with modifiers work as set members and dict keys."""
        barrel = make_definition("barrel_85mm", mechanism_id=104)
        same = make_definition("barrel_85mm", mechanism_id=104)
        other = make_definition("barrel_85mm", mechanism_id=105)

        assert hash(barrel) == hash(same)
        assert len({barrel, same, other}) == 2
        assert {barrel: "left"}[same] == "left"

    def test_identity(self, make_definition):
        """Identity combines kind and id."""
        assert make_definition("barrel_85mm", mechanism_id=104).identity == "barrel_85mm:104"

    def test_input_and_output_keys(self, make_definition):
        """Declared keys come from the kind."""
        dial = make_definition("elevation_dial")
        assert dial.input_keys == ("elevation",)
        assert dial.output_keys == ("angle_deg",)

    def test_display_name_default(self, make_definition):
        """Names default to a title-cased kind."""
        assert make_definition("optical_sight").name == "Optical Sight"
        assert make_definition("optical_sight", name="No. 7 Dial Sight").name == "No. 7 Dial Sight"

    def test_from_dict(self):
        """Plain data maps onto a definition."""
        definition = MechanismDefinition.from_dict({
            "id": 42,
            "kind": "recoil_system",
            "upgrade_level": 2,
            "modifiers": {"recoil_type": "soft_recoil", "recovery_time_base": 1.0,
                          "accuracy_penalty": 0.2},
        })
        assert definition.mechanism_id == 42
        assert definition.kind is MechanismKind.RECOIL_SYSTEM
        assert definition.upgrade_level == 2
        assert definition.priority == 30
        assert definition.modifiers["recoil_type"] == "soft_recoil"

    def test_from_dict_requires_id_and_kind(self):
        """id and kind are mandatory."""
        with pytest.raises(KeyError):
            MechanismDefinition.from_dict({"kind": "breech_qf"})
        with pytest.raises(KeyError):
            MechanismDefinition.from_dict({"id": 1})


# =============================================================================
# PRIORITY BANDS
# =============================================================================

class TestPriorityBands:
    """Tests for the priority band convention."""

    @pytest.mark.parametrize("priority,band", [
        (0, "input_converter"),
        (9, "input_converter"),
        (10, "base_source"),
        (19, "base_source"),
        (20, "modifier"),
        (39, "modifier"),
        (40, "non_ballistic"),
        (89, "non_ballistic"),
        (90, "assistance"),
        (99, "assistance"),
        (100, None),
        (-1, None),
    ])
    def test_band_edges(self, priority, band):
        """Band boundaries are inclusive."""
        assert priority_band(priority) == band

    @pytest.mark.parametrize("kind,band", [
        (MechanismKind.ELEVATION_DIAL, "input_converter"),
        (MechanismKind.DEFLECTION_SCREW, "input_converter"),
        (MechanismKind.CARTRIDGE_85MM, "base_source"),
        (MechanismKind.BARREL_85MM, "modifier"),
        (MechanismKind.RECOIL_SYSTEM, "modifier"),
        (MechanismKind.BREECH_QF, "non_ballistic"),
        (MechanismKind.OPTICAL_SIGHT, "assistance"),
    ])
    def test_default_priorities_follow_bands(self, kind, band):
        """Every built-in kind defaults into its conventional band."""
        assert priority_band(KIND_SPECS[kind].default_priority) == band


# =============================================================================
# SEEDING
# =============================================================================

class TestSeeding:
    """Tests for seed derivation."""

    def test_derive_seed_deterministic(self):
        """Same inputs, same seed."""
        assert derive_seed(1, "barrel_85mm:104") == derive_seed(1, "barrel_85mm:104")

    @pytest.mark.parametrize("a,b", [
        ((1, "barrel_85mm:104"), (2, "barrel_85mm:104")),
        ((1, "barrel_85mm:104"), (1, "barrel_85mm:105")),
        ((1, "barrel_85mm:104"), (1, "barrel_85mm:104", "angle", 30)),
    ], ids=["match_seed", "identity", "salt"])
    def test_derive_seed_varies(self, a, b):
        """Every component of the seed material matters."""
        assert derive_seed(*a) != derive_seed(*b)

    def test_derive_rng_streams_repeat(self):
        """Two generators with the same material draw the same values."""
        first = derive_rng(7, "cartridge_85mm:101")
        second = derive_rng(7, "cartridge_85mm:101")
        assert [first.random() for _ in range(5)] == [second.random() for _ in range(5)]

    def test_seed_fits_64_bits(self):
        """Seeds come from 16 hex digits."""
        assert 0 <= derive_seed(98765, "sight:107") < 2 ** 64


class TestHelpers:
    """Tests for small numeric helpers."""

    @pytest.mark.parametrize("level,per_level,expected", [
        (0, 0.1, 1.0),
        (2, 0.1, 0.8),
        (5, 0.2, 0.0),
        (10, 0.2, 0.0),
    ])
    def test_upgrade_factor(self, level, per_level, expected):
        """Upgrade factor shrinks linearly and floors at zero."""
        assert upgrade_factor(level, per_level) == pytest.approx(expected)

    @pytest.mark.parametrize("value,expected", [(-5, 0), (5, 5), (15, 10)])
    def test_clamp(self, value, expected):
        """clamp keeps values in range."""
        assert clamp(value, 0, 10) == expected


# =============================================================================
# RUNTIME BASE
# =============================================================================

class FixedAngleRuntime(MechanismRuntime):
    """Test runtime that sets a constant elevation."""

    REQUIRED_MODIFIERS = ("breech_type",)

    def initialize_runtime(self, rng):
        self.angle = 10.0 + rng.random()

    def resolve(self, context):
        return [self.transform("angle_deg", self.angle, "set")]


class TestMechanismRuntimeBase:
    """Tests for behaviour shared by every runtime."""

    def test_sealed_after_construction(self, make_definition):
        """Attribute assignment after __init__ raises AttributeError."""
        runtime = FixedAngleRuntime(make_definition("breech_qf"), random_seed=1)
        with pytest.raises(AttributeError, match="immutable"):
            runtime.angle = 20.0
        with pytest.raises(AttributeError):
            runtime.new_attribute = 1

    def test_missing_modifier(self, make_definition):
        """Missing required modifiers fail at construction."""
        definition = make_definition("breech_qf", modifiers={"base_loading_time": 3.0})
        with pytest.raises(MissingModifierError) as exc_info:
            FixedAngleRuntime(definition, random_seed=1)
        assert exc_info.value.missing_keys == ["breech_type"]
        assert exc_info.value.mechanism_name == "FixedAngleRuntime"
        assert isinstance(exc_info.value, ValueError)

    def test_same_seed_same_calibration(self, make_definition):
        """Identical seed and identity give identical calibration."""
        a = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        b = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        assert a.angle == b.angle

    def test_rng_salt_changes_stream(self, make_definition):
        """Salted generators differ from the unsalted one."""
        runtime = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        assert runtime.rng().random() != runtime.rng("angle", 30).random()
        assert runtime.rng("angle", 30).random() == runtime.rng("angle", 30).random()

    def test_transform_helper(self, make_definition):
        """transform() coerces string operations."""
        runtime = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        transform = runtime.transform("angle_deg", 2.0, "increment")
        assert transform.operation is PipelineOperation.INCREMENT

    def test_defaults(self, make_definition):
        """Base class contributes nothing beyond transforms."""
        runtime = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        assert runtime.metadata() == {}
        assert runtime.turn_order_delay() == 0.0
        assert runtime.affectors() == []
        assert runtime.hooks() == []
        assert runtime.name == "FixedAngleRuntime"

    def test_modifier_default(self, make_definition):
        """modifier() falls back for absent or None values."""
        definition = make_definition(
            "breech_qf", modifiers={"breech_type": "screw", "extra": None}
        )
        runtime = FixedAngleRuntime(definition, random_seed=5)
        assert runtime.modifier("breech_type") == "screw"
        assert runtime.modifier("extra", 3) == 3
        assert runtime.modifier("absent", 4) == 4

    def test_default_match_context(self, make_definition):
        """Runtimes built without a match get a default one."""
        runtime = FixedAngleRuntime(make_definition("breech_qf"), random_seed=5)
        assert runtime.match.target_distance == 500.0
