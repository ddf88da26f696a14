#!/usr/bin/env python3
"""
Test Suite for Physics Primitives

Tests cover:
1. Vector3D operations (add, subtract, scale, divide, dot, magnitude, normalization)
2. In-place vector family used by the integrator
3. ShotState validation, altitude alias and copying
4. Launch velocity decomposition and vacuum range
"""

import math

import pytest

from artillery.physics import (
    G_MOON,
    G_STANDARD,
    ShotState,
    Vector3D,
    launch_velocity,
    vacuum_range,
)


# =============================================================================
# VECTOR3D TESTS
# =============================================================================

class TestVector3DBasicOperations:
    """Tests for basic Vector3D arithmetic operations."""

    @pytest.mark.parametrize("v1,v2,expected", [
        ((1, 2, 3), (4, 5, 6), (5, 7, 9)),
        ((0, 0, 0), (1, 1, 1), (1, 1, 1)),
        ((-1, -2, -3), (1, 2, 3), (0, 0, 0)),
    ])
    def test_vector_addition(self, v1, v2, expected):
        """Test vector addition."""
        assert Vector3D(*v1) + Vector3D(*v2) == Vector3D(*expected)

    def test_vector_subtraction(self):
        """Test vector subtraction."""
        assert Vector3D(5, 7, 9) - Vector3D(4, 5, 6) == Vector3D(1, 2, 3)

    @pytest.mark.parametrize("scalar,expected", [
        (2, (2, 4, 6)),
        (0, (0, 0, 0)),
        (-1, (-1, -2, -3)),
    ])
    def test_scalar_multiplication(self, scalar, expected):
        """Test scalar multiplication (both left and right)."""
        vec = Vector3D(1, 2, 3)
        assert vec * scalar == Vector3D(*expected)
        assert scalar * vec == Vector3D(*expected)
        assert vec.scale(scalar) == Vector3D(*expected)

    def test_division_by_zero_raises_error(self):
        """Division by zero raises ValueError."""
        with pytest.raises(ValueError, match="divide"):
            Vector3D(1, 2, 3) / 0

    def test_negation(self):
        """Test vector negation."""
        assert -Vector3D(1, -2, 3) == Vector3D(-1, 2, -3)

    def test_operators_return_new_vectors(self):
        """Pure operators leave their operands untouched."""
        a = Vector3D(1, 1, 1)
        b = Vector3D(2, 2, 2)
        _ = a + b
        _ = a * 3
        assert a == Vector3D(1, 1, 1)
        assert b == Vector3D(2, 2, 2)

    def test_equality_uses_tolerance(self):
        """Tiny floating-point noise does not break equality."""
        assert Vector3D(0.1 + 0.2, 0, 0) == Vector3D(0.3, 0, 0)
        assert Vector3D(1, 0, 0) != Vector3D(1.001, 0, 0)
        assert Vector3D(1, 0, 0) != (1, 0, 0)


class TestVector3DMagnitude:
    """Tests for magnitude, dot product and normalization."""

    @pytest.mark.parametrize("v,expected_mag", [
        ((3, 4, 0), 5.0),
        ((1, 0, 0), 1.0),
        ((0, 0, 0), 0.0),
        ((1, 1, 1), math.sqrt(3)),
    ])
    def test_magnitude(self, v, expected_mag):
        """Test vector magnitude."""
        assert Vector3D(*v).magnitude == pytest.approx(expected_mag)

    def test_dot_product(self):
        """Test dot product."""
        assert Vector3D(1, 2, 3).dot(Vector3D(4, 5, 6)) == 32

    @pytest.mark.parametrize("v", [(3, 4, 0), (1, 1, 1), (-5, 2, 7)])
    def test_normalized_has_unit_magnitude(self, v):
        """Normalized vectors have magnitude 1."""
        assert Vector3D(*v).normalized().magnitude == pytest.approx(1.0)

    def test_zero_vector_normalization(self):
        """The zero vector normalizes to the zero vector, not an error."""
        zero = Vector3D.zero()
        assert zero.is_zero
        assert zero.normalized() == Vector3D.zero()
        assert zero.normalized().is_zero

    def test_distance_to(self):
        """Test distance between points."""
        assert Vector3D(0, 0, 0).distance_to(Vector3D(6, 8, 0)) == pytest.approx(10.0)


class TestVector3DInPlace:
    """Tests for the in-place family."""

    def test_add_inplace_mutates_and_returns_self(self):
        """add_inplace mutates the receiver and returns it."""
        vec = Vector3D(1, 2, 3)
        result = vec.add_inplace(Vector3D(1, 1, 1))
        assert result is vec
        assert vec == Vector3D(2, 3, 4)

    def test_scale_inplace(self):
        """scale_inplace multiplies each component."""
        vec = Vector3D(1, -2, 3)
        vec.scale_inplace(2)
        assert vec == Vector3D(2, -4, 6)

    def test_normalize_inplace(self):
        """normalize_inplace gives a unit vector."""
        vec = Vector3D(0, 3, 4)
        vec.normalize_inplace()
        assert vec == Vector3D(0, 0.6, 0.8)

    def test_normalize_inplace_zero_is_noop(self):
        """The zero vector is left untouched."""
        vec = Vector3D.zero()
        vec.normalize_inplace()
        assert vec.is_zero

    def test_copy_is_independent(self):
        """Copies do not share state."""
        vec = Vector3D(1, 2, 3)
        clone = vec.copy()
        clone.add_inplace(Vector3D(1, 1, 1))
        assert vec == Vector3D(1, 2, 3)


class TestVector3DConversions:
    """Tests for tuple/list conversions and named constructors."""

    def test_round_trip_tuple(self):
        """from_tuple(to_tuple()) reproduces the vector."""
        vec = Vector3D(1.5, -2.5, 3.0)
        assert Vector3D.from_tuple(vec.to_tuple()) == vec
        assert vec.to_list() == [1.5, -2.5, 3.0]

    def test_named_constructors(self):
        """Unit vectors point where their names say."""
        assert Vector3D.unit_x() == Vector3D(1, 0, 0)
        assert Vector3D.unit_z() == Vector3D(0, 0, 1)


# =============================================================================
# SHOT STATE TESTS
# =============================================================================

class TestShotState:
    """Tests for ShotState."""

    def test_defaults(self):
        """A fresh state sits at the origin with unit mass."""
        state = ShotState()
        assert state.time == 0.0
        assert state.mass == 1.0
        assert state.surface_area == 0.0
        assert state.position.is_zero
        assert state.velocity.is_zero
        assert state.acceleration.is_zero

    def test_default_vectors_are_not_shared(self):
        """Each state gets its own vectors."""
        a = ShotState()
        b = ShotState()
        a.position.add_inplace(Vector3D(1, 0, 0))
        assert b.position.is_zero

    def test_altitude_aliases_position_z(self):
        """altitude reads and writes position.z."""
        state = ShotState(position=Vector3D(10, 20, 30))
        assert state.altitude == 30
        state.altitude = 5.0
        assert state.position.z == 5.0

    def test_speed(self):
        """speed is the velocity magnitude."""
        state = ShotState(velocity=Vector3D(3, 0, 4))
        assert state.speed == pytest.approx(5.0)

    @pytest.mark.parametrize("kwargs", [
        {"time": -0.1},
        {"mass": 0.0},
        {"mass": -1.0},
        {"surface_area": -0.01},
    ], ids=["negative_time", "zero_mass", "negative_mass", "negative_area"])
    def test_invalid_state_rejected(self, kwargs):
        """Invalid physical quantities raise ValueError."""
        with pytest.raises(ValueError):
            ShotState(**kwargs)

    def test_copy_is_deep(self):
        """Copying does not share vectors."""
        state = ShotState(position=Vector3D(1, 2, 3), velocity=Vector3D(4, 5, 6))
        clone = state.copy()
        clone.position.z = 100
        clone.velocity.add_inplace(Vector3D(1, 1, 1))
        assert state.position == Vector3D(1, 2, 3)
        assert state.velocity == Vector3D(4, 5, 6)


# =============================================================================
# LAUNCH GEOMETRY TESTS
# =============================================================================

class TestLaunchGeometry:
    """Tests for launch_velocity and vacuum_range."""

    def test_flat_shot_goes_downrange(self):
        """Zero elevation and deflection: all speed along +X."""
        assert launch_velocity(100, 0, 0) == Vector3D(100, 0, 0)

    def test_vertical_shot(self):
        """90 degrees elevation: all speed along +Z."""
        v = launch_velocity(100, 90, 0)
        assert v.x == pytest.approx(0, abs=1e-9)
        assert v.z == pytest.approx(100)

    def test_positive_deflection_goes_left(self):
        """Positive deflection gives positive Y."""
        v = launch_velocity(100, 0, 90)
        assert v.x == pytest.approx(0, abs=1e-9)
        assert v.y == pytest.approx(100)

    @pytest.mark.parametrize("speed,angle,deflection", [
        (500, 30, 2),
        (250, 45, -4),
        (100, 10, 0),
    ])
    def test_decomposition_preserves_speed(self, speed, angle, deflection):
        """Components always recombine to the muzzle speed."""
        assert launch_velocity(speed, angle, deflection).magnitude == pytest.approx(speed)

    def test_vacuum_range_at_45_degrees(self):
        """R = v^2 / g at 45 degrees."""
        assert vacuum_range(100, 45) == pytest.approx(100 ** 2 / G_STANDARD)

    def test_vacuum_range_lower_gravity_flies_further(self):
        """Moon gravity gives a longer range."""
        assert vacuum_range(100, 45, G_MOON) > vacuum_range(100, 45, G_STANDARD)

    def test_vacuum_range_non_positive_gravity(self):
        """No gravity means no meaningful range."""
        assert vacuum_range(100, 45, 0) == 0.0
