"""
Physics primitives for the artillery shot simulator.

Implements the value types the ballistic engine integrates:
- 3D vector operations (pure operators plus an in-place family for the
  integrator hot path)
- Shot state with time, mass, cross-section, position, velocity and
  accumulated acceleration
- Spherical decomposition of a muzzle velocity into launch components

Coordinate system:
- X: downrange (zero deflection bearing)
- Y: left of the line of fire (positive deflection)
- Z: up (altitude)

All units are SI (meters, m/s, kg, m^2) unless otherwise specified.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field


# =============================================================================
# PHYSICAL CONSTANTS
# =============================================================================

# Standard gravity (m/s^2)
G_STANDARD = 9.81

# Lunar surface gravity (m/s^2), handy for low-gravity scenarios
G_MOON = 1.62

# Sea-level air density (kg/m^3)
SEA_LEVEL_AIR_DENSITY = 1.225

# Drag coefficient for a sphere / blunt shell
SPHERE_DRAG_COEFFICIENT = 0.47


# =============================================================================
# VECTOR3D CLASS
# =============================================================================

@dataclass
class Vector3D:
    """
    3D vector for positions, velocities and accelerations.

    Arithmetic operators always return new vectors. The ``*_inplace``
    methods mutate the receiver and return it; they exist for the engine's
    per-tick accumulation and should not be used on shared vectors.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3D) -> Vector3D:
        """Vector addition."""
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3D) -> Vector3D:
        """Vector subtraction."""
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3D:
        """Scalar multiplication."""
        return Vector3D(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vector3D:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector3D:
        """Scalar division."""
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vector3D(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector3D:
        """Negation."""
        return Vector3D(-self.x, -self.y, -self.z)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector3D):
            return False
        eps = 1e-10
        return (abs(self.x - other.x) < eps and
                abs(self.y - other.y) < eps and
                abs(self.z - other.z) < eps)

    def dot(self, other: Vector3D) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    @property
    def magnitude(self) -> float:
        """Vector magnitude (length)."""
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    @property
    def is_zero(self) -> bool:
        """True when every component is exactly zero."""
        return self.x == 0 and self.y == 0 and self.z == 0

    def normalized(self) -> Vector3D:
        """Return unit vector in same direction (zero vector stays zero)."""
        if self.is_zero:
            return Vector3D.zero()
        return self / self.magnitude

    def scale(self, scalar: float) -> Vector3D:
        """Alias of scalar multiplication, reads better in force code."""
        return self * scalar

    def distance_to(self, other: Vector3D) -> float:
        """Distance to another point."""
        return (self - other).magnitude

    def copy(self) -> Vector3D:
        """Independent copy of this vector."""
        return Vector3D(self.x, self.y, self.z)

    # -------------------------------------------------------------------------
    # In-place family (integrator hot path only)
    # -------------------------------------------------------------------------

    def add_inplace(self, other: Vector3D) -> Vector3D:
        """Add ``other`` into this vector and return it."""
        self.x += other.x
        self.y += other.y
        self.z += other.z
        return self

    def scale_inplace(self, scalar: float) -> Vector3D:
        """Multiply this vector by ``scalar`` and return it."""
        self.x *= scalar
        self.y *= scalar
        self.z *= scalar
        return self

    def normalize_inplace(self) -> Vector3D:
        """Normalize this vector in place; the zero vector is left untouched."""
        if self.is_zero:
            return self
        mag = self.magnitude
        self.x /= mag
        self.y /= mag
        self.z /= mag
        return self

    def to_tuple(self) -> tuple[float, float, float]:
        """Convert to tuple."""
        return (self.x, self.y, self.z)

    def to_list(self) -> list[float]:
        """Convert to list (plain-data form used in shot results)."""
        return [self.x, self.y, self.z]

    @classmethod
    def from_tuple(cls, t: tuple[float, float, float] | list[float]) -> Vector3D:
        """Create from tuple or list."""
        return cls(t[0], t[1], t[2])

    @classmethod
    def zero(cls) -> Vector3D:
        """Zero vector."""
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def unit_x(cls) -> Vector3D:
        """Unit vector in X direction (downrange)."""
        return cls(1.0, 0.0, 0.0)

    @classmethod
    def unit_z(cls) -> Vector3D:
        """Unit vector in Z direction (up)."""
        return cls(0.0, 0.0, 1.0)

    def __repr__(self) -> str:
        return f"Vector3D({self.x:.6g}, {self.y:.6g}, {self.z:.6g})"


# =============================================================================
# SHOT STATE CLASS
# =============================================================================

@dataclass
class ShotState:
    """
    Kinematic state of one shell in flight.

    One instance exists per simulated shot. Affectors add to
    ``acceleration``; the integrator consumes and resets it every tick.

    Attributes:
        time: Elapsed flight time (seconds)
        mass: Shell mass (kg)
        surface_area: Cross-sectional area (m^2)
        position: Position in world coordinates (meters)
        velocity: Velocity in world coordinates (m/s)
        acceleration: Acceleration accumulated this tick (m/s^2)
    """
    time: float = 0.0
    mass: float = 1.0
    surface_area: float = 0.0
    position: Vector3D = field(default_factory=Vector3D.zero)
    velocity: Vector3D = field(default_factory=Vector3D.zero)
    acceleration: Vector3D = field(default_factory=Vector3D.zero)

    def __post_init__(self) -> None:
        if self.time < 0:
            raise ValueError(f"time must be >= 0, got {self.time}")
        if self.mass <= 0:
            raise ValueError(f"mass must be > 0, got {self.mass}")
        if self.surface_area < 0:
            raise ValueError(f"surface_area must be >= 0, got {self.surface_area}")

    @property
    def altitude(self) -> float:
        """Height above ground (alias of position.z)."""
        return self.position.z

    @altitude.setter
    def altitude(self, value: float) -> None:
        self.position.z = value

    @property
    def speed(self) -> float:
        """Current speed in m/s."""
        return self.velocity.magnitude

    def copy(self) -> ShotState:
        """Create a deep copy of the state."""
        return ShotState(
            time=self.time,
            mass=self.mass,
            surface_area=self.surface_area,
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            acceleration=self.acceleration.copy(),
        )


# =============================================================================
# LAUNCH GEOMETRY
# =============================================================================

def launch_velocity(
    speed_ms: float,
    angle_deg: float,
    deflection_deg: float = 0.0
) -> Vector3D:
    """
    Decompose a muzzle speed into world velocity components.

    vx = v cos(elevation) cos(deflection)
    vy = v cos(elevation) sin(deflection)
    vz = v sin(elevation)

    Args:
        speed_ms: Muzzle speed (m/s)
        angle_deg: Elevation above horizontal (degrees)
        deflection_deg: Horizontal bearing offset (degrees)

    Returns:
        Launch velocity vector (m/s)
    """
    angle = math.radians(angle_deg)
    deflection = math.radians(deflection_deg)
    horizontal = speed_ms * math.cos(angle)
    return Vector3D(
        horizontal * math.cos(deflection),
        horizontal * math.sin(deflection),
        speed_ms * math.sin(angle),
    )


def vacuum_range(speed_ms: float, angle_deg: float, gravity: float = G_STANDARD) -> float:
    """
    Drag-free ground range for a launch from ground level.

    R = v^2 sin(2 theta) / g

    Args:
        speed_ms: Muzzle speed (m/s)
        angle_deg: Elevation (degrees)
        gravity: Gravitational acceleration (m/s^2)

    Returns:
        Range in meters (0 for non-positive gravity)
    """
    if gravity <= 0:
        return 0.0
    return speed_ms ** 2 * math.sin(2 * math.radians(angle_deg)) / gravity
