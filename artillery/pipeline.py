"""
Transform algebra and the context that flows through the mechanism pipeline.

A PipelineTransform is one edit to a named value:
- set:       overwrite with ``value`` (establishes a base)
- increment: ``(current or 0) + value``
- multiply:  ``current * value``, or 0 when nothing has been set yet

Unlike increment, a multiplier with nothing to act on leaves the value at
zero; it never adopts the multiplier as the value.

A PipelineContext layers accumulated transforms over the raw player input.
Reads prefer transformed values, so a raw input passes straight through until
some mechanism transforms it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import FrozenContextError


class PipelineOperation(Enum):
    """Operations a transform can perform."""
    SET = "set"
    INCREMENT = "increment"
    MULTIPLY = "multiply"


# Defaults used when a resolved context lacks an engine input
BALLISTIC_DEFAULTS: dict[str, float] = {
    "angle_deg": 45.0,
    "initial_velocity": 500.0,
    "shell_weight": 25.0,
    "deflection_deg": 0.0,
    "area_of_effect": 0.0,
    "surface_area": 0.05,
}


# =============================================================================
# PIPELINE TRANSFORM
# =============================================================================

@dataclass(frozen=True)
class PipelineTransform:
    """
    A single algebraic edit to a named pipeline value.

    Attributes:
        key: Name of the value being edited (e.g. "angle_deg")
        value: Operand of the operation
        operation: set, increment or multiply (strings are coerced)
    """
    key: str
    value: float
    operation: PipelineOperation = PipelineOperation.SET

    def __post_init__(self) -> None:
        if not isinstance(self.operation, PipelineOperation):
            try:
                object.__setattr__(self, "operation", PipelineOperation(self.operation))
            except ValueError:
                valid = ", ".join(op.value for op in PipelineOperation)
                raise ValueError(
                    f"Invalid operation: {self.operation!r}. Must be one of {valid}"
                ) from None

        if not isinstance(self.key, str) or not self.key:
            raise ValueError(f"Key must be a non-empty string, got {self.key!r}")

    @property
    def is_multiplicative(self) -> bool:
        """True when the transform needs an existing value to act on."""
        return self.operation is PipelineOperation.MULTIPLY

    @property
    def is_additive(self) -> bool:
        """True when the transform works without an existing value."""
        return self.operation in (PipelineOperation.SET, PipelineOperation.INCREMENT)

    def apply(self, current_value: Optional[float]) -> float:
        """
        Apply this transform to a current value.

        Args:
            current_value: Value before the edit, or None when absent

        Returns:
            The edited value
        """
        if self.operation is PipelineOperation.SET:
            return self.value
        if self.operation is PipelineOperation.INCREMENT:
            return (current_value or 0) + self.value
        if current_value is None:
            return 0
        return current_value * self.value

    def __str__(self) -> str:
        return f"PipelineTransform({self.key}: {self.operation.value} {self.value})"


def set_value(key: str, value: float) -> PipelineTransform:
    """Shorthand for a ``set`` transform."""
    return PipelineTransform(key, value, PipelineOperation.SET)


def increment(key: str, value: float) -> PipelineTransform:
    """Shorthand for an ``increment`` transform."""
    return PipelineTransform(key, value, PipelineOperation.INCREMENT)


def multiply(key: str, value: float) -> PipelineTransform:
    """Shorthand for a ``multiply`` transform."""
    return PipelineTransform(key, value, PipelineOperation.MULTIPLY)


# =============================================================================
# PIPELINE CONTEXT
# =============================================================================

class PipelineContext:
    """
    Accumulator for one turn's resolution.

    ``player_input`` is the raw, read-only input. ``transforms`` holds the
    current value of every key a transform has touched.
    """

    def __init__(self, player_input: Optional[Mapping[str, Any]] = None):
        self._player_input: dict[str, Any] = dict(player_input or {})
        self._transforms: dict[str, Any] = {}
        self._frozen = False

    @property
    def player_input(self) -> Mapping[str, Any]:
        """Raw player input (read-only view)."""
        return MappingProxyType(self._player_input)

    @property
    def transforms(self) -> Mapping[str, Any]:
        """Transformed values (read-only view)."""
        return MappingProxyType(self._transforms)

    @property
    def frozen(self) -> bool:
        """Whether further transforms are rejected."""
        return self._frozen

    def set_or_update(self, transform: PipelineTransform) -> PipelineContext:
        """
        Apply a transform to this context.

        A multiplicative transform on a key no transform has touched yet
        stores 0, even when the player input carries that key.

        Args:
            transform: The transform to apply

        Returns:
            self, for chaining

        Raises:
            TypeError: If ``transform`` is not a PipelineTransform.
            FrozenContextError: If the context has been frozen.
        """
        if not isinstance(transform, PipelineTransform):
            raise TypeError(f"Expected PipelineTransform, got {type(transform).__name__}")
        if self._frozen:
            raise FrozenContextError(
                f"Cannot apply {transform} to a frozen pipeline context"
            )

        current_value = self._transforms.get(transform.key)
        if current_value is None and transform.is_multiplicative:
            self._transforms[transform.key] = 0
            return self

        self._transforms[transform.key] = transform.apply(current_value)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Transformed value if present, else player input, else ``default``."""
        if key in self._transforms:
            return self._transforms[key]
        return self._player_input.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def has(self, key: str) -> bool:
        """Whether the key exists in transforms or player input."""
        return key in self._transforms or key in self._player_input

    def transformed(self, key: str) -> bool:
        """Whether a transform has touched the key."""
        return key in self._transforms

    def freeze(self) -> PipelineContext:
        """Reject any further transforms."""
        self._frozen = True
        return self

    def to_dict(self) -> dict[str, Any]:
        """Player input merged with transforms (transforms win)."""
        merged = dict(self._player_input)
        merged.update(self._transforms)
        return merged

    def to_ballistic_inputs(self) -> dict[str, float]:
        """
        Map the context onto engine inputs, filling defaults.

        ``initial_velocity`` prefers an explicit value and falls back to the
        cartridge's ``base_initial_velocity``.
        """
        def pick(*keys: str) -> Any:
            for key in keys:
                value = self.get(key)
                if value is not None:
                    return value
            return BALLISTIC_DEFAULTS[keys[0]]

        return {
            "angle_deg": pick("angle_deg"),
            "initial_velocity": pick("initial_velocity", "base_initial_velocity"),
            "shell_weight": pick("shell_weight"),
            "deflection_deg": pick("deflection_deg"),
            "area_of_effect": pick("area_of_effect"),
            "surface_area": pick("surface_area"),
        }

    def __repr__(self) -> str:
        return (f"PipelineContext(player_input={self._player_input!r}, "
                f"transforms={sorted(self._transforms)!r})")
