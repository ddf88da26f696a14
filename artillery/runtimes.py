"""
Concrete mechanism runtimes for the QF 18-pounder family.

Each runtime illustrates one pipeline pattern:
- ElevationDialRuntime / DeflectionScrewRuntime: convert discrete player
  input (clicks, turns) into clamped angles
- Cartridge85mmRuntime: base-value source (velocity, weight, cross-section)
- Barrel85mmRuntime: multiplicative velocity modifier plus accuracy noise
- RecoilSystemRuntime: turn delay plus velocity-scaled accuracy noise
- BreechQfRuntime: turn delay only
- OpticalSightRuntime: assistance only, reads the final context

Calibration constants are drawn once per match from the runtime's seeded
PRNG. Upgrades shrink variances and delays.
"""

from __future__ import annotations

import math
import random
from typing import Any

from .hooks import HookFn, ParachuteDeploy
from .mechanisms import (
    AssistanceProvider,
    MechanismKind,
    MechanismRuntime,
    clamp,
    upgrade_factor,
)
from .physics import G_STANDARD, vacuum_range
from .pipeline import PipelineContext, PipelineOperation, PipelineTransform


# Muzzle velocity at which the recoil penalty applies at face value (m/s)
RECOIL_REFERENCE_VELOCITY = 500.0


# =============================================================================
# INPUT CONVERTERS
# =============================================================================

class ElevationDialRuntime(MechanismRuntime):
    """
    Elevation dial: clicks -> elevation angle.

    Modifiers:
        graduations: Dial label ("coarse", "standard", "fine", "vernier")
        degrees_per_click: Nominal angle per click
        min_elevation / max_elevation: Clamp range (degrees)
    """

    REQUIRED_MODIFIERS = ("graduations", "degrees_per_click", "max_elevation", "min_elevation")

    def initialize_runtime(self, rng: random.Random) -> None:
        # Calibration error of +-4%
        self.degrees_per_click_runtime = (
            float(self.modifiers["degrees_per_click"])
            * upgrade_factor(self.mechanism.upgrade_level, 0.05)
            * rng.uniform(0.96, 1.04)
        )

    @property
    def min_elevation(self) -> float:
        return float(self.modifiers["min_elevation"])

    @property
    def max_elevation(self) -> float:
        return float(self.modifiers["max_elevation"])

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        clicks = context.get("elevation") or 0
        angle = clamp(clicks * self.degrees_per_click_runtime,
                      self.min_elevation, self.max_elevation)
        return [self.transform("angle_deg", angle, PipelineOperation.SET)]

    def metadata(self) -> dict[str, Any]:
        if self.degrees_per_click_runtime > 0:
            min_clicks = math.ceil(self.min_elevation / self.degrees_per_click_runtime)
            max_clicks = math.floor(self.max_elevation / self.degrees_per_click_runtime)
        else:
            min_clicks = max_clicks = 0
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "dial",
            "input_key": "elevation",
            "label": "Elevation Dial",
            "min": min_clicks,
            "max": max_clicks,
            "step": 1,
            "default": (min_clicks + max_clicks) // 2,
            "unit": "clicks",
            "conversion": f"{self.degrees_per_click_runtime:.3f}° per click",
            "graduations": self.modifiers["graduations"],
        }


class DeflectionScrewRuntime(MechanismRuntime):
    """
    Traverse screw: turns -> deflection angle (negative turns go right).

    Modifiers:
        degrees_per_turn: Nominal angle per turn
        max_deflection: Symmetric clamp (degrees)
        thread_pitch: Screw label ("fine", "standard", "coarse")
    """

    REQUIRED_MODIFIERS = ("degrees_per_turn", "max_deflection", "thread_pitch")

    def initialize_runtime(self, rng: random.Random) -> None:
        # Calibration error of +-5%
        self.degrees_per_turn_runtime = (
            float(self.modifiers["degrees_per_turn"])
            * upgrade_factor(self.mechanism.upgrade_level, 0.05)
            * rng.uniform(0.95, 1.05)
        )

    @property
    def max_deflection(self) -> float:
        return abs(float(self.modifiers["max_deflection"]))

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        turns = context.get("deflection") or 0
        deflection = clamp(turns * self.degrees_per_turn_runtime,
                           -self.max_deflection, self.max_deflection)
        return [self.transform("deflection_deg", deflection, PipelineOperation.SET)]

    def metadata(self) -> dict[str, Any]:
        max_turns = 0
        if self.degrees_per_turn_runtime > 0:
            max_turns = int(self.max_deflection / self.degrees_per_turn_runtime)
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "slider",
            "input_key": "deflection",
            "label": "Deflection Screw",
            "min": -max_turns,
            "max": max_turns,
            "step": 1,
            "default": 0,
            "unit": "turns",
            "conversion": f"{self.degrees_per_turn_runtime:.3f}° per turn",
        }


# =============================================================================
# BASE-VALUE SOURCE
# =============================================================================

class Cartridge85mmRuntime(MechanismRuntime):
    """
    85mm quick-firing cartridge: powder charges -> base velocity and shell.

    Modifiers (all optional):
        base_velocity: Velocity with no charges (m/s), default 400
        charge_velocity_per_unit: Velocity per charge (m/s), default 50
        shell_weight_kg: Nominal shell mass, default 8.4
        caliber_mm: Shell diameter, default 84.5
        min_charges / max_charges: Charge clamp, default 1..5
        parachute_deploy_altitude / parachute_deploy_time /
        parachute_deploy_distance: Make this an illumination round that
            deploys a parachute when any trigger is met
    """

    def initialize_runtime(self, rng: random.Random) -> None:
        # Manufacturing variance: +-5% velocity, +-2% weight
        self.velocity_variance = rng.uniform(0.95, 1.05)
        self.weight_variance = rng.uniform(0.98, 1.02)

    @property
    def caliber_mm(self) -> float:
        return float(self.modifier("caliber_mm", 84.5))

    @property
    def surface_area(self) -> float:
        """Cross-sectional area from the caliber (m^2)."""
        radius_m = self.caliber_mm / 1000.0 / 2
        return math.pi * radius_m ** 2

    def charges(self, context: PipelineContext) -> int:
        """Player's powder charges, clamped to what the cartridge holds."""
        low = int(self.modifier("min_charges", 1))
        high = int(self.modifier("max_charges", 5))
        requested = context.get("powder_charges")
        if requested is None:
            requested = low
        return int(clamp(int(requested), low, high))

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        base_v = float(self.modifier("base_velocity", 400))
        per_charge = float(self.modifier("charge_velocity_per_unit", 50))
        velocity = (base_v + self.charges(context) * per_charge) * self.velocity_variance
        weight = float(self.modifier("shell_weight_kg", 8.4)) * self.weight_variance

        return [
            self.transform("base_initial_velocity", velocity),
            self.transform("shell_weight", weight),
            self.transform("surface_area", self.surface_area),
            self.transform("caliber_mm", self.caliber_mm),
        ]

    def hooks(self) -> list[HookFn]:
        triggers = {
            "deploy_altitude": self.modifier("parachute_deploy_altitude"),
            "deploy_time": self.modifier("parachute_deploy_time"),
            "deploy_distance": self.modifier("parachute_deploy_distance"),
        }
        if all(value is None for value in triggers.values()):
            return []
        return [ParachuteDeploy(**triggers)]

    def metadata(self) -> dict[str, Any]:
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "slider",
            "input_key": "powder_charges",
            "label": "Powder Charges",
            "min": int(self.modifier("min_charges", 1)),
            "max": int(self.modifier("max_charges", 5)),
            "step": 1,
            "default": 2,
            "unit": "charges",
        }


# =============================================================================
# MODIFIERS
# =============================================================================

BARREL_VELOCITY_MULTIPLIERS = {
    "chrome_lined": 1.05,  # Better rifling
    "lightweight": 0.95,   # Shorter, lighter tube
}

BARREL_ACCURACY_VARIANCE = {
    "chrome_lined": 0.5,
    "lightweight": 1.5,
}


class Barrel85mmRuntime(MechanismRuntime):
    """
    85mm barrel: velocity multiplier and accuracy noise.

    Modifiers:
        construction: "steel", "chrome_lined" or "lightweight"
        length_meters: Tube length (display only)
        wear_factor: Wear scaling of the velocity multiplier
    """

    REQUIRED_MODIFIERS = ("construction", "length_meters", "wear_factor")

    def initialize_runtime(self, rng: random.Random) -> None:
        construction = self.modifiers["construction"]
        wear = float(self.modifier("wear_factor", 1.0))

        self.velocity_multiplier = (
            BARREL_VELOCITY_MULTIPLIERS.get(construction, 1.0) * wear * rng.uniform(0.95, 1.05)
        )
        self.accuracy_variance = (
            BARREL_ACCURACY_VARIANCE.get(construction, 1.0)
            * upgrade_factor(self.mechanism.upgrade_level, 0.1)
            * rng.uniform(0.9, 1.1)
        )

    def accuracy_offset(self, angle_deg: float) -> float:
        """Seeded angle error within +-accuracy_variance for this elevation."""
        rng = self.rng("angle", int(angle_deg))
        return rng.uniform(-1.0, 1.0) * self.accuracy_variance

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        transforms = []
        if context.has("base_initial_velocity"):
            transforms.append(self.transform(
                "base_initial_velocity", self.velocity_multiplier, PipelineOperation.MULTIPLY
            ))

        if context.has("angle_deg"):
            transforms.append(self.transform(
                "angle_deg", self.accuracy_offset(context.get("angle_deg")),
                PipelineOperation.INCREMENT
            ))
        return transforms

    def metadata(self) -> dict[str, Any]:
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "info_display",
            "label": f"Barrel ({self.modifiers['construction']})",
            "info": {
                "length": f"{self.modifiers['length_meters']}m",
                "velocity_mult": f"×{self.velocity_multiplier:.3f}",
                "accuracy": f"±{self.accuracy_variance:.2f}°",
            },
        }


class RecoilSystemRuntime(MechanismRuntime):
    """
    Recoil system: recovery delay and a small elevation disturbance.

    The disturbance bound is ``accuracy_penalty`` scaled by the resolved
    muzzle velocity relative to RECOIL_REFERENCE_VELOCITY.

    Modifiers:
        recoil_type: Label ("basic_spring", "hydropneumatic", "soft_recoil")
        recovery_time_base: Seconds to run out and return
        accuracy_penalty: Angle disturbance at the reference velocity (deg)
    """

    REQUIRED_MODIFIERS = ("recoil_type", "recovery_time_base", "accuracy_penalty")

    def initialize_runtime(self, rng: random.Random) -> None:
        reduction = upgrade_factor(self.mechanism.upgrade_level, 0.15)
        # +-10% spring/buffer variance
        self.recovery_time = float(self.modifiers["recovery_time_base"]) * reduction * rng.uniform(0.9, 1.1)
        self.accuracy_penalty = float(self.modifiers["accuracy_penalty"]) * reduction

    def penalty_bound(self, context: PipelineContext) -> float:
        """Maximum angle disturbance for the context's muzzle velocity."""
        velocity = context.get("initial_velocity")
        if velocity is None:
            velocity = context.get("base_initial_velocity")
        if velocity is None:
            return self.accuracy_penalty
        return self.accuracy_penalty * abs(velocity) / RECOIL_REFERENCE_VELOCITY

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        if not context.has("angle_deg"):
            return []

        rng = self.rng("angle", int(context.get("angle_deg") * 100))
        offset = rng.uniform(-1.0, 1.0) * self.penalty_bound(context)
        return [self.transform("angle_deg", offset, PipelineOperation.INCREMENT)]

    def turn_order_delay(self) -> float:
        return self.recovery_time

    def metadata(self) -> dict[str, Any]:
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "info_display",
            "label": f"Recoil System ({self.modifiers['recoil_type']})",
            "info": {
                "recovery_time": f"{self.recovery_time:.2f}s",
                "accuracy_penalty": f"±{self.accuracy_penalty:.2f}°",
                "type": self.modifiers["recoil_type"],
            },
        }


# =============================================================================
# NON-BALLISTIC MECHANICS
# =============================================================================

class BreechQfRuntime(MechanismRuntime):
    """
    Quick-firing breech: loading time feeds the turn scheduler.

    Modifiers:
        breech_type: Label ("sliding_block", "interrupted_screw", "screw")
        base_loading_time: Seconds to reload
    """

    REQUIRED_MODIFIERS = ("breech_type", "base_loading_time")

    def initialize_runtime(self, rng: random.Random) -> None:
        self.loading_time = (
            float(self.modifiers["base_loading_time"])
            * upgrade_factor(self.mechanism.upgrade_level, 0.2)
            * rng.uniform(0.9, 1.1)
        )

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        return []

    def turn_order_delay(self) -> float:
        return self.loading_time

    def metadata(self) -> dict[str, Any]:
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "info_display",
            "label": f"Breech ({self.modifiers['breech_type']})",
            "info": {
                "loading_time": f"{self.loading_time:.2f}s",
                "type": self.modifiers["breech_type"],
            },
        }


# =============================================================================
# ASSISTANCE
# =============================================================================

SIGHT_ACCURACY = {
    "range_finder": 0.9,
    "telescopic": 0.75,
    "iron": 0.5,
}


class OpticalSightRuntime(MechanismRuntime, AssistanceProvider):
    """
    Optical sight: range estimates with seeded error.

    The error margin shrinks as ``estimate_accuracy`` grows. Runs last so
    its predicted range uses the fully resolved elevation and velocity.

    Modifiers:
        sight_type: "iron", "telescopic" or "range_finder"
        magnification: Optical magnification
    """

    REQUIRED_MODIFIERS = ("sight_type", "magnification")

    def initialize_runtime(self, rng: random.Random) -> None:
        base = SIGHT_ACCURACY.get(self.modifiers["sight_type"], 0.6)
        upgraded = min(base + self.mechanism.upgrade_level * 0.05, 1.0)
        self.estimate_accuracy = upgraded * rng.uniform(0.95, 1.05)
        self.magnification = float(self.modifiers["magnification"])

    def resolve(self, context: PipelineContext) -> list[PipelineTransform]:
        return []

    def error_margin(self, true_distance: float) -> float:
        """Half-width of the estimate error band (meters)."""
        return true_distance * max(0.0, 1.0 - self.estimate_accuracy) * 0.3

    def assistance_data(self, context: PipelineContext) -> dict[str, Any]:
        true_distance = self.match.target_distance
        rng = self.rng("estimate", self.match.match_id)
        estimated = true_distance + rng.uniform(-1.0, 1.0) * self.error_margin(true_distance)

        inputs = context.to_ballistic_inputs()
        predicted = vacuum_range(inputs["initial_velocity"], inputs["angle_deg"], G_STANDARD)

        return {
            "estimated_target_distance": round(estimated, 1),
            "predicted_range": round(predicted, 1),
            "sight_magnification": self.magnification,
            "confidence": self.estimate_accuracy,
        }

    def metadata(self) -> dict[str, Any]:
        return {
            "slot": self.mechanism.slot_key,
            "control_type": "info_display",
            "label": f"Sight ({self.modifiers['sight_type']})",
            "info": {
                "type": self.modifiers["sight_type"],
                "magnification": f"×{self.magnification:g}",
                "accuracy": f"{round(self.estimate_accuracy * 100)}%",
            },
        }


# =============================================================================
# KIND -> RUNTIME
# =============================================================================

RUNTIME_CLASSES: dict[MechanismKind, type[MechanismRuntime]] = {
    MechanismKind.ELEVATION_DIAL: ElevationDialRuntime,
    MechanismKind.DEFLECTION_SCREW: DeflectionScrewRuntime,
    MechanismKind.CARTRIDGE_85MM: Cartridge85mmRuntime,
    MechanismKind.BARREL_85MM: Barrel85mmRuntime,
    MechanismKind.RECOIL_SYSTEM: RecoilSystemRuntime,
    MechanismKind.BREECH_QF: BreechQfRuntime,
    MechanismKind.OPTICAL_SIGHT: OpticalSightRuntime,
}


def runtime_class_for(kind: MechanismKind) -> type[MechanismRuntime]:
    """Runtime class implementing a mechanism kind."""
    return RUNTIME_CLASSES[MechanismKind.parse(kind)]
