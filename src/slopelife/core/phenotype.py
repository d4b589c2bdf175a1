"""
Phenotype model: chromosome -> traits, emergent capabilities, energy.

Continuous traits are pure functions of the genes. Emergent capabilities
are threshold predicates over those traits, and two of them (carnivory and
scavenging) also read a ``PopulationContext`` snapshot, so they shift with
scarcity and carcass density.

The energy multipliers for carnivores, scavengers and flyers are large on
purpose. They make those strategies dominant once they emerge and are all
exposed in ``SimulationConfig.phenotype_config``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from slopelife.core.context import PopulationContext

if TYPE_CHECKING:
    from slopelife.core.config import SimulationConfig

EMERGENCE_FLAGS = ("can_fly", "is_carnivore", "is_scavenging", "can_cautious_pathing")

_EPS = 1e-4


def _clamp01(v: float) -> float:
    return min(max(v, 0.0), 1.0)


def _clamp(v: float, lo: float, hi: float) -> float:
    return min(max(v, lo), hi)


@dataclass
class Phenotype:
    """Per-organism derived state."""

    chromosome: np.ndarray
    params: dict[str, float] = field(repr=False)

    # genes
    mass: float = 0.0
    muscle_mass: float = 0.0
    metabolic_rate: float = 0.0
    aggression: float = 0.0
    risk_aversion: float = 0.0
    upper_slope_heuristic: float = 0.0
    lower_slope_heuristic: float = 0.0
    danger_weight: float = 0.0
    camouflage: float = 0.0

    # derived
    effective_mass: float = 0.0
    power_to_weight: float = 0.0
    speed: float = 0.0
    max_energy: float = 0.0
    baseline_drain: float = 0.0
    move_energy_cost_per_unit: float = 0.0
    boldness: float = 0.0

    # runtime
    current_energy: float = 0.0
    total_distance: float = 0.0

    # emergences (derived, NOT genes)
    can_fly: bool = False
    is_carnivore: bool = False
    is_scavenging: bool = False
    can_cautious_pathing: bool = False

    @classmethod
    def from_chromosome(
        cls,
        chromosome: np.ndarray,
        config: SimulationConfig,
        context: PopulationContext | None = None,
    ) -> Phenotype:
        """Build a phenotype from a copy of ``chromosome``."""
        layout = config.genome_layout
        layout.validate(chromosome)
        genes = layout.clamp(chromosome)
        p = cls(chromosome=genes, params=dict(config.phenotype_config))

        p.mass = float(genes[layout.MASS])
        p.muscle_mass = float(genes[layout.MUSCLE_MASS])
        p.metabolic_rate = float(genes[layout.METABOLIC_RATE])
        p.aggression = float(genes[layout.AGGRESSION])
        p.risk_aversion = float(genes[layout.RISK_AVERSION])
        p.upper_slope_heuristic = float(genes[layout.UPPER_SLOPE_HEURISTIC])
        p.lower_slope_heuristic = float(genes[layout.LOWER_SLOPE_HEURISTIC])
        p.danger_weight = float(genes[layout.DANGER_WEIGHT])
        p.camouflage = float(genes[layout.CAMOUFLAGE])

        p.recompute(context or PopulationContext())
        p.current_energy = p.max_energy * p.params["initial_energy_fraction"]
        return p

    # ------------------------------------------------------------------
    # Derived equations
    # ------------------------------------------------------------------
    def recompute(self, context: PopulationContext) -> None:
        """Recompute derived values and emergences.

        Emergences are evaluated before the baseline drain because the
        drain depends on ``is_carnivore`` and ``can_fly``.
        """
        pc = self.params
        self.effective_mass = _clamp01(self.mass + pc["muscle_mass_weight"] * self.muscle_mass)
        self.power_to_weight = _clamp01(self.muscle_mass / (self.effective_mass + _EPS))
        metabolic_speed = self.metabolic_rate * 1.6
        self.speed = _clamp(
            1.75 * self.power_to_weight + 1.25 * metabolic_speed,
            pc["min_speed"], pc["max_speed"],
        )
        # Capacity grows with the square of mass.
        self.max_energy = pc["base_max_energy"] + pc["mass_energy_capacity"] * self.mass ** 2
        self.move_energy_cost_per_unit = _clamp(
            (0.30 + 0.70 * self.effective_mass) / (0.35 + self.speed + _EPS), 0.1, 3.0,
        )
        self.boldness = _clamp01(1.0 - self.risk_aversion)

        self.evaluate_emergences(context)
        self.baseline_drain = self._baseline_drain()
        self.current_energy = _clamp(self.current_energy, 0.0, self.max_energy)

    def _baseline_drain(self) -> float:
        pc = self.params
        if self.is_carnivore:
            return pc["carnivore_baseline_drain"]
        flying = pc["flying_drain_multiplier"] if self.can_fly else 1.0
        frailty = 0.0
        if self.mass < pc["frailty_mass"]:
            frailty = (pc["frailty_mass"] - self.mass) * pc["frailty_penalty"]
        drain = (
            pc["min_baseline_drain"]
            + pc["metabolic_tax"] * self.metabolic_rate
            + pc["size_tax"] * self.mass
            + frailty
        )
        return drain * flying

    # ------------------------------------------------------------------
    # Emergences
    # ------------------------------------------------------------------
    def effective_aggression(self, context: PopulationContext) -> float:
        """Aggression boosted when resources per organism are scarce."""
        pc = self.params
        threshold = pc["scarcity_threshold"]
        ratio = context.resource_ratio
        if context.organism_count > 0 and threshold > 0 and ratio < threshold:
            boost = ((threshold - ratio) / threshold) * pc["max_aggression_boost"]
            return _clamp01(self.aggression + boost)
        return self.aggression

    def evaluate_emergences(self, context: PopulationContext) -> None:
        pc = self.params

        self.can_fly = (
            self.effective_mass <= pc["fly_max_effective_mass"]
            and self.power_to_weight >= pc["fly_min_power_to_weight"]
            and self.metabolic_rate >= pc["fly_min_metabolic_rate"]
        )

        self.is_carnivore = (
            self.effective_aggression(context) >= pc["carnivore_min_aggression"]
            and self.power_to_weight >= pc["carnivore_min_power_to_weight"]
            and self.metabolic_rate >= pc["carnivore_min_metabolic_rate"]
            and self.risk_aversion <= pc["carnivore_max_risk_aversion"]
        )

        risk, danger, aggr = self.risk_aversion, self.danger_weight, self.aggression
        if context.organism_count > 0 and context.carcass_ratio >= pc["carcass_threshold_ratio"]:
            boost = pc["carcass_boost"]
            risk = _clamp01(risk + boost)
            danger = _clamp01(danger + boost)
            aggr = _clamp01(aggr - boost)
        self.is_scavenging = (
            risk >= pc["scavenger_min_risk_aversion"]
            and danger >= pc["scavenger_min_danger_weight"]
            and aggr <= pc["scavenger_max_aggression"]
        )

        self.can_cautious_pathing = (
            self.risk_aversion >= pc["cautious_min_risk_aversion"]
            and self.danger_weight >= pc["cautious_min_danger_weight"]
            and not self.is_carnivore
            and self.aggression <= pc["cautious_max_aggression"]
        )

    def emergences(self) -> dict[str, bool]:
        return {name: bool(getattr(self, name)) for name in EMERGENCE_FLAGS}

    # ------------------------------------------------------------------
    # Energy
    # ------------------------------------------------------------------
    def metabolic_efficiency(self) -> float:
        pc = self.params
        efficiency = 0.5 + (1.5 - 0.5) * self.metabolic_rate
        if self.is_carnivore:
            efficiency *= pc["carnivore_eat_multiplier"]
        if self.is_scavenging:
            efficiency *= pc["scavenger_eat_multiplier"]
        return efficiency

    def eat(self, nutrition: float) -> float:
        """Gain energy from food. Returns the energy actually gained.

        Negative or NaN nutrition counts as zero; energy never exceeds
        ``max_energy``.
        """
        if nutrition is None or math.isnan(nutrition) or nutrition <= 0.0:
            return 0.0
        before = self.current_energy
        self.current_energy = _clamp(
            before + nutrition * self.metabolic_efficiency(), 0.0, self.max_energy,
        )
        return self.current_energy - before

    def update_vitals(
        self, movement_distance: float, delta_time: float, cost_multiplier: float = 1.0,
    ) -> bool:
        """Pay baseline, movement and aging costs for one tick.

        ``movement_distance`` is the distance covered this tick and
        ``cost_multiplier`` scales its energy price (terrain or flight).

        Returns:
            True if the organism is dead after the update.
        """
        pc = self.params
        dt = max(1e-6, float(delta_time))
        distance = float(movement_distance)
        if math.isnan(distance) or distance < 0.0:
            distance = 0.0
        multiplier = float(cost_multiplier)
        if math.isnan(multiplier) or multiplier < 0.0:
            multiplier = 0.0
        self.total_distance += distance

        movement_speed = distance / dt
        drain_per_sec = self.baseline_drain + self.move_energy_cost_per_unit * movement_speed * multiplier
        aging_per_sec = pc["aging_drain"] + pc["aging_metabolic_drain"] * self.metabolic_rate

        energy = self.current_energy
        if math.isnan(energy):
            energy = 0.0
        energy -= (drain_per_sec + aging_per_sec) * dt
        if energy <= 0.0:
            self.current_energy = 0.0
            return True

        if energy / max(self.max_energy, _EPS) >= pc["regen_energy_threshold"]:
            energy += pc["regen_per_second"] * dt
        self.current_energy = _clamp(energy, 0.0, self.max_energy)
        return self.is_dead

    @property
    def is_dead(self) -> bool:
        return self.current_energy <= 0.0

    @property
    def energy_fraction(self) -> float:
        return self.fitness01()

    def fitness01(self) -> float:
        """Remaining energy fraction in [0, 1]."""
        if self.max_energy <= _EPS:
            return 0.0
        return _clamp01(self.current_energy / self.max_energy)

    def carcass_nutrition(self) -> float:
        """Nutrition of the carcass this organism leaves, always > 0."""
        pc = self.params
        value = self.current_energy * pc["carcass_nutrition_scale"] + pc["carcass_nutrition_base"]
        return max(_EPS, min(pc["carcass_nutrition_cap"], value))

    def snapshot(self) -> dict[str, Any]:
        return {
            "genes": {
                "mass": self.mass,
                "muscle_mass": self.muscle_mass,
                "metabolic_rate": self.metabolic_rate,
                "aggression": self.aggression,
                "risk_aversion": self.risk_aversion,
                "upper_slope_heuristic": self.upper_slope_heuristic,
                "lower_slope_heuristic": self.lower_slope_heuristic,
                "danger_weight": self.danger_weight,
                "camouflage": self.camouflage,
            },
            "effective_mass": self.effective_mass,
            "power_to_weight": self.power_to_weight,
            "speed": self.speed,
            "max_energy": self.max_energy,
            "current_energy": self.current_energy,
            "energy_fraction": self.energy_fraction,
            "baseline_drain": self.baseline_drain,
            "move_energy_cost_per_unit": self.move_energy_cost_per_unit,
            "boldness": self.boldness,
            "emergences": self.emergences(),
        }
