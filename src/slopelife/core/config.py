"""
Master configuration for slopelife.

Every run parameter lives on SimulationConfig; modules read it, never literals.
Out-of-range numeric values are clamped (with a warning) instead of
raising, so slider-style inputs can never crash a run.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any

from slopelife.core.genome import GenomeLayout

logger = logging.getLogger(__name__)

ENV_PREFIX = "SLOPELIFE_"

# Documented valid ranges: field name -> (min, max).
PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    "population_size": (1, 500),
    "elite_count": (0, 500),
    "tournament_size": (1, 10),
    "crossover_rate": (0.0, 1.0),
    "blend_alpha": (0.0, 1.0),
    "mutation_rate": (0.0, 1.0),
    "mutation_step": (0.0, 2.0),
    "generations_to_run": (1, 100_000),
    "evaluation_seconds": (1.0, 300.0),
    "tick_seconds": (0.01, 1.0),
    "terrain_width": (5, 200),
    "terrain_height": (5, 200),
    "cell_size": (0.1, 10.0),
    "max_abs_slope": (0.0, 50.0),
    "resource_count": (1, 500),
    "resource_nutrition": (1.0, 50.0),
    "respawn_delay": (0.0, 600.0),
    "spawn_max_tries": (1, 10_000),
    "emergence_refresh_interval": (0.0, 600.0),
    "metrics_sample_interval": (0.1, 600.0),
    "metrics_max_samples": (1, 10_000),
}

_INT_FIELDS = {
    "population_size", "elite_count", "tournament_size", "generations_to_run",
    "terrain_width", "terrain_height", "resource_count", "spawn_max_tries",
    "metrics_max_samples",
}


@dataclass
class SimulationConfig:
    """
    Every knob of a run: GA operators, world physics, navigation weights, emergence thresholds.

    Numeric fields are clamped into PARAMETER_RANGES on construction.
    ``to_dict()`` and ``from_dict()`` round-trip it; ``diff()`` compares two runs.
    """

    # === Experiment identity ===
    experiment_name: str = "default"
    random_seed: int | None = None

    # === Genetic algorithm ===
    population_size: int = 30
    elite_count: int = 4
    tournament_size: int = 3
    crossover_rate: float = 0.90
    crossover_strategy: str = "uniform"  # 'uniform' or 'blend'
    blend_alpha: float = 0.5
    mutation_rate: float = 0.08
    mutation_step: float = 0.10
    generations_to_run: int = 50

    # === Time ===
    evaluation_seconds: float = 20.0
    tick_seconds: float = 0.1

    # === Terrain ===
    terrain_width: int = 50
    terrain_height: int = 50
    cell_size: float = 1.0
    max_abs_slope: float = 5.0
    terrain_generator: str = "noise"  # 'noise', 'flat', 'ramp'
    terrain_seed: int | None = 12345
    terrain_noise_scale: float = 0.08
    terrain_frequency: float = 1.5

    # === Resources ===
    resource_count: int = 50
    resource_nutrition: float = 10.0
    respawn_delay: float = 8.0
    spawn_max_tries: int = 200
    carcass_persist_generations: int = 0  # 0 = carcasses cleared on reset

    # === Navigation / perceived cost ===
    navigation_config: dict[str, float] = field(default_factory=lambda: {
        "perception_radius": 10.0,
        "search_interval": 0.5,
        "search_jitter": 0.25,
        "repath_interval": 1.0,
        "repath_distance": 1.5,
        "wander_radius": 8.0,
        "reach_tolerance": 0.25,
        "catch_distance": 1.0,
        "movement_speed_scale": 1.0,
        "base_step_cost": 10,
        "uphill_cost_per_slope": 4.0,
        "downhill_discount_per_slope": 1.5,
        "flight_cost_factor": 0.3,
        "max_heuristic_bias": 0.30,
        "caution_radius": 4.0,
        "caution_penalty": 40.0,
        "camouflage_strength": 0.5,
        "uphill_energy_factor": 1.0,
        "downhill_energy_factor": 0.5,
        "flight_energy_multiplier": 0.5,
    })

    # === Phenotype formulas and emergence thresholds ===
    phenotype_config: dict[str, float] = field(default_factory=lambda: {
        "muscle_mass_weight": 0.60,
        "min_speed": 0.1,
        "max_speed": 5.0,
        "base_max_energy": 50.0,
        "mass_energy_capacity": 250.0,
        "initial_energy_fraction": 0.8,
        "carnivore_baseline_drain": 0.05,
        "flying_drain_multiplier": 0.2,
        "min_baseline_drain": 0.3,
        "metabolic_tax": 1.2,
        "size_tax": 0.5,
        "frailty_mass": 0.3,
        "frailty_penalty": 0.8,
        "aging_drain": 0.02,
        "aging_metabolic_drain": 0.025,
        "regen_per_second": 1.0,
        "regen_energy_threshold": 0.85,
        "carnivore_eat_multiplier": 8.0,
        "scavenger_eat_multiplier": 6.0,
        # emergence thresholds
        "fly_max_effective_mass": 0.80,
        "fly_min_power_to_weight": 0.35,
        "fly_min_metabolic_rate": 0.30,
        "carnivore_min_aggression": 0.50,
        "carnivore_min_power_to_weight": 0.30,
        "carnivore_min_metabolic_rate": 0.20,
        "carnivore_max_risk_aversion": 0.85,
        "scarcity_threshold": 0.5,
        "max_aggression_boost": 0.6,
        "carcass_threshold_ratio": 0.02,
        "carcass_boost": 0.4,
        "scavenger_min_risk_aversion": 0.30,
        "scavenger_min_danger_weight": 0.30,
        "scavenger_max_aggression": 0.80,
        "cautious_min_risk_aversion": 0.30,
        "cautious_min_danger_weight": 0.25,
        "cautious_max_aggression": 0.75,
        # carcass conversion
        "carcass_nutrition_scale": 5.0,
        "carcass_nutrition_base": 100.0,
        "carcass_nutrition_cap": 400.0,
    })
    emergence_refresh_interval: float = 5.0  # seconds; 0 = only at spawn

    # === Fitness shaping: flag name -> bonus added to energy fraction ===
    fitness_bonuses: dict[str, float] = field(default_factory=lambda: {
        "can_fly": 0.0,
        "is_carnivore": 0.0,
        "is_scavenging": 0.0,
        "can_cautious_pathing": 0.0,
    })

    # === Metrics sampling ===
    metrics_sample_interval: float = 2.0
    metrics_max_samples: int = 100

    # ------------------------------------------------------------------
    # Derived / cached
    # ------------------------------------------------------------------
    _genome_layout: GenomeLayout | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._clamp_ranges()

    def _clamp_ranges(self) -> None:
        for name, (lo, hi) in PARAMETER_RANGES.items():
            value = getattr(self, name)
            if name == "elite_count":
                hi = self.population_size
            clamped = min(max(value, lo), hi)
            if name in _INT_FIELDS:
                clamped = int(round(clamped))
            if clamped != value:
                logger.warning(
                    "Config %s=%r out of range [%s, %s]; clamped to %r",
                    name, value, lo, hi, clamped,
                )
            setattr(self, name, clamped)

    @property
    def genome_layout(self) -> GenomeLayout:
        """Lazily build and cache the GenomeLayout instance."""
        if self._genome_layout is None:
            self._genome_layout = GenomeLayout()
        return self._genome_layout

    @property
    def ticks_per_generation(self) -> int:
        return max(1, int(round(self.evaluation_seconds / self.tick_seconds)))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (excludes cached objects)."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationConfig:
        """Deserialize from a dict.

        Grouped dict fields are merged over their defaults so a partial
        override such as ``{"navigation_config": {"perception_radius": 4}}``
        keeps every other key.
        """
        kwargs: dict[str, Any] = {}
        for k, v in d.items():
            if k.startswith("_"):
                continue
            if isinstance(v, dict) and k in _GROUPED_FIELDS:
                merged = dict(_GROUPED_FIELDS[k]())
                merged.update(v)
                v = merged
            kwargs[k] = v
        return cls(**kwargs)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> SimulationConfig:
        return cls.from_dict(json.loads(s))

    @classmethod
    def from_env(
        cls, environ: dict[str, str] | None = None, **overrides: Any,
    ) -> SimulationConfig:
        """Build a config from ``SLOPELIFE_<FIELD>`` environment variables.

        Only scalar fields are read; values are coerced to the type of the
        field's default. Explicit keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name.startswith("_") or f.name in _GROUPED_FIELDS:
                continue
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            kwargs[f.name] = _coerce(raw, getattr(defaults, f.name))
        kwargs.update(overrides)
        return cls(**kwargs)

    def diff(self, other: SimulationConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs


def _coerce(raw: str, default: Any) -> Any:
    if raw.strip().lower() in ("", "none", "null"):
        return None
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(float(raw))
    if isinstance(default, float):
        return float(raw)
    if default is None:
        # Optional ints (random_seed, terrain_seed)
        return int(raw)
    return raw


_GROUPED_FIELDS = {
    f.name: f.default_factory
    for f in fields(SimulationConfig)
    if f.name in ("navigation_config", "phenotype_config", "fitness_bonuses")
}
