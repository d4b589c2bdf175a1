"""
Per-generation statistics and in-generation population samples.

Extends GenerationSnapshot with derived analytics (gene entropy, survival
rate, emergence fractions) and keeps a rolling window of population
samples taken every ``metrics_sample_interval`` seconds of simulated time.
Both can be read back as per-field time series or as JSON-ready rows.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

import numpy as np

from slopelife.core.config import SimulationConfig
from slopelife.core.engine import GenerationSnapshot
from slopelife.core.evolution import Individual
from slopelife.core.phenotype import EMERGENCE_FLAGS

if TYPE_CHECKING:
    from slopelife.core.world import World


@dataclass
class GenerationMetrics:
    """Snapshot counters plus derived per-generation analytics."""

    generation: int
    population_size: int
    survivors: int
    survival_rate: float
    deaths: int
    kills: int
    food_eaten: int
    carcasses_eaten: int
    respawns: int

    # Fitness
    best_fitness: float
    mean_fitness: float
    min_fitness: float

    # Gene statistics
    gene_means: np.ndarray
    gene_stds: np.ndarray
    gene_mins: np.ndarray
    gene_maxs: np.ndarray
    gene_entropy: float  # mean Shannon entropy over genes, binned per domain

    # Emergences
    emergence_counts: dict[str, int]
    emergence_fractions: dict[str, float] = field(default_factory=dict)


@dataclass
class PopulationSample:
    """Population state at one instant within a generation."""

    generation: int
    time: float
    alive: int
    mean_energy_fraction: float
    gene_means: dict[str, float]
    emergence_counts: dict[str, int]
    resource_count: int
    carcass_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "time": round(self.time, 4),
            "alive": self.alive,
            "mean_energy_fraction": self.mean_energy_fraction,
            "gene_means": self.gene_means,
            "emergence_counts": self.emergence_counts,
            "resource_count": self.resource_count,
            "carcass_count": self.carcass_count,
        }


_METRIC_FIELDS = frozenset(f.name for f in fields(GenerationMetrics))
_SAMPLE_FIELDS = frozenset(f.name for f in fields(PopulationSample))


class MetricsCollector:
    """
    Accumulates GenerationMetrics and PopulationSamples for one run.

    Works alongside the simulation engine: the engine calls
    ``begin_generation`` on spawn, ``maybe_sample`` every tick and
    ``collect`` once fitness has been evaluated.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.layout = config.genome_layout
        self.metrics_history: list[GenerationMetrics] = []
        self.samples: deque[PopulationSample] = deque(maxlen=config.metrics_max_samples)
        self._next_sample_time = 0.0

    # ------------------------------------------------------------------
    # Generation metrics
    # ------------------------------------------------------------------
    def collect(
        self,
        snapshot: GenerationSnapshot,
        population: list[Individual] | None = None,
    ) -> GenerationMetrics:
        """Derive and record metrics for a scored generation."""
        gene_entropy = 0.0
        if population:
            gene_entropy = self._compute_gene_entropy(
                np.array([ind.chromosome for ind in population])
            )

        total = max(snapshot.population_size, 1)
        metrics = GenerationMetrics(
            generation=snapshot.generation,
            population_size=snapshot.population_size,
            survivors=snapshot.survivors,
            survival_rate=snapshot.survivors / total,
            deaths=snapshot.deaths,
            kills=snapshot.kills,
            food_eaten=snapshot.food_eaten,
            carcasses_eaten=snapshot.carcasses_eaten,
            respawns=snapshot.respawns,
            best_fitness=snapshot.best_fitness,
            mean_fitness=snapshot.mean_fitness,
            min_fitness=snapshot.min_fitness,
            gene_means=snapshot.gene_means,
            gene_stds=snapshot.gene_stds,
            gene_mins=snapshot.gene_mins,
            gene_maxs=snapshot.gene_maxs,
            gene_entropy=gene_entropy,
            emergence_counts=dict(snapshot.emergence_counts),
            emergence_fractions={
                name: count / total for name, count in snapshot.emergence_counts.items()
            },
        )
        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field.

        Raises:
            AttributeError: If ``field_name`` is not a GenerationMetrics field.
        """
        if field_name not in _METRIC_FIELDS:
            raise AttributeError(f"GenerationMetrics has no field '{field_name}'")
        return [getattr(m, field_name) for m in self.metrics_history]

    def trait_table(self, generation: int | None = None) -> list[dict[str, Any]]:
        """Per-gene mean/min/max rows for one generation (latest by default)."""
        if not self.metrics_history:
            return []
        if generation is None:
            m = self.metrics_history[-1]
        else:
            matches = [x for x in self.metrics_history if x.generation == generation]
            if not matches:
                raise KeyError(generation)
            m = matches[0]
        return [
            {
                "gene": name,
                "mean": float(m.gene_means[i]),
                "min": float(m.gene_mins[i]),
                "max": float(m.gene_maxs[i]),
            }
            for i, name in enumerate(self.layout.names())
        ]

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Every recorded generation as plain JSON-ready dicts."""
        result = []
        for m in self.metrics_history:
            result.append({
                "generation": m.generation,
                "population_size": m.population_size,
                "survivors": m.survivors,
                "survival_rate": m.survival_rate,
                "deaths": m.deaths,
                "kills": m.kills,
                "food_eaten": m.food_eaten,
                "carcasses_eaten": m.carcasses_eaten,
                "respawns": m.respawns,
                "best_fitness": m.best_fitness,
                "mean_fitness": m.mean_fitness,
                "min_fitness": m.min_fitness,
                "gene_means": m.gene_means.tolist(),
                "gene_stds": m.gene_stds.tolist(),
                "gene_mins": m.gene_mins.tolist(),
                "gene_maxs": m.gene_maxs.tolist(),
                "gene_entropy": m.gene_entropy,
                "emergence_counts": m.emergence_counts,
                "emergence_fractions": m.emergence_fractions,
            })
        return result

    # ------------------------------------------------------------------
    # In-generation sampling
    # ------------------------------------------------------------------
    def begin_generation(self, generation: int) -> None:
        self._next_sample_time = 0.0

    def maybe_sample(self, world: World) -> PopulationSample | None:
        """Take a sample if the sampling interval has elapsed."""
        if world.now < self._next_sample_time:
            return None
        self._next_sample_time = world.now + self.config.metrics_sample_interval
        return self.sample(world)

    def sample(self, world: World) -> PopulationSample:
        living = world.living_organisms()
        names = self.layout.names()
        if living:
            genes = np.array([o.phenotype.chromosome for o in living])
            means = genes.mean(axis=0)
            gene_means = {name: float(means[i]) for i, name in enumerate(names)}
            energy = float(np.mean([o.phenotype.energy_fraction for o in living]))
        else:
            gene_means = {name: 0.0 for name in names}
            energy = 0.0

        sample = PopulationSample(
            generation=world.generation,
            time=world.now,
            alive=len(living),
            mean_energy_fraction=energy,
            gene_means=gene_means,
            emergence_counts={
                flag: sum(1 for o in living if getattr(o.phenotype, flag))
                for flag in EMERGENCE_FLAGS
            },
            resource_count=len(world.resources) - world.resources.carcass_count(),
            carcass_count=world.resources.carcass_count(),
        )
        self.samples.append(sample)
        return sample

    def get_sample_series(self, field_name: str) -> list[Any]:
        if field_name not in _SAMPLE_FIELDS:
            raise AttributeError(f"PopulationSample has no field '{field_name}'")
        return [getattr(s, field_name) for s in self.samples]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _compute_gene_entropy(self, gene_matrix: np.ndarray) -> float:
        """Mean Shannon entropy of gene distributions, 10 bins per domain."""
        if gene_matrix.size == 0:
            return 0.0

        total_entropy = 0.0
        n_genes = gene_matrix.shape[1]
        for i in range(n_genes):
            lo, hi = self.layout.domain(i)
            hist, _ = np.histogram(gene_matrix[:, i], bins=10, range=(lo, hi))
            probs = hist / hist.sum()
            probs = probs[probs > 0]
            total_entropy += -np.sum(probs * np.log2(probs))

        return float(total_entropy / n_genes)
