"""
Generational genetic algorithm over real-valued chromosomes.

Each generation:
  1. Tournament selection (k contestants, with replacement)
  2. Crossover with probability ``crossover_rate`` ('uniform' or 'blend')
  3. Per-gene mutation: uniform delta in [-step, step], clamped to domain
  4. Survivors: the top ``elite_count`` are copied unchanged, the rest of
     the next generation is offspring (elitism-replace)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from slopelife.core.config import SimulationConfig


@dataclass
class Individual:
    """One chromosome and the fitness it earned last evaluation."""

    chromosome: np.ndarray
    fitness: float = 0.0

    def copy(self) -> Individual:
        return Individual(self.chromosome.copy(), self.fitness)


class GeneticAlgorithm:
    """Selection, variation and survivor rules for one population."""

    CROSSOVER_STRATEGIES = ("uniform", "blend")

    def __init__(self, config: SimulationConfig, rng: np.random.Generator | None = None):
        self.config = config
        self.layout = config.genome_layout
        self.rng = rng if rng is not None else np.random.default_rng(config.random_seed)
        if config.crossover_strategy not in self.CROSSOVER_STRATEGIES:
            raise ValueError(
                f"Unknown crossover strategy: '{config.crossover_strategy}'. "
                f"Choose from: {list(self.CROSSOVER_STRATEGIES)}"
            )
        self._crossover = getattr(self, f"_crossover_{config.crossover_strategy}")

    def init_population(self, size: int | None = None) -> list[Individual]:
        """Random chromosomes, each gene uniform within its domain."""
        size = self.config.population_size if size is None else size
        return [Individual(self.layout.random_chromosome(self.rng)) for _ in range(size)]

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    def tournament_select(self, population: list[Individual]) -> Individual:
        if not population:
            raise ValueError("Cannot select from an empty population")
        k = max(1, self.config.tournament_size)
        picks = self.rng.integers(0, len(population), size=k)
        best = population[int(picks[0])]
        for i in picks[1:]:
            contender = population[int(i)]
            if contender.fitness > best.fitness:
                best = contender
        return best

    def crossover(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Child chromosome from two parents; a plain copy of ``a`` when skipped."""
        if self.rng.random() >= self.config.crossover_rate:
            return a.copy()
        return self.layout.clamp(self._crossover(a, b))

    def _crossover_uniform(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        mask = self.rng.random(a.shape[0]) < 0.5
        return np.where(mask, a, b)

    def _crossover_blend(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        # BLX-alpha: sample from the parents' interval widened by alpha on each side.
        alpha = self.config.blend_alpha
        lo = np.minimum(a, b)
        hi = np.maximum(a, b)
        span = hi - lo
        return self.rng.uniform(lo - alpha * span, hi + alpha * span)

    def mutate(self, chromosome: np.ndarray) -> np.ndarray:
        """Return a mutated copy; every gene stays within its domain."""
        child = chromosome.copy()
        step = self.config.mutation_step
        mask = self.rng.random(child.shape[0]) < self.config.mutation_rate
        if mask.any():
            deltas = self.rng.uniform(-step, step, size=child.shape[0])
            child = np.where(mask, child + deltas, child)
        return self.layout.clamp(child)

    # ------------------------------------------------------------------
    # Generation step
    # ------------------------------------------------------------------
    def rank(self, population: list[Individual]) -> list[Individual]:
        """Population sorted by fitness, best first. Ties keep input order."""
        return sorted(population, key=lambda ind: ind.fitness, reverse=True)

    def best(self, population: list[Individual]) -> Individual:
        if not population:
            raise ValueError("Cannot pick the best of an empty population")
        return self.rank(population)[0]

    def next_generation(self, population: list[Individual]) -> list[Individual]:
        """Build the next population with elitism-replace.

        The top ``elite_count`` chromosomes are copied gene-for-gene;
        the remaining slots are filled with mutated offspring. Every
        individual starts the new generation with fitness 0.
        """
        if not population:
            raise ValueError("Cannot breed an empty population")
        size = self.config.population_size
        ranked = self.rank(population)
        elite_count = min(self.config.elite_count, size, len(ranked))

        nxt = [Individual(ind.chromosome.copy()) for ind in ranked[:elite_count]]
        while len(nxt) < size:
            p1 = self.tournament_select(population)
            p2 = self.tournament_select(population)
            child = self.mutate(self.crossover(p1.chromosome, p2.chromosome))
            nxt.append(Individual(child))
        return nxt
