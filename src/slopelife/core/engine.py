"""
Main simulation engine.

Runs the evolutionary loop as a small phase machine:

    INIT_POPULATION -> SPAWN -> EVALUATING -> EVALUATE_FITNESS
        -> SELECT_VARY_SURVIVE -> DESTROY_SPAWNED -> SPAWN -> ...

Each generation spawns one organism per chromosome into a freshly reset
world, ticks it for ``evaluation_seconds`` of simulated time, scores
every individual by its organism's remaining energy, then breeds the next
population.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from slopelife.core.config import SimulationConfig
from slopelife.core.evolution import GeneticAlgorithm, Individual
from slopelife.core.organism import Organism
from slopelife.core.phenotype import EMERGENCE_FLAGS
from slopelife.core.world import World

if TYPE_CHECKING:
    from slopelife.metrics.collector import MetricsCollector

logger = logging.getLogger(__name__)


class PopulationCollapseError(RuntimeError):
    """Raised when a generation boundary is reached with no individuals."""


class EvolutionPhase(str, Enum):
    INIT_POPULATION = "init_population"
    SPAWN = "spawn"
    EVALUATING = "evaluating"
    EVALUATE_FITNESS = "evaluate_fitness"
    SELECT_VARY_SURVIVE = "select_vary_survive"
    DESTROY_SPAWNED = "destroy_spawned"


# ---------------------------------------------------------------------------
# Name generation
# ---------------------------------------------------------------------------
_NAMES = [
    "Ant", "Bison", "Crow", "Dingo", "Eel", "Finch", "Gecko", "Heron",
    "Ibis", "Jackal", "Kite", "Lynx", "Mole", "Newt", "Otter", "Pika",
    "Quail", "Raven", "Shrew", "Tapir", "Urchin", "Vole", "Wren", "Yak",
]


def _generate_name(generation: int, index: int) -> str:
    return f"{_NAMES[index % len(_NAMES)]}-G{generation}-{index}"


# ---------------------------------------------------------------------------
# Generation snapshot
# ---------------------------------------------------------------------------
@dataclass
class GenerationSnapshot:
    """Per-generation aggregate statistics, taken after fitness evaluation."""
    generation: int
    population_size: int
    survivors: int
    deaths: int
    kills: int
    food_eaten: int
    carcasses_eaten: int
    respawns: int
    ticks: int

    # Fitness
    best_fitness: float
    mean_fitness: float
    min_fitness: float
    best_chromosome: np.ndarray

    # Gene stats over the evaluated population
    gene_means: np.ndarray
    gene_stds: np.ndarray
    gene_mins: np.ndarray
    gene_maxs: np.ndarray

    # Emergences at the end of evaluation (living and dead organisms)
    emergence_counts: dict[str, int]

    events: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------
class SimulationEngine:
    """Evolutionary loop over a single shared world."""

    def __init__(
        self,
        config: SimulationConfig,
        collector: MetricsCollector | None = None,
        world: World | None = None,
    ):
        self.config = config
        self.layout = config.genome_layout
        self.rng = np.random.default_rng(config.random_seed)
        self.ga = GeneticAlgorithm(config, self.rng)
        self.world = world if world is not None else World(config, rng=self.rng)
        self.collector = collector

        # State
        self.phase = EvolutionPhase.INIT_POPULATION
        self.population: list[Individual] = []
        self.history: list[GenerationSnapshot] = []
        self.generation = 0
        self.ticks_done = 0

    # ------------------------------------------------------------------
    # Driving the loop
    # ------------------------------------------------------------------
    def run(self, generations: int | None = None) -> list[GenerationSnapshot]:
        """Run the simulation for the specified number of generations."""
        if generations is None:
            generations = self.config.generations_to_run
        for _ in range(generations):
            self.step_generation()
        return self.history

    def step_generation(self) -> GenerationSnapshot:
        """Advance until the current generation has been scored and replaced."""
        target = len(self.history) + 1
        while len(self.history) < target:
            self.advance()
        return self.history[-1]

    def advance(self) -> EvolutionPhase:
        """Execute the current phase (one tick while evaluating). Returns the new phase."""
        phase = self.phase
        if phase is EvolutionPhase.INIT_POPULATION:
            self.initialize()
        elif phase is EvolutionPhase.SPAWN:
            self.spawn_generation()
        elif phase is EvolutionPhase.EVALUATING:
            self.step_tick()
        elif phase is EvolutionPhase.EVALUATE_FITNESS:
            self.evaluate_fitness()
        elif phase is EvolutionPhase.SELECT_VARY_SURVIVE:
            self.select_vary_survive()
        elif phase is EvolutionPhase.DESTROY_SPAWNED:
            self.destroy_spawned()
        return self.phase

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def initialize(self, population: list[Individual] | None = None) -> None:
        """Create the founding population (random unless one is given)."""
        self.population = population if population is not None else self.ga.init_population()
        self.generation = 0
        self.history = []
        self.phase = EvolutionPhase.SPAWN

    def spawn_generation(self) -> None:
        """Reset the world and spawn one organism per chromosome."""
        if not self.population:
            raise PopulationCollapseError(
                f"No individuals left at the start of generation {self.generation}"
            )
        self.world.begin_generation(self.generation)
        for i, ind in enumerate(self.population):
            ind.fitness = 0.0
            self.world.spawn_organism(
                ind.chromosome, index=i, name=_generate_name(self.generation, i),
            )
        self.world.settle_spawned()
        if self.collector is not None:
            self.collector.begin_generation(self.generation)
        self.ticks_done = 0
        self.phase = EvolutionPhase.EVALUATING

    def step_tick(self) -> bool:
        """Advance the world by one tick. Returns True while evaluation continues.

        The window closes after ``ticks_per_generation`` ticks, or earlier
        once every organism is dead.
        """
        if self.phase is not EvolutionPhase.EVALUATING:
            raise RuntimeError(f"Cannot tick during phase '{self.phase.value}'")
        self.world.tick()
        self.ticks_done += 1
        if self.collector is not None:
            self.collector.maybe_sample(self.world)
        if self.ticks_done >= self.config.ticks_per_generation or self.world.living_count() == 0:
            self.phase = EvolutionPhase.EVALUATE_FITNESS
            return False
        return True

    def evaluate_fitness(self) -> None:
        """Score each individual by its organism's energy plus emergence bonuses."""
        for ind, organism in zip(self.population, self.world.organisms):
            ind.fitness = self.fitness_of(organism)
        snapshot = self._build_snapshot()
        self.history.append(snapshot)
        if self.collector is not None:
            self.collector.collect(snapshot, self.population)
        logger.info("Generation %d | best fitness: %.3f", self.generation, snapshot.best_fitness)
        self.phase = EvolutionPhase.SELECT_VARY_SURVIVE

    def fitness_of(self, organism: Organism) -> float:
        if not organism.is_alive:
            return 0.0
        fitness = organism.phenotype.fitness01()
        bonuses = self.config.fitness_bonuses
        for flag in EMERGENCE_FLAGS:
            if getattr(organism.phenotype, flag):
                fitness += bonuses.get(flag, 0.0)
        return fitness

    def select_vary_survive(self) -> None:
        if not self.population:
            raise PopulationCollapseError(
                f"Population collapsed at the end of generation {self.generation}"
            )
        self.population = self.ga.next_generation(self.population)
        self.phase = EvolutionPhase.DESTROY_SPAWNED

    def destroy_spawned(self) -> None:
        self.world.clear_organisms()
        self.generation += 1
        self.phase = EvolutionPhase.SPAWN

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def _build_snapshot(self) -> GenerationSnapshot:
        pop = self.population
        organisms = self.world.organisms
        stats = self.world.stats
        emergence_counts = {
            flag: sum(1 for o in organisms if getattr(o.phenotype, flag))
            for flag in EMERGENCE_FLAGS
        }

        chromosomes = np.array([ind.chromosome for ind in pop])
        fitness = np.array([ind.fitness for ind in pop])
        best = self.ga.best(pop)

        return GenerationSnapshot(
            generation=self.generation,
            population_size=len(pop),
            survivors=self.world.living_count(),
            deaths=stats["deaths"],
            kills=stats["kills"],
            food_eaten=stats["food_eaten"],
            carcasses_eaten=stats["carcasses_eaten"],
            respawns=stats["respawns"],
            ticks=self.ticks_done,
            best_fitness=float(best.fitness),
            mean_fitness=float(fitness.mean()),
            min_fitness=float(fitness.min()),
            best_chromosome=best.chromosome.copy(),
            gene_means=chromosomes.mean(axis=0),
            gene_stds=chromosomes.std(axis=0),
            gene_mins=chromosomes.min(axis=0),
            gene_maxs=chromosomes.max(axis=0),
            emergence_counts=emergence_counts,
            events={"simulated_seconds": self.world.now},
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def best_individual(self) -> Individual | None:
        if not self.population:
            return None
        return self.ga.best(self.population)

    @property
    def organisms(self) -> list[Organism]:
        return self.world.organisms
