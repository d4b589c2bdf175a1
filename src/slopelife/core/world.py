"""
World context: grid, shared graph, organisms, resources and the tick.

One ``World`` holds everything organisms read and write during a
generation. The per-tick aggregates (population context and predator
positions) are taken once at the start of each tick and handed down.
Organisms update sequentially; a later organism in the same tick sees
changes made by an earlier one.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from slopelife.core.config import SimulationConfig
from slopelife.core.context import PopulationContext
from slopelife.core.graph import Graph, graph_for_world
from slopelife.core.grid import GridWorld, Position
from slopelife.core.organism import Organism
from slopelife.core.phenotype import Phenotype
from slopelife.core.resources import ResourceRegistry, ResourceSpawner
from slopelife.core.terrain import generate_grid

logger = logging.getLogger(__name__)

STAT_KEYS = ("kills", "deaths", "food_eaten", "carcasses_eaten", "respawns")


class World:
    """Everything one generation runs inside."""

    def __init__(
        self,
        config: SimulationConfig,
        grid: GridWorld | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.random_seed)
        if grid is None:
            grid = generate_grid(
                config.terrain_generator,
                config.terrain_width,
                config.terrain_height,
                cell_size=config.cell_size,
                max_abs_slope=config.max_abs_slope,
                seed=config.terrain_seed,
                **self._terrain_kwargs(config),
            )
        self.grid = grid
        self.graph: Graph = graph_for_world(grid, int(config.navigation_config["base_step_cost"]))

        self.organisms: list[Organism] = []
        self.resources = ResourceRegistry()
        self.spawner = ResourceSpawner(
            grid,
            self.resources,
            self.rng,
            initial_count=config.resource_count,
            nutrition=config.resource_nutrition,
            respawn_delay=config.respawn_delay,
            max_tries=config.spawn_max_tries,
        )

        self.now = 0.0
        self.generation = 0
        self.tick_count = 0
        self.stats: dict[str, int] = dict.fromkeys(STAT_KEYS, 0)
        self.context = PopulationContext()
        self.predator_positions: list[tuple[str, Position]] = []
        self.record_search_traces = False
        self._next_refresh = config.emergence_refresh_interval
        self._next_organism_id = 0

    @staticmethod
    def _terrain_kwargs(config: SimulationConfig) -> dict[str, Any]:
        if config.terrain_generator == "noise":
            return {
                "noise_scale": config.terrain_noise_scale,
                "frequency": config.terrain_frequency,
            }
        return {}

    # ------------------------------------------------------------------
    # Organisms
    # ------------------------------------------------------------------
    def spawn_organism(
        self, chromosome: np.ndarray, index: int = 0, name: str | None = None,
    ) -> Organism:
        """Place a new organism built from a copy of ``chromosome``."""
        phenotype = Phenotype.from_chromosome(chromosome, self.config, self.context)
        cell = self.grid.random_cell(self.rng)
        self._next_organism_id += 1
        organism = Organism(
            id=f"o{self._next_organism_id:05d}",
            name=name or f"org-{index}",
            phenotype=phenotype,
            position=self.grid.cell_center_world(*cell),
            individual_index=index,
        )
        # Spread first searches across one interval.
        interval = self.config.navigation_config["search_interval"]
        organism.next_search_time = self.now + float(self.rng.uniform(0.0, interval))
        self.organisms.append(organism)
        return organism

    def clear_organisms(self) -> None:
        self.organisms = []
        self.predator_positions = []

    def living_organisms(self) -> list[Organism]:
        return [o for o in self.organisms if o.is_alive]

    def living_count(self) -> int:
        return sum(1 for o in self.organisms if o.is_alive)

    def get_organism(self, organism_id: str) -> Organism:
        """Look up an organism by id.

        Raises:
            KeyError: If no organism has that id.
        """
        for o in self.organisms:
            if o.id == organism_id:
                return o
        raise KeyError(organism_id)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def reset_resources(self) -> None:
        self.spawner.reset(self.generation, self.config.carcass_persist_generations)

    def schedule_respawn(self, nutrition: float) -> None:
        self.spawner.schedule_respawn(nutrition)

    # ------------------------------------------------------------------
    # Generation lifecycle
    # ------------------------------------------------------------------
    def begin_generation(self, generation: int) -> None:
        """Clear organisms, reset the clock and resources for a new generation."""
        self.generation = generation
        self.now = 0.0
        self.tick_count = 0
        self.stats = dict.fromkeys(STAT_KEYS, 0)
        self._next_refresh = self.config.emergence_refresh_interval
        self.clear_organisms()
        self.reset_resources()
        self.context = self.compute_context()

    def compute_context(self) -> PopulationContext:
        carcasses = self.resources.carcass_count()
        return PopulationContext(
            resource_count=len(self.resources) - carcasses,
            carcass_count=carcasses,
            organism_count=self.living_count(),
        )

    def refresh_emergences(self) -> None:
        for o in self.organisms:
            if o.is_alive:
                o.phenotype.recompute(self.context)

    def settle_spawned(self) -> None:
        """Re-evaluate emergences once the whole generation is on the grid.

        Organisms spawn against the empty context left by
        ``begin_generation``, so the scarcity and carcass terms need a
        second pass with the full head count.
        """
        self.context = self.compute_context()
        self.refresh_emergences()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self, dt: float | None = None) -> None:
        """Advance the world by one step."""
        dt = self.config.tick_seconds if dt is None else float(dt)

        self.context = self.compute_context()
        self.predator_positions = [
            (o.id, o.position) for o in self.organisms
            if o.is_alive and o.phenotype.is_carnivore
        ]

        interval = self.config.emergence_refresh_interval
        if interval > 0 and self.now >= self._next_refresh:
            self.refresh_emergences()
            self._next_refresh += interval

        for organism in self.organisms:
            organism.update(self, dt)

        self.now += dt
        self.stats["respawns"] += self.spawner.update(self.now, self.generation)
        self.tick_count += 1

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def summary(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "time": round(self.now, 4),
            "tick": self.tick_count,
            "organisms": len(self.organisms),
            "alive": self.living_count(),
            "resources": len(self.resources),
            "carcasses": self.resources.carcass_count(),
            "pending_respawns": len(self.spawner.queue),
            "context": self.context.to_dict(),
            "stats": dict(self.stats),
        }
