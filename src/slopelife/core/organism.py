"""
Organism agent: target acquisition, path following, feeding, death.

State machine, ticked once per simulation step:

    SEARCHING --target found, path planned--> EN_ROUTE
    EN_ROUTE  --final node reached-----------> ARRIVED --consume--> SEARCHING
    (no target) ------------------------------> WANDERING (one-node path)
    energy 0 ---------------------------------> DEAD (carcass left behind)

Target searches are throttled by a per-organism timer with jitter so the
population does not re-search on the same tick.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from slopelife.core import astar
from slopelife.core.astar import AStarResult, SearchTrace
from slopelife.core.graph import GraphNode, node_for_position, node_position
from slopelife.core.grid import Position
from slopelife.core.navigation import (
    PerceivedCostModel,
    build_caution_field,
    movement_energy_multiplier,
)
from slopelife.core.phenotype import Phenotype
from slopelife.core.resources import Resource

if TYPE_CHECKING:
    from slopelife.core.world import World

logger = logging.getLogger(__name__)


class OrganismState(str, Enum):
    SEARCHING = "searching"
    EN_ROUTE = "en_route"
    ARRIVED = "arrived"
    WANDERING = "wandering"
    DEAD = "dead"


Target = Union[Resource, "Organism"]


class Organism:
    """A living agent carrying one phenotype for one generation."""

    def __init__(
        self,
        id: str,
        name: str,
        phenotype: Phenotype,
        position: Position,
        individual_index: int = 0,
    ):
        self.id = id
        self.name = name
        self.phenotype = phenotype
        self.position = position
        self.individual_index = individual_index

        self.state = OrganismState.SEARCHING
        self.target: Target | None = None
        self.path: list[GraphNode] = []
        self.path_points: list[Position] = []
        self.path_index = 0

        self.next_search_time = 0.0
        self.last_plan_time = -math.inf
        self.last_plan_target_pos: Position | None = None
        self.last_result: AStarResult | None = None
        self.last_search_trace: SearchTrace | None = None

        self.carcass: Resource | None = None
        self.death_cause: str | None = None

        # Per-generation tallies
        self.kills = 0
        self.food_eaten = 0
        self.carcasses_eaten = 0
        self.searches = 0
        self.plans = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def is_alive(self) -> bool:
        return self.state is not OrganismState.DEAD

    @property
    def has_become_carcass(self) -> bool:
        return self.carcass is not None

    @property
    def is_carnivore(self) -> bool:
        return self.phenotype.is_carnivore

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def update(self, world: World, dt: float) -> None:
        """Advance this organism by one tick of ``dt`` seconds."""
        if not self.is_alive:
            return

        self._drop_lost_target(world)

        if self.target is None and world.now >= self.next_search_time:
            self._schedule_next_search(world)
            self._acquire_target(world)
        elif self._needs_repath(world):
            self._plan_to(world, self.target.position)

        if self.target is None and not self._has_path():
            self._wander(world)

        moved = self._follow_path(world, dt)

        if not self._has_path():
            if self.target is not None:
                self.state = OrganismState.ARRIVED
                self._arrive(world)
            elif self.state is OrganismState.WANDERING:
                self.path, self.path_points, self.path_index = [], [], 0

        multiplier = movement_energy_multiplier(
            world.grid, world.config.navigation_config, self.phenotype, self.position,
        )
        if self.phenotype.update_vitals(moved, dt, multiplier):
            self.die(world, cause="starvation")

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------
    def _schedule_next_search(self, world: World) -> None:
        nav = world.config.navigation_config
        jitter = float(world.rng.uniform(0.0, nav["search_jitter"])) if nav["search_jitter"] > 0 else 0.0
        self.next_search_time = world.now + nav["search_interval"] + jitter

    def _target_is_valid(self, world: World) -> bool:
        target = self.target
        if target is None:
            return False
        if isinstance(target, Organism):
            return target.is_alive
        return not target.consumed and target in world.resources

    def _drop_lost_target(self, world: World) -> None:
        if self.target is not None and not self._target_is_valid(world):
            self._clear_target()

    def _clear_target(self) -> None:
        self.target = None
        self.last_plan_target_pos = None
        self.path, self.path_points, self.path_index = [], [], 0
        self.state = OrganismState.SEARCHING

    def find_prey(self, world: World) -> Organism | None:
        """Closest living non-carnivore within perception radius.

        A prey's camouflage shrinks the radius at which it is noticed.
        """
        nav = world.config.navigation_config
        radius = nav["perception_radius"]
        best: Organism | None = None
        best_dist = math.inf
        for other in world.organisms:
            if other is self or not other.is_alive or other.is_carnivore:
                continue
            detect = radius * (1.0 - nav["camouflage_strength"] * other.phenotype.camouflage)
            d = self.position.distance_to(other.position)
            if d < detect and d < best_dist:
                best, best_dist = other, d
        return best

    def find_food(self, world: World) -> Resource | None:
        """Closest resource within perception radius; scavengers try carcasses first."""
        radius = world.config.navigation_config["perception_radius"]
        if self.phenotype.is_scavenging:
            carcass = world.resources.nearest(self.position, radius, lambda r: r.is_carcass)
            if carcass is not None:
                return carcass
        return world.resources.nearest(self.position, radius)

    def _acquire_target(self, world: World) -> None:
        self.searches += 1
        target: Target | None = None
        if self.phenotype.is_carnivore:
            target = self.find_prey(world)
        if target is None:
            target = self.find_food(world)
        if target is None:
            return
        self.target = target
        self._plan_to(world, target.position)

    def _needs_repath(self, world: World) -> bool:
        if self.target is None or self.state is not OrganismState.EN_ROUTE:
            return False
        if self.last_plan_target_pos is None:
            return True
        nav = world.config.navigation_config
        elapsed = world.now - self.last_plan_time
        moved = self.target.position.distance_to(self.last_plan_target_pos)
        return elapsed >= nav["repath_interval"] and moved > nav["repath_distance"]

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _plan_to(self, world: World, goal_pos: Position) -> bool:
        nav = world.config.navigation_config
        start = node_for_position(world.graph, world.grid, self.position)
        goal = node_for_position(world.graph, world.grid, goal_pos)

        caution: dict = {}
        if self.phenotype.can_cautious_pathing:
            predators = [p for oid, p in world.predator_positions if oid != self.id]
            caution = build_caution_field(
                world.grid, predators, nav["caution_radius"],
                nav["caution_penalty"], self.phenotype.danger_weight,
            )

        model = PerceivedCostModel(world.grid, nav, self.phenotype, goal, caution)
        trace = SearchTrace() if world.record_search_traces else None
        result = astar.solve(start, goal, model.heuristic, model.step_cost, trace)
        self.plans += 1
        self.last_result = result
        self.last_search_trace = trace

        if not result.found:
            self._clear_target()
            self._wander(world)
            return False

        self.path = result.path
        self.path_points = [node_position(world.grid, n) for n in result.path]
        self.path_index = 0
        self.last_plan_time = world.now
        self.last_plan_target_pos = goal_pos
        self.state = OrganismState.EN_ROUTE
        return True

    def _wander(self, world: World) -> None:
        """Pick one random reachable point as a one-node path."""
        radius = world.config.navigation_config["wander_radius"]
        angle = world.rng.uniform(0.0, 2.0 * math.pi)
        r = radius * math.sqrt(world.rng.random())
        point = world.grid.clamp_position(
            Position(self.position.x + r * math.cos(angle), self.position.y + r * math.sin(angle))
        )
        self.path = [node_for_position(world.graph, world.grid, point)]
        self.path_points = [point]
        self.path_index = 0
        self.state = OrganismState.WANDERING

    def _has_path(self) -> bool:
        return self.path_index < len(self.path_points)

    def _follow_path(self, world: World, dt: float) -> float:
        """Move along the path. Returns the distance covered this tick."""
        nav = world.config.navigation_config
        budget = self.phenotype.speed * nav["movement_speed_scale"] * dt
        tolerance = nav["reach_tolerance"] * world.grid.cell_size
        moved = 0.0
        while budget > 1e-12 and self._has_path():
            point = self.path_points[self.path_index]
            new_pos = self.position.move_towards(point, budget)
            step = self.position.distance_to(new_pos)
            moved += step
            budget -= step
            self.position = new_pos
            if self.position.distance_to(point) <= tolerance:
                self.path_index += 1
            else:
                break
        # Skip waypoints already within tolerance even when no budget is left.
        while self._has_path() and self.position.distance_to(self.path_points[self.path_index]) <= tolerance:
            self.path_index += 1
        return moved

    # ------------------------------------------------------------------
    # Feeding / hunting
    # ------------------------------------------------------------------
    def _arrive(self, world: World) -> None:
        target = self.target
        catch = world.config.navigation_config["catch_distance"] * world.grid.cell_size

        if isinstance(target, Organism):
            if self.position.distance_to(target.position) > catch:
                # Prey moved off the planned cell; plan again next tick.
                self.last_plan_time = -math.inf
                self._plan_to(world, target.position)
                return
            if self.phenotype.is_carnivore:
                target.die(world, cause="predation", killer=self)
                self.kills += 1
                world.stats["kills"] += 1
            self._clear_target()
            return

        if target is None or target.consumed or target not in world.resources:
            self._clear_target()
            return

        nutrition = target.consume()
        world.resources.remove(target)
        self.phenotype.eat(nutrition)
        if target.is_carcass:
            self.carcasses_eaten += 1
            world.stats["carcasses_eaten"] += 1
        else:
            self.food_eaten += 1
            world.stats["food_eaten"] += 1
            world.schedule_respawn(nutrition)
        self._clear_target()

    # ------------------------------------------------------------------
    # Death
    # ------------------------------------------------------------------
    def die(self, world: World, cause: str = "starvation", killer: Organism | None = None) -> None:
        """Stop acting and leave a carcass resource behind."""
        if not self.is_alive:
            return
        nutrition = self.phenotype.carcass_nutrition()
        self.phenotype.current_energy = 0.0
        self.state = OrganismState.DEAD
        self.death_cause = cause
        self.target = None
        self.path, self.path_points, self.path_index = [], [], 0
        self.carcass = world.resources.create(
            self.position,
            nutrition,
            is_carcass=True,
            born_generation=world.generation,
            source_organism_id=self.id,
        )
        world.stats["deaths"] += 1
        logger.debug(
            "%s died (%s%s), carcass nutrition %.1f",
            self.name, cause, f" by {killer.name}" if killer else "", nutrition,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def target_summary(self) -> dict[str, Any] | None:
        if self.target is None:
            return None
        if isinstance(self.target, Organism):
            return {"kind": "prey", "id": self.target.id}
        return {
            "kind": "carcass" if self.target.is_carcass else "food",
            "id": self.target.id,
        }

    def snapshot(self) -> dict[str, Any]:
        p = self.phenotype
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state.value,
            "is_alive": self.is_alive,
            "position": [self.position.x, self.position.y],
            "energy_fraction": p.energy_fraction,
            "current_energy": p.current_energy,
            "max_energy": p.max_energy,
            "emergences": p.emergences(),
            "target": self.target_summary(),
            "kills": self.kills,
            "food_eaten": self.food_eaten,
            "carcasses_eaten": self.carcasses_eaten,
        }

    def __repr__(self) -> str:
        return f"Organism(id={self.id!r}, name={self.name!r}, state={self.state.value})"
