"""
Food resources, carcasses, and respawning.

A ``Resource`` is a ``(position, nutrition)`` entity consumed atomically by
at most one organism. Carcasses are resources with ``is_carcass=True``.
``ResourceSpawner`` places new food on free cells and runs the delayed
respawn queue.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator

import numpy as np

from slopelife.core.grid import GridWorld, Position

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Resource:
    """A consumable world object."""

    id: int
    position: Position
    nutrition: float
    is_carcass: bool = False
    born_generation: int = 0
    source_organism_id: str | None = None
    consumed: bool = False

    def consume(self) -> float:
        """Take the whole resource. Returns 0 if someone got here first."""
        if self.consumed:
            return 0.0
        self.consumed = True
        return max(0.0, self.nutrition)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "position": [round(self.position.x, 4), round(self.position.y, 4)],
            "nutrition": round(float(self.nutrition), 4),
            "is_carcass": self.is_carcass,
            "born_generation": self.born_generation,
            "source_organism_id": self.source_organism_id,
        }


class ResourceRegistry:
    """Live resources, indexed by id."""

    def __init__(self) -> None:
        self._items: dict[int, Resource] = {}
        self._ids = itertools.count(1)

    def create(
        self,
        position: Position,
        nutrition: float,
        is_carcass: bool = False,
        born_generation: int = 0,
        source_organism_id: str | None = None,
    ) -> Resource:
        resource = Resource(
            id=next(self._ids),
            position=position,
            nutrition=max(0.0, float(nutrition)),
            is_carcass=is_carcass,
            born_generation=born_generation,
            source_organism_id=source_organism_id,
        )
        self._items[resource.id] = resource
        return resource

    def remove(self, resource: Resource) -> None:
        self._items.pop(resource.id, None)

    def get(self, resource_id: int) -> Resource | None:
        return self._items.get(resource_id)

    def __contains__(self, resource: object) -> bool:
        return isinstance(resource, Resource) and self._items.get(resource.id) is resource

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def carcass_count(self) -> int:
        return sum(1 for r in self._items.values() if r.is_carcass)

    def food_count(self) -> int:
        return len(self._items) - self.carcass_count()

    def nearest(
        self,
        position: Position,
        radius: float,
        predicate: Callable[[Resource], bool] | None = None,
    ) -> Resource | None:
        """Closest unconsumed resource strictly within ``radius``."""
        best: Resource | None = None
        best_dist = radius
        for r in self._items.values():
            if r.consumed or (predicate is not None and not predicate(r)):
                continue
            d = position.distance_to(r.position)
            if d < best_dist:
                best, best_dist = r, d
        return best

    def occupied_cells(self, grid: GridWorld) -> set[tuple[int, int]]:
        cells = set()
        for r in self._items.values():
            cell = grid.world_to_cell(r.position)
            if cell is not None:
                cells.add(cell)
        return cells

    def clear(self, keep: Callable[[Resource], bool] | None = None) -> int:
        """Remove resources (optionally keeping some). Returns the number removed."""
        doomed = [r for r in self._items.values() if keep is None or not keep(r)]
        for r in doomed:
            del self._items[r.id]
        return len(doomed)


@dataclass(order=True)
class PendingRespawn:
    fire_time: float
    nutrition: float = field(compare=False)


class RespawnQueue:
    """Time-keyed delayed actions, scanned every tick."""

    def __init__(self) -> None:
        self._pending: list[PendingRespawn] = []

    def schedule(self, fire_time: float, nutrition: float) -> None:
        self._pending.append(PendingRespawn(fire_time, nutrition))

    def pop_due(self, now: float) -> list[PendingRespawn]:
        """Remove and return every entry whose fire time has passed."""
        due: list[PendingRespawn] = []
        for i in range(len(self._pending) - 1, -1, -1):
            if now >= self._pending[i].fire_time:
                due.append(self._pending.pop(i))
        due.reverse()
        return due

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)


class ResourceSpawner:
    """Places food on random free cells and handles delayed respawns."""

    def __init__(
        self,
        grid: GridWorld,
        registry: ResourceRegistry,
        rng: np.random.Generator,
        initial_count: int = 50,
        nutrition: float = 10.0,
        respawn_delay: float = 8.0,
        max_tries: int = 200,
    ):
        self.grid = grid
        self.registry = registry
        self.rng = rng
        self.initial_count = initial_count
        self.nutrition = nutrition
        self.respawn_delay = respawn_delay
        self.max_tries = max_tries
        self.queue = RespawnQueue()
        self.now = 0.0

    def spawn_initial(self, generation: int = 0) -> int:
        spawned = 0
        for _ in range(self.initial_count):
            if self.spawn_one(self.nutrition, generation) is not None:
                spawned += 1
        return spawned

    def spawn_one(self, nutrition: float, generation: int = 0) -> Resource | None:
        """Spawn one resource on a free cell. Returns None if none was found."""
        occupied = self.registry.occupied_cells(self.grid)
        for _ in range(self.max_tries):
            cell = self.grid.random_cell(self.rng)
            if cell not in occupied:
                pos = self.grid.cell_center_world(*cell)
                return self.registry.create(pos, nutrition, born_generation=generation)
        logger.debug("No free cell found after %d tries", self.max_tries)
        return None

    def schedule_respawn(self, nutrition: float) -> None:
        self.queue.schedule(self.now + self.respawn_delay, nutrition)

    def update(self, now: float, generation: int = 0) -> int:
        """Advance the clock and spawn every due respawn."""
        self.now = now
        fired = self.queue.pop_due(now)
        for entry in fired:
            self.spawn_one(entry.nutrition, generation)
        return len(fired)

    def reset(
        self, generation: int = 0, carcass_persist_generations: int = 0,
    ) -> None:
        """Drop pending respawns, clear resources and spawn a fresh set.

        Carcasses younger than ``carcass_persist_generations`` survive.
        """
        self.queue.clear()
        self.now = 0.0

        def keep(r: Resource) -> bool:
            return (
                r.is_carcass
                and not r.consumed
                and carcass_persist_generations > 0
                and generation - r.born_generation < carcass_persist_generations
            )

        removed = self.registry.clear(keep=keep)
        spawned = self.spawn_initial(generation)
        logger.debug("Resources reset: removed %d, spawned %d", removed, spawned)
