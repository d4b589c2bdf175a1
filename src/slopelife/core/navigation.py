"""
Per-organism cost and heuristic callbacks for A*.

Physical cost (what the organism actually pays) and perceived cost (what
its search believes) are kept apart:

- The step cost is the real terrain cost (or the flat flight cost), plus
  an optional caution penalty near predators for cautious organisms.
- The heuristic is the organism's own estimate of the remaining distance,
  skewed by its slope-heuristic genes. The genes never touch step cost, so
  an organism can misjudge a route while still paying the true price.

None of these callbacks write to the shared graph.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Mapping

from slopelife.core.graph import Coord, GraphNode
from slopelife.core.grid import GridWorld, Position

if TYPE_CHECKING:
    from slopelife.core.phenotype import Phenotype


def walking_step_cost(grid: GridWorld, nav: Mapping[str, float], b: GraphNode) -> int:
    """Real cost of stepping onto ``b`` on foot. Never below 1."""
    base = float(nav["base_step_cost"])
    slope = grid.get_slope(b.x, b.y)
    if slope > 0.0:
        cost = base + nav["uphill_cost_per_slope"] * slope
    else:
        cost = base + nav["downhill_discount_per_slope"] * slope
    return max(1, int(round(cost)))


def flight_step_cost(nav: Mapping[str, float]) -> int:
    return max(1, int(round(float(nav["base_step_cost"]) * nav["flight_cost_factor"])))


def build_caution_field(
    grid: GridWorld,
    predator_positions: Iterable[Position],
    radius: float,
    penalty: float,
    danger_weight: float,
) -> dict[Coord, int]:
    """Extra perceived cost per cell around predators.

    Each predator adds ``penalty * danger_weight`` at its own cell, falling
    off linearly to zero at ``radius`` world units. Contributions add up.
    """
    weight = penalty * danger_weight
    if weight <= 0.0 or radius <= 0.0:
        return {}
    reach = int(math.ceil(radius / grid.cell_size))
    accum: dict[Coord, float] = {}
    for pos in predator_positions:
        cx, cy = grid.nearest_cell(pos)
        for x in range(cx - reach, cx + reach + 1):
            for y in range(cy - reach, cy + reach + 1):
                if not grid.in_bounds(x, y):
                    continue
                d = math.hypot(x - cx, y - cy) * grid.cell_size
                if d >= radius:
                    continue
                accum[(x, y)] = accum.get((x, y), 0.0) + weight * (1.0 - d / radius)
    return {c: int(round(v)) for c, v in accum.items() if v >= 0.5}


class PerceivedCostModel:
    """Cost callbacks one organism hands to the search for one plan."""

    def __init__(
        self,
        grid: GridWorld,
        nav: Mapping[str, float],
        phenotype: Phenotype,
        goal: GraphNode,
        caution_field: Mapping[Coord, int] | None = None,
    ):
        self.grid = grid
        self.nav = nav
        self.goal = goal
        self.can_fly = phenotype.can_fly
        self.upper_gene = phenotype.upper_slope_heuristic
        self.lower_gene = phenotype.lower_slope_heuristic
        self.max_bias = float(nav["max_heuristic_bias"])
        self.caution_field = caution_field or {}
        self._flight_cost = flight_step_cost(nav)
        self._unit_cost = self._flight_cost if self.can_fly else int(nav["base_step_cost"])

    def real_step_cost(self, a: GraphNode, b: GraphNode) -> int:
        if self.can_fly:
            return self._flight_cost
        return walking_step_cost(self.grid, self.nav, b)

    def step_cost(self, a: GraphNode, b: GraphNode) -> int:
        return self.real_step_cost(a, b) + self.caution_field.get(b.coord, 0)

    def heuristic_multiplier(self, node: GraphNode) -> float:
        """``1 + gene * max_bias``, gene picked by the node's slope sign."""
        gene = self.upper_gene if self.grid.get_slope(node.x, node.y) > 0.0 else self.lower_gene
        return max(0.0, 1.0 + gene * self.max_bias)

    def heuristic(self, node: GraphNode) -> int:
        dist = abs(node.x - self.goal.x) + abs(node.y - self.goal.y)
        return int(round(dist * self._unit_cost * self.heuristic_multiplier(node)))


def movement_energy_multiplier(
    grid: GridWorld, nav: Mapping[str, float], phenotype: Phenotype, position: Position,
) -> float:
    """Energy price multiplier for distance covered at ``position``."""
    if phenotype.can_fly:
        return float(nav["flight_energy_multiplier"])
    if grid.max_abs_slope <= 0.0:
        return 1.0
    s = grid.slope_at(position) / grid.max_abs_slope
    if s > 0.0:
        factor = 1.0 + nav["uphill_energy_factor"] * s
    else:
        factor = 1.0 + nav["downhill_energy_factor"] * s
    return max(0.1, factor)
