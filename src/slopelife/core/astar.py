"""
A* search over the shared static graph.

Two entry points share one search loop:

- ``solve(start, goal, heuristic, step_cost=None)``: heuristic and step
  cost are callbacks, so each caller can price the same graph differently.
  When ``step_cost`` is omitted the static link cost is used.
- ``solve_with_heuristic_map(start, goal, heuristic_map)``: precomputed
  heuristic values, static link costs.

The fringe is a binary heap ordered by f = g + h. Ties on f are broken
FIFO by an insertion counter. There is no decrease-key: improved nodes are
pushed again and stale entries are skipped when popped (lazy deletion).

Time: O((V + E) log V). Space: O(V).
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Mapping

from slopelife.core.graph import Coord, GraphNode

Heuristic = Callable[[GraphNode], int]
StepCost = Callable[[GraphNode, GraphNode], int]


class HeuristicContractError(LookupError):
    """A heuristic value needed by the search was missing or invalid."""


@dataclass
class TreeNode:
    """Fringe entry for one search call."""

    node: GraphNode
    g_cost: int
    h_cost: int

    @property
    def f_cost(self) -> int:
        return self.g_cost + self.h_cost


@dataclass
class SearchTrace:
    """Optional debug record of a search, for visualisation."""

    opened: list[Coord] = field(default_factory=list)
    closed: list[Coord] = field(default_factory=list)
    expansions: int = 0
    stale_pops: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "opened": [list(c) for c in self.opened],
            "closed": [list(c) for c in self.closed],
            "expansions": self.expansions,
            "stale_pops": self.stale_pops,
        }


@dataclass
class AStarResult:
    found: bool = False
    total_cost: int = 0
    path: list[GraphNode] = field(default_factory=list)

    @property
    def coords(self) -> list[Coord]:
        return [n.coord for n in self.path]


def _checked_cost(value: object, what: str, node: GraphNode) -> int:
    if value is None:
        raise HeuristicContractError(f"{what} missing for node {node.coord}")
    if isinstance(value, bool) or not isinstance(value, int):
        # Accept numpy / float values that are exact integers.
        try:
            as_int = int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            raise ValueError(f"{what} for node {node.coord} is not an integer: {value!r}")
        if as_int != value:
            raise ValueError(f"{what} for node {node.coord} is not an integer: {value!r}")
        value = as_int
    if value < 0:
        raise ValueError(f"{what} for node {node.coord} is negative: {value}")
    return value


def _reconstruct_path(
    came_from: dict[GraphNode, GraphNode], current: GraphNode,
) -> list[GraphNode]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def _search(
    start: GraphNode,
    goal: GraphNode,
    heuristic: Heuristic,
    step_cost: StepCost | None,
    trace: SearchTrace | None,
) -> AStarResult:
    counter = itertools.count()
    start_h = _checked_cost(heuristic(start), "Heuristic", start)
    open_heap: list[tuple[int, int, TreeNode]] = [
        (start_h, next(counter), TreeNode(start, 0, start_h)),
    ]
    closed: set[GraphNode] = set()
    came_from: dict[GraphNode, GraphNode] = {}
    g_score: dict[GraphNode, int] = {start: 0}
    if trace is not None:
        trace.opened.append(start.coord)

    while open_heap:
        _, _, entry = heapq.heappop(open_heap)
        current = entry.node

        if current in closed:
            if trace is not None:
                trace.stale_pops += 1
            continue

        if current == goal:
            return AStarResult(
                found=True,
                total_cost=g_score[current],
                path=_reconstruct_path(came_from, current),
            )

        closed.add(current)
        if trace is not None:
            trace.closed.append(current.coord)
            trace.expansions += 1

        current_g = g_score[current]
        for link in current.links:
            neighbour = link.node
            if neighbour is None or neighbour in closed:
                continue

            if step_cost is None:
                cost = link.cost
            else:
                cost = _checked_cost(step_cost(current, neighbour), "Step cost", neighbour)
            tentative = current_g + cost

            known = g_score.get(neighbour)
            if known is None or tentative < known:
                came_from[neighbour] = current
                g_score[neighbour] = tentative
                h = _checked_cost(heuristic(neighbour), "Heuristic", neighbour)
                heapq.heappush(
                    open_heap,
                    (tentative + h, next(counter), TreeNode(neighbour, tentative, h)),
                )
                if trace is not None:
                    trace.opened.append(neighbour.coord)

    return AStarResult()


def solve(
    start: GraphNode | None,
    goal: GraphNode | None,
    heuristic: Heuristic,
    step_cost: StepCost | None = None,
    trace: SearchTrace | None = None,
) -> AStarResult:
    """Find the cheapest path from ``start`` to ``goal``.

    Args:
        start: Start node, or None.
        goal: Goal node, or None.
        heuristic: Estimated remaining cost for a node. Must return a
            non-negative int.
        step_cost: Cost of moving between two adjacent nodes. Must return a
            non-negative int. Defaults to the static link cost.
        trace: If given, filled with the open/closed sets of the search.

    Returns:
        AStarResult. ``found`` is False (with an empty path) when either
        endpoint is None or the goal is unreachable.

    Raises:
        HeuristicContractError: The heuristic callback is None or returned None.
        ValueError: A heuristic or step cost was negative or non-integer.
    """
    if start is None or goal is None:
        return AStarResult()
    if heuristic is None:
        raise HeuristicContractError("heuristic callback is None")
    return _search(start, goal, heuristic, step_cost, trace)


def solve_with_heuristic_map(
    start: GraphNode | None,
    goal: GraphNode | None,
    heuristic_map: Mapping[GraphNode, int],
    trace: SearchTrace | None = None,
) -> AStarResult:
    """A* with precomputed heuristic values and static link costs.

    Raises:
        HeuristicContractError: The map is None, or lacks an entry for the
            start, the goal, or any node the search has to evaluate.
    """
    if start is None or goal is None:
        return AStarResult()
    if heuristic_map is None:
        raise HeuristicContractError("heuristic map is None")
    if start not in heuristic_map:
        raise HeuristicContractError(f"Heuristic missing for start node {start.coord}")
    if goal not in heuristic_map:
        raise HeuristicContractError(f"Heuristic missing for goal node {goal.coord}")

    def lookup(node: GraphNode) -> int:
        try:
            return heuristic_map[node]
        except KeyError:
            raise HeuristicContractError(f"Heuristic missing for node {node.coord}") from None

    return _search(start, goal, lookup, None, trace)


def path_cost(path: list[GraphNode], step_cost: StepCost) -> int:
    """Sum ``step_cost`` over consecutive node pairs of a path."""
    return sum(step_cost(a, b) for a, b in zip(path, path[1:]))


def manhattan(a: GraphNode, b: GraphNode) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)
