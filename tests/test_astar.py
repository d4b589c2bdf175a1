"""
Tests for the A* pathfinding engine.

Covers correctness against a reference Dijkstra, the no-path and
trivial cases, callback contract violations, the precomputed-heuristic
overload, determinism, and search tracing.
"""

import heapq

import numpy as np
import pytest

from slopelife.core import astar
from slopelife.core.astar import HeuristicContractError, SearchTrace
from slopelife.core.graph import GraphNode, Link, build_grid_graph


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _zero(_node):
    return 0


def _manhattan_to(goal, unit=1):
    return lambda n: unit * (abs(n.x - goal.x) + abs(n.y - goal.y))


def _weighted_cost(weights):
    """Step cost = weight of the destination cell (all weights >= 1)."""
    return lambda a, b: int(weights[b.x, b.y])


def _reference_dijkstra(graph, start, goal, step_cost):
    dist = {start: 0}
    heap = [(0, start.coord, start)]
    done = set()
    while heap:
        d, _, node = heapq.heappop(heap)
        if node in done:
            continue
        if node == goal:
            return d
        done.add(node)
        for link in node.links:
            nd = d + step_cost(node, link.node)
            if nd < dist.get(link.node, float("inf")):
                dist[link.node] = nd
                heapq.heappush(heap, (nd, link.node.coord, link.node))
    return None


def _disconnected_pair():
    a = GraphNode((0, 0))
    b = GraphNode((5, 5))
    c = GraphNode((1, 0))
    a.links = (Link(1, c),)
    c.links = (Link(1, a),)
    return a, b


def _assert_valid_path(path, start, goal):
    assert path[0] == start
    assert path[-1] == goal
    for a, b in zip(path, path[1:]):
        assert b in a.neighbours()


class TestFlatGrid:
    def test_five_by_five_corner_to_corner(self):
        g = build_grid_graph(5, 5, base_cost=10)
        start, goal = g[(0, 0)], g[(4, 4)]
        result = astar.solve(start, goal, _manhattan_to(goal, 10))
        assert result.found
        assert result.total_cost == 80
        assert len(result.path) == 9
        _assert_valid_path(result.path, start, goal)

    def test_static_costs_match_callback_costs(self):
        g = build_grid_graph(5, 5, base_cost=10)
        start, goal = g[(0, 0)], g[(4, 4)]
        static = astar.solve(start, goal, _manhattan_to(goal, 10))
        callback = astar.solve(start, goal, _manhattan_to(goal, 10), lambda a, b: 10)
        assert static.total_cost == callback.total_cost

    def test_start_equals_goal(self):
        g = build_grid_graph(3, 3)
        n = g[(1, 1)]
        result = astar.solve(n, n, _zero)
        assert result.found
        assert result.total_cost == 0
        assert result.path == [n]


class TestOptimality:
    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_matches_reference_dijkstra(self, seed):
        rng = np.random.default_rng(seed)
        weights = rng.integers(1, 9, size=(8, 8))
        g = build_grid_graph(8, 8)
        cost = _weighted_cost(weights)
        start = g[(0, 0)]
        for goal_coord in [(7, 7), (3, 5), (7, 0)]:
            goal = g[goal_coord]
            result = astar.solve(start, goal, _manhattan_to(goal), cost)
            assert result.found
            assert result.total_cost == _reference_dijkstra(g, start, goal, cost)
            assert astar.path_cost(result.path, cost) == result.total_cost
            _assert_valid_path(result.path, start, goal)

    def test_admissible_heuristic_equals_zero_heuristic(self):
        rng = np.random.default_rng(11)
        weights = rng.integers(1, 6, size=(10, 10))
        g = build_grid_graph(10, 10)
        cost = _weighted_cost(weights)
        start, goal = g[(9, 0)], g[(0, 9)]
        with_h = astar.solve(start, goal, _manhattan_to(goal), cost)
        dijkstra = astar.solve(start, goal, _zero, cost)
        assert with_h.total_cost == dijkstra.total_cost

    def test_heuristic_expands_fewer_nodes(self):
        g = build_grid_graph(15, 15)
        start, goal = g[(0, 0)], g[(14, 0)]
        t_h, t_0 = SearchTrace(), SearchTrace()
        astar.solve(start, goal, _manhattan_to(goal), trace=t_h)
        astar.solve(start, goal, _zero, trace=t_0)
        assert t_h.expansions < t_0.expansions


class TestNoPath:
    def test_unreachable_goal(self):
        a, b = _disconnected_pair()
        result = astar.solve(a, b, _zero)
        assert not result.found
        assert result.path == []
        assert result.total_cost == 0

    def test_none_endpoints(self):
        g = build_grid_graph(2, 2)
        assert not astar.solve(None, g[(0, 0)], _zero).found
        assert not astar.solve(g[(0, 0)], None, _zero).found
        assert not astar.solve_with_heuristic_map(None, g[(0, 0)], {}).found


class TestContract:
    def test_missing_heuristic_callback(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(HeuristicContractError):
            astar.solve(g[(0, 0)], g[(1, 1)], None)

    def test_heuristic_returning_none(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(HeuristicContractError):
            astar.solve(g[(0, 0)], g[(1, 1)], lambda n: None)

    def test_contract_error_is_lookup_error(self):
        assert issubclass(HeuristicContractError, LookupError)

    def test_negative_heuristic(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(ValueError):
            astar.solve(g[(0, 0)], g[(1, 1)], lambda n: -1)

    def test_negative_step_cost(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(ValueError):
            astar.solve(g[(0, 0)], g[(1, 1)], _zero, lambda a, b: -3)

    def test_non_integer_step_cost(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(ValueError):
            astar.solve(g[(0, 0)], g[(1, 1)], _zero, lambda a, b: 1.5)

    def test_integral_numpy_costs_accepted(self):
        g = build_grid_graph(3, 3)
        result = astar.solve(g[(0, 0)], g[(2, 2)], _zero, lambda a, b: np.int64(2))
        assert result.total_cost == 8


class TestHeuristicMap:
    def test_full_map(self):
        g = build_grid_graph(4, 4, base_cost=3)
        start, goal = g[(0, 0)], g[(3, 2)]
        h = {n: 3 * (abs(n.x - goal.x) + abs(n.y - goal.y)) for n in g}
        result = astar.solve_with_heuristic_map(start, goal, h)
        assert result.found
        assert result.total_cost == 15

    def test_missing_start_entry(self):
        g = build_grid_graph(3, 3)
        h = {n: 0 for n in g if n.coord != (0, 0)}
        with pytest.raises(HeuristicContractError):
            astar.solve_with_heuristic_map(g[(0, 0)], g[(2, 2)], h)

    def test_missing_goal_entry(self):
        g = build_grid_graph(3, 3)
        h = {n: 0 for n in g if n.coord != (2, 2)}
        with pytest.raises(HeuristicContractError):
            astar.solve_with_heuristic_map(g[(0, 0)], g[(2, 2)], h)

    def test_missing_intermediate_entry(self):
        g = build_grid_graph(3, 1)
        h = {g[(0, 0)]: 0, g[(2, 0)]: 0}
        with pytest.raises(HeuristicContractError):
            astar.solve_with_heuristic_map(g[(0, 0)], g[(2, 0)], h)

    def test_none_map(self):
        g = build_grid_graph(2, 2)
        with pytest.raises(HeuristicContractError):
            astar.solve_with_heuristic_map(g[(0, 0)], g[(1, 1)], None)


class TestDeterminismAndTrace:
    def test_repeated_calls_identical(self):
        rng = np.random.default_rng(5)
        weights = rng.integers(1, 4, size=(12, 12))
        g = build_grid_graph(12, 12)
        start, goal = g[(0, 11)], g[(11, 0)]
        cost = _weighted_cost(weights)
        first = astar.solve(start, goal, _manhattan_to(goal), cost)
        for _ in range(3):
            again = astar.solve(start, goal, _manhattan_to(goal), cost)
            assert again.coords == first.coords
            assert again.total_cost == first.total_cost

    def test_equal_f_costs_expand_in_insertion_order(self):
        g = build_grid_graph(3, 3)
        trace = SearchTrace()
        result = astar.solve(g[(0, 0)], g[(1, 1)], _zero, trace=trace)
        # Links run +x, -x, +y, -y, so (1, 0) is queued before (0, 1).
        assert result.coords == [(0, 0), (1, 0), (1, 1)]
        assert trace.closed == [(0, 0), (1, 0), (0, 1), (2, 0)]

    def test_first_discovery_wins_on_symmetric_grid(self):
        g = build_grid_graph(3, 3)
        result = astar.solve(g[(0, 0)], g[(2, 2)], _zero)
        assert result.total_cost == 4
        assert result.coords == [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)]

    def test_trace_records_search(self):
        g = build_grid_graph(5, 5)
        start, goal = g[(0, 0)], g[(4, 4)]
        trace = SearchTrace()
        astar.solve(start, goal, _manhattan_to(goal), trace=trace)
        assert trace.closed[0] == (0, 0)
        assert trace.expansions == len(trace.closed)
        assert (4, 4) in trace.opened
        d = trace.to_dict()
        assert d["expansions"] == trace.expansions

    def test_search_does_not_touch_graph(self):
        g = build_grid_graph(4, 4)
        before = {n.coord: n.links for n in g}
        astar.solve(g[(0, 0)], g[(3, 3)], _zero, lambda a, b: 7)
        assert all(n.links is before[n.coord] for n in g)
