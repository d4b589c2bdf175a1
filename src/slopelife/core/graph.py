"""
Static adjacency graph over the grid.

Nodes are identified by their integer cell coordinate. The graph is built
once per world and then treated as read-only: links are stored as tuples
so they cannot be edited in place, and per-organism costs are injected into
the search through callbacks instead of being written onto links.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple

from slopelife.core.grid import GridWorld, Position

Coord = tuple[int, int]

# 4-neighbourhood expansion order: right, left, up, down.
NEIGHBOUR_OFFSETS: tuple[Coord, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


class Link(NamedTuple):
    """Directed edge with a static base cost."""

    cost: int
    node: GraphNode


class GraphNode:
    """A graph vertex keyed by its grid coordinate."""

    __slots__ = ("coord", "links")

    def __init__(self, coord: Coord, links: tuple[Link, ...] = ()):
        self.coord: Coord = (int(coord[0]), int(coord[1]))
        self.links: tuple[Link, ...] = tuple(links)

    @property
    def x(self) -> int:
        return self.coord[0]

    @property
    def y(self) -> int:
        return self.coord[1]

    def neighbours(self) -> list[GraphNode]:
        return [link.node for link in self.links]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.coord == other.coord

    def __hash__(self) -> int:
        return hash(self.coord)

    def __repr__(self) -> str:
        return f"GraphNode{self.coord}"


class Graph:
    """Shared node table. Lookup by coordinate is O(1)."""

    def __init__(self, nodes: dict[Coord, GraphNode]):
        self._nodes = dict(nodes)

    def node_at(self, x: int, y: int) -> GraphNode | None:
        return self._nodes.get((x, y))

    def __getitem__(self, coord: Coord) -> GraphNode:
        return self._nodes[coord]

    def __contains__(self, coord: object) -> bool:
        return coord in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes.values())

    def edge_count(self) -> int:
        return sum(len(n.links) for n in self._nodes.values())


def build_grid_graph(width: int, height: int, base_cost: int = 1) -> Graph:
    """Build a 4-connected graph over a ``width`` x ``height`` grid.

    Every link carries ``base_cost``. Links are frozen into tuples once all
    nodes exist.
    """
    if base_cost < 0:
        raise ValueError(f"base_cost must be non-negative, got {base_cost}")
    nodes: dict[Coord, GraphNode] = {
        (x, y): GraphNode((x, y)) for x in range(width) for y in range(height)
    }
    for (x, y), node in nodes.items():
        links = []
        for dx, dy in NEIGHBOUR_OFFSETS:
            target = nodes.get((x + dx, y + dy))
            if target is not None:
                links.append(Link(int(base_cost), target))
        node.links = tuple(links)
    return Graph(nodes)


def graph_for_world(grid: GridWorld, base_cost: int = 1) -> Graph:
    return build_grid_graph(grid.width, grid.height, base_cost)


def node_for_position(graph: Graph, grid: GridWorld, pos: Position) -> GraphNode:
    """Node under ``pos``, clamping positions that fall outside the grid."""
    return graph[grid.nearest_cell(pos)]


def node_position(grid: GridWorld, node: GraphNode) -> Position:
    return grid.cell_center_world(node.x, node.y)
