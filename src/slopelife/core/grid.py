"""
Grid world for slopelife.

A fixed-size 2D grid of square cells. Each cell carries a signed scalar
slope: positive = uphill, negative = downhill, 0 = flat. The grid converts
between integer cell coordinates and continuous world positions.

Cell (0, 0) has its lower-left corner at ``origin``; cell centres sit at
``origin + (x + 0.5, y + 0.5) * cell_size``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Position:
    """A continuous 2D world position."""

    x: float
    y: float

    def distance_to(self, other: Position) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def move_towards(self, target: Position, max_distance: float) -> Position:
        """Step towards ``target`` by at most ``max_distance``."""
        dist = self.distance_to(target)
        if dist <= max_distance or dist == 0.0:
            return target
        t = max_distance / dist
        return Position(self.x + (target.x - self.x) * t, self.y + (target.y - self.y) * t)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class GridWorld:
    """Fixed-size slope grid with coordinate conversion.

    Args:
        width: Number of columns.
        height: Number of rows.
        cell_size: Side length of a cell in world units.
        max_abs_slope: Slope values are clamped to [-max_abs_slope, max_abs_slope].
        slope: Optional ``(width, height)`` array of slopes. Defaults to flat.
        origin: World position of the grid's lower-left corner.
    """

    def __init__(
        self,
        width: int,
        height: int,
        cell_size: float = 1.0,
        max_abs_slope: float = 5.0,
        slope: np.ndarray | None = None,
        origin: Position = Position(0.0, 0.0),
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.width = int(width)
        self.height = int(height)
        self.cell_size = float(cell_size)
        self.max_abs_slope = float(max_abs_slope)
        self.origin = origin

        if slope is None:
            slope = np.zeros((self.width, self.height), dtype=np.float64)
        slope = np.asarray(slope, dtype=np.float64)
        if slope.shape != (self.width, self.height):
            raise ValueError(
                f"Slope field must have shape ({self.width}, {self.height}), got {slope.shape}"
            )
        self._slope = np.clip(slope, -self.max_abs_slope, self.max_abs_slope)

    # ---- Cells ----

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_slope(self, x: int, y: int) -> float:
        """Slope at cell (x, y). Out-of-bounds cells read as flat."""
        if not self.in_bounds(x, y):
            return 0.0
        return float(self._slope[x, y])

    @property
    def slope(self) -> np.ndarray:
        """Read-only view of the slope field."""
        view = self._slope.view()
        view.flags.writeable = False
        return view

    def cells(self):
        for x in range(self.width):
            for y in range(self.height):
                yield (x, y)

    def random_cell(self, rng: np.random.Generator) -> tuple[int, int]:
        return (int(rng.integers(0, self.width)), int(rng.integers(0, self.height)))

    # ---- World conversion ----

    def cell_center_world(self, x: int, y: int) -> Position:
        return Position(
            self.origin.x + (x + 0.5) * self.cell_size,
            self.origin.y + (y + 0.5) * self.cell_size,
        )

    def world_to_cell(self, pos: Position) -> tuple[int, int] | None:
        """Cell containing ``pos``, or None if outside the grid."""
        x = math.floor((pos.x - self.origin.x) / self.cell_size)
        y = math.floor((pos.y - self.origin.y) / self.cell_size)
        if not self.in_bounds(x, y):
            return None
        return (x, y)

    def nearest_cell(self, pos: Position) -> tuple[int, int]:
        """Cell containing ``pos`` after clamping it into the grid."""
        x = math.floor((pos.x - self.origin.x) / self.cell_size)
        y = math.floor((pos.y - self.origin.y) / self.cell_size)
        return (min(max(x, 0), self.width - 1), min(max(y, 0), self.height - 1))

    def clamp_position(self, pos: Position) -> Position:
        """Clamp a world position to lie inside the grid."""
        eps = 1e-6
        max_x = self.origin.x + self.width * self.cell_size - eps
        max_y = self.origin.y + self.height * self.cell_size - eps
        return Position(
            min(max(pos.x, self.origin.x), max_x),
            min(max(pos.y, self.origin.y), max_y),
        )

    def slope_at(self, pos: Position) -> float:
        cell = self.world_to_cell(pos)
        if cell is None:
            return 0.0
        return self.get_slope(*cell)

    # ---- Serialization ----

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "cell_size": self.cell_size,
            "max_abs_slope": self.max_abs_slope,
            "origin": [self.origin.x, self.origin.y],
            "slope": self._slope.round(4).tolist(),
        }

    def __repr__(self) -> str:
        return f"GridWorld({self.width}x{self.height}, cell_size={self.cell_size})"
