"""
Slope-field generators for the grid world.

Terrain authoring is not part of the simulation core; these generators
exist so a ``GridWorld`` can be produced from a config. Each generator
returns a ``(width, height)`` array in [-max_abs_slope, max_abs_slope].

All generators use seeded numpy RNG for deterministic reproduction.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from slopelife.core.grid import GridWorld


def _smoothstep(t: np.ndarray) -> np.ndarray:
    return t * t * (3.0 - 2.0 * t)


def _value_noise_octave(
    width: int, height: int, step: float, rng: np.random.Generator,
) -> np.ndarray:
    """One octave of lattice value noise with spacing ``step`` cells."""
    nx = int(np.ceil(width / step)) + 2
    ny = int(np.ceil(height / step)) + 2
    lattice = rng.random((nx, ny))

    gx = np.arange(width) / step + rng.random()
    gy = np.arange(height) / step + rng.random()
    x0 = np.floor(gx).astype(int)
    y0 = np.floor(gy).astype(int)
    tx = _smoothstep(gx - x0)[:, None]
    ty = _smoothstep(gy - y0)[None, :]

    v00 = lattice[x0[:, None], y0[None, :]]
    v10 = lattice[x0[:, None] + 1, y0[None, :]]
    v01 = lattice[x0[:, None], y0[None, :] + 1]
    v11 = lattice[x0[:, None] + 1, y0[None, :] + 1]

    bottom = v00 * (1.0 - tx) + v10 * tx
    top = v01 * (1.0 - tx) + v11 * tx
    return bottom * (1.0 - ty) + top * ty


def noise_slope_field(
    width: int,
    height: int,
    max_abs_slope: float = 5.0,
    noise_scale: float = 0.08,
    frequency: float = 1.5,
    octaves: int = 4,
    extreme_chance: float = 0.03,
    extreme_factor: float = 1.8,
    seed: int | None = None,
) -> np.ndarray:
    """Multi-octave noise mapped to signed slope.

    Octaves halve in amplitude and double in frequency. The normalized
    value goes through a 0.8 power curve to sharpen peaks, is mapped to
    [-max_abs_slope, max_abs_slope], and a small fraction of cells is
    exaggerated by ``extreme_factor`` before the final clamp.
    """
    rng = np.random.default_rng(seed)
    base_step = max(1.0, 1.0 / max(noise_scale * frequency, 1e-6))

    value = np.zeros((width, height), dtype=np.float64)
    amplitude = 1.0
    max_value = 0.0
    step = base_step
    for _ in range(octaves):
        value += _value_noise_octave(width, height, max(step, 1.0), rng) * amplitude
        max_value += amplitude
        amplitude *= 0.5
        step /= 2.0

    value /= max_value
    value = np.power(value, 0.8)
    slope = (value * 2.0 - 1.0) * max_abs_slope

    extreme = rng.random((width, height)) < extreme_chance
    slope[extreme] *= extreme_factor
    return np.clip(slope, -max_abs_slope, max_abs_slope)


def flat_slope_field(width: int, height: int, **_: object) -> np.ndarray:
    """Uniform zero slope everywhere."""
    return np.zeros((width, height), dtype=np.float64)


def ramp_slope_field(
    width: int, height: int, max_abs_slope: float = 5.0, **_: object,
) -> np.ndarray:
    """Slope rising linearly from -max at x=0 to +max at the last column."""
    if width == 1:
        return np.zeros((width, height), dtype=np.float64)
    column = np.linspace(-max_abs_slope, max_abs_slope, width)
    return np.repeat(column[:, None], height, axis=1)


SLOPE_GENERATORS: dict[str, Callable[..., np.ndarray]] = {
    "noise": noise_slope_field,
    "flat": flat_slope_field,
    "ramp": ramp_slope_field,
}


def generate_grid(
    name: str,
    width: int,
    height: int,
    cell_size: float = 1.0,
    max_abs_slope: float = 5.0,
    seed: int | None = None,
    **kwargs,
) -> GridWorld:
    """Build a GridWorld using a named slope generator.

    Raises:
        ValueError: If the generator name is unknown.
    """
    if name not in SLOPE_GENERATORS:
        raise ValueError(
            f"Unknown terrain generator '{name}'. Choose from: {list(SLOPE_GENERATORS)}"
        )
    generator = SLOPE_GENERATORS[name]
    slope = generator(width, height, max_abs_slope=max_abs_slope, seed=seed, **kwargs)
    return GridWorld(width, height, cell_size=cell_size, max_abs_slope=max_abs_slope, slope=slope)
