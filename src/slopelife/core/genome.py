"""
Chromosome layout for slopelife organisms.

A chromosome is a fixed-length ``float64`` vector. Each gene has a declared
domain, either [0, 1] or [-1, 1]. Gene count is NEVER hardcoded elsewhere:
always use ``layout.count`` and the named index attributes.
"""

from __future__ import annotations

from typing import Any

import numpy as np


# ---------------------------------------------------------------------------
# Canonical gene set (9 genes)
# ---------------------------------------------------------------------------
GENES: list[dict[str, Any]] = [
    {"name": "mass",                  "low": 0.0,  "high": 1.0, "description": "Body mass; drives energy capacity and size tax"},
    {"name": "muscle_mass",           "low": 0.0,  "high": 1.0, "description": "Muscle; raises power-to-weight and effective mass"},
    {"name": "metabolic_rate",        "low": 0.0,  "high": 1.0, "description": "Speed of metabolism and digestion efficiency"},
    {"name": "aggression",            "low": 0.0,  "high": 1.0, "description": "Drive to hunt other organisms"},
    {"name": "risk_aversion",         "low": 0.0,  "high": 1.0, "description": "Avoidance of danger; inverse of boldness"},
    {"name": "upper_slope_heuristic", "low": -1.0, "high": 1.0, "description": "Perceived cost bias on uphill cells"},
    {"name": "lower_slope_heuristic", "low": -1.0, "high": 1.0, "description": "Perceived cost bias on flat or downhill cells"},
    {"name": "danger_weight",         "low": 0.0,  "high": 1.0, "description": "Weight given to nearby predators when planning"},
    {"name": "camouflage",            "low": 0.0,  "high": 1.0, "description": "Shrinks the distance at which predators notice it"},
]


class GenomeLayout:
    """
    Gene definitions and domain helpers.

    Use ``layout.count`` for array shapes and ``layout.MASS``,
    ``layout.DANGER_WEIGHT`` etc. for named indexing.
    """

    def __init__(self, genes: list[dict[str, Any]] | None = None):
        self.genes = list(genes if genes is not None else GENES)
        if not self.genes:
            raise ValueError("A genome layout needs at least one gene")
        self.count = len(self.genes)

        self._name_to_index: dict[str, int] = {}
        for i, gene_def in enumerate(self.genes):
            name = gene_def["name"]
            self._name_to_index[name] = i
            setattr(self, name.upper(), i)

        self._low = np.array([g["low"] for g in self.genes], dtype=np.float64)
        self._high = np.array([g["high"] for g in self.genes], dtype=np.float64)

    @property
    def low(self) -> np.ndarray:
        return self._low.copy()

    @property
    def high(self) -> np.ndarray:
        return self._high.copy()

    def gene_index(self, name: str) -> int:
        """Return the index of a gene by name. Raises KeyError if not found."""
        return self._name_to_index[name]

    def gene_name(self, index: int) -> str:
        return self.genes[index]["name"]

    def names(self) -> list[str]:
        return [g["name"] for g in self.genes]

    def domain(self, index: int) -> tuple[float, float]:
        return float(self._low[index]), float(self._high[index])

    def random_chromosome(self, rng: np.random.Generator) -> np.ndarray:
        """Uniform random chromosome within every gene's domain."""
        return rng.uniform(self._low, self._high)

    def midpoint(self) -> np.ndarray:
        """Chromosome with every gene at the centre of its domain."""
        return (self._low + self._high) / 2.0

    def clamp(self, chromosome: np.ndarray) -> np.ndarray:
        """Clamp each gene into its domain (returns a new array)."""
        return np.clip(np.asarray(chromosome, dtype=np.float64), self._low, self._high)

    def clamp_gene(self, index: int, value: float) -> float:
        return float(np.clip(value, self._low[index], self._high[index]))

    def validate(self, chromosome: np.ndarray) -> None:
        """Raise ValueError if the chromosome has the wrong shape."""
        arr = np.asarray(chromosome)
        if arr.shape != (self.count,):
            raise ValueError(
                f"Chromosome must have shape ({self.count},), got {arr.shape}"
            )

    def to_dict(self, chromosome: np.ndarray) -> dict[str, float]:
        return {name: float(chromosome[i]) for i, name in enumerate(self.names())}

    def __repr__(self) -> str:
        return f"GenomeLayout(count={self.count})"
