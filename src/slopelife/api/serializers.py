"""
Serializers for converting simulation objects to JSON-safe dicts.

Handles numpy arrays and scalars, enums, and organism state.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from slopelife.core.genome import GenomeLayout
from slopelife.core.grid import GridWorld
from slopelife.core.organism import Organism


def _round(v: Any, digits: int = 4) -> float:
    return round(float(v), digits)


def to_json_safe(value: Any) -> Any:
    """Recursively convert numpy values to plain Python types."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (np.integer, np.floating, np.bool_)):
        return value.item()
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


def serialize_organism_summary(organism: Organism) -> dict[str, Any]:
    """Lightweight organism summary for list views."""
    return {
        "id": organism.id,
        "name": organism.name,
        "state": organism.state.value,
        "is_alive": organism.is_alive,
        "position": [_round(organism.position.x), _round(organism.position.y)],
        "energy_fraction": _round(organism.phenotype.energy_fraction),
        "emergences": organism.phenotype.emergences(),
        "target": organism.target_summary(),
    }


def serialize_organism_detail(organism: Organism, layout: GenomeLayout) -> dict[str, Any]:
    """Full organism detail: genes, phenotype snapshot and tallies."""
    snap = organism.phenotype.snapshot()
    snap.pop("genes", None)
    return {
        **serialize_organism_summary(organism),
        "genes": {
            name: _round(organism.phenotype.chromosome[i])
            for i, name in enumerate(layout.names())
        },
        "phenotype": to_json_safe(snap),
        "kills": organism.kills,
        "food_eaten": organism.food_eaten,
        "carcasses_eaten": organism.carcasses_eaten,
        "searches": organism.searches,
        "plans": organism.plans,
        "death_cause": organism.death_cause,
    }


def serialize_path(organism: Organism, include_trace: bool = False) -> dict[str, Any]:
    """Last A* result for an organism plus the waypoints it still has to walk."""
    result = organism.last_result
    remaining = organism.path_points[organism.path_index:]
    d: dict[str, Any] = {
        "organism_id": organism.id,
        "found": bool(result.found) if result else False,
        "total_cost": int(result.total_cost) if result else 0,
        "path": [list(c) for c in result.coords] if result else [],
        "remaining": [[_round(p.x), _round(p.y)] for p in remaining],
        "trace": None,
    }
    if include_trace and organism.last_search_trace is not None:
        d["trace"] = to_json_safe(organism.last_search_trace.to_dict())
    return d


def serialize_metrics(metrics_obj, layout: GenomeLayout) -> dict[str, Any]:
    """Convert GenerationMetrics to a JSON-serializable dict with named genes."""
    names = layout.names()

    def named(arr: np.ndarray) -> dict[str, float]:
        if arr is None or len(arr) == 0:
            return {}
        return {name: _round(arr[i]) for i, name in enumerate(names)}

    return {
        "generation": metrics_obj.generation,
        "population_size": metrics_obj.population_size,
        "survivors": metrics_obj.survivors,
        "survival_rate": _round(metrics_obj.survival_rate),
        "deaths": metrics_obj.deaths,
        "kills": metrics_obj.kills,
        "food_eaten": metrics_obj.food_eaten,
        "carcasses_eaten": metrics_obj.carcasses_eaten,
        "respawns": metrics_obj.respawns,
        "best_fitness": _round(metrics_obj.best_fitness),
        "mean_fitness": _round(metrics_obj.mean_fitness),
        "min_fitness": _round(metrics_obj.min_fitness),
        "gene_means": named(metrics_obj.gene_means),
        "gene_stds": named(metrics_obj.gene_stds),
        "gene_mins": named(metrics_obj.gene_mins),
        "gene_maxs": named(metrics_obj.gene_maxs),
        "gene_entropy": _round(metrics_obj.gene_entropy),
        "emergence_counts": dict(metrics_obj.emergence_counts),
        "emergence_fractions": {
            k: _round(v) for k, v in metrics_obj.emergence_fractions.items()
        },
    }


def serialize_terrain(grid: GridWorld) -> dict[str, Any]:
    """Grid metadata plus the slope field as rows indexed ``[x][y]``."""
    return to_json_safe(grid.to_dict())
