"""Per-generation metrics, in-generation samples and run summaries."""

from __future__ import annotations

from typing import Any

import numpy as np
from fastapi import APIRouter, HTTPException, Query, Request

from slopelife.api.deps import session_or_404
from slopelife.api.schemas import SummaryResponse, TimeSeriesResponse
from slopelife.api.serializers import serialize_metrics, to_json_safe

router = APIRouter()

_EMPTY_SUMMARY = {
    "total_generations": 0,
    "best_fitness": 0.0,
    "final_mean_fitness": 0.0,
    "mean_survival_rate": 0.0,
    "total_kills": 0,
    "total_deaths": 0,
    "best_chromosome": {},
}


@router.get("/{session_id}/generations")
def list_generation_metrics(
    session_id: str,
    request: Request,
    from_gen: int = Query(0, ge=0),
    to_gen: int | None = Query(None),
) -> list[dict[str, Any]]:
    session = session_or_404(request, session_id)
    layout = session.config.genome_layout
    rows = session.collector.metrics_history[from_gen:to_gen]
    return [serialize_metrics(m, layout) for m in rows]


@router.get("/{session_id}/time-series/{field_name}", response_model=TimeSeriesResponse)
def time_series(session_id: str, field_name: str, request: Request):
    collector = session_or_404(request, session_id).collector
    try:
        values = collector.get_time_series(field_name)
    except AttributeError:
        raise HTTPException(status_code=400, detail=f"Unknown metric field: '{field_name}'")
    return {
        "field": field_name,
        "generations": [m.generation for m in collector.metrics_history],
        "values": to_json_safe(values),
    }


@router.get("/{session_id}/samples")
def list_samples(session_id: str, request: Request) -> list[dict[str, Any]]:
    return [s.to_dict() for s in session_or_404(request, session_id).collector.samples]


@router.get("/{session_id}/traits")
def trait_table(
    session_id: str,
    request: Request,
    generation: int | None = Query(None, ge=0),
) -> list[dict[str, Any]]:
    collector = session_or_404(request, session_id).collector
    try:
        return collector.trait_table(generation)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Generation {generation} not recorded")


@router.get("/{session_id}/summary", response_model=SummaryResponse)
def run_summary(session_id: str, request: Request):
    """Headline numbers over every finished generation."""
    session = session_or_404(request, session_id)
    rows = session.collector.metrics_history
    if not rows:
        return {**_EMPTY_SUMMARY, "population_size": len(session.engine.population)}

    peak = max(session.engine.history, key=lambda s: s.best_fitness)
    genes = session.config.genome_layout.to_dict(peak.best_chromosome)
    return {
        "total_generations": len(rows),
        "population_size": rows[-1].population_size,
        "best_fitness": round(float(peak.best_fitness), 4),
        "final_mean_fitness": round(float(rows[-1].mean_fitness), 4),
        "mean_survival_rate": round(float(np.mean([m.survival_rate for m in rows])), 4),
        "total_kills": sum(m.kills for m in rows),
        "total_deaths": sum(m.deaths for m in rows),
        "best_chromosome": {name: round(value, 4) for name, value in genes.items()},
    }
