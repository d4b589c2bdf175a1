"""Organisms of the live generation: paged listing, detail and last planned path."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from slopelife.api.deps import session_or_404
from slopelife.api.schemas import OrganismDetailResponse, PaginatedOrganismList, PathResponse
from slopelife.api.serializers import (
    serialize_organism_detail,
    serialize_organism_summary,
    serialize_path,
)
from slopelife.core.organism import Organism
from slopelife.core.phenotype import EMERGENCE_FLAGS

router = APIRouter()


def _organism_or_404(request: Request, session_id: str, organism_id: str):
    session = session_or_404(request, session_id)
    try:
        return session, session.engine.world.get_organism(organism_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Organism '{organism_id}' not found")


def _matches(org: Organism, alive_only: bool, state: str | None, emergence: str | None) -> bool:
    if alive_only and not org.is_alive:
        return False
    if state is not None and org.state.value != state:
        return False
    return emergence is None or bool(getattr(org.phenotype, emergence))


@router.get("/{session_id}", response_model=PaginatedOrganismList)
def list_organisms(
    session_id: str,
    request: Request,
    alive_only: bool = Query(False),
    state: str | None = Query(None),
    emergence: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
) -> dict[str, Any]:
    if emergence is not None and emergence not in EMERGENCE_FLAGS:
        raise HTTPException(status_code=400, detail=f"Unknown emergence: '{emergence}'")

    world = session_or_404(request, session_id).engine.world
    selected = [o for o in world.organisms if _matches(o, alive_only, state, emergence)]
    offset = (page - 1) * page_size
    return {
        "organisms": [serialize_organism_summary(o) for o in selected[offset:offset + page_size]],
        "total": len(selected),
        "page": page,
        "page_size": page_size,
    }


@router.get("/{session_id}/{organism_id}", response_model=OrganismDetailResponse)
def organism_detail(session_id: str, organism_id: str, request: Request) -> dict[str, Any]:
    session, org = _organism_or_404(request, session_id, organism_id)
    return serialize_organism_detail(org, session.config.genome_layout)


@router.get("/{session_id}/{organism_id}/path", response_model=PathResponse)
def organism_path(
    session_id: str,
    organism_id: str,
    request: Request,
    include_trace: bool = Query(False),
) -> dict[str, Any]:
    _, org = _organism_or_404(request, session_id, organism_id)
    return serialize_path(org, include_trace=include_trace)
