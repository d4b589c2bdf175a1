"""World views: counters, the terrain grid and the resource field."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request

from slopelife.api.deps import session_or_404
from slopelife.api.serializers import serialize_terrain, to_json_safe

router = APIRouter()


@router.get("/{session_id}")
def world_summary(session_id: str, request: Request) -> dict[str, Any]:
    return to_json_safe(session_or_404(request, session_id).engine.world.summary())


@router.get("/{session_id}/terrain")
def terrain(session_id: str, request: Request) -> dict[str, Any]:
    return serialize_terrain(session_or_404(request, session_id).engine.world.grid)


@router.get("/{session_id}/resources")
def resources(
    session_id: str,
    request: Request,
    carcasses_only: bool = Query(False),
) -> list[dict[str, Any]]:
    world = session_or_404(request, session_id).engine.world
    return [r.to_dict() for r in world.resources if r.is_carcass or not carcasses_only]
