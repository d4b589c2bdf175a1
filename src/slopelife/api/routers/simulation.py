"""Session lifecycle and stepping endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from slopelife.api.deps import manager, session_or_404
from slopelife.api.schemas import (
    CreateSessionRequest,
    PresetInfo,
    RunRequest,
    SessionResponse,
    SessionSummary,
    StepRequest,
    TickRequest,
    TickResponse,
)
from slopelife.api.sessions import SimulationSession
from slopelife.core.config import SimulationConfig
from slopelife.experiment.presets import get_preset, list_presets

router = APIRouter()


def _describe(session: SimulationSession) -> dict[str, Any]:
    return {
        **session.summary(),
        "phase": session.engine.phase.value,
        "config": session.config.to_dict(),
    }


@router.get("/presets", response_model=list[PresetInfo])
def get_presets():
    return [{"name": name, "config": get_preset(name).to_dict()} for name in list_presets()]


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    """Start a session from a preset, an explicit config, or the environment."""
    try:
        config = None
        if req.preset:
            config = get_preset(req.preset)
        elif req.config:
            config = SimulationConfig.from_dict(req.config)
        session = manager(request).create_session(
            config=config, name=req.name, record_traces=req.record_traces,
        )
    except KeyError:
        raise HTTPException(status_code=400, detail=f"Unknown preset: '{req.preset}'")
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _describe(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    return manager(request).list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    return _describe(session_or_404(request, session_id))


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    session_or_404(request, session_id)
    manager(request).delete_session(session_id)
    return {"deleted": True}


@router.post("/sessions/{session_id}/run", response_model=SessionResponse)
def run_session(session_id: str, req: RunRequest, request: Request):
    """Run synchronously, either to the configured end or for ``generations`` more."""
    session_or_404(request, session_id)
    return _describe(manager(request).run_full(session_id, req.generations))


@router.post("/sessions/{session_id}/step", response_model=SessionResponse)
def step_session(session_id: str, req: StepRequest, request: Request):
    session_or_404(request, session_id)
    return _describe(manager(request).step(session_id, req.n))


@router.post("/sessions/{session_id}/tick", response_model=TickResponse)
def tick_session(session_id: str, req: TickRequest, request: Request):
    session_or_404(request, session_id)
    return manager(request).step_ticks(session_id, req.n)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request):
    session_or_404(request, session_id)
    return _describe(manager(request).reset_session(session_id))
