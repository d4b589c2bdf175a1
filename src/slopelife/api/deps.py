"""Request-scoped lookups shared by the routers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from slopelife.api.sessions import SessionManager, SimulationSession


def manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def session_or_404(request: Request, session_id: str) -> SimulationSession:
    try:
        return manager(request).get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
