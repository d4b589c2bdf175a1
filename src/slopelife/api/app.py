"""
slopelife HTTP API: session control plus read-only views of a running simulation.
"""

from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slopelife.api.routers import metrics, organisms, simulation, world
from slopelife.api.sessions import SessionManager

# SLOPELIFE_* overrides may live in a .env at the repo root or the working directory
load_dotenv(Path(__file__).resolve().parents[3] / ".env")
load_dotenv(Path.cwd() / ".env")

_ROUTERS = (
    (simulation.router, "simulation"),
    (metrics.router, "metrics"),
    (organisms.router, "organisms"),
    (world.router, "world"),
)


def create_app() -> FastAPI:
    application = FastAPI(
        title="slopelife API",
        description="Stepping controls and read-only views for slopelife simulations",
        version="0.1.0",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.session_manager = SessionManager()

    for router, name in _ROUTERS:
        application.include_router(router, prefix=f"/api/{name}", tags=[name])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
