"""
In-memory registry of simulation runs behind the HTTP API.

A session owns one SimulationEngine and its MetricsCollector. Between
requests the engine is parked in the EVALUATING phase with the next
generation already spawned, so the organism and world views always show
a live population. Once the generation budget is spent the final
generation is left in place (scored, not yet bred) for inspection.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from slopelife.core.config import SimulationConfig
from slopelife.core.engine import EvolutionPhase, SimulationEngine
from slopelife.metrics.collector import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class SimulationSession:
    """One engine plus the bookkeeping the API reports about it."""

    id: str
    name: str
    config: SimulationConfig
    engine: SimulationEngine
    collector: MetricsCollector
    status: str = "created"  # created | running | completed
    current_generation: int = 0
    max_generations: int = 0
    record_traces: bool = False

    @property
    def exhausted(self) -> bool:
        return self.current_generation >= self.max_generations

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "current_generation": self.current_generation,
            "max_generations": self.max_generations,
            "population_size": len(self.engine.population),
        }


def _fresh_engine(
    config: SimulationConfig, record_traces: bool,
) -> tuple[SimulationEngine, MetricsCollector]:
    collector = MetricsCollector(config)
    engine = SimulationEngine(config, collector=collector)
    engine.world.record_search_traces = record_traces
    engine.initialize()
    engine.spawn_generation()
    return engine, collector


def _park(engine: SimulationEngine) -> None:
    """Advance through breeding and respawn until the engine is evaluating again."""
    while engine.phase is not EvolutionPhase.EVALUATING:
        engine.advance()


class SessionManager:
    """Creates, steps and forgets sessions. All stepping is synchronous."""

    def __init__(self) -> None:
        self.sessions: dict[str, SimulationSession] = {}

    def create_session(
        self,
        config: SimulationConfig | None = None,
        name: str | None = None,
        record_traces: bool = False,
    ) -> SimulationSession:
        """Register a session with generation 0 spawned.

        Without an explicit config, ``SLOPELIFE_*`` environment variables
        are applied over the defaults.
        """
        config = config if config is not None else SimulationConfig.from_env()
        engine, collector = _fresh_engine(config, record_traces)
        session = SimulationSession(
            id=uuid.uuid4().hex[:8],
            name=name or config.experiment_name,
            config=config,
            engine=engine,
            collector=collector,
            max_generations=config.generations_to_run,
            record_traces=record_traces,
        )
        self.sessions[session.id] = session
        logger.info("Created session %s (%s)", session.id, session.name)
        return session

    def get_session(self, session_id: str) -> SimulationSession:
        """Raises KeyError for an unknown id."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Session '{session_id}' not found") from None

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def _claim(self, session: SimulationSession) -> bool:
        """Mark the session running if it has generations left, else completed."""
        if session.exhausted:
            session.status = "completed"
            return False
        session.status = "running"
        return True

    def _close_generation(self, session: SimulationSession) -> None:
        engine = session.engine
        engine.step_generation()
        session.current_generation = len(engine.history)
        if session.exhausted:
            session.status = "completed"
            logger.info("Session %s completed after %d generations",
                        session.id, session.current_generation)
        else:
            _park(engine)

    def step(self, session_id: str, n: int = 1) -> SimulationSession:
        """Finish up to ``n`` whole generations."""
        session = self.get_session(session_id)
        for _ in range(n):
            if not self._claim(session):
                break
            self._close_generation(session)
        return session

    def step_ticks(self, session_id: str, n: int = 1) -> dict[str, Any]:
        """Advance up to ``n`` world ticks, closing generations as their windows end."""
        session = self.get_session(session_id)
        engine = session.engine
        ticks = closed = 0
        for _ in range(n):
            if not self._claim(session):
                break
            _park(engine)
            engine.step_tick()
            ticks += 1
            if engine.phase is not EvolutionPhase.EVALUATING:
                self._close_generation(session)
                closed += 1

        return {
            "ticks": ticks,
            "generations_completed": closed,
            "session_status": session.status,
            "current_generation": session.current_generation,
            "world": engine.world.summary(),
        }

    def run_full(self, session_id: str, generations: int | None = None) -> SimulationSession:
        """Run to the generation budget, or at most ``generations`` more.

        A bounded run leaves ``max_generations`` untouched, so later steps
        and runs continue up to it.
        """
        session = self.get_session(session_id)
        remaining = max(0, session.max_generations - session.current_generation)
        if generations is not None:
            remaining = min(remaining, max(0, generations))
        return self.step(session_id, remaining)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------
    def reset_session(self, session_id: str) -> SimulationSession:
        """Discard all progress and respawn generation 0 from the same config."""
        session = self.get_session(session_id)
        session.engine, session.collector = _fresh_engine(session.config, session.record_traces)
        session.status = "created"
        session.current_generation = 0
        session.max_generations = session.config.generations_to_run
        return session

    def delete_session(self, session_id: str) -> None:
        self.get_session(session_id)
        del self.sessions[session_id]

    def list_sessions(self) -> list[dict[str, Any]]:
        return [s.summary() for s in self.sessions.values()]
