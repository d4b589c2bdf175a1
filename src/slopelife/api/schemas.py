"""
Request and response models for the slopelife API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Simulation ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    preset: str | None = None
    name: str | None = None
    record_traces: bool = False


class RunRequest(BaseModel):
    generations: int | None = Field(None, ge=0)


class StepRequest(BaseModel):
    n: int = Field(1, ge=1)


class TickRequest(BaseModel):
    n: int = Field(1, ge=1, le=100_000)


class SessionSummary(BaseModel):
    id: str
    name: str
    status: str
    current_generation: int
    max_generations: int
    population_size: int


class SessionResponse(SessionSummary):
    phase: str
    config: dict[str, Any]


class TickResponse(BaseModel):
    ticks: int
    generations_completed: int
    session_status: str
    current_generation: int
    world: dict[str, Any]


# === Organisms ===

class OrganismSummaryResponse(BaseModel):
    id: str
    name: str
    state: str
    is_alive: bool
    position: list[float]
    energy_fraction: float
    emergences: dict[str, bool]
    target: dict[str, Any] | None


class OrganismDetailResponse(OrganismSummaryResponse):
    genes: dict[str, float]
    phenotype: dict[str, Any]
    kills: int
    food_eaten: int
    carcasses_eaten: int
    searches: int
    plans: int
    death_cause: str | None


class PaginatedOrganismList(BaseModel):
    organisms: list[OrganismSummaryResponse]
    total: int
    page: int
    page_size: int


class PathResponse(BaseModel):
    organism_id: str
    found: bool
    total_cost: int
    path: list[list[int]]
    remaining: list[list[float]]
    trace: dict[str, Any] | None = None


# === Metrics ===

class SummaryResponse(BaseModel):
    total_generations: int
    population_size: int
    best_fitness: float
    final_mean_fitness: float
    mean_survival_rate: float
    total_kills: int
    total_deaths: int
    best_chromosome: dict[str, float]


class TimeSeriesResponse(BaseModel):
    field: str
    generations: list[int]
    values: list[Any]


# === Presets ===

class PresetInfo(BaseModel):
    name: str
    config: dict[str, Any]
