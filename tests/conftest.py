"""
Shared test configuration.

Clears ``SLOPELIFE_*`` environment variables so a developer's ``.env``
cannot leak into test configs, and provides small, fast configs.
"""

import os

import pytest

from slopelife.core.config import ENV_PREFIX, SimulationConfig


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Drop any SLOPELIFE_* variables for the duration of each test."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def small_config():
    """Flat 10x10 world, 6 organisms, 2-second evaluations."""
    return SimulationConfig(
        experiment_name="test",
        random_seed=7,
        population_size=6,
        elite_count=2,
        generations_to_run=3,
        evaluation_seconds=2.0,
        terrain_width=10,
        terrain_height=10,
        terrain_generator="flat",
        resource_count=10,
    )
