"""
Named experiment presets.

Each preset returns a SimulationConfig tuned to probe one pressure on the
evolving population: food supply, terrain, crossover operator, or how long
carcasses stay in the world.
"""

from __future__ import annotations

from slopelife.core.config import SimulationConfig


def baseline() -> SimulationConfig:
    """Standard baseline configuration with default parameters."""
    return SimulationConfig(
        experiment_name="baseline",
        random_seed=42,
        generations_to_run=50,
    )


def scarcity() -> SimulationConfig:
    """Few, meagre resources. Aggression gets the scarcity boost early."""
    return SimulationConfig(
        experiment_name="scarcity",
        random_seed=42,
        resource_count=10,
        resource_nutrition=5.0,
        respawn_delay=15.0,
    )


def abundance() -> SimulationConfig:
    """Plenty of rich food that comes back quickly."""
    return SimulationConfig(
        experiment_name="abundance",
        random_seed=42,
        resource_count=200,
        resource_nutrition=25.0,
        respawn_delay=2.0,
    )


def flat_world() -> SimulationConfig:
    """No slope anywhere; the slope-heuristic genes are under no pressure."""
    return SimulationConfig(
        experiment_name="flat_world",
        random_seed=42,
        terrain_generator="flat",
        max_abs_slope=0.0,
    )


def rugged_world() -> SimulationConfig:
    """Steep, high-frequency terrain. Walking is expensive; flight pays off."""
    return SimulationConfig(
        experiment_name="rugged_world",
        random_seed=42,
        max_abs_slope=15.0,
        terrain_noise_scale=0.2,
        terrain_frequency=2.5,
    )


def blend_crossover() -> SimulationConfig:
    """BLX-alpha crossover instead of uniform gene swaps."""
    return SimulationConfig(
        experiment_name="blend_crossover",
        random_seed=42,
        crossover_strategy="blend",
        blend_alpha=0.5,
    )


def carcass_persistence() -> SimulationConfig:
    """Carcasses survive two generation resets, feeding scavengers."""
    return SimulationConfig(
        experiment_name="carcass_persistence",
        random_seed=42,
        carcass_persist_generations=2,
    )


# Registry of all presets
PRESETS: dict[str, callable] = {
    "baseline": baseline,
    "scarcity": scarcity,
    "abundance": abundance,
    "flat_world": flat_world,
    "rugged_world": rugged_world,
    "blend_crossover": blend_crossover,
    "carcass_persistence": carcass_persistence,
}


def get_preset(name: str) -> SimulationConfig:
    """Get a preset config by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """Return list of available preset names."""
    return list(PRESETS.keys())
