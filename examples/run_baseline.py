#!/usr/bin/env python3
"""Run a baseline slopelife simulation and print results."""

import logging

from slopelife.core.config import SimulationConfig
from slopelife.core.engine import SimulationEngine
from slopelife.metrics.collector import MetricsCollector


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    config = SimulationConfig(
        experiment_name="baseline",
        population_size=30,
        generations_to_run=10,
        random_seed=42,
    )
    layout = config.genome_layout

    print(f"=== slopelife: {config.experiment_name} ===")
    print(f"Genome: {layout}")
    print(f"Population: {config.population_size}")
    print(f"Generations: {config.generations_to_run}")
    print(f"Terrain: {config.terrain_generator} {config.terrain_width}x{config.terrain_height}")
    print()

    collector = MetricsCollector(config)
    engine = SimulationEngine(config, collector=collector)
    history = engine.run()

    print(f"{'Gen':>4} {'Alive':>5} {'Deaths':>6} {'Kills':>5} {'Food':>5} "
          f"{'Best':>6} {'Mean':>6} {'Fly':>4} {'Carn':>4} {'Scav':>4} {'Caut':>4}")
    print("-" * 66)

    for snap in history:
        ec = snap.emergence_counts
        print(
            f"{snap.generation:4d} {snap.survivors:5d} {snap.deaths:6d} "
            f"{snap.kills:5d} {snap.food_eaten:5d} "
            f"{snap.best_fitness:6.3f} {snap.mean_fitness:6.3f} "
            f"{ec['can_fly']:4d} {ec['is_carnivore']:4d} "
            f"{ec['is_scavenging']:4d} {ec['can_cautious_pathing']:4d}"
        )

    final = history[-1]
    print()
    print(f"=== Final State (Generation {final.generation}) ===")
    print(f"Best fitness: {final.best_fitness:.3f}")
    print("\nBest chromosome:")
    for name, value in layout.to_dict(final.best_chromosome).items():
        print(f"  {name:22s}: {value:+.3f}")

    print("\nGene ranges (last generation):")
    for row in collector.trait_table():
        print(f"  {row['gene']:22s}: mean {row['mean']:+.3f}  "
              f"[{row['min']:+.3f}, {row['max']:+.3f}]")


if __name__ == "__main__":
    main()
