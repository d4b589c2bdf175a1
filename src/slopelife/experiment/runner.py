"""
Batch execution of slopelife experiments.

Runs one config to completion, several configs side by side (A/B or
N-way), a one-parameter sweep, or the same config under several seeds.
Every run is synchronous and owns its own engine and RNG, so results are
reproducible from the config alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from slopelife.core.config import SimulationConfig
from slopelife.core.engine import GenerationSnapshot, SimulationEngine
from slopelife.metrics.collector import GenerationMetrics, MetricsCollector


@dataclass
class ExperimentResult:
    """Outcome of running one config for its generations."""
    config: SimulationConfig
    history: list[GenerationSnapshot]
    metrics: list[GenerationMetrics]
    best_fitness: float
    final_mean_fitness: float
    mean_survival_rate: float
    best_chromosome: np.ndarray | None

    def best_genes(self) -> dict[str, float]:
        if self.best_chromosome is None:
            return {}
        return self.config.genome_layout.to_dict(self.best_chromosome)


@dataclass
class ComparisonResult:
    """Side-by-side outcomes keyed by label, plus how each config differs from the first."""
    results: dict[str, ExperimentResult]
    config_diffs: dict[str, Any]

    def ranking(self) -> list[tuple[str, float]]:
        """Labels ordered by best fitness reached, highest first."""
        return sorted(
            ((label, r.best_fitness) for label, r in self.results.items()),
            key=lambda item: item[1],
            reverse=True,
        )


def _derive(base: SimulationConfig, name: str, **changes: Any) -> SimulationConfig:
    """Fresh config equal to ``base`` except for ``changes``."""
    params = base.to_dict()
    params.update(changes)
    params["experiment_name"] = name
    return SimulationConfig.from_dict(params)


class ExperimentRunner:
    """Drives SimulationEngine runs and packages their outcomes."""

    def run_experiment(
        self,
        config: SimulationConfig,
        collect_metrics: bool = True,
        generations: int | None = None,
    ) -> ExperimentResult:
        collector = MetricsCollector(config) if collect_metrics else None
        history = SimulationEngine(config, collector=collector).run(generations)

        if not history:
            return ExperimentResult(config, history, [], 0.0, 0.0, 0.0, None)

        peak = max(history, key=lambda s: s.best_fitness)
        survival = [s.survivors / s.population_size for s in history if s.population_size]
        return ExperimentResult(
            config=config,
            history=history,
            metrics=list(collector.metrics_history) if collector else [],
            best_fitness=peak.best_fitness,
            final_mean_fitness=history[-1].mean_fitness,
            mean_survival_rate=float(np.mean(survival)) if survival else 0.0,
            best_chromosome=peak.best_chromosome.copy(),
        )

    def compare_experiments(
        self,
        configs: dict[str, SimulationConfig],
        collect_metrics: bool = True,
        generations: int | None = None,
    ) -> ComparisonResult:
        """Run every labelled config; diffs are taken against the first label."""
        results = {
            label: self.run_experiment(config, collect_metrics, generations)
            for label, config in configs.items()
        }

        labels = list(configs)
        diffs: dict[str, Any] = {}
        if labels:
            reference = configs[labels[0]]
            for label in labels[1:]:
                diffs[f"{labels[0]}_vs_{label}"] = reference.diff(configs[label])
        return ComparisonResult(results=results, config_diffs=diffs)

    def run_ab_test(
        self,
        config_a: SimulationConfig,
        config_b: SimulationConfig,
        label_a: str = "A",
        label_b: str = "B",
        collect_metrics: bool = True,
        generations: int | None = None,
    ) -> ComparisonResult:
        return self.compare_experiments(
            {label_a: config_a, label_b: config_b},
            collect_metrics=collect_metrics,
            generations=generations,
        )

    def run_parameter_sweep(
        self,
        base_config: SimulationConfig,
        param_name: str,
        values: list[Any],
        collect_metrics: bool = True,
        generations: int | None = None,
    ) -> dict[str, ExperimentResult]:
        """
        Run ``base_config`` once per value of one field.

        Args:
            base_config: Left untouched; each run gets a derived copy.
            param_name: A ``SimulationConfig`` field name.
            values: Values to try, in order.
            collect_metrics: Attach a MetricsCollector to each run.
            generations: Override for ``generations_to_run``.

        Returns:
            ``{"<param>=<value>": ExperimentResult}`` in sweep order.
        """
        sweep: dict[str, ExperimentResult] = {}
        for value in values:
            label = f"{param_name}={value}"
            config = _derive(base_config, f"sweep_{label}", **{param_name: value})
            sweep[label] = self.run_experiment(config, collect_metrics, generations)
        return sweep

    def run_multi_seed(
        self,
        config: SimulationConfig,
        seeds: list[int],
        collect_metrics: bool = False,
        generations: int | None = None,
    ) -> list[ExperimentResult]:
        """Repeat one config under each seed to gauge run-to-run spread."""
        return [
            self.run_experiment(
                _derive(config, f"{config.experiment_name}_seed{seed}", random_seed=seed),
                collect_metrics,
                generations,
            )
            for seed in seeds
        ]
