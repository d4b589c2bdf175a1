"""Tests for ExperimentRunner."""

import numpy as np
import pytest

from slopelife.core.config import SimulationConfig
from slopelife.experiment.runner import (
    ComparisonResult,
    ExperimentResult,
    ExperimentRunner,
)


def _make_config(**overrides) -> SimulationConfig:
    params = dict(
        random_seed=42,
        population_size=4,
        elite_count=1,
        generations_to_run=2,
        evaluation_seconds=1.0,
        terrain_width=10,
        terrain_height=10,
        terrain_generator="flat",
        resource_count=8,
    )
    params.update(overrides)
    return SimulationConfig(**params)


class TestRunExperiment:
    def test_run_single_experiment(self):
        result = ExperimentRunner().run_experiment(_make_config())
        assert isinstance(result, ExperimentResult)
        assert len(result.history) == 2
        assert len(result.metrics) == 2
        assert result.best_fitness >= result.final_mean_fitness
        assert 0.0 <= result.mean_survival_rate <= 1.0
        assert result.best_chromosome.shape == (9,)
        assert list(result.best_genes())[0] == "mass"

    def test_run_without_metrics(self):
        result = ExperimentRunner().run_experiment(_make_config(), collect_metrics=False)
        assert result.metrics == []
        assert len(result.history) == 2

    def test_generations_override(self):
        result = ExperimentRunner().run_experiment(_make_config(), generations=1)
        assert len(result.history) == 1


class TestCompareExperiments:
    def test_compare_two(self):
        runner = ExperimentRunner()
        comparison = runner.compare_experiments({
            "few": _make_config(resource_count=2),
            "many": _make_config(resource_count=40),
        })
        assert isinstance(comparison, ComparisonResult)
        assert set(comparison.results) == {"few", "many"}
        assert comparison.config_diffs["few_vs_many"] == {"resource_count": (2, 40)}

    def test_ab_test_labels(self):
        comparison = ExperimentRunner().run_ab_test(
            _make_config(), _make_config(crossover_strategy="blend"),
            label_a="uniform", label_b="blend",
        )
        assert set(comparison.results) == {"uniform", "blend"}
        assert "uniform_vs_blend" in comparison.config_diffs

    def test_ranking_orders_by_best_fitness(self):
        comparison = ExperimentRunner().compare_experiments(
            {"a": _make_config(random_seed=1), "b": _make_config(random_seed=2)},
            generations=1,
        )
        ranking = comparison.ranking()
        assert {label for label, _ in ranking} == {"a", "b"}
        assert ranking[0][1] >= ranking[1][1]

    def test_single_config_has_no_diffs(self):
        comparison = ExperimentRunner().compare_experiments({"only": _make_config()})
        assert comparison.config_diffs == {}


class TestSweepAndSeeds:
    def test_parameter_sweep(self):
        results = ExperimentRunner().run_parameter_sweep(
            _make_config(), "mutation_rate", [0.0, 0.5], generations=1,
        )
        assert list(results) == ["mutation_rate=0.0", "mutation_rate=0.5"]
        assert results["mutation_rate=0.5"].config.mutation_rate == 0.5
        assert results["mutation_rate=0.0"].config.experiment_name == "sweep_mutation_rate=0.0"

    def test_sweep_does_not_mutate_base(self):
        base = _make_config()
        ExperimentRunner().run_parameter_sweep(base, "resource_count", [3], generations=1)
        assert base.resource_count == 8

    def test_multi_seed(self):
        results = ExperimentRunner().run_multi_seed(_make_config(), [1, 2], generations=1)
        assert [r.config.random_seed for r in results] == [1, 2]
        assert all(r.metrics == [] for r in results)

    def test_same_seed_same_outcome(self):
        runner = ExperimentRunner()
        a, b = runner.run_multi_seed(_make_config(), [7, 7], generations=2)
        assert a.best_fitness == pytest.approx(b.best_fitness)
        assert np.array_equal(a.best_chromosome, b.best_chromosome)
