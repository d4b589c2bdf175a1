"""Tests for SimulationConfig."""

import logging

import pytest

from slopelife.core.config import PARAMETER_RANGES, SimulationConfig
from slopelife.core.genome import GenomeLayout


class TestConfigDefaults:
    def test_default_experiment_name(self):
        c = SimulationConfig()
        assert c.experiment_name == "default"

    def test_genetic_algorithm_defaults(self):
        c = SimulationConfig()
        assert c.population_size == 30
        assert c.elite_count == 4
        assert c.tournament_size == 3
        assert c.crossover_rate == 0.9
        assert c.mutation_rate == 0.08
        assert c.mutation_step == 0.1
        assert c.evaluation_seconds == 20.0

    def test_resource_defaults(self):
        c = SimulationConfig()
        assert c.resource_count == 50
        assert c.resource_nutrition == 10.0
        assert c.respawn_delay == 8.0
        assert c.spawn_max_tries == 200

    def test_grouped_defaults_present(self):
        c = SimulationConfig()
        assert "perception_radius" in c.navigation_config
        assert "carnivore_min_aggression" in c.phenotype_config
        assert set(c.fitness_bonuses) == {
            "can_fly", "is_carnivore", "is_scavenging", "can_cautious_pathing",
        }

    def test_ticks_per_generation(self):
        c = SimulationConfig(evaluation_seconds=2.0, tick_seconds=0.1)
        assert c.ticks_per_generation == 20


class TestGenomeLayoutIntegration:
    def test_lazy_genome_layout(self):
        c = SimulationConfig()
        layout = c.genome_layout
        assert isinstance(layout, GenomeLayout)
        assert layout.count == 9

    def test_genome_layout_cached(self):
        c = SimulationConfig()
        assert c.genome_layout is c.genome_layout


class TestClamping:
    def test_out_of_range_values_clamped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="slopelife.core.config"):
            c = SimulationConfig(resource_count=10_000, resource_nutrition=-3.0)
        assert c.resource_count == PARAMETER_RANGES["resource_count"][1]
        assert c.resource_nutrition == PARAMETER_RANGES["resource_nutrition"][0]
        assert "resource_count" in caplog.text

    def test_elite_count_capped_at_population(self):
        c = SimulationConfig(population_size=5, elite_count=9)
        assert c.elite_count == 5

    def test_int_fields_rounded(self):
        c = SimulationConfig(population_size=12.6)
        assert c.population_size == 13
        assert isinstance(c.population_size, int)

    def test_in_range_values_untouched(self, caplog):
        with caplog.at_level(logging.WARNING, logger="slopelife.core.config"):
            c = SimulationConfig(terrain_width=20, mutation_rate=0.2)
        assert c.terrain_width == 20
        assert c.mutation_rate == 0.2
        assert caplog.text == ""


class TestSerialization:
    def test_to_dict_excludes_cache(self):
        c = SimulationConfig()
        _ = c.genome_layout
        d = c.to_dict()
        assert "_genome_layout" not in d
        assert d["population_size"] == 30

    def test_json_roundtrip(self):
        c = SimulationConfig(experiment_name="rt", random_seed=3, crossover_strategy="blend")
        restored = SimulationConfig.from_json(c.to_json())
        assert restored == c

    def test_from_dict_merges_grouped_fields(self):
        c = SimulationConfig.from_dict({"navigation_config": {"perception_radius": 4.0}})
        assert c.navigation_config["perception_radius"] == 4.0
        assert c.navigation_config["search_interval"] == 0.5

    def test_from_dict_unknown_field_raises(self):
        with pytest.raises(TypeError):
            SimulationConfig.from_dict({"no_such_field": 1})


class TestEnvironment:
    def test_from_env_reads_prefixed_variables(self):
        env = {
            "SLOPELIFE_POPULATION_SIZE": "12",
            "SLOPELIFE_RANDOM_SEED": "5",
            "SLOPELIFE_TERRAIN_GENERATOR": "flat",
            "SLOPELIFE_EVALUATION_SECONDS": "7.5",
            "UNRELATED": "1",
        }
        c = SimulationConfig.from_env(env)
        assert c.population_size == 12
        assert c.random_seed == 5
        assert c.terrain_generator == "flat"
        assert c.evaluation_seconds == 7.5

    def test_overrides_win(self):
        c = SimulationConfig.from_env({"SLOPELIFE_POPULATION_SIZE": "12"}, population_size=3)
        assert c.population_size == 3

    def test_none_values(self):
        c = SimulationConfig.from_env({"SLOPELIFE_TERRAIN_SEED": "none"})
        assert c.terrain_seed is None

    def test_env_values_are_clamped(self):
        c = SimulationConfig.from_env({"SLOPELIFE_TERRAIN_WIDTH": "1000"})
        assert c.terrain_width == PARAMETER_RANGES["terrain_width"][1]


class TestDiff:
    def test_diff_lists_changed_fields(self):
        a = SimulationConfig()
        b = SimulationConfig(resource_count=10)
        diffs = a.diff(b)
        assert diffs == {"resource_count": (50, 10)}

    def test_diff_empty_for_equal_configs(self):
        assert SimulationConfig().diff(SimulationConfig()) == {}
