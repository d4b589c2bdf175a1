"""Tests for GenomeLayout."""

import numpy as np
import pytest

from slopelife.core.genome import GENES, GenomeLayout


class TestGenomeLayout:
    def test_count_and_order(self):
        layout = GenomeLayout()
        assert layout.count == 9
        assert layout.names() == [g["name"] for g in GENES]
        assert layout.names()[0] == "mass"
        assert layout.names()[-1] == "camouflage"

    def test_named_indices(self):
        layout = GenomeLayout()
        assert layout.MASS == 0
        assert layout.UPPER_SLOPE_HEURISTIC == 5
        assert layout.gene_index("camouflage") == layout.CAMOUFLAGE

    def test_unknown_gene_raises(self):
        with pytest.raises(KeyError):
            GenomeLayout().gene_index("wings")

    def test_slope_genes_are_signed(self):
        layout = GenomeLayout()
        assert layout.domain(layout.UPPER_SLOPE_HEURISTIC) == (-1.0, 1.0)
        assert layout.domain(layout.LOWER_SLOPE_HEURISTIC) == (-1.0, 1.0)
        assert layout.domain(layout.MASS) == (0.0, 1.0)

    def test_bounds_are_copies(self):
        layout = GenomeLayout()
        low = layout.low
        low[0] = 99.0
        assert layout.low[0] == 0.0

    def test_empty_layout_rejected(self):
        with pytest.raises(ValueError):
            GenomeLayout([])


class TestChromosomeHelpers:
    def test_random_chromosome_within_domains(self):
        layout = GenomeLayout()
        rng = np.random.default_rng(0)
        for _ in range(20):
            c = layout.random_chromosome(rng)
            assert c.shape == (layout.count,)
            assert np.all(c >= layout.low)
            assert np.all(c <= layout.high)

    def test_random_chromosome_deterministic(self):
        layout = GenomeLayout()
        a = layout.random_chromosome(np.random.default_rng(3))
        b = layout.random_chromosome(np.random.default_rng(3))
        assert np.array_equal(a, b)

    def test_midpoint(self):
        layout = GenomeLayout()
        mid = layout.midpoint()
        assert mid[layout.MASS] == 0.5
        assert mid[layout.LOWER_SLOPE_HEURISTIC] == 0.0

    def test_clamp_returns_new_array(self):
        layout = GenomeLayout()
        c = np.full(layout.count, 2.0)
        c[layout.UPPER_SLOPE_HEURISTIC] = -3.0
        clamped = layout.clamp(c)
        assert clamped is not c
        assert clamped[layout.MASS] == 1.0
        assert clamped[layout.UPPER_SLOPE_HEURISTIC] == -1.0
        assert c[layout.MASS] == 2.0

    def test_clamp_gene(self):
        layout = GenomeLayout()
        assert layout.clamp_gene(layout.AGGRESSION, -0.5) == 0.0

    def test_validate_shape(self):
        layout = GenomeLayout()
        layout.validate(np.zeros(layout.count))
        with pytest.raises(ValueError):
            layout.validate(np.zeros(layout.count + 1))

    def test_to_dict(self):
        layout = GenomeLayout()
        d = layout.to_dict(layout.midpoint())
        assert list(d) == layout.names()
        assert d["danger_weight"] == 0.5
