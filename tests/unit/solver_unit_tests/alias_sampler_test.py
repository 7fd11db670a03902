# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Unit tests for the alias sampler

Tests cover:
- Table construction (exactness, ranges, degenerate rows)
- Input validation
- Per-vertex tables built from a transition matrix
- Sampling statistics (chi-squared, max deviation)
- Reproducibility under a fixed seed
"""

import numpy as np
import pytest
from scipy import stats

from qlsolver.graphs import complete_graph, path_graph, random_connected_graph
from qlsolver.solver.alias_sampler import AliasSampler, build_alias_table, sample_alias
from qlsolver.utils.random_source import RandomSource


def implied_distribution(prob, alias):
    """Distribution an alias table actually samples from."""
    n = prob.shape[0]
    q = prob.copy()
    for k in range(n):
        q[alias[k]] += 1.0 - prob[k]
    return q / n


# ============================================================================
# Table Construction
# ============================================================================

class TestBuildAliasTable:
    """Test build_alias_table."""

    def test_uniform_row(self):
        """Uniform rows need no aliasing."""
        prob, alias = build_alias_table(np.full(4, 0.25))

        np.testing.assert_allclose(prob, np.ones(4))
        np.testing.assert_array_equal(alias, np.arange(4))

    def test_point_mass(self):
        """All mass on one outcome."""
        prob, alias = build_alias_table(np.array([0.0, 1.0, 0.0]))

        np.testing.assert_allclose(implied_distribution(prob, alias), [0.0, 1.0, 0.0])
        assert prob[1] == 1.0
        assert alias[0] == 1 and alias[2] == 1

    def test_path_middle_row(self):
        """Middle vertex of a path splits evenly between its neighbors."""
        prob, alias = build_alias_table(np.array([0.5, 0.0, 0.5]))

        np.testing.assert_allclose(implied_distribution(prob, alias), [0.5, 0.0, 0.5])
        assert prob[1] == 0.0

    @pytest.mark.parametrize("n", [2, 3, 7, 25])
    def test_random_rows_are_exact(self, n):
        """Implied distribution equals the input row."""
        rng = np.random.RandomState(n)
        for _ in range(10):
            p = rng.dirichlet(np.ones(n))
            prob, alias = build_alias_table(p)
            np.testing.assert_allclose(implied_distribution(prob, alias), p, atol=1e-12)

    def test_sparse_rows_are_exact(self):
        """Rows with many zeros, as produced by sparse graphs."""
        p = np.zeros(10)
        p[[1, 4, 8]] = [0.2, 0.3, 0.5]
        prob, alias = build_alias_table(p)

        np.testing.assert_allclose(implied_distribution(prob, alias), p, atol=1e-12)

    def test_table_ranges(self):
        """prob within [0, 1], alias within [0, n)."""
        p = np.random.RandomState(0).dirichlet(np.ones(12) * 0.3)
        prob, alias = build_alias_table(p)

        assert np.all(prob >= 0.0) and np.all(prob <= 1.0)
        assert np.all(alias >= 0) and np.all(alias < 12)
        assert alias.dtype.kind == "i"

    def test_accepts_lists(self):
        prob, alias = build_alias_table([0.25, 0.75])
        np.testing.assert_allclose(implied_distribution(prob, alias), [0.25, 0.75])


class TestBuildAliasTableValidation:
    """Test input validation of build_alias_table."""

    def test_negative_entry(self):
        with pytest.raises(ValueError, match="non-negative"):
            build_alias_table(np.array([1.2, -0.2]))

    def test_not_normalized(self):
        with pytest.raises(ValueError, match="sum to 1"):
            build_alias_table(np.array([0.5, 0.4]))

    def test_empty(self):
        with pytest.raises(ValueError, match="non-empty"):
            build_alias_table(np.array([]))

    def test_two_dimensional(self):
        with pytest.raises(ValueError, match="1-D"):
            build_alias_table(np.eye(2))

    def test_non_finite(self):
        with pytest.raises(ValueError, match="finite"):
            build_alias_table(np.array([np.nan, 1.0]))


# ============================================================================
# Per-vertex Tables
# ============================================================================

class TestAliasSamplerConstruction:
    """Test AliasSampler built from transition matrices."""

    def test_table_shapes(self):
        P = complete_graph(5).copy_transition_matrix()
        sampler = AliasSampler(P)

        assert sampler.n == 5
        assert sampler.prob_table.shape == (5, 5)
        assert sampler.alias_table.shape == (5, 5)

    def test_every_row_is_exact(self):
        """Each row's table reproduces that row of P."""
        P = random_connected_graph(8, edge_probability=0.4, weight_range=(0.5, 3.0), rng=3).copy_transition_matrix()
        sampler = AliasSampler(P)

        for i in range(8):
            q = implied_distribution(sampler.prob_table[i], sampler.alias_table[i])
            np.testing.assert_allclose(q, P[i], atol=1e-12)

    def test_skipped_rows_are_self_loops(self):
        """Rows past ``rows`` sample the vertex itself."""
        P = path_graph(3).copy_transition_matrix()
        sampler = AliasSampler(P, rows=2)

        rng = RandomSource(seed=0)
        draws = sampler.sample_many(np.full(100, 2), rng)
        np.testing.assert_array_equal(draws, 2)

    def test_rows_out_of_range(self):
        with pytest.raises(ValueError, match="rows must be in"):
            AliasSampler(np.eye(3), rows=4)

    def test_non_square(self):
        with pytest.raises(ValueError, match="square"):
            AliasSampler(np.ones((2, 3)) / 3)

    def test_bad_row_reports_index(self):
        P = np.array([[0.0, 1.0], [0.3, 0.3]])
        with pytest.raises(ValueError, match="row 1"):
            AliasSampler(P)

    def test_sink_row_not_validated_when_skipped(self):
        """The sink row may be anything when rows=n-1."""
        P = np.array([[0.0, 1.0], [0.0, 0.0]])
        sampler = AliasSampler(P, rows=1)
        assert sampler.sample(0, RandomSource(0)) == 1


# ============================================================================
# Sampling Statistics
# ============================================================================

class TestSamplingStatistics:
    """Empirical distributions converge to the rows."""

    def test_chi_squared_goodness_of_fit(self):
        """Alias samples pass a chi-squared test against P[i]."""
        g = random_connected_graph(10, edge_probability=0.5, weight_range=(1.0, 4.0), rng=11)
        P = g.copy_transition_matrix()
        sampler = AliasSampler(P)
        rng = RandomSource(seed=2024)

        n_samples = 20000
        for i in range(10):
            draws = sampler.sample_many(np.full(n_samples, i), rng)
            counts = np.bincount(draws, minlength=10)

            support = P[i] > 0
            # Never leaves the support
            assert counts[~support].sum() == 0

            expected = P[i][support] * n_samples
            _, p_value = stats.chisquare(counts[support], expected)
            assert p_value > 1e-4

    @pytest.mark.parametrize("n_samples", [1000, 10000, 100000])
    def test_max_deviation_shrinks(self, n_samples):
        """Max deviation stays within a few 1/sqrt(N)."""
        p = np.array([0.1, 0.2, 0.3, 0.4])
        P = np.tile(p, (4, 1))
        sampler = AliasSampler(P)

        freq = sampler.empirical_distribution(0, n_samples, rng=RandomSource(seed=5))
        assert np.max(np.abs(freq - p)) < 5.0 / np.sqrt(n_samples)

    def test_single_draw_sampler(self):
        """sample_alias with size=None returns a plain int in the support."""
        prob, alias = build_alias_table(np.array([0.5, 0.0, 0.5]))
        rng = RandomSource(seed=9)

        for _ in range(50):
            v = sample_alias(prob, alias, rng)
            assert isinstance(v, int)
            assert v in (0, 2)

    def test_sample_many_empty(self):
        sampler = AliasSampler(path_graph(3).copy_transition_matrix())
        out = sampler.sample_many(np.array([], dtype=int), RandomSource(0))
        assert out.shape == (0,)

    def test_empirical_distribution_invalid_count(self):
        sampler = AliasSampler(path_graph(3).copy_transition_matrix())
        with pytest.raises(ValueError, match="n_samples"):
            sampler.empirical_distribution(0, 0)


class TestReproducibility:
    """Same seed, same draws."""

    def test_same_seed_same_samples(self):
        sampler = AliasSampler(complete_graph(6).copy_transition_matrix())
        vertices = np.arange(6).repeat(50)

        a = sampler.sample_many(vertices, RandomSource(seed=42))
        b = sampler.sample_many(vertices, RandomSource(seed=42))
        np.testing.assert_array_equal(a, b)

    def test_independent_sources(self):
        """Two differently seeded sources give different streams."""
        sampler = AliasSampler(complete_graph(6).copy_transition_matrix())
        vertices = np.zeros(200, dtype=int)

        a = sampler.sample_many(vertices, RandomSource(seed=1))
        b = sampler.sample_many(vertices, RandomSource(seed=2))
        assert not np.array_equal(a, b)
