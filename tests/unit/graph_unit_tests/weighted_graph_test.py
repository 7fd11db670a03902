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
Unit tests for WeightedGraph and the built-in graph constructors

Tests cover:
- Construction from matrices and edge lists
- Validation (shape, symmetry, weights, isolated vertices, connectivity)
- GraphProtocol accessors (transition matrix, degrees, Laplacian)
- Exact reference solutions
- Built-in families and random connected graphs
"""

import numpy as np
import pytest

from qlsolver import (
    GraphProtocol,
    WeightedGraph,
    complete_graph,
    cycle_graph,
    grid_graph,
    path_graph,
    random_connected_graph,
    star_graph,
)
from qlsolver.types import check_graph


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:
    """Building graphs from matrices and edge lists."""

    def test_from_matrix(self):
        W = np.array([[0.0, 1.0, 0.0], [1.0, 0.0, 2.0], [0.0, 2.0, 0.0]])
        g = WeightedGraph(W)

        assert g.num_vertices() == 3
        assert g.num_edges() == 2
        np.testing.assert_array_equal(g.copy_degree_vector(), [1.0, 3.0, 2.0])

    def test_diagonal_is_ignored(self):
        W = np.array([[5.0, 1.0], [1.0, 3.0]])
        g = WeightedGraph(W)

        np.testing.assert_array_equal(g.copy_weight_matrix(), [[0.0, 1.0], [1.0, 0.0]])
        np.testing.assert_array_equal(g.copy_degree_vector(), [1.0, 1.0])

    def test_input_is_copied(self):
        W = np.array([[0.0, 1.0], [1.0, 0.0]])
        g = WeightedGraph(W)
        W[0, 1] = 7.0

        assert g.copy_weight_matrix()[0, 1] == 1.0

    def test_from_edges_unit_and_weighted(self):
        g = WeightedGraph.from_edges(3, [(0, 1), (1, 2, 2.0)])
        np.testing.assert_array_equal(g.copy_degree_vector(), [1.0, 3.0, 2.0])

    def test_from_edges_accumulates_repeats(self):
        g = WeightedGraph.from_edges(2, [(0, 1), (1, 0, 2.0)])
        assert g.copy_weight_matrix()[0, 1] == 3.0

    def test_from_edges_skips_self_loops(self):
        g = WeightedGraph.from_edges(2, [(0, 0, 4.0), (0, 1)])
        assert g.copy_degree_vector()[0] == 1.0

    def test_sink_is_last_vertex(self):
        assert path_graph(5).sink == 4

    def test_repr(self):
        assert repr(path_graph(3)) == "WeightedGraph(n=3, edges=2)"


class TestValidation:
    """Invalid graphs raise ValueError."""

    def test_not_square(self):
        with pytest.raises(ValueError, match="square"):
            WeightedGraph(np.zeros((2, 3)))

    def test_single_vertex(self):
        with pytest.raises(ValueError, match="at least 2 vertices"):
            WeightedGraph(np.zeros((1, 1)))

    def test_asymmetric(self):
        with pytest.raises(ValueError, match="symmetric"):
            WeightedGraph(np.array([[0.0, 1.0], [2.0, 0.0]]))

    def test_negative_weight(self):
        with pytest.raises(ValueError, match="non-negative"):
            WeightedGraph(np.array([[0.0, -1.0], [-1.0, 0.0]]))

    def test_non_finite_weight(self):
        with pytest.raises(ValueError, match="finite"):
            WeightedGraph(np.array([[0.0, np.inf], [np.inf, 0.0]]))

    def test_isolated_vertex(self):
        W = np.zeros((3, 3))
        W[0, 1] = W[1, 0] = 1.0
        with pytest.raises(ValueError, match="isolated vertices: \\[2\\]"):
            WeightedGraph(W)

    def test_disconnected(self):
        g_edges = [(0, 1), (2, 3)]
        with pytest.raises(ValueError, match="connected"):
            WeightedGraph.from_edges(4, g_edges)

    def test_three_components(self):
        with pytest.raises(ValueError, match="connected"):
            WeightedGraph.from_edges(6, [(0, 1), (2, 3), (4, 5), (1, 0, 2.0)])

    def test_long_path_is_connected(self):
        """Connectivity is found however far the last vertex is from vertex 0."""
        edges = [(i, i + 1) for i in range(199)]
        assert WeightedGraph.from_edges(200, edges).num_vertices() == 200

    def test_connectivity_ignores_weight_values(self):
        g = WeightedGraph.from_edges(3, [(0, 1, 1e-9), (1, 2, 1e9)])
        assert g.num_edges() == 2

    def test_validation_can_be_skipped(self):
        g = WeightedGraph.from_edges(4, [(0, 1), (2, 3)], validate=False)
        assert g.num_vertices() == 4

    def test_bad_edge_tuple(self):
        with pytest.raises(ValueError, match="\\(u, v\\) or \\(u, v, w\\)"):
            WeightedGraph.from_edges(3, [(0, 1, 1.0, 9)])

    def test_edge_out_of_range(self):
        with pytest.raises(ValueError, match="outside 0..2"):
            WeightedGraph.from_edges(3, [(0, 3)])


# ============================================================================
# GraphProtocol Accessors
# ============================================================================

class TestAccessors:
    """Matrices derived from the weights."""

    def test_satisfies_protocol(self):
        g = path_graph(3)
        assert isinstance(g, GraphProtocol)
        check_graph(g)

    def test_check_graph_rejects_other_objects(self):
        with pytest.raises(TypeError, match="GraphProtocol"):
            check_graph(np.eye(3))

    def test_transition_matrix_is_row_stochastic(self):
        g = random_connected_graph(8, weight_range=(0.5, 3.0), rng=1)
        P = g.copy_transition_matrix()

        np.testing.assert_allclose(P.sum(axis=1), np.ones(8))
        assert np.all(np.diag(P) == 0.0)

    def test_transition_matrix_weights(self):
        g = WeightedGraph.from_edges(3, [(0, 1), (1, 2, 3.0)])
        P = g.copy_transition_matrix()

        np.testing.assert_allclose(P[1], [0.25, 0.0, 0.75])

    def test_laplacian(self):
        L = path_graph(3).copy_laplacian_matrix()

        np.testing.assert_array_equal(
            L, [[1.0, -1.0, 0.0], [-1.0, 2.0, -1.0], [0.0, -1.0, 1.0]]
        )
        np.testing.assert_allclose(L.sum(axis=1), 0.0)

    def test_copies_are_independent(self):
        g = path_graph(3)
        d = g.copy_degree_vector()
        d[:] = 0.0

        assert g.copy_degree_vector()[1] == 2.0

    def test_neighbors(self):
        np.testing.assert_array_equal(star_graph(4).neighbors(0), [1, 2, 3])


class TestExactSolution:
    """Pseudo-inverse reference solution."""

    def test_path(self):
        x = path_graph(3).exact_solution([1.0, 0.0, -1.0])
        np.testing.assert_allclose(x, [1.0, 0.0, -1.0], atol=1e-12)

    def test_solves_system(self):
        g = grid_graph(3, 4)
        b = np.zeros(12)
        b[0], b[5], b[11] = 2.0, -0.5, -1.5

        x = g.exact_solution(b)

        np.testing.assert_allclose(g.copy_laplacian_matrix() @ x, b, atol=1e-10)
        assert x.sum() == pytest.approx(0.0, abs=1e-10)


# ============================================================================
# Built-in Graphs
# ============================================================================

class TestBuiltinGraphs:
    """Standard families."""

    def test_path_graph(self):
        g = path_graph(4, weight=2.0)
        np.testing.assert_array_equal(g.copy_degree_vector(), [2.0, 4.0, 4.0, 2.0])

    def test_cycle_graph(self):
        g = cycle_graph(5)
        assert g.num_edges() == 5
        np.testing.assert_array_equal(g.copy_degree_vector(), np.full(5, 2.0))

    def test_complete_graph(self):
        g = complete_graph(4)
        assert g.num_edges() == 6
        np.testing.assert_array_equal(g.copy_degree_vector(), np.full(4, 3.0))

    def test_star_graph(self):
        d = star_graph(5).copy_degree_vector()
        np.testing.assert_array_equal(d, [4.0, 1.0, 1.0, 1.0, 1.0])

    def test_grid_graph_indexing(self):
        g = grid_graph(2, 3)
        # (0, 1) is index 1, neighbors (0, 0), (0, 2), (1, 1)
        np.testing.assert_array_equal(g.neighbors(1), [0, 2, 4])
        assert g.num_edges() == 7

    def test_single_row_grid_is_path(self):
        np.testing.assert_array_equal(
            grid_graph(1, 4).copy_weight_matrix(), path_graph(4).copy_weight_matrix()
        )

    @pytest.mark.parametrize(
        "builder, args",
        [
            (path_graph, (1,)),
            (cycle_graph, (2,)),
            (complete_graph, (1,)),
            (star_graph, (1,)),
            (grid_graph, (1, 1)),
            (random_connected_graph, (1,)),
        ],
    )
    def test_too_small(self, builder, args):
        with pytest.raises(ValueError):
            builder(*args)

    def test_non_positive_weight(self):
        with pytest.raises(ValueError, match="weight must be positive"):
            path_graph(3, weight=0.0)


class TestRandomConnectedGraph:
    """Random spanning tree plus extra edges."""

    @pytest.mark.parametrize("seed", range(5))
    def test_always_connected(self, seed):
        # edge_probability=0 leaves just the spanning tree
        g = random_connected_graph(12, edge_probability=0.0, rng=seed)
        assert g.num_edges() == 11

    def test_complete_when_probability_one(self):
        g = random_connected_graph(6, edge_probability=1.0, rng=0)
        assert g.num_edges() == 15

    def test_weight_range(self):
        g = random_connected_graph(10, edge_probability=0.5, weight_range=(2.0, 3.0), rng=3)
        W = g.copy_weight_matrix()
        weights = W[W > 0]

        assert np.all(weights >= 2.0)
        assert np.all(weights <= 3.0)

    def test_reproducible(self):
        a = random_connected_graph(9, rng=4).copy_weight_matrix()
        b = random_connected_graph(9, rng=4).copy_weight_matrix()
        np.testing.assert_array_equal(a, b)

    def test_invalid_probability(self):
        with pytest.raises(ValueError, match="edge_probability"):
            random_connected_graph(5, edge_probability=1.5)

    def test_invalid_weight_range(self):
        with pytest.raises(ValueError, match="weight_range"):
            random_connected_graph(5, weight_range=(2.0, 1.0))
