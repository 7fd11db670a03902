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
Weighted Undirected Graph
=========================

Reference implementation of the graph collaborator the solver consumes
through GraphProtocol.

A graph on n vertices is stored as a dense symmetric weight matrix W with
zero diagonal. Everything the solver needs is derived from W:

    d[i]    = sum_j W[i, j]            (weighted degree)
    P[i, j] = W[i, j] / d[i]           (random-walk transition matrix)
    L       = diag(d) - W              (graph Laplacian)

L is symmetric positive semi-definite with null space spanned by the
all-ones vector when the graph is connected, so L·x = b is solvable
exactly when sum(b) = 0, and the solution is unique up to an additive
constant.

Vertex n-1 is the sink used by the solver as the normalizing reference.

Examples
--------
>>> W = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=float)
>>> g = WeightedGraph(W)
>>> g.copy_degree_vector()
array([1., 2., 1.])
>>> g.copy_transition_matrix()[1]
array([0.5, 0. , 0.5])
"""

from typing import Iterable, Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from qlsolver.types import SquareMatrix, VertexVector

Edge = Union[Tuple[int, int], Tuple[int, int, float]]


class WeightedGraph:
    """
    Connected weighted undirected graph on vertices 0..n-1.

    Parameters
    ----------
    weights : np.ndarray
        Symmetric (n, n) matrix of non-negative edge weights. The diagonal
        is ignored (self loops carry no current in a Laplacian).
    validate : bool, default=True
        Check symmetry, non-negativity, positive degrees and connectivity.

    Raises
    ------
    ValueError
        If the matrix is not square, has fewer than 2 vertices, is
        asymmetric, has negative or non-finite weights, has an isolated
        vertex, or is disconnected.
    """

    def __init__(self, weights: SquareMatrix, validate: bool = True):
        W = np.array(weights, dtype=np.float64)

        if W.ndim != 2 or W.shape[0] != W.shape[1]:
            raise ValueError(f"weights must be square, got shape {W.shape}")
        if W.shape[0] < 2:
            raise ValueError(f"graph needs at least 2 vertices, got {W.shape[0]}")

        np.fill_diagonal(W, 0.0)

        if validate:
            self._validate(W)

        self._W = W
        self._n = W.shape[0]
        self._d = W.sum(axis=1)

    @staticmethod
    def _validate(W: np.ndarray):
        if not np.all(np.isfinite(W)):
            raise ValueError("weights must be finite")
        if np.any(W < 0):
            raise ValueError("weights must be non-negative")
        if not np.allclose(W, W.T):
            raise ValueError("weights must be symmetric (undirected graph)")

        d = W.sum(axis=1)
        isolated = np.where(d <= 0)[0]
        if isolated.size:
            raise ValueError(
                f"every vertex needs positive degree, isolated vertices: {isolated.tolist()}"
            )

        if not _is_connected(W):
            raise ValueError("graph must be connected")

    @classmethod
    def from_edges(
        cls,
        n: int,
        edges: Iterable[Edge],
        validate: bool = True,
    ) -> "WeightedGraph":
        """
        Build a graph from an edge list.

        Parameters
        ----------
        n : int
            Number of vertices
        edges : Iterable[Edge]
            (u, v) pairs with unit weight or (u, v, w) triples. Repeated
            edges accumulate their weights.

        Examples
        --------
        >>> g = WeightedGraph.from_edges(3, [(0, 1), (1, 2, 2.0)])
        >>> g.copy_degree_vector()
        array([1., 3., 2.])
        """
        if n < 2:
            raise ValueError(f"graph needs at least 2 vertices, got {n}")

        W = np.zeros((n, n))
        for edge in edges:
            if len(edge) == 2:
                u, v = edge
                w = 1.0
            elif len(edge) == 3:
                u, v, w = edge
            else:
                raise ValueError(f"edge must be (u, v) or (u, v, w), got {edge!r}")

            if not (0 <= u < n and 0 <= v < n):
                raise ValueError(f"edge {edge!r} references a vertex outside 0..{n - 1}")
            if u == v:
                continue
            W[u, v] += w
            W[v, u] += w

        return cls(W, validate=validate)

    # ========================================================================
    # GraphProtocol accessors
    # ========================================================================

    def num_vertices(self) -> int:
        return self._n

    def copy_transition_matrix(self) -> SquareMatrix:
        return self._W / self._d[:, None]

    def copy_degree_vector(self) -> VertexVector:
        return self._d.copy()

    def copy_laplacian_matrix(self) -> SquareMatrix:
        return np.diag(self._d) - self._W

    # ========================================================================
    # Convenience
    # ========================================================================

    def copy_weight_matrix(self) -> SquareMatrix:
        return self._W.copy()

    @property
    def sink(self) -> int:
        """Index of the sink vertex (always n-1)."""
        return self._n - 1

    def num_edges(self) -> int:
        return int(np.count_nonzero(np.triu(self._W)))

    def neighbors(self, i: int) -> np.ndarray:
        return np.nonzero(self._W[i])[0]

    def exact_solution(self, b: VertexVector) -> VertexVector:
        """
        Zero-mean solution of L·x = b via the pseudo-inverse.

        Intended for validating the randomized solver on small graphs.
        """
        b = np.asarray(b, dtype=np.float64)
        x = np.linalg.pinv(self.copy_laplacian_matrix()) @ b
        return x - x.mean()

    def __repr__(self) -> str:
        return f"WeightedGraph(n={self._n}, edges={self.num_edges()})"


def _is_connected(W: np.ndarray) -> bool:
    """True if the non-zero pattern of W forms a single component."""
    n_components, _ = connected_components(csr_matrix(W > 0), directed=False)
    return n_components == 1
