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
Structural protocols for collaborators consumed by the solver.

The solver never looks inside a graph object; it only calls the accessors
declared here. Any object with these four methods can be solved on.
"""

from typing import Protocol, runtime_checkable

from .core import SquareMatrix, VertexVector


@runtime_checkable
class GraphProtocol(Protocol):
    """
    Read-only view of a weighted undirected graph with vertices 0..n-1.

    Vertex n-1 is the sink. Every ``copy_*`` accessor returns a fresh array
    that the caller owns and may mutate.
    """

    def num_vertices(self) -> int:
        """Number of vertices n."""
        ...

    def copy_transition_matrix(self) -> SquareMatrix:
        """Row-stochastic matrix P, P[i, j] = probability of forwarding i -> j."""
        ...

    def copy_degree_vector(self) -> VertexVector:
        """Weighted degree d[i] > 0 of every vertex."""
        ...

    def copy_laplacian_matrix(self) -> SquareMatrix:
        """Laplacian L = D - W, used only for residual checks."""
        ...


def check_graph(graph) -> None:
    """
    Raise TypeError if ``graph`` does not implement GraphProtocol.
    """
    if not isinstance(graph, GraphProtocol):
        raise TypeError(
            f"{graph.__class__.__name__} does not implement GraphProtocol. "
            f"Required methods: num_vertices, copy_transition_matrix, "
            f"copy_degree_vector, copy_laplacian_matrix"
        )
