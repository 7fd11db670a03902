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
Builtin graph topologies.

Small standard graphs for examples and tests. Vertex numbering is chosen so
the last vertex (the sink) sits at a natural "end" of the topology: the far
end of a path, the hub-free leaf of a star, the corner of a grid.
"""

from typing import Optional, Union

import numpy as np

from qlsolver.utils.random_source import RandomSource, as_random_source

from .weighted_graph import WeightedGraph


def path_graph(n: int, weight: float = 1.0) -> WeightedGraph:
    """
    Path 0 - 1 - ... - (n-1).

    Examples
    --------
    >>> g = path_graph(3)
    >>> g.copy_degree_vector()
    array([1., 2., 1.])
    """
    if n < 2:
        raise ValueError(f"path_graph needs n >= 2, got {n}")
    if weight <= 0:
        raise ValueError(f"weight must be positive, got {weight}")
    return WeightedGraph.from_edges(n, [(i, i + 1, weight) for i in range(n - 1)])


def cycle_graph(n: int, weight: float = 1.0) -> WeightedGraph:
    """Cycle 0 - 1 - ... - (n-1) - 0."""
    if n < 3:
        raise ValueError(f"cycle_graph needs n >= 3, got {n}")
    if weight <= 0:
        raise ValueError(f"weight must be positive, got {weight}")
    return WeightedGraph.from_edges(n, [(i, (i + 1) % n, weight) for i in range(n)])


def complete_graph(n: int, weight: float = 1.0) -> WeightedGraph:
    """Complete graph K_n."""
    if n < 2:
        raise ValueError(f"complete_graph needs n >= 2, got {n}")
    if weight <= 0:
        raise ValueError(f"weight must be positive, got {weight}")
    W = np.full((n, n), float(weight))
    return WeightedGraph(W)


def star_graph(n: int, weight: float = 1.0) -> WeightedGraph:
    """
    Star with hub 0 and leaves 1..n-1.

    The sink n-1 is a leaf.
    """
    if n < 2:
        raise ValueError(f"star_graph needs n >= 2, got {n}")
    if weight <= 0:
        raise ValueError(f"weight must be positive, got {weight}")
    return WeightedGraph.from_edges(n, [(0, i, weight) for i in range(1, n)])


def grid_graph(rows: int, cols: int, weight: float = 1.0) -> WeightedGraph:
    """
    rows x cols lattice, vertex (r, c) has index r*cols + c.

    The sink is the bottom-right corner.
    """
    if rows < 1 or cols < 1 or rows * cols < 2:
        raise ValueError(f"grid_graph needs at least 2 vertices, got {rows}x{cols}")
    if weight <= 0:
        raise ValueError(f"weight must be positive, got {weight}")

    edges = []
    for r in range(rows):
        for c in range(cols):
            i = r * cols + c
            if c + 1 < cols:
                edges.append((i, i + 1, weight))
            if r + 1 < rows:
                edges.append((i, i + cols, weight))
    return WeightedGraph.from_edges(rows * cols, edges)


def random_connected_graph(
    n: int,
    edge_probability: float = 0.3,
    weight_range: tuple = (1.0, 1.0),
    rng: Optional[Union[RandomSource, int]] = None,
) -> WeightedGraph:
    """
    Random connected graph: a random spanning tree plus Erdos-Renyi edges.

    Parameters
    ----------
    n : int
        Number of vertices
    edge_probability : float, default=0.3
        Probability of each extra edge
    weight_range : tuple, default=(1.0, 1.0)
        Edge weights drawn uniformly from [low, high]
    rng : Optional[Union[RandomSource, int]]
        Random source or seed

    Examples
    --------
    >>> g = random_connected_graph(10, edge_probability=0.2, rng=0)
    >>> g.num_vertices()
    10
    """
    if n < 2:
        raise ValueError(f"random_connected_graph needs n >= 2, got {n}")
    if not 0.0 <= edge_probability <= 1.0:
        raise ValueError(f"edge_probability must be in [0, 1], got {edge_probability}")
    low, high = weight_range
    if low <= 0 or high < low:
        raise ValueError(f"weight_range must satisfy 0 < low <= high, got {weight_range}")

    rng = as_random_source(rng)

    def draw_weight():
        return low + (high - low) * rng.uniform()

    W = np.zeros((n, n))

    # Random spanning tree: attach each vertex to an earlier one
    order = np.argsort(rng.uniform(n))
    for k in range(1, n):
        u = order[k]
        v = order[rng.randint(k)]
        W[u, v] = W[v, u] = draw_weight()

    for u in range(n):
        for v in range(u + 1, n):
            if W[u, v] == 0 and rng.uniform() < edge_probability:
                W[u, v] = W[v, u] = draw_weight()

    return WeightedGraph(W)
