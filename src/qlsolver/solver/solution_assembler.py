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
Solution Assembly
=================

Turns a stationary occupancy estimate into a solution of L·x = b.

For a stable network the busy fractions satisfy the flow balance
eta = beta·J + P^T eta (restricted to non-sink vertices). Dividing by the
degree gives potentials

    x[i] = (-b[n-1] / beta) * eta[i] / d[i]

with x[n-1] = 0 at the sink, which solve L·x = b. Since L is singular (its
null space is the all-ones vector) any shift x + c is also a solution, so x
is reported in a canonical form:

- **'mean'** (default): subtract mean(x), giving sum(x) = 0.
- **'degree'**: add the degree-weighted correction
  zstar * d[i] / sum(d) inside the bracket, with zstar = -sum(eta / d).

The two conventions are not numerically identical. 'mean' is canonical in
this package because it is the minimum-norm representative of the solution
family (the pseudo-inverse solution).
"""

import numpy as np

from qlsolver.types import DemandVector, GraphProtocol, VertexVector, check_graph
from qlsolver.utils.backend import to_numpy

CENTERINGS = ("mean", "degree")


def compute_zstar(eta: VertexVector, d: VertexVector) -> float:
    """Degree-weighted centering constant zstar = -sum(eta / d)."""
    return -float(np.sum(np.asarray(eta) / np.asarray(d)))


def compute_canonical_solution(
    graph: GraphProtocol,
    b: DemandVector,
    eta: VertexVector,
    beta: float,
    centering: str = "mean",
) -> VertexVector:
    """
    Build the centered solution x from a converged (beta, eta).

    Parameters
    ----------
    graph : GraphProtocol
        Graph the occupancy was simulated on
    b : DemandVector
        Demand vector, b[n-1] != 0
    eta : VertexVector
        Occupancy estimate, shape (n,)
    beta : float
        Injection scale eta was estimated at, beta > 0
    centering : str, default='mean'
        'mean' or 'degree'

    Returns
    -------
    VertexVector
        Solution x, shape (n,)

    Examples
    --------
    >>> g = path_graph(3)
    >>> x = compute_canonical_solution(g, [1., 0., -1.], np.array([0.32, 0.32, 0.]), 0.16)
    >>> x
    array([ 1.,  0., -1.])
    """
    check_graph(graph)
    if centering not in CENTERINGS:
        raise ValueError(f"Unknown centering '{centering}'. Choose from {CENTERINGS}")
    if not beta > 0:
        raise ValueError(f"beta must be positive, got {beta}")

    n = graph.num_vertices()
    b = to_numpy(b)
    eta = np.asarray(eta, dtype=np.float64)
    if b.shape != (n,) or eta.shape != (n,):
        raise ValueError(
            f"b and eta must have shape ({n},), got {b.shape} and {eta.shape}"
        )
    if b[-1] == 0:
        raise ValueError("b[n-1] must be non-zero")

    d = graph.copy_degree_vector()
    scale = -b[-1] / beta

    if centering == "mean":
        x = scale * (eta / d)
        return x - x.mean()

    zstar = compute_zstar(eta, d)
    return scale * (eta / d + zstar * (d / d.sum()))


def compute_error(graph: GraphProtocol, b: DemandVector, x: VertexVector) -> float:
    """
    RMS residual sqrt(sum((L·x - b)^2) / n).

    Diagnostic only; independent of the additive constant in x.
    """
    check_graph(graph)
    n = graph.num_vertices()
    L = graph.copy_laplacian_matrix()
    residual = L @ np.asarray(x, dtype=np.float64) - to_numpy(b)
    return float(np.sqrt(np.sum(residual**2) / n))
