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
Solver Result Types

TypedDict containers returned by the simulator, the beta search and the
solver facade. Plain dicts keep results easy to inspect, serialize and
compare in tests.

Result flow:

    QueueSimulator.estimate_eta()       -> QueueOccupancyResult
    BetaSearch.compute_eta_at_stationarity() -> StationaryStateResult
    LaplacianSolver.solve_detailed()    -> LaplacianSolveResult
"""

from typing import List, Optional

from typing_extensions import TypedDict

from .core import VertexVector


class QueueOccupancyResult(TypedDict):
    """
    Result of one simulation run at a fixed beta.

    Attributes
    ----------
    eta : VertexVector
        Fraction of simulated steps in which each vertex served a packet,
        shape (n,). eta[n-1] is always 0.
    beta : float
        Injection scale used for the run
    n_steps : int
        Number of steps counted in eta's denominator
    n_epochs : int
        Number of epochs run (burn-in estimator: epochs of burn-in)
    converged : bool
        False if the run stopped on its step cap instead of converging
    convergence_stat : float
        Last value of the sink-share statistic Q[sink] / (1 + sum(Q));
        NaN for the burn-in estimator
    method : str
        'epoch' or 'burn_in'
    """

    eta: VertexVector
    beta: float
    n_steps: int
    n_epochs: int
    converged: bool
    convergence_stat: float
    method: str


class StationaryStateResult(TypedDict):
    """
    Result of the beta halving search.

    Attributes
    ----------
    beta : float
        Largest tried beta whose occupancy passed the stability check
    eta : VertexVector
        Occupancy estimate at that beta, shape (n,)
    threshold : float
        Stability threshold stability_factor * (1 - e1 - e2)
    n_iterations : int
        Number of simulation runs (halvings) performed
    beta_history : List[float]
        Every beta tried, in order
    max_eta_history : List[float]
        max(eta) for each tried beta
    converged : bool
        Whether the accepted simulation run met its convergence tolerance
    """

    beta: float
    eta: VertexVector
    threshold: float
    n_iterations: int
    beta_history: List[float]
    max_eta_history: List[float]
    converged: bool


class LaplacianSolveResult(TypedDict, total=False):
    """
    Full output of a solve.

    Attributes
    ----------
    x : VertexVector
        Centered approximate solution of L·x = b, shape (n,)
    beta : float
        Accepted injection scale
    eta : VertexVector
        Occupancy estimate used to build x
    residual : float
        RMS residual sqrt(sum((L·x - b)^2) / n); None if not computed
    centering : str
        'mean' or 'degree'
    n_iterations : int
        Beta search iterations
    beta_history : List[float]
        Every beta tried
    converged : bool
        Convergence flag of the accepted simulation run

    Examples
    --------
    >>> result = solver.solve_detailed(graph, b)
    >>> print(f"beta={result['beta']:.4f}, residual={result['residual']:.3e}")
    """

    x: VertexVector
    beta: float
    eta: VertexVector
    residual: Optional[float]
    centering: str
    n_iterations: int
    beta_history: List[float]
    converged: bool
