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
Laplacian Solver
================

Approximate solutions of graph-Laplacian systems L·x = b by simulating a
packet network instead of doing linear algebra.

Pipeline
--------
1. **BetaSearch** builds the injection rates J = -b / b[n-1] and one alias
   table per vertex, then halves the injection scale beta until the
   simulated queues are stable.
2. **QueueSimulator** estimates, for each beta tried, how often every
   vertex is busy (eta).
3. **compute_canonical_solution** turns (beta, eta) into potentials
   x = (-b[n-1]/beta) * eta / d and centers them.

The result is random: its error shrinks with longer simulations
(epoch_length, max_epochs) and tighter e1, e2 at the cost of run time.
Diagnostics (beta and the RMS residual ||L·x - b|| / sqrt(n)) are printed
when verbose=True and are always available from solve_detailed().

Examples
--------
>>> from qlsolver import LaplacianSolver, path_graph
>>> solver = LaplacianSolver(seed=0, epoch_length=500)
>>> x = solver.solve(path_graph(3), [1.0, 0.0, -1.0])
>>> x  # close to [1, 0, -1]
"""

from typing import Optional, Union

from qlsolver.types import (
    ArrayLike,
    DemandVector,
    GraphProtocol,
    LaplacianSolveResult,
    check_graph,
)
from qlsolver.utils.backend import detect_backend, from_numpy
from qlsolver.utils.random_source import RandomSource, as_random_source

from .beta_search import (
    DEFAULT_E1,
    DEFAULT_INITIAL_BETA,
    DEFAULT_STABILITY_FACTOR,
    BetaSearch,
)
from .queue_simulator import (
    DEFAULT_E2,
    DEFAULT_EPOCH_LENGTH,
    DEFAULT_KAPPA,
    DEFAULT_MAX_EPOCHS,
    DEFAULT_TOLERANCE,
)
from .solution_assembler import CENTERINGS, compute_canonical_solution, compute_error


class LaplacianSolver:
    """
    Randomized solver for L·x = b on a connected graph.

    Parameters
    ----------
    e1 : float, default=0.1
        Approximation-error bound, in (0, 1)
    e2 : float, default=0.1
        Slack-probability bound, in (0, 1), with e1 + e2 < 1
    initial_beta : float, default=1.28
        Starting guess of the beta search
    stability_factor : float, default=0.75
        Stability threshold is stability_factor * (1 - e1 - e2)
    epoch_length : int, default=1000
        Simulation steps per epoch
    max_epochs : int, default=1000
        Epoch cap per simulation run
    tolerance : float, default=1e-4
        Convergence tolerance of the sink-share statistic
    method : str, default='epoch'
        Occupancy estimator, 'epoch' or 'burn_in'
    kappa : float, default=0.5
        Sample-size constant of the 'burn_in' estimator
    centering : str, default='mean'
        'mean' (sum(x) = 0) or 'degree' (degree-weighted correction)
    max_halvings : Optional[int]
        Cap on beta-search iterations
    seed : Optional[int]
        Seed of the solver's random source (ignored if rng is given)
    rng : Optional[RandomSource]
        Explicit random source, owned by the caller
    verbose : bool, default=False
        Print the beta search and the final beta / residual
    compute_residual : bool, default=True
        Compute the RMS residual after each solve (needs the Laplacian)

    Raises
    ------
    ValueError
        On invalid configuration (e.g. e1 + e2 >= 1)

    Examples
    --------
    >>> solver = LaplacianSolver(e1=0.1, e2=0.1, seed=42)
    >>> result = solver.solve_detailed(grid_graph(3, 3), b)
    >>> print(result['beta'], result['residual'])
    """

    def __init__(
        self,
        e1: float = DEFAULT_E1,
        e2: float = DEFAULT_E2,
        initial_beta: float = DEFAULT_INITIAL_BETA,
        stability_factor: float = DEFAULT_STABILITY_FACTOR,
        epoch_length: int = DEFAULT_EPOCH_LENGTH,
        max_epochs: int = DEFAULT_MAX_EPOCHS,
        tolerance: float = DEFAULT_TOLERANCE,
        method: str = "epoch",
        kappa: float = DEFAULT_KAPPA,
        centering: str = "mean",
        max_halvings: Optional[int] = None,
        seed: Optional[int] = None,
        rng: Optional[RandomSource] = None,
        verbose: bool = False,
        compute_residual: bool = True,
    ):
        if centering not in CENTERINGS:
            raise ValueError(f"Unknown centering '{centering}'. Choose from {CENTERINGS}")

        self.rng = as_random_source(rng if rng is not None else seed)
        self.centering = centering
        self.verbose = verbose
        self.compute_residual = compute_residual

        self.search = BetaSearch(
            e1=e1,
            e2=e2,
            initial_beta=initial_beta,
            stability_factor=stability_factor,
            epoch_length=epoch_length,
            max_epochs=max_epochs,
            tolerance=tolerance,
            method=method,
            kappa=kappa,
            max_halvings=max_halvings,
            rng=self.rng,
            verbose=verbose,
        )

    # ========================================================================
    # Solving
    # ========================================================================

    def solve(self, graph: GraphProtocol, b: DemandVector) -> ArrayLike:
        """
        Approximate solution of L·x = b.

        Parameters
        ----------
        graph : GraphProtocol
            Connected graph; vertex n-1 is the sink
        b : DemandVector
            Length n, sums to 0, b[n-1] != 0. NumPy, list, torch or JAX.
            Vertex n-1 must be the only vertex whose demand has the sign of
            b[n-1]; any other such vertex triggers a UserWarning and its
            demand is not represented in x.

        Returns
        -------
        ArrayLike
            x, shape (n,), in the backend of b
        """
        backend = detect_backend(b)
        result = self.solve_detailed(graph, b)
        return from_numpy(result["x"], backend)

    def solve_detailed(self, graph: GraphProtocol, b: DemandVector) -> LaplacianSolveResult:
        """
        Solve and return x together with the search diagnostics.

        x is always a NumPy array here.

        Raises
        ------
        TypeError
            If graph does not implement GraphProtocol
        ValueError
            If b is invalid for the graph
        RuntimeError
            If the beta search finds no stable operating point
        """
        check_graph(graph)

        if self.verbose:
            print(f"Solving L·x = b on n={graph.num_vertices()} vertices")

        stationary = self.search.compute_eta_at_stationarity(graph, b)
        beta = stationary["beta"]
        eta = stationary["eta"]

        x = compute_canonical_solution(graph, b, eta, beta, centering=self.centering)
        residual = compute_error(graph, b, x) if self.compute_residual else None

        if self.verbose:
            print(f"Beta: {beta:.6g}")
            if residual is not None:
                print(f"Error: {residual:.6g}")

        return LaplacianSolveResult(
            x=x,
            beta=beta,
            eta=eta,
            residual=residual,
            centering=self.centering,
            n_iterations=stationary["n_iterations"],
            beta_history=stationary["beta_history"],
            converged=stationary["converged"],
        )

    # ========================================================================
    # Information
    # ========================================================================

    def get_info(self) -> dict:
        info = self.search.get_info()
        info["centering"] = self.centering
        info["compute_residual"] = self.compute_residual
        return info

    def print_info(self):
        info = self.get_info()
        print("=" * 60)
        print("LaplacianSolver")
        print("=" * 60)
        print(f"Error bounds: e1={info['e1']}, e2={info['e2']}")
        print(f"Stability threshold: {info['threshold']:.4g}")
        print(f"Initial beta: {info['initial_beta']}")
        print(f"Estimator: {info['method']}")
        if info["method"] == "epoch":
            print(f"  Epochs: {info['epoch_length']} steps x up to {info['max_epochs']}")
            print(f"  Tolerance: {info['tolerance']:g}")
        else:
            print(f"  kappa: {info['kappa']}, burn-in cap: "
                  f"{info['epoch_length'] * info['max_epochs']} steps")
        print(f"Centering: {info['centering']}")
        print(f"Seed: {info['seed']}")
        print("=" * 60)

    def __repr__(self) -> str:
        return (
            f"LaplacianSolver(e1={self.search.e1}, e2={self.search.e2}, "
            f"method='{self.search.method}', centering='{self.centering}', "
            f"seed={self.rng.seed})"
        )


def solve(
    graph: GraphProtocol,
    b: DemandVector,
    seed: Optional[Union[int, RandomSource]] = None,
    **kwargs,
) -> ArrayLike:
    """
    Convenience function for a one-off solve.

    Parameters
    ----------
    graph : GraphProtocol
        Connected graph; vertex n-1 is the sink
    b : DemandVector
        Demand vector
    seed : Optional[Union[int, RandomSource]]
        Seed or random source
    **kwargs
        Any LaplacianSolver option

    Examples
    --------
    >>> x = solve(path_graph(4), [1.0, 0.0, 0.0, -1.0], seed=3, epoch_length=300)
    """
    if isinstance(seed, RandomSource):
        return LaplacianSolver(rng=seed, **kwargs).solve(graph, b)
    return LaplacianSolver(seed=seed, **kwargs).solve(graph, b)
