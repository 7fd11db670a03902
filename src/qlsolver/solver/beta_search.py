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
Beta Search - Finding a Stable Injection Scale
==============================================

The occupancy estimate eta is only meaningful when the simulated network is
subcritical: every queue must drain faster than it fills. The global
injection scale beta controls the load, so the search starts from an initial
guess and halves beta until

    max_i eta[i] <= stability_factor * (1 - e1 - e2)

where e1 bounds the approximation error and e2 the slack probability. The
largest beta that passes is returned together with its eta. Because the
guess is halved before the first simulation, the returned beta always has
the form initial_beta / 2^k with k >= 1.

The injection rates J and the alias tables do not depend on beta; they are
built once per search and shared by every simulation run.

Failure Modes
-------------
- Halving until beta underflows to 0 (or exhausting ``max_halvings``) raises
  RuntimeError: the network cannot be brought into a stable regime under
  the given e1, e2.
- A simulation that hits its epoch cap is not an error. If the accepted
  run did not converge a UserWarning is emitted.
"""

import warnings
from typing import Optional, Union

import numpy as np

from qlsolver.types import (
    DemandVector,
    GraphProtocol,
    StationaryStateResult,
    check_graph,
)
from qlsolver.utils.random_source import RandomSource, as_random_source

from .alias_sampler import AliasSampler
from .demand import compute_injection_rates, validate_demand
from .queue_simulator import (
    DEFAULT_E2,
    DEFAULT_EPOCH_LENGTH,
    DEFAULT_KAPPA,
    DEFAULT_MAX_EPOCHS,
    DEFAULT_TOLERANCE,
    METHODS,
    QueueSimulator,
)

DEFAULT_E1 = 0.1
DEFAULT_INITIAL_BETA = 1.28
DEFAULT_STABILITY_FACTOR = 0.75


def validate_error_bounds(e1: float, e2: float):
    """Raise ValueError unless e1, e2 in (0, 1) and e1 + e2 < 1."""
    if not 0 < e1 < 1:
        raise ValueError(f"e1 must be in (0, 1), got {e1}")
    if not 0 < e2 < 1:
        raise ValueError(f"e2 must be in (0, 1), got {e2}")
    if e1 + e2 >= 1:
        raise ValueError(
            f"e1 + e2 must be < 1, got e1 + e2 = {e1 + e2:g}. "
            f"The stability threshold (1 - e1 - e2) would be non-positive."
        )


class BetaSearch:
    """
    Halving search for the largest stable injection scale.

    Parameters
    ----------
    e1 : float, default=0.1
        Approximation-error bound, in (0, 1)
    e2 : float, default=0.1
        Slack-probability bound, in (0, 1), with e1 + e2 < 1
    initial_beta : float, default=1.28
        Starting guess; the first simulated beta is initial_beta / 2
    stability_factor : float, default=0.75
        Scale of the stability threshold, in (0, 1]
    epoch_length, max_epochs, tolerance, method, kappa
        Forwarded to QueueSimulator
    max_halvings : Optional[int]
        Give up (RuntimeError) after this many simulation runs. None keeps
        halving until beta underflows.
    rng : Optional[Union[RandomSource, int]]
        Random source or seed shared by every simulation run
    verbose : bool, default=False
        Print each tried beta with its max(eta)

    Examples
    --------
    >>> search = BetaSearch(e1=0.1, e2=0.1, epoch_length=500, rng=42)
    >>> result = search.compute_eta_at_stationarity(path_graph(3), [1.0, 0.0, -1.0])
    >>> result['beta']  # typically 1.28 / 2**3 = 0.16
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
        max_halvings: Optional[int] = None,
        rng: Optional[Union[RandomSource, int]] = None,
        verbose: bool = False,
    ):
        validate_error_bounds(e1, e2)
        if not initial_beta > 0 or not np.isfinite(initial_beta):
            raise ValueError(f"initial_beta must be positive and finite, got {initial_beta}")
        if not 0 < stability_factor <= 1:
            raise ValueError(f"stability_factor must be in (0, 1], got {stability_factor}")
        if max_halvings is not None and max_halvings <= 0:
            raise ValueError(f"max_halvings must be positive, got {max_halvings}")
        if epoch_length <= 0:
            raise ValueError(f"epoch_length must be positive, got {epoch_length}")
        if max_epochs <= 0:
            raise ValueError(f"max_epochs must be positive, got {max_epochs}")
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        if method not in METHODS:
            raise ValueError(f"Unknown method '{method}'. Choose from {METHODS}")
        if kappa <= 0:
            raise ValueError(f"kappa must be positive, got {kappa}")

        self.e1 = e1
        self.e2 = e2
        self.initial_beta = float(initial_beta)
        self.stability_factor = stability_factor
        self.epoch_length = epoch_length
        self.max_epochs = max_epochs
        self.tolerance = tolerance
        self.method = method
        self.kappa = kappa
        self.max_halvings = max_halvings
        self.rng = as_random_source(rng)
        self.verbose = verbose

    @property
    def threshold(self) -> float:
        """Stability threshold on max(eta)."""
        return self.stability_factor * (1.0 - self.e1 - self.e2)

    def build_simulator(self, graph: GraphProtocol) -> QueueSimulator:
        """
        Alias tables plus simulator for ``graph``.

        The sink row is not needed (the sink never forwards).
        """
        n = graph.num_vertices()
        sampler = AliasSampler(graph.copy_transition_matrix(), rows=n - 1)
        return QueueSimulator(
            sampler,
            epoch_length=self.epoch_length,
            max_epochs=self.max_epochs,
            tolerance=self.tolerance,
            method=self.method,
            kappa=self.kappa,
            e2=self.e2,
            rng=self.rng,
            warn_on_cap=False,
        )

    def compute_eta_at_stationarity(
        self,
        graph: GraphProtocol,
        b: DemandVector,
    ) -> StationaryStateResult:
        """
        Halve beta until the simulated network is stable.

        Parameters
        ----------
        graph : GraphProtocol
            Connected graph, sink n-1
        b : DemandVector
            Demand vector, sums to 0, b[n-1] != 0

        Returns
        -------
        StationaryStateResult

        Raises
        ------
        TypeError
            If graph does not implement GraphProtocol
        ValueError
            If b is invalid for graph
        RuntimeError
            If no stable beta is found
        """
        check_graph(graph)
        n = graph.num_vertices()
        b = validate_demand(b, n)

        # validate_demand already warned about negative rates
        J = np.clip(compute_injection_rates(b), 0.0, None)
        simulator = self.build_simulator(graph)

        beta = self.initial_beta
        beta_history = []
        max_eta_history = []

        while True:
            beta /= 2
            if beta <= 0:
                raise RuntimeError(
                    f"beta underflowed to 0 after {len(beta_history)} halvings without "
                    f"reaching max(eta) <= {self.threshold:.4g}. The graph cannot be "
                    f"simulated in a stable regime with e1={self.e1}, e2={self.e2}."
                )

            occupancy = simulator.estimate_eta(beta, J)
            max_eta = float(np.max(occupancy["eta"]))
            beta_history.append(beta)
            max_eta_history.append(max_eta)

            if self.verbose:
                status = "accepted" if max_eta <= self.threshold else "rejected"
                print(
                    f"  beta={beta:.6g}  max(eta)={max_eta:.4f}  "
                    f"epochs={occupancy['n_epochs']}  {status}"
                )

            if max_eta <= self.threshold:
                break

            if self.max_halvings is not None and len(beta_history) >= self.max_halvings:
                raise RuntimeError(
                    f"No stable beta after {self.max_halvings} halvings "
                    f"(last beta={beta:.6g}, max(eta)={max_eta:.4f}, "
                    f"threshold={self.threshold:.4g})"
                )

        if not occupancy["converged"]:
            warnings.warn(
                f"Accepted beta={beta:.6g} comes from a simulation that stopped on its "
                f"step cap. Increase max_epochs or epoch_length for a better estimate.",
                UserWarning,
                stacklevel=2,
            )

        return StationaryStateResult(
            beta=beta,
            eta=occupancy["eta"],
            threshold=self.threshold,
            n_iterations=len(beta_history),
            beta_history=beta_history,
            max_eta_history=max_eta_history,
            converged=occupancy["converged"],
        )

    def get_info(self) -> dict:
        return {
            "e1": self.e1,
            "e2": self.e2,
            "initial_beta": self.initial_beta,
            "stability_factor": self.stability_factor,
            "threshold": self.threshold,
            "epoch_length": self.epoch_length,
            "max_epochs": self.max_epochs,
            "tolerance": self.tolerance,
            "method": self.method,
            "kappa": self.kappa,
            "max_halvings": self.max_halvings,
            "seed": self.rng.seed,
        }

    def __repr__(self) -> str:
        return (
            f"BetaSearch(e1={self.e1}, e2={self.e2}, "
            f"initial_beta={self.initial_beta}, threshold={self.threshold:.4g})"
        )


def compute_eta_at_stationarity(
    graph: GraphProtocol,
    b: DemandVector,
    seed: Optional[int] = None,
    **kwargs,
) -> StationaryStateResult:
    """
    Convenience function for a one-off beta search.

    Examples
    --------
    >>> result = compute_eta_at_stationarity(graph, b, seed=0, epoch_length=200)
    """
    return BetaSearch(rng=seed, **kwargs).compute_eta_at_stationarity(graph, b)
