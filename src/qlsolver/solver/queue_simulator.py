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
Queue Network Simulator
=======================

Discrete-time simulation of a packet network on a graph, used to estimate
how often each vertex's queue is busy.

Model
-----
Every non-sink vertex i owns a FIFO queue Q[i] and serves at most one packet
per step. One step of the network:

1. **Injection**: vertex i receives a new packet with probability
   beta * J[i] (Bernoulli trial).
2. **Service**: if Q[i] > 0, one packet leaves i, the step counts as busy
   for i, and the packet is forwarded to a neighbor v drawn from row i of
   the transition matrix (alias sampling). It lands in the inbox inQ[v].
3. **Merge**: after every vertex has acted, inQ is added into Q and reset.

All vertices act on the state at the start of the step and write only to
the inbox, so a packet forwarded during a step cannot be served again in
the same step and the result does not depend on vertex order. The sink
n-1 never serves: packets reaching it leave the network.

In a stable (subcritical) network the long-run busy fraction eta[i]
satisfies the flow balance

    eta[i] = beta * J[i] + sum_j eta[j] * P[j, i]

which, after dividing by the degree, is a Laplacian system. The solver
turns eta back into a solution of L·x = b.

Stopping Rules
--------------
**'epoch'** (default): steps run in epochs of ``epoch_length``. After each
epoch the sink's share of outstanding packets

    C = Q[sink] / (1 + sum(Q))

is compared to the previous epoch's value; the run stops once the change is
at most ``tolerance`` or ``max_epochs`` epochs have run. eta[i] is the busy
count of i divided by the total number of steps.

**'burn_in'**: steps run until fewer than 10% of the vertices saw their
queue length change during a step (the network looks stationary), then
busy counts are collected over

    T_samp = ceil(4 ln(n) / (kappa^2 e2^2))

further steps. The burn-in phase is capped at max_epochs * epoch_length
steps.

Hitting a cap is not an error: the estimate is returned with
``converged=False`` and a UserWarning, and the beta search decides whether
it is usable.
"""

import math
import warnings
from typing import Optional, Union

import numpy as np

from qlsolver.types import InjectionVector, QueueOccupancyResult
from qlsolver.utils.random_source import RandomSource, as_random_source

from .alias_sampler import AliasSampler

DEFAULT_EPOCH_LENGTH = 1000
DEFAULT_MAX_EPOCHS = 1000
DEFAULT_TOLERANCE = 1e-4
DEFAULT_KAPPA = 0.5
DEFAULT_E2 = 0.1
BURN_IN_CHANGE_FRACTION = 0.1

METHODS = ("epoch", "burn_in")


class QueueSimulator:
    """
    Estimates queue occupancy probabilities for a fixed injection scale.

    Parameters
    ----------
    sampler : AliasSampler
        Next-hop tables, one row per vertex
    epoch_length : int, default=1000
        Steps per epoch
    max_epochs : int, default=1000
        Epoch cap per run ('epoch'), or burn-in cap in epochs ('burn_in')
    tolerance : float, default=1e-4
        Convergence tolerance on the sink-share statistic
    method : str, default='epoch'
        'epoch' or 'burn_in'
    kappa : float, default=0.5
        Sample-size constant of the burn-in estimator
    e2 : float, default=0.1
        Slack probability; only used to size the burn-in sample
    rng : Optional[Union[RandomSource, int]]
        Random source or seed
    warn_on_cap : bool, default=True
        Emit a UserWarning when a run stops on its cap

    Examples
    --------
    >>> g = path_graph(3)
    >>> sampler = AliasSampler(g.copy_transition_matrix(), rows=2)
    >>> sim = QueueSimulator(sampler, epoch_length=500, rng=0)
    >>> J = compute_injection_rates([1.0, 0.0, -1.0])
    >>> result = sim.estimate_eta(beta=0.16, J=J)
    >>> result['eta']  # approximately [0.32, 0.32, 0.0]
    """

    def __init__(
        self,
        sampler: AliasSampler,
        epoch_length: int = DEFAULT_EPOCH_LENGTH,
        max_epochs: int = DEFAULT_MAX_EPOCHS,
        tolerance: float = DEFAULT_TOLERANCE,
        method: str = "epoch",
        kappa: float = DEFAULT_KAPPA,
        e2: float = DEFAULT_E2,
        rng: Optional[Union[RandomSource, int]] = None,
        warn_on_cap: bool = True,
    ):
        if not isinstance(sampler, AliasSampler):
            raise TypeError(f"sampler must be an AliasSampler, got {type(sampler).__name__}")
        if sampler.n < 2:
            raise ValueError(f"network needs at least 2 vertices, got {sampler.n}")
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
        if not 0 < e2 < 1:
            raise ValueError(f"e2 must be in (0, 1), got {e2}")

        self.sampler = sampler
        self.n = sampler.n
        self.epoch_length = int(epoch_length)
        self.max_epochs = int(max_epochs)
        self.tolerance = tolerance
        self.method = method
        self.kappa = kappa
        self.e2 = e2
        self.rng = as_random_source(rng)
        self.warn_on_cap = warn_on_cap

        # Per-run state, re-initialized by _reset()
        self._Q = np.zeros(self.n, dtype=np.int64)
        self._inbox = np.zeros(self.n, dtype=np.int64)
        self._busy_count = np.zeros(self.n - 1, dtype=np.int64)

    # ========================================================================
    # Public API
    # ========================================================================

    def estimate_eta(self, beta: float, J: InjectionVector) -> QueueOccupancyResult:
        """
        Run one simulation at injection scale ``beta``.

        Parameters
        ----------
        beta : float
            Global injection scale, beta > 0
        J : InjectionVector
            Relative injection rates, shape (n,); J[n-1] is ignored. Negative
            rates warn and inject nothing.

        Returns
        -------
        QueueOccupancyResult
            eta (shape (n,), eta[n-1] = 0) plus run statistics
        """
        if not beta > 0:
            raise ValueError(f"beta must be positive, got {beta}")
        J = np.asarray(J, dtype=np.float64)
        if J.shape != (self.n,):
            raise ValueError(f"J must have shape ({self.n},), got {J.shape}")
        negative = np.nonzero(J[:-1] < 0)[0]
        if negative.size:
            warnings.warn(
                f"Negative injection rates at vertices {negative.tolist()} are "
                f"treated as 0.",
                UserWarning,
                stacklevel=2,
            )

        self._reset()
        inject_p = beta * J[:-1]

        if self.method == "epoch":
            return self._run_epochs(beta, inject_p)
        return self._run_burn_in(beta, inject_p)

    @property
    def sample_steps(self) -> int:
        """Number of sampled steps T_samp used by the burn-in estimator."""
        return burn_in_sample_steps(self.n, self.kappa, self.e2)

    # ========================================================================
    # Simulation core
    # ========================================================================

    def _reset(self):
        self._Q.fill(0)
        self._inbox.fill(0)
        self._busy_count.fill(0)

    def _step(self, inject_p: np.ndarray) -> np.ndarray:
        """
        Advance the network by one step.

        Returns the arrival indicator of the non-sink vertices.
        """
        Q = self._Q
        arrivals = self.rng.bernoulli(inject_p)
        Q[:-1] += arrivals

        busy = np.nonzero(Q[:-1] > 0)[0]
        Q[busy] -= 1
        self._busy_count[busy] += 1

        destinations = self.sampler.sample_many(busy, self.rng)
        np.add.at(self._inbox, destinations, 1)

        Q += self._inbox
        self._inbox.fill(0)
        return arrivals

    def _sink_share(self) -> float:
        return float(self._Q[-1]) / (1.0 + float(self._Q.sum()))

    def _eta(self, n_steps: int) -> np.ndarray:
        eta = np.zeros(self.n)
        eta[:-1] = self._busy_count / n_steps
        return eta

    def _run_epochs(self, beta: float, inject_p: np.ndarray) -> QueueOccupancyResult:
        old_c = None
        new_c = 0.0
        converged = False
        n_epochs = 0

        while n_epochs < self.max_epochs:
            for _ in range(self.epoch_length):
                self._step(inject_p)
            n_epochs += 1

            new_c = self._sink_share()
            if old_c is not None and abs(new_c - old_c) <= self.tolerance:
                converged = True
                break
            old_c = new_c

        if not converged:
            self._warn_cap(
                f"Queue simulation at beta={beta:.6g} hit max_epochs={self.max_epochs} "
                f"before the sink share stabilized (last change above {self.tolerance:g}). "
                f"The occupancy estimate may be inaccurate."
            )

        n_steps = n_epochs * self.epoch_length
        return QueueOccupancyResult(
            eta=self._eta(n_steps),
            beta=beta,
            n_steps=n_steps,
            n_epochs=n_epochs,
            converged=converged,
            convergence_stat=new_c,
            method="epoch",
        )

    def _run_burn_in(self, beta: float, inject_p: np.ndarray) -> QueueOccupancyResult:
        max_burn_in = self.max_epochs * self.epoch_length
        change_limit = BURN_IN_CHANGE_FRACTION * self.n

        converged = False
        burn_in_steps = 0
        while burn_in_steps < max_burn_in:
            before = self._Q[:-1].copy()
            arrivals = self._step(inject_p)
            burn_in_steps += 1

            # Injection does not count as a change, only forwarding does
            changed = np.count_nonzero(self._Q[:-1] != before + arrivals)
            if changed < change_limit:
                converged = True
                break

        if not converged:
            self._warn_cap(
                f"Queue simulation at beta={beta:.6g} did not settle within "
                f"{max_burn_in} burn-in steps. Sampling from a possibly transient state."
            )

        self._busy_count.fill(0)
        n_samples = self.sample_steps
        for _ in range(n_samples):
            self._step(inject_p)

        return QueueOccupancyResult(
            eta=self._eta(n_samples),
            beta=beta,
            n_steps=n_samples,
            n_epochs=math.ceil(burn_in_steps / self.epoch_length),
            converged=converged,
            convergence_stat=float("nan"),
            method="burn_in",
        )

    def _warn_cap(self, message: str):
        if self.warn_on_cap:
            warnings.warn(message, UserWarning, stacklevel=3)

    # ========================================================================
    # Information
    # ========================================================================

    def get_info(self) -> dict:
        return {
            "n": self.n,
            "method": self.method,
            "epoch_length": self.epoch_length,
            "max_epochs": self.max_epochs,
            "tolerance": self.tolerance,
            "kappa": self.kappa,
            "e2": self.e2,
            "sample_steps": self.sample_steps if self.method == "burn_in" else None,
            "seed": self.rng.seed,
        }

    def __repr__(self) -> str:
        return (
            f"QueueSimulator(n={self.n}, method='{self.method}', "
            f"epoch_length={self.epoch_length}, max_epochs={self.max_epochs})"
        )


# ============================================================================
# Convenience Functions
# ============================================================================

def burn_in_sample_steps(n: int, kappa: float = DEFAULT_KAPPA, e2: float = DEFAULT_E2) -> int:
    """
    Sample size T_samp = ceil(4 ln(n) / (kappa^2 e2^2)) of the burn-in estimator.

    Examples
    --------
    >>> burn_in_sample_steps(3, kappa=0.5, e2=0.1)
    1758
    """
    if n < 2:
        raise ValueError(f"n must be at least 2, got {n}")
    return math.ceil(4.0 * math.log(n) / (kappa**2 * e2**2))


def estimate_queue_occupancy(
    sampler: AliasSampler,
    beta: float,
    J: InjectionVector,
    seed: Optional[Union[RandomSource, int]] = None,
    **kwargs,
) -> QueueOccupancyResult:
    """
    Convenience function for a single simulation run.

    Examples
    --------
    >>> sampler = AliasSampler(graph.copy_transition_matrix(), rows=n - 1)
    >>> result = estimate_queue_occupancy(sampler, 0.1, J, seed=0, epoch_length=200)
    """
    return QueueSimulator(sampler, rng=seed, **kwargs).estimate_eta(beta, J)
