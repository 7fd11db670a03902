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
Alias Sampler - O(1) Neighbor Sampling
======================================

Walker's alias method turns a discrete distribution p over n outcomes into
two tables, ``prob`` and ``alias``, so that a sample costs one uniform
integer and one uniform real:

    col = uniform integer in [0, n)
    return col if U < prob[col] else alias[col]

Construction is O(n): scale p by n, split indices into "small" (< 1) and
"large" (>= 1), and let each small column borrow its missing mass from a
large one. Every column ends up holding total mass exactly 1, split between
itself and at most one alias.

The queue simulator forwards one packet per busy vertex per step, so each
vertex gets its own table built from its row of the transition matrix. Over
all rows construction is O(n^2), done once per solve.
"""

from typing import Optional, Tuple, Union

import numpy as np

from qlsolver.types import IndexTable, SquareMatrix
from qlsolver.utils.random_source import RandomSource, as_random_source

PROBABILITY_TOLERANCE = 1e-9


def build_alias_table(p: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the alias table for one probability row.

    Parameters
    ----------
    p : np.ndarray
        Non-negative probabilities summing to 1, shape (n,)

    Returns
    -------
    prob : np.ndarray
        Acceptance probability of each column, shape (n,), in [0, 1]
    alias : np.ndarray
        Fallback outcome of each column, shape (n,), int

    Raises
    ------
    ValueError
        If p is empty, not 1-D, has negative or non-finite entries, or does
        not sum to 1.

    Examples
    --------
    >>> prob, alias = build_alias_table(np.array([0.5, 0.0, 0.5]))
    >>> prob
    array([1., 0., 1.])
    """
    p = np.asarray(p, dtype=np.float64)
    if p.ndim != 1 or p.size == 0:
        raise ValueError(f"probability row must be non-empty and 1-D, got shape {p.shape}")
    if not np.all(np.isfinite(p)) or np.any(p < 0):
        raise ValueError("probability row must be finite and non-negative")
    total = p.sum()
    if abs(total - 1.0) > PROBABILITY_TOLERANCE * max(1, p.size):
        raise ValueError(f"probability row must sum to 1, got {total}")

    n = p.size
    scaled = p * n
    prob = np.zeros(n)
    alias = np.arange(n)

    small = [i for i in range(n) if scaled[i] < 1.0]
    large = [i for i in range(n) if scaled[i] >= 1.0]

    while small and large:
        s = small.pop()
        l = large.pop()

        prob[s] = scaled[s]
        alias[s] = l

        scaled[l] -= 1.0 - scaled[s]
        if scaled[l] < 1.0:
            small.append(l)
        else:
            large.append(l)

    # Leftovers hold mass 1 up to rounding
    for i in large:
        prob[i] = 1.0
    for i in small:
        prob[i] = 1.0

    return prob, alias


def sample_alias(
    prob: np.ndarray,
    alias: np.ndarray,
    rng: RandomSource,
    size: Optional[int] = None,
) -> Union[int, np.ndarray]:
    """
    Draw from a single alias table.

    Examples
    --------
    >>> prob, alias = build_alias_table(np.array([0.2, 0.8]))
    >>> draws = sample_alias(prob, alias, RandomSource(0), size=1000)
    """
    n = prob.shape[0]
    col = rng.randint(n, size=size)
    accept = rng.uniform(size) < prob[col]
    return np.where(accept, col, alias[col]) if size is not None else int(col if accept else alias[col])


class AliasSampler:
    """
    Per-vertex alias tables for a whole transition matrix.

    Row i of ``prob_table`` / ``alias_table`` samples the next hop of a
    packet leaving vertex i.

    Parameters
    ----------
    transition_matrix : SquareMatrix
        Row-stochastic (n, n) matrix P
    rows : Optional[int]
        Build tables only for rows 0..rows-1. The queue simulator passes
        n-1 because the sink never forwards; the sink row is then filled
        with a self-loop placeholder.

    Attributes
    ----------
    prob_table : np.ndarray
        Acceptance probabilities, shape (n, n)
    alias_table : IndexTable
        Fallback indices, shape (n, n)

    Examples
    --------
    >>> P = path_graph(3).copy_transition_matrix()
    >>> sampler = AliasSampler(P)
    >>> rng = RandomSource(seed=1)
    >>> sampler.sample(1, rng)  # 0 or 2, each with probability 1/2
    """

    def __init__(self, transition_matrix: SquareMatrix, rows: Optional[int] = None):
        P = np.asarray(transition_matrix, dtype=np.float64)
        if P.ndim != 2 or P.shape[0] != P.shape[1]:
            raise ValueError(f"transition matrix must be square, got shape {P.shape}")

        n = P.shape[0]
        rows = n if rows is None else rows
        if not 0 <= rows <= n:
            raise ValueError(f"rows must be in [0, {n}], got {rows}")

        self.n = n
        self.prob_table = np.ones((n, n))
        self.alias_table: IndexTable = np.tile(np.arange(n), (n, 1))

        for i in range(rows):
            try:
                self.prob_table[i], self.alias_table[i] = build_alias_table(P[i])
            except ValueError as e:
                raise ValueError(f"row {i} of the transition matrix: {e}") from e

        for i in range(rows, n):
            self.prob_table[i] = 0.0
            self.alias_table[i] = i

    def sample(self, i: int, rng: RandomSource) -> int:
        """Draw one next hop for a packet at vertex ``i``."""
        return sample_alias(self.prob_table[i], self.alias_table[i], rng)

    def sample_many(self, vertices: np.ndarray, rng: RandomSource) -> np.ndarray:
        """
        Draw one next hop for each entry of ``vertices``.

        Vectorized over the busy vertices of one simulation step; entries are
        independent draws even when a vertex appears more than once.
        """
        vertices = np.asarray(vertices, dtype=np.intp)
        k = vertices.size
        if k == 0:
            return np.zeros(0, dtype=np.intp)
        col = rng.randint(self.n, size=k)
        accept = rng.uniform(k) < self.prob_table[vertices, col]
        return np.where(accept, col, self.alias_table[vertices, col])

    def empirical_distribution(
        self,
        i: int,
        n_samples: int,
        rng: Optional[Union[RandomSource, int]] = None,
    ) -> np.ndarray:
        """
        Frequencies of ``n_samples`` draws from row ``i``, shape (n,).

        Useful for checking a table against the row it was built from.
        """
        if n_samples <= 0:
            raise ValueError(f"n_samples must be positive, got {n_samples}")
        rng = as_random_source(rng)
        draws = self.sample_many(np.full(n_samples, i), rng)
        return np.bincount(draws, minlength=self.n) / n_samples

    def __repr__(self) -> str:
        return f"AliasSampler(n={self.n})"
