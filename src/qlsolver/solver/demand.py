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
Demand vectors and injection rates.

The right-hand side b of L·x = b is a supply/demand vector: it sums to zero
and its sink entry b[n-1] is the normalizing reference. Injection rates are
b expressed relative to the sink,

    J[i] = -b[i] / b[n-1],

so that sum(J[:n-1]) = 1 whenever sum(b) = 0.

J[i] scales an injection probability, so the network can only represent
demands with a single sink: every non-sink entry must be zero or have the
opposite sign of b[n-1]. Any other entry gives J[i] < 0.
"""

import warnings

import numpy as np

from qlsolver.types import DemandVector, InjectionVector
from qlsolver.utils.backend import to_numpy

SUM_TOLERANCE = 1e-8


def validate_demand(b: DemandVector, n: int) -> np.ndarray:
    """
    Check b against a graph with ``n`` vertices and return it as float64.

    Raises
    ------
    ValueError
        If b is not 1-D of length n, has non-finite entries, does not sum to
        zero (relative to max|b|), or has b[n-1] == 0.

    Warns
    -----
    UserWarning
        If a non-sink entry has the same sign as b[n-1]. Those vertices get
        negative injection rates, the simulation treats them as 0, and the
        resulting x does not satisfy L·x = b.
    """
    b = to_numpy(b)
    if b.ndim != 1 or b.shape[0] != n:
        raise ValueError(f"b must have shape ({n},), got {b.shape}")
    if not np.all(np.isfinite(b)):
        raise ValueError("b must be finite")
    if b[-1] == 0:
        raise ValueError(
            "b[n-1] must be non-zero: the sink demand normalizes the injection rates"
        )

    scale = np.max(np.abs(b))
    if abs(b.sum()) > SUM_TOLERANCE * max(1.0, scale) * n:
        raise ValueError(f"b must sum to zero, got sum(b) = {b.sum():.3e}")

    extra_sinks = np.nonzero(b[:-1] * b[-1] > 0)[0]
    if extra_sinks.size:
        warnings.warn(
            f"Non-sink vertices {extra_sinks.tolist()} have demand of the same sign "
            f"as b[n-1]. Their injection rates are negative and are treated as 0, "
            f"so the solution will not satisfy L·x = b. Only vertex n-1 may "
            f"absorb flow.",
            UserWarning,
            stacklevel=3,
        )

    return b


def compute_injection_rates(b: DemandVector) -> InjectionVector:
    """
    Relative injection rates J[i] = -b[i]/b[n-1].

    J[n-1] is always -1 by the formula and is never used by the simulator.

    Examples
    --------
    >>> compute_injection_rates([1.0, 0.0, -1.0])
    array([ 1.,  0., -1.])
    """
    b = to_numpy(b)
    if b[-1] == 0:
        raise ValueError("b[n-1] must be non-zero")
    return -b / b[-1]
