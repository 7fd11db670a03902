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
Explicit random number source.

Every stochastic component (alias sampling, packet injection) draws from a
RandomSource handed to it by the caller instead of a module-level generator.
Two sources built with the same seed produce identical streams, and
independent sources never interfere with each other.
"""

from typing import Optional, Union

import numpy as np


class RandomSource:
    """
    Seeded wrapper around np.random.RandomState.

    Parameters
    ----------
    seed : Optional[int]
        Seed for reproducibility. None draws fresh OS entropy.

    Examples
    --------
    >>> rng = RandomSource(seed=42)
    >>> u = rng.uniform(5)           # 5 draws in [0, 1)
    >>> k = rng.randint(10, size=5)  # 5 integers in [0, 10)
    >>> rng.set_seed(42)             # rewind the stream
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is not None and seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self.seed = seed
        self._state = self._initialize_rng(seed)

    def _initialize_rng(self, seed: Optional[int]) -> np.random.RandomState:
        return np.random.RandomState(seed) if seed is not None else np.random.RandomState()

    def set_seed(self, seed: int):
        """Reset the stream to the start of ``seed``."""
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self.seed = seed
        self._state = self._initialize_rng(seed)

    def uniform(self, size: Optional[int] = None) -> Union[float, np.ndarray]:
        """Uniform draws in [0, 1)."""
        return self._state.random_sample(size)

    def randint(self, high: int, size: Optional[int] = None) -> Union[int, np.ndarray]:
        """Uniform integers in [0, high)."""
        return self._state.randint(0, high, size=size)

    def bernoulli(self, p: Union[float, np.ndarray]) -> Union[bool, np.ndarray]:
        """
        Bernoulli trials with success probability ``p``.

        A trial succeeds when a uniform draw is <= p, so p <= 0 never
        succeeds and p >= 1 always does.
        """
        p = np.asarray(p, dtype=float)
        u = self._state.random_sample(p.shape)
        result = u <= p
        # u can be exactly 0.0
        result &= p > 0
        return result if result.ndim else bool(result)

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"


def as_random_source(rng: Optional[Union[RandomSource, int]] = None) -> RandomSource:
    """
    Coerce a seed, an existing source or None into a RandomSource.

    Examples
    --------
    >>> as_random_source(7).seed
    7
    >>> src = RandomSource(1)
    >>> as_random_source(src) is src
    True
    """
    if isinstance(rng, RandomSource):
        return rng
    if rng is None or isinstance(rng, (int, np.integer)):
        return RandomSource(None if rng is None else int(rng))
    raise TypeError(
        f"rng must be a RandomSource, an int seed or None, got {type(rng).__name__}"
    )
