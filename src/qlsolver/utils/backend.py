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
Backend conversion helpers.

The solver computes in NumPy. Demand vectors may be given as lists, NumPy
arrays, PyTorch tensors or JAX arrays; the solution is handed back in the
backend the demand vector came in.
"""

from typing import Any

import numpy as np

try:
    import torch

    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False

try:
    import jax.numpy as jnp

    JAX_AVAILABLE = True
except ImportError:
    JAX_AVAILABLE = False

from qlsolver.types import ArrayLike


def detect_backend(arr: Any) -> str:
    """
    Return 'numpy', 'torch' or 'jax' for ``arr``.

    Lists, tuples and scalars count as 'numpy'.
    """
    if TORCH_AVAILABLE and isinstance(arr, torch.Tensor):
        return "torch"
    if JAX_AVAILABLE and isinstance(arr, jnp.ndarray):
        return "jax"
    return "numpy"


def to_numpy(arr: ArrayLike) -> np.ndarray:
    """Convert any supported array to a float64 NumPy array."""
    backend = detect_backend(arr)
    if backend == "torch":
        return arr.detach().cpu().numpy().astype(np.float64)
    return np.asarray(arr, dtype=np.float64)


def from_numpy(arr: np.ndarray, backend: str) -> ArrayLike:
    """Convert a NumPy array into ``backend``."""
    if backend == "numpy":
        return arr
    if backend == "torch":
        if not TORCH_AVAILABLE:
            raise ImportError("PyTorch is required for backend='torch'")
        return torch.from_numpy(np.ascontiguousarray(arr))
    if backend == "jax":
        if not JAX_AVAILABLE:
            raise ImportError("JAX is required for backend='jax'")
        return jnp.asarray(arr)
    raise ValueError(f"Unknown backend '{backend}'. Choose 'numpy', 'torch' or 'jax'")
