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
Core Array Types

Basic array aliases shared by the graph, simulator and solver modules.

All numerical work is done in NumPy. Inputs may arrive as PyTorch tensors or
JAX arrays (see qlsolver.utils.backend), but everything below the public
entry points operates on np.ndarray.

Shape Conventions
-----------------
- Vertex vectors: (n,), indexed by vertex id 0..n-1
- Square matrices: (n, n), row i describes vertex i
- The sink vertex is always index n-1
"""

from typing import TYPE_CHECKING, Union

import numpy as np

if TYPE_CHECKING:
    import jax.numpy as jnp
    import torch


ArrayLike = Union[np.ndarray, "torch.Tensor", "jnp.ndarray", list, tuple]
"""
Any array-like input accepted at the public boundary.

Converted to np.ndarray (float64) before simulation.
"""

VertexVector = np.ndarray
"""
Per-vertex values, shape (n,).

Used for degrees, occupancy estimates (eta) and solutions (x).
"""

DemandVector = ArrayLike
"""
Right-hand side b of L·x = b, shape (n,).

Must sum to zero and have a non-zero sink entry b[n-1].

Examples
--------
>>> b: DemandVector = np.array([1.0, 0.0, -1.0])  # unit flow 0 -> 2
"""

InjectionVector = np.ndarray
"""
Relative injection rates J[i] = -b[i]/b[n-1], shape (n,).

J[n-1] is computed but never read (the sink does not inject).
"""

SquareMatrix = np.ndarray
"""
Dense (n, n) matrix: transition matrix P, Laplacian L or weights W.
"""

IndexTable = np.ndarray
"""
Integer table of shape (n, n), e.g. the alias fallback indices.
"""
