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
Type definitions for the queueing Laplacian solver.

1. Core Types
   - ArrayLike, VertexVector, DemandVector, InjectionVector
   - SquareMatrix, IndexTable

2. Results
   - QueueOccupancyResult (one simulation run)
   - StationaryStateResult (beta search)
   - LaplacianSolveResult (full solve)

3. Protocols
   - GraphProtocol (the four read-only graph accessors)
"""

from .core import (
    ArrayLike,
    DemandVector,
    IndexTable,
    InjectionVector,
    SquareMatrix,
    VertexVector,
)
from .protocols import GraphProtocol, check_graph
from .results import (
    LaplacianSolveResult,
    QueueOccupancyResult,
    StationaryStateResult,
)

__all__ = [
    # Core
    "ArrayLike",
    "DemandVector",
    "IndexTable",
    "InjectionVector",
    "SquareMatrix",
    "VertexVector",
    # Protocols
    "GraphProtocol",
    "check_graph",
    # Results
    "QueueOccupancyResult",
    "StationaryStateResult",
    "LaplacianSolveResult",
]
