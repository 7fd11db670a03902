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
qlsolver: Randomized Queueing Solver for Graph-Laplacian Systems

Approximates solutions of L·x = b on weighted undirected graphs by
simulating a packet network and reading potentials off its long-run queue
occupancy, with O(1) alias-method neighbor sampling.
"""

# Submodules
from . import graphs, solver, types, utils

# Graphs
from .graphs import (
    WeightedGraph,
    complete_graph,
    cycle_graph,
    grid_graph,
    path_graph,
    random_connected_graph,
    star_graph,
)

# Solver components
from .solver import (
    AliasSampler,
    BetaSearch,
    LaplacianSolver,
    QueueSimulator,
    build_alias_table,
    compute_canonical_solution,
    compute_error,
    compute_eta_at_stationarity,
    compute_injection_rates,
    compute_zstar,
    estimate_queue_occupancy,
    solve,
)

# Types for type hints
from .types import (
    DemandVector,
    GraphProtocol,
    LaplacianSolveResult,
    QueueOccupancyResult,
    StationaryStateResult,
    VertexVector,
)
from .utils import RandomSource

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Submodules
    "graphs",
    "solver",
    "types",
    "utils",
    # Graphs
    "WeightedGraph",
    "path_graph",
    "cycle_graph",
    "complete_graph",
    "star_graph",
    "grid_graph",
    "random_connected_graph",
    # Solver
    "LaplacianSolver",
    "solve",
    "AliasSampler",
    "build_alias_table",
    "QueueSimulator",
    "estimate_queue_occupancy",
    "BetaSearch",
    "compute_eta_at_stationarity",
    "compute_injection_rates",
    "compute_canonical_solution",
    "compute_zstar",
    "compute_error",
    # Randomness
    "RandomSource",
    # Types
    "DemandVector",
    "VertexVector",
    "GraphProtocol",
    "QueueOccupancyResult",
    "StationaryStateResult",
    "LaplacianSolveResult",
]
