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
Randomized queueing solver for graph-Laplacian systems.

Components, leaf first:

- alias_sampler: O(1) next-hop sampling (Walker's alias method)
- queue_simulator: discrete-time packet network, occupancy estimates
- beta_search: halving search for a stable injection scale
- solution_assembler: occupancy -> centered solution, residual check
- laplacian_solver: the LaplacianSolver facade and solve()
"""

from .alias_sampler import AliasSampler, build_alias_table, sample_alias
from .beta_search import BetaSearch, compute_eta_at_stationarity, validate_error_bounds
from .demand import compute_injection_rates, validate_demand
from .laplacian_solver import LaplacianSolver, solve
from .queue_simulator import QueueSimulator, burn_in_sample_steps, estimate_queue_occupancy
from .solution_assembler import compute_canonical_solution, compute_error, compute_zstar

__all__ = [
    "AliasSampler",
    "build_alias_table",
    "sample_alias",
    "QueueSimulator",
    "burn_in_sample_steps",
    "estimate_queue_occupancy",
    "BetaSearch",
    "compute_eta_at_stationarity",
    "validate_error_bounds",
    "compute_injection_rates",
    "validate_demand",
    "compute_canonical_solution",
    "compute_zstar",
    "compute_error",
    "LaplacianSolver",
    "solve",
]
