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
Utilities: seeded random sources and backend conversion.
"""

from .backend import detect_backend, from_numpy, to_numpy
from .random_source import RandomSource, as_random_source

__all__ = [
    "RandomSource",
    "as_random_source",
    "detect_backend",
    "to_numpy",
    "from_numpy",
]
