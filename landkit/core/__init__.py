"""Core infrastructure: types, clock, and constants.

The column grid lives in landkit.core.grid; it depends on landkit.fields and
is not re-exported here.
"""

from landkit.core.clock import Clock
from landkit.core.constants import PhysicalConstants
from landkit.core.dtypes import DTYPE

__all__ = [
    "DTYPE",
    "Clock",
    "PhysicalConstants",
]
