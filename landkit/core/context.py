"""Immutable context passed explicitly to component and closure calls."""

from dataclasses import dataclass, field

from landkit.core.constants import PhysicalConstants
from landkit.core.grid import ColumnGrid


@dataclass(frozen=True)
class ModelContext:
    """Grid and physical constants shared by all components of a model."""

    grid: ColumnGrid
    constants: PhysicalConstants = field(default_factory=PhysicalConstants)
