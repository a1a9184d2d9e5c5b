"""Linear closure: driven = coefficient * primary."""

from dataclasses import dataclass
from typing import Any

import taichi as ti

from landkit.closures.base import ClosureRelation
from landkit.core.dtypes import DTYPE
from landkit.fields.field import Field, fill_field
from landkit.variables.spec import Dims, VariableSpec, auxiliary


@ti.kernel
def scale_into(src: ti.template(), dst: ti.template(), a: DTYPE):
    """dst = a * src"""
    for I in ti.grouped(src):
        dst[I] = a * src[I]


@dataclass(frozen=True)
class LinearClosure(ClosureRelation):
    """Constant-coefficient closure, e.g. heat content from temperature.

    Attributes:
        name: Name of the driven variable
        coefficient: Multiplier from primary to driven view
        dims: Dimensions of the driven variable (must match the primary)
        units: Units of the driven variable
    """

    name: str
    coefficient: float = 1.0
    dims: Dims = Dims.XYZ
    units: str = ""

    @property
    def variable(self) -> VariableSpec:
        return auxiliary(
            self.name,
            self.dims,
            units=self.units,
            description=f"{self.coefficient:g} times the primary variable",
        )

    def forward(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        scale_into(primary.data, driven.data, self.coefficient)

    def inverse(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        if self.coefficient == 0.0:
            fill_field(primary.data, 0.0)
        else:
            scale_into(driven.data, primary.data, 1.0 / self.coefficient)
