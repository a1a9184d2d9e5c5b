"""Vertical boundary conditions for full-column fields.

Each XYZ field carries two boundary slabs, `top` and `bottom`, with one value
per column. A BoundaryCondition fills its slab every step from a constant, a
function of model time, or an input field. The kind tells physics components
how to read the slab:

- VALUE: the slab holds the boundary value of the variable (Dirichlet)
- FLUX: the slab holds the flux across the boundary, positive downward (Neumann)
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Mapping, Union

from landkit.errors import NoSuchVariableError
from landkit.fields.field import copy_field, fill_field


class BoundaryKind(Enum):
    """How the boundary slab is interpreted."""

    VALUE = auto()
    FLUX = auto()


BoundaryValue = Union[float, str, Callable[[float], float]]


@dataclass(frozen=True)
class BoundaryCondition:
    """One boundary condition.

    Attributes:
        kind: VALUE or FLUX
        value: Constant, callable of model time [s], or the name of an input field
    """

    kind: BoundaryKind = BoundaryKind.FLUX
    value: BoundaryValue = 0.0

    def resolve(self, inputs: Mapping[str, Any]) -> Any:
        """Look up the referenced input field, if any."""
        if not isinstance(self.value, str):
            return None
        if self.value not in inputs:
            raise NoSuchVariableError(self.value, inputs.keys())
        return inputs[self.value]

    def fill(self, slab: Any, clock: Any, source: Any = None) -> None:
        if source is not None:
            copy_field(source.data, slab)
        elif callable(self.value):
            fill_field(slab, float(self.value(clock.time)))
        else:
            fill_field(slab, float(self.value))


def value_bc(value: BoundaryValue) -> BoundaryCondition:
    """Prescribed boundary value (Dirichlet)."""
    return BoundaryCondition(BoundaryKind.VALUE, value)


def flux_bc(value: BoundaryValue = 0.0) -> BoundaryCondition:
    """Prescribed boundary flux, positive downward (Neumann)."""
    return BoundaryCondition(BoundaryKind.FLUX, value)


@dataclass(frozen=True)
class FieldBoundaryConditions:
    """Top and bottom conditions for one field; zero flux by default."""

    top: BoundaryCondition = field(default_factory=flux_bc)
    bottom: BoundaryCondition = field(default_factory=flux_bc)
