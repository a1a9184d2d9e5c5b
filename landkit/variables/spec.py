"""Variable specifications declared by components.

This module provides the vocabulary components use to declare state:
- VariableSpec: Immutable metadata for one named state quantity
- Role: Prognostic, auxiliary, or input
- Dims: Lateral-only (XY) or full-column (XYZ)
- Domain: Valid value range (metadata only)
- Namespace: A nested composition level with its own declarations

Usage:
    def declare_variables(self):
        return (
            prognostic("temperature", Dims.XYZ, closure=FreeWaterEnergyClosure(), units="°C"),
            auxiliary("thermal_conductivity", Dims.XYZ, units="W/(m·K)"),
            input_variable("surface_temperature", Dims.XY, default=0.0),
        )
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional


class Role(Enum):
    """How a variable participates in the time step.

    PROGNOSTIC: Integrated in time; owns a tendency
    AUXILIARY: Recomputed from the prognostic state each step
    INPUT: Supplied from outside (forcings, parameters, defaults)
    """

    PROGNOSTIC = auto()
    AUXILIARY = auto()
    INPUT = auto()


class Dims(Enum):
    """Grid dimensions a variable is defined on."""

    XY = auto()  # lateral only, one value per column
    XYZ = auto()  # full column, one value per layer


@dataclass(frozen=True)
class Domain:
    """Closed interval of physically valid values."""

    lower: float = float("-inf")
    upper: float = float("inf")

    def __post_init__(self):
        if self.lower > self.upper:
            raise ValueError(f"Empty domain [{self.lower}, {self.upper}]")

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


REAL_LINE = Domain()
UNIT_INTERVAL = Domain(0.0, 1.0)
NON_NEGATIVE = Domain(0.0, float("inf"))


def _validate_name(name: str) -> None:
    if not name:
        raise ValueError("Variable name cannot be empty")
    if not name.islower() or not name.replace("_", "").isalnum() or name[0].isdigit():
        raise ValueError(f"Variable name must be snake_case, got: {name}")


@dataclass(frozen=True)
class VariableSpec:
    """Immutable description of one state quantity.

    Attributes:
        name: Identifier, unique within its composition level
        dims: XY or XYZ
        role: Prognostic, auxiliary, or input
        units: Physical units, free-form (e.g. "°C", "J/m^3")
        domain: Valid value range
        description: Human-readable description
        closure: Closure relation (prognostic only)
        constructor: Custom field constructor (grid, clock, fields) -> Field (auxiliary only)
        default: Fill value or initializer (grid) -> array (input only)
    """

    name: str
    dims: Dims
    role: Role
    units: str = ""
    domain: Domain = field(default=REAL_LINE, compare=False)
    description: str = field(default="", compare=False)
    closure: Any = None
    constructor: Optional[Callable[..., Any]] = field(default=None, compare=False)
    default: Any = field(default=None, compare=False)

    def __post_init__(self):
        """Validate variable specification."""
        _validate_name(self.name)
        if self.closure is not None and self.role is not Role.PROGNOSTIC:
            raise ValueError(f"Only prognostic variables can carry a closure: '{self.name}'")
        if self.constructor is not None and self.role is not Role.AUXILIARY:
            raise ValueError(f"Only auxiliary variables can define a constructor: '{self.name}'")
        if self.default is not None and self.role is not Role.INPUT:
            raise ValueError(f"Only input variables can define a default: '{self.name}'")

    @property
    def has_closure(self) -> bool:
        return self.closure is not None

    @property
    def driven(self) -> "VariableSpec":
        """The variable actually advanced by the integrator.

        For a prognostic variable with a closure this is the closure's
        variable; otherwise the variable itself.
        """
        if self.closure is not None:
            return self.closure.variable
        return self

    def tendency(self) -> "VariableSpec":
        """Derive the tendency variable of a prognostic variable."""
        if self.role is not Role.PROGNOSTIC:
            raise ValueError(f"'{self.name}' is not prognostic and has no tendency")
        driven = self.driven
        return VariableSpec(
            name=f"{driven.name}_tendency",
            dims=self.dims,
            role=Role.AUXILIARY,
            units=f"{driven.units}/s" if driven.units else "1/s",
            description=f"Time derivative of {driven.name}",
        )

    def same_layout(self, other: "VariableSpec") -> bool:
        """True if both variables can share one field."""
        return self.dims == other.dims and self.units == other.units

    def identical(self, other: "VariableSpec") -> bool:
        """True if two declarations describe the same variable."""
        return (
            self.name == other.name
            and self.role == other.role
            and self.same_layout(other)
            and self.closure == other.closure
        )


@dataclass(frozen=True)
class Namespace:
    """Declarations of a sub-component, kept in their own composition level."""

    name: str
    variables: tuple = ()

    def __post_init__(self):
        _validate_name(self.name)


# =============================================================================
# Declaration helpers
# =============================================================================


def prognostic(
    name: str,
    dims: Dims,
    closure: Any = None,
    units: str = "",
    domain: Domain = REAL_LINE,
    description: str = "",
) -> VariableSpec:
    """Declare a prognostic variable, optionally integrated through a closure."""
    return VariableSpec(
        name=name,
        dims=dims,
        role=Role.PROGNOSTIC,
        units=units,
        domain=domain,
        description=description,
        closure=closure,
    )


def auxiliary(
    name: str,
    dims: Dims,
    units: str = "",
    domain: Domain = REAL_LINE,
    description: str = "",
    constructor: Optional[Callable[..., Any]] = None,
) -> VariableSpec:
    """Declare an auxiliary (diagnostic) variable."""
    return VariableSpec(
        name=name,
        dims=dims,
        role=Role.AUXILIARY,
        units=units,
        domain=domain,
        description=description,
        constructor=constructor,
    )


def input_variable(
    name: str,
    dims: Dims,
    units: str = "",
    domain: Domain = REAL_LINE,
    description: str = "",
    default: Any = None,
) -> VariableSpec:
    """Declare an input variable, filled from input sources or its default."""
    return VariableSpec(
        name=name,
        dims=dims,
        role=Role.INPUT,
        units=units,
        domain=domain,
        description=description,
        default=default,
    )


def namespace(name: str, variables=()) -> Namespace:
    """Declare a nested namespace holding a sub-component's variables."""
    return Namespace(name, tuple(variables))
