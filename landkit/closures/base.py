"""Closure relation protocol and dispatch.

A prognostic variable with a closure has two views of one degree of freedom:

    primary view  (e.g. temperature)      read by other components
    driven view   (e.g. internal energy)  advanced by the integrator

forward() maps primary -> driven, inverse() maps driven -> primary. Both write
into existing fields of a StateVariables container.

Dispatch policy:
- apply_closures(): forward, at initialization only
- apply_inverse_closures(): inverse, after every integrator advance

Relations perform no domain validation. Degenerate denominators are handled
inside each relation's kernels.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from landkit.core.constants import PhysicalConstants
from landkit.fields.field import Field
from landkit.variables.spec import VariableSpec

logger = logging.getLogger(__name__)


class ClosureRelation(ABC):
    """Bidirectional transform between the primary and driven view."""

    @property
    @abstractmethod
    def variable(self) -> VariableSpec:
        """Auxiliary variable holding the driven view."""

    def variables(self) -> tuple[VariableSpec, ...]:
        """Auxiliary variables produced by the relation, driven variable first."""
        return (self.variable,)

    @abstractmethod
    def forward(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        """Compute the driven view from the primary view, in place."""

    @abstractmethod
    def inverse(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        """Recover the primary view from the driven view, in place."""


def context_constants(context: Any) -> PhysicalConstants:
    """Physical constants from a ModelContext, or the defaults."""
    constants = getattr(context, "constants", None)
    return constants if constants is not None else PhysicalConstants()


def _closure_variable(state: Any, variable: VariableSpec | str) -> VariableSpec:
    name = variable if isinstance(variable, str) else variable.name
    var = state.registry.get(name)
    if not var.has_closure:
        raise ValueError(f"Prognostic variable '{name}' has no closure relation")
    return var


def _views(state: Any, var: VariableSpec) -> tuple[Field, Field]:
    return state.prognostic[var.name], state.auxiliary[var.closure.variable.name]


def apply_closure(state: Any, variable: VariableSpec | str, context: Any = None) -> None:
    """Forward transform of one prognostic variable: primary -> driven.

    Args:
        state: StateVariables holding the variable
        variable: Prognostic variable (or its name) carrying a closure
        context: ModelContext passed through to the relation

    Raises:
        NoSuchVariableError: If the variable is not in the state's registry
        ValueError: If the variable has no closure
    """
    var = _closure_variable(state, variable)
    primary, driven = _views(state, var)
    var.closure.forward(primary, driven, state, context)


def apply_inverse_closure(state: Any, variable: VariableSpec | str, context: Any = None) -> None:
    """Inverse transform of one prognostic variable: driven -> primary."""
    var = _closure_variable(state, variable)
    primary, driven = _views(state, var)
    var.closure.inverse(primary, driven, state, context)


def apply_closures(state: Any, context: Any = None) -> None:
    """Forward transform of every closure, in declaration order, all namespaces."""
    for var in state.registry.closure_variables():
        logger.debug("Forward closure %s -> %s", var.name, var.closure.variable.name)
        apply_closure(state, var, context)
    for ns in state.namespaces.values():
        apply_closures(ns, context)


def apply_inverse_closures(state: Any, context: Any = None) -> None:
    """Inverse transform of every closure, in declaration order, all namespaces."""
    for var in state.registry.closure_variables():
        apply_inverse_closure(state, var, context)
    for ns in state.namespaces.values():
        apply_inverse_closures(ns, context)
