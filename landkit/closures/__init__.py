"""Closure relations linking the primary and driven view of a prognostic variable."""

from landkit.closures.base import (
    ClosureRelation,
    apply_closure,
    apply_closures,
    apply_inverse_closure,
    apply_inverse_closures,
)
from landkit.closures.enthalpy import FreeWaterEnergyClosure
from landkit.closures.linear import LinearClosure

__all__ = [
    "ClosureRelation",
    "FreeWaterEnergyClosure",
    "LinearClosure",
    "apply_closure",
    "apply_closures",
    "apply_inverse_closure",
    "apply_inverse_closures",
]
