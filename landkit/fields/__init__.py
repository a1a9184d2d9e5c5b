"""Field storage and boundary conditions.

Main classes:
- Field: Named Taichi field with optional top/bottom boundary slabs
- BoundaryCondition: VALUE or FLUX condition for one boundary
- FieldBoundaryConditions: Top and bottom conditions for one field

Kernels:
- fill_field, copy_field, axpy_field, average_fields
"""

from landkit.fields.boundary import (
    BoundaryCondition,
    BoundaryKind,
    FieldBoundaryConditions,
    flux_bc,
    value_bc,
)
from landkit.fields.field import (
    Field,
    average_fields,
    axpy_field,
    copy_field,
    fill_field,
)

__all__ = [
    "Field",
    "BoundaryCondition",
    "BoundaryKind",
    "FieldBoundaryConditions",
    "flux_bc",
    "value_bc",
    "fill_field",
    "copy_field",
    "axpy_field",
    "average_fields",
]
