"""Field storage and in-place field kernels.

A Field wraps one Taichi field together with the metadata the framework
needs: its name, its dimensions, and for full-column fields the top and
bottom boundary slabs filled from the field's boundary conditions.

Every operation here writes into existing storage; nothing reallocates.
"""

from typing import Any, Mapping

import numpy as np
import taichi as ti

from landkit.core.dtypes import DTYPE
from landkit.errors import CompositionMismatchError


@ti.kernel
def fill_field(field: ti.template(), value: DTYPE):
    """Set all field values to a constant."""
    for I in ti.grouped(field):
        field[I] = value


@ti.kernel
def copy_field(src: ti.template(), dst: ti.template()):
    """Copy src to dst."""
    for I in ti.grouped(src):
        dst[I] = src[I]


@ti.kernel
def axpy_field(y: ti.template(), x: ti.template(), a: DTYPE):
    """y += a * x"""
    for I in ti.grouped(y):
        y[I] += a * x[I]


@ti.kernel
def average_fields(dst: ti.template(), other: ti.template()):
    """dst = (dst + other) / 2"""
    for I in ti.grouped(dst):
        dst[I] = 0.5 * (dst[I] + other[I])


class Field:
    """A named Taichi field with optional vertical boundary slabs.

    Attributes:
        name: Variable name the field was allocated for
        dims: Dims.XY or Dims.XYZ
        data: The underlying Taichi field, passed to kernels
        boundary_conditions: Top/bottom conditions (XYZ fields only)
        top: Boundary slab above layer 0, shape (nx, ny), or None
        bottom: Boundary slab below the last layer, shape (nx, ny), or None
    """

    def __init__(
        self,
        name: str,
        dims: Any,
        shape: tuple[int, ...],
        dtype: Any = DTYPE,
        boundary_conditions: Any = None,
        boundary_shape: tuple[int, ...] | None = None,
        inputs: Mapping[str, "Field"] | None = None,
    ):
        self.name = name
        self.dims = dims
        self.dtype = dtype
        self.data = ti.field(dtype=dtype, shape=shape)
        self.boundary_conditions = boundary_conditions
        self.top = None
        self.bottom = None
        self._boundary_sources: dict[str, "Field | None"] = {}

        if boundary_conditions is not None:
            self.top = ti.field(dtype=dtype, shape=boundary_shape)
            self.bottom = ti.field(dtype=dtype, shape=boundary_shape)
            # Resolve input references once, so a typo fails at construction
            for side in ("top", "bottom"):
                bc = getattr(boundary_conditions, side)
                source = bc.resolve(inputs or {})
                if source is not None and source.shape != tuple(boundary_shape):
                    raise CompositionMismatchError(
                        f"{side.capitalize()} boundary of '{name}' reads '{bc.value}' "
                        f"with shape {source.shape}, expected lateral shape {tuple(boundary_shape)}"
                    )
                self._boundary_sources[side] = source

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def n_elements(self) -> int:
        n = 1
        for dim in self.shape:
            n *= dim
        return n

    def fill(self, value: float) -> None:
        fill_field(self.data, value)

    def copy_from(self, other: "Field") -> None:
        """Copy values (and boundary slabs) from a field of the same shape."""
        if other is self:
            return
        if other.shape != self.shape:
            raise ValueError(
                f"Cannot copy field '{other.name}' {other.shape} into "
                f"'{self.name}' {self.shape}"
            )
        copy_field(other.data, self.data)
        if self.top is not None and other.top is not None:
            copy_field(other.top, self.top)
            copy_field(other.bottom, self.bottom)

    def fill_boundaries(self, clock: Any) -> None:
        """Evaluate boundary conditions into the top and bottom slabs."""
        if self.boundary_conditions is None:
            return
        for side in ("top", "bottom"):
            bc = getattr(self.boundary_conditions, side)
            bc.fill(getattr(self, side), clock, self._boundary_sources[side])

    def set(self, value: Any) -> None:
        """Set from a scalar or an array broadcastable to the field shape."""
        if np.isscalar(value):
            self.fill(float(value))
            return
        np_dtype = np.float64 if self.dtype == ti.f64 else np.float32
        arr = np.broadcast_to(np.asarray(value, dtype=np_dtype), self.shape)
        self.data.from_numpy(np.ascontiguousarray(arr))

    def to_numpy(self) -> np.ndarray:
        return self.data.to_numpy()

    def from_numpy(self, arr: np.ndarray) -> None:
        self.data.from_numpy(arr)

    def __getitem__(self, index):
        return self.data[index]

    def __setitem__(self, index, value):
        self.data[index] = value

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.dims.name}, shape={self.shape})"
