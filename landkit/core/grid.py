"""Column grid geometry and field allocation.

The grid is a regular lateral raster of (nx, ny) columns, each discretized
into nz soil layers of thickness dz. Layer index k increases downward, with
k = 0 the layer touching the surface.

    Full-column (XYZ) field shape:  (nx, ny, nz)
    Lateral-only (XY) field shape:  (nx, ny)

The grid is the only place fields are allocated; the state container asks for
fields through allocate_field() and never creates Taichi storage itself.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from landkit.core.clock import Clock
from landkit.core.dtypes import DTYPE
from landkit.fields.boundary import FieldBoundaryConditions
from landkit.fields.field import Field
from landkit.variables.spec import Dims


@dataclass(frozen=True)
class ColumnGrid:
    """Immutable column grid specification.

    Attributes:
        nx: Number of columns along x
        ny: Number of columns along y
        nz: Number of vertical layers per column
        dz: Layer thickness [m]
        dx: Lateral cell size [m]

    Properties:
        n_columns: Total number of columns (nx * ny)
        depth: Total column depth [m]
    """

    nx: int = 1
    ny: int = 1
    nz: int = 10
    dz: float = 0.1
    dx: float = 1.0

    def __post_init__(self):
        """Validate grid dimensions."""
        if self.nx < 1:
            raise ValueError(f"nx must be >= 1, got {self.nx}")
        if self.ny < 1:
            raise ValueError(f"ny must be >= 1, got {self.ny}")
        if self.nz < 1:
            raise ValueError(f"nz must be >= 1, got {self.nz}")
        if self.dz <= 0:
            raise ValueError(f"dz must be > 0, got {self.dz}")
        if self.dx <= 0:
            raise ValueError(f"dx must be > 0, got {self.dx}")

    @property
    def n_columns(self) -> int:
        return self.nx * self.ny

    @property
    def depth(self) -> float:
        """Total column depth [m]."""
        return self.nz * self.dz

    @property
    def lateral_shape(self) -> tuple[int, int]:
        return (self.nx, self.ny)

    @property
    def column_shape(self) -> tuple[int, int, int]:
        return (self.nx, self.ny, self.nz)

    def shape(self, dims: Dims) -> tuple[int, ...]:
        """Field shape for the given variable dimensions."""
        if dims is Dims.XYZ:
            return self.column_shape
        return self.lateral_shape

    def layer_depth(self, k: int) -> float:
        """Depth of the center of layer k below the surface [m]."""
        if k < 0 or k >= self.nz:
            raise ValueError(f"k must be 0-{self.nz - 1}, got {k}")
        return (k + 0.5) * self.dz

    def allocate_field(
        self,
        dims: Dims,
        boundary_conditions: FieldBoundaryConditions | None = None,
        inputs: Mapping[str, Field] | None = None,
        name: str = "",
        dtype: Any = DTYPE,
    ) -> Field:
        """Allocate a new zero-initialized field.

        Args:
            dims: Lateral-only or full-column
            boundary_conditions: Top/bottom conditions (XYZ fields only)
            inputs: Input fields that boundary conditions may reference
            name: Field name, used in error messages
            dtype: Taichi data type

        Returns:
            A new Field

        Raises:
            ValueError: If boundary conditions are given for an XY field
            NoSuchVariableError: If a boundary condition references a missing input
        """
        if dims is Dims.XY:
            if boundary_conditions is not None:
                raise ValueError(
                    f"Lateral-only field '{name}' cannot carry vertical boundary conditions"
                )
            return Field(name, dims, self.lateral_shape, dtype=dtype)

        return Field(
            name,
            dims,
            self.column_shape,
            dtype=dtype,
            boundary_conditions=boundary_conditions or FieldBoundaryConditions(),
            boundary_shape=self.lateral_shape,
            inputs=inputs or {},
        )

    def fill_boundary(self, field: Field, clock: Clock) -> None:
        """Evaluate the field's boundary conditions into its boundary slabs."""
        field.fill_boundaries(clock)
