"""
Soil hydrology: gravity drainage of the water+ice saturation.

φ·∂s/∂t = -∂q/∂z,    q = K(s) = K_sat · s^b   (z positive downward)

Unit-gradient drainage between layers, limited by the free pore space of the
receiving layer. Water enters through the top flux boundary (rainfall by
default), capped at the top layer's conductivity.
"""

from dataclasses import dataclass

import taichi as ti

from landkit.components.protocol import ComponentBase
from landkit.core.dtypes import DTYPE
from landkit.fields.boundary import FieldBoundaryConditions, flux_bc
from landkit.variables.spec import NON_NEGATIVE, UNIT_INTERVAL, Dims, auxiliary, input_variable, prognostic


@dataclass(frozen=True)
class HydraulicParams:
    """Hydraulic conductivity curve: K_sat [m/s], exponent b [-]."""

    K_sat: float = 1e-5
    b: float = 3.0

    def __post_init__(self) -> None:
        if self.K_sat <= 0:
            raise ValueError(f"K_sat must be positive, got {self.K_sat}")
        if self.b < 0:
            raise ValueError(f"b must be non-negative, got {self.b}")


@ti.kernel
def hydraulic_conductivity_step(K: ti.template(), sat: ti.template(), K_sat: DTYPE, b: DTYPE):
    """K = K_sat · s^b"""
    for I in ti.grouped(K):
        s = ti.max(sat[I], 0.0)
        K[I] = K_sat * s**b


@ti.kernel
def drainage_tendency(
    sat: ti.template(),
    K: ti.template(),
    por: ti.template(),
    top: ti.template(),
    bottom: ti.template(),
    dsdt: ti.template(),
    dz: DTYPE,
):
    """Accumulate -(1/φ)·∂q/∂z into dsdt."""
    nz = sat.shape[2]
    for i, j, k in sat:
        q_in = 0.0
        if k == 0:
            q_in = ti.min(top[i, j], K[i, j, 0])
        else:
            q_in = K[i, j, k - 1] * ti.max(1.0 - sat[i, j, k], 0.0)

        q_out = 0.0
        if k == nz - 1:
            q_out = bottom[i, j]
        else:
            q_out = K[i, j, k] * ti.max(1.0 - sat[i, j, k + 1], 0.0)

        pore = por[i, j, k] * dz
        if pore > 0.0:
            dsdt[i, j, k] += (q_in - q_out) / pore


class SoilHydrology(ComponentBase):
    """Vertical drainage of soil water.

    Variables:
        saturation_water_ice (prognostic)
        hydraulic_conductivity (auxiliary)
        porosity, rainfall (inputs)
    """

    name = "soil_hydrology"

    def __init__(self, params: HydraulicParams | None = None):
        self.params = params or HydraulicParams()

    def declare_variables(self):
        return (
            prognostic(
                "saturation_water_ice",
                Dims.XYZ,
                domain=UNIT_INTERVAL,
                description="Water and ice volume as a fraction of pore space",
            ),
            auxiliary("hydraulic_conductivity", Dims.XYZ, units="m/s", domain=NON_NEGATIVE),
            input_variable("porosity", Dims.XYZ, domain=UNIT_INTERVAL, default=0.5),
            input_variable("rainfall", Dims.XY, units="m/s", domain=NON_NEGATIVE, default=0.0),
        )

    def boundary_conditions(self):
        return {
            "saturation_water_ice": FieldBoundaryConditions(top=flux_bc("rainfall"), bottom=flux_bc(0.0))
        }

    def compute_auxiliary(self, state, context):
        hydraulic_conductivity_step(
            state.hydraulic_conductivity.data,
            state.saturation_water_ice.data,
            self.params.K_sat,
            self.params.b,
        )

    def compute_tendencies(self, state, context):
        sat = state.saturation_water_ice
        drainage_tendency(
            sat.data,
            state.hydraulic_conductivity.data,
            state.porosity.data,
            sat.top,
            sat.bottom,
            state.tendency("saturation_water_ice").data,
            context.grid.dz,
        )
