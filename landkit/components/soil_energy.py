"""
Soil energy balance: vertical heat conduction with freeze/thaw.

∂U/∂t = -∂F/∂z,    F = -κ·∂T/∂z   (z positive downward)

Temperature is prognostic through FreeWaterEnergyClosure, so the integrator
advances internal energy U and temperature is recovered by the inverse
closure every step. Boundary slabs of the temperature field supply either
the boundary temperature (VALUE) or the downward heat flux (FLUX).
"""

from dataclasses import dataclass

import taichi as ti

from landkit.closures.enthalpy import FreeWaterEnergyClosure
from landkit.components.protocol import ComponentBase
from landkit.core.dtypes import DTYPE
from landkit.fields.boundary import BoundaryKind, FieldBoundaryConditions, flux_bc, value_bc
from landkit.variables.spec import UNIT_INTERVAL, Dims, auxiliary, input_variable, prognostic


@dataclass(frozen=True)
class ThermalParams:
    """Thermal conductivities of soil constituents [W/(m·K)]."""

    k_mineral: float = 3.0
    k_water: float = 0.57
    k_ice: float = 2.2
    k_air: float = 0.025

    def __post_init__(self) -> None:
        for name in ("k_mineral", "k_water", "k_ice", "k_air"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


@ti.kernel
def thermal_conductivity_step(
    kappa: ti.template(),
    por: ti.template(),
    sat: ti.template(),
    liq: ti.template(),
    k_m: DTYPE,
    k_w: DTYPE,
    k_i: DTYPE,
    k_a: DTYPE,
):
    """Volume-weighted arithmetic mean of constituent conductivities."""
    for I in ti.grouped(kappa):
        p = por[I]
        s = sat[I]
        f = liq[I]
        kappa[I] = (1.0 - p) * k_m + p * s * (f * k_w + (1.0 - f) * k_i) + p * (1.0 - s) * k_a


@ti.kernel
def heat_conduction_tendency(
    T: ti.template(),
    kappa: ti.template(),
    top: ti.template(),
    bottom: ti.template(),
    dUdt: ti.template(),
    top_is_value: ti.i32,
    bottom_is_value: ti.i32,
    dz: DTYPE,
):
    """
    Accumulate -∂F/∂z into dUdt.

    Interface conductivity is the mean of adjacent layers; boundary values
    sit half a layer above the top and below the bottom cell centers.
    """
    nz = T.shape[2]
    for i, j, k in T:
        # downward flux into layer k through its upper face
        f_in = 0.0
        if k == 0:
            if top_is_value == 1:
                f_in = 2.0 * kappa[i, j, 0] * (top[i, j] - T[i, j, 0]) / dz
            else:
                f_in = top[i, j]
        else:
            k_face = 0.5 * (kappa[i, j, k - 1] + kappa[i, j, k])
            f_in = k_face * (T[i, j, k - 1] - T[i, j, k]) / dz

        # downward flux out of layer k through its lower face
        f_out = 0.0
        if k == nz - 1:
            if bottom_is_value == 1:
                f_out = 2.0 * kappa[i, j, k] * (T[i, j, k] - bottom[i, j]) / dz
            else:
                f_out = bottom[i, j]
        else:
            k_face = 0.5 * (kappa[i, j, k] + kappa[i, j, k + 1])
            f_out = k_face * (T[i, j, k] - T[i, j, k + 1]) / dz

        dUdt[i, j, k] += (f_in - f_out) / dz


class SoilEnergy(ComponentBase):
    """Heat conduction in the soil column with free-water freeze/thaw.

    Variables:
        temperature (prognostic, closure -> internal_energy, liquid_water_fraction)
        thermal_conductivity (auxiliary)
        porosity, saturation_water_ice, surface_temperature (inputs)
    """

    name = "soil_energy"

    def __init__(self, params: ThermalParams | None = None, closure: FreeWaterEnergyClosure | None = None):
        self.params = params or ThermalParams()
        self.closure = closure or FreeWaterEnergyClosure()

    def declare_variables(self):
        return (
            prognostic(
                "temperature",
                Dims.XYZ,
                closure=self.closure,
                units="°C",
                description="Soil temperature",
            ),
            auxiliary("thermal_conductivity", Dims.XYZ, units="W/(m·K)"),
            input_variable("porosity", Dims.XYZ, domain=UNIT_INTERVAL, default=0.5),
            input_variable("saturation_water_ice", Dims.XYZ, domain=UNIT_INTERVAL, default=1.0),
            input_variable("surface_temperature", Dims.XY, units="°C", default=0.0),
        )

    def boundary_conditions(self):
        return {
            "temperature": FieldBoundaryConditions(
                top=value_bc("surface_temperature"),
                bottom=flux_bc(0.0),
            )
        }

    def compute_auxiliary(self, state, context):
        p = self.params
        thermal_conductivity_step(
            state.thermal_conductivity.data,
            state[self.closure.porosity].data,
            state[self.closure.saturation].data,
            state[self.closure.liquid_fraction].data,
            p.k_mineral,
            p.k_water,
            p.k_ice,
            p.k_air,
        )

    def compute_tendencies(self, state, context):
        T = state.temperature
        bcs = T.boundary_conditions
        heat_conduction_tendency(
            T.data,
            state.thermal_conductivity.data,
            T.top,
            T.bottom,
            state.tendency("temperature").data,
            int(bcs.top.kind is BoundaryKind.VALUE),
            int(bcs.bottom.kind is BoundaryKind.VALUE),
            context.grid.dz,
        )

    def __repr__(self) -> str:
        return f"SoilEnergy({self.params})"
