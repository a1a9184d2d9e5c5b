"""Free-water freeze/thaw closure between temperature and internal energy.

Soil pore water freezes at 0°C with no freezing-point depression. The
volumetric internal energy U [J/m³] relates to temperature T [°C] through the
liquid water fraction f:

    U = T·C(f) - L·θ·(1 - f)

    C(f) = (1 - φ)·c_m + φ·s·(f·c_w + (1 - f)·c_i) + φ·(1 - s)·c_a
    L·θ  = ρ_w·L_sl · φ·s        (latent heat content)

where φ is porosity and s the total water+ice saturation. Inverting gives
three branches:

    U < -L·θ          frozen:   f = 0, T = (U + L·θ) / C(0)
    -L·θ <= U < 0     plateau:  f = 1 + U / (L·θ), T = 0
    U >= 0            thawed:   f = 1, T = U / C(1)

Divisions by zero (no pore water or zero heat capacity) yield 0.
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti

from landkit.closures.base import ClosureRelation, context_constants
from landkit.core.dtypes import DTYPE
from landkit.fields.field import Field
from landkit.variables.spec import UNIT_INTERVAL, Dims, VariableSpec, auxiliary


@ti.func
def safe_div(a, b):
    result = 0.0
    if b != 0.0:
        result = a / b
    return result


@ti.func
def heat_capacity(por, sat, liq, c_m, c_w, c_i, c_a):
    """Volumetric heat capacity of the soil-water-ice-air mixture."""
    return (1.0 - por) * c_m + por * sat * (liq * c_w + (1.0 - liq) * c_i) + por * (1.0 - sat) * c_a


@ti.kernel
def temperature_to_energy(
    T: ti.template(),
    U: ti.template(),
    liq: ti.template(),
    por: ti.template(),
    sat: ti.template(),
    L: DTYPE,
    c_m: DTYPE,
    c_w: DTYPE,
    c_i: DTYPE,
    c_a: DTYPE,
):
    """U = T·C(f) - L·θ·(1 - f), with f = 1 for T >= 0, else 0."""
    for I in ti.grouped(T):
        f = ti.select(T[I] >= 0.0, 1.0, 0.0)
        L_theta = L * por[I] * sat[I]
        C = heat_capacity(por[I], sat[I], f, c_m, c_w, c_i, c_a)
        U[I] = T[I] * C - L_theta * (1.0 - f)
        liq[I] = f


@ti.kernel
def energy_to_temperature(
    U: ti.template(),
    T: ti.template(),
    liq: ti.template(),
    por: ti.template(),
    sat: ti.template(),
    L: DTYPE,
    c_m: DTYPE,
    c_w: DTYPE,
    c_i: DTYPE,
    c_a: DTYPE,
):
    """Recover T and f from U (frozen, plateau, thawed branches)."""
    for I in ti.grouped(U):
        u = U[I]
        L_theta = L * por[I] * sat[I]
        T_new = 0.0
        f = 1.0
        if u < -L_theta:
            f = 0.0
            T_new = safe_div(u + L_theta, heat_capacity(por[I], sat[I], 0.0, c_m, c_w, c_i, c_a))
        elif u >= 0.0:
            T_new = safe_div(u, heat_capacity(por[I], sat[I], 1.0, c_m, c_w, c_i, c_a))
        else:
            f = 1.0 + safe_div(u, L_theta)
        T[I] = T_new
        liq[I] = f


@dataclass(frozen=True)
class FreeWaterEnergyClosure(ClosureRelation):
    """Temperature [°C] <-> internal energy [J/m³] with free-water phase change.

    Attributes:
        energy: Name of the driven internal energy variable
        liquid_fraction: Name of the liquid water fraction variable
        porosity: Name of the porosity field read from the state
        saturation: Name of the water+ice saturation field read from the state
    """

    energy: str = "internal_energy"
    liquid_fraction: str = "liquid_water_fraction"
    porosity: str = "porosity"
    saturation: str = "saturation_water_ice"

    @property
    def variable(self) -> VariableSpec:
        return auxiliary(
            self.energy,
            Dims.XYZ,
            units="J/m^3",
            description="Volumetric internal energy of the soil column",
        )

    def variables(self) -> tuple[VariableSpec, ...]:
        return (
            self.variable,
            auxiliary(
                self.liquid_fraction,
                Dims.XYZ,
                domain=UNIT_INTERVAL,
                description="Fraction of pore water in liquid phase",
            ),
        )

    def _args(self, state: Any, context: Any) -> tuple:
        c = context_constants(context)
        return (
            state[self.liquid_fraction].data,
            state[self.porosity].data,
            state[self.saturation].data,
            c.volumetric_latent_heat,
            c.c_mineral,
            c.c_water,
            c.c_ice,
            c.c_air,
        )

    def forward(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        temperature_to_energy(primary.data, driven.data, *self._args(state, context))

    def inverse(self, primary: Field, driven: Field, state: Any, context: Any = None) -> None:
        energy_to_temperature(driven.data, primary.data, *self._args(state, context))
