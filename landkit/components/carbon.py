"""One-pool soil carbon: dC/dt = litterfall - k·C."""

import taichi as ti

from landkit.components.protocol import ComponentBase
from landkit.core.dtypes import DTYPE
from landkit.variables.spec import NON_NEGATIVE, Dims, auxiliary, input_variable, prognostic


@ti.kernel
def respiration_step(R: ti.template(), C: ti.template(), k: DTYPE):
    for I in ti.grouped(C):
        R[I] = k * ti.max(C[I], 0.0)


@ti.kernel
def carbon_tendency(dCdt: ti.template(), litter: ti.template(), R: ti.template()):
    for I in ti.grouped(dCdt):
        dCdt[I] += litter[I] - R[I]


class SoilCarbon(ComponentBase):
    """Lateral-only carbon stock [kg/m²] with first-order decay."""

    name = "soil_carbon"

    def __init__(self, decay_rate: float = 1e-8, initial_carbon: float | None = None):
        if decay_rate < 0:
            raise ValueError(f"decay_rate must be non-negative, got {decay_rate}")
        self.decay_rate = decay_rate
        self.initial_carbon = initial_carbon

    def declare_variables(self):
        return (
            prognostic("soil_carbon", Dims.XY, units="kg/m^2", domain=NON_NEGATIVE),
            auxiliary("heterotrophic_respiration", Dims.XY, units="kg/m^2/s"),
            input_variable("litterfall", Dims.XY, units="kg/m^2/s", domain=NON_NEGATIVE, default=0.0),
        )

    def initialize(self, state, context):
        if self.initial_carbon is not None:
            state.soil_carbon.fill(self.initial_carbon)

    def compute_auxiliary(self, state, context):
        respiration_step(state.heterotrophic_respiration.data, state.soil_carbon.data, self.decay_rate)

    def compute_tendencies(self, state, context):
        carbon_tendency(
            state.tendency("soil_carbon").data,
            state.litterfall.data,
            state.heterotrophic_respiration.data,
        )

    def __repr__(self) -> str:
        return f"SoilCarbon(decay_rate={self.decay_rate})"
