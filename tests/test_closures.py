"""Tests for closure relations and closure dispatch.

Tests cover:
- LinearClosure forward/inverse and the zero-coefficient case
- FreeWaterEnergyClosure frozen, thawed and plateau branches
- Degenerate denominators (no pore water, zero heat capacity)
- apply_closures / apply_inverse_closures recursion into namespaces
"""

import numpy as np
import pytest

from landkit.closures import (
    FreeWaterEnergyClosure,
    LinearClosure,
    apply_closure,
    apply_closures,
    apply_inverse_closure,
    apply_inverse_closures,
)
from landkit.components import ModelContext, SoilEnergy
from landkit.core.constants import PhysicalConstants
from landkit.errors import NoSuchVariableError
from landkit.state import StateVariables
from landkit.variables import Dims, Variables, namespace, prognostic


def heat_capacity(c, por, sat, liq):
    return (
        (1 - por) * c.c_mineral
        + por * sat * (liq * c.c_water + (1 - liq) * c.c_ice)
        + por * (1 - sat) * c.c_air
    )


@pytest.fixture
def energy_state(column):
    """Soil energy state on a single 4-layer column (porosity 0.5, saturated)."""
    return StateVariables(Variables.from_components([SoilEnergy()]), column)


class TestLinearClosure:
    """Tests for LinearClosure."""

    def test_variable(self):
        closure = LinearClosure("heat", 3.0, Dims.XY, units="J")
        assert closure.variable.name == "heat"
        assert closure.variable.units == "J"
        assert closure.variables() == (closure.variable,)

    def test_forward_and_inverse(self, declares, grid, assert_field_close):
        registry = Variables.from_components([
            declares("a", prognostic("u", Dims.XY, closure=LinearClosure("e", 4.0, Dims.XY)))
        ])
        state = StateVariables(registry, grid)
        state.u.fill(10.0)
        apply_closure(state, "u")
        assert_field_close(state.e, 40.0)

        state.e.fill(38.0)
        apply_inverse_closure(state, registry.get("u"))
        assert_field_close(state.u, 9.5)

    def test_zero_coefficient(self, declares, grid, assert_field_close):
        """Inverse with a zero coefficient yields zero instead of a non-finite value."""
        registry = Variables.from_components([
            declares("a", prognostic("u", Dims.XY, closure=LinearClosure("e", 0.0, Dims.XY)))
        ])
        state = StateVariables(registry, grid)
        state.u.fill(5.0)
        apply_closure(state, "u")
        assert_field_close(state.e, 0.0)
        apply_inverse_closure(state, "u")
        assert_field_close(state.u, 0.0)

    def test_hashable(self):
        assert len({LinearClosure("e", 1.0), LinearClosure("e", 1.0)}) == 1


class TestFreeWaterEnergyClosure:
    """Tests for the freeze/thaw closure."""

    def test_forward(self, energy_state):
        c = PhysicalConstants()
        T = np.array([-3.0, -0.5, 0.0, 3.0], dtype=np.float32)
        energy_state.temperature.set(T)
        apply_closure(energy_state, "temperature")

        L_theta = c.volumetric_latent_heat * 0.5
        liq = (T >= 0).astype(np.float64)
        expected = T * heat_capacity(c, 0.5, 1.0, liq) - L_theta * (1 - liq)
        U = energy_state.internal_energy.to_numpy()[0, 0]
        np.testing.assert_allclose(U, expected, rtol=1e-5, atol=1.0)
        np.testing.assert_array_equal(energy_state.liquid_water_fraction.to_numpy()[0, 0], liq)

    @pytest.mark.parametrize("temperature", [-20.0, -1.0, -0.01, 0.0, 0.01, 1.0, 25.0])
    def test_round_trip(self, energy_state, temperature):
        """inverse(forward(T)) recovers T outside the plateau."""
        energy_state.temperature.fill(temperature)
        apply_closure(energy_state, "temperature")
        energy_state.temperature.fill(999.0)
        apply_inverse_closure(energy_state, "temperature")
        np.testing.assert_allclose(energy_state.temperature.to_numpy(), temperature, atol=1e-3)

    def test_frozen_branch(self, energy_state):
        c = PhysicalConstants()
        L_theta = c.volumetric_latent_heat * 0.5
        C_frozen = heat_capacity(c, 0.5, 1.0, 0.0)
        energy_state.internal_energy.fill(-L_theta - 2.0 * C_frozen)
        apply_inverse_closure(energy_state, "temperature")
        np.testing.assert_allclose(energy_state.temperature.to_numpy(), -2.0, atol=1e-3)
        assert np.all(energy_state.liquid_water_fraction.to_numpy() == 0.0)

    @pytest.mark.parametrize("fraction", [0.0, 0.25, 0.5, 0.9])
    def test_plateau(self, energy_state, fraction):
        """Inside the plateau, T = 0 and the liquid fraction tracks U."""
        c = PhysicalConstants()
        L_theta = c.volumetric_latent_heat * 0.5
        energy_state.internal_energy.fill(-(1.0 - fraction) * L_theta)
        apply_inverse_closure(energy_state, "temperature")
        assert np.all(energy_state.temperature.to_numpy() == 0.0)
        np.testing.assert_allclose(energy_state.liquid_water_fraction.to_numpy(), fraction, atol=1e-5)

    def test_plateau_bounds(self, energy_state):
        """Forward values just below 0°C sit at the lower plateau bound."""
        c = PhysicalConstants()
        L_theta = c.volumetric_latent_heat * 0.5
        energy_state.temperature.fill(-1e-6)
        apply_closure(energy_state, "temperature")
        U = energy_state.internal_energy.to_numpy()
        assert np.all(U <= -L_theta * (1 - 1e-6))

    def test_no_pore_water(self, energy_state):
        """Zero porosity: no latent heat, mineral heat capacity only."""
        c = PhysicalConstants()
        energy_state.porosity.fill(0.0)
        energy_state.internal_energy.set(np.array([-2.0e6, 0.0, 1.0e6, 4.0e6], dtype=np.float32))
        apply_inverse_closure(energy_state, "temperature")
        T = energy_state.temperature.to_numpy()[0, 0]
        np.testing.assert_allclose(T, np.array([-2.0e6, 0.0, 1.0e6, 4.0e6]) / c.c_mineral, rtol=1e-5)
        assert np.all(np.isfinite(T))

    def test_zero_heat_capacity(self, energy_state, column):
        """Zero denominators give zero temperature, not NaN or inf."""
        constants = PhysicalConstants(c_mineral=0.0)
        context = ModelContext(column, constants)
        energy_state.porosity.fill(0.0)
        energy_state.internal_energy.fill(-5.0)
        apply_inverse_closure(energy_state, "temperature", context)
        T = energy_state.temperature.to_numpy()
        assert np.all(np.isfinite(T))
        assert np.all(T == 0.0)

    def test_context_constants(self, energy_state, column):
        """Latent heat is taken from the context's constants."""
        constants = PhysicalConstants(L_sl=1.0e5)
        energy_state.temperature.fill(-1.0)
        apply_closure(energy_state, "temperature", ModelContext(column, constants))
        expected = -heat_capacity(constants, 0.5, 1.0, 0.0) - constants.volumetric_latent_heat * 0.5
        np.testing.assert_allclose(energy_state.internal_energy.to_numpy(), expected, rtol=1e-5)


class TestDispatch:
    """Tests for closure dispatch."""

    def test_requires_closure(self, declares, grid):
        registry = Variables.from_components([declares("a", prognostic("x", Dims.XY))])
        state = StateVariables(registry, grid)
        with pytest.raises(ValueError, match="no closure"):
            apply_closure(state, "x")

    def test_unknown_variable(self, declares, grid):
        registry = Variables.from_components([declares("a", prognostic("x", Dims.XY))])
        state = StateVariables(registry, grid)
        with pytest.raises(NoSuchVariableError):
            apply_inverse_closure(state, "missing")

    def test_all_levels(self, declares, grid, assert_field_close):
        """Forward and inverse dispatch reach every namespace."""
        registry = Variables.from_components([
            declares(
                "a",
                prognostic("u", Dims.XY, closure=LinearClosure("e", 2.0, Dims.XY)),
                prognostic("plain", Dims.XY),
                namespace("inner", [prognostic("v", Dims.XY, closure=LinearClosure("w", 5.0, Dims.XY))]),
            )
        ])
        state = StateVariables(registry, grid)
        state.u.fill(1.0)
        state.inner.v.fill(2.0)
        apply_closures(state)
        assert_field_close(state.e, 2.0)
        assert_field_close(state.inner.w, 10.0)

        state.e.fill(6.0)
        state.inner.w.fill(20.0)
        apply_inverse_closures(state)
        assert_field_close(state.u, 3.0)
        assert_field_close(state.inner.v, 4.0)

    def test_in_place(self, declares, grid):
        registry = Variables.from_components([
            declares("a", prognostic("u", Dims.XY, closure=LinearClosure("e", 2.0, Dims.XY)))
        ])
        state = StateVariables(registry, grid)
        u, e, u_data, e_data = state.u, state.e, state.u.data, state.e.data
        apply_closures(state)
        apply_inverse_closures(state)
        assert state.u is u and state.e is e
        assert state.u.data is u_data and state.e.data is e_data

    def test_custom_names(self, column):
        closure = FreeWaterEnergyClosure(energy="enthalpy", liquid_fraction="liquid")
        registry = Variables.from_components([SoilEnergy(closure=closure)])
        state = StateVariables(registry, column)
        state.temperature.fill(1.0)
        apply_closures(state)
        assert np.all(state.enthalpy.to_numpy() > 0.0)
        assert np.all(state.liquid.to_numpy() == 1.0)
