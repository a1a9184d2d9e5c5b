"""Tests for the soil physics components and their composition.

Tests cover:
- Component protocol compliance and Model composition
- Energy conservation of heat conduction with zero-flux boundaries
- Water conservation of drainage and rainfall infiltration
- Soil carbon balance in a nested namespace
"""

import numpy as np
import pytest

from landkit.components import (
    Component,
    ComponentBase,
    HydraulicParams,
    Model,
    Namespaced,
    SoilCarbon,
    SoilEnergy,
    SoilHydrology,
    ThermalParams,
    merge_boundary_conditions,
)
from landkit.fields import BoundaryKind, FieldBoundaryConditions, flux_bc, value_bc
from landkit.inputs import ConstantInputSource, InputProvider
from landkit.simulation import Simulation
from landkit.timestepping import Heun

ZERO_FLUX = FieldBoundaryConditions(top=flux_bc(0.0), bottom=flux_bc(0.0))


def linear_profile(lo, hi):
    """Initializer varying linearly with depth."""
    def profile(grid):
        return np.linspace(lo, hi, grid.nz, dtype=np.float32)
    return profile


class TestProtocol:
    """Tests for protocol compliance and composition."""

    @pytest.mark.parametrize("component", [SoilEnergy(), SoilHydrology(), SoilCarbon(), ComponentBase()])
    def test_protocol_compliance(self, component):
        assert isinstance(component, Component)

    def test_base_is_no_op(self):
        base = ComponentBase()
        assert base.declare_variables() == ()
        assert base.boundary_conditions() == {}
        assert base.initialize(None, None) is None

    def test_model_flattens(self):
        inner = Model(SoilHydrology(), SoilEnergy())
        model = Model(inner, SoilCarbon())
        assert len(model) == 3
        assert [c.name for c in model] == ["soil_hydrology", "soil_energy", "soil_carbon"]

    def test_declarations_owned_by_component(self):
        owners = {owner for owner, _ in Model(SoilHydrology(), SoilEnergy()).declarations()}
        assert owners == {"soil_hydrology", "soil_energy"}

    def test_default_boundary_conditions(self):
        bcs = Model(SoilHydrology(), SoilEnergy(), Namespaced("carbon", SoilCarbon())).boundary_conditions()
        assert bcs["temperature"].top == value_bc("surface_temperature")
        assert bcs["saturation_water_ice"].top == flux_bc("rainfall")
        assert bcs["carbon"] == {}

    def test_merge_boundary_conditions(self):
        merged = merge_boundary_conditions(
            {"temperature": FieldBoundaryConditions(), "carbon": {"a": 1}},
            {"temperature": ZERO_FLUX, "carbon": {"b": 2}},
        )
        assert merged["temperature"] is ZERO_FLUX
        assert merged["carbon"] == {"a": 1, "b": 2}

    def test_param_validation(self):
        with pytest.raises(ValueError, match="k_water must be positive"):
            ThermalParams(k_water=0.0)
        with pytest.raises(ValueError, match="K_sat must be positive"):
            HydraulicParams(K_sat=-1.0)
        with pytest.raises(ValueError, match="decay_rate"):
            SoilCarbon(decay_rate=-1.0)


class TestSoilEnergy:
    """Tests for heat conduction."""

    def test_variables(self, column):
        sim = Simulation(SoilEnergy(), column)
        assert sim.registry.prognostic_names == ("temperature",)
        assert sim.state.temperature.boundary_conditions.top.kind is BoundaryKind.VALUE

    def test_energy_conserved_with_zero_flux(self, column):
        sim = Simulation(
            SoilEnergy(),
            column,
            boundary_conditions={"temperature": ZERO_FLUX},
            initializers={"temperature": linear_profile(-5.0, 5.0)},
        )
        state = sim.initialize()
        initial = state.internal_energy.to_numpy().astype(np.float64).sum()
        initial_bottom = state.temperature.to_numpy()[0, 0, -1]

        sim.run(steps=20, dt=300.0)

        final = state.internal_energy.to_numpy().astype(np.float64).sum()
        assert final == pytest.approx(initial, rel=1e-5)
        # heat flows from the warm bottom towards the frozen top
        assert state.temperature.to_numpy()[0, 0, -1] < initial_bottom

    def test_uniform_temperature_is_steady(self, column):
        sim = Simulation(
            SoilEnergy(),
            column,
            boundary_conditions={"temperature": ZERO_FLUX},
            initializers={"temperature": 2.0},
        )
        sim.run(steps=5, dt=300.0)
        np.testing.assert_allclose(sim.state.temperature.to_numpy(), 2.0, rtol=1e-5)
        assert np.all(sim.state.tendency("temperature").to_numpy() == 0.0)

    def test_surface_warming(self, column):
        """A warm surface temperature input heats the top layer first."""
        sim = Simulation(
            SoilEnergy(),
            column,
            inputs=InputProvider({"surface_temperature": ConstantInputSource(10.0)}),
            initializers={"temperature": 1.0},
        )
        sim.run(steps=10, dt=300.0)
        T = sim.state.temperature.to_numpy()[0, 0]
        assert T[0] > T[1] > 1.0
        assert np.all(sim.state.liquid_water_fraction.to_numpy() == 1.0)

    def test_thermal_conductivity(self, column):
        params = ThermalParams()
        sim = Simulation(SoilEnergy(params), column, initializers={"temperature": 1.0})
        state = sim.initialize()
        # porosity 0.5, saturated, thawed
        expected = 0.5 * params.k_mineral + 0.5 * params.k_water
        np.testing.assert_allclose(state.thermal_conductivity.to_numpy(), expected, rtol=1e-5)


class TestSoilHydrology:
    """Tests for gravity drainage."""

    @staticmethod
    def water(state):
        return float((state.porosity.to_numpy() * state.saturation_water_ice.to_numpy()).astype(np.float64).sum())

    def test_water_conserved_without_rain(self, column):
        sim = Simulation(
            SoilHydrology(),
            column,
            initializers={"saturation_water_ice": linear_profile(0.8, 0.2)},
        )
        state = sim.initialize()
        initial = self.water(state)
        top_before = state.saturation_water_ice.to_numpy()[0, 0, 0]
        sim.run(steps=10, dt=300.0)
        assert self.water(state) == pytest.approx(initial, rel=1e-5)
        assert state.saturation_water_ice.to_numpy()[0, 0, 0] < top_before

    def test_rainfall_infiltrates(self, column):
        """One Euler step adds rainfall·dt of water through the top boundary."""
        rain = 1e-6
        sim = Simulation(
            SoilHydrology(),
            column,
            inputs=InputProvider({"rainfall": ConstantInputSource(rain)}),
            initializers={"saturation_water_ice": 0.8},
        )
        state = sim.initialize()
        initial = self.water(state)
        sim.step(300.0)
        added = (self.water(state) - initial) * column.dz
        assert added == pytest.approx(rain * 300.0, rel=1e-3)

    def test_conductivity(self, column):
        params = HydraulicParams(K_sat=2e-5, b=2.0)
        sim = Simulation(SoilHydrology(params), column, initializers={"saturation_water_ice": 0.5})
        state = sim.initialize()
        np.testing.assert_allclose(state.hydraulic_conductivity.to_numpy(), 2e-5 * 0.25, rtol=1e-5)


class TestComposition:
    """Tests for the coupled soil model."""

    def test_hydrology_drives_energy(self, column):
        """Energy reads hydrology's prognostic saturation instead of an input."""
        sim = Simulation(
            Model(SoilHydrology(), SoilEnergy()),
            column,
            initializers={"saturation_water_ice": 0.5, "temperature": -2.0},
        )
        state = sim.initialize()
        assert "saturation_water_ice" not in state.inputs
        assert state.saturation_water_ice is state.prognostic["saturation_water_ice"]
        # latent heat content uses the prognostic saturation
        c = sim.context.constants
        L_theta = c.volumetric_latent_heat * 0.5 * 0.5
        assert np.all(state.internal_energy.to_numpy() < -L_theta)

    def test_integration_pairs(self, column):
        sim = Simulation(Model(SoilHydrology(), SoilEnergy(), Namespaced("carbon", SoilCarbon())), column)
        names = [name for name, _, _ in sim.state.integration_pairs()]
        assert names == ["saturation_water_ice", "temperature", "carbon.soil_carbon"]

    def test_carbon_balance(self, grid, assert_field_close):
        """dC/dt = litterfall - k·C in a nested namespace."""
        k, litter, dt = 1e-6, 1e-6, 1000.0
        sim = Simulation(
            Model(SoilEnergy(), Namespaced("carbon", SoilCarbon(decay_rate=k))),
            grid,
            inputs=InputProvider({"carbon": {"litterfall": ConstantInputSource(litter)}}),
            initializers={"temperature": 1.0, "carbon": {"soil_carbon": 10.0}},
        )
        sim.step(dt)
        carbon = sim.state.carbon
        assert_field_close(carbon.soil_carbon, 10.0 + dt * (litter - k * 10.0))
        assert_field_close(carbon.heterotrophic_respiration, k * 10.0, rtol=1e-4)

    def test_carbon_initial_value(self, grid, assert_field_close):
        sim = Simulation(SoilCarbon(initial_carbon=4.0), grid)
        assert_field_close(sim.initialize().soil_carbon, 4.0)

    def test_heun_runs_coupled_model(self, column):
        sim = Simulation(
            Model(SoilHydrology(), SoilEnergy()),
            column,
            integrator=Heun(dt=300.0),
            initializers={"saturation_water_ice": linear_profile(0.9, 0.3), "temperature": linear_profile(-3.0, 3.0)},
        )
        sim.run(steps=5)
        assert np.all(np.isfinite(sim.state.temperature.to_numpy()))
        assert np.all(np.isfinite(sim.state.saturation_water_ice.to_numpy()))
