"""Tests for variable specifications and declaration helpers."""

import pytest

from landkit.closures import FreeWaterEnergyClosure, LinearClosure
from landkit.variables import (
    NON_NEGATIVE,
    REAL_LINE,
    UNIT_INTERVAL,
    Dims,
    Domain,
    Namespace,
    Role,
    VariableSpec,
    auxiliary,
    input_variable,
    namespace,
    prognostic,
)


class TestVariableSpec:
    """Tests for VariableSpec dataclass."""

    def test_basic_creation(self):
        """Test basic VariableSpec creation."""
        var = VariableSpec(name="temperature", dims=Dims.XYZ, role=Role.PROGNOSTIC, units="°C")
        assert var.name == "temperature"
        assert var.dims is Dims.XYZ
        assert var.role is Role.PROGNOSTIC
        assert var.domain == REAL_LINE
        assert var.closure is None
        assert not var.has_closure

    def test_immutability(self):
        """Test that VariableSpec is frozen."""
        var = auxiliary("k", Dims.XY)
        with pytest.raises(Exception):
            var.name = "other"

    def test_validation_empty_name(self):
        """Test validation rejects empty name."""
        with pytest.raises(ValueError, match="cannot be empty"):
            auxiliary("", Dims.XY)

    @pytest.mark.parametrize("name", ["Temperature", "soil-water", "2layer", "a b"])
    def test_validation_non_snake_case(self, name):
        """Test validation rejects non-snake_case names."""
        with pytest.raises(ValueError, match="snake_case"):
            auxiliary(name, Dims.XY)

    def test_snake_case_with_digits(self):
        """Digits after the first character are allowed."""
        assert auxiliary("layer_2_flux", Dims.XY).name == "layer_2_flux"

    def test_closure_only_on_prognostic(self):
        """Closures are rejected on non-prognostic variables."""
        with pytest.raises(ValueError, match="closure"):
            VariableSpec("x", Dims.XY, Role.AUXILIARY, closure=LinearClosure("y"))

    def test_constructor_only_on_auxiliary(self):
        """Custom constructors are rejected on non-auxiliary variables."""
        with pytest.raises(ValueError, match="constructor"):
            VariableSpec("x", Dims.XY, Role.INPUT, constructor=lambda *a: None)

    def test_default_only_on_input(self):
        """Defaults are rejected on non-input variables."""
        with pytest.raises(ValueError, match="default"):
            VariableSpec("x", Dims.XY, Role.PROGNOSTIC, default=1.0)


class TestTendency:
    """Tests for tendency derivation."""

    def test_plain_prognostic(self):
        """Tendency of a plain prognostic variable."""
        tend = prognostic("soil_carbon", Dims.XY, units="kg/m^2").tendency()
        assert tend.name == "soil_carbon_tendency"
        assert tend.units == "kg/m^2/s"
        assert tend.role is Role.AUXILIARY
        assert tend.dims is Dims.XY

    def test_dimensionless(self):
        """Dimensionless variables get 1/s tendencies."""
        assert prognostic("saturation", Dims.XYZ).tendency().units == "1/s"

    def test_closure_names_driven_variable(self):
        """With a closure, the tendency belongs to the driven variable."""
        var = prognostic("temperature", Dims.XYZ, closure=FreeWaterEnergyClosure(), units="°C")
        tend = var.tendency()
        assert tend.name == "internal_energy_tendency"
        assert tend.units == "J/m^3/s"
        assert var.driven.name == "internal_energy"

    def test_non_prognostic_has_no_tendency(self):
        """Only prognostic variables have tendencies."""
        with pytest.raises(ValueError, match="not prognostic"):
            auxiliary("k", Dims.XY).tendency()


class TestComparison:
    """Tests for same_layout and identical."""

    def test_description_and_domain_ignored(self):
        """Description and domain do not make declarations differ."""
        a = prognostic("x", Dims.XY, units="m", description="first")
        b = prognostic("x", Dims.XY, units="m", domain=NON_NEGATIVE, description="second")
        assert a.identical(b)
        assert a == b

    def test_units_differ(self):
        """Different units are a different variable."""
        a = prognostic("x", Dims.XY, units="m")
        b = prognostic("x", Dims.XY, units="mm")
        assert not a.same_layout(b)
        assert not a.identical(b)

    def test_roles_differ(self):
        """Same layout, different role: not identical."""
        a = prognostic("x", Dims.XY)
        b = auxiliary("x", Dims.XY)
        assert a.same_layout(b)
        assert not a.identical(b)

    def test_closures_compared_by_value(self):
        """Equal closure parameters compare identical."""
        a = prognostic("u", Dims.XY, closure=LinearClosure("e", 2.0, Dims.XY))
        b = prognostic("u", Dims.XY, closure=LinearClosure("e", 2.0, Dims.XY))
        c = prognostic("u", Dims.XY, closure=LinearClosure("e", 3.0, Dims.XY))
        assert a.identical(b)
        assert not a.identical(c)


class TestDomain:
    """Tests for Domain."""

    def test_contains(self):
        assert UNIT_INTERVAL.contains(0.0)
        assert UNIT_INTERVAL.contains(1.0)
        assert not UNIT_INTERVAL.contains(1.5)
        assert NON_NEGATIVE.contains(1e30)
        assert REAL_LINE.contains(-1e30)

    def test_empty_domain_rejected(self):
        with pytest.raises(ValueError, match="Empty domain"):
            Domain(1.0, 0.0)


class TestHelpers:
    """Tests for declaration helpers."""

    def test_input_default(self):
        var = input_variable("porosity", Dims.XYZ, default=0.4)
        assert var.role is Role.INPUT
        assert var.default == 0.4

    def test_namespace(self):
        ns = namespace("carbon", [prognostic("pool", Dims.XY)])
        assert isinstance(ns, Namespace)
        assert ns.name == "carbon"
        assert isinstance(ns.variables, tuple)
        assert ns.variables[0].name == "pool"

    def test_namespace_name_validated(self):
        with pytest.raises(ValueError, match="snake_case"):
            namespace("Carbon")
