"""Pytest fixtures and test utilities for landkit."""

import numpy as np
import pytest
import taichi as ti

from landkit.closures import LinearClosure
from landkit.components import ComponentBase
from landkit.config import init_taichi
from landkit.core.dtypes import DTYPE
from landkit.core.grid import ColumnGrid
from landkit.variables import Dims, prognostic


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session with CPU backend."""
    init_taichi(backend="cpu", debug=True)
    yield


@pytest.fixture
def grid():
    """Small 2 x 3 column grid with 4 layers."""
    return ColumnGrid(nx=2, ny=3, nz=4, dz=0.1)


@pytest.fixture
def column():
    """Single soil column with 4 layers."""
    return ColumnGrid(nx=1, ny=1, nz=4, dz=0.1)


@ti.kernel
def add_constant(field: ti.template(), value: DTYPE):
    for I in ti.grouped(field):
        field[I] += value


class Declares(ComponentBase):
    """Component that only declares the given variables."""

    def __init__(self, name, *declarations):
        self.name = name
        self._declarations = declarations

    def declare_variables(self):
        return self._declarations


class ScaledDecay(ComponentBase):
    """Prognostic u integrated through e = coefficient * u, with de/dt = -rate."""

    name = "scaled_decay"

    def __init__(self, coefficient=4.0, rate=1.0, dims=Dims.XY):
        self.coefficient = coefficient
        self.rate = rate
        self.dims = dims

    def declare_variables(self):
        return (
            prognostic("u", self.dims, closure=LinearClosure("e", self.coefficient, self.dims)),
        )

    def compute_tendencies(self, state, context):
        add_constant(state.tendency("u").data, -self.rate)


class ConstantSource(ComponentBase):
    """Adds a constant to the tendency of prognostic `variable`."""

    def __init__(self, name, value, variable="x", dims=Dims.XY):
        self.name = name
        self.value = value
        self.variable = variable
        self.dims = dims

    def declare_variables(self):
        return (prognostic(self.variable, self.dims),)

    def compute_tendencies(self, state, context):
        add_constant(state.tendency(self.variable).data, self.value)


@pytest.fixture
def declares():
    """Factory for declaration-only components."""
    return Declares


@pytest.fixture
def scaled_decay():
    """Factory for the linear-closure decay component."""
    return ScaledDecay


@pytest.fixture
def constant_source():
    """Factory for constant-tendency components."""
    return ConstantSource


@pytest.fixture
def assert_field_close():
    """Assert a field matches an expected array or scalar."""
    return check_field_close


def check_field_close(field, expected, rtol: float = 1e-5, atol: float = 1e-6):
    arr = field.to_numpy()
    np.testing.assert_allclose(arr, np.broadcast_to(expected, arr.shape), rtol=rtol, atol=atol)
