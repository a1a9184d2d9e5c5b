"""Simulation orchestrator: registry build, state allocation, and stepping.

Per-step sequence:

    1. reset tendencies
    2. refresh inputs for the current clock time
    3. fill boundary slabs of prognostic and closure fields
    5. compute_auxiliary on every component, in composition order
    6. compute_tendencies on every component, in composition order
    7. integrator advances each driven field by its tendency
    8. inverse closures recover the primary views
       clock tick

Stage 4 (forward closures) runs only in initialize(), after initial values
are set. A component that overwrites a primary view mid-run must call
apply_closure() itself.
"""

import logging
import math
from typing import Any, Mapping

from landkit.closures.base import apply_closures, apply_inverse_closures
from landkit.components.protocol import Model, merge_boundary_conditions
from landkit.core.clock import Clock
from landkit.core.constants import PhysicalConstants
from landkit.core.context import ModelContext
from landkit.core.grid import ColumnGrid
from landkit.inputs import InputProvider
from landkit.state import StateVariables
from landkit.timestepping import ForwardEuler
from landkit.variables.registry import Variables

logger = logging.getLogger(__name__)

STEP_COUNT_TOLERANCE = 1e-9


class Simulation:
    """Main simulation orchestrator.

    All registry and allocation errors are raised by the constructor, before
    any stepping.

    Example:
        sim = Simulation(Model(SoilHydrology(), SoilEnergy()), ColumnGrid(nz=20))
        sim.initialize()
        sim.run(steps=100)
    """

    def __init__(
        self,
        model: Any,
        grid: ColumnGrid,
        integrator: Any = None,
        inputs: InputProvider | None = None,
        clock: Clock | None = None,
        constants: PhysicalConstants | None = None,
        boundary_conditions: Mapping[str, Any] | None = None,
        fields: Mapping[str, Any] | None = None,
        initializers: Mapping[str, Any] | None = None,
    ):
        """Build the registry and allocate the state.

        Args:
            model: Component, sequence of components, or Model
            grid: Column grid
            integrator: ForwardEuler (default) or Heun
            inputs: Input sources refreshed every step
            clock: Start clock (default: t=0)
            constants: Physical constants
            boundary_conditions: Overrides of component default boundary conditions
            fields: Pre-existing fields to reuse
            initializers: Initial values: name -> float | array | callable(grid),
                nested mappings for namespaces

        Raises:
            VariableConflictError: If two components declare incompatible variables
            CompositionMismatchError: If override maps do not match the namespaces
            NoSuchVariableError: If a constructor, boundary condition or input
                source references a missing field
        """
        self.model = Model.of(model)
        self.grid = grid
        self.integrator = integrator if integrator is not None else ForwardEuler()
        self.inputs = inputs if inputs is not None else InputProvider()
        self.context = ModelContext(grid, constants if constants is not None else PhysicalConstants())
        self.initializers = dict(initializers or {})
        self.registry = Variables.from_declarations(self.model.declarations())

        clock = clock if clock is not None else Clock()
        self._start_time = clock.time
        self.state = StateVariables(
            self.registry,
            grid,
            clock=clock,
            boundary_conditions=merge_boundary_conditions(
                self.model.boundary_conditions(), dict(boundary_conditions or {})
            ),
            fields=fields,
        )
        self.inputs.validate(self.state)
        self.integrator.prepare(self.state)
        self.initialized = False
        logger.info(
            "Simulation set up: %d components, %s, %s",
            len(self.model),
            self.state.summary(),
            self.integrator,
        )

    @property
    def clock(self) -> Clock:
        return self.state.clock

    @property
    def time(self) -> float:
        return self.state.clock.time

    def initialize(self) -> StateVariables:
        """Set initial values and make all views consistent.

        Returns the StateVariables for inspection/testing.
        """
        state = self.state
        state.clock.reset(self._start_time)
        state.reset_tendencies()
        self.inputs.refresh(state)
        state.fill_boundaries()
        _apply_initializers(state, self.initializers, self.grid)
        self.model.initialize(state, self.context)
        apply_closures(state, self.context)
        self.model.compute_auxiliary(state, self.context)
        self.initialized = True
        logger.info("Initialized at t=%.1f s", state.clock.time)
        return state

    def update_state(self, state: StateVariables | None = None) -> None:
        """Stages 1-3, 5 and 6: fresh auxiliaries and tendencies for `state`."""
        state = state if state is not None else self.state
        state.reset_tendencies()
        self.inputs.refresh(state)
        state.fill_boundaries()
        self.model.compute_auxiliary(state, self.context)
        self.model.compute_tendencies(state, self.context)

    def _evaluate_stage(self, stage: StateVariables) -> None:
        apply_inverse_closures(stage, self.context)
        self.update_state(stage)

    def step(self, dt: float | None = None) -> None:
        """Advance one timestep.

        Args:
            dt: Timestep [s] (default: the integrator's dt)
        """
        if not self.initialized:
            self.initialize()
        dt = dt if dt is not None else self.integrator.dt
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        state = self.state
        self.update_state(state)
        self.integrator.step(state, dt, self._evaluate_stage)
        apply_inverse_closures(state, self.context)
        state.clock.tick(dt)

    def run(
        self,
        steps: int | None = None,
        duration: float | None = None,
        dt: float | None = None,
    ) -> StateVariables:
        """Run for a number of steps or a duration.

        Args:
            steps: Number of timesteps
            duration: Simulated time [s]; runs the whole number of dt steps
                that fit, tolerating round-off in duration / dt
            dt: Timestep [s] (default: the integrator's dt)

        Returns:
            Final StateVariables

        Raises:
            ValueError: Unless exactly one of steps and duration is given
        """
        if (steps is None) == (duration is None):
            raise ValueError("Specify exactly one of steps or duration")
        dt = dt if dt is not None else self.integrator.dt
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if steps is None:
            # 0.3 / 0.1 is 2.9999999999999996
            steps = math.floor(duration / dt + STEP_COUNT_TOLERANCE)
        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")

        if not self.initialized:
            self.initialize()

        logger.info("Running %d steps of %.1f s from t=%.1f s", steps, dt, self.time)
        for _ in range(steps):
            self.step(dt)
        logger.info("Finished at t=%.1f s (iteration %d)", self.time, self.clock.iteration)
        return self.state

    def __repr__(self) -> str:
        return f"Simulation({self.model!r}, t={self.time})"


def _apply_initializers(state: StateVariables, initializers: Mapping[str, Any], grid: ColumnGrid) -> None:
    for name, value in initializers.items():
        if isinstance(value, Mapping):
            _apply_initializers(state.namespace(name), value, grid)
            continue
        if callable(value):
            value = value(grid)
        state[name].set(value)
