"""
Explicit time integrators.

Integrators advance the driven view of every prognostic variable by its
accumulated tendency. They see the state only through
StateVariables.integration_pairs(), so closure-bearing and plain prognostic
variables are handled alike.

- ForwardEuler: x += dt·f(x)
- Heun: x += dt/2·(f(x) + f(x + dt·f(x)))
"""

import logging
from typing import Any, Callable

from landkit.core.clock import Clock
from landkit.fields.field import average_fields, axpy_field
from landkit.state import StateVariables

logger = logging.getLogger(__name__)


class ForwardEuler:
    """First-order explicit Euler.

    Attributes:
        dt: Default timestep [s]
    """

    def __init__(self, dt: float = 300.0):
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.dt = dt

    def prepare(self, state: Any) -> None:
        """Allocate integrator workspace for `state` (none needed)."""

    def step(self, state: Any, dt: float, evaluate: Callable[[Any], None]) -> None:
        """Advance `state` by dt using the tendencies already in `state`."""
        for _, driven, tendency in state.integration_pairs():
            axpy_field(driven.data, tendency.data, dt)

    def __repr__(self) -> str:
        return f"ForwardEuler(dt={self.dt})"


class Heun(ForwardEuler):
    """Second-order two-stage Heun (explicit trapezoidal) method.

    The stage container is allocated once in prepare() from the same registry
    and shares the input fields of the main state.
    """

    def __init__(self, dt: float = 300.0):
        super().__init__(dt)
        self._stage = None
        self._source = None

    def prepare(self, state: Any) -> None:
        if self._stage is not None and self._source is state:
            return
        self._stage = StateVariables(
            state.registry,
            state.grid,
            clock=Clock(),
            boundary_conditions=state.boundary_conditions,
            fields=state.shared_fields(),
        )
        self._source = state
        logger.debug("Allocated Heun stage: %.2f MB", self._stage.memory_mb)

    def step(self, state: Any, dt: float, evaluate: Callable[[Any], None]) -> None:
        """Advance `state` by dt.

        Args:
            state: StateVariables with tendencies evaluated at time t
            dt: Timestep [s]
            evaluate: Recomputes primary views, auxiliaries and tendencies of a
                container in place
        """
        self.prepare(state)
        stage = self._stage
        state.copy_into(stage)
        for _, driven, tendency in stage.integration_pairs():
            axpy_field(driven.data, tendency.data, dt)
        stage.clock.tick(dt)
        evaluate(stage)

        for (_, driven, tendency), (_, _, stage_tendency) in zip(
            state.integration_pairs(), stage.integration_pairs()
        ):
            average_fields(tendency.data, stage_tendency.data)
            axpy_field(driven.data, tendency.data, dt)

    @property
    def stage(self) -> Any:
        return self._stage

    def __repr__(self) -> str:
        return f"Heun(dt={self.dt})"
