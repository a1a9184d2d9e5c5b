"""External input sources for input fields.

An InputProvider maps input names to sources and refreshes the matching
input fields once per step for the current clock time. Nested mappings
address namespaces:

    provider = InputProvider({
        "surface_temperature": TimeSeriesInputSource([0.0, 86400.0], [-5.0, 5.0]),
        "carbon": {"litterfall": ConstantInputSource(1e-9)},
    })
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

import numpy as np

from landkit.errors import CompositionMismatchError, NoSuchVariableError
from landkit.fields.field import Field

logger = logging.getLogger(__name__)


@runtime_checkable
class InputSource(Protocol):
    """Writes the value of one input at a given clock time into a field."""

    def update(self, field: Field, clock: Any) -> None:
        ...


@dataclass(frozen=True)
class ConstantInputSource:
    """Time-independent value: scalar or array broadcastable to the field shape."""

    value: Any

    def update(self, field: Field, clock: Any) -> None:
        field.set(self.value)


class TimeSeriesInputSource:
    """Piecewise-linear scalar time series, held constant outside its range.

    Args:
        times: Strictly increasing sample times [s]
        values: Sample values, same length as times
    """

    def __init__(self, times: Sequence[float], values: Sequence[float]):
        self.times = np.asarray(times, dtype=np.float64)
        self.values = np.asarray(values, dtype=np.float64)
        if self.times.ndim != 1 or self.times.shape != self.values.shape:
            raise ValueError(
                f"times and values must be 1-D of equal length, got {self.times.shape} and {self.values.shape}"
            )
        if len(self.times) == 0:
            raise ValueError("Time series needs at least one sample")
        if np.any(np.diff(self.times) <= 0):
            raise ValueError("times must be strictly increasing")

    def value_at(self, time: float) -> float:
        return float(np.interp(time, self.times, self.values))

    def update(self, field: Field, clock: Any) -> None:
        field.fill(self.value_at(clock.time))

    def __repr__(self) -> str:
        return f"TimeSeriesInputSource(n={len(self.times)}, t=[{self.times[0]}, {self.times[-1]}])"


class InputProvider:
    """Sources for input fields, keyed by name with nested maps per namespace."""

    def __init__(self, sources: Mapping[str, Any] | None = None):
        self.sources = dict(sources or {})
        for name, source in self.sources.items():
            if not isinstance(source, Mapping) and not isinstance(source, InputSource):
                raise TypeError(f"Input source for '{name}' must implement update(field, clock)")

    def validate(self, state: Any) -> None:
        """Check every source targets an existing input field.

        Raises:
            NoSuchVariableError: If a source names an unknown input
            CompositionMismatchError: If a nested map does not match a namespace
        """
        _check_sources(self.sources, state, "")

    def refresh(self, state: Any) -> None:
        """Write all sources into their input fields, recursively."""
        _refresh(self.sources, state)

    def __repr__(self) -> str:
        return f"InputProvider({list(self.sources)})"


def _check_sources(sources: Mapping[str, Any], state: Any, path: str) -> None:
    for name, source in sources.items():
        if isinstance(source, Mapping):
            if name not in state.namespaces:
                raise CompositionMismatchError(f"Input sources given for '{path}{name}', which is not a namespace")
            _check_sources(source, state.namespaces[name], f"{path}{name}.")
        elif name not in state.inputs:
            raise NoSuchVariableError(f"{path}{name}", state.inputs.keys())


def _refresh(sources: Mapping[str, Any], state: Any) -> None:
    for name, source in sources.items():
        if isinstance(source, Mapping):
            _refresh(source, state.namespaces[name])
        else:
            source.update(state.inputs[name], state.clock)
