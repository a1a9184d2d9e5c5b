"""Run configuration schema with validation. Units: meters, seconds."""

from dataclasses import asdict, dataclass, field
from typing import Any


class ValidationError(ValueError):
    """Parameter validation failed."""
    pass


def _positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def _at_least_one(value: int, name: str) -> None:
    if value < 1:
        raise ValidationError(f"{name} must be >= 1, got {value}")


def _one_of(value: str, choices: tuple[str, ...], name: str) -> None:
    if value not in choices:
        raise ValidationError(f"{name} must be one of {choices}, got {value!r}")


BACKENDS = ("auto", "cuda", "vulkan", "cpu")
SCHEMES = ("euler", "heun")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class GridParams:
    """Grid: nx, ny (columns), nz (layers), dz (layer thickness [m]), dx (cell size [m])."""
    nx: int = 1
    ny: int = 1
    nz: int = 10
    dz: float = 0.1
    dx: float = 1.0

    def __post_init__(self) -> None:
        _at_least_one(self.nx, "nx")
        _at_least_one(self.ny, "ny")
        _at_least_one(self.nz, "nz")
        _positive(self.dz, "dz")
        _positive(self.dx, "dx")

    @property
    def depth(self) -> float:
        return self.nz * self.dz


@dataclass(frozen=True)
class TimestepParams:
    """Timestep: dt [s], scheme ('euler' or 'heun')."""
    dt: float = 300.0
    scheme: str = "euler"

    def __post_init__(self) -> None:
        _positive(self.dt, "dt")
        _one_of(self.scheme, SCHEMES, "scheme")


@dataclass(frozen=True)
class BackendParams:
    """Execution backend: backend name, debug mode."""
    backend: str = "auto"
    debug: bool = False

    def __post_init__(self) -> None:
        _one_of(self.backend, BACKENDS, "backend")


@dataclass(frozen=True)
class LoggingParams:
    """Logging: level name."""
    level: str = "WARNING"

    def __post_init__(self) -> None:
        _one_of(self.level, LOG_LEVELS, "level")


@dataclass(frozen=True)
class SimulationConfig:
    """Complete run configuration, one params object per group."""

    grid: GridParams = field(default_factory=GridParams)
    timestep: TimestepParams = field(default_factory=TimestepParams)
    backend: BackendParams = field(default_factory=BackendParams)
    logging: LoggingParams = field(default_factory=LoggingParams)

    def to_dict(self) -> dict[str, Any]:
        """Nested plain dict, group -> {key: value}."""
        return {name: asdict(getattr(self, name)) for name in _GROUPS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationConfig":
        """Build from a nested dict; absent groups and keys keep their defaults.

        Raises:
            ValidationError: Unknown group or key, or an invalid value
        """
        unknown = sorted(set(data) - set(_GROUPS))
        if unknown:
            raise ValidationError(f"Unknown parameter groups: {unknown}")
        groups = {}
        for name, values in data.items():
            if not isinstance(values, dict):
                raise ValidationError(f"Parameter group '{name}' must be a mapping")
            try:
                groups[name] = _GROUPS[name](**values)
            except TypeError as e:
                raise ValidationError(f"Invalid parameters for '{name}': {e}") from e
        return cls(**groups)

    def with_updates(self, **groups: Any) -> "SimulationConfig":
        """Copy with some groups changed.

        Each keyword is a group name mapped either to a dict of keys to change
        or to a replacement params object.
        """
        merged = self.to_dict()
        for name, update in groups.items():
            if name not in merged:
                raise ValidationError(f"Unknown parameter group: {name}")
            merged[name] = {**merged[name], **update} if isinstance(update, dict) else asdict(update)
        return SimulationConfig.from_dict(merged)

    @property
    def dt(self) -> float:
        return self.timestep.dt


_GROUPS = {
    "grid": GridParams,
    "timestep": TimestepParams,
    "backend": BackendParams,
    "logging": LoggingParams,
}
