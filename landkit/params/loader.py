"""
Run configuration files.

A run is described by one YAML file with up to four groups (grid, timestep,
backend, logging); missing groups and keys take their defaults:

    grid:
      nz: 20
      dz: 0.05
    timestep:
      dt: 600.0
      scheme: heun

build_grid() and build_integrator() turn a loaded SimulationConfig into the
objects a Simulation is constructed from; init_runtime() applies the backend
and logging groups.
"""

from pathlib import Path
from typing import Any

import yaml

from landkit import __version__
from landkit.config import configure_logging, init_taichi
from landkit.core.grid import ColumnGrid
from landkit.params.schema import SimulationConfig, ValidationError
from landkit.timestepping import ForwardEuler, Heun


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise FileNotFoundError(f"No run configuration at {path}")
    with path.open() as stream:
        data = yaml.safe_load(stream)
    # an empty file means all defaults
    data = {} if data is None else data
    if not isinstance(data, dict):
        raise ValidationError(
            f"{path}: expected a mapping of parameter groups, got {type(data).__name__}"
        )
    return data


def load_config(path: str | Path) -> SimulationConfig:
    """Read and validate a run configuration.

    Raises:
        FileNotFoundError: No file at `path`
        ValidationError: Unknown groups or keys, or invalid values
        yaml.YAMLError: Malformed YAML
    """
    return SimulationConfig.from_dict(_read_yaml(Path(path)))


def save_config(config: SimulationConfig, path: str | Path) -> None:
    """Write `config` as YAML, creating parent directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as stream:
        stream.write(f"# landkit {__version__} run configuration\n")
        yaml.safe_dump(config.to_dict(), stream, default_flow_style=False, sort_keys=False)


def load_config_with_overrides(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SimulationConfig:
    """
    Start from a file (or the defaults) and apply per-group overrides.

    Args:
        path: YAML file to start from; None starts from SimulationConfig()
        overrides: group -> {key: value} or a replacement params object

    Returns:
        Validated SimulationConfig

    Example:
        config = load_config_with_overrides(
            "runs/column.yaml",
            {"grid": {"nz": 40}, "timestep": {"scheme": "heun"}},
        )
    """
    base = SimulationConfig() if path is None else load_config(path)
    return base.with_updates(**overrides) if overrides else base


def build_grid(config: SimulationConfig) -> ColumnGrid:
    g = config.grid
    return ColumnGrid(nx=g.nx, ny=g.ny, nz=g.nz, dz=g.dz, dx=g.dx)


def build_integrator(config: SimulationConfig) -> ForwardEuler:
    """Integrator for the configured scheme and default timestep."""
    integrator_cls = Heun if config.timestep.scheme == "heun" else ForwardEuler
    return integrator_cls(dt=config.timestep.dt)


def init_runtime(config: SimulationConfig) -> str:
    """Initialize Taichi and logging from the backend and logging groups.

    Call once per process, before any grid allocates fields.

    Returns:
        The selected Taichi backend
    """
    configure_logging(config.logging.level)
    return init_taichi(backend=config.backend.backend, debug=config.backend.debug)
