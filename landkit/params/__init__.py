"""
Run configuration for landkit simulations.

This module provides:
- Validated, immutable parameter containers (schema.py)
- YAML loading utilities, run-object builders and runtime setup (loader.py)
"""

from landkit.params.loader import (
    build_grid,
    build_integrator,
    init_runtime,
    load_config,
    load_config_with_overrides,
    save_config,
)
from landkit.params.schema import (
    BackendParams,
    GridParams,
    LoggingParams,
    SimulationConfig,
    TimestepParams,
    ValidationError,
)

__all__ = [
    # Schema classes
    "GridParams",
    "TimestepParams",
    "BackendParams",
    "LoggingParams",
    "SimulationConfig",
    "ValidationError",
    # Loader functions
    "load_config",
    "save_config",
    "load_config_with_overrides",
    # Builders
    "build_grid",
    "build_integrator",
    "init_runtime",
]
