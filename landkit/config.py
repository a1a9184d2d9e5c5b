"""
Taichi and logging configuration.

Environment variables:
    LANDKIT_BACKEND: 'cuda', 'vulkan', 'cpu', or 'auto' (default)
    LANDKIT_DEBUG: '1' to enable debug mode
    LANDKIT_LOG_LEVEL: Logging level name for the landkit logger (default WARNING)

Falls back to CPU if no CUDA device is found.
"""

import logging
import os
import subprocess

import taichi as ti

from landkit.core.dtypes import DTYPE

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_backend() -> str:
    """Determine Taichi backend: check env var, then auto-detect."""
    env = os.environ.get("LANDKIT_BACKEND", "auto").lower()

    if env in ("cuda", "vulkan", "cpu"):
        return env
    if env != "auto":
        raise ValueError(f"Invalid LANDKIT_BACKEND: {env}")

    # Auto-detect CUDA
    try:
        result = subprocess.run(
            ["nvidia-smi", "-L"], capture_output=True, text=True, timeout=5
        )
        if result.returncode == 0 and "GPU" in result.stdout:
            return "cuda"
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    return "cpu"


def init_taichi(
    backend: str | None = None,
    debug: bool | None = None,
    kernel_profiler: bool = False,
) -> str:
    """Initialize Taichi with specified or auto-detected backend."""
    if backend is None or backend == "auto":
        backend = get_backend()
    if debug is None:
        debug = os.environ.get("LANDKIT_DEBUG", "0") == "1"

    arch = {"cuda": ti.cuda, "vulkan": ti.vulkan, "cpu": ti.cpu}.get(backend)
    if arch is None:
        raise ValueError(f"Unknown backend: {backend}")

    ti.init(
        arch=arch,
        default_fp=DTYPE,
        debug=debug,
        offline_cache=True,
        random_seed=42,
        kernel_profiler=kernel_profiler,
    )
    logging.getLogger(__name__).info("Taichi initialized: backend=%s debug=%s", backend, debug)
    return backend


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Install one stream handler on the landkit logger.

    Args:
        level: Level name or number (default: LANDKIT_LOG_LEVEL or WARNING)

    Returns:
        The landkit logger
    """
    if level is None:
        level = os.environ.get("LANDKIT_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    logger = logging.getLogger("landkit")
    logger.setLevel(level)
    if not any(getattr(h, "_landkit", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._landkit = True
        logger.addHandler(handler)
    return logger
