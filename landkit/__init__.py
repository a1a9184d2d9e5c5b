"""
Landkit: composable land-surface simulation on Taichi fields.

Physical components declare their state variables; the framework merges the
declarations into a registry, allocates one consistent state container and
steps it forward, keeping closure-related variables in sync.
"""

__version__ = "0.1.0"
