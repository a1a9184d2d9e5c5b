"""
Physics components and composition.

Protocol:
- Component: declare_variables, initialize, compute_auxiliary, compute_tendencies
- ComponentBase: No-op defaults for every hook

Composition:
- Model, Namespaced

Components:
- SoilEnergy: Heat conduction with free-water freeze/thaw
- SoilHydrology: Gravity drainage of soil water
- SoilCarbon: One-pool soil carbon
"""

from landkit.components.carbon import SoilCarbon
from landkit.components.protocol import (
    Component,
    ComponentBase,
    Model,
    Namespaced,
    merge_boundary_conditions,
)
from landkit.components.soil_energy import SoilEnergy, ThermalParams
from landkit.components.soil_hydrology import HydraulicParams, SoilHydrology
from landkit.core.context import ModelContext

__all__ = [
    # Protocol
    "Component",
    "ComponentBase",
    "ModelContext",
    # Composition
    "Model",
    "Namespaced",
    "merge_boundary_conditions",
    # Components
    "SoilEnergy",
    "ThermalParams",
    "SoilHydrology",
    "HydraulicParams",
    "SoilCarbon",
]
