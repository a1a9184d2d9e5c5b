"""Variable declarations and the variable registry.

Main classes:
- VariableSpec: Declarative variable specification
- Role, Dims, Domain: Variable metadata
- Namespace: Nested composition level
- Variables: Merged, conflict-checked registry

Declaration helpers:
- prognostic, auxiliary, input_variable, namespace
"""

from landkit.variables.registry import Variables, component_name
from landkit.variables.spec import (
    NON_NEGATIVE,
    REAL_LINE,
    UNIT_INTERVAL,
    Dims,
    Domain,
    Namespace,
    Role,
    VariableSpec,
    auxiliary,
    input_variable,
    namespace,
    prognostic,
)

__all__ = [
    # Core classes
    "VariableSpec",
    "Namespace",
    "Variables",
    "Role",
    "Dims",
    "Domain",
    # Domains
    "REAL_LINE",
    "UNIT_INTERVAL",
    "NON_NEGATIVE",
    # Declaration helpers
    "prognostic",
    "auxiliary",
    "input_variable",
    "namespace",
    "component_name",
]
