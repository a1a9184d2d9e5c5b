"""State container: allocated fields for every variable in a registry.

StateVariables realizes a Variables registry on a grid. Fields are
partitioned by role (prognostic, tendencies, auxiliary, inputs) with one
nested StateVariables per namespace, and are also reachable through one flat
name lookup:

    state = StateVariables(registry, grid)
    state["temperature"]          # prognostic
    state.internal_energy         # closure variable (auxiliary)
    state.tendencies["temperature"]
    state.soil.carbon_pool        # namespaced

Allocation order is dependency-respecting: inputs, tendencies, prognostic,
auxiliary (in registry order), then namespaces. A custom auxiliary constructor
therefore sees every input and prognostic field, plus auxiliary fields
declared before it. The set of fields is fixed after construction; all
mutators work in place.
"""

import logging
from typing import Any, Iterator, Mapping

from landkit.core.clock import Clock
from landkit.core.grid import ColumnGrid
from landkit.errors import CompositionMismatchError, NoSuchVariableError
from landkit.fields.boundary import FieldBoundaryConditions
from landkit.fields.field import Field, fill_field
from landkit.variables.registry import Variables
from landkit.variables.spec import VariableSpec

logger = logging.getLogger(__name__)


class FieldLookup(Mapping):
    """Read-only view of the fields visible to a custom constructor."""

    def __init__(self, fields: Mapping[str, Field]):
        self._fields = dict(fields)

    def __getitem__(self, name: str) -> Field:
        if name not in self._fields:
            raise NoSuchVariableError(name, self._fields.keys())
        return self._fields[name]

    def __getattr__(self, name: str) -> Field:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)


def _check_composition(
    registry: Variables,
    boundary_conditions: Mapping[str, Any],
    fields: Mapping[str, Any],
    path: str = "",
) -> None:
    """Check nested override maps against the registry's namespace layout.

    Raises:
        CompositionMismatchError: If a nested map has no matching namespace,
            or a namespace is given something other than a nested map
    """
    namespaces = dict(registry.namespaces)
    for kind, overrides in (("boundary_conditions", boundary_conditions), ("fields", fields)):
        if not isinstance(overrides, Mapping):
            raise CompositionMismatchError(
                f"{kind} for '{path or '<root>'}' must be a mapping, got {type(overrides).__name__}"
            )
        for key, value in overrides.items():
            where = f"{path}{key}"
            if key in namespaces:
                if not isinstance(value, Mapping):
                    raise CompositionMismatchError(
                        f"'{where}' is a namespace; {kind} must give a nested mapping, "
                        f"got {type(value).__name__}"
                    )
            elif isinstance(value, Mapping):
                raise CompositionMismatchError(
                    f"{kind} has nested entries for '{where}', which is not a namespace. "
                    f"Namespaces: {list(namespaces) or 'none'}"
                )
            elif kind == "boundary_conditions":
                if not isinstance(value, FieldBoundaryConditions):
                    raise CompositionMismatchError(
                        f"Boundary conditions for '{where}' must be FieldBoundaryConditions"
                    )
                if key not in registry.prognostic_names + registry.auxiliary_names:
                    logger.warning("Boundary conditions given for unknown variable '%s'", where)

    for name, child in namespaces.items():
        _check_composition(
            child,
            boundary_conditions.get(name, {}),
            fields.get(name, {}),
            path=f"{path}{name}.",
        )


class StateVariables:
    """Fields for all variables of one composition level.

    Attributes:
        clock: Simulation clock, shared with all nested namespaces
        prognostic: Prognostic fields (name -> Field)
        tendencies: Tendency fields keyed by prognostic name
        auxiliary: Auxiliary fields, closure variables included
        inputs: Input fields
        namespaces: Nested containers (name -> StateVariables)
        boundary_conditions: Boundary-condition map the fields were built with
        lent_fields: Supplied fields that match no variable, visible to
            custom constructors only
    """

    def __init__(
        self,
        registry: Variables,
        grid: ColumnGrid,
        clock: Clock | None = None,
        boundary_conditions: Mapping[str, Any] | None = None,
        fields: Mapping[str, Any] | None = None,
        _checked: bool = False,
    ):
        """Allocate all fields for `registry` on `grid`.

        Args:
            registry: Variables to realize
            grid: Grid used to allocate fields
            clock: Shared clock (default: new Clock at t=0)
            boundary_conditions: name -> FieldBoundaryConditions, nested
                mappings for namespaces
            fields: Pre-existing fields to reuse instead of allocating (name ->
                Field, nested mappings for namespaces). Entries without a
                matching variable are visible to custom constructors.

        Raises:
            CompositionMismatchError: If the nested maps do not match the
                registry's namespaces
            NoSuchVariableError: If a constructor or boundary condition refers
                to a field that does not exist (yet)
        """
        boundary_conditions = boundary_conditions or {}
        fields = fields or {}
        if not _checked:
            _check_composition(registry, boundary_conditions, fields)

        self._registry = registry
        self.boundary_conditions = boundary_conditions
        self._grid = grid
        self.clock = clock if clock is not None else Clock()
        self.prognostic: dict[str, Field] = {}
        self.tendencies: dict[str, Field] = {}
        self.auxiliary: dict[str, Field] = {}
        self.inputs: dict[str, Field] = {}
        self.namespaces: dict[str, StateVariables] = {}

        supplied = {k: v for k, v in fields.items() if not isinstance(v, Mapping)}
        declared = set(registry.names()) | {tend.name for tend in registry.tendencies}
        self.lent_fields: dict[str, Field] = {k: v for k, v in supplied.items() if k not in declared}

        for var in registry.inputs:
            self.inputs[var.name] = supplied.get(var.name) or self._allocate_input(var)

        for var, tend in zip(registry.prognostic, registry.tendencies):
            self.tendencies[var.name] = supplied.get(tend.name) or grid.allocate_field(
                tend.dims, name=tend.name
            )

        visible = {**supplied, **self.inputs}
        for var in registry.prognostic:
            self.prognostic[var.name] = supplied.get(var.name) or grid.allocate_field(
                var.dims,
                boundary_conditions=boundary_conditions.get(var.name),
                inputs=visible,
                name=var.name,
            )

        visible.update(self.prognostic)
        for var in registry.auxiliary:
            if var.name in supplied:
                field = supplied[var.name]
            elif var.constructor is not None:
                field = var.constructor(grid, self.clock, FieldLookup(visible))
                if not isinstance(field, Field):
                    raise TypeError(
                        f"Constructor for '{var.name}' returned {type(field).__name__}, expected Field"
                    )
            else:
                field = grid.allocate_field(
                    var.dims,
                    boundary_conditions=boundary_conditions.get(var.name),
                    inputs=visible,
                    name=var.name,
                )
            self.auxiliary[var.name] = field
            visible[var.name] = field

        for name, child in registry.namespaces:
            # inputs are global per name: a nested level reuses the parent's field
            child_fields = {n: f for n, f in self.inputs.items() if n in child.input_names}
            child_fields.update(fields.get(name, {}))
            self.namespaces[name] = StateVariables(
                child,
                grid,
                clock=self.clock,
                boundary_conditions=boundary_conditions.get(name, {}),
                fields=child_fields,
                _checked=True,
            )

        self._index: dict[str, Any] = {
            **self.prognostic,
            **self.auxiliary,
            **self.inputs,
            **self.namespaces,
        }
        logger.debug("Allocated %s (%.2f MB)", self.summary(), self.memory_mb)

    def _allocate_input(self, var: VariableSpec) -> Field:
        field = self._grid.allocate_field(var.dims, name=var.name)
        if var.default is not None:
            default = var.default(self._grid) if callable(var.default) else var.default
            field.set(default)
        return field

    # Properties

    @property
    def registry(self) -> Variables:
        return self._registry

    @property
    def grid(self) -> ColumnGrid:
        return self._grid

    @property
    def memory_bytes(self) -> int:
        """Approximate storage used by fields owned at all levels."""
        seen: set[int] = set()
        total = 0
        for field in self.iter_fields():
            if id(field) in seen:
                continue
            seen.add(id(field))
            dtype_size = 8 if "64" in str(field.dtype) else 4
            total += field.n_elements * dtype_size
        return total

    @property
    def memory_mb(self) -> float:
        return self.memory_bytes / (1024 * 1024)

    # Name lookup

    def names(self) -> tuple[str, ...]:
        """Flat names: prognostic, auxiliary, input, namespace."""
        return tuple(self._index)

    def __getitem__(self, name: str) -> Any:
        """Get a field or nested namespace by name.

        Raises:
            NoSuchVariableError: If `name` is not defined at this level
        """
        try:
            return self._index[name]
        except KeyError:
            raise NoSuchVariableError(name, self._index.keys()) from None

    def __getattr__(self, name: str) -> Any:
        # only called when normal attribute lookup fails
        if name.startswith("_") or "_index" not in self.__dict__:
            raise AttributeError(name)
        return self[name]

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __dir__(self):
        return list(super().__dir__()) + list(self._index)

    def namespace(self, name: str) -> "StateVariables":
        if name not in self.namespaces:
            raise NoSuchVariableError(name, self.namespaces.keys())
        return self.namespaces[name]

    def tendency(self, name: str) -> Field:
        """Tendency field of the prognostic variable `name`."""
        if name not in self.tendencies:
            raise NoSuchVariableError(name, self.tendencies.keys())
        return self.tendencies[name]

    def get_fields(self, *queries: Any) -> dict[str, Any]:
        """Collect fields by name.

        Each query is a name at this level or a (namespace, (names...)) pair:

            state.get_fields("temperature", ("soil", ("carbon_pool",)))
        """
        result: dict[str, Any] = {}
        for query in queries:
            if isinstance(query, str):
                result[query] = self[query]
            else:
                ns, names = query
                if isinstance(names, str):
                    raise TypeError("Namespace queries must be given as tuples of names")
                result[ns] = self.namespace(ns).get_fields(*names)
        return result

    # Partition queries

    def prognostic_fields(self) -> dict[str, Field]:
        return dict(self.prognostic)

    def tendency_fields(self) -> dict[str, Field]:
        return dict(self.tendencies)

    def auxiliary_fields(self) -> dict[str, Field]:
        return dict(self.auxiliary)

    def input_fields(self) -> dict[str, Field]:
        return dict(self.inputs)

    def closure_fields(self) -> dict[str, Field]:
        """Driven fields of prognostic variables with a closure, keyed by prognostic name."""
        return {
            var.name: self.auxiliary[var.closure.variable.name]
            for var in self._registry.closure_variables()
        }

    def driven_field(self, name: str) -> Field:
        """Field the integrator advances for prognostic variable `name`."""
        var = self._registry.get(name)
        if var.has_closure:
            return self.auxiliary[var.closure.variable.name]
        return self.prognostic[name]

    def integration_pairs(self, prefix: str = "") -> list[tuple[str, Field, Field]]:
        """(path, driven field, tendency field) for every prognostic variable, all levels."""
        pairs = [
            (f"{prefix}{name}", self.driven_field(name), self.tendencies[name])
            for name in self.prognostic
        ]
        for ns_name, ns in self.namespaces.items():
            pairs.extend(ns.integration_pairs(prefix=f"{prefix}{ns_name}."))
        return pairs

    def iter_fields(self) -> Iterator[Field]:
        """All fields at this level and below (shared fields may repeat)."""
        for group in (self.prognostic, self.tendencies, self.auxiliary, self.inputs):
            yield from group.values()
        for ns in self.namespaces.values():
            yield from ns.iter_fields()

    def shared_fields(self) -> dict[str, Any]:
        """Nested map of input and lent fields, for allocating a sibling container."""
        shared: dict[str, Any] = {**self.lent_fields, **self.inputs}
        for name, ns in self.namespaces.items():
            shared[name] = ns.shared_fields()
        return shared

    # In-place mutators

    def reset_tendencies(self) -> None:
        """Zero all tendency fields, recursively."""
        for field in self.tendencies.values():
            fill_field(field.data, 0.0)
        for ns in self.namespaces.values():
            ns.reset_tendencies()

    def reset(self) -> None:
        """Zero prognostic, auxiliary, and tendency fields, recursively."""
        self.fill(0.0)

    def fill(self, value: float) -> None:
        """Set prognostic, auxiliary, and tendency fields to `value`, recursively."""
        for group in (self.prognostic, self.tendencies, self.auxiliary):
            for field in group.values():
                fill_field(field.data, value)
        for ns in self.namespaces.values():
            ns.fill(value)

    def copy_into(self, other: "StateVariables") -> None:
        """Copy all field values and the clock into `other`.

        Raises:
            CompositionMismatchError: If `other` was built from a different registry
        """
        if other._registry is not self._registry and other._registry != self._registry:
            raise CompositionMismatchError("copy_into requires containers built from the same registry")
        for name in self._index:
            if name in self.namespaces:
                continue
            other._index[name].copy_from(self._index[name])
        for name, field in self.tendencies.items():
            other.tendencies[name].copy_from(field)
        for name, ns in self.namespaces.items():
            ns.copy_into(other.namespaces[name])
        if other.clock is not self.clock:
            other.clock.set(self.clock)

    def fill_boundaries(self) -> None:
        """Evaluate boundary conditions of prognostic and closure fields, recursively."""
        for field in self.prognostic.values():
            self._grid.fill_boundary(field, self.clock)
        for name in self._registry.closures:
            self._grid.fill_boundary(self.auxiliary[name], self.clock)
        for ns in self.namespaces.values():
            ns.fill_boundaries()

    # Display

    def summary(self) -> str:
        return (
            f"StateVariables(clock=t={self.clock.time}, "
            f"prognostic={tuple(self.prognostic)}, auxiliary={tuple(self.auxiliary)}, "
            f"inputs={tuple(self.inputs)}, namespaces={tuple(self.namespaces)})"
        )

    def __repr__(self) -> str:
        return self.summary()

    def __len__(self) -> int:
        """Number of fields at this level (tendencies and namespaces excluded)."""
        return len(self.prognostic) + len(self.auxiliary) + len(self.inputs)
