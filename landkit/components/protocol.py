"""
Component protocol and composition.

A component is one physical process. It declares the variables it needs and
updates the state through four hooks, all of which default to no-ops in
ComponentBase:

- declare_variables(): Variables this component reads or writes (pure)
- initialize(state, context): Once, before the first step
- compute_auxiliary(state, context): Every step, before tendencies
- compute_tendencies(state, context): Every step; accumulate, never overwrite

Components may also return default boundary conditions from
boundary_conditions(); user-supplied conditions take precedence.

Composition:
- Model: Ordered list of components sharing one composition level
- Namespaced: Runs a component inside its own nested namespace
"""

from typing import Any, Iterator, Protocol, Sequence, runtime_checkable

from landkit.variables.registry import component_name
from landkit.variables.spec import namespace


@runtime_checkable
class Component(Protocol):
    """Protocol for physics components."""

    def declare_variables(self) -> Sequence[Any]:
        """Variable and namespace declarations, without side effects."""
        ...

    def initialize(self, state: Any, context: Any) -> None:
        """Set up initial values before the first step.

        Args:
            state: StateVariables of this component's composition level
            context: ModelContext (grid, constants)
        """
        ...

    def compute_auxiliary(self, state: Any, context: Any) -> None:
        """Recompute auxiliary fields from the current prognostic state."""
        ...

    def compute_tendencies(self, state: Any, context: Any) -> None:
        """Add this component's contribution to the tendency fields."""
        ...


class ComponentBase:
    """No-op implementation of every Component hook."""

    name: str | None = None

    def declare_variables(self) -> Sequence[Any]:
        return ()

    def boundary_conditions(self) -> dict[str, Any]:
        return {}

    def initialize(self, state: Any, context: Any) -> None:
        pass

    def compute_auxiliary(self, state: Any, context: Any) -> None:
        pass

    def compute_tendencies(self, state: Any, context: Any) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Namespaced(ComponentBase):
    """Run `component` in a nested namespace called `name`.

    The wrapped component sees only the nested StateVariables; inputs with the
    same name as an input of the enclosing level share its field.
    """

    def __init__(self, name: str, component: Any):
        self.name = name
        self.component = component

    def declare_variables(self) -> Sequence[Any]:
        return (namespace(self.name, self.component.declare_variables()),)

    def boundary_conditions(self) -> dict[str, Any]:
        defaults = getattr(self.component, "boundary_conditions", None)
        return {self.name: defaults()} if defaults is not None else {}

    def initialize(self, state: Any, context: Any) -> None:
        self.component.initialize(state.namespace(self.name), context)

    def compute_auxiliary(self, state: Any, context: Any) -> None:
        self.component.compute_auxiliary(state.namespace(self.name), context)

    def compute_tendencies(self, state: Any, context: Any) -> None:
        self.component.compute_tendencies(state.namespace(self.name), context)

    def __repr__(self) -> str:
        return f"Namespaced({self.name!r}, {self.component!r})"


class Model(ComponentBase):
    """Ordered composition of components at one level.

    Hooks run in declaration order. A component that reads a sibling's
    auxiliary output must come after that sibling.

    Example:
        model = Model(SoilHydrology(), SoilEnergy(), Namespaced("carbon", SoilCarbon()))
    """

    def __init__(self, *components: Any, name: str | None = None):
        flat: list[Any] = []
        for component in components:
            if isinstance(component, Model):
                flat.extend(component.components)
            elif isinstance(component, Component):
                flat.append(component)
            else:
                raise TypeError(f"{component!r} does not implement the Component protocol")
        self.components: tuple[Any, ...] = tuple(flat)
        self.name = name

    @classmethod
    def of(cls, model: Any) -> "Model":
        """Wrap a single component or a sequence of components in a Model."""
        if isinstance(model, Model):
            return model
        if isinstance(model, Component):
            return cls(model)
        return cls(*model)

    def declarations(self) -> Iterator[tuple[str, Any]]:
        """(owner, declaration) pairs of all components, in order."""
        for component in self.components:
            owner = component_name(component)
            for decl in component.declare_variables():
                yield owner, decl

    def declare_variables(self) -> Sequence[Any]:
        return tuple(decl for _, decl in self.declarations())

    def boundary_conditions(self) -> dict[str, Any]:
        """Merged defaults of all components; nested maps merge per namespace."""
        merged: dict[str, Any] = {}
        for component in self.components:
            defaults = getattr(component, "boundary_conditions", None)
            if defaults is None:
                continue
            _merge_into(merged, defaults())
        return merged

    def initialize(self, state: Any, context: Any) -> None:
        for component in self.components:
            component.initialize(state, context)

    def compute_auxiliary(self, state: Any, context: Any) -> None:
        for component in self.components:
            component.compute_auxiliary(state, context)

    def compute_tendencies(self, state: Any, context: Any) -> None:
        for component in self.components:
            component.compute_tendencies(state, context)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    def __repr__(self) -> str:
        return f"Model({', '.join(repr(c) for c in self.components)})"


def _merge_into(target: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge nested mappings; later values win."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        elif isinstance(value, dict):
            target[key] = _merge_into({}, value)
        else:
            target[key] = value
    return target


def merge_boundary_conditions(*maps: dict[str, Any]) -> dict[str, Any]:
    """Merge boundary-condition maps left to right into a new nested dict."""
    merged: dict[str, Any] = {}
    for m in maps:
        if m:
            _merge_into(merged, m)
    return merged
