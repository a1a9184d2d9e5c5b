"""Variable registry: merged, conflict-checked declarations of a component tree.

Components each return a sequence of declarations from declare_variables().
Variables.from_components() merges them into one immutable registry per
composition level:

1. Declarations are partitioned by role, in declaration order.
2. Every prognostic variable gets a derived tendency variable.
3. Closure variables are inserted into the auxiliary set at the point where
   their owning prognostic variable was declared.
4. Inputs that share a name with a prognostic or auxiliary variable are dropped.
5. Namespace declarations recurse into child registries.

Identical declarations collapse to one entry; incompatible declarations of the
same name raise VariableConflictError naming both contributing components.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from landkit.errors import NoSuchVariableError, VariableConflictError
from landkit.variables.spec import Namespace, Role, VariableSpec

logger = logging.getLogger(__name__)


def component_name(component: Any) -> str:
    """Name used to identify a component in error messages."""
    name = getattr(component, "name", None)
    return name if isinstance(name, str) and name else type(component).__name__


@dataclass(frozen=True)
class Variables:
    """Deduplicated, ordered variables of one composition level.

    Attributes:
        prognostic: Prognostic variables in declaration order
        tendencies: Tendency variables, aligned with `prognostic`
        auxiliary: Auxiliary variables, closure variables included
        inputs: Input variables not shadowed by another role
        namespaces: (name, Variables) pairs for nested levels
        closures: Names of closure-produced auxiliary variables
    """

    prognostic: tuple[VariableSpec, ...] = ()
    tendencies: tuple[VariableSpec, ...] = ()
    auxiliary: tuple[VariableSpec, ...] = ()
    inputs: tuple[VariableSpec, ...] = ()
    namespaces: tuple[tuple[str, "Variables"], ...] = ()
    closures: tuple[str, ...] = ()

    @classmethod
    def from_components(cls, components: Iterable[Any]) -> "Variables":
        """Build a registry from components exposing declare_variables()."""

        def declarations() -> Iterator[tuple[str, Any]]:
            for component in components:
                owner = component_name(component)
                for decl in component.declare_variables():
                    yield owner, decl

        return cls.from_declarations(declarations())

    @classmethod
    def from_declarations(cls, declarations: Iterable[tuple[str, Any]]) -> "Variables":
        """Build a registry from (owner, declaration) pairs."""
        builder = _RegistryBuilder()
        for owner, decl in declarations:
            builder.add(owner, decl)
        registry = builder.build()
        logger.debug("Built variable registry: %s", registry.summary())
        return registry

    # Name queries

    @property
    def prognostic_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.prognostic)

    @property
    def auxiliary_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.auxiliary)

    @property
    def input_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.inputs)

    @property
    def namespace_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.namespaces)

    def names(self) -> tuple[str, ...]:
        """All names visible at this level, in flat lookup order."""
        return (
            self.prognostic_names
            + self.auxiliary_names
            + self.input_names
            + self.namespace_names
        )

    def get(self, name: str) -> VariableSpec:
        """Look up a variable (not a namespace) by name."""
        for group in (self.prognostic, self.auxiliary, self.inputs):
            for var in group:
                if var.name == name:
                    return var
        raise NoSuchVariableError(name, self.names())

    def namespace(self, name: str) -> "Variables":
        for ns_name, ns_vars in self.namespaces:
            if ns_name == name:
                return ns_vars
        raise NoSuchVariableError(name, self.namespace_names)

    def tendency(self, name: str) -> VariableSpec:
        """Tendency variable of the prognostic variable `name`."""
        for var, tend in zip(self.prognostic, self.tendencies):
            if var.name == name:
                return tend
        raise NoSuchVariableError(name, self.prognostic_names)

    def closure_variables(self) -> tuple[VariableSpec, ...]:
        """Prognostic variables that carry a closure relation."""
        return tuple(v for v in self.prognostic if v.has_closure)

    def __contains__(self, name: str) -> bool:
        return name in self.names()

    def __len__(self) -> int:
        """Number of variables at this level (tendencies and namespaces excluded)."""
        return len(self.prognostic) + len(self.auxiliary) + len(self.inputs)

    def summary(self) -> str:
        return (
            f"Variables(prognostic={self.prognostic_names}, "
            f"auxiliary={self.auxiliary_names}, inputs={self.input_names}, "
            f"namespaces={self.namespace_names})"
        )


class _RegistryBuilder:
    """Accumulates declarations for one composition level."""

    def __init__(self):
        # dicts preserve declaration order
        self.prognostic: dict[str, VariableSpec] = {}
        self.auxiliary: dict[str, VariableSpec] = {}
        self.inputs: dict[str, VariableSpec] = {}
        self.closures: list[str] = []
        self.namespaces: dict[str, list[tuple[str, Any]]] = {}
        self.owners: dict[str, str] = {}

    def _existing(self, name: str) -> VariableSpec | None:
        for group in (self.prognostic, self.auxiliary, self.inputs):
            if name in group:
                return group[name]
        return None

    def _conflict(self, name: str, owner: str, reason: str) -> VariableConflictError:
        return VariableConflictError(name, self.owners.get(name, owner), owner, reason)

    def add(self, owner: str, decl: Any) -> None:
        if isinstance(decl, Namespace):
            self._add_namespace(owner, decl)
        elif isinstance(decl, VariableSpec):
            if decl.role is Role.INPUT:
                self._add_input(owner, decl)
            else:
                self._add_variable(owner, decl)
        else:
            raise TypeError(
                f"Component '{owner}' declared {decl!r}; expected VariableSpec or Namespace"
            )

    def _add_namespace(self, owner: str, ns: Namespace) -> None:
        if self._existing(ns.name) is not None:
            raise self._conflict(ns.name, owner, "namespace shadows a variable")
        self.owners.setdefault(ns.name, owner)
        self.namespaces.setdefault(ns.name, []).extend((owner, d) for d in ns.variables)

    def _add_input(self, owner: str, var: VariableSpec) -> None:
        name = var.name
        if name in self.namespaces:
            raise self._conflict(name, owner, "input shadows a namespace")
        if name in self.closures:
            raise self._conflict(name, owner, "closure variable cannot also be an input")
        existing = self._existing(name)
        if existing is None:
            self.inputs[name] = var
            self.owners[name] = owner
            return
        if not existing.same_layout(var):
            raise self._conflict(
                name,
                owner,
                f"{existing.role.name.lower()} {existing.dims.name} [{existing.units}] "
                f"vs input {var.dims.name} [{var.units}]",
            )
        if existing.role is not Role.INPUT:
            logger.debug("Input '%s' from '%s' is computed by '%s'", name, owner, self.owners[name])

    def _add_variable(self, owner: str, var: VariableSpec) -> None:
        name = var.name
        if name in self.namespaces:
            raise self._conflict(name, owner, "variable shadows a namespace")
        existing = self._existing(name)
        if existing is not None:
            if existing.role is Role.INPUT and existing.same_layout(var):
                # inputs are superseded by anything that computes the quantity
                logger.debug("Input '%s' from '%s' is computed by '%s'", name, self.owners[name], owner)
                del self.inputs[name]
            elif existing.identical(var):
                return
            else:
                raise self._conflict(
                    name,
                    owner,
                    f"{existing.role.name.lower()} {existing.dims.name} [{existing.units}] "
                    f"vs {var.role.name.lower()} {var.dims.name} [{var.units}]",
                )

        self.owners[name] = owner
        if var.role is Role.PROGNOSTIC:
            self.prognostic[name] = var
            if var.has_closure:
                self._add_closure(owner, var)
        else:
            self.auxiliary[name] = var

    def _add_closure(self, owner: str, var: VariableSpec) -> None:
        closure_vars = tuple(var.closure.variables())
        driven = var.closure.variable
        if not closure_vars or closure_vars[0] != driven:
            raise ValueError(
                f"Closure of '{var.name}' must list its driven variable first in variables()"
            )
        if driven.name in (var.name, f"{var.name}_tendency"):
            raise self._conflict(
                driven.name, owner, f"closure variable collides with '{var.name}' or its tendency"
            )
        if driven.dims != var.dims:
            raise self._conflict(
                driven.name,
                owner,
                f"closure variable is {driven.dims.name} but '{var.name}' is {var.dims.name}",
            )

        for cvar in closure_vars:
            if cvar.role is not Role.AUXILIARY:
                raise ValueError(f"Closure variable '{cvar.name}' must be auxiliary")
            existing = self._existing(cvar.name)
            if existing is not None and existing.role is not Role.AUXILIARY:
                raise self._conflict(
                    cvar.name,
                    owner,
                    f"closure variable already declared as {existing.role.name.lower()}",
                )
            self._add_variable(owner, cvar)
        if driven.name not in self.closures:
            self.closures.append(driven.name)

    def build(self) -> Variables:
        prognostic = tuple(self.prognostic.values())
        namespaces = tuple(
            (name, Variables.from_declarations(decls))
            for name, decls in self.namespaces.items()
        )
        return Variables(
            prognostic=prognostic,
            tendencies=tuple(v.tendency() for v in prognostic),
            auxiliary=tuple(self.auxiliary.values()),
            inputs=tuple(self.inputs.values()),
            namespaces=namespaces,
            closures=tuple(self.closures),
        )
