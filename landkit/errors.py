"""Error taxonomy for variable composition and state construction.

All of these are raised eagerly while a simulation is being set up, so a run
either starts from a consistent state or fails before the first step.
"""


class LandkitError(Exception):
    """Base class for landkit framework errors."""


class VariableConflictError(LandkitError, ValueError):
    """Two declarations share a name but disagree on their metadata."""

    def __init__(self, name: str, first: str, second: str, reason: str):
        self.name = name
        self.components = (first, second)
        super().__init__(
            f"Variable '{name}' declared by '{first}' conflicts with the "
            f"declaration by '{second}': {reason}"
        )


class CompositionMismatchError(LandkitError, ValueError):
    """Supplied fields or boundary conditions do not match the registry layout."""


class NoSuchVariableError(LandkitError, KeyError, AttributeError):
    """Name lookup failed at a given composition level."""

    def __init__(self, name: str, available=()):
        self.name = name
        self.available = tuple(available)
        message = f"No variable named '{name}'"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
