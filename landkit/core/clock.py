"""Simulation clock shared by a state container and its namespaces."""

from dataclasses import dataclass


@dataclass
class Clock:
    """Current model time [s] and iteration count."""

    time: float = 0.0
    iteration: int = 0

    def tick(self, dt: float) -> None:
        """Advance by one step of size dt [s]."""
        self.time += dt
        self.iteration += 1

    def reset(self, time: float = 0.0) -> None:
        self.time = time
        self.iteration = 0

    def set(self, other: "Clock") -> None:
        """Copy time and iteration from another clock in place."""
        self.time = other.time
        self.iteration = other.iteration
