"""
Error types for the Wa-Tor Simulator.

All grid-level failures derive from `WaTorError` so callers can catch the
simulator's own errors without masking unrelated exceptions.
"""

from __future__ import annotations


class WaTorError(Exception):
    """Base class for simulator errors."""


class OccupiedCellError(WaTorError):
    """
    Raised when placing an entity into a cell that already holds a live one.

    This signals a broken position invariant and is never retried.
    """

    def __init__(self, position, occupant=None):
        self.position = position
        self.occupant = occupant
        super().__init__(f"Cell {position} is already occupied by {occupant!r}")


class NoSpaceAvailableError(WaTorError):
    """Raised when random placement exhausts its retry budget."""

    def __init__(self, attempts: int, population: int, capacity: int):
        self.attempts = attempts
        self.population = population
        self.capacity = capacity
        super().__init__(
            f"No empty cell found after {attempts} attempts "
            f"(population {population}/{capacity})"
        )


class OutOfBoundsError(WaTorError, IndexError):
    """Raised on direct grid access with coordinates outside the planet."""

    def __init__(self, position, width: int, height: int):
        self.position = position
        super().__init__(f"Position {position} is outside the {width}x{height} planet")
