"""
Planet (grid) for the Wa-Tor Simulator.

Manages the bounded 2D grid of cells, each holding either no entity
(None) or exactly one Entity. The planet is the sole source of spatial
truth: an entity's `position` always equals the cell it is stored in.

Coordinates are (row, col); out-of-bounds access raises OutOfBoundsError
and nothing wraps around the edges.

Live prey/predator counts are maintained incrementally so capacity
checks during movement are O(1).
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from wator.core.entity import Entity
from wator.core.errors import OccupiedCellError, OutOfBoundsError
from wator.core.position import Position
from wator.utils.spatial import in_bounds, neighbors4


EMPTY = 0
PREY = 1
PREDATOR = 2


class Planet:
    """
    A fixed-size bounded grid of optional entity references.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        prey_count: Live prey currently stored.
        predator_count: Live predators currently stored.
    """

    def __init__(self, width: int, height: int):
        """
        Create an empty planet.

        Args:
            width, height: Grid dimensions (both >= 1).
        """
        if width < 1 or height < 1:
            raise ValueError(f"Planet dimensions must be >= 1, got {width}x{height}")
        self.width = width
        self.height = height
        self._cells: list[list[Optional[Entity]]] = [
            [None] * width for _ in range(height)
        ]
        self.prey_count: int = 0
        self.predator_count: int = 0

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    def in_bounds(self, position: Position) -> bool:
        return in_bounds(position, self.width, self.height)

    def _check_bounds(self, position: Position) -> None:
        if not in_bounds(position, self.width, self.height):
            raise OutOfBoundsError(position, self.width, self.height)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def entity_at(self, position: Position) -> Optional[Entity]:
        """Return the entity stored at a cell, or None if empty."""
        self._check_bounds(position)
        return self._cells[position.row][position.col]

    def is_empty(self, position: Position) -> bool:
        """True if the cell holds no entity."""
        return self.entity_at(position) is None

    def place(self, entity: Entity, position: Position) -> None:
        """
        Store an entity in a cell and update its position.

        A dead entity left in the cell is overwritten.

        Raises:
            OutOfBoundsError: If the position is outside the grid.
            OccupiedCellError: If the cell already holds a live entity.
        """
        occupant = self.entity_at(position)
        if occupant is not None:
            if occupant.alive:
                raise OccupiedCellError(position, occupant)
            self._forget(occupant)

        self._cells[position.row][position.col] = entity
        entity.position = position
        if entity.alive:
            self._count(entity, +1)

    def remove(self, position: Position) -> Optional[Entity]:
        """
        Clear a cell. No-op if already empty.

        Returns:
            The removed entity, or None.
        """
        occupant = self.entity_at(position)
        if occupant is None:
            return None
        self._cells[position.row][position.col] = None
        self._forget(occupant)
        return occupant

    def move(self, entity: Entity, destination: Position) -> Position:
        """
        Relocate an entity from its current cell to `destination`.

        Returns:
            The vacated origin cell.

        Raises:
            OccupiedCellError: If the destination holds a live entity.
        """
        origin = entity.position
        self._check_bounds(destination)
        occupant = self._cells[destination.row][destination.col]
        if occupant is not None and occupant.alive:
            raise OccupiedCellError(destination, occupant)
        self.remove(origin)
        self.place(entity, destination)
        return origin

    def _count(self, entity: Entity, delta: int) -> None:
        if entity.is_prey:
            self.prey_count += delta
        else:
            self.predator_count += delta

    def _forget(self, entity: Entity) -> None:
        # Dead tombstones were never re-counted after dying
        if entity.alive:
            self._count(entity, -1)

    def kill(self, position: Position) -> Optional[Entity]:
        """
        Remove the entity at a cell and mark it dead.

        Returns:
            The killed entity, or None if the cell was empty.
        """
        entity = self.remove(position)
        if entity is not None:
            entity.die()
        return entity

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[Entity]:
        """Iterate live entities in row-major order."""
        for row in self._cells:
            for entity in row:
                if entity is not None and entity.alive:
                    yield entity

    def entities_snapshot(self) -> list[Entity]:
        """
        Get all live entities in row-major order.

        The list is a snapshot, safe to iterate while the grid is mutated.
        """
        return list(self)

    def neighbors4(self, position: Position) -> list[Position]:
        """In-bounds orthogonal neighbors of a cell in N, S, W, E order."""
        return neighbors4(position, self.width, self.height)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------

    @property
    def population(self) -> int:
        """Number of live entities on the planet."""
        return self.prey_count + self.predator_count

    @property
    def capacity(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    @property
    def is_full(self) -> bool:
        return self.population >= self.capacity

    # ------------------------------------------------------------------
    # Read accessors for rendering / reporting
    # ------------------------------------------------------------------

    def occupancy(self) -> NDArray[np.int8]:
        """
        Grid of cell states, shape (height, width).

        0 = empty, 1 = prey, 2 = predator.
        """
        grid = np.zeros((self.height, self.width), dtype=np.int8)
        for entity in self:
            grid[entity.position.row, entity.position.col] = PREY if entity.is_prey else PREDATOR
        return grid

    def energy_map(self) -> NDArray[np.int32]:
        """Predator energy per cell, shape (height, width). 0 where no predator."""
        grid = np.zeros((self.height, self.width), dtype=np.int32)
        for entity in self:
            if entity.energy is not None:
                grid[entity.position.row, entity.position.col] = entity.energy
        return grid

    def render_text(self, prey_char: str = "x", predator_char: str = "#", empty_char: str = ".") -> str:
        """Plain-text rendering, one line per row."""
        chars = {EMPTY: empty_char, PREY: prey_char, PREDATOR: predator_char}
        return "\n".join(
            "".join(chars[int(v)] for v in row)
            for row in self.occupancy()
        )

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Planet(size={self.width}x{self.height}, "
            f"prey={self.prey_count}, predators={self.predator_count})"
        )
