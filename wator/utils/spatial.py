"""
Spatial utilities for the Wa-Tor Simulator.

Provides bounded (non-toroidal) grid math: the four cardinal directions,
bounds checks, orthogonal neighbor enumeration and randomized direction
orders.

All functions assume a 2D grid with dimensions (width, height) and
coordinates (row, col) with 0 <= row < height and 0 <= col < width.
Coordinates never wrap.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import numpy as np

from wator.core.position import Position


class Direction(Enum):
    """Cardinal movement directions as (d_row, d_col) offsets."""
    NORTH = (-1, 0)
    SOUTH = (1, 0)
    WEST = (0, -1)
    EAST = (0, 1)


# Fixed scan order used for neighbor enumeration
DIRECTIONS: tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.SOUTH,
    Direction.WEST,
    Direction.EAST,
)


def in_bounds(position: Position, width: int, height: int) -> bool:
    """
    Check whether a position lies inside a width x height grid.

    Args:
        position: Cell coordinate.
        width, height: Grid dimensions.

    Returns:
        True if 0 <= row < height and 0 <= col < width.
    """
    return 0 <= position.row < height and 0 <= position.col < width


def step(position: Position, direction: Direction) -> Position:
    """Return the cell one step from `position` in `direction` (unchecked)."""
    d_row, d_col = direction.value
    return position.offset(d_row, d_col)


def neighbor_in_direction(
    position: Position,
    direction: Direction,
    width: int, height: int,
) -> Optional[Position]:
    """
    Return the adjacent cell in a direction, or None if it falls off the grid.
    """
    target = step(position, direction)
    if in_bounds(target, width, height):
        return target
    return None


def neighbors4(position: Position, width: int, height: int) -> list[Position]:
    """
    Enumerate in-bounds orthogonal neighbors in N, S, W, E order.

    Cells beyond the grid boundary are filtered out; nothing wraps around.

    Args:
        position: Center cell.
        width, height: Grid dimensions.

    Returns:
        Between 0 and 4 positions.
    """
    result = []
    for direction in DIRECTIONS:
        target = step(position, direction)
        if in_bounds(target, width, height):
            result.append(target)
    return result


def are_adjacent(a: Position, b: Position) -> bool:
    """True if two positions are orthogonal neighbors (Manhattan distance 1)."""
    return abs(a.row - b.row) + abs(a.col - b.col) == 1


def random_direction_order(rng: np.random.Generator) -> list[Direction]:
    """
    Return a uniformly random permutation of the four directions.

    Used once per entity per chronon to avoid systematic movement bias.
    """
    return [DIRECTIONS[int(i)] for i in rng.permutation(len(DIRECTIONS))]

