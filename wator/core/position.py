"""
Grid coordinate value type for the Wa-Tor Simulator.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Position:
    """
    An immutable (row, col) cell coordinate.

    Attributes:
        row: Row index (0 = top/north).
        col: Column index (0 = left/west).
    """
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> Position:
        """Return the position shifted by (d_row, d_col). No bounds checking."""
        return Position(self.row + d_row, self.col + d_col)

    def __repr__(self) -> str:
        return f"({self.row}, {self.col})"
