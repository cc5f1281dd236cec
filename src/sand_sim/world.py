# MIT License (see LICENSE)
"""
The world grid: the shared spatial substrate of the simulation.

The grid is a fixed-size array of cells. Each cell stores:
- occupant: the entity reference of whoever sits there, or None.
- mass: the occupant's mass (0 for an empty cell).
- pressure: a derived value, the total mass of the column at or above
  the cell. Recomputed once per tick, never updated incrementally.

Coordinates are (x, y) with x the column and y the row; row 0 is the
bottom of the world. Arrays are indexed [y, x].

Writes take real-valued positions, truncate them to a cell, and are
silently dropped when the cell is off-grid. Reads take integer cells and
assert they are on-grid: an off-grid read is a caller bug.
"""
from __future__ import annotations

import numpy as np

from .constants import STATIC_CELL_MASS
from .types import EntityRef, STATIC
from .util import cell_of


class World:
    """
    Fixed-size 2D grid of cells.

    Attributes:
        height: Number of rows.
        width: Number of columns.
        mass: float64 array [height, width] of cell masses.
        pressure: float64 array [height, width] of column pressures.
        occupant: object array [height, width] of entity references or None.
    """

    def __init__(self, height: int, width: int) -> None:
        if height <= 0 or width <= 0:
            raise ValueError(f"World dimensions must be positive, got {height}x{width}")
        self.height = int(height)
        self.width = int(width)
        self.mass = np.zeros((self.height, self.width), dtype=np.float64)
        self.pressure = np.zeros((self.height, self.width), dtype=np.float64)
        self.occupant = np.full((self.height, self.width), None, dtype=object)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def pressure_at(self, x: int, y: int) -> float:
        assert self.in_bounds(x, y), f"pressure read off-grid at ({x}, {y})"
        return float(self.pressure[y, x])

    def occupant_at(self, x: int, y: int) -> EntityRef | None:
        assert self.in_bounds(x, y), f"occupant read off-grid at ({x}, {y})"
        return self.occupant[y, x]

    def is_occupied(self, x: int, y: int) -> bool:
        return self.occupant_at(x, y) is not None

    def mass_at(self, x: int, y: int) -> float:
        assert self.in_bounds(x, y), f"mass read off-grid at ({x}, {y})"
        return float(self.mass[y, x])

    def load_above(self, x: int, y: int) -> float:
        """
        Total mass strictly above cell (x, y) in its column.

        Uses current masses rather than the per-tick pressure snapshot.
        """
        assert self.in_bounds(x, y), f"load read off-grid at ({x}, {y})"
        return float(self.mass[y + 1:, x].sum())

    def total_mass(self) -> float:
        return float(self.mass.sum())

    # ------------------------------------------------------------------
    # Writes (off-grid writes are ignored)
    # ------------------------------------------------------------------

    def set_mass(self, pos, mass: float) -> None:
        x, y = cell_of(pos)
        if self.in_bounds(x, y):
            self.mass[y, x] = mass

    def clear_mass(self, pos) -> None:
        self.set_mass(pos, 0.0)

    def set_occupant(self, pos, ref: EntityRef) -> None:
        x, y = cell_of(pos)
        if self.in_bounds(x, y):
            self.occupant[y, x] = ref

    def clear_occupant(self, pos) -> None:
        x, y = cell_of(pos)
        if self.in_bounds(x, y):
            self.occupant[y, x] = None

    def place(self, pos, ref: EntityRef, mass: float) -> None:
        """Write occupancy and mass of a cell in one call."""
        self.set_occupant(pos, ref)
        self.set_mass(pos, mass)

    def vacate(self, pos) -> None:
        """Clear occupancy and mass of a cell in one call."""
        self.clear_occupant(pos)
        self.clear_mass(pos)

    def add_static(self, x: int, y: int, mass: float = STATIC_CELL_MASS) -> None:
        """Mark a cell as immovable terrain."""
        self.place((x, y), STATIC, mass)

    # ------------------------------------------------------------------
    # Pressure field
    # ------------------------------------------------------------------

    def recompute_pressure(self) -> None:
        """
        Recompute the pressure of every cell.

        Pressure at (x, y) is the running sum of the masses in column x from
        the top row down to and including row y, so it never decreases
        going down a column.
        """
        self.pressure[:] = np.cumsum(self.mass[::-1, :], axis=0)[::-1, :]
