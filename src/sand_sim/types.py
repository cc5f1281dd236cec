# MIT License (see LICENSE)
"""
Entity references stored in world cells.

A reference says who occupies a cell without the grid holding a pointer to
the occupant:

- Free(index): a free particle, index into Simulation.particles.
- InObject(object_index, row, col): one cell of an object's local grid,
  object_index into Simulation.objects.
- Static(): immovable terrain that is never traced back to an entity.

References are frozen dataclasses, so they compare by value and can be
collected into sets (impact dampening averages over distinct references). Dispatch
on the kind of reference is done with isinstance().
"""
from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Free:
    """A free-floating particle."""
    index: int


@dataclass(frozen=True)
class InObject:
    """A cell inside an object's local grid (row 0 is the bottom row)."""
    object_index: int
    row: int
    col: int


@dataclass(frozen=True)
class Static:
    """Immovable terrain (ground, obstacles)."""


# Union type for reference dispatch
EntityRef = Free | InObject | Static

STATIC = Static()
