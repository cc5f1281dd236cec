# MIT License (see LICENSE)
"""
Utilities for checking conserved quantities and grid consistency.

Used by tests and while debugging. Moves never create or destroy mass, so
the mass carried by live entities should match what the grid holds for
them, and every entity should find its own reference in its cell.
"""
from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

from ..types import Static
from ..world import World

if TYPE_CHECKING:
    from ..simulation import Simulation


def entity_mass(sim: "Simulation") -> float:
    """
    Total mass of live particles and active objects.

    M = Σ particle.mass + Σ object.total_mass
    """
    total = sum(p.mass for p in sim.live_particles())
    total += sum(o.total_mass for o in sim.active_objects())
    return float(total)


def grid_entity_mass(world: World) -> float:
    """Mass stored in the grid, excluding static terrain."""
    total = 0.0
    for y in range(world.height):
        for x in range(world.width):
            ref = world.occupant[y, x]
            if ref is not None and not isinstance(ref, Static):
                total += float(world.mass[y, x])
    return total


def occupancy_errors(sim: "Simulation") -> list[str]:
    """
    Describe every disagreement between entities and the grid.

    Checks that each live particle and each non-air object cell finds its
    own reference and mass in its cell, and that every referenced cell
    points back to a live entity at that position.

    Returns:
        Human-readable problems; empty when the grid is consistent.
    """
    world = sim.world
    errors = []
    claimed = set()

    entities = list(sim.live_particles())
    for obj in sim.active_objects():
        entities.extend(obj.particles())

    for p in entities:
        x, y = p.cell
        if not world.in_bounds(x, y):
            errors.append(f"{p.entity_ref} is off-grid at ({x}, {y})")
            continue
        if (x, y) in claimed:
            errors.append(f"cell ({x}, {y}) claimed twice")
        claimed.add((x, y))
        if world.occupant_at(x, y) != p.entity_ref:
            errors.append(f"cell ({x}, {y}) holds {world.occupant_at(x, y)}, expected {p.entity_ref}")
        if not np.isclose(world.mass_at(x, y), p.mass):
            errors.append(f"cell ({x}, {y}) mass {world.mass_at(x, y)}, expected {p.mass}")

    for y in range(world.height):
        for x in range(world.width):
            ref = world.occupant[y, x]
            if ref is None or isinstance(ref, Static):
                continue
            if (x, y) not in claimed:
                errors.append(f"cell ({x}, {y}) holds stale reference {ref}")
    return errors


def pressure_is_monotonic(world: World) -> bool:
    """True if pressure never decreases going down any column."""
    # Row 0 is the bottom, so pressure must be non-increasing with row index.
    return bool(np.all(np.diff(world.pressure, axis=0) <= 1e-12))
