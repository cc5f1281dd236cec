# MIT License (see LICENSE)
"""
Core algorithms shared by the simulation components.

This subpackage provides:
    - Fracture: bond strength, collision dampening, union-find and
      connected-component fragment extraction.
    - Invariants: mass and occupancy consistency checks.

Typical usage:
    from sand_sim.core import bond_strength, connected_components

    bond_strength(Material.STONE, Material.WOOD)
"""
from .fracture import (
    Bond,
    CellIndex,
    UnionFind,
    bond_strength,
    collision_dampening,
    connected_components,
    make_bond,
    reference_dampening,
)
from .invariants import (
    entity_mass,
    grid_entity_mass,
    occupancy_errors,
    pressure_is_monotonic,
)

__all__ = [
    # Fracture
    "Bond",
    "CellIndex",
    "UnionFind",
    "bond_strength",
    "collision_dampening",
    "connected_components",
    "make_bond",
    "reference_dampening",
    # Invariants
    "entity_mass",
    "grid_entity_mass",
    "occupancy_errors",
    "pressure_is_monotonic",
]
