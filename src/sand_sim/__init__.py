# MIT License (see LICENSE)
"""
sand_sim - A 2D grid simulation of granular and breakable rigid materials.

Loose particles (sand, water) fall and flow under gravity and accumulated
pressure, while rigid multi-cell objects move as one body and fracture into
fragments when an impact or a sustained load exceeds their bond strength.

Main entry points:
    - Simulation: The context owning the world grid, particles and objects.
    - World: The grid of cells (occupancy, mass, pressure).
    - Particle: A single free cell of material.
    - Object: A rigid, breakable cluster of cells.
    - Material: The material catalog.

Submodules:
    - core: Bond strength, fragment extraction and invariant checks.
    - renderer: Optional read-only visualization adapters.

Example:
    from sand_sim import Simulation, Material

    sim = Simulation(height=20, width=10, gravity=(0, -0.5), seed=1)
    sim.spawn_particle((5, 10), Material.SAND)
    for _ in range(10):
        sim.step()
"""
import logging

from .simulation import Simulation, FractureEvent
from .world import World
from .particle import Particle
from .objects import Object, ObjectCell
from .materials import Material, MaterialProperties
from .types import EntityRef, Free, InObject, Static, STATIC

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Simulation
    "Simulation",
    "FractureEvent",
    "World",
    # Entities
    "Particle",
    "Object",
    "ObjectCell",
    # Materials
    "Material",
    "MaterialProperties",
    # Entity references
    "EntityRef",
    "Free",
    "InObject",
    "Static",
    "STATIC",
]
