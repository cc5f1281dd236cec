# MIT License (see LICENSE)
"""
Simulation constants shared by the grid, particle and object modules.

Masses are per cell (cell volume is fixed at 1), so a material's density
is also the mass a cell of that material writes into the world grid.
"""
from __future__ import annotations

# Default gravity vector in cells per tick².
DEFAULT_GRAVITY: tuple[float, float] = (0.0, -1.0)

# Mass written for immovable terrain cells. Large enough that terrain
# dominates the pressure of any column it sits in.
STATIC_CELL_MASS: float = 1000.0

# Fraction of an impact transmitted into an object, by the kind of entity
# it lands on. A collision against several entities averages these.
DAMPENING_STATIC: float = 1.0
DAMPENING_FREE: float = 0.4
DAMPENING_IN_OBJECT: float = 0.6

# Bonds between two different materials hold only this fraction of the
# weaker material's binding strength.
CROSS_MATERIAL_BOND_FACTOR: float = 0.5

# Environment variable consulted for a default random seed.
SEED_ENV_VAR: str = "SAND_SIM_SEED"
