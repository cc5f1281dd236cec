# MIT License (see LICENSE)
"""
Rigid multi-cell objects that move as one body and can break apart.

An object owns a small local grid of cells, each holding a particle plus
two scratch values (aux_mass, aux_pressure). Row 0 of the local grid is the
bottom row and sits at the object's anchor position, its lower-left cell.
Cells made of AIR are holes: they carry no mass, are never written to the
world, and take part in no bond.

Per tick the simulation calls update_object_velocity() and, unless that
returned fragments, update_object_position(). Stationary objects are also
checked for static crushing with check_pressure_fracture().

Fracture pipeline:
    check_fracture / check_pressure_fracture  ->  broken bonds
    find_fragments(broken bonds)              ->  groups of cells
    extract_fragment_data(group)              ->  (world position, material)
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from .core.fracture import (
    Bond,
    CellIndex,
    bond_strength,
    collision_dampening,
    connected_components,
    make_bond,
)
from .materials import Material
from .particle import Particle
from .types import EntityRef, InObject
from .util import f64
from .world import World

# Quadrant layout: bottom-left, bottom-right, top-left, top-right.
DEFAULT_QUADRANT_MATERIALS: tuple[Material, Material, Material, Material] = (
    Material.STONE, Material.WOOD, Material.METAL, Material.SAND,
)

# (world position, material) pairs describing one fragment.
FragmentData = list[tuple[tuple[float, float], Material]]


@dataclass
class ObjectCell:
    """
    One cell of an object's local grid.

    Attributes:
        particle: The material unit in this cell (AIR for holes).
        aux_mass: Mass of the cell, cached from the particle's material.
        aux_pressure: Load on the cell from the latest pressure check.
    """
    particle: Particle
    aux_mass: float
    aux_pressure: float = 0.0

    @property
    def material(self) -> Material:
        return self.particle.material

    @property
    def is_air(self) -> bool:
        return self.particle.material.is_air


class Object:
    """
    A rigid cluster of cells.

    Attributes:
        id: Identifier assigned by Simulation.add_object().
        index: Slot in the owning object collection; -1 until registered.
        destroyed: Set once a fracture has been dispatched. Destroyed
                   objects take no further part in the simulation.
        position: Anchor [x, y], the world position of local cell (0, 0).
        velocity: [vx, vy] in cells per tick.
        total_mass: Sum of the masses of all non-air cells.
        height, width: Local grid shape.
        cells: cells[row][col], row 0 at the bottom.
        impact_force: Force of the latest impact after dampening.
        broken_bonds: Bonds broken by the latest fracture check.
    """

    def __init__(
        self,
        id: int,
        position: np.ndarray | tuple[float, float],
        velocity: np.ndarray | tuple[float, float],
        layout: Sequence[Sequence[Material]],
    ) -> None:
        if not layout or not layout[0]:
            raise ValueError("Object layout must have at least one row and one column")
        width = len(layout[0])
        if any(len(row) != width for row in layout):
            raise ValueError("Object layout rows must all have the same length")

        self.id = id
        self.index = -1
        self.destroyed = False
        self.position = f64(position)
        self.velocity = f64(velocity)
        self.height = len(layout)
        self.width = width
        self.impact_force = 0.0
        self.broken_bonds: list[Bond] = []

        self.cells: list[list[ObjectCell]] = []
        k = 0
        for r, row in enumerate(layout):
            cell_row = []
            for c, material in enumerate(row):
                p = Particle(
                    id=k,
                    position=(self.position[0] + c, self.position[1] + r),
                    velocity=self.velocity.copy(),
                    material=material,
                    entity_ref=InObject(self.index, r, c),
                )
                cell_row.append(ObjectCell(particle=p, aux_mass=p.mass))
                k += 1
            self.cells.append(cell_row)

        self.total_mass = sum(cell.aux_mass for _, _, cell in self.solid_cells())

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def block(
        cls,
        id: int,
        position: tuple[float, float],
        velocity: tuple[float, float],
        material: Material,
        height: int,
        width: int,
    ) -> "Object":
        """Uniform rectangular block of one material."""
        if height <= 0 or width <= 0:
            raise ValueError(f"Block dimensions must be positive, got {height}x{width}")
        layout = [[material] * width for _ in range(height)]
        return cls(id, position, velocity, layout)

    @classmethod
    def quadrant(
        cls,
        id: int,
        position: tuple[float, float],
        velocity: tuple[float, float],
        materials: Sequence[Material] = DEFAULT_QUADRANT_MATERIALS,
    ) -> "Object":
        """
        4x4 test pattern made of four 2x2 quadrants.

        Materials are given as (bottom-left, bottom-right, top-left,
        top-right). Repeating materials builds two-region patterns, e.g.
        (STONE, STONE, WOOD, WOOD) for a stone base under a wooden top.
        """
        if len(materials) != 4:
            raise ValueError(f"Quadrant needs exactly 4 materials, got {len(materials)}")
        bl, br, tl, tr = materials
        layout = [
            [bl, bl, br, br],
            [bl, bl, br, br],
            [tl, tl, tr, tr],
            [tl, tl, tr, tr],
        ]
        return cls(id, position, velocity, layout)

    @classmethod
    def from_fragment(
        cls,
        id: int,
        data: FragmentData,
        velocity: tuple[float, float] = (0.0, 0.0),
    ) -> "Object":
        """
        Rebuild an object from (world position, material) pairs.

        The local grid spans the tight bounding box of the positions and is
        anchored at its lower-left corner. Box cells missing from the data
        become AIR holes.
        """
        if not data:
            raise ValueError("Cannot build an object from an empty fragment")

        xs = [pos[0] for pos, _ in data]
        ys = [pos[1] for pos, _ in data]
        min_x, min_y = min(xs), min(ys)
        width = int(round(max(xs) - min_x)) + 1
        height = int(round(max(ys) - min_y)) + 1

        layout = [[Material.AIR] * width for _ in range(height)]
        for (x, y), material in data:
            layout[int(round(y - min_y))][int(round(x - min_x))] = material
        return cls(id, (min_x, min_y), velocity, layout)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def solid_cells(self) -> Iterator[tuple[int, int, ObjectCell]]:
        """Yield (row, col, cell) for every non-air cell."""
        for r, row in enumerate(self.cells):
            for c, cell in enumerate(row):
                if not cell.is_air:
                    yield r, c, cell

    def particles(self) -> Iterator[Particle]:
        for _, _, cell in self.solid_cells():
            yield cell.particle

    def _is_solid(self, r: int, c: int) -> bool:
        return 0 <= r < self.height and 0 <= c < self.width and not self.cells[r][c].is_air

    def _covers(self, x: int, y: int) -> bool:
        """True if world cell (x, y) is one of this object's own cells."""
        return self._is_solid(y - int(self.position[1]), x - int(self.position[0]))

    def bonds(self) -> list[Bond]:
        """Every bond between a non-air cell and its right or upper neighbor."""
        out = []
        for r, c, _ in self.solid_cells():
            for nr, nc in ((r, c + 1), (r + 1, c)):
                if self._is_solid(nr, nc):
                    out.append(make_bond((r, c), (nr, nc)))
        return out

    @property
    def is_stationary(self) -> bool:
        return self.velocity[0] == 0.0 and self.velocity[1] == 0.0

    # ------------------------------------------------------------------
    # Grid bookkeeping
    # ------------------------------------------------------------------

    def bind(self, index: int) -> None:
        """Record the object's collection slot and retag its cells."""
        self.index = index
        for r, row in enumerate(self.cells):
            for c, cell in enumerate(row):
                cell.particle.entity_ref = InObject(index, r, c)

    def _sync_cells(self) -> None:
        for r, row in enumerate(self.cells):
            for c, cell in enumerate(row):
                p = cell.particle
                p.position[0] = self.position[0] + c
                p.position[1] = self.position[1] + r
                p.velocity[:] = self.velocity

    def write_to_world(self, world: World) -> None:
        for p in self.particles():
            world.place(p.position, p.entity_ref, p.mass)

    def clear_from_world(self, world: World) -> None:
        """Remove this object's cells from the grid, leaving other occupants alone."""
        for p in self.particles():
            x, y = p.cell
            if world.in_bounds(x, y) and world.occupant_at(x, y) == p.entity_ref:
                world.vacate(p.position)

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def _obstacles(self, world: World, dest_y: int) -> list[EntityRef]:
        """
        First foreign occupant in the path of each non-air cell.

        Every cell sweeps its column from the row next to its current one up
        to its destination row (dest_y + row). Cells of this object are
        passed over; the first occupied cell met is recorded.
        """
        anchor_x, anchor_y = int(self.position[0]), int(self.position[1])
        step = -1 if dest_y < anchor_y else 1
        hits = []
        for r, c, _ in self.solid_cells():
            x = anchor_x + c
            for y in range(anchor_y + r + step, dest_y + r + step, step):
                if not world.in_bounds(x, y) or self._covers(x, y):
                    continue
                ref = world.occupant_at(x, y)
                if ref is not None:
                    hits.append(ref)
                    break
        return hits

    def update_object_velocity(self, gravity, world: World) -> list[list[CellIndex]] | None:
        """
        Apply gravity, detect landing, and evaluate impact fracture.

        The object is projected to row y + vy + gy, clamped to row 0. Each
        non-air cell sweeps every row between its current cell and its
        projected cell; any occupied cell on the way that is not part of
        this object is a collision and vertical velocity drops to 0. If the
        object was moving, the impact force total_mass * |vy| is dampened by
        the average dampening of the distinct entities hit and tested
        against the object's bonds.

        Without a collision, a projection below the floor snaps velocity so
        the object lands exactly on row 0; otherwise gravity accumulates.

        Returns:
            The fragments if the impact split the object, else None.
        """
        next_y = self.position[1] + self.velocity[1] + gravity[1]
        hits = self._obstacles(world, int(max(next_y, 0.0)))

        if hits:
            v_before = float(self.velocity[1])
            self.velocity[1] = 0.0
            self._sync_cells()
            if v_before == 0.0:
                return None

            dampening = collision_dampening(hits)
            force = self.total_mass * abs(v_before)
            self.impact_force = force * dampening
            return self._split(self.check_fracture(force, dampening))

        if next_y < 0.0:
            self.velocity[1] = -self.position[1]
        else:
            self.velocity[1] += gravity[1]
        self._sync_cells()
        return None

    def update_object_position(self, world: World) -> None:
        """Move every cell by the velocity; no-op while stationary."""
        if self.is_stationary:
            return
        self.clear_from_world(world)
        self.position += self.velocity
        self._sync_cells()
        self.write_to_world(world)

    # ------------------------------------------------------------------
    # Fracture
    # ------------------------------------------------------------------

    def check_fracture(self, force: float, dampening_factor: float) -> list[Bond]:
        """
        Bonds broken by an impact on the bottom row.

        The force felt by a cell attenuates with height:
        force * dampening_factor / (row + 1). A bond to the right or upper
        neighbor breaks when that force exceeds its strength.
        """
        broken = []
        for r, c, cell in self.solid_cells():
            felt = force * dampening_factor / (r + 1)
            for nr, nc in ((r, c + 1), (r + 1, c)):
                if not self._is_solid(nr, nc):
                    continue
                if felt > bond_strength(cell.material, self.cells[nr][nc].material):
                    broken.append(make_bond((r, c), (nr, nc)))
        return broken

    def check_pressure_fracture(self, world: World) -> list[Bond]:
        """
        Bonds crushed by the load resting on the object.

        For each column, the external load is the world mass above its
        topmost non-air cell. Scanning down, each cell adds its own mass to
        the running load, and the bonds to the cell below and to the right
        neighbor break when the running load exceeds their strength.
        Columns carrying no external load are skipped.
        """
        for _, _, cell in self.solid_cells():
            cell.aux_pressure = 0.0

        anchor_x, anchor_y = int(self.position[0]), int(self.position[1])
        broken = []
        for c in range(self.width):
            rows = [r for r in range(self.height) if self._is_solid(r, c)]
            if not rows:
                continue
            top = rows[-1]
            wx, wy = anchor_x + c, anchor_y + top
            if not world.in_bounds(wx, wy):
                continue

            load = world.load_above(wx, wy)
            if load <= 0.0:
                continue

            for r in reversed(rows):
                cell = self.cells[r][c]
                load += cell.aux_mass
                cell.aux_pressure = load
                if self._is_solid(r - 1, c):
                    if load > bond_strength(cell.material, self.cells[r - 1][c].material):
                        broken.append(make_bond((r - 1, c), (r, c)))
                if self._is_solid(r, c + 1):
                    if load > bond_strength(cell.material, self.cells[r][c + 1].material):
                        broken.append(make_bond((r, c), (r, c + 1)))
        return broken

    def find_fragments(self, broken_bonds: list[Bond]) -> list[list[CellIndex]]:
        """
        Connected components of the cell graph once broken bonds are removed.

        A single-cell component becomes a free particle when materialised,
        larger ones become new objects.
        """
        cells = [(r, c) for r, c, _ in self.solid_cells()]
        return connected_components(cells, self.bonds(), broken_bonds)

    def _split(self, broken: list[Bond]) -> list[list[CellIndex]] | None:
        self.broken_bonds = broken
        if not broken:
            return None
        fragments = self.find_fragments(broken)
        if len(fragments) < 2:
            return None
        return fragments

    def pressure_fragments(self, world: World) -> list[list[CellIndex]] | None:
        """Run the crushing check and return fragments if the object splits."""
        return self._split(self.check_pressure_fracture(world))

    def extract_fragment_data(self, cells: list[CellIndex]) -> FragmentData:
        """World position and material of each cell of a fragment."""
        out = []
        for r, c in cells:
            p = self.cells[r][c].particle
            out.append(((float(p.position[0]), float(p.position[1])), p.material))
        return out
