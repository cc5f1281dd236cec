# MIT License (see LICENSE)
"""
Free-body update rules for single-cell particles.

A particle is one unit of material with a real-valued position, a velocity
and an entity reference it writes into the world grid. It keeps no grid
state of its own: every move vacates the old cell first, then writes the
new one, so no tick ever shows two live entities claiming the same cell.

Per tick the simulation calls, in order:
    1. update_velocity / update_position  (gravity and falling)
    2. resolve_pressure                   (pressure-driven displacement)
    3. fall_down / flow_sideways          (settling and liquid spreading)
"""
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .materials import Material
from .types import EntityRef, Free
from .util import f64, cell_of, choose
from .world import World


# Neighbors considered by pressure resolution, as (dx, dy) in this order:
# up-right, right, down-right, down, down-left, left, up-left.
PRESSURE_NEIGHBORS: tuple[tuple[int, int], ...] = (
    (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1), (-1, 0), (-1, 1),
)


def _rng_or_default(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


@dataclass
class Particle:
    """
    A single cell of free-floating material.

    Attributes:
        id: Identifier assigned by Simulation.add_particle().
        position: Real-valued [x, y]; truncated to address a cell.
        velocity: [vx, vy] in cells per tick.
        material: What the particle is made of; decides its mass.
        entity_ref: Reference written into the grid for this particle.
        removed: Set when the particle is taken out of the simulation.
    """
    id: int
    position: np.ndarray | tuple[float, float]
    velocity: np.ndarray | tuple[float, float]
    material: Material
    entity_ref: EntityRef
    removed: bool = False

    def __post_init__(self) -> None:
        self.position = f64(self.position)
        self.velocity = f64(self.velocity)

    @property
    def mass(self) -> float:
        return self.material.density

    @property
    def momentum(self) -> np.ndarray:
        return self.velocity * self.mass

    @property
    def cell(self) -> tuple[int, int]:
        return cell_of(self.position)

    @property
    def can_move_diagonally(self) -> bool:
        """Liquids and free particles slide diagonally; object cells do not."""
        return not self.material.is_solid or isinstance(self.entity_ref, Free)

    # ------------------------------------------------------------------
    # Grid bookkeeping
    # ------------------------------------------------------------------

    def write_to_world(self, world: World) -> None:
        world.place(self.position, self.entity_ref, self.mass)

    def clear_from_world(self, world: World) -> None:
        world.vacate(self.position)

    def _shift(self, world: World, dx: float, dy: float) -> None:
        world.vacate(self.position)
        self.position[0] += dx
        self.position[1] += dy
        world.place(self.position, self.entity_ref, self.mass)

    def _relocate(self, world: World, x: int, y: int) -> None:
        world.vacate(self.position)
        self.position[0] = float(x)
        self.position[1] = float(y)
        world.place(self.position, self.entity_ref, self.mass)

    # ------------------------------------------------------------------
    # Gravity
    # ------------------------------------------------------------------

    def update_velocity(self, gravity, world: World) -> None:
        """
        Accumulate gravity into the vertical velocity.

        The next row is projected as y + vy + gy. If that cell (clamped to
        row 0) is occupied, the particle has collided and vy becomes 0. If
        the projection falls below the floor, vy is set so the next position
        update lands exactly on row 0. Otherwise gravity accumulates.
        Horizontal velocity is left alone.
        """
        next_y = self.position[1] + self.velocity[1] + gravity[1]
        check_y = max(next_y, 0.0)
        x, y = int(self.position[0]), int(check_y)

        if world.in_bounds(x, y) and world.is_occupied(x, y):
            self.velocity[1] = 0.0
        elif next_y < 0.0:
            self.velocity[1] = -self.position[1]
        else:
            self.velocity[1] += gravity[1]

    def update_position(self, world: World) -> None:
        """Vacate the current cell, apply velocity, occupy the new cell."""
        world.vacate(self.position)
        self.position += self.velocity
        world.place(self.position, self.entity_ref, self.mass)

    # ------------------------------------------------------------------
    # Pressure
    # ------------------------------------------------------------------

    def lowest_pressure_neighbor(
        self, world: World, rng: np.random.Generator | None = None
    ) -> tuple[float, int, int] | None:
        """
        Find the neighbor with the lowest pressure.

        Candidates are the on-grid cells of PRESSURE_NEIGHBORS. Ties at the
        minimum are broken uniformly at random.

        Returns:
            (pressure, x, y) of the chosen cell, or None without candidates.
        """
        x, y = self.cell
        candidates = []
        for dx, dy in PRESSURE_NEIGHBORS:
            nx, ny = x + dx, y + dy
            if world.in_bounds(nx, ny):
                candidates.append((world.pressure_at(nx, ny), nx, ny))

        if not candidates:
            return None

        min_pressure = min(c[0] for c in candidates)
        lowest = [c for c in candidates if c[0] == min_pressure]
        return choose(_rng_or_default(rng), lowest)

    def resolve_pressure(self, world: World, rng: np.random.Generator | None = None) -> bool:
        """
        Move toward lower pressure when enough load has built up.

        Nothing happens while the pressure on the particle's cell does not
        exceed its own mass. Otherwise the particle moves to the lowest
        pressure neighbor when that pressure is strictly lower than its own,
        the neighbor is not above it, and the neighbor is free.

        Returns:
            True if the particle moved.
        """
        x, y = self.cell
        if not world.in_bounds(x, y):
            return False

        own_pressure = world.pressure_at(x, y)
        if own_pressure <= self.mass:
            return False

        best = self.lowest_pressure_neighbor(world, rng)
        if best is None:
            return False

        min_pressure, tx, ty = best
        if min_pressure < own_pressure and ty <= y and not world.is_occupied(tx, ty):
            self._relocate(world, tx, ty)
            return True
        return False

    # ------------------------------------------------------------------
    # Settling
    # ------------------------------------------------------------------

    def fall_down(self, world: World) -> bool:
        """
        Drop one row if the way is free.

        Straight down is tried first. Particles allowed to move diagonally
        then try down-left, then down-right; only the first free option is
        taken.

        Returns:
            True if the particle moved.
        """
        x, y = self.cell
        if y <= 0 or not world.in_bounds(x, y):
            return False

        if not world.is_occupied(x, y - 1):
            self._shift(world, 0.0, -1.0)
            return True

        if not self.can_move_diagonally:
            return False

        if x > 0 and not world.is_occupied(x - 1, y - 1):
            self._shift(world, -1.0, -1.0)
            return True

        if x < world.width - 1 and not world.is_occupied(x + 1, y - 1):
            self._shift(world, 1.0, -1.0)
            return True

        return False

    def flow_sideways(self, world: World, rng: np.random.Generator | None = None) -> bool:
        """
        Spread a liquid one cell left or right when it cannot fall.

        Solids never flow. With both sides open the lower pressure side
        wins and an exact tie is broken at random.

        Returns:
            True if the particle moved.
        """
        if self.material.is_solid:
            return False

        x, y = self.cell
        if not world.in_bounds(x, y):
            return False
        if y > 0 and not world.is_occupied(x, y - 1):
            return False

        left_open = x > 0 and not world.is_occupied(x - 1, y)
        right_open = x < world.width - 1 and not world.is_occupied(x + 1, y)

        if left_open and right_open:
            p_left = world.pressure_at(x - 1, y)
            p_right = world.pressure_at(x + 1, y)
            if p_left < p_right:
                dx = -1
            elif p_right < p_left:
                dx = 1
            else:
                dx = choose(_rng_or_default(rng), (-1, 1))
        elif left_open:
            dx = -1
        elif right_open:
            dx = 1
        else:
            return False

        self._shift(world, float(dx), 0.0)
        return True
