# MIT License (see LICENSE)
"""
The simulation context and the per-tick update loop.

The Simulation owns the world grid together with the particle and object
collections. Entities never hold references to each other; the grid tags
each cell with a Free / InObject / Static reference, resolved here by
looking up the owning collection.

A tick runs to completion in a fixed order:
    1. Recompute the pressure field for the whole grid.
    2. For each particle: update velocity, then position.
    3. For each particle: resolve pressure.
    4. For each particle: fall down, or flow sideways if it is a liquid.
    5. For each object: update velocity; if the impact split the object,
       dispatch a fracture, else update position.
    6. For each stationary object: check for crushing under load.

Pressure read during steps 3 to 6 is the snapshot taken in step 1. With a
fixed seed the whole run is deterministic.

Fractures are returned from step() as FractureEvents. Indices into the
collections are stable: removed particles and destroyed objects stay in
place, flagged, and are skipped.

Structure:
    - User creates a Simulation.
    - User adds terrain, particles and objects (or spawns them).
    - User calls sim.step() in a loop and materialises the returned events.
"""
from __future__ import annotations
import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

from .constants import DEFAULT_GRAVITY, STATIC_CELL_MASS
from .core.fracture import Bond, CellIndex
from .materials import Material
from .objects import DEFAULT_QUADRANT_MATERIALS, FragmentData, Object
from .particle import Particle
from .profiler import Profiler
from .types import EntityRef, Free, InObject, Static
from .util import cell_of, f64, make_rng
from .world import World

logger = logging.getLogger(__name__)


@dataclass
class FractureEvent:
    """
    An object that broke apart during a tick.

    Attributes:
        object_index: Slot of the destroyed object.
        object_id: Id of the destroyed object.
        cause: "impact" or "pressure".
        force: Impact force after dampening, or the peak crushing load.
        broken_bonds: Bonds that broke.
        fragments: Groups of local (row, col) cells, one per fragment.
        fragment_data: (world position, material) pairs, one list per fragment.
        velocity: Velocity of the object when it broke.
    """
    object_index: int
    object_id: int
    cause: str
    force: float
    broken_bonds: list[Bond]
    fragments: list[list[CellIndex]]
    fragment_data: list[FragmentData]
    velocity: tuple[float, float]


@dataclass
class Simulation:
    """
    Grid simulation world.

    Attributes:
        height: Number of grid rows.
        width: Number of grid columns.
        gravity: Gravity vector in cells per tick² (default [0, -1]).
        seed: Seed for tie-break randomness. None falls back to the
              SAND_SIM_SEED environment variable, then to OS entropy.
        enable_pressure_fracture: Check stationary objects for crushing.
        auto_materialize: Turn fracture events into new entities at the
                          end of each step.
        profiler: Optional Profiler instance for timing statistics.
    """
    height: int = 30
    width: int = 40
    gravity: tuple[float, float] = DEFAULT_GRAVITY
    seed: int | None = None
    enable_pressure_fracture: bool = True
    auto_materialize: bool = False
    profiler: Profiler | None = None

    # Internal state
    particles: list[Particle] = field(default_factory=list)
    objects: list[Object] = field(default_factory=list)
    tick_count: int = 0

    def __post_init__(self) -> None:
        if self.height <= 0 or self.width <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.height}x{self.width}")
        self.world = World(self.height, self.width)
        self._g = f64(self.gravity)
        self.rng: np.random.Generator = make_rng(self.seed)
        self._next_particle_id = 1
        self._next_object_id = 1

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_particle(self, particle: Particle) -> int:
        """
        Register a particle and write it into the grid.

        Assigns a unique id and a Free reference to the particle's slot.

        Returns:
            The assigned particle id.
        """
        particle.id = self._next_particle_id
        self._next_particle_id += 1
        particle.entity_ref = Free(len(self.particles))
        self.particles.append(particle)
        particle.write_to_world(self.world)
        return particle.id

    def add_object(self, obj: Object) -> int:
        """
        Register an object and write its cells into the grid.

        Returns:
            The assigned object id.
        """
        obj.id = self._next_object_id
        self._next_object_id += 1
        obj.bind(len(self.objects))
        self.objects.append(obj)
        obj.write_to_world(self.world)
        return obj.id

    def add_static(self, x: int, y: int, mass: float = STATIC_CELL_MASS) -> None:
        """Place a cell of immovable terrain."""
        self.world.add_static(x, y, mass)

    def add_floor(self, row: int = 0, mass: float = STATIC_CELL_MASS) -> None:
        """Fill a whole row with terrain."""
        for x in range(self.width):
            self.world.add_static(x, row, mass)

    def remove_particle(self, index: int) -> None:
        """Take a particle out of the simulation; its slot stays reserved."""
        p = self.particles[index]
        if p.removed:
            return
        x, y = p.cell
        if self.world.in_bounds(x, y) and self.world.occupant_at(x, y) == p.entity_ref:
            self.world.vacate(p.position)
        p.removed = True

    # ------------------------------------------------------------------
    # Spawning (only into free cells)
    # ------------------------------------------------------------------

    def _cell_free(self, position) -> bool:
        x, y = cell_of(position)
        return self.world.in_bounds(x, y) and not self.world.is_occupied(x, y)

    def spawn_particle(
        self,
        position: tuple[float, float],
        material: Material,
        velocity: tuple[float, float] = (0.0, 0.0),
    ) -> Particle | None:
        """
        Create a free particle unless its cell is off-grid or taken.

        Returns:
            The new particle, or None if nothing was spawned.
        """
        if material.is_air or not self._cell_free(position):
            logger.debug("Rejected %s particle spawn at %s", material.value, position)
            return None
        p = Particle(0, position, velocity, material, Free(-1))
        self.add_particle(p)
        logger.debug("Spawned %s particle %d at %s", material.value, p.id, position)
        return p

    def _spawn(self, obj: Object) -> Object | None:
        if not all(self._cell_free(p.position) for p in obj.particles()):
            logger.debug("Rejected object spawn at %s: footprint blocked", tuple(obj.position))
            return None
        self.add_object(obj)
        logger.debug(
            "Spawned object %d (%dx%d, mass %.2f) at %s",
            obj.id, obj.height, obj.width, obj.total_mass, tuple(obj.position),
        )
        return obj

    def spawn_object(
        self,
        position: tuple[float, float],
        material: Material,
        height: int = 3,
        width: int = 3,
        velocity: tuple[float, float] = (0.0, 0.0),
    ) -> Object | None:
        """Create a rectangular block unless its footprint is blocked."""
        return self._spawn(Object.block(0, position, velocity, material, height, width))

    def spawn_quadrant(
        self,
        position: tuple[float, float],
        materials: Sequence[Material] = DEFAULT_QUADRANT_MATERIALS,
        velocity: tuple[float, float] = (0.0, 0.0),
    ) -> Object | None:
        """Create a 4x4 quadrant object unless its footprint is blocked."""
        return self._spawn(Object.quadrant(0, position, velocity, materials))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def live_particles(self) -> Iterator[Particle]:
        return (p for p in self.particles if not p.removed)

    def active_objects(self) -> Iterator[Object]:
        return (o for o in self.objects if not o.destroyed)

    def resolve(self, ref: EntityRef | None) -> Particle | Object | None:
        """
        Find the entity behind a grid reference.

        Static terrain, removed particles and destroyed objects resolve
        to None.
        """
        if ref is None or isinstance(ref, Static):
            return None
        if isinstance(ref, Free):
            p = self.particles[ref.index]
            return None if p.removed else p
        if isinstance(ref, InObject):
            obj = self.objects[ref.object_index]
            return None if obj.destroyed else obj
        raise TypeError(f"Unknown entity reference: {ref!r}")

    def query_cell(self, x: int, y: int) -> Particle | Object | None:
        """Entity occupying grid cell (x, y), if any. Used for picking."""
        if not self.world.in_bounds(x, y):
            return None
        return self.resolve(self.world.occupant_at(x, y))

    # ------------------------------------------------------------------
    # Fracture dispatch
    # ------------------------------------------------------------------

    def _dispatch(
        self, obj: Object, fragments: list[list[CellIndex]], cause: str, force: float
    ) -> FractureEvent:
        event = FractureEvent(
            object_index=obj.index,
            object_id=obj.id,
            cause=cause,
            force=force,
            broken_bonds=list(obj.broken_bonds),
            fragments=fragments,
            fragment_data=[obj.extract_fragment_data(f) for f in fragments],
            velocity=(float(obj.velocity[0]), float(obj.velocity[1])),
        )
        obj.clear_from_world(self.world)
        obj.destroyed = True
        logger.info(
            "Object %d fractured (%s, force %.2f): %d bonds broken, %d fragments",
            obj.id, cause, force, len(event.broken_bonds), len(fragments),
        )
        return event

    def materialize(self, events: Sequence[FractureEvent]) -> list[Particle | Object]:
        """
        Turn fracture events into new entities.

        Single-cell fragments become free particles; larger fragments become
        objects rebuilt with Object.from_fragment().

        Returns:
            The newly registered entities, in event and fragment order.
        """
        created: list[Particle | Object] = []
        for event in events:
            for data in event.fragment_data:
                if len(data) == 1:
                    position, material = data[0]
                    p = Particle(0, position, event.velocity, material, Free(-1))
                    self.add_particle(p)
                    created.append(p)
                else:
                    obj = Object.from_fragment(0, data, event.velocity)
                    self.add_object(obj)
                    created.append(obj)
            logger.debug("Materialised %d fragments of object %d", len(event.fragment_data), event.object_id)
        return created

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _section(self, name: str):
        return self.profiler.section(name) if self.profiler else nullcontext()

    def _update_particles(self) -> None:
        world, rng = self.world, self.rng
        live = list(self.live_particles())

        for p in live:
            p.update_velocity(self._g, world)
            p.update_position(world)

        for p in live:
            p.resolve_pressure(world, rng)

        for p in live:
            if not p.fall_down(world) and p.material.is_liquid:
                p.flow_sideways(world, rng)

    def _update_objects(self) -> list[FractureEvent]:
        events = []
        for obj in list(self.active_objects()):
            fragments = obj.update_object_velocity(self._g, self.world)
            if fragments:
                events.append(self._dispatch(obj, fragments, "impact", obj.impact_force))
                continue
            obj.update_object_position(self.world)
        return events

    def _check_crushing(self) -> list[FractureEvent]:
        events = []
        for obj in list(self.active_objects()):
            if not obj.is_stationary:
                continue
            fragments = obj.pressure_fragments(self.world)
            if fragments:
                peak = max(cell.aux_pressure for _, _, cell in obj.solid_cells())
                events.append(self._dispatch(obj, fragments, "pressure", peak))
        return events

    def step(self) -> list[FractureEvent]:
        """
        Advance the simulation by one tick.

        Returns:
            Fracture events dispatched during the tick. Unless
            auto_materialize is set, the caller is expected to pass them to
            materialize() before the next tick.
        """
        with self._section("pressure"):
            self.world.recompute_pressure()

        with self._section("particles"):
            self._update_particles()

        with self._section("objects"):
            events = self._update_objects()

        if self.enable_pressure_fracture:
            with self._section("pressure_fracture"):
                events.extend(self._check_crushing())

        self.tick_count += 1
        if self.auto_materialize and events:
            self.materialize(events)
        return events

    def run(self, ticks: int) -> list[FractureEvent]:
        """Step `ticks` times and collect every fracture event."""
        events = []
        for _ in range(ticks):
            events.extend(self.step())
        return events
