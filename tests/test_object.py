import numpy as np
import pytest

from sand_sim.core.fracture import make_bond
from sand_sim.materials import Material
from sand_sim.objects import Object
from sand_sim.particle import Particle
from sand_sim.types import STATIC, Free, InObject
from sand_sim.world import World

STONE, WOOD, METAL, SAND, AIR = (
    Material.STONE, Material.WOOD, Material.METAL, Material.SAND, Material.AIR,
)


def fragment_mass(obj: Object, fragments) -> float:
    return sum(m.density for f in fragments for _, m in obj.extract_fragment_data(f))


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------

def test_block_layout():
    obj = Object.block(1, (2, 3), (0, 0), STONE, height=3, width=3)
    assert (obj.height, obj.width) == (3, 3)
    assert obj.total_mass == pytest.approx(9 * STONE.density)
    assert not obj.destroyed
    # Row 0 is the bottom row at the anchor
    assert tuple(obj.cells[0][0].particle.position) == (2.0, 3.0)
    assert tuple(obj.cells[2][1].particle.position) == (3.0, 5.0)
    assert all(cell.aux_mass == STONE.density for _, _, cell in obj.solid_cells())


def test_bind_retags_cells():
    obj = Object.block(1, (0, 0), (0, 0), STONE, height=2, width=2)
    obj.bind(4)
    assert obj.index == 4
    assert obj.cells[1][0].particle.entity_ref == InObject(4, 1, 0)


def test_quadrant_layout():
    obj = Object.quadrant(1, (0, 0), (0, 0))
    assert (obj.height, obj.width) == (4, 4)
    assert obj.cells[0][0].material is STONE   # bottom-left
    assert obj.cells[1][3].material is WOOD    # bottom-right
    assert obj.cells[2][1].material is METAL   # top-left
    assert obj.cells[3][2].material is SAND    # top-right
    assert obj.total_mass == pytest.approx(4 * (STONE.density + WOOD.density + METAL.density + SAND.density))


def test_quadrant_needs_four_materials():
    with pytest.raises(ValueError):
        Object.quadrant(1, (0, 0), (0, 0), materials=(STONE, WOOD, METAL))


@pytest.mark.parametrize("height,width", [(0, 3), (3, 0)])
def test_block_needs_positive_size(height, width):
    with pytest.raises(ValueError):
        Object.block(1, (0, 0), (0, 0), STONE, height, width)


def test_from_fragment_fills_holes_with_air():
    data = [((2.0, 3.0), STONE), ((3.0, 3.0), STONE), ((3.0, 4.0), WOOD)]
    obj = Object.from_fragment(7, data)

    assert tuple(obj.position) == (2.0, 3.0)
    assert (obj.height, obj.width) == (2, 2)
    assert obj.cells[1][0].material is AIR
    assert obj.cells[1][1].material is WOOD
    assert obj.total_mass == pytest.approx(2 * STONE.density + WOOD.density)
    # Holes take part in no bond
    assert sorted(obj.bonds()) == [((0, 0), (0, 1)), ((0, 1), (1, 1))]


def test_from_fragment_rejects_empty_data():
    with pytest.raises(ValueError):
        Object.from_fragment(1, [])


def test_from_fragment_round_trips_positions():
    obj = Object.quadrant(1, (3, 5), (0, 0))
    cells = [(r, c) for r, c, _ in obj.solid_cells()]
    rebuilt = Object.from_fragment(2, obj.extract_fragment_data(cells))
    assert tuple(rebuilt.position) == (3.0, 5.0)
    assert rebuilt.total_mass == pytest.approx(obj.total_mass)
    assert [[c.material for c in row] for row in rebuilt.cells] == \
        [[c.material for c in row] for row in obj.cells]


# ----------------------------------------------------------------------
# Motion
# ----------------------------------------------------------------------

def test_position_update_moves_every_cell():
    world = World(height=10, width=10)
    obj = Object.block(1, (2, 5), (0.0, -2.0), STONE, height=2, width=2)
    obj.bind(0)
    obj.write_to_world(world)

    obj.update_object_position(world)

    assert tuple(obj.position) == (2.0, 3.0)
    for x, y in [(2, 6), (3, 6)]:
        assert world.occupant_at(x, y) is None
        assert world.mass_at(x, y) == 0.0
    for r in range(2):
        for c in range(2):
            assert world.occupant_at(2 + c, 3 + r) == InObject(0, r, c)
            assert world.mass_at(2 + c, 3 + r) == STONE.density


def test_position_update_is_a_no_op_when_stationary():
    world = World(height=10, width=10)
    obj = Object.block(1, (2, 5), (0.0, 0.0), STONE, height=2, width=2)
    obj.write_to_world(world)
    before = world.occupant.copy()

    obj.update_object_position(world)
    assert tuple(obj.position) == (2.0, 5.0)
    assert all(a == b for a, b in zip(before.ravel(), world.occupant.ravel()))


def test_gravity_accumulates_until_collision():
    world = World(height=10, width=10)
    world.add_static(3, 2)
    obj = Object.block(1, (2, 5), (0, 0), STONE, height=2, width=3)
    obj.write_to_world(world)

    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == -1.0
    obj.update_object_position(world)

    # Next projection: row 4 + (-1) + (-1) = 2, where the middle column is blocked
    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == 0.0
    assert obj.impact_force == pytest.approx(obj.total_mass * 1.0)


def test_floor_snap_without_terrain():
    world = World(height=10, width=10)
    obj = Object.block(1, (2, 1), (0.0, -1.0), STONE, height=2, width=2)
    obj.write_to_world(world)

    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == pytest.approx(-1.0)
    obj.update_object_position(world)
    assert obj.position[1] == 0.0

    # Resting on row 0: own cells are not a collision, velocity snaps to 0
    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.is_stationary


def test_impact_dampening_averages_what_was_hit():
    world = World(height=10, width=10)
    sand = Particle(0, (3, 0), (0, 0), SAND, Free(0))
    sand.write_to_world(world)
    world.add_static(4, 0)
    obj = Object.block(1, (3, 2), (0.0, -1.0), STONE, height=1, width=2)
    obj.write_to_world(world)

    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == 0.0
    # (0.4 + 1.0) / 2 of a force of 5.0
    assert obj.impact_force == pytest.approx(3.5)


def test_cell_above_a_hole_collides():
    # L shape: column 1 starts one row higher than column 0
    data = [((2.0, 4.0), STONE), ((2.0, 5.0), STONE), ((3.0, 5.0), STONE)]
    world = World(height=10, width=10)
    world.add_static(3, 4)
    obj = Object.from_fragment(1, data, velocity=(0.0, 0.0))
    obj.write_to_world(world)

    # Projection row 3: the upper-right cell moves into (3, 4)
    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == 0.0


def test_upper_cell_cannot_land_on_another_entity():
    world = World(height=12, width=10)
    sand = Particle(0, (3, 6), (0, 0), SAND, Free(0))
    sand.write_to_world(world)
    obj = Object.block(1, (3, 8), (0.0, -2.0), STONE, height=2, width=1)
    obj.bind(0)
    obj.write_to_world(world)

    # Projection row 5 leaves the bottom cell free but puts the top cell on the sand
    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == 0.0
    assert obj.impact_force == pytest.approx(5.0 * 2.0 * 0.4)

    obj.update_object_position(world)
    assert obj.position[1] == 8.0
    assert world.occupant_at(3, 6) == Free(0)
    assert world.mass_at(3, 6) == SAND.density


def test_fast_object_does_not_pass_through_terrain():
    world = World(height=12, width=10)
    world.add_static(3, 6)
    obj = Object.block(1, (3, 8), (0.0, -3.0), STONE, height=1, width=1)
    obj.bind(0)
    obj.write_to_world(world)

    # Projection row 4 lies below the terrain cell at row 6
    assert obj.update_object_velocity((0.0, -1.0), world) is None
    assert obj.velocity[1] == 0.0
    assert obj.impact_force == pytest.approx(2.5 * 3.0)

    obj.update_object_position(world)
    assert world.occupant_at(3, 6) is STATIC
    assert world.occupant_at(3, 8) == InObject(0, 0, 0)


# ----------------------------------------------------------------------
# Fracture
# ----------------------------------------------------------------------

@pytest.mark.parametrize("dampening", [0.0, 0.5, 1.0, 10.0])
@pytest.mark.parametrize("factory", [
    lambda: Object.block(1, (0, 0), (0, 0), SAND, 3, 3),
    lambda: Object.block(1, (0, 0), (0, 0), Material.WATER, 2, 5),
    lambda: Object.quadrant(1, (0, 0), (0, 0)),
])
def test_no_fracture_without_force(factory, dampening):
    assert factory().check_fracture(0.0, dampening) == []


def test_no_crushing_without_external_load():
    world = World(height=10, width=10)
    obj = Object.quadrant(1, (2, 0), (0, 0), materials=(SAND, SAND, Material.WATER, Material.WATER))
    obj.write_to_world(world)
    assert obj.check_pressure_fracture(world) == []


def test_weak_impact_leaves_stone_intact():
    obj = Object.block(1, (0, 1), (0, 0), STONE, 3, 3)
    # Dropped one cell onto the ground: |v| = 1, full transmission
    assert obj.check_fracture(obj.total_mass * 1.0, 1.0) == []


def test_force_attenuates_with_height():
    obj = Object.block(1, (0, 0), (0, 0), WOOD, 3, 1)
    # Row 0 feels 20 > 15, row 1 feels 10
    assert obj.check_fracture(20.0, 1.0) == [((0, 0), (1, 0))]


def test_seam_breaks_before_either_material():
    obj = Object.quadrant(1, (0, 0), (0, 0), materials=(STONE, STONE, WOOD, WOOD))
    broken = obj.check_fracture(obj.total_mass * 1.0, 1.0)

    assert sorted(broken) == [make_bond((1, c), (2, c)) for c in range(4)]
    fragments = obj.find_fragments(broken)
    assert len(fragments) == 2
    materials = [{m for _, m in obj.extract_fragment_data(f)} for f in fragments]
    assert materials == [{STONE}, {WOOD}]
    assert fragment_mass(obj, fragments) == pytest.approx(obj.total_mass)


def test_fragments_without_broken_bonds_is_the_whole_object():
    obj = Object.block(1, (0, 0), (0, 0), STONE, 2, 3)
    fragments = obj.find_fragments([])
    assert len(fragments) == 1
    assert len(fragments[0]) == 6


def test_shattering_conserves_mass():
    obj = Object.quadrant(1, (0, 0), (0, 0))
    broken = obj.check_fracture(1e6, 1.0)
    fragments = obj.find_fragments(broken)
    assert len(fragments) == 16
    assert all(len(f) == 1 for f in fragments)
    assert fragment_mass(obj, fragments) == pytest.approx(obj.total_mass)


def test_crushing_under_external_load():
    world = World(height=10, width=10)
    obj = Object.block(1, (3, 1), (0, 0), WOOD, height=2, width=2)
    obj.write_to_world(world)
    world.add_static(3, 5, mass=20.0)

    broken = obj.check_pressure_fracture(world)
    assert sorted(broken) == sorted([
        make_bond((0, 0), (1, 0)),
        make_bond((1, 0), (1, 1)),
        make_bond((0, 0), (0, 1)),
    ])
    # Running load: 20 + 0.6 at the top, 20 + 1.2 at the bottom
    assert obj.cells[1][0].aux_pressure == pytest.approx(20.6)
    assert obj.cells[0][0].aux_pressure == pytest.approx(21.2)
    assert obj.cells[0][1].aux_pressure == 0.0

    fragments = obj.find_fragments(broken)
    assert fragments == [[(0, 0)], [(0, 1), (1, 1)], [(1, 0)]]
    assert fragment_mass(obj, fragments) == pytest.approx(obj.total_mass)


def test_light_load_does_not_crush():
    world = World(height=10, width=10)
    obj = Object.block(1, (3, 1), (0, 0), STONE, height=2, width=2)
    obj.write_to_world(world)
    world.add_static(3, 5, mass=20.0)
    assert obj.check_pressure_fracture(world) == []
    assert obj.pressure_fragments(world) is None


def test_clear_from_world_leaves_other_occupants():
    world = World(height=10, width=10)
    obj = Object.block(1, (0, 0), (0, 0), STONE, 2, 2)
    obj.bind(0)
    obj.write_to_world(world)
    world.set_occupant((1, 1), STATIC)

    obj.clear_from_world(world)
    assert world.occupant_at(0, 0) is None
    assert world.occupant_at(1, 1) is STATIC
    assert np.count_nonzero(world.mass) == 1
