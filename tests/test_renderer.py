import io

import pytest

from sand_sim import Material, Simulation
from sand_sim.renderer import BufferedRenderer, DebugRenderer, NullRenderer, RendererAdapter


@pytest.fixture
def small_sim():
    sim = Simulation(height=3, width=4, seed=0)
    sim.add_floor()
    sim.spawn_particle((1, 1), Material.SAND)
    sim.spawn_particle((2, 1), Material.WATER)
    return sim


def test_debug_renderer_draws_top_row_first(small_sim):
    out = io.StringIO()
    DebugRenderer(output=out).render_simulation(small_sim)
    assert out.getvalue().splitlines() == [
        "=== Tick 0 ===",
        "|    |",
        "| :~ |",
        "|####|",
    ]


def test_debug_renderer_without_border(small_sim):
    out = io.StringIO()
    DebugRenderer(output=out, border=False).render_simulation(small_sim)
    assert out.getvalue().splitlines()[1:] == ["    ", " :~ ", "####"]


def test_buffered_renderer_records_frames(small_sim):
    renderer = BufferedRenderer()
    renderer.render_simulation(small_sim)
    small_sim.step()
    renderer.render_simulation(small_sim)

    assert [f["tick"] for f in renderer.frames] == [0, 1]
    frame = renderer.frames[0]
    assert frame["shape"] == (3, 4)
    assert len(frame["cells"]) == 6
    assert {"x": 1, "y": 1, "material": "sand"} in frame["cells"]
    assert sum(c["material"] == "static" for c in frame["cells"]) == 4

    renderer.clear()
    assert renderer.frames == []


def test_object_cells_draw_with_their_own_material():
    sim = Simulation(height=6, width=6)
    sim.spawn_quadrant((1, 1), materials=(Material.STONE, Material.WOOD, Material.METAL, Material.SAND))
    renderer = BufferedRenderer()
    renderer.render_simulation(sim)

    by_cell = {(c["x"], c["y"]): c["material"] for c in renderer.frames[0]["cells"]}
    assert len(by_cell) == 16
    assert by_cell[(1, 1)] == "stone"
    assert by_cell[(4, 1)] == "wood"
    assert by_cell[(1, 4)] == "metal"
    assert by_cell[(4, 4)] == "sand"


def test_custom_adapter_sees_cells_in_drawing_order(small_sim):
    class Recorder(RendererAdapter):
        def __init__(self):
            self.calls = []

        def begin_frame(self, tick, height, width):
            self.calls.append(("begin", tick))

        def draw_cell(self, x, y, material):
            self.calls.append((x, y, material))

        def end_frame(self):
            self.calls.append(("end",))

    r = Recorder()
    r.render_simulation(small_sim)
    assert r.calls[0] == ("begin", 0)
    assert r.calls[1:3] == [(1, 1, Material.SAND), (2, 1, Material.WATER)]
    assert r.calls[3] == (0, 0, None)
    assert r.calls[-1] == ("end",)


def test_null_renderer_accepts_anything(small_sim):
    NullRenderer().render_simulation(small_sim)


def test_adapter_is_abstract():
    with pytest.raises(TypeError):
        RendererAdapter()
