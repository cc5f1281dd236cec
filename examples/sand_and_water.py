from sand_sim import Simulation, Material
from sand_sim.core import entity_mass, grid_entity_mass, occupancy_errors
from sand_sim.renderer import DebugRenderer

sim = Simulation(height=16, width=24, seed=7)
sim.add_floor()
for x in range(6, 10):
    sim.add_static(x, 6)

renderer = DebugRenderer()

for tick in range(120):
    if tick < 60:
        sim.spawn_particle((8, 14), Material.SAND)
        sim.spawn_particle((16, 14), Material.WATER)
    sim.step()
    if tick % 30 == 29:
        renderer.render_simulation(sim)

m0 = entity_mass(sim)
m1 = grid_entity_mass(sim.world)
print("particles:", sum(1 for _ in sim.live_particles()))
print("mass entities", m0, "grid", m1, "dm", m1 - m0)
print("occupancy errors:", occupancy_errors(sim))
