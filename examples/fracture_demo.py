import logging

from sand_sim import Simulation, Material
from sand_sim.renderer import DebugRenderer

logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

sim = Simulation(height=24, width=20, seed=3, auto_materialize=True)
sim.add_floor()

# Stone base under a wooden top breaks along the seam on landing
sim.spawn_quadrant((2, 12), materials=(Material.STONE, Material.STONE, Material.WOOD, Material.WOOD))
# The default quadrant shatters into its weaker parts
sim.spawn_quadrant((10, 18), velocity=(0.0, -2.0))
# A heavy load crushes a wooden block resting on the floor
sim.spawn_object((15, 1), Material.WOOD, height=2, width=2)
sim.add_static(15, 8, mass=40.0)

renderer = DebugRenderer()
renderer.render_simulation(sim)

events = sim.run(30)
renderer.render_simulation(sim)

for e in events:
    print(f"object {e.object_id}: {e.cause}, force {e.force:.2f}, "
          f"{len(e.broken_bonds)} bonds, {len(e.fragments)} fragments")
print("objects:", sum(1 for _ in sim.active_objects()), "particles:", sum(1 for _ in sim.live_particles()))
