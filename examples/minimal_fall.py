# examples/minimal_fall.py
from sand_sim import Simulation, Material

sim = Simulation(height=20, width=10, gravity=(0.0, -0.5), seed=1)

grain = sim.spawn_particle((5, 10), Material.SAND)

for _ in range(10):
    sim.step()

print("ticks:", sim.tick_count)
print("pos:", grain.position)
print("vel:", grain.velocity)
