"""
Microbenchmark: time per step vs grid size.
Run:
  python benchmarks/bench_steps.py
"""
import time

from sand_sim import Simulation, Material
from sand_sim.profiler import Profiler


def run(width: int, steps: int = 200):
    prof = Profiler()
    height = width // 2
    sim = Simulation(height=height, width=width, seed=12345, auto_materialize=True, profiler=prof)
    sim.add_floor()

    # a few objects dropped from the top third
    for x in range(2, width - 6, 12):
        sim.spawn_object((x, 2 * height // 3), Material.STONE)

    # warmup: pour from two spouts
    for _ in range(60):
        sim.spawn_particle((width // 3, height - 2), Material.SAND)
        sim.spawn_particle((2 * width // 3, height - 2), Material.WATER)
        sim.step()
    prof.stats.clear()

    t0 = time.perf_counter()
    for _ in range(steps):
        sim.step()
    t1 = time.perf_counter()

    total = t1 - t0
    per_step = total / steps
    return per_step, sum(1 for _ in sim.live_particles()), prof.stats.summary()


if __name__ == "__main__":
    for width in [40, 80, 160, 320]:
        per_step, n, summary = run(width)
        print(f"W={width:4d}  N={n:4d}  step={1e3*per_step:8.3f} ms  steps/s={1/per_step:8.1f}")
        # print top sections
        for k in ["pressure", "particles", "objects", "pressure_fracture"]:
            if k in summary:
                print(" ", k, summary[k])
        print()
