# MIT License (see LICENSE)
"""
Wall-clock timing of the phases of a simulation tick.

Simulation.step() wraps each phase (pressure, particles, objects,
pressure_fracture) in a profiler section when a profiler is attached.

Example:
    profiler = Profiler()
    sim = Simulation(height=30, width=40, profiler=profiler)
    sim.run(100)
    print(profiler.stats.summary()["particles"]["mean_ms"])
"""
from __future__ import annotations
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class ProfileStats:
    """Raw per-phase samples in seconds, plus millisecond summaries."""
    samples: dict[str, list[float]] = field(default_factory=dict)

    def add(self, name: str, dt: float) -> None:
        self.samples.setdefault(name, []).append(dt)

    def clear(self) -> None:
        self.samples.clear()

    def summary(self) -> dict[str, dict[str, float]]:
        """
        Per-phase statistics.

        Returns:
            {phase: {"n", "mean_ms", "max_ms", "total_ms"}}
        """
        out = {}
        for name, times in self.samples.items():
            total = sum(times)
            out[name] = {
                "n": len(times),
                "mean_ms": 1e3 * total / len(times),
                "max_ms": 1e3 * max(times),
                "total_ms": 1e3 * total,
            }
        return out


class Profiler:
    """
    Collects ProfileStats for named sections.

    Usage:
        with profiler.section("pressure"):
            world.recompute_pressure()
    """

    def __init__(self) -> None:
        self.stats = ProfileStats()

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        # Recorded even if the phase raises
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.stats.add(name, time.perf_counter() - t0)
