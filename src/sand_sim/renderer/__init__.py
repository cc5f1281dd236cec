# MIT License (see LICENSE)
"""
Read-only views of the simulation grid.

    - RendererAdapter: base class; subclasses draw one cell at a time.
    - DebugRenderer: ASCII frames, one material symbol per cell.
    - NullRenderer: draws nothing.
    - BufferedRenderer: keeps frames as dicts for later inspection.

Typical usage:
    from sand_sim.renderer import DebugRenderer

    DebugRenderer().render_simulation(sim)
"""
from .adapter import (
    RendererAdapter,
    DebugRenderer,
    NullRenderer,
    BufferedRenderer,
)

__all__ = [
    "RendererAdapter",
    "DebugRenderer",
    "NullRenderer",
    "BufferedRenderer",
]
