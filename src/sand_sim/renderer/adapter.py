# MIT License (see LICENSE)
"""
Renderer adapters for simulation visualization.

This module provides an abstract base class for rendering and text-mode
implementations. Renderers only read simulation state; the core engine has
no rendering dependency and the adapters are optional.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TextIO
import sys

from ..materials import Material
from ..objects import Object
from ..types import Static

if TYPE_CHECKING:
    from ..simulation import Simulation

STATIC_SYMBOL = "#"


class RendererAdapter(ABC):
    """
    Base class for grid renderers.

    Subclasses implement the drawing methods to integrate with a graphics
    backend. Cells are visited top row first, left to right.

    Usage:
        renderer = MyRenderer()
        renderer.render_simulation(sim)
    """

    @abstractmethod
    def begin_frame(self, tick: int, height: int, width: int) -> None:
        """
        Begin a new frame.

        Args:
            tick: Number of ticks simulated so far.
            height, width: Grid shape.
        """
        ...

    @abstractmethod
    def draw_cell(self, x: int, y: int, material: Material | None) -> None:
        """
        Draw one occupied cell.

        Args:
            x, y: Grid cell.
            material: Occupant material, or None for static terrain.
        """
        ...

    @abstractmethod
    def end_frame(self) -> None:
        """Finalize the current frame."""
        ...

    def render_simulation(self, sim: "Simulation") -> None:
        """Draw every occupied cell of the simulation's grid."""
        world = sim.world
        self.begin_frame(sim.tick_count, world.height, world.width)
        for y in range(world.height - 1, -1, -1):
            for x in range(world.width):
                ref = world.occupant_at(x, y)
                if ref is None:
                    continue
                if isinstance(ref, Static):
                    self.draw_cell(x, y, None)
                    continue
                material = _material_of(sim, ref)
                if material is not None:
                    self.draw_cell(x, y, material)
        self.end_frame()


def _material_of(sim: "Simulation", ref) -> Material | None:
    entity = sim.resolve(ref)
    if entity is None:
        return None
    if isinstance(entity, Object):
        return entity.cells[ref.row][ref.col].material
    return entity.material


class DebugRenderer(RendererAdapter):
    """
    Console/text renderer for development and testing.

    Writes the grid as ASCII art, one character per cell, top row first.
    Each material draws with its catalog symbol and terrain with '#'.

    Output:
        === Tick 12 ===
        |    ::    |
        |   :::o   |
        |##########|
    """

    def __init__(self, output: TextIO | None = None, border: bool = True):
        """
        Text renderer writing to a stream.

        Args:
            output: Output stream (defaults to sys.stdout).
            border: Frame each row with '|'.
        """
        self.output = output or sys.stdout
        self.border = border
        self._rows: list[list[str]] = []
        self._tick = 0

    def begin_frame(self, tick: int, height: int, width: int) -> None:
        self._tick = tick
        self._rows = [[" "] * width for _ in range(height)]

    def draw_cell(self, x: int, y: int, material: Material | None) -> None:
        symbol = STATIC_SYMBOL if material is None else material.symbol
        self._rows[y][x] = symbol

    def end_frame(self) -> None:
        self.output.write(f"=== Tick {self._tick} ===\n")
        for row in reversed(self._rows):
            line = "".join(row)
            if self.border:
                line = f"|{line}|"
            self.output.write(line + "\n")
        self.output.flush()


class NullRenderer(RendererAdapter):
    """
    Renderer that discards every frame.

    Stands in where a renderer is required but output is not, e.g. benchmarks.
    """

    def begin_frame(self, tick: int, height: int, width: int) -> None:
        pass

    def draw_cell(self, x: int, y: int, material: Material | None) -> None:
        pass

    def end_frame(self) -> None:
        pass


class BufferedRenderer(RendererAdapter):
    """
    Renderer that keeps every frame in memory as plain dicts.

    Example:
        renderer = BufferedRenderer()
        for _ in range(100):
            sim.step()
            renderer.render_simulation(sim)

        for frame in renderer.frames:
            print(f"tick={frame['tick']}, cells={len(frame['cells'])}")
    """

    def __init__(self):
        self.frames: list[dict] = []
        self._current_frame: dict | None = None

    def begin_frame(self, tick: int, height: int, width: int) -> None:
        self._current_frame = {
            "tick": tick,
            "shape": (height, width),
            "cells": [],
        }

    def draw_cell(self, x: int, y: int, material: Material | None) -> None:
        if self._current_frame is None:
            return
        self._current_frame["cells"].append({
            "x": x,
            "y": y,
            "material": "static" if material is None else material.value,
        })

    def end_frame(self) -> None:
        if self._current_frame is not None:
            self.frames.append(self._current_frame)
            self._current_frame = None

    def clear(self) -> None:
        """Drop the recorded frames."""
        self.frames.clear()
