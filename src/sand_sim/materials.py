# MIT License (see LICENSE)
"""
Material catalog for the grid simulation.

Every cell in the world holds at most one unit of one material. A material
decides how much the cell weighs, how strongly it bonds to its neighbors
inside an object, whether it flows sideways like a liquid, and how it is
drawn.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class MaterialProperties:
    """
    Physical and display properties of a material.

    Attributes:
        density: Mass per cell. Cell volume is 1, so this is also the mass
                 the cell contributes to the pressure field.
        binding_strength: Force a bond between two cells of this material
                          withstands before breaking.
        is_solid: False for liquids, which spread sideways when they cannot
                  fall. Solids only fall straight down or diagonally.
        impact_dampening: Fraction of an impact transmitted through a surface
                          made of this material, in [0, 1].
        color: RGB triple with components in [0, 1].
        symbol: Single character used by text renderers.
    """
    density: float
    binding_strength: float
    is_solid: bool
    impact_dampening: float
    color: tuple[float, float, float]
    symbol: str


class Material(Enum):
    """
    Enumerated material kinds.

    AIR stands for "no material" and fills the holes of objects rebuilt
    from fragments. It has zero density and zero binding strength.
    """
    AIR = "air"
    SAND = "sand"
    WATER = "water"
    STONE = "stone"
    METAL = "metal"
    WOOD = "wood"

    @property
    def properties(self) -> MaterialProperties:
        return _CATALOG[self]

    @property
    def density(self) -> float:
        return _CATALOG[self].density

    @property
    def binding_strength(self) -> float:
        return _CATALOG[self].binding_strength

    @property
    def is_solid(self) -> bool:
        return _CATALOG[self].is_solid

    @property
    def is_liquid(self) -> bool:
        return self is not Material.AIR and not _CATALOG[self].is_solid

    @property
    def impact_dampening(self) -> float:
        return _CATALOG[self].impact_dampening

    @property
    def color(self) -> tuple[float, float, float]:
        return _CATALOG[self].color

    @property
    def symbol(self) -> str:
        return _CATALOG[self].symbol

    @property
    def is_air(self) -> bool:
        return self is Material.AIR


_CATALOG: dict[Material, MaterialProperties] = {
    Material.AIR: MaterialProperties(
        density=0.0, binding_strength=0.0, is_solid=False,
        impact_dampening=0.0, color=(0.0, 0.0, 0.0), symbol=" ",
    ),
    Material.SAND: MaterialProperties(
        density=1.5, binding_strength=0.5, is_solid=True,
        impact_dampening=0.3, color=(0.76, 0.70, 0.50), symbol=":",
    ),
    Material.WATER: MaterialProperties(
        density=1.0, binding_strength=0.1, is_solid=False,
        impact_dampening=0.1, color=(0.20, 0.40, 0.90), symbol="~",
    ),
    Material.STONE: MaterialProperties(
        density=2.5, binding_strength=50.0, is_solid=True,
        impact_dampening=0.8, color=(0.50, 0.50, 0.50), symbol="o",
    ),
    Material.METAL: MaterialProperties(
        density=7.8, binding_strength=200.0, is_solid=True,
        impact_dampening=0.9, color=(0.70, 0.70, 0.75), symbol="M",
    ),
    Material.WOOD: MaterialProperties(
        density=0.6, binding_strength=15.0, is_solid=True,
        impact_dampening=0.5, color=(0.55, 0.35, 0.15), symbol="w",
    ),
}
