# MIT License (see LICENSE)
"""
Bond strength and fragment extraction for breakable objects.

An object is a small grid of cells. Every pair of horizontally or
vertically adjacent non-air cells is joined by a bond. Fracture checks
produce a list of broken bonds; removing those bonds from the cell graph
and taking connected components yields the fragments the object breaks
into.

Logic:
1. Build a graph of cells (nodes) and intact bonds (edges).
2. Merge the endpoints of every edge with a union-find structure.
3. Group cells by their root: each group is one fragment.
"""
from __future__ import annotations
from typing import Iterable

from ..constants import (
    CROSS_MATERIAL_BOND_FACTOR,
    DAMPENING_FREE,
    DAMPENING_IN_OBJECT,
    DAMPENING_STATIC,
)
from ..materials import Material
from ..types import EntityRef, Free, InObject, Static

# A local cell address inside an object: (row, col), row 0 at the bottom.
CellIndex = tuple[int, int]
# A bond between two adjacent cells, lower address first.
Bond = tuple[CellIndex, CellIndex]


def bond_strength(a: Material, b: Material) -> float:
    """
    Force a bond between materials a and b withstands.

    Identical materials bond with their full binding strength. Any material
    transition is a weak point holding only a fraction of the weaker side.
    The result is symmetric in a and b.
    """
    if a is b:
        return a.binding_strength
    return CROSS_MATERIAL_BOND_FACTOR * min(a.binding_strength, b.binding_strength)


def make_bond(p: CellIndex, q: CellIndex) -> Bond:
    """Normalise a bond so the same pair always compares equal."""
    return (p, q) if p <= q else (q, p)


def reference_dampening(ref: EntityRef) -> float:
    """Fraction of an impact transmitted by landing on the given entity."""
    if isinstance(ref, Static):
        return DAMPENING_STATIC
    if isinstance(ref, Free):
        return DAMPENING_FREE
    if isinstance(ref, InObject):
        return DAMPENING_IN_OBJECT
    raise TypeError(f"Unknown entity reference: {ref!r}")


def collision_dampening(refs: Iterable[EntityRef]) -> float:
    """
    Average dampening over the distinct entities an object collided with.

    Returns 1.0 when there is nothing to average.
    """
    distinct = set(refs)
    if not distinct:
        return 1.0
    return sum(reference_dampening(r) for r in distinct) / len(distinct)


class UnionFind:
    """
    Disjoint-set forest over the integers 0..n-1.

    find() is iterative and compresses paths, so deep chains on large
    objects never recurse.
    """

    def __init__(self, n: int) -> None:
        self.parent = list(range(n))

    def find(self, i: int) -> int:
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, i: int, j: int) -> None:
        ri = self.find(i)
        rj = self.find(j)
        if ri != rj:
            self.parent[rj] = ri


def connected_components(
    cells: list[CellIndex],
    bonds: Iterable[Bond],
    broken: Iterable[Bond] = (),
) -> list[list[CellIndex]]:
    """
    Group cells into components joined by the bonds that are not broken.

    Args:
        cells: Nodes of the graph.
        bonds: Every edge of the graph.
        broken: Edges to drop before grouping.

    Returns:
        Components as sorted cell lists, ordered by their first cell.
    """
    slot = {cell: k for k, cell in enumerate(cells)}
    uf = UnionFind(len(cells))
    removed = {make_bond(p, q) for p, q in broken}

    for p, q in bonds:
        if make_bond(p, q) in removed:
            continue
        uf.union(slot[p], slot[q])

    groups: dict[int, list[CellIndex]] = {}
    for cell in cells:
        groups.setdefault(uf.find(slot[cell]), []).append(cell)

    components = [sorted(g) for g in groups.values()]
    components.sort(key=lambda g: g[0])
    return components
