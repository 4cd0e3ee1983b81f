"""
Built-in lattice table.

The 2D lattices live in ``lattices.yaml`` next to this module. The 3D lattices
are generated here because their vertex sets are regular and large:

- ``C7``: 7x7x7 cubic grid (343 sites). Alphanumerics plus punctuation are
  spread across the cube with a fixed stride; the separator sits at the
  centre.
- ``M3``: Metatron 3D. Nested Platonic shells (cuboctahedron, icosahedron,
  cube, octahedron) around a centre vertex used as the separator.
"""

from __future__ import annotations

import itertools
import math
import string
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from qbc.lattice.model import DIMENSION_3D, Coord, Lattice, LatticeRules

BUILTIN_TABLE_PATH = Path(__file__).parent / "lattices.yaml"

ALPHANUMERIC = string.ascii_uppercase + string.digits
C7_PUNCTUATION = ".,!?'\"-:;()&@#/+=*%$"

_C7_STRIDE = 97
_COORD_DIGITS = 6


def _unit(vector: Sequence[float]) -> Tuple[float, ...]:
    norm = math.sqrt(sum(v * v for v in vector))
    return tuple(v / norm for v in vector)


def _to_unit_cube(direction: Sequence[float], radius: float) -> Coord:
    x, y, z = (round(0.5 + 0.5 * radius * v, _COORD_DIGITS) for v in direction)
    return Coord(x, y, z)


def cubic_lattice(size: int = 7, lattice_key: str = "C7") -> Lattice:
    """Build a size^3 cubic lattice with the separator at the centre site."""
    if size < 3 or size % 2 == 0:
        raise ValueError(f"cubic lattice size must be odd and >= 3, got {size}")
    centre = (size // 2,) * 3
    sites = [s for s in itertools.product(range(size), repeat=3) if s != centre]
    alphabet = ALPHANUMERIC + C7_PUNCTUATION
    if len(alphabet) > len(sites):
        raise ValueError(f"{size}^3 lattice cannot hold {len(alphabet)} characters")
    step = size - 1

    def coord(site: Tuple[int, int, int]) -> Coord:
        return Coord(*(round(i / step, _COORD_DIGITS) for i in site))

    stride = _C7_STRIDE
    while math.gcd(stride, len(sites)) != 1:
        stride += 1
    anchors = {char: coord(sites[(n * stride) % len(sites)]) for n, char in enumerate(alphabet)}
    return Lattice(
        lattice_key=lattice_key,
        dimension=DIMENSION_3D,
        anchors=anchors,
        separator_anchor=coord(centre),
        name=f"{size}x{size}x{size} cubic lattice",
        rules=LatticeRules(tick_length=0.05),
    )


def _metatron_shells() -> List[Tuple[float, List[Tuple[float, ...]]]]:
    phi = (1 + math.sqrt(5)) / 2
    cuboctahedron = set()
    for a, b in itertools.product((-1, 1), repeat=2):
        cuboctahedron.update({(a, b, 0), (a, 0, b), (0, a, b)})
    icosahedron = set()
    for a, b in itertools.product((-1, 1), repeat=2):
        icosahedron.update({(0, a, b * phi), (a, b * phi, 0), (b * phi, 0, a)})
    cube = set(itertools.product((-1, 1), repeat=3))
    octahedron = {(1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1)}
    return [
        (0.4, sorted(_unit(v) for v in cuboctahedron)),
        (0.6, sorted(_unit(v) for v in icosahedron)),
        (0.8, sorted(_unit(v) for v in cube)),
        (0.95, sorted(_unit(v) for v in octahedron)),
    ]


def metatron_lattice(lattice_key: str = "M3") -> Lattice:
    """Build the nested-shell Metatron lattice (38 outer vertices plus centre)."""
    vertices = [
        _to_unit_cube(direction, radius)
        for radius, directions in _metatron_shells()
        for direction in directions
    ]
    anchors: Dict[str, Coord] = dict(zip(ALPHANUMERIC, vertices))
    return Lattice(
        lattice_key=lattice_key,
        dimension=DIMENSION_3D,
        anchors=anchors,
        separator_anchor=Coord(0.5, 0.5, 0.5),
        name="Metatron's Cube 3D",
        rules=LatticeRules(tick_length=0.05),
    )


def generated_lattices() -> List[Lattice]:
    return [cubic_lattice(), metatron_lattice()]


__all__ = [
    "BUILTIN_TABLE_PATH",
    "ALPHANUMERIC",
    "C7_PUNCTUATION",
    "cubic_lattice",
    "metatron_lattice",
    "generated_lattices",
]
