"""
Lattice data model.

A lattice maps a finite alphabet onto vertices of the unit square (2D) or
unit cube (3D). Lattices are immutable once constructed and are referenced
from encoded data only by ``lattice_key``.

NORMATIVE INVARIANTS:
- Every coordinate component lies in [0, 1]
- All anchors share the lattice dimension (z present iff "3D")
- No two vertices, separator included, lie within 2 * VERTEX_EPSILON
- Every alphabet character is a fixed point of the lattice casing
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Optional, Tuple

from qbc.errors import LatticeDefinitionError

# Tolerance for resolving decoded coordinates back to anchors. Coordinates
# round-trip through JSON text and the 16-bit binary format, whose
# quantization error is below 8e-6.
VERTEX_EPSILON = 1e-4

DIMENSION_2D = "2D"
DIMENSION_3D = "3D"
DIMENSIONS = (DIMENSION_2D, DIMENSION_3D)

CASING_UPPER = "upper"
CASING_LOWER = "lower"
CASING_PRESERVE = "preserve"
CASINGS = (CASING_UPPER, CASING_LOWER, CASING_PRESERVE)


@dataclass(frozen=True)
class Coord:
    """A vertex position in the unit square or cube."""

    x: float
    y: float
    z: Optional[float] = None

    @property
    def is_3d(self) -> bool:
        return self.z is not None

    def as_tuple(self) -> Tuple[float, ...]:
        if self.z is None:
            return (self.x, self.y)
        return (self.x, self.y, self.z)

    def distance(self, other: "Coord") -> float:
        """Chebyshev distance; a missing z counts as 0."""
        return max(
            abs(self.x - other.x),
            abs(self.y - other.y),
            abs((self.z or 0.0) - (other.z or 0.0)),
        )

    def close_to(self, other: "Coord", epsilon: float = VERTEX_EPSILON) -> bool:
        return self.is_3d == other.is_3d and self.distance(other) <= epsilon

    @classmethod
    def from_sequence(cls, values) -> "Coord":
        values = [float(v) for v in values]
        if len(values) == 2:
            return cls(values[0], values[1])
        if len(values) == 3:
            return cls(values[0], values[1], values[2])
        raise LatticeDefinitionError(f"coordinate must have 2 or 3 components, got {len(values)}")


@dataclass(frozen=True)
class LatticeRules:
    """Per-lattice encoding rules.

    Attributes:
        tick_length: Rendered length of a tick mark in unit-square space.
        inside_boundary_preference: Ticks point left of travel (+pi/2) when
            True, right (-pi/2) when False.
        casing: One of "upper", "lower", "preserve".
    """

    tick_length: float = 0.08
    inside_boundary_preference: bool = True
    casing: str = CASING_UPPER

    def __post_init__(self) -> None:
        if self.casing not in CASINGS:
            raise LatticeDefinitionError(f"casing must be one of {CASINGS}, got {self.casing!r}")
        if not (0 < self.tick_length <= 0.5):
            raise LatticeDefinitionError(f"tick_length must be in (0, 0.5], got {self.tick_length}")

    @property
    def tick_side(self) -> float:
        """Signed quarter turn applied to the travel direction for ticks."""
        return math.pi / 2 if self.inside_boundary_preference else -math.pi / 2

    def apply_casing(self, text: str) -> str:
        if self.casing == CASING_UPPER:
            return text.upper()
        if self.casing == CASING_LOWER:
            return text.lower()
        return text


@dataclass(frozen=True)
class Lattice:
    """Immutable named vertex set."""

    lattice_key: str
    dimension: str
    anchors: Mapping[str, Coord]
    separator_anchor: Coord
    separator: str = " "
    name: str = ""
    version: int = 1
    rules: LatticeRules = field(default_factory=LatticeRules)

    def __post_init__(self) -> None:
        # Read-only private copy so later mutation of the caller's dict cannot leak in.
        object.__setattr__(self, "anchors", MappingProxyType(dict(self.anchors)))
        self._validate()
        object.__setattr__(
            self,
            "_by_position",
            {coord.as_tuple(): char for char, coord in self.vertices()},
        )

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def alphabet(self) -> FrozenSet[str]:
        """Every character canonical text may contain, separator included."""
        return frozenset(self.anchors) | {self.separator}

    @property
    def is_3d(self) -> bool:
        return self.dimension == DIMENSION_3D

    def __contains__(self, char: object) -> bool:
        return char == self.separator or char in self.anchors

    def __len__(self) -> int:
        return len(self.anchors) + 1

    def vertices(self) -> Iterator[Tuple[str, Coord]]:
        """Yield (character, coordinate) for every vertex, separator last."""
        yield from self.anchors.items()
        yield self.separator, self.separator_anchor

    def coord_for(self, char: str) -> Coord:
        """Coordinate of a canonical character; KeyError if unsupported."""
        if char == self.separator:
            return self.separator_anchor
        return self.anchors[char]

    def resolve(self, coord: Coord, epsilon: float = VERTEX_EPSILON) -> Optional[str]:
        """Map a coordinate back to its character, or None if no vertex is within epsilon."""
        exact = self._by_position.get(coord.as_tuple())  # type: ignore[attr-defined]
        if exact is not None:
            return exact
        best_char = None
        best_distance = epsilon
        for char, anchor in self.vertices():
            if anchor.is_3d != coord.is_3d:
                continue
            distance = anchor.distance(coord)
            if distance <= best_distance:
                best_char, best_distance = char, distance
        return best_char

    def summary(self) -> Dict[str, object]:
        return {
            "lattice_key": self.lattice_key,
            "name": self.name,
            "dimension": self.dimension,
            "version": self.version,
            "vertices": len(self),
            "alphabet": "".join(sorted(self.anchors)),
        }

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def _validate(self) -> None:
        errors = []
        if not self.lattice_key:
            errors.append("lattice_key must be a non-empty string")
        if self.dimension not in DIMENSIONS:
            errors.append(f"dimension must be one of {DIMENSIONS}, got {self.dimension!r}")
        if len(self.separator) != 1:
            errors.append(f"separator must be a single character, got {self.separator!r}")
        if self.separator in self.anchors:
            errors.append(f"separator {self.separator!r} must not also be an anchor key")
        if not self.anchors:
            errors.append("lattice must define at least one anchor")

        want_3d = self.dimension == DIMENSION_3D
        points = list(self.anchors.items()) + [(self.separator, self.separator_anchor)]
        for char, coord in points:
            if len(char) != 1:
                errors.append(f"anchor key {char!r} must be a single character")
            elif char != self.separator and char.isspace():
                errors.append(f"anchor key {char!r} must not be whitespace")
            if coord.is_3d != want_3d:
                errors.append(f"anchor {char!r} does not match dimension {self.dimension}")
            if any(not (0.0 <= v <= 1.0) for v in coord.as_tuple()):
                errors.append(f"anchor {char!r} lies outside the unit range: {coord.as_tuple()}")
            if char != self.separator and self.rules.apply_casing(char) != char:
                errors.append(f"anchor {char!r} is not stable under {self.rules.casing} casing")

        if not errors:
            # Pairwise spacing keeps epsilon resolution unambiguous.
            for i, (char_a, coord_a) in enumerate(points):
                for char_b, coord_b in points[i + 1:]:
                    if coord_a.distance(coord_b) <= 2 * VERTEX_EPSILON:
                        errors.append(f"anchors {char_a!r} and {char_b!r} share a vertex")

        if errors:
            raise LatticeDefinitionError(
                f"Invalid lattice {self.lattice_key!r}:\n" + "\n".join(f"  - {e}" for e in errors)
            )


__all__ = [
    "VERTEX_EPSILON",
    "DIMENSION_2D",
    "DIMENSION_3D",
    "DIMENSIONS",
    "CASINGS",
    "Coord",
    "LatticeRules",
    "Lattice",
]
