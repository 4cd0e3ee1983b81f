"""
Path Encoder.

Walks canonical text and emits one event per character:

- the first character is a ``move`` to its vertex;
- an immediate repeat of the previous character is a ``tick`` at the same
  vertex, exactly one per repeat, so a run of k characters costs one
  move/line plus k-1 ticks;
- every other character is a ``line`` to its vertex.

A tick's ``axis`` is the direction of travel between the previous two
distinct vertices turned by a quarter (left or right per the lattice rules).
3D lattices use the planar (x, y) projection of that direction.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from qbc.encoding.events import EncodedPath, PathEvent
from qbc.lattice.model import Coord, Lattice

logger = logging.getLogger(__name__)

# Travel direction assumed before a second distinct vertex exists.
DEFAULT_TRAVEL_ANGLE = 0.0

_DEGENERATE = 1e-12


def tick_axis(lattice: Lattice, previous: Optional[Coord], current: Coord) -> float:
    """Tick direction at ``current`` given the previous distinct vertex."""
    travel = DEFAULT_TRAVEL_ANGLE
    if previous is not None:
        dx = current.x - previous.x
        dy = current.y - previous.y
        if math.hypot(dx, dy) > _DEGENERATE:
            travel = math.atan2(dy, dx)
    axis = travel + lattice.rules.tick_side
    # Normalize into [0, 2*pi) so serialized values stay comparable.
    return axis % (2 * math.pi)


def encode(lattice: Lattice, canonical_text: str) -> EncodedPath:
    """
    Encode canonical text against a lattice.

    Args:
        lattice: The lattice whose anchors define the vertices.
        canonical_text: Output of ``canonicalize`` for the same lattice.

    Returns:
        A new EncodedPath. Empty text yields an empty event list.

    Raises:
        ValueError: If the text contains a character outside the alphabet.
    """
    events: List[PathEvent] = []
    last_char: Optional[str] = None
    last_vertex: Optional[Coord] = None
    previous_distinct: Optional[Coord] = None

    for position, char in enumerate(canonical_text):
        try:
            vertex = lattice.coord_for(char)
        except KeyError:
            raise ValueError(
                f"character {char!r} at position {position} is not in lattice "
                f"{lattice.lattice_key}; canonicalize the text first"
            ) from None

        if last_char is None:
            events.append(PathEvent.move(vertex))
        elif char == last_char:
            events.append(PathEvent.tick(vertex, tick_axis(lattice, previous_distinct, vertex)))
        else:
            events.append(PathEvent.line(vertex))
            previous_distinct = last_vertex

        last_char = char
        last_vertex = vertex

    path = EncodedPath(tuple(events), lattice.lattice_key, lattice.dimension)
    logger.debug("encoded %d characters on %s: %s", len(canonical_text), lattice.lattice_key, path.counts())
    return path


__all__ = [
    "DEFAULT_TRAVEL_ANGLE",
    "tick_axis",
    "encode",
]
