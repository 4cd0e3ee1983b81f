"""
Path events and encoded paths.

An EncodedPath is the ordered event stream produced by the encoder. It is a
value object: immutable, carrying the lattice only by key.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from qbc.errors import MalformedPathError
from qbc.lattice.model import DIMENSION_3D, DIMENSIONS, Coord

EVENT_MOVE = "move"
EVENT_LINE = "line"
EVENT_TICK = "tick"
EVENT_TYPES = (EVENT_MOVE, EVENT_LINE, EVENT_TICK)


@dataclass(frozen=True)
class PathEvent:
    """One drawing instruction. ``axis`` is set only on ticks."""

    type: str
    x: float
    y: float
    z: Optional[float] = None
    axis: Optional[float] = None

    @classmethod
    def move(cls, coord: Coord) -> "PathEvent":
        return cls(EVENT_MOVE, coord.x, coord.y, coord.z)

    @classmethod
    def line(cls, coord: Coord) -> "PathEvent":
        return cls(EVENT_LINE, coord.x, coord.y, coord.z)

    @classmethod
    def tick(cls, coord: Coord, axis: float) -> "PathEvent":
        return cls(EVENT_TICK, coord.x, coord.y, coord.z, axis)

    @property
    def coord(self) -> Coord:
        return Coord(self.x, self.y, self.z)

    @property
    def is_tick(self) -> bool:
        return self.type == EVENT_TICK

    def tick_end(self, length: float) -> Tuple[float, float]:
        """Planar end point of a tick mark of the given length."""
        axis = self.axis or 0.0
        return self.x + math.cos(axis) * length, self.y + math.sin(axis) * length

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "x": self.x, "y": self.y}
        if self.z is not None:
            data["z"] = self.z
        if self.axis is not None:
            data["axis"] = self.axis
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: Optional[int] = None) -> "PathEvent":
        if not isinstance(data, dict):
            raise MalformedPathError("event must be an object", index)
        event_type = data.get("type")
        if event_type not in EVENT_TYPES:
            raise MalformedPathError(f"unknown event type {event_type!r}", index)
        try:
            x = float(data["x"])
            y = float(data["y"])
            z = float(data["z"]) if data.get("z") is not None else None
            axis = float(data["axis"]) if data.get("axis") is not None else None
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPathError(f"invalid coordinates: {e}", index) from e
        if event_type == EVENT_TICK and axis is None:
            raise MalformedPathError("tick event requires an axis", index)
        if event_type != EVENT_TICK and axis is not None:
            raise MalformedPathError(f"{event_type} event must not carry an axis", index)
        return cls(event_type, x, y, z, axis)


@dataclass(frozen=True)
class EncodedPath:
    """Ordered event stream for one glyph."""

    events: Tuple[PathEvent, ...]
    lattice_key: str
    dimension: str

    def __post_init__(self) -> None:
        # Accept any sequence; store a tuple.
        object.__setattr__(self, "events", tuple(self.events))

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[PathEvent]:
        return iter(self.events)

    @property
    def is_3d(self) -> bool:
        return self.dimension == DIMENSION_3D

    def counts(self) -> Dict[str, int]:
        """Number of events per type."""
        totals = {t: 0 for t in EVENT_TYPES}
        for event in self.events:
            totals[event.type] += 1
        return totals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [event.to_dict() for event in self.events],
            "lattice_key": self.lattice_key,
            "dimension": self.dimension,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncodedPath":
        if not isinstance(data, dict):
            raise MalformedPathError("path must be an object")
        events = data.get("events")
        if not isinstance(events, list):
            raise MalformedPathError("path.events must be a list")
        lattice_key = data.get("lattice_key")
        dimension = data.get("dimension")
        if not isinstance(lattice_key, str) or not lattice_key:
            raise MalformedPathError("path.lattice_key must be a non-empty string")
        if dimension not in DIMENSIONS:
            raise MalformedPathError(f"path.dimension must be one of {DIMENSIONS}, got {dimension!r}")
        return cls(
            events=tuple(PathEvent.from_dict(e, i) for i, e in enumerate(events)),
            lattice_key=lattice_key,
            dimension=dimension,
        )


__all__ = [
    "EVENT_MOVE",
    "EVENT_LINE",
    "EVENT_TICK",
    "EVENT_TYPES",
    "PathEvent",
    "EncodedPath",
]
