"""
Path Decoder.

Replays an event stream against its lattice and reconstructs the text.

State machine::

    IDLE -> PARSING -> REPLAYING -> RESOLVED            (confidence 1.0)
                                 -> PARTIALLY_RESOLVED  (returned, not raised)
                                 -> FAILED              (QBCError raised)

Coordinates are matched to anchors within VERTEX_EPSILON. A vertex with no
anchor in range becomes UNRESOLVED_PLACEHOLDER and costs a fixed confidence
penalty; structural problems (a tick with no prior vertex, dimension
mismatch) fail the decode instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from qbc.crypto.hashing import content_hash
from qbc.encoding.events import EVENT_MOVE, EncodedPath
from qbc.errors import MalformedPathError, QBCError
from qbc.lattice.model import VERTEX_EPSILON, Lattice
from qbc.lattice.registry import LatticeRegistry, default_registry

logger = logging.getLogger(__name__)

UNRESOLVED_PLACEHOLDER = "\ufffd"
DEFAULT_UNRESOLVED_PENALTY = 0.1


class DecodeState(str, Enum):
    """Decoder lifecycle states."""
    IDLE = "idle"
    PARSING = "parsing"
    REPLAYING = "replaying"
    RESOLVED = "resolved"
    PARTIALLY_RESOLVED = "partially_resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of a successful decode.

    ``integrity_ok`` is None when no content hash was available (bare path).
    """
    text: str
    confidence: float
    lattice_key: str
    path: EncodedPath
    state: DecodeState
    notes: Tuple[str, ...] = field(default_factory=tuple)
    integrity_ok: Optional[bool] = None

    @property
    def exact(self) -> bool:
        return self.confidence == 1.0

    @property
    def unresolved_count(self) -> int:
        return self.text.count(UNRESOLVED_PLACEHOLDER)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "exact": self.exact,
            "lattice_key": self.lattice_key,
            "state": self.state.value,
            "notes": list(self.notes),
            "integrity_ok": self.integrity_ok,
        }


class PathDecoder:
    """Decodes packages or bare paths. One instance per call; not thread-safe."""

    def __init__(
        self,
        registry: Optional[LatticeRegistry] = None,
        unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
        epsilon: float = VERTEX_EPSILON,
    ):
        if not (0 < unresolved_penalty <= 1.0):
            raise ValueError(f"unresolved_penalty must be in (0, 1], got {unresolved_penalty}")
        self.registry = registry if registry is not None else default_registry()
        self.unresolved_penalty = unresolved_penalty
        self.epsilon = epsilon
        self.state = DecodeState.IDLE

    def _transition(self, state: DecodeState) -> None:
        logger.debug("decoder %s -> %s", self.state.value, state.value)
        self.state = state

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def decode(self, package) -> DecodeResult:
        """Decode a GlyphPackage, verifying its content hash."""
        self._transition(DecodeState.PARSING)
        try:
            lattice = self.registry.get(package.path.lattice_key)
            result = self._replay(lattice, package.path)
        except QBCError:
            self._transition(DecodeState.FAILED)
            raise

        notes = list(result.notes)
        declared_version = package.metadata.lattice_version
        if declared_version is not None and declared_version != lattice.version:
            notes.append(
                f"package was encoded with {lattice.lattice_key} v{declared_version}, "
                f"registry has v{lattice.version}"
            )
        integrity_ok = content_hash(result.text) == package.metadata.content_hash
        if not integrity_ok:
            notes.append("content hash mismatch: decoded text differs from the hashed text")
            logger.warning("content hash mismatch decoding %s glyph", lattice.lattice_key)
        return replace(result, notes=tuple(notes), integrity_ok=integrity_ok)

    def decode_path(self, path: EncodedPath) -> DecodeResult:
        """Decode a bare event stream (no integrity check)."""
        self._transition(DecodeState.PARSING)
        try:
            lattice = self.registry.get(path.lattice_key)
            return self._replay(lattice, path)
        except QBCError:
            self._transition(DecodeState.FAILED)
            raise

    # ------------------------------------------------------------------ #
    # Replay
    # ------------------------------------------------------------------ #

    def _replay(self, lattice: Lattice, path: EncodedPath) -> DecodeResult:
        self._transition(DecodeState.REPLAYING)
        if path.dimension != lattice.dimension:
            raise MalformedPathError(
                f"path dimension {path.dimension} does not match lattice "
                f"{lattice.lattice_key} ({lattice.dimension})"
            )

        chars: List[str] = []
        notes: List[str] = []
        unresolved = 0
        current_char: Optional[str] = None
        current_coord = None

        for index, event in enumerate(path.events):
            if (event.z is not None) != lattice.is_3d:
                raise MalformedPathError(
                    f"{'missing' if lattice.is_3d else 'unexpected'} z coordinate "
                    f"for {lattice.dimension} lattice",
                    index,
                )
            coord = event.coord

            if event.is_tick:
                if current_coord is None:
                    raise MalformedPathError("tick has no prior vertex to repeat", index)
                if not coord.close_to(current_coord, self.epsilon):
                    raise MalformedPathError("tick is not located on the current vertex", index)
                chars.append(current_char)
                if current_char == UNRESOLVED_PLACEHOLDER:
                    unresolved += 1
                continue

            if index == 0 and event.type != EVENT_MOVE:
                notes.append(f"path starts with {event.type!r} instead of 'move'")
            char = lattice.resolve(coord, self.epsilon)
            if char is None:
                char = UNRESOLVED_PLACEHOLDER
                unresolved += 1
                notes.append(f"event {index}: no anchor within {self.epsilon} of {coord.as_tuple()}")
            chars.append(char)
            current_char = char
            current_coord = coord

        confidence = round(max(0.0, 1.0 - self.unresolved_penalty * unresolved), 6)
        if unresolved:
            self._transition(DecodeState.PARTIALLY_RESOLVED)
            logger.warning("partial decode on %s: %d unresolved of %d characters",
                           lattice.lattice_key, unresolved, len(chars))
        else:
            self._transition(DecodeState.RESOLVED)

        return DecodeResult(
            text="".join(chars),
            confidence=confidence,
            lattice_key=lattice.lattice_key,
            path=path,
            state=self.state,
            notes=tuple(notes),
        )


__all__ = [
    "UNRESOLVED_PLACEHOLDER",
    "DEFAULT_UNRESOLVED_PENALTY",
    "DecodeState",
    "DecodeResult",
    "PathDecoder",
]
