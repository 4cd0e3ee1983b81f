"""
Composite glyphs.

Long text is canonicalized once and split into ordered chunks of at most
``chunk_size`` characters. Each chunk becomes its own GlyphPackage; the
container binds them with the content hash of the full canonical text and an
order-preserving Merkle root over the chunk content hashes, so reordering,
dropping or substituting a chunk is detectable.

Chunks are encoded directly, not re-canonicalized: a chunk may begin or end
with the separator.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from qbc.codec import resolve_lattice
from qbc.crypto.hashing import content_hash, merkle_root
from qbc.encoding.decoder import DEFAULT_UNRESOLVED_PENALTY, DecodeResult, DecodeState, PathDecoder
from qbc.encoding.encoder import encode
from qbc.errors import MalformedPackageError, UnsupportedVersionError
from qbc.lattice.registry import LatticeRegistry
from qbc.normalization.canon import canonicalize
from qbc.package.json_codec import check_schema, package_from_dict, schema_validator
from qbc.package.model import GlyphPackage, new_package, utc_timestamp
from qbc.schema_version import COMPOSITE_VERSION, leading_major, parse_version

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 24
COMPOSITE_KIND = "composite"


@dataclass(frozen=True)
class CompositeGlyph:
    """Ordered chunk packages bound by a Merkle root."""

    version: str
    lattice_key: str
    chunk_size: int
    content_hash: str
    merkle_root: str
    chunks: Tuple[GlyphPackage, ...]

    def __len__(self) -> int:
        return len(self.chunks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "kind": COMPOSITE_KIND,
            "lattice_key": self.lattice_key,
            "chunk_size": self.chunk_size,
            "content_hash": self.content_hash,
            "merkle_root": self.merkle_root,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
        }


@dataclass(frozen=True)
class CompositeDecodeResult:
    text: str
    confidence: float
    lattice_key: str
    state: DecodeState
    chunks: Tuple[DecodeResult, ...]
    notes: Tuple[str, ...] = field(default_factory=tuple)
    integrity_ok: bool = True

    @property
    def exact(self) -> bool:
        return self.confidence == 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "exact": self.exact,
            "lattice_key": self.lattice_key,
            "state": self.state.value,
            "chunks": len(self.chunks),
            "notes": list(self.notes),
            "integrity_ok": self.integrity_ok,
        }


def split_chunks(canonical_text: str, chunk_size: int) -> List[str]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [canonical_text[i:i + chunk_size] for i in range(0, len(canonical_text), chunk_size)]


def encode_composite(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    lattice_key: Optional[str] = None,
    *,
    registry: Optional[LatticeRegistry] = None,
    created_at: Optional[str] = None,
) -> CompositeGlyph:
    """
    Encode ``text`` as a composite of chunk packages.

    Args:
        text: Raw input text.
        chunk_size: Maximum canonical characters per chunk.
        lattice_key: Lattice for every chunk; the registry default when None.
        registry: Registry to resolve the key in.
        created_at: Timestamp shared by every chunk.

    Raises:
        ValueError: If chunk_size < 1.
        UnknownLatticeError: If ``lattice_key`` is not registered.
    """
    lattice = resolve_lattice(lattice_key, registry)
    canonical = canonicalize(lattice, text)
    created_at = created_at or utc_timestamp()

    chunks = []
    for piece in split_chunks(canonical, chunk_size):
        path = encode(lattice, piece)
        chunks.append(new_package(path, content_hash(piece), created_at, lattice.version))

    composite = CompositeGlyph(
        version=COMPOSITE_VERSION,
        lattice_key=lattice.lattice_key,
        chunk_size=chunk_size,
        content_hash=content_hash(canonical),
        merkle_root=merkle_root([c.metadata.content_hash for c in chunks]),
        chunks=tuple(chunks),
    )
    logger.debug("encoded %d characters on %s into %d chunks",
                 len(canonical), lattice.lattice_key, len(chunks))
    return composite


def decode_composite(
    composite: CompositeGlyph,
    *,
    registry: Optional[LatticeRegistry] = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> CompositeDecodeResult:
    """
    Decode every chunk in order and join the text.

    Confidence is the chunk confidences weighted by decoded chunk length.
    ``integrity_ok`` requires every chunk hash, the Merkle root over the
    decoded chunks, and the full-text hash to match.
    """
    results = [
        PathDecoder(registry, unresolved_penalty).decode(chunk)
        for chunk in composite.chunks
    ]
    text = "".join(r.text for r in results)

    total = sum(len(r.text) for r in results)
    if total:
        confidence = round(sum(r.confidence * len(r.text) for r in results) / total, 6)
    else:
        confidence = 1.0

    notes: List[str] = []
    for index, result in enumerate(results):
        notes.extend(f"chunk {index}: {note}" for note in result.notes)
    integrity_ok = all(r.integrity_ok for r in results)
    if merkle_root([content_hash(r.text) for r in results]) != composite.merkle_root:
        integrity_ok = False
        notes.append("merkle root mismatch: chunks are missing, reordered or altered")
    if content_hash(text) != composite.content_hash:
        integrity_ok = False
        notes.append("content hash mismatch: joined text differs from the hashed text")
    if not integrity_ok:
        logger.warning("composite integrity check failed on %s", composite.lattice_key)

    partial = any(r.state == DecodeState.PARTIALLY_RESOLVED for r in results)
    return CompositeDecodeResult(
        text=text,
        confidence=confidence,
        lattice_key=composite.lattice_key,
        state=DecodeState.PARTIALLY_RESOLVED if partial else DecodeState.RESOLVED,
        chunks=tuple(results),
        notes=tuple(notes),
        integrity_ok=integrity_ok,
    )


# --------------------------------------------------------------------------- #
# JSON
# --------------------------------------------------------------------------- #

def composite_to_json(composite: CompositeGlyph, indent: Optional[int] = 2) -> str:
    if indent is None:
        return json.dumps(composite.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return json.dumps(composite.to_dict(), ensure_ascii=False, indent=indent)


def composite_from_dict(data: Any) -> CompositeGlyph:
    if not isinstance(data, dict):
        raise MalformedPackageError(f"composite must be a JSON object, got {type(data).__name__}")
    version = data.get("version")
    if not isinstance(version, str):
        raise MalformedPackageError("composite 'version' is missing or not a string", "version")
    known_major, known_minor = parse_version(COMPOSITE_VERSION)
    major = leading_major(version)
    if major is not None and major != known_major:
        raise UnsupportedVersionError(version, f"{known_major}.x")
    try:
        _, minor = parse_version(version)
    except ValueError as e:
        raise MalformedPackageError(str(e), "version") from e
    strict = minor <= known_minor
    check_schema(data, schema_validator("composite.v1", strict))

    chunks = []
    for index, chunk_data in enumerate(data["chunks"]):
        try:
            chunk = package_from_dict(chunk_data)
        except MalformedPackageError as e:
            raise MalformedPackageError(f"chunk {index}: {e}", "chunks") from e
        if chunk.lattice_key != data["lattice_key"]:
            raise MalformedPackageError(
                f"chunk {index} uses lattice {chunk.lattice_key!r}, composite declares "
                f"{data['lattice_key']!r}",
                "chunks",
            )
        chunks.append(chunk)

    declared_root = merkle_root([c.metadata.content_hash for c in chunks])
    if declared_root != data["merkle_root"]:
        raise MalformedPackageError("merkle_root does not match the chunk content hashes", "merkle_root")

    return CompositeGlyph(
        version=version,
        lattice_key=data["lattice_key"],
        chunk_size=data["chunk_size"],
        content_hash=data["content_hash"],
        merkle_root=data["merkle_root"],
        chunks=tuple(chunks),
    )


def composite_from_json(text: str) -> CompositeGlyph:
    """Parse a composite. Raises MalformedPackageError / UnsupportedVersionError."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedPackageError(f"composite is not valid JSON: {e}") from e
    return composite_from_dict(data)


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "CompositeGlyph",
    "CompositeDecodeResult",
    "split_chunks",
    "encode_composite",
    "decode_composite",
    "composite_to_json",
    "composite_from_dict",
    "composite_from_json",
]
