"""
Codec facade.

One-call encode and decode over the lattice registry, canonicalizer, encoder,
hasher, serializers and decoder. Every function is pure apart from reading
the process-wide registry; a fresh PathDecoder is created per call.
"""

from __future__ import annotations

from typing import Optional, Union

from qbc.crypto.hashing import content_hash
from qbc.encoding.decoder import DEFAULT_UNRESOLVED_PENALTY, DecodeResult, PathDecoder
from qbc.encoding.encoder import encode
from qbc.lattice.model import Lattice
from qbc.lattice.registry import LatticeRegistry, default_registry
from qbc.normalization.canon import canonicalize
from qbc.package.binary import from_binary, to_binary
from qbc.package.json_codec import from_json
from qbc.package.model import GlyphPackage, new_package
from qbc.package.svg_codec import RenderStyle, from_svg, to_svg


def resolve_lattice(lattice_key: Optional[str] = None, registry: Optional[LatticeRegistry] = None) -> Lattice:
    """The lattice for ``lattice_key``, or the registry default when None."""
    registry = registry if registry is not None else default_registry()
    if lattice_key is None:
        return registry.get_default()
    return registry.get(lattice_key)


def encode_to_package(
    text: str,
    lattice_key: Optional[str] = None,
    *,
    registry: Optional[LatticeRegistry] = None,
    created_at: Optional[str] = None,
) -> GlyphPackage:
    """
    Canonicalize, encode and hash ``text`` into a glyph package.

    Args:
        text: Raw input text; unsupported characters are canonicalized away.
        lattice_key: Lattice to encode on; the registry default when None.
        registry: Registry to resolve the key in; the process-wide one when None.
        created_at: Fixed ISO 8601 timestamp, for reproducible output.

    Raises:
        UnknownLatticeError: If ``lattice_key`` is not registered.
    """
    lattice = resolve_lattice(lattice_key, registry)
    canonical = canonicalize(lattice, text)
    path = encode(lattice, canonical)
    return new_package(path, content_hash(canonical), created_at, lattice.version)


def encode_to_svg(
    text: str,
    lattice_key: Optional[str] = None,
    *,
    registry: Optional[LatticeRegistry] = None,
    created_at: Optional[str] = None,
    style: Optional[RenderStyle] = None,
) -> str:
    """Encode ``text`` and render it as an SVG carrying the package."""
    lattice = resolve_lattice(lattice_key, registry)
    package = encode_to_package(text, lattice.lattice_key, registry=registry, created_at=created_at)
    return to_svg(package, lattice, style)


def encode_to_binary(
    text: str,
    lattice_key: Optional[str] = None,
    *,
    registry: Optional[LatticeRegistry] = None,
) -> bytes:
    """Encode ``text`` into the compact binary path form (no metadata)."""
    package = encode_to_package(text, lattice_key, registry=registry)
    return to_binary(package.path)


def decode_package(
    package: GlyphPackage,
    *,
    registry: Optional[LatticeRegistry] = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> DecodeResult:
    return PathDecoder(registry, unresolved_penalty).decode(package)


def decode_json(
    text: str,
    *,
    registry: Optional[LatticeRegistry] = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> DecodeResult:
    return decode_package(from_json(text), registry=registry, unresolved_penalty=unresolved_penalty)


def decode_svg(
    svg_text: Union[str, bytes],
    *,
    registry: Optional[LatticeRegistry] = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> DecodeResult:
    """Decode the package embedded in an SVG; same result as the JSON route."""
    return decode_package(from_svg(svg_text), registry=registry, unresolved_penalty=unresolved_penalty)


def decode_binary(
    data: bytes,
    *,
    registry: Optional[LatticeRegistry] = None,
    unresolved_penalty: float = DEFAULT_UNRESOLVED_PENALTY,
) -> DecodeResult:
    """Decode a binary path. No content hash travels with it, so integrity_ok is None."""
    return PathDecoder(registry, unresolved_penalty).decode_path(from_binary(data))


__all__ = [
    "resolve_lattice",
    "encode_to_package",
    "encode_to_svg",
    "encode_to_binary",
    "decode_package",
    "decode_json",
    "decode_svg",
    "decode_binary",
]
