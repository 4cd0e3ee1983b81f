"""
Error taxonomy for the QBC codec.

Every failure the codec can report is a subclass of :class:`QBCError` and
carries a stable ``kind`` string so callers (CLI, web handlers) can branch on
it without matching messages. Partial decodes are NOT errors: they are
returned as ``DecodeResult`` objects with ``confidence < 1.0``.
"""

from __future__ import annotations

from typing import Optional


class QBCError(Exception):
    """Base exception for all codec failures."""

    kind = "qbc_error"


# --- Lattice registry ---

class UnknownLatticeError(QBCError):
    """Raised when a lattice key is not present in the registry."""

    kind = "unknown_lattice"

    def __init__(self, lattice_key: str):
        super().__init__(f"Unknown lattice key: {lattice_key!r}")
        self.lattice_key = lattice_key


class DuplicateLatticeError(QBCError):
    """Raised when registering a lattice whose key is already taken."""

    kind = "duplicate_lattice"

    def __init__(self, lattice_key: str):
        super().__init__(f"Lattice key already registered: {lattice_key!r}")
        self.lattice_key = lattice_key


class LatticeDefinitionError(QBCError):
    """Raised when a lattice definition violates its structural invariants."""

    kind = "lattice_definition"


# --- Packages ---

class MalformedPackageError(QBCError):
    """Raised when a package does not match its versioned schema."""

    kind = "malformed_package"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message if path is None else f"{message} (at {path})")
        self.path = path


class UnsupportedVersionError(QBCError):
    """Raised for a package or binary format version this decoder does not know."""

    kind = "unsupported_version"

    def __init__(self, version: str, supported: str):
        super().__init__(f"Unsupported version {version!r}; supported: {supported}")
        self.version = version
        self.supported = supported


class NoEmbeddedMetadataError(QBCError):
    """Raised when an SVG document carries no readable package metadata."""

    kind = "no_embedded_metadata"


# --- Paths ---

class MalformedPathError(QBCError):
    """Raised when an event sequence is internally inconsistent."""

    kind = "malformed_path"

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message if index is None else f"event {index}: {message}")
        self.index = index


__all__ = [
    "QBCError",
    "UnknownLatticeError",
    "DuplicateLatticeError",
    "LatticeDefinitionError",
    "MalformedPackageError",
    "UnsupportedVersionError",
    "NoEmbeddedMetadataError",
    "MalformedPathError",
]
