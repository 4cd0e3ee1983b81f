"""
Schema Version Constants for QBC Packages
=========================================

This module defines version constants for every serialized artifact the codec
produces. These versions enable:

1. Forward-compatibility gating (unknown MAJOR versions are refused outright)
2. Audit trail for which algorithm produced a content hash
3. Migration paths between package schemas

Package version format: "MAJOR.MINOR"
- MAJOR: Breaking changes to the package shape; decoders refuse unknown majors
- MINOR: Backward-compatible additions; unknown fields are explicitly ignored
"""

import re
from typing import Optional, Tuple

# Glyph package (qbc/package/json_codec.py)
PACKAGE_VERSION = "1.0"
SUPPORTED_PACKAGE_MAJORS = (1,)

# Composite glyph container (qbc/composite.py)
COMPOSITE_VERSION = "1.0"

# Binary path format (qbc/package/binary.py)
BINARY_FORMAT_VERSION = 1

# Hash algorithm used for content hashes (qbc/crypto/hashing.py)
HASH_ALGORITHM_VERSION = "sha256-v1"

# JSON canonicalization used for package digests
JSON_CANON_SCHEMA_VERSION = "rfc8785-v1"

VERSION_METADATA = {
    "package": PACKAGE_VERSION,
    "composite": COMPOSITE_VERSION,
    "binary": BINARY_FORMAT_VERSION,
    "hash_algorithm": HASH_ALGORITHM_VERSION,
    "json_canon": JSON_CANON_SCHEMA_VERSION,
}

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)$")


def parse_version(version: str) -> Tuple[int, int]:
    """Split a "MAJOR.MINOR" string; raises ValueError when it is not one."""
    match = _VERSION_RE.match(version)
    if match is None:
        raise ValueError(f"not a MAJOR.MINOR version string: {version!r}")
    return int(match.group(1)), int(match.group(2))


_MAJOR_RE = re.compile(r"^(\d+)(?:\.|$)")


def leading_major(version: str) -> Optional[int]:
    """MAJOR of "MAJOR", "MAJOR.MINOR" or "MAJOR.anything"; None without a leading integer."""
    match = _MAJOR_RE.match(version)
    return int(match.group(1)) if match else None


def get_version_string() -> str:
    """Get a compact version string for logging."""
    return f"package:{PACKAGE_VERSION},hash:{HASH_ALGORITHM_VERSION}"


def get_full_version_metadata() -> dict:
    """Get complete version metadata for embedding in artifacts."""
    return VERSION_METADATA.copy()
