"""
Integrity hashing for QBC glyphs.

This module provides:
- content hashes over canonical text (the value stored in package metadata)
- RFC 8785 package digests (the value an anchoring service records)
- an order-preserving Merkle root for composite glyphs

All operations are pure and deterministic.
"""

import hashlib
from typing import Any, Dict, List, Union

import jcs

# Domain separation tags (prevent cross-type collisions)
DOMAIN_PACKAGE = b'\x10'
DOMAIN_LEAF = b'\x00'
DOMAIN_NODE = b'\x01'


def sha256_hex(data: Union[str, bytes], domain: bytes = b'') -> str:
    """
    Compute SHA-256 hash and return as hex string.

    Args:
        data: Input data (string will be UTF-8 encoded)
        domain: Optional domain separation prefix

    Returns:
        64-character hex string
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(domain + data).hexdigest()


def sha256_bytes(data: Union[str, bytes], domain: bytes = b'') -> bytes:
    """Compute SHA-256 hash and return the 32-byte digest."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(domain + data).digest()


def content_hash(canonical_text: str) -> str:
    """
    Hash canonical text.

    The digest depends only on the text: the same canonical text hashes the
    same on every lattice and dimension. No domain prefix is applied so
    external verifiers can recompute it with plain SHA-256.
    """
    return sha256_hex(canonical_text)


def canonical_json_dump(obj: Any) -> bytes:
    """Serialize a JSON-compatible object to RFC 8785 canonical bytes."""
    return jcs.canonicalize(obj)


def package_digest(package_dict: Dict[str, Any]) -> str:
    """
    Digest of a whole package (metadata and path).

    Args:
        package_dict: The package as a plain dict (``GlyphPackage.to_dict()``).

    Returns:
        64-character hex hash over the JCS form with PACKAGE domain separation.
    """
    return sha256_hex(canonical_json_dump(package_dict), domain=DOMAIN_PACKAGE)


def merkle_root(leaf_hashes: List[str]) -> str:
    """
    Compute a Merkle root over hex leaf hashes, preserving their order.

    Chunk order is part of the content, so leaves are NOT sorted. An odd
    node at any level is paired with itself.

    Args:
        leaf_hashes: Hex digests in content order

    Returns:
        64-character hex Merkle root
    """
    if not leaf_hashes:
        return sha256_hex(b'', domain=DOMAIN_LEAF)

    nodes = [sha256_bytes(bytes.fromhex(h), domain=DOMAIN_LEAF) for h in leaf_hashes]

    while len(nodes) > 1:
        if len(nodes) % 2 == 1:
            nodes.append(nodes[-1])

        next_level = []
        for i in range(0, len(nodes), 2):
            combined = nodes[i] + nodes[i + 1]
            next_level.append(sha256_bytes(combined, domain=DOMAIN_NODE))

        nodes = next_level

    return nodes[0].hex()
