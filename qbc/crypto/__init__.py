from .hashing import content_hash, package_digest, merkle_root, sha256_hex, canonical_json_dump
