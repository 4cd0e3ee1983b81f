"""
JSON serialization for glyph packages.

Parsing is gated on the package ``version``:

1. An unknown MAJOR (any leading integer, so "2" as well as "2.1") fails
   with UnsupportedVersionError before anything else in the document is read.
2. Otherwise the version must be a "MAJOR.MINOR" string.
3. A known MAJOR is validated against its own JSON Schema
   (``schemas/glyph_package.v<MAJOR>.schema.json``) and built by its own
   loader (PackageV1 below).

Within MAJOR 1, minors up to KNOWN_V1_MINOR reject unknown fields; newer
minors have their unknown fields dropped and logged.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import jsonschema

from qbc.encoding.events import EncodedPath
from qbc.errors import MalformedPackageError, MalformedPathError, UnsupportedVersionError
from qbc.package.model import GlyphPackage, PackageMetadata
from qbc.schema_version import SUPPORTED_PACKAGE_MAJORS, leading_major, parse_version

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"
KNOWN_V1_MINOR = 0

# --- Cached validators, keyed by (schema name, strict) ---
_validators: Dict[Tuple[str, bool], jsonschema.Draft7Validator] = {}


def _load_schema(name: str) -> Dict[str, Any]:
    schema_path = SCHEMA_DIR / f"{name}.schema.json"
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _relax(schema: Any) -> Any:
    """Copy of ``schema`` with every additionalProperties opened up."""
    if isinstance(schema, dict):
        relaxed = {k: _relax(v) for k, v in schema.items()}
        if relaxed.get("additionalProperties") is False:
            relaxed["additionalProperties"] = True
        return relaxed
    if isinstance(schema, list):
        return [_relax(v) for v in schema]
    return schema


def schema_validator(name: str, strict: bool = True) -> jsonschema.Draft7Validator:
    """Draft 7 validator for a bundled schema; ``strict=False`` allows unknown fields."""
    key = (name, strict)
    if key not in _validators:
        schema = _load_schema(name)
        if not strict:
            schema = _relax(copy.deepcopy(schema))
        _validators[key] = jsonschema.Draft7Validator(schema)
    return _validators[key]


def check_schema(data: Dict[str, Any], validator: jsonschema.Draft7Validator) -> None:
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        location = ".".join(map(str, first.path)) if first.path else "root"
        raise MalformedPackageError(f"schema validation failed: {first.message}", location)


_V1_FIELDS = {
    "": {"version", "metadata", "path"},
    "metadata": {"lattice_key", "dimension", "content_hash", "created_at", "lattice_version"},
    "path": {"events", "lattice_key", "dimension"},
    "event": {"type", "x", "y", "z", "axis"},
}


def _unknown_v1_fields(data: Dict[str, Any]) -> List[str]:
    unknown = [k for k in data if k not in _V1_FIELDS[""]]
    unknown += [f"metadata.{k}" for k in data["metadata"] if k not in _V1_FIELDS["metadata"]]
    unknown += [f"path.{k}" for k in data["path"] if k not in _V1_FIELDS["path"]]
    for i, event in enumerate(data["path"]["events"]):
        unknown += [f"path.events.{i}.{k}" for k in event if k not in _V1_FIELDS["event"]]
    return unknown


# --------------------------------------------------------------------------- #
# Version loaders
# --------------------------------------------------------------------------- #

def _package_v1(data: Dict[str, Any], minor: int) -> GlyphPackage:
    """PackageV1: version 1.x."""
    strict = minor <= KNOWN_V1_MINOR
    check_schema(data, schema_validator("glyph_package.v1", strict))
    if not strict:
        ignored = _unknown_v1_fields(data)
        if ignored:
            logger.info("ignoring unknown fields in version %s package: %s", data["version"], ignored)

    meta = data["metadata"]
    metadata = PackageMetadata(
        lattice_key=meta["lattice_key"],
        dimension=meta["dimension"],
        content_hash=meta["content_hash"],
        created_at=meta["created_at"],
        lattice_version=meta.get("lattice_version"),
    )
    try:
        path = EncodedPath.from_dict(data["path"])
    except MalformedPathError as e:
        raise MalformedPackageError(str(e), "path") from e

    want_z = path.is_3d
    for i, event in enumerate(path.events):
        if (event.z is not None) != want_z:
            raise MalformedPackageError(
                f"event z coordinate does not match dimension {path.dimension}", f"path.events.{i}"
            )
    return GlyphPackage(version=data["version"], metadata=metadata, path=path)


_LOADERS: Dict[int, Callable[[Dict[str, Any], int], GlyphPackage]] = {
    1: _package_v1,
}


def package_from_dict(data: Any) -> GlyphPackage:
    """Dispatch a decoded JSON document to the loader for its major version."""
    if not isinstance(data, dict):
        raise MalformedPackageError(f"package must be a JSON object, got {type(data).__name__}")
    version = data.get("version")
    if not isinstance(version, str):
        raise MalformedPackageError("package 'version' is missing or not a string", "version")
    # Major gate first, so "2" is unsupported rather than malformed.
    major = leading_major(version)
    if major is not None and (major not in SUPPORTED_PACKAGE_MAJORS or major not in _LOADERS):
        raise UnsupportedVersionError(version, ", ".join(f"{m}.x" for m in SUPPORTED_PACKAGE_MAJORS))
    try:
        major, minor = parse_version(version)
    except ValueError as e:
        raise MalformedPackageError(str(e), "version") from e
    return _LOADERS[major](data, minor)


def from_json(text: str) -> GlyphPackage:
    """Parse a JSON package. Raises MalformedPackageError / UnsupportedVersionError."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedPackageError(f"package is not valid JSON: {e}") from e
    return package_from_dict(data)


def to_json(package: GlyphPackage, indent: Optional[int] = 2) -> str:
    """Serialize a package. ``indent=None`` gives the compact single-line form."""
    if indent is None:
        return json.dumps(package.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return json.dumps(package.to_dict(), ensure_ascii=False, indent=indent)


__all__ = [
    "KNOWN_V1_MINOR",
    "schema_validator",
    "check_schema",
    "package_from_dict",
    "from_json",
    "to_json",
]
