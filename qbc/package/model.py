"""Glyph package value objects (schema version 1)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from qbc.encoding.events import EncodedPath
from qbc.errors import MalformedPackageError
from qbc.schema_version import PACKAGE_VERSION


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO 8601 UTC timestamp with a trailing Z."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PackageMetadata:
    lattice_key: str
    dimension: str
    content_hash: str
    created_at: str
    lattice_version: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "lattice_key": self.lattice_key,
            "dimension": self.dimension,
            "content_hash": self.content_hash,
            "created_at": self.created_at,
        }
        if self.lattice_version is not None:
            data["lattice_version"] = self.lattice_version
        return data


@dataclass(frozen=True)
class GlyphPackage:
    """The unit of interchange: version, metadata and path."""

    version: str
    metadata: PackageMetadata
    path: EncodedPath

    def __post_init__(self) -> None:
        if self.metadata.lattice_key != self.path.lattice_key:
            raise MalformedPackageError(
                f"metadata.lattice_key {self.metadata.lattice_key!r} does not match "
                f"path.lattice_key {self.path.lattice_key!r}"
            )
        if self.metadata.dimension != self.path.dimension:
            raise MalformedPackageError(
                f"metadata.dimension {self.metadata.dimension!r} does not match "
                f"path.dimension {self.path.dimension!r}"
            )

    @property
    def lattice_key(self) -> str:
        return self.metadata.lattice_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "metadata": self.metadata.to_dict(),
            "path": self.path.to_dict(),
        }


def new_package(
    path: EncodedPath,
    content_hash: str,
    created_at: Optional[str] = None,
    lattice_version: Optional[int] = None,
) -> GlyphPackage:
    """Assemble a current-version package around an encoded path."""
    metadata = PackageMetadata(
        lattice_key=path.lattice_key,
        dimension=path.dimension,
        content_hash=content_hash,
        created_at=created_at or utc_timestamp(),
        lattice_version=lattice_version,
    )
    return GlyphPackage(version=PACKAGE_VERSION, metadata=metadata, path=path)


__all__ = [
    "utc_timestamp",
    "PackageMetadata",
    "GlyphPackage",
    "new_package",
]
