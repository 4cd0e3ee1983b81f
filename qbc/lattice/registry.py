"""
Lattice Registry.

This module loads lattice tables from YAML and keeps them in a registry
keyed by ``lattice_key``. The process-wide registry is built once on first
use and is only read afterward, so concurrent encoders and decoders share it
without locking.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import yaml

from qbc.errors import DuplicateLatticeError, LatticeDefinitionError, UnknownLatticeError
from qbc.lattice.builtin import BUILTIN_TABLE_PATH, generated_lattices
from qbc.lattice.model import Coord, Lattice, LatticeRules

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_LATTICE_KEY = "G1"


class LatticeRegistry:
    """Lookup table of lattices by key."""

    def __init__(self, lattices: Iterable[Lattice] = (), default_key: str = DEFAULT_LATTICE_KEY):
        self._lattices: Dict[str, Lattice] = {}
        self.default_key = default_key
        for lattice in lattices:
            self.register(lattice)

    def register(self, lattice: Lattice) -> None:
        """Add a lattice. Raises DuplicateLatticeError if the key is taken."""
        if lattice.lattice_key in self._lattices:
            raise DuplicateLatticeError(lattice.lattice_key)
        self._lattices[lattice.lattice_key] = lattice
        logger.debug("registered lattice %s (%s, %d vertices)",
                     lattice.lattice_key, lattice.dimension, len(lattice))

    def get(self, lattice_key: str) -> Lattice:
        """Return the lattice for ``lattice_key``. Raises UnknownLatticeError."""
        try:
            return self._lattices[lattice_key]
        except KeyError:
            raise UnknownLatticeError(lattice_key) from None

    def get_default(self) -> Lattice:
        return self.get(self.default_key)

    def keys(self) -> List[str]:
        return sorted(self._lattices)

    def __contains__(self, lattice_key: object) -> bool:
        return lattice_key in self._lattices

    def __iter__(self) -> Iterator[Lattice]:
        return iter(self._lattices[key] for key in self.keys())

    def __len__(self) -> int:
        return len(self._lattices)


# --------------------------------------------------------------------------- #
# YAML loading
# --------------------------------------------------------------------------- #

def _parse_coord(value: Any, where: str) -> Coord:
    if not isinstance(value, (list, tuple)):
        raise LatticeDefinitionError(f"{where}: coordinate must be a list, got {type(value).__name__}")
    try:
        return Coord.from_sequence(value)
    except (TypeError, ValueError) as e:
        raise LatticeDefinitionError(f"{where}: invalid coordinate {value!r}") from e


def lattice_from_dict(data: Dict[str, Any]) -> Lattice:
    """Build a Lattice from one entry of a lattice table."""
    if not isinstance(data, dict):
        raise LatticeDefinitionError(f"lattice entry must be a mapping, got {type(data).__name__}")
    key = data.get("lattice_key")
    if not isinstance(key, str):
        raise LatticeDefinitionError(f"lattice entry missing string 'lattice_key': {data!r:.80}")

    raw_anchors = data.get("anchors")
    if not isinstance(raw_anchors, dict):
        raise LatticeDefinitionError(f"{key}: 'anchors' must be a mapping")
    anchors = {}
    for char, value in raw_anchors.items():
        if not isinstance(char, str):
            raise LatticeDefinitionError(f"{key}: anchor key {char!r} must be a quoted string")
        anchors[char] = _parse_coord(value, f"{key}.anchors[{char!r}]")

    if "separator_anchor" not in data:
        raise LatticeDefinitionError(f"{key}: missing 'separator_anchor'")
    separator_anchor = _parse_coord(data["separator_anchor"], f"{key}.separator_anchor")

    rules_data = data.get("rules") or {}
    if not isinstance(rules_data, dict):
        raise LatticeDefinitionError(f"{key}: 'rules' must be a mapping")
    unknown = set(rules_data) - {"tick_length", "inside_boundary_preference", "casing"}
    if unknown:
        raise LatticeDefinitionError(f"{key}: unknown rule(s) {sorted(unknown)}")
    rules = LatticeRules(**rules_data)

    return Lattice(
        lattice_key=key,
        dimension=str(data.get("dimension", "2D")),
        anchors=anchors,
        separator_anchor=separator_anchor,
        separator=data.get("separator", " "),
        name=data.get("name", key),
        version=int(data.get("version", 1)),
        rules=rules,
    )


def load_lattice_file(path: PathLike) -> Tuple[List[Lattice], Optional[str]]:
    """
    Load a lattice table from a YAML file.

    Returns:
        (lattices, default_key) where default_key is None if the file names none.

    Raises:
        LatticeDefinitionError: If the file is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise LatticeDefinitionError(f"Lattice table not found at: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LatticeDefinitionError(f"Error parsing YAML file: {path}") from e

    if not isinstance(data, dict) or "lattices" not in data:
        raise LatticeDefinitionError(f"Malformed lattice table: missing top-level 'lattices' key in {path}")
    entries = data["lattices"]
    if not isinstance(entries, list):
        raise LatticeDefinitionError(f"Malformed lattice table: 'lattices' must be a list in {path}")

    lattices = [lattice_from_dict(entry) for entry in entries]
    default_key = data.get("default")
    logger.debug("loaded %d lattice(s) from %s", len(lattices), path)
    return lattices, default_key


def build_registry(
    extra_tables: Iterable[PathLike] = (),
    default_key: Optional[str] = None,
) -> LatticeRegistry:
    """Build a registry from the built-in table plus any extra YAML tables."""
    lattices, builtin_default = load_lattice_file(BUILTIN_TABLE_PATH)
    registry = LatticeRegistry(lattices, default_key=builtin_default or DEFAULT_LATTICE_KEY)
    for lattice in generated_lattices():
        registry.register(lattice)
    for table in extra_tables:
        extra, _ = load_lattice_file(table)
        for lattice in extra:
            registry.register(lattice)
    if default_key is not None:
        registry.default_key = default_key
    # Fail at start-up, not on first encode.
    registry.get_default()
    return registry


@lru_cache(maxsize=1)
def default_registry() -> LatticeRegistry:
    """Process-wide registry configured from QBCConfig.from_env()."""
    from qbc.config import QBCConfig

    config = QBCConfig.from_env()
    extra = [config.lattice_file] if config.lattice_file else []
    return build_registry(extra, default_key=config.default_lattice)


__all__ = [
    "DEFAULT_LATTICE_KEY",
    "LatticeRegistry",
    "lattice_from_dict",
    "load_lattice_file",
    "build_registry",
    "default_registry",
]
