"""
QBC Codec Configuration

Defines process-level settings for the codec and its command line.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import json
import logging
import os

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class QBCConfig:
    """Configuration for encoding, decoding and rendering."""

    # Lattice selection
    default_lattice: str = "G1"
    lattice_file: Optional[str] = None  # extra YAML table merged into the registry

    # Decoding
    unresolved_penalty: float = 0.1

    # Rendering / serialization
    svg_size: int = 200
    json_indent: Optional[int] = 2

    # Composite glyphs
    composite_chunk_size: int = 24

    # Logging
    log_level: str = "WARNING"

    # ---------------------------------------------------------------------#
    # Serialization helpers
    # ---------------------------------------------------------------------#

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=True)

    @classmethod
    def from_json(cls, filepath: str) -> 'QBCConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def from_env(cls) -> 'QBCConfig':
        """
        Load configuration from environment variables.

        Environment variables:
            QBC_DEFAULT_LATTICE (default G1)
            QBC_LATTICE_FILE
            QBC_UNRESOLVED_PENALTY (default 0.1)
            QBC_SVG_SIZE (default 200)
            QBC_JSON_INDENT (default 2; "none" for compact output)
            QBC_COMPOSITE_CHUNK_SIZE (default 24)
            QBC_LOG_LEVEL (default WARNING)
        """
        indent = os.getenv("QBC_JSON_INDENT", "2")
        return cls(
            default_lattice=os.getenv("QBC_DEFAULT_LATTICE", "G1"),
            lattice_file=os.getenv("QBC_LATTICE_FILE") or None,
            unresolved_penalty=float(os.getenv("QBC_UNRESOLVED_PENALTY", "0.1")),
            svg_size=int(os.getenv("QBC_SVG_SIZE", "200")),
            json_indent=None if indent.lower() == "none" else int(indent),
            composite_chunk_size=int(os.getenv("QBC_COMPOSITE_CHUNK_SIZE", "24")),
            log_level=os.getenv("QBC_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> None:
        """Validate configuration parameters."""
        errors = []

        if not self.default_lattice:
            errors.append("default_lattice must be a non-empty lattice key")

        if not (0 < self.unresolved_penalty <= 1.0):
            errors.append(f"unresolved_penalty must be in (0, 1], got {self.unresolved_penalty}")

        if self.svg_size < 50:
            errors.append(f"svg_size must be ≥50, got {self.svg_size}")

        if self.json_indent is not None and self.json_indent < 0:
            errors.append(f"json_indent must be ≥0 or None, got {self.json_indent}")

        if self.composite_chunk_size < 1:
            errors.append(f"composite_chunk_size must be ≥1, got {self.composite_chunk_size}")

        if self.log_level not in _LOG_LEVELS:
            errors.append(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")

        if self.lattice_file and not os.path.exists(self.lattice_file):
            errors.append(f"lattice_file does not exist: {self.lattice_file}")

        if errors:
            raise ValueError("Invalid QBC configuration:\n" + "\n".join(f"  - {e}" for e in errors))

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


__all__ = [
    "QBCConfig",
]
