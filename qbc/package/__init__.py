"""Glyph package model and its JSON, SVG and binary forms."""

from .model import GlyphPackage, PackageMetadata, new_package, utc_timestamp
from .json_codec import from_json, package_from_dict, to_json
from .svg_codec import DEFAULT_STYLE, METADATA_ID, RenderStyle, from_svg, to_svg
from .binary import from_binary, to_binary

__all__: list[str] = [
    "GlyphPackage",
    "PackageMetadata",
    "new_package",
    "utc_timestamp",
    "from_json",
    "package_from_dict",
    "to_json",
    "DEFAULT_STYLE",
    "METADATA_ID",
    "RenderStyle",
    "from_svg",
    "to_svg",
    "from_binary",
    "to_binary",
]
