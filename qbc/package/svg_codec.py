"""
SVG interchange for glyph packages.

``to_svg`` draws the path with svgwrite and embeds the compact JSON package
verbatim in a ``<metadata id="qbc-package">`` element. ``from_svg`` reads
that element back and nothing else: the drawing is never used to infer a
path, so an SVG without the metadata block fails cleanly.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

import defusedxml.ElementTree as DefusedET
import svgwrite
from defusedxml import DefusedXmlException

from qbc.errors import MalformedPackageError, NoEmbeddedMetadataError
from qbc.lattice.model import Coord, Lattice
from qbc.package.json_codec import from_json, to_json
from qbc.package.model import GlyphPackage

logger = logging.getLogger(__name__)

METADATA_ID = "qbc-package"
DEFAULT_TICK_LENGTH = 0.08


@dataclass(frozen=True)
class RenderStyle:
    """Visual options for the rendered glyph. Colors are CSS color strings."""

    size: int = 200
    margin: int = 20
    stroke_width: float = 2.0
    stroke_color: str = "#000000"
    node_size: float = 6.0
    node_color: str = "#000000"
    node_fill_color: str = "#ffffff"
    show_nodes: bool = True
    show_anchors: bool = False
    anchor_color: str = "#cccccc"
    background_color: str = "#ffffff"
    tick_length: Optional[float] = None  # None: use the lattice rule


DEFAULT_STYLE = RenderStyle()


def _projector(style: RenderStyle) -> Callable[[Coord], Tuple[float, float]]:
    inner = style.size - 2 * style.margin

    def project(coord: Coord) -> Tuple[float, float]:
        x, y = coord.x, coord.y
        if coord.z is not None:
            # Oblique projection: depth shifts right and up.
            x = 0.1 + 0.8 * x + 0.1 * (coord.z - 0.5)
            y = 0.1 + 0.8 * y - 0.1 * (coord.z - 0.5)
        return style.margin + x * inner, style.margin + y * inner

    return project


def _path_data(package: GlyphPackage, style: RenderStyle, tick_length: float) -> str:
    project = _projector(style)
    commands: List[str] = []
    for event in package.path.events:
        px, py = project(event.coord)
        if event.is_tick:
            end_x, end_y = event.tick_end(tick_length)
            tx, ty = project(Coord(end_x, end_y, event.z))
            commands.append(f"M {tx:.2f} {ty:.2f} L {px:.2f} {py:.2f}")
        else:
            op = "M" if event.type == "move" else "L"
            commands.append(f"{op} {px:.2f} {py:.2f}")
    return " ".join(commands)


def to_svg(
    package: GlyphPackage,
    lattice: Optional[Lattice] = None,
    style: Optional[RenderStyle] = None,
) -> str:
    """
    Render a package as an SVG document with the package embedded.

    Args:
        package: The glyph package to render and embed.
        lattice: Optional lattice, used for tick length and anchor dots.
        style: Visual options; DEFAULT_STYLE when omitted.

    Returns:
        The SVG document as a string.
    """
    style = style or DEFAULT_STYLE
    if style.tick_length is not None:
        tick_length = style.tick_length
    elif lattice is not None:
        tick_length = lattice.rules.tick_length
    else:
        tick_length = DEFAULT_TICK_LENGTH
    project = _projector(style)

    dwg = svgwrite.Drawing(size=(style.size, style.size), profile="full")
    dwg.viewbox(0, 0, style.size, style.size)
    dwg.add(dwg.rect(insert=(0, 0), size=(style.size, style.size), fill=style.background_color))

    if style.show_anchors and lattice is not None:
        for _, anchor in lattice.vertices():
            dwg.add(dwg.circle(center=project(anchor), r=style.node_size / 4, fill=style.anchor_color))

    if package.path.events:
        dwg.add(dwg.path(
            d=_path_data(package, style, tick_length),
            fill="none",
            stroke=style.stroke_color,
            stroke_width=style.stroke_width,
            stroke_linecap="round",
            stroke_linejoin="round",
        ))

    if style.show_nodes:
        seen = set()
        for event in package.path.events:
            key = event.coord.as_tuple()
            if key in seen:
                continue
            seen.add(key)
            dwg.add(dwg.circle(
                center=project(event.coord),
                r=style.node_size / 2,
                fill=style.node_fill_color,
                stroke=style.node_color,
                stroke_width=1,
            ))

    root = dwg.get_xml()
    metadata = ET.Element("metadata", {"id": METADATA_ID})
    metadata.text = to_json(package, indent=None)
    root.insert(0, metadata)
    return ET.tostring(root, encoding="unicode")


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def from_svg(svg_text: Union[str, bytes]) -> GlyphPackage:
    """
    Extract the embedded package from an SVG document.

    Metadata blocks without JSON text (for example RDF written by editors)
    are skipped. Identical duplicate packages are accepted; conflicting ones
    are rejected.

    Raises:
        NoEmbeddedMetadataError: No readable package metadata.
        MalformedPackageError: Conflicting packages, or an invalid embedded one.
        UnsupportedVersionError: The embedded package has an unknown version.
    """
    try:
        root = DefusedET.fromstring(svg_text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise NoEmbeddedMetadataError(f"SVG document could not be parsed: {e}") from e

    packages: List[GlyphPackage] = []
    for element in root.iter():
        if _local_name(element.tag) != "metadata":
            continue
        text = (element.text or "").strip()
        if not text.startswith("{"):
            continue
        packages.append(from_json(text))

    if not packages:
        raise NoEmbeddedMetadataError("SVG document has no embedded QBC package metadata")
    first = packages[0].to_dict()
    if any(p.to_dict() != first for p in packages[1:]):
        raise MalformedPackageError(f"SVG document embeds {len(packages)} conflicting packages")
    if len(packages) > 1:
        logger.info("SVG document embeds %d identical packages; using the first", len(packages))
    return packages[0]


__all__ = [
    "METADATA_ID",
    "RenderStyle",
    "DEFAULT_STYLE",
    "to_svg",
    "from_svg",
]
