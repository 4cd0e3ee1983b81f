"""
Tests for qbc/package/svg_codec.py.

The SVG route must decode identically to the JSON route, and must rely on
the embedded metadata only.
"""

import pytest

from qbc.codec import decode_package, decode_svg, encode_to_package
from qbc.errors import MalformedPackageError, NoEmbeddedMetadataError
from qbc.package import METADATA_ID, RenderStyle, from_svg, to_json, to_svg

SVG_NS = "http://www.w3.org/2000/svg"


@pytest.fixture
def package(registry, created_at):
    return encode_to_package("HELLO", "G1", registry=registry, created_at=created_at)


def _wrap(*blocks):
    return f'<svg xmlns="{SVG_NS}" width="10" height="10">{"".join(blocks)}<path d="M 0 0 L 5 5"/></svg>'


def _metadata(package, **attrs):
    extra = "".join(f' {k}="{v}"' for k, v in attrs.items())
    return f'<metadata{extra}>{to_json(package, indent=None)}</metadata>'


class TestRender:

    def test_embeds_metadata(self, package, g1):
        """Test that the package is embedded in a metadata element."""
        svg = to_svg(package, g1)
        assert svg.startswith("<svg")
        assert f'id="{METADATA_ID}"' in svg
        assert to_json(package, indent=None) in svg

    def test_one_node_per_distinct_vertex(self, package, g1):
        """Test that repeated vertices draw one node."""
        svg = to_svg(package, g1)
        assert svg.count("<circle") == 4
        assert svg.count("<path") == 1

    def test_nodes_hidden(self, package, g1):
        """Test show_nodes=False."""
        svg = to_svg(package, g1, RenderStyle(show_nodes=False))
        assert "<circle" not in svg

    def test_anchor_dots(self, package, g1):
        """Test that show_anchors draws every lattice vertex."""
        svg = to_svg(package, g1, RenderStyle(show_nodes=False, show_anchors=True))
        assert svg.count("<circle") == len(g1)

    def test_size(self, package, g1):
        """Test the document size option."""
        svg = to_svg(package, g1, RenderStyle(size=320))
        assert 'width="320"' in svg

    def test_empty_path_has_no_path_element(self, registry, g1, created_at):
        """Test that an empty path draws no path element."""
        package = encode_to_package("", "G1", registry=registry, created_at=created_at)
        svg = to_svg(package, g1)
        assert "<path" not in svg
        assert from_svg(svg) == package

    def test_3d_render(self, registry, m3, created_at):
        """Test that 3D packages survive the SVG route."""
        package = encode_to_package("MOON", "M3", registry=registry, created_at=created_at)
        assert from_svg(to_svg(package, m3)) == package

    def test_without_lattice(self, package):
        """Test rendering without a lattice."""
        assert from_svg(to_svg(package)) == package


class TestExtract:
    """from_svg reads the metadata block and nothing else."""

    def test_round_trip(self, package, g1):
        """Test to_svg then from_svg gives an equal package."""
        assert from_svg(to_svg(package, g1)) == package

    def test_decode_equivalence(self, registry, package, g1):
        """Test that SVG and package decodes are identical."""
        svg = to_svg(package, g1)
        assert decode_svg(svg, registry=registry) == decode_package(package, registry=registry)

    def test_accepts_bytes(self, package, g1):
        """Test parsing SVG bytes."""
        assert from_svg(to_svg(package, g1).encode("utf-8")) == package

    def test_attribute_order_and_whitespace(self, package):
        """Test tolerance of re-saved SVG formatting."""
        svg = _wrap(
            f'\n  <metadata class="x"   id="{METADATA_ID}" >\n   {to_json(package, indent=None)}\n  </metadata>\n'
        )
        assert from_svg(svg) == package

    def test_no_metadata(self):
        """Test an SVG with no package."""
        with pytest.raises(NoEmbeddedMetadataError):
            from_svg(_wrap())

    def test_not_xml(self):
        """Test input that is not XML."""
        with pytest.raises(NoEmbeddedMetadataError, match="could not be parsed"):
            from_svg("this is not svg")

    def test_entity_declarations_refused(self, package):
        """Test that entity declarations are refused."""
        svg = '<!DOCTYPE svg [<!ENTITY a "x">]>' + _wrap(_metadata(package))
        with pytest.raises(NoEmbeddedMetadataError):
            from_svg(svg)

    def test_rdf_block_ignored(self, package):
        """Test that a non-JSON metadata block is skipped."""
        rdf = (
            '<metadata><rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"/>'
            '</metadata>'
        )
        assert from_svg(_wrap(rdf, _metadata(package, id=METADATA_ID))) == package

    def test_identical_duplicates_accepted(self, package):
        """Test that identical duplicate packages are accepted."""
        block = _metadata(package, id=METADATA_ID)
        assert from_svg(_wrap(block, block)) == package

    def test_conflicting_blocks_rejected(self, registry, package, created_at):
        """Test that two different packages are rejected."""
        other = encode_to_package("WORLD", "G1", registry=registry, created_at=created_at)
        with pytest.raises(MalformedPackageError, match="conflicting"):
            from_svg(_wrap(_metadata(package), _metadata(other)))

    def test_invalid_embedded_package(self):
        """Test that an invalid embedded package is malformed."""
        with pytest.raises(MalformedPackageError):
            from_svg(_wrap('<metadata>{"version": "1.0"}</metadata>'))
