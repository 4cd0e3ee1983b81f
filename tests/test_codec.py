"""
Property-based tests for the codec facade (qbc/codec.py).

Key invariants tested:
    1. decode(encode(t)).text == canonicalize(t) at confidence 1.0, on every
       built-in lattice
    2. A run of k identical characters costs one move/line plus k-1 ticks
    3. The SVG route decodes identically to the package route
    4. An unsupported major version is always refused
"""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from qbc.codec import (
    decode_json,
    decode_package,
    decode_svg,
    encode_to_package,
    encode_to_svg,
    resolve_lattice,
)
from qbc.crypto import content_hash
from qbc.errors import UnknownLatticeError, UnsupportedVersionError
from qbc.lattice import build_registry
from qbc.normalization import canonicalize
from qbc.package import to_json

REGISTRY = build_registry()
LATTICE_KEYS = REGISTRY.keys()
STAMP = "2024-01-01T00:00:00Z"


@st.composite
def lattice_and_text(draw):
    key = draw(st.sampled_from(LATTICE_KEYS))
    alphabet = sorted(REGISTRY.get(key).alphabet)
    return key, draw(st.text(alphabet=alphabet, max_size=40))


class TestFacade:

    def test_hello_scenario(self):
        """Test HELLO on G1 end to end."""
        package = encode_to_package("HELLO", "G1", registry=REGISTRY, created_at=STAMP)
        assert [e.type for e in package.path] == ["move", "line", "line", "tick", "line"]
        result = decode_package(package, registry=REGISTRY)
        assert result.text == "HELLO"
        assert result.confidence == 1.0

    def test_raw_text_is_canonicalized(self):
        """Test that the hash covers the canonical text, not the raw text."""
        package = encode_to_package("  Hello, World  ", "G1", registry=REGISTRY, created_at=STAMP)
        assert package.metadata.content_hash == content_hash("HELLO WORLD")
        assert decode_package(package, registry=REGISTRY).text == "HELLO WORLD"

    def test_default_lattice(self):
        """Test that omitting the key uses the registry default."""
        package = encode_to_package("HI", registry=REGISTRY, created_at=STAMP)
        assert package.lattice_key == "G1"
        assert resolve_lattice(registry=REGISTRY).lattice_key == "G1"

    def test_unknown_lattice(self):
        """Test encoding on an unregistered lattice."""
        with pytest.raises(UnknownLatticeError):
            encode_to_package("HI", "ZZ", registry=REGISTRY)

    def test_unknown_lattice_on_decode(self):
        """Test decoding a package for an unregistered lattice."""
        data = encode_to_package("HI", "G1", registry=REGISTRY, created_at=STAMP).to_dict()
        data["metadata"]["lattice_key"] = data["path"]["lattice_key"] = "ZZ"
        with pytest.raises(UnknownLatticeError):
            decode_json(json.dumps(data), registry=REGISTRY)

    def test_created_at_defaults_to_now(self):
        """Test the default UTC timestamp."""
        package = encode_to_package("HI", "G1", registry=REGISTRY)
        assert package.metadata.created_at.endswith("Z")

    def test_encode_to_svg(self):
        """Test the one-call SVG route."""
        svg = encode_to_svg("HI", "G2", registry=REGISTRY, created_at=STAMP)
        assert decode_svg(svg, registry=REGISTRY).text == "HI"


class TestCodecProperties:

    @given(lattice_and_text())
    @settings(max_examples=150, deadline=None)
    def test_round_trip(self, case):
        """Test decode(encode(t)) == canonicalize(t) at confidence 1.0."""
        key, raw = case
        package = encode_to_package(raw, key, registry=REGISTRY, created_at=STAMP)
        result = decode_json(to_json(package), registry=REGISTRY)
        assert result.text == canonicalize(REGISTRY.get(key), raw)
        assert result.confidence == 1.0
        assert result.integrity_ok is True

    @given(st.sampled_from(LATTICE_KEYS), st.integers(min_value=1, max_value=12))
    @settings(max_examples=60, deadline=None)
    def test_repeat_count(self, key, k):
        """Test that a run of k characters is one move plus k-1 ticks."""
        char = sorted(REGISTRY.get(key).anchors)[0]
        package = encode_to_package(char * k, key, registry=REGISTRY, created_at=STAMP)
        assert package.path.counts() == {"move": 1, "line": 0, "tick": k - 1}
        assert decode_package(package, registry=REGISTRY).text == char * k

    @given(lattice_and_text())
    @settings(max_examples=60, deadline=None)
    def test_svg_equivalence(self, case):
        """Test that the SVG route decodes like the package route."""
        key, raw = case
        package = encode_to_package(raw, key, registry=REGISTRY, created_at=STAMP)
        svg = encode_to_svg(raw, key, registry=REGISTRY, created_at=STAMP)
        assert decode_svg(svg, registry=REGISTRY) == decode_package(package, registry=REGISTRY)

    @given(st.integers(min_value=2, max_value=99), st.integers(min_value=0, max_value=99))
    @settings(max_examples=50, deadline=None)
    def test_unsupported_major_always_refused(self, major, minor):
        """Test that any major above 1 is refused."""
        data = encode_to_package("HI", "G1", registry=REGISTRY, created_at=STAMP).to_dict()
        data["version"] = f"{major}.{minor}"
        with pytest.raises(UnsupportedVersionError):
            decode_json(json.dumps(data), registry=REGISTRY)
