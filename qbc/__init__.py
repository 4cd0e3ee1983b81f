"""QBC lattice text codec: text to geometric glyph paths and back."""

from .errors import (
    QBCError,
    UnknownLatticeError,
    DuplicateLatticeError,
    LatticeDefinitionError,
    MalformedPackageError,
    UnsupportedVersionError,
    NoEmbeddedMetadataError,
    MalformedPathError,
)
from .lattice import VERTEX_EPSILON, Coord, Lattice, LatticeRegistry, build_registry, default_registry
from .normalization import canonicalize
from .encoding import DecodeResult, DecodeState, EncodedPath, PathDecoder, PathEvent, encode
from .crypto import content_hash
from .package import GlyphPackage, RenderStyle, from_json, from_svg, to_json, to_svg
from .codec import (
    decode_binary,
    decode_json,
    decode_package,
    decode_svg,
    encode_to_binary,
    encode_to_package,
    encode_to_svg,
)
from .composite import CompositeGlyph, decode_composite, encode_composite

__version__ = "1.0.0"

__all__: list[str] = [
    "QBCError",
    "UnknownLatticeError",
    "DuplicateLatticeError",
    "LatticeDefinitionError",
    "MalformedPackageError",
    "UnsupportedVersionError",
    "NoEmbeddedMetadataError",
    "MalformedPathError",
    "VERTEX_EPSILON",
    "Coord",
    "Lattice",
    "LatticeRegistry",
    "build_registry",
    "default_registry",
    "canonicalize",
    "DecodeResult",
    "DecodeState",
    "EncodedPath",
    "PathDecoder",
    "PathEvent",
    "encode",
    "content_hash",
    "GlyphPackage",
    "RenderStyle",
    "from_json",
    "from_svg",
    "to_json",
    "to_svg",
    "decode_binary",
    "decode_json",
    "decode_package",
    "decode_svg",
    "encode_to_binary",
    "encode_to_package",
    "encode_to_svg",
    "CompositeGlyph",
    "decode_composite",
    "encode_composite",
]
