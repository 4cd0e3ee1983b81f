"""
Compact binary form of an encoded path.

Layout (big-endian)::

    magic        3s   b"QBC"
    version      B    BINARY_FORMAT_VERSION
    dimension    B    2 or 3
    key_length   B
    lattice_key  key_length bytes, UTF-8
    event_count  I
    events       type B, x H, y H, [z H], [axis H if tick]

Coordinates are quantized to 16 bits over [0, 1] and tick axes to 16 bits
over [0, 2*pi). The quantization error (< 8e-6) is far below VERTEX_EPSILON,
so a decoded binary path resolves to the same characters.
"""

import logging
import math
import struct
from typing import List, Tuple

from qbc.encoding.events import EVENT_TYPES, EncodedPath, PathEvent
from qbc.errors import MalformedPathError, UnsupportedVersionError
from qbc.lattice.model import DIMENSION_2D, DIMENSION_3D
from qbc.schema_version import BINARY_FORMAT_VERSION

logger = logging.getLogger(__name__)

MAGIC = b"QBC"
_HEADER = struct.Struct(">3sBBB")
_COUNT = struct.Struct(">I")
_U16 = struct.Struct(">H")

_QMAX = 0xFFFF
_TAU = 2 * math.pi
_DIMENSION_CODES = {DIMENSION_2D: 2, DIMENSION_3D: 3}
_TYPE_CODES = {name: code for code, name in enumerate(EVENT_TYPES)}


def _quantize(value: float, index: int) -> int:
    if not (0.0 <= value <= 1.0):
        raise MalformedPathError(f"coordinate {value} outside [0, 1] cannot be packed", index)
    return round(value * _QMAX)


def _quantize_axis(axis: float) -> int:
    return round((axis % _TAU) / _TAU * (_QMAX + 1)) % (_QMAX + 1)


def to_binary(path: EncodedPath) -> bytes:
    """Pack an encoded path. Raises MalformedPathError for out-of-range coordinates."""
    key = path.lattice_key.encode("utf-8")
    if len(key) > 255:
        raise MalformedPathError(f"lattice key too long for binary format: {path.lattice_key!r}")
    parts = [
        _HEADER.pack(MAGIC, BINARY_FORMAT_VERSION, _DIMENSION_CODES[path.dimension], len(key)),
        key,
        _COUNT.pack(len(path.events)),
    ]
    for index, event in enumerate(path.events):
        parts.append(bytes([_TYPE_CODES[event.type]]))
        for value in event.coord.as_tuple():
            parts.append(_U16.pack(_quantize(value, index)))
        if event.is_tick:
            parts.append(_U16.pack(_quantize_axis(event.axis)))
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise MalformedPathError(
                f"binary path truncated at byte {self.offset} (need {size} more bytes)"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))


def from_binary(data: bytes) -> EncodedPath:
    """
    Unpack a binary path.

    Raises:
        MalformedPathError: Bad magic, truncated data, or invalid codes.
        UnsupportedVersionError: Unknown binary format version.
    """
    reader = _Reader(bytes(data))
    magic, version, dimension_code, key_length = reader.unpack(_HEADER)
    if magic != MAGIC:
        raise MalformedPathError(f"not a QBC binary path (magic {magic!r})")
    if version != BINARY_FORMAT_VERSION:
        raise UnsupportedVersionError(str(version), str(BINARY_FORMAT_VERSION))

    dimensions = {code: name for name, code in _DIMENSION_CODES.items()}
    if dimension_code not in dimensions:
        raise MalformedPathError(f"unknown dimension code {dimension_code}")
    dimension = dimensions[dimension_code]
    try:
        lattice_key = reader.take(key_length).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPathError("lattice key is not valid UTF-8") from e
    if not lattice_key:
        raise MalformedPathError("binary path has an empty lattice key")
    (count,) = reader.unpack(_COUNT)

    axes = 3 if dimension == DIMENSION_3D else 2
    events: List[PathEvent] = []
    for index in range(count):
        (type_code,) = reader.take(1)
        if type_code >= len(EVENT_TYPES):
            raise MalformedPathError(f"unknown event type code {type_code}", index)
        values = [reader.unpack(_U16)[0] / _QMAX for _ in range(axes)]
        axis = None
        if EVENT_TYPES[type_code] == "tick":
            axis = reader.unpack(_U16)[0] / (_QMAX + 1) * _TAU
        z = values[2] if axes == 3 else None
        events.append(PathEvent(EVENT_TYPES[type_code], values[0], values[1], z, axis))

    if reader.offset != len(reader.data):
        raise MalformedPathError(f"{len(reader.data) - reader.offset} trailing bytes after last event")
    logger.debug("unpacked %d events for %s from %d bytes", count, lattice_key, len(reader.data))
    return EncodedPath(tuple(events), lattice_key, dimension)


__all__ = [
    "MAGIC",
    "to_binary",
    "from_binary",
]
