from .events import EVENT_LINE, EVENT_MOVE, EVENT_TICK, EncodedPath, PathEvent
from .encoder import encode, tick_axis
from .decoder import (
    DEFAULT_UNRESOLVED_PENALTY,
    UNRESOLVED_PLACEHOLDER,
    DecodeResult,
    DecodeState,
    PathDecoder,
)
