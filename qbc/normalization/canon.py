"""Canonicalization of free text into a lattice alphabet.

canonicalize(): the canonical form that is encoded and hashed.

Rules (in order):
- Trim surrounding whitespace, compose to NFC.
- Apply the lattice casing (upper by default).
- Characters outside the alphabet: whitespace becomes the separator; others
  go through _SUBSTITUTIONS, then NFKD with combining marks removed
  (accented Latin letters fold to their base letter).
- Anything still unsupported becomes the separator, never dropped.
- Each run of separators collapses to one, so "A \\t\\n B" and "A, B" both
  give "A B".
- Separators at either edge are trimmed so the output is a fixed point:
  canonicalize(L, canonicalize(L, t)) == canonicalize(L, t).
"""
import re
import unicodedata
from functools import lru_cache
from typing import List, NamedTuple, Optional

from qbc.lattice.model import Lattice

_SUBSTITUTIONS = {
    # letters without a decomposition
    "Æ": "AE", "æ": "ae", "Œ": "OE", "œ": "oe",
    "Ø": "O", "ø": "o", "Ð": "D", "ð": "d", "Đ": "D", "đ": "d",
    "Þ": "TH", "þ": "th", "Ł": "L", "ł": "l", "ß": "ss", "ı": "i",
    # typographic punctuation to ASCII
    "‘": "'", "’": "'", "‚": "'", "′": "'",
    "“": '"', "”": '"', "„": '"', "«": '"', "»": '"',
    "‐": "-", "‑": "-", "‒": "-", "–": "-", "—": "-", "−": "-",
    "…": "...", "·": ".", "×": "*", "÷": "/",
    "¿": "?", "¡": "!",
}


class Substitution(NamedTuple):
    """One raw character that did not map to itself."""

    index: int
    char: str
    replacement: str


@lru_cache(maxsize=4096)
def _fold(ch: str) -> str:
    """Nearest visual/phonetic equivalent of a single character."""
    if ch in _SUBSTITUTIONS:
        return _SUBSTITUTIONS[ch]
    decomposed = unicodedata.normalize("NFKD", ch)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _canonical_char(lattice: Lattice, ch: str) -> str:
    if ch in lattice:
        return ch
    if ch.isspace():
        return lattice.separator
    folded = lattice.rules.apply_casing(_fold(ch))
    if folded and all(c in lattice for c in folded):
        return folded
    return lattice.separator


def _prepare(lattice: Lattice, raw_text: Optional[str]) -> str:
    if not raw_text:
        return ""
    # NFC first so "A" + U+0301 folds like the precomposed letter.
    text = unicodedata.normalize("NFC", raw_text.strip())
    return lattice.rules.apply_casing(text)


def canonicalize(lattice: Lattice, raw_text: Optional[str]) -> str:
    """Normalize raw text into the lattice alphabet. Never fails."""
    text = _prepare(lattice, raw_text)
    if not text:
        return ""
    out = "".join(_canonical_char(lattice, ch) for ch in text)
    sep = lattice.separator
    out = re.sub(re.escape(sep) + "{2,}", sep, out)
    return out.strip(sep)


def unsupported_characters(lattice: Lattice, raw_text: Optional[str]) -> List[Substitution]:
    """
    List the characters canonicalize() rewrote, after trimming and casing.

    Indices refer to the trimmed, cased text. Whitespace mapped to the
    separator is not reported.
    """
    text = _prepare(lattice, raw_text)
    found = []
    for i, ch in enumerate(text):
        if ch in lattice or ch.isspace():
            continue
        found.append(Substitution(i, ch, _canonical_char(lattice, ch)))
    return found


def is_canonical(lattice: Lattice, text: str) -> bool:
    return canonicalize(lattice, text) == text
