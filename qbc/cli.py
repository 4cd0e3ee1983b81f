#!/usr/bin/env python3
"""
qbc - lattice text codec command line

Usage:
    qbc encode TEXT [--lattice KEY] [--format json|svg|binary|composite] [--output FILE]
    qbc decode FILE
    qbc inspect TEXT [--lattice KEY]
    qbc lattices
    qbc hash TEXT [--lattice KEY]

Exit codes:
    0  success (decode: exact, integrity verified)
    1  error
    2  decode returned a partial result or failed its integrity check

Settings come from QBC_* environment variables; a .env file in the working
directory is loaded first.
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional, Union

from dotenv import find_dotenv, load_dotenv

from qbc.codec import decode_binary, decode_json, decode_svg, encode_to_package, resolve_lattice
from qbc.composite import composite_from_json, composite_to_json, decode_composite, encode_composite
from qbc.config import QBCConfig
from qbc.crypto.hashing import content_hash, package_digest
from qbc.encoding.encoder import encode
from qbc.errors import QBCError
from qbc.lattice.registry import default_registry
from qbc.normalization.canon import canonicalize, unsupported_characters
from qbc.package.binary import MAGIC, to_binary
from qbc.package.json_codec import to_json
from qbc.package.svg_codec import RenderStyle, to_svg
from qbc.schema_version import get_full_version_metadata, get_version_string

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2

FORMATS = ("json", "svg", "binary", "composite")
COMPOSITE_MARKER = re.compile(r'"kind"\s*:\s*"composite"')


def _fail(kind: str, message: str) -> int:
    print(f"[FAIL] {kind}: {message}", file=sys.stderr)
    return EXIT_ERROR


def _emit(payload: Union[str, bytes], output: Optional[str]) -> None:
    if output:
        mode = "wb" if isinstance(payload, bytes) else "w"
        encoding = None if isinstance(payload, bytes) else "utf-8"
        with open(output, mode, encoding=encoding) as f:
            f.write(payload)
        print(f"[OK] wrote {output}", file=sys.stderr)
    elif isinstance(payload, bytes):
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        print(payload)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #

def cmd_encode(args, config: QBCConfig) -> int:
    lattice_key = args.lattice or config.default_lattice
    if args.format == "composite":
        composite = encode_composite(args.text, args.chunk_size or config.composite_chunk_size, lattice_key)
        _emit(composite_to_json(composite, config.json_indent), args.output)
        return EXIT_OK

    package = encode_to_package(args.text, lattice_key)
    if args.format == "svg":
        style = RenderStyle(size=config.svg_size)
        payload: Union[str, bytes] = to_svg(package, resolve_lattice(lattice_key), style)
    elif args.format == "binary":
        payload = to_binary(package.path)
    else:
        payload = to_json(package, config.json_indent)
    _emit(payload, args.output)
    return EXIT_OK


def _decode_file(raw: bytes, penalty: float):
    if raw.startswith(MAGIC):
        return decode_binary(raw, unresolved_penalty=penalty)
    text = raw.decode("utf-8-sig").strip()
    if text.startswith("<"):
        return decode_svg(text, unresolved_penalty=penalty)
    if text.startswith("{") and COMPOSITE_MARKER.search(text):
        return decode_composite(composite_from_json(text), unresolved_penalty=penalty)
    return decode_json(text, unresolved_penalty=penalty)


def cmd_decode(args, config: QBCConfig) -> int:
    raw = Path(args.file).read_bytes()
    result = _decode_file(raw, config.unresolved_penalty)

    print(result.text)
    print(f"[INFO] lattice={result.lattice_key} confidence={result.confidence} state={result.state.value}",
          file=sys.stderr)
    for note in result.notes:
        print(f"[NOTE] {note}", file=sys.stderr)

    if result.integrity_ok is False:
        print("[WARN] integrity check failed", file=sys.stderr)
        return EXIT_PARTIAL
    if not result.exact:
        return EXIT_PARTIAL
    return EXIT_OK


def cmd_inspect(args, config: QBCConfig) -> int:
    lattice = resolve_lattice(args.lattice or config.default_lattice)
    canonical = canonicalize(lattice, args.text)
    package = encode_to_package(args.text, lattice.lattice_key)
    report = {
        "lattice": lattice.summary(),
        "canonical": canonical,
        "content_hash": content_hash(canonical),
        "package_digest": package_digest(package.to_dict()),
        "events": encode(lattice, canonical).counts(),
        "substitutions": [s._asdict() for s in unsupported_characters(lattice, args.text)],
        "versions": get_full_version_metadata(),
    }
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return EXIT_OK


def cmd_lattices(args, config: QBCConfig) -> int:
    registry = default_registry()
    print(f"{'KEY':<6} {'DIM':<4} {'VER':>3} {'VERTICES':>8}  NAME")
    for lattice in registry:
        marker = " *" if lattice.lattice_key == registry.default_key else ""
        print(f"{lattice.lattice_key:<6} {lattice.dimension:<4} {lattice.version:>3} "
              f"{len(lattice):>8}  {lattice.name}{marker}")
    return EXIT_OK


def cmd_hash(args, config: QBCConfig) -> int:
    lattice = resolve_lattice(args.lattice or config.default_lattice)
    print(content_hash(canonicalize(lattice, args.text)))
    return EXIT_OK


COMMANDS = {
    "encode": cmd_encode,
    "decode": cmd_decode,
    "inspect": cmd_inspect,
    "lattices": cmd_lattices,
    "hash": cmd_hash,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qbc",
        description="Lattice text codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    p_encode = subparsers.add_parser("encode", help="Encode text into a glyph")
    p_encode.add_argument("text", help="Text to encode")
    p_encode.add_argument("--lattice", "-l", help="Lattice key (default: QBC_DEFAULT_LATTICE)")
    p_encode.add_argument("--format", "-f", choices=FORMATS, default="json", help="Output format")
    p_encode.add_argument("--chunk-size", type=int, help="Characters per chunk for --format composite")
    p_encode.add_argument("--output", "-o", help="Output file (default: stdout)")

    p_decode = subparsers.add_parser("decode", help="Decode a JSON, SVG, binary or composite glyph file")
    p_decode.add_argument("file", help="Glyph file")

    p_inspect = subparsers.add_parser("inspect", help="Show canonical form, hashes and substitutions")
    p_inspect.add_argument("text", help="Text to inspect")
    p_inspect.add_argument("--lattice", "-l", help="Lattice key")

    subparsers.add_parser("lattices", help="List registered lattices")

    p_hash = subparsers.add_parser("hash", help="Print the content hash of the canonical text")
    p_hash.add_argument("text", help="Text to hash")
    p_hash.add_argument("--lattice", "-l", help="Lattice key")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the qbc CLI."""
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    try:
        config = QBCConfig.from_env()
        config.validate()
    except ValueError as e:
        return _fail("config", str(e))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.logging_level,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    logger.debug("qbc %s (%s)", args.command, get_version_string())
    try:
        return COMMANDS[args.command](args, config)
    except QBCError as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        return _fail(e.kind, str(e))
    except (OSError, UnicodeDecodeError) as e:
        return _fail("io", str(e))
    except ValueError as e:
        return _fail("invalid_argument", str(e))


if __name__ == "__main__":
    sys.exit(main())
