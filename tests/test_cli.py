"""
Tests for the qbc command line (qbc/cli.py).
"""

import json
import logging

import pytest

from qbc.cli import EXIT_ERROR, EXIT_OK, EXIT_PARTIAL, main
from qbc.codec import encode_to_package
from qbc.crypto import content_hash
from qbc.schema_version import (
    HASH_ALGORITHM_VERSION,
    JSON_CANON_SCHEMA_VERSION,
    PACKAGE_VERSION,
    get_version_string,
)


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("QBC_DEFAULT_LATTICE", "QBC_LATTICE_FILE", "QBC_UNRESOLVED_PENALTY", "QBC_JSON_INDENT"):
        monkeypatch.delenv(name, raising=False)


class TestEncodeDecode:

    @pytest.mark.parametrize("fmt,suffix", [("json", "json"), ("svg", "svg"), ("binary", "qbc"),
                                            ("composite", "json")])
    def test_round_trip(self, capsys, tmp_path, fmt, suffix):
        """Test encode to a file then decode it, for every output format."""
        target = tmp_path / f"glyph.{suffix}"
        assert main(["encode", "Hello world", "--format", fmt, "--output", str(target)]) == EXIT_OK
        assert target.exists()
        capsys.readouterr()

        assert main(["decode", str(target)]) == EXIT_OK
        out = capsys.readouterr()
        assert out.out.strip() == "HELLO WORLD"
        assert "confidence=1.0" in out.err

    def test_encode_to_stdout(self, capsys):
        """Test that encode without --output prints the JSON package."""
        assert main(["encode", "hi", "--lattice", "G2"]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["metadata"]["lattice_key"] == "G2"

    def test_partial_decode_exit_code(self, capsys, tmp_path, registry):
        """Test that an unresolved vertex exits 2 with a placeholder and a note."""
        data = encode_to_package("HI", "G1", registry=registry).to_dict()
        data["path"]["events"][1].update({"x": 0.01, "y": 0.99})
        target = tmp_path / "partial.json"
        target.write_text(json.dumps(data), encoding="utf-8")

        assert main(["decode", str(target)]) == EXIT_PARTIAL
        out = capsys.readouterr()
        assert out.out.strip() == "H\ufffd"
        assert "[NOTE]" in out.err

    def test_integrity_failure_exit_code(self, capsys, tmp_path, registry):
        """Test that a content hash mismatch exits 2 with a warning."""
        data = encode_to_package("HI", "G1", registry=registry).to_dict()
        data["metadata"]["content_hash"] = content_hash("HO")
        target = tmp_path / "tampered.json"
        target.write_text(json.dumps(data), encoding="utf-8")

        assert main(["decode", str(target)]) == EXIT_PARTIAL
        assert "[WARN] integrity check failed" in capsys.readouterr().err


class TestErrors:
    """Failures print [FAIL] <kind>: <message> and exit 1."""

    def test_unknown_lattice(self, capsys):
        """Test an unregistered lattice key."""
        assert main(["encode", "hi", "--lattice", "ZZ"]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] unknown_lattice:")

    def test_missing_file(self, capsys, tmp_path):
        """Test decoding a file that does not exist."""
        assert main(["decode", str(tmp_path / "missing.json")]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] io:")

    def test_unsupported_version(self, capsys, tmp_path):
        """Test a package from an unknown major version."""
        target = tmp_path / "future.json"
        target.write_text(json.dumps({"version": "9.0"}), encoding="utf-8")
        assert main(["decode", str(target)]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] unsupported_version:")

    def test_svg_without_metadata(self, capsys, tmp_path):
        """Test an SVG that carries no embedded package."""
        target = tmp_path / "plain.svg"
        target.write_text('<svg xmlns="http://www.w3.org/2000/svg"/>', encoding="utf-8")
        assert main(["decode", str(target)]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] no_embedded_metadata:")

    def test_deeply_nested_json(self, capsys, tmp_path):
        """Test that pathologically nested JSON fails as a malformed package."""
        target = tmp_path / "nested.json"
        target.write_text("[" * 200000 + "]" * 200000, encoding="utf-8")
        assert main(["decode", str(target)]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] malformed_package:")

    def test_invalid_config(self, capsys, monkeypatch):
        """Test that an out-of-range setting is reported before any command runs."""
        monkeypatch.setenv("QBC_UNRESOLVED_PENALTY", "5")
        assert main(["hash", "hi"]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] config:")

    def test_invalid_chunk_size(self, capsys):
        """Test a negative composite chunk size."""
        assert main(["encode", "hi", "--format", "composite", "--chunk-size", "-1"]) == EXIT_ERROR
        assert capsys.readouterr().err.startswith("[FAIL] invalid_argument:")


class TestInfoCommands:

    def test_hash(self, capsys):
        """Test that hash prints the content hash of the canonical text."""
        assert main(["hash", "  hello "]) == EXIT_OK
        assert capsys.readouterr().out.strip() == content_hash("HELLO")

    def test_inspect(self, capsys):
        """Test the inspect report for text needing substitutions."""
        assert main(["inspect", "Café!"]) == EXIT_OK
        report = json.loads(capsys.readouterr().out)
        assert report["canonical"] == "CAFE"
        assert report["content_hash"] == content_hash("CAFE")
        assert report["events"] == {"move": 1, "line": 3, "tick": 0}
        assert [s["char"] for s in report["substitutions"]] == ["É", "!"]

    def test_inspect_reports_versions(self, capsys):
        """Test that inspect names the package format and hash algorithm versions."""
        assert main(["inspect", "hi"]) == EXIT_OK
        versions = json.loads(capsys.readouterr().out)["versions"]
        assert versions["package"] == PACKAGE_VERSION
        assert versions["hash_algorithm"] == HASH_ALGORITHM_VERSION
        assert versions["json_canon"] == JSON_CANON_SCHEMA_VERSION

    def test_verbose_logs_versions(self, caplog):
        """Test that -v logs the command with the version string."""
        caplog.set_level(logging.DEBUG, logger="qbc.cli")
        assert main(["-v", "hash", "hi"]) == EXIT_OK
        assert get_version_string() in caplog.text

    def test_lattices(self, capsys):
        """Test that lattices lists every built-in key and marks the default."""
        assert main(["lattices"]) == EXIT_OK
        out = capsys.readouterr().out
        for key in ("G1", "G2", "C7", "M3"):
            assert key in out
        assert "*" in out

    def test_no_command_prints_help(self, capsys):
        """Test that running with no command prints usage."""
        assert main([]) == EXIT_OK
        assert "usage" in capsys.readouterr().out.lower()
