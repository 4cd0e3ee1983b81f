"""
Tests for qbc/encoding/encoder.py and the path event model.
"""

import math

import pytest

from qbc.encoding import EncodedPath, PathEvent, encode, tick_axis
from qbc.errors import MalformedPathError
from qbc.lattice import Coord


class TestEncode:
    """Event emission rules."""

    def test_hello(self, g1):
        """Test the HELLO event sequence on G1."""
        path = encode(g1, "HELLO")
        assert [e.type for e in path] == ["move", "line", "line", "tick", "line"]
        assert [e.coord for e in path] == [
            g1.coord_for("H"),
            g1.coord_for("E"),
            g1.coord_for("L"),
            g1.coord_for("L"),
            g1.coord_for("O"),
        ]
        assert path.lattice_key == "G1"
        assert path.dimension == "2D"

    def test_hello_tick_axis(self, g1):
        """Test that the tick axis is the E to L direction turned a quarter."""
        tick = encode(g1, "HELLO").events[3]
        e, l = g1.coord_for("E"), g1.coord_for("L")
        expected = (math.atan2(l.y - e.y, l.x - e.x) + math.pi / 2) % (2 * math.pi)
        assert tick.axis == pytest.approx(expected)

    def test_empty_text(self, g1):
        """Test that empty text gives an empty path."""
        path = encode(g1, "")
        assert len(path) == 0
        assert path.counts() == {"move": 0, "line": 0, "tick": 0}

    def test_single_character(self, g1):
        """Test that one character is a single move."""
        path = encode(g1, "A")
        assert len(path) == 1
        assert path.events[0] == PathEvent.move(g1.coord_for("A"))

    @pytest.mark.parametrize("k", [2, 3, 7])
    def test_run_emits_one_tick_per_repeat(self, g1, k):
        """Test that a run of k characters adds k-1 ticks."""
        path = encode(g1, "B" + "A" * k)
        assert path.counts() == {"move": 1, "line": 1, "tick": k - 1}

    def test_repeat_at_start_uses_default_axis(self, g1):
        """Test the axis when there is no previous vertex to travel from."""
        path = encode(g1, "AAA")
        assert [e.type for e in path] == ["move", "tick", "tick"]
        assert all(e.axis == pytest.approx(math.pi / 2) for e in path.events[1:])

    def test_outside_preference_flips_axis(self, g2):
        """Test that inside_boundary_preference=False turns the other way."""
        path = encode(g2, "AA")
        assert path.events[1].axis == pytest.approx(3 * math.pi / 2)

    def test_only_ticks_carry_axis(self, g1):
        """Test that move and line events never carry an axis."""
        for event in encode(g1, "HELLO WORLD"):
            assert (event.axis is not None) == event.is_tick

    def test_separator_is_a_vertex(self, g1):
        """Test that the separator is drawn at its own anchor."""
        path = encode(g1, "A B")
        assert path.events[1].coord == g1.separator_anchor

    def test_3d_events_carry_z(self, c7):
        """Test that 3D lattices emit z on every event."""
        path = encode(c7, "HI, ALL")
        assert path.dimension == "3D"
        assert all(e.z is not None for e in path)

    def test_unsupported_character_raises(self, g1):
        """Test that the encoder refuses text that was not canonicalized."""
        with pytest.raises(ValueError, match="canonicalize the text first"):
            encode(g1, "hello")


class TestTickAxis:

    def test_axis_is_normalized(self, g1):
        """Test that axes fall in [0, 2*pi)."""
        axis = tick_axis(g1, Coord(1.0, 0.0), Coord(0.0, 0.0))
        assert 0.0 <= axis < 2 * math.pi
        assert axis == pytest.approx(3 * math.pi / 2)

    def test_degenerate_travel_uses_default(self, m3):
        """Test a purely vertical 3D move."""
        axis = tick_axis(m3, Coord(0.5, 0.5, 0.1), Coord(0.5, 0.5, 0.9))
        assert axis == pytest.approx(math.pi / 2)


class TestPathModel:
    """PathEvent / EncodedPath dict forms."""

    def test_event_to_dict_omits_absent_fields(self):
        """Test that z and axis are left out when absent."""
        assert PathEvent.move(Coord(0.5, 0.25)).to_dict() == {"type": "move", "x": 0.5, "y": 0.25}

    def test_tick_requires_axis(self):
        """Test that a tick without an axis is malformed."""
        with pytest.raises(MalformedPathError, match="requires an axis"):
            PathEvent.from_dict({"type": "tick", "x": 0.1, "y": 0.1}, 3)

    def test_line_must_not_carry_axis(self):
        """Test that a line with an axis is malformed."""
        with pytest.raises(MalformedPathError, match="must not carry an axis"):
            PathEvent.from_dict({"type": "line", "x": 0.1, "y": 0.1, "axis": 1.0})

    def test_unknown_event_type(self):
        """Test an event type outside move/line/tick."""
        with pytest.raises(MalformedPathError, match="unknown event type"):
            PathEvent.from_dict({"type": "arc", "x": 0.1, "y": 0.1})

    def test_error_carries_index(self):
        """Test that event errors name their index."""
        with pytest.raises(MalformedPathError) as exc_info:
            PathEvent.from_dict({"type": "move", "x": "a", "y": 0.1}, 4)
        assert exc_info.value.index == 4
        assert str(exc_info.value).startswith("event 4:")

    def test_path_dict_round_trip(self, g1):
        """Test EncodedPath.to_dict then from_dict."""
        path = encode(g1, "BOOK")
        assert EncodedPath.from_dict(path.to_dict()) == path

    def test_path_rejects_bad_dimension(self):
        """Test an unknown dimension code."""
        with pytest.raises(MalformedPathError, match="dimension"):
            EncodedPath.from_dict({"events": [], "lattice_key": "G1", "dimension": "4D"})

    def test_tick_end(self):
        """Test the far end of a rendered tick mark."""
        event = PathEvent.tick(Coord(0.5, 0.5), math.pi / 2)
        x, y = event.tick_end(0.1)
        assert x == pytest.approx(0.5)
        assert y == pytest.approx(0.6)
