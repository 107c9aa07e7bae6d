"""Tests for snapshot log parsing."""

import pytest
import numpy as np
from py_boids.core.errors import SnapshotParseError
from py_boids.core.snapshot_parser import (
    AgentPosition, Snapshot, parse_snapshot_line, parse_snapshots, parse_snapshot_text
)

SYNTHETIC_EASY = "10.0:20.0,30.0;40.0,50.0;"
SYNTHETIC_MEDIUM = "0.01:0,3234.43;-20.4,887;"


class TestSingleLine:
    """Test parsing of individual snapshot lines."""

    def test_single_agent(self):
        """One pair yields one position."""
        snapshots = parse_snapshots(["10.0:20.0,30.0;"])

        assert len(snapshots) == 1
        assert snapshots[0].timestamp == 10.0
        assert snapshots[0].positions == (AgentPosition(0, 20.0, 30.0),)

    def test_multiple_agents_keep_order(self):
        """Pairs are read left to right and indexed in that order."""
        snapshots = parse_snapshots([SYNTHETIC_EASY])

        assert len(snapshots) == 1
        snap = snapshots[0]
        assert snap.timestamp == 10.0
        assert [(p.x, p.y) for p in snap.positions] == [(20.0, 30.0), (40.0, 50.0)]
        assert [p.agent_index for p in snap.positions] == [0, 1]

    def test_signed_and_integer_coordinates(self):
        """Negative and integer numbers are accepted."""
        snap = parse_snapshot_line(SYNTHETIC_MEDIUM)

        assert snap.timestamp == pytest.approx(0.01)
        assert [(p.x, p.y) for p in snap.positions] == [(0.0, 3234.43), (-20.4, 887.0)]

    def test_negative_timestamp_and_exponent(self):
        """Exponents and negative timestamps parse as floats."""
        snap = parse_snapshot_line("-1.5:1e2,-2.5E-1;")

        assert snap.timestamp == -1.5
        assert snap.positions[0] == AgentPosition(0, 100.0, -0.25)

    def test_no_agents(self):
        """A timestamp with no pairs is an empty snapshot."""
        snap = parse_snapshot_line("3.5:")

        assert snap.timestamp == 3.5
        assert snap.positions == ()
        assert len(snap) == 0
        assert snap.as_array().shape == (0, 2)

    def test_surrounding_whitespace_ignored(self):
        """Trailing newlines and carriage returns do not matter."""
        snap = parse_snapshot_line("1:2,3;\r\n")
        assert snap.positions == (AgentPosition(0, 2.0, 3.0),)

    def test_as_array(self):
        """Positions convert to an (n, 2) array."""
        snap = parse_snapshot_line(SYNTHETIC_EASY)
        np.testing.assert_array_equal(snap.as_array(), [[20.0, 30.0], [40.0, 50.0]])

    def test_snapshot_is_immutable(self):
        """Snapshots cannot be changed after parsing."""
        snap = parse_snapshot_line(SYNTHETIC_EASY)
        with pytest.raises(AttributeError):
            snap.timestamp = 5.0


class TestMalformedInput:
    """Test parse failures."""

    @pytest.mark.parametrize("line", [
        "garbage",
        "10.0",
        "10.0:20.0,30.0",       # Missing pair terminator
        "10.0:20.0;30.0;",      # Wrong separator
        "10.0:20.0,30.0;junk",
        "abc:1,2;",
    ])
    def test_invalid_line(self, line):
        """Lines outside the grammar are rejected."""
        with pytest.raises(SnapshotParseError):
            parse_snapshot_line(line)

    def test_error_reports_line_index(self):
        """The failing line's 0-based index is reported."""
        lines = ["0:1,1;", "1:2,2;", "oops", "3:4,4;"]

        with pytest.raises(SnapshotParseError) as excinfo:
            parse_snapshots(lines)

        assert excinfo.value.line_index == 2
        assert "line 2" in str(excinfo.value)

    def test_parse_error_is_value_error(self):
        """Callers catching ValueError also catch parse failures."""
        with pytest.raises(ValueError):
            parse_snapshots(["nope"])


class TestBlankLines:
    """Test blank line handling."""

    def test_trailing_blank_line_ignored(self):
        """A blank last line is allowed."""
        snapshots = parse_snapshots(["0:1,1;", "1:2,2;", ""])
        assert len(snapshots) == 2

    def test_interior_blank_line_rejected(self):
        """A blank line that is not last fails the parse."""
        with pytest.raises(SnapshotParseError) as excinfo:
            parse_snapshots(["0:1,1;", "", "1:2,2;"])
        assert excinfo.value.line_index == 1

    def test_empty_input(self):
        """No lines means no snapshots."""
        assert parse_snapshots([]) == []

    def test_text_document(self):
        """A whole document splits into lines."""
        snapshots = parse_snapshot_text("0:1,1;\n1:2,2;\n")

        assert [s.timestamp for s in snapshots] == [0.0, 1.0]

    def test_no_ordering_check(self):
        """Timestamps out of order still parse."""
        snapshots = parse_snapshots(["5:1,1;", "2:1,1;"])
        assert [s.timestamp for s in snapshots] == [5.0, 2.0]
