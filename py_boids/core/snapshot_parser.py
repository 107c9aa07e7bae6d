"""
Snapshot parsing for boids simulator logs.

Each line of a log is one snapshot of the flock:

    <time>:<x>,<y>;<x>,<y>;...

The timestamp is separated from the coordinate list by a colon, the two
coordinates of a pair by a comma, and every pair is terminated by a
semicolon. All numbers are signed decimals (an exponent is accepted).
The position of a pair within its line is the identity of the agent.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Tuple

import numpy as np
import structlog

from .errors import SnapshotParseError

logger = structlog.get_logger()

NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"

# Reads the snapshot as a whole
SNAPSHOT_PATTERN = re.compile(rf"(?P<time>{NUMBER}):(?:{NUMBER},{NUMBER};)*")

# Reads each ordered pair in the snapshot
PAIR_PATTERN = re.compile(rf"(?P<x>{NUMBER}),(?P<y>{NUMBER});")


class AgentPosition(NamedTuple):
    """Position of one agent inside a snapshot."""
    agent_index: int
    x: float
    y: float


@dataclass(frozen=True)
class Snapshot:
    """State of the flock at one moment in time."""
    timestamp: float
    positions: Tuple[AgentPosition, ...] = ()

    def __len__(self) -> int:
        return len(self.positions)

    def as_array(self) -> np.ndarray:
        """Return positions as an (n, 2) float array ordered by agent index."""
        if not self.positions:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([(p.x, p.y) for p in self.positions], dtype=np.float64)


def parse_snapshot_line(line: str, line_index: int = 0) -> Snapshot:
    """
    Parse a single serialized snapshot.

    Args:
        line: One line of a boids log
        line_index: 0-based index of the line, used in error reports

    Returns:
        Parsed Snapshot

    Raises:
        SnapshotParseError: If the line does not follow the snapshot grammar
    """
    text = line.strip()
    match = SNAPSHOT_PATTERN.fullmatch(text)
    if match is None:
        raise SnapshotParseError(line_index, line)

    timestamp = float(match.group("time"))

    # Pairs are scanned after the colon so the timestamp never takes part
    positions = tuple(
        AgentPosition(agent_index, float(pair.group("x")), float(pair.group("y")))
        for agent_index, pair in enumerate(
            PAIR_PATTERN.finditer(text, match.end("time") + 1)
        )
    )
    return Snapshot(timestamp=timestamp, positions=positions)


def parse_snapshots(lines: Iterable[str]) -> List[Snapshot]:
    """
    Parse a boids log into an ordered list of snapshots.

    A blank line is only allowed as the very last line. Timestamp ordering
    is not checked here; see ``compute_delta_times``.

    Args:
        lines: Raw log lines, in file order

    Returns:
        Snapshots in the order they appear in the log

    Raises:
        SnapshotParseError: On the first malformed line
    """
    lines = list(lines)
    snapshots = []

    for i, line in enumerate(lines):
        if not line.strip():
            if i == len(lines) - 1:
                break  # Allow blank line at EOF
            logger.error("Blank line inside snapshot log", line_index=i)
            raise SnapshotParseError(i, line)

        try:
            snapshots.append(parse_snapshot_line(line, i))
        except SnapshotParseError:
            logger.error("Could not interpret snapshot line", line_index=i)
            raise

    logger.debug("Parsed snapshots", count=len(snapshots))
    return snapshots


def parse_snapshot_text(text: str) -> List[Snapshot]:
    """Parse a whole log document held in memory."""
    return parse_snapshots(text.splitlines())
