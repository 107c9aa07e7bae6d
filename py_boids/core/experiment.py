"""
Boids experiment and its derived statistics.

An experiment is the full sequence of snapshots from one simulator log.
Agent count, spatial bounds and inter-snapshot time deltas are computed
once when the experiment is built and never change afterwards.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import structlog

from .snapshot_parser import Snapshot, parse_snapshots

logger = structlog.get_logger()


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in simulation space."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Bounds":
        """Build bounds from ``[min_x, min_y, max_x, max_y]``."""
        if len(values) != 4:
            raise ValueError(f"Bounds need exactly 4 values, got {len(values)}")
        min_x, min_y, max_x, max_y = (float(v) for v in values)
        if min_x > max_x or min_y > max_y:
            raise ValueError(
                f"Bounds minimum exceeds maximum: ({min_x}, {min_y}) > ({max_x}, {max_y})"
            )
        return cls(min_x, min_y, max_x, max_y)


def compute_agent_count(snapshots: Sequence[Snapshot]) -> int:
    """Largest number of agents seen in any snapshot."""
    agent_count = 0
    for snapshot in snapshots:
        agent_count = max(agent_count, len(snapshot.positions))
    return agent_count


def compute_bounds(snapshots: Sequence[Snapshot]) -> Optional[Bounds]:
    """
    Tightest rectangle containing every position of every snapshot.

    Returns:
        Bounds, or None when no snapshot holds a position
    """
    min_x = min_y = np.inf
    max_x = max_y = -np.inf

    for snapshot in snapshots:
        for position in snapshot.positions:
            min_x = min(min_x, position.x)
            min_y = min(min_y, position.y)
            max_x = max(max_x, position.x)
            max_y = max(max_y, position.y)

    if min_x == np.inf:
        return None
    return Bounds(float(min_x), float(min_y), float(max_x), float(max_y))


def compute_delta_times(snapshots: Sequence[Snapshot]) -> Tuple[np.ndarray, bool]:
    """
    Time elapsed between each snapshot and its successor.

    The last snapshot has no successor, so its entry is the mean of all
    other deltas. A single snapshot gets a delta of 0.0.

    Returns:
        Tuple of (delta times with one entry per snapshot, sorted flag).
        The flag is False when any delta is negative.
    """
    n = len(snapshots)
    if n == 0:
        return np.zeros(0, dtype=np.float64), True

    timestamps = np.array([s.timestamp for s in snapshots], dtype=np.float64)
    deltas = np.empty(n, dtype=np.float64)
    deltas[:-1] = np.diff(timestamps)
    deltas[-1] = deltas[:-1].mean() if n > 1 else 0.0

    is_sorted = not np.any(deltas[:-1] < 0)
    if not is_sorted:
        first_bad = int(np.argmax(deltas[:-1] < 0))
        logger.warning(
            "Snapshots are not sorted by timestamp",
            snapshot_index=first_bad,
            timestamp=float(timestamps[first_bad]),
            next_timestamp=float(timestamps[first_bad + 1]),
        )

    return deltas, is_sorted


@dataclass(frozen=True, eq=False)
class BoidsExperiment:
    """The entire boids simulation recorded in one log."""
    snapshots: Tuple[Snapshot, ...]
    agent_count: int
    delta_times: np.ndarray = field(repr=False)
    is_sorted: bool
    bounds: Optional[Bounds] = None

    @classmethod
    def build(
        cls, snapshots: Iterable[Snapshot], bounds: Optional[Bounds] = None
    ) -> "BoidsExperiment":
        """
        Build an experiment and compute its aggregates.

        Args:
            snapshots: Snapshots in temporal order
            bounds: Known simulation domain. When given it replaces the
                bounds computed from the positions.

        Returns:
            Immutable BoidsExperiment
        """
        snapshots = tuple(snapshots)
        delta_times, is_sorted = compute_delta_times(snapshots)
        delta_times.setflags(write=False)

        if bounds is None:
            bounds = compute_bounds(snapshots)

        experiment = cls(
            snapshots=snapshots,
            agent_count=compute_agent_count(snapshots),
            delta_times=delta_times,
            is_sorted=is_sorted,
            bounds=bounds,
        )
        logger.info(
            "Experiment built",
            snapshots=len(snapshots),
            agents=experiment.agent_count,
            bounds=bounds,
            sorted=is_sorted,
        )
        return experiment

    @classmethod
    def from_lines(
        cls, lines: Iterable[str], bounds: Optional[Bounds] = None
    ) -> "BoidsExperiment":
        """Parse serialized snapshots and build the experiment."""
        return cls.build(parse_snapshots(lines), bounds=bounds)

    def with_bounds(self, bounds: Bounds) -> "BoidsExperiment":
        """Copy of this experiment projected onto a caller-defined domain."""
        return replace(self, bounds=bounds)

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def timestamps(self) -> np.ndarray:
        return np.array([s.timestamp for s in self.snapshots], dtype=np.float64)

    @property
    def duration(self) -> float:
        """Time between the first and last snapshot."""
        if not self.snapshots:
            return 0.0
        return self.snapshots[-1].timestamp - self.snapshots[0].timestamp
