"""
Projection of boids samples onto a regular grid.

Every agent position in every snapshot is a sample carrying a motion vector
(the raw displacement to the same agent in the next snapshot) and a weight
(the time until the next snapshot). A sample is spread over the four grid
vertices of the cell that encloses it, weighting nearer vertices higher:

    portion_k = 1 - distance_k / sum(distances)

Traffic accumulates ``weight * portion_k``. Because the four portions always
add up to 3, one sample contributes three times its weight to the grid.
Flow keeps a running mean of motion vectors weighted by ``portion_k``.

Both quirks are kept as-is so existing meshes stay comparable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

import numpy as np
import structlog

from .errors import DegenerateBoundsError, InvalidGridSizeError, UnsupportedMappingModeError
from .experiment import BoidsExperiment, Bounds

logger = structlog.get_logger()

# Share of a sample given to each corner when it sits exactly on a vertex
COINCIDENT_PORTION = 0.75


class MappingMode(Enum):
    """How samples are mapped onto grid vertices."""
    INVERSE_DISTANCE = "inverse_distance"
    NEAREST_VERTEX = "nearest_vertex"  # Reserved, not implemented


@dataclass(eq=False)
class FlowGrid:
    """Traffic and flow fields sampled on a square grid.

    Arrays are indexed ``[row, col]``: rows run along y, columns along x.
    """
    grid_size: int
    traffic: np.ndarray  # (grid_size, grid_size)
    flow: np.ndarray     # (grid_size, grid_size, 3)
    bounds: Optional[Bounds] = None

    @classmethod
    def empty(cls, grid_size: int, bounds: Optional[Bounds] = None) -> "FlowGrid":
        """All-zero grid of the given size."""
        return cls(
            grid_size=grid_size,
            traffic=np.zeros((grid_size, grid_size), dtype=np.float64),
            flow=np.zeros((grid_size, grid_size, 3), dtype=np.float64),
            bounds=bounds,
        )

    def vertex_coordinates(self) -> np.ndarray:
        """Centered world coordinates of each vertex, shape (grid_size, grid_size, 2).

        Vertex ``(row, col)`` sits at ``(col - (g-1)/2, row - (g-1)/2)``.
        """
        center = (self.grid_size - 1) / 2
        rows, cols = np.meshgrid(
            np.arange(self.grid_size, dtype=np.float64),
            np.arange(self.grid_size, dtype=np.float64),
            indexing="ij",
        )
        return np.stack([cols - center, rows - center], axis=-1)


def validate_grid_size(grid_size: int, minimum: int = 1) -> None:
    """Reject grid sizes below ``minimum``."""
    if grid_size < minimum:
        raise InvalidGridSizeError(f"Grid size must be >= {minimum}, got {grid_size}")


class GridProjector:
    """
    Accumulates weighted samples into traffic and flow grids.

    The projector owns three arrays for the lifetime of one projection:
    traffic, flow and the per-vertex sample weight used by the running
    mean of flow vectors.
    """

    def __init__(self, grid_size: int, bounds: Bounds):
        """
        Initialize an empty projection.

        Args:
            grid_size: Number of vertices along each axis (>= 2)
            bounds: World-space rectangle mapped onto the grid

        Raises:
            InvalidGridSizeError: If grid_size < 2
            DegenerateBoundsError: If bounds have zero width or height
        """
        validate_grid_size(grid_size, minimum=2)

        self.cell_size = np.array(
            [bounds.width / (grid_size - 1), bounds.height / (grid_size - 1)],
            dtype=np.float64,
        )
        if not np.all(self.cell_size > 0) or not np.all(np.isfinite(self.cell_size)):
            raise DegenerateBoundsError(
                f"Bounds {bounds} give cell size {tuple(self.cell_size)}; "
                "supply bounds with positive width and height"
            )

        self.grid_size = grid_size
        self.bounds = bounds
        self.origin = np.array([bounds.min_x, bounds.min_y], dtype=np.float64)

        self.traffic = np.zeros((grid_size, grid_size), dtype=np.float64)
        self.flow = np.zeros((grid_size, grid_size, 3), dtype=np.float64)
        self.sample_weight = np.zeros((grid_size, grid_size), dtype=np.float64)

    def corner_indices(self, position: np.ndarray) -> np.ndarray:
        """
        Grid indices of the four vertices around ``position``.

        Returns:
            (4, 2) integer array of (col, row) pairs in the order
            (floor x, floor y), (floor x, ceil y), (ceil x, floor y), (ceil x, ceil y).
            On a grid line floor and ceil coincide and the vertex repeats.
        """
        grid_pos = (np.asarray(position, dtype=np.float64) - self.origin) / self.cell_size
        lo = np.clip(np.floor(grid_pos), 0, self.grid_size - 1).astype(np.int64)
        hi = np.clip(np.ceil(grid_pos), 0, self.grid_size - 1).astype(np.int64)
        return np.array([
            [lo[0], lo[1]],
            [lo[0], hi[1]],
            [hi[0], lo[1]],
            [hi[0], hi[1]],
        ])

    def corner_portions(self, position: np.ndarray, corners: np.ndarray) -> np.ndarray:
        """Share of a sample given to each corner, nearer corners getting more."""
        world = self.origin + corners * self.cell_size
        distances = np.linalg.norm(world - np.asarray(position, dtype=np.float64), axis=1)
        distance_sum = distances.sum()
        if distance_sum == 0:
            return np.full(4, COINCIDENT_PORTION)
        return 1.0 - distances / distance_sum

    def distribute(self, position: Sequence[float], motion: Sequence[float], weight: float) -> None:
        """
        Spread one sample over its enclosing grid cell.

        Args:
            position: (x, y) world position of the agent
            motion: Motion vector; 2D vectors get z = 0
            weight: Time weight of the sample
        """
        position = np.asarray(position, dtype=np.float64)
        vector = np.zeros(3, dtype=np.float64)
        vector[:len(motion)] = motion

        corners = self.corner_indices(position)
        portions = self.corner_portions(position, corners)

        # Corners are visited one by one; repeated corners stack
        for (col, row), portion in zip(corners, portions):
            self.traffic[row, col] += weight * portion

            old_weight = self.sample_weight[row, col]
            new_weight = old_weight + portion
            if new_weight > 0:
                self.flow[row, col] = (self.flow[row, col] * old_weight + vector * portion) / new_weight
            self.sample_weight[row, col] = new_weight

    def result(self) -> FlowGrid:
        """Traffic and flow accumulated so far."""
        return FlowGrid(
            grid_size=self.grid_size,
            traffic=self.traffic,
            flow=self.flow,
            bounds=self.bounds,
        )


def _project_inverse_distance(
    experiment: BoidsExperiment, grid_size: int, max_time: float
) -> FlowGrid:
    if experiment.bounds is None:
        raise DegenerateBoundsError("Experiment has agents but no bounds")

    projector = GridProjector(grid_size, experiment.bounds)
    snapshots = experiment.snapshots
    delta_times = experiment.delta_times
    samples = 0

    for i in range(len(snapshots) - 1):
        current = snapshots[i]
        if not current.timestamp < max_time:
            continue

        following = {agent.agent_index: agent for agent in snapshots[i + 1].positions}
        for agent in current.positions:
            successor = following.get(agent.agent_index)
            # Agents missing from the next snapshot have no motion
            if successor is None:
                motion = (0.0, 0.0)
            else:
                motion = (successor.x - agent.x, successor.y - agent.y)
            projector.distribute((agent.x, agent.y), motion, delta_times[i])
        samples += len(current)

    last = snapshots[-1]
    if last.timestamp < max_time:
        positions = last.as_array()
        for position in positions:
            projector.distribute(position, (0.0, 0.0), delta_times[-1])
        samples += len(positions)

    logger.info("Projection complete", grid_size=grid_size, samples=samples)
    return projector.result()


PROJECTIONS: Dict[MappingMode, Callable[[BoidsExperiment, int, float], FlowGrid]] = {
    MappingMode.INVERSE_DISTANCE: _project_inverse_distance,
}


def project(
    experiment: BoidsExperiment,
    grid_size: int,
    max_time: float = float("inf"),
    mode: MappingMode = MappingMode.INVERSE_DISTANCE,
) -> FlowGrid:
    """
    Project an experiment onto a ``grid_size`` x ``grid_size`` grid.

    Args:
        experiment: Experiment to project
        grid_size: Number of vertices along each axis
        max_time: Snapshots at or after this timestamp are ignored; the
            final snapshot obeys the same filter
        mode: Sample mapping mode

    Returns:
        FlowGrid with traffic and flow fields

    Raises:
        InvalidGridSizeError: If grid_size < 1, or grid_size == 1 with samples
        UnsupportedMappingModeError: If mode has no implementation
        DegenerateBoundsError: If the bounds have zero width or height
    """
    validate_grid_size(grid_size)

    try:
        mode = MappingMode(mode)
    except ValueError as e:
        raise UnsupportedMappingModeError(f"Unknown mapping mode: {mode!r}") from e

    projection = PROJECTIONS.get(mode)
    if projection is None:
        raise UnsupportedMappingModeError(f"Mapping mode {mode.value!r} is not implemented")

    if not experiment.snapshots or experiment.agent_count == 0:
        logger.info("Experiment has no samples, returning empty grid", grid_size=grid_size)
        return FlowGrid.empty(grid_size, experiment.bounds)

    return projection(experiment, grid_size, max_time)
