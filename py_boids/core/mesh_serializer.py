"""
ASCII PLY serialization of flow grids.

The mesh is a flat quad grid in the z = 0 plane. Each vertex carries the
flow vector (vx, vy, vz) and the traffic scalar (s) of its grid cell, the
layout read by the learnply viewer.
"""

import io

import numpy as np
import structlog

from .errors import InvalidGridSizeError
from .grid_projector import FlowGrid

logger = structlog.get_logger()

VERTEX_PROPERTIES = ("x", "y", "z", "vx", "vy", "vz", "s")
FLOAT_FORMAT = "%.9g"


def ply_header(vertex_count: int, face_count: int) -> str:
    """Fixed PLY header for a grid mesh."""
    lines = [
        "ply",
        "format ascii 1.0",
        f"element vertex {vertex_count}",
        *(f"property float {name}" for name in VERTEX_PROPERTIES),
        f"element face {face_count}",
        "property list uchar int vertex_indices",
        "end_header",
    ]
    return "\n".join(lines) + "\n"


def vertex_rows(grid: FlowGrid) -> np.ndarray:
    """
    Per-vertex data in output order.

    Rows are emitted from the highest index down, and so are columns
    within a row.

    Returns:
        (grid_size**2, 7) array of x, y, z, vx, vy, vz, s
    """
    g = grid.grid_size
    coords = grid.vertex_coordinates()[::-1, ::-1].reshape(-1, 2)
    flow = grid.flow[::-1, ::-1].reshape(-1, 3)
    traffic = grid.traffic[::-1, ::-1].reshape(-1, 1)
    z = np.zeros((g * g, 1), dtype=np.float64)
    return np.hstack([coords, z, flow, traffic])


def face_rows(grid_size: int) -> np.ndarray:
    """
    Quad faces connecting the vertex grid.

    Vertex indices are row-major with one extra offset per row, so no quad
    wraps from the end of one row to the start of the next.

    Returns:
        ((grid_size-1)**2, 5) integer array; the first column is the
        vertex count of each face (always 4)
    """
    cells = max(grid_size - 1, 0)
    rows, cols = np.meshgrid(np.arange(cells), np.arange(cells), indexing="ij")
    offset = rows  # incremented once per row
    base = (rows * cells + cols + offset).reshape(-1)
    counts = np.full_like(base, 4)
    return np.stack([counts, base, base + 1, base + grid_size + 1, base + grid_size], axis=1)


def serialize(grid: FlowGrid) -> str:
    """
    Render a flow grid as an ASCII PLY document.

    Args:
        grid: Projected traffic and flow

    Returns:
        PLY text

    Raises:
        InvalidGridSizeError: If grid.grid_size is negative
        ValueError: If the grid arrays do not match grid.grid_size
    """
    g = grid.grid_size
    if g < 0:
        raise InvalidGridSizeError(f"Grid size must be >= 0, got {g}")
    if grid.traffic.shape != (g, g) or grid.flow.shape != (g, g, 3):
        raise ValueError(
            f"Grid arrays {grid.traffic.shape}/{grid.flow.shape} do not match grid size {g}"
        )

    vertices = vertex_rows(grid)
    faces = face_rows(g)

    out = io.StringIO()
    out.write(ply_header(len(vertices), len(faces)))
    if len(vertices):
        np.savetxt(out, vertices, fmt=FLOAT_FORMAT)
    if len(faces):
        np.savetxt(out, faces, fmt="%d")

    logger.debug("Serialized grid", vertices=len(vertices), faces=len(faces))
    return out.getvalue()
