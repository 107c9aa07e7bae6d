"""
Preview images of projected flow grids.

Draws traffic as a grayscale field with the flow vectors on top, the same
two views the mesh viewer offers, so a run can be checked without it.
"""

from pathlib import Path
from typing import Optional, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import structlog

from .core.grid_projector import FlowGrid

logger = structlog.get_logger()


def grid_axes(grid: FlowGrid):
    """World-space x and y coordinates of the grid columns and rows."""
    if grid.bounds is not None and grid.grid_size > 1:
        xs = np.linspace(grid.bounds.min_x, grid.bounds.max_x, grid.grid_size)
        ys = np.linspace(grid.bounds.min_y, grid.bounds.max_y, grid.grid_size)
    else:
        center = (grid.grid_size - 1) / 2
        xs = np.arange(grid.grid_size, dtype=np.float64) - center
        ys = xs.copy()
    return xs, ys


def render_preview(
    grid: FlowGrid,
    output_path: Union[str, Path],
    title: Optional[str] = None,
    dpi: int = 150,
) -> Path:
    """
    Save a PNG showing traffic and flow.

    Args:
        grid: Projected grid
        output_path: Destination PNG path
        title: Optional figure title
        dpi: Image resolution

    Returns:
        Path of the written image
    """
    output_path = Path(output_path)
    xs, ys = grid_axes(grid)

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        if grid.grid_size > 0:
            half_x = (xs[1] - xs[0]) / 2 if len(xs) > 1 else 0.5
            half_y = (ys[1] - ys[0]) / 2 if len(ys) > 1 else 0.5
            image = ax.imshow(
                grid.traffic,
                origin="lower",
                cmap="gray",
                extent=(xs[0] - half_x, xs[-1] + half_x, ys[0] - half_y, ys[-1] + half_y),
            )
            fig.colorbar(image, ax=ax, label="Traffic")

            # Only draw arrows where something moved
            u = grid.flow[:, :, 0]
            v = grid.flow[:, :, 1]
            if np.any(u) or np.any(v):
                x_grid, y_grid = np.meshgrid(xs, ys)
                ax.quiver(x_grid, y_grid, u, v, color="tab:red", angles="xy")

        ax.set_xlabel("x")
        ax.set_ylabel("y")
        if title:
            ax.set_title(title)

        fig.tight_layout()
        fig.savefig(output_path, dpi=dpi)
    finally:
        plt.close(fig)

    logger.info("Preview saved", path=str(output_path))
    return output_path
