#!/usr/bin/env python3
"""
Simple demo script showing traffic/flow grid generation from a boids log.
"""

from pathlib import Path

import numpy as np
from py_boids.core import BoidsExperiment, project, serialize


def synthetic_log(n_agents=12, n_steps=60, radius=40.0, seed=7):
    """Agents circling the origin at slightly different radii."""
    rng = np.random.default_rng(seed)
    radii = radius + rng.normal(0, 4.0, n_agents)
    phases = rng.uniform(0, 2 * np.pi, n_agents)

    lines = []
    for step in range(n_steps):
        t = step * 0.1
        angles = phases + t * 0.5
        xs = radii * np.cos(angles)
        ys = radii * np.sin(angles)
        pairs = "".join(f"{x:.3f},{y:.3f};" for x, y in zip(xs, ys))
        lines.append(f"{t:.2f}:{pairs}")
    return lines


def main():
    """Demonstrate grid projection."""
    print("Py-Boids Grid Projection Demo")
    print("=" * 40)

    lines = synthetic_log()
    experiment = BoidsExperiment.from_lines(lines)
    print(f"\nParsed {len(experiment)} snapshots of {experiment.agent_count} agents")
    print(f"Bounds: {experiment.bounds}")
    print(f"Duration: {experiment.duration:.2f}")

    for grid_size in (11, 21):
        print(f"\n{grid_size}x{grid_size} grid:")
        print("-" * 30)

        grid = project(experiment, grid_size)
        traffic = grid.traffic
        speed = np.linalg.norm(grid.flow, axis=-1)

        print(f"  Total traffic: {traffic.sum():.2f}")
        print(f"  Busiest vertex: {traffic.max():.2f}")
        print(f"  Empty vertices: {np.sum(traffic == 0)} of {traffic.size}")
        print(f"  Mean flow magnitude: {speed[traffic > 0].mean():.3f}")

        # Show traffic distribution
        hist, edges = np.histogram(traffic[traffic > 0], bins=6)
        print("  Traffic distribution:")
        for i in range(len(hist)):
            bar = '#' * int(hist[i] / max(hist) * 20)
            print(f"    {edges[i]:6.2f}-{edges[i+1]:6.2f}: {bar} ({hist[i]})")

    output = Path("flock_demo.ply")
    output.write_text(serialize(project(experiment, 21)))
    print(f"\nMesh written to {output}")


if __name__ == "__main__":
    main()
