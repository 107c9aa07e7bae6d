"""
Command line entry point.

Converts one or more boids simulator logs into PLY grid meshes:

    py-boids run1.log run2.log -o meshes --grid-size 31
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from .config import Settings, get_settings
from .core.errors import BoidsError
from .core.experiment import BoidsExperiment, Bounds
from .core.grid_projector import MappingMode, project
from .core.mesh_serializer import serialize

logger = structlog.get_logger()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog through the standard library logger."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper(), force=True)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-boids",
        description="Convert boids simulator logs to PLY traffic/flow grid meshes",
    )
    parser.add_argument("inputs", nargs="+", type=Path, help="Boids log files to convert")
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=Path(settings.output_dir),
        help=f"Output directory (default: {settings.output_dir})",
    )
    parser.add_argument(
        "-g", "--grid-size", type=int, default=settings.grid_size,
        help=f"Grid vertices along each axis (default: {settings.grid_size})",
    )
    parser.add_argument(
        "--bounds", type=float, nargs=4, metavar=("MIN_X", "MIN_Y", "MAX_X", "MAX_Y"),
        help="Simulation domain; computed from the data when omitted",
    )
    parser.add_argument(
        "--max-time", type=float, default=settings.max_time,
        help="Ignore snapshots at or after this timestamp",
    )
    parser.add_argument(
        "--mode", choices=[mode.value for mode in MappingMode], default=settings.mapping_mode,
        help="Sample mapping mode",
    )
    parser.add_argument("--preview", action="store_true", help="Also write a PNG preview")
    parser.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS, default=settings.log_level,
        help="Logging level",
    )
    return parser


def convert_file(
    input_path: Path,
    output_dir: Path,
    grid_size: int,
    bounds: Optional[Bounds] = None,
    max_time: float = float("inf"),
    mode: MappingMode = MappingMode.INVERSE_DISTANCE,
    preview: bool = False,
    preview_dpi: int = 150,
) -> Path:
    """
    Convert one log file into ``output_dir/<stem>.ply``.

    Returns:
        Path of the written mesh
    """
    log = logger.bind(input=str(input_path))
    log.info("Processing input")

    lines = input_path.read_text(encoding="utf-8").splitlines()
    experiment = BoidsExperiment.from_lines(lines, bounds=bounds)
    grid = project(experiment, grid_size, max_time=max_time, mode=mode)

    output_path = output_dir / f"{input_path.stem}.ply"
    output_path.write_text(serialize(grid), encoding="utf-8")
    log.info("Mesh written", output=str(output_path), grid_size=grid_size)

    if preview:
        from .visualize import render_preview

        render_preview(grid, output_path.with_suffix(".png"), title=input_path.name, dpi=preview_dpi)

    return output_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the converter; returns the process exit code."""
    settings = get_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    configure_logging(args.log_level, settings.log_format)

    missing = [str(path) for path in args.inputs if not path.is_file()]
    if missing:
        parser.error(f"File(s) do not exist: {', '.join(missing)}")
    if args.grid_size < 1:
        parser.error(f"--grid-size must be a positive integer, got {args.grid_size}")

    bounds = None
    if args.bounds is not None:
        try:
            bounds = Bounds.from_sequence(args.bounds)
        except ValueError as e:
            parser.error(str(e))

    try:
        mode = MappingMode(args.mode)
    except ValueError:
        parser.error(f"Unknown mapping mode: {args.mode!r}")

    args.output_dir.mkdir(parents=True, exist_ok=True)

    failed: List[str] = []
    for input_path in args.inputs:
        try:
            convert_file(
                input_path,
                args.output_dir,
                args.grid_size,
                bounds=bounds,
                max_time=args.max_time,
                mode=mode,
                preview=args.preview,
                preview_dpi=settings.preview_dpi,
            )
        except (BoidsError, OSError, UnicodeDecodeError) as e:
            logger.error("Failed to convert input", input=str(input_path), error=str(e))
            failed.append(str(input_path))

    if failed:
        logger.error("Some inputs failed", failed=failed, total=len(args.inputs))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
