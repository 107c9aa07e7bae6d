"""Exception types raised by the boids grid pipeline."""

from typing import Optional


class BoidsError(Exception):
    """Base class for all py-boids failures."""


class SnapshotParseError(BoidsError, ValueError):
    """A log line does not follow the snapshot grammar."""

    def __init__(self, line_index: int, line: Optional[str] = None):
        self.line_index = line_index
        self.line = line
        message = f"Could not interpret line {line_index} of input."
        if line is not None:
            message += f" Got: {line!r}"
        super().__init__(message)


class InvalidGridSizeError(BoidsError, ValueError):
    """Grid resolution cannot hold the requested data."""


class DegenerateBoundsError(BoidsError, ValueError):
    """Bounds are missing or have zero extent on an axis."""


class UnsupportedMappingModeError(BoidsError, NotImplementedError):
    """Mapping mode is declared but has no implementation."""
