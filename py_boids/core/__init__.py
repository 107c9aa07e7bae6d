"""
Core boids grid projection functionality.
"""

from .errors import (
    BoidsError,
    SnapshotParseError,
    InvalidGridSizeError,
    DegenerateBoundsError,
    UnsupportedMappingModeError,
)
from .snapshot_parser import AgentPosition, Snapshot, parse_snapshots, parse_snapshot_text
from .experiment import Bounds, BoidsExperiment
from .grid_projector import FlowGrid, GridProjector, MappingMode, project
from .mesh_serializer import serialize

__all__ = ['BoidsError', 'SnapshotParseError', 'InvalidGridSizeError',
           'DegenerateBoundsError', 'UnsupportedMappingModeError',
           'AgentPosition', 'Snapshot', 'parse_snapshots', 'parse_snapshot_text',
           'Bounds', 'BoidsExperiment',
           'FlowGrid', 'GridProjector', 'MappingMode', 'project',
           'serialize']
