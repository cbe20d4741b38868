"""Trajectory storage, merging and interpolation."""

from .finite_difference import (
    compute_pressure_temperature,
    compute_velocities_pressure_temperature,
    estimate_all,
)
from .interpolate import blend_frames, interpolate_segment, interpolated_length
from .md import MDSeries, MDTrajectory
from .merge import match_atoms, merge_segments
from .store import FrameArrays, SegmentKind, TrajectoryStore

__all__ = [
    # Storage
    "FrameArrays",
    "SegmentKind",
    "TrajectoryStore",
    "MDSeries",
    "MDTrajectory",
    # Merge
    "match_atoms",
    "merge_segments",
    # Interpolation
    "blend_frames",
    "interpolate_segment",
    "interpolated_length",
    # Finite differences
    "compute_pressure_temperature",
    "compute_velocities_pressure_temperature",
    "estimate_all",
]
