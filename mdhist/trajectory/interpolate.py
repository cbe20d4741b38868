"""Synthesis of intermediate frames by linear blending."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Union

import numpy as np
from numpy.typing import NDArray

from .store import FrameArrays, SegmentKind

if TYPE_CHECKING:
    from .md import MDTrajectory
    from .store import TrajectoryStore

logger = logging.getLogger(__name__)

# Amplitudes this close to 1 reproduce both end points exactly
EXACT_AMPLITUDE_TOLERANCE = 1e-10


def _removes_duplicates(amplitude: float) -> bool:
    return abs(amplitude - 1.0) < EXACT_AMPLITUDE_TOLERANCE


def interpolated_length(ntime: int, ninter: int, amplitude: float) -> int:
    """
    Number of frames produced by :func:`blend_frames`.

    Each of the ``ntime - 1`` segments yields ``ninter`` frames. With an
    exact amplitude the frame shared by two consecutive segments is kept
    once, removing ``ntime - 2`` frames.
    """
    length = ninter * (ntime - 1)
    if _removes_duplicates(amplitude):
        length -= ntime - 2
    return length


def validate_interpolation(ntime: int, ninter: int, amplitude: float) -> None:
    """
    Check interpolation parameters.

    Raises:
        ValueError: If fewer than two frames are recorded, ``ninter < 2`` or
            ``amplitude`` lies outside (0, 1].
    """
    if ntime < 2:
        raise ValueError(f"Interpolation needs at least 2 frames, got {ntime}")
    if ninter < 2:
        raise ValueError(f"ninter must be at least 2, got {ninter}")
    if not 0.0 < amplitude <= 1.0 + EXACT_AMPLITUDE_TOLERANCE:
        raise ValueError(f"amplitude must lie in (0, 1], got {amplitude}")


def blend_frames(
    values: NDArray[np.floating], ninter: int, amplitude: float = 1.0
) -> NDArray[np.floating]:
    """
    Blend consecutive frames of one series.

    For every pair (first, last) of recorded frames, ``ninter`` frames
    ``gamma * last + beta * first`` are produced with
    ``beta = tinter * amplitude / (ninter - 1)`` and ``gamma = 1 - beta``.
    Segments are visited from the most recent one backward and written from
    the end of the output toward its start.

    Args:
        values: Recorded frames, shape (ntime, ...).
        ninter: Frames per segment.
        amplitude: Blending amplitude in (0, 1].

    Returns:
        Blended frames, shape (interpolated_length, ...).
    """
    values = np.asarray(values, dtype=np.float64)
    ntime = len(values)
    validate_interpolation(ntime, ninter, amplitude)

    remove_duplicates = _removes_duplicates(amplitude)
    out = np.empty((interpolated_length(ntime, ninter, amplitude), *values.shape[1:]))

    current = len(out) - 1
    for last_step in range(ntime - 1, 0, -1):
        first = values[last_step - 1]
        last = values[last_step]
        for tinter in range(ninter):
            beta = tinter * amplitude / (ninter - 1)
            gamma = 1.0 - beta
            out[current] = gamma * last + beta * first
            current -= 1
        if remove_duplicates:
            # The next segment ends on the frame just written
            current += 1
    return out


def _blend_all(
    frames: FrameArrays, ntime: int, ninter: int, amplitude: float
) -> dict[str, NDArray[np.floating]]:
    return {
        name: blend_frames(frames[name][:ntime], ninter, amplitude)
        for name in frames.names
        if frames.has(name)
    }


def interpolate_segment(
    segment: Union[TrajectoryStore, MDTrajectory], ninter: int, amplitude: float = 1.0
) -> None:
    """
    Replace the recorded frames of a segment by blended frames.

    Every series is blended with :func:`blend_frames`: MD observables when the
    segment carries them, then time, positions, cell, stress and total energy.
    The capacity shrinks or grows to the new frame count.

    Args:
        segment: Trajectory to interpolate in place.
        ninter: Frames per segment, at least 2.
        amplitude: Blending amplitude in (0, 1]; 1 reproduces the recorded
            frames exactly and drops duplicated boundary frames.
    """
    store = segment.store
    ntime = store.ntime
    validate_interpolation(ntime, ninter, amplitude)
    new_ntime = interpolated_length(ntime, ninter, amplitude)

    md_arrays = None
    if segment.kind is SegmentKind.MD:
        md_arrays = _blend_all(segment.md.frames, ntime, ninter, amplitude)
    store_arrays = _blend_all(store.frames, ntime, ninter, amplitude)

    if md_arrays is not None:
        segment.md.frames.replace(md_arrays)
    store.frames.replace(store_arrays)
    store._set_ntime(new_ntime)
    logger.debug("Interpolated %s from %d to %d frames", store.name, ntime, new_ntime)
