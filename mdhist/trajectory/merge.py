"""
Concatenation of trajectory segments.

Two segments (for instance restarts of the same run) are joined in time.
Frame spacing, mean temperature and mean pressure of the two segments are
compared and any suspicious difference is logged as a warning; the merge
itself always proceeds. When requested, atoms of the appended segment are
matched to atoms of the base segment so that per-atom series stay
continuous even if the second run lists atoms in a different order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Union

import numpy as np
from numpy.typing import NDArray

from ..system import Box
from .store import FrameArrays, SegmentKind, TrajectoryStore

if TYPE_CHECKING:
    from .md import MDTrajectory

    Segment = Union[TrajectoryStore, MDTrajectory]

logger = logging.getLogger(__name__)

# Relative frame spacing mismatch tolerated without warning
DTION_TOLERANCE = 1e-6
# Relative difference of mean temperature or pressure tolerated without warning
MEAN_TOLERANCE = 0.5

# Series whose second axis runs over atoms
_PER_ATOM = ("positions", "velocities")


def match_atoms(base: TrajectoryStore, other: TrajectoryStore) -> NDArray[np.integer]:
    """
    Map atoms of ``other`` onto atoms of ``base``.

    Atoms are matched species by species with an optimal assignment on the
    minimum-image distance between the last frame of ``base`` and the first
    frame of ``other``, in the cell of the last base frame.

    Args:
        base: Segment whose ordering is kept.
        other: Segment to reorder.

    Returns:
        ``order`` such that atom ``i`` of ``base`` is atom ``order[i]`` of ``other``.

    Raises:
        ValueError: If the segments cannot describe the same atoms.
    """
    from scipy.optimize import linear_sum_assignment

    if base.n_atoms != other.n_atoms:
        raise ValueError(
            f"Unable to map structures: {base.n_atoms} atoms vs {other.n_atoms} atoms"
        )
    if base.ntime == 0 or other.ntime == 0:
        raise ValueError("Unable to map structures: a segment has no frames")

    z_base = base.atomic_number_of_atom
    z_other = other.atomic_number_of_atom
    if not np.array_equal(np.sort(z_base), np.sort(z_other)):
        raise ValueError("Unable to map structures: the segments hold different species")

    reference = base.positions[-1]
    candidate = other.positions[0]
    box = Box(base.cell[-1])

    order = np.empty(base.n_atoms, dtype=np.int64)
    for z in np.unique(z_base):
        ref_atoms = np.flatnonzero(z_base == z)
        cand_atoms = np.flatnonzero(z_other == z)
        displacement = box.minimum_image(
            reference[ref_atoms][:, None, :], candidate[cand_atoms][None, :, :]
        )
        cost = np.linalg.norm(displacement, axis=-1)
        rows, cols = linear_sum_assignment(cost)
        order[ref_atoms[rows]] = cand_atoms[cols]
    return order


def _relative_gap(reference: float, value: float) -> float | None:
    if reference == 0:
        return None
    return abs(reference - value) / abs(reference)


def _check_time_steps(base: Segment, other: Segment) -> None:
    if base.ntime > 1 and other.ntime > 1:
        dt1 = float(base.time[1] - base.time[0])
        dt2 = float(other.time[1] - other.time[0])
        if abs(dt1 - dt2) > DTION_TOLERANCE * max(abs(dt1), 1.0):
            logger.warning(
                "Frame spacings differ (%g vs %g atomic time units); "
                "be very careful with the analysis",
                dt1,
                dt2,
            )


def _check_means(base: MDTrajectory, other: MDTrajectory) -> None:
    if base.ntime == 0 or other.ntime == 0:
        return
    for quantity, unit, first, second in (
        ("Temperatures", "K", base.temperature, other.temperature),
        ("Pressures", "GPa", base.pressure, other.pressure),
    ):
        mean1 = float(np.mean(first))
        mean2 = float(np.mean(second))
        gap = _relative_gap(mean1, mean2)
        if gap is not None and gap > MEAN_TOLERANCE:
            logger.warning(
                "%s seem very different (%.6g %s vs %.6g %s, +%.0f%%); "
                "be very careful with the analysis",
                quantity,
                mean1,
                unit,
                mean2,
                unit,
                100 * gap,
            )


def _snapshot(
    frames: FrameArrays, count: int, order: NDArray[np.integer] | None
) -> dict[str, NDArray[np.floating] | None]:
    """Copy the filled frames of every series, permuting atoms if needed."""
    block: dict[str, NDArray[np.floating] | None] = {}
    for name in frames.names:
        values = frames[name]
        if values is None:
            block[name] = None
            continue
        values = values[:count]
        if order is not None and name in _PER_ATOM:
            values = values[:, order, :]
        block[name] = values.copy()
    return block


def _write_block(
    frames: FrameArrays,
    block: dict[str, NDArray[np.floating] | None],
    offset: int,
    count: int,
) -> None:
    for name in frames.names:
        values = block.get(name)
        if values is not None:
            frames.ensure(name)[offset : offset + count] = values
        elif frames.has(name):
            # Not recorded on the appended side
            frames[name][offset : offset + count] = 0.0


def merge_segments(
    base: Segment, other: Segment, reconcile: bool | None = None
) -> Segment:
    """
    Append ``other`` after the last frame of ``base`` in place.

    All series of ``base`` are resized to the sum of both filled frame
    counts; existing frames are kept and the frames of ``other`` are written
    after them. Quantities recorded by only one of the segments are
    zero-filled on the other side. MD observables are merged only when both
    segments are MD segments; an MD base extended by a generic segment gets
    zero MD observables for the new frames.

    Args:
        base: Segment to extend.
        other: Segment covering a later time window.
        reconcile: Match atoms of ``other`` to atoms of ``base`` before
            copying. Defaults to ``base.try_to_map``.

    Returns:
        ``base``, extended.

    Raises:
        ValueError: If the segments describe different atoms. ``base`` is
            left unmodified.
    """
    base_store = base.store
    other_store = other.store
    if base_store.n_atoms != other_store.n_atoms:
        raise ValueError(
            f"Cannot merge {other_store.n_atoms} atoms into a trajectory of "
            f"{base_store.n_atoms} atoms"
        )
    if reconcile is None:
        reconcile = base_store.try_to_map

    order = None
    if reconcile and base_store.ntime > 0 and other_store.ntime > 0:
        order = match_atoms(base_store, other_store)
        if np.array_equal(order, np.arange(base_store.n_atoms)):
            order = None
        else:
            logger.info("Atoms of %s reordered to match %s", other_store.name, base_store.name)
    elif not np.array_equal(
        base_store.atomic_number_of_atom, other_store.atomic_number_of_atom
    ):
        raise ValueError(
            "Atomic species differ atom by atom between segments; "
            "merge with reconcile=True to reorder atoms"
        )

    both_md = base.kind is SegmentKind.MD and other.kind is SegmentKind.MD
    _check_time_steps(base, other)
    if both_md:
        _check_means(base, other)

    prev_ntime = base_store.ntime
    count = other_store.ntime
    total = prev_ntime + count

    store_block = _snapshot(other_store.frames, count, order)
    md_block = _snapshot(other.md.frames, count, order) if both_md else None

    if base.kind is SegmentKind.MD:
        base.reserve(total)
        _write_block(base.md.frames, md_block or {}, prev_ntime, count)
    else:
        base_store.reserve(total)
    _write_block(base_store.frames, store_block, prev_ntime, count)
    base_store._set_ntime(total)

    logger.debug("Merged %d frames into %s (now %d frames)", count, base_store.name, total)
    return base
