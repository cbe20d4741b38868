"""Generic per-frame trajectory storage."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from ase.data import atomic_masses, chemical_symbols
from numpy.typing import ArrayLike, NDArray

from .. import units
from ..system import Box

if TYPE_CHECKING:
    from .md import MDTrajectory

# Frames reserved at once when an append overflows the allocated capacity
GROWTH_CHUNK = 64


class SegmentKind(Enum):
    """What a trajectory segment carries, fixed when the segment is created."""

    GENERIC = "generic"
    MD = "md"


def next_capacity(ntime: int, capacity: int) -> int:
    """Capacity to reserve before writing frame ``ntime``."""
    if ntime < capacity:
        return capacity
    return max(ntime + GROWTH_CHUNK, capacity + capacity // 2)


class FrameArrays:
    """
    Named per-frame arrays sharing one allocated capacity.

    Each array has shape (capacity, *frame_shape). A quantity that was not
    recorded is stored as None until ``ensure`` allocates it as zeros.
    """

    def __init__(
        self,
        frame_shapes: dict[str, tuple[int, ...]],
        capacity: int = 0,
        absent: tuple[str, ...] = (),
    ) -> None:
        self._shapes = dict(frame_shapes)
        self._capacity = int(capacity)
        self._arrays: dict[str, NDArray[np.floating] | None] = {
            name: None if name in absent else self._zeros(name, self._capacity)
            for name in self._shapes
        }

    def _zeros(self, name: str, n: int) -> NDArray[np.floating]:
        return np.zeros((n, *self._shapes[name]), dtype=np.float64)

    @property
    def capacity(self) -> int:
        """Number of frames allocated."""
        return self._capacity

    @property
    def names(self) -> tuple[str, ...]:
        """Names of all quantities, recorded or not."""
        return tuple(self._shapes)

    def has(self, name: str) -> bool:
        """Whether ``name`` holds data."""
        return self._arrays[name] is not None

    def __getitem__(self, name: str) -> NDArray[np.floating] | None:
        return self._arrays[name]

    def ensure(self, name: str) -> NDArray[np.floating]:
        """Allocate ``name`` as zeros if it was not recorded, and return it."""
        array = self._arrays[name]
        if array is None:
            array = self._zeros(name, self._capacity)
            self._arrays[name] = array
        return array

    def resize(self, capacity: int) -> None:
        """Change the capacity, preserving the leading frames."""
        capacity = int(capacity)
        for name, old in self._arrays.items():
            if old is None:
                continue
            new = self._zeros(name, capacity)
            keep = min(capacity, old.shape[0])
            new[:keep] = old[:keep]
            self._arrays[name] = new
        self._capacity = capacity

    def replace(self, arrays: dict[str, NDArray[np.floating]]) -> None:
        """Swap in new arrays for every recorded quantity; they set the capacity."""
        lengths = {len(values) for values in arrays.values()}
        if len(lengths) != 1:
            raise ValueError(f"Replacement arrays have mismatched lengths {sorted(lengths)}")
        for name, values in arrays.items():
            if values.shape[1:] != self._shapes[name]:
                raise ValueError(
                    f"{name} frames must have shape {self._shapes[name]}, got {values.shape[1:]}"
                )
            self._arrays[name] = np.ascontiguousarray(values, dtype=np.float64)
        self._capacity = lengths.pop()

    def copy(self) -> FrameArrays:
        """Deep copy."""
        clone = FrameArrays(self._shapes, 0)
        clone._capacity = self._capacity
        clone._arrays = {
            name: None if values is None else values.copy()
            for name, values in self._arrays.items()
        }
        return clone


class TrajectoryStore:
    """
    Time series of atomic configurations.

    Holds the quantities every trajectory source provides: frame times,
    Cartesian positions, cell matrices, stress tensors (Voigt order xx, yy,
    zz, yz, xz, xy) and total energies, all in Hartree atomic units. Atom
    identity (species of each atom, atomic number of each species) is fixed
    at construction.

    Frames are written in place into preallocated arrays; ``ntime`` counts the
    filled frames and ``ntime_available`` the allocated ones.

    Example:
        store = TrajectoryStore(species_of_atom=[0, 0, 1], atomic_numbers=[8, 1])
        store.append_frame(0.0, positions, cell)
    """

    kind = SegmentKind.GENERIC

    def __init__(
        self,
        species_of_atom: ArrayLike,
        atomic_numbers: ArrayLike,
        capacity: int = 0,
        try_to_map: bool = False,
        name: str = "trajectory",
    ) -> None:
        """
        Initialize an empty store.

        Args:
            species_of_atom: Species index (0-based) of each atom.
            atomic_numbers: Atomic number of each species.
            capacity: Number of frames to preallocate.
            try_to_map: Reconcile atom ordering when merging by default.
            name: Label used for output file names.
        """
        species = np.array(species_of_atom, dtype=np.int64)
        znucl = np.array(atomic_numbers, dtype=np.int64)
        if species.ndim != 1 or znucl.ndim != 1:
            raise ValueError("species_of_atom and atomic_numbers must be 1-D")
        if species.size and (species.min() < 0 or species.max() >= len(znucl)):
            raise ValueError(
                f"Species indices must lie in [0, {len(znucl)}), "
                f"got range [{species.min()}, {species.max()}]"
            )
        species.flags.writeable = False
        znucl.flags.writeable = False
        self._species_of_atom = species
        self._atomic_numbers = znucl
        self.try_to_map = try_to_map
        self.name = name

        n_atoms = len(species)
        self._frames = FrameArrays(
            {
                "time": (),
                "positions": (n_atoms, 3),
                "cell": (3, 3),
                "stress": (6,),
                "total_energy": (),
            },
            capacity,
        )
        self._ntime = 0

    # ------------------------------------------------------------------
    # Identity metadata
    # ------------------------------------------------------------------

    @property
    def n_atoms(self) -> int:
        """Number of atoms."""
        return len(self._species_of_atom)

    @property
    def n_species(self) -> int:
        """Number of atomic species."""
        return len(self._atomic_numbers)

    @property
    def species_of_atom(self) -> NDArray[np.integer]:
        """Species index of each atom (read-only)."""
        return self._species_of_atom

    @property
    def atomic_numbers(self) -> NDArray[np.integer]:
        """Atomic number of each species (read-only)."""
        return self._atomic_numbers

    @property
    def atomic_number_of_atom(self) -> NDArray[np.integer]:
        """Atomic number of each atom."""
        return self._atomic_numbers[self._species_of_atom]

    def species_counts(self) -> NDArray[np.integer]:
        """Number of atoms of each species."""
        return np.bincount(self._species_of_atom, minlength=self.n_species)

    def species_labels(self) -> list[str]:
        """Chemical symbol of each species."""
        return [chemical_symbols[z] for z in self._atomic_numbers]

    def masses(self) -> NDArray[np.floating]:
        """Mass of each atom in amu."""
        return atomic_masses[self.atomic_number_of_atom]

    # ------------------------------------------------------------------
    # Frame bookkeeping
    # ------------------------------------------------------------------

    @property
    def ntime(self) -> int:
        """Number of filled frames."""
        return self._ntime

    @property
    def ntime_available(self) -> int:
        """Number of allocated frames."""
        return self._frames.capacity

    @property
    def frames(self) -> FrameArrays:
        """Underlying arrays, including unfilled capacity."""
        return self._frames

    def reserve(self, capacity: int) -> None:
        """Make room for at least ``capacity`` frames."""
        if capacity > self._frames.capacity:
            self._frames.resize(capacity)

    def _set_ntime(self, ntime: int) -> None:
        if not 0 <= ntime <= self._frames.capacity:
            raise ValueError(f"ntime {ntime} exceeds capacity {self._frames.capacity}")
        self._ntime = ntime

    def check_times(self, tbegin: int, tend: int) -> None:
        """
        Validate a half-open frame window.

        Raises:
            ValueError: Unless 0 <= tbegin < tend <= ntime.
        """
        if tbegin < 0 or tend > self._ntime or tbegin >= tend:
            raise ValueError(
                f"Bad time range [{tbegin}, {tend}) for {self._ntime} recorded frames"
            )

    def check_frame(self, itime: int, quantity: str) -> None:
        """
        Validate a single frame index.

        Raises:
            IndexError: If ``itime`` is not a filled frame.
        """
        if not 0 <= itime < self._ntime:
            raise IndexError(f"Out of range for {quantity} {itime}/{self._ntime}")

    # ------------------------------------------------------------------
    # Series views (filled frames only)
    # ------------------------------------------------------------------

    @property
    def time(self) -> NDArray[np.floating]:
        """Frame times, atomic time units."""
        return self._frames["time"][: self._ntime]

    @property
    def positions(self) -> NDArray[np.floating]:
        """Cartesian positions, shape (ntime, n_atoms, 3), Bohr."""
        return self._frames["positions"][: self._ntime]

    @property
    def cell(self) -> NDArray[np.floating]:
        """Cell matrices, shape (ntime, 3, 3), Bohr."""
        return self._frames["cell"][: self._ntime]

    @property
    def stress(self) -> NDArray[np.floating]:
        """Voigt stress, shape (ntime, 6), Ha/Bohr^3."""
        return self._frames["stress"][: self._ntime]

    @property
    def total_energy(self) -> NDArray[np.floating]:
        """Total energy, Ha."""
        return self._frames["total_energy"][: self._ntime]

    @property
    def dtion(self) -> float:
        """Spacing of the first two frames, atomic time units."""
        if self._ntime > 1:
            return float(self.time[1] - self.time[0])
        return units.DEFAULT_DTION

    @property
    def dtion_ps(self) -> float:
        """Spacing of the first two frames, ps."""
        return units.dtion_to_ps(self.dtion)

    def get_positions(self, itime: int) -> NDArray[np.floating]:
        """Positions of one frame."""
        self.check_frame(itime, "positions")
        return self._frames["positions"][itime]

    def get_cell(self, itime: int) -> Box:
        """Cell of one frame."""
        self.check_frame(itime, "cell")
        return Box(self._frames["cell"][itime])

    def get_stress(self, itime: int) -> NDArray[np.floating]:
        """Stress of one frame."""
        self.check_frame(itime, "stress")
        return self._frames["stress"][itime]

    def get_total_energy(self, itime: int) -> float:
        """Total energy of one frame."""
        self.check_frame(itime, "total energy")
        return float(self._frames["total_energy"][itime])

    def volumes(self, tbegin: int = 0, tend: int | None = None) -> NDArray[np.floating]:
        """Cell volume of each frame in [tbegin, tend), Bohr^3."""
        tend = self._ntime if tend is None else tend
        return np.abs(np.linalg.det(self.cell[tbegin:tend]))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append_frame(
        self,
        time: float,
        positions: ArrayLike,
        cell: ArrayLike,
        stress: ArrayLike | None = None,
        total_energy: float = 0.0,
    ) -> int:
        """
        Record one frame after the last filled one.

        Args:
            time: Frame time, atomic time units.
            positions: Cartesian positions, shape (n_atoms, 3), Bohr.
            cell: Cell matrix (rows are vectors) or lengths, Bohr.
            stress: Voigt stress, Ha/Bohr^3. Defaults to zeros.
            total_energy: Total energy, Ha.

        Returns:
            Index of the new frame.
        """
        positions = np.asarray(positions, dtype=np.float64)
        if positions.shape != (self.n_atoms, 3):
            raise ValueError(
                f"positions shape {positions.shape} incompatible with {self.n_atoms} atoms"
            )
        box = Box(cell)
        itime = self._ntime
        self.reserve(next_capacity(itime, self._frames.capacity))

        self._frames["time"][itime] = time
        self._frames["positions"][itime] = positions
        self._frames["cell"][itime] = box.vectors
        self._frames["stress"][itime] = 0.0 if stress is None else np.asarray(stress)
        self._frames["total_energy"][itime] = total_energy
        self._ntime = itime + 1
        return itime

    def merge(
        self, other: TrajectoryStore | MDTrajectory, reconcile: bool | None = None
    ) -> TrajectoryStore:
        """Append ``other`` after the last frame. See :func:`merge_segments`."""
        from .merge import merge_segments

        return merge_segments(self, other, reconcile=reconcile)

    def interpolate(self, ninter: int, amplitude: float = 1.0) -> None:
        """Insert blended frames between recorded ones. See :func:`interpolate_segment`."""
        from .interpolate import interpolate_segment

        interpolate_segment(self, ninter, amplitude)

    def copy(self) -> TrajectoryStore:
        """Deep copy."""
        clone = TrajectoryStore(
            self._species_of_atom,
            self._atomic_numbers,
            try_to_map=self.try_to_map,
            name=self.name,
        )
        clone._frames = self._frames.copy()
        clone._ntime = self._ntime
        return clone

    @property
    def store(self) -> TrajectoryStore:
        """The generic store of this segment (itself)."""
        return self
