"""Molecular-dynamics observables layered on a trajectory store."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..system import Box
from .store import FrameArrays, SegmentKind, TrajectoryStore, next_capacity


class MDSeries:
    """
    Per-frame MD observables for a fixed number of atoms.

    Velocities (Bohr per atomic time unit), kinetic energy (Ha), temperature
    (K), pressure (GPa) and electronic entropy. Velocities may be absent when
    the source did not record them.
    """

    def __init__(self, n_atoms: int, capacity: int = 0, has_velocities: bool = True) -> None:
        self._n_atoms = n_atoms
        self._frames = FrameArrays(
            {
                "velocities": (n_atoms, 3),
                "kinetic_energy": (),
                "temperature": (),
                "pressure": (),
                "entropy": (),
            },
            capacity,
            absent=() if has_velocities else ("velocities",),
        )

    @property
    def n_atoms(self) -> int:
        """Number of atoms."""
        return self._n_atoms

    @property
    def frames(self) -> FrameArrays:
        """Underlying arrays, including unfilled capacity."""
        return self._frames

    @property
    def capacity(self) -> int:
        """Number of frames allocated."""
        return self._frames.capacity

    @property
    def has_velocities(self) -> bool:
        """Whether velocities were recorded."""
        return self._frames.has("velocities")

    def ensure_velocities(self) -> NDArray[np.floating]:
        """Allocate zero velocities if none were recorded."""
        return self._frames.ensure("velocities")

    def resize(self, capacity: int) -> None:
        """Change the capacity, preserving the leading frames."""
        self._frames.resize(capacity)

    def copy(self) -> MDSeries:
        """Deep copy."""
        clone = MDSeries(self._n_atoms)
        clone._frames = self._frames.copy()
        return clone


class MDTrajectory:
    """
    Trajectory segment produced by molecular dynamics.

    Joins a generic :class:`TrajectoryStore` with an :class:`MDSeries` by
    composition. Generic attributes are forwarded explicitly to the store;
    both parts always share the same capacity and filled frame count.

    Example:
        traj = MDTrajectory.create(species_of_atom=[0, 1], atomic_numbers=[14, 8])
        traj.append_frame(0.0, positions, cell, velocities=velocities)
        vacf = VelocityAutocorrelation().compute(traj, 0, traj.ntime)
    """

    kind = SegmentKind.MD

    def __init__(self, store: TrajectoryStore, md: MDSeries | None = None) -> None:
        """
        Wrap a store with MD observables.

        Args:
            store: Generic trajectory data.
            md: MD observables. Zero-filled series are created when omitted.
        """
        if md is None:
            md = MDSeries(store.n_atoms, store.ntime_available)
        elif md.n_atoms != store.n_atoms:
            raise ValueError(
                f"MD series for {md.n_atoms} atoms cannot extend a store of {store.n_atoms} atoms"
            )
        if md.capacity != store.ntime_available:
            md.resize(store.ntime_available)
        self._store = store
        self._md = md

    @classmethod
    def create(
        cls,
        species_of_atom: ArrayLike,
        atomic_numbers: ArrayLike,
        capacity: int = 0,
        try_to_map: bool = False,
        name: str = "trajectory",
        has_velocities: bool = True,
    ) -> MDTrajectory:
        """
        Create an empty MD trajectory.

        Args:
            species_of_atom: Species index (0-based) of each atom.
            atomic_numbers: Atomic number of each species.
            capacity: Number of frames to preallocate.
            try_to_map: Reconcile atom ordering when merging by default.
            name: Label used for output file names.
            has_velocities: Whether velocities will be recorded.

        Returns:
            New MDTrajectory instance.
        """
        store = TrajectoryStore(
            species_of_atom, atomic_numbers, capacity, try_to_map=try_to_map, name=name
        )
        md = MDSeries(store.n_atoms, capacity, has_velocities=has_velocities)
        return cls(store, md)

    @property
    def store(self) -> TrajectoryStore:
        """Generic trajectory data."""
        return self._store

    @property
    def md(self) -> MDSeries:
        """MD observables."""
        return self._md

    # ------------------------------------------------------------------
    # Forwarded to the store
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._store.name

    @property
    def try_to_map(self) -> bool:
        return self._store.try_to_map

    @property
    def n_atoms(self) -> int:
        return self._store.n_atoms

    @property
    def n_species(self) -> int:
        return self._store.n_species

    @property
    def species_of_atom(self) -> NDArray[np.integer]:
        return self._store.species_of_atom

    @property
    def atomic_numbers(self) -> NDArray[np.integer]:
        return self._store.atomic_numbers

    @property
    def atomic_number_of_atom(self) -> NDArray[np.integer]:
        return self._store.atomic_number_of_atom

    @property
    def ntime(self) -> int:
        return self._store.ntime

    @property
    def ntime_available(self) -> int:
        return self._store.ntime_available

    @property
    def time(self) -> NDArray[np.floating]:
        return self._store.time

    @property
    def positions(self) -> NDArray[np.floating]:
        return self._store.positions

    @property
    def cell(self) -> NDArray[np.floating]:
        return self._store.cell

    @property
    def stress(self) -> NDArray[np.floating]:
        return self._store.stress

    @property
    def total_energy(self) -> NDArray[np.floating]:
        return self._store.total_energy

    @property
    def dtion(self) -> float:
        return self._store.dtion

    @property
    def dtion_ps(self) -> float:
        return self._store.dtion_ps

    def species_counts(self) -> NDArray[np.integer]:
        return self._store.species_counts()

    def species_labels(self) -> list[str]:
        return self._store.species_labels()

    def masses(self) -> NDArray[np.floating]:
        return self._store.masses()

    def check_times(self, tbegin: int, tend: int) -> None:
        self._store.check_times(tbegin, tend)

    def check_frame(self, itime: int, quantity: str) -> None:
        self._store.check_frame(itime, quantity)

    def get_positions(self, itime: int) -> NDArray[np.floating]:
        return self._store.get_positions(itime)

    def get_cell(self, itime: int) -> Box:
        return self._store.get_cell(itime)

    def get_stress(self, itime: int) -> NDArray[np.floating]:
        return self._store.get_stress(itime)

    def get_total_energy(self, itime: int) -> float:
        return self._store.get_total_energy(itime)

    def volumes(self, tbegin: int = 0, tend: int | None = None) -> NDArray[np.floating]:
        return self._store.volumes(tbegin, tend)

    # ------------------------------------------------------------------
    # MD series
    # ------------------------------------------------------------------

    @property
    def has_velocities(self) -> bool:
        """Whether velocities were recorded."""
        return self._md.has_velocities

    @property
    def velocities(self) -> NDArray[np.floating] | None:
        """Velocities, shape (ntime, n_atoms, 3), or None if not recorded."""
        values = self._md.frames["velocities"]
        return None if values is None else values[: self.ntime]

    @property
    def kinetic_energy(self) -> NDArray[np.floating]:
        """Kinetic energy, Ha."""
        return self._md.frames["kinetic_energy"][: self.ntime]

    @property
    def temperature(self) -> NDArray[np.floating]:
        """Temperature, K."""
        return self._md.frames["temperature"][: self.ntime]

    @property
    def pressure(self) -> NDArray[np.floating]:
        """Pressure, GPa."""
        return self._md.frames["pressure"][: self.ntime]

    @property
    def entropy(self) -> NDArray[np.floating]:
        """Electronic entropy."""
        return self._md.frames["entropy"][: self.ntime]

    def get_velocities(self, itime: int) -> NDArray[np.floating]:
        """Velocities of one frame."""
        self.check_frame(itime, "velocities")
        if not self.has_velocities:
            raise ValueError(f"Velocities were not recorded for {self.name}")
        return self._md.frames["velocities"][itime]

    def get_kinetic_energy(self, itime: int) -> float:
        """Kinetic energy of one frame."""
        self.check_frame(itime, "ekin")
        return float(self._md.frames["kinetic_energy"][itime])

    def get_temperature(self, itime: int) -> float:
        """Temperature of one frame."""
        self.check_frame(itime, "temperature")
        return float(self._md.frames["temperature"][itime])

    def get_pressure(self, itime: int) -> float:
        """Pressure of one frame."""
        self.check_frame(itime, "pressure")
        return float(self._md.frames["pressure"][itime])

    def get_entropy(self, itime: int) -> float:
        """Entropy of one frame."""
        self.check_frame(itime, "entropy")
        return float(self._md.frames["entropy"][itime])

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def reserve(self, capacity: int) -> None:
        """Make room for at least ``capacity`` frames in both layers."""
        self._store.reserve(capacity)
        if self._md.capacity != self._store.ntime_available:
            self._md.resize(self._store.ntime_available)

    def append_frame(
        self,
        time: float,
        positions: ArrayLike,
        cell: ArrayLike,
        stress: ArrayLike | None = None,
        total_energy: float = 0.0,
        velocities: ArrayLike | None = None,
        kinetic_energy: float = 0.0,
        temperature: float = 0.0,
        pressure: float = 0.0,
        entropy: float = 0.0,
    ) -> int:
        """
        Record one frame after the last filled one.

        Generic arguments are as in :meth:`TrajectoryStore.append_frame`.
        Velocities are stored only when the trajectory records them.

        Returns:
            Index of the new frame.
        """
        itime = self.ntime
        if velocities is not None:
            velocities = np.asarray(velocities, dtype=np.float64)
            if velocities.shape != (self.n_atoms, 3):
                raise ValueError(
                    f"velocities shape {velocities.shape} incompatible with {self.n_atoms} atoms"
                )
        self.reserve(next_capacity(itime, self.ntime_available))

        frames = self._md.frames
        if velocities is not None and self.has_velocities:
            frames["velocities"][itime] = velocities
        frames["kinetic_energy"][itime] = kinetic_energy
        frames["temperature"][itime] = temperature
        frames["pressure"][itime] = pressure
        frames["entropy"][itime] = entropy
        return self._store.append_frame(time, positions, cell, stress, total_energy)

    def merge(
        self, other: TrajectoryStore | MDTrajectory, reconcile: bool | None = None
    ) -> MDTrajectory:
        """Append ``other`` after the last frame. See :func:`merge_segments`."""
        from .merge import merge_segments

        return merge_segments(self, other, reconcile=reconcile)

    def interpolate(self, ninter: int, amplitude: float = 1.0) -> None:
        """Insert blended frames between recorded ones. See :func:`interpolate_segment`."""
        from .interpolate import interpolate_segment

        interpolate_segment(self, ninter, amplitude)

    def compute_velocities_pressure_temperature(self, itime: int, dtion: float) -> None:
        """Estimate velocities from positions. See the finite_difference module."""
        from .finite_difference import compute_velocities_pressure_temperature

        compute_velocities_pressure_temperature(self, itime, dtion)

    def copy(self) -> MDTrajectory:
        """Deep copy."""
        return MDTrajectory(self._store.copy(), self._md.copy())
