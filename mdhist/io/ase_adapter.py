"""ASE (Atomic Simulation Environment) adapters."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Sequence

import numpy as np
from ase import Atoms, units as ase_units
from ase.calculators.calculator import PropertyNotImplementedError
from ase.data import atomic_numbers as symbol_to_z
from ase.io import read as ase_read

from .. import units
from ..trajectory import MDTrajectory, compute_pressure_temperature, estimate_all

logger = logging.getLogger(__name__)

# Å/fs in Bohr per atomic time unit
_ANGSTROM_PER_FS_TO_ATOMIC = units.ATU_TO_FS / ase_units.Bohr


def species_from_symbols(symbols: Sequence[str]) -> tuple[list[int], list[int]]:
    """
    Species table ordered by first appearance.

    Returns:
        (species index of each atom, atomic number of each species).
    """
    order: list[str] = []
    species = []
    for symbol in symbols:
        if symbol not in order:
            order.append(symbol)
        species.append(order.index(symbol))
    return species, [symbol_to_z[symbol] for symbol in order]


def _frame_energy(atoms: Atoms) -> float:
    energy = 0.0
    if atoms.calc is not None:
        with contextlib.suppress(PropertyNotImplementedError):
            energy = atoms.get_potential_energy()
    return energy / ase_units.Hartree


def _frame_stress(atoms: Atoms) -> np.ndarray | None:
    stress = None
    if atoms.calc is not None:
        with contextlib.suppress(PropertyNotImplementedError):
            stress = atoms.get_stress(voigt=True) * ase_units.Bohr**3 / ase_units.Hartree
    return stress


def trajectory_from_atoms(
    images: Sequence[Atoms],
    timestep_fs: float | None = None,
    try_to_map: bool = False,
    name: str = "trajectory",
) -> MDTrajectory:
    """
    Build a trajectory from ASE Atoms frames.

    Positions and cells are converted from Å to Bohr, velocities from ASE
    units to Bohr per atomic time unit, energies from eV to Ha and stresses
    from eV/Å^3 to Ha/Bohr^3. Temperature and pressure are computed from the
    velocities when the frames carry momenta, otherwise estimated by finite
    differences of the positions when a time step is known.

    Args:
        images: Frames sharing one atom ordering.
        timestep_fs: Time between frames (fs). Defaults to the standard
            frame spacing.
        try_to_map: Reconcile atom ordering when merging by default.
        name: Label used for output file names.

    Returns:
        New MDTrajectory.

    Raises:
        ValueError: If no frames are given or the frames disagree on atoms.
    """
    if len(images) == 0:
        raise ValueError("At least one frame is required")
    symbols = images[0].get_chemical_symbols()
    species, znucl = species_from_symbols(symbols)
    has_velocities = all(atoms.has("momenta") for atoms in images)

    traj = MDTrajectory.create(
        species,
        znucl,
        capacity=len(images),
        try_to_map=try_to_map,
        name=name,
        has_velocities=has_velocities,
    )
    dtion = units.DEFAULT_DTION if timestep_fs is None else timestep_fs / units.ATU_TO_FS

    for itime, atoms in enumerate(images):
        if atoms.get_chemical_symbols() != symbols:
            raise ValueError(f"Frame {itime} has a different atom list than frame 0")
        velocities = None
        kinetic = 0.0
        if has_velocities:
            velocities = atoms.get_velocities() * ase_units.fs * _ANGSTROM_PER_FS_TO_ATOMIC
            kinetic = atoms.get_kinetic_energy() / ase_units.Hartree
        traj.append_frame(
            itime * dtion,
            atoms.get_positions() / ase_units.Bohr,
            np.asarray(atoms.get_cell()) / ase_units.Bohr,
            stress=_frame_stress(atoms),
            total_energy=_frame_energy(atoms),
            velocities=velocities,
            kinetic_energy=kinetic,
        )

    if has_velocities:
        for itime in range(traj.ntime):
            compute_pressure_temperature(traj, itime)
    elif timestep_fs is not None and traj.ntime > 1:
        logger.info("No velocities recorded, estimating them by finite differences")
        estimate_all(traj, dtion)
    return traj


def read_trajectory(
    filename: str,
    index: int | str = ":",
    timestep_fs: float | None = None,
    **kwargs,
) -> MDTrajectory:
    """
    Read a trajectory with ASE's universal reader.

    Args:
        filename: Input file path (any format ASE can read).
        index: Frame index or slice string.
        timestep_fs: Time between frames (fs).
        **kwargs: Additional arguments passed to ase.io.read.

    Returns:
        New MDTrajectory named after the file.
    """
    images = ase_read(filename, index=index, **kwargs)
    if not isinstance(images, list):
        images = [images]
    logger.info("Read %d frames from %s", len(images), filename)
    return trajectory_from_atoms(images, timestep_fs=timestep_fs, name=str(filename))
