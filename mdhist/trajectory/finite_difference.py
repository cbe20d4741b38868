"""
Velocities, temperature and pressure estimated from positions.

Used when a trajectory source records positions but no velocities. The
temperature is always recomputed from velocities: with path-integral or
other extended-ensemble dynamics the recorded kinetic energy differs from
the classical sum of m v^2 / 2.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .. import units

if TYPE_CHECKING:
    from .md import MDTrajectory


def compute_pressure_temperature(traj: MDTrajectory, itime: int) -> None:
    """
    Fill temperature and pressure of one frame from its velocities.

    T = sum(m v^2) / (3 kB N), with masses in electron masses and kB in Ha/K.
    P = -trace(stress) / 3 + N kB T / V, converted from Ha/Bohr^3 to GPa.

    Args:
        traj: Trajectory with velocities for frame ``itime``.
        itime: Frame index.
    """
    traj.check_frame(itime, "temperature")
    velocities = traj.md.ensure_velocities()[itime]
    masses = traj.masses() * units.AMU_TO_EMASS

    mv2 = float(np.sum(masses[:, None] * velocities**2))
    temperature = mv2 / (3.0 * units.KB_HA * traj.n_atoms)

    stress = traj.store.frames["stress"][itime]
    volume = float(np.linalg.det(traj.store.frames["cell"][itime]))
    kinetic = traj.n_atoms / volume * units.KB_HA * temperature if volume != 0 else 0.0
    pressure = units.HA_BOHR3_TO_GPA * (-(stress[0] + stress[1] + stress[2]) / 3.0 + kinetic)

    traj.md.frames["temperature"][itime] = temperature
    traj.md.frames["pressure"][itime] = pressure


def compute_velocities_pressure_temperature(traj: MDTrajectory, itime: int, dtion: float) -> None:
    """
    Estimate velocities once frame ``itime`` has been recorded.

    - ``itime >= 2``: central difference gives the velocity at ``itime - 1``.
    - ``itime`` is the last frame: backward difference at ``itime``.
    - ``itime == 1``: forward difference at frame 0.

    Temperature and pressure are refreshed for every frame whose velocity
    changed.

    Args:
        traj: Trajectory to update in place.
        itime: Index of the most recently available frame.
        dtion: Time step between frames, atomic time units.

    Raises:
        ValueError: If ``dtion`` is not positive.
        IndexError: If ``itime`` is not a recorded frame.
    """
    if dtion <= 0:
        raise ValueError(f"dtion must be positive, got {dtion}")
    traj.check_frame(itime, "positions")

    positions = traj.store.frames["positions"]
    velocities = traj.md.ensure_velocities()

    if itime >= 2:
        velocities[itime - 1] = 0.5 * (positions[itime] - positions[itime - 2]) / dtion
        compute_pressure_temperature(traj, itime - 1)
    if itime == traj.ntime - 1 and itime > 0:
        velocities[itime] = (positions[itime] - positions[itime - 1]) / dtion
        compute_pressure_temperature(traj, itime)
    if itime == 1:
        velocities[0] = (positions[1] - positions[0]) / dtion
        compute_pressure_temperature(traj, 0)


def estimate_all(traj: MDTrajectory, dtion: float | None = None) -> None:
    """
    Estimate velocities, temperature and pressure for every frame.

    Args:
        traj: Trajectory to update in place.
        dtion: Time step, atomic time units. Defaults to the spacing of the
            first two frames.
    """
    if traj.ntime < 2:
        raise ValueError(f"Finite differences need at least 2 frames, got {traj.ntime}")
    dtion = traj.dtion if dtion is None else dtion
    for itime in range(1, traj.ntime):
        compute_velocities_pressure_temperature(traj, itime, dtion)
