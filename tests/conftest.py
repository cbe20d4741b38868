"""Shared trajectory fixtures."""

import numpy as np
import pytest

from mdhist.trajectory import MDTrajectory, compute_pressure_temperature

CELL = np.eye(3) * 20.0
DTION = 100.0


def build_trajectory(
    velocities,
    positions0=None,
    species=(0, 0, 1, 1),
    znucl=(14, 8),
    dtion=DTION,
    temperature=None,
    pressure=0.0,
    total_energy=-10.0,
    name="trajectory",
):
    """
    Build an MD trajectory from per-frame velocities.

    Positions are integrated from the velocities so finite differences are
    consistent. Temperatures come from the velocities unless given.
    """
    velocities = np.asarray(velocities, dtype=float)
    n_frames, n_atoms = velocities.shape[:2]
    if positions0 is None:
        positions0 = np.arange(n_atoms * 3, dtype=float).reshape(n_atoms, 3)
    traj = MDTrajectory.create(list(species), list(znucl), name=name)
    positions = np.array(positions0, dtype=float)
    for itime in range(n_frames):
        traj.append_frame(
            itime * dtion,
            positions,
            CELL,
            total_energy=total_energy,
            velocities=velocities[itime],
            pressure=pressure,
        )
        if temperature is None:
            compute_pressure_temperature(traj, itime)
        else:
            traj.md.frames["temperature"][itime] = temperature
        positions = positions + velocities[itime] * dtion
    return traj


@pytest.fixture
def constant_trajectory():
    """4 atoms, 2 species, 5 frames, constant velocities, 300 K."""
    v = np.array(
        [
            [1.0e-4, 0.0, 0.0],
            [0.0, 2.0e-4, 0.0],
            [0.0, 0.0, 3.0e-4],
            [1.0e-4, 1.0e-4, 1.0e-4],
        ]
    )
    return build_trajectory(np.repeat(v[None], 5, axis=0), temperature=300.0)


@pytest.fixture
def make_random_trajectory():
    """Factory for trajectories with random velocities."""

    def factory(n_frames=64, seed=0, temperature=300.0, **kwargs):
        rng = np.random.default_rng(seed)
        velocities = rng.normal(scale=1e-4, size=(n_frames, 4, 3))
        return build_trajectory(velocities, temperature=temperature, **kwargs)

    return factory


@pytest.fixture(name="build_trajectory")
def build_trajectory_fixture():
    """The trajectory builder itself."""
    return build_trajectory
