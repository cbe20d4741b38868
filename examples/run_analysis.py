#!/usr/bin/env python
"""
Harmonic crystal history with full analysis.

This example demonstrates:
- Building two trajectory segments and merging them
- Estimating velocities, temperature and pressure from positions
- Thermodynamic summary, VACF and PDOS
- Harmonic free energy, entropy and heat capacity

Usage:
    python examples/run_analysis.py
"""

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend

import numpy as np

from mdhist import AnalysisConfig, MDTrajectory, derived_series, plotting, thermo_summary
from mdhist.analysis import compute_thermo_functions
from mdhist.trajectory import estimate_all

# Two Si and two O atoms oscillating around a cubic lattice (atomic units)
DTION = 40.0
OMEGAS = np.array([2.0e-3, 2.0e-3, 4.0e-3, 4.0e-3])
AMPLITUDE = 0.05


def make_segment(n_frames: int, t0: int, seed: int) -> MDTrajectory:
    """Sample independent 3D oscillators starting at frame index ``t0``."""
    rng = np.random.default_rng(seed)
    phases = rng.uniform(0.0, 2.0 * np.pi, size=(4, 3))
    lattice = np.array([[0.0, 0.0, 0.0], [5.0, 5.0, 0.0], [5.0, 0.0, 5.0], [0.0, 5.0, 5.0]])
    cell = np.eye(3) * 10.0

    traj = MDTrajectory.create(
        species_of_atom=[0, 0, 1, 1], atomic_numbers=[14, 8], name="harmonic_HIST.nc"
    )
    traj.reserve(n_frames)
    for i in range(n_frames):
        t = (t0 + i) * DTION
        displacement = AMPLITUDE * np.sin(OMEGAS[:, None] * t + phases)
        traj.append_frame(t, lattice + displacement, cell, total_energy=-35.0)
    estimate_all(traj, DTION)
    return traj


def main():
    print("=" * 60)
    print("Harmonic Crystal Analysis")
    print("=" * 60)

    first = make_segment(300, 0, seed=1)
    second = make_segment(300, 300, seed=2)
    traj = first.merge(second)
    print(f"Frames after merge: {traj.ntime}")

    print(thermo_summary(traj, 0, traj.ntime).format())

    config = AnalysisConfig(tunit="fs", backend="threads", n_workers=2)
    functions = compute_thermo_functions(traj, 0, traj.ntime)
    print(f"\nF = {functions.free_energy:.6e} eV/atom, S = {functions.entropy:.6e} kB/atom")

    for name in ("T", "vacf", "pdos", "thermo"):
        series = derived_series(traj, name, config=config)
        plotting.plot_series(series, show=False)
        plotting.save(f"{series.filename}.png")
        print(f"Saved {series.filename}.png")


if __name__ == "__main__":
    main()
