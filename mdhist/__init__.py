"""
mdhist - Analysis of molecular-dynamics trajectory histories.

Stores per-frame positions, cells, stresses, energies and MD observables in
atomic units, merges and interpolates trajectory segments, and derives
velocity autocorrelation functions, phonon densities of states and harmonic
thermodynamic functions from them.

Quick Start:
    >>> from mdhist import MDTrajectory, derived_series
    >>> traj = MDTrajectory.create(species_of_atom=[0, 1], atomic_numbers=[14, 8])
    >>> ...  # append frames
    >>> pdos = derived_series(traj, "pdos")
"""

__version__ = "0.1.0"

from . import plotting
from .analysis import (
    PhononDensityOfStates,
    SeriesData,
    VelocityAutocorrelation,
    compute_thermo_functions,
    derived_series,
    thermo_summary,
)
from .config import AnalysisConfig, load_config
from .system import Box
from .trajectory import MDTrajectory, SegmentKind, TrajectoryStore

__all__ = [
    "plotting",
    "AnalysisConfig",
    "load_config",
    "Box",
    "MDTrajectory",
    "SegmentKind",
    "TrajectoryStore",
    "PhononDensityOfStates",
    "VelocityAutocorrelation",
    "SeriesData",
    "compute_thermo_functions",
    "derived_series",
    "thermo_summary",
]
