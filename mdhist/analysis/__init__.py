"""Analysis subsystem for recorded trajectories."""

from .base import SpeciesSeries, TrajectoryAnalyzer
from .correlation import acf
from .dynamics.vacf import VelocityAutocorrelation
from .series import SeriesData, derived_series
from .spectral.pdos import PhononDensityOfStates
from .thermodynamics import (
    HarmonicThermodynamics,
    ThermoFunctions,
    ThermoSummary,
    average,
    compute_thermo_functions,
    compute_thermo_functions_ha,
    thermo_summary,
    thermo_sweep,
)

__all__ = [
    # Base classes
    "SpeciesSeries",
    "TrajectoryAnalyzer",
    "acf",
    # Dynamics
    "VelocityAutocorrelation",
    # Spectra
    "PhononDensityOfStates",
    # Thermodynamics
    "HarmonicThermodynamics",
    "ThermoFunctions",
    "ThermoSummary",
    "average",
    "compute_thermo_functions",
    "compute_thermo_functions_ha",
    "thermo_summary",
    "thermo_sweep",
    # Export
    "SeriesData",
    "derived_series",
]
