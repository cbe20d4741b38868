"""Thermodynamic analysis."""

from .harmonic import (
    HarmonicThermodynamics,
    ThermoFunctions,
    ThermoSweep,
    compute_thermo_functions,
    compute_thermo_functions_ha,
    renormalize_pdos,
    thermo_sweep,
)
from .summary import ThermoSummary, average, thermo_summary

__all__ = [
    # Harmonic approximation
    "HarmonicThermodynamics",
    "ThermoFunctions",
    "ThermoSweep",
    "compute_thermo_functions",
    "compute_thermo_functions_ha",
    "renormalize_pdos",
    "thermo_sweep",
    # Window statistics
    "ThermoSummary",
    "average",
    "thermo_summary",
]
