"""
Unit conversion factors.

Trajectories are stored in Hartree atomic units (energy in Ha, length in
Bohr, time in atomic time units ħ/Ha). All factors are derived from the
CODATA values shipped with ASE so they stay consistent with the rest of the
atomistic stack.
"""

from __future__ import annotations

from ase import units

# Energy
HA_TO_EV = units.Hartree
KB_EV = units.kB  # eV/K
KB_HA = units.kB / units.Hartree  # Ha/K
KB_MEV = units.kB * 1e3  # meV/K

# Length and time
BOHR_TO_ANGSTROM = units.Bohr
ATU_TO_FS = units._aut * 1e15
ATU_TO_PS = ATU_TO_FS * 1e-3

# Frequency: h * 1 THz expressed in Ha, and in meV
THZ_TO_HA = units._hplanck * 1e12 / (units.Hartree * units._e)
THZ_TO_MEV = THZ_TO_HA * HA_TO_EV * 1e3

# Mass: 1 amu in electron masses
AMU_TO_EMASS = units._amu / units._me

# Pressure: Ha/Bohr^3 in GPa
HA_BOHR3_TO_GPA = units.Hartree / units.Bohr**3 / units.GPa

# VACF: (Bohr/atu)^2 in nm^2/ps^2
VACF_TO_NM2_PS2 = (BOHR_TO_ANGSTROM * 1e-1) ** 2 / ATU_TO_PS**2

# Frame spacing assumed when a trajectory holds a single frame (atomic time units)
DEFAULT_DTION = 100.0


def dtion_to_ps(dtion: float) -> float:
    """Convert a frame spacing in atomic time units to picoseconds."""
    return ATU_TO_PS * dtion


def kelvin_to_normalized_frequency(tsmear: float, dtion_ps: float) -> float:
    """
    Convert a smearing temperature to the normalized frequency axis.

    The PDOS axis is sampled at i/n for i in [0, n), which maps to
    i / (2 * dtion_ps * n) THz. A width of kB*T (meV) therefore spans
    kB*T / THZ_TO_MEV * 2 * dtion_ps normalized units.

    Args:
        tsmear: Smearing expressed as a temperature (K).
        dtion_ps: Frame spacing (ps).

    Returns:
        Smearing width on the normalized [0, 1) axis.
    """
    return tsmear * KB_MEV / THZ_TO_MEV * (2.0 * dtion_ps)
