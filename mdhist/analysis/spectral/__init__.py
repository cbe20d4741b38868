"""Vibrational spectra."""

from .pdos import PhononDensityOfStates, frequency_axis, gaussian_smearing

__all__ = ["PhononDensityOfStates", "frequency_axis", "gaussian_smearing"]
