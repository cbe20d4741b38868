"""Trajectory input."""

from .ase_adapter import read_trajectory, species_from_symbols, trajectory_from_atoms

__all__ = ["read_trajectory", "species_from_symbols", "trajectory_from_atoms"]
