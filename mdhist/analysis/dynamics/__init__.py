"""Dynamical correlation functions."""

from .vacf import VelocityAutocorrelation

__all__ = ["VelocityAutocorrelation"]
