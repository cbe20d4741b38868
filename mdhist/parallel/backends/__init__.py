"""Parallel backend implementations."""

from .base import ParallelBackend
from .serial import SerialBackend
from .threads import ThreadBackend

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "ThreadBackend",
]
