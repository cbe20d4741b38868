"""Data-parallel execution for analysis loops."""

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threads import ThreadBackend
from .dispatcher import (
    available_backends,
    get_backend,
    reset_default_backend,
    set_default_backend,
)

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "ThreadBackend",
    "available_backends",
    "get_backend",
    "reset_default_backend",
    "set_default_backend",
]
