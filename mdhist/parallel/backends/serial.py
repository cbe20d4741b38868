"""Serial (single-thread) backend."""

from __future__ import annotations

from .base import ParallelBackend


class SerialBackend(ParallelBackend):
    """
    Serial backend running every work item in the calling thread.

    This is the default backend and provides the reference results.
    """

    @property
    def name(self) -> str:
        """Return backend name."""
        return "serial"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return 1
