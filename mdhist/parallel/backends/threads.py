"""Thread-pool backend."""

from __future__ import annotations

import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .base import ParallelBackend


class ThreadBackend(ParallelBackend):
    """
    Shared-memory backend using a thread pool.

    NumPy and scipy.fft release the GIL in their kernels, so per-species
    transforms and blocked reductions overlap well on threads. Work items
    share read-only inputs and write disjoint output slots.
    """

    def __init__(self, n_workers: int | None = None) -> None:
        """
        Initialize thread backend.

        Args:
            n_workers: Number of worker threads. Defaults to CPU count.
        """
        if n_workers is not None and n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {n_workers}")
        self._n_workers = n_workers or os.cpu_count() or 1

    @property
    def name(self) -> str:
        """Return backend name."""
        return "threads"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return self._n_workers

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: list[Any],
    ) -> list[Any]:
        """
        Apply function to items on the thread pool.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item, in input order.
        """
        if len(items) == 0:
            return []
        if len(items) == 1 or self._n_workers == 1:
            return [func(item) for item in items]

        with ThreadPoolExecutor(max_workers=self._n_workers) as executor:
            results = list(executor.map(func, items))

        return results
