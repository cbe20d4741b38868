"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class ParallelBackend(ABC):
    """
    Abstract base class for data-parallel execution.

    Analysis loops whose iterations are independent (VACF lag chunks,
    per-species transforms and smearing) go through ``parallel_map``, so the
    same code runs serially or on a worker pool. Work items only read shared
    inputs and write disjoint output slots.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: list[Any],
    ) -> list[Any]:
        """
        Apply function to items, preserving order.

        Default implementation is serial; backends can override.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item.
        """
        return [func(item) for item in items]

    def partition(self, n_items: int, min_chunk: int = 1) -> list[tuple[int, int]]:
        """
        Split ``range(n_items)`` into contiguous chunks, one per worker.

        Args:
            n_items: Number of items.
            min_chunk: Smallest chunk worth dispatching.

        Returns:
            List of (start, end) pairs covering [0, n_items).
        """
        if n_items <= 0:
            return []
        n_chunks = max(1, min(self.n_workers, n_items // max(min_chunk, 1)))
        per_chunk = n_items // n_chunks
        remainder = n_items % n_chunks

        chunks = []
        start = 0
        for rank in range(n_chunks):
            end = start + per_chunk + (1 if rank < remainder else 0)
            chunks.append((start, end))
            start = end
        return chunks
