"""Base classes for analysis."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from ..parallel import ParallelBackend, get_backend

if TYPE_CHECKING:
    from ..trajectory import MDTrajectory


@dataclass
class SpeciesSeries:
    """
    One sequence per atomic species plus an all-atom aggregate.

    Attributes:
        values: Array of shape (n_species + 1, n_points). Row 0 aggregates
            all atoms, row ``s + 1`` holds species ``s``.
        labels: "All" followed by the chemical symbol of each species.
    """

    values: NDArray[np.floating]
    labels: list[str] = field(default_factory=list)

    @property
    def all(self) -> NDArray[np.floating]:
        """All-atom aggregate."""
        return self.values[0]

    def species(self, index: int) -> NDArray[np.floating]:
        """Series of species ``index`` (0-based)."""
        return self.values[index + 1]

    @property
    def n_points(self) -> int:
        """Length of each series."""
        return self.values.shape[1]

    def __len__(self) -> int:
        return self.values.shape[0]


class TrajectoryAnalyzer(ABC):
    """
    Base class for trajectory (offline) analyzers.

    Analyzers operate on a half-open frame window [tbegin, tend) of a
    recorded trajectory. Independent inner loops are dispatched through a
    :class:`ParallelBackend`.
    """

    def __init__(self, backend: ParallelBackend | str | None = None) -> None:
        """
        Initialize analyzer.

        Args:
            backend: Parallel backend, backend name, or None for the default.
        """
        self.backend = get_backend(backend)

    @property
    @abstractmethod
    def name(self) -> str:
        """Analyzer name for identification."""
        ...

    @abstractmethod
    def analyze(
        self,
        trajectory: MDTrajectory,
        tbegin: int = 0,
        tend: int | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Analyze a frame window.

        Args:
            trajectory: Recorded trajectory.
            tbegin: First frame (inclusive).
            tend: Last frame (exclusive). Defaults to all recorded frames.
            **kwargs: Analyzer-specific options.

        Returns:
            Analysis results dictionary.
        """
        ...

    @staticmethod
    def window(trajectory: MDTrajectory, tbegin: int, tend: int | None) -> tuple[int, int]:
        """Resolve a default end frame."""
        return tbegin, trajectory.ntime if tend is None else tend
