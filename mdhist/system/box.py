"""Simulation cell representation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class Box:
    """
    Periodic simulation cell.

    Orthorhombic and triclinic cells share one 3x3 matrix representation
    whose rows are the cell vectors [a, b, c] (Bohr). A cell with zero volume
    is treated as non-periodic.

    Attributes:
        vectors: 3x3 array where rows are cell vectors.
    """

    vectors: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate and convert vectors to proper shape."""
        vectors = np.asarray(self.vectors, dtype=np.float64)
        if vectors.shape == (3,):
            vectors = np.diag(vectors)
        if vectors.shape == (9,):
            vectors = vectors.reshape(3, 3)
        if vectors.shape != (3, 3):
            raise ValueError(f"Cell vectors must be (3,) or (3, 3), got {vectors.shape}")
        object.__setattr__(self, "vectors", vectors)

    @classmethod
    def orthorhombic(cls, lx: float, ly: float, lz: float) -> Box:
        """Create an orthorhombic cell with given side lengths."""
        return cls(np.array([lx, ly, lz]))

    @classmethod
    def cubic(cls, length: float) -> Box:
        """Create a cubic cell with given side length."""
        return cls.orthorhombic(length, length, length)

    @classmethod
    def triclinic(cls, vectors: ArrayLike) -> Box:
        """Create a triclinic cell from a 3x3 matrix of cell vectors."""
        return cls(np.asarray(vectors))

    @property
    def lengths(self) -> NDArray[np.floating]:
        """Return cell vector lengths [|a|, |b|, |c|]."""
        return np.linalg.norm(self.vectors, axis=1)

    @property
    def determinant(self) -> float:
        """Signed determinant of the cell matrix."""
        return float(np.linalg.det(self.vectors))

    @property
    def volume(self) -> float:
        """Return cell volume."""
        return abs(self.determinant)

    @property
    def is_periodic(self) -> bool:
        """True when the cell spans a non-degenerate volume."""
        return self.volume > 1e-12

    @property
    def is_orthorhombic(self) -> bool:
        """Check if the cell is orthorhombic (diagonal matrix)."""
        off_diag = self.vectors.copy()
        np.fill_diagonal(off_diag, 0)
        return np.allclose(off_diag, 0)

    def minimum_image(
        self, r1: NDArray[np.floating], r2: NDArray[np.floating]
    ) -> NDArray[np.floating]:
        """
        Compute minimum image displacement vectors r2 - r1.

        Inputs broadcast against each other, so pairwise displacements
        between two sets of atoms can be obtained with
        ``minimum_image(a[:, None, :], b[None, :, :])``.

        Args:
            r1: First position(s), shape (..., 3).
            r2: Second position(s), shape (..., 3).

        Returns:
            Displacement vector(s) under the minimum image convention, or the
            plain difference for a non-periodic cell.
        """
        dr = np.asarray(r2, dtype=np.float64) - np.asarray(r1, dtype=np.float64)
        if not self.is_periodic:
            return dr
        if self.is_orthorhombic:
            lengths = np.diag(self.vectors)
            return dr - lengths * np.round(dr / lengths)
        inv_vectors = np.linalg.inv(self.vectors)
        fractional = dr @ inv_vectors
        fractional = fractional - np.round(fractional)
        return fractional @ self.vectors
