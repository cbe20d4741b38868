"""
Phonon density of states from the velocity autocorrelation function.

Transforms go through scipy.fft, whose plan cache is thread-safe, so rows
are transformed concurrently on the configured backend without locking.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from ... import units
from ..base import SpeciesSeries, TrajectoryAnalyzer
from ..dynamics.vacf import VelocityAutocorrelation

if TYPE_CHECKING:
    from ...parallel import ParallelBackend
    from ...trajectory import MDTrajectory

try:
    import scipy.fft

    HAS_SCIPY_FFT = True
except ImportError:
    HAS_SCIPY_FFT = False

logger = logging.getLogger(__name__)

SMEARING_BLOCK = 512


def check_fft() -> None:
    """Raise ImportError if the discrete cosine transform is unavailable."""
    if not HAS_SCIPY_FFT:
        raise ImportError(
            "scipy is required to compute the PDOS. Install it with: pip install scipy"
        )


def gaussian_smearing(
    spectrum: NDArray[np.floating],
    sigma: float,
    block: int = SMEARING_BLOCK,
) -> NDArray[np.floating]:
    """
    Spread each sample of a spectrum over a Gaussian.

    Sample ``i`` sits at ``i/n`` on the normalized axis and contributes
    ``spectrum[i] / (sigma * sqrt(2 pi)) * exp(-(g/n - i/n)^2 / (2 sigma^2))``
    to every output bin ``g``.

    Args:
        spectrum: Raw spectrum of length n.
        sigma: Standard deviation on the normalized axis (> 0).
        block: Number of source samples handled at once.

    Returns:
        Smeared spectrum of length n.
    """
    spectrum = np.asarray(spectrum, dtype=np.float64)
    n = spectrum.shape[0]
    grid = np.arange(n) / n
    renorm = 1.0 / (sigma * np.sqrt(2.0 * np.pi))
    inv_2sigma2 = 1.0 / (2.0 * sigma * sigma)

    out = np.zeros(n)
    for start in range(0, n, block):
        centers = grid[start : start + block]
        weights = np.exp(-((grid[None, :] - centers[:, None]) ** 2) * inv_2sigma2)
        out += (spectrum[start : start + block] * renorm) @ weights
    return out


def frequency_axis(n: int, dtion_ps: float) -> NDArray[np.floating]:
    """Frequencies of the n PDOS bins in meV, up to the Nyquist frequency."""
    return units.THZ_TO_MEV * np.arange(n) / (2.0 * dtion_ps * n)


class PhononDensityOfStates(TrajectoryAnalyzer):
    """
    Phonon density of states (PDOS) per atomic species.

    The PDOS is the cosine transform (DCT-II) of the VACF, one transform per
    species row plus the all-atom row, optionally broadened by a Gaussian.
    """

    def __init__(self, backend: ParallelBackend | str | None = None) -> None:
        super().__init__(backend)
        self._vacf = VelocityAutocorrelation(backend=self.backend)

    @property
    def name(self) -> str:
        """Analyzer name."""
        return "pdos"

    def compute(
        self,
        trajectory: MDTrajectory,
        tbegin: int,
        tend: int,
        sigma: float = 0.0,
    ) -> SpeciesSeries:
        """
        Compute the PDOS over frames [tbegin, tend).

        Args:
            trajectory: Trajectory with velocities.
            tbegin: First frame (inclusive).
            tend: Last frame (exclusive).
            sigma: Smearing on the normalized frequency axis; 0 disables it.

        Returns:
            PDOS rows (arbitrary units per atom), all atoms first.

        Raises:
            ValueError: If sigma is negative.
            ImportError: If scipy.fft is not installed.
            RuntimeError: If the VACF cannot be computed.
        """
        if sigma < 0:
            raise ValueError("tsmear needs to be positive")
        check_fft()

        vacf = self._vacf.compute(trajectory, tbegin, tend)
        howmany = vacf.values.shape[0]

        # One scipy worker per row when rows already run side by side
        workers = 1 if howmany > 1 else -1

        def transform(row: NDArray[np.floating]) -> NDArray[np.floating]:
            return scipy.fft.dct(row, type=2, workers=workers)

        rows = self.backend.parallel_map(transform, list(vacf.values))

        if sigma > 0:
            rows = self.backend.parallel_map(lambda row: gaussian_smearing(row, sigma), rows)

        return SpeciesSeries(np.vstack(rows), list(vacf.labels))

    def analyze(
        self,
        trajectory: MDTrajectory,
        tbegin: int = 0,
        tend: int | None = None,
        tsmear: float | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Compute the PDOS on its frequency axis.

        Args:
            trajectory: Trajectory with velocities and temperatures.
            tbegin: First frame (inclusive).
            tend: Last frame (exclusive).
            tsmear: Smearing in K. Defaults to 5% of the mean temperature.

        Returns:
            Dictionary with 'frequency' (meV), 'pdos', 'labels' and
            'tsmear' (K).
        """
        tbegin, tend = self.window(trajectory, tbegin, tend)
        if tsmear is None:
            trajectory.check_times(tbegin, tend)
            tsmear = 0.05 * float(np.mean(trajectory.temperature[tbegin:tend]))
        if tsmear < 0:
            raise ValueError("tsmear needs to be positive")
        logger.info("Smearing [K]: %g", tsmear)

        dtion_ps = trajectory.dtion_ps
        sigma = units.kelvin_to_normalized_frequency(tsmear, dtion_ps)
        series = self.compute(trajectory, tbegin, tend, sigma=sigma)
        return {
            "frequency": frequency_axis(series.n_points, dtion_ps),
            "pdos": series.values,
            "labels": series.labels,
            "tsmear": tsmear,
        }
