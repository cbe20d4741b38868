"""Velocity autocorrelation function analysis."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from ... import units
from ...trajectory import SegmentKind
from ..base import SpeciesSeries, TrajectoryAnalyzer
from ..correlation import acf

if TYPE_CHECKING:
    from ...parallel import ParallelBackend
    from ...trajectory import MDTrajectory


class VelocityAutocorrelation(TrajectoryAnalyzer):
    """
    Velocity autocorrelation function (VACF) per atomic species.

    VACF(t) = <v(0) · v(t)>

    The autocorrelation of each of the 3N velocity channels is averaged over
    time origins inside the window, then summed per atom and accumulated
    into the all-atom aggregate and the atom's species. Each accumulator is
    divided by 3 times its atom count and converted to nm^2/ps^2.

    The Fourier transform of VACF gives the vibrational density of states.
    """

    def __init__(
        self,
        backend: ParallelBackend | str | None = None,
        min_chunk: int = 64,
    ) -> None:
        """
        Initialize VACF calculator.

        Args:
            backend: Parallel backend used for the per-lag aggregation.
            min_chunk: Smallest number of lags per work item.
        """
        super().__init__(backend)
        self.min_chunk = min_chunk

    @property
    def name(self) -> str:
        """Analyzer name."""
        return "vacf"

    def compute(self, trajectory: MDTrajectory, tbegin: int, tend: int) -> SpeciesSeries:
        """
        Compute the VACF over frames [tbegin, tend).

        Args:
            trajectory: Trajectory with velocities.
            tbegin: First frame (inclusive).
            tend: Last frame (exclusive).

        Returns:
            VACF per lag (nm^2/ps^2/atom), all atoms first.

        Raises:
            RuntimeError: If the window is empty or the velocities are unusable.
        """
        try:
            if trajectory.kind is not SegmentKind.MD or not trajectory.has_velocities:
                raise ValueError(f"{trajectory.name} holds no velocities")
            trajectory.check_times(tbegin, tend)
            n_atoms = trajectory.n_atoms
            window = trajectory.velocities[tbegin:tend].reshape(tend - tbegin, 3 * n_atoms)
            full = acf(window)
        except (ValueError, IndexError) as err:
            raise RuntimeError(
                f"VACF calculation failed for frames [{tbegin}, {tend}): {err}"
            ) from err

        ntau = full.shape[0]
        per_atom = full.reshape(ntau, n_atoms, 3).sum(axis=2)

        n_species = trajectory.n_species
        membership = np.zeros((n_atoms, n_species + 1))
        membership[:, 0] = 1.0
        membership[np.arange(n_atoms), trajectory.species_of_atom + 1] = 1.0

        def accumulate(chunk: tuple[int, int]) -> NDArray[np.floating]:
            start, end = chunk
            return per_atom[start:end] @ membership

        chunks = self.backend.partition(ntau, self.min_chunk)
        sums = np.concatenate(self.backend.parallel_map(accumulate, chunks), axis=0)

        counts = np.concatenate(([n_atoms], trajectory.species_counts()))
        norm = (3.0 * counts)[:, None]
        values = np.zeros((n_species + 1, ntau))
        np.divide(sums.T, norm, out=values, where=norm > 0)
        values *= units.VACF_TO_NM2_PS2

        return SpeciesSeries(values, ["All", *trajectory.species_labels()])

    @staticmethod
    def time_axis(trajectory: MDTrajectory, n_lags: int) -> NDArray[np.floating]:
        """Lag times in ps."""
        return np.arange(n_lags) * trajectory.dtion_ps

    def analyze(
        self,
        trajectory: MDTrajectory,
        tbegin: int = 0,
        tend: int | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Compute the VACF and its time axis.

        Returns:
            Dictionary with 'time' (ps), 'vacf' (n_species + 1 rows),
            'labels' and 'n_frames'.
        """
        tbegin, tend = self.window(trajectory, tbegin, tend)
        series = self.compute(trajectory, tbegin, tend)
        return {
            "time": self.time_axis(trajectory, series.n_points),
            "vacf": series.values,
            "labels": series.labels,
            "n_frames": tend - tbegin,
        }

    def compute_diffusion_coefficient(
        self, trajectory: MDTrajectory, tbegin: int = 0, tend: int | None = None
    ) -> NDArray[np.floating]:
        """
        Diffusion coefficient from the VACF integral, per row.

        D = (1/3) * integral_0^inf VACF(t) dt, with the per-channel VACF
        already averaged over the three directions, so D = integral VACF dt.

        Returns:
            D in nm^2/ps for the aggregate and each species.
        """
        tbegin, tend = self.window(trajectory, tbegin, tend)
        series = self.compute(trajectory, tbegin, tend)
        if series.n_points < 2:
            return np.zeros(len(series))
        return np.trapezoid(series.values, dx=trajectory.dtion_ps, axis=1)
