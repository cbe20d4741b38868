"""
Vibrational thermodynamics in the harmonic approximation.

Each PDOS bin is treated as a population of independent quantum harmonic
oscillators. Integrating the oscillator free energy, energy, heat capacity
and entropy against the normalized PDOS gives per-atom quantities.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ... import units
from ...parallel import get_backend
from ..base import TrajectoryAnalyzer
from ..spectral.pdos import PhononDensityOfStates

if TYPE_CHECKING:
    from ...parallel import ParallelBackend
    from ...trajectory import MDTrajectory

logger = logging.getLogger(__name__)

DEFAULT_N_TEMPERATURES = 1000


@dataclass(frozen=True)
class ThermoFunctions:
    """
    Harmonic thermodynamic functions per atom.

    Attributes:
        free_energy: Vibrational free energy F (eV/atom).
        internal_energy: Vibrational energy E (eV/atom).
        heat_capacity: Heat capacity Cv (kB/atom).
        entropy: Vibrational entropy S (kB/atom).
    """

    free_energy: float
    internal_energy: float
    heat_capacity: float
    entropy: float

    def __iter__(self) -> Iterator[float]:
        yield self.free_energy
        yield self.internal_energy
        yield self.heat_capacity
        yield self.entropy


@dataclass
class ThermoSweep:
    """Thermodynamic functions over a temperature grid."""

    temperatures: NDArray[np.floating]
    free_energy: NDArray[np.floating]
    internal_energy: NDArray[np.floating]
    heat_capacity: NDArray[np.floating]
    entropy: NDArray[np.floating]

    def as_rows(self) -> NDArray[np.floating]:
        """Stack F, E, Cv and S as a (4, n_temperatures) array."""
        return np.vstack(
            [self.free_energy, self.internal_energy, self.heat_capacity, self.entropy]
        )


def frequency_step(n: int, dtion_ps: float) -> float:
    """Width of one PDOS bin in THz."""
    return 1.0 / (2.0 * dtion_ps * n)


def renormalize_pdos(pdos: ArrayLike, domega: float, nmax: int) -> NDArray[np.floating]:
    """
    Scale a PDOS so its trapezoidal integral over the first nmax bins is 1.

    Args:
        pdos: PDOS samples.
        domega: Bin width.
        nmax: Number of bins included in the integral.

    Returns:
        Renormalized copy of the first nmax bins.

    Raises:
        ValueError: If the integral is not positive.
    """
    g = np.array(pdos[:nmax], dtype=np.float64)
    integral = float(np.sum(g[:-1] + g[1:]) * domega * 0.5)
    if not integral > 0:
        raise ValueError(f"PDOS integral must be positive, got {integral}")
    return g / integral


def _oscillator_terms(x: NDArray[np.floating]) -> tuple[NDArray[np.floating], ...]:
    # ln(2 sinh x), coth x, x^2/sinh^2 x and x coth x - ln(2 sinh x),
    # written in exp(-2x) so large x neither overflows nor loses precision
    em2x = np.exp(-2.0 * x)
    one_minus = -np.expm1(-2.0 * x)
    log2sinh = x + np.log(one_minus)
    coth = 1.0 / np.tanh(x)
    cv = (2.0 * x) ** 2 * em2x / one_minus**2
    s = 2.0 * x * em2x / one_minus - np.log(one_minus)
    return log2sinh, coth, cv, s


def compute_thermo_functions_ha(
    pdos: ArrayLike,
    temperature: float,
    dtion_ps: float,
    omega_max: float | None = None,
) -> ThermoFunctions:
    """
    Harmonic thermodynamic functions of a PDOS at one temperature.

    Args:
        pdos: PDOS row on the n-bin axis produced by the spectral engine.
        temperature: Temperature in K (> 0).
        dtion_ps: Frame spacing (ps) of the trajectory the PDOS came from.
        omega_max: Frequency cutoff in THz. None integrates over all bins.

    Returns:
        F and E in eV/atom, Cv and S in kB/atom.

    Raises:
        ValueError: For a non-positive temperature, fewer than 2 bins below
            the cutoff, or a PDOS with non-positive integral.
    """
    if not temperature > 0:
        raise ValueError(f"Temperature must be positive, got {temperature}")
    pdos = np.asarray(pdos, dtype=np.float64)
    n = pdos.shape[0]
    domega = frequency_step(n, dtion_ps)
    nmax = n if omega_max is None else min(int(omega_max / domega), n)
    if nmax < 2:
        raise ValueError(f"Need at least 2 PDOS bins below the cutoff, got {nmax}")

    g = renormalize_pdos(pdos, domega, nmax)
    gdw = (g[:-1] + g[1:]) * domega * 0.5
    omega = (np.arange(nmax - 1) + 0.5) * domega * units.THZ_TO_HA * units.HA_TO_EV

    kt = units.KB_EV * temperature
    x = omega / (2.0 * kt)
    log2sinh, coth, cv, s = _oscillator_terms(x)

    return ThermoFunctions(
        free_energy=float(3.0 * kt * np.sum(log2sinh * gdw)),
        internal_energy=float(1.5 * np.sum(omega * coth * gdw)),
        heat_capacity=float(3.0 * np.sum(cv * gdw)),
        entropy=float(3.0 * np.sum(s * gdw)),
    )


def thermo_sweep(
    pdos: ArrayLike,
    temperature: float,
    dtion_ps: float,
    omega_max: float | None = None,
    n_temperatures: int = DEFAULT_N_TEMPERATURES,
    backend: ParallelBackend | str | None = None,
) -> ThermoSweep:
    """
    Evaluate the thermodynamic functions from 0 to twice a temperature.

    The grid holds ``(i + 1) * 2T / n_temperatures`` for i in
    [0, n_temperatures).

    Raises:
        ValueError: If temperature or n_temperatures is not positive.
    """
    if n_temperatures < 1:
        raise ValueError(f"n_temperatures must be >= 1, got {n_temperatures}")
    if not temperature > 0:
        raise ValueError(f"Temperature must be positive, got {temperature}")

    temperatures = (np.arange(n_temperatures) + 1) * 2.0 * temperature / n_temperatures
    backend = get_backend(backend)
    results = backend.parallel_map(
        lambda t: tuple(compute_thermo_functions_ha(pdos, t, dtion_ps, omega_max)),
        list(temperatures),
    )
    table = np.array(results, dtype=np.float64).reshape(n_temperatures, 4)
    return ThermoSweep(
        temperatures=temperatures,
        free_energy=table[:, 0],
        internal_energy=table[:, 1],
        heat_capacity=table[:, 2],
        entropy=table[:, 3],
    )


def compute_thermo_functions(
    trajectory: MDTrajectory,
    tbegin: int,
    tend: int,
    omega_max: float | None = None,
    backend: ParallelBackend | str | None = None,
) -> ThermoFunctions:
    """
    Harmonic thermodynamic functions of a frame window.

    Uses the unsmeared all-atom PDOS and the mean temperature of the window.

    Raises:
        ValueError: If the window is invalid, the mean temperature is not
            positive or the PDOS cannot be normalized.
        RuntimeError: If the PDOS cannot be computed.
        ImportError: If scipy.fft is not installed.

    Errors past the window check carry the context "Unable to compute
    thermodynamics functions".
    """
    try:
        trajectory.check_times(tbegin, tend)
    except ValueError as err:
        raise ValueError(f"Thermodynamics calculations aborted: {err}") from err

    try:
        pdos = PhononDensityOfStates(backend).compute(trajectory, tbegin, tend).all
        temperature = float(np.mean(trajectory.temperature[tbegin:tend]))
        return compute_thermo_functions_ha(pdos, temperature, trajectory.dtion_ps, omega_max)
    except (RuntimeError, ImportError, ValueError) as err:
        raise type(err)(f"Unable to compute thermodynamics functions: {err}") from err


class HarmonicThermodynamics(TrajectoryAnalyzer):
    """
    Thermodynamic functions versus temperature from the smeared PDOS.

    The sweep runs up to twice the mean temperature of the window.
    """

    def __init__(
        self,
        backend: ParallelBackend | str | None = None,
        n_temperatures: int = DEFAULT_N_TEMPERATURES,
        omega_max: float | None = None,
    ) -> None:
        super().__init__(backend)
        self.n_temperatures = n_temperatures
        self.omega_max = omega_max
        self._pdos = PhononDensityOfStates(backend=self.backend)

    @property
    def name(self) -> str:
        """Analyzer name."""
        return "thermo"

    def analyze(
        self,
        trajectory: MDTrajectory,
        tbegin: int = 0,
        tend: int | None = None,
        tsmear: float | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Sweep the thermodynamic functions.

        Returns:
            Dictionary with 'sweep' (ThermoSweep), 'temperature' (mean, K)
            and 'tsmear' (K).
        """
        tbegin, tend = self.window(trajectory, tbegin, tend)
        spectrum = self._pdos.analyze(trajectory, tbegin, tend, tsmear=tsmear)
        temperature = float(np.mean(trajectory.temperature[tbegin:tend]))
        sweep = thermo_sweep(
            spectrum["pdos"][0],
            temperature,
            trajectory.dtion_ps,
            omega_max=self.omega_max,
            n_temperatures=self.n_temperatures,
            backend=self.backend,
        )
        logger.debug("Thermodynamic sweep up to %g K", 2.0 * temperature)
        return {"sweep": sweep, "temperature": temperature, "tsmear": spectrum["tsmear"]}
