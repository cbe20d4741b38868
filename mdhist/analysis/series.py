"""
Derived series ready for plotting.

Each named function extracts or computes one family of curves from a frame
window together with its axis labels and a default output file name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .. import units
from ..config import AnalysisConfig
from ..trajectory import SegmentKind
from .dynamics.vacf import VelocityAutocorrelation
from .spectral.pdos import PhononDensityOfStates
from .thermodynamics.harmonic import HarmonicThermodynamics, compute_thermo_functions_ha

if TYPE_CHECKING:
    from ..parallel import ParallelBackend
    from ..trajectory import MDTrajectory, TrajectoryStore

logger = logging.getLogger(__name__)

THERMO_LABELS = ["F_vib [eV/atom]", "E_vib [eV/atom]", "C_v   [kB/atom]", "S_vib [kB/atom]"]

# function -> (file name, y label, title, attribute)
_MD_SERIES = {
    "T": ("temperature", "Temperature [K]", "Temperature", "temperature"),
    "P": ("pressure", "Pressure [GPa]", "Pressure", "pressure"),
    "ekin": ("ekin", "Ekin [Ha]", "Kinetic energy", "kinetic_energy"),
    "entropy": ("entropy", "Entropy", "Electronic entropy", "entropy"),
}

FUNCTIONS = (*_MD_SERIES, "vacf", "pdos", "thermo")


@dataclass
class SeriesData:
    """
    A family of curves sharing one x axis.

    Attributes:
        x: Abscissa values.
        y: One row per curve.
        labels: Curve labels (may be empty for a single curve).
        xlabel: Axis label of x.
        ylabel: Axis label of y.
        title: Plot title.
        filename: Output file name without extension.
        sum_up: Whether a plotter should print a summary of the curves.
    """

    x: NDArray[np.floating]
    y: NDArray[np.floating]
    labels: list[str] = field(default_factory=list)
    xlabel: str = ""
    ylabel: str = ""
    title: str = ""
    filename: str = ""
    sum_up: bool = True


def time_axis(
    trajectory: TrajectoryStore | MDTrajectory, tbegin: int, tend: int, tunit: str = "step"
) -> tuple[NDArray[np.floating], str]:
    """
    Time axis of a frame window.

    Returns:
        (values, label). Unknown units fall back to frame indices.
    """
    if tunit == "fs":
        return trajectory.time[tbegin:tend] * units.ATU_TO_FS, "Time [fs]"
    if tunit != "step":
        logger.warning("Unknown time unit %r, allowed values fs and step; using step", tunit)
    return np.arange(tbegin, tend, dtype=np.float64), "Time [step]"


def _mean_energy_per_atom(trajectory: MDTrajectory, tbegin: int, tend: int) -> float:
    mean = float(np.mean(trajectory.total_energy[tbegin:tend]))
    return mean * units.HA_TO_EV / trajectory.n_atoms


def derived_series(
    trajectory: TrajectoryStore | MDTrajectory,
    function: str,
    tbegin: int = 0,
    tend: int | None = None,
    config: AnalysisConfig | None = None,
    backend: ParallelBackend | str | None = None,
) -> SeriesData:
    """
    Build a named derived series over frames [tbegin, tend).

    Args:
        trajectory: Source segment. All functions need MD observables.
        function: One of T, P, ekin, entropy, vacf, pdos, thermo.
        tbegin: First frame (inclusive).
        tend: Last frame (exclusive). Defaults to all recorded frames.
        config: Analysis options. Defaults to :class:`AnalysisConfig`.
        backend: Parallel backend overriding the configured one.

    Returns:
        Curves with labels and output file name.

    Raises:
        ValueError: For an unknown function, an invalid window or a segment
            without MD observables.
    """
    config = config or AnalysisConfig()
    tend = trajectory.ntime if tend is None else tend
    if function not in FUNCTIONS:
        raise ValueError(
            f"Function {function} not available yet. Available: {', '.join(FUNCTIONS)}"
        )
    if trajectory.kind is not SegmentKind.MD:
        raise ValueError(f"Function {function} needs molecular-dynamics data")
    trajectory.check_times(tbegin, tend)
    backend = config.make_backend() if backend is None else backend

    if function in _MD_SERIES:
        filename, ylabel, title, attribute = _MD_SERIES[function]
        logger.info(" -- %s --", title)
        x, xlabel = time_axis(trajectory, tbegin, tend, config.tunit)
        y = np.array(getattr(trajectory, attribute)[tbegin:tend])[None, :]
        data = SeriesData(x, y, xlabel=xlabel, ylabel=ylabel, title=title, filename=filename)

    elif function == "vacf":
        logger.info(" -- VACF --")
        result = VelocityAutocorrelation(backend=backend).analyze(trajectory, tbegin, tend)
        data = SeriesData(
            result["time"],
            result["vacf"],
            labels=result["labels"],
            xlabel="Time [ps]",
            ylabel="VACF [nm^2/ps^2/atom]",
            title="VACF",
            filename="VACF",
        )

    elif function == "pdos":
        logger.info(" -- PDOS --")
        result = PhononDensityOfStates(backend=backend).analyze(
            trajectory, tbegin, tend, tsmear=config.tsmear
        )
        temperature = float(np.mean(trajectory.temperature[tbegin:tend]))
        if temperature > 0:
            e0 = _mean_energy_per_atom(trajectory, tbegin, tend)
            thermo = compute_thermo_functions_ha(
                result["pdos"][0], temperature, trajectory.dtion_ps, config.omega_max
            )
            logger.info("Thermodynamic functions in the Harmonic Approximation")
            logger.info("E_0   = %g eV/atom", e0)
            logger.info("F_vib = %g eV/atom", thermo.free_energy)
            logger.info("E_vib = %g eV/atom", thermo.internal_energy)
            logger.info("C_v   = %g kB/atom", thermo.heat_capacity)
            logger.info("S_vib = %g kB/atom", thermo.entropy)
            logger.info("F_tot = %g eV/atom", thermo.free_energy + e0)
        else:
            logger.warning(
                "Mean temperature is %g K, skipping harmonic thermodynamic functions",
                temperature,
            )
        data = SeriesData(
            result["frequency"],
            result["pdos"],
            labels=result["labels"],
            xlabel="Frequency [meV]",
            ylabel="PDOS [arbitrary units/atom]",
            title="PDOS",
            filename="PDOS",
            sum_up=False,
        )

    else:
        logger.info(" -- Thermodynamical Functions --")
        logger.info("E_0   = %g eV/atom", _mean_energy_per_atom(trajectory, tbegin, tend))
        analyzer = HarmonicThermodynamics(
            backend=backend,
            n_temperatures=config.n_temperatures,
            omega_max=config.omega_max,
        )
        sweep = analyzer.analyze(trajectory, tbegin, tend, tsmear=config.tsmear)["sweep"]
        data = SeriesData(
            sweep.temperatures,
            sweep.as_rows(),
            labels=list(THERMO_LABELS),
            xlabel="Temperature [K]",
            ylabel="Thermodynamical Functions",
            title="Thermodynamical Functions",
            filename="thermoFunctions",
            sum_up=False,
        )

    data.filename = config.output or f"{Path(trajectory.name).with_suffix('')}_{data.filename}"
    return data
