"""Thermodynamic averages over a frame window."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ... import units
from ...trajectory import MDSeries, MDTrajectory, SegmentKind, TrajectoryStore

LABEL_WIDTH = 25
VALUE_WIDTH = 12


def _mean_dev(values: NDArray[np.floating], axis: int = 0) -> tuple:
    return np.mean(values, axis=axis), np.std(values, axis=axis)


@dataclass
class ThermoSummary:
    """
    Means and standard deviations of the thermodynamic series of a window.

    Energies are in Ha, volumes in Bohr^3, temperatures in K, pressure and
    stresses in GPa. Temperature and pressure are None for segments that do
    not record them.
    """

    n_frames: int
    total_energy: tuple[float, float]
    volume: tuple[float, float]
    temperature: tuple[float, float] | None = None
    pressure: tuple[float, float] | None = None
    stress_mean: NDArray[np.floating] = field(default_factory=lambda: np.zeros(6))
    stress_dev: NDArray[np.floating] = field(default_factory=lambda: np.zeros(6))

    def _rows(self) -> list[tuple[str, float, float]]:
        rows = [
            (" Total energy [Ha]:", *self.total_energy),
            (" Volume [Bohr^3]: ", *self.volume),
        ]
        if self.temperature is not None:
            rows.append((" Temperature [K]: ", *self.temperature))
        if self.pressure is not None:
            rows.append((" Pressure [GPa]: ", *self.pressure))
        for s in range(6):
            rows.append((f" Stress {s + 1} [GPa]: ", self.stress_mean[s], self.stress_dev[s]))
        return rows

    def format(self) -> str:
        """Render the summary as a text block."""
        lines = ["", " -- Thermodynamics information --", "    ^^^^^^^^^^^^^^^^^^^^^^^^^^   "]
        for label, mean, dev in self._rows():
            lines.append(
                f"{label:<{LABEL_WIDTH}}{mean:>{VALUE_WIDTH}.5e} +/- {dev:>{VALUE_WIDTH}.5e}"
            )
        lines.append("")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.format()


def thermo_summary(trajectory: TrajectoryStore | MDTrajectory, tbegin: int, tend: int) -> ThermoSummary:
    """
    Average the thermodynamic series over frames [tbegin, tend).

    Standard deviations are population deviations.

    Raises:
        ValueError: If the window is invalid.
    """
    try:
        trajectory.check_times(tbegin, tend)
    except ValueError as err:
        raise ValueError(f"Thermodynamics calculations aborted: {err}") from err

    energy = _mean_dev(trajectory.total_energy[tbegin:tend])
    volume = _mean_dev(trajectory.volumes(tbegin, tend))
    stress_mean, stress_dev = _mean_dev(trajectory.stress[tbegin:tend])

    summary = ThermoSummary(
        n_frames=tend - tbegin,
        total_energy=(float(energy[0]), float(energy[1])),
        volume=(float(volume[0]), float(volume[1])),
        stress_mean=stress_mean * units.HA_BOHR3_TO_GPA,
        stress_dev=stress_dev * units.HA_BOHR3_TO_GPA,
    )
    if trajectory.kind is SegmentKind.MD:
        t_mean, t_dev = _mean_dev(trajectory.temperature[tbegin:tend])
        p_mean, p_dev = _mean_dev(trajectory.pressure[tbegin:tend])
        summary.temperature = (float(t_mean), float(t_dev))
        summary.pressure = (float(p_mean), float(p_dev))
    return summary


def average(
    trajectory: TrajectoryStore | MDTrajectory, tbegin: int, tend: int
) -> TrajectoryStore | MDTrajectory:
    """
    Collapse frames [tbegin, tend) into a single averaged frame.

    Every recorded series is replaced by its arithmetic mean over the window.
    The result has the same kind as the input.

    Raises:
        ValueError: If the window is invalid.
    """
    trajectory.check_times(tbegin, tend)
    source = trajectory.store
    store = TrajectoryStore(
        source.species_of_atom,
        source.atomic_numbers,
        capacity=1,
        try_to_map=source.try_to_map,
        name=source.name,
    )
    store.append_frame(
        float(np.mean(source.time[tbegin:tend])),
        np.mean(source.positions[tbegin:tend], axis=0),
        np.mean(source.cell[tbegin:tend], axis=0),
        stress=np.mean(source.stress[tbegin:tend], axis=0),
        total_energy=float(np.mean(source.total_energy[tbegin:tend])),
    )
    if trajectory.kind is not SegmentKind.MD:
        return store

    md = MDSeries(store.n_atoms, 1, has_velocities=trajectory.has_velocities)
    for name in md.frames.names:
        if md.frames.has(name):
            md.frames[name][0] = np.mean(trajectory.md.frames[name][tbegin:tend], axis=0)
    return MDTrajectory(store, md)
