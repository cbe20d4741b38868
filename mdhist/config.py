"""
Analysis configuration.

Options controlling the derived-series export can be built in code or read
from a YAML file:

    tunit: fs
    tsmear: 15.0
    omega_max: 40.0
    backend: threads
    n_workers: 4
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .parallel import ParallelBackend, available_backends, get_backend

logger = logging.getLogger(__name__)

TIME_UNITS = ("step", "fs")


@dataclass
class AnalysisConfig:
    """
    Options for derived-series export.

    Attributes:
        tunit: Time axis unit, "step" or "fs". Other values fall back to
            steps with a warning when the axis is built.
        tsmear: PDOS smearing in K. None uses 5% of the mean temperature.
        omega_max: Frequency cutoff (THz) for thermodynamic integrals.
        n_temperatures: Number of points of the temperature sweep.
        output: Output file name. None derives it from the trajectory name.
        backend: Parallel backend name.
        n_workers: Worker count for the threads backend.
    """

    tunit: str = "step"
    tsmear: float | None = None
    omega_max: float | None = None
    n_temperatures: int = 1000
    output: str | None = None
    backend: str = "serial"
    n_workers: int | None = None

    def __post_init__(self) -> None:
        if self.tsmear is not None and self.tsmear < 0:
            raise ValueError("tsmear needs to be positive")
        if self.omega_max is not None and self.omega_max <= 0:
            raise ValueError(f"omega_max must be positive, got {self.omega_max}")
        if self.n_temperatures < 1:
            raise ValueError(f"n_temperatures must be >= 1, got {self.n_temperatures}")
        if self.backend not in available_backends():
            names = ", ".join(available_backends())
            raise ValueError(f"Unknown backend: {self.backend}. Available: {names}")
        if self.n_workers is not None and self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> AnalysisConfig:
        """
        Build a configuration from a mapping.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Configuration as a plain dictionary."""
        return asdict(self)

    def make_backend(self) -> ParallelBackend:
        """Instantiate the configured parallel backend."""
        if self.backend == "threads" and self.n_workers is not None:
            return get_backend("threads", n_workers=self.n_workers)
        return get_backend(self.backend)


def load_config(config_file: str | Path) -> AnalysisConfig:
    """
    Load an analysis configuration from a YAML file.

    Args:
        config_file: Path to the configuration file.

    Returns:
        Validated configuration. An empty file gives the defaults.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the content is not a mapping or fails validation.
    """
    config_path = Path(config_file)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    logger.info("Loading configuration from %s", config_path)
    with open(config_path) as f:
        content = yaml.safe_load(f)

    if content is None:
        return AnalysisConfig()
    if not isinstance(content, dict):
        raise ValueError(f"Configuration in {config_path} must be a mapping")
    return AnalysisConfig.from_dict(content)


def save_config(config: AnalysisConfig, output_file: str | Path) -> None:
    """Write a configuration to a YAML file."""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
    logger.info("Saved configuration to %s", output_path)
