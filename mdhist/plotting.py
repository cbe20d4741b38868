"""
Plotting of derived series.

Example:
    >>> from mdhist import derived_series, plotting
    >>> series = derived_series(traj, "vacf")
    >>> plotting.plot_series(series, show=False)
    >>> plotting.save(series.filename + ".png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .analysis.series import SeriesData

# Try to import matplotlib, but don't fail if not available
try:
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False
    plt = None

logger = logging.getLogger(__name__)


def _check_matplotlib():
    """Check if matplotlib is available."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install it with: pip install matplotlib"
        )


def summarize(series: SeriesData) -> list[tuple[str, float, float]]:
    """
    Mean and standard deviation of each curve.

    Returns:
        (label, mean, std) per curve.
    """
    labels = series.labels or [series.title] * len(series.y)
    return [
        (label, float(np.mean(row)), float(np.std(row)))
        for label, row in zip(labels, series.y)
    ]


def plot_series(
    series: SeriesData,
    show: bool = True,
    figsize: tuple[float, float] = (8, 5),
):
    """
    Plot every curve of a series on one axis.

    Args:
        series: Curves from :func:`mdhist.derived_series`.
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.

    Returns:
        The matplotlib Figure.
    """
    _check_matplotlib()

    fig, ax = plt.subplots(figsize=figsize)
    labels = series.labels or [None] * len(series.y)
    for label, row in zip(labels, series.y):
        ax.plot(series.x, row, lw=1.0, label=label)
    ax.set_xlabel(series.xlabel)
    ax.set_ylabel(series.ylabel)
    ax.set_title(series.title)
    if series.labels:
        ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    if series.sum_up:
        for label, mean, std in summarize(series):
            logger.info("%s: %.5e +/- %.5e", label, mean, std)

    if show:
        plt.show()
    return fig


def save(filename: str | Path, dpi: int = 150) -> None:
    """
    Save the current figure to a file.

    Args:
        filename: Output filename (e.g., "VACF.png", "PDOS.pdf").
        dpi: Resolution in dots per inch.
    """
    _check_matplotlib()
    plt.savefig(filename, dpi=dpi, bbox_inches="tight")
    logger.info("Saved plot to %s", filename)
