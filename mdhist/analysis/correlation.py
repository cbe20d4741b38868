"""Autocorrelation of sampled signals."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def acf(data: ArrayLike) -> NDArray[np.floating]:
    """
    Autocorrelation of independent channels, averaged over time origins.

    C[k, c] = 1/(n - k) * sum_{t=0}^{n-k-1} x[t, c] * x[t + k, c]

    computed for every lag k in [0, n) through a zero-padded FFT.

    Args:
        data: Samples of shape (n_samples,) or (n_samples, n_channels).

    Returns:
        Correlations of shape (n_samples, n_channels); a 1-D input gives a
        single channel.

    Raises:
        ValueError: On empty or non-finite input, or more than 2 dimensions.
    """
    x = np.asarray(data, dtype=np.float64)
    if x.ndim == 1:
        x = x[:, None]
    if x.ndim != 2:
        raise ValueError(f"acf expects 1-D or 2-D samples, got shape {x.shape}")
    n = x.shape[0]
    if n == 0 or x.shape[1] == 0:
        raise ValueError("acf needs at least one sample and one channel")
    if not np.all(np.isfinite(x)):
        raise ValueError("acf input contains non-finite values")

    nfft = 1 << (2 * n - 1).bit_length()
    spectrum = np.fft.rfft(x, n=nfft, axis=0)
    raw = np.fft.irfft(spectrum * np.conj(spectrum), n=nfft, axis=0)[:n]
    counts = n - np.arange(n)
    return raw / counts[:, None]
