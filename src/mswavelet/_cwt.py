"""Continuous wavelet transform used for peak shape matching.

Boundary policy
---------------
The signal is extended on the right by mirror reflection
(``numpy.pad(mode="symmetric")``) to the next power of two.  Each scale is the
circular correlation of that extended signal with the scaled kernel, shifted
by half the kernel length and multiplied by ``1 / sqrt(scale)``.  The left edge
therefore sees the mirrored tail of the signal.  The same policy applies at
every scale.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from scipy import fft

from mswavelet._errors import ConfigurationError
from mswavelet._wavelets import DEFAULT_SCALES, PreparedWavelets, prepare_wavelets

logger = logging.getLogger(__name__)


def cwt(
    signal: np.ndarray,
    scales: Any = DEFAULT_SCALES,
    *,
    wavelet: str | np.ndarray = "mexh",
) -> tuple[np.ndarray, np.ndarray]:
    """Compute the CWT coefficient matrix of *signal*.

    Parameters
    ----------
    signal : numpy.ndarray
        1-D sampled signal of length ``N``.
    scales : sequence of float or PreparedWavelets, optional
        Strictly increasing positive scales, or a bundle from
        :func:`~mswavelet.prepare_wavelets` built for ``N`` samples.
    wavelet : {'mexh'} or numpy.ndarray, optional
        Mother wavelet; ignored when *scales* is a prepared bundle.

    Returns
    -------
    w_coefs : numpy.ndarray
        ``N x (K + 1)`` matrix.  Column 0 is *signal*, column ``k`` holds the
        coefficients at the ``k``-th scale.
    scales : numpy.ndarray
        ``[0, s1, ..., sK]``, the scale of each column.

    Raises
    ------
    ConfigurationError
        For an empty or multi-dimensional signal, invalid scales, a kernel
        longer than the signal, or a prepared bundle of another length.

    Examples
    --------
    >>> x = np.zeros(256)
    >>> x[128] = 1.0
    >>> w, s = cwt(x, scales=[1, 2, 4])
    >>> w.shape, s.tolist()
    ((256, 4), [0.0, 1.0, 2.0, 4.0])
    """
    x = np.asarray(signal, dtype=float)
    if x.ndim != 1:
        msg = f"signal must be 1-D, got shape {x.shape}"
        raise ConfigurationError(msg)
    if x.size == 0:
        raise ConfigurationError("signal is empty")

    if isinstance(scales, PreparedWavelets):
        prepared = scales
        if prepared.signal_length != x.size:
            msg = (
                f"prepared wavelets were built for {prepared.signal_length} samples, "
                f"signal has {x.size}"
            )
            raise ConfigurationError(msg)
    else:
        prepared = prepare_wavelets(x.size, scales, wavelet=wavelet)

    n = x.size
    extended = np.pad(x, (0, prepared.padded_length - n), mode="symmetric")
    spectrum = fft.rfft(extended)

    w_coefs = np.empty((n, len(prepared) + 1), dtype=float)
    w_coefs[:, 0] = x
    for k, (scale, kernel) in enumerate(zip(prepared.scales, prepared.kernels, strict=True)):
        corr = fft.irfft(spectrum * prepared.kernel_spectra[k], n=prepared.padded_length)
        corr = np.roll(corr, kernel.size // 2)
        w_coefs[:, k + 1] = corr[:n] / np.sqrt(scale)

    logger.debug("CWT of %d samples at %d scales", n, len(prepared))
    return w_coefs, np.concatenate([[0.0], prepared.scales])


def validate_coefficients(w_coefs: np.ndarray, scales: Any) -> tuple[np.ndarray, np.ndarray]:
    """Check that *w_coefs* has one column per entry of *scales*.

    Returns both as float arrays.
    """
    coefs = np.asarray(w_coefs, dtype=float)
    if coefs.ndim == 1:
        coefs = coefs[:, np.newaxis]
    if coefs.ndim != 2:
        msg = f"coefficient matrix must be 2-D, got shape {coefs.shape}"
        raise ConfigurationError(msg)
    scale_arr = np.atleast_1d(np.asarray(scales, dtype=float))
    if scale_arr.size != coefs.shape[1]:
        msg = (
            f"coefficient matrix has {coefs.shape[1]} columns "
            f"but {scale_arr.size} scales were given"
        )
        raise ConfigurationError(msg)
    return coefs, scale_arr
