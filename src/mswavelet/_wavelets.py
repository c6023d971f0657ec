"""Mother wavelet sampling and prepared kernel bundles.

The pipeline only needs one mother wavelet, the Mexican hat (negative
normalized second derivative of a Gaussian).  It is sampled once on a fixed
grid and resampled at each scale by index stretching, so a scale ``s`` yields
a kernel of ``floor(s * 2 * x_limit) + 1`` samples.

:func:`prepare_wavelets` precomputes the kernels and their spectra for a known
signal length so repeated transforms of same-length spectra skip that work.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import fft

from mswavelet._equality import dataclass_equal
from mswavelet._errors import ConfigurationError

#: Default CWT scales: 1, 2..30 step 2, 32..64 step 4.
DEFAULT_SCALES: np.ndarray = np.concatenate(
    [[1.0], np.arange(2.0, 31.0, 2.0), np.arange(32.0, 65.0, 4.0)]
)


@dataclass(frozen=True, eq=False)
class PreparedWavelets:
    """Kernels and kernel spectra reusable across signals of one length.

    Attributes
    ----------
    signal_length : int
        Length of the signals this bundle applies to.
    padded_length : int
        Power-of-two length the signal is extended to before the transform.
    scales : numpy.ndarray
        Strictly increasing positive scales.
    kernels : tuple of numpy.ndarray
        Sampled, zero-mean, reversed wavelet at each scale.
    kernel_spectra : numpy.ndarray
        Conjugated real FFT of each kernel zero-padded to ``padded_length``,
        shape ``(len(scales), padded_length // 2 + 1)``.
    """

    signal_length: int
    padded_length: int
    scales: np.ndarray
    kernels: tuple[np.ndarray, ...]
    kernel_spectra: np.ndarray

    def __len__(self) -> int:
        return int(self.scales.size)

    def __eq__(self, other: object) -> bool:
        return dataclass_equal(self, other)


def mexican_hat(x_limit: float = 8.0, length: int = 1024) -> tuple[np.ndarray, np.ndarray]:
    """Sample the Mexican hat wavelet on ``linspace(-x_limit, x_limit, length)``.

    Returns
    -------
    x : numpy.ndarray
        Sample positions.
    psi : numpy.ndarray
        Wavelet values.
    """
    if length <= 0:
        msg = f"wavelet_length must be > 0, got {length}"
        raise ConfigurationError(msg)
    if x_limit <= 0:
        msg = f"wavelet_xlimit must be > 0, got {x_limit}"
        raise ConfigurationError(msg)
    x = np.linspace(-x_limit, x_limit, int(length))
    psi = (2.0 / np.sqrt(3.0) * np.pi**-0.25) * (1.0 - x**2) * np.exp(-(x**2) / 2.0)
    return x, psi


def scale_kernel(x: np.ndarray, psi: np.ndarray, scale: float) -> np.ndarray:
    """Resample the mother wavelet ``(x, psi)`` at *scale*.

    The grid is shifted to start at zero and stretched by *scale*; each output
    sample picks the nearest lower mother sample.  The result is reversed and
    centred to zero mean so the transform behaves like a correlation.
    """
    x = np.asarray(x, dtype=float)
    psi = np.asarray(psi, dtype=float)
    xval = x - x[0]
    dx = xval[1]
    xmax = xval[-1]
    steps = np.arange(int(np.floor(scale * xmax)) + 1, dtype=float)
    j = np.floor(steps / (scale * dx)).astype(np.int64)
    np.minimum(j, psi.size - 1, out=j)
    if j.size == 1:
        j = np.array([0, 0], dtype=np.int64)
    sampled = psi[j]
    return sampled[::-1] - sampled.mean()


def validate_scales(scales: Any) -> np.ndarray:
    """Return *scales* as a float array, enforcing positive strictly increasing values."""
    arr = np.atleast_1d(np.asarray(scales, dtype=float))
    if arr.ndim != 1 or arr.size == 0:
        raise ConfigurationError("scales must be a non-empty 1-D sequence")
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0):
        msg = f"scales must be finite and > 0, got {arr.tolist()}"
        raise ConfigurationError(msg)
    if arr.size > 1 and np.any(np.diff(arr) <= 0):
        msg = f"scales must be strictly increasing, got {arr.tolist()}"
        raise ConfigurationError(msg)
    return arr


def prepare_wavelets(
    signal_length: int,
    scales: Any = DEFAULT_SCALES,
    *,
    wavelet: str | np.ndarray = "mexh",
    wavelet_xlimit: float = 8.0,
    wavelet_length: int = 1024,
) -> PreparedWavelets:
    """Precompute the scaled kernels for signals of *signal_length* samples.

    Parameters
    ----------
    signal_length : int
        Number of samples of the signals to transform.
    scales : sequence of float, optional
        Strictly increasing positive CWT scales.
    wavelet : {'mexh'} or numpy.ndarray, optional
        ``'mexh'`` for the Mexican hat, or a two-column (or two-row) array of
        ``(x, psi)`` samples of a custom mother wavelet.
    wavelet_xlimit : float, optional
        Half support of the sampled Mexican hat.
    wavelet_length : int, optional
        Number of samples of the mother wavelet.

    Returns
    -------
    PreparedWavelets

    Raises
    ------
    ConfigurationError
        For a non-positive discretization length, invalid scales, or a scale
        whose kernel is longer than the signal.

    Examples
    --------
    >>> prep = prepare_wavelets(2048, scales=[1, 2, 4])
    >>> prep.padded_length
    2048
    """
    signal_length = int(signal_length)
    if signal_length <= 0:
        msg = f"signal_length must be > 0, got {signal_length}"
        raise ConfigurationError(msg)
    scale_arr = validate_scales(scales)
    x, psi = _mother_wavelet(wavelet, wavelet_xlimit, wavelet_length)

    padded_length = 1 << max(0, (signal_length - 1).bit_length())
    kernels: list[np.ndarray] = []
    for scale in scale_arr:
        kernel = scale_kernel(x, psi, float(scale))
        if kernel.size > signal_length:
            msg = (
                f"scale {scale:g} is too large: its kernel spans {kernel.size} samples "
                f"but the signal has {signal_length}"
            )
            raise ConfigurationError(msg)
        kernels.append(kernel)

    spectra = np.empty((scale_arr.size, padded_length // 2 + 1), dtype=complex)
    for k, kernel in enumerate(kernels):
        spectra[k] = np.conj(fft.rfft(kernel, n=padded_length))

    return PreparedWavelets(
        signal_length=signal_length,
        padded_length=padded_length,
        scales=scale_arr,
        kernels=tuple(kernels),
        kernel_spectra=spectra,
    )


def _mother_wavelet(
    wavelet: str | np.ndarray,
    wavelet_xlimit: float,
    wavelet_length: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Resolve the *wavelet* argument into ``(x, psi)`` samples."""
    if isinstance(wavelet, str):
        if wavelet.lower() != "mexh":
            msg = f"unsupported wavelet {wavelet!r}; use 'mexh' or an (x, psi) array"
            raise ConfigurationError(msg)
        return mexican_hat(wavelet_xlimit, wavelet_length)

    samples = np.asarray(wavelet, dtype=float)
    if samples.ndim == 2 and samples.shape[1] == 2:
        x, psi = samples[:, 0], samples[:, 1]
    elif samples.ndim == 2 and samples.shape[0] == 2:
        x, psi = samples[0], samples[1]
    else:
        raise ConfigurationError("custom wavelet must be a two-column array of (x, psi)")
    if x.size < 2:
        raise ConfigurationError("custom wavelet needs at least two samples")
    return x, psi
