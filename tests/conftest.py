"""Shared fixtures for the mswavelet test suite."""

from __future__ import annotations

import numpy as np
import pytest


def gaussian_peaks(
    n: int,
    centers: list[int],
    widths: list[float],
    heights: list[float],
) -> np.ndarray:
    """Sum of Gaussian peaks on ``0 .. n - 1``."""
    t = np.arange(n, dtype=float)
    signal = np.zeros(n)
    for center, width, height in zip(centers, widths, heights, strict=True):
        signal += height * np.exp(-0.5 * ((t - center) / width) ** 2)
    return signal


@pytest.fixture
def clean_spectrum() -> tuple[np.ndarray, np.ndarray]:
    """Three well separated Gaussian peaks, no noise.

    Returns
    -------
    signal : numpy.ndarray
    centers : numpy.ndarray
        Positions of the injected peaks.
    """
    centers = [1000, 2000, 3000]
    signal = gaussian_peaks(4096, centers, [8.0, 10.0, 12.0], [10.0, 6.0, 8.0])
    return signal, np.array(centers)


@pytest.fixture
def noisy_spectrum() -> tuple[np.ndarray, np.ndarray]:
    """Three Gaussian peaks over white noise (seeded).

    Returns
    -------
    signal : numpy.ndarray
    centers : numpy.ndarray
    """
    rng = np.random.default_rng(123)
    centers = [1000, 2000, 3000]
    signal = gaussian_peaks(4096, centers, [8.0, 10.0, 12.0], [10.0, 6.0, 8.0])
    signal += rng.normal(0.0, 0.05, size=signal.size)
    return signal, np.array(centers)


@pytest.fixture
def short_spectrum() -> np.ndarray:
    """Two narrow peaks on 512 samples, usable with scales up to 16."""
    return gaussian_peaks(512, [150, 350], [4.0, 5.0], [5.0, 3.0])


@pytest.fixture
def small_scales() -> np.ndarray:
    return np.array([1.0, 2.0, 4.0, 6.0, 8.0, 12.0, 16.0])
