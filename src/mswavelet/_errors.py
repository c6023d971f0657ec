"""Exception hierarchy for the CWT peak detection pipeline."""

from __future__ import annotations


class MSWaveletError(Exception):
    """Base class for all errors raised by :mod:`mswavelet`."""


class ConfigurationError(MSWaveletError, ValueError):
    """Invalid scales, window sizes, matrix dimensions or parameter values."""


class InvalidWindowError(ConfigurationError):
    """A local-maximum window is smaller than 1 or not shorter than the signal."""


class MissingDependencyError(MSWaveletError, ImportError):
    """An optional collaborator (e.g. the baseline smoother) is not available."""


class BoundaryError(MSWaveletError, ValueError):
    """A refinement window falls outside the signal."""

    def __init__(self, msg: str, window: tuple[int, int]) -> None:
        super().__init__(msg)
        self.window = window
