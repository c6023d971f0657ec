"""Continuous wavelet transform (CWT) peak detection for mass spectra.

Peaks are located by matching the signal against Mexican-hat wavelets at many
scales, linking the coefficient maxima of neighbouring scales into ridge lines
and accepting the ridges that are long and stand out from the local noise.

Public API
----------
.. autosummary::
    DetectionConfig
    peak_detection_cwt
    compute_support_series
    cwt
    prepare_wavelets
    get_local_maximum_cwt
    local_maximum
    get_ridge
    identify_major_peaks
    tune_in_peak_info
    CWT_PARAM_ALIASES
"""

from mswavelet._config import CWT_PARAM_ALIASES, DetectionConfig
from mswavelet._cwt import cwt
from mswavelet._detector import (
    PeakDetectionResult,
    compute_support_series,
    peak_detection_cwt,
    savgol_baseline,
)
from mswavelet._errors import (
    BoundaryError,
    ConfigurationError,
    InvalidWindowError,
    MissingDependencyError,
    MSWaveletError,
)
from mswavelet._identify import SNR_METHODS, MajorPeak, MajorPeakInfo, identify_major_peaks
from mswavelet._local_maximum import LOCAL_MAXIMUM_METHODS, get_local_maximum_cwt, local_maximum
from mswavelet._ridge import RidgeLine, get_ridge
from mswavelet._selection import exclude_boundary_indices, find_nearest_index, group_nearby_peaks
from mswavelet._tune import RefinedPeak, tune_in_peak_info
from mswavelet._wavelets import DEFAULT_SCALES, PreparedWavelets, mexican_hat, prepare_wavelets

__version__ = "0.1.0"
__all__ = [
    "CWT_PARAM_ALIASES",
    "DEFAULT_SCALES",
    "LOCAL_MAXIMUM_METHODS",
    "SNR_METHODS",
    "BoundaryError",
    "ConfigurationError",
    "DetectionConfig",
    "InvalidWindowError",
    "MSWaveletError",
    "MajorPeak",
    "MajorPeakInfo",
    "MissingDependencyError",
    "PeakDetectionResult",
    "PreparedWavelets",
    "RefinedPeak",
    "RidgeLine",
    "compute_support_series",
    "cwt",
    "exclude_boundary_indices",
    "find_nearest_index",
    "get_local_maximum_cwt",
    "get_ridge",
    "group_nearby_peaks",
    "identify_major_peaks",
    "local_maximum",
    "mexican_hat",
    "peak_detection_cwt",
    "prepare_wavelets",
    "savgol_baseline",
    "tune_in_peak_info",
]
