"""Peak detection pipeline built on the continuous wavelet transform.

The five-stage pipeline:

1. Compute the CWT coefficient matrix (column 0 holds the raw signal).
2. Flag local maxima per column above the amplitude threshold, optionally
   gated by the height above a smoothed baseline.
3. Link the maxima into ridge lines from coarse to fine scales.
4. Select the major peaks by ridge length, SNR and boundary distance.
5. Optionally refine each major peak at denser scales.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from scipy.signal import savgol_filter

from mswavelet._config import DetectionConfig
from mswavelet._cwt import cwt
from mswavelet._equality import dataclass_equal
from mswavelet._errors import ConfigurationError, MissingDependencyError
from mswavelet._identify import MajorPeakInfo, identify_major_peaks
from mswavelet._local_maximum import get_local_maximum_cwt
from mswavelet._ridge import RidgeLine, get_ridge
from mswavelet._tune import RefinedPeak, tune_in_peak_info
from mswavelet._wavelets import DEFAULT_SCALES, PreparedWavelets, prepare_wavelets

logger = logging.getLogger(__name__)

#: ``smoother(signal, filter_length, filter_order) -> baseline``
Smoother = Callable[[np.ndarray, int, int], np.ndarray]


@dataclass(frozen=True, eq=False)
class PeakDetectionResult:
    """Everything produced by one :func:`peak_detection_cwt` run.

    Attributes
    ----------
    major_peak_info : MajorPeakInfo
        Accepted peaks and the candidate table.
    ridge_list : list of RidgeLine
        All ridges, ordered by seed scale descending then seed position.
    local_max : numpy.ndarray
        ``N x (K + 1)`` local-maximum matrix after thresholding.
    w_coefs : numpy.ndarray
        ``N x (K + 1)`` coefficient matrix, column 0 is the signal.
    scales : numpy.ndarray
        ``[0, s1, ..., sK]``.
    refined_peaks : tuple of RefinedPeak
        Empty unless ``config.tune_in``.
    config : DetectionConfig
        Configuration used for the run.
    """

    major_peak_info: MajorPeakInfo
    ridge_list: list[RidgeLine]
    local_max: np.ndarray
    w_coefs: np.ndarray
    scales: np.ndarray
    refined_peaks: tuple[RefinedPeak, ...] = ()
    config: DetectionConfig = field(default_factory=DetectionConfig)

    def __eq__(self, other: object) -> bool:
        return dataclass_equal(self, other)

    @property
    def peak_index(self) -> np.ndarray:
        """Positions of the major peaks, ascending."""
        return self.major_peak_info.peak_index


def savgol_baseline(signal: np.ndarray, filter_length: int, filter_order: int) -> np.ndarray:
    """Smooth *signal* with a Savitzky-Golay filter.

    Parameters
    ----------
    signal : numpy.ndarray
        1-D signal.
    filter_length : int
        Odd window length, shorter than or equal to the signal.
    filter_order : int
        Polynomial order, smaller than *filter_length*.

    Returns
    -------
    numpy.ndarray
        Smoothed signal (same length as *signal*).
    """
    return savgol_filter(
        np.asarray(signal, dtype=float),
        window_length=int(filter_length),
        polyorder=int(filter_order),
        mode="interp",
    )


def peak_detection_cwt(
    signal: np.ndarray,
    scales: Any = None,
    *,
    config: DetectionConfig | None = None,
    case_info: Any | None = None,
    smoother: Smoother | None = savgol_baseline,
) -> PeakDetectionResult:
    """Detect peaks in a 1-D signal with the CWT ridge method.

    Parameters
    ----------
    signal : numpy.ndarray
        1-D signal, e.g. a mass spectrum on a regular grid.
    scales : sequence of float or PreparedWavelets, optional
        CWT scales (default :data:`~mswavelet.DEFAULT_SCALES`), or kernels
        prepared with :func:`~mswavelet.prepare_wavelets` for this length.
    config : DetectionConfig, optional
        Pipeline parameters.  Takes precedence over *case_info*.
    case_info : dict or None, optional
        Parameter dictionary passed to :meth:`DetectionConfig.from_case_info`.
    smoother : callable or None, optional
        Baseline smoother used by ``config.peak_threshold``.

    Returns
    -------
    PeakDetectionResult

    Raises
    ------
    ConfigurationError
        For invalid scales, a kernel longer than the signal, or an empty
        signal.
    MissingDependencyError
        If ``peak_threshold`` is set and *smoother* is ``None``.

    Examples
    --------
    >>> import numpy as np
    >>> t = np.arange(2000)
    >>> x = np.exp(-0.5 * ((t - 700) / 8.0) ** 2) + np.exp(-0.5 * ((t - 1300) / 10.0) ** 2)
    >>> result = peak_detection_cwt(x)
    >>> result.peak_index.tolist()  # doctest: +SKIP
    [700, 1300]
    """
    cfg = config if config is not None else DetectionConfig.from_case_info(case_info)
    x = np.asarray(signal, dtype=float)
    if cfg.peak_threshold is not None and smoother is None:
        raise MissingDependencyError("peak_threshold requires a baseline smoother")

    if scales is None:
        scales = DEFAULT_SCALES
    wavelet_scales = scales
    if not isinstance(scales, PreparedWavelets):
        wavelet_scales = _prepare(x, scales, cfg)
    w_coefs, all_scales = cwt(x, wavelet_scales)

    amp_threshold = _amplitude_threshold(w_coefs, cfg)
    local_max = get_local_maximum_cwt(
        w_coefs,
        all_scales,
        min_win_size=cfg.min_win_size,
        amp_threshold=amp_threshold,
        method=cfg.local_max_method,
    )
    if cfg.peak_threshold is not None:
        below = _height_above_baseline(x, smoother, cfg) < cfg.peak_threshold
        local_max[below, :] = 0.0

    ridge_list = get_ridge(
        local_max,
        all_scales,
        gap_threshold=cfg.gap_threshold,
        scale_skip=cfg.scale_skip,
        min_win_size=cfg.min_win_size,
        seed_min_scale=cfg.seed_min_scale,
    )
    major_peak_info = identify_major_peaks(
        x,
        ridge_list,
        w_coefs,
        all_scales,
        snr_threshold=cfg.snr_threshold,
        peak_scale_range=cfg.peak_scale_range,
        ridge_length=cfg.ridge_length,
        nearby_peak=cfg.nearby_peak,
        nearby_window_size=cfg.nearby_window_size,
        noise_window_size=cfg.noise_window_size,
        snr_method=cfg.snr_method,
        noise_quantile=cfg.noise_quantile,
        min_noise_level=cfg.resolved_min_noise_level,
        min_noise_level_fixed=cfg.min_noise_level_fixed,
        exclude_boundaries_size=cfg.exclude_boundaries_size,
    )

    refined: tuple[RefinedPeak, ...] = ()
    if cfg.tune_in:
        refined = tuple(
            tune_in_peak_info(
                x,
                major_peak_info,
                max_scale=cfg.refine_max_scale,
                n_scales=cfg.refine_n_scales,
                config=cfg,
            )
        )

    logger.debug(
        "%d samples, %d scales: %d ridges, %d major peaks",
        x.size,
        all_scales.size - 1,
        len(ridge_list),
        len(major_peak_info),
    )
    return PeakDetectionResult(
        major_peak_info=major_peak_info,
        ridge_list=ridge_list,
        local_max=local_max,
        w_coefs=w_coefs,
        scales=all_scales,
        refined_peaks=refined,
        config=cfg,
    )


def compute_support_series(
    signal: np.ndarray,
    scales: Any = None,
    case_info: Any | None = None,
) -> dict[str, Any]:
    """Return the intermediate arrays of a detection run for inspection.

    Parameters
    ----------
    signal : numpy.ndarray
        1-D signal.
    scales : sequence of float or PreparedWavelets, optional
        CWT scales.
    case_info : dict or None, optional
        Parameter dictionary for :meth:`DetectionConfig.from_case_info`.

    Returns
    -------
    dict
        Keys: ``w_coefs``, ``scales``, ``local_max``, ``ridge_names``,
        ``candidate_indices``, ``candidate_snr``, ``accepted_indices``,
        ``peak_scales``, ``peak_snr``, ``detector_config``.
    """
    result = peak_detection_cwt(signal, scales, case_info=case_info)
    info = result.major_peak_info
    return {
        "w_coefs": result.w_coefs,
        "scales": result.scales,
        "local_max": result.local_max,
        "ridge_names": [ridge.name for ridge in result.ridge_list],
        "candidate_indices": info.index.copy(),
        "candidate_snr": info.snr.copy(),
        "accepted_indices": info.peak_index,
        "peak_scales": info.peak_scale,
        "peak_snr": info.peak_snr,
        "detector_config": result.config.to_metadata(),
    }


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _prepare(x: np.ndarray, scales: Any, cfg: DetectionConfig) -> PreparedWavelets:
    """Build the kernels for *x* with the configured mother wavelet sampling."""
    if x.ndim != 1 or x.size == 0:
        msg = f"signal must be a non-empty 1-D array, got shape {x.shape}"
        raise ConfigurationError(msg)
    return prepare_wavelets(
        x.size,
        scales,
        wavelet_xlimit=cfg.wavelet_xlimit,
        wavelet_length=cfg.wavelet_length,
    )


def _amplitude_threshold(w_coefs: np.ndarray, cfg: DetectionConfig) -> float:
    """Return the absolute coefficient threshold for local maxima.

    Parameters
    ----------
    w_coefs : numpy.ndarray
        Coefficient matrix with the raw signal in column 0.
    cfg : DetectionConfig
        ``amp_threshold``, ``amp_threshold_fixed`` and
        ``exclude_0scale_amp_threshold`` are used.

    Returns
    -------
    float
        ``amp_threshold`` itself when fixed, otherwise relative to the largest
        coefficient.
    """
    if cfg.amp_threshold_fixed:
        return float(cfg.amp_threshold)
    reference = w_coefs[:, 1:] if cfg.exclude_0scale_amp_threshold else w_coefs
    return float(cfg.amp_threshold) * float(np.max(reference))


def _height_above_baseline(
    x: np.ndarray,
    smoother: Smoother,
    cfg: DetectionConfig,
) -> np.ndarray:
    """Return ``x - smoother(x)`` with the filter length coerced to a valid odd value."""
    filter_length = int(cfg.filter_length)
    if filter_length % 2 == 0:
        warnings.warn(
            f"filter_length {filter_length} is even; using {filter_length + 1}",
            RuntimeWarning,
            stacklevel=3,
        )
        filter_length += 1
    if filter_length > x.size:
        shorter = x.size if x.size % 2 else x.size - 1
        warnings.warn(
            f"filter_length {filter_length} exceeds the signal length; using {shorter}",
            RuntimeWarning,
            stacklevel=3,
        )
        filter_length = shorter
    filter_order = min(int(cfg.filter_order), filter_length - 1)
    return x - smoother(x, filter_length, filter_order)
