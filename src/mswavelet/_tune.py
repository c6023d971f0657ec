"""Local refinement of major peaks at denser scales.

Each major peak is re-analysed on a window of the signal centred on it, with a
dense scale grid spanning half to twice its scale.  The candidate found
closest to the window centre gives the refined centre, scale, width and area.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.integrate import trapezoid

from mswavelet._config import DetectionConfig
from mswavelet._cwt import cwt
from mswavelet._equality import dataclass_equal
from mswavelet._errors import BoundaryError
from mswavelet._identify import MajorPeak, MajorPeakInfo, identify_major_peaks
from mswavelet._local_maximum import get_local_maximum_cwt
from mswavelet._ridge import get_ridge
from mswavelet._selection import find_nearest_index
from mswavelet._wavelets import prepare_wavelets

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RefinedPeak:
    """A major peak after local refinement.

    Attributes
    ----------
    peak : MajorPeak
        The peak as identified on the full signal.
    center_index : int
        Refined signal position.
    scale : float
        Refined scale.
    width : float
        Peak width in samples, ``2 * scale + 1``.
    area : float
        Trapezoid integral of the CWT coefficients at the refined scale over
        ``center_index +- scale``.
    window : tuple of int
        ``(start, stop)`` of the analysed segment, ``stop`` exclusive.
    refined : bool
        ``False`` when the peak could not be refined; the other fields then
        repeat the original peak.
    reason : str or None
        Why refinement failed: ``"boundary"`` when the window does not fit in
        the signal, ``"no_candidate"`` when the window holds no ridge.
        ``None`` for refined peaks.
    """

    peak: MajorPeak
    center_index: int
    scale: float
    width: float
    area: float
    window: tuple[int, int]
    refined: bool = True
    reason: str | None = None

    def __eq__(self, other: object) -> bool:
        return dataclass_equal(self, other)


def tune_in_peak_info(
    signal: np.ndarray,
    major_peak_info: MajorPeakInfo,
    *,
    max_scale: float = 128.0,
    n_scales: int = 24,
    config: DetectionConfig | None = None,
) -> list[RefinedPeak]:
    """Refine the centre, scale, width and area of every major peak.

    Parameters
    ----------
    signal : numpy.ndarray
        The raw signal the peaks were detected on.
    major_peak_info : MajorPeakInfo
        Output of :func:`~mswavelet.identify_major_peaks`.
    max_scale : float, optional
        Upper bound of the dense scales.
    n_scales : int, optional
        Number of dense scales per peak.
    config : DetectionConfig, optional
        Wavelet, local-maximum, ridge and noise settings for the sub-analysis.

    Returns
    -------
    list of RefinedPeak
        One entry per major peak, in the order of ``major_peak_info.peaks``.
    """
    x = np.asarray(signal, dtype=float)
    cfg = config if config is not None else DetectionConfig()

    refined: list[RefinedPeak] = []
    for peak in major_peak_info.peaks:
        try:
            refined.append(_refine_peak(x, peak, max_scale, n_scales, cfg))
        except BoundaryError as exc:
            logger.debug("peak %s left unrefined: %s", peak.name, exc)
            refined.append(_unrefined(peak, exc.window, "boundary"))
    logger.debug(
        "%d of %d peaks refined",
        sum(item.refined for item in refined),
        len(refined),
    )
    return refined


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _dense_scales(scale: float, max_scale: float, n_scales: int) -> np.ndarray:
    low = max(1.0, scale / 2.0)
    high = max(low, min(float(max_scale), 2.0 * scale))
    return np.unique(np.linspace(low, high, int(n_scales)))


def _refine_peak(
    x: np.ndarray,
    peak: MajorPeak,
    max_scale: float,
    n_scales: int,
    cfg: DetectionConfig,
) -> RefinedPeak:
    scales = _dense_scales(peak.scale, max_scale, n_scales)
    half = math.ceil(cfg.wavelet_xlimit * float(scales[-1])) + 1
    start, stop = peak.index - half, peak.index + half + 1
    if start < 0 or stop > x.size:
        msg = f"window [{start}, {stop}) exceeds the signal of {x.size} samples"
        raise BoundaryError(msg, (start, stop))

    segment = x[start:stop]
    prepared = prepare_wavelets(
        segment.size,
        scales,
        wavelet_xlimit=cfg.wavelet_xlimit,
        wavelet_length=cfg.wavelet_length,
    )
    w_coefs, w_scales = cwt(segment, prepared)
    local_max = get_local_maximum_cwt(
        w_coefs,
        w_scales,
        min_win_size=cfg.min_win_size,
        method=cfg.local_max_method,
    )
    ridges = get_ridge(
        local_max,
        w_scales,
        gap_threshold=cfg.gap_threshold,
        min_win_size=cfg.min_win_size,
        seed_min_scale=cfg.seed_min_scale,
    )
    info = identify_major_peaks(
        segment,
        ridges,
        w_coefs,
        w_scales,
        snr_threshold=-np.inf,
        peak_scale_range=0.0,
        ridge_length=0.0,
        noise_window_size=cfg.noise_window_size,
        snr_method=cfg.snr_method,
        noise_quantile=cfg.noise_quantile,
        min_noise_level=0.0,
        exclude_boundaries_size=0,
    )
    nearest = find_nearest_index(half, info.peak_index)
    if nearest < 0:
        logger.debug("peak %s left unrefined: no candidate in [%d, %d)", peak.name, start, stop)
        return _unrefined(peak, (start, stop), "no_candidate")

    best = info.peaks[nearest]
    reach = int(best.scale)
    lo = max(0, best.index - reach)
    hi = min(segment.size, best.index + reach + 1)
    column = int(np.argmin(np.abs(w_scales - best.scale)))
    return RefinedPeak(
        peak=peak,
        center_index=start + best.index,
        scale=best.scale,
        width=2.0 * best.scale + 1.0,
        area=float(trapezoid(w_coefs[lo:hi, column])),
        window=(start, stop),
    )


def _unrefined(peak: MajorPeak, window: tuple[int, int], reason: str) -> RefinedPeak:
    return RefinedPeak(
        peak=peak,
        center_index=peak.index,
        scale=peak.scale,
        width=float("nan"),
        area=float("nan"),
        window=window,
        refined=False,
        reason=reason,
    )
