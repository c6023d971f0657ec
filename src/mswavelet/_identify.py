"""Major peak identification from ridge lines.

For each ridge the strongest coefficient within the peak scale range gives the
peak position, scale and amplitude.  The noise level is a robust statistic of
the finest-scale coefficients around the peak, and the SNR is the amplitude
divided by that noise level.  Major peaks must reach a minimum ridge scale,
clear the SNR threshold and stay away from the signal ends.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from mswavelet._cwt import validate_coefficients
from mswavelet._equality import dataclass_equal
from mswavelet._errors import ConfigurationError
from mswavelet._ridge import RidgeLine
from mswavelet._selection import exclude_boundary_indices, group_nearby_peaks

logger = logging.getLogger(__name__)

#: Accepted values of ``snr_method``.
SNR_METHODS: tuple[str, ...] = ("quantile", "sd", "mad", "data.mean", "data.mean.quant")

#: Consistency constant of the median absolute deviation for normal data.
_MAD_SCALE = 1.4826


@dataclass(frozen=True)
class MajorPeak:
    """One accepted peak.

    Attributes
    ----------
    name : str
        Name of the ridge the peak comes from.
    index : int
        Signal position at the best scale.
    ridge_index : int
        Signal position at the finest scale the ridge reached.
    scale : float
        Best scale within the peak scale range.
    value : float
        CWT coefficient at ``(index, scale)``.
    snr : float
        ``value / noise_level``.
    noise_level : float
        Local noise estimate used for the SNR.
    nearby_names, nearby_indices : tuple
        Sub-peaks grouped under this peak (ridges close by that did not clear
        the SNR threshold).
    """

    name: str
    index: int
    ridge_index: int
    scale: float
    value: float
    snr: float
    noise_level: float
    nearby_names: tuple[str, ...] = ()
    nearby_indices: tuple[int, ...] = ()


@dataclass(frozen=True, eq=False)
class MajorPeakInfo:
    """Accepted peaks plus the per-ridge candidate table they were chosen from.

    The candidate arrays are aligned with ``names`` and sorted by ``index``.
    ``potential`` flags candidates that passed the ridge-length rule.
    """

    peaks: tuple[MajorPeak, ...] = ()
    names: tuple[str, ...] = ()
    index: np.ndarray = field(default_factory=lambda: np.array([], dtype=int))
    ridge_index: np.ndarray = field(default_factory=lambda: np.array([], dtype=int))
    scale: np.ndarray = field(default_factory=lambda: np.array([], dtype=float))
    value: np.ndarray = field(default_factory=lambda: np.array([], dtype=float))
    snr: np.ndarray = field(default_factory=lambda: np.array([], dtype=float))
    noise_level: np.ndarray = field(default_factory=lambda: np.array([], dtype=float))
    potential: np.ndarray = field(default_factory=lambda: np.array([], dtype=bool))

    def __len__(self) -> int:
        return len(self.peaks)

    def __eq__(self, other: object) -> bool:
        return dataclass_equal(self, other)

    @property
    def peak_names(self) -> list[str]:
        return [peak.name for peak in self.peaks]

    @property
    def peak_index(self) -> np.ndarray:
        return np.array([peak.index for peak in self.peaks], dtype=int)

    @property
    def peak_scale(self) -> np.ndarray:
        return np.array([peak.scale for peak in self.peaks], dtype=float)

    @property
    def peak_value(self) -> np.ndarray:
        return np.array([peak.value for peak in self.peaks], dtype=float)

    @property
    def peak_snr(self) -> np.ndarray:
        return np.array([peak.snr for peak in self.peaks], dtype=float)


def identify_major_peaks(
    signal: np.ndarray,
    ridge_list: Sequence[RidgeLine],
    w_coefs: np.ndarray,
    scales: Sequence[float],
    *,
    snr_threshold: float = 3.0,
    peak_scale_range: float | Sequence[float] = 5.0,
    ridge_length: float = 32.0,
    nearby_peak: bool = False,
    nearby_window_size: int | None = None,
    noise_window_size: int = 500,
    snr_method: str = "quantile",
    noise_quantile: float = 0.95,
    min_noise_level: float | None = 0.001,
    min_noise_level_fixed: bool | None = None,
    exclude_boundaries_size: int | None = None,
) -> MajorPeakInfo:
    """Select the major peaks among *ridge_list*.

    Parameters
    ----------
    signal : numpy.ndarray
        The raw signal (length ``N``).
    ridge_list : sequence of RidgeLine
        Output of :func:`~mswavelet.get_ridge`.
    w_coefs : numpy.ndarray
        ``N x K`` coefficient matrix including the zero-scale column.
    scales : sequence of float
        Scale of each column of *w_coefs*.
    snr_threshold : float, optional
        Peaks with a lower SNR are rejected.
    peak_scale_range : float or (float, float), optional
        Lower bound, or ``(low, high)`` bounds, of the scales searched for the
        peak amplitude.
    ridge_length : float, optional
        Minimum scale a ridge must reach.
    nearby_peak : bool, optional
        Also accept ridges close to a long ridge, and attach close ridges
        that fail the SNR rule to the nearest major peak.
    nearby_window_size : int, optional
        Distance used by *nearby_peak*; 150 with *nearby_peak*, else 100.
    noise_window_size : int, optional
        Half width of the noise estimation window.
    snr_method : str, optional
        Noise statistic, one of :data:`SNR_METHODS`.
    noise_quantile : float, optional
        Quantile used by the ``quantile`` and ``data.mean.quant`` methods.
    min_noise_level : float or None, optional
        Floor of the noise level, relative to ``max(w_coefs)`` unless fixed.
    min_noise_level_fixed : bool or None, optional
        Treat *min_noise_level* as absolute.  ``None`` means absolute when it
        is larger than 1.
    exclude_boundaries_size : int, optional
        Peaks this close to either end are rejected; defaults to
        ``nearby_window_size // 2``.

    Returns
    -------
    MajorPeakInfo
    """
    x = np.asarray(signal, dtype=float)
    coefs, scale_arr = validate_coefficients(w_coefs, scales)
    if x.size != coefs.shape[0]:
        msg = f"signal has {x.size} samples but the coefficient matrix has {coefs.shape[0]} rows"
        raise ConfigurationError(msg)
    if snr_method not in SNR_METHODS:
        msg = f"snr_method must be one of {SNR_METHODS}, got {snr_method!r}"
        raise ConfigurationError(msg)
    cwt_columns = np.flatnonzero(scale_arr > 0)
    if cwt_columns.size == 0:
        raise ConfigurationError("coefficient matrix has no CWT scale column")
    if not ridge_list:
        return MajorPeakInfo()

    if nearby_window_size is None:
        nearby_window_size = 150 if nearby_peak else 100
    if exclude_boundaries_size is None:
        exclude_boundaries_size = nearby_window_size // 2
    low, high = _scale_bounds(peak_scale_range)
    noise_floor = _noise_floor(coefs, min_noise_level, min_noise_level_fixed)
    noise = np.abs(coefs[:, cwt_columns[0]])

    n_ridges = len(ridge_list)
    names = [ridge.name for ridge in ridge_list]
    index = np.empty(n_ridges, dtype=int)
    ridge_index = np.empty(n_ridges, dtype=int)
    peak_scale = np.empty(n_ridges, dtype=float)
    peak_value = np.zeros(n_ridges, dtype=float)
    in_range = np.zeros(n_ridges, dtype=bool)
    max_scale = np.empty(n_ridges, dtype=float)
    for i, ridge in enumerate(ridge_list):
        ridge_index[i] = ridge.index
        max_scale[i] = ridge.max_scale
        sel = np.flatnonzero((ridge.scales > 0) & (ridge.scales >= low) & (ridge.scales <= high))
        if sel.size == 0:
            index[i] = ridge.index
            peak_scale[i] = ridge.scales[-1]
            continue
        values = coefs[ridge.positions[sel], ridge.columns[sel]]
        # ridge points run coarse to fine; ties go to the finer scale
        best = sel[sel.size - 1 - int(np.argmax(values[::-1]))]
        index[i] = ridge.positions[best]
        peak_scale[i] = ridge.scales[best]
        peak_value[i] = coefs[ridge.positions[best], ridge.columns[best]]
        in_range[i] = True

    noise_level = np.array(
        [
            _noise_level(noise, x, int(idx), noise_window_size, snr_method, noise_quantile)
            for idx in index
        ],
        dtype=float,
    )
    noise_level = np.maximum(noise_level, noise_floor)
    snr = _safe_ratio(peak_value, noise_level)

    order = np.argsort(index, kind="stable")
    names = [names[k] for k in order]
    index, ridge_index = index[order], ridge_index[order]
    peak_scale, peak_value = peak_scale[order], peak_value[order]
    in_range, max_scale = in_range[order], max_scale[order]
    noise_level, snr = noise_level[order], snr[order]

    potential = max_scale >= ridge_length
    eligible = potential.copy()
    if nearby_peak:
        eligible = group_nearby_peaks(index[potential], index, nearby_window_size) >= 0
    snr_ok = snr >= snr_threshold
    inside = exclude_boundary_indices(index, x.size, exclude_boundaries_size)
    selected = eligible & snr_ok & in_range & inside

    nearby_of: dict[int, list[int]] = {}
    if nearby_peak and np.any(selected):
        major_pos = np.flatnonzero(selected)
        sub_pos = np.flatnonzero(~selected & ~snr_ok & inside)
        owner = group_nearby_peaks(index[major_pos], index[sub_pos], nearby_window_size)
        for pos, own in zip(sub_pos, owner, strict=True):
            if own >= 0:
                nearby_of.setdefault(int(major_pos[own]), []).append(int(pos))

    peaks = tuple(
        MajorPeak(
            name=names[k],
            index=int(index[k]),
            ridge_index=int(ridge_index[k]),
            scale=float(peak_scale[k]),
            value=float(peak_value[k]),
            snr=float(snr[k]),
            noise_level=float(noise_level[k]),
            nearby_names=tuple(names[j] for j in nearby_of.get(int(k), [])),
            nearby_indices=tuple(int(index[j]) for j in nearby_of.get(int(k), [])),
        )
        for k in np.flatnonzero(selected)
    )
    logger.debug(
        "%d major peaks out of %d ridges (snr_threshold=%g, ridge_length=%g)",
        len(peaks),
        n_ridges,
        snr_threshold,
        ridge_length,
    )
    return MajorPeakInfo(
        peaks=peaks,
        names=tuple(names),
        index=index,
        ridge_index=ridge_index,
        scale=peak_scale,
        value=peak_value,
        snr=snr,
        noise_level=noise_level,
        potential=potential,
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _scale_bounds(peak_scale_range: float | Sequence[float]) -> tuple[float, float]:
    """Return ``(low, high)`` from a scalar lower bound or a pair."""
    bounds = np.atleast_1d(np.asarray(peak_scale_range, dtype=float))
    if bounds.size == 1:
        return float(bounds[0]), float("inf")
    if bounds.size == 2 and bounds[0] <= bounds[1]:
        return float(bounds[0]), float(bounds[1])
    msg = f"peak_scale_range must be a number or an increasing pair, got {peak_scale_range!r}"
    raise ConfigurationError(msg)


def _noise_floor(
    coefs: np.ndarray,
    min_noise_level: float | None,
    fixed: bool | None,
) -> float:
    if min_noise_level is None:
        return 0.0
    if fixed is None:
        fixed = min_noise_level > 1
    return float(min_noise_level) if fixed else float(np.max(coefs)) * float(min_noise_level)


def _noise_level(
    noise: np.ndarray,
    signal: np.ndarray,
    center: int,
    half_window: int,
    method: str,
    quantile: float,
) -> float:
    """Robust noise statistic over ``[center - half_window, center + half_window]``."""
    start = max(0, center - int(half_window))
    stop = min(noise.size, center + int(half_window) + 1)
    if method == "quantile":
        return float(np.quantile(noise[start:stop], quantile))
    if method == "sd":
        segment = noise[start:stop]
        return float(np.std(segment, ddof=1)) if segment.size > 1 else 0.0
    if method == "mad":
        return _MAD_SCALE * float(np.median(noise[start:stop]))
    segment = signal[start:stop]
    if method == "data.mean":
        return float(np.mean(segment))
    below = segment[segment < np.quantile(segment, quantile)]
    return float(np.mean(below)) if below.size else float(np.mean(segment))


def _safe_ratio(value: np.ndarray, noise_level: np.ndarray) -> np.ndarray:
    """``value / noise_level`` with ``+inf`` for positive values over zero noise."""
    ratio = np.zeros_like(value)
    positive = noise_level > 0
    ratio[positive] = value[positive] / noise_level[positive]
    ratio[~positive & (value > 0)] = np.inf
    return ratio
