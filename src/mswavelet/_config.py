"""Detection configuration for the CWT peak detection pipeline.

This module defines :class:`DetectionConfig`, a frozen dataclass that holds
all tunable parameters of the pipeline, and :data:`CWT_PARAM_ALIASES`, the
mapping from the classic short parameter names to the field names.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from mswavelet._errors import ConfigurationError
from mswavelet._identify import SNR_METHODS
from mswavelet._local_maximum import LOCAL_MAXIMUM_METHODS

#: Classic short parameter names -> :class:`DetectionConfig` field names.
CWT_PARAM_ALIASES: dict[str, str] = {
    "SNR.Th": "snr_threshold",
    "nearbyPeak": "nearby_peak",
    "nearbyWinSize": "nearby_window_size",
    "peakScaleRange": "peak_scale_range",
    "amp.Th": "amp_threshold",
    "minNoiseLevel": "min_noise_level",
    "ridgeLength": "ridge_length",
    "peakThr": "peak_threshold",
    "tuneIn": "tune_in",
    "exclude0scaleAmpThresh": "exclude_0scale_amp_threshold",
    "fl": "filter_length",
    "forder": "filter_order",
    "gapTh": "gap_threshold",
    "skip": "scale_skip",
    "minWinSize": "min_win_size",
    "winSize.noise": "noise_window_size",
    "SNR.method": "snr_method",
    "excludeBoundariesSize": "exclude_boundaries_size",
    "algorithm": "local_max_method",
}


@dataclass(frozen=True)
class DetectionConfig:
    """Configuration for the CWT peak detector.

    Parameters are organized by pipeline stage:

    - **Wavelet** -- Sampling of the mother wavelet.
    - **Local maxima** -- Strategy, window and amplitude threshold.
    - **Baseline gate** -- Optional absolute threshold above a smoothed baseline.
    - **Ridges** -- Linking of maxima across scales.
    - **Identification** -- SNR, noise model and peak acceptance rules.
    - **Refinement** -- Local re-analysis at denser scales.

    Parameters
    ----------
    wavelet_xlimit : float
        Half support of the sampled Mexican hat.
    wavelet_length : int
        Number of samples of the mother wavelet.
    local_max_method : str
        Local maximum strategy: ``'faster'``, ``'classic'`` or ``'new'``.
    min_win_size : int
        Lower bound of the local-maximum window and ridge tolerance.
    amp_threshold : float
        Amplitude threshold, relative to the largest coefficient unless
        ``amp_threshold_fixed``.
    amp_threshold_fixed : bool
        Use ``amp_threshold`` as an absolute coefficient value.
    exclude_0scale_amp_threshold : bool
        Leave the raw signal column out of the maximum used by a relative
        ``amp_threshold``.
    peak_threshold : float or None
        Minimum height above the smoothed baseline; ``None`` disables it.
    filter_length : int
        Baseline smoother window (made odd if even).
    filter_order : int
        Baseline smoother polynomial order.
    gap_threshold : int
        Consecutive missed columns after which a ridge is finished.
    scale_skip : int or None
        Column stepped over while linking ridges (column 1 holds the finest
        scale); ``None`` links every column.
    seed_min_scale : float
        Smallest scale at which unclaimed maxima start new ridges.
    snr_threshold : float
        Minimum signal-to-noise ratio of a major peak.
    peak_scale_range : float or tuple of float
        Lower bound, or ``(low, high)``, of the scales searched for the peak
        amplitude.
    ridge_length : float
        Minimum scale a ridge must reach.
    nearby_peak : bool
        Include peaks close to long ridges and group weak neighbours.
    nearby_window_size : int or None
        Distance for *nearby_peak* (default 150, or 100 without it).
    noise_window_size : int
        Half width of the noise window.
    snr_method : str
        Noise statistic (see :data:`mswavelet.SNR_METHODS`).
    noise_quantile : float
        Quantile for the ``quantile`` noise statistic.
    min_noise_level : float or None
        Noise floor; defaults to ``amp_threshold / snr_threshold``.
    min_noise_level_fixed : bool or None
        Treat the noise floor as absolute (``None``: absolute when > 1).
    exclude_boundaries_size : int or None
        Peaks within this many samples of the ends are rejected.
    tune_in : bool
        Refine each major peak at denser scales.
    refine_max_scale : float
        Largest scale used by refinement.
    refine_n_scales : int
        Number of dense scales used by refinement.

    Examples
    --------
    >>> cfg = DetectionConfig(snr_threshold=2.0)
    >>> cfg.snr_threshold
    2.0

    >>> cfg = DetectionConfig.from_case_info({"SNR.Th": "4", "gapTh": "2"})
    >>> cfg.gap_threshold
    2
    """

    # ==================== WAVELET PARAMETERS ====================
    wavelet_xlimit: float = 8.0
    """Half support of the sampled Mexican hat."""

    wavelet_length: int = 1024
    """Number of samples of the mother wavelet."""

    # ==================== LOCAL MAXIMUM PARAMETERS ====================
    local_max_method: str = "faster"
    """Local maximum strategy, read once per call."""

    min_win_size: int = 5
    """Lower bound of the local-maximum window and ridge tolerance."""

    amp_threshold: float = 0.01
    """Amplitude threshold (relative to max coefficient unless fixed)."""

    amp_threshold_fixed: bool = False
    """Use amp_threshold as an absolute value."""

    exclude_0scale_amp_threshold: bool = False
    """Exclude the raw signal column from the relative amplitude threshold."""

    # ==================== BASELINE GATE PARAMETERS ====================
    peak_threshold: float | None = None
    """Minimum height above the smoothed baseline (None disables)."""

    filter_length: int = 1001
    """Baseline smoother window length."""

    filter_order: int = 2
    """Baseline smoother polynomial order."""

    # ==================== RIDGE PARAMETERS ====================
    gap_threshold: int = 3
    """Consecutive missed columns after which a ridge is finished."""

    scale_skip: int | None = 1
    """Column stepped over while linking ridges."""

    seed_min_scale: float = 2.0
    """Smallest scale at which new ridges are seeded."""

    # ==================== IDENTIFICATION PARAMETERS ====================
    snr_threshold: float = 3.0
    """Minimum signal-to-noise ratio of a major peak."""

    peak_scale_range: float | tuple[float, float] = 5.0
    """Scale range searched for the peak amplitude."""

    ridge_length: float = 24.0
    """Minimum scale a ridge must reach."""

    nearby_peak: bool = True
    """Include and group peaks close to long ridges."""

    nearby_window_size: int | None = None
    """Distance used by nearby_peak."""

    noise_window_size: int = 500
    """Half width of the noise window."""

    snr_method: str = "quantile"
    """Noise statistic."""

    noise_quantile: float = 0.95
    """Quantile of the quantile noise statistic."""

    min_noise_level: float | None = None
    """Noise floor (defaults to amp_threshold / snr_threshold)."""

    min_noise_level_fixed: bool | None = None
    """Treat the noise floor as absolute."""

    exclude_boundaries_size: int | None = None
    """Peaks this close to the ends are rejected."""

    # ==================== REFINEMENT PARAMETERS ====================
    tune_in: bool = False
    """Refine each major peak at denser scales."""

    refine_max_scale: float = 128.0
    """Largest scale used by refinement."""

    refine_n_scales: int = 24
    """Number of dense scales used by refinement."""

    def __post_init__(self) -> None:
        """Validate parameter constraints after initialization.

        Raises
        ------
        ConfigurationError
            If any parameter is out of its valid range.
        """
        if self.local_max_method not in LOCAL_MAXIMUM_METHODS:
            msg = (
                f"local_max_method must be one of {LOCAL_MAXIMUM_METHODS}, "
                f"got {self.local_max_method!r}"
            )
            raise ConfigurationError(msg)
        if self.snr_method not in SNR_METHODS:
            msg = f"snr_method must be one of {SNR_METHODS}, got {self.snr_method!r}"
            raise ConfigurationError(msg)
        if self.wavelet_length <= 0:
            msg = f"wavelet_length must be > 0, got {self.wavelet_length}"
            raise ConfigurationError(msg)
        if self.min_win_size < 1:
            msg = f"min_win_size must be >= 1, got {self.min_win_size}"
            raise ConfigurationError(msg)
        if self.gap_threshold < 0:
            msg = f"gap_threshold must be >= 0, got {self.gap_threshold}"
            raise ConfigurationError(msg)
        if self.filter_order >= self.filter_length:
            msg = (
                f"filter_order ({self.filter_order}) must be "
                f"< filter_length ({self.filter_length})"
            )
            raise ConfigurationError(msg)
        if self.noise_window_size < 0:
            msg = f"noise_window_size must be >= 0, got {self.noise_window_size}"
            raise ConfigurationError(msg)
        if not 0.0 < self.noise_quantile <= 1.0:
            msg = f"noise_quantile must be in (0, 1], got {self.noise_quantile}"
            raise ConfigurationError(msg)
        if self.snr_threshold == 0 and self.min_noise_level is None:
            raise ConfigurationError("min_noise_level must be set when snr_threshold is 0")
        if self.refine_n_scales < 1:
            msg = f"refine_n_scales must be >= 1, got {self.refine_n_scales}"
            raise ConfigurationError(msg)
        if self.refine_max_scale <= 0:
            msg = f"refine_max_scale must be > 0, got {self.refine_max_scale}"
            raise ConfigurationError(msg)
        scale_range = self.peak_scale_range
        if isinstance(scale_range, tuple) and (
            len(scale_range) != 2 or scale_range[0] > scale_range[1]
        ):
            msg = f"peak_scale_range must be an increasing pair, got {scale_range}"
            raise ConfigurationError(msg)

    @property
    def resolved_min_noise_level(self) -> float:
        """Noise floor, defaulting to ``amp_threshold / snr_threshold``."""
        if self.min_noise_level is not None:
            return float(self.min_noise_level)
        return self.amp_threshold / self.snr_threshold

    @classmethod
    def from_case_info(cls, case_info: Any | None) -> DetectionConfig:
        """Construct a :class:`DetectionConfig` from a dict with alias support.

        Parameters
        ----------
        case_info : dict or None
            Dictionary of parameter values, using field names or the short
            names of :data:`CWT_PARAM_ALIASES`.  The short ``skip`` counts
            columns from 1 (the raw signal column); the field ``scale_skip``
            counts from 0.

        Returns
        -------
        DetectionConfig
            Validated configuration instance.

        Examples
        --------
        >>> cfg = DetectionConfig.from_case_info({"SNR.Th": "2.5", "skip": 2})
        >>> cfg.snr_threshold, cfg.scale_skip
        (2.5, 1)
        """
        if not isinstance(case_info, dict) or not case_info:
            return cls()

        def _convert(value: Any, dtype: Any) -> Any:
            if value is None:
                raise ValueError
            if dtype is bool:
                if isinstance(value, str):
                    return value.strip().lower() in {"1", "true", "yes", "on"}
                return bool(value)
            if dtype == "range":
                if isinstance(value, (list, tuple)):
                    low, high = (float(v) for v in value)
                    return (low, high)
                return float(value)
            if dtype is int:
                return int(value)
            if dtype is float:
                return float(value)
            return dtype(value)

        short_names: dict[str, list[str]] = {}
        for short, field_name in CWT_PARAM_ALIASES.items():
            short_names.setdefault(field_name, []).append(short)

        types: dict[str, Any] = {
            "wavelet_xlimit": float,
            "wavelet_length": int,
            "local_max_method": str,
            "min_win_size": int,
            "amp_threshold": float,
            "amp_threshold_fixed": bool,
            "exclude_0scale_amp_threshold": bool,
            "peak_threshold": float,
            "filter_length": int,
            "filter_order": int,
            "gap_threshold": int,
            "scale_skip": int,
            "seed_min_scale": float,
            "snr_threshold": float,
            "peak_scale_range": "range",
            "ridge_length": float,
            "nearby_peak": bool,
            "nearby_window_size": int,
            "noise_window_size": int,
            "snr_method": str,
            "noise_quantile": float,
            "min_noise_level": float,
            "min_noise_level_fixed": bool,
            "exclude_boundaries_size": int,
            "tune_in": bool,
            "refine_max_scale": float,
            "refine_n_scales": int,
        }

        # Optional fields take an explicit None as-is.
        nullable = {
            "peak_threshold",
            "scale_skip",
            "nearby_window_size",
            "min_noise_level",
            "min_noise_level_fixed",
            "exclude_boundaries_size",
        }

        data: dict[str, Any] = {}
        for field_name, dtype in types.items():
            for key in (field_name, *short_names.get(field_name, [])):
                if key in case_info:
                    if case_info[key] is None and field_name in nullable:
                        data[field_name] = None
                        break
                    try:
                        value = _convert(case_info[key], dtype)
                    except (TypeError, ValueError):
                        continue
                    else:
                        if key == "skip":
                            value -= 1
                        data[field_name] = value
                        break

        return cls(**data)

    def to_metadata(self) -> dict[str, Any]:
        """Serialize all fields to a plain dictionary.

        Returns
        -------
        dict
            All configuration fields as a JSON-serializable dictionary.
        """
        return asdict(self)
