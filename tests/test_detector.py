"""Tests for the end-to-end CWT detection pipeline."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.extra.numpy import arrays

from mswavelet import (
    ConfigurationError,
    DetectionConfig,
    MissingDependencyError,
    PeakDetectionResult,
    compute_support_series,
    peak_detection_cwt,
    prepare_wavelets,
    savgol_baseline,
)


class TestKnownPeaks:
    """Detection of injected Gaussian peaks."""

    def test_clean_peaks_found(self, clean_spectrum):
        signal, centers = clean_spectrum
        result = peak_detection_cwt(signal)
        assert isinstance(result, PeakDetectionResult)
        assert len(result.major_peak_info) == 3
        np.testing.assert_allclose(result.peak_index, centers, atol=3)

    def test_noisy_peaks_found(self, noisy_spectrum):
        signal, centers = noisy_spectrum
        result = peak_detection_cwt(signal)
        for center in centers:
            assert np.min(np.abs(result.peak_index - center)) <= 3

    def test_result_layout(self, clean_spectrum):
        signal, _ = clean_spectrum
        result = peak_detection_cwt(signal)
        assert result.w_coefs.shape == result.local_max.shape
        assert result.w_coefs.shape[1] == result.scales.size
        assert result.scales[0] == 0.0
        np.testing.assert_array_equal(result.w_coefs[:, 0], signal)
        assert result.refined_peaks == ()
        assert result.config == DetectionConfig()

    def test_peaks_meet_snr_threshold(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        cfg = DetectionConfig(snr_threshold=8.0)
        result = peak_detection_cwt(signal, config=cfg)
        assert np.all(result.major_peak_info.peak_snr >= 8.0)

    def test_ridge_points_are_local_maxima(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        result = peak_detection_cwt(signal)
        for ridge in result.ridge_list:
            assert np.all(result.local_max[ridge.positions, ridge.columns] != 0)

    @pytest.mark.parametrize("method", ["classic", "faster", "new"])
    def test_every_strategy_finds_peaks(self, clean_spectrum, method):
        signal, centers = clean_spectrum
        result = peak_detection_cwt(signal, config=DetectionConfig(local_max_method=method))
        for center in centers:
            assert np.min(np.abs(result.peak_index - center)) <= 3

    def test_repeat_runs_compare_equal(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        first = peak_detection_cwt(signal)
        second = peak_detection_cwt(signal)
        assert first.major_peak_info == second.major_peak_info
        assert first.ridge_list == second.ridge_list
        assert first == second

    def test_different_inputs_compare_unequal(self, clean_spectrum, noisy_spectrum):
        clean = peak_detection_cwt(clean_spectrum[0])
        noisy = peak_detection_cwt(noisy_spectrum[0])
        assert clean != noisy
        assert clean.major_peak_info != noisy.major_peak_info

    def test_classic_and_faster_agree(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        classic = peak_detection_cwt(signal, config=DetectionConfig(local_max_method="classic"))
        faster = peak_detection_cwt(signal, config=DetectionConfig(local_max_method="faster"))
        np.testing.assert_array_equal(classic.local_max, faster.local_max)
        np.testing.assert_array_equal(classic.peak_index, faster.peak_index)


class TestScales:
    """Scale arguments and prepared kernels."""

    def test_prepared_matches_plain_scales(self, short_spectrum, small_scales):
        plain = peak_detection_cwt(short_spectrum, small_scales)
        prep = prepare_wavelets(short_spectrum.size, small_scales)
        prepared = peak_detection_cwt(short_spectrum, prep)
        np.testing.assert_array_equal(plain.w_coefs, prepared.w_coefs)
        np.testing.assert_array_equal(plain.peak_index, prepared.peak_index)

    def test_prepared_reused_across_signals(self, short_spectrum, small_scales):
        prep = prepare_wavelets(short_spectrum.size, small_scales)
        first = peak_detection_cwt(short_spectrum, prep)
        second = peak_detection_cwt(2.0 * short_spectrum, prep)
        np.testing.assert_allclose(second.w_coefs, 2.0 * first.w_coefs, atol=1e-10)

    def test_prepared_wrong_length(self, short_spectrum, small_scales):
        prep = prepare_wavelets(600, small_scales)
        with pytest.raises(ConfigurationError):
            peak_detection_cwt(short_spectrum, prep)

    def test_default_scales_too_large_for_short_signal(self, short_spectrum):
        with pytest.raises(ConfigurationError, match="too large"):
            peak_detection_cwt(short_spectrum)


class TestAmplitudeThreshold:
    """Relative and fixed amplitude thresholds."""

    def test_fixed_threshold_above_everything(self, clean_spectrum):
        signal, _ = clean_spectrum
        cfg = DetectionConfig(amp_threshold=1e6, amp_threshold_fixed=True)
        result = peak_detection_cwt(signal, config=cfg)
        assert not result.local_max.any()
        assert result.ridge_list == []
        assert len(result.major_peak_info) == 0

    def test_relative_threshold(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        cfg = DetectionConfig(amp_threshold=0.2)
        result = peak_detection_cwt(signal, config=cfg)
        kept = result.local_max[result.local_max != 0]
        assert np.all(kept >= 0.2 * result.w_coefs.max())

    def test_exclude_raw_column_from_reference(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        cfg = DetectionConfig(amp_threshold=0.2, exclude_0scale_amp_threshold=True)
        result = peak_detection_cwt(signal, config=cfg)
        kept = result.local_max[result.local_max != 0]
        assert np.all(kept >= 0.2 * result.w_coefs[:, 1:].max())


class TestPeakThreshold:
    """Height above the smoothed baseline."""

    def test_requires_smoother(self, clean_spectrum):
        signal, _ = clean_spectrum
        cfg = DetectionConfig(peak_threshold=1.0)
        with pytest.raises(MissingDependencyError, match="smoother"):
            peak_detection_cwt(signal, config=cfg, smoother=None)

    def test_missing_dependency_is_import_error(self, clean_spectrum):
        signal, _ = clean_spectrum
        with pytest.raises(ImportError):
            peak_detection_cwt(signal, config=DetectionConfig(peak_threshold=1.0), smoother=None)

    def test_smoother_unused_without_threshold(self, clean_spectrum):
        signal, centers = clean_spectrum
        result = peak_detection_cwt(signal, smoother=None)
        assert len(result.major_peak_info) == len(centers)

    def test_high_threshold_removes_all(self, clean_spectrum):
        signal, _ = clean_spectrum
        cfg = DetectionConfig(peak_threshold=1e6)
        result = peak_detection_cwt(signal, config=cfg)
        assert not result.local_max.any()
        assert len(result.major_peak_info) == 0

    def test_low_threshold_keeps_peaks(self, clean_spectrum):
        signal, centers = clean_spectrum
        cfg = DetectionConfig(peak_threshold=1.0, filter_length=501)
        result = peak_detection_cwt(signal, config=cfg)
        for center in centers:
            assert np.min(np.abs(result.peak_index - center)) <= 3

    def test_custom_smoother_called(self, clean_spectrum):
        signal, _ = clean_spectrum
        calls = []

        def flat(x, filter_length, filter_order):
            calls.append((filter_length, filter_order))
            return np.zeros_like(x)

        cfg = DetectionConfig(peak_threshold=0.5, filter_length=101, filter_order=3)
        peak_detection_cwt(signal, config=cfg, smoother=flat)
        assert calls == [(101, 3)]

    def test_even_filter_length_warns(self, clean_spectrum):
        signal, _ = clean_spectrum
        calls = []

        def flat(x, filter_length, filter_order):
            calls.append(filter_length)
            return np.zeros_like(x)

        cfg = DetectionConfig(peak_threshold=0.5, filter_length=100)
        with pytest.warns(RuntimeWarning, match="even"):
            peak_detection_cwt(signal, config=cfg, smoother=flat)
        assert calls == [101]

    def test_filter_longer_than_signal_warns(self, short_spectrum, small_scales):
        cfg = DetectionConfig(peak_threshold=0.5, filter_length=1001)
        with pytest.warns(RuntimeWarning, match="exceeds the signal length"):
            peak_detection_cwt(short_spectrum, small_scales, config=cfg)

    def test_savgol_baseline_shape(self, clean_spectrum):
        signal, _ = clean_spectrum
        baseline = savgol_baseline(signal, 1001, 2)
        assert baseline.shape == signal.shape


class TestRefinementStage:
    """Optional refinement inside the pipeline."""

    def test_tune_in(self, clean_spectrum):
        signal, centers = clean_spectrum
        result = peak_detection_cwt(signal, config=DetectionConfig(tune_in=True))
        assert len(result.refined_peaks) == len(result.major_peak_info)
        found = np.array([item.center_index for item in result.refined_peaks])
        for center in centers:
            assert np.min(np.abs(found - center)) <= 3

    def test_case_info_tune_in(self, clean_spectrum):
        signal, _ = clean_spectrum
        result = peak_detection_cwt(signal, case_info={"tuneIn": True})
        assert result.config.tune_in is True
        assert len(result.refined_peaks) == len(result.major_peak_info)


class TestCaseInfo:
    """Configuration through plain dictionaries."""

    def test_case_info_used(self, clean_spectrum):
        signal, _ = clean_spectrum
        result = peak_detection_cwt(signal, case_info={"SNR.Th": 1e9})
        assert result.config.snr_threshold == 1e9
        assert len(result.major_peak_info) == 0

    def test_config_takes_precedence(self, clean_spectrum):
        signal, _ = clean_spectrum
        cfg = DetectionConfig(snr_threshold=2.0)
        result = peak_detection_cwt(signal, config=cfg, case_info={"SNR.Th": 1e9})
        assert result.config is cfg


class TestSupportSeries:
    """Support dictionary for inspection."""

    def test_keys(self, clean_spectrum):
        signal, _ = clean_spectrum
        support = compute_support_series(signal)
        required = {
            "w_coefs",
            "scales",
            "local_max",
            "ridge_names",
            "candidate_indices",
            "candidate_snr",
            "accepted_indices",
            "peak_scales",
            "peak_snr",
            "detector_config",
        }
        assert required.issubset(support)
        assert support["accepted_indices"].dtype == int
        assert support["detector_config"]["snr_threshold"] == 3.0

    def test_consistent_with_pipeline(self, noisy_spectrum):
        signal, _ = noisy_spectrum
        support = compute_support_series(signal, case_info={"SNR.Th": 4})
        result = peak_detection_cwt(signal, case_info={"SNR.Th": 4})
        np.testing.assert_array_equal(support["accepted_indices"], result.peak_index)
        assert support["ridge_names"] == [ridge.name for ridge in result.ridge_list]


# ---------------------------------------------------------------------------
# Hypothesis property-based tests
# ---------------------------------------------------------------------------

_signal_strategy = arrays(
    dtype=np.float64,
    shape=st.integers(min_value=80, max_value=400),
    elements=st.floats(min_value=0.0, max_value=1e4, allow_nan=False, allow_infinity=False),
)

_SCALES = np.array([1.0, 2.0, 3.0, 4.0])


class TestHypothesis:
    """Property-based tests using Hypothesis."""

    @given(signal=_signal_strategy)
    @settings(max_examples=50, deadline=None)
    def test_deterministic(self, signal):
        cfg = DetectionConfig(ridge_length=2.0, peak_scale_range=1.0, noise_window_size=50)
        first = peak_detection_cwt(signal, _SCALES, config=cfg)
        second = peak_detection_cwt(signal, _SCALES, config=cfg)
        np.testing.assert_array_equal(first.local_max, second.local_max)
        assert [r.name for r in first.ridge_list] == [r.name for r in second.ridge_list]
        assert first.major_peak_info.peak_names == second.major_peak_info.peak_names
        assert first == second

    @given(signal=_signal_strategy)
    @settings(max_examples=50, deadline=None)
    def test_invariants(self, signal):
        cfg = DetectionConfig(ridge_length=2.0, peak_scale_range=1.0, noise_window_size=50)
        result = peak_detection_cwt(signal, _SCALES, config=cfg)
        for ridge in result.ridge_list:
            assert np.all(result.local_max[ridge.positions, ridge.columns] != 0)
        info = result.major_peak_info
        assert np.all(info.peak_snr >= cfg.snr_threshold)
        assert np.all(info.peak_scale >= cfg.peak_scale_range)
        assert np.all(np.isin(info.peak_scale, _SCALES))
