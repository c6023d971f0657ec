"""Tests for mother wavelet sampling and prepared kernel bundles."""

from __future__ import annotations

import numpy as np
import pytest

from mswavelet import DEFAULT_SCALES, ConfigurationError, mexican_hat, prepare_wavelets
from mswavelet._wavelets import scale_kernel, validate_scales


class TestMexicanHat:
    """Sampling of the mother wavelet."""

    def test_grid(self):
        x, psi = mexican_hat()
        assert x.size == psi.size == 1024
        assert x[0] == -8.0
        assert x[-1] == 8.0

    def test_symmetric_and_peaked_at_zero(self):
        x, psi = mexican_hat(8.0, 1025)
        np.testing.assert_allclose(psi, psi[::-1])
        assert np.argmax(psi) == 512

    def test_invalid_length(self):
        with pytest.raises(ConfigurationError, match="wavelet_length"):
            mexican_hat(8.0, 0)


class TestScaleKernel:
    """Resampling of the mother wavelet at a scale."""

    @pytest.mark.parametrize("scale", [1.0, 2.0, 3.5, 10.0, 64.0])
    def test_kernel_length(self, scale):
        x, psi = mexican_hat()
        kernel = scale_kernel(x, psi, scale)
        assert kernel.size == int(np.floor(16 * scale)) + 1

    def test_zero_mean(self):
        x, psi = mexican_hat()
        kernel = scale_kernel(x, psi, 4.0)
        assert abs(kernel.mean()) < 1e-12


class TestValidateScales:
    """Scale checks shared by all transforms."""

    def test_default_scales_valid(self):
        np.testing.assert_array_equal(validate_scales(DEFAULT_SCALES), DEFAULT_SCALES)

    @pytest.mark.parametrize(
        "scales",
        [[], [0.0, 1.0], [-1.0], [1.0, 1.0], [4.0, 2.0], [1.0, np.inf]],
    )
    def test_rejects_invalid(self, scales):
        with pytest.raises(ConfigurationError):
            validate_scales(scales)


class TestPrepareWavelets:
    """Precomputed kernels for a fixed signal length."""

    def test_padded_length_is_power_of_two(self):
        prep = prepare_wavelets(3000, [1, 2, 4])
        assert prep.padded_length == 4096
        assert prep.signal_length == 3000
        assert len(prep) == 3

    def test_exact_power_of_two_not_padded(self):
        assert prepare_wavelets(2048, [1, 2]).padded_length == 2048

    def test_spectra_shape(self):
        prep = prepare_wavelets(1000, [1, 2, 4, 8])
        assert prep.kernel_spectra.shape == (4, 1024 // 2 + 1)

    def test_scale_too_large(self):
        with pytest.raises(ConfigurationError, match="too large"):
            prepare_wavelets(100, [1, 2, 8])

    def test_equal_by_value(self):
        assert prepare_wavelets(256, [1, 2]) == prepare_wavelets(256, [1, 2])
        assert prepare_wavelets(256, [1, 2]) != prepare_wavelets(256, [1, 3])
        assert prepare_wavelets(256, [1, 2]) != prepare_wavelets(300, [1, 2])

    def test_unknown_wavelet(self):
        with pytest.raises(ConfigurationError, match="unsupported wavelet"):
            prepare_wavelets(100, [1, 2], wavelet="morlet")

    def test_custom_wavelet_columns_or_rows(self):
        x, psi = mexican_hat()
        by_columns = prepare_wavelets(256, [1, 2], wavelet=np.column_stack([x, psi]))
        by_rows = prepare_wavelets(256, [1, 2], wavelet=np.vstack([x, psi]))
        builtin = prepare_wavelets(256, [1, 2])
        for a, b, c in zip(by_columns.kernels, by_rows.kernels, builtin.kernels, strict=True):
            np.testing.assert_array_equal(a, c)
            np.testing.assert_array_equal(b, c)
