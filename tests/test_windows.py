"""
Window Function Tests

Tests for the in-place window functions and their weights.
"""

import numpy as np
import pytest
from scipy import signal as scipy_signal

from pcp_signals import windows
from pcp_signals.windows import WindowFunction, window_func, window_weights


def generate_block(n: int, seed: int = 0) -> np.ndarray:
    """Generate a reproducible random block."""
    rng = np.random.default_rng(seed)
    return rng.standard_normal(n).astype(np.float32)


class TestWindowNames:
    """Tests for window ids and names."""

    def test_count(self):
        assert windows.num_window_funcs() == 4

    def test_names(self):
        assert windows.window_func_name(0) == 'Rectangular'
        assert windows.window_func_name(1) == 'Bartlett'
        assert windows.window_func_name(2) == 'Hamming'
        assert windows.window_func_name(WindowFunction.HANNING) == 'Hanning'

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            windows.window_func_name(4)


class TestRectangular:
    """Rectangular window is the identity."""

    @pytest.mark.parametrize("n", [1, 32, 1000])
    def test_identity(self, n):
        x = generate_block(n)
        expected = x.copy()

        result = window_func(WindowFunction.RECTANGULAR, n, x)

        assert result is x
        np.testing.assert_array_equal(x, expected)


class TestBartlett:
    """Tests for the triangular window."""

    def test_edges_and_midpoint(self):
        """Weight ~0 at both edges and 1 at the midpoint."""
        n = 1024
        w = window_weights(WindowFunction.BARTLETT, n)

        assert w[0] == 0.0
        assert w[n - 1] == pytest.approx(0.0, abs=4.0 / n)
        assert w[n // 2] == pytest.approx(1.0)

    def test_first_half_ramp(self):
        """Weight at index i of the first half is i / (N/2)."""
        n = 64
        w = window_weights(WindowFunction.BARTLETT, n)
        expected = np.arange(n // 2) / (n // 2)
        np.testing.assert_allclose(w[:n // 2], expected, rtol=1e-6)

    def test_second_half_ramp(self):
        """Weight at index i + N/2 is 1 - i / (N/2)."""
        n = 64
        w = window_weights(WindowFunction.BARTLETT, n)
        expected = 1.0 - np.arange(n // 2) / (n // 2)
        np.testing.assert_allclose(w[n // 2:], expected, rtol=1e-6)


class TestCosineWindows:
    """Tests for Hamming and Hanning windows."""

    @pytest.mark.parametrize("n", [32, 257, 4096])
    def test_hamming_matches_scipy(self, n):
        w = window_weights(WindowFunction.HAMMING, n)
        reference = scipy_signal.get_window('hamming', n, fftbins=False)
        np.testing.assert_allclose(w, reference, atol=1e-6)

    @pytest.mark.parametrize("n", [32, 257, 4096])
    def test_hanning_matches_scipy(self, n):
        w = window_weights(WindowFunction.HANNING, n)
        reference = scipy_signal.get_window('hann', n, fftbins=False)
        np.testing.assert_allclose(w, reference, atol=1e-6)

    def test_hanning_edges(self):
        w = window_weights(WindowFunction.HANNING, 128)
        assert w[0] == pytest.approx(0.0, abs=1e-7)
        assert w[-1] == pytest.approx(0.0, abs=1e-7)

    def test_hamming_edges(self):
        w = window_weights(WindowFunction.HAMMING, 128)
        assert w[0] == pytest.approx(0.08, abs=1e-6)
        assert w[-1] == pytest.approx(0.08, abs=1e-6)


class TestWindowFunc:
    """Tests for in-place application."""

    @pytest.mark.parametrize("which", [1, 2, 3])
    def test_in_place_multiply(self, which):
        n = 256
        x = generate_block(n, seed=which)
        expected = x * window_weights(which, n)

        result = window_func(which, n, x)

        assert result is x
        np.testing.assert_allclose(x, expected, rtol=1e-6)

    def test_only_prefix_is_weighted(self):
        """Samples past num_samples are untouched."""
        x = np.ones(64, dtype=np.float32)
        window_func(WindowFunction.HANNING, 32, x)

        assert x[0] == pytest.approx(0.0, abs=1e-7)
        np.testing.assert_array_equal(x[32:], np.ones(32))

    @pytest.mark.parametrize("which", [-1, 4, 2.0, None])
    def test_unknown_window(self, which):
        with pytest.raises(ValueError):
            window_func(which, 8, np.ones(8, dtype=np.float32))

    def test_short_block(self):
        with pytest.raises(ValueError):
            window_func(WindowFunction.HAMMING, 64, np.ones(32, dtype=np.float32))

    def test_determinism(self):
        x1 = generate_block(512)
        x2 = x1.copy()
        window_func(WindowFunction.HAMMING, 512, x1)
        window_func(WindowFunction.HAMMING, 512, x2)
        np.testing.assert_array_equal(x1, x2)
