"""
Tests for core/pitch/hps.py — Harmonic Product Spectrum estimation.

Tests cover:
    - hps_spectrum() accumulator shape and products
    - estimate_fundamental() on synthetic harmonic spectra
    - Octave-error suppression (2nd harmonic louder than the fundamental)
    - Edge cases: all-zero input, ties, invalid harmonics
"""

import numpy as np
import pytest

from conftest import SAMPLE_RATE, harmonic_magnitudes
from core.pitch.hps import DEFAULT_HARMONICS, estimate_fundamental, hps_spectrum
from core.pitch.types import SpectrumFrame

# ---------------------------------------------------------------------------
# hps_spectrum
# ---------------------------------------------------------------------------


class TestHpsSpectrum:
    def test_length_is_n_floor_div_harmonics(self):
        """Accumulator keeps only the first N // harmonics bins."""
        frame = SpectrumFrame(np.ones(64), 8000)
        assert hps_spectrum(frame, 5).shape == (12,)
        assert hps_spectrum(frame, 2).shape == (32,)

    def test_two_harmonics_products(self):
        """acc[i] = s[i] · s[2i]."""
        frame = SpectrumFrame(np.arange(1.0, 9.0), 8000)
        np.testing.assert_allclose(hps_spectrum(frame, 2), [1.0, 6.0, 15.0, 28.0])

    def test_three_harmonics_products(self):
        """acc[i] = s[i] · s[2i] · s[3i]."""
        frame = SpectrumFrame(np.arange(1.0, 9.0), 8000)
        np.testing.assert_allclose(hps_spectrum(frame, 3), [1.0, 24.0])

    def test_does_not_modify_frame(self):
        """The frame's magnitudes are untouched."""
        mags = np.arange(1.0, 17.0)
        frame = SpectrumFrame(mags, 8000)
        hps_spectrum(frame, 3)
        np.testing.assert_array_equal(frame.magnitudes, mags)

    def test_default_harmonics_is_5(self):
        assert DEFAULT_HARMONICS == 5


# ---------------------------------------------------------------------------
# estimate_fundamental
# ---------------------------------------------------------------------------


class TestEstimateFundamental:
    def test_harmonic_series_on_bin_44_is_440hz(self, a4_frame):
        """Fundamental on bin 44 at 10 Hz/bin → 440 Hz."""
        assert estimate_fundamental(a4_frame) == pytest.approx(440.0)

    def test_loud_second_harmonic_does_not_cause_octave_error(self, make_frame):
        """2nd harmonic louder than f0: argmax would say 880 Hz, HPS says 440 Hz."""
        frame = make_frame(44, partials=(0.2, 1.0, 0.7, 0.5, 0.3))
        assert int(np.argmax(frame.magnitudes)) == 88
        assert estimate_fundamental(frame) == pytest.approx(440.0)

    def test_noise_floor_does_not_move_estimate(self, make_frame):
        frame = make_frame(22, floor=1e-3)
        assert estimate_fundamental(frame) == pytest.approx(220.0)

    @pytest.mark.parametrize("harmonics", [2, 3, 4, 5, 6])
    def test_result_is_bin_times_bin_width(self, make_frame, harmonics):
        """frequency = index · sample_rate / N for every HPS depth."""
        frame = make_frame(30, partials=(1.0,) * harmonics, floor=1e-4)
        assert estimate_fundamental(frame, harmonics) == pytest.approx(30 * SAMPLE_RATE / 4096)

    def test_single_spike_over_floor_with_two_harmonics(self):
        """A lone spike at odd bin k (flat floor elsewhere) wins with harmonics=2."""
        mags = np.full(1024, 1e-3)
        mags[37] = 1.0
        frame = SpectrumFrame(mags, 44100)
        assert estimate_fundamental(frame, 2) == pytest.approx(37 * 44100 / 1024)

    def test_ties_resolve_to_lowest_bin(self):
        """Equal maxima → first occurrence (lowest frequency) wins."""
        frame = SpectrumFrame(np.ones(256), 44100)
        assert estimate_fundamental(frame, 3) == 0.0

    @pytest.mark.parametrize("harmonics", [2, 3, 5, 8])
    def test_all_zero_returns_zero(self, silent_frame, harmonics):
        """Silent input → 0 Hz regardless of harmonics."""
        assert estimate_fundamental(silent_frame, harmonics) == 0.0

    def test_returns_python_float(self, a4_frame):
        assert isinstance(estimate_fundamental(a4_frame), float)

    def test_deterministic(self, a4_frame):
        """Same frame, same answer — no state between calls."""
        assert estimate_fundamental(a4_frame) == estimate_fundamental(a4_frame)


# ---------------------------------------------------------------------------
# Contract violations
# ---------------------------------------------------------------------------


class TestInvalidHarmonics:
    @pytest.mark.parametrize("harmonics", [1, 0, -3])
    def test_below_two_raises(self, a4_frame, harmonics):
        with pytest.raises(ValueError, match="harmonics must be >= 2"):
            estimate_fundamental(a4_frame, harmonics)

    @pytest.mark.parametrize("harmonics", [2.5, "5", True])
    def test_non_integer_raises(self, a4_frame, harmonics):
        with pytest.raises(ValueError, match="harmonics must be an integer"):
            estimate_fundamental(a4_frame, harmonics)

    def test_spectrum_shorter_than_harmonics_raises(self):
        frame = SpectrumFrame(np.ones(4), 8000)
        with pytest.raises(ValueError, match="too short"):
            hps_spectrum(frame, 5)

    def test_numpy_integer_accepted(self, a4_frame):
        assert estimate_fundamental(a4_frame, np.int64(5)) == pytest.approx(440.0)


def test_magnitudes_match_helper():
    """Sanity check on the conftest builder used throughout."""
    mags = harmonic_magnitudes(10, size=64, partials=(1.0, 0.5))
    assert mags[10] == 1.0
    assert mags[20] == 0.5
    assert mags.sum() == pytest.approx(1.5)
