"""Tests for LPC formant estimation."""

import numpy as np
import pytest
from scipy.linalg import solve_toeplitz
from scipy.signal import lfilter

from phonicheck.features.formants import (
    FormantAnalyzer,
    classify_vowel,
    find_roots,
    lpc,
    vtln_factor_for_age,
)

SR = 16000


def _resonator_poles(freqs: list[float], radius: float = 0.97) -> np.ndarray:
    poles = []
    for f in freqs:
        z = radius * np.exp(2j * np.pi * f / SR)
        poles.extend([z, np.conj(z)])
    return np.array(poles)


def _synthetic_vowel(formants: list[float], n: int = 512, seed: int = 0) -> np.ndarray:
    """White noise through an all-pole filter with the given resonances."""
    a = np.real(np.poly(_resonator_poles(formants)))
    rng = np.random.default_rng(seed)
    out = lfilter([1.0], a, rng.standard_normal(n + 2000))[2000:]
    return out / np.max(np.abs(out))


class TestVtln:
    @pytest.mark.parametrize("age,factor", [(5, 1.3), (8.9, 1.3), (9, 1.15), (12, 1.15), (13, 1.0), (40, 1.0)])
    def test_brackets(self, age, factor):
        assert vtln_factor_for_age(age) == factor


class TestLpc:
    def test_matches_toeplitz_solution(self):
        rng = np.random.default_rng(1)
        x = rng.standard_normal(512)
        order = 8
        r = np.array([np.dot(x[:len(x) - k], x[k:]) for k in range(order + 1)])
        expected = -solve_toeplitz(r[:order], r[1:order + 1])
        coeffs = lpc(x, order)
        assert coeffs[0] == 1.0
        np.testing.assert_allclose(coeffs[1:], expected, rtol=1e-6, atol=1e-9)

    def test_recovers_ar_process(self):
        a_true = np.real(np.poly(_resonator_poles([1000.0], radius=0.9)))
        rng = np.random.default_rng(2)
        x = lfilter([1.0], a_true, rng.standard_normal(20000))
        np.testing.assert_allclose(lpc(x, 2), a_true, atol=0.02)

    def test_silence(self):
        coeffs = lpc(np.zeros(100), 4)
        np.testing.assert_array_equal(coeffs, [1.0, 0.0, 0.0, 0.0, 0.0])


class TestFindRoots:
    def test_known_quartic(self):
        roots = np.array([0.95 * np.exp(0.5j), 0.95 * np.exp(-0.5j),
                          0.8 * np.exp(2.0j), 0.8 * np.exp(-2.0j)])
        coeffs = np.real(np.poly(roots))
        found = find_roots(coeffs, iterations=50)
        for r in roots:
            assert np.min(np.abs(found - r)) < 1e-3

    def test_quadratic_default_iterations(self):
        # x^2 - 0.25 = (x - 0.5)(x + 0.5)
        found = np.sort_complex(find_roots(np.array([1.0, 0.0, -0.25])))
        np.testing.assert_allclose(found, [-0.5, 0.5], atol=1e-6)

    def test_root_count(self):
        assert len(find_roots(np.poly(np.arange(1, 7) / 10))) == 6

    def test_constant_has_no_roots(self):
        assert len(find_roots(np.array([1.0]))) == 0


class TestFormantAnalyzer:
    def test_silent_frame(self):
        result = FormantAnalyzer().analyze(np.zeros(512))
        assert (result.f1, result.f2, result.f3) == (0.0, 0.0, 0.0)
        assert result.bandwidths == [0.0, 0.0]
        assert not result.is_vowel
        assert result.vowel_quality == "Unvoiced"

    def test_short_frame(self):
        assert FormantAnalyzer(order=12).analyze(np.ones(10)).f1 == 0.0

    def test_finds_first_formant(self):
        frame = _synthetic_vowel([700.0, 1200.0, 2500.0])
        result = FormantAnalyzer(iterations=200).analyze(frame)
        assert result.f1 == pytest.approx(700, abs=100)
        assert result.f1 < result.f2 < result.f3
        assert result.is_vowel

    def test_vtln_scales_all_formants(self):
        frame = _synthetic_vowel([700.0, 1200.0, 2500.0])
        adult = FormantAnalyzer().analyze(frame)
        child_analyzer = FormantAnalyzer()
        child_analyzer.set_age(7)
        child = child_analyzer.analyze(frame)
        assert child.f1 == pytest.approx(adult.f1 / 1.3)
        assert child.f2 == pytest.approx(adult.f2 / 1.3)
        assert child.f3 == pytest.approx(adult.f3 / 1.3)
        # Vowel detection uses the raw formants
        assert child.is_vowel == adult.is_vowel

    def test_formants_are_finite(self):
        rng = np.random.default_rng(5)
        result = FormantAnalyzer().analyze(rng.uniform(-1, 1, 512))
        assert np.isfinite([result.f1, result.f2, result.f3]).all()


class TestClassifyVowel:
    def test_quadrilateral(self):
        assert classify_vowel(270, 2290) == "High-Front (i)"
        assert classify_vowel(300, 870) == "High-Back (u)"
        assert classify_vowel(730, 1090) == "Low (a/ae)"
        assert classify_vowel(530, 1840) == "Mid"
