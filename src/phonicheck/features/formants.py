"""Formant estimation by linear prediction.

A frame is pre-emphasized and Hamming-windowed, Levinson-Durbin gives the
prediction polynomial, and a fixed-iteration Durand-Kerner solver finds its
roots. Each root in the upper half-plane maps to a resonance:

    freq      = angle(z) * sr / (2 * pi)
    bandwidth = -ln|z| * sr / pi

Children's vocal tracts are shorter, so their formants sit 15-30% above the
adult values in the target tables. Raw formants are divided by a vocal tract
length normalization (VTLN) factor chosen from the speaker's age.
"""

import logging

import numpy as np

from phonicheck.audio import pre_emphasis
from phonicheck.types import FormantResult

logger = logging.getLogger(__name__)

MIN_FORMANT_HZ = 90
MAX_BANDWIDTH_HZ = 400


def vtln_factor_for_age(age: float) -> float:
    if age < 9:
        return 1.3
    if age < 13:
        return 1.15
    return 1.0


def lpc(signal: np.ndarray, order: int) -> np.ndarray:
    """Levinson-Durbin recursion. Returns [1, a1, ..., a_order]."""
    x = np.asarray(signal, dtype=np.float64)
    n = len(x)
    r = np.array([np.dot(x[:n - k], x[k:]) if k < n else 0.0 for k in range(order + 1)])

    a = np.zeros(order + 1)
    a[0] = 1.0
    err = r[0]
    if err <= 0:
        return a

    for k in range(1, order + 1):
        lam = -np.dot(a[:k], r[k:0:-1]) / err
        prev = a.copy()
        a[:k + 1] = prev[:k + 1] + lam * prev[k::-1]
        err *= 1 - lam * lam
        if err <= 0:
            break

    return a


def find_roots(coeffs: np.ndarray, iterations: int = 20) -> np.ndarray:
    """Durand-Kerner root finder for a monic polynomial (highest power first).

    Runs a fixed number of sweeps with no convergence test, so results are
    reproducible for a given iteration count.
    """
    coeffs = np.asarray(coeffs, dtype=np.float64)
    p = len(coeffs) - 1
    if p < 1:
        return np.zeros(0, dtype=np.complex128)

    k = np.arange(p)
    roots = 0.9 * np.exp(1j * (2 * np.pi * k / p + 0.1))

    with np.errstate(all="ignore"):
        for _ in range(iterations):
            for i in range(p):
                value = np.polyval(coeffs, roots[i])
                others = np.delete(roots, i)
                denom = np.prod(roots[i] - others)
                if denom == 0:
                    continue
                roots[i] = roots[i] - value / denom

    return roots


class FormantAnalyzer:
    def __init__(self, sample_rate: int = 16000, order: int = 12, iterations: int = 20):
        self.sample_rate = sample_rate
        self.order = order
        self.iterations = iterations
        self.vtln_factor = 1.0

    def set_age(self, age: float) -> None:
        self.vtln_factor = vtln_factor_for_age(age)
        logger.debug(f"VTLN factor {self.vtln_factor} for age {age}")

    def analyze(self, frame: np.ndarray) -> FormantResult:
        frame = np.asarray(frame, dtype=np.float64)
        if len(frame) <= self.order or not np.any(frame):
            return FormantResult(0.0, 0.0, 0.0, [0.0, 0.0], False, "Unvoiced")

        windowed = pre_emphasis(frame) * np.hamming(len(frame))
        roots = find_roots(lpc(windowed, self.order), self.iterations)

        finite = np.isfinite(roots)
        if not finite.all():
            logger.debug(f"Discarding {int((~finite).sum())} diverged LPC roots")
            roots = roots[finite]

        formants = self._resonances(roots)
        f = [formants[i][0] if i < len(formants) else 0.0 for i in range(3)]
        bw = [formants[i][1] if i < len(formants) else 0.0 for i in range(2)]

        f1, f2, f3 = (value / self.vtln_factor for value in f)
        return FormantResult(
            f1=f1,
            f2=f2,
            f3=f3,
            bandwidths=bw,
            is_vowel=f[0] > 200 and f[1] > 800,
            vowel_quality=classify_vowel(f1, f2),
        )

    def _resonances(self, roots: np.ndarray) -> list[tuple[float, float]]:
        """(freq, bandwidth) for upper half-plane roots passing the filters."""
        upper = roots[roots.imag >= 0]
        with np.errstate(divide="ignore"):
            freqs = np.angle(upper) * self.sample_rate / (2 * np.pi)
            bandwidths = -np.log(np.abs(upper)) * (self.sample_rate / np.pi)

        keep = (freqs > MIN_FORMANT_HZ) & (bandwidths < MAX_BANDWIDTH_HZ)
        pairs = sorted(zip(freqs[keep].tolist(), bandwidths[keep].tolist()))
        return pairs


def classify_vowel(f1: float, f2: float) -> str:
    """Coarse position on the vowel quadrilateral (adult reference space)."""
    if f1 < 350:
        if f2 > 2200:
            return "High-Front (i)"
        if f2 < 1000:
            return "High-Back (u)"
    if f1 > 700 and f2 < 1500:
        return "Low (a/ae)"
    return "Mid"
