"""Tests for pitch tracking and micro-pause detection."""

import numpy as np
import pytest

from phonicheck.features.pitch import PitchAnalyzer
from phonicheck.types import AudioData

SR = 16000


def _make_sine(freq: float, duration: float, sr: int = SR) -> np.ndarray:
    t = np.arange(int(sr * duration)) / sr
    return 0.5 * np.sin(2 * np.pi * freq * t)


def _glide(start_hz: float, end_hz: float, duration: float) -> np.ndarray:
    """Linear chirp, so the F0 track has real variation."""
    t = np.arange(int(SR * duration)) / SR
    freq = start_hz + (end_hz - start_hz) * t / duration
    phase = 2 * np.pi * np.cumsum(freq) / SR
    return 0.5 * np.sin(phase)


def _audio(samples: np.ndarray) -> AudioData:
    return AudioData.from_samples(samples, SR)


class TestDetectPitch:
    @pytest.mark.parametrize("freq", [120, 200, 300])
    def test_sine(self, freq):
        f0 = PitchAnalyzer().detect_pitch(_make_sine(freq, 1024 / SR))
        assert f0 == pytest.approx(freq, rel=0.03)

    def test_silence_is_unvoiced(self):
        assert PitchAnalyzer().detect_pitch(np.zeros(1024)) == 0.0


class TestAnalyze:
    def test_steady_tone_is_monotone(self):
        result = PitchAnalyzer().analyze(_audio(_make_sine(300, 1.0)))
        assert result.average_pitch == pytest.approx(300, rel=0.03)
        assert result.is_monotone
        assert result.confidence == pytest.approx(1.0)
        assert result.micro_pauses == 0
        assert "robot" in result.feedback

    def test_glide_is_expressive(self):
        result = PitchAnalyzer().analyze(_audio(_glide(150, 400, 1.0)))
        assert not result.is_monotone
        assert result.pitch_range > 100
        assert result.feedback == "Great expression!"

    def test_silence(self):
        result = PitchAnalyzer().analyze(_audio(np.zeros(SR)))
        assert result.average_pitch == 0
        assert result.is_monotone
        assert result.confidence == 0.0
        assert result.feedback == "No voice detected."

    def test_too_short(self):
        result = PitchAnalyzer().analyze(_audio(_make_sine(300, 0.05)))
        assert result.feedback == "No voice detected."


class TestMicroPauses:
    def _with_gaps(self, gap_s: float, n_gaps: int) -> np.ndarray:
        tone = _make_sine(250, 0.2)
        gap = np.zeros(int(SR * gap_s))
        parts = [np.zeros(SR // 10), tone]
        for _ in range(n_gaps):
            parts.extend([gap, tone])
        parts.append(np.zeros(SR // 10))
        return np.concatenate(parts)

    def test_continuous_has_none(self):
        assert PitchAnalyzer().detect_micro_pauses(_make_sine(250, 1.0)) == 0

    def test_edge_silence_not_counted(self):
        samples = np.concatenate([np.zeros(SR), _make_sine(250, 0.5), np.zeros(SR)])
        assert PitchAnalyzer().detect_micro_pauses(samples) == 0

    def test_counts_long_gaps(self):
        assert PitchAnalyzer().detect_micro_pauses(self._with_gaps(0.3, 3)) == 3

    def test_short_gaps_ignored(self):
        assert PitchAnalyzer().detect_micro_pauses(self._with_gaps(0.1, 3)) == 0

    def test_choppy_feedback(self):
        result = PitchAnalyzer().analyze(_audio(self._with_gaps(0.3, 3)))
        assert result.micro_pauses == 3
        assert result.feedback == "Try to say the word smoothly without stopping."

    def test_silent_envelope(self):
        assert PitchAnalyzer().detect_micro_pauses(np.zeros(4000)) == 0
