"""Prosody analysis: autocorrelation F0 tracking and micro-pause detection."""

import logging

import numpy as np

from phonicheck.environment import frame_rms
from phonicheck.types import AudioData, PitchResult

logger = logging.getLogger(__name__)

MONOTONE_STD_HZ = 15
# Peak autocorrelation below this fraction of the zero-lag value is unvoiced
VOICING_THRESHOLD = 0.1
PAUSE_LEVEL = 0.1
MIN_PAUSE_MS = 150
MAX_NATURAL_PAUSES = 2


class PitchAnalyzer:
    def __init__(
        self,
        sample_rate: int = 16000,
        min_freq: float = 75,
        max_freq: float = 600,
        frame_size: int = 1024,
        hop_size: int = 512,
        envelope_frame: int = 256,
    ):
        self.sample_rate = sample_rate
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.envelope_frame = envelope_frame

    def analyze(self, audio: AudioData) -> PitchResult:
        samples = audio.samples
        pitches = []
        n_frames = 0

        for start in range(0, len(samples) - self.frame_size, self.hop_size):
            n_frames += 1
            f0 = self.detect_pitch(samples[start:start + self.frame_size])
            if f0 > 0:
                pitches.append(f0)

        if not pitches:
            return PitchResult(
                average_pitch=0,
                pitch_range=0,
                std_dev=0.0,
                is_monotone=True,
                confidence=0.0,
                micro_pauses=0,
                feedback="No voice detected.",
            )

        pitches = np.array(pitches)
        mean = float(np.mean(pitches))
        std = float(np.std(pitches))
        is_monotone = std < MONOTONE_STD_HZ
        pauses = self.detect_micro_pauses(samples)

        feedback = "Great expression!"
        if is_monotone:
            feedback = "Try to speak with more feeling! Don't be a robot."
        if pauses > MAX_NATURAL_PAUSES:
            feedback = "Try to say the word smoothly without stopping."

        logger.debug(
            f"Pitch {mean:.0f}Hz +/- {std:.1f} over {len(pitches)}/{n_frames} voiced frames, "
            f"{pauses} micro-pauses"
        )
        return PitchResult(
            average_pitch=round(mean),
            pitch_range=round(float(pitches.max() - pitches.min())),
            std_dev=std,
            is_monotone=is_monotone,
            confidence=len(pitches) / n_frames,
            micro_pauses=pauses,
            feedback=feedback,
        )

    def detect_pitch(self, frame: np.ndarray) -> float:
        """F0 of one frame in Hz, or 0 when the frame is unvoiced."""
        n = len(frame)
        lag_min = int(self.sample_rate / self.max_freq)
        lag_max = min(int(self.sample_rate / self.min_freq), n - 1)
        if lag_min >= lag_max:
            return 0.0

        autocorr_0 = float(np.dot(frame, frame))
        if autocorr_0 <= 0:
            return 0.0

        autocorr = np.array([
            np.dot(frame[:n - lag], frame[lag:]) for lag in range(lag_min, lag_max + 1)
        ])
        peak = int(np.argmax(autocorr))
        if autocorr[peak] < VOICING_THRESHOLD * autocorr_0:
            return 0.0
        return self.sample_rate / (lag_min + peak)

    def detect_micro_pauses(self, samples: np.ndarray) -> int:
        """Count interior silent runs longer than MIN_PAUSE_MS.

        Leading and trailing silence is not counted.
        """
        envelope = frame_rms(samples, self.envelope_frame)
        if len(envelope) == 0:
            return 0
        threshold = envelope.max() * PAUSE_LEVEL
        if threshold <= 0:
            return 0

        loud = np.flatnonzero(envelope >= threshold)
        frame_ms = self.envelope_frame / self.sample_rate * 1000

        count = 0
        run = 0
        for level in envelope[loud[0]:loud[-1] + 1]:
            if level < threshold:
                run += 1
            else:
                if run * frame_ms > MIN_PAUSE_MS:
                    count += 1
                run = 0
        return count
