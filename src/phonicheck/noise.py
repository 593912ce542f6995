"""Spectral-subtraction noise reducer.

The first 200ms of a recording are assumed to be ambient noise before the
child starts speaking. Their average magnitude spectrum is subtracted from
every STFT frame of the whole recording, the original phase is kept, and the
frames are overlap-added back together. A final gate zeros near-silent
samples.

Steady-state hiss is removed well; transient noise during speech is not
handled.
"""

import logging
import math

import numpy as np

from phonicheck.fft import fft, ifft
from phonicheck.types import AudioData

logger = logging.getLogger(__name__)

# Fraction of the original magnitude always kept, avoids "musical noise"
SPECTRAL_FLOOR = 0.01
# Overlap-add weights below this fraction of the peak are left unnormalized
_MIN_WINDOW_FRACTION = 0.5


class NoiseReducer:
    def __init__(
        self,
        sample_rate: int = 16000,
        frame_size: int = 512,
        hop_size: int = 256,
        oversubtraction: float = 2.0,
        noise_window_s: float = 0.2,
        gate_threshold: float = 0.005,
    ):
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.oversubtraction = oversubtraction
        self.noise_window_s = noise_window_s
        self.gate_threshold = gate_threshold
        self._window = np.hanning(frame_size)

    def clean(self, audio: AudioData) -> AudioData:
        """Learn the noise profile, subtract it, gate the result."""
        samples = audio.samples
        noise_len = int(self.noise_window_s * audio.sample_rate)
        profile = self.learn_noise_profile(samples[:noise_len])

        if np.any(profile > 0):
            cleaned = self.spectral_subtraction(samples, profile)
        else:
            # Nothing to subtract
            logger.debug("Noise profile is silent, skipping spectral subtraction")
            cleaned = samples.copy()

        return AudioData.from_samples(self.gate(cleaned), audio.sample_rate)

    def learn_noise_profile(self, noise: np.ndarray) -> np.ndarray:
        """Mean Hann-windowed magnitude spectrum over full frames of noise."""
        if len(noise) < self.frame_size:
            return np.zeros(self.frame_size)

        n_frames = (len(noise) - self.frame_size) // self.hop_size + 1
        acc = np.zeros(self.frame_size)
        for i in range(n_frames):
            start = i * self.hop_size
            frame = noise[start:start + self.frame_size] * self._window
            acc += np.abs(fft(frame))
        return acc / n_frames

    def spectral_subtraction(self, signal: np.ndarray, noise_mag: np.ndarray) -> np.ndarray:
        """STFT -> magnitude subtraction -> ISTFT via weighted overlap-add."""
        n = len(signal)
        if n == 0:
            return signal.copy()

        # Pad both ends so the first and last real samples sit under full
        # window overlap instead of the near-zero Hann tails
        pad = self.frame_size - self.hop_size
        total = n + 2 * pad
        n_frames = math.ceil((total - self.frame_size) / self.hop_size) + 1
        padded_len = (n_frames - 1) * self.hop_size + self.frame_size
        padded = np.zeros(padded_len)
        padded[pad:pad + n] = signal

        out = np.zeros(padded_len)
        weight = np.zeros(padded_len)

        for i in range(n_frames):
            start = i * self.hop_size
            end = start + self.frame_size
            spectrum = fft(padded[start:end] * self._window)
            mag = np.abs(spectrum)
            phase = np.angle(spectrum)

            clean_mag = np.maximum(
                mag - self.oversubtraction * noise_mag,
                SPECTRAL_FLOOR * mag,
            )
            out[start:end] += ifft(clean_mag * np.exp(1j * phase))
            weight[start:end] += self._window

        covered = weight >= _MIN_WINDOW_FRACTION * weight.max()
        out[covered] /= weight[covered]
        return out[pad:pad + n]

    def gate(self, samples: np.ndarray) -> np.ndarray:
        """Zero every sample whose magnitude is under the gate threshold."""
        samples = np.asarray(samples, dtype=np.float64)
        return np.where(np.abs(samples) < self.gate_threshold, 0.0, samples)
