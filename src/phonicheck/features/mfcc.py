"""MFCC extraction with a precomputed mel filterbank and DCT-II matrix."""

import numpy as np

from phonicheck.fft import fft, next_power_of_two
from phonicheck.types import MFCCFeatures

_LOG_EPS = 1e-10


def hz_to_mel(hz):
    return 2595 * np.log10(1 + np.asarray(hz) / 700)


def mel_to_hz(mel):
    return 700 * (10 ** (np.asarray(mel) / 2595) - 1)


def frame_count(n_samples: int, frame_size: int, hop_size: int) -> int:
    """Number of full frames: floor((n - frame) / hop) + 1, or 0 if too short."""
    if n_samples < frame_size:
        return 0
    return (n_samples - frame_size) // hop_size + 1


class MFCCExtractor:
    """Frame, window, power spectrum, mel filterbank, log, DCT, deltas.

    The filterbank and DCT matrix are built once here and reused for every
    call to extract().
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        frame_size: int = 400,
        hop_size: int = 160,
        num_mfcc: int = 13,
        num_filters: int = 26,
        delta_window: int = 2,
    ):
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.num_mfcc = num_mfcc
        self.num_filters = num_filters
        self.delta_window = delta_window
        self.fft_size = next_power_of_two(frame_size)
        self.min_freq = 0.0
        self.max_freq = sample_rate / 2

        self._window = np.hamming(frame_size)
        self.filterbank = self._build_filterbank()
        self.dct_matrix = self._build_dct_matrix()

    def _build_filterbank(self) -> np.ndarray:
        """Triangular filters evenly spaced on the mel scale, 0 Hz to Nyquist."""
        mel_points = np.linspace(
            hz_to_mel(self.min_freq), hz_to_mel(self.max_freq), self.num_filters + 2,
        )
        hz_points = mel_to_hz(mel_points)
        bins = np.floor((self.fft_size + 1) * hz_points / self.sample_rate).astype(int)

        n_bins = self.fft_size // 2 + 1
        bank = np.zeros((self.num_filters, n_bins))
        for i in range(1, self.num_filters + 1):
            left, center, right = bins[i - 1], bins[i], bins[i + 1]
            for j in range(left, min(center, n_bins)):
                bank[i - 1, j] = (j - left) / (center - left)
            for j in range(center, min(right, n_bins)):
                bank[i - 1, j] = (right - j) / (right - center)
        return bank

    def _build_dct_matrix(self) -> np.ndarray:
        i = np.arange(self.num_mfcc).reshape(-1, 1)
        j = np.arange(self.num_filters).reshape(1, -1)
        return np.cos(np.pi * i * (j + 0.5) / self.num_filters)

    def empty(self) -> MFCCFeatures:
        return MFCCFeatures(
            coefficients=np.empty((0, self.num_mfcc)),
            energy=np.empty(0),
            delta=np.empty((0, self.num_mfcc)),
            sample_rate=self.sample_rate,
            hop_size=self.hop_size,
        )

    def extract(self, samples: np.ndarray) -> MFCCFeatures:
        samples = np.asarray(samples, dtype=np.float64)
        n_frames = frame_count(len(samples), self.frame_size, self.hop_size)
        if n_frames == 0:
            return self.empty()

        n_bins = self.fft_size // 2 + 1
        coefficients = np.empty((n_frames, self.num_mfcc))
        energy = np.empty(n_frames)

        for t in range(n_frames):
            start = t * self.hop_size
            frame = samples[start:start + self.frame_size]
            spectrum = fft(frame * self._window)[:n_bins]
            power = spectrum.real ** 2 + spectrum.imag ** 2
            log_mel = np.log(self.filterbank @ power + _LOG_EPS)
            coefficients[t] = self.dct_matrix @ log_mel
            energy[t] = np.log(np.sum(frame ** 2) + _LOG_EPS)

        return MFCCFeatures(
            coefficients=coefficients,
            energy=energy,
            delta=compute_delta(coefficients, self.delta_window),
            sample_rate=self.sample_rate,
            hop_size=self.hop_size,
        )


def compute_delta(features: np.ndarray, n: int = 2) -> np.ndarray:
    """Symmetric regression over +/-n frames, clamping indices at the edges."""
    n_frames = len(features)
    if n_frames == 0:
        return np.empty_like(features)

    t = np.arange(n_frames)
    numerator = np.zeros_like(features, dtype=np.float64)
    denominator = 0.0
    for j in range(1, n + 1):
        nxt = features[np.minimum(n_frames - 1, t + j)]
        prv = features[np.maximum(0, t - j)]
        numerator += j * (nxt - prv)
        denominator += 2 * j * j
    return numerator / denominator if denominator > 0 else numerator
