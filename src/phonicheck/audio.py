"""Audio preprocessing: WAV decode/encode, resampling, normalization, trimming.

All functions operate on numpy arrays (float64, normalized to [-1, 1]).
WAV parsing uses scipy.io.wavfile on an in-memory buffer so callers can hand
over raw bytes from a recorder without touching the filesystem.
"""

import io
import logging
from pathlib import Path

import numpy as np
import scipy.io.wavfile as wavfile

from phonicheck.errors import FormatError
from phonicheck.types import AudioData

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000
SILENCE_PEAK = 0.01


# ---------------------------------------------------------------------------
# WAV I/O
# ---------------------------------------------------------------------------

def _pcm_to_float(data: np.ndarray) -> np.ndarray:
    """Scale integer PCM to float64 in [-1, 1]; float data passes through."""
    if data.dtype == np.uint8:
        return (data.astype(np.float64) - 128.0) / 128.0
    if data.dtype == np.int16:
        return data.astype(np.float64) / 32768.0
    if data.dtype == np.int32:
        return data.astype(np.float64) / 2147483648.0
    if np.issubdtype(data.dtype, np.integer):
        info = np.iinfo(data.dtype)
        return data.astype(np.float64) / float(-info.min)
    return data.astype(np.float64)


def decode_wav(data: bytes, target_rate: int = TARGET_SAMPLE_RATE) -> AudioData:
    """Decode a RIFF/WAVE byte buffer into mono float samples at target_rate.

    - 8-bit (unsigned), 16-bit and 32-bit PCM plus float WAVs
    - Takes the first channel if stereo
    - Resamples by linear interpolation when the source rate differs

    Raises:
        FormatError: if the RIFF/WAVE magic is missing or the chunks
            cannot be decoded.
    """
    if len(data) < 12 or data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        raise FormatError("Invalid WAV data: missing RIFF/WAVE header")

    try:
        sr, raw = wavfile.read(io.BytesIO(data))
    except Exception as e:
        # scipy reports broken chunk layouts as struct.error or
        # UnboundLocalError as well as ValueError
        raise FormatError(f"Could not decode WAV data: {e}") from e

    if raw.ndim > 1:
        raw = raw[:, 0]

    samples = _pcm_to_float(raw)
    logger.debug(
        f"Decoded WAV: {len(samples)} samples @ {sr}Hz ({raw.dtype}), "
        f"peak={peak_amplitude(samples):.4f}"
    )

    if sr != target_rate:
        samples = resample(samples, sr, target_rate)

    return AudioData.from_samples(samples, target_rate)


def read_wav(path: str | Path, target_rate: int = TARGET_SAMPLE_RATE) -> AudioData:
    """Read a WAV file from disk.

    Raises:
        FileNotFoundError: if the file does not exist.
        FormatError: if the file is not a decodable WAV.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return decode_wav(path.read_bytes(), target_rate=target_rate)


def write_wav(path: str | Path, samples: np.ndarray, sr: int) -> None:
    """Write float64 samples to a 16-bit PCM WAV file.

    - Clips values to [-1, 1] before conversion
    - Creates parent directories if needed
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    clipped = np.clip(samples, -1.0, 1.0)
    int16 = (clipped * 32767).astype(np.int16)
    wavfile.write(str(path), sr, int16)


# ---------------------------------------------------------------------------
# Sample transforms
# ---------------------------------------------------------------------------

def resample(samples: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Linear-interpolation resampler. Same-rate input is returned unchanged."""
    samples = np.asarray(samples, dtype=np.float64)
    if from_rate == to_rate or len(samples) == 0:
        return samples

    ratio = from_rate / to_rate
    new_length = int(np.floor(len(samples) / ratio + 0.5))
    positions = np.arange(new_length) * ratio
    # np.interp holds the last sample past the end of the source
    return np.interp(positions, np.arange(len(samples)), samples)


def normalize(samples: np.ndarray) -> np.ndarray:
    """Scale so the peak absolute value is 1. Silent input is returned as-is."""
    samples = np.asarray(samples, dtype=np.float64)
    peak = peak_amplitude(samples)
    if peak == 0:
        return samples
    return samples / peak


def trim_silence(samples: np.ndarray, threshold: float = 0.005) -> np.ndarray:
    """Drop leading and trailing samples whose magnitude stays below threshold."""
    samples = np.asarray(samples, dtype=np.float64)
    loud = np.flatnonzero(np.abs(samples) >= threshold)
    if len(loud) == 0:
        return samples[:0]
    return samples[loud[0]:loud[-1] + 1]


def pre_emphasis(samples: np.ndarray, alpha: float = 0.97) -> np.ndarray:
    """First-order high-pass: y[n] = x[n] - alpha * x[n-1]."""
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) == 0:
        return samples
    out = np.empty_like(samples)
    out[0] = samples[0]
    out[1:] = samples[1:] - alpha * samples[:-1]
    return out


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

def compute_rms(samples: np.ndarray) -> float:
    """Compute RMS energy of the entire signal."""
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.asarray(samples) ** 2)))


def peak_amplitude(samples: np.ndarray) -> float:
    if len(samples) == 0:
        return 0.0
    return float(np.max(np.abs(samples)))


def is_silent(samples: np.ndarray, threshold: float = SILENCE_PEAK) -> bool:
    """True when nothing in the buffer reaches threshold (mic off or muted)."""
    return peak_amplitude(samples) < threshold
