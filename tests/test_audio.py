"""Tests for audio preprocessing (WAV decode/encode, resample, normalize, trim)."""

import io
from pathlib import Path

import numpy as np
import pytest
import scipy.io.wavfile as wavfile

from phonicheck.audio import (
    compute_rms,
    decode_wav,
    is_silent,
    normalize,
    peak_amplitude,
    pre_emphasis,
    read_wav,
    resample,
    trim_silence,
    write_wav,
)
from phonicheck.errors import FormatError, PhonicheckError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_sine(freq: float, duration: float, sr: int = 16000, amp: float = 0.5) -> np.ndarray:
    """Generate a sine wave at the given frequency."""
    t = np.arange(int(sr * duration)) / sr
    return amp * np.sin(2 * np.pi * freq * t)


def _wav_bytes(data: np.ndarray, sr: int = 16000) -> bytes:
    buf = io.BytesIO()
    wavfile.write(buf, sr, data)
    return buf.getvalue()


# ===========================================================================
# decode_wav
# ===========================================================================

class TestDecodeWav:
    def test_int16(self):
        original = _make_sine(440, 0.25)
        data = _wav_bytes((original * 32767).astype(np.int16))
        audio = decode_wav(data)
        assert audio.sample_rate == 16000
        assert audio.samples.dtype == np.float64
        np.testing.assert_allclose(audio.samples, original, atol=1e-4)
        assert audio.duration == pytest.approx(0.25)

    def test_int16_full_scale(self):
        data = _wav_bytes(np.array([-32768, 0, 16384], dtype=np.int16))
        audio = decode_wav(data)
        np.testing.assert_allclose(audio.samples, [-1.0, 0.0, 0.5])

    def test_uint8(self):
        data = _wav_bytes(np.array([0, 128, 192], dtype=np.uint8))
        audio = decode_wav(data)
        np.testing.assert_allclose(audio.samples, [-1.0, 0.0, 0.5])

    def test_int32(self):
        data = _wav_bytes(np.array([-2147483648, 0, 1073741824], dtype=np.int32))
        audio = decode_wav(data)
        np.testing.assert_allclose(audio.samples, [-1.0, 0.0, 0.5])

    def test_float32_passes_through(self):
        original = _make_sine(300, 0.1).astype(np.float32)
        audio = decode_wav(_wav_bytes(original))
        np.testing.assert_allclose(audio.samples, original, atol=1e-7)

    def test_stereo_takes_first_channel(self):
        left = (_make_sine(440, 0.1) * 32767).astype(np.int16)
        right = np.zeros_like(left)
        audio = decode_wav(_wav_bytes(np.column_stack([left, right])))
        np.testing.assert_allclose(audio.samples, left / 32768.0)

    def test_resamples_to_16k(self):
        original = _make_sine(440, 0.5, sr=44100)
        audio = decode_wav(_wav_bytes(original.astype(np.float32), sr=44100))
        assert audio.sample_rate == 16000
        assert len(audio.samples) == round(len(original) / (44100 / 16000))

    def test_missing_riff_header(self):
        with pytest.raises(FormatError):
            decode_wav(b"not a wav file at all")

    def test_truncated_data(self):
        with pytest.raises(FormatError):
            decode_wav(b"RIFF\x00\x00\x00\x00WAVE")

    def test_truncated_fmt_chunk(self):
        data = _wav_bytes(np.zeros(100, dtype=np.int16))
        fmt = data.index(b"fmt ")
        with pytest.raises(FormatError):
            decode_wav(data[:fmt + 12])

    def test_missing_data_chunk(self):
        data = _wav_bytes(np.zeros(100, dtype=np.int16))
        with pytest.raises(FormatError):
            decode_wav(data[:data.index(b"data")])

    def test_format_error_is_value_error(self):
        assert issubclass(FormatError, PhonicheckError)
        assert issubclass(FormatError, ValueError)


# ===========================================================================
# read_wav / write_wav
# ===========================================================================

class TestWavFiles:
    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            read_wav(Path("/nonexistent/file.wav"))

    def test_write_then_read(self, tmp_path):
        original = _make_sine(440, 0.5)
        write_wav(tmp_path / "out" / "tone.wav", original, 16000)
        audio = read_wav(tmp_path / "out" / "tone.wav")
        np.testing.assert_allclose(audio.samples, original, atol=1e-4)

    def test_write_clips(self, tmp_path):
        write_wav(tmp_path / "loud.wav", np.array([2.0, -2.0, 0.0]), 16000)
        sr, data = wavfile.read(str(tmp_path / "loud.wav"))
        assert data.dtype == np.int16
        assert data[0] == 32767
        assert data[1] == -32767


# ===========================================================================
# Sample transforms
# ===========================================================================

class TestResample:
    def test_same_rate_is_identity(self):
        x = _make_sine(440, 0.1)
        np.testing.assert_array_equal(resample(x, 16000, 16000), x)

    def test_output_length(self):
        x = np.ones(44100)
        assert len(resample(x, 44100, 16000)) == 16000

    def test_upsample_interpolates(self):
        out = resample(np.array([0.0, 1.0]), 8000, 16000)
        np.testing.assert_allclose(out, [0.0, 0.5, 1.0, 1.0])

    def test_empty(self):
        assert len(resample(np.zeros(0), 44100, 16000)) == 0


class TestNormalize:
    def test_peak_is_one(self):
        out = normalize(_make_sine(440, 0.1, amp=0.3))
        assert peak_amplitude(out) == pytest.approx(1.0)

    def test_idempotent(self):
        once = normalize(_make_sine(440, 0.1, amp=0.3))
        np.testing.assert_allclose(normalize(once), once)

    def test_silent_unchanged(self):
        x = np.zeros(100)
        np.testing.assert_array_equal(normalize(x), x)


class TestTrimSilence:
    def test_trims_both_ends(self):
        x = np.concatenate([np.zeros(100), np.full(50, 0.5), np.zeros(100)])
        out = trim_silence(x)
        assert len(out) == 50

    def test_keeps_interior_silence(self):
        x = np.concatenate([np.zeros(10), [0.5], np.zeros(20), [0.5], np.zeros(10)])
        assert len(trim_silence(x)) == 22

    def test_all_silent_is_empty(self):
        assert len(trim_silence(np.full(100, 0.001))) == 0

    def test_threshold(self):
        x = np.array([0.01, 0.1, 0.5, 0.1, 0.01])
        assert len(trim_silence(x, threshold=0.05)) == 3


class TestLevels:
    def test_pre_emphasis(self):
        out = pre_emphasis(np.array([1.0, 1.0, 1.0]))
        np.testing.assert_allclose(out, [1.0, 0.03, 0.03])

    def test_rms_of_sine(self):
        assert compute_rms(_make_sine(440, 1.0, amp=1.0)) == pytest.approx(1 / np.sqrt(2), rel=1e-3)

    def test_rms_empty(self):
        assert compute_rms(np.zeros(0)) == 0.0

    def test_is_silent(self):
        assert is_silent(np.full(100, 0.005))
        assert not is_silent(np.full(100, 0.02))
        assert is_silent(np.zeros(0))
