"""Iterative radix-2 Cooley-Tukey FFT.

Every spectral stage (noise reduction, MFCC) goes through these two
functions so the whole pipeline shares one transform. Spectra are numpy
complex128 arrays; the input is zero-padded to the next power of two.
"""

from functools import lru_cache

import numpy as np


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


@lru_cache(maxsize=32)
def _bit_reverse_indices(m: int) -> np.ndarray:
    bits = m.bit_length() - 1
    idx = np.arange(m)
    rev = np.zeros(m, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def _transform(buf: np.ndarray, inverse: bool) -> np.ndarray:
    """Bit-reversal permutation followed by butterfly stages 2, 4, ..., M."""
    m = len(buf)
    out = buf[_bit_reverse_indices(m)]
    sign = 1.0 if inverse else -1.0

    size = 2
    while size <= m:
        half = size // 2
        twiddle = np.exp(sign * 2j * np.pi * np.arange(half) / size)
        # Each row is one butterfly group; reshape is a view onto out
        blocks = out.reshape(-1, size)
        even = blocks[:, :half].copy()
        odd = blocks[:, half:] * twiddle
        blocks[:, :half] = even + odd
        blocks[:, half:] = even - odd
        size *= 2

    return out


def fft(signal: np.ndarray) -> np.ndarray:
    """Forward FFT of a real signal.

    Returns a complex spectrum of length M, where M is the next power of two
    >= len(signal). Empty input gives an empty spectrum.
    """
    x = np.asarray(signal, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.zeros(0, dtype=np.complex128)

    m = next_power_of_two(n)
    buf = np.zeros(m, dtype=np.complex128)
    buf[:n] = x
    return _transform(buf, inverse=False)


def ifft(spectrum: np.ndarray) -> np.ndarray:
    """Inverse FFT, scaled by 1/M, returning only the real part."""
    z = np.asarray(spectrum, dtype=np.complex128)
    n = len(z)
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    m = next_power_of_two(n)
    buf = np.zeros(m, dtype=np.complex128)
    buf[:n] = z
    return _transform(buf, inverse=True).real / m
