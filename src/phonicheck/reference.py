"""Synthetic reference audio for a target word.

Each phoneme becomes a short segment: voiced phonemes are a sum of sines at
the speaker F0 and the phoneme's first three formants, noisy consonants get
white noise on top. There is no prosody and no coarticulation; the reference
only has to give DTW a plausible spectral trajectory to align against.
"""

import logging

import numpy as np

from phonicheck.audio import TARGET_SAMPLE_RATE
from phonicheck.phonetics import is_vowel, normalize_phoneme
from phonicheck.types import AudioData

logger = logging.getLogger(__name__)

# Adult (F1, F2, F3) in Hz. Zero means the formant is absent.
PHONEME_FORMANTS: dict[str, tuple[int, int, int]] = {
    # Vowels
    "AA": (730, 1090, 2440),
    "AE": (660, 1720, 2410),
    "AH": (640, 1190, 2390),
    "AO": (570, 840, 2410),
    "AW": (570, 840, 2410),   # diphthong, onset only
    "AY": (660, 1720, 2410),
    "EH": (530, 1840, 2480),
    "ER": (490, 1350, 1690),
    "EY": (530, 1840, 2480),
    "IH": (390, 1990, 2550),
    "IY": (270, 2290, 3010),
    "OW": (570, 840, 2410),
    "OY": (570, 840, 2410),
    "UH": (440, 1020, 2240),
    "UW": (300, 870, 2240),
    # Consonants
    "B":  (200, 0, 0),
    "CH": (0, 2000, 0),
    "D":  (200, 1500, 0),
    "DH": (200, 0, 0),
    "F":  (0, 1500, 0),
    "G":  (200, 2000, 0),
    "HH": (0, 0, 0),
    "JH": (0, 2000, 0),
    "K":  (0, 2000, 0),
    "L":  (400, 1000, 2500),
    "M":  (250, 1000, 2500),
    "N":  (250, 1500, 2500),
    "NG": (250, 2000, 2500),
    "P":  (0, 0, 0),
    "R":  (400, 1200, 1600),
    "S":  (0, 4000, 0),
    "SH": (0, 2500, 0),
    "T":  (0, 3000, 0),
    "TH": (0, 2000, 0),
    "V":  (200, 1500, 0),
    "W":  (300, 800, 2200),
    "Y":  (270, 2290, 3010),
    "Z":  (200, 4000, 0),
    "ZH": (200, 2500, 0),
}
DEFAULT_PHONEME = "AH"

NOISY = frozenset({"S", "SH", "F", "TH", "HH", "DH", "CH", "ZH"})
# HH, TH and CH are synthesized as noise only, with no F0 or formant sines
UNVOICED = frozenset({"P", "T", "K", "S", "SH", "F", "HH", "TH", "CH"})
FRICATIVES = frozenset({"S", "SH", "TH", "F", "Z", "ZH", "V"})

VOWEL_DURATION_S = 0.2
FRICATIVE_DURATION_S = 0.15
OTHER_DURATION_S = 0.08
EDGE_SILENCE_S = 0.1
ENVELOPE_SAMPLES = 400
NOISE_GAIN = 0.3

# Sine gains: F0, F1, F2, F3
_F0_GAIN = 0.5
_FORMANT_GAINS = (0.4, 0.2, 0.1)


def f0_for_age(age: float) -> float:
    if age < 9:
        return 300.0
    if age < 13:
        return 250.0
    return 120.0


def phoneme_duration(phoneme: str) -> float:
    """Segment length in seconds for a canonical ARPABET phoneme."""
    if is_vowel(phoneme):
        return VOWEL_DURATION_S
    if phoneme in FRICATIVES:
        return FRICATIVE_DURATION_S
    return OTHER_DURATION_S


def formants_for(phoneme: str) -> tuple[int, int, int]:
    return PHONEME_FORMANTS.get(normalize_phoneme(phoneme), PHONEME_FORMANTS[DEFAULT_PHONEME])


def envelope(length: int, ramp: int = ENVELOPE_SAMPLES) -> np.ndarray:
    """Linear attack and decay over ``ramp`` samples at each end."""
    i = np.arange(length)
    attack = np.minimum(i, ramp) / ramp
    decay = np.minimum(length - i, ramp) / ramp
    return np.minimum(attack, decay)


class ReferenceGenerator:
    """Formant synthesizer producing the reference side of a comparison.

    Output is deterministic for a given seed: the noise RNG is re-seeded on
    every call to generate().
    """

    def __init__(self, sample_rate: int = TARGET_SAMPLE_RATE, seed: int = 0):
        self.sample_rate = sample_rate
        self.seed = seed
        self.f0 = f0_for_age(13)

    def set_age(self, age: float) -> None:
        self.f0 = f0_for_age(age)

    def generate(self, word: str, phonemes: list[str]) -> AudioData:
        rng = np.random.RandomState(self.seed)
        silence = np.zeros(int(EDGE_SILENCE_S * self.sample_rate))

        parts = [silence]
        for raw in phonemes:
            phoneme = normalize_phoneme(raw)
            if not phoneme:
                continue
            parts.append(self._segment(phoneme, rng))
        parts.append(silence)

        samples = np.concatenate(parts)
        logger.debug(
            f"Reference for '{word}': {len(phonemes)} phonemes, "
            f"{len(samples) / self.sample_rate:.2f}s at F0 {self.f0:.0f}Hz"
        )
        return AudioData.from_samples(samples, self.sample_rate)

    def _segment(self, phoneme: str, rng: np.random.RandomState) -> np.ndarray:
        n = int(phoneme_duration(phoneme) * self.sample_rate)
        t = np.arange(n) / self.sample_rate
        sample = np.zeros(n)

        if phoneme not in UNVOICED:
            sample += _F0_GAIN * np.sin(2 * np.pi * self.f0 * t)
            for freq, gain in zip(formants_for(phoneme), _FORMANT_GAINS):
                if freq:
                    sample += gain * np.sin(2 * np.pi * freq * t)

        if phoneme in NOISY:
            sample += rng.uniform(-1.0, 1.0, n) * NOISE_GAIN

        return sample * envelope(n)
