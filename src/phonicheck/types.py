"""Core data types for phonicheck."""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


@dataclass(frozen=True, eq=False)
class AudioData:
    """Decoded mono PCM. Stages return a new instance instead of mutating."""
    samples: np.ndarray   # float64 in [-1, 1]
    sample_rate: int      # Hz
    duration: float       # seconds

    @classmethod
    def from_samples(cls, samples: np.ndarray, sample_rate: int) -> "AudioData":
        samples = np.asarray(samples, dtype=np.float64)
        return cls(samples, sample_rate, len(samples) / sample_rate if sample_rate else 0.0)


@dataclass(eq=False)
class MFCCFeatures:
    """Frame-indexed cepstral features. All arrays share the same row count."""
    coefficients: np.ndarray   # (frames, num_mfcc)
    energy: np.ndarray         # (frames,)
    delta: np.ndarray          # (frames, num_mfcc)
    sample_rate: int
    hop_size: int

    def __len__(self) -> int:
        return len(self.coefficients)

    def region(self, start: int, end: int) -> "MFCCFeatures":
        """Slice frames [start, end), clamped to the available range."""
        start = max(0, start)
        end = min(len(self), end)
        if end < start:
            end = start
        return MFCCFeatures(
            coefficients=self.coefficients[start:end],
            energy=self.energy[start:end],
            delta=self.delta[start:end],
            sample_rate=self.sample_rate,
            hop_size=self.hop_size,
        )

    def vectors(self) -> np.ndarray:
        """Per-frame vectors: coefficients, energy and delta concatenated."""
        if len(self) == 0:
            return np.empty((0, 0))
        return np.hstack([
            self.coefficients,
            self.energy.reshape(-1, 1),
            self.delta,
        ])


@dataclass
class DTWResult:
    distance: float
    normalized_distance: float
    similarity: float                 # 0-100
    path: list[tuple[int, int]]


class EnvironmentCondition(str, Enum):
    OK = "ok"
    A_BIT_NOISY = "a_bit_noisy"
    TOO_NOISY = "too_noisy"
    MICROPHONE_ISSUE = "microphone_issue"
    TOO_SHORT = "too_short"


@dataclass
class EnvironmentReport:
    snr: float            # dB
    is_noisy: bool
    noise_floor: float    # RMS of the quietest frames
    message: str
    condition: EnvironmentCondition

    def to_dict(self) -> dict:
        return {
            "snr": self.snr,
            "is_noisy": self.is_noisy,
            "noise_floor": self.noise_floor,
            "message": self.message,
            "condition": self.condition.value,
        }


@dataclass
class FormantResult:
    f1: float
    f2: float
    f3: float
    bandwidths: list[float]
    is_vowel: bool
    vowel_quality: str


@dataclass
class PitchResult:
    average_pitch: float
    pitch_range: float
    std_dev: float
    is_monotone: bool
    confidence: float
    micro_pauses: int
    feedback: str

    def to_dict(self) -> dict:
        return {
            "average_pitch": self.average_pitch,
            "pitch_range": self.pitch_range,
            "std_dev": self.std_dev,
            "is_monotone": self.is_monotone,
            "confidence": self.confidence,
            "micro_pauses": self.micro_pauses,
            "feedback": self.feedback,
        }


@dataclass
class PhonemeScore:
    phoneme: str
    score: int            # 0-100
    position: int         # index in the target phoneme sequence
    start_time: float     # seconds, child audio
    end_time: float       # seconds, child audio
    feedback: str

    def to_dict(self) -> dict:
        return {
            "phoneme": self.phoneme,
            "score": self.score,
            "position": self.position,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "feedback": self.feedback,
        }


@dataclass
class SyllableScore:
    syllable: str
    score: int
    phonemes: list[PhonemeScore]
    needs_practice: bool

    def to_dict(self) -> dict:
        return {
            "syllable": self.syllable,
            "score": self.score,
            "phonemes": [p.to_dict() for p in self.phonemes],
            "needs_practice": self.needs_practice,
        }


@dataclass
class Feedback:
    message: str
    encouragement: str


@dataclass
class PronunciationResult:
    """Full breakdown of one (audio, word) analysis."""
    overall_score: int
    rhythm_score: float
    formant_score: float
    pitch_score: float
    phoneme_scores: list[PhonemeScore]
    syllable_scores: list[SyllableScore]
    feedback: Feedback
    environment: EnvironmentReport
    pitch: PitchResult | None = None
    microphone_issue: bool = False
    debug: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "rhythm_score": self.rhythm_score,
            "formant_score": self.formant_score,
            "pitch_score": self.pitch_score,
            "phoneme_scores": [p.to_dict() for p in self.phoneme_scores],
            "syllable_scores": [s.to_dict() for s in self.syllable_scores],
            "feedback": {
                "message": self.feedback.message,
                "encouragement": self.feedback.encouragement,
            },
            "environment": self.environment.to_dict(),
            "pitch": self.pitch.to_dict() if self.pitch else None,
            "microphone_issue": self.microphone_issue,
            "debug": self.debug,
        }


class ShadowType(str, Enum):
    VOWEL_SWAP = "VowelSwap"
    CONSONANT_SWAP = "ConsonantSwap"
    DELETION = "Deletion"


@dataclass
class ShadowWord:
    """A phonetic neighbour of the target word."""
    word: str
    phonemes: list[str]
    type: ShadowType

    def to_dict(self) -> dict:
        return {"word": self.word, "phonemes": self.phonemes, "type": self.type.value}


class Decision(str, Enum):
    TARGET_WON = "target_won"
    DISTRACTOR_WON = "distractor_won"
    NATIVE_RESOLVED = "native_resolved"
    NATIVE_UNCLEAR = "native_unclear"
    MICROPHONE_ISSUE = "microphone_issue"


class Outcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    UNCLEAR = "unclear"


UNCLEAR_WORD = "??? (Unclear)"


@dataclass
class RecognitionResult:
    """Output of the closed-vocabulary recognizer."""
    captured_word: str
    is_pass: bool
    winning_score: int
    target_score: int
    distractor_scores: list[tuple[str, int]]
    full_analysis: PronunciationResult
    decision: Decision
    duration_rejected: bool = False
    is_native_fallback: bool = False

    @property
    def outcome(self) -> Outcome:
        if self.is_pass:
            return Outcome.PASS
        if self.captured_word == UNCLEAR_WORD:
            return Outcome.UNCLEAR
        return Outcome.FAIL

    def to_dict(self) -> dict:
        return {
            "captured_word": self.captured_word,
            "is_pass": self.is_pass,
            "outcome": self.outcome.value,
            "decision": self.decision.value,
            "winning_score": self.winning_score,
            "target_score": self.target_score,
            "distractor_scores": [
                {"word": w, "score": s} for w, s in self.distractor_scores
            ],
            "duration_rejected": self.duration_rejected,
            "is_native_fallback": self.is_native_fallback,
            "full_analysis": self.full_analysis.to_dict(),
        }
