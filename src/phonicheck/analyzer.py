"""Pronunciation scoring: child utterance vs. a synthesized reference.

The score is a weighted blend of three views of the same attempt:

- rhythm (50%): whole-word DTW similarity of MFCC sequences
- articulation (30%): mean per-phoneme score (local DTW + vowel formants)
- expression (20%): pitch variation and micro-pauses

Work on the child audio (cleanup, MFCC, pitch) is done once in prepare() and
can be scored against any number of candidate words with score().
"""

import logging
from dataclasses import dataclass

import numpy as np

from phonicheck.audio import (
    TARGET_SAMPLE_RATE,
    is_silent,
    normalize,
    resample,
    trim_silence,
)
from phonicheck.cache import ReferenceCache
from phonicheck.dtw import DTWComparator
from phonicheck.environment import EnvironmentCheck
from phonicheck.feedback import microphone_feedback, overall_feedback
from phonicheck.features import FormantAnalyzer, MFCCExtractor, PitchAnalyzer
from phonicheck.lexicon import resolve_phonemes
from phonicheck.noise import NoiseReducer
from phonicheck.phonetics import is_vowel
from phonicheck.reference import PHONEME_FORMANTS, ReferenceGenerator
from phonicheck.types import (
    AudioData,
    EnvironmentReport,
    MFCCFeatures,
    PhonemeScore,
    PitchResult,
    PronunciationResult,
    SyllableScore,
)

logger = logging.getLogger(__name__)

DEFAULT_AGE = 7

RHYTHM_WEIGHT = 0.5
FORMANT_WEIGHT = 0.3
PITCH_WEIGHT = 0.2

MONOTONE_PENALTY = 20
PAUSE_PENALTY = 10

SHAPE_WEIGHT = 0.6
ARTICULATION_WEIGHT = 0.4

# Vowel articulation: free tolerance, then points lost per Hz beyond it
F1_TOLERANCE_HZ = 150
F1_PENALTY_PER_HZ = 0.2
F2_TOLERANCE_HZ = 250
F2_PENALTY_PER_HZ = 0.1
WIDE_BANDWIDTH_HZ = 400
WIDE_BANDWIDTH_PENALTY = 20
MOUTH_SHAPE_F1_HZ = 200
DEFAULT_VOWEL_TARGET = (500, 1500)

FORMANT_FRAME = 512
TRIM_THRESHOLD = 0.05
NEEDS_PRACTICE_BELOW = 70


@dataclass(frozen=True, eq=False)
class PreparedAudio:
    """Child-side analysis shared read-only across candidate words."""
    raw: AudioData
    processed: AudioData            # cleaned, trimmed, normalized
    features: MFCCFeatures
    pitch: PitchResult
    environment: EnvironmentReport
    microphone_issue: bool


def pitch_score(pitch: PitchResult) -> float:
    return max(
        0,
        100 - (MONOTONE_PENALTY if pitch.is_monotone else 0) - pitch.micro_pauses * PAUSE_PENALTY,
    )


def articulation_score(f1: float, f2: float, bandwidth: float, target: tuple) -> float:
    f1_diff = abs(f1 - target[0])
    f2_diff = abs(f2 - target[1])

    penalty = 0.0
    if f1_diff > F1_TOLERANCE_HZ:
        penalty += (f1_diff - F1_TOLERANCE_HZ) * F1_PENALTY_PER_HZ
    if f2_diff > F2_TOLERANCE_HZ:
        penalty += (f2_diff - F2_TOLERANCE_HZ) * F2_PENALTY_PER_HZ
    if bandwidth > WIDE_BANDWIDTH_HZ:
        penalty += WIDE_BANDWIDTH_PENALTY
    return min(100.0, max(0.0, 100 - penalty))


class PhonemeAnalyzer:
    def __init__(self, sample_rate: int = TARGET_SAMPLE_RATE, cache: ReferenceCache | None = None):
        self.sample_rate = sample_rate
        self.cache = cache
        self.environment_check = EnvironmentCheck()
        self.noise_reducer = NoiseReducer(sample_rate=sample_rate)
        self.mfcc = MFCCExtractor(sample_rate=sample_rate)
        self.pitch_analyzer = PitchAnalyzer(sample_rate=sample_rate)
        self.dtw = DTWComparator()

    def analyze(
        self,
        raw_audio: AudioData,
        word: str,
        phonemes: list[str] | None = None,
        age: float = DEFAULT_AGE,
    ) -> PronunciationResult:
        return self.score(self.prepare(raw_audio), word, phonemes, age)

    def prepare(self, raw_audio: AudioData) -> PreparedAudio:
        """Environment check, cleanup, features. Done once per utterance."""
        if raw_audio.sample_rate != self.sample_rate:
            raw_audio = AudioData.from_samples(
                resample(raw_audio.samples, raw_audio.sample_rate, self.sample_rate),
                self.sample_rate,
            )

        environment = self.environment_check.check(raw_audio)
        if environment.is_noisy:
            logger.warning(f"{environment.message} (SNR: {environment.snr}dB)")

        cleaned = self.noise_reducer.clean(raw_audio)
        # Muted input, or nothing left once the noise floor is removed
        silent = is_silent(raw_audio.samples) or is_silent(cleaned.samples)
        processed = self._condition(cleaned)

        if silent:
            logger.warning("No usable signal after cleanup, reporting microphone issue")
            processed = AudioData.from_samples(np.zeros(0), cleaned.sample_rate)
        features = self.mfcc.extract(processed.samples)
        pitch = self.pitch_analyzer.analyze(processed)

        logger.debug(
            f"Prepared {raw_audio.duration:.2f}s -> {processed.duration:.2f}s, "
            f"{len(features)} frames"
        )
        return PreparedAudio(
            raw=raw_audio,
            processed=processed,
            features=features,
            pitch=pitch,
            environment=environment,
            microphone_issue=silent,
        )

    def score(
        self,
        prepared: PreparedAudio,
        word: str,
        phonemes: list[str] | None = None,
        age: float = DEFAULT_AGE,
    ) -> PronunciationResult:
        """Score a prepared utterance against one candidate word."""
        if prepared.microphone_issue:
            return self._microphone_result(prepared)

        phonemes = resolve_phonemes(word, phonemes)
        reference = self.reference_features(word, phonemes, age)

        dtw = self.dtw.compare(prepared.features, reference)
        rhythm = dtw.similarity
        expression = pitch_score(prepared.pitch)

        formants = FormantAnalyzer(sample_rate=self.sample_rate)
        formants.set_age(age)
        phoneme_scores = self._score_phonemes(dtw.path, phonemes, reference, prepared, formants)
        formant = (
            sum(p.score for p in phoneme_scores) / len(phoneme_scores) if phoneme_scores else 0.0
        )

        overall = round(
            rhythm * RHYTHM_WEIGHT + formant * FORMANT_WEIGHT + expression * PITCH_WEIGHT
        )
        logger.info(
            f"'{word}': rhythm={rhythm:.1f}, formants={formant:.1f}, "
            f"pitch={expression:.0f} => {overall}"
        )

        return PronunciationResult(
            overall_score=overall,
            rhythm_score=rhythm,
            formant_score=formant,
            pitch_score=expression,
            phoneme_scores=phoneme_scores,
            syllable_scores=[SyllableScore(
                syllable=word,
                score=overall,
                phonemes=phoneme_scores,
                needs_practice=overall < NEEDS_PRACTICE_BELOW,
            )],
            feedback=overall_feedback(overall, phoneme_scores, prepared.pitch, prepared.environment),
            environment=prepared.environment,
            pitch=prepared.pitch,
            debug={
                "raw_distance": dtw.distance,
                "normalized_distance": dtw.normalized_distance,
                "ref_frames": len(reference),
                "child_frames": len(prepared.features),
            },
        )

    def reference_audio(self, word: str, phonemes: list[str], age: float = DEFAULT_AGE) -> AudioData:
        """Synthesized reference, conditioned the same way as child audio."""
        generator = ReferenceGenerator(sample_rate=self.sample_rate)
        generator.set_age(age)
        return self._condition(self.noise_reducer.clean(generator.generate(word, phonemes)))

    def reference_features(
        self, word: str, phonemes: list[str], age: float = DEFAULT_AGE
    ) -> MFCCFeatures:
        def compute():
            return self.mfcc.extract(self.reference_audio(word, phonemes, age).samples)

        if self.cache is None:
            return compute()
        return self.cache.get_or_compute(phonemes, age, compute)

    def _condition(self, cleaned: AudioData) -> AudioData:
        samples = normalize(trim_silence(cleaned.samples, TRIM_THRESHOLD))
        return AudioData.from_samples(samples, cleaned.sample_rate)

    def _score_phonemes(
        self,
        path: list[tuple[int, int]],
        phonemes: list[str],
        reference: MFCCFeatures,
        prepared: PreparedAudio,
        formants: FormantAnalyzer,
    ) -> list[PhonemeScore]:
        frames_per_phoneme = len(reference) / len(phonemes)
        frame_s = self.mfcc.hop_size / self.sample_rate
        samples = prepared.processed.samples
        scores = []

        for index, phoneme in enumerate(phonemes):
            ref_start = int(index * frames_per_phoneme)
            ref_end = int((index + 1) * frames_per_phoneme)

            child_frames = [i for i, j in path if ref_start <= j < ref_end]
            if not child_frames:
                scores.append(PhonemeScore(phoneme, 0, index, 0.0, 0.0, "Missed"))
                continue

            child_start = min(child_frames)
            child_last = max(child_frames)
            shape = self.dtw.compare_region(
                prepared.features, reference,
                child_start, child_last + 1,
                ref_start, ref_end,
            )

            articulation = 100.0
            feedback = ""
            if is_vowel(phoneme):
                center = (child_start + child_last) // 2
                sample_idx = center * self.mfcc.hop_size
                if sample_idx + FORMANT_FRAME < len(samples):
                    result = formants.analyze(samples[sample_idx:sample_idx + FORMANT_FRAME])
                    target = PHONEME_FORMANTS.get(phoneme, DEFAULT_VOWEL_TARGET)
                    articulation = articulation_score(
                        result.f1, result.f2, result.bandwidths[0], target,
                    )
                    if articulation < 60:
                        feedback = "Sound was different."
                    if abs(result.f1 - target[0]) > MOUTH_SHAPE_F1_HZ:
                        feedback = "Open/Close mouth more."
            else:
                feedback = "Sharp!"

            hybrid = shape * SHAPE_WEIGHT + articulation * ARTICULATION_WEIGHT
            scores.append(PhonemeScore(
                phoneme=phoneme,
                score=round(hybrid),
                position=index,
                start_time=child_start * frame_s,
                end_time=(child_last + 1) * frame_s,
                feedback=feedback or ("Try again" if hybrid < 60 else "Good"),
            ))

        return scores

    def _microphone_result(self, prepared: PreparedAudio) -> PronunciationResult:
        return PronunciationResult(
            overall_score=0,
            rhythm_score=0.0,
            formant_score=0.0,
            pitch_score=0.0,
            phoneme_scores=[],
            syllable_scores=[],
            feedback=microphone_feedback(),
            environment=prepared.environment,
            pitch=prepared.pitch,
            microphone_issue=True,
        )
