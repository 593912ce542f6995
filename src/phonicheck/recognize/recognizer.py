"""Closed-vocabulary word recognition.

The target races a handful of shadow words: every candidate is scored against
the same prepared utterance and a shadow only wins when it beats the target
clearly. When even the winner scores poorly the caller's native ASR gets one
bounded attempt before the result is reported as unclear.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

from phonicheck.analyzer import DEFAULT_AGE, PhonemeAnalyzer
from phonicheck.lexicon import resolve_phonemes
from phonicheck.recognize.distractors import DistractorGenerator
from phonicheck.recognize.native import NativeRecognizer, NullRecognizer
from phonicheck.types import UNCLEAR_WORD, AudioData, Decision, RecognitionResult

logger = logging.getLogger(__name__)

SECONDS_PER_PHONEME = 0.12
MIN_DURATION_RATIO = 0.4
MAX_DURATION_RATIO = 2.5
DURATION_PENALTY = 30
# A shadow must beat the current winner by more than this to take over
WIN_MARGIN = 10
NATIVE_FALLBACK_BELOW = 45
PASS_SCORE = 50
NATIVE_MATCH_SCORE = 50
NATIVE_TIMEOUT_S = 5.0


def duration_penalty(duration: float, n_phonemes: int) -> int:
    """30 points when the utterance is far shorter or longer than expected."""
    expected = n_phonemes * SECONDS_PER_PHONEME
    if expected <= 0:
        return 0
    ratio = duration / expected
    if ratio < MIN_DURATION_RATIO or ratio > MAX_DURATION_RATIO:
        logger.warning(
            f"Length mismatch: expected {expected:.2f}s, got {duration:.2f}s"
        )
        return DURATION_PENALTY
    return 0


class WordRecognizer:
    def __init__(
        self,
        analyzer: PhonemeAnalyzer | None = None,
        distractors: DistractorGenerator | None = None,
        native: NativeRecognizer | None = None,
        native_timeout: float = NATIVE_TIMEOUT_S,
        max_workers: int | None = None,
    ):
        self.analyzer = analyzer or PhonemeAnalyzer()
        self.distractors = distractors or DistractorGenerator()
        self.native = native or NullRecognizer()
        self.native_timeout = native_timeout
        self.max_workers = max_workers

    def recognize(
        self,
        audio: AudioData,
        word: str,
        phonemes: list[str] | None = None,
        age: float = DEFAULT_AGE,
    ) -> RecognitionResult:
        phonemes = resolve_phonemes(word, phonemes)
        logger.info(f"Recognizing '{word}' ({'-'.join(phonemes)})")

        penalty = duration_penalty(audio.duration, len(phonemes))
        prepared = self.analyzer.prepare(audio)
        target_analysis = self.analyzer.score(prepared, word, phonemes, age)

        if target_analysis.microphone_issue:
            return RecognitionResult(
                captured_word=UNCLEAR_WORD,
                is_pass=False,
                winning_score=0,
                target_score=0,
                distractor_scores=[],
                full_analysis=target_analysis,
                decision=Decision.MICROPHONE_ISSUE,
                duration_rejected=penalty > 0,
            )

        target_score = max(0, target_analysis.overall_score - penalty)

        shadows = self.distractors.generate(word, phonemes)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            analyses = list(pool.map(
                lambda s: self.analyzer.score(prepared, s.word, s.phonemes, age),
                shadows,
            ))
        distractor_scores = [
            (s.word, max(0, a.overall_score - penalty)) for s, a in zip(shadows, analyses)
        ]

        winner_word, winner_score, winner_is_target = word, target_score, True
        decision = Decision.TARGET_WON
        for shadow_word, score in distractor_scores:
            if score > winner_score + WIN_MARGIN:
                winner_word, winner_score, winner_is_target = shadow_word, score, False
                decision = Decision.DISTRACTOR_WON

        is_native_fallback = False
        if winner_score < NATIVE_FALLBACK_BELOW:
            logger.info(f"Best score {winner_score} too low, trying native fallback")
            heard = self._native_attempt(audio)
            if heard:
                is_native_fallback = True
                winner_word = heard
                winner_is_target = heard.lower() == word.lower()
                winner_score = NATIVE_MATCH_SCORE if winner_is_target else 0
                decision = Decision.NATIVE_RESOLVED
            else:
                winner_word, winner_is_target = UNCLEAR_WORD, False
                decision = Decision.NATIVE_UNCLEAR

        logger.info(f"Winner: {winner_word} ({winner_score}) vs target ({target_score})")
        return RecognitionResult(
            captured_word=winner_word,
            is_pass=winner_is_target and target_score >= PASS_SCORE,
            winning_score=winner_score,
            target_score=target_score,
            distractor_scores=distractor_scores,
            full_analysis=target_analysis,
            decision=decision,
            duration_rejected=penalty > 0,
            is_native_fallback=is_native_fallback,
        )

    def _native_attempt(self, audio: AudioData) -> str | None:
        """One call to the native recognizer, bounded by native_timeout."""
        pool = ThreadPoolExecutor(max_workers=1)
        future = pool.submit(self.native.recognize_once, audio)
        try:
            return future.result(timeout=self.native_timeout)
        except FutureTimeout:
            logger.warning(f"Native recognizer timed out after {self.native_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"Native recognizer failed: {e}")
            return None
        finally:
            # A hung call keeps its worker thread; don't wait for it
            pool.shutdown(wait=False)
