"""Tests for closed-vocabulary word recognition."""

import threading
from unittest.mock import MagicMock

import numpy as np
import pytest

from phonicheck.recognize.distractors import DistractorGenerator
from phonicheck.recognize.recognizer import WordRecognizer, duration_penalty
from phonicheck.types import (
    UNCLEAR_WORD,
    AudioData,
    Decision,
    EnvironmentCondition,
    EnvironmentReport,
    Feedback,
    Outcome,
    PronunciationResult,
    ShadowType,
    ShadowWord,
)

CAT = ["K", "AE", "T"]


def _result(score: int, microphone_issue: bool = False) -> PronunciationResult:
    return PronunciationResult(
        overall_score=score,
        rhythm_score=float(score),
        formant_score=float(score),
        pitch_score=100.0,
        phoneme_scores=[],
        syllable_scores=[],
        feedback=Feedback("", ""),
        environment=EnvironmentReport(30, False, 0.001, "", EnvironmentCondition.OK),
        microphone_issue=microphone_issue,
    )


def _analyzer(scores: dict[str, int], microphone_issue: bool = False) -> MagicMock:
    analyzer = MagicMock()
    analyzer.prepare.return_value = MagicMock(name="prepared")
    analyzer.score.side_effect = lambda prepared, word, phonemes, age: _result(
        scores[word], microphone_issue
    )
    return analyzer


def _distractors(*words: str) -> MagicMock:
    gen = MagicMock(spec=DistractorGenerator)
    gen.generate.return_value = [
        ShadowWord(w, ["K", "EH", "T"], ShadowType.VOWEL_SWAP) for w in words
    ]
    return gen


def _audio(seconds: float = 0.4) -> AudioData:
    return AudioData.from_samples(np.zeros(int(16000 * seconds)), 16000)


def _recognizer(
    scores, shadows=("*K-EH-T*",), native=None, microphone_issue=False, **kwargs
) -> WordRecognizer:
    return WordRecognizer(
        analyzer=_analyzer(scores, microphone_issue),
        distractors=_distractors(*shadows),
        native=native,
        **kwargs,
    )


class TestDurationPenalty:
    def test_in_range(self):
        assert duration_penalty(0.36, 3) == 0
        assert duration_penalty(0.9, 3) == 0

    def test_too_short_or_long(self):
        assert duration_penalty(0.1, 3) == 30
        assert duration_penalty(1.0, 3) == 30

    def test_no_phonemes(self):
        assert duration_penalty(1.0, 0) == 0


class TestWinner:
    def test_target_wins(self):
        result = _recognizer({"cat": 80, "*K-EH-T*": 60}).recognize(_audio(), "cat", CAT)
        assert result.captured_word == "cat"
        assert result.is_pass
        assert result.outcome == Outcome.PASS
        assert result.decision == Decision.TARGET_WON
        assert result.distractor_scores == [("*K-EH-T*", 60)]

    def test_distractor_within_margin_loses(self):
        result = _recognizer({"cat": 70, "*K-EH-T*": 80}).recognize(_audio(), "cat", CAT)
        assert result.captured_word == "cat"
        assert result.is_pass

    def test_distractor_clear_win(self):
        result = _recognizer({"cat": 60, "*K-EH-T*": 71}).recognize(_audio(), "cat", CAT)
        assert result.captured_word == "*K-EH-T*"
        assert result.winning_score == 71
        assert result.target_score == 60
        assert not result.is_pass
        assert result.outcome == Outcome.FAIL
        assert result.decision == Decision.DISTRACTOR_WON

    def test_margin_is_against_current_winner(self):
        scores = {"cat": 50, "*A*": 65, "*B*": 70, "*C*": 76}
        result = _recognizer(scores, shadows=("*A*", "*B*", "*C*")).recognize(_audio(), "cat", CAT)
        # *A* takes over at 65; *B* does not beat it by more than 10; *C* does
        assert result.captured_word == "*C*"

    def test_target_below_pass_score_fails(self):
        result = _recognizer({"cat": 48, "*K-EH-T*": 20}).recognize(_audio(), "cat", CAT)
        assert result.captured_word == "cat"
        assert not result.is_pass

    def test_prepares_once(self):
        rec = _recognizer({"cat": 80, "*A*": 10, "*B*": 10}, shadows=("*A*", "*B*"))
        rec.recognize(_audio(), "cat", CAT)
        rec.analyzer.prepare.assert_called_once()
        assert rec.analyzer.score.call_count == 3


class TestDurationGate:
    def test_penalty_applies_to_every_candidate(self):
        result = _recognizer({"cat": 90, "*K-EH-T*": 70}).recognize(_audio(0.1), "cat", CAT)
        assert result.duration_rejected
        assert result.target_score == 60
        assert result.distractor_scores == [("*K-EH-T*", 40)]
        assert result.full_analysis.overall_score == 90

    def test_penalty_floors_at_zero(self):
        native = MagicMock()
        native.recognize_once.return_value = None
        result = _recognizer({"cat": 20, "*K-EH-T*": 10}, native=native).recognize(
            _audio(0.1), "cat", CAT
        )
        assert result.target_score == 0
        assert result.distractor_scores == [("*K-EH-T*", 0)]


class TestNativeFallback:
    def test_not_called_for_confident_winner(self):
        native = MagicMock()
        _recognizer({"cat": 45, "*K-EH-T*": 10}, native=native).recognize(_audio(), "cat", CAT)
        native.recognize_once.assert_not_called()

    def test_unclear_when_native_hears_nothing(self):
        native = MagicMock()
        native.recognize_once.return_value = None
        result = _recognizer({"cat": 30, "*K-EH-T*": 20}, native=native).recognize(
            _audio(), "cat", CAT
        )
        native.recognize_once.assert_called_once()
        assert result.captured_word == UNCLEAR_WORD
        assert result.outcome == Outcome.UNCLEAR
        assert result.decision == Decision.NATIVE_UNCLEAR
        assert not result.is_native_fallback

    def test_default_native_is_unclear(self):
        result = _recognizer({"cat": 30, "*K-EH-T*": 20}).recognize(_audio(), "cat", CAT)
        assert result.captured_word == UNCLEAR_WORD

    def test_native_hears_target(self):
        native = MagicMock()
        native.recognize_once.return_value = "Cat"
        result = _recognizer({"cat": 30, "*K-EH-T*": 20}, native=native).recognize(
            _audio(), "cat", CAT
        )
        assert result.captured_word == "Cat"
        assert result.winning_score == 50
        assert result.is_native_fallback
        assert result.decision == Decision.NATIVE_RESOLVED
        # The target's own score still decides the pass
        assert not result.is_pass

    def test_native_hears_other_word(self):
        native = MagicMock()
        native.recognize_once.return_value = "hat"
        result = _recognizer({"cat": 30, "*K-EH-T*": 20}, native=native).recognize(
            _audio(), "cat", CAT
        )
        assert result.captured_word == "hat"
        assert result.winning_score == 0
        assert result.outcome == Outcome.FAIL

    def test_native_error_is_unclear(self):
        native = MagicMock()
        native.recognize_once.side_effect = RuntimeError("model crashed")
        result = _recognizer({"cat": 30, "*K-EH-T*": 20}, native=native).recognize(
            _audio(), "cat", CAT
        )
        native.recognize_once.assert_called_once()
        assert result.captured_word == UNCLEAR_WORD

    def test_native_timeout_is_unclear(self):
        release = threading.Event()
        native = MagicMock()
        native.recognize_once.side_effect = lambda audio: release.wait(5) and "cat"
        rec = _recognizer({"cat": 30, "*K-EH-T*": 20}, native=native, native_timeout=0.05)
        try:
            result = rec.recognize(_audio(), "cat", CAT)
        finally:
            release.set()
        native.recognize_once.assert_called_once()
        assert result.captured_word == UNCLEAR_WORD
        assert result.decision == Decision.NATIVE_UNCLEAR


class TestMicrophone:
    def test_short_circuits(self):
        native = MagicMock()
        rec = _recognizer({"cat": 0}, native=native, microphone_issue=True)
        result = rec.recognize(_audio(), "cat", CAT)
        assert result.captured_word == UNCLEAR_WORD
        assert result.decision == Decision.MICROPHONE_ISSUE
        assert result.distractor_scores == []
        assert not result.is_pass
        rec.distractors.generate.assert_not_called()
        native.recognize_once.assert_not_called()


class TestSerialization:
    def test_to_dict(self):
        result = _recognizer({"cat": 80, "*K-EH-T*": 60}).recognize(_audio(), "cat", CAT)
        data = result.to_dict()
        assert data["outcome"] == "pass"
        assert data["decision"] == "target_won"
        assert data["distractor_scores"] == [{"word": "*K-EH-T*", "score": 60}]
        assert data["full_analysis"]["overall_score"] == 80


@pytest.mark.parametrize("workers", [1, 4])
def test_worker_count_does_not_change_result(workers):
    scores = {"cat": 55, "*A*": 70, "*B*": 40}
    rec = _recognizer(scores, shadows=("*A*", "*B*"), max_workers=workers)
    result = rec.recognize(_audio(), "cat", CAT)
    assert result.captured_word == "*A*"
    assert result.distractor_scores == [("*A*", 70), ("*B*", 40)]
