"""Progress report over a child's practice history.

Storage of the history is the caller's job; this module only summarizes a
list of sessions (for example loaded from JSON by the CLI).
"""

import logging
import math
import time
from dataclasses import dataclass, field

from phonicheck.types import PhonemeScore, PronunciationResult, SyllableScore

logger = logging.getLogger(__name__)

LOW_ACCURACY = 50
LOW_CONSISTENCY = 70
MASTERY = 90
MIN_PHONEME_ATTEMPTS = 3
PHONEME_LIST_SIZE = 5
MIN_SESSIONS_FOR_TREND = 10
TREND_MARGIN = 5


@dataclass
class PracticeSession:
    """One scored attempt at a word."""
    word: str
    score: int
    timestamp: float                # seconds since the epoch
    syllable_scores: list[SyllableScore] = field(default_factory=list)
    word_id: str = ""

    @classmethod
    def from_result(
        cls, word: str, result: PronunciationResult, timestamp: float | None = None,
    ) -> "PracticeSession":
        return cls(
            word=word,
            score=result.overall_score,
            timestamp=time.time() if timestamp is None else timestamp,
            syllable_scores=result.syllable_scores,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "PracticeSession":
        syllables = []
        for syl in data.get("syllable_scores", []):
            phonemes = [
                PhonemeScore(
                    phoneme=p["phoneme"],
                    score=p["score"],
                    position=p.get("position", i),
                    start_time=p.get("start_time", 0.0),
                    end_time=p.get("end_time", 0.0),
                    feedback=p.get("feedback", ""),
                )
                for i, p in enumerate(syl.get("phonemes", []))
            ]
            syllables.append(SyllableScore(
                syllable=syl.get("syllable", data["word"]),
                score=syl.get("score", data["score"]),
                phonemes=phonemes,
                needs_practice=syl.get("needs_practice", False),
            ))
        return cls(
            word=data["word"],
            score=data["score"],
            timestamp=data.get("timestamp", 0.0),
            syllable_scores=syllables,
            word_id=data.get("word_id", ""),
        )

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "word_id": self.word_id,
            "score": self.score,
            "timestamp": self.timestamp,
            "syllable_scores": [s.to_dict() for s in self.syllable_scores],
        }


@dataclass
class PhonemeStat:
    phoneme: str
    average_score: int
    count: int

    def to_dict(self) -> dict:
        return {"phoneme": self.phoneme, "average_score": self.average_score, "count": self.count}


@dataclass
class ProgressReport:
    generated_at: float
    total_sessions: int
    average_score: int
    consistency_score: int          # 100 - stddev of session scores
    weakest_phonemes: list[PhonemeStat]
    strongest_phonemes: list[PhonemeStat]
    progress_trend: str             # "improving", "stable" or "declining"
    recommendations: list[str]

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at,
            "total_sessions": self.total_sessions,
            "average_score": self.average_score,
            "consistency_score": self.consistency_score,
            "weakest_phonemes": [p.to_dict() for p in self.weakest_phonemes],
            "strongest_phonemes": [p.to_dict() for p in self.strongest_phonemes],
            "progress_trend": self.progress_trend,
            "recommendations": self.recommendations,
        }


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def average_score(sessions: list[PracticeSession]) -> int:
    return _round_half_up(sum(s.score for s in sessions) / len(sessions))


def consistency_score(sessions: list[PracticeSession], mean: float) -> int:
    if len(sessions) < 2:
        return 100
    variance = sum((s.score - mean) ** 2 for s in sessions) / len(sessions)
    return max(0, 100 - _round_half_up(math.sqrt(variance)))


def phoneme_stats(sessions: list[PracticeSession]) -> list[PhonemeStat]:
    """Per-phoneme average over every attempt, in first-seen order."""
    totals: dict[str, list[float]] = {}
    for session in sessions:
        for syllable in session.syllable_scores:
            for p in syllable.phonemes:
                entry = totals.setdefault(p.phoneme, [0.0, 0])
                entry[0] += p.score
                entry[1] += 1
    return [
        PhonemeStat(phoneme, _round_half_up(total / count), count)
        for phoneme, (total, count) in totals.items()
    ]


def progress_trend(sessions: list[PracticeSession]) -> str:
    """Compare the later half of the history with the earlier half."""
    if len(sessions) < MIN_SESSIONS_FOR_TREND:
        return "stable"
    half = len(sessions) // 2
    first, second = average_score(sessions[:half]), average_score(sessions[half:])
    if second > first + TREND_MARGIN:
        return "improving"
    if second < first - TREND_MARGIN:
        return "declining"
    return "stable"


def recommendations(avg: int, weakest: list[PhonemeStat], consistency: int) -> list[str]:
    recs = []
    if avg < LOW_ACCURACY:
        recs.append("Overall accuracy is low. Consider reverting to 'Beginner' difficulty.")
    if consistency < LOW_CONSISTENCY:
        recs.append(
            "Performance is inconsistent. Regular daily practice is recommended "
            "to stabilize skills."
        )
    if weakest:
        phones = ", ".join(f"/{p.phoneme}/" for p in weakest)
        recs.append(f"Specific intervention needed for phonemes: {phones}.")
    else:
        recs.append("No specific phonological deficits identified currently.")
    if avg > MASTERY and consistency > MASTERY:
        recs.append("Mastery level achieved. Recommended to increase difficulty.")
    return recs


def generate_report(sessions: list[PracticeSession]) -> ProgressReport:
    if not sessions:
        return ProgressReport(
            generated_at=time.time(),
            total_sessions=0,
            average_score=0,
            consistency_score=0,
            weakest_phonemes=[],
            strongest_phonemes=[],
            progress_trend="stable",
            recommendations=["No data available for analysis yet."],
        )

    avg = average_score(sessions)
    consistency = consistency_score(sessions, avg)

    # Lists are cut to five before the attempt filter
    ranked = sorted(phoneme_stats(sessions), key=lambda p: p.average_score)
    weakest = [p for p in ranked[:PHONEME_LIST_SIZE] if p.count >= MIN_PHONEME_ATTEMPTS]
    strongest = [
        p for p in ranked[::-1][:PHONEME_LIST_SIZE] if p.count >= MIN_PHONEME_ATTEMPTS
    ]

    logger.debug(f"Report over {len(sessions)} sessions: avg={avg}, consistency={consistency}")
    return ProgressReport(
        generated_at=time.time(),
        total_sessions=len(sessions),
        average_score=avg,
        consistency_score=consistency,
        weakest_phonemes=weakest,
        strongest_phonemes=strongest,
        progress_trend=progress_trend(sessions),
        recommendations=recommendations(avg, weakest, consistency),
    )
