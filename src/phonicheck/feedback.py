"""Child-facing feedback text: score bands, phoneme tips, progress messages."""

import random

from phonicheck.environment import MESSAGES
from phonicheck.features.pitch import MAX_NATURAL_PAUSES
from phonicheck.types import (
    EnvironmentCondition,
    EnvironmentReport,
    Feedback,
    PhonemeScore,
    PitchResult,
    SyllableScore,
)

EXCELLENT_SCORE = 85
GOOD_SCORE = 70
FAIR_SCORE = 50

PHONEME_TIPS: dict[str, str] = {
    "AE": 'Open your mouth wide, like saying "aaah" at the doctor',
    "EH": "Relax your jaw and smile slightly",
    "IH": "Keep your mouth more closed, short sound",
    "OW": 'Round your lips like making an "O" shape',
    "R":  "Curl your tongue back slightly",
    "L":  "Touch your tongue to the roof of your mouth",
    "S":  "Keep your tongue behind your teeth",
    "TH": "Put your tongue between your teeth gently",
    "SH": "Round your lips and push air out softly",
}

ACHIEVEMENTS: dict[int, str] = {
    5: "5 words practiced! You're on fire!",
    10: "10 words! You're becoming a pronunciation pro!",
    25: "25 words! Amazing dedication!",
    50: "50 words! You're a pronunciation champion!",
    100: "100 words! Incredible achievement!",
}

ENCOURAGEMENTS = [
    "You're doing great!",
    "Keep up the good work!",
    "Every practice makes you better!",
    "You're a star!",
    "Believe in yourself!",
    "You're learning so fast!",
    "Amazing effort!",
    "You're improving every day!",
]


def overall_feedback(
    score: int,
    phoneme_scores: list[PhonemeScore],
    pitch: PitchResult,
    environment: EnvironmentReport,
) -> Feedback:
    """Headline feedback for one attempt.

    Checked in order: noisy room, excellent score, monotone delivery,
    choppy delivery, then a callout of the weakest phoneme.
    """
    if environment.is_noisy:
        return Feedback("Too Noisy!", environment.message)
    if score >= EXCELLENT_SCORE:
        return Feedback("Amazing!", "Perfect pronunciation!")
    if pitch.is_monotone:
        return Feedback("More Feeling!", "Don't speak like a robot!")
    if pitch.micro_pauses > MAX_NATURAL_PAUSES:
        return Feedback("Smoothly!", "Say it in one breath.")
    if not phoneme_scores:
        return Feedback("Almost there!", "Keep practicing!")

    weakest = min(phoneme_scores, key=lambda p: p.score)
    return Feedback("Almost there!", f"Focus on the /{weakest.phoneme}/ sound.")


def microphone_feedback() -> Feedback:
    return Feedback("Can't hear you!", MESSAGES[EnvironmentCondition.MICROPHONE_ISSUE])


def score_feedback(score: float) -> Feedback:
    """Generic band message for a 0-100 score."""
    if score >= EXCELLENT_SCORE:
        return Feedback("Excellent! Sounds very clear!", "You're doing amazing! Keep it up!")
    if score >= GOOD_SCORE:
        return Feedback("Good try! Almost there!", "You're getting better with each try!")
    if score >= FAIR_SCORE:
        return Feedback("Nice effort! Let's try again slowly", "Practice makes progress! You can do it!")
    return Feedback(
        "Let's listen once more and repeat together",
        "Every practice helps! Let's try again!",
    )


def syllable_feedback(syllable: SyllableScore) -> str:
    name = syllable.syllable
    if syllable.score >= EXCELLENT_SCORE:
        return f'Perfect pronunciation of "{name}"!'
    if syllable.score >= GOOD_SCORE:
        return f'"{name}" was good! Try holding the sounds a bit longer.'
    if syllable.score >= FAIR_SCORE:
        return f'Let\'s practice "{name}" together. Listen carefully.'
    return f'Let\'s break down "{name}" into smaller parts.'


def phoneme_tip(phoneme: str, score: float) -> str:
    """Articulation hint for a weak phoneme, praise for a good one."""
    if score >= GOOD_SCORE:
        return f"Great {phoneme} sound!"
    return PHONEME_TIPS.get(phoneme, f"Let's practice the {phoneme} sound together!")


def progress_message(current: int, previous: int | None) -> str:
    if previous is None:
        return "Great start! Keep practicing!"
    improvement = current - previous
    if improvement > 10:
        return f"Wow! You improved by {improvement} points!"
    if improvement > 0:
        return "Nice progress! You're getting better!"
    if improvement == 0:
        return "Keep practicing! You're doing great!"
    return "That's okay! Every practice helps! Keep trying!"


def achievement_message(words_completed: int) -> str | None:
    return ACHIEVEMENTS.get(words_completed)


def random_encouragement(rng: random.Random | None = None) -> str:
    return (rng or random).choice(ENCOURAGEMENTS)
