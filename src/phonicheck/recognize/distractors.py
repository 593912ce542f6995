"""Shadow words: phonetic neighbours of a target the child might say instead."""

import logging
import random

from phonicheck.phonetics import normalize_phonemes
from phonicheck.types import ShadowType, ShadowWord

logger = logging.getLogger(__name__)

MAX_DISTRACTORS = 4

# Vowels commonly confused with each other
VOWEL_NEIGHBORS: dict[str, list[str]] = {
    "AA": ["AH", "AO", "AE"],
    "AE": ["EH", "AA", "AY"],
    "AH": ["AA", "UH", "ER"],
    "AO": ["AA", "OW", "UH"],
    "AW": ["OW", "AA"],
    "AY": ["AE", "IY"],
    "EH": ["AE", "IH", "EY"],
    "ER": ["AH", "UH"],
    "EY": ["EH", "IY"],
    "IH": ["IY", "EH"],
    "IY": ["IH", "EY"],
    "OW": ["AO", "UW"],
    "OY": ["AY", "OW"],
    "UH": ["AH", "UW"],
    "UW": ["UH", "OW"],
}

# Consonants differing in one feature (voicing, place or manner)
CONSONANT_NEIGHBORS: dict[str, list[str]] = {
    "B":  ["P", "D", "V"],
    "D":  ["T", "B", "G"],
    "G":  ["K", "D"],
    "P":  ["B", "F"],
    "T":  ["D", "S"],
    "K":  ["G", "T"],
    "F":  ["V", "TH", "P"],
    "V":  ["F", "B"],
    "TH": ["S", "F", "DH"],
    "DH": ["D", "Z", "TH"],
    "S":  ["Z", "SH", "TH"],
    "Z":  ["S", "ZH", "DH"],
    "SH": ["S", "CH", "ZH"],
    "ZH": ["Z", "JH", "SH"],
    "CH": ["SH", "JH", "T"],
    "JH": ["ZH", "CH", "D"],
    "M":  ["N"],
    "N":  ["M", "NG"],
    "NG": ["N"],
    "L":  ["R", "W"],
    "R":  ["L", "W"],
    "W":  ["V", "R"],
    "Y":  ["IY"],
    "HH": [],
}


def shadow_label(phonemes: list[str]) -> str:
    """Display label for a generated word, e.g. ``*K-EH-T*``."""
    return f"*{'-'.join(phonemes)}*"


class DistractorGenerator:
    """Builds up to ``max_distractors`` shadow words for a target.

    Candidates: every vowel swapped for each neighbour, the first and last
    phoneme swapped for consonant neighbours, and the second phoneme deleted
    for words longer than three phonemes. The pool is shuffled and truncated;
    pass a seed for a reproducible pick.
    """

    def __init__(self, seed: int | None = None, max_distractors: int = MAX_DISTRACTORS):
        self.seed = seed
        self.max_distractors = max_distractors

    def candidates(self, phonemes: list[str]) -> list[ShadowWord]:
        """Every shadow word, unshuffled, in generation order."""
        phonemes = normalize_phonemes(phonemes)
        shadows: list[ShadowWord] = []

        for idx, p in enumerate(phonemes):
            for neighbor in VOWEL_NEIGHBORS.get(p, []):
                shadows.append(_swap(phonemes, idx, neighbor, ShadowType.VOWEL_SWAP))

        if phonemes:
            edges = [0] if len(phonemes) == 1 else [0, len(phonemes) - 1]
            for idx in edges:
                for neighbor in CONSONANT_NEIGHBORS.get(phonemes[idx], []):
                    shadows.append(_swap(phonemes, idx, neighbor, ShadowType.CONSONANT_SWAP))

        if len(phonemes) > 3:
            deleted = phonemes[:1] + phonemes[2:]
            shadows.append(ShadowWord(shadow_label(deleted), deleted, ShadowType.DELETION))

        return shadows

    def generate(self, word: str, phonemes: list[str]) -> list[ShadowWord]:
        shadows = self.candidates(phonemes)
        random.Random(self.seed).shuffle(shadows)
        picked = shadows[:self.max_distractors]
        logger.debug(
            f"Distractors for '{word}': {[s.word for s in picked]} "
            f"(from {len(shadows)} candidates)"
        )
        return picked


def _swap(phonemes: list[str], idx: int, replacement: str, kind: ShadowType) -> ShadowWord:
    swapped = list(phonemes)
    swapped[idx] = replacement
    return ShadowWord(shadow_label(swapped), swapped, kind)
