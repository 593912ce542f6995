"""Word to ARPABET lookup via g2p_en, for callers that only have the word."""

import logging

from phonicheck.errors import LexiconError
from phonicheck.phonetics import normalize_phonemes

logger = logging.getLogger(__name__)

_g2p = None


def _get_g2p():
    # g2p_en pulls in nltk data on import, so defer it until first use
    global _g2p
    if _g2p is None:
        from g2p_en import G2p
        _g2p = G2p()
    return _g2p


def word_to_phonemes(word: str) -> list[str]:
    """Stress-free uppercase ARPABET for a single word.

    Raises LexiconError when the word is blank or g2p_en yields nothing.
    """
    cleaned = word.strip().strip(".,!?;:\"'()-")
    if not cleaned:
        raise LexiconError(f"Cannot look up phonemes for {word!r}")

    raw = _get_g2p()(cleaned)
    # g2p_en returns phonemes; filter out spaces and punctuation
    phonemes = normalize_phonemes([p for p in raw if p.strip() and p[0].isalpha()])
    if not phonemes:
        raise LexiconError(f"No phonemes found for {word!r}")

    logger.debug(f"g2p: {cleaned} -> {'-'.join(phonemes)}")
    return phonemes


def resolve_phonemes(word: str, phonemes: list[str] | None = None) -> list[str]:
    """Normalize caller-supplied phonemes, or look them up when absent."""
    if phonemes:
        resolved = normalize_phonemes(phonemes)
        if resolved:
            return resolved
    return word_to_phonemes(word)
