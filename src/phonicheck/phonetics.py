"""ARPABET phoneme inventory, IPA mapping, normalization."""

# IPA-to-ARPABET mapping for callers that hand over IPA transcriptions.
# Diphthongs first (multi-char), then monophthongs, then consonants.
IPA_TO_ARPABET: dict[str, str] = {
    # Diphthongs (must be checked before single-char vowels)
    "aɪ": "AY",
    "aʊ": "AW",
    "eɪ": "EY",
    "oʊ": "OW",
    "ɔɪ": "OY",
    "tʃ": "CH",
    "dʒ": "JH",
    # Vowels
    "i":  "IY",
    "ɪ":  "IH",
    "e":  "EY",
    "ɛ":  "EH",
    "æ":  "AE",
    "ɑ":  "AA",
    "ɒ":  "AA",
    "ɔ":  "AO",
    "o":  "OW",
    "ʊ":  "UH",
    "u":  "UW",
    "ə":  "AH",
    "ɜ":  "ER",
    "ɚ":  "ER",
    "ʌ":  "AH",
    "a":  "AA",
    # Consonants: stops
    "p":  "P",
    "b":  "B",
    "t":  "T",
    "d":  "D",
    "k":  "K",
    "g":  "G",
    "ɡ":  "G",
    # Consonants: nasals
    "m":  "M",
    "n":  "N",
    "ŋ":  "NG",
    # Consonants: fricatives
    "f":  "F",
    "v":  "V",
    "θ":  "TH",
    "ð":  "DH",
    "s":  "S",
    "z":  "Z",
    "ʃ":  "SH",
    "ʒ":  "ZH",
    "h":  "HH",
    # Consonants: liquids/rhotics
    "l":  "L",
    "r":  "R",
    "ɹ":  "R",
    # Consonants: glides
    "j":  "Y",
    "w":  "W",
}

# Ordered list of multi-char IPA keys for prefix matching
_IPA_DIPHTHONGS = sorted(
    [k for k in IPA_TO_ARPABET if len(k) > 1],
    key=len, reverse=True,
)

# Stress-free ARPABET inventory, split by segment class
VOWELS = frozenset({
    "IY", "IH", "EY", "EH", "AE", "AA", "AH", "AO",
    "OW", "UH", "UW", "AW", "AY", "OY", "ER",
})
CONSONANTS = frozenset({
    "P", "B", "T", "D", "K", "G",
    "F", "V", "TH", "DH", "S", "Z", "SH", "ZH", "HH",
    "CH", "JH",
    "M", "N", "NG",
    "L", "R", "W", "Y",
})
PHONEMES = VOWELS | CONSONANTS


def strip_stress(phoneme: str) -> str:
    """Remove trailing stress marker (0, 1, 2) from an ARPABET phoneme."""
    if phoneme and phoneme[-1] in "012":
        return phoneme[:-1]
    return phoneme


def _from_ipa(phoneme: str) -> str | None:
    cleaned = phoneme.rstrip("ːˑ")
    for diph in _IPA_DIPHTHONGS:
        if cleaned.startswith(diph):
            return IPA_TO_ARPABET[diph]
    return IPA_TO_ARPABET.get(cleaned)


def normalize_phoneme(phoneme: str) -> str:
    """Canonical stress-free uppercase ARPABET for an ARPABET or IPA token.

    Lowercase ARPABET ("ae", "sh") is accepted. Unknown tokens come back
    uppercased so downstream tables fall through to their defaults.
    """
    token = phoneme.strip()
    if not token:
        return token

    if token.isascii():
        base = strip_stress(token.upper())
        if base in PHONEMES:
            return base

    mapped = _from_ipa(token)
    if mapped is not None:
        return mapped
    return strip_stress(token.upper())


def normalize_phonemes(phonemes: list[str]) -> list[str]:
    return [p for p in (normalize_phoneme(p) for p in phonemes) if p]


def is_vowel(phoneme: str) -> bool:
    return normalize_phoneme(phoneme) in VOWELS


def is_consonant(phoneme: str) -> bool:
    return normalize_phoneme(phoneme) in CONSONANTS
