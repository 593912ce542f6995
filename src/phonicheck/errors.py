"""Exception types raised by phonicheck."""


class PhonicheckError(ValueError):
    """Base class for errors raised by the pipeline."""


class FormatError(PhonicheckError):
    """Input audio is not a decodable RIFF/WAVE buffer."""


class LexiconError(PhonicheckError):
    """No phoneme sequence could be found for a word."""
