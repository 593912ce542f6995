"""Open-vocabulary ASR used as a last resort when every candidate scores low.

A native recognizer is anything with ``recognize_once(audio) -> str | None``.
Returning None means nothing usable was heard. Implementations may raise;
the word recognizer treats an exception the same as None.
"""

import logging
from typing import Protocol

import numpy as np

from phonicheck.types import AudioData

logger = logging.getLogger(__name__)

_model_cache: dict[str, object] = {}


class NativeRecognizer(Protocol):
    def recognize_once(self, audio: AudioData) -> str | None: ...


class NullRecognizer:
    """Fallback that never hears anything."""

    def recognize_once(self, audio: AudioData) -> str | None:
        return None


def _load_model(model_name: str):
    import whisper

    if model_name not in _model_cache:
        logger.info(f"Loading whisper model '{model_name}'")
        _model_cache[model_name] = whisper.load_model(model_name)
    return _model_cache[model_name]


class WhisperRecognizer:
    """Single-utterance transcription with openai-whisper.

    The model is loaded on first use and shared between instances that ask
    for the same model name.
    """

    def __init__(self, model_name: str = "base", language: str = "en"):
        self.model_name = model_name
        self.language = language

    def recognize_once(self, audio: AudioData) -> str | None:
        if len(audio.samples) == 0:
            return None

        model = _load_model(self.model_name)
        # whisper expects float32 mono at 16 kHz
        result = model.transcribe(
            audio.samples.astype(np.float32),
            language=self.language,
            fp16=False,
        )

        text = result.get("text", "").strip().strip(".,!?;:\"'")
        if not text:
            return None
        logger.debug(f"Whisper heard: {text!r}")
        return text
