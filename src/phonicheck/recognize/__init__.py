"""Closed-vocabulary recognition: target vs. shadow words, native ASR fallback."""

from phonicheck.recognize.distractors import DistractorGenerator
from phonicheck.recognize.native import NullRecognizer, WhisperRecognizer
from phonicheck.recognize.recognizer import WordRecognizer

__all__ = ["DistractorGenerator", "NullRecognizer", "WhisperRecognizer", "WordRecognizer"]
