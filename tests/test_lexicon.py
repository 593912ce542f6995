"""Tests for word-to-phoneme lookup."""

from unittest.mock import MagicMock, patch

import pytest

from phonicheck.errors import LexiconError
from phonicheck.lexicon import resolve_phonemes, word_to_phonemes


def _fake_g2p(mapping: dict[str, list[str]]):
    g2p = MagicMock(side_effect=lambda word: mapping.get(word.lower(), []))
    return g2p


class TestWordToPhonemes:
    @patch("phonicheck.lexicon._get_g2p")
    def test_strips_stress(self, mock_get):
        mock_get.return_value = _fake_g2p({"cat": ["K", "AE1", "T"]})
        assert word_to_phonemes("cat") == ["K", "AE", "T"]

    @patch("phonicheck.lexicon._get_g2p")
    def test_strips_punctuation_and_spaces(self, mock_get):
        g2p = _fake_g2p({"cat": ["K", " ", "AE1", "T", "."]})
        mock_get.return_value = g2p
        assert word_to_phonemes("cat!") == ["K", "AE", "T"]
        g2p.assert_called_once_with("cat")

    @patch("phonicheck.lexicon._get_g2p")
    def test_no_result_raises(self, mock_get):
        mock_get.return_value = _fake_g2p({})
        with pytest.raises(LexiconError):
            word_to_phonemes("zzz")

    def test_blank_word_raises(self):
        with pytest.raises(LexiconError):
            word_to_phonemes("  ")


class TestResolvePhonemes:
    def test_given_phonemes_are_normalized(self):
        assert resolve_phonemes("cat", ["k", "ae1", "t"]) == ["K", "AE", "T"]

    @patch("phonicheck.lexicon._get_g2p")
    def test_falls_back_to_lookup(self, mock_get):
        mock_get.return_value = _fake_g2p({"dog": ["D", "AO1", "G"]})
        assert resolve_phonemes("dog", None) == ["D", "AO", "G"]
        assert resolve_phonemes("dog", []) == ["D", "AO", "G"]
