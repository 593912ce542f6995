"""Acoustic feature extractors: MFCC, formants (LPC), pitch and pauses."""

from phonicheck.features.formants import FormantAnalyzer
from phonicheck.features.mfcc import MFCCExtractor
from phonicheck.features.pitch import PitchAnalyzer

__all__ = ["FormantAnalyzer", "MFCCExtractor", "PitchAnalyzer"]
