"""Pronunciation scoring pipeline for children's phonics practice."""

__version__ = "0.1.0"
