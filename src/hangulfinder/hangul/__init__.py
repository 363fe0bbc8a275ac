"""Hangul syllable and jamo handling."""
