"""HangulFinder: Hangul-aware fuzzy search for markdown vaults."""

__version__ = "0.1.0"
