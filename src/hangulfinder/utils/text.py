"""Text helpers for building content previews."""

from __future__ import annotations


def make_preview(text: str, *, max_lines: int = 3, max_chars: int = 200) -> str:
    """First ``max_lines`` lines joined by spaces, cut at ``max_chars``."""
    if not text:
        return ""
    return " ".join(text.split("\n")[:max_lines])[:max_chars]
