"""Tests for text utility functions."""

from __future__ import annotations

from hangulfinder.utils.text import make_preview


class TestMakePreview:
    """Test make_preview function."""

    def test_first_three_lines(self) -> None:
        """Should join the first lines with spaces."""
        text = "첫 줄\n둘째 줄\n셋째 줄\n넷째 줄"
        assert make_preview(text) == "첫 줄 둘째 줄 셋째 줄"

    def test_truncated(self) -> None:
        """Should cut the preview at the character limit."""
        assert len(make_preview("가" * 500)) == 200

    def test_custom_limits(self) -> None:
        """Should honor custom line and character limits."""
        assert make_preview("a\nb\nc", max_lines=2, max_chars=2) == "a "

    def test_empty(self) -> None:
        """Should return an empty preview for empty text."""
        assert make_preview("") == ""

