"""Tests for the Bitap fuzzy matcher."""

from __future__ import annotations

import pytest

from hangulfinder.match.bitap import (
    MAX_BITS,
    BitapMatcher,
    MatchOptions,
    bitap_search,
    compute_score,
    mask_to_indices,
    pattern_alphabet,
)


class TestComputeScore:
    """Test compute_score function."""

    def test_accuracy_and_proximity(self) -> None:
        """Should add error ratio and distance penalty."""
        score = compute_score("abcd", errors=1, current_location=10, expected_location=0, distance=100)
        assert score == pytest.approx(0.35)

    def test_ignore_location(self) -> None:
        """Should use the error ratio only."""
        score = compute_score(
            "abcd", errors=1, current_location=10, expected_location=0, ignore_location=True
        )
        assert score == pytest.approx(0.25)

    def test_zero_distance(self) -> None:
        """Should treat any displacement as a total mismatch."""
        assert compute_score("ab", current_location=1, expected_location=0, distance=0) == 1.0
        assert compute_score("ab", current_location=0, expected_location=0, distance=0) == 0.0


class TestHelpers:
    """Test alphabet and mask helpers."""

    def test_pattern_alphabet(self) -> None:
        """Should set the highest bit for the first position."""
        assert pattern_alphabet("abca") == {"a": 0b1001, "b": 0b0100, "c": 0b0010}

    def test_mask_to_indices(self) -> None:
        """Should collapse runs into inclusive ranges."""
        assert mask_to_indices([0, 1, 1, 0, 1]) == [(1, 2), (4, 4)]

    def test_mask_to_indices_min_length(self) -> None:
        """Should drop runs shorter than the minimum."""
        assert mask_to_indices([0, 1, 1, 0, 1], 2) == [(1, 2)]

    def test_pattern_too_long(self) -> None:
        """Should reject chunks longer than a machine word."""
        pattern = "a" * (MAX_BITS + 1)
        with pytest.raises(ValueError):
            bitap_search("text", pattern, pattern_alphabet(pattern), MatchOptions())


class TestBitapMatcher:
    """Test BitapMatcher class."""

    def test_exact_whole_text(self) -> None:
        """Should give the perfect score for identical text."""
        result = BitapMatcher("hello").search_in("hello")
        assert result.is_match
        assert result.score == 0.0

    def test_case_insensitive_by_default(self) -> None:
        """Should lowercase pattern and text."""
        result = BitapMatcher("HELLO").search_in("hello")
        assert result.is_match
        assert result.score == 0.0

    def test_case_sensitive(self) -> None:
        """Should respect case when asked to."""
        matcher = BitapMatcher("HELLO", MatchOptions(is_case_sensitive=True, threshold=0.0))
        assert not matcher.search_in("hello").is_match

    def test_substring_scores_above_zero(self) -> None:
        """Should clamp an exact substring match to the minimum score."""
        options = MatchOptions(ignore_location=True)
        result = BitapMatcher("hello", options).search_in("say hello world")
        assert result.is_match
        assert 0 < result.score <= 0.01

    def test_typo_matches(self) -> None:
        """Should tolerate one edit."""
        result = BitapMatcher("helo").search_in("hello")
        assert result.is_match
        assert result.score > 0

    def test_no_match(self) -> None:
        """Should reject unrelated text."""
        result = BitapMatcher("xyz").search_in("abc")
        assert not result.is_match
        assert result.score == 1.0

    def test_empty_pattern(self) -> None:
        """Should never match with an empty pattern."""
        result = BitapMatcher("").search_in("anything")
        assert not result.is_match

    def test_zero_threshold_rejects_edits(self) -> None:
        """Should accept only exact occurrences at threshold zero."""
        matcher = BitapMatcher("helo", MatchOptions(threshold=0.0, ignore_location=True))
        assert not matcher.search_in("hello").is_match
        assert matcher.search_in("helo world").is_match

    def test_score_grows_with_errors(self) -> None:
        """Should score more edits worse."""
        options = MatchOptions(ignore_location=True, threshold=0.8)
        matcher = BitapMatcher("abcdef", options)
        scores = [matcher.search_in(text).score for text in ("abcdef!", "abcxef!", "abxxef!")]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]

    def test_location_penalty(self) -> None:
        """Should score a far-away match worse than a near one."""
        matcher = BitapMatcher("note")
        near = matcher.search_in("note " + "x" * 40)
        far = matcher.search_in("x" * 20 + " note")
        assert near.is_match and far.is_match
        assert near.score < far.score

    def test_include_matches(self) -> None:
        """Should report matched ranges when requested."""
        options = MatchOptions(include_matches=True, ignore_location=True)
        result = BitapMatcher("hello", options).search_in("say hello")
        assert result.indices == [(4, 8)]

    def test_long_pattern_chunks(self) -> None:
        """Should split patterns longer than a machine word."""
        pattern = "abcdefghij" * 4
        matcher = BitapMatcher(pattern, MatchOptions(ignore_location=True))
        assert len(matcher.chunks) == 2
        assert matcher.chunks[-1].start_index == len(pattern) - MAX_BITS
        assert matcher.search_in("-" + pattern).is_match
