"""Bit-parallel approximate string matching (Bitap)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

# Machine word size; longer patterns are split into chunks of this length.
MAX_BITS = 32

# Exact matches inside the bit scan never score below this.
MIN_SCORE = 0.001


@dataclass(frozen=True, slots=True)
class MatchOptions:
    """Tuning knobs shared by the fuzzy matchers.

    ``threshold`` is the highest accepted score (0 exact only, 1 anything).
    ``distance`` is how far from ``location`` an exact letter match may sit
    before it scores as a total mismatch. ``ignore_location`` drops the
    proximity term entirely.
    """

    location: int = 0
    threshold: float = 0.6
    distance: int = 100
    include_matches: bool = False
    find_all_matches: bool = False
    min_match_char_length: int = 1
    is_case_sensitive: bool = False
    ignore_location: bool = False


@dataclass(slots=True)
class MatchResult:
    is_match: bool
    score: float
    indices: Optional[List[tuple[int, int]]] = None


def compute_score(
    pattern: str,
    *,
    errors: int = 0,
    current_location: int = 0,
    expected_location: int = 0,
    distance: int = 100,
    ignore_location: bool = False,
) -> float:
    accuracy = errors / len(pattern)
    if ignore_location:
        return accuracy

    proximity = abs(expected_location - current_location)
    if not distance:
        return 1.0 if proximity else accuracy

    return accuracy + proximity / distance


def mask_to_indices(match_mask: List[int], min_match_char_length: int = 1) -> List[tuple[int, int]]:
    """Collapse a per-character match mask into inclusive index ranges."""
    indices = []
    start = -1
    for idx, matched in enumerate(match_mask):
        if matched and start == -1:
            start = idx
        elif not matched and start != -1:
            if idx - start >= min_match_char_length:
                indices.append((start, idx - 1))
            start = -1

    if match_mask and match_mask[-1] and len(match_mask) - start >= min_match_char_length:
        indices.append((start, len(match_mask) - 1))
    return indices


def pattern_alphabet(pattern: str) -> Dict[str, int]:
    """Bit mask per character, highest bit for the first pattern position."""
    alphabet: Dict[str, int] = {}
    length = len(pattern)
    for idx, char in enumerate(pattern):
        alphabet[char] = alphabet.get(char, 0) | (1 << (length - idx - 1))
    return alphabet


def bitap_search(
    text: str,
    pattern: str,
    alphabet: Dict[str, int],
    options: MatchOptions,
    *,
    location: Optional[int] = None,
) -> MatchResult:
    """Search one pattern chunk (at most ``MAX_BITS`` long) in ``text``."""
    if len(pattern) > MAX_BITS:
        raise ValueError(f"Pattern length exceeds max of {MAX_BITS}.")

    distance = options.distance
    ignore_location = options.ignore_location
    pattern_len = len(pattern)
    text_len = len(text)
    if location is None:
        location = options.location
    expected = max(0, min(location, text_len))

    current_threshold = options.threshold
    best_location = expected

    compute_matches = options.min_match_char_length > 1 or options.include_matches
    match_mask = [0] * text_len if compute_matches else []

    def score_at(errors: int, current: int) -> float:
        return compute_score(
            pattern,
            errors=errors,
            current_location=current,
            expected_location=expected,
            distance=distance,
            ignore_location=ignore_location,
        )

    # Exact occurrences first; they tighten the threshold cheaply.
    index = text.find(pattern, best_location)
    while index > -1:
        current_threshold = min(score_at(0, index), current_threshold)
        best_location = index + pattern_len
        if compute_matches:
            for offset in range(pattern_len):
                match_mask[index + offset] = 1
        index = text.find(pattern, best_location)

    best_location = -1
    last_bits: List[int] = []
    final_score = 1.0
    bin_max = pattern_len + text_len
    mask = 1 << (pattern_len - 1)

    for errors in range(pattern_len):
        # Binary search for how far from the expected location this error
        # level may stray and still beat the current threshold.
        bin_min = 0
        bin_mid = bin_max
        while bin_min < bin_mid:
            if score_at(errors, expected + bin_mid) <= current_threshold:
                bin_min = bin_mid
            else:
                bin_max = bin_mid
            bin_mid = (bin_max - bin_min) // 2 + bin_min

        bin_max = bin_mid

        start = max(1, expected - bin_mid + 1)
        if options.find_all_matches:
            finish = text_len
        else:
            finish = min(expected + bin_mid, text_len) + pattern_len

        # ``finish`` never grows between error levels, so ``last_bits`` is
        # always long enough for the reads below.
        bits = [0] * (finish + 2)
        bits[finish + 1] = (1 << errors) - 1

        # ``start`` may move up while scanning, so it is re-read every step.
        j = finish + 1
        while j > start:
            j -= 1
            current = j - 1
            char_match = alphabet.get(text[current], 0) if current < text_len else 0

            if compute_matches and current < text_len:
                match_mask[current] = 1 if char_match else 0

            bits[j] = ((bits[j + 1] << 1) | 1) & char_match
            if errors:
                bits[j] |= ((last_bits[j + 1] | last_bits[j]) << 1) | 1 | last_bits[j + 1]

            if bits[j] & mask:
                final_score = score_at(errors, current)
                if final_score <= current_threshold:
                    current_threshold = final_score
                    best_location = current
                    if best_location <= expected:
                        break
                    # Do not stray further from the expected location than this.
                    start = max(1, 2 * expected - best_location)

        # No better match is possible with one more error.
        if score_at(errors + 1, expected) > current_threshold:
            break

        last_bits = bits

    result = MatchResult(is_match=best_location >= 0, score=max(MIN_SCORE, final_score))

    if compute_matches:
        indices = mask_to_indices(match_mask, options.min_match_char_length)
        if not indices:
            result.is_match = False
        elif options.include_matches:
            result.indices = indices

    return result


@dataclass(frozen=True, slots=True)
class _Chunk:
    pattern: str
    alphabet: Dict[str, int]
    start_index: int


class BitapMatcher:
    """Fuzzy matcher for one pattern, reusable across many texts."""

    def __init__(self, pattern: str, options: MatchOptions | None = None) -> None:
        self.options = options or MatchOptions()
        self.pattern = pattern if self.options.is_case_sensitive else pattern.lower()
        self.chunks: List[_Chunk] = []

        length = len(self.pattern)
        if not length:
            return

        if length <= MAX_BITS:
            self._add_chunk(self.pattern, 0)
            return

        remainder = length % MAX_BITS
        end = length - remainder
        for start in range(0, end, MAX_BITS):
            self._add_chunk(self.pattern[start : start + MAX_BITS], start)
        if remainder:
            # The tail chunk overlaps the previous one to keep a full word.
            start = length - MAX_BITS
            self._add_chunk(self.pattern[start:], start)

    def _add_chunk(self, pattern: str, start_index: int) -> None:
        self.chunks.append(_Chunk(pattern, pattern_alphabet(pattern), start_index))

    def search_in(self, text: str) -> MatchResult:
        options = self.options
        if not options.is_case_sensitive:
            text = text.lower()

        if not self.chunks:
            return MatchResult(is_match=False, score=1.0)

        if self.pattern == text:
            result = MatchResult(is_match=True, score=0.0)
            if options.include_matches:
                result.indices = [(0, len(text) - 1)]
            return result

        all_indices: List[tuple[int, int]] = []
        total_score = 0.0
        has_matches = False

        for chunk in self.chunks:
            chunk_result = bitap_search(
                text,
                chunk.pattern,
                chunk.alphabet,
                options,
                location=options.location + chunk.start_index,
            )
            if chunk_result.is_match:
                has_matches = True
                if chunk_result.indices:
                    all_indices.extend(chunk_result.indices)
            total_score += chunk_result.score

        result = MatchResult(
            is_match=has_matches,
            score=total_score / len(self.chunks) if has_matches else 1.0,
        )
        if has_matches and options.include_matches:
            result.indices = all_indices
        return result
