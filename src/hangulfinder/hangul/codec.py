"""Hangul syllable decomposition and reassembly.

Composed syllable blocks (U+AC00..U+D7A3) are split arithmetically into
leading consonant, vowel and optional trailing consonant. Compound vowels and
compound trailing consonants are further split into their two simple jamo so
that every block yields two to five atomic units. Anything outside the script
passes through unchanged.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, List, Sequence

HANGUL_OFFSET = 0xAC00
HANGUL_LAST = 0xD7A3

LEADING = (
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ", "ㅅ",
    "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)
VOWELS = (
    "ㅏ", "ㅐ", "ㅑ", "ㅒ", "ㅓ", "ㅔ", "ㅕ", "ㅖ", "ㅗ", "ㅘ", "ㅙ",
    "ㅚ", "ㅛ", "ㅜ", "ㅝ", "ㅞ", "ㅟ", "ㅠ", "ㅡ", "ㅢ", "ㅣ",
)
# Index 0 means "no trailing consonant".
TRAILING = (
    "", "ㄱ", "ㄲ", "ㄳ", "ㄴ", "ㄵ", "ㄶ", "ㄷ", "ㄹ", "ㄺ", "ㄻ", "ㄼ", "ㄽ", "ㄾ",
    "ㄿ", "ㅀ", "ㅁ", "ㅂ", "ㅄ", "ㅅ", "ㅆ", "ㅇ", "ㅈ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)

COMPOUND_VOWELS = {
    ("ㅗ", "ㅏ"): "ㅘ",
    ("ㅗ", "ㅐ"): "ㅙ",
    ("ㅗ", "ㅣ"): "ㅚ",
    ("ㅜ", "ㅓ"): "ㅝ",
    ("ㅜ", "ㅔ"): "ㅞ",
    ("ㅜ", "ㅣ"): "ㅟ",
    ("ㅡ", "ㅣ"): "ㅢ",
}
COMPOUND_TRAILING = {
    ("ㄱ", "ㅅ"): "ㄳ",
    ("ㄴ", "ㅈ"): "ㄵ",
    ("ㄴ", "ㅎ"): "ㄶ",
    ("ㄹ", "ㄱ"): "ㄺ",
    ("ㄹ", "ㅁ"): "ㄻ",
    ("ㄹ", "ㅂ"): "ㄼ",
    ("ㄹ", "ㅅ"): "ㄽ",
    ("ㄹ", "ㅌ"): "ㄾ",
    ("ㄹ", "ㅍ"): "ㄿ",
    ("ㄹ", "ㅎ"): "ㅀ",
    ("ㅂ", "ㅅ"): "ㅄ",
}

_LEADING_INDEX = {char: idx for idx, char in enumerate(LEADING)}
_VOWEL_INDEX = {char: idx for idx, char in enumerate(VOWELS)}
_TRAILING_INDEX = {char: idx for idx, char in enumerate(TRAILING) if char}

_SPLIT = {joined: pair for pair, joined in COMPOUND_VOWELS.items()}
_SPLIT.update({joined: pair for pair, joined in COMPOUND_TRAILING.items()})

# Every consonant in the compatibility jamo block, simple or compound.
_CONSONANTS = frozenset(LEADING) | frozenset(_TRAILING_INDEX)


def _split_unit(char: str) -> List[str]:
    pair = _SPLIT.get(char)
    return list(pair) if pair else [char]


def _is_block_code(code: int) -> bool:
    return HANGUL_OFFSET <= code <= HANGUL_LAST


def is_complete(char: str) -> bool:
    """Return True for a composed syllable block."""
    return bool(char) and _is_block_code(ord(char[0]))


def is_consonant(char: str) -> bool:
    return bool(char) and char[0] in _CONSONANTS


def is_vowel(char: str) -> bool:
    return bool(char) and char[0] in _VOWEL_INDEX


def is_leading(char: str) -> bool:
    return bool(char) and char[0] in _LEADING_INDEX


def is_trailing(char: str) -> bool:
    return bool(char) and char[0] in _TRAILING_INDEX


def is_complete_all(text: str) -> bool:
    return isinstance(text, str) and all(is_complete(char) for char in text)


def is_consonant_all(text: str) -> bool:
    return isinstance(text, str) and all(is_consonant(char) for char in text)


def is_vowel_all(text: str) -> bool:
    return isinstance(text, str) and all(is_vowel(char) for char in text)


def is_leading_all(text: str) -> bool:
    return isinstance(text, str) and all(is_leading(char) for char in text)


def is_trailing_all(text: str) -> bool:
    return isinstance(text, str) and all(is_trailing(char) for char in text)


def _decompose_char(char: str) -> List[str]:
    code = ord(char)
    if _is_block_code(code):
        code -= HANGUL_OFFSET
        trailing = code % 28
        vowel = (code - trailing) // 28 % 21
        leading = (code - trailing) // 28 // 21
        units = [LEADING[leading], *_split_unit(VOWELS[vowel])]
        if trailing:
            units.extend(_split_unit(TRAILING[trailing]))
        return units
    if char in _CONSONANTS or char in _VOWEL_INDEX:
        return _split_unit(char)
    return [char]


def decompose(text: str | Sequence[str], grouped: bool = False) -> list:
    """Split text into atomic jamo units.

    With ``grouped`` the result holds one list of units per input character,
    otherwise a flat list of units.
    """
    if text is None:
        raise TypeError("decompose() argument cannot be None")
    if not isinstance(text, str):
        text = "".join(text)

    if grouped:
        return [_decompose_char(char) for char in text]

    units: List[str] = []
    for char in text:
        units.extend(_decompose_char(char))
    return units


def decompose_to_string(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return "".join(decompose(text))


def _block(leading: str, vowel: str, trailing: str | None = None) -> str:
    code = (_LEADING_INDEX[leading] * 21 + _VOWEL_INDEX[vowel]) * 28
    if trailing:
        code += _TRAILING_INDEX[trailing]
    return chr(code + HANGUL_OFFSET)


class ComposeState(IntEnum):
    AWAIT_LEADING = 0
    AWAIT_VOWEL = 1
    AWAIT_TRAILING = 2
    ONE_TRAILING = 3
    VOWEL_ONLY = 4
    TWO_LEADING = 5


class _Assembler:
    """Left-to-right reassembly of a unit sequence into syllable blocks."""

    def __init__(self, units: Sequence[str]) -> None:
        self.units = units
        self.output: List[str] = []
        # Index of the last unit already written to ``output``.
        self.done = -1
        self.trailing_joined = False

    def flush(self, index: int) -> None:
        """Turn units ``done + 1 .. index`` into characters, one block at a time."""
        self.trailing_joined = False
        start = self.done + 1
        if start > index:
            return

        units = self.units
        first = units[start]
        second = units[start + 1] if start < index else None
        end = start

        if first in _VOWEL_INDEX:
            joined = COMPOUND_VOWELS.get((first, second))
            if joined:
                end = start + 1
            self.output.append(joined or first)
        elif first not in _LEADING_INDEX or second is None:
            self.output.append(first)
        elif second in _VOWEL_INDEX:
            end, char = self._block_from(start, index)
            self.output.append(char)
        else:
            # Two consonants in a row form a bare compound consonant.
            joined = COMPOUND_TRAILING.get((first, second))
            if joined:
                end = start + 1
            self.output.append(joined or first)

        self.done = end
        if end < index:
            self.flush(index)

    def _block_from(self, start: int, index: int) -> tuple[int, str]:
        units = self.units
        pos = start + 1
        vowel = units[pos]
        if pos < index and (vowel, units[pos + 1]) in COMPOUND_VOWELS:
            pos += 1
            vowel = COMPOUND_VOWELS[(vowel, units[pos])]

        trailing = None
        if pos < index and units[pos + 1] in _TRAILING_INDEX:
            pos += 1
            trailing = units[pos]
            if pos < index and (trailing, units[pos + 1]) in COMPOUND_TRAILING:
                pos += 1
                trailing = COMPOUND_TRAILING[(trailing, units[pos])]
        return pos, _block(units[start], vowel, trailing)

    def run(self) -> str:
        state = ComposeState.AWAIT_LEADING
        previous = None
        index = -1

        for index, unit in enumerate(self.units):
            leading = unit in _LEADING_INDEX
            vowel = unit in _VOWEL_INDEX
            trailing = unit in _TRAILING_INDEX

            if not (leading or vowel or trailing):
                self.flush(index - 1)
                self.flush(index)
                state = ComposeState.AWAIT_LEADING
                continue

            if state == ComposeState.AWAIT_LEADING:
                if leading:
                    state = ComposeState.AWAIT_VOWEL
                elif vowel:
                    state = ComposeState.VOWEL_ONLY
            elif state == ComposeState.AWAIT_VOWEL:
                if vowel:
                    state = ComposeState.AWAIT_TRAILING
                elif (previous, unit) in COMPOUND_TRAILING:
                    # Either a bare compound consonant or a leading consonant
                    # followed by the next block; decided by the next unit.
                    state = ComposeState.TWO_LEADING
                else:
                    self.flush(index - 1)
            elif state == ComposeState.AWAIT_TRAILING:
                if trailing:
                    state = ComposeState.ONE_TRAILING
                elif vowel:
                    if (previous, unit) not in COMPOUND_VOWELS:
                        self.flush(index - 1)
                        state = ComposeState.VOWEL_ONLY
                else:
                    self.flush(index - 1)
                    state = ComposeState.AWAIT_VOWEL
            elif state == ComposeState.ONE_TRAILING:
                if trailing:
                    if not self.trailing_joined and (previous, unit) in COMPOUND_TRAILING:
                        # One join allowed; the unit may still start the next block.
                        self.trailing_joined = True
                    else:
                        self.flush(index - 1)
                        state = ComposeState.AWAIT_VOWEL
                elif leading:
                    self.flush(index - 1)
                    state = ComposeState.AWAIT_VOWEL
                elif vowel:
                    # The last consonant leads the new block.
                    self.flush(index - 2)
                    state = ComposeState.AWAIT_TRAILING
            elif state == ComposeState.VOWEL_ONLY:
                if vowel:
                    if (previous, unit) in COMPOUND_VOWELS:
                        self.flush(index)
                        state = ComposeState.AWAIT_LEADING
                    else:
                        self.flush(index - 1)
                else:
                    self.flush(index - 1)
                    state = ComposeState.AWAIT_VOWEL
            elif state == ComposeState.TWO_LEADING:
                if vowel:
                    self.flush(index - 2)
                    state = ComposeState.AWAIT_TRAILING
                else:
                    self.flush(index - 1)
                    state = ComposeState.AWAIT_VOWEL

            previous = unit

        self.flush(index)
        return "".join(self.output)


def compose(units: str | Sequence[str]) -> str:
    """Reassemble atomic units (or text, decomposed first) into syllable blocks."""
    if isinstance(units, str):
        units = decompose(units)
    return _Assembler(list(units)).run()


def initial_consonants(text: str) -> str:
    """Replace every composed block with its leading consonant."""
    chars = []
    for char in text:
        if is_complete(char):
            chars.append(LEADING[(ord(char) - HANGUL_OFFSET) // 28 // 21])
        else:
            chars.append(char)
    return "".join(chars)


def search(haystack: str, needle: str) -> int:
    """Offset of the decomposed needle inside the decomposed haystack, or -1."""
    return decompose_to_string(haystack).find(decompose_to_string(needle))


def contains_decomposed(haystack: str, needle: str) -> bool:
    return search(haystack, needle) > -1


def range_search(haystack: str, needle: str) -> list[tuple[int, int]]:
    """Character ranges of ``haystack`` whose decomposition holds ``needle``."""
    if not needle:
        return []

    flat = decompose_to_string(haystack)
    pattern = decompose_to_string(needle).lower()
    flat_lower = flat.lower()
    # Cumulative unit counts map a decomposed offset back to a character.
    boundaries: List[int] = []
    total = 0
    for units in decompose(haystack, grouped=True):
        total += len(units)
        boundaries.append(total)

    def char_at(offset: int) -> int:
        for idx, boundary in enumerate(boundaries):
            if offset < boundary:
                return idx
        return len(boundaries) - 1

    ranges = []
    start = flat_lower.find(pattern)
    while start > -1:
        ranges.append((char_at(start), char_at(start + len(pattern) - 1)))
        start = flat_lower.find(pattern, start + len(pattern))
    return ranges


def ends_with_consonant(text: str | Iterable[str]) -> bool:
    if not isinstance(text, str):
        text = "".join(text)
    if not text:
        return False
    last = text[-1]
    if is_complete(last):
        return (ord(last) - HANGUL_OFFSET) % 28 > 0
    return is_consonant(last)


def ends_with(text: str, target: str) -> bool:
    units = decompose(text)
    return bool(units) and units[-1] == target
