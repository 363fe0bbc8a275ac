"""Extended query grammar on top of the Bitap matcher.

| Token       | Kind           | Matches texts that                     |
| ----------- | -------------- | -------------------------------------- |
| `jscript`   | fuzzy          | fuzzy match `jscript`                  |
| `=scheme`   | exact          | are exactly `scheme`                   |
| `'python`   | include        | include `python`                       |
| `!ruby`     | inverse-exact  | do not include `ruby`                  |
| `^java`     | prefix         | start with `java`                      |
| `!^erlang`  | inverse-prefix | do not start with `erlang`             |
| `.js$`      | suffix         | end with `.js`                         |
| `!.go$`     | inverse-suffix | do not end with `.go`                  |

Whitespace separates AND-ed tokens (quoted tokens keep their spaces) and a
single ``|`` separates OR branches: ``^core go$ | rb$ | py$``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from hangulfinder.match.bitap import BitapMatcher, MatchOptions, MatchResult

OR_TOKEN = "|"
# Split on spaces that are not inside double quotes.
SPACE_RE = re.compile(r' +(?=(?:[^"]*"[^"]*")*[^"]*$)')


class TokenKind(str, Enum):
    EXACT = "exact"
    INVERSE_EXACT = "inverse-exact"
    PREFIX = "prefix-exact"
    INVERSE_PREFIX = "inverse-prefix-exact"
    SUFFIX = "suffix-exact"
    INVERSE_SUFFIX = "inverse-suffix-exact"
    INCLUDE = "include"
    FUZZY = "fuzzy"


@dataclass(slots=True)
class Token:
    kind: TokenKind
    pattern: str
    fuzzy: Optional[BitapMatcher] = field(default=None, repr=False)
    options: MatchOptions = field(default_factory=MatchOptions, repr=False, compare=False)


# Recognition order matters: the first kind whose expression matches wins.
TOKEN_TABLE: Tuple[Tuple[TokenKind, re.Pattern[str], re.Pattern[str]], ...] = (
    (TokenKind.EXACT, re.compile(r'^="(.*)"$'), re.compile(r"^=(.*)$")),
    (TokenKind.INCLUDE, re.compile(r"^'\"(.*)\"$"), re.compile(r"^'(.*)$")),
    (TokenKind.PREFIX, re.compile(r'^\^"(.*)"$'), re.compile(r"^\^(.*)$")),
    (TokenKind.INVERSE_PREFIX, re.compile(r'^!\^"(.*)"$'), re.compile(r"^!\^(.*)$")),
    (TokenKind.INVERSE_SUFFIX, re.compile(r'^!"(.*)"\$$'), re.compile(r"^!(.*)\$$")),
    (TokenKind.SUFFIX, re.compile(r'^"(.*)"\$$'), re.compile(r"^(.*)\$$")),
    (TokenKind.INVERSE_EXACT, re.compile(r'^!"(.*)"$'), re.compile(r"^!(.*)$")),
    (TokenKind.FUZZY, re.compile(r'^"(.*)"$'), re.compile(r"^(.*)$")),
)


def _make_token(kind: TokenKind, pattern: str, options: MatchOptions) -> Token:
    fuzzy = BitapMatcher(pattern, options) if kind is TokenKind.FUZZY else None
    return Token(kind=kind, pattern=pattern, fuzzy=fuzzy, options=options)


def _recognize(item: str, options: MatchOptions) -> Optional[Token]:
    for quoted in (True, False):
        for kind, multi_re, single_re in TOKEN_TABLE:
            match = (multi_re if quoted else single_re).match(item)
            # An empty capture counts as "no token", as with the quoted form.
            if match and match.group(1):
                return _make_token(kind, match.group(1), options)
    return None


def parse_query(pattern: str, options: MatchOptions | None = None) -> List[List[Token]]:
    """Parse a query into OR branches of AND-ed tokens.

    ``"^core go$ | rb$"`` becomes ``[[^core, go$], [rb$]]``.
    """
    options = options or MatchOptions()
    branches = []
    for branch in pattern.split(OR_TOKEN):
        items = [item for item in SPACE_RE.split(branch.strip()) if item and item.strip()]
        tokens = []
        for item in items:
            token = _recognize(item, options)
            if token is not None:
                tokens.append(token)
        branches.append(tokens)
    return branches


def _match_exact(token: Token, text: str) -> MatchResult:
    is_match = text == token.pattern
    return MatchResult(is_match, 0.0 if is_match else 1.0, [(0, len(token.pattern) - 1)])


def _match_inverse_exact(token: Token, text: str) -> MatchResult:
    is_match = token.pattern not in text
    return MatchResult(is_match, 0.0 if is_match else 1.0, [(0, len(text) - 1)])


def _match_prefix(token: Token, text: str) -> MatchResult:
    is_match = text.startswith(token.pattern)
    return MatchResult(is_match, 0.0 if is_match else 1.0, [(0, len(token.pattern) - 1)])


def _match_inverse_prefix(token: Token, text: str) -> MatchResult:
    is_match = not text.startswith(token.pattern)
    return MatchResult(is_match, 0.0 if is_match else 1.0, [(0, len(text) - 1)])


def _match_suffix(token: Token, text: str) -> MatchResult:
    is_match = text.endswith(token.pattern)
    return MatchResult(
        is_match,
        0.0 if is_match else 1.0,
        [(len(text) - len(token.pattern), len(text) - 1)],
    )


def _match_inverse_suffix(token: Token, text: str) -> MatchResult:
    is_match = not text.endswith(token.pattern)
    return MatchResult(is_match, 0.0 if is_match else 1.0, [(0, len(text) - 1)])


def _match_include(token: Token, text: str) -> MatchResult:
    indices = []
    length = len(token.pattern)
    index = text.find(token.pattern)
    while index > -1:
        indices.append((index, index + length - 1))
        index = text.find(token.pattern, index + length)
    is_match = bool(indices)
    return MatchResult(is_match, 0.0 if is_match else 1.0, indices)


def _match_fuzzy(token: Token, text: str) -> MatchResult:
    if token.fuzzy is None:
        token.fuzzy = BitapMatcher(token.pattern, token.options)
    return token.fuzzy.search_in(text)


EVALUATORS: Dict[TokenKind, Callable[[Token, str], MatchResult]] = {
    TokenKind.EXACT: _match_exact,
    TokenKind.INVERSE_EXACT: _match_inverse_exact,
    TokenKind.PREFIX: _match_prefix,
    TokenKind.INVERSE_PREFIX: _match_inverse_prefix,
    TokenKind.SUFFIX: _match_suffix,
    TokenKind.INVERSE_SUFFIX: _match_inverse_suffix,
    TokenKind.INCLUDE: _match_include,
    TokenKind.FUZZY: _match_fuzzy,
}


def evaluate(token: Token, text: str) -> MatchResult:
    return EVALUATORS[token.kind](token, text)


class ExtendedMatcher:
    """Evaluates a parsed query; the first fully matching OR branch wins."""

    def __init__(self, pattern: str, options: MatchOptions | None = None) -> None:
        self.options = options or MatchOptions()
        self.pattern = pattern if self.options.is_case_sensitive else pattern.lower()
        self.query = parse_query(self.pattern, self.options)

    def search_in(self, text: str) -> MatchResult:
        if not self.query:
            return MatchResult(is_match=False, score=1.0)

        include_matches = self.options.include_matches
        if not self.options.is_case_sensitive:
            text = text.lower()

        for tokens in self.query:
            matched = 0
            total_score = 0.0
            indices: List[tuple[int, int]] = []

            for token in tokens:
                result = evaluate(token, text)
                if not result.is_match:
                    matched = 0
                    break
                matched += 1
                total_score += result.score
                if include_matches and result.indices:
                    indices.extend(result.indices)

            if matched:
                match = MatchResult(is_match=True, score=total_score / matched)
                if include_matches:
                    match.indices = indices
                return match

        return MatchResult(is_match=False, score=1.0)


def create_matcher(
    pattern: str, options: MatchOptions | None = None, *, use_extended_search: bool = False
) -> BitapMatcher | ExtendedMatcher:
    if use_extended_search:
        return ExtendedMatcher(pattern, options)
    return BitapMatcher(pattern, options)
