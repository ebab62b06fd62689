"""
L1 Domain — Version token extraction from free text (pure).

Tool output, HTML pages and JSON fields all end up here.  Extraction
tries an ordered list of shape matchers, most specific first, and
falls back to scanning whitespace-delimited words.

Absence of a match is a normal outcome: ``extract`` returns None and
never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from catalogfix.core.models.version import TokenKind, VersionToken
from catalogfix.core.services.versioning.validator import make_token

# Characters trimmed from words picked up by the fallback scan
_TRAILING_PUNCT = ".,;:!?)]}>\"'`"
_LEADING_PUNCT = "([{<\"'`"


@dataclass(frozen=True)
class ShapeMatcher:
    """One structured token shape: a kind and the pattern that finds it.

    The pattern must expose the token as its ``tok`` group.
    """

    kind: TokenKind
    pattern: re.Pattern[str]

    def search(self, text: str) -> VersionToken | None:
        m = self.pattern.search(text)
        if m is None:
            return None
        return VersionToken(raw=m.group("tok"), kind=self.kind)


SHAPES: tuple[ShapeMatcher, ...] = (
    ShapeMatcher(
        TokenKind.DATE_COMMIT,
        re.compile(r"(?<![\d.])(?P<tok>\d{4}-\d{2}-\d{2}-[0-9a-fA-F]{7,40})(?![\w])"),
    ),
    ShapeMatcher(
        TokenKind.DATE,
        re.compile(r"(?<![\d.])(?P<tok>\d{4}-\d{2}-\d{2})(?!\d)"),
    ),
    ShapeMatcher(
        TokenKind.COMMIT_HASH,
        # 7..40 hex with at least one letter and one digit
        re.compile(
            r"(?<![0-9A-Za-z])"
            r"(?P<tok>(?=[0-9a-f]*[a-f])(?=[0-9a-f]*\d)[0-9a-f]{7,40})"
            r"(?![0-9A-Za-z])"
        ),
    ),
    ShapeMatcher(
        TokenKind.SEMVER,
        re.compile(
            r"(?<![\d.])"
            r"(?P<tok>\d+(?:\.\d+)+"
            r"(?:[-.]?(?:alpha|beta|preview|pre|rc|dev|post|patch|hotfix)(?![A-Za-z])"
            r"\d*(?:\.\d+)?"
            r"|[a-z](?![A-Za-z\d]))?)"
            r"(?!\d)"
        ),
    ),
    ShapeMatcher(
        TokenKind.NUMERIC_BUILD,
        re.compile(r"(?<![\w.])(?P<tok>\d{2,})(?!\w|\.\d)"),
    ),
)


def _scan_words(text: str) -> VersionToken | None:
    """Fallback: first word with a digit at its start or end."""
    for word in text.split():
        word = word.rstrip(_TRAILING_PUNCT).lstrip(_LEADING_PUNCT)
        if word and (word[0].isdigit() or word[-1].isdigit()):
            return make_token(word)
    return None


def extract(text: str | None) -> VersionToken | None:
    """Pull a candidate version token out of ``text``.

    Returns the first match of the first shape that matches anywhere in
    the text, else the fallback word scan, else None.
    """
    if not text or not isinstance(text, str):
        return None

    for shape in SHAPES:
        token = shape.search(text)
        if token is not None:
            return token

    return _scan_words(text)


def extract_reported(text: str | None) -> VersionToken | None:
    """Extract from a version detector's report.

    Detectors that use a capture group report a single bare word.  When
    the structured shapes find nothing in such a word, the word itself
    is the candidate (and the validator decides its fate).  Multi-word
    output goes through ``extract`` unchanged.
    """
    if not text or not isinstance(text, str):
        return None
    stripped = text.strip()
    token = extract(stripped)
    if token is not None:
        return token
    if stripped and len(stripped.split()) == 1:
        return make_token(stripped)
    return None
