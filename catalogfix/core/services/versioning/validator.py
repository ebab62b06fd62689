"""
L1 Domain — Version token plausibility gate (pure).

Decides whether an extracted token may be used as a version.  Nothing
downstream (canonicalization, URL substitution, persistence) may act
on a token that did not pass ``is_plausible``.
No I/O.
"""

from __future__ import annotations

import re

from catalogfix.core.models.version import TokenKind, VersionToken

_DIGITS = re.compile(r"\d+")
_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_DATE_COMMIT = re.compile(r"\d{4}-\d{2}-\d{2}-[0-9a-fA-F]{7,}")
_HEX = re.compile(r"[0-9a-fA-F]{7,40}")
_DIGIT_FRAMED = re.compile(r"\d[\d._-]*\d")

# Shapes used only for classification (not acceptance)
_SEMVER_LIKE = re.compile(r"[vV]?\.?\d+(?:\.\d+)+.*")
_VENDOR_TAG = re.compile(r"[A-Za-z][A-Za-z._-]*\d+[A-Za-z]*")


def is_plausible(token: VersionToken | str | None) -> bool:
    """Return True if ``token`` looks like a release version.

    Accepted shapes:
        - pure digits (``11937``)
        - ISO date (``2024-05-01``)
        - ISO date + commit (``2024-05-01-3d6627c``)
        - bare hex of 7..40 chars (``3d6627c``)
        - digit-framed runs of digits, ``.``, ``-``, ``_`` (``1.2.3``, ``10_6``)

    Everything else is rejected, notably bare words (``couldn't``) and
    short letter/digit mixes (``2b``, ``x6``) that free-text scanning
    tends to pick up.
    """
    if token is None:
        return False
    raw = token.raw if isinstance(token, VersionToken) else str(token)
    raw = raw.strip()
    if not raw:
        return False

    return bool(
        _DIGITS.fullmatch(raw)
        or _DATE.fullmatch(raw)
        or _DATE_COMMIT.fullmatch(raw)
        or _HEX.fullmatch(raw)
        or _DIGIT_FRAMED.fullmatch(raw)
    )


def classify(raw: str) -> TokenKind:
    """Assign a TokenKind to a raw token string."""
    raw = raw.strip()
    if _DIGITS.fullmatch(raw):
        return TokenKind.NUMERIC_BUILD
    if _DATE_COMMIT.fullmatch(raw):
        return TokenKind.DATE_COMMIT
    if _DATE.fullmatch(raw):
        return TokenKind.DATE
    if _HEX.fullmatch(raw) and re.search(r"[a-fA-F]", raw):
        return TokenKind.COMMIT_HASH
    if _SEMVER_LIKE.fullmatch(raw):
        return TokenKind.SEMVER
    if _VENDOR_TAG.fullmatch(raw):
        return TokenKind.VENDOR_CUSTOM
    return TokenKind.FALLBACK


def make_token(raw: str) -> VersionToken:
    """Build a classified VersionToken from a raw string."""
    raw = raw.strip()
    return VersionToken(raw=raw, kind=classify(raw))
