"""
Version token model — a raw release identifier plus its shape.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class TokenKind(StrEnum):
    """Shapes a release identifier can take."""

    DATE_COMMIT = "date_commit"      # 2024-05-01-3d6627c
    DATE = "date"                    # 2024-05-01
    COMMIT_HASH = "commit_hash"      # 3d6627c
    SEMVER = "semver"                # 1.2.3, 10.6b, 2.0.0-rc1
    NUMERIC_BUILD = "numeric_build"  # 11937
    VENDOR_CUSTOM = "vendor_custom"  # mame0282
    FALLBACK = "fallback"            # anything else picked from free text


class VersionToken(BaseModel):
    """An extracted version token.

    Immutable: canonicalization produces a new string, it never
    rewrites the token.
    """

    model_config = ConfigDict(frozen=True)

    raw: str
    kind: TokenKind = TokenKind.FALLBACK

    def __str__(self) -> str:
        return self.raw
