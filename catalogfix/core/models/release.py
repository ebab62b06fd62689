"""
Release models — read-only views of what an upstream forge publishes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    size: int = 0
    digest: str | None = None       # "sha256:<hex>" when the forge reports one
    prerelease: bool = False        # copied from the parent release


class Release(BaseModel):
    """A tagged publication on a forge."""

    model_config = ConfigDict(frozen=True)

    tag: str
    name: str = ""
    prerelease: bool = False
    draft: bool = False
    assets: tuple[ReleaseAsset, ...] = Field(default_factory=tuple)

    # How the resolver found this release: tag, v-tag, exact, substring, latest
    matched_by: str = "tag"

    @property
    def stable(self) -> bool:
        """Neither a draft nor a prerelease."""
        return not (self.draft or self.prerelease)

    def with_match(self, matched_by: str) -> Release:
        return self.model_copy(update={"matched_by": matched_by})
