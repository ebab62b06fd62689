"""
L3 Detection — Release resolution (read-only network).

Finds the upstream release that corresponds to a target version.
Exact tag lookups come first; when the tag is absent, recent releases
are scanned by tag equality, then by substring, and finally the newest
stable release is taken as a low-confidence fallback.

Forge failures never escape: they are logged and reported as "no
release", so the driver can classify the outcome instead of crashing.
"""

from __future__ import annotations

import logging

from catalogfix.adapters.base import ReleaseAPI
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models.catalog import RepoRef
from catalogfix.core.models.release import Release

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 10


def _tag_variants(version: str) -> list[str]:
    """``1.2`` → ``["1.2", "v1.2"]``; ``v1.2`` → ``["v1.2", "1.2"]``."""
    if version[:1] in ("v", "V"):
        return [version, version[1:]]
    return [version, f"v{version}"]


class AssetResolver:
    """Resolve a repository + version to a Release.

    Args:
        api: Forge release API.
        recent_limit: How many recent releases the fallback scan inspects.
    """

    def __init__(self, api: ReleaseAPI, recent_limit: int = DEFAULT_RECENT_LIMIT):
        self._api = api
        self._recent_limit = recent_limit

    def resolve_release(self, repo: RepoRef, target_version: str) -> Release | None:
        """Release tagged ``target_version`` (or ``v<target_version>``).

        Falls back to ``find_assets_by_pattern`` when neither tag exists.
        """
        if not target_version:
            return None

        for i, tag in enumerate(_tag_variants(target_version)):
            try:
                release = self._api.get_release_by_tag(repo, tag)
            except UpstreamUnavailable as e:
                logger.warning("Release lookup %s@%s failed: %s", repo, tag, e)
                return None
            if release is not None:
                logger.debug("Resolved %s@%s by tag", repo, tag)
                return release.with_match("tag" if i == 0 else "v-tag")

        return self.find_assets_by_pattern(repo, target_version)

    def find_assets_by_pattern(self, repo: RepoRef, target_version: str) -> Release | None:
        """Scan recent releases for the best candidate.

        Order: exact tag → substring of tag or name → newest stable.
        """
        try:
            releases = self._api.list_recent_releases(repo, self._recent_limit)
        except UpstreamUnavailable as e:
            logger.warning("Release listing for %s failed: %s", repo, e)
            return None

        if not releases:
            logger.info("No releases listed for %s", repo)
            return None

        variants = _tag_variants(target_version)
        for release in releases:
            if release.tag in variants:
                return release.with_match("exact")

        bare = variants[0].lstrip("vV") or variants[0]
        for release in releases:
            if bare in release.tag or (release.name and bare in release.name):
                logger.info(
                    "Matched %s@%s by substring in release '%s'",
                    repo, target_version, release.tag,
                )
                return release.with_match("substring")

        for release in releases:
            if release.stable:
                logger.warning(
                    "No release of %s matches %s — falling back to latest stable '%s' "
                    "(low confidence)",
                    repo, target_version, release.tag,
                )
                return release.with_match("latest")

        return None

    def latest_release(self, repo: RepoRef) -> Release | None:
        """Newest stable release, or None when the forge is unavailable."""
        try:
            release = self._api.latest_release(repo)
        except UpstreamUnavailable as e:
            logger.warning("Latest-release lookup for %s failed: %s", repo, e)
            return None
        return release.with_match("latest") if release else None
