"""
GitHub release API.

Reads ``/repos/{owner}/{repo}/releases`` — the same endpoints the
install resolver uses, wrapped in the ReleaseAPI contract.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from catalogfix.adapters.base import ReleaseAPI
from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models.catalog import RepoRef
from catalogfix.core.models.release import Release, ReleaseAsset

logger = logging.getLogger(__name__)

_ACCEPT = {"Accept": "application/vnd.github+json"}


def _api_base(repo: RepoRef) -> str:
    if repo.host == "github.com":
        return f"https://api.github.com/repos/{repo.path}"
    # GitHub Enterprise
    return f"https://{repo.host}/api/v3/repos/{repo.path}"


def parse_release(data: dict[str, Any]) -> Release:
    """Convert a GitHub release payload into a Release."""
    prerelease = bool(data.get("prerelease"))
    assets = tuple(
        ReleaseAsset(
            name=a.get("name", ""),
            url=a.get("browser_download_url", ""),
            size=int(a.get("size") or 0),
            digest=a.get("digest") or None,
            prerelease=prerelease,
        )
        for a in data.get("assets", [])
        if a.get("browser_download_url")
    )
    return Release(
        tag=data.get("tag_name", ""),
        name=data.get("name") or "",
        prerelease=prerelease,
        draft=bool(data.get("draft")),
        assets=assets,
    )


class GitHubReleaseAPI(ReleaseAPI):
    """Release lookups against api.github.com (or an Enterprise host)."""

    def __init__(self, http: HttpClient):
        self._http = http

    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        url = f"{_api_base(repo)}/releases/tags/{quote(tag, safe='')}"
        try:
            data = self._http.get_json(url, _ACCEPT)
        except UpstreamUnavailable as e:
            if e.not_found:
                return None
            raise
        return parse_release(data) if isinstance(data, dict) else None

    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        url = f"{_api_base(repo)}/releases?per_page={max(1, min(n, 100))}"
        try:
            data = self._http.get_json(url, _ACCEPT)
        except UpstreamUnavailable as e:
            if e.not_found:
                return []
            raise
        if not isinstance(data, list):
            logger.warning("Unexpected release listing for %s: %s", repo, type(data).__name__)
            return []
        return [parse_release(item) for item in data[:n] if isinstance(item, dict)]

    def latest_release(self, repo: RepoRef) -> Release | None:
        # /releases/latest already skips drafts and prereleases
        try:
            data = self._http.get_json(f"{_api_base(repo)}/releases/latest", _ACCEPT)
        except UpstreamUnavailable as e:
            if e.not_found:
                return None
            raise
        return parse_release(data) if isinstance(data, dict) else None
