"""
GitLab release API (``/api/v4/projects/:id/releases``).

GitLab has no draft releases; ``upcoming_release`` maps to prerelease.
Assets are the release's links — GitLab doesn't report sizes for them.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from catalogfix.adapters.base import ReleaseAPI
from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models.catalog import RepoRef
from catalogfix.core.models.release import Release, ReleaseAsset


def _api_base(repo: RepoRef) -> str:
    return f"https://{repo.host}/api/v4/projects/{quote(repo.path, safe='')}"


def parse_release(data: dict[str, Any]) -> Release:
    prerelease = bool(data.get("upcoming_release"))
    links = (data.get("assets") or {}).get("links") or []
    assets = tuple(
        ReleaseAsset(
            name=link.get("name", ""),
            url=link.get("direct_asset_url") or link.get("url", ""),
            prerelease=prerelease,
        )
        for link in links
        if link.get("url") or link.get("direct_asset_url")
    )
    return Release(
        tag=data.get("tag_name", ""),
        name=data.get("name") or "",
        prerelease=prerelease,
        assets=assets,
    )


class GitLabReleaseAPI(ReleaseAPI):
    def __init__(self, http: HttpClient):
        self._http = http

    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        url = f"{_api_base(repo)}/releases/{quote(tag, safe='')}"
        try:
            data = self._http.get_json(url)
        except UpstreamUnavailable as e:
            if e.not_found:
                return None
            raise
        return parse_release(data) if isinstance(data, dict) else None

    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        url = f"{_api_base(repo)}/releases?per_page={max(1, min(n, 100))}"
        try:
            data = self._http.get_json(url)
        except UpstreamUnavailable as e:
            if e.not_found:
                return []
            raise
        if not isinstance(data, list):
            return []
        return [parse_release(item) for item in data[:n] if isinstance(item, dict)]
