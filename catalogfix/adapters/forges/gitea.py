"""
Gitea / Forgejo release API (``/api/v1/repos/:owner/:repo/releases``).

Codeberg and self-hosted Gitea instances share this shape, which is
close to GitHub's.
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
    return f"https://{repo.host}/api/v1/repos/{repo.path}"


def parse_release(data: dict[str, Any]) -> Release:
    prerelease = bool(data.get("prerelease"))
    assets = tuple(
        ReleaseAsset(
            name=a.get("name", ""),
            url=a.get("browser_download_url", ""),
            size=int(a.get("size") or 0),
            prerelease=prerelease,
        )
        for a in data.get("assets") or []
        if a.get("browser_download_url")
    )
    return Release(
        tag=data.get("tag_name", ""),
        name=data.get("name") or "",
        prerelease=prerelease,
        draft=bool(data.get("draft")),
        assets=assets,
    )


class GiteaReleaseAPI(ReleaseAPI):
    def __init__(self, http: HttpClient):
        self._http = http

    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        url = f"{_api_base(repo)}/releases/tags/{quote(tag, safe='')}"
        try:
            data = self._http.get_json(url)
        except UpstreamUnavailable as e:
            if e.not_found:
                return None
            raise
        return parse_release(data) if isinstance(data, dict) else None

    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        url = f"{_api_base(repo)}/releases?limit={max(1, min(n, 50))}"
        try:
            data = self._http.get_json(url)
        except UpstreamUnavailable as e:
            if e.not_found:
                return []
            raise
        if not isinstance(data, list):
            return []
        return [parse_release(item) for item in data[:n] if isinstance(item, dict)]
