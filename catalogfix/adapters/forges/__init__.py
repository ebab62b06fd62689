"""Forge release APIs — GitHub, GitLab, Gitea — behind one router."""

from __future__ import annotations

from catalogfix.adapters.base import ReleaseAPI
from catalogfix.adapters.forges.gitea import GiteaReleaseAPI
from catalogfix.adapters.forges.github import GitHubReleaseAPI
from catalogfix.adapters.forges.gitlab import GitLabReleaseAPI
from catalogfix.adapters.http import HttpClient
from catalogfix.core.models.catalog import RepoRef
from catalogfix.core.models.release import Release


class ForgeRouter(ReleaseAPI):
    """Dispatches each call to the API matching ``repo.forge``."""

    def __init__(self, http: HttpClient):
        self._apis: dict[str, ReleaseAPI] = {
            "github": GitHubReleaseAPI(http),
            "gitlab": GitLabReleaseAPI(http),
            "gitea": GiteaReleaseAPI(http),
        }

    def _api(self, repo: RepoRef) -> ReleaseAPI:
        return self._apis[repo.forge]

    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        return self._api(repo).get_release_by_tag(repo, tag)

    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        return self._api(repo).list_recent_releases(repo, n)

    def latest_release(self, repo: RepoRef) -> Release | None:
        return self._api(repo).latest_release(repo)


__all__ = [
    "ForgeRouter",
    "GitHubReleaseAPI",
    "GitLabReleaseAPI",
    "GiteaReleaseAPI",
]
