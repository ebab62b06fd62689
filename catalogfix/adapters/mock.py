"""
Mock collaborators — in-memory test doubles for the reconciliation core.

Each double records what it was asked, so tests can assert both the
outcome and the side effects (how many writes, which URLs were fetched,
which issues were reported).  Nothing here touches the network or disk.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from catalogfix.adapters.base import CatalogStore, Notifier, ReleaseAPI, VersionDetector
from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import EntryNotFound, UpstreamUnavailable, WriteConflict
from catalogfix.core.models.catalog import CatalogEntry, RepoRef
from catalogfix.core.models.outcome import IssueRecord, OutcomeStatus
from catalogfix.core.models.release import Release


class FakeHttpClient(HttpClient):
    """HttpClient serving a fixed set of URLs.

    Served URLs answer HEAD with 200 and GET with their body; anything
    else is a 404.  ``fail(url)`` makes a URL fail with another status.
    """

    def __init__(self, files: dict[str, bytes | str] | None = None):
        super().__init__(timeout=5, retries=0)
        self._files: dict[str, bytes] = {}
        self._failures: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        for url, body in (files or {}).items():
            self.serve(url, body)

    def serve(self, url: str, body: bytes | str = b"") -> None:
        self._files[url] = body.encode("utf-8") if isinstance(body, str) else body

    def fail(self, url: str, status: int = 503) -> None:
        self._failures[url] = status

    def calls_for(self, method: str) -> list[str]:
        return [url for m, url in self.calls if m == method]

    def _lookup(self, method: str, url: str) -> bytes:
        self.calls.append((method, url))
        if url in self._failures:
            raise UpstreamUnavailable(url, "simulated failure", status=self._failures[url])
        if url not in self._files:
            raise UpstreamUnavailable(url, "Not Found", status=404)
        return self._files[url]

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        return self._lookup("GET", url)

    def head(self, url: str) -> int:
        self._lookup("HEAD", url)
        return 200

    def sha256_of(self, url: str) -> str:
        return hashlib.sha256(self._lookup("DOWNLOAD", url)).hexdigest()


class StaticDetector(VersionDetector):
    """Returns a fixed answer (or a per-entry answer from a dict)."""

    def __init__(self, value: str | dict[str, str | None] | None = None):
        self._value = value
        self.calls: list[str] = []

    def detect(self, entry: CatalogEntry) -> str | None:
        self.calls.append(entry.name)
        if isinstance(self._value, dict):
            return self._value.get(entry.name)
        return self._value


class FakeReleaseAPI(ReleaseAPI):
    """Releases keyed by repository path, newest first."""

    def __init__(self, releases: dict[str, list[Release]] | None = None):
        self._releases = {k: list(v) for k, v in (releases or {}).items()}
        self._unavailable: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add(self, repo_path: str, release: Release) -> None:
        self._releases.setdefault(repo_path, []).insert(0, release)

    def set_unavailable(self, repo_path: str) -> None:
        self._unavailable.add(repo_path)

    def _list(self, repo: RepoRef) -> list[Release]:
        if repo.path in self._unavailable:
            raise UpstreamUnavailable(repo.web_url, "simulated outage", status=503)
        return self._releases.get(repo.path, [])

    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        self.calls.append(("tag", f"{repo.path}@{tag}"))
        for release in self._list(repo):
            if release.tag == tag:
                return release
        return None

    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        self.calls.append(("list", repo.path))
        return self._list(repo)[:n]


class MemoryCatalogStore(CatalogStore):
    """Dict-backed store that counts writes.

    ``conflict_on_write`` makes every write raise ``WriteConflict``.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = (), conflict_on_write: bool = False):
        self._entries = {e.name: e for e in entries}
        self.conflict_on_write = conflict_on_write
        self.writes: list[CatalogEntry] = []

    @property
    def write_count(self) -> int:
        return len(self.writes)

    def read(self, entry_id: str) -> CatalogEntry:
        if entry_id not in self._entries:
            raise EntryNotFound(entry_id)
        return self._entries[entry_id].model_copy(deep=True)

    def write(self, entry_id: str, entry: CatalogEntry) -> None:
        if self.conflict_on_write:
            raise WriteConflict(entry_id, "simulated concurrent edit")
        self.writes.append(entry)
        self._entries[entry_id] = entry

    def list_entries(self) -> list[str]:
        return sorted(self._entries)

    def get(self, entry_id: str) -> CatalogEntry:
        return self._entries[entry_id]


class RecordingNotifier(Notifier):
    """Keeps every report.  ``broken=True`` makes report() raise."""

    def __init__(self, broken: bool = False):
        self.broken = broken
        self.reports: list[tuple[str, OutcomeStatus | None, list[IssueRecord]]] = []

    def report(
        self,
        issues: list[IssueRecord],
        *,
        entry: str = "",
        status: OutcomeStatus | None = None,
    ) -> None:
        if self.broken:
            raise RuntimeError("notifier is down")
        self.reports.append((entry, status, list(issues)))
