"""
Collaborator protocols — the contracts between the reconciliation core
and the outside world.

The driver only talks to these interfaces: version detection, forge
release APIs, catalog persistence, and issue notification.  Concrete
implementations live next to this module; test doubles live in
``catalogfix.adapters.mock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from catalogfix.core.models.catalog import CatalogEntry, RepoRef
from catalogfix.core.models.outcome import IssueRecord, OutcomeStatus
from catalogfix.core.models.release import Release


class VersionDetector(ABC):
    """Reports the latest upstream version of an entry as opaque text.

    MUST never raise.  A failed detection returns None (or empty text).
    """

    @abstractmethod
    def detect(self, entry: CatalogEntry) -> str | None:
        """Return raw text containing the latest version, or None."""


class ReleaseAPI(ABC):
    """A forge's release listing (GitHub, GitLab, Gitea shaped).

    Lookups that find nothing return None / an empty list.  Transport
    failures raise ``UpstreamUnavailable``.
    """

    @abstractmethod
    def get_release_by_tag(self, repo: RepoRef, tag: str) -> Release | None:
        """Fetch the release with exactly this tag."""

    @abstractmethod
    def list_recent_releases(self, repo: RepoRef, n: int = 10) -> list[Release]:
        """List up to ``n`` releases, newest first."""

    def latest_release(self, repo: RepoRef) -> Release | None:
        """Most recent non-draft, non-prerelease release."""
        for release in self.list_recent_releases(repo):
            if release.stable:
                return release
        return None


class CatalogStore(ABC):
    """Persistence for catalog entries.  Writes are atomic per entry."""

    @abstractmethod
    def read(self, entry_id: str) -> CatalogEntry:
        """Load an entry.  Raises ``EntryNotFound`` if absent."""

    @abstractmethod
    def write(self, entry_id: str, entry: CatalogEntry) -> None:
        """Persist an entry.  Raises ``WriteConflict`` on concurrent change."""

    @abstractmethod
    def list_entries(self) -> list[str]:
        """Names of every entry in the catalog."""


class Notifier(ABC):
    """Receives issue records for outcomes that need attention.

    Fire-and-forget: the driver ignores (but logs) any exception.
    """

    @abstractmethod
    def report(
        self,
        issues: list[IssueRecord],
        *,
        entry: str = "",
        status: OutcomeStatus | None = None,
    ) -> None:
        """Deliver the issues raised for one entry."""
