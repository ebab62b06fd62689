"""
Shared test fixtures and factories.
"""

from __future__ import annotations

import hashlib

import pytest

from catalogfix.adapters.mock import (
    FakeHttpClient,
    FakeReleaseAPI,
    MemoryCatalogStore,
    RecordingNotifier,
    StaticDetector,
)
from catalogfix.core.models import CatalogEntry, DownloadTarget, RepoRef
from catalogfix.core.services.reconcile import ReconciliationDriver

RELEASES = "https://github.com/acme/app/releases/download"


def sha256(body: bytes | str) -> str:
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def make_entry(
    name: str = "app",
    version: str = "1.0.0",
    targets: list[DownloadTarget] | None = None,
    repo: str | None = "acme/app",
) -> CatalogEntry:
    if targets is None:
        targets = [
            DownloadTarget(
                platform="64bit",
                url=f"{RELEASES}/v{version}/app-{version}-x64.zip",
                checksum="0" * 64,
                url_template=f"{RELEASES}/v$version/app-$version-x64.zip",
            )
        ]
    return CatalogEntry(
        name=name,
        version=version,
        targets=targets,
        repository=RepoRef(path=repo) if repo else None,
    )


class Harness:
    """A driver wired to in-memory collaborators."""

    def __init__(self, entries, detector_value=None, releases=None):
        self.store = MemoryCatalogStore(entries)
        self.detector = StaticDetector(detector_value)
        self.api = FakeReleaseAPI(releases or {})
        self.http = FakeHttpClient()
        self.notifier = RecordingNotifier()
        self.driver = ReconciliationDriver(
            store=self.store,
            detector=self.detector,
            release_api=self.api,
            http=self.http,
            notifier=self.notifier,
        )


@pytest.fixture
def harness():
    """Factory: ``harness([entry], "v1.1.0", releases={...})``."""
    return Harness
