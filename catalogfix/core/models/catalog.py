"""
Catalog models — entries, their download targets, and upstream references.

A CatalogEntry is the in-memory view of one manifest.  The original
manifest dict travels along in ``raw`` so the store can write back
without losing keys it doesn't manage.
"""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

Forge = Literal["github", "gitlab", "gitea"]

# Hosts that aren't recognisable by name alone
_KNOWN_HOSTS: dict[str, Forge] = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "codeberg.org": "gitea",
    "gitea.com": "gitea",
}


class RepoRef(BaseModel):
    """Pointer to an upstream repository on a forge."""

    model_config = ConfigDict(frozen=True)

    forge: Forge = "github"
    host: str = "github.com"
    path: str                       # owner/repo (gitlab: group/sub/project)

    @classmethod
    def parse(cls, value: str) -> RepoRef | None:
        """Parse ``owner/repo`` or a forge URL.

        Returns None for hosts that aren't a known forge.
        """
        value = value.strip()
        if not value:
            return None

        if "://" not in value:
            parts = [p for p in value.split("/") if p]
            if len(parts) != 2:
                return None
            return cls(path="/".join(parts))

        parsed = urlparse(value)
        host = (parsed.hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]

        forge = _KNOWN_HOSTS.get(host)
        if forge is None:
            if "gitlab" in host:
                forge = "gitlab"
            elif "gitea" in host or "forgejo" in host:
                forge = "gitea"
            else:
                return None

        parts = [p for p in parsed.path.split("/") if p]
        # Drop /-/releases, /releases/tag/x and similar tails
        for marker in ("-", "releases", "tags", "archive"):
            if marker in parts:
                parts = parts[: parts.index(marker)]
        if forge != "gitlab":
            parts = parts[:2]
        if len(parts) < 2:
            return None
        parts[-1] = parts[-1].removesuffix(".git")
        return cls(forge=forge, host=host, path="/".join(parts))

    @property
    def web_url(self) -> str:
        return f"https://{self.host}/{self.path}"

    def __str__(self) -> str:
        return f"{self.forge}:{self.path}"


class CheckverConfig(BaseModel):
    """How to detect the latest upstream version of an entry."""

    github: str | None = None
    url: str | None = None
    regex: str | None = None
    jsonpath: str | None = None


class DownloadTarget(BaseModel):
    """One downloadable artifact of an entry, for one platform slot.

    ``url_template`` and ``checksum_lookup`` come from the manifest's
    autoupdate section and may hold ``$version``-style placeholders.
    """

    model_config = ConfigDict(frozen=True)

    platform: str = "generic"       # 64bit, 32bit, arm64, generic
    url: str
    checksum: str | None = None
    url_template: str | None = None
    checksum_lookup: str | None = None

    def replace(self, **changes: Any) -> DownloadTarget:
        return self.model_copy(update=changes)


class CatalogEntry(BaseModel):
    """A tracked piece of software and its download metadata."""

    name: str
    version: str
    targets: list[DownloadTarget] = Field(default_factory=list)
    repository: RepoRef | None = None
    checkver: CheckverConfig | None = None
    homepage: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)

    def target(self, platform: str) -> DownloadTarget | None:
        for t in self.targets:
            if t.platform == platform:
                return t
        return None

    @property
    def urls(self) -> list[str]:
        return [t.url for t in self.targets]

    def with_targets(
        self,
        targets: list[DownloadTarget],
        version: str | None = None,
    ) -> CatalogEntry:
        """Return a copy with ``targets`` (and optionally ``version``) replaced."""
        update: dict[str, Any] = {"targets": list(targets)}
        if version is not None:
            update["version"] = version
        return self.model_copy(update=update)
