"""
Error types raised across the core.

Most expected failures never surface as exceptions: detectors return
``None``, probes return a result, resolvers return ``None``.  The
exceptions here are the ones that cross a layer boundary.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalogfix errors."""


class UpstreamUnavailable(CatalogError):
    """A network or forge API call failed (after the permitted retry)."""

    def __init__(self, url: str, reason: str, status: int | None = None):
        self.url = url
        self.reason = reason
        self.status = status
        label = f"HTTP {status}" if status else reason
        super().__init__(f"{url}: {label}")

    @property
    def not_found(self) -> bool:
        return self.status == 404


class EntryNotFound(CatalogError):
    """The catalog has no entry with the requested name."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"No catalog entry named '{entry_id}'")


class WriteConflict(CatalogError):
    """The persisted entry changed between read and write."""

    def __init__(self, entry_id: str, detail: str = ""):
        self.entry_id = entry_id
        self.detail = detail
        msg = f"Catalog entry '{entry_id}' was modified concurrently"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
