"""
Catalog file store — JSON manifests, one per entry.

Layout::

    <catalog_dir>/<name>.json

Manifests are Scoop-shaped.  Only ``version`` and the managed ``url``
and ``hash`` values are ever rewritten; every other key, and the key
order, survives a round trip.

Writes are atomic (temp file in the same directory, then replace).
The store remembers a digest of each file as it was read; if the file
no longer matches at write time, the write is refused with
``WriteConflict``.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from catalogfix.adapters.base import CatalogStore
from catalogfix.core.errors import CatalogError, EntryNotFound, WriteConflict
from catalogfix.core.models.catalog import (
    CatalogEntry,
    CheckverConfig,
    DownloadTarget,
    RepoRef,
)

logger = logging.getLogger(__name__)

ARCHITECTURES = ("64bit", "32bit", "arm64")
GENERIC = "generic"


# ── Manifest ↔ CatalogEntry ─────────────────────────────────────


def _first(value: Any) -> str | None:
    """Managed value of a string-or-list field."""
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, str) and value else None


def _hash_url(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("url") or None
    return None


def _parse_checkver(value: Any, homepage: str) -> CheckverConfig | None:
    if not value:
        return None
    if isinstance(value, str):
        if value == "github":
            return CheckverConfig(github=homepage or None)
        # A bare string is a regex applied to the homepage
        return CheckverConfig(url=homepage or None, regex=value)
    if isinstance(value, dict):
        return CheckverConfig(
            github=value.get("github"),
            url=value.get("url"),
            regex=value.get("regex") or value.get("re"),
            jsonpath=value.get("jsonpath") or value.get("jp"),
        )
    return None


def _infer_repository(
    checkver: CheckverConfig | None,
    homepage: str,
    urls: list[str],
) -> RepoRef | None:
    candidates = []
    if checkver and checkver.github:
        candidates.append(checkver.github)
    candidates.append(homepage)
    candidates.extend(u for u in urls if "/releases/download/" in u)
    for value in candidates:
        if not value:
            continue
        repo = RepoRef.parse(value)
        if repo is not None:
            return repo
    return None


def parse_manifest(name: str, data: dict[str, Any]) -> CatalogEntry:
    """Build a CatalogEntry from a manifest dict."""
    if not isinstance(data, dict):
        raise CatalogError(f"Manifest '{name}' is not a JSON object")

    autoupdate = data.get("autoupdate") or {}
    auto_arch = autoupdate.get("architecture") or {}
    targets: list[DownloadTarget] = []

    top_url = _first(data.get("url"))
    if top_url:
        targets.append(
            DownloadTarget(
                platform=GENERIC,
                url=top_url,
                checksum=_first(data.get("hash")),
                url_template=_first(autoupdate.get("url")),
                checksum_lookup=_hash_url(autoupdate.get("hash")),
            )
        )

    architecture = data.get("architecture") or {}
    for platform in ARCHITECTURES:
        arch = architecture.get(platform) or {}
        url = _first(arch.get("url"))
        if not url:
            continue
        auto = auto_arch.get(platform) or {}
        targets.append(
            DownloadTarget(
                platform=platform,
                url=url,
                checksum=_first(arch.get("hash")),
                url_template=_first(auto.get("url")) or _first(autoupdate.get("url")),
                checksum_lookup=_hash_url(auto.get("hash")) or _hash_url(autoupdate.get("hash")),
            )
        )

    homepage = data.get("homepage") or ""
    checkver = _parse_checkver(data.get("checkver"), homepage)
    return CatalogEntry(
        name=name,
        version=str(data.get("version", "")),
        targets=targets,
        repository=_infer_repository(checkver, homepage, [t.url for t in targets]),
        checkver=checkver,
        homepage=homepage,
        raw=data,
    )


def _set_managed(container: dict[str, Any], key: str, value: str) -> None:
    current = container.get(key)
    if isinstance(current, list) and current:
        current[0] = value
    else:
        container[key] = value


def render_manifest(entry: CatalogEntry) -> dict[str, Any]:
    """Apply the entry's version and targets onto a copy of its manifest."""
    data = copy.deepcopy(entry.raw)
    data["version"] = entry.version

    for target in entry.targets:
        if target.platform == GENERIC:
            container = data
        else:
            container = data.setdefault("architecture", {}).setdefault(target.platform, {})
        _set_managed(container, "url", target.url)
        if target.checksum:
            _set_managed(container, "hash", target.checksum)
    return data


# ── Store ───────────────────────────────────────────────────────


def _digest(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class JsonCatalogStore(CatalogStore):
    """Catalog of ``<name>.json`` manifests in one directory."""

    def __init__(self, directory: Path):
        self._dir = directory
        self._seen: dict[str, str] = {}

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, entry_id: str) -> Path:
        return self._dir / f"{entry_id}.json"

    def read(self, entry_id: str) -> CatalogEntry:
        path = self.path_for(entry_id)
        if not path.is_file():
            raise EntryNotFound(entry_id)

        content = path.read_bytes()
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CatalogError(f"Invalid JSON in {path}: {e}") from e

        self._seen[entry_id] = _digest(content)
        entry = parse_manifest(entry_id, data)
        logger.debug("Read %s %s (%d target(s))", entry_id, entry.version, len(entry.targets))
        return entry

    def write(self, entry_id: str, entry: CatalogEntry) -> None:
        path = self.path_for(entry_id)
        seen = self._seen.get(entry_id)
        if seen is not None:
            current = path.read_bytes() if path.is_file() else b""
            if _digest(current) != seen:
                raise WriteConflict(entry_id, f"{path} changed since it was read")

        content = json.dumps(render_manifest(entry), indent=4, ensure_ascii=False) + "\n"
        encoded = content.encode("utf-8")

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{entry_id}_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encoded)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

        self._seen[entry_id] = _digest(encoded)
        logger.info("Wrote %s %s", path, entry.version)

    def list_entries(self) -> list[str]:
        if not self._dir.is_dir():
            return []
        return sorted(p.stem for p in self._dir.glob("*.json"))
