"""
L4 Execution — Checksum resolution for release assets.

A digest published by the vendor beats one we compute ourselves, so
the lookup order is:

    1. a checksum manifest asset in the same release
       (``app.zip.sha256``, ``SHA256SUMS``, ``checksums.txt``, ...)
    2. the digest the forge reports for the asset, when present
    3. downloading the asset and hashing it (SHA-256)

Digests are returned in catalog form: bare lowercase hex for SHA-256,
``algo:hex`` for anything else.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models.release import ReleaseAsset

logger = logging.getLogger(__name__)

_MANIFEST_NAME = re.compile(
    r"(?:\.sha256|\.sha256sum|\.sha256\.txt|\.sha512|\.sha512sum|\.md5|\.md5sum"
    r"|checksums?(?:\.txt)?|\.hashes|hashes(?:\.txt)?|digests?(?:\.txt)?"
    r"|sha256sums(?:\.txt)?|sha512sums(?:\.txt)?|md5sums(?:\.txt)?)$",
    re.IGNORECASE,
)
_HEX_DIGEST = re.compile(
    r"[0-9a-fA-F]{128}|[0-9a-fA-F]{64}|[0-9a-fA-F]{40}|[0-9a-fA-F]{32}"
)
_BSD_LINE = re.compile(
    r"^(?:SHA\d+|MD5)\s*\((?P<name>.+)\)\s*=\s*(?P<hex>[0-9a-fA-F]+)\s*$",
    re.IGNORECASE,
)

_ALGO_BY_LENGTH = {32: "md5", 40: "sha1", 64: "sha256", 128: "sha512"}


def format_digest(hex_digest: str, algo: str | None = None) -> str:
    """Render a digest the way catalog entries store it."""
    hex_digest = hex_digest.strip().lower()
    algo = (algo or _ALGO_BY_LENGTH.get(len(hex_digest), "sha256")).lower()
    return hex_digest if algo == "sha256" else f"{algo}:{hex_digest}"


def is_checksum_manifest(name: str) -> bool:
    return bool(_MANIFEST_NAME.search(name))


def parse_checksum_lines(text: str) -> list[tuple[str | None, str]]:
    """Parse manifest text into ``(filename, hex)`` pairs.

    Recognises ``<hex>  <file>``, ``<hex> *<file>``, ``<file> <hex>`` and
    BSD-style ``SHA256 (<file>) = <hex>`` lines.  A line with a digest but
    no filename yields ``(None, hex)``.
    """
    pairs: list[tuple[str | None, str]] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        bsd = _BSD_LINE.match(line)
        if bsd:
            pairs.append((bsd.group("name").strip(), bsd.group("hex").lower()))
            continue

        parts = line.split()
        digest_idx = next(
            (i for i, p in enumerate(parts) if _HEX_DIGEST.fullmatch(p)), None,
        )
        if digest_idx is None:
            continue
        rest = [p for i, p in enumerate(parts) if i != digest_idx and p not in (":", "=")]
        name = " ".join(rest).lstrip("*").strip() or None
        pairs.append((name, parts[digest_idx].lower()))
    return pairs


def find_digest(text: str, filename: str, allow_unnamed: bool = False) -> str | None:
    """Find the digest for ``filename`` in checksum manifest text.

    Matching is by substring, so ``./dist/app.zip`` matches ``app.zip``.
    ``allow_unnamed`` accepts a lone digest line (companion files like
    ``app.zip.sha256`` often contain only the hash).
    """
    pairs = parse_checksum_lines(text)
    for name, hex_digest in pairs:
        if name and (filename in name or PurePosixPath(name).name == filename):
            return hex_digest
    if allow_unnamed and len(pairs) == 1 and pairs[0][0] is None:
        return pairs[0][1]
    return None


def url_basename(url: str) -> str:
    return unquote(PurePosixPath(urlparse(url).path).name)


class ChecksumResolver:
    """Obtain a trusted digest for a chosen asset."""

    def __init__(self, http: HttpClient):
        self._http = http

    def resolve_checksum(
        self,
        assets: list[ReleaseAsset] | tuple[ReleaseAsset, ...],
        target: ReleaseAsset,
    ) -> str | None:
        """Digest for ``target``, or None if every source failed."""
        digest = self._from_manifests(assets, target)
        if digest:
            return digest

        if target.digest:
            algo, _, hex_digest = target.digest.partition(":")
            if hex_digest and _HEX_DIGEST.fullmatch(hex_digest):
                logger.info("Using forge-reported %s digest for %s", algo, target.name)
                return format_digest(hex_digest, algo)

        return self._download_and_hash(target.url)

    def resolve_url_checksum(self, url: str, lookup_url: str | None = None) -> str | None:
        """Digest for a bare URL, optionally via a checksum manifest URL."""
        if lookup_url:
            try:
                text = self._http.get_text(lookup_url)
            except UpstreamUnavailable as e:
                logger.info("Checksum manifest %s unavailable: %s", lookup_url, e)
            else:
                hex_digest = find_digest(text, url_basename(url), allow_unnamed=True)
                if hex_digest:
                    return format_digest(hex_digest)
                logger.info("No digest for %s in %s", url_basename(url), lookup_url)
        return self._download_and_hash(url)

    # ── Internals ───────────────────────────────────────────────

    def _from_manifests(self, assets, target: ReleaseAsset) -> str | None:
        manifests = [a for a in assets if a is not target and is_checksum_manifest(a.name)]
        # Companion files (app.zip.sha256) before release-wide lists
        manifests.sort(key=lambda a: 0 if a.name.startswith(target.name) else 1)

        for manifest in manifests:
            companion = manifest.name.startswith(target.name)
            try:
                text = self._http.get_text(manifest.url)
            except UpstreamUnavailable as e:
                logger.info("Checksum manifest %s unavailable: %s", manifest.name, e)
                continue
            hex_digest = find_digest(text, target.name, allow_unnamed=companion)
            if hex_digest:
                logger.info("Digest for %s taken from %s", target.name, manifest.name)
                return format_digest(hex_digest)
        return None

    def _download_and_hash(self, url: str) -> str | None:
        logger.info("Hashing %s (no published checksum)", url)
        try:
            return format_digest(self._http.sha256_of(url), "sha256")
        except UpstreamUnavailable as e:
            logger.warning("Cannot hash %s: %s", url, e)
            return None
