"""
L1 Domain — Release asset selection (pure).

Scores a release's asset list against a platform slot (``64bit``,
``32bit``, ``arm64``, ``generic``) and picks one file.  Selection is
deterministic: every tie is broken by the asset's position in the list.
No I/O.
"""

from __future__ import annotations

import re

from catalogfix.core.models.release import ReleaseAsset

GENERIC = "generic"

ARCH_MARKERS: dict[str, re.Pattern[str]] = {
    "64bit": re.compile(r"x86[_-]?64|win64|x64|amd64|64[-_]?bit", re.IGNORECASE),
    "32bit": re.compile(
        r"x86[_-]?32|win32|i[36]86|ia32|(?<![a-z0-9])x86(?![_-]?64)|32[-_]?bit",
        re.IGNORECASE,
    ),
    "arm64": re.compile(r"arm64|aarch64", re.IGNORECASE),
}

OS_MARKERS: dict[str, re.Pattern[str]] = {
    "windows": re.compile(
        r"(?<![a-z])win(?:dows|32|64)?(?![a-z])|\.exe$|\.msi$|\.msix$|msvc|mingw",
        re.IGNORECASE,
    ),
    "linux": re.compile(r"linux|\.deb$|\.rpm$|\.appimage$", re.IGNORECASE),
    "macos": re.compile(r"darwin|mac[-_]?os|osx|(?<![a-z])mac(?![a-z])|\.dmg$", re.IGNORECASE),
}

ARCHIVE_EXTENSIONS = (
    ".zip", ".7z", ".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tar.zst", ".rar",
)
INSTALLER_EXTENSIONS = (".exe", ".msi", ".msix", ".msixbundle", ".appx", ".dmg", ".pkg")

# Release files that are never the download itself
_AUXILIARY = re.compile(
    r"\.(?:sha\d*|sha\d+sum|md5|md5sum|sig|asc|pem|sbom|spdx|intoto|jsonl?|txt)$"
    r"|checksum|sha\d+sums|hashes|digest"
    r"|(?:^|[-_.])(?:src|source)(?:[-_.]|$)",
    re.IGNORECASE,
)


def is_archive(name: str) -> bool:
    return name.lower().endswith(ARCHIVE_EXTENSIONS)


def is_installer(name: str) -> bool:
    return name.lower().endswith(INSTALLER_EXTENSIONS)


def is_auxiliary(name: str) -> bool:
    """Checksum files, signatures, source tarballs and the like."""
    return bool(_AUXILIARY.search(name))


def arch_of(name: str) -> set[str]:
    """Architecture markers found in an asset name."""
    found = {arch for arch, pattern in ARCH_MARKERS.items() if pattern.search(name)}
    # "win32-x64" is a Node/Electron platform string, not a 32-bit build
    if "64bit" in found and "32bit" in found:
        found.discard("32bit")
    return found


def os_of(name: str) -> set[str]:
    return {family for family, pattern in OS_MARKERS.items() if pattern.search(name)}


def _format_rank(name: str) -> int:
    if is_archive(name):
        return 0
    if is_installer(name):
        return 1
    return 2


def _prefer_archive(pool: list[tuple[int, ReleaseAsset]]) -> ReleaseAsset:
    _, asset = min(pool, key=lambda p: (_format_rank(p[1].name), p[0]))
    return asset


def select_best_asset(
    assets: list[ReleaseAsset] | tuple[ReleaseAsset, ...],
    platform_tag: str,
    os_family: str = "windows",
) -> ReleaseAsset | None:
    """Pick the asset that best fits ``platform_tag`` on ``os_family``.

    Steps:
        1. Drop auxiliary files; keep assets tagged for ``os_family``, or,
           when none are, assets tagged for no OS at all.
        2. Generic slot → first archive, else first installer, else first.
        3. Assets carrying the requested architecture marker → archive first.
        4. No architecture match → untagged OS assets, archive first.
        5. Last resort among untagged assets: largest for ``64bit``,
           smallest for ``32bit``.  ``arm64`` never guesses.

    Returns:
        The chosen asset, or None when nothing fits.
    """
    candidates = [(i, a) for i, a in enumerate(assets) if not is_auxiliary(a.name)]
    os_tagged = [(i, a) for i, a in candidates if os_family in os_of(a.name)]
    neutral = [(i, a) for i, a in candidates if not os_of(a.name)]
    pool = os_tagged or neutral
    if not pool:
        return None

    if platform_tag not in ARCH_MARKERS:
        return _prefer_archive(pool)

    wanted = [(i, a) for i, a in pool if platform_tag in arch_of(a.name)]
    if wanted:
        return _prefer_archive(wanted)

    untagged = [(i, a) for i, a in pool if not arch_of(a.name)]
    if not untagged:
        return None

    if os_tagged:
        return _prefer_archive(untagged)

    if platform_tag == "64bit":
        return max(untagged, key=lambda p: (p[1].size, -p[0]))[1]
    if platform_tag == "32bit":
        return min(untagged, key=lambda p: (p[1].size, p[0]))[1]
    return None
