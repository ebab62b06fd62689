"""
L1 Domain — Version canonicalization (pure).

Rewrites a raw release token into the comparable string used for
equality checks and URL templating.  Rules are applied in order and
the first one that applies wins.

Canonicalization is advisory: ambiguous tokens still produce a
best-effort candidate.  Whether that candidate is *right* is decided
by the caller's drift check, not here.
No I/O.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from catalogfix.core.models.version import VersionToken

_LEADING_V = re.compile(r"^[vV]\.?")
_PURE_DIGITS = re.compile(r"\d+")
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_DATE_COMMIT = re.compile(r"\d{4}-\d{2}-\d{2}-[0-9a-fA-F]{7,}")
_COMMIT = re.compile(r"(?=[0-9a-fA-F]*[a-fA-F])[0-9a-fA-F]{7,40}")
_GIT_DESCRIBE = re.compile(r".*?-g(?P<hash>[0-9a-fA-F]{7,})")
_BUILD_COMMIT = re.compile(r"(?P<build>\d+)-[0-9a-fA-F]{6,}")
_DOTTED = re.compile(r"\d+\.\d+")
_DIGIT_RUN = re.compile(r"\d+")
_ALPHA_SUFFIX = re.compile(r"[A-Za-z]+$")


def _pick_from_urls(candidates: list[str], known_urls: Iterable[str] | None) -> str:
    """Return the first candidate that occurs in a known URL, else the first.

    Candidates are tried in order and the URLs are only substring-searched,
    so an unrelated URL fragment can still produce a false hit.  Prefixed
    spellings (``v10.6``, ``.10.6``) need no candidates of their own: the
    unprefixed form is a substring of them, and is what gets returned.
    """
    if known_urls:
        urls = [u for u in known_urls if u]
        for candidate in candidates:
            if candidate and any(candidate in url for url in urls):
                return candidate
    return candidates[0]


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def canonicalize(
    raw: VersionToken | str,
    known_urls: Iterable[str] | None = None,
    *,
    verbatim: bool = False,
) -> str:
    """Rewrite ``raw`` into a canonical comparable version string.

    Args:
        raw: The token (or plain string) to rewrite.  Never mutated.
        known_urls: Download URLs already on record.  When a rewrite is
            ambiguous, the candidate that appears in one of these wins.
        verbatim: Skip every rewrite and return the token as-is.  Used for
            vendors whose versioning is intentionally irregular.

    Examples::

        canonicalize("v.0.12.5")           -> "0.12.5"
        canonicalize("mame0282")           -> "0.282"
        canonicalize("20251115-g3d6627c")  -> "3d6627c"
        canonicalize("10_6b", ["https://x/app-10.6b.zip"]) -> "10.6b"
    """
    text = raw.raw if isinstance(raw, VersionToken) else str(raw)
    if verbatim:
        return text

    token = _LEADING_V.sub("", text.strip()).lstrip(".")
    if not token:
        return text.strip()

    # Already canonical shapes
    if (
        _PURE_DIGITS.fullmatch(token)
        or _ISO_DATE.fullmatch(token)
        or _DATE_COMMIT.fullmatch(token)
        or _COMMIT.fullmatch(token)
    ):
        return token

    # git-describe style: prefer the commit over a synthetic build counter
    m = _GIT_DESCRIBE.fullmatch(token)
    if m and not _DOTTED.search(token):
        return m.group("hash")

    m = _BUILD_COMMIT.fullmatch(token)
    if m:
        return m.group("build")

    if _DOTTED.search(token):
        return token

    suffix_match = _ALPHA_SUFFIX.search(token)
    suffix = suffix_match.group(0) if suffix_match else ""

    runs = _DIGIT_RUN.findall(token)
    if len(runs) >= 2:
        dotted = ".".join(runs)
        undotted = "".join(runs)
        candidates = _dedupe([dotted + suffix, dotted, undotted + suffix, undotted])
        return _pick_from_urls(candidates, known_urls)

    run = _DIGIT_RUN.search(token)
    if run is None:
        return token

    # A single digit run, possibly behind a vendor prefix
    digits = run.group(0)
    has_prefix = run.start() > 0

    if len(digits) >= 4:
        rewritten = f"{digits[:-3]}.{digits[-3:]}"
    elif len(digits) == 3 and has_prefix:
        rewritten = f"0.{digits}"
    else:
        rewritten = digits

    candidates = _dedupe([rewritten + suffix, rewritten, digits + suffix, digits])
    return _pick_from_urls(candidates, known_urls)
