"""
L1 Domain — Placeholder and version substitution in download URLs (pure).

Catalog URLs and autoupdate templates use ``$name`` placeholders:

    $version            1.2.3-beta
    $majorVersion       1
    $minorVersion       2
    $patchVersion       3
    $buildVersion       4th dotted/dashed component, if any
    $cleanVersion       123beta       (separators removed)
    $underscoreVersion  1_2_3-beta
    $dashVersion        1-2-3-beta
    $preReleaseVersion  beta          (text after the first '-')
    $matchHead          1.2.3         (leading numeric part)
    $matchTail          -beta         (rest)

Checksum lookups additionally get ``$url``, ``$baseurl``, ``$basename``.

A URL that still contains a placeholder after rendering is never
returned as a usable URL.
No I/O.
"""

from __future__ import annotations

import re

from catalogfix.core.models.catalog import DownloadTarget
from catalogfix.core.services.releases.checksum import url_basename

_PLACEHOLDER = re.compile(r"\$([A-Za-z][A-Za-z0-9]*)")
_HEAD = re.compile(r"^(?P<head>\d+(?:\.\d+){0,2})(?P<tail>.*)$")

# Version spellings looked for inside URLs, most common first
_SPELLINGS = ("version", "underscoreVersion", "dashVersion")


def _embedded(needle: str) -> re.Pattern[str]:
    """``needle`` not glued to a longer version on either side."""
    return re.compile(r"(?<![\d.])" + re.escape(needle) + r"(?!\d)")


def unsubstituted(text: str) -> list[str]:
    """Return the names of ``$placeholders`` left in ``text``."""
    return _PLACEHOLDER.findall(text or "")


def has_placeholder(text: str | None) -> bool:
    return bool(text) and bool(_PLACEHOLDER.search(text))


def version_variables(version: str) -> dict[str, str]:
    """Build the ``$...Version`` substitution table for ``version``."""
    parts = re.split(r"[._-]", version)
    parts += [""] * (4 - len(parts))
    head = _HEAD.match(version)
    return {
        "version": version,
        "majorVersion": parts[0],
        "minorVersion": parts[1],
        "patchVersion": parts[2],
        "buildVersion": parts[3],
        "cleanVersion": re.sub(r"[._-]", "", version),
        "underscoreVersion": version.replace(".", "_"),
        "dashVersion": version.replace(".", "-"),
        "preReleaseVersion": version.split("-", 1)[1] if "-" in version else "",
        "matchHead": head.group("head") if head else version,
        "matchTail": head.group("tail") if head else "",
    }


def url_variables(url: str) -> dict[str, str]:
    return {
        "url": url,
        "baseurl": url.rsplit("/", 1)[0] if "/" in url else url,
        "basename": url_basename(url),
    }


def render_template(template: str, variables: dict[str, str]) -> str:
    """Replace known ``$name`` tokens; unknown ones are left in place."""
    def _sub(m: re.Match[str]) -> str:
        return variables.get(m.group(1), m.group(0))

    return _PLACEHOLDER.sub(_sub, template)


def replace_version_literal(url: str, old: str, new: str) -> str | None:
    """Swap an embedded ``old`` version for ``new`` inside ``url``.

    Tries the dotted form first, then underscore, dash and separator-free
    spellings.  Returns None if no spelling of ``old`` occurs in the URL.
    """
    if not old or not new or old == new:
        return None

    old_vars, new_vars = version_variables(old), version_variables(new)
    for key in _SPELLINGS + ("cleanVersion",):
        needle = old_vars[key]
        if not needle:
            continue
        pattern = _embedded(needle)
        if pattern.search(url):
            return pattern.sub(lambda _m: new_vars[key], url)
    return None


def url_matches_version(target: DownloadTarget, version: str) -> bool:
    """Whether the target's recorded URL already points at ``version``.

    True when the autoupdate template renders to exactly the recorded URL,
    or when the dotted, underscore or dash spelling of ``version`` is
    embedded in it.  The separator-free spelling is too ambiguous to count.
    """
    if not version:
        return False
    variables = version_variables(version)
    if target.url_template and render_template(target.url_template, variables) == target.url:
        return True
    return any(
        variables[key] and _embedded(variables[key]).search(target.url)
        for key in _SPELLINGS
    )


def substitute_version(
    target: DownloadTarget,
    old_version: str,
    new_version: str,
) -> str | None:
    """Cheapest repair: derive the target's URL for ``new_version``.

    Uses the autoupdate template when there is one (or when the recorded
    URL itself is a template), else a literal swap of the old version.

    Returns:
        A fully substituted URL, or None when no substitution applies.
    """
    template = target.url_template
    if not template and has_placeholder(target.url):
        template = target.url

    if template:
        candidate = render_template(template, version_variables(new_version))
    else:
        candidate = replace_version_literal(target.url, old_version, new_version)

    if not candidate or has_placeholder(candidate):
        return None
    return candidate


def render_checksum_lookup(
    target: DownloadTarget,
    url: str,
    version: str,
) -> str | None:
    """Render the target's deferred checksum descriptor for ``url``."""
    if not target.checksum_lookup:
        return None
    variables = version_variables(version)
    variables.update(url_variables(url))
    rendered = render_template(target.checksum_lookup, variables)
    return None if has_placeholder(rendered) else rendered
