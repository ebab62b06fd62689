"""
Version detectors — report the latest upstream version as raw text.

    CheckverDetector — follows the manifest's ``checkver`` section
                       (forge release, page + regex, JSON + path)
    CommandDetector  — runs an external command and returns its output

Neither raises.  Whatever goes wrong, the answer is ``None`` and the
driver falls back to the forge's latest release.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
import shutil
import subprocess
from typing import Any

from catalogfix.adapters.base import ReleaseAPI, VersionDetector
from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.models.catalog import CatalogEntry, RepoRef

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT = 15

_PATH_STEP = re.compile(r"([^.\[\]]+)|\[(\d+)\]")


def json_path_lookup(data: Any, path: str) -> Any:
    """Resolve a dotted path like ``$.assets[0].tag_name``.

    Only member access and integer indexes are supported.  Returns None
    when any step is missing.
    """
    path = path.strip()
    if path.startswith("$"):
        path = path[1:]
    current = data
    for name, index in _PATH_STEP.findall(path):
        if index:
            if not isinstance(current, list) or int(index) >= len(current):
                return None
            current = current[int(index)]
        else:
            if not isinstance(current, dict) or name not in current:
                return None
            current = current[name]
    return current


def _regex_match(pattern: str, text: str) -> str | None:
    try:
        m = re.search(pattern, text)
    except re.error as e:
        logger.warning("Invalid checkver regex %r: %s", pattern, e)
        return None
    if not m:
        return None
    if "version" in m.groupdict():
        return m.group("version")
    return m.group(1) if m.groups() else m.group(0)


class CheckverDetector(VersionDetector):
    """Detect versions the way the manifest's ``checkver`` section says."""

    def __init__(self, http: HttpClient, release_api: ReleaseAPI):
        self._http = http
        self._api = release_api

    def detect(self, entry: CatalogEntry) -> str | None:
        cfg = entry.checkver
        if cfg is None:
            return None

        try:
            if cfg.url:
                return self._from_url(cfg.url, cfg.regex, cfg.jsonpath)
            if cfg.github:
                return self._from_forge(cfg.github, cfg.regex)
        except UpstreamUnavailable as e:
            logger.info("checkver for %s failed: %s", entry.name, e)
        return None

    def _from_forge(self, repo_value: str, regex: str | None) -> str | None:
        repo = RepoRef.parse(repo_value)
        if repo is None:
            logger.debug("checkver github value %r is not a repository", repo_value)
            return None
        release = self._api.latest_release(repo)
        if release is None:
            return None
        if regex:
            return _regex_match(regex, release.tag) or release.tag
        return release.tag

    def _from_url(self, url: str, regex: str | None, jsonpath: str | None) -> str | None:
        text = self._http.get_text(url)
        if jsonpath:
            try:
                value = json_path_lookup(json.loads(text), jsonpath)
            except json.JSONDecodeError as e:
                logger.info("checkver %s did not return JSON: %s", url, e)
                return None
            if value is None:
                return None
            text = str(value)
        if regex:
            return _regex_match(regex, text)
        return text


class CommandDetector(VersionDetector):
    """Run an external checker command and return its combined output.

    Args:
        command: Command template; ``{name}`` is replaced by the entry name.
        timeout: Seconds before the command is abandoned.
    """

    def __init__(self, command: str, timeout: int = COMMAND_TIMEOUT):
        self._command = command
        self._timeout = timeout

    def detect(self, entry: CatalogEntry) -> str | None:
        cmd = shlex.split(self._command.format(name=entry.name))
        if not cmd or not shutil.which(cmd[0]):
            logger.warning("Version command not found: %s", cmd[0] if cmd else "(empty)")
            return None

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Version command for %s timed out after %ss", entry.name, self._timeout)
            return None
        except OSError as e:
            logger.warning("Version command for %s failed: %s", entry.name, e)
            return None

        # Some checkers print the version to stderr
        output = ((result.stdout or "") + (result.stderr or "")).strip()
        return output or None
