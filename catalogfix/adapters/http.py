"""
HTTP client — the single place the core touches the network.

Every call carries an explicit timeout and is retried at most once.
Anything beyond that belongs to whoever schedules the next run.
Failures surface as ``UpstreamUnavailable``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import urlparse

from catalogfix import __version__
from catalogfix.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
_CHUNK = 64 * 1024
_MAX_TEXT_BYTES = 4 * 1024 * 1024

# Statuses worth a second attempt
_RETRYABLE = {429, 500, 502, 503, 504}


class HttpClient:
    """Thin urllib wrapper with timeouts, one retry, and per-host tokens.

    Args:
        timeout: Seconds per request.
        retries: Extra attempts after the first (0 or 1).
        user_agent: User-Agent header value.
        tokens: ``{host: token}`` — sent as a bearer token to that host only.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 1,
        user_agent: str = f"catalogfix/{__version__}",
        tokens: dict[str, str] | None = None,
    ):
        self.timeout = timeout
        self.retries = max(0, min(retries, 1))
        self.user_agent = user_agent
        self._tokens = {h.lower(): t for h, t in (tokens or {}).items() if t}

    # ── Public API ──────────────────────────────────────────────

    def get_bytes(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """GET ``url`` and return the body (capped at 4 MiB)."""
        def _read(resp: Any) -> bytes:
            return resp.read(_MAX_TEXT_BYTES)

        return self._with_retry(url, "GET", headers, _read)

    def get_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        """GET ``url`` and decode the body as UTF-8 (lenient)."""
        return self.get_bytes(url, headers).decode("utf-8", errors="replace")

    def get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        """GET ``url`` and parse the body as JSON."""
        hdrs = {"Accept": "application/json"}
        hdrs.update(headers or {})
        body = self.get_bytes(url, hdrs)
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise UpstreamUnavailable(url, f"invalid JSON: {e}") from e

    def head(self, url: str) -> int:
        """Check that ``url`` is served.  Returns the HTTP status.

        Some hosts reject HEAD (403/405); those get a one-byte ranged GET.
        """
        try:
            return self._with_retry(url, "HEAD", None, lambda resp: resp.status)
        except UpstreamUnavailable as e:
            if e.status not in (403, 405, 501):
                raise
        logger.debug("HEAD refused by %s — retrying as ranged GET", url)
        return self._with_retry(
            url, "GET", {"Range": "bytes=0-0"}, lambda resp: resp.status,
        )

    def sha256_of(self, url: str) -> str:
        """Download ``url`` and return the hex SHA-256 of its content."""
        def _digest(resp: Any) -> str:
            h = hashlib.sha256()
            for chunk in iter(lambda: resp.read(_CHUNK), b""):
                h.update(chunk)
            return h.hexdigest()

        return self._with_retry(url, "GET", None, _digest)

    # ── Internals ───────────────────────────────────────────────

    def _headers(self, url: str, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        host = (urlparse(url).hostname or "").lower()
        token = self._tokens.get(host)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers.update(extra or {})
        return headers

    def _with_retry(self, url, method, headers, consume):
        """Run one request (plus at most one retry) and hand the response to ``consume``."""
        if not url.startswith(("http://", "https://")):
            raise UpstreamUnavailable(url, "unsupported URL scheme")

        attempts = 1 + self.retries
        for attempt in range(1, attempts + 1):
            req = urllib.request.Request(
                url, method=method, headers=self._headers(url, headers),
            )
            start = time.monotonic()
            try:
                with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                    result = consume(resp)
                logger.debug(
                    "%s %s → ok (%dms)", method, url,
                    int((time.monotonic() - start) * 1000),
                )
                return result
            except urllib.error.HTTPError as e:
                error = UpstreamUnavailable(url, e.reason or "HTTP error", status=e.code)
                if e.code not in _RETRYABLE or attempt == attempts:
                    raise error from e
            except (urllib.error.URLError, TimeoutError, OSError) as e:
                reason = getattr(e, "reason", None) or e
                error = UpstreamUnavailable(url, str(reason)[:200])
                if attempt == attempts:
                    raise error from e

            logger.debug("%s %s failed (%s) — retrying once", method, url, error)

        raise UpstreamUnavailable(url, "no request attempted")
