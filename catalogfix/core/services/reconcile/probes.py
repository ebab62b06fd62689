"""
L3 Detection — Download URL reachability probes.

Read-only: a HEAD request (ranged GET where HEAD is refused).  URLs
with unresolved placeholders are never dereferenced — they come back
as skipped, which the driver treats as drift.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import UpstreamUnavailable
from catalogfix.core.services.reconcile.substitution import has_placeholder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one reachability check."""

    url: str
    reachable: bool
    status: int | None = None
    error: str = ""
    skipped: bool = False
    latency_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "reachable": self.reachable,
            "status": self.status,
            "error": self.error,
            "skipped": self.skipped,
            "latency_ms": self.latency_ms,
        }


def probe_url(http: HttpClient, url: str) -> ProbeResult:
    """Check whether ``url`` is currently served.  Never raises."""
    if not url or has_placeholder(url):
        return ProbeResult(url=url, reachable=False, skipped=True, error="unresolved placeholder")

    start = time.monotonic()
    try:
        status = http.head(url)
    except UpstreamUnavailable as e:
        elapsed = int((time.monotonic() - start) * 1000)
        logger.info("Unreachable: %s (%s)", url, e)
        return ProbeResult(
            url=url, reachable=False, status=e.status,
            error=str(e.reason)[:200], latency_ms=elapsed,
        )

    elapsed = int((time.monotonic() - start) * 1000)
    return ProbeResult(url=url, reachable=True, status=status, latency_ms=elapsed)
