"""
Reconcile use cases — wire settings to collaborators and run the driver.

    build_driver   — concrete collaborators from Settings (overridable)
    run_reconcile  — reconcile named entries (or all) and record outcomes
    check_version  — detection + extraction + validation, no repair
    read_ledger    — recent ledger records
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from catalogfix.adapters.base import CatalogStore, Notifier, ReleaseAPI, VersionDetector
from catalogfix.adapters.detectors import CheckverDetector, CommandDetector
from catalogfix.adapters.forges import ForgeRouter
from catalogfix.adapters.http import HttpClient
from catalogfix.adapters.notifiers import LogNotifier
from catalogfix.core.config.loader import Settings
from catalogfix.core.errors import CatalogError
from catalogfix.core.models.outcome import (
    OutcomeStatus,
    ReconcileTrigger,
    ReconciliationOutcome,
)
from catalogfix.core.persistence.catalog_file import JsonCatalogStore
from catalogfix.core.persistence.ledger import LedgerRecord, ReconcileLedger
from catalogfix.core.services.reconcile.driver import ReconciliationDriver
from catalogfix.core.services.versioning import (
    canonicalize,
    extract_reported,
    is_plausible,
)

logger = logging.getLogger(__name__)


def build_http(settings: Settings) -> HttpClient:
    kwargs = {}
    if settings.http.user_agent:
        kwargs["user_agent"] = settings.http.user_agent
    return HttpClient(
        timeout=settings.http.timeout,
        retries=settings.http.retries,
        tokens=settings.forge_tokens(),
        **kwargs,
    )


def build_driver(
    settings: Settings,
    *,
    store: CatalogStore | None = None,
    http: HttpClient | None = None,
    release_api: ReleaseAPI | None = None,
    detector: VersionDetector | None = None,
    notifier: Notifier | None = None,
) -> ReconciliationDriver:
    """Assemble a driver; any collaborator can be swapped (tests do)."""
    http = http or build_http(settings)
    release_api = release_api or ForgeRouter(http)
    if detector is None:
        if settings.checkver_command:
            detector = CommandDetector(settings.checkver_command)
        else:
            detector = CheckverDetector(http, release_api)

    return ReconciliationDriver(
        store=store or JsonCatalogStore(settings.catalog_path),
        detector=detector,
        release_api=release_api,
        http=http,
        notifier=notifier or LogNotifier(),
        non_standard_vendors=settings.non_standard_vendors,
        os_family=settings.platform_os,
        recent_limit=settings.releases.recent_limit,
    )


# ── Reconcile ───────────────────────────────────────────────────


@dataclass
class ReconcileResult:
    """Outcomes of one reconcile run."""

    outcomes: list[ReconciliationOutcome] = field(default_factory=list)
    error: str | None = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and all(o.ok for o in self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if self.error:
            return {"error": self.error}
        return {
            "dry_run": self.dry_run,
            "summary": {s.value: self.count(s) for s in OutcomeStatus},
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def run_reconcile(
    settings: Settings,
    names: list[str] | tuple[str, ...] = (),
    *,
    all_entries: bool = False,
    trigger: ReconcileTrigger = ReconcileTrigger.AUTOFIX,
    dry_run: bool = False,
    driver: ReconciliationDriver | None = None,
    store: CatalogStore | None = None,
    ledger: ReconcileLedger | None = None,
) -> ReconcileResult:
    """Reconcile ``names`` (or every entry) and append outcomes to the ledger."""
    result = ReconcileResult(dry_run=dry_run)

    if store is None:
        if not settings.catalog_path.is_dir():
            result.error = f"Catalog directory not found: {settings.catalog_path}"
            return result
        store = JsonCatalogStore(settings.catalog_path)

    targets = list(names)
    if all_entries:
        targets = store.list_entries()
    if not targets:
        result.error = "No entries to reconcile (give names or --all)"
        return result

    driver = driver or build_driver(settings, store=store)
    ledger = ledger or ReconcileLedger(settings.ledger_path)

    logger.info("Reconciling %d entr(y/ies) via %s", len(targets), trigger.value)
    for name in targets:
        outcome = driver.reconcile(name, trigger, dry_run=dry_run)
        result.outcomes.append(outcome)
        ledger.record_outcome(outcome)

    return result


# ── Check ───────────────────────────────────────────────────────


@dataclass
class CheckverResult:
    """What detection says about one entry, without touching it."""

    name: str
    current_version: str = ""
    raw: str | None = None
    token: str | None = None
    kind: str | None = None
    plausible: bool = False
    canonical: str | None = None
    error: str | None = None

    @property
    def outdated(self) -> bool:
        return bool(self.plausible and self.canonical and self.canonical != self.current_version)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if self.error:
            return {"name": self.name, "error": self.error}
        return {
            "name": self.name,
            "current_version": self.current_version,
            "raw": self.raw,
            "token": self.token,
            "kind": self.kind,
            "plausible": self.plausible,
            "canonical": self.canonical,
            "outdated": self.outdated,
        }


def check_version(
    settings: Settings,
    name: str,
    *,
    driver: ReconciliationDriver | None = None,
    store: CatalogStore | None = None,
) -> CheckverResult:
    """Detect, extract, validate and canonicalize the latest version of ``name``."""
    result = CheckverResult(name=name)
    store = store or JsonCatalogStore(settings.catalog_path)
    driver = driver or build_driver(settings, store=store)

    try:
        entry = store.read(name)
    except CatalogError as e:
        result.error = str(e)
        return result

    result.current_version = entry.version
    result.raw = driver.detect_raw(entry)
    token = extract_reported(result.raw)
    if token is None:
        return result

    result.token = token.raw
    result.kind = token.kind.value
    result.plausible = is_plausible(token)
    if result.plausible:
        result.canonical = canonicalize(
            token, entry.urls, verbatim=name in settings.non_standard_vendors,
        )
    return result


# ── Ledger ──────────────────────────────────────────────────────


def read_ledger(settings: Settings, n: int = 20) -> list[LedgerRecord]:
    return ReconcileLedger(settings.ledger_path).read_recent(n)
