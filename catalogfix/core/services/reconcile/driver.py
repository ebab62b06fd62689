"""
Reconciliation driver — detect drift in one catalog entry and repair it.

States:
    IDLE      → nothing started
    CHECKING  → probing recorded URLs, detecting the upstream version
    UP_TO_DATE (terminal) → every URL reachable, version unchanged
    REPAIRING → rebuilding drifted targets
    REPAIRED / NEEDS_MANUAL_REVIEW / FAILED (terminal)

Transitions:
    IDLE → CHECKING:               reconcile() called
    CHECKING → FAILED:             entry missing or unreadable, or detected
                                   token rejected by the validator
    CHECKING → UP_TO_DATE:         no drift
    CHECKING → REPAIRING:          unreachable URL or new version
    REPAIRING → REPAIRED:          every drifted target rebuilt
    REPAIRING → NEEDS_MANUAL_REVIEW: any target failed (fixed ones are kept)
    REPAIRING → FAILED:            the store reported a write conflict

Per target, the cheapest fix goes first: placeholder/version substitution.
Only when the substituted URL is not served does the driver go to the
forge (release → asset → checksum).  A target is replaced in the entry
only once its URL *and* checksum are both known.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from catalogfix.adapters.base import CatalogStore, Notifier, ReleaseAPI, VersionDetector
from catalogfix.adapters.http import HttpClient
from catalogfix.core.errors import CatalogError, EntryNotFound, WriteConflict
from catalogfix.core.models.catalog import CatalogEntry, DownloadTarget
from catalogfix.core.models.outcome import (
    IssueKind,
    IssueRecord,
    OutcomeStatus,
    ReconcileTrigger,
    ReconciliationOutcome,
    Severity,
    TargetRepair,
)
from catalogfix.core.models.release import Release
from catalogfix.core.services.reconcile.probes import ProbeResult, probe_url
from catalogfix.core.services.reconcile.substitution import (
    render_checksum_lookup,
    substitute_version,
    url_matches_version,
)
from catalogfix.core.services.releases.checksum import ChecksumResolver
from catalogfix.core.services.releases.resolver import DEFAULT_RECENT_LIMIT, AssetResolver
from catalogfix.core.services.releases.selector import select_best_asset
from catalogfix.core.services.versioning.canonicalize import canonicalize
from catalogfix.core.services.versioning.extractor import extract_reported
from catalogfix.core.services.versioning.validator import is_plausible

logger = logging.getLogger(__name__)

_REVIEW_SEVERITIES = (Severity.WARNING, Severity.ERROR, Severity.CRITICAL)


class DriverState(StrEnum):
    IDLE = "idle"
    CHECKING = "checking"
    REPAIRING = "repairing"
    UP_TO_DATE = "up_to_date"
    REPAIRED = "repaired"
    NEEDS_MANUAL_REVIEW = "needs_manual_review"
    FAILED = "failed"


@dataclass
class ReconcileContext:
    """Everything one reconcile() call accumulates.

    Created per call and discarded with it; nothing here outlives the
    outcome it produces.
    """

    entry_id: str
    trigger: ReconcileTrigger
    dry_run: bool = False
    should_cancel: Callable[[], bool] | None = None
    entry: CatalogEntry | None = None
    state: DriverState = DriverState.IDLE
    detected: str | None = None
    issues: list[IssueRecord] = field(default_factory=list)
    repairs: list[TargetRepair] = field(default_factory=list)
    releases: dict[str, Release | None] = field(default_factory=dict)

    def transition(self, new_state: DriverState) -> None:
        old = self.state
        self.state = new_state
        logger.debug("Reconcile '%s': %s → %s", self.entry_id, old.value, new_state.value)

    def add_issue(
        self,
        kind: IssueKind,
        title: str,
        description: str = "",
        severity: Severity = Severity.ERROR,
        platform: str | None = None,
    ) -> None:
        self.issues.append(
            IssueRecord(
                kind=kind,
                title=title,
                description=description,
                severity=severity,
                platform=platform,
            )
        )

    @property
    def needs_review(self) -> bool:
        return any(i.severity in _REVIEW_SEVERITIES for i in self.issues)

    def cancelled(self) -> bool:
        return bool(self.should_cancel and self.should_cancel())


class ReconciliationDriver:
    """One state machine for every repair entry point.

    Args:
        store: Catalog persistence.
        detector: Latest-version detector.
        release_api: Forge release API (also the detection fallback).
        http: HTTP client for probes and checksum downloads.
        notifier: Receives issues for every non-up-to-date outcome.
        non_standard_vendors: Entry names whose versions skip canonicalization.
        os_family: OS family used to pick release assets.
        recent_limit: Releases inspected by the resolver's fallback scan.
    """

    def __init__(
        self,
        store: CatalogStore,
        detector: VersionDetector,
        release_api: ReleaseAPI,
        http: HttpClient,
        notifier: Notifier | None = None,
        *,
        non_standard_vendors: Iterable[str] = (),
        os_family: str = "windows",
        recent_limit: int = DEFAULT_RECENT_LIMIT,
    ):
        self._store = store
        self._detector = detector
        self._http = http
        self._notifier = notifier
        self._vendors = frozenset(non_standard_vendors)
        self._os_family = os_family
        self._resolver = AssetResolver(release_api, recent_limit=recent_limit)
        self._checksums = ChecksumResolver(http)

    # ── Public API ──────────────────────────────────────────────

    def reconcile(
        self,
        entry_id: str,
        trigger: ReconcileTrigger = ReconcileTrigger.AUTOFIX,
        *,
        dry_run: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ReconciliationOutcome:
        """Reconcile one catalog entry end to end.

        Returns:
            The terminal outcome.  Expected failures never raise; they
            are classified and carried as issues.
        """
        ctx = ReconcileContext(
            entry_id=entry_id,
            trigger=trigger,
            dry_run=dry_run,
            should_cancel=should_cancel,
        )
        ctx.transition(DriverState.CHECKING)

        try:
            entry = self._store.read(entry_id)
        except EntryNotFound as e:
            ctx.add_issue(IssueKind.ENTRY_NOT_FOUND, "Catalog entry not found", str(e))
            return self._finish(ctx, OutcomeStatus.FAILED)
        except CatalogError as e:
            ctx.add_issue(IssueKind.ENTRY_UNREADABLE, "Catalog entry could not be read", str(e))
            return self._finish(ctx, OutcomeStatus.FAILED)

        ctx.entry = entry
        logger.info("Reconciling %s %s (%s)", entry.name, entry.version, trigger.value)

        probes = {t.platform: probe_url(self._http, t.url) for t in entry.targets}
        all_reachable = all(p.reachable for p in probes.values())

        raw = self.detect_raw(entry)
        token = extract_reported(raw)

        if token is None:
            logger.info("No version found for %s — keeping %s", entry.name, entry.version)
            if not all_reachable:
                ctx.add_issue(
                    IssueKind.EXTRACTION_MISS,
                    "No upstream version detected",
                    f"Repairing {entry.name} against its recorded version {entry.version}.",
                    severity=Severity.INFO,
                )
            target_version = entry.version
        elif not is_plausible(token):
            ctx.detected = token.raw
            ctx.add_issue(
                IssueKind.VALIDATION_REJECTED,
                f"Implausible version '{token.raw}'",
                f"Version detection for {entry.name} produced '{token.raw}', "
                "which does not look like a release version.",
            )
            return self._finish(ctx, OutcomeStatus.FAILED)
        else:
            target_version = canonicalize(
                token, entry.urls, verbatim=entry.name in self._vendors,
            )
            ctx.detected = target_version

        version_changed = target_version != entry.version
        if all_reachable and not version_changed:
            return self._finish(ctx, OutcomeStatus.UP_TO_DATE)

        ctx.transition(DriverState.REPAIRING)
        if version_changed:
            logger.info("%s: %s → %s", entry.name, entry.version, target_version)

        new_targets: list[DownloadTarget] = []
        for target in entry.targets:
            if ctx.cancelled():
                ctx.add_issue(
                    IssueKind.CANCELLED,
                    "Reconciliation cancelled",
                    "Stopped between targets; nothing was written.",
                    severity=Severity.WARNING,
                )
                return self._finish(ctx, OutcomeStatus.NEEDS_MANUAL_REVIEW)

            # Reachable and already on the target version (e.g. fixed by an
            # earlier partial repair): leave it alone
            if probes[target.platform].reachable and (
                not version_changed or url_matches_version(target, target_version)
            ):
                new_targets.append(target)
                continue

            repaired = self._repair_target(
                ctx, entry, target, target_version, probes[target.platform],
            )
            new_targets.append(repaired or target)

        status = (
            OutcomeStatus.NEEDS_MANUAL_REVIEW if ctx.needs_review else OutcomeStatus.REPAIRED
        )
        # A half-repaired entry keeps its old version so the next run retries
        new_version = target_version if status == OutcomeStatus.REPAIRED else entry.version
        updated = entry.with_targets(new_targets, version=new_version)

        if not ctx.repairs and new_version == entry.version:
            return self._finish(ctx, status)

        if ctx.cancelled():
            ctx.add_issue(
                IssueKind.CANCELLED,
                "Reconciliation cancelled",
                "Stopped before writing; nothing was written.",
                severity=Severity.WARNING,
            )
            return self._finish(ctx, OutcomeStatus.NEEDS_MANUAL_REVIEW)

        if ctx.dry_run:
            logger.info("[dry-run] would write %s (%d target(s))", entry.name, len(ctx.repairs))
            return self._finish(ctx, status)

        try:
            self._store.write(entry.name, updated)
        except WriteConflict as e:
            ctx.add_issue(
                IssueKind.WRITE_CONFLICT,
                "Concurrent modification",
                str(e),
                severity=Severity.CRITICAL,
            )
            return self._finish(ctx, OutcomeStatus.FAILED)

        return self._finish(ctx, status, written=True)

    def reconcile_many(
        self,
        entry_ids: Iterable[str],
        trigger: ReconcileTrigger = ReconcileTrigger.AUTOFIX,
        *,
        dry_run: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ) -> list[ReconciliationOutcome]:
        """Reconcile entries one after another."""
        outcomes = []
        for entry_id in entry_ids:
            if should_cancel and should_cancel():
                logger.warning("Batch cancelled before '%s'", entry_id)
                break
            outcomes.append(
                self.reconcile(
                    entry_id, trigger, dry_run=dry_run, should_cancel=should_cancel,
                )
            )
        return outcomes

    # ── Checking ────────────────────────────────────────────────

    def detect_raw(self, entry: CatalogEntry) -> str | None:
        """Detector output, or the newest release tag when the detector has nothing."""
        try:
            raw = self._detector.detect(entry)
        except Exception as e:
            logger.warning("Version detector failed for %s: %s", entry.name, e)
            raw = None

        if raw and raw.strip():
            return raw

        if entry.repository is None:
            return None

        logger.info("Detector silent for %s — asking %s for its latest release",
                    entry.name, entry.repository)
        release = self._resolver.latest_release(entry.repository)
        return release.tag if release else None

    # ── Repairing ───────────────────────────────────────────────

    def _repair_target(
        self,
        ctx: ReconcileContext,
        entry: CatalogEntry,
        target: DownloadTarget,
        version: str,
        probe: ProbeResult,
    ) -> DownloadTarget | None:
        candidate = substitute_version(target, entry.version, version)
        if candidate:
            candidate_probe = (
                probe if candidate == target.url else probe_url(self._http, candidate)
            )
            if candidate_probe.reachable:
                lookup = render_checksum_lookup(target, candidate, version)
                digest = self._checksums.resolve_url_checksum(candidate, lookup)
                if digest is None:
                    ctx.add_issue(
                        IssueKind.CHECKSUM_UNAVAILABLE,
                        f"No checksum for {target.platform} download",
                        f"Could not obtain a digest for {candidate}.",
                        platform=target.platform,
                    )
                    return None
                return self._record(ctx, target, candidate, digest, "substitution")
            logger.info("Substituted URL not served: %s", candidate)

        return self._rebuild_target(ctx, entry, target, version)

    def _rebuild_target(
        self,
        ctx: ReconcileContext,
        entry: CatalogEntry,
        target: DownloadTarget,
        version: str,
    ) -> DownloadTarget | None:
        if entry.repository is None:
            ctx.add_issue(
                IssueKind.ASSET_NOT_FOUND,
                f"Cannot rebuild {target.platform} download",
                f"{entry.name} has no upstream repository to look for release assets.",
                platform=target.platform,
            )
            return None

        if version not in ctx.releases:
            ctx.releases[version] = self._resolver.resolve_release(entry.repository, version)
        release = ctx.releases[version]

        if release is None:
            ctx.add_issue(
                IssueKind.UPSTREAM_UNAVAILABLE,
                f"No release found for {version}",
                f"{entry.repository} has no release matching {version}, "
                "or the forge could not be reached.",
                platform=target.platform,
            )
            return None

        asset = select_best_asset(release.assets, target.platform, self._os_family)
        if asset is None:
            names = ", ".join(a.name for a in release.assets[:10]) or "none"
            ctx.add_issue(
                IssueKind.ASSET_NOT_FOUND,
                f"No {target.platform} asset in {release.tag}",
                f"Available assets: {names}",
                platform=target.platform,
            )
            return None

        digest = self._checksums.resolve_checksum(release.assets, asset)
        if digest is None:
            ctx.add_issue(
                IssueKind.CHECKSUM_UNAVAILABLE,
                f"No checksum for {asset.name}",
                "No checksum manifest, forge digest, or downloadable copy.",
                platform=target.platform,
            )
            return None

        if release.matched_by in ("substring", "latest"):
            ctx.add_issue(
                IssueKind.ASSET_NOT_FOUND,
                f"Low-confidence release match for {version}",
                f"Used release '{release.tag}' (matched by {release.matched_by}); "
                "please confirm it is the right version.",
                severity=Severity.WARNING,
                platform=target.platform,
            )

        return self._record(ctx, target, asset.url, digest, "rebuild")

    def _record(
        self,
        ctx: ReconcileContext,
        target: DownloadTarget,
        url: str,
        digest: str,
        method: str,
    ) -> DownloadTarget:
        ctx.repairs.append(
            TargetRepair(
                platform=target.platform,
                old_url=target.url,
                new_url=url,
                checksum=digest,
                method=method,
            )
        )
        logger.info("Repaired %s target (%s): %s", target.platform, method, url)
        return target.replace(url=url, checksum=digest)

    # ── Terminal ────────────────────────────────────────────────

    def _finish(
        self,
        ctx: ReconcileContext,
        status: OutcomeStatus,
        written: bool = False,
    ) -> ReconciliationOutcome:
        ctx.transition(DriverState(status.value))
        entry = ctx.entry
        outcome = ReconciliationOutcome(
            entry=entry.name if entry else ctx.entry_id,
            status=status,
            trigger=ctx.trigger,
            current_version=entry.version if entry else "",
            detected_version=ctx.detected,
            repaired=list(ctx.repairs),
            issues=list(ctx.issues),
            written=written,
            dry_run=ctx.dry_run,
        )

        level = logging.INFO if outcome.ok else logging.WARNING
        logger.log(level, "%s: %s (%d issue(s))", outcome.entry, status.value, len(outcome.issues))

        if status != OutcomeStatus.UP_TO_DATE:
            self._notify(outcome)
        return outcome

    def _notify(self, outcome: ReconciliationOutcome) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.report(outcome.issues, entry=outcome.entry, status=outcome.status)
        except Exception as e:
            logger.warning("Notifier failed for %s: %s", outcome.entry, e)
