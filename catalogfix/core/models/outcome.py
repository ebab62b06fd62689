"""
Reconciliation outcome models — the result contract of the driver.

One ReconciliationOutcome is produced per reconcile() call.  It is
self-contained: the issues raised while processing the entry travel
with the outcome instead of living in shared state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class OutcomeStatus(StrEnum):
    """Terminal classification of a reconciliation."""

    UP_TO_DATE = "up_to_date"
    REPAIRED = "repaired"
    NEEDS_MANUAL_REVIEW = "needs_manual_review"
    FAILED = "failed"


class ReconcileTrigger(StrEnum):
    """Which entry point asked for the reconciliation."""

    AUTOFIX = "autofix"
    UPDATE = "update"
    INSTALL_TEST = "install_test"


class IssueKind(StrEnum):
    EXTRACTION_MISS = "extraction_miss"
    VALIDATION_REJECTED = "validation_rejected"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    ASSET_NOT_FOUND = "asset_not_found"
    CHECKSUM_UNAVAILABLE = "checksum_unavailable"
    WRITE_CONFLICT = "write_conflict"
    CANCELLED = "cancelled"
    ENTRY_NOT_FOUND = "entry_not_found"
    ENTRY_UNREADABLE = "entry_unreadable"


class Severity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class IssueRecord(BaseModel):
    """Something a human (or the notifier) should know about."""

    kind: IssueKind
    title: str
    description: str = ""
    severity: Severity = Severity.ERROR
    platform: str | None = None


class TargetRepair(BaseModel):
    """A single download target that was rebuilt successfully."""

    platform: str
    old_url: str
    new_url: str
    checksum: str
    method: str = "substitution"    # substitution | rebuild


class ReconciliationOutcome(BaseModel):
    """Terminal result of reconciling one catalog entry."""

    entry: str
    status: OutcomeStatus
    trigger: ReconcileTrigger = ReconcileTrigger.AUTOFIX
    current_version: str = ""
    detected_version: str | None = None
    repaired: list[TargetRepair] = Field(default_factory=list)
    issues: list[IssueRecord] = Field(default_factory=list)
    written: bool = False
    dry_run: bool = False
    finished_at: str = Field(default_factory=_now_iso)

    @property
    def ok(self) -> bool:
        """Whether the entry ended in a state that needs no attention."""
        return self.status in (OutcomeStatus.UP_TO_DATE, OutcomeStatus.REPAIRED)

    def issue_kinds(self) -> list[IssueKind]:
        return [i.kind for i in self.issues]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return self.model_dump(mode="json")
