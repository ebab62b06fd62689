"""
Domain models — Pydantic types for catalog reconciliation.

All models are re-exported here for convenient access:

    from catalogfix.core.models import CatalogEntry, Release, ReconciliationOutcome
"""

from catalogfix.core.models.catalog import (
    CatalogEntry,
    CheckverConfig,
    DownloadTarget,
    RepoRef,
)
from catalogfix.core.models.outcome import (
    IssueKind,
    IssueRecord,
    OutcomeStatus,
    ReconcileTrigger,
    ReconciliationOutcome,
    Severity,
    TargetRepair,
)
from catalogfix.core.models.release import Release, ReleaseAsset
from catalogfix.core.models.version import TokenKind, VersionToken

__all__ = [
    # catalog.py
    "CatalogEntry",
    "CheckverConfig",
    "DownloadTarget",
    "RepoRef",
    # outcome.py
    "IssueKind",
    "IssueRecord",
    "OutcomeStatus",
    "ReconcileTrigger",
    "ReconciliationOutcome",
    "Severity",
    "TargetRepair",
    # release.py
    "Release",
    "ReleaseAsset",
    # version.py
    "TokenKind",
    "VersionToken",
]
