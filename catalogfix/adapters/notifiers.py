"""
Notifiers — where the issues of an outcome go.

``LogNotifier`` writes each issue to the log at a level matching its
severity.  The reconcile ledger keeps the durable record; see
``catalogfix.core.persistence.ledger``.
"""

from __future__ import annotations

import logging

from catalogfix.adapters.base import Notifier
from catalogfix.core.models.outcome import IssueRecord, OutcomeStatus, Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.CRITICAL: logging.CRITICAL,
}


class LogNotifier(Notifier):
    def report(
        self,
        issues: list[IssueRecord],
        *,
        entry: str = "",
        status: OutcomeStatus | None = None,
    ) -> None:
        for issue in issues:
            where = f" [{issue.platform}]" if issue.platform else ""
            logger.log(
                _LEVELS.get(issue.severity, logging.WARNING),
                "%s%s: %s (%s)", entry, where, issue.title, issue.description or "no details",
            )
