"""
Reconcile ledger — append-only history of reconciliation outcomes.

One NDJSON line per reconciled entry: when, which trigger, what was
detected, what was repaired, which issues were raised.  Lines are never
rewritten.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from catalogfix.core.models.outcome import IssueRecord, ReconciliationOutcome

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_PATH = ".state/reconcile.ndjson"


class LedgerRecord(BaseModel):
    """A single ledger line."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    entry: str = ""
    status: str = ""
    trigger: str = ""
    current_version: str = ""
    detected_version: str | None = None
    repaired: list[str] = Field(default_factory=list)     # platforms
    written: bool = False
    dry_run: bool = False
    issues: list[IssueRecord] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: ReconciliationOutcome) -> LedgerRecord:
        return cls(
            timestamp=outcome.finished_at,
            entry=outcome.entry,
            status=outcome.status.value,
            trigger=outcome.trigger.value,
            current_version=outcome.current_version,
            detected_version=outcome.detected_version,
            repaired=[r.platform for r in outcome.repaired],
            written=outcome.written,
            dry_run=outcome.dry_run,
            issues=list(outcome.issues),
        )


class ReconcileLedger:
    """Append-only ledger writer/reader.

    The file (and its directory) is created on first write.
    """

    def __init__(self, path: Path | None = None, root: Path | None = None):
        if path is not None:
            self._path = path
        elif root is not None:
            self._path = root / DEFAULT_LEDGER_PATH
        else:
            self._path = Path(DEFAULT_LEDGER_PATH)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, record: LedgerRecord) -> None:
        """Append one record.  I/O errors are logged, not raised."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Ledger record written: %s/%s", record.entry, record.status)
        except OSError as e:
            logger.error("Failed to write ledger record: %s", e)

    def record_outcome(self, outcome: ReconciliationOutcome) -> None:
        self.write(LedgerRecord.from_outcome(outcome))

    def read_all(self) -> list[LedgerRecord]:
        """All records, oldest first.  Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        records = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        records.append(LedgerRecord.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt ledger line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read ledger: %s", e)

        return records

    def read_recent(self, n: int = 20) -> list[LedgerRecord]:
        """The most recent ``n`` records, oldest first."""
        if n <= 0:
            return []
        return self.read_all()[-n:]
