"""Persistence — catalog manifests on disk and the reconcile ledger."""

from catalogfix.core.persistence.catalog_file import (  # noqa: F401
    JsonCatalogStore,
    parse_manifest,
    render_manifest,
)
from catalogfix.core.persistence.ledger import LedgerRecord, ReconcileLedger  # noqa: F401
