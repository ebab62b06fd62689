"""
Reconciliation — drift detection and self-repair of catalog entries.

    substitution.py — $version placeholders and literal version swaps (pure)
    probes.py       — URL reachability checks
    driver.py       — ReconciliationDriver, the state machine every trigger uses
"""

from catalogfix.core.services.reconcile.driver import (  # noqa: F401
    DriverState,
    ReconcileContext,
    ReconciliationDriver,
)
from catalogfix.core.services.reconcile.probes import ProbeResult, probe_url  # noqa: F401
from catalogfix.core.services.reconcile.substitution import (  # noqa: F401
    render_checksum_lookup,
    substitute_version,
)
