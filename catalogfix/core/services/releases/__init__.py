"""
Release services — resolve a release, pick its asset, find its checksum.

    resolver.py  — AssetResolver   (forge lookups, read-only)
    selector.py  — select_best_asset (pure scoring)
    checksum.py  — ChecksumResolver (manifest → forge digest → download)
"""

from catalogfix.core.services.releases.checksum import (  # noqa: F401
    ChecksumResolver,
    find_digest,
    format_digest,
    parse_checksum_lines,
)
from catalogfix.core.services.releases.resolver import AssetResolver  # noqa: F401
from catalogfix.core.services.releases.selector import select_best_asset  # noqa: F401
