"""
L1 Domain — version token extraction, validation and canonicalization.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from catalogfix.core.services.versioning.canonicalize import canonicalize  # noqa: F401
from catalogfix.core.services.versioning.extractor import (  # noqa: F401
    SHAPES,
    ShapeMatcher,
    extract,
    extract_reported,
)
from catalogfix.core.services.versioning.validator import (  # noqa: F401
    classify,
    is_plausible,
    make_token,
)
