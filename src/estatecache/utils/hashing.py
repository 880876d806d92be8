"""Hashing utilities for cache key segments."""

import hashlib
import json
from typing import Any


def hash_value(value: Any) -> str:
    """Digest a structured filter value into a short key segment.

    Used by ``CacheKey.build`` for mapping and sequence filters (price
    ranges, amenity lists) so the rendered key stays short and the same
    filter always lands in the same slot.

    Args:
        value: A filter value; sets are expected to be sorted by the caller.

    Returns:
        The first 12 hex chars of the SHA-256 digest, or ``"none"`` for None.
    """
    if value is None:
        return "none"

    # {"min": 1, "max": 9} and {"max": 9, "min": 1} must share a key
    canonical = json.dumps(value, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()[:12]


def normalize_segment(value: Any) -> str:
    """Normalize a single key segment.

    Collapses whitespace so equivalent ids and filter values
    produce the same key segment.

    Args:
        value: The raw segment value.

    Returns:
        The normalized string segment.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return "-".join(str(value).split())
