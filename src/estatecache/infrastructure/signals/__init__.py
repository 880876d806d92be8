"""Signal plumbing for refresh coordination."""

from estatecache.infrastructure.signals.bus import (
    CACHE_CHANGED,
    CONNECTION_RESTORED,
    REFRESH_PROPERTIES,
    REFRESH_SAVED,
    REFRESH_USER,
    VISIBILITY_REGAINED,
    SignalBus,
)
from estatecache.infrastructure.signals.visibility import PageVisibility

__all__ = [
    "SignalBus",
    "PageVisibility",
    "CACHE_CHANGED",
    "VISIBILITY_REGAINED",
    "CONNECTION_RESTORED",
    "REFRESH_USER",
    "REFRESH_SAVED",
    "REFRESH_PROPERTIES",
]
