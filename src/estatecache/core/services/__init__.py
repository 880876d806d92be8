"""Domain services for estatecache."""

from estatecache.core.services.cache_store import CacheStore, utc_now
from estatecache.core.services.refresh_coordinator import (
    RefreshCoordinator,
    RefreshSubscription,
    SubscriptionConfig,
    SubscriptionState,
)

__all__ = [
    "CacheStore",
    "utc_now",
    "RefreshCoordinator",
    "RefreshSubscription",
    "SubscriptionConfig",
    "SubscriptionState",
]
