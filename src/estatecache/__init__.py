"""estatecache - client-side data-fetch cache for the property marketplace.

Sits between views and the hosted document store. Provides request
coalescing, per-entry expiry, invalidation keyed by mutation event,
and a refresh coordinator that turns out-of-band signals (the view
becoming visible again, application events, a polling timer) into
invalidation plus re-fetch.

Example:
    from datetime import timedelta
    from estatecache import (
        CacheKey,
        CacheStore,
        PageVisibility,
        RefreshCoordinator,
        SubscriptionConfig,
    )

    store = CacheStore()
    coordinator = RefreshCoordinator.for_store(store)
    visibility = PageVisibility(store.signals)

    saved = await store.get_or_fetch(
        CacheKey.build("saved_properties", user_id),
        lambda: source.fetch_saved(user_id),
        ttl=timedelta(seconds=30),
    )

    unsubscribe = coordinator.subscribe(
        SubscriptionConfig(user_id=user_id, on_user_data_change=view.reload)
    )

    # After the user saves a property
    store.invalidate_on_change("saved_properties", user_id)

    # When the view goes away
    unsubscribe()
"""

from estatecache.core.entities import (
    DEFAULT_RULES,
    CacheConfig,
    CacheEntry,
    CacheKey,
    InvalidationRule,
    InvalidationRuleError,
    InvalidCacheKeyError,
    PendingRequest,
    RefreshConfig,
    TTLPolicy,
)
from estatecache.core.interfaces import (
    IInvalidator,
    IPropertySource,
    PropertyRecord,
)
from estatecache.core.services import (
    CacheStore,
    RefreshCoordinator,
    RefreshSubscription,
    SubscriptionConfig,
    SubscriptionState,
)
from estatecache.decorators import cached, invalidates
from estatecache.infrastructure import (
    CacheJanitor,
    PageVisibility,
    SignalBus,
)
from estatecache.loaders import LazyData

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core entities
    "CacheConfig",
    "CacheEntry",
    "CacheKey",
    "PendingRequest",
    "RefreshConfig",
    "TTLPolicy",
    # Invalidation
    "InvalidationRule",
    "DEFAULT_RULES",
    # Errors
    "InvalidCacheKeyError",
    "InvalidationRuleError",
    # Core interfaces
    "IInvalidator",
    "IPropertySource",
    "PropertyRecord",
    # Core services
    "CacheStore",
    "RefreshCoordinator",
    "RefreshSubscription",
    "SubscriptionConfig",
    "SubscriptionState",
    # Infrastructure implementations
    "CacheJanitor",
    "PageVisibility",
    "SignalBus",
    # View helpers
    "LazyData",
    # Decorators
    "cached",
    "invalidates",
]
