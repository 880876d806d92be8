"""Core domain layer for estatecache."""

from estatecache.core.entities import (
    CacheConfig,
    CacheEntry,
    CacheKey,
    InvalidationRule,
    PendingRequest,
    RefreshConfig,
    TTLPolicy,
)
from estatecache.core.interfaces import IInvalidator, IPropertySource
from estatecache.core.services import (
    CacheStore,
    RefreshCoordinator,
    SubscriptionConfig,
)

__all__ = [
    # Entities
    "CacheConfig",
    "CacheEntry",
    "CacheKey",
    "InvalidationRule",
    "PendingRequest",
    "RefreshConfig",
    "TTLPolicy",
    # Interfaces
    "IInvalidator",
    "IPropertySource",
    # Services
    "CacheStore",
    "RefreshCoordinator",
    "SubscriptionConfig",
]
