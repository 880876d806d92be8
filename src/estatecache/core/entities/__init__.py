"""Domain entities for estatecache."""

from estatecache.core.entities.cache_config import (
    CacheConfig,
    RefreshConfig,
    TTLPolicy,
)
from estatecache.core.entities.cache_entry import CacheEntry, PendingRequest
from estatecache.core.entities.cache_key import CacheKey, InvalidCacheKeyError
from estatecache.core.entities.invalidation_rule import (
    DEFAULT_RULES,
    InvalidationRule,
    InvalidationRuleError,
)

__all__ = [
    "CacheEntry",
    "PendingRequest",
    "CacheKey",
    "InvalidCacheKeyError",
    "CacheConfig",
    "TTLPolicy",
    "RefreshConfig",
    "InvalidationRule",
    "InvalidationRuleError",
    "DEFAULT_RULES",
]
