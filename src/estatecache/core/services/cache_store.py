"""Cache store - keyed data-fetch cache with coalescing and invalidation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from cachetools import TLRUCache  # type: ignore[import-untyped]

from estatecache.core.entities.cache_config import CacheConfig
from estatecache.core.entities.cache_entry import CacheEntry, PendingRequest
from estatecache.core.entities.cache_key import CacheKey, resolve_key
from estatecache.core.entities.invalidation_rule import (
    PROPERTY_DATA_PATTERNS,
    USER_DATA_PATTERNS,
    InvalidationRule,
    expand_patterns,
    matches_any,
)
from estatecache.infrastructure.signals.bus import CACHE_CHANGED, SignalBus

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def _entry_expiry(key: str, entry: CacheEntry, now: datetime) -> datetime:
    return entry.expires_at


class CacheStore:
    """Single source of truth for fetched data.

    Returns a cached value while it is fresh, runs at most one fetch
    per key no matter how many callers ask concurrently, and evicts
    entries when a mutation event declares them stale.

    One instance is created by whatever owns the view composition root
    and passed to every consumer; tests construct their own.

    Example:
        store = CacheStore(config=CacheConfig(default_ttl=timedelta(minutes=2)))

        listings = await store.get_or_fetch(
            CacheKey.build("all_properties", filters={"limit": 20}),
            lambda: source.fetch_available_properties(20),
            ttl=timedelta(minutes=2),
        )

        # after saving a property for user u1
        store.invalidate_on_change("saved_properties", "u1")
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        signals: SignalBus | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the cache store.

        Args:
            config: Optional cache configuration. Uses defaults if not provided.
            signals: Bus that change notifications are published on.
                A private bus is created if not provided.
            clock: Callable returning the current time. Injected by tests.
        """
        self._config = config or CacheConfig()
        self._signals = signals or SignalBus()
        self._clock = clock
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=self._config.max_size,
            ttu=_entry_expiry,
            timer=clock,
        )
        self._pending: dict[str, PendingRequest] = {}
        self._rules: dict[str, InvalidationRule] = {
            rule.event: rule for rule in self._config.invalidation_rules
        }

        # Statistics
        self._hits = 0
        self._misses = 0
        self._coalesced = 0

    @property
    def config(self) -> CacheConfig:
        """Get the cache configuration."""
        return self._config

    @property
    def signals(self) -> SignalBus:
        """Get the bus that change notifications are published on."""
        return self._signals

    @property
    def rules(self) -> dict[str, InvalidationRule]:
        """Get a copy of the invalidation rules keyed by event."""
        return dict(self._rules)

    @property
    def stats(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, coalesced and total requests,
            plus the current entry and pending-request counts.
        """
        self._entries.expire()
        return {
            "hits": self._hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
            "total": self._hits + self._misses + self._coalesced,
            "size": len(self._entries),
            "pending": len(self._pending),
        }

    def keys(self) -> list[str]:
        """Return the keys of all fresh entries."""
        self._entries.expire()
        return list(self._entries.keys())

    def is_pending(self, key: str | CacheKey) -> bool:
        """Check whether a fetch is in flight for a key."""
        return resolve_key(key) in self._pending

    def register_rule(self, rule: InvalidationRule) -> None:
        """Add or replace the invalidation rule for an event.

        Args:
            rule: The rule to register.
        """
        self._rules[rule.event] = rule

    async def get_or_fetch(
        self,
        key: str | CacheKey,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: timedelta | None = None,
        tags: list[str] | None = None,
    ) -> T:
        """Return the cached value for a key, fetching it if needed.

        A fresh entry is returned without calling ``fetch_fn``. If a
        fetch for the key is already in flight, the caller waits for
        that fetch instead of starting another one. Otherwise
        ``fetch_fn`` is called once and its result is stored for
        ``ttl``. Failures are propagated to every waiting caller and
        never cached.

        Cancelling one caller does not cancel the shared fetch.

        A fetch already in flight when its key is invalidated is not
        restarted: callers arriving afterwards still join it and may
        receive a value read before the mutation. Its result is not
        stored, so the first call after it settles fetches again.

        Args:
            key: The cache key. Distinct queries must use distinct keys.
            fetch_fn: Zero-argument coroutine function producing the value.
            ttl: Time-to-live. Uses config default if not provided.
            tags: Optional dependency tags for invalidation.

        Returns:
            The cached or freshly fetched value.

        Raises:
            InvalidCacheKeyError: If the key is empty.
            ValueError: If the TTL is not positive.
        """
        cache_key = resolve_key(key)
        effective_ttl = self._resolve_ttl(ttl)

        if not self._config.enabled:
            return await fetch_fn()

        entry = self._lookup(cache_key)
        if entry is not None:
            self._hits += 1
            logger.debug("Cache HIT: %s", cache_key)
            return entry.value  # type: ignore[no-any-return]

        pending = self._pending.get(cache_key)
        if pending is not None:
            pending.waiters += 1
            self._coalesced += 1
            logger.debug(
                "Cache JOIN: %s (%d waiting)", cache_key, pending.waiters
            )
        else:
            self._misses += 1
            logger.debug("Cache MISS: %s - fetching", cache_key)
            pending = self._start_fetch(cache_key, fetch_fn, effective_ttl, tags)

        return await asyncio.shield(pending.task)  # type: ignore[no-any-return]

    async def refresh(
        self,
        key: str | CacheKey,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: timedelta | None = None,
        tags: list[str] | None = None,
    ) -> T:
        """Evict a key and fetch it again.

        Args:
            key: The cache key.
            fetch_fn: Zero-argument coroutine function producing the value.
            ttl: Time-to-live. Uses config default if not provided.
            tags: Optional dependency tags for invalidation.

        Returns:
            The freshly fetched value.
        """
        self.invalidate(key)
        return await self.get_or_fetch(key, fetch_fn, ttl=ttl, tags=tags)

    def get(self, key: str | CacheKey, default: Any = None) -> Any:
        """Return a fresh cached value without fetching.

        Args:
            key: The cache key.
            default: Value returned on a miss.

        Returns:
            The cached value, or ``default`` if missing or expired.
        """
        entry = self.get_entry(key)
        if entry is None:
            self._misses += 1
            return default

        self._hits += 1
        return entry.value

    def get_entry(self, key: str | CacheKey) -> CacheEntry | None:
        """Return the fresh entry for a key, or None.

        Does not touch the hit/miss statistics.
        """
        return self._lookup(resolve_key(key))

    def set(
        self,
        key: str | CacheKey,
        value: Any,
        ttl: timedelta | None = None,
        tags: list[str] | None = None,
    ) -> CacheEntry:
        """Store a value directly.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Time-to-live. Uses config default if not provided.
            tags: Optional dependency tags for invalidation.

        Returns:
            The created CacheEntry.
        """
        cache_key = resolve_key(key)
        entry = CacheEntry.create(
            key=cache_key,
            value=value,
            now=self._clock(),
            ttl=self._resolve_ttl(ttl),
            tags=tags,
        )
        if self._config.enabled:
            self._entries[cache_key] = entry
            logger.debug("Cache SET: %s (TTL: %ss)", cache_key, entry.ttl.total_seconds())
        return entry

    def invalidate(self, key: str | CacheKey) -> bool:
        """Evict a single key.

        An in-flight fetch for the key still completes for its
        callers, but its result is not stored.

        Args:
            key: The cache key to evict.

        Returns:
            True if a fresh entry was evicted, False otherwise.
        """
        cache_key = resolve_key(key)
        removed = self._entries.pop(cache_key, None) is not None
        pending = self._pending.get(cache_key)
        if pending is not None:
            pending.invalidated = True
        if removed:
            logger.debug("Cache INVALIDATED: %s", cache_key)
        return removed

    def invalidate_pattern(self, pattern: str) -> int:
        """Evict every entry whose key or tag matches a glob pattern.

        Args:
            pattern: Glob-style pattern, e.g. ``"property_*"``.

        Returns:
            Number of entries evicted.
        """
        return self._evict([pattern])

    def invalidate_on_change(
        self,
        event: str,
        related_id: str | None = None,
    ) -> None:
        """Evict entries made stale by a mutation event.

        Looks up the rule registered for ``event`` and evicts every
        entry whose key or tag matches it, scoped to ``related_id``
        where the rule allows. Fetches in flight for matching keys are
        not cached when they settle. Unknown events evict nothing.

        A ``cache-changed`` signal carrying ``event`` and
        ``related_id`` is published after the eviction.

        Args:
            event: Mutation category, e.g. ``"property_update"``.
            related_id: Optional entity id, e.g. a property or user id.
        """
        scope = str(related_id) if related_id is not None else None
        rule = self._rules.get(event)
        if rule is None:
            logger.debug("No invalidation rule for event %r", event)
        else:
            count = self._evict(rule.expand(scope))
            logger.debug(
                "Cache invalidation for %s (id=%s): %d entr%s evicted",
                event,
                scope,
                count,
                "y" if count == 1 else "ies",
            )

        self._signals.emit(CACHE_CHANGED, event=event, related_id=scope)

    def refresh_user_data(self, user_id: str) -> None:
        """Evict every entry scoped to a user.

        Covers the user's saved properties, own listings and profile.

        Args:
            user_id: The user whose data should be re-fetched.
        """
        count = self._evict(expand_patterns(USER_DATA_PATTERNS, str(user_id)))
        logger.debug("User data cache refreshed for %s (%d evicted)", user_id, count)

    def refresh_property_data(self) -> None:
        """Evict every property-derived entry."""
        count = self._evict(expand_patterns(PROPERTY_DATA_PATTERNS))
        logger.debug("Property data cache refreshed (%d evicted)", count)

    def cleanup(self) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed.
        """
        removed = len(self._entries.expire())
        if removed:
            logger.debug("Cache cleanup: removed %d expired entries", removed)
        return removed

    def clear(self) -> None:
        """Clear all cached entries and reset statistics."""
        self._entries.clear()
        for pending in self._pending.values():
            pending.invalidated = True
        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        logger.debug("Cache CLEARED")

    def __len__(self) -> int:
        """Return the number of fresh entries."""
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, CacheKey)):
            return False
        return self._lookup(str(key)) is not None

    def _lookup(self, key: str) -> CacheEntry | None:
        entry: CacheEntry | None = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    def _resolve_ttl(self, ttl: timedelta | None) -> timedelta:
        effective = ttl if ttl is not None else self._config.default_ttl
        if effective <= timedelta(0):
            raise ValueError(f"TTL must be positive, got {effective}")
        return effective

    def _start_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
        ttl: timedelta,
        tags: list[str] | None,
    ) -> PendingRequest:
        async def run() -> Any:
            try:
                value = await fetch_fn()
            finally:
                if self._pending.get(key) is pending:
                    del self._pending[key]

            if pending.invalidated:
                logger.info(
                    "Discarding fetched value for %s: invalidated while in flight",
                    key,
                )
            else:
                self.set(key, value, ttl=ttl, tags=tags)
            return value

        task = asyncio.get_running_loop().create_task(run())
        pending = PendingRequest(
            key=key,
            task=task,
            started_at=self._clock(),
            tags=tuple(tags) if tags else (),
        )
        self._pending[key] = pending
        return pending

    def _evict(self, globs: list[str]) -> int:
        self._entries.expire()
        stale = [
            key
            for key in list(self._entries.keys())
            if matches_any(self._candidates(key), globs)
        ]
        for key in stale:
            del self._entries[key]

        for key, pending in self._pending.items():
            if matches_any((key, *pending.tags), globs):
                pending.invalidated = True

        return len(stale)

    def _candidates(self, key: str) -> Iterable[str]:
        entry = self._entries.get(key)
        if entry is None:
            return (key,)
        return (key, *entry.tags)
