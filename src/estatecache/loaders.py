"""Lazy data loaders for views.

A loader ties one cache key and fetch function to the state a view
renders: the data, whether a load is running, and the last error.
Overlapping ``load`` calls on the same loader are collapsed; the
store coalesces loads across loaders sharing a key.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Generic, TypeVar

from estatecache.core.entities.cache_config import TTLPolicy
from estatecache.core.entities.cache_key import CacheKey
from estatecache.core.interfaces.property_source import IPropertySource, PropertyRecord
from estatecache.core.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LazyData(Generic[T]):
    """View-side state for one cached query.

    Failures are recorded on ``error`` rather than raised; the view
    decides how to show them.
    """

    def __init__(
        self,
        store: CacheStore,
        key: str | CacheKey,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl: timedelta | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._fetch_fn = fetch_fn
        self._ttl = ttl

        self.data: T | None = None
        self.error: Exception | None = None
        self.loading = False
        self.loaded = False

    @property
    def key(self) -> str:
        return str(self._key)

    async def load(self) -> T | None:
        """Load the data through the cache.

        Returns immediately with the current data if a load is
        already running on this loader.

        Returns:
            The loaded data, or None if the load failed.
        """
        if self.loading:
            return self.data

        self.loading = True
        self.error = None
        try:
            self.data = await self._store.get_or_fetch(
                self._key, self._fetch_fn, ttl=self._ttl
            )
            self.loaded = True
        except Exception as exc:
            self.error = exc
            logger.error("Error loading data for key %s: %s", self.key, exc)
        finally:
            self.loading = False

        return self.data

    async def reload(self) -> T | None:
        """Load again, reusing the cache if the entry is still fresh."""
        self.loaded = False
        return await self.load()

    def invalidate_cache(self) -> None:
        """Evict this loader's key so the next load re-fetches."""
        self._store.invalidate(self._key)
        self.loaded = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self.key!r}, loaded={self.loaded}, "
            f"loading={self.loading}, error={self.error!r})"
        )


def property_data(
    store: CacheStore,
    source: IPropertySource,
    property_id: str,
    policy: TTLPolicy | None = None,
) -> LazyData[PropertyRecord | None]:
    """Loader for a single property's details."""
    policy = policy or TTLPolicy()
    return LazyData(
        store,
        CacheKey.build("property", property_id),
        lambda: source.fetch_property(property_id),
        ttl=policy.property_detail,
    )


def user_properties(
    store: CacheStore,
    source: IPropertySource,
    user_id: str,
    policy: TTLPolicy | None = None,
) -> LazyData[list[PropertyRecord]]:
    """Loader for the listings a user owns."""
    policy = policy or TTLPolicy()
    return LazyData(
        store,
        CacheKey.build("user_properties", user_id),
        lambda: source.fetch_properties_by_owner(user_id),
        ttl=policy.user_properties,
    )


def available_properties(
    store: CacheStore,
    source: IPropertySource,
    limit: int = 20,
    policy: TTLPolicy | None = None,
) -> LazyData[list[PropertyRecord]]:
    """Loader for the public listing of available properties."""
    policy = policy or TTLPolicy()
    return LazyData(
        store,
        CacheKey.build("all_properties", filters={"limit": limit}),
        lambda: source.fetch_available_properties(limit),
        ttl=policy.available_properties,
    )
