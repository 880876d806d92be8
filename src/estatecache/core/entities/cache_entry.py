"""Cache entry and pending request entities."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cache entry value object.

    Represents a fetched value together with the time it was stored,
    the time it goes stale, and the dependency tags it was declared with.
    """

    key: str
    value: Any
    created_at: datetime
    expires_at: datetime
    tags: tuple[str, ...] = ()

    @property
    def ttl(self) -> timedelta:
        """Return the lifetime this entry was stored with."""
        return self.expires_at - self.created_at

    def is_expired(self, now: datetime) -> bool:
        """Check if entry is stale at the given time.

        An entry is stale at and after its expiry instant.

        Args:
            now: The current time from the store's clock.

        Returns:
            True if the entry has expired, False otherwise.
        """
        return now >= self.expires_at

    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        now: datetime,
        ttl: timedelta,
        tags: list[str] | tuple[str, ...] | None = None,
    ) -> "CacheEntry":
        """Factory method to create a new cache entry.

        Args:
            key: The cache key.
            value: The value to cache.
            now: Creation time from the store's clock.
            ttl: Time-to-live for the entry.
            tags: Optional dependency tags for invalidation.

        Returns:
            A new CacheEntry instance.
        """
        return cls(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl,
            tags=tuple(tags) if tags else (),
        )


@dataclass
class PendingRequest:
    """An in-flight fetch that concurrent callers attach to."""

    key: str
    task: asyncio.Task[Any]
    started_at: datetime
    tags: tuple[str, ...] = ()
    waiters: int = 1
    invalidated: bool = False

    @property
    def done(self) -> bool:
        return self.task.done()
