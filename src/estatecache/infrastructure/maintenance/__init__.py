"""Background maintenance for the cache store."""

from estatecache.infrastructure.maintenance.janitor import CacheJanitor

__all__ = ["CacheJanitor"]
