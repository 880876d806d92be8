"""Marketplace adapter: property and saved-property operations."""

from estatecache.adapters.marketplace.catalog import (
    ProfileNotFoundError,
    PropertyCatalog,
)

__all__ = ["PropertyCatalog", "ProfileNotFoundError"]
