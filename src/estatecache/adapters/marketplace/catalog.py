"""Property catalog backed by the cache store.

Reads go through ``CacheStore.get_or_fetch`` with keys built by
``CacheKey``; every mutation declares its invalidation event with
``@invalidates`` so views never see a stale list after it succeeds.
"""

import logging
from typing import Any

from estatecache.core.entities.cache_config import TTLPolicy
from estatecache.core.entities.cache_key import CacheKey
from estatecache.core.interfaces.property_source import IPropertySource, PropertyRecord
from estatecache.core.services.cache_store import CacheStore
from estatecache.decorators import invalidates

logger = logging.getLogger(__name__)

SAVED_PROPERTIES_FIELD = "savedProperties"


class ProfileNotFoundError(LookupError):
    """Raised when a mutation targets a user without a profile."""

    pass


class PropertyCatalog:
    """Property and saved-property operations for the marketplace views.

    Example:
        catalog = PropertyCatalog(cache=store, source=firestore_source)

        saved = await catalog.get_saved_properties("u1")
        await catalog.save_property("u1", "P123")
        saved = await catalog.get_saved_properties("u1")  # includes P123
    """

    def __init__(
        self,
        cache: CacheStore,
        source: IPropertySource,
        policy: TTLPolicy | None = None,
    ) -> None:
        """Initialize the catalog.

        Args:
            cache: The cache store shared by every view.
            source: The document store holding properties and profiles.
            policy: Optional TTLs per data class. Uses defaults if not provided.
        """
        self.cache = cache
        self.source = source
        self.policy = policy or TTLPolicy()

    async def get_property(self, property_id: str) -> PropertyRecord | None:
        """Get a property by id."""
        return await self.cache.get_or_fetch(
            CacheKey.build("property", property_id),
            lambda: self.source.fetch_property(property_id),
            ttl=self.policy.property_detail,
        )

    async def get_properties_by_user(self, user_id: str) -> list[PropertyRecord]:
        """Get the listings a user owns."""
        return await self.cache.get_or_fetch(
            CacheKey.build("user_properties", user_id),
            lambda: self.source.fetch_properties_by_owner(user_id),
            ttl=self.policy.user_properties,
        )

    async def get_available_properties(self, limit: int = 20) -> list[PropertyRecord]:
        """Get up to ``limit`` available properties."""
        return await self.cache.get_or_fetch(
            CacheKey.build("all_properties", filters={"limit": limit}),
            lambda: self.source.fetch_available_properties(limit),
            ttl=self.policy.available_properties,
        )

    async def get_saved_properties(
        self,
        user_id: str,
        limit: int | None = None,
    ) -> list[PropertyRecord]:
        """Get the properties a user has saved.

        Args:
            user_id: The user.
            limit: Optional maximum number of properties.
        """

        async def fetch() -> list[PropertyRecord]:
            profile = await self.source.fetch_user_profile(user_id)
            property_ids = list((profile or {}).get(SAVED_PROPERTIES_FIELD, []))
            if limit is not None:
                property_ids = property_ids[-limit:]
            if not property_ids:
                return []
            return await self.source.fetch_properties(property_ids)

        return await self.cache.get_or_fetch(
            CacheKey.build("saved_properties", user_id, filters={"limit": limit}),
            fetch,
            ttl=self.policy.saved_properties,
        )

    async def get_user_profile(self, user_id: str) -> dict[str, Any] | None:
        """Get a user's profile."""
        return await self.cache.get_or_fetch(
            CacheKey.build("user_profile", user_id),
            lambda: self.source.fetch_user_profile(user_id),
            ttl=self.policy.user_profile,
        )

    @invalidates("property_create")
    async def create_property(self, data: PropertyRecord) -> str:
        """Create a listing and return its id."""
        property_id = await self.source.create_property(data)
        logger.info("Property created: %s", property_id)
        return property_id

    @invalidates("property_update", related_id="{property_id}")
    async def update_property(self, property_id: str, updates: PropertyRecord) -> None:
        """Apply partial updates to a listing."""
        changes = {name: value for name, value in updates.items() if value is not None}
        await self.source.update_property(property_id, changes)

    @invalidates("property_delete", related_id="{property_id}")
    async def delete_property(self, property_id: str) -> None:
        """Delete a listing."""
        await self.source.delete_property(property_id)
        logger.info("Property deleted: %s", property_id)

    @invalidates("saved_properties", related_id="{user_id}")
    async def save_property(self, user_id: str, property_id: str) -> bool:
        """Add a property to a user's saved list.

        Returns:
            True if the property was added, False if it was already saved.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        saved = await self._saved_ids(user_id)
        if property_id in saved:
            return False

        saved.append(property_id)
        await self.source.update_user_profile(user_id, {SAVED_PROPERTIES_FIELD: saved})
        logger.debug("Property %s saved for user %s", property_id, user_id)
        return True

    @invalidates("saved_properties", related_id="{user_id}")
    async def unsave_property(self, user_id: str, property_id: str) -> bool:
        """Remove a property from a user's saved list.

        Returns:
            True if the property was removed, False if it was not saved.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        saved = await self._saved_ids(user_id)
        if property_id not in saved:
            return False

        remaining = [saved_id for saved_id in saved if saved_id != property_id]
        await self.source.update_user_profile(
            user_id, {SAVED_PROPERTIES_FIELD: remaining}
        )
        logger.debug("Property %s removed for user %s", property_id, user_id)
        return True

    @invalidates("user_update", related_id="{user_id}")
    async def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        """Apply partial updates to a user's profile."""
        await self.source.update_user_profile(user_id, updates)

    async def is_saved(self, user_id: str, property_id: str) -> bool:
        """Check whether a user has saved a property."""
        profile = await self.get_user_profile(user_id)
        return property_id in (profile or {}).get(SAVED_PROPERTIES_FIELD, [])

    async def _saved_ids(self, user_id: str) -> list[str]:
        # Read-modify-write must see the stored profile, not a cached copy
        profile = await self.source.fetch_user_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile for user {user_id}")
        return list(profile.get(SAVED_PROPERTIES_FIELD, []))
