"""Property document store interface."""

from typing import Any, Protocol

PropertyRecord = dict[str, Any]


class IPropertySource(Protocol):
    """Contract for the hosted document store holding properties and users.

    Query and filter capabilities live behind this protocol; the cache
    layer treats every method as an opaque asynchronous fetch.
    """

    async def fetch_property(self, property_id: str) -> PropertyRecord | None:
        """Fetch a single property, or None if it does not exist."""
        ...

    async def fetch_properties(
        self,
        property_ids: list[str],
    ) -> list[PropertyRecord]:
        """Fetch the properties with the given ids, skipping missing ones."""
        ...

    async def fetch_properties_by_owner(self, user_id: str) -> list[PropertyRecord]:
        """Fetch the listings owned by a user."""
        ...

    async def fetch_available_properties(self, limit: int) -> list[PropertyRecord]:
        """Fetch up to ``limit`` available properties."""
        ...

    async def fetch_user_profile(self, user_id: str) -> dict[str, Any] | None:
        """Fetch a user profile, or None if it does not exist."""
        ...

    async def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        """Apply partial updates to a user profile."""
        ...

    async def create_property(self, data: PropertyRecord) -> str:
        """Create a property and return its id."""
        ...

    async def update_property(self, property_id: str, updates: PropertyRecord) -> None:
        """Apply partial updates to a property."""
        ...

    async def delete_property(self, property_id: str) -> None:
        """Delete a property."""
        ...
