"""Cache invalidator interface."""

from typing import Protocol


class IInvalidator(Protocol):
    """Contract for invalidating cached data.

    The refresh coordinator depends on this protocol rather than on
    the concrete store, so it can drive any cache that understands
    mutation events.
    """

    def invalidate_on_change(
        self,
        event: str,
        related_id: str | None = None,
    ) -> None:
        """Evict entries made stale by a mutation event.

        Args:
            event: The mutation category, e.g. ``"saved_properties"``.
            related_id: Optional entity id scoping the invalidation.
        """
        ...

    def refresh_user_data(self, user_id: str) -> None:
        """Evict every entry scoped to a user.

        Args:
            user_id: The user whose data should be re-fetched.
        """
        ...

    def refresh_property_data(self) -> None:
        """Evict every property-derived entry."""
        ...
