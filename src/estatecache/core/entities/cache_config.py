"""Cache configuration entities."""

from dataclasses import dataclass, field
from datetime import timedelta

from estatecache.core.entities.invalidation_rule import (
    DEFAULT_RULES,
    InvalidationRule,
)


@dataclass
class CacheConfig:
    """Cache configuration.

    Provides configuration options for the cache store,
    including the default TTL, size limit and invalidation rules.
    """

    enabled: bool = True
    default_ttl: timedelta = timedelta(minutes=5)
    max_size: int = 1000

    # Invalidation
    invalidation_rules: tuple[InvalidationRule, ...] = DEFAULT_RULES

    # Expired entry sweep
    cleanup_interval: timedelta = timedelta(minutes=5)

    def __post_init__(self) -> None:
        """Validate the configured limits."""
        if self.default_ttl <= timedelta(0):
            raise ValueError("default_ttl must be positive")
        if self.max_size < 1:
            raise ValueError("max_size must be at least 1")


@dataclass
class TTLPolicy:
    """Time-to-live per data class.

    Frequently mutated views get seconds-scale TTLs, stable listings
    get minute-scale ones. None of these values are load-bearing;
    tune them per deployment.
    """

    saved_properties: timedelta = timedelta(seconds=30)
    property_detail: timedelta = timedelta(minutes=2)
    user_properties: timedelta = timedelta(minutes=3)
    available_properties: timedelta = timedelta(minutes=2)
    user_profile: timedelta = timedelta(seconds=30)
    default: timedelta = timedelta(minutes=5)


@dataclass
class RefreshConfig:
    """Refresh coordinator configuration."""

    # None disables the polling fallback
    poll_interval: timedelta | None = timedelta(minutes=5)
    user_events: tuple[str, ...] = ("refresh-user", "refresh-saved")
    property_events: tuple[str, ...] = ("refresh-properties",)
    user_change_events: frozenset[str] = field(
        default_factory=lambda: frozenset({"saved_properties", "user_update"})
    )
    property_change_events: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {
                "property_create",
                "property_update",
                "property_delete",
                "user_properties",
            }
        )
    )

    def __post_init__(self) -> None:
        if self.poll_interval is not None and self.poll_interval <= timedelta(0):
            raise ValueError("poll_interval must be positive")
