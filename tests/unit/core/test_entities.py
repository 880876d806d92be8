"""Tests for core entities."""

from datetime import datetime, timedelta, timezone

import pytest

from estatecache.core.entities import (
    DEFAULT_RULES,
    CacheConfig,
    CacheEntry,
    CacheKey,
    InvalidationRule,
    InvalidationRuleError,
    InvalidCacheKeyError,
    RefreshConfig,
    TTLPolicy,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestCacheEntry:
    """Tests for CacheEntry entity."""

    def test_create_cache_entry(self) -> None:
        """Test creating a cache entry with factory method."""
        entry = CacheEntry.create(
            key="property_P1",
            value={"id": "P1"},
            now=NOW,
            ttl=timedelta(minutes=2),
            tags=["property", "owner:u2"],
        )

        assert entry.key == "property_P1"
        assert entry.value == {"id": "P1"}
        assert entry.created_at == NOW
        assert entry.expires_at == NOW + timedelta(minutes=2)
        assert entry.ttl == timedelta(minutes=2)
        assert entry.tags == ("property", "owner:u2")

    def test_entry_is_stale_at_expiry_instant(self) -> None:
        """Test that an entry is expired at and after expires_at."""
        entry = CacheEntry.create(
            key="k", value=1, now=NOW, ttl=timedelta(seconds=30)
        )

        assert not entry.is_expired(NOW + timedelta(seconds=29))
        assert entry.is_expired(NOW + timedelta(seconds=30))
        assert entry.is_expired(NOW + timedelta(minutes=1))

    def test_cache_entry_immutable(self) -> None:
        """Test that cache entries are frozen."""
        entry = CacheEntry.create(key="k", value=1, now=NOW, ttl=timedelta(seconds=1))

        with pytest.raises(AttributeError):
            entry.value = 2  # type: ignore[misc]


class TestCacheKey:
    """Tests for CacheKey value object."""

    def test_kind_only(self) -> None:
        """Test a key with no scope or filters."""
        assert str(CacheKey.build("recent_properties")) == "recent_properties"

    def test_scope_and_filters(self) -> None:
        """Test scope and filters are joined in order."""
        key = CacheKey.build("saved_properties", "u1", {"limit": 20})
        assert str(key) == "saved_properties_u1_limit=20"

    def test_filters_sorted(self) -> None:
        """Test that filter order does not change the key."""
        first = CacheKey.build("all_properties", filters={"city": "Nairobi", "beds": 3})
        second = CacheKey.build("all_properties", filters={"beds": 3, "city": "Nairobi"})

        assert str(first) == str(second) == "all_properties_beds=3&city=Nairobi"

    def test_none_filters_dropped(self) -> None:
        """Test that unset filters do not appear in the key."""
        key = CacheKey.build("saved_properties", "u1", {"limit": None})
        assert str(key) == "saved_properties_u1"

    def test_distinct_filters_distinct_keys(self) -> None:
        """Test that different filter values never collide."""
        keys = {
            str(CacheKey.build("all_properties", filters={"limit": 10})),
            str(CacheKey.build("all_properties", filters={"limit": 20})),
            str(CacheKey.build("all_properties", filters={"limit": 20}, cursor="P9")),
        }
        assert len(keys) == 3

    def test_cursor_segment(self) -> None:
        """Test the pagination cursor segment."""
        key = CacheKey.build("all_properties", filters={"limit": 20}, cursor="P9")
        assert str(key) == "all_properties_limit=20_after=P9"

    def test_structured_filter_hashed(self) -> None:
        """Test that mapping filters are hashed deterministically."""
        first = CacheKey.build("all_properties", filters={"price": {"min": 1, "max": 9}})
        second = CacheKey.build("all_properties", filters={"price": {"max": 9, "min": 1}})

        assert str(first) == str(second)
        assert "{" not in str(first)

    def test_amenity_set_order_independent(self) -> None:
        """Test that set filters share a key regardless of order, unlike lists."""
        first = CacheKey.build("all_properties", filters={"amenities": {"pool", "gym"}})
        second = CacheKey.build("all_properties", filters={"amenities": {"gym", "pool"}})
        ordered = CacheKey.build("all_properties", filters={"amenities": ["pool", "gym"]})
        reordered = CacheKey.build("all_properties", filters={"amenities": ["gym", "pool"]})

        assert str(first) == str(second)
        assert str(ordered) != str(reordered)
        assert len(str(first).split("=", 1)[1]) == 12

    def test_whitespace_normalized(self) -> None:
        """Test that whitespace in segments is collapsed."""
        key = CacheKey.build("all_properties", filters={"city": " New   York "})
        assert str(key) == "all_properties_city=New-York"

    def test_empty_kind_rejected(self) -> None:
        """Test that an empty kind raises."""
        with pytest.raises(InvalidCacheKeyError):
            CacheKey.build("")


class TestInvalidationRule:
    """Tests for InvalidationRule expansion."""

    def test_scoped_pattern_with_id(self) -> None:
        """Test that {id} patterns are narrowed to the related id."""
        rule = InvalidationRule(event="saved_properties", patterns=("saved_properties_{id}",))

        assert rule.expand("u1") == ["saved_properties_u1", "saved_properties_u1_*"]

    def test_scoped_pattern_without_id(self) -> None:
        """Test that {id} patterns widen to a wildcard without an id."""
        rule = InvalidationRule(event="saved_properties", patterns=("saved_properties_{id}",))

        assert rule.expand() == ["saved_properties_*"]

    def test_unscoped_pattern_ignores_id(self) -> None:
        """Test that collection patterns are never narrowed."""
        rule = InvalidationRule(event="property_update", patterns=("all_properties_*",))

        assert rule.expand("P1") == ["all_properties_*"]

    def test_glob_characters_in_id_escaped(self) -> None:
        """Test that ids containing glob characters match literally."""
        rule = InvalidationRule(event="user_update", patterns=("user_profile_{id}",))

        assert rule.expand("a*b")[0] == "user_profile_a[*]b"

    def test_rule_needs_event(self) -> None:
        """Test that an empty event name is rejected."""
        with pytest.raises(InvalidationRuleError):
            InvalidationRule(event="", patterns=("x_*",))

    def test_rule_needs_patterns(self) -> None:
        """Test that an empty pattern list is rejected."""
        with pytest.raises(InvalidationRuleError):
            InvalidationRule(event="property_create", patterns=())

    def test_default_rules_cover_mutations(self) -> None:
        """Test the default table declares every mutation event."""
        events = {rule.event for rule in DEFAULT_RULES}

        assert events == {
            "user_properties",
            "property_create",
            "property_update",
            "property_delete",
            "saved_properties",
            "user_update",
        }


class TestConfig:
    """Tests for configuration entities."""

    def test_cache_config_defaults(self) -> None:
        """Test default cache configuration."""
        config = CacheConfig()

        assert config.enabled is True
        assert config.default_ttl == timedelta(minutes=5)
        assert config.max_size == 1000
        assert config.invalidation_rules == DEFAULT_RULES

    def test_cache_config_rejects_non_positive_ttl(self) -> None:
        """Test that a zero default TTL is rejected."""
        with pytest.raises(ValueError):
            CacheConfig(default_ttl=timedelta(0))

    def test_ttl_policy_defaults(self) -> None:
        """Test that mutable views get shorter TTLs than stable ones."""
        policy = TTLPolicy()

        assert policy.saved_properties == timedelta(seconds=30)
        assert policy.property_detail == timedelta(minutes=2)
        assert policy.saved_properties < policy.available_properties < policy.default

    def test_refresh_config_rejects_non_positive_interval(self) -> None:
        """Test that a zero poll interval is rejected."""
        with pytest.raises(ValueError):
            RefreshConfig(poll_interval=timedelta(0))

    def test_refresh_config_polling_can_be_disabled(self) -> None:
        """Test that polling is disabled with None."""
        assert RefreshConfig(poll_interval=None).poll_interval is None
