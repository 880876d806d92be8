"""Pytest configuration for estatecache tests."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from estatecache import CacheConfig, CacheStore, SignalBus


class FakeClock:
    """Manually advanced clock for deterministic expiry."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class InMemoryPropertySource:
    """Document store stand-in that counts every call."""

    def __init__(self) -> None:
        self.properties: dict[str, dict[str, Any]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.calls: dict[str, int] = {}
        self._next_id = 1000

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    async def fetch_property(self, property_id: str) -> dict[str, Any] | None:
        self._count("fetch_property")
        record = self.properties.get(property_id)
        return dict(record) if record else None

    async def fetch_properties(self, property_ids: list[str]) -> list[dict[str, Any]]:
        self._count("fetch_properties")
        return [
            dict(self.properties[pid]) for pid in property_ids if pid in self.properties
        ]

    async def fetch_properties_by_owner(self, user_id: str) -> list[dict[str, Any]]:
        self._count("fetch_properties_by_owner")
        return [
            dict(record)
            for record in self.properties.values()
            if record.get("owner") == user_id
        ]

    async def fetch_available_properties(self, limit: int) -> list[dict[str, Any]]:
        self._count("fetch_available_properties")
        available = [
            dict(record)
            for record in self.properties.values()
            if record.get("status", "available") == "available"
        ]
        return available[:limit]

    async def fetch_user_profile(self, user_id: str) -> dict[str, Any] | None:
        self._count("fetch_user_profile")
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    async def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        self._count("update_user_profile")
        self.profiles.setdefault(user_id, {}).update(updates)

    async def create_property(self, data: dict[str, Any]) -> str:
        self._count("create_property")
        property_id = f"P{self._next_id}"
        self._next_id += 1
        self.properties[property_id] = {**data, "id": property_id}
        return property_id

    async def update_property(self, property_id: str, updates: dict[str, Any]) -> None:
        self._count("update_property")
        if property_id not in self.properties:
            raise KeyError(property_id)
        self.properties[property_id].update(updates)

    async def delete_property(self, property_id: str) -> None:
        self._count("delete_property")
        del self.properties[property_id]


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock frozen at a fixed instant."""
    return FakeClock()


@pytest.fixture
def bus() -> SignalBus:
    """Create a signal bus for testing."""
    return SignalBus()


@pytest.fixture
def store(clock: FakeClock, bus: SignalBus) -> CacheStore:
    """Create a cache store driven by the fake clock."""
    config = CacheConfig(default_ttl=timedelta(minutes=5), max_size=100)
    return CacheStore(config=config, signals=bus, clock=clock)


@pytest.fixture
def source() -> InMemoryPropertySource:
    """Create a property source seeded with three listings and one user."""
    source = InMemoryPropertySource()
    source.properties = {
        "P1": {"id": "P1", "title": "Loft", "owner": "u2", "price": 100},
        "P2": {"id": "P2", "title": "Villa", "owner": "u2", "price": 250},
        "P123": {"id": "P123", "title": "Cottage", "owner": "u3", "price": 180},
    }
    source.profiles = {"u1": {"name": "Alice", "savedProperties": []}}
    return source
