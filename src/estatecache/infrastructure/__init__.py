"""Infrastructure layer implementations for estatecache."""

from estatecache.infrastructure.maintenance import CacheJanitor
from estatecache.infrastructure.signals import PageVisibility, SignalBus

__all__ = [
    "CacheJanitor",
    "PageVisibility",
    "SignalBus",
]
