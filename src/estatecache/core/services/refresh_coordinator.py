"""Refresh coordinator - turns out-of-band signals into cache refreshes.

Views subscribe with the current user id and the callbacks that make
them re-fetch. The coordinator listens on the signal bus for:

- visibility regained / connection restored (from PageVisibility)
- named application events such as ``refresh-user``
- ``cache-changed`` notifications published by the cache store
- an optional polling timer bounding staleness when nothing else fires

and runs the invalidate-then-callback sequence for each of them.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from estatecache.core.entities.cache_config import RefreshConfig
from estatecache.core.interfaces.invalidator import IInvalidator
from estatecache.infrastructure.signals.bus import (
    CACHE_CHANGED,
    CONNECTION_RESTORED,
    VISIBILITY_REGAINED,
    SignalBus,
)

logger = logging.getLogger(__name__)

# Sync callable, or one returning an awaitable that is scheduled as a task
RefreshCallback = Callable[[], Any]


class SubscriptionState(Enum):
    """Lifecycle of a subscription. ACTIVE -> TORN_DOWN only."""

    ACTIVE = "active"
    TORN_DOWN = "torn_down"


@dataclass
class SubscriptionConfig:
    """What a view wants to be told about.

    Attributes:
        user_id: Current user. If None, user-scoped invalidation is skipped.
        on_user_data_change: Called when the user's data may have changed.
        on_property_data_change: Called when property listings may have changed.
        events: Named application events treated as user refreshes.
            Uses the coordinator's defaults if None.
        property_events: Named application events treated as property
            refreshes. Uses the coordinator's defaults if None.
        poll_interval: Polling fallback interval. Uses the coordinator's
            default if None.
        poll: Set to False to disable polling for this subscription.
    """

    user_id: str | None = None
    on_user_data_change: RefreshCallback | None = None
    on_property_data_change: RefreshCallback | None = None
    events: tuple[str, ...] | None = None
    property_events: tuple[str, ...] | None = None
    poll_interval: timedelta | None = None
    poll: bool = True

    def __post_init__(self) -> None:
        if self.on_user_data_change is None and self.on_property_data_change is None:
            raise ValueError("Subscription needs at least one refresh callback")
        if self.poll_interval is not None and self.poll_interval <= timedelta(0):
            raise ValueError("poll_interval must be positive")


class RefreshSubscription:
    """A live set of signal listeners for one view.

    Calling the subscription (or ``unsubscribe``) removes every listener
    and stops polling. Calling it again is a no-op.
    """

    def __init__(
        self,
        invalidator: IInvalidator,
        signals: SignalBus,
        config: SubscriptionConfig,
        defaults: RefreshConfig,
        on_teardown: Callable[["RefreshSubscription"], None] | None = None,
    ) -> None:
        self._invalidator = invalidator
        self._signals = signals
        self._config = config
        self._defaults = defaults
        self._on_teardown = on_teardown
        self._state = SubscriptionState.ACTIVE
        self._disconnects: list[Callable[[], None]] = []
        self._callback_tasks: set[asyncio.Future[Any]] = set()
        self._poll_task: asyncio.Task[None] | None = None
        self._last_signal = time.monotonic()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is SubscriptionState.ACTIVE

    @property
    def user_id(self) -> str | None:
        return self._config.user_id

    @property
    def polling(self) -> bool:
        """Whether a polling task is running for this subscription."""
        return self._poll_task is not None and not self._poll_task.done()

    def activate(self) -> None:
        """Register listeners and start the polling fallback."""
        connect = self._signals.connect
        self._disconnects.append(connect(VISIBILITY_REGAINED, self._on_regained))
        self._disconnects.append(connect(CONNECTION_RESTORED, self._on_regained))
        self._disconnects.append(connect(CACHE_CHANGED, self._on_cache_changed))

        user_events = self._config.events
        if user_events is None:
            user_events = self._defaults.user_events
        for event in user_events:
            self._disconnects.append(connect(event, self._on_user_event))

        property_events = self._config.property_events
        if property_events is None:
            property_events = self._defaults.property_events
        for event in property_events:
            self._disconnects.append(connect(event, self._on_property_event))

        self._start_polling()

    def unsubscribe(self) -> None:
        """Remove all listeners. Safe to call more than once."""
        if self._state is SubscriptionState.TORN_DOWN:
            return

        self._state = SubscriptionState.TORN_DOWN
        for disconnect in self._disconnects:
            disconnect()
        self._disconnects.clear()

        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

        if self._on_teardown is not None:
            self._on_teardown(self)
        logger.debug("Refresh subscription torn down (user=%s)", self.user_id)

    __call__ = unsubscribe

    def force_refresh(self) -> None:
        """Invalidate this view's data and invoke its callbacks now."""
        if not self.active:
            return
        self._refresh_user("manual")
        self._refresh_properties("manual")

    def _on_regained(self, **payload: Any) -> None:
        self._refresh_all("visibility")

    def _on_user_event(self, **payload: Any) -> None:
        self._refresh_user("event")

    def _on_property_event(self, **payload: Any) -> None:
        self._refresh_properties("event")

    def _on_cache_changed(
        self,
        event: str,
        related_id: str | None = None,
        **payload: Any,
    ) -> None:
        if not self.active:
            return

        if event in self._defaults.user_change_events:
            if related_id is None or related_id == self.user_id:
                self._touch()
                self._invoke(self._config.on_user_data_change, f"change:{event}")

        if event in self._defaults.property_change_events:
            self._touch()
            self._invoke(self._config.on_property_data_change, f"change:{event}")

    def _refresh_all(self, reason: str) -> None:
        if not self.active:
            return
        self._refresh_user(reason)
        self._touch()
        self._invoke(self._config.on_property_data_change, reason)

    def _refresh_user(self, reason: str) -> None:
        if not self.active:
            return
        self._touch()
        if self.user_id is not None:
            self._invalidator.refresh_user_data(self.user_id)
        self._invoke(self._config.on_user_data_change, reason)

    def _refresh_properties(self, reason: str) -> None:
        if not self.active:
            return
        self._touch()
        self._invalidator.refresh_property_data()
        self._invoke(self._config.on_property_data_change, reason)

    def _touch(self) -> None:
        self._last_signal = time.monotonic()

    def _invoke(self, callback: RefreshCallback | None, reason: str) -> None:
        if callback is None:
            return

        logger.debug("Refresh callback (%s, user=%s)", reason, self.user_id)
        try:
            result = callback()
        except Exception:
            logger.exception(
                "Refresh callback failed (%s, user=%s)", reason, self.user_id
            )
            return

        if not inspect.isawaitable(result):
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            logger.error(
                "Async refresh callback needs a running event loop (%s)", reason
            )
            return

        task = asyncio.ensure_future(result)
        self._callback_tasks.add(task)
        task.add_done_callback(self._callback_done)

    def _callback_done(self, task: "asyncio.Future[Any]") -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Refresh callback failed (user=%s)", self.user_id, exc_info=exc
            )

    def _start_polling(self) -> None:
        if not self._config.poll:
            return

        interval = self._config.poll_interval or self._defaults.poll_interval
        if interval is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; polling fallback disabled")
            return

        self._poll_task = loop.create_task(self._poll(interval.total_seconds()))

    async def _poll(self, interval: float) -> None:
        while self.active:
            remaining = self._last_signal + interval - time.monotonic()
            if remaining > 0:
                await asyncio.sleep(remaining)
                continue
            logger.debug("Polling refresh (user=%s)", self.user_id)
            self._refresh_all("poll")


class RefreshCoordinator:
    """Bridges out-of-band signals into cache invalidation and re-fetch.

    Example:
        store = CacheStore()
        coordinator = RefreshCoordinator.for_store(store)

        unsubscribe = coordinator.subscribe(
            SubscriptionConfig(user_id="u1", on_user_data_change=view.reload)
        )
        ...
        unsubscribe()  # when the view goes away
    """

    def __init__(
        self,
        invalidator: IInvalidator,
        signals: SignalBus,
        config: RefreshConfig | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            invalidator: The cache to invalidate (usually a CacheStore).
            signals: The bus to listen on.
            config: Optional refresh configuration. Uses defaults if not provided.
        """
        self._invalidator = invalidator
        self._signals = signals
        self._config = config or RefreshConfig()
        self._subscriptions: list[RefreshSubscription] = []

    @classmethod
    def for_store(
        cls,
        store: Any,
        config: RefreshConfig | None = None,
    ) -> "RefreshCoordinator":
        """Create a coordinator listening on a cache store's own bus."""
        return cls(invalidator=store, signals=store.signals, config=config)

    @property
    def config(self) -> RefreshConfig:
        return self._config

    @property
    def subscriptions(self) -> list[RefreshSubscription]:
        """Get the active subscriptions."""
        return list(self._subscriptions)

    def subscribe(self, config: SubscriptionConfig) -> RefreshSubscription:
        """Register a view's refresh callbacks.

        Args:
            config: The subscription configuration.

        Returns:
            The subscription. Call it to unsubscribe; it must be called
            when the view goes away or its listeners leak.
        """
        subscription = RefreshSubscription(
            invalidator=self._invalidator,
            signals=self._signals,
            config=config,
            defaults=self._config,
            on_teardown=self._forget,
        )
        subscription.activate()
        self._subscriptions.append(subscription)
        logger.debug("Refresh subscription active (user=%s)", config.user_id)
        return subscription

    def subscribe_user(
        self,
        user_id: str | None,
        callback: RefreshCallback,
        **options: Any,
    ) -> RefreshSubscription:
        """Subscribe a user-data view (saved properties, dashboard)."""
        return self.subscribe(
            SubscriptionConfig(user_id=user_id, on_user_data_change=callback, **options)
        )

    def subscribe_properties(
        self,
        callback: RefreshCallback,
        **options: Any,
    ) -> RefreshSubscription:
        """Subscribe a property-listing view."""
        return self.subscribe(
            SubscriptionConfig(on_property_data_change=callback, **options)
        )

    def close(self) -> None:
        """Tear down every subscription."""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    def _forget(self, subscription: RefreshSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
