"""Page visibility and connectivity state."""

import logging

from estatecache.infrastructure.signals.bus import (
    CONNECTION_RESTORED,
    VISIBILITY_REGAINED,
    SignalBus,
)

logger = logging.getLogger(__name__)


class PageVisibility:
    """Tracks whether the view is visible and online.

    The host feeds raw state changes in; only the transitions that
    should trigger a refresh are published on the bus: hidden to
    visible and offline to online. Repeated reports of the same state
    publish nothing.
    """

    def __init__(
        self,
        bus: SignalBus,
        hidden: bool = False,
        online: bool = True,
    ) -> None:
        self._bus = bus
        self._hidden = hidden
        self._online = online

    @property
    def hidden(self) -> bool:
        return self._hidden

    @property
    def online(self) -> bool:
        return self._online

    def set_hidden(self, hidden: bool) -> bool:
        """Record a visibility change.

        Args:
            hidden: True if the view is now hidden.

        Returns:
            True if a visibility-regained signal was published.
        """
        regained = self._hidden and not hidden
        self._hidden = hidden
        if regained:
            logger.debug("Visibility regained")
            self._bus.emit(VISIBILITY_REGAINED)
        return regained

    def set_online(self, online: bool) -> bool:
        """Record a connectivity change.

        Args:
            online: True if the network is reachable.

        Returns:
            True if a connection-restored signal was published.
        """
        restored = not self._online and online
        self._online = online
        if restored:
            logger.debug("Connection restored")
            self._bus.emit(CONNECTION_RESTORED)
        return restored
