"""In-process signal bus."""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

SignalHandler = Callable[..., Any]

# Published by the cache store after every invalidate_on_change
CACHE_CHANGED = "cache-changed"
# Published by PageVisibility on hidden -> visible
VISIBILITY_REGAINED = "visibility-regained"
# Published by PageVisibility on offline -> online
CONNECTION_RESTORED = "connection-restored"

REFRESH_USER = "refresh-user"
REFRESH_SAVED = "refresh-saved"
REFRESH_PROPERTIES = "refresh-properties"


class SignalBus:
    """Explicit observer list keyed by signal name.

    Handlers are called synchronously, in registration order, with
    the keyword payload passed to ``emit``. A handler that raises is
    logged and skipped; the remaining handlers still run and the
    emitter never sees the exception.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[SignalHandler]] = {}

    def connect(self, signal: str, handler: SignalHandler) -> Callable[[], None]:
        """Register a handler for a signal.

        Args:
            signal: The signal name.
            handler: Callable receiving the signal's keyword payload.

        Returns:
            A function removing this registration. Calling it more
            than once is a no-op.
        """
        self._handlers.setdefault(signal, []).append(handler)

        def disconnect() -> None:
            self.disconnect(signal, handler)

        return disconnect

    def disconnect(self, signal: str, handler: SignalHandler) -> bool:
        """Remove a handler registration.

        Returns:
            True if the handler was registered, False otherwise.
        """
        handlers = self._handlers.get(signal)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._handlers[signal]
        return True

    def emit(self, signal: str, **payload: Any) -> int:
        """Deliver a signal to every connected handler.

        Args:
            signal: The signal name.
            **payload: Keyword arguments passed to each handler.

        Returns:
            Number of handlers the signal was delivered to.
        """
        # Copy so handlers may disconnect while being notified
        handlers = list(self._handlers.get(signal, ()))
        logger.debug("Signal %s -> %d handler(s)", signal, len(handlers))
        for handler in handlers:
            try:
                handler(**payload)
            except Exception:
                logger.exception("Signal handler failed for %s: %r", signal, handler)
        return len(handlers)

    def handler_count(self, signal: str | None = None) -> int:
        """Return the number of registered handlers.

        Args:
            signal: Optional signal name. Counts every signal if None.
        """
        if signal is not None:
            return len(self._handlers.get(signal, ()))
        return sum(len(handlers) for handlers in self._handlers.values())
