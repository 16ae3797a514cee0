"""In-process named event emitter.

Handlers are registered under an event name and receive the emitted payload
synchronously on the emitting thread. Each registration returns a
``Subscription`` handle that the owner keeps and cancels when done.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from loguru import logger

Handler = Callable[[Any], Any]

FLUSH_EVENT = "flush"


@dataclass(eq=False)
class Subscription:
    """Handle for one handler registration."""

    emitter: "EventEmitter"
    event_name: str
    handler: Handler
    active: bool = field(default=True)

    def cancel(self) -> None:
        """Remove the handler from its emitter. Safe to call twice."""
        if self.active:
            self.emitter._remove(self)
            self.active = False


class EventEmitter:
    """Thread-safe publish/subscribe keyed by event name."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._lock = threading.RLock()

        # Statistics
        self._total_emitted = 0
        self._total_handler_errors = 0

    def on(self, event_name: str, handler: Handler) -> Subscription:
        """Register ``handler`` for ``event_name``."""
        subscription = Subscription(emitter=self, event_name=event_name, handler=handler)

        with self._lock:
            self._subscriptions.setdefault(event_name, []).append(subscription)

        logger.debug(f"Subscribed handler to '{event_name}' event")
        return subscription

    def emit(self, event_name: str, payload: Any = None) -> int:
        """Deliver ``payload`` to every handler of ``event_name``.

        A handler that raises is logged and the remaining handlers still run.

        Returns:
            Number of handlers invoked
        """
        with self._lock:
            subscriptions = list(self._subscriptions.get(event_name, ()))
            self._total_emitted += 1

        for subscription in subscriptions:
            try:
                subscription.handler(payload)
            except Exception:
                with self._lock:
                    self._total_handler_errors += 1
                logger.exception(f"Handler for '{event_name}' event raised")

        return len(subscriptions)

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(event_name, ()))

    def get_stats(self) -> Dict[str, Any]:
        """Get emitter statistics."""
        with self._lock:
            return {
                "events": {name: len(subs) for name, subs in self._subscriptions.items()},
                "total_emitted": self._total_emitted,
                "total_handler_errors": self._total_handler_errors,
            }

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.event_name)
            if subscriptions and subscription in subscriptions:
                subscriptions.remove(subscription)
                if not subscriptions:
                    del self._subscriptions[subscription.event_name]
