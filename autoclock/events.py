"""
In-process event bus for host notifications.

Handlers run synchronously, in subscription order, on the emitting thread.
subscribe() returns a Subscription whose cancel() removes exactly that
registration; cancelling twice is harmless.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from ._logging import log_debug

CONTEXT_CHANGED = "context_changed"
SESSION_STARTED = "session_started"

Handler = Callable[[Any], None]


@dataclass(eq=False)
class Subscription:
    """Handle for one handler registration."""

    bus: "EventBus" = field(repr=False)
    event: str
    handler: Handler
    active: bool = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self.bus._remove(self)


@dataclass(eq=False)
class EventBus:
    _subscriptions: Dict[str, List[Subscription]] = field(default_factory=dict)

    def subscribe(self, event: str, handler: Handler) -> Subscription:
        subscription = Subscription(bus=self, event=event, handler=handler)
        self._subscriptions.setdefault(event, []).append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.event, [])
        if subscription in subs:
            subs.remove(subscription)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def emit(self, event: str, payload: Any = None) -> None:
        """Deliver `payload` to every current subscriber of `event`."""
        # Copy: handlers may unsubscribe while we iterate
        for subscription in list(self._subscriptions.get(event, [])):
            if subscription.active:
                log_debug("events", f"dispatching {event}")
                subscription.handler(payload)
