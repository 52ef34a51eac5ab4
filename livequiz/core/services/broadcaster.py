"""Fan-out of session events to their subscribers."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from livequiz.core.events import QuizEvent

logger = logging.getLogger(__name__)

EventSink = Callable[[QuizEvent], None]


class Subscription:
    """Handle returned by :meth:`EventBroadcaster.subscribe`."""

    def __init__(self, broadcaster: EventBroadcaster, session_id: str, sink: EventSink) -> None:
        self._broadcaster = broadcaster
        self.session_id = session_id
        self.sink = sink
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._broadcaster.unsubscribe(self)


class EventBroadcaster:
    """Registry of event sinks keyed by session id.

    Delivery is synchronous and best-effort: every sink registered at publish
    time is called once, a failing sink is logged and skipped, and nothing is
    buffered for sinks that subscribe later. Sinks run on the publishing
    thread, usually while the session lock is held, so they must not block.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, session_id: str, sink: EventSink) -> Subscription:
        subscription = Subscription(self, session_id, sink)
        with self._lock:
            self._subscriptions.setdefault(session_id, []).append(subscription)
        logger.debug("Subscriber added to session %s", session_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.session_id)
            if not subscriptions or subscription not in subscriptions:
                return
            subscriptions.remove(subscription)
            if not subscriptions:
                del self._subscriptions[subscription.session_id]
        logger.debug("Subscriber removed from session %s", subscription.session_id)

    def publish(self, session_id: str, event: QuizEvent) -> int:
        """Deliver ``event`` to the current subscribers and return the delivery count."""
        with self._lock:
            targets = list(self._subscriptions.get(session_id, ()))

        delivered = 0
        for subscription in targets:
            try:
                subscription.sink(event)
            except Exception:
                logger.exception(
                    "Delivering %s #%d to a subscriber of session %s failed",
                    event.event_type,
                    event.sequence,
                    session_id,
                )
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(session_id, ()))
