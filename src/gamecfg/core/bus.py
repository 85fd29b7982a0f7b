"""Lightweight in-process pub/sub event bus."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous event bus connecting the config store and the history log.

    Callbacks run in subscription order on the publisher's stack, so a
    publish returns only after every subscriber has run.  The subscriber
    list is snapshotted before dispatch, which lets a callback subscribe
    or unsubscribe without disturbing the current publish.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callable[..., Any]) -> None:
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[..., Any]) -> None:
        if callback in self._subscribers[event]:
            self._subscribers[event].remove(callback)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    def publish(self, event: str, **kwargs: Any) -> None:
        callbacks = list(self._subscribers.get(event, []))
        for callback in callbacks:
            try:
                callback(**kwargs)
            except Exception:
                logger.exception("EventBus callback error on '%s'", event)
