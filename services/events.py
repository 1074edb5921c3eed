"""
In-process dispatch of drained domain events to subscribers (notifications, permit issuance).
Handlers run after the aggregate has been saved; a failing handler is logged and does not
affect the others or the committed state change.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Iterable, Optional

from domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


def log_event(event: DomainEvent) -> None:
    logger.info("Domain event %s for application %s: %s", event.name, event.application_id, event.to_dict())


class EventDispatcher:
    def __init__(self, log_all: bool = True):
        self._handlers: dict[Optional[type], list[EventHandler]] = defaultdict(list)
        if log_all:
            self.subscribe(log_event)

    def subscribe(self, handler: EventHandler, event_type: Optional[type] = None) -> None:
        """Register a handler for one event type, or for every event when event_type is None."""
        self._handlers[event_type].append(handler)

    def handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        return self._handlers.get(None, []) + self._handlers.get(type(event), [])

    def dispatch(self, events: Iterable[DomainEvent]) -> int:
        """Deliver events in order. Returns the number of handler failures."""
        failures = 0
        for event in events:
            for handler in self.handlers_for(event):
                try:
                    handler(event)
                except Exception:
                    failures += 1
                    logger.exception("Handler %r failed for event %s", handler, event.name)
        return failures


dispatcher = EventDispatcher()
