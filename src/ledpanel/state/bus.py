"""Synchronous typed event bus.

Subscribers register for an event class and are called, in
registration order, on the same call stack as the mutation that
produced the event. Handlers are isolated from each other: one that
raises is logged and the remaining handlers still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ledpanel.state.events import PanelEvent

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=PanelEvent)

EventHandler = Callable[[Any], None]


class EventBus:
    """Dispatches :class:`PanelEvent` instances to registered handlers."""

    def __init__(self) -> None:
        self._handlers: list[tuple[type[PanelEvent], EventHandler]] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register *handler* for *event_type* (and its subclasses).

        Returns a callable that removes the subscription.
        """
        entry: tuple[type[PanelEvent], EventHandler] = (event_type, handler)
        self._handlers.append(entry)
        _logger.debug("Subscribed %s to %s", getattr(handler, "__name__", handler), event_type.__name__)

        def _unsubscribe() -> None:
            try:
                self._handlers.remove(entry)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, event: PanelEvent) -> None:
        """Deliver *event* to every matching handler."""
        # Snapshot so handlers may (un)subscribe while being notified.
        for event_type, handler in list(self._handlers):
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                _logger.exception("Event handler %r failed for %s", handler, type(event).__name__)

    def clear(self) -> None:
        self._handlers.clear()
