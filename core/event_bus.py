"""
Notification bus for booking events.

Services publish once the booking or payment is durable; subscribers send the
quote and receipt emails. A failed email is logged with the booking or payment
it concerned and reported back to the publisher. It never undoes the booking.
"""

import logging
from typing import Callable

from core.events import BookingEvent

logger = logging.getLogger(__name__)

Handler = Callable[[BookingEvent], None]


class EventBus:
    """
    Synchronous dispatch of booking events to email handlers.

    Handlers are registered against an event class and run in the
    publisher's thread, in subscription order.
    """

    def __init__(self):
        self._handlers: dict[type[BookingEvent], list[Handler]] = {}

    def subscribe(self, event_class: type[BookingEvent], handler: Handler) -> None:
        self._handlers.setdefault(event_class, []).append(handler)

    def publish(self, event: BookingEvent) -> list[str]:
        """
        Run every handler registered for the event's class.

        Returns:
            Names of the handlers that failed. Empty when every notification
            went out (or nobody was listening).
        """
        failed = []
        for handler in self._handlers.get(type(event), []):
            name = getattr(handler, "__name__", repr(handler))
            try:
                handler(event)
            except Exception:
                failed.append(name)
                logger.exception(
                    f"Notification {name} failed for {type(event).__name__} "
                    f"({event.subject}, event_id={event.event_id})"
                )
        return failed
