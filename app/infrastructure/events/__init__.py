"""Infrastructure event system.

A lightweight, in-process event dispatcher used for side-channel signals
that must not block or fail the code that emits them.

Usage:

    from infrastructure.events import Event, EventDispatcher

    events = EventDispatcher(max_workers=4)
    events.register("message.notification.sent", handle_notification_sent)

    # Fire-and-forget
    events.dispatch_background(
        Event(event_type="message.notification.sent", metadata={"room_id": "r1"})
    )
"""

from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.events.models import Event

__all__ = [
    "Event",
    "EventDispatcher",
]
