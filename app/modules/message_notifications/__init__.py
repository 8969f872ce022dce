"""Message notification fan-out.

Decides which room members (and mentioned non-members of public channels)
get notified of a new message, on which channels (audio, desktop, mobile
push, email), and hands each notification to its transport exactly once.

Usage:
    from modules.message_notifications.factory import build_notification_fan_out

    fan_out = build_notification_fan_out(
        subscriptions=store,
        permissions=authz,
        sender_resolver=room_types,
        room_joiner=rooms,
        audio_sender=audio,
        desktop_sender=desktop,
        push_sender=push,
        email_sender=email,
    )

    # After a message has been persisted
    fan_out.send_all_notifications(message, room)
"""

from modules.message_notifications.models import (
    Channel,
    EmailAddress,
    Mention,
    Message,
    NotificationMode,
    PreferenceOrigin,
    Receiver,
    Room,
    RoomType,
    Subscription,
    User,
)
from modules.message_notifications.eligibility import (
    EligibilityFilter,
    EligibilityQuery,
    build_eligibility_query,
)
from modules.message_notifications.decisions import (
    should_notify_audio,
    should_notify_desktop,
    should_notify_email,
    should_notify_mobile,
)
from modules.message_notifications.dispatcher import (
    DispatchOutcome,
    RecipientDispatcher,
)
from modules.message_notifications.orchestrator import (
    FanOutReport,
    NotificationFanOut,
)
from modules.message_notifications.errors import AutoJoinError, JoinFailure
from modules.message_notifications.protocols import JoinResult
from modules.message_notifications.store import InMemorySubscriptionStore
from modules.message_notifications.text import TextTransformPipeline

__all__ = [
    # Models
    "Channel",
    "EmailAddress",
    "Mention",
    "Message",
    "NotificationMode",
    "PreferenceOrigin",
    "Receiver",
    "Room",
    "RoomType",
    "Subscription",
    "User",
    # Eligibility
    "EligibilityFilter",
    "EligibilityQuery",
    "build_eligibility_query",
    # Decisions
    "should_notify_audio",
    "should_notify_desktop",
    "should_notify_email",
    "should_notify_mobile",
    # Dispatch
    "DispatchOutcome",
    "RecipientDispatcher",
    "FanOutReport",
    "NotificationFanOut",
    # Errors
    "AutoJoinError",
    "JoinFailure",
    "JoinResult",
    # Utilities
    "InMemorySubscriptionStore",
    "TextTransformPipeline",
]
