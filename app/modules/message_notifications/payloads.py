"""Per-channel notification payloads.

Structured arguments handed to the send collaborators. The engine builds
one payload per channel that passes its decision function.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from modules.message_notifications.models import (
    Message,
    Receiver,
    Room,
    Subscription,
    User,
)


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class AudioNotification(_Payload):
    user_id: str
    message: Message
    room: Room


class DesktopNotification(_Payload):
    """Desktop alert for one recipient.

    Attributes:
        notification_message: Text rendered for this recipient
        user_id: Recipient user id
        user: Message sender
        message: Source message
        room: Room the message was posted in
        duration: Display duration in seconds from the subscription
    """

    notification_message: str
    user_id: str
    user: User
    message: Message
    room: Room
    duration: Optional[int] = None


class PushNotification(_Payload):
    notification_message: str
    room: Room
    message: Message
    user_id: str
    sender_username: str
    sender_name: Optional[str] = None
    receiver_username: Optional[str] = None


class EmailNotification(_Payload):
    """Email to the first verified address of a recipient.

    Attributes:
        message: Source message
        receiver: Recipient snapshot
        subscription: Recipient's subscription (for template selection)
        room: Room the message was posted in
        email_address: Verified address selected for delivery
        has_mention_to_user: Whether the recipient was mentioned directly
    """

    message: Message
    receiver: Receiver
    subscription: Subscription
    room: Room
    email_address: str
    has_mention_to_user: bool = False


class SideChannelNotification(_Payload):
    """Signal that a desktop or mobile notification went out."""

    message_id: str
    room_id: str
    user_ids: List[str]
    text: str
    kind: str
