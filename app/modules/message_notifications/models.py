"""Message notification domain models.

Read-only snapshots handed to the fan-out engine by the persistence layer.
None of these are mutated by the engine; one fan-out run reads them and
discards them.

Uses Pydantic BaseModel for:
- Runtime validation of data coming from the data-access layer
- Enum coercion of notification modes and room types
- Field aliases matching the stored document shape (``_id``, ``u``, ``t``)
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Mention targets that address many users at once
MENTION_ALL = "all"
MENTION_HERE = "here"
GROUP_MENTIONS = frozenset({MENTION_ALL, MENTION_HERE})


class RoomType(str, Enum):
    """Room types the engine treats specially.

    Other room type strings pass through unaffected.
    """

    DIRECT = "d"
    PRIVATE_GROUP = "p"
    PUBLIC_CHANNEL = "c"


class NotificationMode(str, Enum):
    """Per-channel notification mode.

    DEFAULT means the subscription has no explicit mode for the channel and
    the server default applies.
    """

    DEFAULT = "default"
    ALL = "all"
    MENTIONS = "mentions"
    NOTHING = "nothing"


class PreferenceOrigin(str, Enum):
    """Where a subscription's channel mode came from."""

    USER = "user"
    DEFAULT = "default"


class Channel(str, Enum):
    """Notification delivery channels, in evaluation order."""

    AUDIO = "audio"
    DESKTOP = "desktop"
    MOBILE = "mobile"
    EMAIL = "email"

    @property
    def mode_field(self) -> str:
        """Subscription attribute holding this channel's mode."""
        if self is Channel.MOBILE:
            return "mobile_push_notifications"
        return f"{self.value}_notifications"

    @property
    def origin_field(self) -> str:
        """Subscription attribute holding this channel's preference origin."""
        return f"{self.value}_pref_origin"

    @property
    def setting_field(self) -> str:
        """NotificationSettings field holding this channel's server default."""
        if self is Channel.EMAIL:
            return "ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE"
        return f"ACCOUNTS_DEFAULT_USER_PREFERENCES_{self.value.upper()}_NOTIFICATIONS"


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class User(_Snapshot):
    """A user as resolved for the room type (the message sender)."""

    id: str = Field(alias="_id")
    username: str
    name: Optional[str] = None


class Mention(_Snapshot):
    """A mention parsed from a message body.

    ``id`` is a user id or one of the group sentinels ``all``/``here``.
    """

    id: str = Field(alias="_id")
    username: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.id in GROUP_MENTIONS


class Attachment(_Snapshot):
    title: Optional[str] = None
    image_type: Optional[str] = None


class SenderRef(_Snapshot):
    id: str = Field(alias="_id")
    username: Optional[str] = None


class Message(_Snapshot):
    """A persisted chat message.

    Attributes:
        id: Message identifier
        rid: Room identifier
        u: Sender reference
        msg: Body text
        ts: Creation timestamp
        edited_at: Set when the message has been edited
        mentions: Ordered mentions, possibly including group sentinels
        t: Message subtype (``e2e`` for end-to-end encrypted messages)
        attachments: File or image attachments
    """

    id: str = Field(alias="_id")
    rid: str
    u: SenderRef
    msg: str = ""
    ts: Optional[datetime] = None
    edited_at: Optional[datetime] = Field(default=None, alias="editedAt")
    mentions: List[Mention] = Field(default_factory=list)
    t: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)

    @property
    def sender_id(self) -> str:
        return self.u.id


class Room(_Snapshot):
    id: str = Field(alias="_id")
    t: Optional[str] = None
    name: Optional[str] = None


class EmailAddress(_Snapshot):
    address: str
    verified: bool = False


class Receiver(_Snapshot):
    """Snapshot of the subscribed user joined onto the subscription."""

    id: Optional[str] = Field(default=None, alias="_id")
    active: bool = True
    emails: List[EmailAddress] = Field(default_factory=list)
    status: Optional[str] = None
    status_connection: Optional[str] = Field(default=None, alias="statusConnection")
    username: Optional[str] = None
    name: Optional[str] = None
    language: Optional[str] = None


class Subscription(_Snapshot):
    """One user's membership of one room, with notification preferences.

    A mode of ``NotificationMode.DEFAULT`` (or missing) means the server
    default applies for that channel.
    """

    id: Optional[str] = Field(default=None, alias="_id")
    rid: str
    user_id: str
    name: Optional[str] = None
    audio_notifications: NotificationMode = NotificationMode.DEFAULT
    desktop_notifications: NotificationMode = NotificationMode.DEFAULT
    mobile_push_notifications: NotificationMode = NotificationMode.DEFAULT
    email_notifications: NotificationMode = NotificationMode.DEFAULT
    audio_pref_origin: PreferenceOrigin = PreferenceOrigin.DEFAULT
    desktop_pref_origin: PreferenceOrigin = PreferenceOrigin.DEFAULT
    mobile_pref_origin: PreferenceOrigin = PreferenceOrigin.DEFAULT
    email_pref_origin: PreferenceOrigin = PreferenceOrigin.DEFAULT
    mute_group_mentions: bool = False
    disable_notifications: bool = False
    ignored: List[str] = Field(default_factory=list)
    user_highlights: List[str] = Field(default_factory=list)
    desktop_notification_duration: Optional[int] = None
    receiver: Receiver = Field(default_factory=Receiver)

    def mode_for(self, channel: Channel) -> Optional[NotificationMode]:
        """Explicit mode for a channel, or None when the server default applies."""
        mode = getattr(self, channel.mode_field)
        if mode == NotificationMode.DEFAULT:
            return None
        return mode

    def origin_for(self, channel: Channel) -> PreferenceOrigin:
        return getattr(self, channel.origin_field)
