"""Recipient dispatcher.

Runs the four channel decisions for one recipient of one message and hands
each passing channel to its send collaborator. Steps, in order:

1. Skip the sender's own subscription.
2. Skip group mentions (``@all``/``@here``) for recipients who muted them,
   unless they are also mentioned directly.
3. Skip direct rooms for recipients without the ``view-d-room`` permission.
4. Render the recipient's text and compute the highlight flag.
5. Evaluate audio, desktop, mobile, email in that order and send.
6. Email goes to the first verified address only.
7. If a desktop or mobile notification went out, emit a
   ``message.notification.sent`` event in the background.

Collaborator exceptions are not caught here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from infrastructure.events import Event, EventDispatcher
from modules.message_notifications.decisions import (
    should_notify_audio,
    should_notify_desktop,
    should_notify_email,
    should_notify_mobile,
)
from modules.message_notifications.models import (
    Channel,
    EmailAddress,
    Message,
    NotificationMode,
    PreferenceOrigin,
    Room,
    RoomType,
    Subscription,
    User,
)
from modules.message_notifications.payloads import (
    AudioNotification,
    DesktopNotification,
    EmailNotification,
    PushNotification,
    SideChannelNotification,
)
from modules.message_notifications.protocols import LabelTranslator, PermissionChecker
from modules.message_notifications.senders import (
    AudioSender,
    DesktopSender,
    EmailSender,
    PushSender,
)
from modules.message_notifications.text import (
    message_contains_highlight,
    parse_message_text_per_user,
)

logger = structlog.get_logger()

NOTIFICATION_SENT_EVENT = "message.notification.sent"
VIEW_DIRECT_ROOM_PERMISSION = "view-d-room"

SKIP_SENDER = "sender"
SKIP_MUTED_GROUP_MENTION = "muted_group_mention"
SKIP_NO_DIRECT_ROOM_PERMISSION = "no_direct_room_permission"


@dataclass
class DispatchOutcome:
    """What happened for one recipient.

    Attributes:
        user_id: Recipient user id
        channels: Channels that were sent, in evaluation order
        skipped_reason: Set when the recipient was skipped before evaluation
    """

    user_id: str
    channels: List[Channel] = field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def notification_sent(self) -> bool:
        """True when a desktop or mobile notification went out."""
        return Channel.DESKTOP in self.channels or Channel.MOBILE in self.channels


def first_verified_email(emails: Sequence[EmailAddress]) -> Optional[EmailAddress]:
    """Return the first verified address in list order, or None."""
    for email in emails:
        if email.verified:
            return email
    return None


def all_mode_allowed(
    subscription: Subscription,
    channel: Channel,
    disable_all_message_notifications: bool,
) -> bool:
    """Whether the channel's ``all`` mode may trigger a notification.

    While room-size suppression is on, only an ``all`` mode the user chose
    explicitly counts. Mentions and highlights are unaffected.
    """
    if not disable_all_message_notifications:
        return True
    return subscription.origin_for(channel) == PreferenceOrigin.USER


class RecipientDispatcher:
    """Sends one message's notifications to one recipient.

    Stateless between calls; safe to share across threads as long as the
    collaborators are. Upload and encrypted-message labels come from
    ``translator``, or from the bundled YAML catalog when none is given.
    """

    def __init__(
        self,
        *,
        permissions: PermissionChecker,
        audio_sender: AudioSender,
        desktop_sender: DesktopSender,
        push_sender: PushSender,
        email_sender: EmailSender,
        server_defaults: Dict[Channel, NotificationMode],
        always_notify_mobile: bool = False,
        events: Optional[EventDispatcher] = None,
        translator: Optional[LabelTranslator] = None,
    ):
        self._permissions = permissions
        self._audio_sender = audio_sender
        self._desktop_sender = desktop_sender
        self._push_sender = push_sender
        self._email_sender = email_sender
        self._server_defaults = dict(server_defaults)
        self._always_notify_mobile = always_notify_mobile
        self._events = events
        self._translator = translator

    def dispatch(
        self,
        subscription: Subscription,
        *,
        sender: User,
        message: Message,
        notification_message: str,
        room: Room,
        mention_ids: Sequence[str],
        has_mention_to_all: bool,
        has_mention_to_here: bool,
        disable_all_message_notifications: bool = False,
    ) -> DispatchOutcome:
        """Evaluate and send every channel for one subscription.

        Args:
            subscription: Recipient's subscription with receiver snapshot
            sender: Resolved message sender
            message: Source message
            notification_message: Base notification text for the message
            room: Room the message was posted in
            mention_ids: All mention ids, including group sentinels
            has_mention_to_all: Message mentions ``@all``
            has_mention_to_here: Message mentions ``@here``
            disable_all_message_notifications: Room-size suppression flag

        Returns:
            DispatchOutcome listing the channels sent
        """
        user_id = subscription.user_id
        outcome = DispatchOutcome(user_id=user_id)

        if user_id == sender.id:
            return self._skip(outcome, SKIP_SENDER, message)

        has_mention_to_user = user_id in mention_ids

        if (
            not has_mention_to_user
            and subscription.mute_group_mentions
            and (has_mention_to_all or has_mention_to_here)
        ):
            return self._skip(outcome, SKIP_MUTED_GROUP_MENTION, message)

        room_type = room.t
        if room_type == RoomType.DIRECT.value and not self._permissions.has_permission(
            user_id, VIEW_DIRECT_ROOM_PERMISSION
        ):
            return self._skip(outcome, SKIP_NO_DIRECT_ROOM_PERMISSION, message)

        receiver = subscription.receiver
        text = parse_message_text_per_user(
            notification_message, message, receiver, self._translator
        )
        is_highlighted = message_contains_highlight(
            message, subscription.user_highlights
        )
        suppressed = disable_all_message_notifications

        def allowed(channel: Channel) -> bool:
            return all_mode_allowed(subscription, channel, suppressed)

        if should_notify_audio(
            disable_all_message_notifications=suppressed,
            status=receiver.status,
            status_connection=receiver.status_connection,
            mode=subscription.mode_for(Channel.AUDIO),
            server_default=self._server_defaults[Channel.AUDIO],
            has_mention_to_all=has_mention_to_all,
            has_mention_to_here=has_mention_to_here,
            is_highlighted=is_highlighted,
            has_mention_to_user=has_mention_to_user,
            room_type=room_type,
            all_mode_allowed=allowed(Channel.AUDIO),
        ):
            self._send(
                outcome,
                Channel.AUDIO,
                self._audio_sender,
                AudioNotification(user_id=user_id, message=message, room=room),
            )

        if should_notify_desktop(
            disable_all_message_notifications=suppressed,
            status=receiver.status,
            status_connection=receiver.status_connection,
            mode=subscription.mode_for(Channel.DESKTOP),
            server_default=self._server_defaults[Channel.DESKTOP],
            has_mention_to_all=has_mention_to_all,
            has_mention_to_here=has_mention_to_here,
            is_highlighted=is_highlighted,
            has_mention_to_user=has_mention_to_user,
            room_type=room_type,
            all_mode_allowed=allowed(Channel.DESKTOP),
        ):
            self._send(
                outcome,
                Channel.DESKTOP,
                self._desktop_sender,
                DesktopNotification(
                    notification_message=text,
                    user_id=user_id,
                    user=sender,
                    message=message,
                    room=room,
                    duration=subscription.desktop_notification_duration,
                ),
            )

        if should_notify_mobile(
            disable_all_message_notifications=suppressed,
            status_connection=receiver.status_connection,
            mode=subscription.mode_for(Channel.MOBILE),
            server_default=self._server_defaults[Channel.MOBILE],
            has_mention_to_all=has_mention_to_all,
            is_highlighted=is_highlighted,
            has_mention_to_user=has_mention_to_user,
            room_type=room_type,
            all_mode_allowed=allowed(Channel.MOBILE),
            always_notify_mobile=self._always_notify_mobile,
        ):
            self._send(
                outcome,
                Channel.MOBILE,
                self._push_sender,
                PushNotification(
                    notification_message=text,
                    room=room,
                    message=message,
                    user_id=user_id,
                    sender_username=sender.username,
                    sender_name=sender.name,
                    receiver_username=receiver.username,
                ),
            )

        if receiver.emails and should_notify_email(
            disable_all_message_notifications=suppressed,
            status_connection=receiver.status_connection,
            mode=subscription.mode_for(Channel.EMAIL),
            server_default=self._server_defaults[Channel.EMAIL],
            has_mention_to_all=has_mention_to_all,
            is_highlighted=is_highlighted,
            has_mention_to_user=has_mention_to_user,
            room_type=room_type,
            all_mode_allowed=allowed(Channel.EMAIL),
        ):
            email = first_verified_email(receiver.emails)
            if email is not None:
                self._send(
                    outcome,
                    Channel.EMAIL,
                    self._email_sender,
                    EmailNotification(
                        message=message,
                        receiver=receiver,
                        subscription=subscription,
                        room=room,
                        email_address=email.address,
                        has_mention_to_user=has_mention_to_user,
                    ),
                )
            else:
                logger.debug(
                    "no_verified_email",
                    message_id=message.id,
                    user_id=user_id,
                )

        if outcome.notification_sent:
            self._emit_notification_sent(sender, message, room, user_id)

        return outcome

    def _send(self, outcome: DispatchOutcome, channel: Channel, sender, payload) -> None:
        delivered = sender.send(payload)
        outcome.channels.append(channel)
        if delivered is False:
            logger.warning(
                "channel_send_reported_failure",
                channel=channel.value,
                user_id=outcome.user_id,
            )
        else:
            logger.debug(
                "channel_notification_sent",
                channel=channel.value,
                user_id=outcome.user_id,
            )

    def _skip(
        self, outcome: DispatchOutcome, reason: str, message: Message
    ) -> DispatchOutcome:
        outcome.skipped_reason = reason
        logger.debug(
            "recipient_skipped",
            reason=reason,
            user_id=outcome.user_id,
            message_id=message.id,
        )
        return outcome

    def _emit_notification_sent(
        self, sender: User, message: Message, room: Room, user_id: str
    ) -> None:
        if self._events is None:
            return
        payload = SideChannelNotification(
            message_id=message.id,
            room_id=room.id,
            user_ids=[user_id],
            text=f"@{sender.username}: {message.msg}",
            kind=(
                "privateMessage"
                if room.t == RoomType.PRIVATE_GROUP.value
                else "message"
            ),
        )
        self._events.dispatch_background(
            Event(event_type=NOTIFICATION_SENT_EVENT, metadata=payload.model_dump())
        )
