"""Wiring helper for the notification fan-out engine."""

from typing import Optional

import structlog

from infrastructure.configuration import NotificationSettings
from infrastructure.events import Event, EventDispatcher
from infrastructure.logging import configure_logging, get_module_logger
from infrastructure.services import get_event_dispatcher, get_settings
from modules.message_notifications.dispatcher import (
    NOTIFICATION_SENT_EVENT,
    RecipientDispatcher,
)
from modules.message_notifications.models import Channel
from modules.message_notifications.orchestrator import NotificationFanOut
from modules.message_notifications.payloads import SideChannelNotification
from modules.message_notifications.protocols import (
    LabelTranslator,
    PermissionChecker,
    RoomJoiner,
    SenderResolver,
    SideChannelNotifier,
    SubscriptionStore,
)
from modules.message_notifications.senders import (
    AudioSender,
    DesktopSender,
    EmailSender,
    PushSender,
)
from modules.message_notifications.text import TextTransformPipeline

logger = get_module_logger()


def register_side_channel(
    events: EventDispatcher, side_channel: SideChannelNotifier
) -> None:
    """Route "notification sent" events to a side-channel notifier."""

    def _forward(event: Event) -> None:
        side_channel.notify(SideChannelNotification(**event.metadata))

    events.register(NOTIFICATION_SENT_EVENT, _forward)


def build_notification_fan_out(
    *,
    subscriptions: SubscriptionStore,
    permissions: PermissionChecker,
    sender_resolver: SenderResolver,
    room_joiner: RoomJoiner,
    audio_sender: AudioSender,
    desktop_sender: DesktopSender,
    push_sender: PushSender,
    email_sender: EmailSender,
    settings: Optional[NotificationSettings] = None,
    events: Optional[EventDispatcher] = None,
    side_channel: Optional[SideChannelNotifier] = None,
    text_transforms: Optional[TextTransformPipeline] = None,
    translator: Optional[LabelTranslator] = None,
) -> NotificationFanOut:
    """Assemble a NotificationFanOut from its collaborators.

    Configures logging with configure_logging() unless the host process
    already configured structlog.

    Args:
        subscriptions: Subscription store
        permissions: Permission checker
        sender_resolver: Resolves the sender per room type
        room_joiner: Joins mentioned users to public channels
        audio_sender: Audio alert transport
        desktop_sender: Desktop notification transport
        push_sender: Mobile push transport
        email_sender: Email transport
        settings: Notification settings (application settings if omitted)
        events: Event dispatcher (application dispatcher if omitted)
        side_channel: Optional notifier for "notification sent" signals
        text_transforms: Transforms run before notification text is built
        translator: Label translator (bundled YAML catalog if omitted)

    Returns:
        Ready-to-use NotificationFanOut
    """
    if not structlog.is_configured():
        configure_logging()

    settings = settings or get_settings().notifications
    events = events or get_event_dispatcher()

    if side_channel is not None:
        register_side_channel(events, side_channel)

    recipient_dispatcher = RecipientDispatcher(
        permissions=permissions,
        audio_sender=audio_sender,
        desktop_sender=desktop_sender,
        push_sender=push_sender,
        email_sender=email_sender,
        server_defaults={
            channel: settings.default_preference(channel) for channel in Channel
        },
        always_notify_mobile=settings.NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE,
        events=events,
        translator=translator,
    )

    logger.info(
        "initialized_notification_fan_out",
        max_room_members=settings.NOTIFICATIONS_MAX_ROOM_MEMBERS,
        use_real_name=settings.UI_USE_REAL_NAME,
        side_channel_enabled=side_channel is not None,
    )

    return NotificationFanOut(
        settings=settings,
        subscriptions=subscriptions,
        sender_resolver=sender_resolver,
        recipient_dispatcher=recipient_dispatcher,
        room_joiner=room_joiner,
        text_transforms=text_transforms,
    )
