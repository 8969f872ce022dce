"""Per-channel notification decisions.

Pure predicates: given the recipient's presence, that channel's mode and
the mention/highlight flags of a message, decide whether the channel fires.
``mode`` is None when the subscription has no explicit mode for the
channel, in which case ``server_default`` applies.

Busy recipients never get audio or desktop alerts. Push is not triggered
by ``@here``.

``all_mode_allowed`` is False when the ``all`` mode came from the server
default while room-size suppression is on. Only the ``all`` term is turned
off then; direct mentions and highlights still fire. Direct rooms are
never suppressed by room size.
"""

from typing import Optional

from modules.message_notifications.models import NotificationMode, RoomType

STATUS_BUSY = "busy"
CONNECTION_ONLINE = "online"
CONNECTION_OFFLINE = "offline"


def _is_direct(room_type: Optional[str]) -> bool:
    return room_type == RoomType.DIRECT.value


def _suppressed_unset_mode(
    disable_all_message_notifications: bool,
    mode: Optional[NotificationMode],
    room_type: Optional[str],
) -> bool:
    return (
        disable_all_message_notifications
        and mode is None
        and not _is_direct(room_type)
    )


def _server_default_decision(
    mode: Optional[NotificationMode], server_default: NotificationMode
) -> Optional[bool]:
    # Returns None when the server default does not settle the decision
    if mode is not None:
        return None
    if server_default == NotificationMode.ALL:
        return True
    if server_default == NotificationMode.NOTHING:
        return False
    return None


def should_notify_audio(
    *,
    disable_all_message_notifications: bool,
    status: Optional[str],
    status_connection: Optional[str],
    mode: Optional[NotificationMode],
    server_default: NotificationMode,
    has_mention_to_all: bool,
    has_mention_to_here: bool,
    is_highlighted: bool,
    has_mention_to_user: bool,
    room_type: Optional[str],
    all_mode_allowed: bool = True,
) -> bool:
    """Decide whether to play an audio alert for the recipient."""
    if _suppressed_unset_mode(disable_all_message_notifications, mode, room_type):
        return False

    if status == STATUS_BUSY or mode == NotificationMode.NOTHING:
        return False

    settled = _server_default_decision(mode, server_default)
    if settled is not None:
        return settled

    return (
        _is_direct(room_type)
        or (
            not disable_all_message_notifications
            and (has_mention_to_all or has_mention_to_here)
        )
        or is_highlighted
        or (all_mode_allowed and mode == NotificationMode.ALL)
        or has_mention_to_user
    )


def should_notify_desktop(
    *,
    disable_all_message_notifications: bool,
    status: Optional[str],
    status_connection: Optional[str],
    mode: Optional[NotificationMode],
    server_default: NotificationMode,
    has_mention_to_all: bool,
    has_mention_to_here: bool,
    is_highlighted: bool,
    has_mention_to_user: bool,
    room_type: Optional[str],
    all_mode_allowed: bool = True,
) -> bool:
    """Decide whether to push a desktop notification to the recipient."""
    if _suppressed_unset_mode(disable_all_message_notifications, mode, room_type):
        return False

    if (
        status_connection == CONNECTION_OFFLINE
        or status == STATUS_BUSY
        or mode == NotificationMode.NOTHING
    ):
        return False

    settled = _server_default_decision(mode, server_default)
    if settled is not None:
        return settled

    return (
        _is_direct(room_type)
        or (
            not disable_all_message_notifications
            and (has_mention_to_all or has_mention_to_here)
        )
        or is_highlighted
        or (all_mode_allowed and mode == NotificationMode.ALL)
        or has_mention_to_user
    )


def should_notify_mobile(
    *,
    disable_all_message_notifications: bool,
    status_connection: Optional[str],
    mode: Optional[NotificationMode],
    server_default: NotificationMode,
    has_mention_to_all: bool,
    is_highlighted: bool,
    has_mention_to_user: bool,
    room_type: Optional[str],
    always_notify_mobile: bool = False,
    all_mode_allowed: bool = True,
) -> bool:
    """Decide whether to send a mobile push to the recipient.

    Connected recipients are skipped unless ``always_notify_mobile`` is set.
    """
    if _suppressed_unset_mode(disable_all_message_notifications, mode, room_type):
        return False

    if mode == NotificationMode.NOTHING:
        return False

    if not always_notify_mobile and status_connection == CONNECTION_ONLINE:
        return False

    settled = _server_default_decision(mode, server_default)
    if settled is not None:
        return settled

    return (
        _is_direct(room_type)
        or (not disable_all_message_notifications and has_mention_to_all)
        or is_highlighted
        or (all_mode_allowed and mode == NotificationMode.ALL)
        or has_mention_to_user
    )


def should_notify_email(
    *,
    disable_all_message_notifications: bool,
    status_connection: Optional[str],
    mode: Optional[NotificationMode],
    server_default: NotificationMode,
    has_mention_to_all: bool,
    is_highlighted: bool,
    has_mention_to_user: bool,
    room_type: Optional[str],
    all_mode_allowed: bool = True,
) -> bool:
    """Decide whether to email the recipient.

    Online recipients are never emailed; they see the message live.
    """
    if _suppressed_unset_mode(disable_all_message_notifications, mode, room_type):
        return False

    if mode is None and server_default == NotificationMode.NOTHING:
        return False

    if mode == NotificationMode.NOTHING:
        return False

    if status_connection == CONNECTION_ONLINE:
        return False

    return (
        _is_direct(room_type)
        or is_highlighted
        or (all_mode_allowed and mode == NotificationMode.ALL)
        or (mode is None and server_default == NotificationMode.ALL)
        or has_mention_to_user
        or (not disable_all_message_notifications and has_mention_to_all)
    )
