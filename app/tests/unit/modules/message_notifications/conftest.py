"""Fixtures for message notification engine tests."""

from typing import List, Optional
from unittest.mock import MagicMock

import pytest

from infrastructure.configuration import NotificationSettings
from modules.message_notifications.dispatcher import RecipientDispatcher
from modules.message_notifications.models import Channel
from modules.message_notifications.orchestrator import NotificationFanOut
from modules.message_notifications.protocols import JoinResult
from modules.message_notifications.store import InMemorySubscriptionStore
from tests.factories.message_notifications import (
    make_receiver,
    make_subscription,
    make_user,
)


@pytest.fixture
def notification_settings():
    """Settings with deterministic server defaults.

    Every channel defaults to ``mentions`` so that, unless a test says
    otherwise, only mentions and explicit ``all`` modes notify.
    """
    return NotificationSettings(
        ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS="mentions",
        ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS="mentions",
        ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS="mentions",
        ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE="mentions",
        NOTIFICATIONS_MAX_ROOM_MEMBERS=100,
        UI_USE_REAL_NAME=False,
        NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE=False,
        NOTIFICATIONS_MESSAGE_MAX_AGE_SECONDS=60,
        NOTIFICATIONS_MAX_WORKERS=4,
    )


@pytest.fixture
def server_defaults(notification_settings):
    return {
        channel: notification_settings.default_preference(channel)
        for channel in Channel
    }


@pytest.fixture
def senders():
    """One MagicMock transport per channel."""
    return {
        Channel.AUDIO: MagicMock(name="audio_sender"),
        Channel.DESKTOP: MagicMock(name="desktop_sender"),
        Channel.MOBILE: MagicMock(name="push_sender"),
        Channel.EMAIL: MagicMock(name="email_sender"),
    }


@pytest.fixture
def permissions():
    checker = MagicMock()
    checker.has_permission.return_value = True
    return checker


@pytest.fixture
def events():
    return MagicMock()


@pytest.fixture
def sender():
    return make_user("sender", name="Sender Person")


@pytest.fixture
def recipient_dispatcher_factory(senders, permissions, events, server_defaults):
    """Build RecipientDispatcher instances with shared mock collaborators."""

    def _factory(
        defaults: Optional[dict] = None, always_notify_mobile: bool = False
    ) -> RecipientDispatcher:
        return RecipientDispatcher(
            permissions=permissions,
            audio_sender=senders[Channel.AUDIO],
            desktop_sender=senders[Channel.DESKTOP],
            push_sender=senders[Channel.MOBILE],
            email_sender=senders[Channel.EMAIL],
            server_defaults={**server_defaults, **(defaults or {})},
            always_notify_mobile=always_notify_mobile,
            events=events,
        )

    return _factory


@pytest.fixture
def recipient_dispatcher(recipient_dispatcher_factory):
    return recipient_dispatcher_factory()


@pytest.fixture
def store():
    return InMemorySubscriptionStore()


@pytest.fixture
def sender_resolver(sender):
    resolver = MagicMock()
    resolver.get_sender_for_room_type.return_value = sender
    return resolver


@pytest.fixture
def room_joiner(store):
    """Joiner that subscribes the user with server-default preferences."""
    joiner = MagicMock()

    def _join(user_id: str, room_id: str) -> JoinResult:
        store.upsert(
            make_subscription(
                user_id=user_id,
                room_id=room_id,
                receiver=make_receiver(user_id=user_id),
            )
        )
        return JoinResult.ok(user_id, room_id)

    joiner.join_room.side_effect = _join
    return joiner


@pytest.fixture
def fan_out_factory(
    notification_settings, store, sender_resolver, room_joiner, recipient_dispatcher
):
    """Build NotificationFanOut instances around the in-memory store."""

    def _factory(settings: Optional[NotificationSettings] = None, **overrides):
        kwargs = dict(
            settings=settings or notification_settings,
            subscriptions=store,
            sender_resolver=sender_resolver,
            recipient_dispatcher=recipient_dispatcher,
            room_joiner=room_joiner,
        )
        kwargs.update(overrides)
        return NotificationFanOut(**kwargs)

    return _factory


@pytest.fixture
def sent_to():
    """Return the user ids a channel sender was called with, in call order."""

    def _sent_to(sender_mock) -> List[str]:
        payloads = [c.args[0] for c in sender_mock.send.call_args_list]
        return [getattr(p, "user_id", None) or p.receiver.id for p in payloads]

    return _sent_to
