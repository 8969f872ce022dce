"""Unit tests for the per-recipient dispatcher."""

import pytest

from modules.message_notifications.dispatcher import (
    NOTIFICATION_SENT_EVENT,
    SKIP_MUTED_GROUP_MENTION,
    SKIP_NO_DIRECT_ROOM_PERMISSION,
    SKIP_SENDER,
    VIEW_DIRECT_ROOM_PERMISSION,
    all_mode_allowed,
    first_verified_email,
)
from modules.message_notifications.eligibility import split_mentions
from modules.message_notifications.models import (
    Attachment,
    Channel,
    EmailAddress,
    NotificationMode,
    PreferenceOrigin,
)
from tests.factories.message_notifications import (
    make_message,
    make_receiver,
    make_room,
    make_subscription,
)

pytestmark = pytest.mark.unit

ALL = NotificationMode.ALL
NOTHING = NotificationMode.NOTHING
EVERY_CHANNEL = [Channel.AUDIO, Channel.DESKTOP, Channel.MOBILE, Channel.EMAIL]


def _dispatch(
    dispatcher,
    subscription,
    sender,
    mentions=(),
    room_type="c",
    message=None,
    suppressed=False,
    notification_message=None,
):
    message = message or make_message(msg="hey", mentions=mentions)
    mention_ids = [m.id for m in message.mentions]
    _, has_all, has_here = split_mentions(mention_ids)
    return dispatcher.dispatch(
        subscription,
        sender=sender,
        message=message,
        notification_message=(
            message.msg if notification_message is None else notification_message
        ),
        room=make_room(room_type=room_type),
        mention_ids=mention_ids,
        has_mention_to_all=has_all,
        has_mention_to_here=has_here,
        disable_all_message_notifications=suppressed,
    )


def _away_subscription(**kwargs):
    kwargs.setdefault("status", "away")
    kwargs.setdefault("status_connection", "away")
    return make_subscription(**kwargs)


def _assert_nothing_sent(senders):
    for sender_mock in senders.values():
        sender_mock.send.assert_not_called()


class TestSkips:
    def test_sender_is_never_notified(self, recipient_dispatcher, sender, senders):
        subscription = _away_subscription(user_id=sender.id)

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=[sender.id]
        )

        assert outcome.skipped_reason == SKIP_SENDER
        assert outcome.channels == []
        _assert_nothing_sent(senders)

    @pytest.mark.parametrize("group", ["all", "here"])
    def test_muted_group_mention_is_skipped(
        self, recipient_dispatcher, sender, senders, group
    ):
        subscription = _away_subscription(mute_group_mentions=True)

        outcome = _dispatch(recipient_dispatcher, subscription, sender, mentions=[group])

        assert outcome.skipped_reason == SKIP_MUTED_GROUP_MENTION
        _assert_nothing_sent(senders)

    def test_direct_mention_overrides_muted_group_mention(
        self, recipient_dispatcher, sender
    ):
        subscription = _away_subscription(mute_group_mentions=True)

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=["all", "user-1"]
        )

        assert outcome.skipped_reason is None
        assert outcome.channels == EVERY_CHANNEL

    def test_direct_room_requires_permission(
        self, recipient_dispatcher, sender, senders, permissions
    ):
        permissions.has_permission.return_value = False

        outcome = _dispatch(
            recipient_dispatcher, _away_subscription(), sender, room_type="d"
        )

        permissions.has_permission.assert_called_once_with(
            "user-1", VIEW_DIRECT_ROOM_PERMISSION
        )
        assert outcome.skipped_reason == SKIP_NO_DIRECT_ROOM_PERMISSION
        _assert_nothing_sent(senders)

    def test_permission_only_checked_for_direct_rooms(
        self, recipient_dispatcher, sender, permissions
    ):
        _dispatch(recipient_dispatcher, _away_subscription(), sender, mentions=["user-1"])

        permissions.has_permission.assert_not_called()


class TestChannelSelection:
    def test_channels_evaluated_in_order(self, recipient_dispatcher, sender):
        outcome = _dispatch(
            recipient_dispatcher, _away_subscription(), sender, mentions=["user-1"]
        )

        assert outcome.channels == EVERY_CHANNEL

    def test_each_channel_sent_once(self, recipient_dispatcher, sender, senders):
        _dispatch(
            recipient_dispatcher,
            _away_subscription(user_highlights=["hey"]),
            sender,
            mentions=["all", "user-1"],
        )

        for sender_mock in senders.values():
            sender_mock.send.assert_called_once()

    def test_direct_room_notifies_with_mentions_defaults(
        self, recipient_dispatcher, sender
    ):
        outcome = _dispatch(
            recipient_dispatcher, _away_subscription(), sender, room_type="d"
        )

        assert outcome.channels == EVERY_CHANNEL

    def test_offline_recipient_gets_audio_push_and_email(
        self, recipient_dispatcher, sender
    ):
        outcome = _dispatch(
            recipient_dispatcher, make_subscription(), sender, mentions=["user-1"]
        )

        assert outcome.channels == [Channel.AUDIO, Channel.MOBILE, Channel.EMAIL]

    def test_online_recipient_gets_audio_and_desktop(
        self, recipient_dispatcher, sender
    ):
        subscription = make_subscription(status="online", status_connection="online")

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=["user-1"]
        )

        assert outcome.channels == [Channel.AUDIO, Channel.DESKTOP]

    def test_busy_recipient_gets_no_audio_or_desktop(
        self, recipient_dispatcher, sender
    ):
        subscription = _away_subscription(status="busy")

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=["user-1"]
        )

        assert outcome.channels == [Channel.MOBILE, Channel.EMAIL]

    def test_always_notify_mobile_reaches_online_recipient(
        self, recipient_dispatcher_factory, sender
    ):
        dispatcher = recipient_dispatcher_factory(always_notify_mobile=True)
        subscription = make_subscription(status="online", status_connection="online")

        outcome = _dispatch(dispatcher, subscription, sender, mentions=["user-1"])

        assert outcome.channels == [Channel.AUDIO, Channel.DESKTOP, Channel.MOBILE]

    def test_unmentioned_recipient_gets_nothing(
        self, recipient_dispatcher, sender, senders
    ):
        outcome = _dispatch(recipient_dispatcher, _away_subscription(), sender)

        assert outcome.channels == []
        _assert_nothing_sent(senders)

    def test_highlight_notifies(self, recipient_dispatcher, sender):
        subscription = _away_subscription(user_highlights=["Deploy"])
        message = make_message(msg="deploy finished")

        outcome = _dispatch(recipient_dispatcher, subscription, sender, message=message)

        assert outcome.channels == EVERY_CHANNEL

    def test_server_default_all_notifies_plain_message(
        self, recipient_dispatcher_factory, sender
    ):
        dispatcher = recipient_dispatcher_factory(defaults={Channel.DESKTOP: ALL})

        outcome = _dispatch(dispatcher, _away_subscription(), sender)

        assert outcome.channels == [Channel.DESKTOP]

    def test_default_sourced_all_demoted_while_suppressed(
        self, recipient_dispatcher, sender, senders
    ):
        subscription = _away_subscription(
            audio=ALL, desktop=ALL, mobile=ALL, email=ALL, origin=PreferenceOrigin.DEFAULT
        )

        outcome = _dispatch(recipient_dispatcher, subscription, sender, suppressed=True)

        assert outcome.channels == []
        _assert_nothing_sent(senders)

    def test_user_sourced_all_survives_suppression(self, recipient_dispatcher, sender):
        subscription = _away_subscription(
            audio=ALL, desktop=ALL, mobile=ALL, email=ALL, origin=PreferenceOrigin.USER
        )

        outcome = _dispatch(recipient_dispatcher, subscription, sender, suppressed=True)

        assert outcome.channels == EVERY_CHANNEL

    def test_highlight_fires_default_sourced_all_while_suppressed(
        self, recipient_dispatcher, sender
    ):
        subscription = _away_subscription(
            desktop=ALL, origin=PreferenceOrigin.DEFAULT, user_highlights=["deploy"]
        )
        message = make_message(msg="deploy now")

        outcome = _dispatch(
            recipient_dispatcher,
            subscription,
            sender,
            message=message,
            suppressed=True,
        )

        assert outcome.channels == [Channel.DESKTOP]

    def test_direct_mention_fires_default_sourced_all_while_suppressed(
        self, recipient_dispatcher, sender, senders
    ):
        subscription = _away_subscription(desktop=ALL, origin=PreferenceOrigin.DEFAULT)

        outcome = _dispatch(
            recipient_dispatcher,
            subscription,
            sender,
            mentions=["user-1"],
            suppressed=True,
        )

        assert outcome.channels == [Channel.DESKTOP]
        assert senders[Channel.DESKTOP].send.call_args.args[0].user_id == "user-1"

    def test_direct_room_ignores_suppression(
        self, recipient_dispatcher_factory, sender
    ):
        dispatcher = recipient_dispatcher_factory(
            defaults={channel: ALL for channel in Channel}
        )

        outcome = _dispatch(
            dispatcher, _away_subscription(), sender, room_type="d", suppressed=True
        )

        assert outcome.channels == EVERY_CHANNEL

    def test_sender_failure_propagates(self, recipient_dispatcher, sender, senders):
        senders[Channel.AUDIO].send.side_effect = RuntimeError("transport down")

        with pytest.raises(RuntimeError, match="transport down"):
            _dispatch(
                recipient_dispatcher, _away_subscription(), sender, mentions=["user-1"]
            )

    def test_reported_delivery_failure_still_counts_as_sent(
        self, recipient_dispatcher, sender, senders
    ):
        senders[Channel.DESKTOP].send.return_value = False

        outcome = _dispatch(
            recipient_dispatcher, _away_subscription(), sender, mentions=["user-1"]
        )

        assert Channel.DESKTOP in outcome.channels


class TestPayloads:
    def test_desktop_and_push_payloads(self, recipient_dispatcher, sender, senders):
        subscription = _away_subscription(desktop_notification_duration=5)

        _dispatch(
            recipient_dispatcher,
            subscription,
            sender,
            mentions=["user-1"],
            notification_message="rendered text",
        )

        desktop = senders[Channel.DESKTOP].send.call_args.args[0]
        assert desktop.notification_message == "rendered text"
        assert desktop.user_id == "user-1"
        assert desktop.user == sender
        assert desktop.duration == 5

        push = senders[Channel.MOBILE].send.call_args.args[0]
        assert push.notification_message == "rendered text"
        assert push.sender_username == "sender"
        assert push.sender_name == "Sender Person"
        assert push.receiver_username == "user-1"

    def test_upload_label_replaces_text(self, recipient_dispatcher, sender, senders):
        message = make_message(
            msg="", mentions=["user-1"], attachments=[Attachment(title="a.txt")]
        )

        _dispatch(recipient_dispatcher, _away_subscription(), sender, message=message)

        desktop = senders[Channel.DESKTOP].send.call_args.args[0]
        assert desktop.notification_message == "User uploaded a file"

    def test_email_goes_to_first_verified_address_only(
        self, recipient_dispatcher, sender, senders
    ):
        receiver = make_receiver(
            emails=[
                {"address": "a@x", "verified": False},
                {"address": "b@x", "verified": True},
                {"address": "c@x", "verified": True},
            ]
        )
        subscription = make_subscription(receiver=receiver)

        _dispatch(recipient_dispatcher, subscription, sender, mentions=["user-1"])

        senders[Channel.EMAIL].send.assert_called_once()
        payload = senders[Channel.EMAIL].send.call_args.args[0]
        assert payload.email_address == "b@x"
        assert payload.has_mention_to_user is True
        assert payload.receiver.id == "user-1"

    @pytest.mark.parametrize(
        "emails",
        [[], [{"address": "a@x", "verified": False}]],
        ids=["no_addresses", "unverified_only"],
    )
    def test_no_email_without_verified_address(
        self, recipient_dispatcher, sender, senders, emails
    ):
        subscription = make_subscription(receiver=make_receiver(emails=emails))

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=["user-1"]
        )

        senders[Channel.EMAIL].send.assert_not_called()
        assert Channel.EMAIL not in outcome.channels


class TestNotificationSentEvent:
    def test_emitted_after_push(self, recipient_dispatcher, sender, events):
        message = make_message(msg="hey @user-1", mentions=["user-1"])

        _dispatch(recipient_dispatcher, make_subscription(), sender, message=message)

        events.dispatch_background.assert_called_once()
        event = events.dispatch_background.call_args.args[0]
        assert event.event_type == NOTIFICATION_SENT_EVENT
        assert event.metadata == {
            "message_id": "msg-1",
            "room_id": "room-1",
            "user_ids": ["user-1"],
            "text": "@sender: hey @user-1",
            "kind": "message",
        }

    def test_private_group_kind(self, recipient_dispatcher, sender, events):
        _dispatch(
            recipient_dispatcher,
            _away_subscription(),
            sender,
            mentions=["user-1"],
            room_type="p",
        )

        event = events.dispatch_background.call_args.args[0]
        assert event.metadata["kind"] == "privateMessage"

    def test_not_emitted_for_audio_only(self, recipient_dispatcher, sender, events):
        subscription = make_subscription(
            desktop=NOTHING,
            mobile=NOTHING,
            status="online",
            status_connection="online",
        )

        outcome = _dispatch(
            recipient_dispatcher, subscription, sender, mentions=["user-1"]
        )

        assert outcome.channels == [Channel.AUDIO]
        events.dispatch_background.assert_not_called()

    def test_not_emitted_when_skipped(self, recipient_dispatcher, sender, events):
        _dispatch(recipient_dispatcher, _away_subscription(user_id=sender.id), sender)

        events.dispatch_background.assert_not_called()


class TestAllModeAllowed:
    @pytest.mark.parametrize(
        "origin,suppressed,expected",
        [
            (PreferenceOrigin.DEFAULT, True, False),
            (PreferenceOrigin.USER, True, True),
            (PreferenceOrigin.DEFAULT, False, True),
        ],
    )
    def test_origin_and_suppression(self, origin, suppressed, expected):
        subscription = make_subscription(desktop=ALL, origin=origin)

        assert all_mode_allowed(subscription, Channel.DESKTOP, suppressed) is expected


class TestFirstVerifiedEmail:
    def test_returns_first_verified(self):
        emails = [
            EmailAddress(address="a@x"),
            EmailAddress(address="b@x", verified=True),
        ]

        assert first_verified_email(emails).address == "b@x"

    def test_none_when_unverified(self):
        assert first_verified_email([EmailAddress(address="a@x")]) is None
