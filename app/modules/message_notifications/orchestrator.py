"""Notification fan-out for newly persisted messages.

One run per saved message:

- **Guard**: edited messages, messages whose timestamp is outside the
  allowed clock skew, rooms without a type and unresolvable senders are
  ignored. The message is returned unchanged.
- **Preparation**: mention sets, the room-size suppression flag and the
  base notification text.
- **Dispatch**: candidate subscriptions from the eligibility filter, each
  handed to the recipient dispatcher. A failure for one recipient is
  logged and does not stop the others.
- **Auto-join** (public channels only): directly mentioned users without a
  subscription are joined to the room and then notified. Each user is
  notified only after their own join succeeded. Failed joins are collected
  and raised together as AutoJoinError once every attempt has finished.

Runs share no mutable state, so concurrent runs for different messages do
not interfere.
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

import structlog

from infrastructure.logging.context import bind_request_context
from modules.message_notifications.dispatcher import DispatchOutcome, RecipientDispatcher
from modules.message_notifications.eligibility import (
    EligibilityFilter,
    build_eligibility_query,
    split_mentions,
)
from modules.message_notifications.errors import AutoJoinError, JoinFailure
from modules.message_notifications.models import (
    Channel,
    Message,
    Room,
    RoomType,
    Subscription,
    User,
)
from modules.message_notifications.protocols import (
    RoomJoiner,
    SenderResolver,
    SubscriptionStore,
)
from modules.message_notifications.text import (
    TextTransformPipeline,
    replace_mentioned_usernames_with_full_names,
)

if TYPE_CHECKING:
    from infrastructure.configuration import NotificationSettings

logger = structlog.get_logger()

GUARD_EDITED = "edited"
GUARD_STALE = "stale"
GUARD_NO_ROOM = "missing_room"
GUARD_NO_SENDER = "sender_not_found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FanOutContext:
    """Values computed once per message in the preparation state."""

    message: Message
    room: Room
    sender: User
    mention_ids: List[str]
    direct_mention_ids: List[str]
    has_mention_to_all: bool
    has_mention_to_here: bool
    notification_message: str
    disable_all_message_notifications: bool


@dataclass
class FanOutReport:
    """Summary of one fan-out run.

    Attributes:
        message_id: Message that triggered the run
        rejected_reason: Guard that rejected the message, if any
        outcomes: Per-recipient outcomes, dispatch and auto-join states
        failed_user_ids: Recipients whose dispatch raised
        joined_user_ids: Mentioned users joined to the room
        join_failures: Mentioned users that could not be joined
    """

    message_id: str
    rejected_reason: Optional[str] = None
    outcomes: List[DispatchOutcome] = field(default_factory=list)
    failed_user_ids: List[str] = field(default_factory=list)
    joined_user_ids: List[str] = field(default_factory=list)
    join_failures: List[JoinFailure] = field(default_factory=list)

    @property
    def notified_user_ids(self) -> List[str]:
        return [o.user_id for o in self.outcomes if o.channels]


class NotificationFanOut:
    """Fans a saved message out to the room's recipients.

    Example:
        fan_out = NotificationFanOut(
            settings=settings.notifications,
            subscriptions=subscription_store,
            sender_resolver=room_types,
            recipient_dispatcher=recipient_dispatcher,
            room_joiner=room_joiner,
        )

        fan_out.send_all_notifications(message, room)
    """

    def __init__(
        self,
        *,
        settings: "NotificationSettings",
        subscriptions: SubscriptionStore,
        sender_resolver: SenderResolver,
        recipient_dispatcher: RecipientDispatcher,
        room_joiner: RoomJoiner,
        text_transforms: Optional[TextTransformPipeline] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._settings = settings
        self._subscriptions = subscriptions
        self._eligibility = EligibilityFilter(subscriptions)
        self._sender_resolver = sender_resolver
        self._recipients = recipient_dispatcher
        self._room_joiner = room_joiner
        self._text_transforms = text_transforms or TextTransformPipeline()
        self._clock = clock

    def send_all_notifications(self, message: Message, room: Optional[Room]) -> Message:
        """Notify every eligible recipient of a saved message.

        Args:
            message: Message that was just persisted
            room: Room the message belongs to

        Returns:
            The message, unchanged.

        Raises:
            AutoJoinError: One or more mentioned users could not be joined to
                a public channel. All other notifications were already sent.
        """
        self.fan_out(message, room)
        return message

    def fan_out(self, message: Message, room: Optional[Room]) -> FanOutReport:
        """Run the fan-out and return a report of what happened.

        Raises:
            AutoJoinError: see send_all_notifications
        """
        with bind_request_context(
            correlation_id=message.id,
            message_id=message.id,
            room_id=room.id if room else None,
        ):
            report = FanOutReport(message_id=message.id)

            reason, sender = self._guard(message, room)
            if reason is not None:
                report.rejected_reason = reason
                logger.debug("message_notifications_skipped", reason=reason)
                return report

            ctx = self._prepare(message, room, sender)

            with ThreadPoolExecutor(
                max_workers=self._settings.NOTIFICATIONS_MAX_WORKERS,
                thread_name_prefix="fan-out",
            ) as pool:
                self._dispatch_candidates(ctx, pool, report)

                if room.t == RoomType.PUBLIC_CHANNEL.value:
                    self._auto_join_mentioned(ctx, pool, report)

            logger.info(
                "message_notifications_dispatched",
                recipient_count=len(report.outcomes),
                notified_count=len(report.notified_user_ids),
                failed_count=len(report.failed_user_ids),
                joined_count=len(report.joined_user_ids),
                suppressed=ctx.disable_all_message_notifications,
            )

            if report.join_failures:
                logger.error(
                    "auto_join_batch_failed",
                    failed_user_ids=[f.user_id for f in report.join_failures],
                )
                raise AutoJoinError(room.id, report.join_failures)

            return report

    def _guard(self, message: Message, room: Optional[Room]):
        if message.edited_at is not None:
            return GUARD_EDITED, None

        if message.ts is not None:
            ts = message.ts
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            skew = abs((self._clock() - ts).total_seconds())
            if skew > self._settings.NOTIFICATIONS_MESSAGE_MAX_AGE_SECONDS:
                return GUARD_STALE, None

        if room is None or room.t is None:
            return GUARD_NO_ROOM, None

        sender = self._sender_resolver.get_sender_for_room_type(
            room.t, message.sender_id
        )
        if sender is None:
            return GUARD_NO_SENDER, None

        return None, sender

    def _prepare(self, message: Message, room: Room, sender: User) -> FanOutContext:
        mention_ids = [mention.id for mention in message.mentions]
        direct, has_mention_to_all, has_mention_to_here = split_mentions(mention_ids)

        # Real names are substituted into the transformed text, not message.msg
        notification_message = self._text_transforms.run(message.msg)
        if mention_ids and self._settings.UI_USE_REAL_NAME:
            notification_message = replace_mentioned_usernames_with_full_names(
                notification_message, message.mentions
            )

        max_members = self._settings.NOTIFICATIONS_MAX_ROOM_MEMBERS
        member_count = self._subscriptions.count_by_room_id(room.id)
        disable_all = member_count > max_members and max_members != 0

        if disable_all:
            logger.debug(
                "room_size_suppression_active",
                member_count=member_count,
                max_members=max_members,
            )

        return FanOutContext(
            message=message,
            room=room,
            sender=sender,
            mention_ids=mention_ids,
            direct_mention_ids=direct,
            has_mention_to_all=has_mention_to_all,
            has_mention_to_here=has_mention_to_here,
            notification_message=notification_message,
            disable_all_message_notifications=disable_all,
        )

    def _dispatch_candidates(
        self, ctx: FanOutContext, pool: ThreadPoolExecutor, report: FanOutReport
    ) -> None:
        query = build_eligibility_query(
            room_id=ctx.room.id,
            room_type=ctx.room.t,
            sender_id=ctx.sender.id,
            mention_ids=ctx.mention_ids,
            disable_all_message_notifications=ctx.disable_all_message_notifications,
            server_defaults={
                channel: self._settings.default_preference(channel)
                for channel in Channel
            },
        )
        candidates = self._eligibility.find_eligible(query)

        futures = [
            pool.submit(
                contextvars.copy_context().run,
                self._dispatch_one,
                ctx,
                subscription,
                ctx.disable_all_message_notifications,
            )
            for subscription in candidates
        ]
        for subscription, future in zip(candidates, futures):
            self._collect(subscription.user_id, future.result(), report)

    def _auto_join_mentioned(
        self, ctx: FanOutContext, pool: ThreadPoolExecutor, report: FanOutReport
    ) -> None:
        to_join = self._users_to_join(ctx.room, ctx.direct_mention_ids)
        if not to_join:
            return

        logger.info("auto_joining_mentioned_users", user_ids=to_join)

        futures = [
            pool.submit(
                contextvars.copy_context().run, self._join_and_notify, ctx, user_id
            )
            for user_id in to_join
        ]
        for user_id, future in zip(to_join, futures):
            failure, outcome = future.result()
            if failure is not None:
                report.join_failures.append(failure)
                continue
            report.joined_user_ids.append(user_id)
            self._collect(user_id, outcome, report)

    def _users_to_join(self, room: Room, mention_ids: Sequence[str]) -> List[str]:
        if not mention_ids:
            return []
        members = {
            subscription.user_id
            for subscription in self._subscriptions.find_by_room_id_and_user_ids(
                room.id, list(mention_ids)
            )
        }
        to_join = []
        for user_id in mention_ids:
            if user_id not in members and user_id not in to_join:
                to_join.append(user_id)
        return to_join

    def _join_and_notify(self, ctx: FanOutContext, user_id: str):
        room_id = ctx.room.id
        try:
            result = self._room_joiner.join_room(user_id, room_id)
        except Exception as e:
            logger.exception("auto_join_failed", user_id=user_id, error=str(e))
            return JoinFailure(user_id=user_id, reason=str(e)), None

        if result is not None and not result.success:
            logger.error("auto_join_failed", user_id=user_id, error=result.message)
            return JoinFailure(user_id=user_id, reason=result.message), None

        subscription = self._subscriptions.find_one_by_room_id_and_user_id(
            room_id, user_id
        )
        if subscription is None:
            logger.error("auto_join_subscription_missing", user_id=user_id)
            return JoinFailure(user_id=user_id, reason="subscription_not_found"), None

        # Newly joined users are never suppressed by room size
        return None, self._dispatch_one(ctx, subscription, False)

    def _dispatch_one(
        self, ctx: FanOutContext, subscription: Subscription, suppressed: bool
    ) -> Optional[DispatchOutcome]:
        try:
            return self._recipients.dispatch(
                subscription,
                sender=ctx.sender,
                message=ctx.message,
                notification_message=ctx.notification_message,
                room=ctx.room,
                mention_ids=ctx.mention_ids,
                has_mention_to_all=ctx.has_mention_to_all,
                has_mention_to_here=ctx.has_mention_to_here,
                disable_all_message_notifications=suppressed,
            )
        except Exception as e:
            logger.exception(
                "recipient_dispatch_failed",
                user_id=subscription.user_id,
                error=str(e),
            )
            return None

    @staticmethod
    def _collect(
        user_id: str, outcome: Optional[DispatchOutcome], report: FanOutReport
    ) -> None:
        if outcome is None:
            report.failed_user_ids.append(user_id)
        else:
            report.outcomes.append(outcome)
