"""Candidate selection for message notifications.

Builds the query describing which subscriptions of a room could receive at
least one notification for a message, and runs it against the
subscription store. Every subscription the query returns is handed to the
recipient dispatcher, which makes the final per-channel decision.

A subscription is a candidate when it:
- belongs to the room,
- has not put the sender on its ignore list,
- has not disabled notifications for the room,
- has an active receiver,
- and matches at least one inclusion clause.

Inclusion clauses per channel ``c``:
- mode for ``c`` is ``all`` (only user-sourced modes while room-size
  suppression is on),
- mode for ``c`` is ``mentions`` and the user is mentioned directly (or,
  with no direct mentions, the message carries ``@all``/``@here`` and
  suppression is off),
- no explicit mode for ``c`` and the server default would notify: in a
  direct room unless the default is ``nothing``; otherwise only with
  suppression off and either a default of ``all`` or a group mention,
- no explicit mode for ``c``, a server default of ``mentions`` and a direct
  mention.

Subscriptions carrying highlight keywords are always candidates, since a
highlight can fire any channel.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Mapping, Optional, Sequence, Tuple

import structlog

from modules.message_notifications.models import (
    GROUP_MENTIONS,
    Channel,
    NotificationMode,
    PreferenceOrigin,
    RoomType,
    Subscription,
)
from modules.message_notifications.protocols import SubscriptionStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class ModeClause:
    """Matches subscriptions by their mode for one channel.

    Attributes:
        channel: Channel the clause applies to
        mode: Required explicit mode, or None to require "no explicit mode"
        user_ids: Restrict to these users when set
        require_user_origin: Only match modes set explicitly by the user
    """

    channel: Channel
    mode: Optional[NotificationMode]
    user_ids: Optional[FrozenSet[str]] = None
    require_user_origin: bool = False

    def matches(self, subscription: Subscription) -> bool:
        if subscription.mode_for(self.channel) != self.mode:
            return False
        if (
            self.require_user_origin
            and subscription.origin_for(self.channel) != PreferenceOrigin.USER
        ):
            return False
        if self.user_ids is not None and subscription.user_id not in self.user_ids:
            return False
        return True


@dataclass(frozen=True)
class HighlightClause:
    """Matches subscriptions that have at least one highlight keyword."""

    def matches(self, subscription: Subscription) -> bool:
        return bool(subscription.user_highlights)


@dataclass(frozen=True)
class EligibilityQuery:
    """Candidate query for one message; built fresh per fan-out run."""

    room_id: str
    sender_id: str
    clauses: Tuple[object, ...] = field(default_factory=tuple)

    def excludes(self, subscription: Subscription) -> bool:
        """Base exclusion filter applied before any inclusion clause."""
        return (
            subscription.rid != self.room_id
            or self.sender_id in subscription.ignored
            or subscription.disable_notifications
            or not subscription.receiver.active
        )

    def matches(self, subscription: Subscription) -> bool:
        if self.excludes(subscription):
            return False
        return any(clause.matches(subscription) for clause in self.clauses)

    def clauses_for(self, channel: Channel) -> List[ModeClause]:
        return [
            c for c in self.clauses if isinstance(c, ModeClause) and c.channel is channel
        ]


def split_mentions(mention_ids: Sequence[str]) -> Tuple[List[str], bool, bool]:
    """Separate direct mentions from the ``all``/``here`` sentinels.

    Returns:
        Tuple of (direct mention ids in order, has @all, has @here)
    """
    direct = [mid for mid in mention_ids if mid not in GROUP_MENTIONS]
    return direct, "all" in mention_ids, "here" in mention_ids


def build_eligibility_query(
    *,
    room_id: str,
    room_type: Optional[str],
    sender_id: str,
    mention_ids: Sequence[str],
    disable_all_message_notifications: bool,
    server_defaults: Mapping[Channel, NotificationMode],
) -> EligibilityQuery:
    """Build the candidate query for a message.

    Args:
        room_id: Room the message was posted in
        room_type: Room type string (``d``, ``p``, ``c`` or other)
        sender_id: Message sender; subscriptions ignoring them are excluded
        mention_ids: All mention ids, including ``all``/``here`` sentinels
        disable_all_message_notifications: Room-size suppression flag
        server_defaults: Server default mode per channel

    Returns:
        EligibilityQuery with base exclusions and inclusion clauses
    """
    direct_mentions, has_mention_to_all, has_mention_to_here = split_mentions(
        mention_ids
    )
    has_group_mention = has_mention_to_all or has_mention_to_here
    mentioned = frozenset(direct_mentions)
    suppressed = disable_all_message_notifications

    clauses: List[object] = [HighlightClause()]

    for channel in Channel:
        clauses.append(
            ModeClause(channel, NotificationMode.ALL, require_user_origin=suppressed)
        )

        if mentioned:
            clauses.append(
                ModeClause(channel, NotificationMode.MENTIONS, user_ids=mentioned)
            )
        elif not suppressed and has_group_mention:
            clauses.append(ModeClause(channel, NotificationMode.MENTIONS))

        server_default = server_defaults[channel]
        direct_room = room_type == RoomType.DIRECT.value
        if (direct_room and server_default != NotificationMode.NOTHING) or (
            not suppressed
            and (server_default == NotificationMode.ALL or has_group_mention)
        ):
            clauses.append(ModeClause(channel, None))
        elif server_default == NotificationMode.MENTIONS and mentioned:
            clauses.append(ModeClause(channel, None, user_ids=mentioned))

    return EligibilityQuery(
        room_id=room_id, sender_id=sender_id, clauses=tuple(clauses)
    )


class EligibilityFilter:
    """Runs candidate queries against a subscription store."""

    def __init__(self, store: SubscriptionStore):
        self._store = store

    def find_eligible(self, query: EligibilityQuery) -> List[Subscription]:
        """Return candidate subscriptions, at most one per user.

        Args:
            query: Query produced by build_eligibility_query

        Returns:
            Candidate subscriptions in store order
        """
        seen = set()
        candidates = []
        for subscription in self._store.find_eligible(query):
            if subscription.user_id in seen:
                continue
            seen.add(subscription.user_id)
            candidates.append(subscription)

        logger.debug(
            "eligible_subscriptions_found",
            room_id=query.room_id,
            clause_count=len(query.clauses),
            candidate_count=len(candidates),
        )
        return candidates
