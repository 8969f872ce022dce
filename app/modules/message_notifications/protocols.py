"""Collaborator contracts consumed by the fan-out engine.

The engine never talks to storage, authorization, room membership or
localization directly. Implementations of these protocols are passed in at
construction time.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, runtime_checkable

from infrastructure.i18n.models import Locale, TranslationKey
from modules.message_notifications.models import Subscription, User

if TYPE_CHECKING:
    from modules.message_notifications.eligibility import EligibilityQuery
    from modules.message_notifications.payloads import SideChannelNotification


@runtime_checkable
class SubscriptionStore(Protocol):
    """Read access to room subscriptions.

    ``find_eligible`` must return subscriptions joined with a receiver
    snapshot and must honour every clause of the query, including the
    active-receiver and base exclusion filters.
    """

    def count_by_room_id(self, room_id: str) -> int:  # pragma: no cover
        ...

    def find_eligible(
        self, query: "EligibilityQuery"
    ) -> List[Subscription]:  # pragma: no cover
        ...

    def find_by_room_id_and_user_ids(
        self, room_id: str, user_ids: Sequence[str]
    ) -> List[Subscription]:  # pragma: no cover
        ...

    def find_one_by_room_id_and_user_id(
        self, room_id: str, user_id: str
    ) -> Optional[Subscription]:  # pragma: no cover
        ...


@runtime_checkable
class PermissionChecker(Protocol):
    def has_permission(
        self, user_id: str, permission: str, room_id: Optional[str] = None
    ) -> bool:  # pragma: no cover
        ...


@runtime_checkable
class SenderResolver(Protocol):
    """Resolves the sender of a message as seen by a given room type."""

    def get_sender_for_room_type(
        self, room_type: str, user_id: str
    ) -> Optional[User]:  # pragma: no cover
        ...


@dataclass
class JoinResult:
    """Outcome of joining a user to a room.

    Attributes:
        user_id: User that was joined
        room_id: Room joined
        success: Whether the join took effect
        message: Human-friendly detail for logs
    """

    user_id: str
    room_id: str
    success: bool
    message: str = "ok"

    @classmethod
    def ok(cls, user_id: str, room_id: str) -> "JoinResult":
        return cls(user_id=user_id, room_id=room_id, success=True)

    @classmethod
    def failed(cls, user_id: str, room_id: str, message: str) -> "JoinResult":
        return cls(user_id=user_id, room_id=room_id, success=False, message=message)


@runtime_checkable
class RoomJoiner(Protocol):
    """Joins a user to a room on their behalf.

    Implementations either return a JoinResult or raise; both an exception
    and an unsuccessful result count as a failed join.
    """

    def join_room(self, user_id: str, room_id: str) -> JoinResult:  # pragma: no cover
        ...


@runtime_checkable
class SideChannelNotifier(Protocol):
    """Receives a signal whenever a desktop or mobile notification went out."""

    def notify(
        self, notification: "SideChannelNotification"
    ) -> None:  # pragma: no cover
        ...


@runtime_checkable
class LabelTranslator(Protocol):
    """Renders localized notification labels.

    ``infrastructure.i18n.Translator`` satisfies this protocol.
    """

    def translate_message(
        self, key: TranslationKey, locale: Locale
    ) -> str:  # pragma: no cover
        ...
