"""In-process subscription store.

Reference SubscriptionStore that keeps subscriptions in memory and
evaluates EligibilityQuery objects directly. Useful for local development,
tests and small single-process deployments; production deployments plug in
a store backed by their database.
"""

from threading import RLock
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from modules.message_notifications.eligibility import EligibilityQuery
from modules.message_notifications.models import Subscription

logger = structlog.get_logger()


class InMemorySubscriptionStore:
    """Thread-safe in-memory SubscriptionStore.

    Subscriptions are keyed by (room id, user id); inserting the same pair
    again replaces the previous record. Iteration order is insertion order.
    """

    def __init__(self, subscriptions: Optional[Iterable[Subscription]] = None):
        self._lock = RLock()
        self._items: Dict[Tuple[str, str], Subscription] = {}
        for subscription in subscriptions or []:
            self.upsert(subscription)

    def upsert(self, subscription: Subscription) -> None:
        with self._lock:
            self._items[(subscription.rid, subscription.user_id)] = subscription

    def remove(self, room_id: str, user_id: str) -> bool:
        with self._lock:
            return self._items.pop((room_id, user_id), None) is not None

    def _room(self, room_id: str) -> List[Subscription]:
        with self._lock:
            return [s for (rid, _), s in self._items.items() if rid == room_id]

    def count_by_room_id(self, room_id: str) -> int:
        return len(self._room(room_id))

    def find_eligible(self, query: EligibilityQuery) -> List[Subscription]:
        matches = [s for s in self._room(query.room_id) if query.matches(s)]
        logger.debug(
            "in_memory_eligibility_query",
            room_id=query.room_id,
            match_count=len(matches),
        )
        return matches

    def find_by_room_id_and_user_ids(
        self, room_id: str, user_ids: Sequence[str]
    ) -> List[Subscription]:
        wanted = set(user_ids)
        return [s for s in self._room(room_id) if s.user_id in wanted]

    def find_one_by_room_id_and_user_id(
        self, room_id: str, user_id: str
    ) -> Optional[Subscription]:
        with self._lock:
            return self._items.get((room_id, user_id))
