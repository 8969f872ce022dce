"""Message notification errors."""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class JoinFailure:
    """One mentioned user that could not be joined and notified."""

    user_id: str
    reason: str


class AutoJoinError(Exception):
    """Raised after an auto-join batch when at least one user failed.

    Notifications already dispatched, including those to users whose join
    succeeded, are not rolled back.

    Attributes:
        room_id: Room the users were being joined to
        failures: One entry per failed user
    """

    def __init__(self, room_id: str, failures: List[JoinFailure]):
        self.room_id = room_id
        self.failures = list(failures)
        users = ", ".join(f.user_id for f in self.failures)
        super().__init__(
            f"Failed to auto-join {len(self.failures)} mentioned user(s) "
            f"to room {room_id}: {users}"
        )

    @property
    def user_ids(self) -> List[str]:
        return [f.user_id for f in self.failures]
