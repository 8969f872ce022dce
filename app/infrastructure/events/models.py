"""Event models for infrastructure event system.

Provides the generic Event record passed to event handlers.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Event:
    """Immutable record of something that happened.

    Events carry side-channel signals (for example "a notification was
    sent") from the component that produced them to whoever registered a
    handler for that event type.
    """

    event_type: str
    """The type of event (e.g., 'message.notification.sent')."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    """When the event occurred."""

    correlation_id: UUID = field(default_factory=uuid4)
    """Unique ID to track related events across the system."""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Custom metadata for this event type."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to dictionary.

        Returns:
            Dictionary representation of the event with ISO format timestamp
            and UUID as string.
        """
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["correlation_id"] = str(self.correlation_id)
        return data
