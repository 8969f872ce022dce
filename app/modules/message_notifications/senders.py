"""Send collaborator abstract base classes.

Each channel (audio, desktop, mobile push, email) is delivered by an
external transport. The engine only decides *whether* to send and builds
the payload; implementations own delivery, their own timeouts and their
own error handling.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from modules.message_notifications.models import Channel
from modules.message_notifications.payloads import (
    AudioNotification,
    DesktopNotification,
    EmailNotification,
    PushNotification,
)

PayloadT = TypeVar("PayloadT")


class ChannelSender(ABC, Generic[PayloadT]):
    """Abstract base class for channel transports.

    Example Implementation:
        class WebsocketDesktopSender(DesktopSender):

            def send(self, payload: DesktopNotification) -> Optional[bool]:
                self._hub.emit(payload.user_id, "notification", payload.model_dump())
                return True
    """

    @property
    @abstractmethod
    def channel(self) -> Channel:
        """Channel this sender delivers."""

    @abstractmethod
    def send(self, payload: PayloadT) -> Optional[bool]:
        """Deliver one notification.

        Args:
            payload: Channel-specific payload.

        Returns:
            False when the transport reports a delivery failure; True or None
            otherwise. Exceptions propagate to the caller.
        """


class AudioSender(ChannelSender[AudioNotification]):
    @property
    def channel(self) -> Channel:
        return Channel.AUDIO


class DesktopSender(ChannelSender[DesktopNotification]):
    @property
    def channel(self) -> Channel:
        return Channel.DESKTOP


class PushSender(ChannelSender[PushNotification]):
    @property
    def channel(self) -> Channel:
        return Channel.MOBILE


class EmailSender(ChannelSender[EmailNotification]):
    @property
    def channel(self) -> Channel:
        return Channel.EMAIL
