"""Message notification feature settings."""

from typing import Any, Dict

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings
from modules.message_notifications.models import Channel, NotificationMode

# Legacy setting names accepted by NotificationSettings.get()
_LEGACY_KEYS: Dict[str, str] = {
    "Accounts_Default_User_Preferences_audioNotifications": "ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS",
    "Accounts_Default_User_Preferences_desktopNotifications": "ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS",
    "Accounts_Default_User_Preferences_mobileNotifications": "ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS",
    "Accounts_Default_User_Preferences_emailNotificationMode": "ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE",
    "Notifications_Max_Room_Members": "NOTIFICATIONS_MAX_ROOM_MEMBERS",
    "Notifications_Always_Notify_Mobile": "NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE",
    "UI_Use_Real_Name": "UI_USE_REAL_NAME",
}


class NotificationSettings(FeatureSettings):
    """Server-wide notification preferences and fan-out limits.

    Environment Variables:
        ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS: Server default
            for the audio channel (all, mentions, nothing)
        ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS: Server default
            for desktop notifications
        ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS: Server default
            for mobile push
        ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE: Server
            default for email
        NOTIFICATIONS_MAX_ROOM_MEMBERS: Member count above which default
            sourced "all" notifications are suppressed (0 disables the cap)
        UI_USE_REAL_NAME: Replace @username mentions with display names
        NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE: Send push even to connected users
        NOTIFICATIONS_MESSAGE_MAX_AGE_SECONDS: Clock skew tolerated before a
            message is considered stale
        NOTIFICATIONS_MAX_WORKERS: Thread pool size used for fan-out

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        cap = settings.notifications.NOTIFICATIONS_MAX_ROOM_MEMBERS
        email_default = settings.notifications.default_preference(Channel.EMAIL)
        ```
    """

    ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS: NotificationMode = Field(
        default=NotificationMode.MENTIONS,
        alias="ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS",
    )
    ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS: NotificationMode = Field(
        default=NotificationMode.ALL,
        alias="ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS",
    )
    ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS: NotificationMode = Field(
        default=NotificationMode.ALL,
        alias="ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS",
    )
    ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE: NotificationMode = Field(
        default=NotificationMode.MENTIONS,
        alias="ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE",
    )
    NOTIFICATIONS_MAX_ROOM_MEMBERS: int = Field(
        default=100, ge=0, alias="NOTIFICATIONS_MAX_ROOM_MEMBERS"
    )
    UI_USE_REAL_NAME: bool = Field(default=False, alias="UI_USE_REAL_NAME")
    NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE: bool = Field(
        default=False, alias="NOTIFICATIONS_ALWAYS_NOTIFY_MOBILE"
    )
    NOTIFICATIONS_MESSAGE_MAX_AGE_SECONDS: int = Field(
        default=60, gt=0, alias="NOTIFICATIONS_MESSAGE_MAX_AGE_SECONDS"
    )
    NOTIFICATIONS_MAX_WORKERS: int = Field(
        default=8, ge=1, alias="NOTIFICATIONS_MAX_WORKERS"
    )

    @field_validator(
        "ACCOUNTS_DEFAULT_USER_PREFERENCES_AUDIO_NOTIFICATIONS",
        "ACCOUNTS_DEFAULT_USER_PREFERENCES_DESKTOP_NOTIFICATIONS",
        "ACCOUNTS_DEFAULT_USER_PREFERENCES_MOBILE_NOTIFICATIONS",
        "ACCOUNTS_DEFAULT_USER_PREFERENCES_EMAIL_NOTIFICATION_MODE",
    )
    @classmethod
    def validate_server_default(cls, v: NotificationMode) -> NotificationMode:
        """A server default must resolve to a concrete mode."""
        if v == NotificationMode.DEFAULT:
            raise ValueError("Server default preference cannot be 'default'")
        return v

    def default_preference(self, channel: Channel) -> NotificationMode:
        """Return the server default mode for a channel."""
        return getattr(self, channel.setting_field)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a setting by its legacy name or its env name.

        Args:
            key: Setting name, e.g. ``Notifications_Max_Room_Members`` or
                ``NOTIFICATIONS_MAX_ROOM_MEMBERS``.
            default: Value returned for unknown keys.

        Returns:
            The configured value, or ``default`` if the key is unknown.
        """
        field_name = _LEGACY_KEYS.get(key, key)
        if field_name not in type(self).model_fields:
            return default
        return getattr(self, field_name)
