"""Infrastructure configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    NotificationSettings: Message notification feature settings
    EventsSettings: Background event dispatch settings

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    max_members = settings.notifications.NOTIFICATIONS_MAX_ROOM_MEMBERS
    use_real_name = settings.notifications.UI_USE_REAL_NAME
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.features import NotificationSettings
from infrastructure.configuration.infrastructure import EventsSettings

__all__ = ["Settings", "NotificationSettings", "EventsSettings"]
