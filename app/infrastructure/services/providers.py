"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache

from infrastructure.configuration import Settings
from infrastructure.events import EventDispatcher


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process.
    Tests override values by building their own Settings/NotificationSettings
    and passing them in explicitly, or by calling get_settings.cache_clear().

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_event_dispatcher() -> EventDispatcher:
    """
    Get application-scoped event dispatcher singleton.

    Handlers must be registered explicitly by the code wiring the
    application, e.g. the "notification sent" side channel.

    Returns:
        EventDispatcher: Cached dispatcher sized from settings.events.
    """
    settings = get_settings()
    return EventDispatcher(max_workers=settings.events.EVENTS_MAX_WORKERS)
