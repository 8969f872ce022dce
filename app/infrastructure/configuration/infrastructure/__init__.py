"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.events import EventsSettings

__all__ = [
    "EventsSettings",
]
