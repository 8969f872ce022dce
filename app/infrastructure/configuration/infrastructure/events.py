"""Event dispatcher infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class EventsSettings(InfrastructureSettings):
    """Background event dispatch configuration.

    Environment Variables:
        EVENTS_MAX_WORKERS: Worker threads for background dispatch (default: 4)
    """

    EVENTS_MAX_WORKERS: int = Field(default=4, ge=1, alias="EVENTS_MAX_WORKERS")
