"""Infrastructure modules for the message notification engine.

Centralized infrastructure components:
- configuration: Settings management (Settings, NotificationSettings, EventsSettings)
- events: In-process event dispatcher for side-channel signals
- i18n: YAML translation catalogs for localized notification labels
- logging: structlog configuration and run-scoped context
- services: Application-scoped providers (get_settings, get_event_dispatcher)

Subpackages are imported explicitly by callers; nothing is imported here so
that feature modules and configuration can depend on each other's models
without import cycles.
"""
