"""Request context binding for structured logging.

Binds run-scoped context (a correlation ID and identifiers such as the
message and room being processed) so every log entry emitted inside the
block carries it.

Usage:
    from infrastructure.logging import bind_request_context

    with bind_request_context(correlation_id=message.id, room_id=room.id):
        logger.info("fan_out_started")

Worker threads do not inherit context variables; submit work with
``contextvars.copy_context().run`` to carry the bound context over.

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind context to all logs within the context manager.

    Args:
        correlation_id: Unique identifier for the unit of work.
            Auto-generated if not provided.
        **extra_context: Additional key-value pairs; None values are skipped.

    Yields:
        None - context is bound to structlog's context vars.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}
    context.update({k: v for k, v in extra_context.items() if v is not None})

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context."""
    return structlog.contextvars.get_contextvars().get("correlation_id")


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current logging context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_request_context() -> None:
    """Clear all bound context from the logging context."""
    structlog.contextvars.clear_contextvars()
