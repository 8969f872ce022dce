"""Event dispatcher for infrastructure event system.

Handlers are registered explicitly on a dispatcher instance and called
either synchronously or on a managed background executor. Background
dispatch is fire-and-forget: the caller never waits and handler errors are
routed to an error sink instead of the caller.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

import structlog

from infrastructure.events.models import Event

logger = structlog.get_logger()

EventHandler = Callable[[Event], Any]
ErrorSink = Callable[[Event, BaseException], None]


class EventDispatcher:
    """In-process event dispatcher.

    Attributes:
        max_workers: Worker threads for background dispatch
        error_sink: Optional callable receiving (event, exception) for every
            handler failure, in addition to the error log

    Example:
        events = EventDispatcher(max_workers=4)
        events.register("message.notification.sent", side_channel.notify)

        events.dispatch_background(
            Event(event_type="message.notification.sent", metadata={...})
        )
    """

    def __init__(self, max_workers: int = 4, error_sink: Optional[ErrorSink] = None):
        self.max_workers = max_workers
        self.error_sink = error_sink
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = Lock()
        self._shutdown = False

    def register(self, event_type: str, handler: EventHandler) -> EventHandler:
        """Register a handler for an event type.

        Handlers for the same event type run in registration order.

        Args:
            event_type: The type of event to handle.
            handler: Callable receiving the Event.

        Returns:
            The handler, unchanged.
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            total = len(self._handlers[event_type])
        logger.debug(
            "registered_event_handler",
            handler=getattr(handler, "__name__", "unknown"),
            event_type=event_type,
            total_handlers=total,
        )
        return handler

    def get_handlers_for_event(self, event_type: str) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def get_registered_events(self) -> List[str]:
        return list(self._handlers.keys())

    def clear_handlers(self) -> None:
        """Clear all registered handlers."""
        with self._lock:
            self._handlers.clear()

    def dispatch(self, event: Event) -> List[Any]:
        """Dispatch event synchronously to all registered handlers.

        A failing handler is reported to the error sink and the remaining
        handlers still run.

        Args:
            event: The event to dispatch.

        Returns:
            List of return values from the handlers that succeeded.
        """
        results = []
        handlers = self.get_handlers_for_event(event.event_type)

        logger.debug(
            "dispatching_event",
            event_type=event.event_type,
            handler_count=len(handlers),
            correlation_id=str(event.correlation_id),
        )

        for handler in handlers:
            try:
                results.append(handler(event))
            except Exception as e:
                self._report(event, handler, e)

        return results

    def dispatch_background(self, event: Event) -> Optional[Future]:
        """Submit event dispatch to the background executor.

        Returns the Future for callers (mostly tests) that want to wait;
        production callers ignore it. Returns None when the dispatcher has
        been shut down.

        Args:
            event: The event to dispatch in background.
        """
        executor = self._get_or_create_executor()
        if executor is None:
            logger.error(
                "event_executor_unavailable",
                event_type=event.event_type,
                correlation_id=str(event.correlation_id),
            )
            return None
        return executor.submit(self.dispatch, event)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the background executor and refuse further submissions.

        Idempotent.

        Args:
            wait: If True, wait for pending dispatches to complete.
        """
        with self._lock:
            executor, self._executor = self._executor, None
            self._shutdown = True
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug("background_event_executor_shut_down", wait=wait)

    def _get_or_create_executor(self) -> Optional[ThreadPoolExecutor]:
        with self._lock:
            if self._shutdown:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="events"
                )
                logger.debug(
                    "created_background_event_executor", max_workers=self.max_workers
                )
            return self._executor

    def _report(self, event: Event, handler: EventHandler, error: Exception) -> None:
        logger.exception(
            "event_handler_failed",
            handler=getattr(handler, "__name__", "unknown"),
            event_type=event.event_type,
            error=str(error),
            correlation_id=str(event.correlation_id),
        )
        if self.error_sink is None:
            return
        try:
            self.error_sink(event, error)
        except Exception:
            logger.exception("event_error_sink_failed", event_type=event.event_type)
