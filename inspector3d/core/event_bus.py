"""
Entity change notifications. Stores emit after each change; the session and the overlay layer
listen. Delivery is synchronous, inside the emitting call, on the caller's thread.
"""
from collections import defaultdict
from typing import Any, Callable

from .logger import get_logger

logger = get_logger("event_bus")

Handler = Callable[[str, Any], None]

MEASUREMENT_CREATED = "measurement.created"
MEASUREMENT_CHANGED = "measurement.changed"
MEASUREMENT_DELETED = "measurement.deleted"
ANNOTATION_CREATED = "annotation.created"
ANNOTATION_CHANGED = "annotation.changed"
ANNOTATION_DELETED = "annotation.deleted"
REFERENCE_CHANGED = "reference.changed"
CONDITION_SCORE_CHANGED = "condition_score.changed"


class EventBus:
    """Handlers are called as handler(event_name, entity), in subscription order."""

    def __init__(self) -> None:
        self._subscribers: defaultdict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: Handler) -> None:
        self._subscribers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        """Drop one registration of handler; unknown handlers are ignored."""
        handlers = self._subscribers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._subscribers.pop(event_name, None)

    def emit(self, event_name: str, data: Any = None) -> None:
        """A failing handler is logged with its traceback; the remaining handlers still run."""
        for handler in tuple(self._subscribers.get(event_name, ())):
            try:
                handler(event_name, data)
            except Exception:
                logger.exception("Handler for %s failed", event_name)
