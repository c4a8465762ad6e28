"""EventBus - in-process notification of committed ledger changes

Rules:
- events are published only after the transaction has committed
- events carry identifiers and amounts, never ORM objects
- a failing handler is logged and never affects the ledger
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from lootcase.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LedgerEvent:
    """Event data container

    Args:
        event_type: event type (e.g. "case_opened", "item_sold")
        data: identifiers and integer amounts
        source: name of the publishing service
    """

    event_type: str
    data: Dict[str, Any]
    source: str


# Handler type: callable taking a LedgerEvent
EventHandler = Callable[[LedgerEvent], None]


class EventBus:
    """Synchronous event bus

    Usage:
        bus = EventBus()
        bus.subscribe("case_opened", audit.handle_case_opened)
        bus.emit(LedgerEvent(event_type="case_opened", data={"user_id": "u1"}, source="case_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("EventBus subscribe: %s -> %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(
                    "EventBus unsubscribe: %s -> %s", event_type, handler.__qualname__
                )
            except ValueError:
                logger.warning(
                    "Handler not registered: %s -> %s",
                    event_type,
                    handler.__qualname__,
                )

    def emit(self, event: LedgerEvent) -> None:
        """Call every handler registered for the event type, in order."""
        handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug("EventBus: no subscribers for %s", event.event_type)
            return

        logger.debug(
            "EventBus dispatch: %s (source=%s, handlers=%d)",
            event.event_type,
            event.source,
            len(handlers),
        )
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "EventBus handler error: %s (event=%s)",
                    handler.__qualname__,
                    event.event_type,
                )

    def clear(self) -> None:
        """Drop all subscriptions (tests)"""
        self._handlers.clear()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
