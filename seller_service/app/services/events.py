"""
Business event emission.

Events are fire-and-forget structured log records for audit and analytics,
not durable messages.
"""
from typing import Any, Dict, List, Optional, Protocol

from seller_service.app.core.logging import get_logger
from seller_service.app.core.metrics import seller_events_total


class EventSink(Protocol):
    def emit(self, event_name: str, payload: Dict[str, Any], actor_id: Optional[int] = None) -> None:
        ...


class LoggingEventSink:
    """Writes each event as a structlog record."""

    def __init__(self, logger=None):
        self.logger = logger or get_logger("seller_service.events")

    def emit(self, event_name: str, payload: Dict[str, Any], actor_id: Optional[int] = None) -> None:
        try:
            seller_events_total.labels(event_name=event_name).inc()
            self.logger.info(
                "business_event",
                event_name=event_name,
                actor_id=actor_id,
                **payload,
            )
        except Exception as e:  # fire-and-forget
            self.logger.warning("Failed to emit business event", event_name=event_name, error=str(e))


class RecordingEventSink:
    """Keeps events in memory. Handy for tests and local tooling."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def emit(self, event_name: str, payload: Dict[str, Any], actor_id: Optional[int] = None) -> None:
        self.events.append({"event_name": event_name, "payload": dict(payload), "actor_id": actor_id})

    def names(self) -> List[str]:
        return [e["event_name"] for e in self.events]
