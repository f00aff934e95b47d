"""Structured workflow events, decoupled from control flow.

The orchestrator emits one event per notable step (operation, booking,
outcome). Sinks decide where they go.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

Outcome = Literal["started", "success", "safe", "unsafe", "skipped", "failure"]


class WorkflowEvent(BaseModel):
    operation: str
    outcome: Outcome
    booking_id: Optional[str] = None
    detail: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class EventSink(Protocol):
    def emit(self, event: WorkflowEvent) -> None: ...


class LoggingEventSink:
    """Writes each event as a log record; fields are attached via ``extra``."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def emit(self, event: WorkflowEvent) -> None:
        level = logging.WARNING if event.outcome == "failure" else logging.INFO
        self.log.log(
            level,
            "%s %s%s",
            event.operation,
            event.outcome,
            f" [{event.booking_id}]" if event.booking_id else "",
            extra={"event": event.model_dump(mode="json")},
        )


class CollectingEventSink:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[WorkflowEvent] = []

    def emit(self, event: WorkflowEvent) -> None:
        with self._lock:
            self.events.append(event)

    def for_booking(self, booking_id: str) -> list[WorkflowEvent]:
        with self._lock:
            return [e for e in self.events if e.booking_id == booking_id]

    def operations(self) -> list[str]:
        with self._lock:
            return [e.operation for e in self.events]
