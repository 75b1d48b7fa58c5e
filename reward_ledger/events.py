import logging
from typing import Protocol

from .logging_config import log_event
from .models import EventType, LedgerEvent

log = logging.getLogger("reward_ledger.events")


class EventSink(Protocol):
    def emit(self, event: LedgerEvent) -> None: ...


class InMemoryEventLog:
    def __init__(self):
        self.events: list[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)
        log_event(log, "ledger_event", **event.model_dump(mode="json"))

    def of_type(self, event_type: EventType) -> list[LedgerEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def snapshot(self) -> int:
        return len(self.events)

    def restore(self, snapshot: int) -> None:
        del self.events[snapshot:]
