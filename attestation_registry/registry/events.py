"""In-process notification bus for registry events."""

from __future__ import annotations

import logging
from typing import Any, Callable

from attestation_registry.registry.schema import EventType, RegistryEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[RegistryEvent], None]


class EventBus:
    """
    Records every emitted event in order and fans it out to subscribers.

    Delivery is best effort: a failing subscriber is logged and skipped,
    the event stays recorded and the remaining subscribers still run.
    """

    def __init__(self) -> None:
        self._history: list[RegistryEvent] = []
        self._subscribers: list[EventHandler] = []
        self._sequence = 0

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.append(handler)

    def emit(
        self,
        event_type: EventType,
        caller: str,
        subject_id: str | None = None,
        agency_address: str | None = None,
        **payload: Any,
    ) -> RegistryEvent:
        self._sequence += 1
        event = RegistryEvent(
            sequence_number=self._sequence,
            event_type=event_type,
            caller=caller,
            subject_id=subject_id,
            agency_address=agency_address,
            payload=payload,
        )
        self._history.append(event)

        for handler in self._subscribers:
            try:
                handler(event.model_copy(deep=True))
            except Exception as e:
                logger.error(
                    "Event subscriber failed: seq=%d type=%s error=%s",
                    event.sequence_number, event_type.value, e,
                )

        return event.model_copy(deep=True)

    def events(self, event_type: EventType | None = None) -> list[RegistryEvent]:
        """Copies of recorded events, oldest first."""
        return [
            e.model_copy(deep=True)
            for e in self._history
            if event_type is None or e.event_type == event_type
        ]
