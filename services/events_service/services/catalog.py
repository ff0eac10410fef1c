"""Read-only cache of calendar events used by the directory and attendance views."""

from typing import Optional

from pydantic import ValidationError as SchemaValidationError

from libs.common.errors import StoreError
from libs.common.logging import get_logger
from libs.store.base import EVENTS_COLLECTION, DocumentStore
from libs.store.cache import ResponseSequencer
from services.events_service.schemas import Event

logger = get_logger(__name__)


class EventCatalog:
    def __init__(self, store: DocumentStore):
        self.store = store
        self._events: list[Event] = []
        self._sequencer = ResponseSequencer()

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    async def load_all(self) -> list[Event]:
        """Reload every event; keeps the previous list when the store fails."""
        ticket = self._sequencer.issue()
        try:
            records = await self.store.get_all(EVENTS_COLLECTION)
        except StoreError as exc:
            logger.warning(
                "Failed to load events (keeping %d cached): %s",
                len(self._events),
                exc.message,
            )
            raise

        events: list[Event] = []
        for record in records:
            try:
                events.append(Event.from_document(record))
            except SchemaValidationError:
                logger.warning(
                    "Skipping malformed event document %s",
                    record.get("id"),
                    extra={"collection": EVENTS_COLLECTION, "doc_id": record.get("id")},
                )
        if not self._sequencer.accept(ticket):
            logger.info("Discarding stale event list response #%d", ticket)
            return self.events

        self._events = events
        logger.info("Loaded %d events", len(events))
        return self.events

    def get(self, event_id: str) -> Optional[Event]:
        for event in self._events:
            if event.id == event_id:
                return event
        return None
