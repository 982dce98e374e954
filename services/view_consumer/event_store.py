"""
Event Store
Persists enriched ticket view events with an idempotent insert on event_id
"""

import structlog

from shared.schemas.view_event import StoredViewRecord, StoreOutcome, ViewEvent

from .enricher import MetadataEnricher
from .storage import Database, ticket_views

logger = structlog.get_logger()


class EventStore:
    """Validates, enriches and stores ticket view events"""

    def __init__(self, database: Database, enricher: MetadataEnricher):
        self.database = database
        self.enricher = enricher

    async def ingest_view_event(self, raw_event: dict) -> StoreOutcome:
        """
        Store a single raw view event

        Args:
            raw_event: Event payload from the Zendesk Events API

        Returns:
            INSERTED for a new row, DUPLICATE if event_id was already stored,
            INVALID if a required field is missing, ERROR on storage failure
        """
        event = ViewEvent.from_payload(raw_event)
        if event is None:
            if not isinstance(raw_event, dict):
                logger.warning("Malformed event entry", entry_type=type(raw_event).__name__)
                return StoreOutcome.INVALID
            ticket = raw_event.get("ticket")
            actor = raw_event.get("actor")
            logger.warning(
                "Incomplete event data",
                event_id=raw_event.get("id"),
                ticket_id=ticket.get("id") if isinstance(ticket, dict) else None,
                agent_id=actor.get("id") if isinstance(actor, dict) else None,
                viewed_at=raw_event.get("created_at"),
            )
            return StoreOutcome.INVALID

        ticket_meta = await self.enricher.fetch_ticket_metadata(event.ticket_id)
        agent_meta = await self.enricher.fetch_agent_metadata(event.agent_id)
        record = StoredViewRecord.build(event, ticket_meta, agent_meta)

        try:
            stmt = self.database.insert_ignoring_conflicts(
                ticket_views, record.to_row(), conflict_column="event_id"
            )
            with self.database.engine.begin() as conn:
                inserted = conn.execute(stmt).rowcount
        except Exception as e:
            logger.error(
                "Error storing view event",
                event_id=event.event_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return StoreOutcome.ERROR

        if inserted == 0:
            logger.info("Event already stored (duplicate)", event_id=event.event_id)
            return StoreOutcome.DUPLICATE

        logger.info(
            "Stored view event",
            event_id=event.event_id,
            ticket_id=event.ticket_id,
            agent=agent_meta.name,
        )
        return StoreOutcome.INSERTED

    async def store_view_event(self, raw_event: dict) -> bool:
        """Store a raw view event; True only when a new row was inserted"""
        outcome = await self.ingest_view_event(raw_event)
        return outcome.stored
