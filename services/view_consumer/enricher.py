"""
Metadata Enricher
Looks up ticket and agent details for view events. Lookup failures yield
placeholder metadata so enrichment never blocks ingestion.
"""

import structlog

from shared.schemas.view_event import UNKNOWN_AGENT_NAME, AgentMetadata, TicketMetadata

from .client import ZendeskClient

logger = structlog.get_logger()


class MetadataEnricher:
    """Fetches descriptive ticket and agent attributes from Zendesk"""

    def __init__(self, client: ZendeskClient):
        self.client = client

    async def fetch_ticket_metadata(self, ticket_id: int) -> TicketMetadata:
        try:
            ticket = await self.client.get_ticket(ticket_id)
            return TicketMetadata(
                subject=ticket.get("subject"),
                priority=ticket.get("priority"),
                status=ticket.get("status"),
                created_at=ticket.get("created_at"),
            )
        except Exception as e:
            logger.warning("Failed to fetch ticket", ticket_id=ticket_id, error=str(e))
            return TicketMetadata.unavailable()

    async def fetch_agent_metadata(self, user_id: int) -> AgentMetadata:
        try:
            user = await self.client.get_user(user_id)
            return AgentMetadata(
                id=user.get("id") or user_id,
                name=user.get("name") or UNKNOWN_AGENT_NAME,
                email=user.get("email"),
            )
        except Exception as e:
            logger.warning("Failed to fetch user", user_id=user_id, error=str(e))
            return AgentMetadata.unavailable(user_id)
