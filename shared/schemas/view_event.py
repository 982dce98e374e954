"""
Zendesk Ticket View Consumer - View Event Schemas

Transient models built per poll cycle, and the persistent record shapes for
the ticket_views and consumer_state tables.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

UNKNOWN_AGENT_NAME = "Unknown Agent"


class RunStatus(str, Enum):
    """Outcome of a poll cycle"""
    SUCCESS = "success"
    ERROR = "error"


class StoreOutcome(str, Enum):
    """Result of ingesting a single view event"""
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    ERROR = "error"

    @property
    def stored(self) -> bool:
        return self is StoreOutcome.INSERTED


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


class ViewEvent(BaseModel):
    """A single ticket.view event from the Zendesk Events API"""
    model_config = ConfigDict(frozen=True)

    event_id: str
    ticket_id: int
    agent_id: int
    viewed_at: datetime

    @classmethod
    def from_payload(cls, payload: dict) -> Optional["ViewEvent"]:
        """
        Build a ViewEvent from a raw event payload.

        Returns None when any of id, ticket.id, actor.id or created_at is
        missing or cannot be coerced.
        """
        if not isinstance(payload, dict):
            return None

        ticket = payload.get("ticket") or {}
        actor = payload.get("actor") or {}
        fields = {
            "event_id": payload.get("id"),
            "ticket_id": ticket.get("id") if isinstance(ticket, dict) else None,
            "agent_id": actor.get("id") if isinstance(actor, dict) else None,
            "viewed_at": payload.get("created_at"),
        }
        if any(_is_missing(value) for value in fields.values()):
            return None

        fields["event_id"] = str(fields["event_id"])
        try:
            return cls(**fields)
        except ValidationError:
            return None


class TicketMetadata(BaseModel):
    """Descriptive ticket attributes used to enrich a view event"""
    model_config = ConfigDict(frozen=True)

    subject: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    available: bool = True

    @classmethod
    def unavailable(cls) -> "TicketMetadata":
        """All-null placeholder used when the ticket lookup fails"""
        return cls(available=False)


class AgentMetadata(BaseModel):
    """Descriptive agent attributes used to enrich a view event"""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = UNKNOWN_AGENT_NAME
    email: Optional[str] = None
    available: bool = True

    @classmethod
    def unavailable(cls, user_id: int) -> "AgentMetadata":
        """Placeholder used when the user lookup fails"""
        return cls(id=user_id, name=UNKNOWN_AGENT_NAME, email=None, available=False)


class StoredViewRecord(BaseModel):
    """
    Enriched view event as persisted in ticket_views.
    Keyed uniquely by event_id.
    """
    event_id: str
    ticket_id: int
    agent_id: int
    agent_name: str
    agent_email: Optional[str] = None
    ticket_subject: Optional[str] = None
    ticket_priority: Optional[str] = None
    ticket_status: Optional[str] = None
    ticket_created_at: Optional[datetime] = None
    viewed_at: datetime

    @classmethod
    def build(
        cls,
        event: ViewEvent,
        ticket: TicketMetadata,
        agent: AgentMetadata,
    ) -> "StoredViewRecord":
        return cls(
            event_id=event.event_id,
            ticket_id=event.ticket_id,
            agent_id=event.agent_id,
            agent_name=agent.name,
            agent_email=agent.email,
            ticket_subject=ticket.subject,
            ticket_priority=ticket.priority,
            ticket_status=ticket.status,
            ticket_created_at=ticket.created_at,
            viewed_at=event.viewed_at,
        )

    def to_row(self) -> dict:
        return self.model_dump()


class RunState(BaseModel):
    """One row of the append-only consumer_state history"""
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[int] = None
    last_run_at: datetime
    run_status: RunStatus
    error_message: Optional[str] = None
    total_stored: int = 0
    total_failed: int = 0
    created_at: Optional[datetime] = None


class PollResult(BaseModel):
    """Aggregated counts for one poll cycle"""
    window_start: datetime
    total_events: int = 0
    stored: int = 0
    duplicates: int = 0
    invalid: int = 0
    errors: int = 0

    @property
    def failed(self) -> int:
        return self.duplicates + self.invalid + self.errors

    def record(self, outcome: StoreOutcome) -> None:
        if outcome is StoreOutcome.INSERTED:
            self.stored += 1
        elif outcome is StoreOutcome.DUPLICATE:
            self.duplicates += 1
        elif outcome is StoreOutcome.INVALID:
            self.invalid += 1
        else:
            self.errors += 1

    def summary(self) -> dict:
        return {
            "window_start": self.window_start.isoformat(),
            "total_events": self.total_events,
            "stored": self.stored,
            "failed": self.failed,
            "duplicates": self.duplicates,
            "invalid": self.invalid,
            "errors": self.errors,
        }
