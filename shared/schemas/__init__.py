"""ZTI Shared Schemas"""

from .view_event import (
    AgentMetadata,
    PollResult,
    RunState,
    RunStatus,
    StoredViewRecord,
    StoreOutcome,
    TicketMetadata,
    ViewEvent,
)

__all__ = [
    # Transient event schemas
    "ViewEvent",
    "TicketMetadata",
    "AgentMetadata",
    # Persistent record schemas
    "StoredViewRecord",
    "RunState",
    # Outcomes
    "RunStatus",
    "StoreOutcome",
    "PollResult",
]
