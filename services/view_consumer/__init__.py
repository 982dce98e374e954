"""
Ticket View Consumer
Polls Zendesk for ticket.view events, enriches them, and stores them in a
relational database

Components:
- client.py: Zendesk REST client (httpx)
- enricher.py: Ticket and agent metadata lookups
- storage.py: SQLAlchemy tables and engine lifecycle
- event_store.py: Idempotent view event persistence
- run_state.py: Append-only poll run history and watermark
- poller.py: Poll cycle orchestrator
- scheduler.py: Fixed-rate poll driver
- worker.py: Component wiring and process driver
- main.py: FastAPI status service
- cli.py: Command-line entry point
"""

from .client import ZendeskAPIError, ZendeskClient
from .config import ConfigurationError, ConsumerConfig
from .enricher import MetadataEnricher
from .event_store import EventStore
from .poller import ViewEventPoller
from .run_state import RunStateTracker
from .scheduler import PollScheduler
from .storage import Database
from .worker import ViewConsumer, run_worker

__all__ = [
    "ConfigurationError",
    "ConsumerConfig",
    "Database",
    "EventStore",
    "MetadataEnricher",
    "PollScheduler",
    "RunStateTracker",
    "ViewConsumer",
    "ViewEventPoller",
    "ZendeskAPIError",
    "ZendeskClient",
    "run_worker",
]
