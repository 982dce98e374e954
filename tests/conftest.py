"""
Shared fixtures for the ticket view consumer tests.

The Zendesk API is faked with httpx.MockTransport and the relational store is a
SQLite database under tmp_path.
"""

import re
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from services.view_consumer.client import ZendeskClient
from services.view_consumer.config import ConsumerConfig
from services.view_consumer.enricher import MetadataEnricher
from services.view_consumer.event_store import EventStore
from services.view_consumer.run_state import RunStateTracker
from services.view_consumer.storage import Database


class FakeZendesk:
    """In-memory Zendesk API serving events, tickets and users"""

    def __init__(self):
        self.events: list[dict] = []
        self.tickets: dict[int, dict] = {}
        self.users: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []
        self.fail_events = False
        self.fail_lookups = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/v2/events":
            if self.fail_events:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"events": self.events, "next_page": None})

        if self.fail_lookups:
            raise httpx.ReadTimeout("timed out", request=request)

        if path == "/api/v2/users/me":
            return httpx.Response(200, json={"user": {"id": 1, "name": "Me"}})

        match = re.fullmatch(r"/api/v2/tickets/(\d+)", path)
        if match:
            ticket = self.tickets.get(int(match.group(1)))
            if ticket is None:
                return httpx.Response(404, json={"error": "RecordNotFound"})
            return httpx.Response(200, json={"ticket": ticket})

        match = re.fullmatch(r"/api/v2/users/(\d+)", path)
        if match:
            user = self.users.get(int(match.group(1)))
            if user is None:
                return httpx.Response(404, json={"error": "RecordNotFound"})
            return httpx.Response(200, json={"user": user})

        return httpx.Response(404, json={"error": "InvalidEndpoint"})

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


def build_event(event_id="evt-1", ticket_id=101, agent_id=201, created_at="2026-10-18T09:30:00Z"):
    """Raw Events API payload"""
    event = {"id": event_id, "created_at": created_at, "type": "ticket.view"}
    if ticket_id is not None:
        event["ticket"] = {"id": ticket_id}
    if agent_id is not None:
        event["actor"] = {"id": agent_id}
    return event


@pytest.fixture
def make_event():
    return build_event


@pytest.fixture
def fake_zendesk():
    api = FakeZendesk()
    api.tickets[101] = {
        "id": 101,
        "subject": "Printer offline",
        "priority": "high",
        "status": "open",
        "created_at": "2026-10-17T12:00:00Z",
    }
    api.tickets[102] = {
        "id": 102,
        "subject": "Password reset",
        "priority": None,
        "status": "pending",
        "created_at": "2026-10-16T08:00:00Z",
    }
    api.users[201] = {"id": 201, "name": "Dana Agent", "email": "dana@example.com"}
    api.users[202] = {"id": 202, "name": "Sam Agent", "email": "sam@example.com"}
    return api


@pytest_asyncio.fixture
async def zendesk_client(fake_zendesk):
    client = ZendeskClient(
        subdomain="acme",
        email="agent@example.com",
        api_token="secret-token",
        transport=httpx.MockTransport(fake_zendesk.handler),
    )
    yield client
    await client.close()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'views.db'}"


@pytest.fixture
def database(database_url):
    db = Database(database_url)
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def config(database_url):
    return ConsumerConfig(
        subdomain="acme",
        email="agent@example.com",
        api_token="secret-token",
        database_url=database_url,
        interval_minutes=5,
    )


@pytest.fixture
def enricher(zendesk_client):
    return MetadataEnricher(zendesk_client)


@pytest.fixture
def event_store(database, enricher):
    return EventStore(database, enricher)


class FrozenClock:
    """Controllable clock for RunStateTracker"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def tracker(database, clock):
    return RunStateTracker(database, lookback_hours=24, clock=clock)
