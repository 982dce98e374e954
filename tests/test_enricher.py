"""Tests for MetadataEnricher."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from services.view_consumer.enricher import MetadataEnricher
from shared.schemas.view_event import UNKNOWN_AGENT_NAME


class TestFetchTicketMetadata:
    """Tests for ticket lookups."""

    @pytest.mark.asyncio
    async def test_returns_ticket_fields(self, enricher):
        meta = await enricher.fetch_ticket_metadata(101)

        assert meta.available is True
        assert meta.subject == "Printer offline"
        assert meta.priority == "high"
        assert meta.status == "open"
        assert meta.created_at == datetime(2026, 10, 17, 12, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_null_priority_is_kept(self, enricher):
        meta = await enricher.fetch_ticket_metadata(102)

        assert meta.available is True
        assert meta.priority is None

    @pytest.mark.asyncio
    async def test_not_found_returns_placeholder(self, enricher):
        meta = await enricher.fetch_ticket_metadata(999)

        assert meta.available is False
        assert meta.subject is None
        assert meta.created_at is None

    @pytest.mark.asyncio
    async def test_timeout_returns_placeholder(self, enricher, fake_zendesk):
        fake_zendesk.fail_lookups = True

        meta = await enricher.fetch_ticket_metadata(101)

        assert meta.available is False

    @pytest.mark.asyncio
    async def test_malformed_response_returns_placeholder(self):
        client = AsyncMock()
        client.get_ticket.return_value = {"subject": "x", "created_at": "not a date"}

        meta = await MetadataEnricher(client).fetch_ticket_metadata(101)

        assert meta.available is False


class TestFetchAgentMetadata:
    """Tests for agent lookups."""

    @pytest.mark.asyncio
    async def test_returns_user_fields(self, enricher):
        meta = await enricher.fetch_agent_metadata(201)

        assert meta.available is True
        assert meta.id == 201
        assert meta.name == "Dana Agent"
        assert meta.email == "dana@example.com"

    @pytest.mark.asyncio
    async def test_not_found_returns_unknown_agent(self, enricher):
        meta = await enricher.fetch_agent_metadata(777)

        assert meta.available is False
        assert meta.id == 777
        assert meta.name == UNKNOWN_AGENT_NAME
        assert meta.email is None

    @pytest.mark.asyncio
    async def test_network_failure_returns_unknown_agent(self, enricher, fake_zendesk):
        fake_zendesk.fail_lookups = True

        meta = await enricher.fetch_agent_metadata(201)

        assert meta.id == 201
        assert meta.name == UNKNOWN_AGENT_NAME

    @pytest.mark.asyncio
    async def test_each_lookup_hits_the_api(self, enricher, fake_zendesk):
        await enricher.fetch_agent_metadata(201)
        await enricher.fetch_agent_metadata(201)

        assert len(fake_zendesk.requests_to("/api/v2/users/201")) == 2
