"""Tests for ViewConsumer wiring and the run_worker driver."""

import asyncio

import httpx
import pytest

from services.view_consumer.client import ZendeskClient
from services.view_consumer.storage import Database
from services.view_consumer.worker import EXIT_FAILURE, EXIT_OK, ViewConsumer, run_worker


@pytest.fixture
def consumer_factory(config, fake_zendesk):
    def factory(database_url=None):
        client = ZendeskClient(
            subdomain=config.subdomain,
            email=config.email,
            api_token=config.api_token,
            transport=httpx.MockTransport(fake_zendesk.handler),
        )
        return ViewConsumer(config, client, Database(database_url or config.database_url))

    return factory


class TestViewConsumer:
    """Tests for ViewConsumer.from_config."""

    @pytest.mark.asyncio
    async def test_from_config_wires_components(self, config):
        consumer = ViewConsumer.from_config(config)
        try:
            assert consumer.client.base_url == "https://acme.zendesk.com"
            assert consumer.poller.store is consumer.store
            assert consumer.poller.tracker is consumer.tracker
            assert consumer.store.enricher.client is consumer.client
            assert consumer.scheduler.interval_seconds == 300
            assert consumer.tracker.lookback.total_seconds() == 24 * 3600
        finally:
            await consumer.aclose()

    @pytest.mark.asyncio
    async def test_health_checks(self, consumer_factory):
        consumer = consumer_factory()
        try:
            assert consumer.check_database() is True
            assert await consumer.check_api() is True
        finally:
            await consumer.aclose()


class TestRunWorker:
    """Tests for run_worker."""

    @pytest.mark.asyncio
    async def test_unreachable_database_exits_1(self, config, consumer_factory, tmp_path):
        consumer = consumer_factory(f"sqlite:///{tmp_path / 'missing' / 'views.db'}")

        code = await run_worker(config, consumer)

        assert code == EXIT_FAILURE
        assert consumer.scheduler.cycles == 0

    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, config, consumer_factory, fake_zendesk, make_event):
        fake_zendesk.events = [make_event("evt-1"), make_event("evt-2", ticket_id=102)]
        consumer = consumer_factory()

        task = asyncio.create_task(run_worker(config, consumer))
        for _ in range(200):
            if consumer.scheduler.cycles and not consumer.scheduler.lock.locked():
                break
            await asyncio.sleep(0.01)
        consumer.scheduler.stop()
        code = await asyncio.wait_for(task, timeout=2)

        assert code == EXIT_OK
        assert consumer.scheduler.cycles == 1
        (run,) = consumer.tracker.list_runs()
        assert run.run_status == "success"
        assert run.total_stored == 2
        consumer.database.dispose()
