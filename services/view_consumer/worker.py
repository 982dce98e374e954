"""
Consumer composition and process driver
Wires configuration into the components and runs the scheduler until a
termination signal arrives
"""

import asyncio
import signal
from typing import Optional

import httpx
import structlog

from .client import ZendeskClient
from .config import ConsumerConfig
from .enricher import MetadataEnricher
from .event_store import EventStore
from .poller import ViewEventPoller
from .run_state import RunStateTracker
from .scheduler import PollScheduler
from .storage import Database

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1


class ViewConsumer:
    """All components of the ticket view consumer, built from one config"""

    def __init__(self, config: ConsumerConfig, client: ZendeskClient, database: Database):
        self.config = config
        self.client = client
        self.database = database
        self.enricher = MetadataEnricher(client)
        self.store = EventStore(database, self.enricher)
        self.tracker = RunStateTracker(database, lookback_hours=config.lookback_hours)
        self.poller = ViewEventPoller(config, client, self.store, self.tracker)
        self.scheduler = PollScheduler(self.poller, config.interval_seconds)

    @classmethod
    def from_config(
        cls,
        config: ConsumerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ViewConsumer":
        client = ZendeskClient(
            subdomain=config.subdomain,
            email=config.email,
            api_token=config.api_token,
            timeout=config.request_timeout,
            transport=transport,
        )
        database = Database(config.database_url, sslmode=config.database_sslmode)
        return cls(config, client, database)

    def check_database(self) -> bool:
        return self.database.check_health()

    async def check_api(self) -> bool:
        return await self.client.check_health()

    async def aclose(self):
        """Release the HTTP client and the database connection pool"""
        await self.client.close()
        self.database.dispose()


def install_signal_handlers(scheduler: PollScheduler):
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals):
        logger.info("Shutdown signal received", signal=sig.name)
        scheduler.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal, sig)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(sig, lambda signum, frame: scheduler.stop())


async def run_worker(config: ConsumerConfig, consumer: Optional[ViewConsumer] = None) -> int:
    """
    Run the consumer until SIGINT/SIGTERM

    Returns:
        Process exit code: 0 on graceful shutdown, 1 if the database is
        unreachable at startup
    """
    logger.info(
        "Zendesk Events API Consumer starting",
        subdomain=config.subdomain,
        email=config.email,
        interval_minutes=config.interval_minutes,
        force_refresh=config.force_refresh,
    )

    consumer = consumer or ViewConsumer.from_config(config)
    try:
        if not consumer.check_database():
            logger.error("Database connection failed")
            return EXIT_FAILURE
        logger.info("Database connection successful")

        if config.create_schema:
            consumer.database.create_schema()

        install_signal_handlers(consumer.scheduler)
        await consumer.scheduler.run()
        logger.info("Shutting down gracefully")
        return EXIT_OK
    finally:
        await consumer.aclose()
