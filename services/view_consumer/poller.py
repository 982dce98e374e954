"""
Poll Cycle Orchestrator
One fetch -> enrich -> store -> checkpoint pass over new ticket view events
"""

import structlog

from shared.schemas.view_event import PollResult, RunStatus

from .client import ZendeskClient
from .config import ConsumerConfig
from .event_store import EventStore
from .run_state import RunStateTracker

logger = structlog.get_logger()


class ViewEventPoller:
    """Runs poll cycles against the Zendesk Events API"""

    def __init__(
        self,
        config: ConsumerConfig,
        client: ZendeskClient,
        store: EventStore,
        tracker: RunStateTracker,
    ):
        self.config = config
        self.client = client
        self.store = store
        self.tracker = tracker

    async def poll_once(self) -> PollResult:
        """
        Run a single poll cycle.

        Individual event failures are counted, not raised. A failure to fetch
        the event list, or any other unexpected error, is recorded as an error
        run and re-raised.
        """
        logger.info("Starting polling cycle")

        try:
            window_start = self.tracker.get_last_run_time()
            if self.config.force_refresh:
                window_start = self.tracker.default_start()
                logger.info("FORCE_REFRESH enabled", lookback_hours=self.config.lookback_hours)

            created_after = int(window_start.timestamp())
            logger.info(
                "Querying events",
                since=window_start.isoformat(),
                created_after=created_after,
            )

            events = await self.client.list_view_events(created_after)
            logger.info("Found ticket view events", count=len(events))

            result = PollResult(window_start=window_start, total_events=len(events))
            for event in events:
                outcome = await self.store.ingest_view_event(event)
                result.record(outcome)

        except Exception as e:
            logger.error("Poll cycle failed", error=str(e))
            self.tracker.record_run_outcome(RunStatus.ERROR, 0, 0, error_message=str(e))
            raise

        logger.info("Poll summary", **result.summary())
        self.tracker.record_run_outcome(RunStatus.SUCCESS, result.stored, result.failed)
        return result
