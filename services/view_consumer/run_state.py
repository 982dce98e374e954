"""
Run-State Tracker
Append-only consumer_state history; the newest row is the polling watermark
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from shared.schemas.view_event import RunState, RunStatus

from .storage import Database, as_utc, consumer_state, utcnow

logger = structlog.get_logger()


class RunStateTracker:
    """Reads the watermark and records the outcome of each poll cycle"""

    def __init__(
        self,
        database: Database,
        lookback_hours: int = 24,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.lookback = timedelta(hours=lookback_hours)
        self.clock = clock

    def default_start(self) -> datetime:
        return self.clock() - self.lookback

    def get_last_run_time(self) -> datetime:
        """
        Completion time of the most recent run.

        Falls back to now minus the lookback window when there is no history
        or the store cannot be read.
        """
        try:
            with self.database.engine.connect() as conn:
                row = conn.execute(
                    select(consumer_state.c.last_run_at)
                    .order_by(consumer_state.c.created_at.desc(), consumer_state.c.id.desc())
                    .limit(1)
                ).first()
        except SQLAlchemyError as e:
            logger.error("Error fetching last run time", error=str(e))
            return self.default_start()

        if row is None:
            start = self.default_start()
            logger.info("No previous run found", starting_from=start.isoformat())
            return start

        return as_utc(row.last_run_at)

    def record_run_outcome(
        self,
        status: RunStatus,
        total_stored: int,
        total_failed: int,
        error_message: Optional[str] = None,
    ):
        """Append a consumer_state row stamped with the current time"""
        now = self.clock()
        try:
            with self.database.engine.begin() as conn:
                conn.execute(
                    insert(consumer_state).values(
                        last_run_at=now,
                        run_status=RunStatus(status).value,
                        error_message=error_message,
                        total_stored=total_stored,
                        total_failed=total_failed,
                        created_at=now,
                    )
                )
            logger.info(
                "Updated consumer_state",
                status=RunStatus(status).value,
                stored=total_stored,
                failed=total_failed,
            )
        except SQLAlchemyError as e:
            logger.error("Error updating consumer_state", error=str(e))

    def list_runs(self, limit: int = 20) -> list[RunState]:
        """Most recent runs, newest first"""
        with self.database.engine.connect() as conn:
            rows = conn.execute(
                select(consumer_state)
                .order_by(consumer_state.c.created_at.desc(), consumer_state.c.id.desc())
                .limit(limit)
            ).mappings().all()

        return [
            RunState(
                **{
                    **row,
                    "last_run_at": as_utc(row["last_run_at"]),
                    "created_at": as_utc(row["created_at"]) if row["created_at"] else None,
                }
            )
            for row in rows
        ]
