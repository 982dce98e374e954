"""
Ticket View Consumer Service
Runs the poll scheduler in the background and exposes health and run history
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

import structlog
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from shared.logging import configure_logging
from shared.schemas.view_event import RunState

from .config import ConsumerConfig
from .worker import ViewConsumer

logger = structlog.get_logger()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    api_reachable: bool
    db_connected: bool


class PollResponse(BaseModel):
    """Counts from a manually triggered poll cycle"""
    window_start: str
    total_events: int
    stored: int
    failed: int
    duplicates: int
    invalid: int
    errors: int


def default_consumer_factory() -> ViewConsumer:
    return ViewConsumer.from_config(ConsumerConfig.from_env())


def create_app(
    consumer_factory: Optional[Callable[[], ViewConsumer]] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    factory = consumer_factory or default_consumer_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the consumer and start polling on startup"""
        consumer = factory()
        app.state.consumer = consumer
        logger.info("Starting Ticket View Consumer Service", subdomain=consumer.config.subdomain)

        if consumer.config.create_schema:
            consumer.database.create_schema()

        task = None
        if start_scheduler:
            task = asyncio.create_task(consumer.scheduler.run())
        yield
        consumer.scheduler.stop()
        if task:
            await task
        await consumer.aclose()
        logger.info("Shutting down Ticket View Consumer Service")

    app = FastAPI(
        title="Ticket View Consumer",
        description="Zendesk Ticket Intelligence - Ticket View Consumer",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Check health of the consumer and its dependencies"""
        consumer: ViewConsumer = app.state.consumer
        api_ok = await consumer.check_api()
        db_ok = consumer.check_database()

        return HealthResponse(
            status="healthy" if (api_ok and db_ok) else "degraded",
            api_reachable=api_ok,
            db_connected=db_ok,
        )

    @app.get("/runs", response_model=list[RunState])
    async def list_runs(limit: int = Query(20, ge=1, le=500)):
        """Recent poll runs, newest first"""
        return app.state.consumer.tracker.list_runs(limit=limit)

    @app.post("/poll", response_model=PollResponse)
    async def trigger_poll():
        """Run one poll cycle now"""
        consumer: ViewConsumer = app.state.consumer
        async with consumer.scheduler.lock:
            try:
                result = await consumer.poller.poll_once()
            except Exception as e:
                raise HTTPException(status_code=502, detail=f"Poll cycle failed: {e}")
        return PollResponse(**result.summary())

    return app


def build_app() -> FastAPI:
    configure_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(build_app(), host="0.0.0.0", port=8000)
