#!/usr/bin/env python3
"""
Ticket View Consumer CLI
Runs the polling worker or single maintenance commands against Zendesk and
the view database
"""

import argparse
import asyncio
import json
import sys

import structlog

from shared.logging import configure_logging

from .config import ConfigurationError, ConsumerConfig
from .worker import EXIT_FAILURE, EXIT_OK, ViewConsumer, run_worker

logger = structlog.get_logger()


async def poll(config: ConsumerConfig) -> int:
    """Run a single poll cycle"""
    consumer = ViewConsumer.from_config(config)
    try:
        if config.create_schema:
            consumer.database.create_schema()
        result = await consumer.poller.poll_once()
    except Exception as e:
        print(f"❌ Poll cycle failed: {e}")
        return EXIT_FAILURE
    finally:
        await consumer.aclose()

    print(f"✅ Stored {result.stored} of {result.total_events} events (failed: {result.failed})")
    print(json.dumps(result.summary(), indent=2))
    return EXIT_OK


async def test_connection(config: ConsumerConfig) -> int:
    """Test Zendesk API and database connectivity"""
    consumer = ViewConsumer.from_config(config)
    try:
        api_ok = await consumer.check_api()
        db_ok = consumer.check_database()
    finally:
        await consumer.aclose()

    print(f"{'✅' if api_ok else '❌'} Zendesk API ({config.base_url})")
    print(f"{'✅' if db_ok else '❌'} Database")
    return EXIT_OK if (api_ok and db_ok) else EXIT_FAILURE


async def show_history(config: ConsumerConfig, limit: int) -> int:
    """Print recent consumer_state rows"""
    consumer = ViewConsumer.from_config(config)
    try:
        if config.create_schema:
            consumer.database.create_schema()
        runs = consumer.tracker.list_runs(limit=limit)
    finally:
        await consumer.aclose()

    if not runs:
        print("No runs recorded yet")
    for run in runs:
        line = (
            f"{run.last_run_at.isoformat()}  {run.run_status:<7}  "
            f"stored={run.total_stored} failed={run.total_failed}"
        )
        if run.error_message:
            line += f"  error={run.error_message}"
        print(line)
    return EXIT_OK


async def init_db(config: ConsumerConfig) -> int:
    """Create the consumer tables"""
    consumer = ViewConsumer.from_config(config)
    try:
        consumer.database.create_schema()
    finally:
        await consumer.aclose()
    print("✅ Consumer schema ready")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Zendesk ticket view consumer")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL env or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Poll on a fixed interval until terminated")
    subparsers.add_parser("poll", help="Run a single poll cycle")
    subparsers.add_parser("test", help="Test Zendesk and database connectivity")
    subparsers.add_parser("init-db", help="Create consumer tables")

    history_parser = subparsers.add_parser("history", help="Show recent poll runs")
    history_parser.add_argument("--limit", type=int, default=20, help="Number of runs")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = ConsumerConfig.from_env()
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e), missing=e.missing)
        return EXIT_FAILURE

    try:
        if args.command == "run":
            return asyncio.run(run_worker(config))
        elif args.command == "poll":
            return asyncio.run(poll(config))
        elif args.command == "test":
            return asyncio.run(test_connection(config))
        elif args.command == "history":
            return asyncio.run(show_history(config, args.limit))
        elif args.command == "init-db":
            return asyncio.run(init_db(config))
    except Exception as e:
        logger.exception("Fatal error", error=str(e))
        return EXIT_FAILURE

    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
