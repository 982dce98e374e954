"""
Relational storage for the ticket view consumer
Table definitions and engine lifecycle for ticket_views and consumer_state
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    text,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.dml import Insert

logger = structlog.get_logger()

metadata = MetaData()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the store"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


consumer_state = Table(
    "consumer_state",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("last_run_at", DateTime(timezone=True), nullable=False),
    Column("run_status", Text, nullable=False),
    Column("error_message", Text, nullable=True),
    Column("total_stored", Integer, nullable=False, default=0),
    Column("total_failed", Integer, nullable=False, default=0),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    ),
)

ticket_views = Table(
    "ticket_views",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", String(255), nullable=False, unique=True),
    Column("ticket_id", BigInteger, nullable=False),
    Column("agent_id", BigInteger, nullable=False),
    Column("agent_name", Text),
    Column("agent_email", Text),
    Column("ticket_subject", Text),
    Column("ticket_priority", Text),
    Column("ticket_status", Text),
    Column("ticket_created_at", DateTime(timezone=True)),
    Column("viewed_at", DateTime(timezone=True), nullable=False),
)


class Database:
    """SQLAlchemy engine wrapper owning the connection pool"""

    def __init__(self, url: str, sslmode: Optional[str] = None, echo: bool = False):
        self.url = url
        connect_args = {"sslmode": sslmode} if sslmode else {}
        self.engine: Engine = create_engine(
            url,
            pool_pre_ping=True,
            echo=echo,
            connect_args=connect_args,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def check_health(self) -> bool:
        """Check database connectivity"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database health check failed", error=str(e))
            return False

    def create_schema(self):
        """Create consumer tables if they do not exist"""
        metadata.create_all(self.engine, checkfirst=True)
        logger.info("Ensured consumer schema", tables=sorted(metadata.tables))

    def insert_ignoring_conflicts(self, table: Table, values: dict, conflict_column: str) -> Insert:
        """Build an INSERT ... ON CONFLICT DO NOTHING for the engine's dialect"""
        if self.dialect == "postgresql":
            stmt = postgresql.insert(table)
        elif self.dialect == "sqlite":
            stmt = sqlite.insert(table)
        else:
            raise NotImplementedError(f"Unsupported database dialect: {self.dialect}")
        return stmt.values(**values).on_conflict_do_nothing(index_elements=[conflict_column])

    def dispose(self):
        """Release all pooled connections"""
        self.engine.dispose()
        logger.info("Closed database connection pool")
