"""
SQLAlchemy engine singleton with production-ready connection pooling.

Postgres gets a sized connection pool. SQLite URLs (local runs and the test
suite) get a single shared connection so an in-memory database survives across
threads, with foreign keys switched on so housing deletes cascade.
"""

from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from ghouse_bookings.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings suited to the database backend."""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections when pool is exhausted
        pool_pre_ping=True,  # Detect stale connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=echo,
    )


engine: Engine = build_engine(DATABASE_URL)


def check_engine_health() -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint before the service accepts traffic.

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
