"""Database connection, schema definitions and storage error translation."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    event,
    exc as sa_exc,
)
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from config.settings import get_settings
from waitlist_api.core.exceptions import StorageTimeoutError, StorageUnavailableError
from waitlist_api.core.logging import get_logger

log = get_logger(__name__)

metadata = MetaData()

# ── Tables ───────────────────────────────────────────────────────

projects = Table(
    "projects",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("slug", String(50), nullable=False),
    Column("description", String(500), nullable=False),
    Column("api_token", String(64), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    UniqueConstraint("slug", name="uq_projects_slug"),
    UniqueConstraint("api_token", name="uq_projects_api_token"),
)

waitlist_entries = Table(
    "waitlist_entries",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "project_id",
        String(36),
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column("email", String(320), nullable=False),
    Column("name", String(100), nullable=False),
    Column("extra", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    UniqueConstraint("email", "project_id", name="uq_waitlist_email_project"),
)


# ── Engine ───────────────────────────────────────────────────────

_engine: AsyncEngine | None = None


def _engine_options(db_url: str) -> dict[str, Any]:
    settings = get_settings()
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if db_url.startswith("sqlite"):
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=1800,
    )
    if "+asyncpg" in db_url:
        options["connect_args"] = {
            "timeout": settings.db_connect_timeout,
            "command_timeout": settings.db_query_timeout,
        }
    return options


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite leaves foreign keys unenforced unless asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def get_engine() -> AsyncEngine:
    """Get or create the async database engine (singleton)."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        settings = get_settings()
        db_url = settings.database_url.get_secret_value()
        _engine = create_async_engine(db_url, **_engine_options(db_url))
        if db_url.startswith("sqlite"):
            enable_sqlite_foreign_keys(_engine)
        log.info("database_engine_created", host=db_url.split("@")[-1].split("?")[0])
    return _engine


async def init_schema(engine: AsyncEngine | None = None) -> None:
    """Create all tables and constraints if they do not exist."""
    engine = engine or await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    log.info("schema_initialized")


async def close_engine() -> None:
    """Dispose the database engine."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        log.info("database_engine_closed")


# ── Units of work ────────────────────────────────────────────────


@asynccontextmanager
async def transaction(
    engine: AsyncEngine, timeout: float | None = None
) -> AsyncIterator[AsyncConnection]:
    """Run one bounded unit of work in a transaction.

    ``IntegrityError`` propagates untouched so repositories can map it to a
    domain conflict. Timeouts become ``StorageTimeoutError``; lost or refused
    connections become ``StorageUnavailableError``.
    """
    if timeout is None:
        timeout = get_settings().db_query_timeout
    try:
        async with asyncio.timeout(timeout):
            async with engine.begin() as conn:
                yield conn
    except sa_exc.IntegrityError:
        raise
    except (TimeoutError, sa_exc.TimeoutError) as exc:
        log.error("database_timeout", error=str(exc))
        raise StorageTimeoutError() from exc
    except (sa_exc.OperationalError, sa_exc.InterfaceError, OSError) as exc:
        log.error("database_unavailable", error=str(exc))
        raise StorageUnavailableError() from exc
    except sa_exc.DBAPIError as exc:
        if exc.connection_invalidated:
            log.error("database_connection_invalidated", error=str(exc))
            raise StorageUnavailableError() from exc
        raise


def is_violation(exc: sa_exc.IntegrityError, *names: str) -> bool:
    """True when the integrity error message mentions any of ``names``.

    PostgreSQL reports the constraint name, SQLite the offending columns.
    """
    detail = str(exc.orig).lower()
    return any(name.lower() in detail for name in names)
