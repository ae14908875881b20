"""DB-backed waitlist repository — every query is scoped to one project."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, exc as sa_exc, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncEngine

from waitlist_api.core.exceptions import DuplicateEmailError, NotFoundError
from waitlist_api.core.logging import get_logger
from waitlist_api.data.db import is_violation, transaction, waitlist_entries
from waitlist_api.tenancy.project import WaitlistEntry, new_id, utcnow

log = get_logger(__name__)

_EMAIL_CONSTRAINT = ("uq_waitlist_email_project", "waitlist_entries.email")

SORT_COLUMNS = {
    "createdAt": waitlist_entries.c.created_at,
    "name": waitlist_entries.c.name,
    "email": waitlist_entries.c.email,
}

RECENT_WINDOW_DAYS = 30
DAILY_WINDOW_DAYS = 7


@dataclass(frozen=True)
class WaitlistQuery:
    page: int = 1
    limit: int = 10
    search: str | None = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


@dataclass
class PageMeta:
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> PageMeta:
        total_pages = math.ceil(total_count / limit) if total_count else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


@dataclass
class WaitlistPage:
    entries: list[WaitlistEntry]
    meta: PageMeta


@dataclass
class WaitlistStats:
    total_entries: int
    recent_entries: int
    daily_stats: list[dict[str, Any]] = field(default_factory=list)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class WaitlistRepository:
    """Async SQL-backed waitlist storage."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def add(
        self,
        project_id: str,
        email: str,
        name: str,
        extra: str | None = None,
    ) -> WaitlistEntry:
        """Append a signup; the storage constraint rejects a repeated email."""
        entry = WaitlistEntry(
            id=new_id(),
            project_id=project_id,
            email=email,
            name=name,
            extra=extra,
            created_at=utcnow(),
        )
        try:
            async with transaction(self._engine) as conn:
                await conn.execute(
                    insert(waitlist_entries).values(
                        id=entry.id,
                        project_id=entry.project_id,
                        email=entry.email,
                        name=entry.name,
                        extra=entry.extra,
                        created_at=entry.created_at,
                    )
                )
        except sa_exc.IntegrityError as exc:
            if is_violation(exc, *_EMAIL_CONSTRAINT):
                log.info("waitlist_duplicate_email", project_id=project_id)
                raise DuplicateEmailError() from exc
            if is_violation(exc, "foreign key"):
                raise NotFoundError("Project not found") from exc
            raise

        log.info("waitlist_entry_added", project_id=project_id, entry_id=entry.id)
        return entry

    async def list(self, project_id: str, query: WaitlistQuery) -> WaitlistPage:
        """One page of a project's entries plus pagination metadata."""
        conditions = [waitlist_entries.c.project_id == project_id]
        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            conditions.append(
                or_(
                    waitlist_entries.c.name.ilike(pattern, escape="\\"),
                    waitlist_entries.c.email.ilike(pattern, escape="\\"),
                )
            )

        column = SORT_COLUMNS.get(query.sort_by, waitlist_entries.c.created_at)
        order = column.asc() if query.sort_order == "asc" else column.desc()

        async with transaction(self._engine) as conn:
            total = await conn.execute(
                select(func.count()).select_from(waitlist_entries).where(*conditions)
            )
            total_count = int(total.scalar() or 0)

            result = await conn.execute(
                select(waitlist_entries)
                .where(*conditions)
                .order_by(order, waitlist_entries.c.id)
                .limit(query.limit)
                .offset((query.page - 1) * query.limit)
            )
            rows = result.mappings().all()

        return WaitlistPage(
            entries=[self._row_to_entry(r) for r in rows],
            meta=PageMeta.build(query.page, query.limit, total_count),
        )

    async def stats(self, project_id: str, now: datetime | None = None) -> WaitlistStats:
        """All-time, trailing-30-day and per-day (trailing 7 days) signup counts."""
        now = now or utcnow()
        recent_since = now - timedelta(days=RECENT_WINDOW_DAYS)
        daily_since = now - timedelta(days=DAILY_WINDOW_DAYS)
        scope = waitlist_entries.c.project_id == project_id

        async with transaction(self._engine) as conn:
            total = await conn.execute(
                select(func.count()).select_from(waitlist_entries).where(scope)
            )
            recent = await conn.execute(
                select(func.count())
                .select_from(waitlist_entries)
                .where(scope, waitlist_entries.c.created_at >= recent_since)
            )
            daily = await conn.execute(
                select(waitlist_entries.c.created_at).where(
                    scope, waitlist_entries.c.created_at >= daily_since
                )
            )
            timestamps = daily.scalars().all()

        buckets = Counter(_as_utc(ts).date().isoformat() for ts in timestamps)
        return WaitlistStats(
            total_entries=int(total.scalar() or 0),
            recent_entries=int(recent.scalar() or 0),
            daily_stats=[
                {"date": day, "count": count} for day, count in sorted(buckets.items())
            ],
        )

    async def delete_entry(self, project_id: str, entry_id: str) -> None:
        """Remove an entry; ids belonging to another project never resolve."""
        async with transaction(self._engine) as conn:
            result = await conn.execute(
                delete(waitlist_entries).where(
                    waitlist_entries.c.id == entry_id,
                    waitlist_entries.c.project_id == project_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Waitlist entry not found")

        log.info("waitlist_entry_deleted", project_id=project_id, entry_id=entry_id)

    @staticmethod
    def _row_to_entry(r: Mapping[str, Any]) -> WaitlistEntry:
        return WaitlistEntry(
            id=r["id"],
            project_id=r["project_id"],
            email=r["email"],
            name=r["name"],
            extra=r["extra"],
            created_at=_as_utc(r["created_at"]),
        )


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)
