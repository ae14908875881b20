"""DB-backed project (tenant) repository."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, delete, exc as sa_exc, exists, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from waitlist_api.core.exceptions import (
    DuplicateSlugError,
    HasDependentsError,
    NotFoundError,
)
from waitlist_api.core.logging import get_logger
from waitlist_api.data.db import is_violation, projects, transaction, waitlist_entries
from waitlist_api.tenancy.project import Project, generate_api_token, new_id, utcnow

log = get_logger(__name__)

_SLUG_CONSTRAINT = ("uq_projects_slug", "projects.slug")
_UPDATABLE = ("name", "slug", "description", "is_active")


def _not_found() -> NotFoundError:
    return NotFoundError("Project not found")


def _with_counts() -> Any:
    """SELECT projects plus a derived ``waitlist_count`` column."""
    counts = (
        select(
            waitlist_entries.c.project_id,
            func.count().label("cnt"),
        )
        .group_by(waitlist_entries.c.project_id)
        .subquery()
    )
    return select(
        projects,
        func.coalesce(counts.c.cnt, 0).label("waitlist_count"),
    ).select_from(
        projects.outerjoin(counts, counts.c.project_id == projects.c.id)
    )


class ProjectRepository:
    """Async SQL-backed project storage."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create(self, name: str, slug: str, description: str) -> Project:
        """Persist a new active project with a fresh API token."""
        project = Project(
            id=new_id(),
            name=name,
            slug=slug,
            description=description,
            created_at=utcnow(),
            waitlist_count=0,
        )
        try:
            async with transaction(self._engine) as conn:
                await conn.execute(
                    insert(projects).values(
                        id=project.id,
                        name=project.name,
                        slug=project.slug,
                        description=project.description,
                        api_token=project.api_token,
                        is_active=True,
                        created_at=project.created_at,
                    )
                )
        except sa_exc.IntegrityError as exc:
            if is_violation(exc, *_SLUG_CONSTRAINT):
                log.info("project_slug_conflict", slug=slug)
                raise DuplicateSlugError() from exc
            raise

        log.info("project_created", project_id=project.id, slug=slug)
        return project

    async def list(self) -> list[Project]:
        """All projects, newest first, with their current waitlist counts."""
        async with transaction(self._engine) as conn:
            result = await conn.execute(
                _with_counts().order_by(projects.c.created_at.desc())
            )
            rows = result.mappings().all()
        return [self._row_to_project(r) for r in rows]

    async def get_by_id(self, project_id: str) -> Project:
        async with transaction(self._engine) as conn:
            result = await conn.execute(
                _with_counts().where(projects.c.id == project_id)
            )
            row = result.mappings().first()
        if row is None:
            raise _not_found()
        return self._row_to_project(row)

    async def exists(self, project_id: str) -> bool:
        async with transaction(self._engine) as conn:
            return await self._exists(conn, project_id)

    async def update(self, project_id: str, changes: Mapping[str, Any]) -> Project:
        """Apply a partial update.

        Keys outside the updatable set and ``None`` values are ignored; the
        request model rejects explicit nulls before they get here.
        """
        values = {k: v for k, v in changes.items() if k in _UPDATABLE and v is not None}
        if not values:
            return await self.get_by_id(project_id)

        try:
            async with transaction(self._engine) as conn:
                result = await conn.execute(
                    update(projects).where(projects.c.id == project_id).values(**values)
                )
                if result.rowcount == 0:
                    raise _not_found()
        except sa_exc.IntegrityError as exc:
            if is_violation(exc, *_SLUG_CONSTRAINT):
                log.info("project_slug_conflict", slug=values.get("slug"))
                raise DuplicateSlugError() from exc
            raise

        log.info("project_updated", project_id=project_id, fields=sorted(values))
        return await self.get_by_id(project_id)

    async def delete(self, project_id: str) -> None:
        """Delete a project that owns no waitlist entries."""
        try:
            async with transaction(self._engine) as conn:
                if not await self._exists(conn, project_id):
                    raise _not_found()

                count = await self._count_entries(conn, project_id)
                if count > 0:
                    raise HasDependentsError(count)

                # Conditional on "still no dependents" so a racing signup
                # leaves the project in place.
                result = await conn.execute(
                    delete(projects).where(
                        and_(
                            projects.c.id == project_id,
                            ~exists().where(waitlist_entries.c.project_id == project_id),
                        )
                    )
                )
                if result.rowcount == 0:
                    raise HasDependentsError(await self._count_entries(conn, project_id))
        except sa_exc.IntegrityError as exc:
            if is_violation(exc, "foreign key"):
                raise HasDependentsError(await self.count_entries(project_id)) from exc
            raise

        log.info("project_deleted", project_id=project_id)

    async def regenerate_token(self, project_id: str) -> str:
        """Overwrite the project's API token; the old one stops working at once."""
        token = generate_api_token()
        async with transaction(self._engine) as conn:
            result = await conn.execute(
                update(projects)
                .where(projects.c.id == project_id)
                .values(api_token=token)
            )
            if result.rowcount == 0:
                raise _not_found()

        log.info("api_token_rotated", project_id=project_id)
        return token

    async def find_by_token(self, token: str) -> Project | None:
        """Active project owning ``token``, or None."""
        async with transaction(self._engine) as conn:
            result = await conn.execute(
                select(projects).where(
                    projects.c.api_token == token,
                    projects.c.is_active.is_(True),
                )
            )
            row = result.mappings().first()
        if row is None:
            return None
        return self._row_to_project(row)

    async def count_entries(self, project_id: str) -> int:
        async with transaction(self._engine) as conn:
            return await self._count_entries(conn, project_id)

    @staticmethod
    async def _exists(conn: AsyncConnection, project_id: str) -> bool:
        result = await conn.execute(
            select(projects.c.id).where(projects.c.id == project_id)
        )
        return result.first() is not None

    @staticmethod
    async def _count_entries(conn: AsyncConnection, project_id: str) -> int:
        result = await conn.execute(
            select(func.count())
            .select_from(waitlist_entries)
            .where(waitlist_entries.c.project_id == project_id)
        )
        return int(result.scalar() or 0)

    @staticmethod
    def _row_to_project(r: Mapping[str, Any]) -> Project:
        """Convert a DB row mapping to a Project dataclass."""
        created_at: datetime = r["created_at"]
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        count = r.get("waitlist_count")
        return Project(
            id=r["id"],
            name=r["name"],
            slug=r["slug"],
            description=r["description"],
            api_token=r["api_token"],
            is_active=bool(r["is_active"]),
            created_at=created_at,
            waitlist_count=int(count) if count is not None else None,
        )
