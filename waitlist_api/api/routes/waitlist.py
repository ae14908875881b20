"""Waitlist endpoints.

``POST /waitlist/add`` is the public front-end endpoint and is scoped by the
project token; everything under ``/waitlist/project`` needs the admin key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.api.db.waitlist import WaitlistQuery, WaitlistRepository
from waitlist_api.api.deps import (
    get_project_repo,
    get_waitlist_repo,
    require_admin,
    require_project,
)
from waitlist_api.api.models.schemas import (
    MessageOut,
    PageMetaOut,
    SignupOut,
    SortField,
    SortOrder,
    WaitlistEntryCreate,
    WaitlistEntryOut,
    WaitlistStatsOut,
)
from waitlist_api.api.responses import send_response
from waitlist_api.core.exceptions import NotFoundError
from waitlist_api.tenancy.project import Project

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


def waitlist_query(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
) -> WaitlistQuery:
    return WaitlistQuery(
        page=page,
        limit=limit,
        search=(search or "").strip() or None,
        sort_by=sort_by,
        sort_order=sort_order,
    )


async def _ensure_project(repo: ProjectRepository, project_id: str) -> None:
    if not await repo.exists(project_id):
        raise NotFoundError("Project not found")


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_to_waitlist(
    body: WaitlistEntryCreate,
    project: Project = Depends(require_project),
    repo: WaitlistRepository = Depends(get_waitlist_repo),
) -> JSONResponse:
    """Append a signup to the waitlist of the project owning the token."""
    entry = await repo.add(project.id, body.email, body.name, body.extra)
    return send_response(
        status.HTTP_201_CREATED,
        SignupOut.from_signup(entry, project),
        "Successfully added to waitlist",
    )


@router.get("/project/{project_id}", dependencies=[Depends(require_admin)])
async def list_entries(
    project_id: str,
    query: WaitlistQuery = Depends(waitlist_query),
    projects: ProjectRepository = Depends(get_project_repo),
    repo: WaitlistRepository = Depends(get_waitlist_repo),
) -> JSONResponse:
    await _ensure_project(projects, project_id)
    page = await repo.list(project_id, query)
    return send_response(
        status.HTTP_200_OK,
        [WaitlistEntryOut.from_entry(e) for e in page.entries],
        "Waitlist entries retrieved successfully",
        meta=PageMetaOut.from_meta(page.meta),
    )


@router.get("/project/{project_id}/stats", dependencies=[Depends(require_admin)])
async def get_stats(
    project_id: str,
    projects: ProjectRepository = Depends(get_project_repo),
    repo: WaitlistRepository = Depends(get_waitlist_repo),
) -> JSONResponse:
    await _ensure_project(projects, project_id)
    stats = await repo.stats(project_id)
    return send_response(
        status.HTTP_200_OK,
        WaitlistStatsOut.from_stats(stats),
        "Waitlist stats retrieved successfully",
    )


@router.delete(
    "/project/{project_id}/entry/{entry_id}",
    dependencies=[Depends(require_admin)],
)
async def delete_entry(
    project_id: str,
    entry_id: str,
    projects: ProjectRepository = Depends(get_project_repo),
    repo: WaitlistRepository = Depends(get_waitlist_repo),
) -> JSONResponse:
    await _ensure_project(projects, project_id)
    await repo.delete_entry(project_id, entry_id)
    return send_response(
        status.HTTP_200_OK,
        MessageOut(message="Waitlist entry deleted successfully"),
        "Waitlist entry deleted successfully",
    )
