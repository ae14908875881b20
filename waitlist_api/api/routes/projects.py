"""Project (tenant) management endpoints — admin key required."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.api.deps import get_project_repo, require_admin
from waitlist_api.api.models.schemas import (
    MessageOut,
    ProjectCreate,
    ProjectCreated,
    ProjectOut,
    ProjectUpdate,
    TokenOut,
)
from waitlist_api.api.responses import send_response
from waitlist_api.core.logging import get_logger

log = get_logger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["projects"],
    dependencies=[Depends(require_admin)],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    """Register a project and return it with its API token."""
    project = await repo.create(body.name, body.slug, body.description)
    return send_response(
        status.HTTP_201_CREATED,
        ProjectCreated.from_project(project),
        "Project created successfully",
    )


@router.get("")
async def list_projects(
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    projects = await repo.list()
    return send_response(
        status.HTTP_200_OK,
        [ProjectOut.from_project(p) for p in projects],
        "Projects retrieved successfully",
    )


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    project = await repo.get_by_id(project_id)
    return send_response(
        status.HTTP_200_OK,
        ProjectOut.from_project(project),
        "Project retrieved successfully",
    )


@router.patch("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    """Partially update name, slug, description or the active flag."""
    project = await repo.update(project_id, body.model_dump(exclude_unset=True))
    return send_response(
        status.HTTP_200_OK,
        ProjectOut.from_project(project),
        "Project updated successfully",
    )


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    await repo.delete(project_id)
    return send_response(
        status.HTTP_200_OK,
        MessageOut(message="Project deleted successfully"),
        "Project deleted successfully",
    )


@router.post("/{project_id}/regenerate-token")
async def regenerate_token(
    project_id: str,
    repo: ProjectRepository = Depends(get_project_repo),
) -> JSONResponse:
    """Rotate the project's API token; the previous token stops working."""
    token = await repo.regenerate_token(project_id)
    return send_response(
        status.HTTP_200_OK,
        TokenOut(api_token=token),
        "API token regenerated successfully",
    )
