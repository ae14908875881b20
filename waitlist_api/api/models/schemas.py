"""Pydantic V2 request/response schemas for the waitlist API.

Responses serialize with camelCase field names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from waitlist_api.api.db.waitlist import PageMeta, WaitlistStats
from waitlist_api.tenancy.project import Project, WaitlistEntry, normalize_email

SLUG_PATTERN = r"^[a-z0-9-]+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# ── Projects ─────────────────────────────────────────────────────

class ProjectCreate(_RequestModel):
    """Request body for registering a project."""

    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=50, pattern=SLUG_PATTERN)
    description: str = Field(..., min_length=10, max_length=500)


class ProjectUpdate(_RequestModel):
    """Request body for a partial project update."""

    model_config = ConfigDict(
        str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True
    )

    name: str | None = Field(default=None, min_length=2, max_length=100)
    slug: str | None = Field(default=None, min_length=2, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, min_length=10, max_length=500)
    is_active: bool | None = None

    @field_validator("name", "slug", "description", "is_active", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # Omit a field to leave it unchanged; null is not a value.
        if value is None:
            raise ValueError("must not be null")
        return value


class ProjectOut(_CamelModel):
    """Project as returned by reads; the API token is never included."""

    id: str
    name: str
    slug: str
    description: str
    is_active: bool
    created_at: datetime
    waitlist_count: int = 0

    @classmethod
    def from_project(cls, project: Project) -> ProjectOut:
        return cls(
            id=project.id,
            name=project.name,
            slug=project.slug,
            description=project.description,
            is_active=project.is_active,
            created_at=project.created_at,
            waitlist_count=project.waitlist_count or 0,
        )


class ProjectCreated(_CamelModel):
    """Creation response — the only read that carries the API token."""

    id: str
    name: str
    slug: str
    description: str
    api_token: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_project(cls, project: Project) -> ProjectCreated:
        return cls(
            id=project.id,
            name=project.name,
            slug=project.slug,
            description=project.description,
            api_token=project.api_token,
            is_active=project.is_active,
            created_at=project.created_at,
        )


class TokenOut(_CamelModel):
    api_token: str


class ProjectSummary(BaseModel):
    id: str
    name: str
    slug: str


# ── Waitlist ─────────────────────────────────────────────────────

class WaitlistEntryCreate(_RequestModel):
    """Signup body. The owning project always comes from the token."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    extra: str | None = Field(default=None, max_length=500)

    @field_validator("email", mode="before")
    @classmethod
    def _trim_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)


class WaitlistEntryOut(_CamelModel):
    id: str
    email: str
    name: str
    extra: str | None = None
    project_id: str
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: WaitlistEntry) -> WaitlistEntryOut:
        return cls(
            id=entry.id,
            email=entry.email,
            name=entry.name,
            extra=entry.extra,
            project_id=entry.project_id,
            created_at=entry.created_at,
        )


class SignupOut(WaitlistEntryOut):
    """Signup response, with the owning project's public fields."""

    project: ProjectSummary

    @classmethod
    def from_signup(cls, entry: WaitlistEntry, project: Project) -> SignupOut:
        return cls(
            **WaitlistEntryOut.from_entry(entry).model_dump(),
            project=ProjectSummary(id=project.id, name=project.name, slug=project.slug),
        )


SortField = Literal["createdAt", "name", "email"]
SortOrder = Literal["asc", "desc"]


class PageMetaOut(_CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def from_meta(cls, meta: PageMeta) -> PageMetaOut:
        return cls(
            current_page=meta.current_page,
            total_pages=meta.total_pages,
            total_count=meta.total_count,
            has_next_page=meta.has_next_page,
            has_previous_page=meta.has_previous_page,
        )


class DailyCount(BaseModel):
    date: str
    count: int


class WaitlistStatsOut(_CamelModel):
    total_entries: int
    recent_entries: int
    daily_stats: list[DailyCount]

    @classmethod
    def from_stats(cls, stats: WaitlistStats) -> WaitlistStatsOut:
        return cls(
            total_entries=stats.total_entries,
            recent_entries=stats.recent_entries,
            daily_stats=[DailyCount(**d) for d in stats.daily_stats],
        )


# ── Generic ──────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str = "OK"


class MessageOut(BaseModel):
    message: str
