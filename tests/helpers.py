"""Shared test helpers — SQLite-backed engines and seed data."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.api.db.waitlist import WaitlistRepository
from waitlist_api.data.db import enable_sqlite_foreign_keys, init_schema
from waitlist_api.tenancy.project import Project

ADMIN_KEY = "test-admin-key"
JWT_SECRET = "test-jwt-secret"


@asynccontextmanager
async def sqlite_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """A fresh schema in its own SQLite file, disposed on exit."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    enable_sqlite_foreign_keys(engine)
    await init_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@asynccontextmanager
async def repositories(
    tmp_path: Path,
) -> AsyncIterator[tuple[ProjectRepository, WaitlistRepository]]:
    async with sqlite_engine(tmp_path) as engine:
        yield ProjectRepository(engine), WaitlistRepository(engine)


async def make_project(
    repo: ProjectRepository, slug: str = "acme", name: str = "Acme"
) -> Project:
    return await repo.create(name, slug, f"{name} launch waitlist")
