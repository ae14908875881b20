"""Tests for ProjectRepository — tenant storage on a real SQLite schema."""

from __future__ import annotations

import asyncio
from datetime import timezone
from pathlib import Path

import pytest

from tests.helpers import make_project, repositories
from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.core.exceptions import (
    DuplicateSlugError,
    HasDependentsError,
    NotFoundError,
)


class TestCreate:
    @pytest.mark.asyncio
    async def test_returns_full_record_with_token(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await projects.create("Acme", "acme", "Acme launch waitlist")
            assert project.slug == "acme"
            assert project.is_active is True
            assert len(project.api_token) == 64
            int(project.api_token, 16)
            assert project.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_duplicate_slug_rejected(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            await make_project(projects, "acme")
            with pytest.raises(DuplicateSlugError):
                await make_project(projects, "acme", name="Other")

    @pytest.mark.asyncio
    async def test_concurrent_colliding_slugs_exactly_one_wins(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            results = await asyncio.gather(
                *(make_project(projects, "race", name=f"Racer {i}") for i in range(5)),
                return_exceptions=True,
            )
            created = [r for r in results if not isinstance(r, BaseException)]
            conflicts = [r for r in results if isinstance(r, DuplicateSlugError)]
            assert len(created) == 1
            assert len(conflicts) == 4
            assert len(await projects.list()) == 1

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            a = await make_project(projects, "one")
            b = await make_project(projects, "two")
            assert a.api_token != b.api_token


class TestRead:
    @pytest.mark.asyncio
    async def test_list_newest_first_with_counts(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, waitlist):
            first = await make_project(projects, "first")
            second = await make_project(projects, "second")
            await waitlist.add(first.id, "a@example.com", "Alice")
            await waitlist.add(first.id, "b@example.com", "Bob")

            listed = await projects.list()
            assert [p.id for p in listed] == [second.id, first.id]
            counts = {p.id: p.waitlist_count for p in listed}
            assert counts == {first.id: 2, second.id: 0}

    @pytest.mark.asyncio
    async def test_get_by_id(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, waitlist):
            project = await make_project(projects)
            await waitlist.add(project.id, "a@example.com", "Alice")
            fetched = await projects.get_by_id(project.id)
            assert fetched.slug == project.slug
            assert fetched.waitlist_count == 1
            assert fetched.created_at.tzinfo == timezone.utc

    @pytest.mark.asyncio
    async def test_get_missing(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            with pytest.raises(NotFoundError):
                await projects.get_by_id("no-such-id")


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_merge(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects)
            updated = await projects.update(project.id, {"name": "Acme Inc"})
            assert updated.name == "Acme Inc"
            assert updated.slug == project.slug
            assert updated.description == project.description

    @pytest.mark.asyncio
    async def test_slug_collision(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            await make_project(projects, "taken")
            other = await make_project(projects, "free")
            with pytest.raises(DuplicateSlugError):
                await projects.update(other.id, {"slug": "taken"})

    @pytest.mark.asyncio
    async def test_same_slug_on_itself_is_fine(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects, "mine")
            updated = await projects.update(project.id, {"slug": "mine"})
            assert updated.slug == "mine"

    @pytest.mark.asyncio
    async def test_missing(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            with pytest.raises(NotFoundError):
                await projects.update("no-such-id", {"name": "Nobody"})

    @pytest.mark.asyncio
    async def test_empty_update_returns_current(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects)
            same = await projects.update(project.id, {})
            assert same.name == project.name


class TestDelete:
    @pytest.mark.asyncio
    async def test_blocked_by_dependents_then_allowed(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, waitlist):
            project = await make_project(projects)
            entry = await waitlist.add(project.id, "a@example.com", "Alice")

            with pytest.raises(HasDependentsError) as exc_info:
                await projects.delete(project.id)
            assert exc_info.value.count == 1
            assert exc_info.value.context == {"count": 1}

            await waitlist.delete_entry(project.id, entry.id)
            await projects.delete(project.id)
            with pytest.raises(NotFoundError):
                await projects.get_by_id(project.id)

    @pytest.mark.asyncio
    async def test_missing(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            with pytest.raises(NotFoundError):
                await projects.delete("no-such-id")


class TestTokens:
    @pytest.mark.asyncio
    async def test_find_by_token_exact_and_active(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects)
            found = await projects.find_by_token(project.api_token)
            assert found is not None
            assert found.id == project.id
            assert await projects.find_by_token(project.api_token[:-1]) is None
            assert await projects.find_by_token(project.api_token.upper()) is None

    @pytest.mark.asyncio
    async def test_deactivation_invalidates_token_without_deleting(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects)
            await projects.update(project.id, {"is_active": False})
            assert await projects.find_by_token(project.api_token) is None
            assert (await projects.get_by_id(project.id)).is_active is False

            await projects.update(project.id, {"is_active": True})
            assert await projects.find_by_token(project.api_token) is not None

    @pytest.mark.asyncio
    async def test_regenerate_invalidates_old_token(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            project = await make_project(projects)
            new_token = await projects.regenerate_token(project.id)
            assert new_token != project.api_token
            assert await projects.find_by_token(project.api_token) is None
            found = await projects.find_by_token(new_token)
            assert found is not None and found.id == project.id

    @pytest.mark.asyncio
    async def test_regenerate_missing(self, tmp_path: Path) -> None:
        async with repositories(tmp_path) as (projects, _):
            with pytest.raises(NotFoundError):
                await projects.regenerate_token("no-such-id")


class TestRowToProject:
    def test_naive_timestamp_read_as_utc(self) -> None:
        from datetime import datetime

        row = {
            "id": "p1",
            "name": "Acme",
            "slug": "acme",
            "description": "Acme launch waitlist",
            "api_token": "ab" * 32,
            "is_active": 1,
            "created_at": datetime(2026, 1, 1, 12, 0, 0),
            "waitlist_count": 3,
        }
        project = ProjectRepository._row_to_project(row)
        assert project.created_at.tzinfo == timezone.utc
        assert project.is_active is True
        assert project.waitlist_count == 3
