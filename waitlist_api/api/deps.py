"""FastAPI dependency injection — repositories and access-control gates.

Gates are declared on routes in order and short-circuit on the first
denial by raising.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import get_settings
from waitlist_api.api.credentials import (
    AdminAuth,
    AuthResult,
    CredentialKind,
    CredentialVerifier,
    TenantAuth,
    parse_bearer,
)
from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.api.db.waitlist import WaitlistRepository
from waitlist_api.api.middleware import get_current_identity
from waitlist_api.core.exceptions import ForbiddenError, UnauthorizedError
from waitlist_api.core.logging import get_logger
from waitlist_api.data.db import get_engine
from waitlist_api.tenancy.identity import Identity
from waitlist_api.tenancy.project import Project

log = get_logger(__name__)

# ── Database engine ───────────────────────────────────────────────


async def get_db_engine() -> AsyncEngine:
    """Provide the async database engine."""
    return await get_engine()


# ── Repositories ──────────────────────────────────────────────────


async def get_project_repo(
    engine: AsyncEngine = Depends(get_db_engine),
) -> ProjectRepository:
    return ProjectRepository(engine)


async def get_waitlist_repo(
    engine: AsyncEngine = Depends(get_db_engine),
) -> WaitlistRepository:
    return WaitlistRepository(engine)


async def get_verifier(
    projects: ProjectRepository = Depends(get_project_repo),
) -> CredentialVerifier:
    settings = get_settings()
    return CredentialVerifier(settings.admin_api_key.get_secret_value(), projects)


# ── Credential gates ──────────────────────────────────────────────


async def _authenticate(
    request: Request, verifier: CredentialVerifier, kind: CredentialKind
) -> AuthResult:
    bearer = parse_bearer(request.headers.get("authorization"))
    return await verifier.authenticate(bearer, kind)


async def require_admin(
    request: Request,
    verifier: CredentialVerifier = Depends(get_verifier),
) -> AdminAuth:
    """Admin-only routes: the bearer must be the global admin key."""
    result = await _authenticate(request, verifier, CredentialKind.ADMIN)
    if not isinstance(result, AdminAuth):
        raise UnauthorizedError("Unauthorized")
    return result


async def require_project(
    request: Request,
    verifier: CredentialVerifier = Depends(get_verifier),
) -> Project:
    """Tenant-scoped routes: bind the token's active project to the request."""
    result = await _authenticate(request, verifier, CredentialKind.PROJECT)
    if not isinstance(result, TenantAuth):
        raise UnauthorizedError("Invalid or inactive API token")
    request.state.project = result.project
    return result.project


# ── Role gate ─────────────────────────────────────────────────────


def require_role(role: str) -> Callable[..., Awaitable[Identity]]:
    """Build a gate that admits only identities whose ``userType`` is ``role``."""

    async def _gate(
        identity: Identity | None = Depends(get_current_identity),
    ) -> Identity:
        if identity is None or identity.user_type != role:
            log.warning(
                "role_denied",
                required=role,
                actual=identity.user_type if identity else None,
            )
            raise ForbiddenError(
                "Forbidden: You do not have permission to access this resource."
            )
        return identity

    return _gate
