"""Credential verification for the two bearer-token classes.

The global admin key is a process-wide shared secret; project tokens are
per-tenant secrets stored on the project record. They are never
interchangeable: a project token does not verify as admin and vice versa.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Union

from waitlist_api.api.db.projects import ProjectRepository
from waitlist_api.core.logging import get_logger
from waitlist_api.tenancy.project import Project

log = get_logger(__name__)


class CredentialKind(str, Enum):
    ADMIN = "admin"
    PROJECT = "project"


@dataclass(frozen=True)
class AdminAuth:
    """Caller presented the global admin key."""


@dataclass(frozen=True)
class TenantAuth:
    """Caller presented the token of an active project."""

    project: Project


@dataclass(frozen=True)
class Unauthenticated:
    """No valid credential of the requested kind."""

    kind: CredentialKind


AuthResult = Union[AdminAuth, TenantAuth, Unauthenticated]


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class CredentialVerifier:
    """Read-only checks against the configured admin key and the token store."""

    def __init__(self, admin_key: str, projects: ProjectRepository) -> None:
        self._admin_key = admin_key
        self._projects = projects

    def verify_admin(self, bearer: str | None) -> bool:
        if not bearer or not self._admin_key:
            return False
        return hmac.compare_digest(bearer.encode(), self._admin_key.encode())

    async def verify_project_token(self, bearer: str | None) -> Project | None:
        if not bearer:
            return None
        return await self._projects.find_by_token(bearer)

    async def authenticate(self, bearer: str | None, kind: CredentialKind) -> AuthResult:
        """Resolve ``bearer`` as a credential of ``kind``."""
        if kind is CredentialKind.ADMIN:
            if self.verify_admin(bearer):
                return AdminAuth()
            log.warning("auth_failed_admin_key", presented=bearer is not None)
            return Unauthenticated(kind)

        project = await self.verify_project_token(bearer)
        if project is None:
            log.warning("auth_failed_project_token", presented=bearer is not None)
            return Unauthenticated(kind)
        log.debug("auth_success_project", project_id=project.id)
        return TenantAuth(project)
