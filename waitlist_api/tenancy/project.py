"""Tenant domain objects — projects and the waitlist entries they own.

Each project has:
- Unique id, slug and API token
- An isolated waitlist, referenced from entries by ``project_id`` only
- An active flag that disables its token without deleting anything
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone

from uuid_extensions import uuid7

API_TOKEN_BYTES = 32


def generate_api_token() -> str:
    """Return a fresh 256-bit token as 64 hex characters."""
    return secrets.token_hex(API_TOKEN_BYTES)


def new_id() -> str:
    return str(uuid7())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class Project:
    """A tenant registered by the admin caller."""

    id: str
    name: str
    slug: str
    description: str
    api_token: str = ""
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    waitlist_count: int | None = None

    def __post_init__(self) -> None:
        if not self.api_token:
            self.api_token = generate_api_token()


@dataclass
class WaitlistEntry:
    """One signup on a project's waitlist."""

    id: str
    project_id: str
    email: str
    name: str
    extra: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)
        self.name = self.name.strip()
        if self.extra is not None:
            self.extra = self.extra.strip() or None
