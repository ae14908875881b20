"""Tenancy layer — projects, waitlist entries and identity tokens."""

from waitlist_api.tenancy.identity import Identity, JWTManager, UserType
from waitlist_api.tenancy.project import (
    Project,
    WaitlistEntry,
    generate_api_token,
    normalize_email,
)

__all__ = [
    "Identity",
    "JWTManager",
    "UserType",
    "Project",
    "WaitlistEntry",
    "generate_api_token",
    "normalize_email",
]
