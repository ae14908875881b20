"""Custom exception hierarchy for the waitlist API.

Every error carries the HTTP status it maps to at the boundary, plus an
optional ``context`` dict whose items are exposed as error details.
"""

from __future__ import annotations

from typing import Any


class WaitlistBaseError(Exception):
    """Base exception for all waitlist API errors."""

    status_code: int = 500

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}


# ── Request Layer ────────────────────────────────────────────────

class ValidationError(WaitlistBaseError):
    """Malformed or out-of-range input."""

    status_code = 400

    def __init__(self, errors: list[dict[str, str]], message: str = "Validation failed") -> None:
        super().__init__(message, {"errors": errors})
        self.errors = errors


class UnauthorizedError(WaitlistBaseError):
    """Missing or invalid credential."""

    status_code = 401


class ForbiddenError(WaitlistBaseError):
    """Recognized identity lacking the required role."""

    status_code = 403


# ── Domain Layer ─────────────────────────────────────────────────

class NotFoundError(WaitlistBaseError):
    status_code = 404


class ConflictError(WaitlistBaseError):
    status_code = 409


class DuplicateSlugError(ConflictError):
    """Another project already uses this slug."""

    def __init__(self, message: str = "Project slug already exists") -> None:
        super().__init__(message)


class DuplicateEmailError(ConflictError):
    """The email is already on this project's waitlist."""

    def __init__(
        self, message: str = "This email is already on the waitlist for this project"
    ) -> None:
        super().__init__(message)


class HasDependentsError(ConflictError):
    """Project still owns waitlist entries."""

    def __init__(self, count: int) -> None:
        super().__init__(
            f"Cannot delete project. It has {count} waitlist entries. "
            "Please delete all entries first.",
            {"count": count},
        )
        self.count = count


# ── Storage Layer ────────────────────────────────────────────────

class StorageUnavailableError(WaitlistBaseError):
    """Database connection failed or was lost."""

    status_code = 503

    def __init__(self, message: str = "Database temporarily unavailable") -> None:
        super().__init__(message)


class StorageTimeoutError(WaitlistBaseError):
    """Database operation exceeded its time budget."""

    status_code = 504

    def __init__(self, message: str = "Database operation timed out") -> None:
        super().__init__(message)


class InternalError(WaitlistBaseError):
    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
