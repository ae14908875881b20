"""Identity-token handling and request logging middleware for FastAPI."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from config.settings import get_settings
from waitlist_api.api.credentials import parse_bearer
from waitlist_api.core.exceptions import UnauthorizedError
from waitlist_api.core.logging import get_logger
from waitlist_api.tenancy.identity import Identity, JWTManager, UserType

log = get_logger(__name__)

_jwt_manager: JWTManager | None = None


def _get_jwt() -> JWTManager:
    """Lazy-init singleton JWTManager."""
    global _jwt_manager  # noqa: PLW0603
    if _jwt_manager is None:
        settings = get_settings()
        _jwt_manager = JWTManager(
            secret=settings.jwt_secret.get_secret_value(),
            expiry_hours=settings.jwt_expiry_hours,
        )
    return _jwt_manager


def create_developer_jwt(user_id: str, email: str, username: str = "") -> str:
    return _get_jwt().issue(user_id, email, UserType.DEVELOPER, username)


def create_user_jwt(user_id: str, email: str, username: str = "") -> str:
    return _get_jwt().issue(user_id, email, UserType.USER, username)


def verify_jwt(token: str) -> Identity:
    """Verify an identity token; any failure is one uniform 401."""
    identity = _get_jwt().verify_token(token)
    if identity is None:
        raise UnauthorizedError("Invalid or expired token")
    return identity


async def get_current_identity(request: Request) -> Identity | None:
    """Decode the bearer identity token, if any, and attach it to the request.

    A missing token is not an error here; role gates deny it instead.
    """
    token = parse_bearer(request.headers.get("authorization"))
    if token is None:
        request.state.identity = None
        return None

    identity = verify_jwt(token)
    request.state.identity = identity
    return identity


async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Emit one ``request_completed`` event per request."""
    start = time.perf_counter()
    response = await call_next(request)
    log.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response
