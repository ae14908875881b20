"""Tests for the envelope helpers and the error-to-status mapping."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from waitlist_api.api.responses import (
    handle_waitlist_error,
    register_exception_handlers,
    send_error,
    send_response,
)
from waitlist_api.core.exceptions import (
    DuplicateEmailError,
    DuplicateSlugError,
    ForbiddenError,
    HasDependentsError,
    NotFoundError,
    StorageTimeoutError,
    StorageUnavailableError,
    UnauthorizedError,
    ValidationError,
)


def _body(response: object) -> dict:
    return json.loads(response.body)  # type: ignore[attr-defined]


class TestEnvelope:
    def test_success_without_meta(self) -> None:
        body = _body(send_response(201, {"id": "x"}, "Created"))
        assert body == {"statusCode": 201, "data": {"id": "x"}, "message": "Created"}

    def test_success_with_meta(self) -> None:
        body = _body(send_response(200, [], meta={"totalCount": 0}))
        assert body["meta"] == {"totalCount": 0}
        assert body["message"] == "Success"

    def test_error(self) -> None:
        body = _body(send_error(409, "Project slug already exists"))
        assert body == {
            "statusCode": 409,
            "error": {"message": "Project slug already exists"},
            "message": "Conflict",
        }


def _app_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise exc

    return TestClient(app, raise_server_exceptions=False)


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (ValidationError([{"field": "email", "message": "bad"}]), 400),
            (UnauthorizedError("Unauthorized"), 401),
            (ForbiddenError("Forbidden"), 403),
            (NotFoundError("Project not found"), 404),
            (DuplicateSlugError(), 409),
            (DuplicateEmailError(), 409),
            (HasDependentsError(3), 409),
            (StorageUnavailableError(), 503),
            (StorageTimeoutError(), 504),
            (RuntimeError("secret detail"), 500),
        ],
    )
    def test_status_codes(self, exc: Exception, status: int) -> None:
        response = _app_raising(exc).get("/boom")
        assert response.status_code == status
        assert response.json()["statusCode"] == status

    def test_has_dependents_carries_count(self) -> None:
        body = _app_raising(HasDependentsError(3)).get("/boom").json()
        assert body["error"]["count"] == 3

    def test_validation_carries_field_errors(self) -> None:
        body = _app_raising(ValidationError([{"field": "email", "message": "bad"}])).get("/boom").json()
        assert body["error"]["errors"] == [{"field": "email", "message": "bad"}]

    def test_internal_is_opaque(self) -> None:
        body = _app_raising(RuntimeError("secret detail")).get("/boom").json()
        assert body["error"] == {"message": "Internal server error"}
        assert "secret" not in json.dumps(body)

    def test_http_exception_uses_failure_envelope(self) -> None:
        response = _app_raising(RuntimeError()).get("/missing")
        assert response.status_code == 404
        assert response.json() == {
            "statusCode": 404,
            "error": {"message": "Not Found"},
            "message": "Not found",
        }


class TestHandlers:
    @pytest.mark.asyncio
    async def test_domain_error_handler_called_directly(self) -> None:
        response = await handle_waitlist_error(MagicMock(), NotFoundError("Project not found"))
        assert response.status_code == 404
        assert _body(response)["error"] == {"message": "Project not found"}
