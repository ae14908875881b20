"""Health check endpoint — no auth required."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from waitlist_api.api.models.schemas import HealthResponse
from waitlist_api.api.responses import send_response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> JSONResponse:
    return send_response(200, HealthResponse(status="OK"), "API is running")
