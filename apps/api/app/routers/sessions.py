"""Broadcast session creation endpoint."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from ..core.config import settings
from ..schemas.sessions import SessionCreateResponse
from ..services.coordinator import SessionCoordinator
from ..services.errors import StoreError

router = APIRouter()


@router.post("/session", response_model=SessionCreateResponse)
async def create_session(request: Request) -> SessionCreateResponse:
    """Create a broadcast session and return its shareable link."""

    coordinator: SessionCoordinator = request.app.state.coordinator
    base_url = settings.public_base_url or str(request.base_url)
    try:
        record = await coordinator.create_session(base_url)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc
    return SessionCreateResponse(id=record.id, url=record.url)
