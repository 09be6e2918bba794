"""Browser pages for presenters and viewers."""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from ..core.config import settings
from ..pages import render_admin_page, render_viewer_page

router = APIRouter()


@router.get("/admin", response_class=HTMLResponse)
async def admin_page() -> HTMLResponse:
    return HTMLResponse(render_admin_page(settings.ice_servers))


@router.get("/session/{session_id}", response_class=HTMLResponse)
async def viewer_page(session_id: str) -> HTMLResponse:
    """Serve the viewer page; the session is validated when the page joins."""

    return HTMLResponse(render_viewer_page(session_id, settings.ice_servers))
