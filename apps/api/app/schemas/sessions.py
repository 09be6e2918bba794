"""Schemas for broadcast session creation."""
from __future__ import annotations

from pydantic import BaseModel, Field


class SessionCreateResponse(BaseModel):
    id: str = Field(..., description="Opaque session identifier")
    url: str = Field(..., description="Link viewers open to join the broadcast")
