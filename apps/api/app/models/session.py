"""Broadcast session model."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

OWNER_ROLE_PRESENTER = "presenter"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BroadcastSession(Base):
    """A presenter's broadcast, soft-deactivated when it ends."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    owner_role: Mapped[str] = mapped_column(String, default=OWNER_ROLE_PRESENTER, nullable=False)
    share_url: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
