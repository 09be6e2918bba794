"""Broadcast session repository helpers."""
from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.session import OWNER_ROLE_PRESENTER, BroadcastSession


async def create_session(
    session: AsyncSession,
    *,
    session_id: str,
    share_url: str,
    owner_role: str = OWNER_ROLE_PRESENTER,
) -> BroadcastSession:
    """Insert a new active session record."""

    record = BroadcastSession(id=session_id, owner_role=owner_role, share_url=share_url, active=True)
    session.add(record)
    await session.flush()
    return record


async def find_session(
    session: AsyncSession,
    session_id: str,
    *,
    active: bool | None = None,
) -> BroadcastSession | None:
    """Return a session by identifier, optionally filtered on the active flag."""

    stmt = select(BroadcastSession).where(BroadcastSession.id == session_id)
    if active is not None:
        stmt = stmt.where(BroadcastSession.active.is_(active))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def set_active(session: AsyncSession, session_id: str, active: bool) -> bool:
    """Update the active flag; return whether a record matched."""

    stmt = update(BroadcastSession).where(BroadcastSession.id == session_id).values(active=active)
    result = await session.execute(stmt)
    return bool(result.rowcount)
