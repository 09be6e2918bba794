"""Persistent broadcast session storage."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.session import OWNER_ROLE_PRESENTER, BroadcastSession
from ..repositories import sessions as sessions_repo
from .errors import StoreError


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Detached view of a stored session."""

    id: str
    url: str
    active: bool = True
    owner_role: str = OWNER_ROLE_PRESENTER


class SessionStore(Protocol):
    """Create/find/update contract the coordinator relies on."""

    async def create(self, session_id: str, url: str) -> SessionRecord:
        ...

    async def find(self, session_id: str, *, active: Optional[bool] = None) -> Optional[SessionRecord]:
        ...

    async def set_active(self, session_id: str, active: bool) -> bool:
        ...


def _to_record(model: BroadcastSession) -> SessionRecord:
    return SessionRecord(id=model.id, url=model.share_url, active=model.active, owner_role=model.owner_role)


class SqlSessionStore:
    """Session store backed by SQLAlchemy; database errors surface as StoreError."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def create(self, session_id: str, url: str) -> SessionRecord:
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    model = await sessions_repo.create_session(session, session_id=session_id, share_url=url)
                    record = _to_record(model)
        except SQLAlchemyError as exc:
            raise StoreError("Unable to create session, please try again.") from exc
        return record

    async def find(self, session_id: str, *, active: Optional[bool] = None) -> Optional[SessionRecord]:
        try:
            async with self._sessionmaker() as session:
                model = await sessions_repo.find_session(session, session_id, active=active)
                return _to_record(model) if model is not None else None
        except SQLAlchemyError as exc:
            raise StoreError("Unable to look up session.") from exc

    async def set_active(self, session_id: str, active: bool) -> bool:
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    return await sessions_repo.set_active(session, session_id, active)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to update session.") from exc
