"""Session lifecycle coordination for presenter/viewer broadcasts.

The coordinator is the only component that mutates connection bindings and
room membership. The session store is always updated before an ``ended``
notification goes out, so no participant is told a session ended while the
store still reports it active.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import uuid4

from .errors import AlreadyBound, NotFound, StoreError, Unauthorized
from .registry import Binding, ConnectionRegistry, Role
from .session_store import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

EVENT_PARTICIPANT_JOINED = "participant-joined"
EVENT_PARTICIPANT_LEFT = "participant-left"
EVENT_SESSION_ENDED = "session-ended"


class SessionState(str, enum.Enum):
    CREATED = "created"
    STREAMING = "streaming"
    ENDED = "ended"


@dataclass(slots=True)
class JoinResult:
    connection_id: str
    session_id: str
    role: Role
    participants: list[str] = field(default_factory=list)
    presenter_id: Optional[str] = None


def _default_id() -> str:
    return str(uuid4())


def build_share_url(base_url: str, session_id: str) -> str:
    return f"{base_url.rstrip('/')}/session/{session_id}"


class SessionCoordinator:
    """Validate and execute join, end and disconnect requests."""

    def __init__(
        self,
        store: SessionStore,
        registry: ConnectionRegistry,
        *,
        id_factory: Callable[[], str] = _default_id,
    ) -> None:
        self._store = store
        self._registry = registry
        self._id_factory = id_factory

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def create_session(self, base_url: str) -> SessionRecord:
        """Persist a new active session and return its id and share URL."""

        session_id = self._id_factory()
        record = await self._store.create(session_id, build_share_url(base_url, session_id))
        logger.info("Created session %s", record.id)
        return record

    async def presenter_join(self, session_id: str, connection_id: str) -> JoinResult:
        """Bind a connection as the presenter of an existing session.

        Any holder of the session id may present; the record's active flag is
        not consulted. Only one presenter connection may hold a session.
        """

        if self._is_same_binding(connection_id, Role.PRESENTER, session_id):
            return self._join_result(connection_id, session_id, Role.PRESENTER)

        session = await self._store.find(session_id)
        if session is None:
            raise NotFound("Session not found.")

        # Re-check after the store await: another join may have bound meanwhile.
        if self._is_same_binding(connection_id, Role.PRESENTER, session_id):
            return self._join_result(connection_id, session_id, Role.PRESENTER)
        self._ensure_unbound(connection_id)
        current = self._registry.presenter_of(session_id)
        if current is not None:
            raise Unauthorized("Session already has a presenter.")

        self._registry.bind(connection_id, Role.PRESENTER, session_id)
        logger.info("Presenter %s joined room %s", connection_id, session_id)
        return self._join_result(connection_id, session_id, Role.PRESENTER)

    async def viewer_join(self, session_id: str, connection_id: str) -> JoinResult:
        """Bind a connection as a viewer of an active session and notify the room."""

        if self._is_same_binding(connection_id, Role.VIEWER, session_id):
            return self._join_result(connection_id, session_id, Role.VIEWER)

        session = await self._store.find(session_id, active=True)
        if session is None:
            raise NotFound("Session not found or inactive.")

        if self._is_same_binding(connection_id, Role.VIEWER, session_id):
            return self._join_result(connection_id, session_id, Role.VIEWER)
        self._ensure_unbound(connection_id)

        self._registry.bind(connection_id, Role.VIEWER, session_id)
        logger.info("Viewer %s joined room %s", connection_id, session_id)
        await self._registry.broadcast(
            session_id,
            EVENT_PARTICIPANT_JOINED,
            {"connectionId": connection_id},
            exclude=connection_id,
        )
        return self._join_result(connection_id, session_id, Role.VIEWER)

    async def end_session(self, session_id: str, connection_id: str) -> None:
        """End a session on behalf of its presenter and tear the room down.

        A store failure aborts before any teardown so the presenter can retry.
        """

        binding = self._registry.lookup(connection_id)
        if binding is None or binding.role is not Role.PRESENTER or binding.session_id != session_id:
            raise Unauthorized()

        await self._store.set_active(session_id, False)
        await self._teardown(session_id, connection_id)
        logger.info("Presenter %s ended session %s", connection_id, session_id)

    async def handle_disconnect(self, connection_id: str) -> None:
        """Release a lost connection's binding and notify the rest of its room.

        Best-effort and non-propagating: a store failure while deactivating a
        presenter's session is logged and swallowed because the client is gone.
        Calling this for an unbound connection does nothing.
        """

        binding = self._registry.unbind(connection_id)
        if binding is None:
            return

        if binding.role is Role.VIEWER:
            logger.info("Viewer %s left room %s", connection_id, binding.session_id)
            await self._registry.broadcast(
                binding.session_id,
                EVENT_PARTICIPANT_LEFT,
                {"connectionId": connection_id},
                exclude=connection_id,
            )
            return

        logger.info("Presenter %s disconnected from room %s", connection_id, binding.session_id)
        try:
            await self._store.set_active(binding.session_id, False)
        except StoreError:
            logger.exception("Could not deactivate session %s after presenter disconnect", binding.session_id)
            return
        await self._teardown(binding.session_id, connection_id)

    async def session_state(self, session_id: str) -> SessionState:
        """Return the server-observed lifecycle state of a session."""

        session = await self._store.find(session_id)
        if session is None:
            raise NotFound("Session not found.")
        if not session.active:
            return SessionState.ENDED
        for member in self._registry.members_of(session_id):
            binding = self._registry.lookup(member)
            if binding is not None and binding.role is Role.VIEWER:
                return SessionState.STREAMING
        return SessionState.CREATED

    async def _teardown(self, session_id: str, presenter_id: str) -> None:
        await self._registry.broadcast(session_id, EVENT_SESSION_ENDED, {}, exclude=presenter_id)
        released = self._registry.release_room(session_id)
        self._registry.unbind(presenter_id)
        logger.debug("Released %d connection(s) from room %s", len(released), session_id)

    def _is_same_binding(self, connection_id: str, role: Role, session_id: str) -> bool:
        return self._registry.lookup(connection_id) == Binding(role=role, session_id=session_id)

    def _ensure_unbound(self, connection_id: str) -> None:
        if self._registry.lookup(connection_id) is not None:
            raise AlreadyBound()

    def _join_result(self, connection_id: str, session_id: str, role: Role) -> JoinResult:
        presenter_id = self._registry.presenter_of(session_id)
        participants = sorted(
            member
            for member in self._registry.members_of(session_id)
            if member != connection_id and member != presenter_id
        )
        return JoinResult(
            connection_id=connection_id,
            session_id=session_id,
            role=role,
            participants=participants,
            presenter_id=presenter_id,
        )
