"""In-memory registry of live signaling connections and their rooms."""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set

logger = logging.getLogger(__name__)

SendCallable = Callable[[dict], Awaitable[None]]


class Role(str, enum.Enum):
    PRESENTER = "presenter"
    VIEWER = "viewer"


@dataclass(slots=True)
class SignalingConnection:
    """Connection wrapper for signaling participants."""

    connection_id: str
    send: SendCallable


@dataclass(frozen=True, slots=True)
class Binding:
    role: Role
    session_id: str


def make_frame(event: str, data: dict[str, Any]) -> dict[str, Any]:
    """Build a server push frame."""

    return {"event": event, "data": data}


class ConnectionRegistry:
    """Track live connections, their session binding and room membership.

    Pure bookkeeping: callers decide whether a bind is allowed. All mutating
    methods are synchronous so a handler never yields in the middle of an
    update; only delivery awaits.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, SignalingConnection] = {}
        self._bindings: Dict[str, Binding] = {}
        self._rooms: Dict[str, Set[str]] = {}

    def register(self, connection: SignalingConnection) -> None:
        self._connections[connection.connection_id] = connection

    def unregister(self, connection_id: str) -> None:
        """Forget the connection handle along with any binding it still holds."""

        self.unbind(connection_id)
        self._connections.pop(connection_id, None)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def bind(self, connection_id: str, role: Role, session_id: str) -> Binding:
        """Bind a connection to a session and add it to the room."""

        binding = Binding(role=role, session_id=session_id)
        self._bindings[connection_id] = binding
        self._rooms.setdefault(session_id, set()).add(connection_id)
        return binding

    def unbind(self, connection_id: str) -> Optional[Binding]:
        """Clear the binding and room membership, returning what was removed."""

        binding = self._bindings.pop(connection_id, None)
        if binding is None:
            return None
        members = self._rooms.get(binding.session_id)
        if members is not None:
            members.discard(connection_id)
            if not members:
                self._rooms.pop(binding.session_id, None)
        return binding

    def lookup(self, connection_id: str) -> Optional[Binding]:
        return self._bindings.get(connection_id)

    def members_of(self, session_id: str) -> Set[str]:
        return set(self._rooms.get(session_id, ()))

    def presenter_of(self, session_id: str) -> Optional[str]:
        for connection_id in self._rooms.get(session_id, ()):
            binding = self._bindings.get(connection_id)
            if binding is not None and binding.role is Role.PRESENTER:
                return connection_id
        return None

    def release_room(self, session_id: str) -> Set[str]:
        """Drop every member of the room and release their bindings."""

        members = self._rooms.pop(session_id, set())
        for connection_id in members:
            self._bindings.pop(connection_id, None)
        return members

    async def send(self, connection_id: str, event: str, data: dict[str, Any]) -> bool:
        """Deliver a frame to one connection; unknown targets are ignored."""

        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug("Dropping %s for unknown connection %s", event, connection_id)
            return False
        try:
            await connection.send(make_frame(event, data))
        except Exception:  # noqa: BLE001
            logger.warning("Delivery of %s to %s failed", event, connection_id, exc_info=True)
            return False
        return True

    async def broadcast(
        self,
        session_id: str,
        event: str,
        data: dict[str, Any],
        *,
        exclude: Optional[str] = None,
    ) -> list[str]:
        """Send a frame to every room member except ``exclude``; return the recipients."""

        recipients = [member for member in self._rooms.get(session_id, ()) if member != exclude]
        return await self._fan_out(recipients, event, data)

    async def _fan_out(self, recipients: Iterable[str], event: str, data: dict[str, Any]) -> list[str]:
        targets = [(member, self._connections[member]) for member in recipients if member in self._connections]
        if not targets:
            return []

        frame = make_frame(event, data)
        results = await asyncio.gather(*(connection.send(frame) for _, connection in targets), return_exceptions=True)
        delivered: list[str] = []
        for (member, _), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning("Delivery of %s to %s failed: %s", event, member, result)
                continue
            delivered.append(member)
        return delivered
