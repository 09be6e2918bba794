"""In-memory stand-ins for the session store and websocket connections."""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from app.services.errors import StoreError
from app.services.registry import ConnectionRegistry, SignalingConnection
from app.services.session_store import SessionRecord


class FakeSessionStore:
    """Dict-backed session store with switchable failures."""

    def __init__(self) -> None:
        self.records: dict[str, SessionRecord] = {}
        self.fail_create = False
        self.fail_find = False
        self.fail_update = False
        self.updates: list[tuple[str, bool]] = []

    async def create(self, session_id: str, url: str) -> SessionRecord:
        if self.fail_create:
            raise StoreError("Unable to create session, please try again.")
        record = SessionRecord(id=session_id, url=url)
        self.records[session_id] = record
        return record

    async def find(self, session_id: str, *, active: Optional[bool] = None) -> Optional[SessionRecord]:
        if self.fail_find:
            raise StoreError("Unable to look up session.")
        record = self.records.get(session_id)
        if record is None or (active is not None and record.active is not active):
            return None
        return record

    async def set_active(self, session_id: str, active: bool) -> bool:
        if self.fail_update:
            raise StoreError("Failed to update session.")
        self.updates.append((session_id, active))
        record = self.records.get(session_id)
        if record is None:
            return False
        self.records[session_id] = replace(record, active=active)
        return True


class DummyConnection:
    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        self.messages: list[dict] = []

    async def send(self, message: dict) -> None:
        self.messages.append(message)

    def events(self, name: str) -> list[dict]:
        return [message["data"] for message in self.messages if message["event"] == name]


class BrokenConnection(DummyConnection):
    async def send(self, message: dict) -> None:
        raise ConnectionResetError("socket closed")


def connect(registry: ConnectionRegistry, connection_id: str) -> DummyConnection:
    conn = DummyConnection(connection_id)
    registry.register(SignalingConnection(connection_id, conn.send))
    return conn
