"""Wire contracts for the signaling websocket."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ClientFrame(BaseModel):
    """Envelope for every client-to-server message."""

    event: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    id: int | str | None = Field(default=None, description="Acknowledgement correlation id")


class JoinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", min_length=1)


class EndSessionRequest(JoinRequest):
    pass


class SignalMessage(BaseModel):
    """Body of an offer, answer or ICE candidate; extra fields are relayed untouched."""

    model_config = ConfigDict(extra="allow")

    to: str | None = Field(default=None, description="Target connection id")


class SessionDescriptionMessage(SignalMessage):
    sdp: Any = None


class IceCandidateMessage(SignalMessage):
    candidate: Any = None


class Ack(BaseModel):
    """Acknowledgement returned for every client request."""

    model_config = ConfigDict(extra="allow")

    ok: bool
    error: str | None = None
    code: str | None = None

    @classmethod
    def success(cls, **extra: Any) -> "Ack":
        return cls(ok=True, **extra)

    @classmethod
    def failure(cls, error: str, code: str) -> "Ack":
        return cls(ok=False, error=error, code=code)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
