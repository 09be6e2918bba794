"""Signaling gateway: validates client frames and routes them to the core."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping

from pydantic import BaseModel, ValidationError

from ..schemas.signaling import (
    Ack,
    EndSessionRequest,
    IceCandidateMessage,
    JoinRequest,
    SessionDescriptionMessage,
)
from .coordinator import JoinResult, SessionCoordinator
from .errors import InvalidMessage, SignalingError
from .registry import ConnectionRegistry, SignalingConnection
from .relay import MessageRelay, SignalKind

logger = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_ACK = "ack"

Handler = Callable[[str, Mapping[str, Any]], Awaitable[Ack]]


def _parse(model: type[BaseModel], data: Mapping[str, Any], message: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidMessage(message) from exc


def _join_ack(result: JoinResult) -> Ack:
    return Ack.success(
        connectionId=result.connection_id,
        sessionId=result.session_id,
        role=result.role.value,
        participants=result.participants,
        presenterId=result.presenter_id,
    )


class SignalingGateway:
    """Entry point for the message channel.

    Turns every request into an :class:`Ack` so typed errors never escape
    to the transport.
    """

    def __init__(self, coordinator: SessionCoordinator, relay: MessageRelay) -> None:
        self._coordinator = coordinator
        self._relay = relay
        self._handlers: Dict[str, Handler] = {
            "presenter-join": self._presenter_join,
            "viewer-join": self._viewer_join,
            "end-session": self._end_session,
            SignalKind.OFFER.value: self._signal(SignalKind.OFFER, SessionDescriptionMessage),
            SignalKind.ANSWER.value: self._signal(SignalKind.ANSWER, SessionDescriptionMessage),
            SignalKind.ICE_CANDIDATE.value: self._signal(SignalKind.ICE_CANDIDATE, IceCandidateMessage),
        }

    @property
    def registry(self) -> ConnectionRegistry:
        return self._coordinator.registry

    async def connect(self, connection: SignalingConnection) -> None:
        """Register a freshly accepted connection and tell it its id."""

        self.registry.register(connection)
        logger.info("Connection %s opened", connection.connection_id)
        await self.registry.send(connection.connection_id, EVENT_CONNECTED, {"connectionId": connection.connection_id})

    async def disconnect(self, connection_id: str) -> None:
        """Tear down after the channel lost a connection. Safe to call twice."""

        if not self.registry.is_connected(connection_id):
            return
        try:
            await self._coordinator.handle_disconnect(connection_id)
        finally:
            self.registry.unregister(connection_id)
            logger.info("Connection %s closed", connection_id)

    async def dispatch(self, connection_id: str, event: str, data: Mapping[str, Any] | None) -> Ack:
        """Run the handler for ``event`` and report its outcome as an ack."""

        handler = self._handlers.get(event)
        if handler is None:
            return Ack.failure(f"Unknown event '{event}'.", InvalidMessage.code)
        try:
            return await handler(connection_id, data or {})
        except SignalingError as exc:
            logger.warning("%s from %s rejected: %s", event, connection_id, exc.message)
            return Ack.failure(exc.message, exc.code)
        except Exception:
            logger.exception("Unhandled error while processing %s from %s", event, connection_id)
            return Ack.failure("Internal server error.", "internal_error")

    async def _presenter_join(self, connection_id: str, data: Mapping[str, Any]) -> Ack:
        request = _parse(JoinRequest, data, "Missing session id.")
        result = await self._coordinator.presenter_join(request.session_id, connection_id)
        return _join_ack(result)

    async def _viewer_join(self, connection_id: str, data: Mapping[str, Any]) -> Ack:
        request = _parse(JoinRequest, data, "Missing session id.")
        result = await self._coordinator.viewer_join(request.session_id, connection_id)
        return _join_ack(result)

    async def _end_session(self, connection_id: str, data: Mapping[str, Any]) -> Ack:
        request = _parse(EndSessionRequest, data, "Missing session id.")
        await self._coordinator.end_session(request.session_id, connection_id)
        return Ack.success()

    def _signal(self, kind: SignalKind, model: type[BaseModel]) -> Handler:
        async def handler(connection_id: str, data: Mapping[str, Any]) -> Ack:
            message = _parse(model, data, f"Malformed {kind.value} payload.")
            body = message.model_dump(exclude_unset=True)
            await self._relay.forward(kind, connection_id, body)
            return Ack.success()

        return handler
