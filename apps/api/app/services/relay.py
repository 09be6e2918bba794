"""Forward SDP and ICE signaling messages between connections."""
from __future__ import annotations

import enum
import logging
from typing import Any, Mapping

from .errors import MissingTarget, Unbound
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class SignalKind(str, enum.Enum):
    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "ice-candidate"

    @property
    def allows_room_broadcast(self) -> bool:
        # Trickle ICE may start before the peer's id is known.
        return self is SignalKind.ICE_CANDIDATE


class MessageRelay:
    """Stamp signaling bodies with the sender id and deliver them.

    Reads bindings from the registry but never changes them.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def forward(self, kind: SignalKind, sender_id: str, body: Mapping[str, Any]) -> list[str]:
        """Deliver ``body`` to its ``to`` target, or to the sender's room for ICE.

        Returns the connection ids the message was handed to. A target that is
        no longer connected is not an error.
        """

        message = {**body, "from": sender_id}
        target = body.get("to")
        if target:
            delivered = await self._registry.send(target, kind.value, message)
            return [target] if delivered else []

        if not kind.allows_room_broadcast:
            raise MissingTarget()

        binding = self._registry.lookup(sender_id)
        if binding is None:
            raise Unbound("No target specified.")
        recipients = await self._registry.broadcast(binding.session_id, kind.value, message, exclude=sender_id)
        logger.debug("Broadcast %s from %s to %d peer(s)", kind.value, sender_id, len(recipients))
        return recipients
