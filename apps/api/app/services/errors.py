"""Error taxonomy for signaling requests.

Every error carries a stable ``code`` that is sent back to the client in a
negative acknowledgement, plus a human readable message.
"""
from __future__ import annotations


class SignalingError(Exception):
    """Base class for errors reported to the requesting connection."""

    code = "signaling_error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidMessage(SignalingError):
    """Raised when a frame or payload fails validation."""

    code = "invalid_message"
    default_message = "Invalid message."


class NotFound(SignalingError):
    """Raised when a session id is unknown or no longer active."""

    code = "not_found"
    default_message = "Session not found or inactive."


class Unauthorized(SignalingError):
    code = "unauthorized"
    default_message = "Not authorized."


class AlreadyBound(SignalingError):
    """Raised when a bound connection tries to switch session or role."""

    code = "already_bound"
    default_message = "Connection already joined a different session."


class MissingTarget(SignalingError):
    code = "missing_target"
    default_message = "Missing target connection id."


class Unbound(SignalingError):
    code = "unbound"
    default_message = "Connection has not joined a session."


class StoreError(SignalingError):
    """Raised when the session store fails."""

    code = "store_error"
    default_message = "Session storage is unavailable, please try again."
