"""Expose ORM models."""
from .base import Base
from .session import BroadcastSession

__all__ = [
    "Base",
    "BroadcastSession",
]
