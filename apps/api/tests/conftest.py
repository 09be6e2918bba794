"""Shared fixtures for signaling tests."""
from __future__ import annotations

import pytest

from app.services.coordinator import SessionCoordinator
from app.services.registry import ConnectionRegistry
from app.services.relay import MessageRelay
from app.services.signaling import SignalingGateway

from fakes import FakeSessionStore


@pytest.fixture
def store() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def coordinator(store: FakeSessionStore, registry: ConnectionRegistry) -> SessionCoordinator:
    counter = iter(range(1, 1000))
    return SessionCoordinator(store, registry, id_factory=lambda: f"session-{next(counter)}")


@pytest.fixture
def relay(registry: ConnectionRegistry) -> MessageRelay:
    return MessageRelay(registry)


@pytest.fixture
def gateway(coordinator: SessionCoordinator, relay: MessageRelay) -> SignalingGateway:
    return SignalingGateway(coordinator, relay)
