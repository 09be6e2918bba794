"""Tests for session lifecycle coordination."""
from __future__ import annotations

import logging

import pytest

from app.services.coordinator import SessionCoordinator, SessionState
from app.services.errors import AlreadyBound, NotFound, StoreError, Unauthorized
from app.services.registry import Binding, ConnectionRegistry, Role

from fakes import FakeSessionStore, connect


async def _live_session(coordinator: SessionCoordinator, registry: ConnectionRegistry):
    record = await coordinator.create_session("http://testserver/")
    presenter = connect(registry, "p")
    await coordinator.presenter_join(record.id, "p")
    return record, presenter


@pytest.mark.asyncio
async def test_create_session_persists_active_record(coordinator, store: FakeSessionStore):
    record = await coordinator.create_session("http://testserver/")

    assert record.id == "session-1"
    assert record.url == "http://testserver/session/session-1"
    assert store.records["session-1"].active is True


@pytest.mark.asyncio
async def test_create_session_surfaces_store_error(coordinator, store: FakeSessionStore):
    store.fail_create = True

    with pytest.raises(StoreError):
        await coordinator.create_session("http://testserver")
    assert store.records == {}


@pytest.mark.asyncio
async def test_presenter_join_requires_existing_session(coordinator, registry):
    connect(registry, "p")

    with pytest.raises(NotFound):
        await coordinator.presenter_join("missing", "p")
    assert registry.lookup("p") is None


@pytest.mark.asyncio
async def test_presenter_join_allowed_on_inactive_session(coordinator, registry, store):
    record = await coordinator.create_session("http://testserver")
    await store.set_active(record.id, False)
    connect(registry, "p")

    result = await coordinator.presenter_join(record.id, "p")

    assert result.role is Role.PRESENTER
    assert registry.lookup("p") == Binding(Role.PRESENTER, record.id)


@pytest.mark.asyncio
async def test_second_presenter_is_rejected(coordinator, registry):
    record, _ = await _live_session(coordinator, registry)
    connect(registry, "p2")

    with pytest.raises(Unauthorized):
        await coordinator.presenter_join(record.id, "p2")
    assert registry.presenter_of(record.id) == "p"


@pytest.mark.asyncio
async def test_viewer_join_notifies_presenter(coordinator, registry):
    record, presenter = await _live_session(coordinator, registry)
    viewer = connect(registry, "v")

    result = await coordinator.viewer_join(record.id, "v")

    assert result.presenter_id == "p"
    assert registry.members_of(record.id) == {"p", "v"}
    assert presenter.events("participant-joined") == [{"connectionId": "v"}]
    assert viewer.messages == []


@pytest.mark.asyncio
async def test_late_presenter_sees_existing_viewers(coordinator, registry):
    record = await coordinator.create_session("http://testserver")
    connect(registry, "v1")
    connect(registry, "v2")
    await coordinator.viewer_join(record.id, "v1")
    await coordinator.viewer_join(record.id, "v2")
    connect(registry, "p")

    result = await coordinator.presenter_join(record.id, "p")

    assert result.participants == ["v1", "v2"]


@pytest.mark.asyncio
async def test_viewer_join_unknown_session_fails(coordinator, registry):
    connect(registry, "v")

    with pytest.raises(NotFound) as exc:
        await coordinator.viewer_join("never-created", "v")
    assert exc.value.message == "Session not found or inactive."


@pytest.mark.asyncio
async def test_repeated_join_is_idempotent(coordinator, registry):
    record, presenter = await _live_session(coordinator, registry)
    connect(registry, "v")

    await coordinator.viewer_join(record.id, "v")
    await coordinator.viewer_join(record.id, "v")

    assert presenter.events("participant-joined") == [{"connectionId": "v"}]


@pytest.mark.asyncio
async def test_bound_connection_cannot_switch_session_or_role(coordinator, registry):
    record, _ = await _live_session(coordinator, registry)
    other = await coordinator.create_session("http://testserver")
    connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")

    with pytest.raises(AlreadyBound):
        await coordinator.viewer_join(other.id, "v")
    with pytest.raises(AlreadyBound):
        await coordinator.presenter_join(other.id, "v")
    assert registry.lookup("v") == Binding(Role.VIEWER, record.id)


@pytest.mark.asyncio
async def test_end_session_tears_down_room(coordinator, registry, store):
    record, presenter = await _live_session(coordinator, registry)
    viewer = connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")

    await coordinator.end_session(record.id, "p")

    assert store.records[record.id].active is False
    assert viewer.events("session-ended") == [{}]
    assert presenter.events("session-ended") == []
    assert registry.members_of(record.id) == set()
    assert registry.lookup("p") is None
    assert registry.lookup("v") is None

    with pytest.raises(NotFound):
        await coordinator.viewer_join(record.id, "v")
    assert await coordinator.session_state(record.id) is SessionState.ENDED


@pytest.mark.asyncio
async def test_end_session_by_viewer_is_unauthorized(coordinator, registry, store):
    record, _ = await _live_session(coordinator, registry)
    connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")

    with pytest.raises(Unauthorized):
        await coordinator.end_session(record.id, "v")
    with pytest.raises(Unauthorized):
        await coordinator.end_session(record.id, "stranger")

    assert store.records[record.id].active is True
    assert store.updates == []


@pytest.mark.asyncio
async def test_end_session_for_other_session_is_unauthorized(coordinator, registry, store):
    await _live_session(coordinator, registry)
    other = await coordinator.create_session("http://testserver")

    with pytest.raises(Unauthorized):
        await coordinator.end_session(other.id, "p")
    assert store.records[other.id].active is True


@pytest.mark.asyncio
async def test_end_session_store_failure_keeps_room(coordinator, registry, store):
    record, _ = await _live_session(coordinator, registry)
    viewer = connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")
    store.fail_update = True

    with pytest.raises(StoreError):
        await coordinator.end_session(record.id, "p")

    assert viewer.events("session-ended") == []
    assert registry.members_of(record.id) == {"p", "v"}
    assert registry.lookup("p") == Binding(Role.PRESENTER, record.id)

    store.fail_update = False
    await coordinator.end_session(record.id, "p")
    assert viewer.events("session-ended") == [{}]


@pytest.mark.asyncio
async def test_presenter_disconnect_ends_session_once(coordinator, registry, store):
    record, _ = await _live_session(coordinator, registry)
    v1 = connect(registry, "v1")
    v2 = connect(registry, "v2")
    await coordinator.viewer_join(record.id, "v1")
    await coordinator.viewer_join(record.id, "v2")

    await coordinator.handle_disconnect("p")
    await coordinator.handle_disconnect("p")

    assert store.records[record.id].active is False
    assert v1.events("session-ended") == [{}]
    assert v2.events("session-ended") == [{}]
    assert registry.members_of(record.id) == set()


@pytest.mark.asyncio
async def test_viewer_disconnect_notifies_room(coordinator, registry, store):
    record, presenter = await _live_session(coordinator, registry)
    connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")

    await coordinator.handle_disconnect("v")
    await coordinator.handle_disconnect("v")

    assert presenter.events("participant-left") == [{"connectionId": "v"}]
    assert store.records[record.id].active is True
    assert registry.members_of(record.id) == {"p"}


@pytest.mark.asyncio
async def test_disconnect_of_unbound_connection_is_noop(coordinator, registry, store):
    record, presenter = await _live_session(coordinator, registry)
    connect(registry, "idle")

    await coordinator.handle_disconnect("idle")

    assert presenter.messages == []
    assert store.updates == []


@pytest.mark.asyncio
async def test_presenter_disconnect_store_failure_is_logged(coordinator, registry, store, caplog):
    record, _ = await _live_session(coordinator, registry)
    viewer = connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")
    store.fail_update = True

    with caplog.at_level(logging.ERROR, logger="app.services.coordinator"):
        await coordinator.handle_disconnect("p")

    assert "Could not deactivate session" in caplog.text
    assert viewer.events("session-ended") == []
    assert registry.lookup("p") is None


@pytest.mark.asyncio
async def test_session_state_transitions(coordinator, registry):
    record, _ = await _live_session(coordinator, registry)
    assert await coordinator.session_state(record.id) is SessionState.CREATED

    connect(registry, "v")
    await coordinator.viewer_join(record.id, "v")
    assert await coordinator.session_state(record.id) is SessionState.STREAMING

    await coordinator.handle_disconnect("v")
    assert await coordinator.session_state(record.id) is SessionState.CREATED

    await coordinator.end_session(record.id, "p")
    assert await coordinator.session_state(record.id) is SessionState.ENDED

    with pytest.raises(NotFound):
        await coordinator.session_state("missing")
