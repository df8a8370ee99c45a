"""Tests for the in-memory websocket connection registry."""

from __future__ import annotations

import anyio
import pytest

from app.infrastructure.notifications import InMemoryConnectionRegistry
from app.infrastructure.notifications.manager import EVICTED_CLOSE_CODE

pytestmark = pytest.mark.anyio


async def test_send_without_connection_returns_false(registry) -> None:
    assert await registry.send(1, "{}") is False
    assert registry.is_connected(1) is False


async def test_send_delivers_to_registered_connection(registry, connection_factory) -> None:
    connection = connection_factory()
    registry.register(1, connection)

    assert await registry.send(1, '{"hello": "world"}') is True
    assert connection.sent == ['{"hello": "world"}']


async def test_register_replaces_previous_connection(registry, connection_factory) -> None:
    old, new = connection_factory(), connection_factory()
    registry.register(7, old)
    registry.register(7, new)

    assert await registry.send(7, "payload") is True
    assert old.sent == []
    assert new.sent == ["payload"]
    assert registry.connected_count() == 1


async def test_stale_unregister_keeps_newer_connection(registry, connection_factory) -> None:
    old, new = connection_factory(), connection_factory()
    registry.register(7, old)
    registry.register(7, new)

    assert registry.unregister(7, old) is False
    assert registry.is_connected(7) is True

    assert registry.unregister(7, new) is True
    assert registry.is_connected(7) is False


async def test_transport_error_evicts_connection(registry, connection_factory) -> None:
    broken = connection_factory(fail_after=0)
    registry.register(3, broken)

    assert await registry.send(3, "payload") is False
    assert registry.is_connected(3) is False
    assert await registry.send(3, "payload") is False


async def test_slow_write_times_out_and_evicts(connection_factory) -> None:
    registry = InMemoryConnectionRegistry(send_timeout=0.05)
    slow = connection_factory(delay=1.0)
    registry.register(4, slow)

    assert await registry.send(4, "payload") is False
    assert registry.is_connected(4) is False
    assert slow.sent == []


async def test_connected_count_tracks_distinct_recipients(registry, connection_factory) -> None:
    registry.register(1, connection_factory())
    registry.register(2, connection_factory())
    registry.register(2, connection_factory())

    assert registry.connected_count() == 2


async def test_evicted_connection_is_closed(connection_factory) -> None:
    registry = InMemoryConnectionRegistry(send_timeout=0.05)
    stalled = connection_factory(stalled_writes=1)
    registry.register(4, stalled)

    assert await registry.send(4, "first") is False
    assert stalled.close_codes == [EVICTED_CLOSE_CODE]
    assert await registry.send(4, "second") is False
    assert stalled.sent == []


async def test_close_failure_after_eviction_is_suppressed(registry, connection_factory) -> None:
    broken = connection_factory(fail_after=0, close_error=True)
    registry.register(5, broken)

    assert await registry.send(5, "payload") is False
    assert registry.is_connected(5) is False


async def test_healthy_replacement_survives_eviction_of_old_handle(connection_factory) -> None:
    registry = InMemoryConnectionRegistry(send_timeout=0.05)
    stalled, fresh = connection_factory(stalled_writes=1), connection_factory()
    registry.register(6, stalled)

    async with anyio.create_task_group() as tg:
        tg.start_soon(registry.send, 6, "lost")
        await anyio.sleep(0.01)
        registry.register(6, fresh)

    assert stalled.closed is True
    assert fresh.closed is False
    assert await registry.send(6, "kept") is True
    assert fresh.sent == ["kept"]


async def test_concurrent_register_unregister_and_send_keep_one_handle(
    registry, connection_factory
) -> None:
    handles = [connection_factory() for _ in range(8)]
    results: list[bool] = []

    def churn(handle) -> None:
        for _ in range(200):
            registry.register(1, handle)
            assert registry.connected_count() <= 1
            registry.unregister(1, handle)

    async def sender() -> None:
        for index in range(200):
            results.append(await registry.send(1, f"payload-{index}"))
            await anyio.sleep(0)

    async with anyio.create_task_group() as tg:
        for handle in handles:
            tg.start_soon(anyio.to_thread.run_sync, churn, handle)
        for _ in range(3):
            tg.start_soon(sender)

    assert registry.connected_count() == 0
    assert registry.is_connected(1) is False
    assert len(results) == 600
    delivered = [item for handle in handles for item in handle.sent]
    assert len(delivered) == results.count(True)
    assert all(not handle.closed for handle in handles)
