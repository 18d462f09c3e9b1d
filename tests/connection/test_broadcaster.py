from __future__ import annotations

import pytest

from ovpnctl.connection import Broadcaster, ConnectionChanged, QueueChannel
from tests.helpers import FailingChannel, FlakyChannel, MINIMAL_CONFIG, RecordingChannel, make_store


def _attached():
    store, bus, _ = make_store()
    broadcaster = Broadcaster(store)
    broadcaster.attach(bus)
    return store, bus, broadcaster


@pytest.mark.anyio
async def test_subscribe_pushes_init_with_current_state() -> None:
    store, _, broadcaster = _attached()
    await store.apply_config(MINIMAL_CONFIG)
    channel = RecordingChannel()

    assert await broadcaster.subscribe(channel) is True

    assert channel.messages == [{"type": "init", "connected": False, "config": MINIMAL_CONFIG}]
    assert broadcaster.count == 1


@pytest.mark.anyio
async def test_single_change_reaches_every_subscriber_once() -> None:
    store, _, broadcaster = _attached()
    channels = [RecordingChannel() for _ in range(3)]
    for channel in channels:
        await broadcaster.subscribe(channel)

    await store.set_connected(True)

    for channel in channels:
        assert channel.messages == [
            {"type": "init", "connected": False, "config": None},
            {"type": "status", "connected": True, "config": None},
        ]


@pytest.mark.anyio
async def test_dead_channel_is_pruned_on_first_failed_push() -> None:
    store, _, broadcaster = _attached()
    alive = RecordingChannel()
    flaky = FlakyChannel(accept=1)
    await broadcaster.subscribe(alive)
    await broadcaster.subscribe(flaky)
    assert broadcaster.count == 2

    await store.set_connected(True)
    await store.set_connected(False)

    assert broadcaster.count == 1
    assert [m["type"] for m in alive.messages] == ["init", "status", "status"]
    assert flaky.messages == [{"type": "init", "connected": False, "config": None}]


@pytest.mark.anyio
async def test_failed_initial_push_drops_channel() -> None:
    _, _, broadcaster = _attached()
    channel = FailingChannel()

    assert await broadcaster.subscribe(channel) is False

    assert broadcaster.count == 0
    assert channel.attempts == 1


@pytest.mark.anyio
async def test_double_subscribe_keeps_one_entry() -> None:
    store, _, broadcaster = _attached()
    channel = RecordingChannel()

    await broadcaster.subscribe(channel)
    await broadcaster.subscribe(channel)
    await store.set_connected(True)

    assert broadcaster.count == 1
    assert [m["type"] for m in channel.messages] == ["init", "init", "status"]


@pytest.mark.anyio
async def test_unsubscribe_is_idempotent_and_stops_delivery() -> None:
    store, _, broadcaster = _attached()
    channel = RecordingChannel()
    await broadcaster.subscribe(channel)

    await broadcaster.unsubscribe(channel)
    await broadcaster.unsubscribe(channel)
    await store.set_connected(True)

    assert broadcaster.count == 0
    assert len(channel.messages) == 1


@pytest.mark.anyio
async def test_notify_all_reports_delivered_count() -> None:
    _, _, broadcaster = _attached()
    await broadcaster.subscribe(RecordingChannel())
    await broadcaster.subscribe(RecordingChannel())

    assert await broadcaster.notify_all() == 2


@pytest.mark.anyio
async def test_closed_queue_channel_is_pruned() -> None:
    store, _, broadcaster = _attached()
    channel = QueueChannel("closing")
    await broadcaster.subscribe(channel)
    assert (await channel.receive(timeout=1))["type"] == "init"

    channel.close()
    await store.set_connected(True)

    assert broadcaster.count == 0


@pytest.mark.anyio
async def test_detach_stops_following_the_bus() -> None:
    store, bus, broadcaster = _attached()
    channel = RecordingChannel()
    await broadcaster.subscribe(channel)

    broadcaster.detach()
    await store.set_connected(True)

    assert bus.subscriber_count(ConnectionChanged) == 0
    assert [m["type"] for m in channel.messages] == ["init"]


@pytest.mark.anyio
async def test_subscribe_twice_then_unsubscribe_once_stops_pushes() -> None:
    store, _, broadcaster = _attached()
    channel = RecordingChannel()

    await broadcaster.subscribe(channel)
    await broadcaster.subscribe(channel)
    await broadcaster.unsubscribe(channel)
    await store.set_connected(True)

    assert broadcaster.count == 0
    assert [m["type"] for m in channel.messages] == ["init", "init"]


@pytest.mark.anyio
async def test_one_dead_channel_among_three_is_pruned_and_others_keep_receiving() -> None:
    store, _, broadcaster = _attached()
    first, second = RecordingChannel(), RecordingChannel()
    dead = FlakyChannel(accept=1)
    for channel in (first, dead, second):
        await broadcaster.subscribe(channel)

    await store.set_connected(True)

    assert broadcaster.count == 2
    for channel in (first, second):
        assert channel.messages[-1] == {"type": "status", "connected": True, "config": None}
    assert len(dead.messages) == 1

    await store.set_connected(False)

    assert broadcaster.count == 2
    assert [len(first.messages), len(second.messages), len(dead.messages)] == [3, 3, 1]
