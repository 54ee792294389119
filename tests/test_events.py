"""Tests for EventHub registration, publishing and the asyncio bridge."""
import asyncio
import logging

import pytest

from ftpferry.core.events import AsyncioSchedulerBridge, EventHub
from ftpferry.shared.models import DOWNLOADED, UPLOADED, EventPayload


class ImmediateBridge:
    """Bridge that resumes listeners synchronously and records the order."""

    def __init__(self):
        self.resumed = []

    def resume(self, listener, payload):
        self.resumed.append((listener, payload))
        listener(payload)


@pytest.fixture
def bridge() -> ImmediateBridge:
    return ImmediateBridge()


@pytest.fixture
def hub(bridge) -> EventHub:
    return EventHub(bridge)


def _payload(kind=UPLOADED, file="a.txt", path="/x") -> EventPayload:
    return EventPayload(kind, file, path)


class TestEventHub:
    def test_publish_without_listeners_is_noop(self, hub, bridge):
        assert hub.publish(UPLOADED, _payload()) == 0
        assert bridge.resumed == []

    def test_listeners_fire_in_registration_order(self, hub):
        order = []
        hub.register(UPLOADED, lambda p: order.append("first"))
        hub.register(UPLOADED, lambda p: order.append("second"))

        assert hub.publish(UPLOADED, _payload()) == 2
        assert order == ["first", "second"]

    def test_duplicate_registration_fires_twice(self, hub):
        received = []
        hub.register(UPLOADED, received.append)
        hub.register(UPLOADED, received.append)

        hub.publish(UPLOADED, _payload())

        assert len(received) == 2

    def test_kinds_are_isolated(self, hub):
        uploaded, downloaded = [], []
        hub.register(UPLOADED, uploaded.append)
        hub.register(DOWNLOADED, downloaded.append)

        hub.publish(UPLOADED, _payload())

        assert len(uploaded) == 1
        assert downloaded == []

    def test_unregister_stops_delivery(self, hub):
        received = []
        listener_id = hub.register(UPLOADED, received.append)

        assert hub.unregister(UPLOADED, listener_id) is True
        hub.publish(UPLOADED, _payload())

        assert received == []
        assert hub.unregister(UPLOADED, listener_id) is False

    def test_unregister_removes_only_one_registration(self, hub):
        received = []
        first = hub.register(UPLOADED, received.append)
        hub.register(UPLOADED, received.append)

        hub.unregister(UPLOADED, first)
        hub.publish(UPLOADED, _payload())

        assert len(received) == 1

    def test_registration_during_publish_waits_for_next_event(self, hub):
        late = []

        def register_more(payload):
            hub.register(UPLOADED, late.append)

        hub.register(UPLOADED, register_more)

        assert hub.publish(UPLOADED, _payload()) == 1
        assert late == []

        hub.publish(UPLOADED, _payload(file="b.txt"))
        assert [p.file for p in late] == ["b.txt"]

    def test_unknown_kind_rejected(self, hub):
        with pytest.raises(ValueError, match="Unknown event kind"):
            hub.register("deleted", print)
        with pytest.raises(ValueError):
            hub.publish("renamed", _payload())

    def test_non_callable_listener_rejected(self, hub):
        with pytest.raises(TypeError):
            hub.register(UPLOADED, "not a listener")

    def test_listeners_snapshot(self, hub):
        listener_id = hub.register(DOWNLOADED, print)
        snapshot = hub.listeners(DOWNLOADED)

        assert [r.listener_id for r in snapshot] == [listener_id]
        snapshot.clear()
        assert len(hub.listeners(DOWNLOADED)) == 1


class TestAsyncioSchedulerBridge:
    def test_resume_is_deferred_until_loop_runs(self):
        bridge = AsyncioSchedulerBridge()
        received = []

        async def scenario():
            bridge.resume(received.append, _payload())
            assert received == []
            assert bridge.pending == 1
            await bridge.drain()

        asyncio.run(scenario())

        assert received == [_payload()]
        assert bridge.pending == 0

    def test_coroutine_listener_awaited(self):
        bridge = AsyncioSchedulerBridge()
        received = []

        async def listener(payload):
            await asyncio.sleep(0)
            received.append(payload.file)

        async def scenario():
            bridge.resume(listener, _payload(file="c.txt"))
            await bridge.drain()

        asyncio.run(scenario())
        assert received == ["c.txt"]

    def test_failing_listener_is_logged_and_isolated(self, caplog):
        bridge = AsyncioSchedulerBridge(logger=logging.getLogger("ftpferry.test"))
        received = []

        def broken(payload):
            raise RuntimeError("listener bug")

        async def scenario():
            bridge.resume(broken, _payload())
            bridge.resume(received.append, _payload())
            await bridge.drain()

        with caplog.at_level(logging.ERROR, logger="ftpferry.test"):
            asyncio.run(scenario())

        assert len(received) == 1
        assert "Listener for 'uploaded' failed" in caplog.text

    def test_start_order_matches_resume_order(self):
        bridge = AsyncioSchedulerBridge()
        order = []

        async def scenario():
            for name in ("one", "two", "three"):
                bridge.resume(lambda p, name=name: order.append(name), _payload())
            await bridge.drain()

        asyncio.run(scenario())
        assert order == ["one", "two", "three"]
