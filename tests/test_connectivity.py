"""
tests/test_connectivity.py

Unit tests for launcher/services/connectivity.py and launcher/events.py.
"""

import asyncio

import pytest

from launcher.events import EventChannel
from launcher.exceptions import MonitorNotBoundError
from launcher.schemas import InterfaceClass
from launcher.services.connectivity import ConnectivityMonitor
from tests.fixtures import build_path


def test_monitor_starts_inactive() -> None:
    """Nothing is reachable until the first path update arrives."""
    monitor = ConnectivityMonitor()
    state = monitor.current()
    assert state.active is False
    assert state.interface_class == InterfaceClass.OTHER


def test_interface_class_prefers_cellular_then_wifi_then_wired() -> None:
    """The first preferred interface used by the path wins."""
    monitor = ConnectivityMonitor()

    monitor.apply(build_path(interfaces=[InterfaceClass.WIFI, InterfaceClass.CELLULAR]))
    assert monitor.current().interface_class == InterfaceClass.CELLULAR

    monitor.apply(build_path(interfaces=[InterfaceClass.WIRED_ETHERNET, InterfaceClass.WIFI]))
    assert monitor.current().interface_class == InterfaceClass.WIFI

    monitor.apply(build_path(interfaces=[]))
    assert monitor.current().interface_class == InterfaceClass.OTHER


def test_path_flags_are_copied() -> None:
    """Expensive and constrained flags follow the latest path."""
    monitor = ConnectivityMonitor()
    monitor.apply(build_path(is_expensive=True, is_constrained=True))
    state = monitor.current()
    assert state.is_expensive is True
    assert state.is_constrained is True


def test_restored_fires_once_per_inactive_to_active_edge() -> None:
    """Repeated active updates do not re-fire; a new edge does."""
    monitor = ConnectivityMonitor()
    observed: list[bool] = []
    monitor.restored.subscribe(lambda _: observed.append(monitor.current().active))

    monitor.apply(build_path(satisfied=True))
    monitor.apply(build_path(satisfied=True, interfaces=[InterfaceClass.CELLULAR]))
    assert observed == [True]

    monitor.apply(build_path(satisfied=False))
    assert observed == [True]

    monitor.apply(build_path(satisfied=True))
    assert observed == [True, True]


@pytest.mark.asyncio
async def test_updates_from_worker_thread_are_marshaled_onto_loop() -> None:
    """A background listener's update is applied on the owning loop."""
    monitor = ConnectivityMonitor()
    monitor.bind()
    restored: list[None] = []
    monitor.restored.subscribe(restored.append)

    await asyncio.to_thread(monitor.on_path_update, build_path(satisfied=True))
    await asyncio.sleep(0)

    assert monitor.current().active is True
    assert len(restored) == 1


def test_unbound_monitor_rejects_thread_updates() -> None:
    """Without a loop there is nowhere to marshal the update to."""
    monitor = ConnectivityMonitor()
    with pytest.raises(MonitorNotBoundError):
        monitor.on_path_update(build_path())


@pytest.mark.asyncio
async def test_restored_stream_only_sees_later_edges() -> None:
    """Stream subscribers attached after an edge miss it."""
    monitor = ConnectivityMonitor()
    monitor.apply(build_path(satisfied=True))
    monitor.apply(build_path(satisfied=False))

    stream = monitor.restored.stream()

    async def next_restored() -> None:
        return await stream.__anext__()

    next_event = asyncio.create_task(next_restored())
    await asyncio.sleep(0)
    assert not next_event.done()

    monitor.apply(build_path(satisfied=True))
    assert await asyncio.wait_for(next_event, timeout=1.0) is None
    await stream.aclose()
    assert monitor.restored.subscriber_count == 0


def test_failing_handler_does_not_block_others() -> None:
    """A raising subscriber is logged and the next one still runs."""
    channel: EventChannel[str] = EventChannel("test_channel")
    received: list[str] = []

    def broken(_: str) -> None:
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(received.append)
    channel.publish("value")

    assert received == ["value"]


def test_duplicate_subscription_is_ignored() -> None:
    """The same handler is only called once per publish."""
    channel: EventChannel[int] = EventChannel("test_channel")
    received: list[int] = []
    channel.subscribe(received.append)
    channel.subscribe(received.append)
    channel.publish(1)
    channel.unsubscribe(received.append)
    channel.publish(2)

    assert received == [1]
