"""
launcher/services/connectivity.py

Process-wide network reachability tracking.
The platform listener may call on_path_update from any worker thread; every
update is marshaled onto the owning event loop before state is touched, so
readers never see a half-applied change.
"""

import asyncio
from typing import Optional

import structlog

from launcher.events import EventChannel
from launcher.exceptions import MonitorNotBoundError
from launcher.schemas import ConnectivityState, NetworkPath

logger = structlog.get_logger(__name__)


class ConnectivityMonitor:
    """
    Tracks reachability and emits "restored" on every inactive -> active edge.

    Create exactly one per process and pass it to whoever needs it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._state = ConnectivityState()
        self.restored: EventChannel[None] = EventChannel("connectivity_restored")

    def bind(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Attach to the event loop that owns launch state (defaults to the running one)."""
        self._loop = loop or asyncio.get_running_loop()

    def current(self) -> ConnectivityState:
        return self._state

    def on_path_update(self, path: NetworkPath) -> None:
        """Thread-safe entry point for the platform reachability listener."""
        if self._loop is None:
            raise MonitorNotBoundError("connectivity monitor is not bound to an event loop")
        self._loop.call_soon_threadsafe(self.apply, path)

    def apply(self, path: NetworkPath) -> None:
        """Apply a path update. Must run on the owning event loop."""
        was_active = self._state.active
        self._state = ConnectivityState.from_path(path)

        logger.info(
            "connectivity_changed",
            active=self._state.active,
            interface=self._state.interface_class.value,
            expensive=self._state.is_expensive,
            constrained=self._state.is_constrained,
        )

        # Listeners observe the new state
        if not was_active and self._state.active:
            logger.info("connectivity_restored")
            self.restored.publish(None)
