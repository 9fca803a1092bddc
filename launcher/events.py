"""
launcher/events.py

Typed in-process event channels.
Each component owns its channels; subscribers register callbacks or iterate
an async stream. Publishing always happens on the event loop that owns the
launch state, so handlers run without locks.
"""

import asyncio
from typing import AsyncIterator, Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

EventHandler = Callable[[T], None]


class EventChannel(Generic[T]):
    """A named publish/subscribe channel carrying values of one type."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[EventHandler] = []
        self._queues: set[asyncio.Queue] = set()

    def subscribe(self, handler: EventHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, value: T) -> None:
        """Deliver a value to every callback and every open stream."""
        for handler in list(self._handlers):
            try:
                handler(value)
            except Exception as exc:
                # One failing handler must not stop delivery to the others
                logger.exception(
                    "event_handler_failed",
                    channel=self.name,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(exc),
                )
        for queue in list(self._queues):
            queue.put_nowait(value)

    async def stream(self) -> AsyncIterator[T]:
        """
        Lazily subscribe and yield every value published from now on.

        The subscription starts on first iteration; values published before
        that are not replayed.
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers) + len(self._queues)
