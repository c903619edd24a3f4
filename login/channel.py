from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")


async def _cancel(task: asyncio.Future) -> None:
    if task.done():
        return
    task.cancel()
    await asyncio.wait({task})


class OutcomeChannel(Generic[T]):
    """Single-slot handoff from the login server to the program that owns it.

    Neither ``send`` nor ``close`` blocks. ``send`` returns False, dropping the
    item, when the slot is occupied or the channel is closed. An item already
    in the slot can still be received after closing.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    def send(self, item: T) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            return False
        return True

    async def receive(self) -> T | None:
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.closed:
            return None

        get_task = asyncio.ensure_future(self._queue.get())
        closed_task = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({get_task, closed_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The item was taken off the queue but never handed out; put it back.
            if get_task.done() and not get_task.cancelled() and self._queue.empty():
                self._queue.put_nowait(get_task.result())
            raise
        finally:
            await _cancel(get_task)
            await _cancel(closed_task)

        if get_task.done() and not get_task.cancelled():
            return get_task.result()
        if not self._queue.empty():
            return self._queue.get_nowait()
        return None

    def receiver(self) -> "Receiver[T]":
        return Receiver(self)


class Receiver(Generic[T]):
    """Receive-only view of an :class:`OutcomeChannel`."""

    def __init__(self, channel: OutcomeChannel[T]) -> None:
        self._channel = channel

    @property
    def closed(self) -> bool:
        return self._channel.closed

    async def receive(self) -> T | None:
        return await self._channel.receive()
