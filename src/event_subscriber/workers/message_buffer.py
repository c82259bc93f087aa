"""Bounded hand-off between the receive loop and the workers."""
from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

from event_subscriber.domain.entities.message import RawMessage

_T = TypeVar("_T")


class OperationCancelled(Exception):
    """The cancellation event fired before the awaited operation finished."""


async def until_cancelled(aw: Awaitable[_T], cancelled: asyncio.Event) -> _T:
    """Await *aw* unless *cancelled* is set first; the loser is cancelled."""
    op = asyncio.ensure_future(aw)
    stop = asyncio.ensure_future(cancelled.wait())
    try:
        done, _ = await asyncio.wait({op, stop}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        op.cancel()
        stop.cancel()
        raise

    if op in done:
        stop.cancel()
        return op.result()

    op.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await op
    raise OperationCancelled


class MessageBuffer:
    """Single-producer / multi-consumer bounded queue of received messages."""

    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError("buffer size must be at least 1")
        self._queue: asyncio.Queue[RawMessage] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Refuse further writes. Buffered messages stay readable."""
        self._closed = True

    async def put(self, message: RawMessage, cancelled: asyncio.Event) -> None:
        """Block while the buffer is full.

        Raises OperationCancelled if the buffer is closed or *cancelled* fires
        before the message is accepted.
        """
        if self._closed or cancelled.is_set():
            raise OperationCancelled
        await until_cancelled(self._queue.put(message), cancelled)

    async def get(self, cancelled: asyncio.Event) -> RawMessage:
        return await until_cancelled(self._queue.get(), cancelled)

    def get_nowait(self) -> RawMessage | None:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
