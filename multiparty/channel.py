"""Unbounded asynchronous channels and bidirectional channel pairs."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, ClassVar, Deque, Optional, Tuple

__all__ = [
    "ChannelClosedError",
    "Nil",
    "Sender",
    "Receiver",
    "unbounded",
    "Bidirectional",
    "bidirectional_pair",
]


class ChannelClosedError(Exception):
    """A message was sent on a channel that has been closed."""

    def __init__(self) -> None:
        super().__init__("send failed because the channel is closed")


@dataclass(frozen=True)
class Nil:
    """A route that carries nothing."""

    _CHANNELS: ClassVar[Tuple[Any, ...]] = ()

    def seal(self) -> None:
        """Seal every channel of the route; a nil route holds none."""
        for channel in self._CHANNELS:
            channel.seal()

    def is_sealed(self) -> bool:
        """A nil route is never sealed."""
        return False


class _Shared:
    def __init__(self) -> None:
        self.buffer: Deque[Any] = deque()
        self.closed = False
        self.waiters: Deque[asyncio.Future] = deque()

    def wake(self) -> None:
        while self.waiters:
            waiter = self.waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)


class Sender:
    """The sending half of an unbounded channel."""

    def __init__(self, shared: _Shared) -> None:
        self._shared = shared

    async def send(self, item: Any) -> None:
        """Queue an item; raises ChannelClosedError if the channel is closed."""
        if self._shared.closed:
            raise ChannelClosedError()
        self._shared.buffer.append(item)
        self._shared.wake()

    def seal(self) -> None:
        """Close the channel; items already queued can still be received."""
        self._shared.closed = True
        self._shared.wake()

    def is_sealed(self) -> bool:
        """True if the channel has been closed from either end."""
        return self._shared.closed


class Receiver:
    """The receiving half of an unbounded channel."""

    def __init__(self, shared: _Shared) -> None:
        self._shared = shared

    async def receive(self) -> Optional[Any]:
        """Wait for the next item; return None once the channel is closed and drained."""
        shared = self._shared
        while not shared.buffer:
            if shared.closed:
                return None
            waiter = asyncio.get_running_loop().create_future()
            shared.waiters.append(waiter)
            await waiter
        return shared.buffer.popleft()

    def seal(self) -> None:
        """Close the channel so that no more items can be sent."""
        self._shared.closed = True
        self._shared.wake()

    def is_sealed(self) -> bool:
        """A receiver is passive and never reports itself sealed."""
        return False

    def __aiter__(self) -> "Receiver":
        return self

    async def __anext__(self) -> Any:
        item = await self.receive()
        if item is None and self._shared.closed and not self._shared.buffer:
            raise StopAsyncIteration
        return item


def unbounded() -> Tuple[Sender, Receiver]:
    """Create a connected sender and receiver with an unbounded buffer."""
    shared = _Shared()
    return Sender(shared), Receiver(shared)


class Bidirectional:
    """A sender and a receiver used together as one route to a peer.

    Sealing only stops receiving: the sealed route yields no more items.
    """

    def __init__(self, sender: Any, receiver: Any) -> None:
        self.sender = sender
        self.receiver = receiver
        self._sealed = False

    def __repr__(self) -> str:
        return f"Bidirectional(sealed={self._sealed})"

    async def send(self, item: Any) -> None:
        """Send an item through the sending half."""
        await self.sender.send(item)

    async def receive(self) -> Optional[Any]:
        """Receive an item, or None if this route is sealed or its channel ended."""
        if self._sealed:
            return None
        return await self.receiver.receive()

    def seal(self) -> None:
        """Mark this route as sealed."""
        self._sealed = True

    def is_sealed(self) -> bool:
        """True once the route has been sealed."""
        return self._sealed


def bidirectional_pair() -> Tuple[Bidirectional, Bidirectional]:
    """Create two routes where what one sends the other receives."""
    left_sender, right_receiver = unbounded()
    right_sender, left_receiver = unbounded()
    return (
        Bidirectional(left_sender, left_receiver),
        Bidirectional(right_sender, right_receiver),
    )