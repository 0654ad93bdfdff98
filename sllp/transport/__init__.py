"""Transport adapters consumed by the SLLP client.

The client never moves bytes itself: it hands complete messages to a
transport and expects one complete response back. Framing on the medium
(sockets, serial lines, in-process calls) is the transport's concern.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from ..errors import InvalidArgument

SendFunc = Callable[[bytes], bool | None]
ReceiveFunc = Callable[[], bytes | None]


@runtime_checkable
class Transport(Protocol):
    """Blocking send/receive pair.

    ``send`` returns False to report a failure (None counts as success);
    ``receive`` returns None for the same.
    Raising ``OSError`` from either is also treated as a failure.
    """

    def send(self, data: bytes) -> bool | None: ...

    def receive(self) -> bytes | None: ...


class CallableTransport:
    """Adapts two plain callables to the :class:`Transport` protocol."""

    def __init__(self, send: SendFunc, receive: ReceiveFunc) -> None:
        if not callable(send) or not callable(receive):
            raise InvalidArgument("send and receive must be callable")
        self._send = send
        self._receive = receive

    def send(self, data: bytes) -> bool | None:
        return self._send(data)

    def receive(self) -> bytes | None:
        return self._receive()


__all__ = ["CallableTransport", "ReceiveFunc", "SendFunc", "Transport"]
