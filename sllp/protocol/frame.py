"""Message building and parsing for the SLLP wire format.

Message layout::

    [Code (1 byte)] [Payload length (2 bytes, big-endian)] [Payload (0-65535 bytes)]

The length field is never trusted on its own: parsing checks it against the
number of bytes actually received, and bytes past the declared payload are
ignored.
"""

from __future__ import annotations

import msgspec
from construct import ConstructError

from ..errors import InvalidArgument, Malformed
from . import protocol


class Frame(msgspec.Struct, frozen=True, kw_only=True):
    """A protocol message: one command code and its payload.

    Attributes:
        code: The command or response code (8-bit).
        payload: The message payload (0 to MAX_PAYLOAD_SIZE bytes).
    """

    code: int
    payload: bytes = b""

    @staticmethod
    def build(code: int, payload: bytes = b"") -> bytes:
        """Build the raw header + payload bytes for *code*."""
        payload_len = len(payload)
        if payload_len > protocol.MAX_PAYLOAD_SIZE:
            raise InvalidArgument(f"Payload too large ({payload_len} bytes); max is {protocol.MAX_PAYLOAD_SIZE}")
        if not 0 <= code <= protocol.UINT8_MAX:
            raise InvalidArgument(f"Command code {code} outside 8-bit range")

        return protocol.MESSAGE_STRUCT.build({
            "header": {"code": code, "payload_size": payload_len},
            "payload": bytes(payload),
        })

    @staticmethod
    def parse(raw_message: bytes | bytearray | memoryview) -> tuple[int, bytes]:
        """Parse a received buffer into ``(code, payload)``."""
        data_bytes = bytes(raw_message)
        total_len = len(data_bytes)

        if total_len < protocol.HEADER_SIZE:
            raise Malformed(f"Incomplete message: size {total_len} is less than header size {protocol.HEADER_SIZE}")

        try:
            container = protocol.MESSAGE_STRUCT.parse(data_bytes)
        except ConstructError as e:
            declared = int.from_bytes(data_bytes[1:3], "big")
            raise Malformed(
                f"Declared payload of {declared} bytes but only {total_len - protocol.HEADER_SIZE} received"
            ) from e

        return container.header.code, container.payload

    def to_bytes(self) -> bytes:
        """Serialize the instance using :meth:`build`."""
        return self.build(self.code, self.payload)

    @classmethod
    def from_bytes(cls, raw_message: bytes | bytearray | memoryview) -> "Frame":
        """Parse *raw_message* and create a :class:`Frame`."""
        code, payload = cls.parse(raw_message)
        return cls(code=code, payload=payload)

    def __repr__(self) -> str:
        return f"Frame(code=0x{self.code:02X}, payload={self.payload.hex(' ') if self.payload else '(empty)'})"


def encode(code: int, payload: bytes = b"") -> bytes:
    return Frame.build(code, payload)


def decode(raw_message: bytes | bytearray | memoryview) -> tuple[int, bytes]:
    return Frame.parse(raw_message)
