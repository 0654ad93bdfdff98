"""Protocol constants, command codes and wire schemas for SLLP."""
from __future__ import annotations
from construct import BitStruct, BitsInteger, Bytes, Flag, Int8ub, Int16ub, Nibble, this  # type: ignore
from construct import Struct as BinStruct  # type: ignore
from enum import IntEnum, StrEnum
from typing import Final

HEADER_SIZE: Final[int] = 3
MAX_PAYLOAD_SIZE: Final[int] = 65535
MAX_MESSAGE_SIZE: Final[int] = HEADER_SIZE + MAX_PAYLOAD_SIZE

WRITABLE_MASK: Final[int] = 0x80
SIZE_MASK: Final[int] = 0x7F
VAR_MAX_SIZE: Final[int] = 128

CURVE_LIST_INFO_SIZE: Final[int] = 5
CURVE_BLOCK_INFO_SIZE: Final[int] = 3
CURVE_MAX_BLOCKS: Final[int] = 65536
CURVE_CSUM_SIZE: Final[int] = 16
CURVE_MAX_OFFSET: Final[int] = 65535

FUNC_MAX_INPUT: Final[int] = 15
FUNC_MAX_OUTPUT: Final[int] = 15

LEGACY_VERSION: Final[tuple[int, int, int]] = (1, 0, 0)
VERSION_FORMAT: Final[str] = "{major:d}.{minor:02d}.{revision:03d}"
VERSION_PAYLOAD_SIZE: Final[int] = 3

UINT8_MAX: Final[int] = 255


class Command(IntEnum):
    QUERY_VERSION = 0x00
    VERSION = 0x01
    VAR_QUERY_LIST = 0x02
    VAR_LIST = 0x03
    GROUP_QUERY_LIST = 0x04
    GROUP_LIST = 0x05
    GROUP_QUERY = 0x06
    GROUP = 0x07
    CURVE_QUERY_LIST = 0x08
    CURVE_LIST = 0x09
    CURVE_QUERY_CSUM = 0x0A
    CURVE_CSUM = 0x0B
    FUNC_QUERY_LIST = 0x0C
    FUNC_LIST = 0x0D
    VAR_READ = 0x10
    VAR_VALUE = 0x11
    GROUP_READ = 0x12
    GROUP_VALUES = 0x13
    VAR_WRITE = 0x20
    GROUP_WRITE = 0x22
    VAR_BIN_OP = 0x24
    GROUP_BIN_OP = 0x26
    VAR_WRITE_READ = 0x28
    GROUP_CREATE = 0x30
    GROUP_REMOVE_ALL = 0x32
    CURVE_BLOCK_REQUEST = 0x40
    CURVE_BLOCK = 0x41
    CURVE_RECALC_CSUM = 0x42
    FUNC_EXECUTE = 0x50
    FUNC_RETURN = 0x51
    FUNC_ERROR = 0x53
    OK = 0xE0  # Generic acknowledgement.
    ERR_MALFORMED_MESSAGE = 0xE1  # Server could not parse the request.
    ERR_OP_NOT_SUPPORTED = 0xE2  # Command unknown to the server.
    ERR_INVALID_ID = 0xE3  # Entity id out of range on the server.
    ERR_INVALID_VALUE = 0xE4  # Value rejected by the server.
    ERR_INVALID_PAYLOAD_SIZE = 0xE5  # Payload length does not match the entity.
    ERR_READ_ONLY = 0xE6  # Write attempted on a read-only entity.
    ERR_INSUFFICIENT_MEMORY = 0xE7  # Server ran out of room (e.g. group slots).
    ERR_RESOURCE_BUSY = 0xE8  # Server resource temporarily unavailable.


class BinOp(StrEnum):
    AND = "A"
    OR = "O"
    XOR = "X"
    SET = "S"
    CLEAR = "C"
    TOGGLE = "T"


SERVER_ERROR_CODES: frozenset[int] = frozenset({
    Command.ERR_MALFORMED_MESSAGE.value,
    Command.ERR_OP_NOT_SUPPORTED.value,
    Command.ERR_INVALID_ID.value,
    Command.ERR_INVALID_VALUE.value,
    Command.ERR_INVALID_PAYLOAD_SIZE.value,
    Command.ERR_READ_ONLY.value,
    Command.ERR_INSUFFICIENT_MEMORY.value,
    Command.ERR_RESOURCE_BUSY.value,
})

HEADER_STRUCT: Final = BinStruct(
    "code" / Int8ub,
    "payload_size" / Int16ub,
)
MESSAGE_STRUCT: Final = BinStruct(
    "header" / HEADER_STRUCT,
    "payload" / Bytes(this.header.payload_size),
)
ENTRY_INFO_STRUCT: Final = BitStruct(
    "writable" / Flag,
    "size" / BitsInteger(7),
)
FUNC_INFO_STRUCT: Final = BitStruct(
    "input_size" / Nibble,
    "output_size" / Nibble,
)
CURVE_INFO_STRUCT: Final = BinStruct(
    "writable" / Int8ub,
    "block_size" / Int16ub,
    "nblocks" / Int16ub,
)
CURVE_BLOCK_INFO_STRUCT: Final = BinStruct(
    "curve_id" / Int8ub,
    "offset" / Int16ub,
)
VERSION_STRUCT: Final = BinStruct(
    "major" / Int8ub,
    "minor" / Int8ub,
    "revision" / Int8ub,
)
BIN_OP_HEADER_STRUCT: Final = BinStruct(
    "entity_id" / Int8ub,
    "op" / Int8ub,
)

_CODE_DESCRIPTIONS: dict[int, str] = {
    Command.OK.value: "Operation acknowledged",
    Command.ERR_MALFORMED_MESSAGE.value: "Malformed message",
    Command.ERR_OP_NOT_SUPPORTED.value: "Operation not supported",
    Command.ERR_INVALID_ID.value: "Invalid entity id",
    Command.ERR_INVALID_VALUE.value: "Invalid value",
    Command.ERR_INVALID_PAYLOAD_SIZE.value: "Invalid payload size",
    Command.ERR_READ_ONLY.value: "Entity is read-only",
    Command.ERR_INSUFFICIENT_MEMORY.value: "Insufficient memory on server",
    Command.ERR_RESOURCE_BUSY.value: "Resource busy",
}


def describe_code(code: int | None) -> str:
    """Return a human-readable name for a response command code."""
    if code is None:
        return "no response"
    description = _CODE_DESCRIPTIONS.get(code)
    if description is not None:
        return description
    try:
        return Command(code).name
    except ValueError:
        return f"unknown code 0x{code:02X}"
