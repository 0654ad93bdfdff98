"""SLLP data structures and catalog record decoding.

Hybrid Construct + msgspec records: Construct describes the wire layout
(bitfields, big-endian integers), msgspec carries the typed, immutable
result handed to callers.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Type, TypeVar

import msgspec
from construct import Construct, ConstructError, GreedyRange  # type: ignore

from ..errors import Malformed
from . import protocol

T = TypeVar("T", bound="BaseStruct")


class BaseStruct(msgspec.Struct, frozen=True):
    """Base class for hybrid Msgspec/Construct structures."""

    _SCHEMA: ClassVar[Construct]

    @classmethod
    def decode(cls: Type[T], data: bytes | bytearray | memoryview) -> T:
        """Decode binary data into a typed Msgspec struct."""
        if not data:
            raise Malformed("Empty payload")
        try:
            container: Any = cls._SCHEMA.parse(bytes(data))
        except ConstructError as e:
            raise Malformed(f"{cls.__name__} parsing failed: {e}") from e
        return cls(**{k: v for k, v in container.items() if not k.startswith("_")})

    def encode(self) -> bytes:
        """Encode the typed Msgspec struct into binary data."""
        return self._SCHEMA.build(msgspec.structs.asdict(self))


# --- Wire Packets ---


class VersionPacket(BaseStruct, frozen=True):
    major: int
    minor: int
    revision: int

    _SCHEMA = protocol.VERSION_STRUCT


class EntryInfoPacket(BaseStruct, frozen=True):
    """One catalog byte: writable flag in bit 7, size/count in bits 0-6."""

    writable: bool
    size: int

    _SCHEMA = protocol.ENTRY_INFO_STRUCT


class FunctionInfoPacket(BaseStruct, frozen=True):
    input_size: int
    output_size: int

    _SCHEMA = protocol.FUNC_INFO_STRUCT


class CurveInfoPacket(BaseStruct, frozen=True):
    writable: int
    block_size: int
    nblocks: int

    _SCHEMA = protocol.CURVE_INFO_STRUCT


class CurveBlockInfoPacket(BaseStruct, frozen=True):
    curve_id: int
    offset: int

    _SCHEMA = protocol.CURVE_BLOCK_INFO_STRUCT


class BinOpHeaderPacket(BaseStruct, frozen=True):
    entity_id: int
    op: int

    _SCHEMA = protocol.BIN_OP_HEADER_STRUCT


# --- Catalog Records ---


class Version(msgspec.Struct, frozen=True):
    """Protocol version reported by the server."""

    major: int
    minor: int
    revision: int

    @property
    def text(self) -> str:
        return protocol.VERSION_FORMAT.format(major=self.major, minor=self.minor, revision=self.revision)

    @classmethod
    def legacy(cls) -> Version:
        major, minor, revision = protocol.LEGACY_VERSION
        return cls(major=major, minor=minor, revision=revision)

    def __str__(self) -> str:
        return self.text


class VariableInfo(msgspec.Struct, frozen=True, eq=False):
    """A Variable entry; ``id`` is its position in the Variable catalog."""

    id: int
    writable: bool
    size: Annotated[int, msgspec.Meta(ge=1, le=protocol.VAR_MAX_SIZE)]


class GroupInfo(msgspec.Struct, frozen=True, eq=False):
    """A Group entry holding Variable ids tagged with the catalog generation."""

    id: int
    writable: bool
    size: int
    variable_ids: tuple[int, ...]
    generation: int


class CurveInfo(msgspec.Struct, frozen=True, eq=False):
    """A Curve entry. ``checksum`` is None when it could not be fetched."""

    id: int
    writable: bool
    block_size: int
    nblocks: Annotated[int, msgspec.Meta(ge=1, le=protocol.CURVE_MAX_BLOCKS)]
    checksum: bytes | None = None


class FunctionInfo(msgspec.Struct, frozen=True, eq=False):
    id: int
    input_size: Annotated[int, msgspec.Meta(ge=0, le=protocol.FUNC_MAX_INPUT)]
    output_size: Annotated[int, msgspec.Meta(ge=0, le=protocol.FUNC_MAX_OUTPUT)]


class FunctionResult(msgspec.Struct, frozen=True):
    """Outcome of a remote function call.

    ``failed`` records whether the server answered with a function error
    response; ``error`` then holds its error byte, whatever its value.
    On success ``output`` holds the returned bytes.
    """

    error: int
    output: bytes = b""
    failed: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


# --- Catalog Payload Decoders ---


def decode_version(payload: bytes) -> Version:
    if len(payload) < protocol.VERSION_PAYLOAD_SIZE:
        raise Malformed(f"Version payload has {len(payload)} bytes, expected {protocol.VERSION_PAYLOAD_SIZE}")
    packet = VersionPacket.decode(payload[: protocol.VERSION_PAYLOAD_SIZE])
    return Version(major=packet.major, minor=packet.minor, revision=packet.revision)


def decode_variable_list(payload: bytes) -> tuple[VariableInfo, ...]:
    """One byte per Variable; a size field of 0 means the maximum size."""
    variables: list[VariableInfo] = []
    for index, raw in enumerate(payload):
        entry = EntryInfoPacket.decode(bytes([raw]))
        variables.append(
            VariableInfo(
                id=index,
                writable=entry.writable,
                size=entry.size or protocol.VAR_MAX_SIZE,
            )
        )
    return tuple(variables)


def decode_group_list(payload: bytes) -> tuple[EntryInfoPacket, ...]:
    """One byte per Group: writable flag and member count."""
    return tuple(EntryInfoPacket.decode(bytes([raw])) for raw in payload)


def decode_curve_list(payload: bytes) -> tuple[CurveInfoPacket, ...]:
    """Fixed 5-byte records; a trailing partial record is ignored."""
    count = len(payload) // protocol.CURVE_LIST_INFO_SIZE
    usable = payload[: count * protocol.CURVE_LIST_INFO_SIZE]
    if not usable:
        return ()
    records = GreedyRange(protocol.CURVE_INFO_STRUCT).parse(usable)
    return tuple(
        CurveInfoPacket(writable=record.writable, block_size=record.block_size, nblocks=record.nblocks)
        for record in records
    )


def decode_function_list(payload: bytes) -> tuple[FunctionInfo, ...]:
    functions: list[FunctionInfo] = []
    for index, raw in enumerate(payload):
        entry = FunctionInfoPacket.decode(bytes([raw]))
        functions.append(FunctionInfo(id=index, input_size=entry.input_size, output_size=entry.output_size))
    return tuple(functions)
