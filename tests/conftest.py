"""Pytest configuration for SLLP client tests."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from unittest.mock import MagicMock

import pytest

from sllp.client import Client
from sllp.protocol import frame, protocol
from sllp.protocol.protocol import Command

FunctionHandler = Callable[[bytes], tuple[int, bytes]]


@dataclass
class FakeVariable:
    writable: bool
    value: bytearray


@dataclass
class FakeGroup:
    writable: bool
    members: list[int]


@dataclass
class FakeCurve:
    writable: bool
    block_size: int
    nblocks: int
    data: bytearray = field(default_factory=bytearray)
    checksum: bytes = b""

    def recalc(self) -> None:
        self.checksum = hashlib.md5(bytes(self.data), usedforsecurity=False).digest()


@dataclass
class FakeFunction:
    input_size: int
    output_size: int
    handler: FunctionHandler


def _sum_function(data: bytes) -> tuple[int, bytes]:
    if not any(data):
        return 7, b""
    return 0, bytes([sum(data) & 0xFF])


def _constant_function(data: bytes) -> tuple[int, bytes]:
    return 0, b"abc"


class FakeDevice:
    """In-process SLLP server speaking through the client's transport calls.

    Every request is answered by a small state machine mirroring a device:
    variable values, groups, curve blocks and functions are kept in memory.
    Responses can be replaced per command with :meth:`script`.
    """

    def __init__(
        self,
        *,
        version: tuple[int, int, int] | None = (2, 0, 1),
        variables: list[FakeVariable] | None = None,
        groups: list[FakeGroup] | None = None,
        curves: list[FakeCurve] | None = None,
        functions: list[FakeFunction] | None = None,
    ) -> None:
        self.version = version
        self.variables = variables if variables is not None else [
            FakeVariable(True, bytearray(b"\x00\x00\x00\x00")),
            FakeVariable(False, bytearray(b"\x2a")),
            FakeVariable(True, bytearray(b"\x12\x34")),
            FakeVariable(True, bytearray(protocol.VAR_MAX_SIZE)),
        ]
        self.groups = groups if groups is not None else [
            FakeGroup(False, [0, 1, 2]),
            FakeGroup(True, [0, 2]),
        ]
        self.fixed_groups = len(self.groups)
        self.curves = curves if curves is not None else [
            FakeCurve(True, 4, 3, bytearray(range(12))),
            FakeCurve(False, 2, 2, bytearray(b"\xaa\xbb\xcc\xdd")),
        ]
        for curve in self.curves:
            curve.recalc()
        self.functions = functions if functions is not None else [
            FakeFunction(2, 1, _sum_function),
            FakeFunction(0, 3, _constant_function),
        ]
        self.requests: list[tuple[int, bytes]] = []
        self._scripted: dict[int, list[bytes | None]] = {}
        self._pending: bytes | None = None

    # --- Transport ---

    def send(self, data: bytes) -> bool:
        code, payload = frame.decode(data)
        self.requests.append((code, payload))
        scripted = self._scripted.get(code)
        if scripted:
            self._pending = scripted.pop(0)
        else:
            self._pending = frame.encode(*self._respond(code, payload))
        return True

    def receive(self) -> bytes | None:
        pending, self._pending = self._pending, None
        return pending

    # --- Test helpers ---

    def script(self, code: Command, response_code: int, payload: bytes = b"") -> None:
        """Answer the next *code* request with a fixed response."""
        self._scripted.setdefault(code.value, []).append(frame.encode(response_code, payload))

    def script_raw(self, code: Command, raw: bytes | None) -> None:
        """Answer the next *code* request with raw bytes, or None for a receive failure."""
        self._scripted.setdefault(code.value, []).append(raw)

    def codes(self) -> list[int]:
        return [code for code, _ in self.requests]

    def last_request(self) -> tuple[int, bytes]:
        return self.requests[-1]

    # --- Server ---

    def _respond(self, code: int, payload: bytes) -> tuple[int, bytes]:
        try:
            command = Command(code)
        except ValueError:
            return Command.ERR_OP_NOT_SUPPORTED, b""
        handler = getattr(self, f"_on_{command.name.lower()}", None)
        if handler is None:
            return Command.ERR_OP_NOT_SUPPORTED, b""
        return handler(payload)

    def _on_query_version(self, payload: bytes) -> tuple[int, bytes]:
        if self.version is None:
            return Command.ERR_OP_NOT_SUPPORTED, b""
        return Command.VERSION, bytes(self.version)

    def _on_var_query_list(self, payload: bytes) -> tuple[int, bytes]:
        return Command.VAR_LIST, bytes(
            (protocol.WRITABLE_MASK if var.writable else 0) | (len(var.value) & protocol.SIZE_MASK)
            for var in self.variables
        )

    def _on_group_query_list(self, payload: bytes) -> tuple[int, bytes]:
        return Command.GROUP_LIST, bytes(
            (protocol.WRITABLE_MASK if group.writable else 0) | len(group.members) for group in self.groups
        )

    def _on_group_query(self, payload: bytes) -> tuple[int, bytes]:
        if not payload or payload[0] >= len(self.groups):
            return Command.ERR_INVALID_ID, b""
        return Command.GROUP, bytes(self.groups[payload[0]].members)

    def _on_curve_query_list(self, payload: bytes) -> tuple[int, bytes]:
        records = b""
        for curve in self.curves:
            nblocks = 0 if curve.nblocks == protocol.CURVE_MAX_BLOCKS else curve.nblocks
            records += bytes([int(curve.writable)]) + curve.block_size.to_bytes(2, "big") + nblocks.to_bytes(2, "big")
        return Command.CURVE_LIST, records

    def _on_curve_query_csum(self, payload: bytes) -> tuple[int, bytes]:
        if not payload or payload[0] >= len(self.curves):
            return Command.ERR_INVALID_ID, b""
        return Command.CURVE_CSUM, self.curves[payload[0]].checksum

    def _on_func_query_list(self, payload: bytes) -> tuple[int, bytes]:
        return Command.FUNC_LIST, bytes((func.input_size << 4) | func.output_size for func in self.functions)

    def _variable(self, var_id: int) -> FakeVariable | None:
        return self.variables[var_id] if var_id < len(self.variables) else None

    def _on_var_read(self, payload: bytes) -> tuple[int, bytes]:
        var = self._variable(payload[0])
        if var is None:
            return Command.ERR_INVALID_ID, b""
        return Command.VAR_VALUE, bytes(var.value)

    def _on_var_write(self, payload: bytes) -> tuple[int, bytes]:
        var = self._variable(payload[0])
        if var is None:
            return Command.ERR_INVALID_ID, b""
        if not var.writable:
            return Command.ERR_READ_ONLY, b""
        var.value[:] = payload[1:]
        return Command.OK, b""

    def _on_var_write_read(self, payload: bytes) -> tuple[int, bytes]:
        write_var, read_var = self._variable(payload[0]), self._variable(payload[1])
        if write_var is None or read_var is None:
            return Command.ERR_INVALID_ID, b""
        write_var.value[:] = payload[2:]
        return Command.VAR_VALUE, bytes(read_var.value)

    @staticmethod
    def _apply(op: str, value: bytearray, mask: bytes) -> None:
        for index, bits in enumerate(mask):
            if op == "A":
                value[index] &= bits
            elif op in ("O", "S"):
                value[index] |= bits
            elif op in ("X", "T"):
                value[index] ^= bits
            elif op == "C":
                value[index] &= ~bits & 0xFF

    def _on_var_bin_op(self, payload: bytes) -> tuple[int, bytes]:
        var = self._variable(payload[0])
        if var is None:
            return Command.ERR_INVALID_ID, b""
        self._apply(chr(payload[1]), var.value, payload[2:])
        return Command.OK, b""

    def _group_value(self, group: FakeGroup) -> bytes:
        return b"".join(bytes(self.variables[member].value) for member in group.members)

    def _on_group_read(self, payload: bytes) -> tuple[int, bytes]:
        if payload[0] >= len(self.groups):
            return Command.ERR_INVALID_ID, b""
        return Command.GROUP_VALUES, self._group_value(self.groups[payload[0]])

    def _on_group_write(self, payload: bytes) -> tuple[int, bytes]:
        if payload[0] >= len(self.groups):
            return Command.ERR_INVALID_ID, b""
        values = payload[1:]
        for member in self.groups[payload[0]].members:
            var = self.variables[member]
            var.value[:], values = values[: len(var.value)], values[len(var.value) :]
        return Command.OK, b""

    def _on_group_bin_op(self, payload: bytes) -> tuple[int, bytes]:
        if payload[0] >= len(self.groups):
            return Command.ERR_INVALID_ID, b""
        mask = payload[2:]
        for member in self.groups[payload[0]].members:
            var = self.variables[member]
            self._apply(chr(payload[1]), var.value, mask[: len(var.value)])
            mask = mask[len(var.value) :]
        return Command.OK, b""

    def _on_group_create(self, payload: bytes) -> tuple[int, bytes]:
        members = list(payload)
        writable = all(self.variables[member].writable for member in members)
        self.groups.append(FakeGroup(writable, members))
        return Command.OK, b""

    def _on_group_remove_all(self, payload: bytes) -> tuple[int, bytes]:
        del self.groups[self.fixed_groups :]
        return Command.OK, b""

    def _on_curve_block_request(self, payload: bytes) -> tuple[int, bytes]:
        curve_id, offset = payload[0], int.from_bytes(payload[1:3], "big")
        if curve_id >= len(self.curves):
            return Command.ERR_INVALID_ID, b""
        curve = self.curves[curve_id]
        start = offset * curve.block_size
        return Command.CURVE_BLOCK, payload[:3] + bytes(curve.data[start : start + curve.block_size])

    def _on_curve_block(self, payload: bytes) -> tuple[int, bytes]:
        curve_id, offset = payload[0], int.from_bytes(payload[1:3], "big")
        curve = self.curves[curve_id]
        if not curve.writable:
            return Command.ERR_READ_ONLY, b""
        start = offset * curve.block_size
        data = payload[3:]
        if len(curve.data) < start + len(data):
            curve.data.extend(bytes(start + len(data) - len(curve.data)))
        curve.data[start : start + len(data)] = data
        return Command.OK, b""

    def _on_curve_recalc_csum(self, payload: bytes) -> tuple[int, bytes]:
        self.curves[payload[0]].recalc()
        return Command.OK, b""

    def _on_func_execute(self, payload: bytes) -> tuple[int, bytes]:
        if payload[0] >= len(self.functions):
            return Command.ERR_INVALID_ID, b""
        func = self.functions[payload[0]]
        error, output = func.handler(payload[1:])
        if error:
            return Command.FUNC_ERROR, bytes([error])
        return Command.FUNC_RETURN, output


@pytest.fixture(autouse=True)
def _reset_sllp_logging() -> Iterator[None]:
    yield
    sllp_logger = logging.getLogger("sllp")
    for handler in list(sllp_logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            sllp_logger.removeHandler(handler)
    sllp_logger.setLevel(logging.NOTSET)
    sllp_logger.propagate = True


@pytest.fixture
def device_factory() -> type[FakeDevice]:
    return FakeDevice


@pytest.fixture
def fake_types() -> dict[str, type]:
    return {
        "variable": FakeVariable,
        "group": FakeGroup,
        "curve": FakeCurve,
        "function": FakeFunction,
    }


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def client(device: FakeDevice) -> Client:
    instance = Client(device)
    instance.initialize()
    device.requests.clear()
    return instance


@pytest.fixture
def silent_transport() -> MagicMock:
    """Transport stub used to prove that no request reaches the wire."""
    transport = MagicMock()
    transport.send.return_value = True
    transport.receive.return_value = None
    return transport
