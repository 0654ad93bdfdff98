"""Entity verbs: Variable, Group, Curve and Function operations.

Every operation validates its arguments against the current catalogs before
a request is built. Nothing reaches the transport for a request the client
already knows to be invalid.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from ..errors import CatalogOutOfSync, CommunicationError, InvalidArgument, OutOfRange
from ..protocol import protocol
from ..protocol.protocol import BinOp, Command
from ..protocol.structures import (
    BinOpHeaderPacket,
    CurveBlockInfoPacket,
    CurveInfo,
    FunctionInfo,
    FunctionResult,
    GroupInfo,
    VariableInfo,
)
from ..util import chunk_bytes
from .catalogs import CatalogManager
from .exchange import CommandExchange

logger = logging.getLogger("sllp.operations")

T = TypeVar("T")


def _coerce_op(op: BinOp | str) -> BinOp:
    try:
        return BinOp(op)
    except ValueError as exc:
        raise OutOfRange(f"Unknown bitwise operation {op!r}; expected one of {[o.value for o in BinOp]}") from exc


def _require_length(what: str, data: bytes | None, expected: int) -> bytes:
    if data is None:
        raise InvalidArgument(f"{what} is required")
    if len(data) != expected:
        raise InvalidArgument(f"{what} has {len(data)} bytes, expected {expected}")
    return bytes(data)


def _take_value(response: bytes, size: int, what: str) -> bytes:
    if len(response) < size:
        raise CommunicationError(f"{what} returned {len(response)} bytes, expected {size}")
    return response[:size]


class EntityOperations:
    """Public verbs bound to one exchange and one set of catalogs."""

    def __init__(self, exchange: CommandExchange, catalogs: CatalogManager) -> None:
        self._exchange = exchange
        self._catalogs = catalogs

    # --- Variables ---

    def read_var(self, var: VariableInfo) -> bytes:
        var = self._catalogs.require_variable(var)
        payload = self._exchange.expect(Command.VAR_READ, Command.VAR_VALUE, bytes([var.id]))
        return _take_value(payload, var.size, f"Variable {var.id}")

    def write_var(self, var: VariableInfo, value: bytes) -> None:
        var = self._catalogs.require_variable(var)
        if not var.writable:
            raise InvalidArgument(f"Variable {var.id} is read-only")
        value = _require_length("value", value, var.size)
        self._exchange.expect(Command.VAR_WRITE, Command.OK, bytes([var.id]) + value)

    def write_read_vars(self, write_var: VariableInfo, read_var: VariableInfo, value: bytes) -> bytes:
        """Write *value* to *write_var* and read *read_var* in one round trip."""
        write_var = self._catalogs.require_variable(write_var, role="write variable")
        read_var = self._catalogs.require_variable(read_var, role="read variable")
        if not write_var.writable:
            raise InvalidArgument(f"Variable {write_var.id} is read-only")
        value = _require_length("value", value, write_var.size)
        payload = self._exchange.expect(
            Command.VAR_WRITE_READ,
            Command.VAR_VALUE,
            bytes([write_var.id, read_var.id]) + value,
        )
        return _take_value(payload, read_var.size, f"Variable {read_var.id}")

    def bin_op_var(self, var: VariableInfo, op: BinOp | str, mask: bytes) -> None:
        var = self._catalogs.require_variable(var)
        if not var.writable:
            raise InvalidArgument(f"Variable {var.id} is read-only")
        bin_op = _coerce_op(op)
        mask = _require_length("mask", mask, var.size)
        header = BinOpHeaderPacket(entity_id=var.id, op=ord(bin_op.value)).encode()
        self._exchange.expect(Command.VAR_BIN_OP, Command.OK, header + mask)

    # --- Groups ---

    def read_group(self, group: GroupInfo) -> bytes:
        group = self._catalogs.require_group(group)
        payload = self._exchange.expect(Command.GROUP_READ, Command.GROUP_VALUES, bytes([group.id]))
        return _take_value(payload, group.size, f"Group {group.id}")

    def write_group(self, group: GroupInfo, values: bytes) -> None:
        group = self._catalogs.require_group(group)
        if not group.writable:
            raise InvalidArgument(f"Group {group.id} is read-only")
        values = _require_length("values", values, group.size)
        self._exchange.expect(Command.GROUP_WRITE, Command.OK, bytes([group.id]) + values)

    def bin_op_group(self, group: GroupInfo, op: BinOp | str, mask: bytes) -> None:
        group = self._catalogs.require_group(group)
        if not group.writable:
            raise InvalidArgument(f"Group {group.id} is read-only")
        bin_op = _coerce_op(op)
        mask = _require_length("mask", mask, group.size)
        header = BinOpHeaderPacket(entity_id=group.id, op=ord(bin_op.value)).encode()
        self._exchange.expect(Command.GROUP_BIN_OP, Command.OK, header + mask)

    def create_group(self, variables: Iterable[VariableInfo | None]) -> GroupInfo:
        """Create a Group from *variables*, read up to the first None.

        Returns the new Group as listed by the Group refresh that follows.
        """
        if variables is None:
            raise InvalidArgument("variables are required")
        ids: list[int] = []
        for var in variables:
            if var is None:
                break
            ids.append(self._catalogs.require_variable(var).id)
        if not ids:
            raise InvalidArgument("A group needs at least one variable")

        self._exchange.expect(Command.GROUP_CREATE, Command.OK, bytes(ids))
        logger.debug("Group created from variables %s", ids)
        groups = self._refresh_after("groups", self._catalogs.refresh_groups)
        if not groups:
            raise CatalogOutOfSync("groups", CommunicationError("Group list is empty after creating a group"))
        return groups[-1]

    def remove_all_groups(self) -> None:
        self._exchange.expect(Command.GROUP_REMOVE_ALL, Command.OK)
        logger.debug("Removable groups deleted")
        self._refresh_after("groups", self._catalogs.refresh_groups)

    # --- Curves ---

    def _check_offset(self, curve: CurveInfo, offset: int) -> None:
        if not 0 <= offset <= protocol.CURVE_MAX_OFFSET or offset > curve.nblocks:
            raise OutOfRange(f"Block offset {offset} outside 0..{min(curve.nblocks, protocol.CURVE_MAX_OFFSET)}")

    def request_curve_block(self, curve: CurveInfo, offset: int) -> bytes:
        curve = self._catalogs.require_curve(curve)
        self._check_offset(curve, offset)
        request = CurveBlockInfoPacket(curve_id=curve.id, offset=offset).encode()
        payload = self._exchange.expect(Command.CURVE_BLOCK_REQUEST, Command.CURVE_BLOCK, request)
        if len(payload) < protocol.CURVE_BLOCK_INFO_SIZE:
            raise CommunicationError(
                f"Curve block response has {len(payload)} bytes, shorter than its "
                f"{protocol.CURVE_BLOCK_INFO_SIZE}-byte prefix"
            )
        data = payload[protocol.CURVE_BLOCK_INFO_SIZE :]
        if len(data) > curve.block_size:
            raise CommunicationError(
                f"Curve {curve.id} block carries {len(data)} bytes, block size is {curve.block_size}"
            )
        return data

    def send_curve_block(self, curve: CurveInfo, offset: int, data: bytes) -> None:
        curve = self._catalogs.require_curve(curve)
        if not curve.writable:
            raise InvalidArgument(f"Curve {curve.id} is read-only")
        if data is None:
            raise InvalidArgument("data is required")
        self._check_offset(curve, offset)
        if len(data) > curve.block_size:
            raise OutOfRange(f"Block of {len(data)} bytes exceeds curve block size {curve.block_size}")
        header = CurveBlockInfoPacket(curve_id=curve.id, offset=offset).encode()
        self._exchange.expect(Command.CURVE_BLOCK, Command.OK, header + bytes(data))

    def recalc_curve_checksum(self, curve: CurveInfo) -> CurveInfo | None:
        """Ask the server to recompute the checksum; returns the refreshed Curve."""
        curve = self._catalogs.require_curve(curve)
        self._exchange.expect(Command.CURVE_RECALC_CSUM, Command.OK, bytes([curve.id]))
        curves = self._refresh_after("curves", self._catalogs.refresh_curves)
        return curves[curve.id] if curve.id < len(curves) else None

    def read_curve(self, curve: CurveInfo) -> bytes:
        """Read every block of *curve* in order."""
        curve = self._catalogs.require_curve(curve)
        return b"".join(self.request_curve_block(curve, offset) for offset in range(curve.nblocks))

    def write_curve(self, curve: CurveInfo, data: bytes) -> int:
        """Write *data* from block 0 on; returns the number of blocks sent."""
        curve = self._catalogs.require_curve(curve)
        if not curve.writable:
            raise InvalidArgument(f"Curve {curve.id} is read-only")
        if data is None:
            raise InvalidArgument("data is required")
        capacity = curve.block_size * curve.nblocks
        if len(data) > capacity:
            raise OutOfRange(f"{len(data)} bytes do not fit curve {curve.id} ({capacity} bytes)")

        blocks = chunk_bytes(bytes(data), curve.block_size) if data else []
        for offset, block in enumerate(blocks):
            self.send_curve_block(curve, offset, block)
        logger.debug("Wrote %d block(s) to curve %d", len(blocks), curve.id)
        return len(blocks)

    # --- Functions ---

    def func_execute(self, func: FunctionInfo, data: bytes | None = None) -> FunctionResult:
        func = self._catalogs.require_function(func)
        if func.input_size:
            data = _require_length("input", data, func.input_size)
        elif data:
            raise InvalidArgument(f"Function {func.id} takes no input, got {len(data)} bytes")

        response = self._exchange.command(Command.FUNC_EXECUTE, bytes([func.id]) + (data or b""))
        if response.code == Command.FUNC_RETURN:
            output = _take_value(response.payload, func.output_size, f"Function {func.id}")
            return FunctionResult(error=0, output=output)
        if response.code == Command.FUNC_ERROR:
            if not response.payload:
                raise CommunicationError("Function error response carries no error byte", response_code=response.code)
            logger.debug("Function %d failed with error %d", func.id, response.payload[0])
            return FunctionResult(error=response.payload[0], failed=True)
        raise CommunicationError.unexpected(Command.FUNC_RETURN.value, response.code)

    # --- Helpers ---

    @staticmethod
    def _refresh_after(catalog: str, refresh: Callable[[], tuple[T, ...]]) -> tuple[T, ...]:
        try:
            return refresh()
        except CommunicationError as exc:
            logger.warning("Command acknowledged but %s refresh failed: %s", catalog, exc)
            raise CatalogOutOfSync(catalog, exc) from exc


__all__ = ["EntityOperations"]
