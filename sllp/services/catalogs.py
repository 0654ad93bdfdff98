"""Catalog refreshes: version query and the four entity catalogs.

Each refresh is a fixed sequence of exchanges whose responses are decoded
into immutable records and swapped into a :class:`~sllp.state.catalog.Catalog`
in one step, so callers never observe a half-built catalog.
"""

from __future__ import annotations

import logging

from ..errors import CommunicationError, InvalidArgument, Malformed, StaleReference
from ..protocol import protocol
from ..protocol.protocol import Command
from ..protocol.structures import (
    CurveInfo,
    FunctionInfo,
    GroupInfo,
    VariableInfo,
    Version,
    decode_curve_list,
    decode_function_list,
    decode_group_list,
    decode_variable_list,
    decode_version,
)
from ..state.catalog import Catalog
from .exchange import CommandExchange

logger = logging.getLogger("sllp.catalogs")

# Entity ids travel as a single byte.
_MAX_ENTITIES = protocol.UINT8_MAX + 1


def _check_count(kind: str, count: int) -> None:
    if count > _MAX_ENTITIES:
        raise CommunicationError(f"Server reported {count} {kind}; ids are limited to {_MAX_ENTITIES}")


class CatalogManager:
    """Owns the server version and the Variable, Group, Curve and Function catalogs."""

    def __init__(self, exchange: CommandExchange, *, fetch_curve_checksums: bool = True) -> None:
        self._exchange = exchange
        self._fetch_curve_checksums = fetch_curve_checksums
        self.version: Version | None = None
        self.variables: Catalog[VariableInfo] = Catalog("variables")
        self.groups: Catalog[GroupInfo] = Catalog("groups")
        self.curves: Catalog[CurveInfo] = Catalog("curves")
        self.functions: Catalog[FunctionInfo] = Catalog("functions")

    # --- Refreshes ---

    def refresh_version(self) -> Version:
        response = self._exchange.command(Command.QUERY_VERSION)
        if response.code == Command.ERR_OP_NOT_SUPPORTED:
            # Servers predating the version command.
            version = Version.legacy()
        else:
            try:
                version = decode_version(response.payload)
            except Malformed as exc:
                raise CommunicationError(f"Invalid version response: {exc}", response_code=response.code) from exc
        self.version = version
        logger.info("Server protocol version %s", version.text)
        return version

    def refresh_variables(self) -> tuple[VariableInfo, ...]:
        def fetch() -> tuple[VariableInfo, ...]:
            payload = self._exchange.expect(Command.VAR_QUERY_LIST, Command.VAR_LIST)
            _check_count("variables", len(payload))
            return decode_variable_list(payload)

        variables = self.variables.refresh(fetch)
        if len(self.groups):
            logger.debug("Variable catalog replaced; %d group(s) now stale", len(self.groups))
        return variables

    def refresh_groups(self) -> tuple[GroupInfo, ...]:
        return self.groups.refresh(self._fetch_groups, clear_on_error=True)

    def _fetch_groups(self) -> list[GroupInfo]:
        payload = self._exchange.expect(Command.GROUP_QUERY_LIST, Command.GROUP_LIST)
        _check_count("groups", len(payload))
        entries = decode_group_list(payload)

        variables = self.variables.get_all()
        generation = self.variables.generation
        groups: list[GroupInfo] = []
        for index, entry in enumerate(entries):
            member_ids = tuple(self._exchange.expect(Command.GROUP_QUERY, Command.GROUP, bytes([index])))
            size = 0
            for var_id in member_ids:
                if var_id >= len(variables):
                    raise CommunicationError(
                        f"Group {index} references Variable {var_id}, catalog has {len(variables)}"
                    )
                size += variables[var_id].size
            if len(member_ids) != entry.size:
                logger.debug(
                    "Group %d announced %d member(s) but lists %d", index, entry.size, len(member_ids)
                )
            groups.append(
                GroupInfo(
                    id=index,
                    writable=entry.writable,
                    size=size,
                    variable_ids=member_ids,
                    generation=generation,
                )
            )
        return groups

    def refresh_curves(self) -> tuple[CurveInfo, ...]:
        def fetch() -> list[CurveInfo]:
            payload = self._exchange.expect(Command.CURVE_QUERY_LIST, Command.CURVE_LIST)
            records = decode_curve_list(payload)
            _check_count("curves", len(records))
            curves: list[CurveInfo] = []
            for index, record in enumerate(records):
                checksum = self._fetch_checksum(index) if self._fetch_curve_checksums else None
                curves.append(
                    CurveInfo(
                        id=index,
                        writable=bool(record.writable),
                        block_size=record.block_size,
                        nblocks=record.nblocks or protocol.CURVE_MAX_BLOCKS,
                        checksum=checksum,
                    )
                )
            return curves

        return self.curves.refresh(fetch)

    def _fetch_checksum(self, index: int) -> bytes | None:
        """Checksum failures leave the checksum unset instead of aborting the refresh."""
        try:
            payload = self._exchange.expect(Command.CURVE_QUERY_CSUM, Command.CURVE_CSUM, bytes([index]))
        except CommunicationError as exc:
            logger.warning("Checksum query for curve %d failed: %s", index, exc)
            return None
        if len(payload) < protocol.CURVE_CSUM_SIZE:
            logger.warning(
                "Checksum for curve %d has %d bytes, expected %d", index, len(payload), protocol.CURVE_CSUM_SIZE
            )
            return None
        return payload[: protocol.CURVE_CSUM_SIZE]

    def refresh_functions(self) -> tuple[FunctionInfo, ...]:
        def fetch() -> tuple[FunctionInfo, ...]:
            payload = self._exchange.expect(Command.FUNC_QUERY_LIST, Command.FUNC_LIST)
            _check_count("functions", len(payload))
            return decode_function_list(payload)

        return self.functions.refresh(fetch)

    def reset(self) -> None:
        self.version = None
        for catalog in (self.variables, self.groups, self.curves, self.functions):
            catalog.clear()

    # --- Membership ---

    def require_variable(self, var: VariableInfo | None, *, role: str = "variable") -> VariableInfo:
        if var is None:
            raise InvalidArgument(f"{role} is required")
        if not self.variables.contains(var):
            raise InvalidArgument(f"{role} {var!r} is not in the current Variable catalog")
        return var

    def require_group(self, group: GroupInfo | None) -> GroupInfo:
        if group is None:
            raise InvalidArgument("group is required")
        if not self.groups.contains(group):
            raise InvalidArgument(f"group {group!r} is not in the current Group catalog")
        if group.generation != self.variables.generation:
            raise StaleReference(
                f"group {group.id} was built from Variable catalog generation {group.generation}, "
                f"current is {self.variables.generation}; refresh groups first"
            )
        return group

    def require_curve(self, curve: CurveInfo | None) -> CurveInfo:
        if curve is None:
            raise InvalidArgument("curve is required")
        if not self.curves.contains(curve):
            raise InvalidArgument(f"curve {curve!r} is not in the current Curve catalog")
        return curve

    def require_function(self, func: FunctionInfo | None) -> FunctionInfo:
        if func is None:
            raise InvalidArgument("function is required")
        if not self.functions.contains(func):
            raise InvalidArgument(f"function {func!r} is not in the current Function catalog")
        return func

    def group_variables(self, group: GroupInfo) -> tuple[VariableInfo, ...]:
        """Resolve *group* members against the Variable catalog it was built from."""
        self.require_group(group)
        variables = self.variables.get_all()
        return tuple(variables[var_id] for var_id in group.variable_ids)


__all__ = ["CatalogManager"]
