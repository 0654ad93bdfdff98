"""Client session: initialization sequence, catalog views and entity verbs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from types import TracebackType
from typing import TYPE_CHECKING, Self

from transitions import Machine

from .config.model import ClientConfig
from .errors import InvalidArgument, NotInitialized
from .protocol.protocol import BinOp
from .protocol.structures import CurveInfo, FunctionInfo, FunctionResult, GroupInfo, VariableInfo, Version
from .services.catalogs import CatalogManager
from .services.exchange import CommandExchange, ExchangeStats
from .services.operations import EntityOperations
from .state.catalog import Catalog
from .transport import CallableTransport, ReceiveFunc, SendFunc, Transport

logger = logging.getLogger("sllp.client")


class Client:
    """One SLLP session bound to a transport.

    Call :meth:`initialize` before any entity operation: it queries the
    server version and fills the Variable, Group, Curve and Function
    catalogs, in that order, stopping at the first failure.
    """

    if TYPE_CHECKING:
        # FSM generated methods and attributes for static analysis
        fsm_state: str
        begin_init: Callable[[], None]
        complete_init: Callable[[], None]
        fail_init: Callable[[], None]
        reset_session: Callable[[], None]

    # FSM States
    STATE_UNINITIALIZED = "uninitialized"
    STATE_INITIALIZING = "initializing"
    STATE_READY = "ready"
    STATE_FAILED = "failed"

    def __init__(self, transport: Transport, config: ClientConfig | None = None) -> None:
        if transport is None:
            raise InvalidArgument("transport is required")
        self._config = config or ClientConfig()
        self._exchange = CommandExchange(transport, log_frames=self._config.log_frames)
        self._catalogs = CatalogManager(self._exchange, fetch_curve_checksums=self._config.fetch_curve_checksums)
        self._ops = EntityOperations(self._exchange, self._catalogs)

        # FSM Initialization
        self.state_machine = Machine(
            model=self,
            states=[
                self.STATE_UNINITIALIZED,
                self.STATE_INITIALIZING,
                self.STATE_READY,
                self.STATE_FAILED,
            ],
            initial=self.STATE_UNINITIALIZED,
            ignore_invalid_triggers=True,
            model_attribute='fsm_state'
        )

        # FSM Transitions
        self.state_machine.add_transition(
            trigger='begin_init',
            source=[self.STATE_UNINITIALIZED, self.STATE_READY, self.STATE_FAILED],
            dest=self.STATE_INITIALIZING
        )
        self.state_machine.add_transition(trigger='complete_init', source=self.STATE_INITIALIZING, dest=self.STATE_READY)
        self.state_machine.add_transition(trigger='fail_init', source=self.STATE_INITIALIZING, dest=self.STATE_FAILED)
        self.state_machine.add_transition(trigger='reset_session', source='*', dest=self.STATE_UNINITIALIZED)

    @classmethod
    def from_functions(cls, send: SendFunc, receive: ReceiveFunc, config: ClientConfig | None = None) -> Self:
        """Build a client from a plain send callable and receive callable."""
        return cls(CallableTransport(send, receive), config)

    # --- Lifecycle ---

    def initialize(self) -> None:
        """Run the initialization sequence; on failure the session is left uninitialized."""
        self.begin_init()
        try:
            self._catalogs.reset()
            self._catalogs.refresh_version()
            self._catalogs.refresh_variables()
            self._catalogs.refresh_groups()
            self._catalogs.refresh_curves()
            self._catalogs.refresh_functions()
        except Exception as exc:
            logger.error("Session initialization failed: %s", exc)
            self._catalogs.reset()
            self.fail_init()
            raise
        self.complete_init()
        logger.info(
            "Session ready: %d variables, %d groups, %d curves, %d functions",
            len(self._catalogs.variables),
            len(self._catalogs.groups),
            len(self._catalogs.curves),
            len(self._catalogs.functions),
        )

    @property
    def initialized(self) -> bool:
        return self.fsm_state == self.STATE_READY

    def close(self) -> None:
        """Drop all cached state; the transport is left to its owner."""
        self._catalogs.reset()
        self.reset_session()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _require_ready(self) -> None:
        if not self.initialized:
            raise NotInitialized(f"Session is {self.fsm_state}; call initialize() first")

    # --- Catalog views ---

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def stats(self) -> ExchangeStats:
        return self._exchange.stats

    @property
    def version(self) -> Version | None:
        return self._catalogs.version

    @property
    def variables(self) -> Catalog[VariableInfo]:
        return self._catalogs.variables

    @property
    def groups(self) -> Catalog[GroupInfo]:
        return self._catalogs.groups

    @property
    def curves(self) -> Catalog[CurveInfo]:
        return self._catalogs.curves

    @property
    def functions(self) -> Catalog[FunctionInfo]:
        return self._catalogs.functions

    def group_variables(self, group: GroupInfo) -> tuple[VariableInfo, ...]:
        self._require_ready()
        return self._catalogs.group_variables(group)

    # --- Refreshes ---

    def refresh_variables(self) -> tuple[VariableInfo, ...]:
        """Refresh Variables, then Groups so no Group outlives the catalog it indexes."""
        self._require_ready()
        variables = self._catalogs.refresh_variables()
        self._catalogs.refresh_groups()
        return variables

    def refresh_groups(self) -> tuple[GroupInfo, ...]:
        self._require_ready()
        return self._catalogs.refresh_groups()

    def refresh_curves(self) -> tuple[CurveInfo, ...]:
        self._require_ready()
        return self._catalogs.refresh_curves()

    def refresh_functions(self) -> tuple[FunctionInfo, ...]:
        self._require_ready()
        return self._catalogs.refresh_functions()

    # --- Variables ---

    def read_var(self, var: VariableInfo) -> bytes:
        self._require_ready()
        return self._ops.read_var(var)

    def write_var(self, var: VariableInfo, value: bytes) -> None:
        self._require_ready()
        self._ops.write_var(var, value)

    def write_read_vars(self, write_var: VariableInfo, read_var: VariableInfo, value: bytes) -> bytes:
        self._require_ready()
        return self._ops.write_read_vars(write_var, read_var, value)

    def bin_op_var(self, var: VariableInfo, op: BinOp | str, mask: bytes) -> None:
        self._require_ready()
        self._ops.bin_op_var(var, op, mask)

    # --- Groups ---

    def read_group(self, group: GroupInfo) -> bytes:
        self._require_ready()
        return self._ops.read_group(group)

    def write_group(self, group: GroupInfo, values: bytes) -> None:
        self._require_ready()
        self._ops.write_group(group, values)

    def bin_op_group(self, group: GroupInfo, op: BinOp | str, mask: bytes) -> None:
        self._require_ready()
        self._ops.bin_op_group(group, op, mask)

    def create_group(self, variables: Iterable[VariableInfo | None]) -> GroupInfo:
        self._require_ready()
        return self._ops.create_group(variables)

    def remove_all_groups(self) -> None:
        self._require_ready()
        self._ops.remove_all_groups()

    # --- Curves ---

    def request_curve_block(self, curve: CurveInfo, offset: int) -> bytes:
        self._require_ready()
        return self._ops.request_curve_block(curve, offset)

    def send_curve_block(self, curve: CurveInfo, offset: int, data: bytes) -> None:
        self._require_ready()
        self._ops.send_curve_block(curve, offset, data)

    def recalc_curve_checksum(self, curve: CurveInfo) -> CurveInfo | None:
        self._require_ready()
        return self._ops.recalc_curve_checksum(curve)

    def read_curve(self, curve: CurveInfo) -> bytes:
        self._require_ready()
        return self._ops.read_curve(curve)

    def write_curve(self, curve: CurveInfo, data: bytes) -> int:
        self._require_ready()
        return self._ops.write_curve(curve, data)

    # --- Functions ---

    def func_execute(self, func: FunctionInfo, data: bytes | None = None) -> FunctionResult:
        self._require_ready()
        return self._ops.func_execute(func, data)

    def __repr__(self) -> str:
        return f"Client(state={self.fsm_state!r}, version={self.version})"


__all__ = ["Client"]
