"""Synchronous request/response round trips over an injected transport."""

from __future__ import annotations

import logging

import msgspec

from ..errors import CommunicationError, Malformed
from ..protocol.frame import Frame
from ..protocol.protocol import Command
from ..transport import Transport
from ..util import log_hexdump

logger = logging.getLogger("sllp.exchange")


class ExchangeStats(msgspec.Struct):
    """Counters for every round trip attempted on one session."""

    requests: int = 0
    responses: int = 0
    failures: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    last_response_code: int | None = None

    def record_failure(self) -> None:
        self.failures += 1


class CommandExchange:
    """Performs one send-then-receive round trip per call.

    Strictly half-duplex: exactly one request is outstanding at a time and
    the caller blocks until the response is decoded. There is no retry; a
    failed round trip is reported once.
    """

    def __init__(self, transport: Transport, *, log_frames: bool = False) -> None:
        self._transport = transport
        self._log_frames = log_frames
        self.stats = ExchangeStats()

    def exchange(self, request: Frame) -> Frame:
        """Send *request* and return the decoded response frame."""
        raw_request = request.to_bytes()
        if self._log_frames:
            log_hexdump(logger, logging.DEBUG, "REQUEST", raw_request)

        self.stats.requests += 1
        try:
            sent = self._transport.send(raw_request)
        except OSError as exc:
            self.stats.record_failure()
            raise CommunicationError(f"Transport send failed: {exc}") from exc
        if sent is False:
            self.stats.record_failure()
            raise CommunicationError("Transport send failed")
        self.stats.bytes_sent += len(raw_request)

        try:
            raw_response = self._transport.receive()
        except OSError as exc:
            self.stats.record_failure()
            raise CommunicationError(f"Transport receive failed: {exc}") from exc
        if raw_response is None:
            self.stats.record_failure()
            raise CommunicationError("Transport receive failed")
        self.stats.bytes_received += len(raw_response)

        if self._log_frames:
            log_hexdump(logger, logging.DEBUG, "RESPONSE", bytes(raw_response))

        try:
            response = Frame.from_bytes(raw_response)
        except Malformed as exc:
            self.stats.record_failure()
            raise CommunicationError(f"Malformed response: {exc}") from exc

        self.stats.responses += 1
        self.stats.last_response_code = response.code
        return response

    def command(self, code: Command, payload: bytes = b"") -> Frame:
        """Build a request from *code* and *payload* and exchange it."""
        return self.exchange(Frame(code=code.value, payload=payload))

    def expect(self, code: Command, expected: Command, payload: bytes = b"") -> bytes:
        """Exchange a request and return the payload of an *expected* response."""
        response = self.command(code, payload)
        if response.code != expected.value:
            logger.debug("%s answered with 0x%02X instead of %s", code.name, response.code, expected.name)
            raise CommunicationError.unexpected(expected.value, response.code)
        return response.payload


__all__ = ["CommandExchange", "ExchangeStats"]
