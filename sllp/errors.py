"""Exception hierarchy for the SLLP client.

Local validation failures (``InvalidArgument``, ``OutOfRange``) are raised
before any byte reaches the transport. ``CommunicationError`` is raised once
a request was attempted and the round trip did not yield the expected
response.
"""

from __future__ import annotations


class SllpError(Exception):
    """Base class for every error raised by the client."""


class InvalidArgument(SllpError, ValueError):
    """Missing argument, foreign entity or non-writable target."""


class NotInitialized(InvalidArgument):
    """Entity operation attempted before the session finished initializing."""


class StaleReference(InvalidArgument):
    """Group member references taken from an outdated Variable catalog."""


class OutOfRange(SllpError, ValueError):
    """Numeric parameter outside its valid domain."""


class Malformed(SllpError, ValueError):
    """Buffer could not be decoded as a protocol message."""


class CommunicationError(SllpError, OSError):
    """Transport failure or unexpected response from the server."""

    def __init__(self, message: str, *, response_code: int | None = None, rejected: bool = False) -> None:
        super().__init__(message)
        self.response_code = response_code
        # True when the server answered with one of its error codes.
        self.rejected = rejected

    @classmethod
    def unexpected(cls, expected: int, received: int) -> CommunicationError:
        # Lazy import: the protocol package imports this module.
        from .protocol.protocol import SERVER_ERROR_CODES, describe_code

        rejected = received in SERVER_ERROR_CODES
        reason = "server rejected the request" if rejected else "unexpected response"
        return cls(
            f"Expected response 0x{expected:02X}, got 0x{received:02X} ({describe_code(received)}): {reason}",
            response_code=received,
            rejected=rejected,
        )


class CatalogOutOfSync(CommunicationError):
    """Command was acknowledged but the follow-up catalog refresh failed."""

    def __init__(self, catalog: str, cause: CommunicationError) -> None:
        super().__init__(
            f"Server applied the command but refreshing the {catalog} catalog failed: {cause}",
            response_code=cause.response_code,
            rejected=cause.rejected,
        )
        self.catalog = catalog


__all__ = [
    "CatalogOutOfSync",
    "CommunicationError",
    "InvalidArgument",
    "Malformed",
    "NotInitialized",
    "OutOfRange",
    "SllpError",
    "StaleReference",
]
