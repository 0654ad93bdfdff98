"""SLLP Client Package Initialisation."""

__version__ = "2.0.0"

import logging

from .client import Client
from .config import ClientConfig, load_client_config
from .errors import (
    CatalogOutOfSync,
    CommunicationError,
    InvalidArgument,
    Malformed,
    NotInitialized,
    OutOfRange,
    SllpError,
    StaleReference,
)
from .protocol.protocol import BinOp, Command
from .transport import CallableTransport, Transport

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__all__ = [
    "BinOp",
    "CallableTransport",
    "CatalogOutOfSync",
    "Client",
    "ClientConfig",
    "Command",
    "CommunicationError",
    "InvalidArgument",
    "Malformed",
    "NotInitialized",
    "OutOfRange",
    "SllpError",
    "StaleReference",
    "Transport",
    "load_client_config",
]
