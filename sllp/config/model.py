"""Data model for SLLP client configuration."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_DEBUG_LOGGING = False
DEFAULT_LOG_STREAM = False
DEFAULT_LOG_FRAMES = False
DEFAULT_FETCH_CURVE_CHECKSUMS = True
DEFAULT_SYSLOG_IDENT = "sllp"


@dataclass(slots=True, frozen=True)
class ClientConfig:
    """Strongly typed configuration for one client session."""

    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    # Log to stderr instead of syslog.
    log_stream: bool = DEFAULT_LOG_STREAM
    # Hexdump every request and response at DEBUG.
    log_frames: bool = DEFAULT_LOG_FRAMES
    fetch_curve_checksums: bool = DEFAULT_FETCH_CURVE_CHECKSUMS
    syslog_ident: str = DEFAULT_SYSLOG_IDENT
