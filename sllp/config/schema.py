"""Marshmallow schema for ClientConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import Schema, fields, post_load, pre_load, validate

from .model import (
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_FETCH_CURVE_CHECKSUMS,
    DEFAULT_LOG_FRAMES,
    DEFAULT_LOG_STREAM,
    DEFAULT_SYSLOG_IDENT,
    ClientConfig,
)


class ClientConfigSchema(Schema):
    """Declarative validation schema for SLLP client configuration."""

    # Logging
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    log_stream = fields.Bool(load_default=DEFAULT_LOG_STREAM)
    log_frames = fields.Bool(load_default=DEFAULT_LOG_FRAMES)
    syslog_ident = fields.Str(load_default=DEFAULT_SYSLOG_IDENT, validate=validate.Length(min=1, max=32))

    # Catalogs
    fetch_curve_checksums = fields.Bool(load_default=DEFAULT_FETCH_CURVE_CHECKSUMS)

    @pre_load
    def strip_ident(self, data: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        ident = data.get("syslog_ident")
        if isinstance(ident, str):
            # Empty after stripping fails the length check instead of using the default.
            data = {**data, "syslog_ident": ident.strip()}
        return data

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> ClientConfig:
        return ClientConfig(**data)
