"""Settings loader for the SLLP client.

Configuration comes from an optional TOML file (keys at the top level or
under an ``[sllp]`` table) and keyword overrides, in that order of
precedence. Environment variables are not consulted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import msgspec
from marshmallow import ValidationError

from .model import ClientConfig
from .schema import ClientConfigSchema

logger = logging.getLogger("sllp.config")

CONFIG_SECTION = "sllp"


def _load_raw_config(path: str | Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        document = msgspec.toml.decode(Path(path).read_bytes())
    except msgspec.DecodeError as exc:
        raise ValueError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"Configuration file {path} must contain a table")
    section = document.get(CONFIG_SECTION, document)
    if not isinstance(section, dict):
        raise ValueError(f"[{CONFIG_SECTION}] in {path} must be a table")
    return dict(section)


def load_client_config(path: str | Path | None = None, **overrides: Any) -> ClientConfig:
    """Load and validate configuration; invalid values raise ``ValueError``."""

    raw = _load_raw_config(path)
    raw.update(overrides)
    try:
        config: ClientConfig = ClientConfigSchema().load(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid client configuration: {exc.messages}") from exc
    logger.debug("Client configuration loaded: %s", config)
    return config


__all__ = ["ClientConfig", "load_client_config"]
