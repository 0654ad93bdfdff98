"""Configuration helpers for the SLLP client."""

from .model import ClientConfig
from .settings import load_client_config
from . import logging, settings  # noqa: F401  # pyright: ignore[reportUnusedImport]

__all__ = ["ClientConfig", "load_client_config"]
