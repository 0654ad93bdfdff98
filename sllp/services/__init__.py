"""Service layer for SLLP client sessions."""

from .catalogs import CatalogManager
from .exchange import CommandExchange, ExchangeStats
from .operations import EntityOperations

__all__ = ["CatalogManager", "CommandExchange", "EntityOperations", "ExchangeStats"]
