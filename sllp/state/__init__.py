"""Client-side cached state."""

from .catalog import Catalog

__all__ = ["Catalog"]
