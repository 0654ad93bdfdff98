"""Generic entity catalog shared by Variables, Groups, Curves and Functions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Generic, TypeVar, overload

E = TypeVar("E")

logger = logging.getLogger("sllp.catalog")


class Catalog(Generic[E]):
    """Client-side cached list of one entity kind.

    Entries are replaced wholesale by :meth:`refresh` and each replacement
    bumps :attr:`generation`. Membership is by identity: a record belongs to
    the catalog only if it is one of the current entries, so a record kept
    from a previous refresh is rejected even when it is equal field by field.
    """

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self._entries: tuple[E, ...] = ()
        self._generation = 0

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def generation(self) -> int:
        return self._generation

    def refresh(self, fetch: Callable[[], Iterable[E]], *, clear_on_error: bool = False) -> tuple[E, ...]:
        """Replace the entries with the result of *fetch*.

        When *fetch* raises, the current entries are kept, or emptied if
        *clear_on_error* is set. Partial results are never stored.
        """
        try:
            entries = tuple(fetch())
        except Exception:
            if clear_on_error:
                self.clear()
            raise
        self._replace(entries)
        logger.debug("%s catalog refreshed: %d entries (generation %d)", self._kind, len(entries), self._generation)
        return entries

    def clear(self) -> None:
        if self._entries:
            logger.debug("%s catalog cleared", self._kind)
        self._replace(())

    def get_all(self) -> tuple[E, ...]:
        return self._entries

    def contains(self, item: object) -> bool:
        return any(entry is item for entry in self._entries)

    def _replace(self, entries: tuple[E, ...]) -> None:
        self._entries = entries
        self._generation += 1

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[E]:
        return iter(self._entries)

    @overload
    def __getitem__(self, index: int) -> E: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[E]: ...

    def __getitem__(self, index: int | slice) -> E | Sequence[E]:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"Catalog(kind={self._kind!r}, count={len(self._entries)}, generation={self._generation})"


__all__ = ["Catalog"]
