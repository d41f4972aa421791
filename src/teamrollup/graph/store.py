"""NodeStore - identity-based lookup over nodes or records.

The store is the leaf dependency of the engine: TreeBuilder indexes records
into it, and every Forest keeps its nodes in one. A store is never edited
after it is handed out; replace() returns a new store.
"""

from __future__ import annotations

import logging
from typing import Generic, Iterable, Iterator, Protocol, TypeVar

logger = logging.getLogger(__name__)


class _Identified(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=_Identified)


class NodeStore(Generic[T]):
    """Insertion-ordered mapping of id to item.

    Example:
        >>> store = NodeStore(records)
        >>> store.get("team-1")
        FlatRecord(id='team-1', ...)
    """

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: dict[str, T] = {}
        for item in items:
            if item.id in self._items:
                logger.warning("Duplicate id %r: later entry replaces earlier one", item.id)
            self._items[item.id] = item

    @classmethod
    def _from_mapping(cls, mapping: dict[str, T]) -> NodeStore[T]:
        store: NodeStore[T] = cls()
        store._items = mapping
        return store

    def get(self, item_id: str | None, default: T | None = None) -> T | None:
        """Find an item by id, or return default."""
        if item_id is None:
            return default
        return self._items.get(item_id, default)

    def __getitem__(self, item_id: str) -> T:
        try:
            return self._items[item_id]
        except KeyError:
            raise KeyError(f"Node '{item_id}' not found") from None

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items.values())

    def ids(self) -> list[str]:
        """Return all ids in insertion order."""
        return list(self._items)

    def values(self) -> list[T]:
        """Return all items in insertion order."""
        return list(self._items.values())

    def replace(self, items: Iterable[T]) -> NodeStore[T]:
        """Return a new store with the given items swapped in by id.

        Positions of existing ids are preserved; unknown ids are appended.
        """
        mapping = dict(self._items)
        for item in items:
            mapping[item.id] = item
        return self._from_mapping(mapping)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeStore):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"NodeStore({len(self._items)} items)"


__all__ = ["NodeStore"]
