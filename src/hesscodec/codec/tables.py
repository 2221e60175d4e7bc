"""Per-pass tables shared by position between encoder and decoder.

Each Encoder and Decoder owns one instance of every table. Indices are
assigned in depth-first traversal order, so a writer and a reader that visit
the same value tree assign identical indices without ever sending them.
All tables are append-only during a pass; ``truncate()`` exists so a failed
encode can roll a session back to where it started.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Hashable, TypeVar

from ..exceptions import RefIndexOutOfRange, TypeIndexOutOfRange
from .schema import ClassDefinition

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class ReferenceTable:
    """Composite values (lists, maps, objects) indexed by first appearance.

    On the encode side ``index_of()`` finds values by identity, never by
    equality: two equal but distinct lists are both written in full. The
    table keeps a strong reference to every entry so ``id()`` values cannot
    be recycled during the pass.

    Example:
        >>> refs = ReferenceTable()
        >>> items = [1, 2]
        >>> refs.add(items)
        0
        >>> refs.index_of(items)
        0
        >>> refs.index_of([1, 2]) is None
        True
    """

    def __init__(self) -> None:
        self._entries: list[Any] = []
        self._index_by_id: dict[int, int] = {}

    def add(self, value: Any = None) -> int:
        """Append a value and return its index.

        Args:
            value: The composite, or None to reserve an anonymous slot (a
                streamed composite with no backing object)
        """
        index = len(self._entries)
        self._entries.append(value)
        if value is not None:
            self._index_by_id[id(value)] = index
        return index

    def index_of(self, value: Any) -> int | None:
        """Return the index of this exact object, or None."""
        index = self._index_by_id.get(id(value))
        if index is not None and self._entries[index] is value:
            return index
        return None

    def get(self, index: int, offset: int | None = None) -> Any:
        """Return the entry at index.

        Raises:
            RefIndexOutOfRange: If nothing has been registered at index
        """
        if not 0 <= index < len(self._entries):
            raise RefIndexOutOfRange(index, len(self._entries), offset)
        return self._entries[index]

    def truncate(self, size: int) -> None:
        """Drop every entry at index >= size."""
        for value in self._entries[size:]:
            if value is not None:
                self._index_by_id.pop(id(value), None)
        del self._entries[size:]

    def clear(self) -> None:
        self._entries.clear()
        self._index_by_id.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: Any) -> bool:
        return self.index_of(value) is not None


class _KeyedTable(Generic[K]):
    """Append-only list of hashable keys with reverse lookup."""

    label = "entry"

    def __init__(self) -> None:
        self._keys: list[K] = []
        self._index_by_key: dict[K, int] = {}

    def register(self, key: K) -> tuple[int, bool]:
        """Return (index, is_new) for key, appending it if unseen."""
        index = self._index_by_key.get(key)
        if index is not None:
            return index, False
        index = len(self._keys)
        self._keys.append(key)
        self._index_by_key[key] = index
        return index, True

    def append(self, key: K) -> int:
        """Append key unconditionally (decode side) and return its index."""
        index = len(self._keys)
        self._keys.append(key)
        self._index_by_key.setdefault(key, index)
        return index

    def index_of(self, key: K) -> int | None:
        return self._index_by_key.get(key)

    def get(self, index: int, offset: int | None = None) -> K:
        """Return the key at index.

        Raises:
            TypeIndexOutOfRange: If nothing has been registered at index
        """
        if not 0 <= index < len(self._keys):
            raise TypeIndexOutOfRange(index, len(self._keys), offset, table=self.label)
        return self._keys[index]

    def truncate(self, size: int) -> None:
        for key in self._keys[size:]:
            if self._index_by_key.get(key, -1) >= size:
                del self._index_by_key[key]
        del self._keys[size:]

    def clear(self) -> None:
        self._keys.clear()
        self._index_by_key.clear()

    def __len__(self) -> int:
        return len(self._keys)


class ClassRegistry(_KeyedTable[ClassDefinition]):
    """Class definitions indexed by first appearance in the stream.

    The first object of a class carries its definition; later objects send
    only the index.
    """

    label = "class definition"

    def register(self, key: ClassDefinition) -> tuple[int, bool]:
        index, is_new = super().register(key)
        if is_new:
            logger.debug("registered class %s as definition %d", key.name, index)
        return index, is_new

    def append(self, key: ClassDefinition) -> int:
        index = super().append(key)
        logger.debug("read class %s as definition %d", key.name, index)
        return index


class TypeTable(_KeyedTable[str]):
    """Type names of typed lists and maps; repeats are sent as an index."""

    label = "type name"
