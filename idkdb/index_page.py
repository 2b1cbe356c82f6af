"""B+ tree node layout stored inside a page."""

from __future__ import annotations

import enum
import struct
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .errors import InternalError, TupleExistsError, TupleNotFoundError
from .latch import Latch
from .pages import PAGE_SIZE, Page

# B+ tree branching factor
FACTOR = 371
KEYS_PER_NODE = FACTOR - 1

_HEADER = struct.Struct("<IIHH")  # page type, next page, key count, value count
_KEY = struct.Struct("<I")
_LEAF_VALUE = struct.Struct("<IHB")

LEAF_VALUE_SIZE = _LEAF_VALUE.size
_KEYS_OFFSET = _HEADER.size
_VALUES_OFFSET = _KEYS_OFFSET + KEYS_PER_NODE * _KEY.size

assert _VALUES_OFFSET + FACTOR * LEAF_VALUE_SIZE <= PAGE_SIZE


class PageType(enum.IntEnum):
    """Kind of a B+ tree node; a zeroed page reads as ``INVALID``."""

    INVALID = 0
    LEAF = 1
    INNER = 2


@dataclass(frozen=True)
class LeafValue:
    """Pointer stored in a node: a tuple id in leaves, a child page in inner nodes."""

    page_id: int
    slot_id: int
    is_deleted: bool = False

    @property
    def tuple_id(self) -> Tuple[int, int]:
        return self.page_id, self.slot_id

    def to_bytes(self) -> bytes:
        return _LEAF_VALUE.pack(self.page_id, self.slot_id, 1 if self.is_deleted else 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> LeafValue:
        if len(data) < LEAF_VALUE_SIZE:
            raise ValueError(
                f"a leaf value needs {LEAF_VALUE_SIZE} bytes, got {len(data)}"
            )
        page_id, slot_id, deleted = _LEAF_VALUE.unpack_from(data)
        return cls(page_id, slot_id, deleted == 1)


class IndexPage:
    """View of a ``Page`` as a B+ tree node.

    Leaves hold one value per key; inner nodes hold one more child pointer
    than keys. The view shares the page's buffer and latch.
    """

    def __init__(self, page: Page) -> None:
        self._page = page
        self.page_id = page.page_id
        self.latch: Latch = page.latch

    # --- raw layout -------------------------------------------------------

    def _header(self) -> Tuple[int, int, int, int]:
        return _HEADER.unpack_from(self._page.data, 0)

    def _write_header(self, page_type: int, next_page: int, nkeys: int, nvalues: int) -> None:
        self._page.write_bytes(
            0, _HEADER.size, _HEADER.pack(page_type, next_page, nkeys, nvalues)
        )

    @property
    def page_type(self) -> PageType:
        return PageType(self._header()[0])

    @page_type.setter
    def page_type(self, page_type: PageType) -> None:
        _, next_page, nkeys, nvalues = self._header()
        self._write_header(int(page_type), next_page, nkeys, nvalues)

    @property
    def next_page_id(self) -> int:
        return self._header()[1]

    def set_next_page_id(self, page_id: int) -> None:
        page_type, _, nkeys, nvalues = self._header()
        self._write_header(page_type, page_id, nkeys, nvalues)

    @property
    def keys(self) -> List[int]:
        nkeys = self._header()[2]
        return list(struct.unpack_from(f"<{nkeys}I", self._page.data, _KEYS_OFFSET))

    @property
    def values(self) -> List[LeafValue]:
        nvalues = self._header()[3]
        end = _VALUES_OFFSET + nvalues * LEAF_VALUE_SIZE
        raw = memoryview(self._page.data)[_VALUES_OFFSET:end]
        return [
            LeafValue(page_id, slot_id, deleted == 1)
            for page_id, slot_id, deleted in _LEAF_VALUE.iter_unpack(raw)
        ]

    def _store(self, keys: List[int], values: List[LeafValue]) -> None:
        if len(keys) > KEYS_PER_NODE or len(values) > FACTOR:
            raise InternalError("Index page capacity exceeded")
        page_type, next_page, _, _ = self._header()
        self._write_header(page_type, next_page, len(keys), len(values))
        key_bytes = struct.pack(f"<{len(keys)}I", *keys)
        self._page.write_bytes(_KEYS_OFFSET, _KEYS_OFFSET + len(key_bytes), key_bytes)
        value_bytes = b"".join(v.to_bytes() for v in values)
        self._page.write_bytes(
            _VALUES_OFFSET, _VALUES_OFFSET + len(value_bytes), value_bytes
        )

    def _require(self, expected: PageType) -> None:
        actual = self.page_type
        if actual != expected:
            raise InternalError(f"Expected a {expected.name} page, got {actual.name}")

    # --- node operations --------------------------------------------------

    def __len__(self) -> int:
        return self._header()[2]

    def is_full(self) -> bool:
        return len(self) == KEYS_PER_NODE

    def pair_at(self, index: int) -> Tuple[int, LeafValue]:
        return self.keys[index], self.values[index]

    def insert(self, key: int, value: LeafValue) -> None:
        """Insert a key; a deleted entry with the same key is replaced."""
        if self.is_full():
            raise InternalError("Out of space in Index page")

        page_type = self.page_type
        keys, values = self.keys, self.values
        pos = bisect_left(keys, key)
        if pos < len(keys) and keys[pos] == key:
            if not values[pos].is_deleted:
                raise TupleExistsError()
            del keys[pos]
            del values[pos]

        if page_type == PageType.LEAF:
            values.insert(pos, value)
        elif page_type == PageType.INNER:
            values.insert(pos + 1, value)
        else:
            raise InternalError("Page type was not initialized properly")
        keys.insert(pos, key)
        self._store(keys, values)

    def delete(self, key: int) -> None:
        """Mark a leaf entry as deleted."""
        self._require(PageType.LEAF)
        keys, values = self.keys, self.values
        pos = bisect_left(keys, key)
        if pos == len(keys) or keys[pos] != key or values[pos].is_deleted:
            raise TupleNotFoundError()
        values[pos] = replace(values[pos], is_deleted=True)
        self._store(keys, values)

    def search(self, key: int) -> Optional[LeafValue]:
        """Return the value stored for ``key`` in a leaf, deleted or not."""
        self._require(PageType.LEAF)
        with self.latch.read_guard():
            keys = self.keys
            pos = bisect_left(keys, key)
            if pos < len(keys) and keys[pos] == key:
                return self.values[pos]
            return None

    def find_index(self, key: int) -> int:
        """Position of ``key`` in a leaf, or where it would be inserted."""
        self._require(PageType.LEAF)
        with self.latch.read_guard():
            return bisect_left(self.keys, key)

    def find_leaf(self, key: int) -> int:
        """Page id of the child of an inner node that covers ``key``."""
        self._require(PageType.INNER)
        with self.latch.read_guard():
            pos = bisect_right(self.keys, key)
            return self.values[pos].page_id

    def insert_first_pair(self, left: LeafValue, right: LeafValue, key: int) -> None:
        """Populate a fresh root with two children separated by ``key``."""
        keys, values = self.keys, self.values
        values[0:0] = [left, right]
        keys.insert(0, key)
        self._store(keys, values)
        self._page.mark_dirty()

    def _split(self, new_page: IndexPage, kind: PageType) -> Tuple[IndexPage, int]:
        self._require(kind)
        keys, values = self.keys, self.values
        mid = len(keys) // 2
        median = keys[mid]
        key_start = mid + 1 if kind == PageType.INNER else mid

        new_page._store(new_page.keys + keys[key_start:], new_page.values + values[key_start:])
        self._store(keys[:mid], values[:key_start])

        new_page.page_type = kind
        new_page.set_next_page_id(self.next_page_id)
        self.set_next_page_id(new_page.page_id)
        return new_page, median

    def split_inner(self, new_page: IndexPage) -> Tuple[IndexPage, int]:
        """Move the upper half to ``new_page``; the median moves up and is returned."""
        return self._split(new_page, PageType.INNER)

    def split_leaf(self, new_page: IndexPage) -> Tuple[IndexPage, int]:
        """Move the upper half, median included, to ``new_page``."""
        return self._split(new_page, PageType.LEAF)

    def swap_contents(self, other: IndexPage) -> None:
        """Exchange node contents with ``other``; page ids stay where they are."""
        mine = self._page.to_bytes()
        theirs = other._page.to_bytes()
        self._page.write_bytes(0, PAGE_SIZE, theirs)
        other._page.write_bytes(0, PAGE_SIZE, mine)