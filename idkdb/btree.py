"""B+ tree index mapping integer keys to tuple ids, stored in buffer pool pages."""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from .buffer_pool import BufferPoolManager
from .errors import InternalError
from .index_page import IndexPage, LeafValue, PageType
from .pages import INVALID_PAGE

TupleId = Tuple[int, int]
Entry = Tuple[int, TupleId]


class BPlusTree:
    """A B+ tree whose nodes live in pages managed by a buffer pool.

    Leaves are chained through their next-page pointers, so scans walk the
    leaf level left to right. Deleted keys are only marked and are skipped
    by searches and scans; inserting the key again replaces the mark.
    """

    def __init__(self, bpm: BufferPoolManager, root_page_id: int) -> None:
        self.bpm = bpm
        self._root_page_id = root_page_id

    @classmethod
    def create(cls, bpm: BufferPoolManager) -> BPlusTree:
        """Allocate an empty tree whose root is a fresh leaf page."""
        root_page_id = bpm.new_page().page_id
        tree = cls(bpm, root_page_id)
        root = tree._load_page(root_page_id)
        try:
            root.page_type = PageType.LEAF
        finally:
            tree._unpin(root_page_id)
        return tree

    @property
    def root_page_id(self) -> int:
        return self._root_page_id

    # --- page helpers -----------------------------------------------------

    def _load_page(self, page_id: int) -> IndexPage:
        """Fetch and pin a page, viewed as an index node."""
        return IndexPage(self.bpm.fetch_frame(page_id, None).page)

    def _unpin(self, page_id: int) -> None:
        self.bpm.unpin(page_id, None)

    def _new_page(self, page_type: PageType) -> IndexPage:
        """Allocate a new pinned node of the given type."""
        page_id = self.bpm.new_page().page_id
        page = self._load_page(page_id)
        page.page_type = page_type
        return page

    @staticmethod
    def _child_value(page: IndexPage) -> LeafValue:
        return LeafValue(page.page_id, 0)

    def _find_leaf(self, page: IndexPage, key: int) -> IndexPage:
        """Descend from a pinned node to the leaf covering ``key``.

        Nodes left behind are unpinned; the returned leaf stays pinned.
        """
        while True:
            page_type = page.page_type
            if page_type == PageType.LEAF:
                return page
            if page_type != PageType.INNER:
                self._unpin(page.page_id)
                raise InternalError("Page type was not initialized properly")
            child_id = page.find_leaf(key)
            self._unpin(page.page_id)
            page = self._load_page(child_id)

    # --- operations -------------------------------------------------------

    def search(self, key: int) -> Optional[TupleId]:
        """Return the tuple id stored for ``key``, or None if absent or deleted."""
        leaf = self._find_leaf(self._load_page(self._root_page_id), key)
        try:
            value = leaf.search(key)
        finally:
            self._unpin(leaf.page_id)
        if value is None or value.is_deleted:
            return None
        return value.tuple_id

    def delete(self, key: int) -> None:
        """Mark ``key`` as deleted; raises ``TupleNotFoundError`` if it is absent."""
        leaf = self._find_leaf(self._load_page(self._root_page_id), key)
        try:
            leaf.delete(key)
            self.bpm.flush(leaf.page_id)
        finally:
            self._unpin(leaf.page_id)

    def _insert_into_page(
        self, page: IndexPage, key: int, value: LeafValue
    ) -> Optional[Tuple[IndexPage, int]]:
        """Insert below ``page``; on a split return the new pinned right node and its separator."""
        page_type = page.page_type
        result: Optional[Tuple[IndexPage, int]] = None

        if page_type == PageType.LEAF:
            if page.is_full():
                right, median = page.split_leaf(self._new_page(PageType.LEAF))
                (page if key < median else right).insert(key, value)
                result = (right, median)
            else:
                page.insert(key, value)
        elif page_type == PageType.INNER:
            child_id = page.find_leaf(key)
            child = self._load_page(child_id)
            try:
                split = self._insert_into_page(child, key, value)
                if split is not None:
                    new_child, new_key = split
                    child_value = self._child_value(new_child)
                    self._unpin(new_child.page_id)
                    if page.is_full():
                        right, median = page.split_inner(self._new_page(PageType.INNER))
                        (page if new_key < median else right).insert(new_key, child_value)
                        result = (right, median)
                    else:
                        page.insert(new_key, child_value)
            finally:
                self._unpin(child_id)
        else:
            raise InternalError("Page type was not initialized properly")

        self.bpm.flush(page.page_id)
        return result

    def _new_root(self, root: IndexPage, right: IndexPage, median: int) -> None:
        """Grow the tree by one level while keeping the root's page id."""
        left = self._new_page(PageType.INNER)
        try:
            left.swap_contents(root)
            root.insert_first_pair(self._child_value(left), self._child_value(right), median)
        finally:
            self._unpin(left.page_id)
            self._unpin(right.page_id)

    def insert(self, key: int, tuple_id: TupleId) -> None:
        """Map ``key`` to ``tuple_id``; raises ``TupleExistsError`` for a live duplicate."""
        value = LeafValue(tuple_id[0], tuple_id[1])
        root = self._load_page(self._root_page_id)
        try:
            split = self._insert_into_page(root, key, value)
            if split is not None:
                right, median = split
                self._new_root(root, right, median)
        finally:
            self._unpin(self._root_page_id)

    # --- scans ------------------------------------------------------------

    def _walk_leaves(self, page: IndexPage, index: int) -> Iterator[Entry]:
        """Yield live entries from a pinned leaf onwards, releasing pins as it goes."""
        current: Optional[IndexPage] = page
        try:
            while current is not None:
                keys, values = current.keys, current.values
                for key, value in zip(keys[index:], values[index:]):
                    if not value.is_deleted:
                        yield key, value.tuple_id
                next_id = current.next_page_id
                self._unpin(current.page_id)
                current = None
                if next_id != INVALID_PAGE:
                    current = self._load_page(next_id)
                    index = 0
        finally:
            if current is not None:
                self._unpin(current.page_id)

    def scan(self) -> Iterator[Entry]:
        """Yield every live ``(key, tuple_id)`` in key order."""
        page = self._load_page(self._root_page_id)
        while page.page_type == PageType.INNER:
            _, first = page.pair_at(0)
            self._unpin(page.page_id)
            page = self._load_page(first.page_id)
        yield from self._walk_leaves(page, 0)

    def scan_from(self, key: int) -> Iterator[Entry]:
        """Yield live ``(key, tuple_id)`` pairs with keys at or above ``key``."""
        leaf = self._find_leaf(self._load_page(self._root_page_id), key)
        try:
            index = leaf.find_index(key)
        except BaseException:
            self._unpin(leaf.page_id)
            raise
        yield from self._walk_leaves(leaf, index)