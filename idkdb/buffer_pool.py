"""Buffer pool that caches disk pages in a fixed set of frames."""

from __future__ import annotations

import os
import struct
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Union

from .disk_manager import DISK_STORAGE, DiskManager
from .errors import InternalError
from .frame import Frame
from .pages import INVALID_PAGE, Page
from .replacer import LRUReplacer

BUFFER_POOL_SIZE = 10_000
# page 0 is invalid, 1 holds buffer pool state, 2 belongs to the catalog
BUFFER_POOL_PAGE = 1
CATALOG_PAGE = 2
STARTING_PAGE_ID = 3

_PAGE_ID = struct.Struct("<I")


class BufferPoolManager:
    """Keeps pages in memory, pins them while in use and evicts the LRU one.

    Transactions write to shadow copies of pages held in extra frames; the
    copies replace the originals on commit and are dropped on rollback.
    """

    def __init__(
        self,
        size: int = BUFFER_POOL_SIZE,
        path: Union[str, os.PathLike] = DISK_STORAGE,
    ) -> None:
        self.disk_manager = DiskManager(path)
        self._frames: List[Frame] = [Frame() for _ in range(size)]
        self._free_frames: Deque[int] = deque(range(size))
        self._page_table: Dict[int, int] = {}
        self._txn_table: Dict[int, Set[int]] = {}
        self._replacer = LRUReplacer(size)

        # the catalog page must always be fetchable
        try:
            self.disk_manager.read_from_file(CATALOG_PAGE)
        except (OSError, InternalError):
            self.disk_manager.write_to_file(Page(CATALOG_PAGE))

        try:
            self._state_page = self.disk_manager.read_from_file(BUFFER_POOL_PAGE)
        except (OSError, InternalError):
            self._state_page = Page(BUFFER_POOL_PAGE)
            self._state_page.write_bytes(
                0, _PAGE_ID.size, _PAGE_ID.pack(STARTING_PAGE_ID)
            )

    def increment_page_id(self) -> int:
        """Reserve the next page id and persist the counter."""
        (page_id,) = _PAGE_ID.unpack(self._state_page.read_bytes(0, _PAGE_ID.size))
        self._state_page.write_bytes(0, _PAGE_ID.size, _PAGE_ID.pack(page_id + 1))
        self.disk_manager.write_to_file(self._state_page)
        return page_id

    def _find_free_frame(self) -> int:
        if self._free_frames:
            return self._free_frames.popleft()
        if self._replacer.can_evict():
            return self.evict_frame()
        raise InternalError("no free frames to evict")

    def _shadow_frame_id(self, txn_id: int, page_id: int) -> Optional[int]:
        for frame_id in self._txn_table.get(txn_id, ()):
            if self._frames[frame_id].page_id == page_id:
                return frame_id
        return None

    def fetch_frame(self, page_id: int, txn_id: Optional[int] = None) -> Frame:
        """Return the pinned frame holding ``page_id``.

        Inside a transaction the shadow copy is returned when the page has
        been shadowed, the original otherwise.
        """
        if txn_id is not None:
            frame_id = self._shadow_frame_id(txn_id, page_id)
            if frame_id is None:
                return self.fetch_frame(page_id, None)
        elif page_id in self._page_table:
            frame_id = self._page_table[page_id]
        else:
            page = self.disk_manager.read_from_file(page_id)
            frame_id = self._find_free_frame()
            self._frames[frame_id].set_page(page)
            self._page_table[page_id] = frame_id

        frame = self._frames[frame_id]
        frame.pin()
        self._replacer.record_access(frame_id)
        return frame

    def new_page(self) -> Frame:
        """Allocate a fresh page, write it to disk and return its unpinned frame."""
        frame_id = self._find_free_frame()
        page_id = self.increment_page_id()

        self._replacer.record_access(frame_id)
        self._replacer.set_evictable(frame_id, True)

        page = Page(page_id)
        self.disk_manager.write_to_file(page)

        frame = self._frames[frame_id]
        frame.set_page(page)
        self._page_table[page_id] = frame_id
        return frame

    def evict_frame(self) -> int:
        """Evict the least recently used frame, writing it back if dirty."""
        frame_id = self._replacer.evict()
        frame = self._frames[frame_id]
        if frame.pin_count != 0:
            raise InternalError(
                f"frame {frame_id} chosen for eviction has pin count {frame.pin_count}"
            )
        page = frame.page
        self._page_table.pop(page.page_id, None)
        if page.is_dirty:
            self.disk_manager.write_to_file(page)
            page.mark_clean()
        return frame_id

    def unpin(self, page_id: int, txn_id: Optional[int] = None) -> None:
        """Release one pin on a page.

        Shadowed pages of a transaction stay pinned until it ends, so
        unpinning them inside that transaction does nothing.
        """
        if txn_id is not None:
            if txn_id not in self._txn_table:
                raise InternalError(f"Unknown transaction {txn_id}")
            if self._shadow_frame_id(txn_id, page_id) is not None:
                return

        try:
            frame_id = self._page_table[page_id]
        except KeyError:
            raise InternalError(f"page {page_id} is not in the buffer pool") from None

        frame = self._frames[frame_id]
        if frame.pin_count == 0:
            raise InternalError(
                f"frame {frame_id} has pin count 0, but an unpin was attempted"
            )
        frame.unpin()
        if frame.pin_count == 0:
            self._replacer.set_evictable(frame_id, True)

    def pin_count(self, page_id: int) -> Optional[int]:
        frame_id = self._page_table.get(page_id)
        if frame_id is None:
            return None
        return self._frames[frame_id].pin_count

    def start_txn(self, txn_id: int) -> None:
        self._txn_table[txn_id] = set()
        self.disk_manager.start_txn(txn_id)

    def shadow_page(self, txn_id: int, page_id: int) -> Frame:
        """Give the transaction its own copy of a page; return the pinned original."""
        shadowed = self.disk_manager.shadow_page(txn_id, page_id)

        shadow_frame_id = self._find_free_frame()
        self._frames[shadow_frame_id].set_page(shadowed)
        self._txn_table[txn_id].add(shadow_frame_id)

        # keep the original in memory until the transaction ends
        return self.fetch_frame(page_id, None)

    def _release_shadow(self, shadow_frame_id: int) -> Frame:
        shadow_frame = self._frames[shadow_frame_id]
        self._frames[shadow_frame_id] = Frame()
        self._replacer.remove(shadow_frame_id)
        self._free_frames.append(shadow_frame_id)
        return shadow_frame

    def commit_txn(self, txn_id: int) -> None:
        """Make a transaction's shadow pages the current ones.

        The latches of the original pages must be held for writing.
        """
        shadow_ids = self._txn_table[txn_id]
        for shadow_frame_id in shadow_ids:
            page = self._frames[shadow_frame_id].page
            self.disk_manager.write_to_file(page, txn_id)
            page.mark_clean()

        self.disk_manager.commit_txn(txn_id)

        for shadow_frame_id in list(shadow_ids):
            shadow_frame = self._frames[shadow_frame_id]
            page_id = shadow_frame.page_id
            original = self._frames[self._page_table[page_id]]
            original.take_page(shadow_frame)
            self.unpin(page_id, None)
            self._release_shadow(shadow_frame_id)

        del self._txn_table[txn_id]

    def rollback_txn(self, txn_id: int) -> None:
        """Discard a transaction's shadow pages."""
        self.disk_manager.rollback_txn(txn_id)

        shadow_ids = self._txn_table.get(txn_id)
        if shadow_ids is None:
            raise InternalError("Invalid txn id")

        for shadow_frame_id in list(shadow_ids):
            page_id = self._frames[shadow_frame_id].page_id
            self.unpin(page_id, None)
            self._release_shadow(shadow_frame_id)

        del self._txn_table[txn_id]

    def flush(self, page_id: Optional[int] = None) -> None:
        """Write one page, or every dirty unpinned page, to disk."""
        if page_id is not None:
            try:
                frame_id = self._page_table[page_id]
            except KeyError:
                raise InternalError(
                    f"page {page_id} is not in the buffer pool"
                ) from None
            self.disk_manager.write_to_file(self._frames[frame_id].page)
            return

        for frame in self._frames:
            page = frame.page
            if page.page_id == INVALID_PAGE or not page.is_dirty:
                continue
            if frame.pin_count != 0:
                raise InternalError(
                    f"Frame {frame.page_id} has pin count {frame.pin_count}"
                )
            self.disk_manager.write_to_file(page)