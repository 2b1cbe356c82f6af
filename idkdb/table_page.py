"""Slotted page layout used to store table rows."""

from __future__ import annotations

import struct

from .errors import InternalError
from .latch import Latch
from .pages import PAGE_SIZE, Page

_NUM_TUPLES = struct.Struct("<H")
_NEXT_PAGE = struct.Struct("<I")
_SLOT = struct.Struct("<HH")

# persisted header: tuple count followed by the next page id
HEADER_SIZE = _NUM_TUPLES.size + _NEXT_PAGE.size
SLOT_SIZE = _SLOT.size
# last usable offset of the data area that follows the header
PAGE_END = PAGE_SIZE - HEADER_SIZE


class TablePage:
    """View of a ``Page`` as a slotted table page.

    Slots grow from the start of the data area, tuple bytes grow from its
    end. The view shares the page's buffer and latch.
    """

    def __init__(self, page: Page, read_only: bool = False) -> None:
        self._page = page
        self._page_id = page.page_id
        self._latch = page.latch
        self._read_only = read_only

    @property
    def page_id(self) -> int:
        return self._page_id

    @property
    def latch(self) -> Latch:
        return self._latch

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def is_dirty(self) -> bool:
        return self._page.is_dirty

    @property
    def num_tuples(self) -> int:
        return _NUM_TUPLES.unpack_from(self._page.data, 0)[0]

    @property
    def next_page_id(self) -> int:
        return _NEXT_PAGE.unpack_from(self._page.data, _NUM_TUPLES.size)[0]

    def _check_writable(self) -> None:
        if self._read_only:
            raise InternalError("Cannot modify read only page")

    def _write(self, offset: int, data: bytes) -> None:
        start = HEADER_SIZE + offset
        self._page.write_bytes(start, start + len(data), data)

    def _read(self, offset: int, size: int) -> bytes:
        start = HEADER_SIZE + offset
        return self._page.read_bytes(start, start + size)

    def _slot(self, slot: int) -> tuple[int, int] | None:
        if not 0 <= slot < self.num_tuples:
            return None
        return _SLOT.unpack(self._read(slot * SLOT_SIZE, SLOT_SIZE))

    def _last_tuple_offset(self) -> int:
        last = self._slot(self.num_tuples - 1)
        return PAGE_END if last is None else last[0]

    def free_space(self) -> int:
        return self._last_tuple_offset() - self.num_tuples * SLOT_SIZE

    def set_next_page_id(self, page_id: int) -> None:
        self._check_writable()
        locked = self._latch.try_wlock()
        try:
            self._page.write_bytes(
                _NUM_TUPLES.size, HEADER_SIZE, _NEXT_PAGE.pack(page_id)
            )
        finally:
            if locked:
                self._latch.wunlock()

    def insert_raw(self, data: bytes) -> tuple[int, int]:
        """Store raw bytes in a new slot; return ``(page_id, slot_id)``."""
        self._check_writable()
        size = len(data)
        if size + SLOT_SIZE > self.free_space():
            if self._latch.is_write_locked:
                self._latch.wunlock()
            raise InternalError("Out of space in Table Page")

        tuple_offset = self._last_tuple_offset() - size
        slot_id = self.num_tuples

        self._write(slot_id * SLOT_SIZE, _SLOT.pack(tuple_offset, size))
        self._write(tuple_offset, bytes(data))
        self._page.write_bytes(0, _NUM_TUPLES.size, _NUM_TUPLES.pack(slot_id + 1))

        return self._page_id, slot_id

    def read_raw(self, slot: int) -> bytes:
        """Return the bytes stored in ``slot``."""
        with self._latch.read_guard():
            found = self._slot(slot)
            if found is None:
                raise InternalError(
                    f"Page {self._page_id} Asked for invalid slot {slot} "
                    f"size {self.num_tuples}"
                )
            offset, size = found
            return self._read(offset, size)