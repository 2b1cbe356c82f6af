"""Fixed-size pages shared by every on-disk structure."""

from __future__ import annotations

from .latch import Latch

PAGE_SIZE = 4096
INVALID_PAGE = 0


class Page:
    """A block of ``PAGE_SIZE`` bytes with an id, a dirty flag and a latch."""

    SIZE = PAGE_SIZE

    def __init__(self, page_id: int = INVALID_PAGE) -> None:
        self.data = bytearray(PAGE_SIZE)
        self.page_id = page_id
        self._dirty = False
        self.latch = Latch()

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    def mark_dirty(self) -> None:
        self._dirty = True

    def read_bytes(self, start: int, end: int) -> bytes:
        if not 0 <= start <= end <= PAGE_SIZE:
            raise IndexError(f"range {start}..{end} outside of page")
        return bytes(self.data[start:end])

    def write_bytes(self, start: int, end: int, data: bytes) -> None:
        if not 0 <= start <= end <= PAGE_SIZE:
            raise IndexError(f"range {start}..{end} outside of page")
        if len(data) != end - start:
            raise ValueError(
                f"expected {end - start} bytes, got {len(data)}"
            )
        self.data[start:end] = data
        self.mark_dirty()

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> Page:
        if len(data) != PAGE_SIZE:
            raise ValueError(f"a page holds exactly {PAGE_SIZE} bytes, got {len(data)}")
        page = cls()
        page.data[:] = data
        return page