"""Buffer pool slot holding one page and its pin count."""

from __future__ import annotations

from typing import Optional

from .errors import InternalError
from .latch import Latch
from .pages import Page


class Frame:
    """A slot of the buffer pool.

    Every page placed in the frame shares the frame's latch, so the latch
    outlives page swaps.
    """

    def __init__(self, page: Optional[Page] = None) -> None:
        self.latch = Latch()
        self.pin_count = 0
        self.page = Page()
        self.set_page(page if page is not None else Page())

    @property
    def page_id(self) -> int:
        return self.page.page_id

    def pin(self) -> None:
        self.pin_count += 1

    def unpin(self) -> None:
        if self.pin_count == 0:
            raise InternalError("Unpinning a frame with pin count 0")
        self.pin_count -= 1

    def set_page(self, page: Page) -> None:
        page.latch = self.latch
        self.page = page

    def take_page(self, other: Frame) -> None:
        """Move the page out of ``other``; this frame's latch must be held."""
        if not self.latch.is_locked():
            raise InternalError("Frame latch must be held to replace its page")
        self.set_page(other.page)