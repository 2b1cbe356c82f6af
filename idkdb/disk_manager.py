"""Page storage on disk, one file per page, with shadow-copy transactions."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Optional, Union

from .errors import InternalError
from .pages import INVALID_PAGE, PAGE_SIZE, Page

DISK_STORAGE = "data/data/"

_TXN_DIR = "txn"
_COMMITTED_SUFFIX = "committed"


class DiskManager:
    """Stores each page in a file named after its id.

    Pages written inside a transaction go to a per-transaction directory
    under ``txn/`` and are moved over the originals on commit. Committed
    transactions left behind by a crash are finished when the manager
    opens the directory; uncommitted ones are discarded.
    """

    def __init__(self, path: Union[str, os.PathLike] = DISK_STORAGE) -> None:
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)
        self._recover_txns()
        self.txn_dir.mkdir(parents=True, exist_ok=True)

    @property
    def txn_dir(self) -> Path:
        return self.path / _TXN_DIR

    def _txn_cache(self, txn_id: int) -> Path:
        return self.txn_dir / str(txn_id)

    def _move_pages_home(self, directory: Path) -> None:
        for page_file in directory.iterdir():
            os.replace(page_file, self.path / page_file.name)

    def _recover_txns(self) -> None:
        if not self.txn_dir.is_dir():
            return
        for entry in self.txn_dir.iterdir():
            if entry.is_dir() and entry.name.endswith(_COMMITTED_SUFFIX):
                self._move_pages_home(entry)
        # whatever was not committed can be dropped
        shutil.rmtree(self.txn_dir)

    def write_to_file(self, page: Page, txn_id: Optional[int] = None) -> None:
        """Write ``page`` to its file, inside the transaction's cache if given."""
        if page.page_id == INVALID_PAGE:
            raise InternalError("Asked to write a page with invalid ID")
        root = self.path if txn_id is None else self._txn_cache(txn_id)
        with open(root / str(page.page_id), "wb") as file:
            file.write(page.to_bytes())

    @staticmethod
    def _load(path: Path, page_id: int) -> Page:
        with open(path, "rb") as file:
            data = file.read(PAGE_SIZE)
        if len(data) != PAGE_SIZE:
            raise InternalError(
                f"Failed to read page {page_id} from disk: "
                f"expected {PAGE_SIZE} bytes, got {len(data)}"
            )
        page = Page.from_bytes(data)
        page.page_id = page_id
        return page

    def read_from_file(self, page_id: int) -> Page:
        """Read a committed page; raises ``FileNotFoundError`` if it was never written."""
        if page_id == INVALID_PAGE:
            raise InternalError(f"Asked to read a page with invalid ID {page_id}")
        return self._load(self.path / str(page_id), page_id)

    def start_txn(self, txn_id: int) -> None:
        self._txn_cache(txn_id).mkdir(parents=True, exist_ok=True)

    def shadow_page(self, txn_id: int, page_id: int) -> Page:
        """Copy a page into the transaction's cache and return the copy."""
        target = self._txn_cache(txn_id) / str(page_id)
        shutil.copyfile(self.path / str(page_id), target)
        return self._load(target, page_id)

    def rollback_txn(self, txn_id: int) -> None:
        shutil.rmtree(self._txn_cache(txn_id))

    def commit_txn(self, txn_id: int) -> None:
        committed = self.txn_dir / f"{txn_id}.{_COMMITTED_SUFFIX}"
        # the rename marks the transaction durable; moving pages can be redone
        os.replace(self._txn_cache(txn_id), committed)
        self._move_pages_home(committed)
        shutil.rmtree(committed)