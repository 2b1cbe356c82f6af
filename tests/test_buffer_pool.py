import pytest

from idkdb.buffer_pool import CATALOG_PAGE, STARTING_PAGE_ID, BufferPoolManager
from idkdb.errors import InternalError
from idkdb.table_page import PAGE_END, TablePage


@pytest.fixture
def path(tmp_path):
    return tmp_path / "db"


def test_dont_evict_pinned(path):
    bpm = BufferPoolManager(2, path)

    p1 = bpm.new_page().page_id
    p2 = bpm.new_page().page_id

    bpm.fetch_frame(p1)
    bpm.fetch_frame(p2)

    with pytest.raises(InternalError):
        bpm.new_page()

    bpm.unpin(p1)
    assert bpm.new_page().page_id == p2 + 1

    bpm.fetch_frame(p1)
    with pytest.raises(InternalError):
        bpm.new_page()

    bpm.unpin(p2)
    bpm.unpin(p1)
    assert bpm.pin_count(p1) == 0
    assert bpm.pin_count(p2) == 0


def test_shared_latch(path):
    bpm = BufferPoolManager(2, path)

    frame = bpm.new_page()
    page = frame.page
    table_page = TablePage(page)

    assert page.latch.try_wlock()
    assert frame.latch.is_locked()
    assert table_page.latch.is_locked()

    frame.latch.wunlock()
    assert not frame.latch.is_locked()
    assert not table_page.latch.is_locked()


def test_shadow_pages(path):
    bpm = BufferPoolManager(2, path)
    txn_id = 1
    bpm.start_txn(txn_id)

    page = bpm.new_page().page
    lock = page.latch
    page_id = page.page_id
    lock.upgradable_rlock()

    bpm.shadow_page(txn_id, page_id)
    shadow = bpm.fetch_frame(page_id, txn_id).page
    assert shadow is not page
    shadow.latch.try_wlock()

    data = bytes(range(1, 11))
    shadow.write_bytes(PAGE_END - len(data), PAGE_END, data)

    bpm.unpin(page_id, txn_id)

    # both frames are held: the original is pinned, the shadow belongs to the txn
    with pytest.raises(InternalError):
        bpm.new_page()

    lock.upgrade_write()
    bpm.commit_txn(txn_id)
    lock.wunlock()

    new_page = bpm.fetch_frame(page_id).page
    assert not new_page.latch.is_locked()
    assert new_page.read_bytes(PAGE_END - len(data), PAGE_END) == data

    bpm.new_page()
    bpm.unpin(page_id)
    assert bpm.pin_count(page_id) == 0


def test_rollback_discards_shadow(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id

    bpm.start_txn(7)
    bpm.shadow_page(7, page_id)
    shadow = bpm.fetch_frame(page_id, 7).page
    shadow.write_bytes(0, 3, b"abc")

    bpm.rollback_txn(7)

    assert bpm.pin_count(page_id) == 0
    original = bpm.fetch_frame(page_id).page
    assert original.read_bytes(0, 3) == b"\x00\x00\x00"
    bpm.unpin(page_id)


def test_rollback_unknown_txn_raises(path):
    bpm = BufferPoolManager(2, path)
    bpm.disk_manager.start_txn(99)
    with pytest.raises(InternalError):
        bpm.rollback_txn(99)


def test_page_ids_start_after_reserved_and_persist(path):
    bpm = BufferPoolManager(2, path)
    assert bpm.increment_page_id() == STARTING_PAGE_ID
    assert bpm.new_page().page_id == STARTING_PAGE_ID + 1

    reopened = BufferPoolManager(2, path)
    assert reopened.increment_page_id() == STARTING_PAGE_ID + 2


def test_catalog_page_is_fetchable(path):
    bpm = BufferPoolManager(2, path)
    frame = bpm.fetch_frame(CATALOG_PAGE)
    assert frame.page_id == CATALOG_PAGE
    assert bpm.pin_count(CATALOG_PAGE) == 1
    bpm.unpin(CATALOG_PAGE)


def test_eviction_writes_dirty_page(path):
    bpm = BufferPoolManager(1, path)
    p1 = bpm.new_page().page_id

    page = bpm.fetch_frame(p1).page
    page.write_bytes(10, 14, b"data")
    bpm.unpin(p1)

    p2 = bpm.new_page().page_id
    assert bpm.pin_count(p1) is None

    reloaded = bpm.fetch_frame(p1).page
    assert reloaded.read_bytes(10, 14) == b"data"
    assert bpm.pin_count(p2) is None
    bpm.unpin(p1)


def test_evict_frame_returns_lru_frame(path):
    bpm = BufferPoolManager(2, path)
    p1 = bpm.new_page().page_id
    bpm.new_page()
    frame_id = bpm.evict_frame()
    assert frame_id == 0
    assert bpm.pin_count(p1) is None


def test_unpin_unpinned_page_raises(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id
    with pytest.raises(InternalError):
        bpm.unpin(page_id)


def test_unpin_unknown_page_raises(path):
    bpm = BufferPoolManager(2, path)
    with pytest.raises(InternalError):
        bpm.unpin(12345)


def test_pin_count_tracks_fetches(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id
    bpm.fetch_frame(page_id)
    bpm.fetch_frame(page_id)
    assert bpm.pin_count(page_id) == 2
    bpm.unpin(page_id)
    assert bpm.pin_count(page_id) == 1
    bpm.unpin(page_id)


def test_fetch_missing_page_raises(path):
    bpm = BufferPoolManager(2, path)
    with pytest.raises(FileNotFoundError):
        bpm.fetch_frame(500)


def test_flush_single_page(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id
    page = bpm.fetch_frame(page_id).page
    page.write_bytes(0, 2, b"hi")
    bpm.flush(page_id)
    bpm.unpin(page_id)

    assert bpm.disk_manager.read_from_file(page_id).read_bytes(0, 2) == b"hi"


def test_flush_unknown_page_raises(path):
    bpm = BufferPoolManager(2, path)
    with pytest.raises(InternalError):
        bpm.flush(4242)


def test_flush_all_writes_dirty_pages(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id
    page = bpm.fetch_frame(page_id).page
    page.write_bytes(5, 8, b"xyz")
    bpm.unpin(page_id)

    bpm.flush()
    assert bpm.disk_manager.read_from_file(page_id).read_bytes(5, 8) == b"xyz"


def test_flush_all_rejects_pinned_dirty_page(path):
    bpm = BufferPoolManager(2, path)
    page_id = bpm.new_page().page_id
    page = bpm.fetch_frame(page_id).page
    page.write_bytes(0, 1, b"z")
    with pytest.raises(InternalError):
        bpm.flush()
    bpm.unpin(page_id)
    assert bpm.pin_count(page_id) == 0