import pytest

from idkdb.errors import InternalError
from idkdb.pages import PAGE_SIZE, Page
from idkdb.table_page import PAGE_END, SLOT_SIZE, TablePage


def test_lock_sharing():
    page = Page()
    t1 = TablePage(page)
    t2 = TablePage(page)

    t1.latch.try_wlock()
    assert t2.latch.is_locked()
    assert page.latch.is_locked()

    t1.latch.wunlock()
    assert not t2.latch.is_locked()
    assert not page.latch.is_locked()

    t1.latch.rlock()
    page.latch.upgradable_rlock()
    t2.latch.rlock()
    assert page.latch.is_locked()
    assert page.latch.try_wlock() is False


def test_underlying_page_share():
    page = Page()
    table_page = TablePage(page)
    table_page_2 = TablePage(page)

    data = (300).to_bytes(4, "little")
    table_page.insert_raw(data)

    assert page.read_bytes(PAGE_SIZE - len(data), PAGE_SIZE) == data
    assert page.is_dirty
    assert table_page.is_dirty
    assert table_page_2.is_dirty
    assert table_page_2.read_raw(0) == data


def test_insert_returns_page_and_slot_ids():
    page = Page(8888)
    table_page = TablePage(page)
    assert table_page.insert_raw(b"Hello!") == (8888, 0)
    assert table_page.insert_raw(b"World") == (8888, 1)
    assert table_page.num_tuples == 2
    assert table_page.read_raw(0) == b"Hello!"
    assert table_page.read_raw(1) == b"World"


def test_free_space_shrinks_by_tuple_and_slot():
    table_page = TablePage(Page(1))
    assert table_page.free_space() == PAGE_END
    before = table_page.free_space()
    table_page.insert_raw(b"abcd")
    assert table_page.free_space() == before - 4 - SLOT_SIZE


def test_out_of_space():
    table_page = TablePage(Page(1))
    table_page.insert_raw(b"x" * (PAGE_END - SLOT_SIZE))
    assert table_page.free_space() == 0
    with pytest.raises(InternalError):
        table_page.insert_raw(b"y")
    assert table_page.num_tuples == 1


def test_out_of_space_releases_write_latch():
    page = Page(1)
    table_page = TablePage(page)
    page.latch.wlock()
    with pytest.raises(InternalError):
        table_page.insert_raw(b"z" * PAGE_SIZE)
    assert page.latch.is_locked() is False


def test_read_invalid_slot():
    table_page = TablePage(Page(3))
    with pytest.raises(InternalError):
        table_page.read_raw(0)


def test_read_only_view_rejects_writes():
    page = Page(3)
    view = TablePage(page, read_only=True)
    with pytest.raises(InternalError):
        view.insert_raw(b"data")
    with pytest.raises(InternalError):
        view.set_next_page_id(5)
    assert page.is_dirty is False


def test_next_page_id_round_trip():
    page = Page(4)
    table_page = TablePage(page)
    assert table_page.next_page_id == 0
    table_page.set_next_page_id(77)
    assert table_page.next_page_id == 77
    assert page.is_dirty
    assert page.latch.is_locked() is False
    assert TablePage(Page.from_bytes(page.to_bytes())).next_page_id == 77


def test_contents_survive_serialisation():
    page = Page(5)
    TablePage(page).insert_raw(b"persist")
    restored = TablePage(Page.from_bytes(page.to_bytes()), read_only=True)
    assert restored.num_tuples == 1
    assert restored.read_raw(0) == b"persist"