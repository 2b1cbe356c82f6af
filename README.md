# idkdb

The storage layer of a small relational database engine, in pure Python with
no third-party dependencies.

## What is in the package

- `idkdb.pages.Page` is a fixed 4096-byte block. It has a page id, a dirty
  flag and a `Latch`. `write_bytes` marks the page dirty.
- `idkdb.latch.Latch` is a reader-writer lock with shared (`rlock` and
  `runlock`), upgradable (`upgradable_rlock`, `upgrade_write` and
  `release_upgradable`) and exclusive (`wlock`, `try_wlock` and `wunlock`)
  modes. `read_guard()` is a context manager that holds the lock in shared
  mode.
- `idkdb.table_page.TablePage` is a slotted-page view over a `Page`. Slots
  grow from the front of the data area and tuple bytes grow from its end.
  - `insert_raw` stores bytes in a new slot and returns `(page_id, slot_id)`.
  - `read_raw` returns the bytes stored in a slot.
  - `free_space` reports how much room is left.
- `idkdb.disk_manager.DiskManager` stores each page in a file named after its
  id. The default directory is `data/data/`.
  - Pages written inside a transaction go to `txn/<id>/`.
  - `commit_txn` renames that directory to `<id>.committed` and then moves the
    pages over the originals. `rollback_txn` deletes the directory.
  - When the manager opens a directory, it finishes any transaction that was
    left marked committed and discards the rest.
- `idkdb.replacer.LRUReplacer` picks the evictable frame whose last access is
  the oldest.
- `idkdb.frame.Frame` is a buffer pool slot. It holds a page, a pin count and
  a latch, and every page placed in the frame shares that latch.
- `idkdb.buffer_pool.BufferPoolManager` caches pages in a fixed number of
  frames.
  - It pins pages with `fetch_frame` and releases them with `unpin`.
  - When it needs a frame, it evicts the least recently used unpinned one and
    writes it back if it is dirty.
  - It supports transactional shadow pages: `start_txn`, `shadow_page`,
    `commit_txn` and `rollback_txn`.
  - Page 1 holds the next-page-id counter and page 2 is reserved. New pages
    start at id 3.
- `idkdb.versioned_map.VersionedMap` is a base mapping plus per-version change
  sets that can be committed or rolled back. A version of `None` addresses
  the base directly.
- `idkdb.index_page` holds the B+ tree node layout. It defines `PageType`,
  `LeafValue` and `IndexPage`, and a node holds at most 370 keys.
- `idkdb.btree.BPlusTree` is a B+ tree over `IndexPage` nodes in the buffer
  pool.
  - It supports insert, delete, point search and ordered scans along the
    chained leaves. The scans are `scan` and `scan_from`, and both are
    generators.
  - Deleting a key only marks it. Searches and scans skip marked keys, and
    inserting the key again replaces the mark.
  - Each modified node is flushed to disk right after an insert or delete.

Errors are raised as subclasses of `idkdb.errors.DatabaseError`. For example:

- `TupleNotFoundError` when deleting a missing key.
- `TupleExistsError` when inserting a live duplicate key.
- `InternalError` for misuse, such as running out of frames or writing a page
  with the invalid id 0.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

### Pages and the disk manager

```python
from idkdb.disk_manager import DiskManager
from idkdb.pages import Page

disk = DiskManager("data/example/")

page = Page(42)
page.write_bytes(0, 5, b"hello")
disk.write_to_file(page, None)

loaded = disk.read_from_file(42)
assert loaded.read_bytes(0, 5) == b"hello"
```

### Transactions on disk

```python
disk.start_txn(7)
shadow = disk.shadow_page(7, 42)
shadow.write_bytes(5, 6, b"!")
disk.write_to_file(shadow, 7)
disk.commit_txn(7)        # or disk.rollback_txn(7)
```

### Table pages

```python
from idkdb.pages import Page
from idkdb.table_page import TablePage

table_page = TablePage(Page(8))
page_id, slot = table_page.insert_raw(b"row bytes")
assert table_page.read_raw(slot) == b"row bytes"
```

### The buffer pool

```python
from idkdb.buffer_pool import BufferPoolManager

bpm = BufferPoolManager(16, "data/example/")
frame = bpm.new_page()           # returned unpinned
page_id = frame.page_id

bpm.fetch_frame(page_id, None)   # pins the page
assert bpm.pin_count(page_id) == 1
bpm.unpin(page_id, None)         # the page can be evicted again
bpm.flush(None)                  # writes dirty pages to disk
```

### The B+ tree index

```python
from idkdb.btree import BPlusTree

tree = BPlusTree.create(bpm)
for key in (5, 1, 3):
    tree.insert(key, (key, 0))

assert tree.search(3) == (3, 0)
tree.delete(3)
assert tree.search(3) is None

print(list(tree.scan()))        # [(1, (1, 0)), (5, (5, 0))]
print(list(tree.scan_from(2)))  # [(5, (5, 0))]
```

To reopen an existing tree, call `BPlusTree(bpm, root_page_id)`. The root
keeps its page id when the tree grows, so `tree.root_page_id` stays valid.

### Versioned map

```python
from idkdb.versioned_map import VersionedMap

tables = VersionedMap()
tables.insert(None, "users", 1)
tables.insert(10, "users", 2)
assert tables.get(None, "users") == 1
assert tables.get(10, "users") == 2
tables.commit(10)
assert tables.get(None, "users") == 2
```

## What the package does not do

This is the storage layer only.

- There is no SQL parser, query planner or executor.
- There is no table catalog and there are no typed rows or schemas.
  `TablePage` stores raw bytes.
- There is no transaction manager that assigns transaction ids. The caller
  picks the ids.
- There is no network server and no command-line program.
- `BPlusTree` works outside transactions only. It does not merge or rebalance
  nodes after deletes.