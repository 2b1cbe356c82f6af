"""Storage engine core: pages, latches, disk manager, buffer pool, versioned map and B+ tree index."""

__version__ = "0.1.0"