"""Map with per-version pending changes that can be committed or rolled back."""

from __future__ import annotations

from typing import Dict, Generic, Hashable, List, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_DELETED = object()


class VersionedMap(Generic[K, V]):
    """A base mapping plus isolated change sets keyed by version number.

    A version of ``None`` addresses the base mapping directly.
    """

    def __init__(self) -> None:
        self._base: Dict[K, V] = {}
        self._versions: Dict[int, Dict[K, object]] = {}

    def insert(self, version: Optional[int], key: K, value: V) -> None:
        if version is None:
            self._base[key] = value
        else:
            self._versions.setdefault(version, {})[key] = value

    def get(self, version: Optional[int], key: K) -> Optional[V]:
        if version is not None:
            changes = self._versions.get(version)
            if changes is not None and key in changes:
                entry = changes[key]
                return None if entry is _DELETED else entry  # type: ignore[return-value]
        return self._base.get(key)

    def remove(self, version: Optional[int], key: K) -> Optional[V]:
        """Remove ``key``; a versioned removal is only marked and returns None."""
        if version is None:
            return self._base.pop(key, None)
        self._versions.setdefault(version, {})[key] = _DELETED
        return None

    def commit(self, version: int) -> List[K]:
        """Apply a version's changes to the base; return the keys it set."""
        written: List[K] = []
        for key, value in self._versions.pop(version, {}).items():
            if value is _DELETED:
                self._base.pop(key, None)
            else:
                written.append(key)
                self._base[key] = value  # type: ignore[assignment]
        return written

    def rollback(self, version: int) -> None:
        self._versions.pop(version, None)