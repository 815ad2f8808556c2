"""Hash table mapping variable names to register symbols."""

from __future__ import annotations

from dataclasses import dataclass

RESIZE_THRESHOLD = 0.5
INITIAL_CAPACITY = 8

_HASH_MASK = (1 << 64) - 1


def _djb2(key: str) -> int:
    value = 5381
    for byte in key.encode("utf-8"):
        value = (value * 33 + byte) & _HASH_MASK
    return value


@dataclass
class Symbol:
    """Where a resolved variable lives."""

    reg: int


@dataclass
class SymbolEntry:
    """A name together with its symbol."""

    key: str
    symbol: Symbol


class SymbolTable:
    """Separately chained hash table that doubles when half full."""

    def __init__(self, initial_capacity: int = INITIAL_CAPACITY) -> None:
        if initial_capacity < 1:
            raise ValueError("initial capacity must be positive")
        self._buckets: list[list[SymbolEntry]] = [[] for _ in range(initial_capacity)]
        self._size = 0

    @property
    def capacity(self) -> int:
        """Number of buckets."""
        return len(self._buckets)

    def _bucket(self, key: str) -> list[SymbolEntry]:
        return self._buckets[_djb2(key) % len(self._buckets)]

    def _resize(self) -> None:
        entries = [entry for bucket in self._buckets for entry in bucket]
        self._buckets = [[] for _ in range(self.capacity * 2)]
        for entry in entries:
            self._bucket(entry.key).append(entry)

    def insert(self, key: str, reg: int) -> bool:
        """Add a name; return False if it is already present."""
        if self._size >= self.capacity * RESIZE_THRESHOLD:
            self._resize()

        bucket = self._bucket(key)
        if any(entry.key == key for entry in bucket):
            return False

        bucket.append(SymbolEntry(key, Symbol(reg)))
        self._size += 1
        return True

    def lookup(self, key: str) -> SymbolEntry | None:
        """Return the entry for a name, or None."""
        return next((entry for entry in self._bucket(key) if entry.key == key), None)

    def delete(self, key: str) -> None:
        """Remove a name if present."""
        bucket = self._bucket(key)
        for position, entry in enumerate(bucket):
            if entry.key == key:
                del bucket[position]
                self._size -= 1
                return

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None