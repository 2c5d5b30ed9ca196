"""Byte stores with expiry: in memory, on disk, and a two-tier combination."""

from __future__ import annotations

import os
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Union

DEFAULT_MAX_ENTRIES = 1_000_000
DEFAULT_MAX_CAPACITY = 1 << 30  # 1 GiB

MIN_DISK_CAPACITY = 1 << 20  # 1 MiB
MAX_DISK_CAPACITY = 2 << 30  # 2 GiB

TTL = Union[timedelta, float, int]
Clock = Callable[[], float]


def _seconds(ttl: TTL) -> float:
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


@dataclass(frozen=True)
class CacheOpts:
    """Limits for a cache. A value of zero selects the default."""

    max_entries: int = 0
    max_capacity: int = 0

    def _resolved(self) -> tuple[int, int]:
        entries = self.max_entries or DEFAULT_MAX_ENTRIES
        capacity = self.max_capacity or DEFAULT_MAX_CAPACITY
        return entries, capacity


class Store(ABC):
    """A key-value store of bytes whose entries may expire."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under key, or None when there is none."""

    @abstractmethod
    def set(self, key: str, value: bytes, ttl: TTL) -> None:
        """Store value under key for the given time to live."""

    @abstractmethod
    def close(self) -> None:
        """Release the resources held by the store."""

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class MemoryStore(Store):
    """An in-process cache bounded by entry count and total byte cost.

    The cost of an entry is its length in bytes. Entries larger than the whole
    capacity are not stored; otherwise the least recently used entries are
    evicted to make room. A TTL of zero means no expiry and a negative TTL
    stores nothing. After closing, reads miss and writes are ignored.
    """

    def __init__(self, opts: CacheOpts = CacheOpts(), *, clock: Clock = time.monotonic) -> None:
        max_entries, max_capacity = opts._resolved()
        if max_entries < 0:
            raise ValueError("max_entries must not be negative")
        if max_capacity < 0:
            raise ValueError("max_capacity must not be negative")
        self.max_entries = max_entries
        self.max_capacity = max_capacity
        self._clock = clock
        self._items: OrderedDict[str, tuple[bytes, Optional[float]]] = OrderedDict()
        self._cost = 0
        self._closed = False
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            if self._closed:
                return None
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at is not None and expires_at <= self._clock():
                self._remove(key)
                return None
            self._items.move_to_end(key)
            return value

    def set(self, key: str, value: bytes, ttl: TTL) -> None:
        seconds = _seconds(ttl)
        value = bytes(value)
        with self._lock:
            if self._closed or seconds < 0:
                return
            cost = len(value)
            if cost > self.max_capacity:
                return
            if key in self._items:
                self._remove(key)
            expires_at = self._clock() + seconds if seconds > 0 else None
            self._items[key] = (value, expires_at)
            self._cost += cost
            while self._cost > self.max_capacity or len(self._items) > self.max_entries:
                oldest = next(iter(self._items))
                self._remove(oldest)

    def close(self) -> None:
        with self._lock:
            self._items.clear()
            self._cost = 0
            self._closed = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _remove(self, key: str) -> None:
        value, _ = self._items.pop(key)
        self._cost -= len(value)


class DiskStore(Store):
    """A persistent store kept in a database file inside a directory.

    The directory is created when missing. The capacity must lie between
    1 MiB and 2 GiB. Each entry expires when its TTL has passed, so a TTL of
    zero or less makes the entry expire at once. Expired entries are purged
    when the store is opened.
    """

    FILENAME = "cache.sqlite3"

    def __init__(self, path: Union[str, os.PathLike], opts: CacheOpts = CacheOpts(), *,
                 clock: Clock = time.time) -> None:
        max_entries, max_capacity = opts._resolved()
        if not os.fspath(path):
            raise ValueError("cache directory must not be empty")
        if not MIN_DISK_CAPACITY <= max_capacity <= MAX_DISK_CAPACITY:
            raise ValueError("invalid capacity, must be in range [1MB, 2GB]")
        self.path = os.fspath(path)
        self.max_entries = max_entries
        self.max_capacity = max_capacity
        self._clock = clock
        self._lock = threading.Lock()

        os.makedirs(self.path, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            os.path.join(self.path, self.FILENAME), check_same_thread=False
        )
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS entries ("
                "key TEXT PRIMARY KEY, value BLOB NOT NULL, expires_at REAL NOT NULL)"
            )
            self._conn.execute("DELETE FROM entries WHERE expires_at <= ?", (self._clock(),))

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("store is closed")
        return self._conn

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            conn = self._connection()
            row = conn.execute(
                "SELECT value, expires_at FROM entries WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            value, expires_at = row
            if expires_at <= self._clock():
                with conn:
                    conn.execute("DELETE FROM entries WHERE key = ?", (key,))
                return None
            return bytes(value)

    def set(self, key: str, value: bytes, ttl: TTL) -> None:
        with self._lock:
            conn = self._connection()
            expires_at = self._clock() + _seconds(ttl)
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO entries (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, bytes(value), expires_at),
                )

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


class CompositeStore(Store):
    """A memory tier in front of a disk tier.

    Reads try memory first, then disk; a disk hit is copied into memory for
    hot_ttl when hot_ttl is positive. Writes go to both tiers, and the first
    failure is raised after both have been tried. Either tier may be None.
    """

    def __init__(self, mem: Optional[Store], disk: Optional[Store], hot_ttl: TTL) -> None:
        self.mem = mem
        self.disk = disk
        self.hot_ttl = hot_ttl

    def get(self, key: str) -> Optional[bytes]:
        if self.mem is not None:
            value = self.mem.get(key)
            if value is not None:
                return value

        if self.disk is not None:
            value = self.disk.get(key)
            if value is not None:
                if self.mem is not None and _seconds(self.hot_ttl) > 0:
                    try:
                        self.mem.set(key, value, self.hot_ttl)
                    except Exception:
                        pass  # promotion is best-effort
                return value

        return None

    def set(self, key: str, value: bytes, ttl: TTL) -> None:
        self._each(lambda store: store.set(key, value, ttl), (self.disk, self.mem))

    def close(self) -> None:
        self._each(lambda store: store.close(), (self.mem, self.disk))

    @staticmethod
    def _each(action: Callable[[Store], None], stores: tuple[Optional[Store], ...]) -> None:
        first_error: Optional[Exception] = None
        for store in stores:
            if store is None:
                continue
            try:
                action(store)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error