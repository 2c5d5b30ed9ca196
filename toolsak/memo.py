"""Memoization of computations over a byte store, with concurrent-call deduplication."""

from __future__ import annotations

import dataclasses
import hashlib
import os
import pickle
import threading
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from toolsak.stores import TTL, CacheOpts, CompositeStore, DiskStore, MemoryStore, Store

T = TypeVar("T")


class _Call(Generic[T]):
    """One in-flight execution shared by every caller of the same key."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Optional[T] = None
        self.error: Optional[BaseException] = None


class SingleFlight:
    """Runs at most one call per key at a time; concurrent callers share its outcome."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, _Call[Any]] = {}

    def do(self, key: str, fn: Callable[[], T]) -> T:
        """Run fn for key, or wait for the call already running for key.

        Every caller receives the same value, or the same exception is raised
        to every caller. Once the call finishes, the next call runs fn again.
        """
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.value

        try:
            call.value = fn()
            return call.value
        except BaseException as exc:
            call.error = exc
            raise
        finally:
            with self._lock:
                del self._calls[key]
            call.done.set()


class Memoizer:
    """Caches computed values in a store, keyed by string, with a time to live."""

    def __init__(self, store: Optional[Store]) -> None:
        self.store = store
        self.sf = SingleFlight()

    def do(self, key: str, ttl: TTL, compute: Callable[[], T]) -> T:
        """Return the cached value for key, computing and caching it on a miss.

        A failure to read the store is raised at once; a cached value that
        cannot be decoded counts as a miss. Concurrent misses on the same key
        share one computation. Exceptions from compute propagate, and a failure
        to write the result to the store is ignored.
        """
        cached = self.store.get(key)
        if cached is not None:
            try:
                return pickle.loads(cached)
            except Exception:
                pass

        def fill() -> T:
            try:
                again = self.store.get(key)
                if again is not None:
                    return pickle.loads(again)
            except Exception:
                pass

            value = compute()
            try:
                payload = pickle.dumps(value)
            except Exception:
                return value
            try:
                self.store.set(key, payload, ttl)
            except Exception:
                pass  # caching is best-effort
            return value

        return self.sf.do(key, fill)

    def close(self) -> None:
        """Close the underlying store."""
        self.store.close()

    def __enter__(self) -> "Memoizer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _length_prefixed(tag: bytes, data: bytes) -> bytes:
    return tag + str(len(data)).encode() + b":" + data


def _canonical(value: Any) -> bytes:
    """Encode a value so that equal values give equal bytes, whatever their order."""
    if value is None:
        return b"N"
    if isinstance(value, bool):
        return b"B1" if value else b"B0"
    if isinstance(value, int):
        return _length_prefixed(b"I", str(value).encode())
    if isinstance(value, float):
        return _length_prefixed(b"F", repr(value).encode())
    if isinstance(value, str):
        return _length_prefixed(b"S", value.encode("utf-8"))
    if isinstance(value, (bytes, bytearray)):
        return _length_prefixed(b"Y", bytes(value))
    if isinstance(value, (list, tuple)):
        tag = b"L" if isinstance(value, list) else b"T"
        return _length_prefixed(tag, b"".join(_canonical(item) for item in value))
    if isinstance(value, dict):
        pairs = sorted(_canonical(k) + _canonical(v) for k, v in value.items())
        return _length_prefixed(b"D", b"".join(pairs))
    if isinstance(value, (set, frozenset)):
        return _length_prefixed(b"E", b"".join(sorted(_canonical(item) for item in value)))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        name = type(value).__qualname__.encode("utf-8")
        return _length_prefixed(b"C", _length_prefixed(b"S", name) + _canonical(fields))
    return _length_prefixed(b"P", pickle.dumps(value, protocol=4))


def key_from(*args: Any) -> str:
    """Return a hex SHA-256 key built from the given values.

    Equal inputs in the same order give the same key. Values that cannot be
    encoded are left out.
    """
    digest = hashlib.sha256()
    for part in args:
        try:
            encoded = _canonical(part)
        except Exception:
            continue  # best-effort
        digest.update(encoded)
    return digest.hexdigest()


def new_memory_only(opts: CacheOpts = CacheOpts()) -> Memoizer:
    """Create a memoizer backed by an in-memory store."""
    return Memoizer(MemoryStore(opts))


def new_disk_only(directory: Union[str, os.PathLike], opts: CacheOpts = CacheOpts()) -> Memoizer:
    """Create a memoizer backed by a store persisted in directory."""
    return Memoizer(DiskStore(directory, opts))


def new_memory_disk(path: Union[str, os.PathLike], opts: CacheOpts, promote_ttl: TTL) -> Memoizer:
    """Create a memoizer over a memory tier in front of a disk tier at path.

    Disk hits are promoted to memory for promote_ttl. Closing the memoizer
    closes both tiers.
    """
    mem = MemoryStore(opts)
    try:
        disk = DiskStore(path, opts)
    except BaseException:
        mem.close()
        raise
    return Memoizer(CompositeStore(mem, disk, promote_ttl))