# =============================================================================
# core/cache.py  —  On-Disk FIFO Response Cache
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Remembers upstream API responses on disk so identical queries (same URL)
#   are not fetched twice.  One JSON file per entry, plus an index.json that
#   records insertion order:
#
#       <directory>/index.json           {"order": ["<key>", "<key>", ...]}
#       <directory>/<sha1(key)>.json     the cached JSON document
#
# EVICTION POLICY (FIFO, NOT LRU):
#   When a write pushes the index past `capacity`, the OLDEST key (index 0)
#   is dropped.  Reads never reorder anything, and re-writing an existing key
#   refreshes its content but keeps its original position.
#
# FAILURE POLICY:
#   The cache sits on the optimization path.  read() and write() never raise:
#   a broken directory, a corrupt file or a failed rename turns into a miss
#   or a skipped write, and the caller simply fetches again.  Internally the
#   outcome is explicit (Hit / Miss, WriteOk / WriteSkipped) so each failure
#   branch can be tested on its own.
#
# STORAGE SEAM:
#   All I/O goes through a CacheStorage object.  FileCacheStorage is the real
#   one; MemoryCacheStorage keeps everything in dicts so FIFO behavior can be
#   checked without touching the disk.
#
# CONCURRENCY:
#   Blocking file calls run in worker threads (asyncio.to_thread).  The entry
#   write and the index load → mutate → save sequence run under one
#   per-instance asyncio.Lock, so concurrent writers in one process cannot
#   drop each other's keys or orphan a freshly written entry.
#   Separate PROCESSES sharing one directory are not coordinated: the last
#   index save wins.
# =============================================================================

import asyncio
import contextlib
import hashlib
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
INDEX_FILENAME = "index.json"
TMP_SUFFIX = ".tmp"


def digest_key(key: str) -> str:
    """Map an arbitrary key to a fixed-length, filesystem-safe hex digest."""
    return hashlib.sha1(key.encode("utf-8", "surrogatepass")).hexdigest()


def entry_filename(key: str) -> str:
    return digest_key(key) + ".json"


# =============================================================================
# The index: ordered, duplicate-free list of live keys
# =============================================================================
@dataclass
class CacheIndex:
    """Insertion-ordered set of live keys.  order[0] is the next to evict."""

    order: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, key: object) -> bool:
        return key in self.order

    def add(self, key: str) -> bool:
        """Append `key` unless it is already present.  Returns True if added."""
        if key in self.order:
            return False
        self.order.append(key)
        return True

    def evict_overflow(self, capacity: int) -> list[str]:
        """Drop oldest keys until at most `capacity` remain; return them."""
        evicted = []
        while len(self.order) > capacity:
            evicted.append(self.order.pop(0))
        return evicted

    def to_json(self) -> str:
        return json.dumps({"order": self.order})

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "CacheIndex":
        """Parse a persisted index.  Anything unusable becomes an empty index."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError:
            return cls()
        if not isinstance(data, dict) or not isinstance(data.get("order"), list):
            return cls()

        index = cls()
        for key in data["order"]:
            # Hand-edited files may carry junk or duplicates; keep the first
            # occurrence of every string key.
            if isinstance(key, str):
                index.add(key)
        return index


# =============================================================================
# Explicit outcomes
# =============================================================================
@dataclass(frozen=True)
class Hit:
    value: Any


@dataclass(frozen=True)
class Miss:
    reason: str


@dataclass(frozen=True)
class WriteOk:
    created: bool                      # False when an existing key was refreshed
    evicted: tuple[str, ...] = ()


@dataclass(frozen=True)
class WriteSkipped:
    reason: str


ReadResult = Union[Hit, Miss]
WriteResult = Union[WriteOk, WriteSkipped]


# =============================================================================
# Storage backends
# =============================================================================
class CacheStorage(Protocol):
    """Where entries and the index physically live.

    Implementations may raise OSError from any method; FileFifoCache turns
    those into misses or skipped writes.  read_entry returns None when the
    entry does not exist.
    """

    location: str

    async def ensure_ready(self) -> None: ...

    async def read_entry(self, name: str) -> Optional[str]: ...

    async def write_entry(self, name: str, text: str) -> None: ...

    async def delete_entry(self, name: str) -> None: ...

    async def load_index(self) -> CacheIndex: ...

    async def save_index(self, index: CacheIndex) -> None: ...


class FileCacheStorage:
    """Entries and index as files in one directory.

    Every write goes to `<target>.tmp` first and is then renamed over the
    target with os.replace(), so a reader (or a crash) only ever sees the old
    file or the new one.
    """

    def __init__(self, directory: str):
        self.location = os.fspath(directory)
        self.index_path = os.path.join(self.location, INDEX_FILENAME)

    def _path(self, name: str) -> str:
        return os.path.join(self.location, name)

    # --- blocking helpers (run in a worker thread) ---
    @staticmethod
    def _read_text(path: str) -> Optional[str]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    @staticmethod
    def _atomic_write(path: str, text: str) -> None:
        tmp = path + TMP_SUFFIX
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, path)
        except OSError:
            with contextlib.suppress(OSError):
                os.remove(tmp)
            raise

    # --- CacheStorage ---
    async def ensure_ready(self) -> None:
        await asyncio.to_thread(os.makedirs, self.location, exist_ok=True)

    async def read_entry(self, name: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_text, self._path(name))

    async def write_entry(self, name: str, text: str) -> None:
        await asyncio.to_thread(self._atomic_write, self._path(name), text)

    async def delete_entry(self, name: str) -> None:
        await asyncio.to_thread(os.remove, self._path(name))

    async def load_index(self) -> CacheIndex:
        raw = await asyncio.to_thread(self._read_text, self.index_path)
        return CacheIndex.from_json(raw)

    async def save_index(self, index: CacheIndex) -> None:
        await asyncio.to_thread(self._atomic_write, self.index_path, index.to_json())


class MemoryCacheStorage:
    """In-process stand-in for FileCacheStorage.

    The index is kept as serialized text, like the file backend, so callers
    can corrupt or delete it the same way they would the real index.json.
    """

    def __init__(self, location: str = ":memory:"):
        self.location = location
        self.entries: dict[str, str] = {}
        self.index_text: Optional[str] = None

    async def ensure_ready(self) -> None:
        pass

    async def read_entry(self, name: str) -> Optional[str]:
        return self.entries.get(name)

    async def write_entry(self, name: str, text: str) -> None:
        self.entries[name] = text

    async def delete_entry(self, name: str) -> None:
        if name not in self.entries:
            raise FileNotFoundError(name)
        del self.entries[name]

    async def load_index(self) -> CacheIndex:
        return CacheIndex.from_json(self.index_text)

    async def save_index(self, index: CacheIndex) -> None:
        self.index_text = index.to_json()


# =============================================================================
# FileFifoCache
# =============================================================================
class FileFifoCache:
    """Fixed-capacity FIFO cache of JSON documents keyed by string.

    Construction never touches storage; the directory is created on the
    first write.

    Args:
        directory: Where entry files and index.json are kept.
        capacity: Maximum number of live entries (default 10).
        storage: Optional CacheStorage to use instead of the filesystem.
            When given, `directory` reports the storage's location.
    """

    def __init__(
        self,
        directory: str,
        capacity: int = DEFAULT_CAPACITY,
        storage: Optional[CacheStorage] = None,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._directory = os.fspath(directory)
        self._capacity = capacity
        self._storage = storage if storage is not None else FileCacheStorage(self._directory)
        self._index_lock = asyncio.Lock()

    @property
    def directory(self) -> str:
        return self._storage.location

    @property
    def capacity(self) -> int:
        return self._capacity

    # -------------------------------------------------------------------------
    # Explicit-result API
    # -------------------------------------------------------------------------
    async def lookup(self, key: str) -> ReadResult:
        try:
            raw = await self._storage.read_entry(entry_filename(key))
        except (OSError, ValueError) as e:
            logger.debug(f"cache read error {key}: {e}")
            return Miss(f"read failed: {e}")

        if raw is None:
            logger.debug(f"cache miss {key}")
            return Miss("not cached")

        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.debug(f"cache read error {key}: corrupt entry ({e})")
            return Miss("corrupt entry")

        logger.debug(f"cache hit {key}")
        return Hit(value)

    async def store(self, key: str, value: Any) -> WriteResult:
        try:
            text = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.debug(f"cache write error {key}: {e}")
            return WriteSkipped(f"value is not JSON-serializable: {e}")

        # Entry file and index change together; otherwise a concurrent
        # eviction could delete this entry between its write and its append.
        async with self._index_lock:
            try:
                await self._storage.ensure_ready()
                await self._storage.write_entry(entry_filename(key), text)
            except OSError as e:
                logger.debug(f"cache write error {key}: {e}")
                return WriteSkipped(f"entry write failed: {e}")

            index = await self._load_index()
            created = index.add(key)
            evicted = index.evict_overflow(self._capacity)
            try:
                await self._storage.save_index(index)
            except OSError as e:
                logger.debug(f"cache write error {key}: index save failed ({e})")
                return WriteSkipped(f"index save failed: {e}")

            # The new index is on disk; only now is it safe to remove the
            # files it no longer references.
            for old_key in evicted:
                await self._discard_entry(old_key)

        logger.debug(f"cache write {key}")
        return WriteOk(created=created, evicted=tuple(evicted))

    async def keys(self) -> list[str]:
        """Live keys, oldest first.  Empty if the index is missing or unreadable."""
        index = await self._load_index()
        return list(index.order)

    # -------------------------------------------------------------------------
    # Total API: never raises
    # -------------------------------------------------------------------------
    async def read(self, key: str, default: Any = None) -> Any:
        """Return the cached value for `key`, or `default` on any kind of miss."""
        try:
            result = await self.lookup(key)
        except Exception:
            logger.debug(f"cache read error {key}", exc_info=True)
            return default
        if isinstance(result, Hit):
            return result.value
        return default

    async def write(self, key: str, value: Any) -> None:
        """Cache `value` under `key`.  Failures are logged and dropped."""
        try:
            result = await self.store(key, value)
        except Exception:
            logger.debug(f"cache write error {key}", exc_info=True)
            return
        if isinstance(result, WriteSkipped):
            logger.debug(f"cache write skipped {key}: {result.reason}")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    async def _load_index(self) -> CacheIndex:
        try:
            return await self._storage.load_index()
        except (OSError, ValueError) as e:
            logger.debug(f"cache index unreadable, starting empty: {e}")
            return CacheIndex()

    async def _discard_entry(self, key: str) -> None:
        logger.debug(f"cache evict {key}")
        try:
            await self._storage.delete_entry(entry_filename(key))
        except OSError as e:
            # Already gone or undeletable; the index has dropped it either way.
            logger.debug(f"cache evict {key}: file not removed ({e})")
