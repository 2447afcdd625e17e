"""
Snapshot Cache — Resolve a job key to a local, queryable snapshot

The query side consumes the cache through one call:

    snapshot = cache.resolve(key, ttl="30s", force_refresh=False)

A cached snapshot is reused while it is younger than the TTL. Logs of
running jobs keep growing, so the default TTL is short. force_refresh
always downloads again.

Every failure (source, disk, parse) surfaces as CacheResolutionError
carrying the underlying cause. No retries.

Backings:
- SnapshotCache: SQLite file per job, named by xxhash of the job key
- MemorySnapshotCache: process-local dict, same TTL rules
"""

import logging
import re
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union, TYPE_CHECKING

import xxhash

from .entry import JobKey
from .parser import parse_log
from .snapshot import CachedSnapshot, MemorySnapshot, SqliteSnapshot, write_snapshot
from ..errors import CacheResolutionError, LogScopeError

if TYPE_CHECKING:
    from ..services.sources import LogSource


logger = logging.getLogger(__name__)

DEFAULT_TTL = "30s"
DEFAULT_TTL_SECONDS = 30.0

# Snapshots kept by MemorySnapshotCache before the least recently used is dropped
DEFAULT_MEMORY_ENTRIES = 64

# Go-style duration units ("1h30m", "250ms", "1.5h")
DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
DURATION_FULL = re.compile(r'^(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h))+$')


def parse_cache_ttl(value: Union[str, int, float, None]) -> float:
    """
    Parse a cache TTL into seconds.

    Accepts Go-style durations ("30s", "5m", "1h30m") or a bare number of
    seconds. Empty or unparseable values fall back to 30 seconds.

    Examples:
        >>> parse_cache_ttl("5m")
        300.0
        >>> parse_cache_ttl("invalid")
        30.0
    """
    if value is None or value == "":
        return DEFAULT_TTL_SECONDS

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if value >= 0 else DEFAULT_TTL_SECONDS

    text = str(value).strip()
    try:
        seconds = float(text)
        return seconds if seconds >= 0 else DEFAULT_TTL_SECONDS
    except ValueError:
        pass

    if not DURATION_FULL.match(text):
        return DEFAULT_TTL_SECONDS

    return sum(float(amount) * DURATION_UNITS[unit] for amount, unit in DURATION_PART.findall(text))


class LogCache(ABC):
    """
    Resolves job keys to snapshots, downloading at most once per key at a time.

    Subclasses decide where snapshots live (_load / _store).
    """

    def __init__(self, source: 'LogSource'):
        self.source = source
        # Per-key lock and the number of callers holding or waiting on it;
        # entries are dropped when the count returns to zero
        self._locks: Dict[JobKey, List] = {}
        self._locks_guard = threading.Lock()

    def resolve(self, key: JobKey, ttl: Union[str, float, None] = DEFAULT_TTL,
                force_refresh: bool = False) -> CachedSnapshot:
        """
        Return a snapshot for key, downloading when missing or stale.

        Args:
            key: Job identity
            ttl: Maximum snapshot age ("30s", seconds, or None for default)
            force_refresh: Ignore any cached copy

        Raises:
            CacheResolutionError: Download, store or parse failed
        """
        ttl_seconds = parse_cache_ttl(ttl)

        with self._key_lock(key):
            if not force_refresh:
                cached = self._load(key)
                if cached is not None:
                    age = time.time() - cached.info().cached_at
                    if age < ttl_seconds:
                        logger.debug("Cache hit for %s (age %.1fs)", key.as_path(), age)
                        return cached
                    cached.close()
                    logger.debug("Cache stale for %s (age %.1fs, ttl %.1fs)", key.as_path(), age, ttl_seconds)

            return self._download(key)

    def _download(self, key: JobKey) -> CachedSnapshot:
        logger.info("Downloading job log %s from %s", key.as_path(), self.source.name)
        try:
            text = self.source.fetch_log(key)
            return self._store(key, parse_log(text))
        except CacheResolutionError:
            raise
        except LogScopeError as e:
            raise CacheResolutionError(f"failed to download/cache logs: {e.message}", e)
        except (OSError, sqlite3.Error) as e:
            raise CacheResolutionError(f"failed to download/cache logs: {e}", e)

    @contextmanager
    def _key_lock(self, key: JobKey) -> Iterator[None]:
        with self._locks_guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = self._locks[key] = [threading.Lock(), 0]
            slot[1] += 1

        try:
            with slot[0]:
                yield
        finally:
            with self._locks_guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]

    @abstractmethod
    def _load(self, key: JobKey) -> Optional[CachedSnapshot]:
        """Existing snapshot for key, or None."""

    @abstractmethod
    def _store(self, key: JobKey, entries) -> CachedSnapshot:
        """Persist freshly parsed entries and return a snapshot over them."""


class SnapshotCache(LogCache):
    """SQLite-backed cache under a directory."""

    def __init__(self, directory: Path, source: 'LogSource'):
        super().__init__(source)
        self.directory = Path(directory).expanduser()

    def path_for(self, key: JobKey) -> Path:
        """Deterministic snapshot path for a job key."""
        digest = xxhash.xxh64(key.as_path().encode()).hexdigest()
        return self.directory / f"{digest}.sqlite"

    def _load(self, key: JobKey) -> Optional[CachedSnapshot]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return SqliteSnapshot(path, key)
        except CacheResolutionError as e:
            # Corrupt or foreign file: replaced by a fresh download
            logger.warning("Discarding unreadable snapshot %s: %s", path, e.message)
            return None

    def _store(self, key: JobKey, entries) -> CachedSnapshot:
        path = write_snapshot(self.path_for(key), key, entries)
        return SqliteSnapshot(path, key)


class MemorySnapshotCache(LogCache):
    """
    Process-local cache; snapshots vanish with the process.

    Holds at most max_entries snapshots, evicting the least recently
    resolved one first.
    """

    def __init__(self, source: 'LogSource', max_entries: int = DEFAULT_MEMORY_ENTRIES):
        super().__init__(source)
        self.max_entries = max(max_entries, 1)
        self._snapshots: 'OrderedDict[JobKey, MemorySnapshot]' = OrderedDict()
        self._snapshots_guard = threading.Lock()

    def _load(self, key: JobKey) -> Optional[CachedSnapshot]:
        with self._snapshots_guard:
            snapshot = self._snapshots.get(key)
            if snapshot is not None:
                self._snapshots.move_to_end(key)
            return snapshot

    def _store(self, key: JobKey, entries) -> CachedSnapshot:
        snapshot = MemorySnapshot(key, entries)
        with self._snapshots_guard:
            self._snapshots[key] = snapshot
            self._snapshots.move_to_end(key)
            while len(self._snapshots) > self.max_entries:
                evicted, _ = self._snapshots.popitem(last=False)
                logger.debug("Evicted %s from memory cache", evicted.as_path())
        return snapshot
