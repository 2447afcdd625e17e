"""
Cached Snapshots — Immutable, locally queryable copies of a job log

A snapshot is what the cache hands to the query engine: one job's full
log at the time it was resolved. The engine only reads it.

Two backings:
- SqliteSnapshot: one SQLite file per job (entries + meta tables).
  Row numbers are the primary key, so seeks and context windows are
  index lookups instead of scans.
- MemorySnapshot: a list of entries, for tests and in-memory caching.

Invariants:
- Row numbers are 0..total_rows-1, gapless
- Info is read from metadata written with the snapshot (no scan)
- Nothing here mutates a snapshot after it is written
"""

import os
import sqlite3
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

import orjson

from .entry import JobKey, LogEntry, SnapshotInfo
from ..errors import CacheResolutionError


# Rows fetched per round trip while streaming
FETCH_BATCH = 256

SCHEMA = """
    CREATE TABLE entries (
        row_number INTEGER PRIMARY KEY,
        timestamp INTEGER,
        grp TEXT NOT NULL DEFAULT '',
        content TEXT NOT NULL,
        is_command INTEGER NOT NULL DEFAULT 0
    );
    CREATE TABLE meta (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
"""


class CachedSnapshot(ABC):
    """Read-only handle over one job's log entries."""

    def __init__(self, key: JobKey):
        self.key = key

    @abstractmethod
    def info(self) -> SnapshotInfo:
        """Static metadata (row count, size, cache location)."""

    @property
    def total_rows(self) -> int:
        return self.info().total_rows

    @abstractmethod
    def iter_forward(self, start: int = 0) -> Iterator[LogEntry]:
        """Entries with row_number >= start, ascending, produced on demand."""

    @abstractmethod
    def iter_backward(self, start: int) -> Iterator[LogEntry]:
        """Entries with row_number <= start, descending, produced on demand."""

    @abstractmethod
    def entries_between(self, start: int, stop: int) -> List[LogEntry]:
        """Entries with start <= row_number < stop, ascending."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# =============================================================================
# In-memory backing
# =============================================================================

class MemorySnapshot(CachedSnapshot):
    """Snapshot over an in-memory sequence of entries."""

    def __init__(self, key: JobKey, entries: Iterable[LogEntry], cached_at: Optional[float] = None):
        super().__init__(key)
        self._entries: Sequence[LogEntry] = tuple(entries)
        stats = _collect_stats(self._entries)
        self._info = SnapshotInfo(
            total_rows=len(self._entries),
            size_bytes=sum(len(e.content.encode("utf-8")) + 1 for e in self._entries),
            cache_file="memory://" + key.as_path(),
            cached_at=cached_at if cached_at is not None else time.time(),
            **stats,
        )

    def info(self) -> SnapshotInfo:
        return self._info

    def iter_forward(self, start: int = 0) -> Iterator[LogEntry]:
        for index in range(max(start, 0), len(self._entries)):
            yield self._entries[index]

    def iter_backward(self, start: int) -> Iterator[LogEntry]:
        for index in range(min(start, len(self._entries) - 1), -1, -1):
            yield self._entries[index]

    def entries_between(self, start: int, stop: int) -> List[LogEntry]:
        return list(self._entries[max(start, 0):max(stop, 0)])


# =============================================================================
# SQLite backing
# =============================================================================

class SqliteSnapshot(CachedSnapshot):
    """
    Snapshot stored as a SQLite file.

    Opened read-only; the connection lives until close().
    """

    def __init__(self, path: Path, key: Optional[JobKey] = None):
        self.path = Path(path)
        try:
            self.conn = sqlite3.connect(f"{self.path.absolute().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise CacheResolutionError(f"unreadable snapshot {self.path}: {e}", e)

        self.conn.row_factory = sqlite3.Row
        try:
            meta = {
                row["key"]: orjson.loads(row["value"])
                for row in self.conn.execute("SELECT key, value FROM meta")
            }
        except (sqlite3.Error, orjson.JSONDecodeError) as e:
            self.conn.close()
            raise CacheResolutionError(f"unreadable snapshot {self.path}: {e}", e)

        try:
            size_bytes = os.path.getsize(self.path)
        except OSError as e:
            self.conn.close()
            raise CacheResolutionError(f"unreadable snapshot {self.path}: {e}", e)

        if key is None:
            key = JobKey(*meta.get("key", ["", "", "", ""]))
        super().__init__(key)

        self._info = SnapshotInfo(
            total_rows=meta.get("total_rows", 0),
            size_bytes=size_bytes,
            cache_file=str(self.path.absolute()),
            group_count=meta.get("group_count", 0),
            command_count=meta.get("command_count", 0),
            first_timestamp=meta.get("first_timestamp"),
            last_timestamp=meta.get("last_timestamp"),
            cached_at=meta.get("cached_at", 0.0),
        )

    def info(self) -> SnapshotInfo:
        return self._info

    def iter_forward(self, start: int = 0) -> Iterator[LogEntry]:
        return self._stream(
            "SELECT * FROM entries WHERE row_number >= ? ORDER BY row_number ASC",
            (max(start, 0),),
        )

    def iter_backward(self, start: int) -> Iterator[LogEntry]:
        return self._stream(
            "SELECT * FROM entries WHERE row_number <= ? ORDER BY row_number DESC",
            (start,),
        )

    def entries_between(self, start: int, stop: int) -> List[LogEntry]:
        return list(self._stream(
            "SELECT * FROM entries WHERE row_number >= ? AND row_number < ? ORDER BY row_number ASC",
            (max(start, 0), stop),
        ))

    def close(self) -> None:
        self.conn.close()

    def _stream(self, sql: str, params: tuple) -> Iterator[LogEntry]:
        try:
            cursor = self.conn.execute(sql, params)
            while True:
                rows = cursor.fetchmany(FETCH_BATCH)
                if not rows:
                    return
                for row in rows:
                    yield _row_to_entry(row)
        except sqlite3.Error as e:
            raise CacheResolutionError(f"failed to read snapshot {self.path}: {e}", e)


def write_snapshot(path: Path, key: JobKey, entries: Iterable[LogEntry],
                   cached_at: Optional[float] = None) -> Path:
    """
    Write entries to a new SQLite snapshot at path.

    The file is built next to its destination and renamed into place, so
    readers never see a half-written snapshot.

    Returns:
        The final snapshot path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    if tmp_path.exists():
        tmp_path.unlink()

    entries = list(entries)
    stats = _collect_stats(entries)
    meta = {
        "key": [key.org, key.pipeline, key.build, key.job],
        "total_rows": len(entries),
        "cached_at": cached_at if cached_at is not None else time.time(),
        **stats,
    }

    conn = sqlite3.connect(str(tmp_path))
    try:
        conn.executescript(SCHEMA)
        conn.executemany(
            "INSERT INTO entries (row_number, timestamp, grp, content, is_command) VALUES (?, ?, ?, ?, ?)",
            ((e.row_number, e.timestamp, e.group, e.content, int(e.is_command)) for e in entries),
        )
        conn.executemany(
            "INSERT INTO meta (key, value) VALUES (?, ?)",
            ((k, orjson.dumps(v).decode()) for k, v in meta.items()),
        )
        conn.commit()
    finally:
        conn.close()

    os.replace(tmp_path, path)
    return path


def _row_to_entry(row: sqlite3.Row) -> LogEntry:
    return LogEntry(
        row_number=row["row_number"],
        content=row["content"],
        timestamp=row["timestamp"],
        group=row["grp"],
        is_command=bool(row["is_command"]),
    )


def _collect_stats(entries: Iterable[LogEntry]) -> dict:
    group_count = 0
    command_count = 0
    first_ts = None
    last_ts = None
    current_group = ""

    for entry in entries:
        if entry.group and entry.group != current_group:
            group_count += 1
        current_group = entry.group
        if entry.is_command:
            command_count += 1
        if entry.has_time:
            if first_ts is None:
                first_ts = entry.timestamp
            last_ts = entry.timestamp

    return {
        "group_count": group_count,
        "command_count": command_count,
        "first_timestamp": first_ts,
        "last_timestamp": last_ts,
    }
