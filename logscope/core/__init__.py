"""
Core — Snapshots, cache and query engine

Leaves first: entries → parser → snapshots → cache → query engine.
"""

from .entry import JobKey, LogEntry, SnapshotInfo, SearchOptions, SearchResult
from .parser import parse_log, parse_line
from .cancellation import CancellationToken
from .snapshot import CachedSnapshot, MemorySnapshot, SqliteSnapshot, write_snapshot
from .cache import (
    LogCache, SnapshotCache, MemorySnapshotCache,
    parse_cache_ttl, DEFAULT_TTL, DEFAULT_TTL_SECONDS,
)
from .query import LogQueryEngine, compile_search_pattern, DEFAULT_TAIL

__all__ = [
    "JobKey", "LogEntry", "SnapshotInfo", "SearchOptions", "SearchResult",
    "parse_log", "parse_line",
    "CancellationToken",
    "CachedSnapshot", "MemorySnapshot", "SqliteSnapshot", "write_snapshot",
    "LogCache", "SnapshotCache", "MemorySnapshotCache",
    "parse_cache_ttl", "DEFAULT_TTL", "DEFAULT_TTL_SECONDS",
    "LogQueryEngine", "compile_search_pattern", "DEFAULT_TAIL",
]
