"""
Entry Types — Immutable values shared by the cache, engine and formatters

LogEntry is one line of a job log. Row numbers are 0-based, unique and
gapless within a snapshot, so they double as seek positions.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


@dataclass(frozen=True)
class JobKey:
    """Identity of one job's log stream."""
    org: str
    pipeline: str
    build: str
    job: str

    def as_path(self) -> str:
        """Slash-joined form used in messages and cache metadata."""
        return f"{self.org}/{self.pipeline}/{self.build}/{self.job}"


@dataclass(frozen=True)
class LogEntry:
    row_number: int
    content: str
    timestamp: Optional[int] = None  # epoch milliseconds
    group: str = ""
    is_command: bool = False

    @property
    def has_time(self) -> bool:
        return self.timestamp is not None and self.timestamp > 0


@dataclass(frozen=True)
class SnapshotInfo:
    """
    Static metadata about a cached snapshot.

    Computed once when the snapshot is written, so reading it never
    requires a scan over the entries.
    """
    total_rows: int
    size_bytes: int
    cache_file: str = ""
    group_count: int = 0
    command_count: int = 0
    first_timestamp: Optional[int] = None
    last_timestamp: Optional[int] = None
    cached_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "size_bytes": self.size_bytes,
            "cache_file": self.cache_file,
            "group_count": self.group_count,
            "command_count": self.command_count,
            "first_timestamp": self.first_timestamp,
            "last_timestamp": self.last_timestamp,
            "cached_at": self.cached_at,
        }


@dataclass
class SearchOptions:
    """
    Parameters for a regex search over a snapshot.

    context, when given, sets before_context and after_context together.
    seek_start of None means "from the start" for forward scans and
    "from the end" for reverse scans.
    """
    pattern: str = ""
    case_sensitive: bool = False
    invert_match: bool = False
    reverse: bool = False
    before_context: int = 0
    after_context: int = 0
    context: Optional[int] = None
    seek_start: Optional[int] = None
    limit: int = 0  # 0 = unlimited

    @property
    def effective_before(self) -> int:
        if self.context:
            return max(self.context, 0)
        return max(self.before_context, 0)

    @property
    def effective_after(self) -> int:
        if self.context:
            return max(self.context, 0)
        return max(self.after_context, 0)


@dataclass(frozen=True)
class SearchResult:
    """A matched entry with its surrounding context, in stream order."""
    match: LogEntry
    before: List[LogEntry] = field(default_factory=list)
    after: List[LogEntry] = field(default_factory=list)

    @property
    def row_number(self) -> int:
        return self.match.row_number

    def entries(self) -> List[LogEntry]:
        """All entries of this result in original stream order."""
        return [*self.before, self.match, *self.after]
