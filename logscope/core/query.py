"""
Log Query Engine — Info, Tail, Read and Search over a cached snapshot

All operations are read-only. Read and Search are generators: a caller
that stops consuming after `limit` items never pays for the rest of the
log, which matters for small pages out of very large logs.

Scans check the cancellation token between entries and abort with
CancellationError instead of returning partial results silently.
"""

import re
from typing import Iterator, List, Optional, Pattern

from .cancellation import CancellationToken
from .entry import LogEntry, SearchOptions, SearchResult, SnapshotInfo
from .snapshot import CachedSnapshot
from ..errors import InvalidPatternError
from ..presentation.sanitize import sanitize


DEFAULT_TAIL = 10


def compile_search_pattern(pattern: str, case_sensitive: bool = False) -> Pattern:
    """
    Compile a search pattern, case-insensitive unless asked otherwise.

    Called before any cache access so an invalid pattern never costs a
    download.

    Raises:
        InvalidPatternError: Pattern is not a valid regular expression
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern or "", flags)
    except re.error as e:
        raise InvalidPatternError(pattern, e)


class LogQueryEngine:
    """
    Query operations bound to one snapshot.

    Usage:
        engine = LogQueryEngine(snapshot)
        last = engine.tail(20)
        for result in engine.search(SearchOptions(pattern="error", limit=5)):
            ...
    """

    def __init__(self, snapshot: CachedSnapshot, token: Optional[CancellationToken] = None):
        self.snapshot = snapshot
        self.token = token or CancellationToken()

    def info(self) -> SnapshotInfo:
        """Snapshot metadata without scanning entries."""
        return self.snapshot.info()

    def tail(self, n: int = DEFAULT_TAIL) -> List[LogEntry]:
        """
        Last n entries in ascending row order.

        n <= 0 is treated as the default of 10.
        """
        if n <= 0:
            n = DEFAULT_TAIL
        start = max(0, self.snapshot.total_rows - n)
        return list(self.read(seek=start))

    def read(self, seek: int = 0, limit: int = 0) -> Iterator[LogEntry]:
        """
        Entries from row `seek` onwards, stopping after `limit` (0 = all).

        Nothing past the limit is pulled from the snapshot.
        """
        seek = max(seek, 0)
        entries = self.snapshot.iter_forward(seek)
        count = 0
        try:
            for entry in entries:
                self.token.check()
                yield entry
                count += 1
                if limit > 0 and count >= limit:
                    return
        finally:
            _close(entries)

    def search(self, options: SearchOptions) -> Iterator[SearchResult]:
        """
        Regex search with optional context, direction and limit.

        Match rule: pattern found in sanitized content, XOR invert_match.
        Forward scans start at seek_start (default 0). Reverse scans start
        at seek_start, or at the last row when seek_start is 0 or unset.
        A seek_start past the end yields nothing.

        Raises:
            InvalidPatternError: Before anything is read
            CancellationError: When the token is cancelled mid-scan
        """
        regex = compile_search_pattern(options.pattern, options.case_sensitive)

        total = self.snapshot.total_rows
        seek = options.seek_start
        if seek is not None and seek <= 0:
            seek = None
        if total == 0 or (seek is not None and seek >= total):
            return

        if options.reverse:
            entries = self.snapshot.iter_backward(seek if seek is not None else total - 1)
        else:
            entries = self.snapshot.iter_forward(seek or 0)

        before = options.effective_before
        after = options.effective_after
        count = 0
        try:
            for entry in entries:
                self.token.check()
                found = regex.search(sanitize(entry.content)) is not None
                if found == options.invert_match:
                    continue

                yield self._with_context(entry, before, after, total)
                count += 1
                if options.limit > 0 and count >= options.limit:
                    return
        finally:
            _close(entries)

    def _with_context(self, entry: LogEntry, before: int, after: int, total: int) -> SearchResult:
        row = entry.row_number
        before_entries = self.snapshot.entries_between(row - before, row) if before else []
        after_entries = self.snapshot.entries_between(row + 1, min(total, row + 1 + after)) if after else []
        return SearchResult(match=entry, before=before_entries, after=after_entries)


def _close(entries: Iterator) -> None:
    close = getattr(entries, "close", None)
    if close is not None:
        close()
