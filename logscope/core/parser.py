"""
Log Parser — Raw Buildkite job log text to LogEntry rows

Buildkite job logs are plain terminal output with a few conventions:
- Each line may start with a timestamp marker: ESC _bk;t=<millis> BEL
- Lines starting with "--- ", "+++ " or "~~~ " open a collapsible group
- Lines starting with "$ " echo a command the agent ran

Group headers belong to the group they open. Every following line carries
that group's label until the next header.
"""

import re
from typing import Iterator

from .entry import LogEntry
from ..presentation.sanitize import sanitize


TIMESTAMP_PATTERN = re.compile(r'^\x1b_bk;t=(\d+)\x07')

GROUP_PREFIXES = ('--- ', '+++ ', '~~~ ')
COMMAND_PREFIX = '$ '


def parse_line(row_number: int, line: str, group: str = "") -> LogEntry:
    """
    Parse one raw line.

    Args:
        row_number: 0-based position of the line in the log
        line: Raw line without its trailing newline
        group: Label of the group currently open

    Returns:
        LogEntry; the group is replaced when the line is a group header
    """
    timestamp = None
    match = TIMESTAMP_PATTERN.match(line)
    if match:
        timestamp = int(match.group(1))
        line = line[match.end():]

    visible = sanitize(line)
    if visible.startswith(GROUP_PREFIXES):
        group = visible[4:].strip()

    return LogEntry(
        row_number=row_number,
        content=line,
        timestamp=timestamp,
        group=group,
        is_command=visible.startswith(COMMAND_PREFIX),
    )


def parse_log(text: str) -> Iterator[LogEntry]:
    """
    Split raw log text into entries numbered 0..n-1.

    A trailing newline does not produce an empty final row.
    """
    if not text:
        return

    lines = text.split('\n')
    if lines and lines[-1] == '':
        lines.pop()

    group = ""
    for row_number, line in enumerate(lines):
        entry = parse_line(row_number, line, group)
        group = entry.group
        yield entry
