"""
Line Encoders — raw and text output

raw:  content only
text: "[2024-01-02 15:04:05.000] [group] content", prefixes only when present
"""

from datetime import datetime, timezone

from ..core.entry import LogEntry
from ..presentation.sanitize import sanitize


def format_timestamp(millis: int) -> str:
    """Format epoch milliseconds as UTC "YYYY-MM-DD HH:MM:SS.mmm"."""
    moment = datetime.fromtimestamp(millis // 1000, tz=timezone.utc)
    return f"{moment.strftime('%Y-%m-%d %H:%M:%S')}.{millis % 1000:03d}"


def clean_fields(entry: LogEntry, preserve_markup: bool):
    """Content and group, sanitized unless markup is preserved."""
    if preserve_markup:
        return entry.content, entry.group
    return sanitize(entry.content), sanitize(entry.group)


def encode_raw(entry: LogEntry, preserve_markup: bool = False) -> str:
    content, _ = clean_fields(entry, preserve_markup)
    return content


def encode_text(entry: LogEntry, preserve_markup: bool = False) -> str:
    content, group = clean_fields(entry, preserve_markup)

    line = ""
    if entry.has_time:
        line += f"[{format_timestamp(entry.timestamp)}] "
    if group:
        line += f"[{group}] "
    return line + content
