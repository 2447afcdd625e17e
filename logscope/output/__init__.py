"""
Output Module — Entry encodings for log responses

Entries are encoded one at a time by a strategy picked from ENCODERS,
keyed on OutputFormat:

    raw         content only
    text        one line with timestamp/group prefixes
    json        verbose objects, full field names
    json-terse  abbreviated objects (default)

Usage:
    from logscope.output import resolve_format, format_entries

    fmt = resolve_format(request.format, raw=request.raw)
    payload = format_entries(entries, fmt, preserve_markup=False)

Every delivery path (inline response, file on disk) renders through these
functions, so the same input always produces the same bytes.
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.entry import LogEntry, SearchResult
from ..errors import ValidationError
from .text import encode_raw, encode_text, format_timestamp
from .structured import encode_json, encode_terse
from .envelope import ToolResult, dumps


class OutputFormat(str, Enum):
    RAW = "raw"
    TEXT = "text"
    JSON = "json"
    JSON_TERSE = "json-terse"


DEFAULT_FORMAT = OutputFormat.JSON_TERSE

# Valid format values for config/CLI
VALID_FORMATS = tuple(f.value for f in OutputFormat)

ENCODERS: Dict[OutputFormat, Callable[[LogEntry, bool], Any]] = {
    OutputFormat.RAW: encode_raw,
    OutputFormat.TEXT: encode_text,
    OutputFormat.JSON: encode_json,
    OutputFormat.JSON_TERSE: encode_terse,
}


def resolve_format(name: Optional[str], raw: bool = False) -> OutputFormat:
    """
    Pick the encoding for a request.

    Args:
        name: Requested format name (empty = default json-terse)
        raw: Force the raw encoding regardless of name

    Raises:
        ValidationError: Unknown format name
    """
    if raw:
        return OutputFormat.RAW
    if not name:
        return DEFAULT_FORMAT
    try:
        return OutputFormat(name)
    except ValueError:
        raise ValidationError(f"Unknown format '{name}'. Valid: {', '.join(VALID_FORMATS)}")


def format_entry(entry: LogEntry, fmt: OutputFormat, preserve_markup: bool = False) -> Any:
    return ENCODERS[fmt](entry, preserve_markup)


def format_entries(entries: Iterable[LogEntry], fmt: OutputFormat, preserve_markup: bool = False) -> List[Any]:
    encode = ENCODERS[fmt]
    return [encode(entry, preserve_markup) for entry in entries]


def format_search_result(result: SearchResult, fmt: OutputFormat, preserve_markup: bool = False) -> Dict[str, Any]:
    """
    Encode one search hit.

    Context lists are included only when non-empty.
    """
    encoded: Dict[str, Any] = {"row_number": result.row_number}
    if result.before:
        encoded["before_context"] = format_entries(result.before, fmt, preserve_markup)
    encoded["match"] = format_entry(result.match, fmt, preserve_markup)
    if result.after:
        encoded["after_context"] = format_entries(result.after, fmt, preserve_markup)
    return encoded


def render_plain_text(entries: Iterable[LogEntry], preserve_markup: bool = False) -> str:
    """Whole log as text: raw encoding, one line per entry, joined by newlines."""
    return "\n".join(format_entries(entries, OutputFormat.RAW, preserve_markup))


__all__ = [
    "OutputFormat", "DEFAULT_FORMAT", "VALID_FORMATS", "ENCODERS",
    "resolve_format", "format_entry", "format_entries", "format_search_result",
    "render_plain_text", "format_timestamp",
    "ToolResult", "dumps",
]
