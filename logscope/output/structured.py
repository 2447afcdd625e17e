"""
Structured Encoders — json and json-terse output

json (verbose): every field, full names, always present
    {"timestamp": 1700000000000, "group": "Build", "content": "...",
     "command": false, "row_number": 12}

json-terse (default): abbreviated names, empty fields dropped
    {"ts": 1700000000000, "g": "Build", "c": "...", "rn": 12}

c and rn are present on every terse entry; rn is the seek position
for a later read_logs call.
"""

from typing import Dict, Any

from ..core.entry import LogEntry
from .text import clean_fields


def encode_json(entry: LogEntry, preserve_markup: bool = False) -> Dict[str, Any]:
    content, group = clean_fields(entry, preserve_markup)
    return {
        "timestamp": entry.timestamp if entry.has_time else None,
        "group": group,
        "content": content,
        "command": entry.is_command,
        "row_number": entry.row_number,
    }


def encode_terse(entry: LogEntry, preserve_markup: bool = False) -> Dict[str, Any]:
    content, group = clean_fields(entry, preserve_markup)

    terse: Dict[str, Any] = {}
    if entry.has_time:
        terse["ts"] = entry.timestamp
    if group:
        terse["g"] = group
    terse["c"] = content
    if entry.is_command:
        terse["cmd"] = True
    terse["rn"] = entry.row_number
    return terse
