"""
Services — External integration layer

Log sources: where raw job log text comes from.
- BuildkiteLogSource: Buildkite REST API
- DirectoryLogSource: logs saved on local disk
"""

from .sources import (
    LogSource, BuildkiteLogSource, DirectoryLogSource, get_source,
    DEFAULT_API_URL, TOKEN_ENV,
)

__all__ = [
    "LogSource", "BuildkiteLogSource", "DirectoryLogSource", "get_source",
    "DEFAULT_API_URL", "TOKEN_ENV",
]
