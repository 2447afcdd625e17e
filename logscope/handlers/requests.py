"""
Requests — Typed parameters for the five log operations

Each request carries the job identity plus operation-specific fields.
validate() returns an error message or None, like the config sections;
handlers turn a message into a ValidationError before touching the cache.
"""

from dataclasses import dataclass, fields
from typing import Optional

from ..core.entry import JobKey, SearchOptions
from ..core.query import DEFAULT_TAIL
from ..output import VALID_FORMATS


DEFAULT_PAGE_LIMIT = 100
IDENTITY_FIELDS = ("org", "pipeline", "build", "job")


@dataclass
class JobRequest:
    """Identity and cache controls shared by every operation."""
    org: str
    pipeline: str
    build: str
    job: str
    cache_ttl: str = ""         # empty = configured default
    force_refresh: bool = False

    @property
    def key(self) -> JobKey:
        return JobKey(self.org, self.pipeline, self.build, self.job)

    def validate(self) -> Optional[str]:
        for name in IDENTITY_FIELDS:
            if not str(getattr(self, name) or "").strip():
                return f"{name} is required"
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, int) and not isinstance(value, bool) and value < 0:
                return f"{f.name} must be >= 0 (got {value})"
        return None


@dataclass
class InfoRequest(JobRequest):
    format: str = ""

    def validate(self) -> Optional[str]:
        return super().validate() or _check_format(self.format)


@dataclass
class PageRequest(JobRequest):
    """Fields shared by operations that return entries."""
    format: str = ""
    raw: bool = False
    preserve_ansi: bool = False

    def validate(self) -> Optional[str]:
        return super().validate() or _check_format(self.format)


@dataclass
class TailRequest(PageRequest):
    tail: int = DEFAULT_TAIL


@dataclass
class ReadRequest(PageRequest):
    seek: int = 0
    limit: int = DEFAULT_PAGE_LIMIT


@dataclass
class SearchRequest(PageRequest):
    """
    Regex search parameters.

    context, when set, overrides before_context and after_context.
    seek_start of None scans from the start (or the end when reversed).
    """
    pattern: str = ""
    context: Optional[int] = None
    before_context: int = 0
    after_context: int = 0
    case_sensitive: bool = False
    invert_match: bool = False
    reverse: bool = False
    seek_start: Optional[int] = None
    limit: int = DEFAULT_PAGE_LIMIT

    def validate(self) -> Optional[str]:
        if self.pattern is None:
            return "pattern is required"
        return super().validate()

    def to_options(self) -> SearchOptions:
        return SearchOptions(
            pattern=self.pattern,
            case_sensitive=self.case_sensitive,
            invert_match=self.invert_match,
            reverse=self.reverse,
            before_context=self.before_context,
            after_context=self.after_context,
            context=self.context,
            seek_start=self.seek_start,
            limit=self.limit,
        )


@dataclass
class FetchRequest(JobRequest):
    """Whole-log fetch; output is always sanitized plain text."""


def _check_format(name: str) -> Optional[str]:
    if name and name not in VALID_FORMATS:
        return f"Unknown format '{name}'. Valid: {', '.join(VALID_FORMATS)}"
    return None
