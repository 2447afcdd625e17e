"""
BaseHandler — Shared foundation for the log operations

Handlers receive the CLI instance and reach its resources (config, cache,
delivery controller, cancellation token) through properties. run() owns the
request lifecycle:

    validate → check_request (no I/O) → resolve snapshot → execute → envelope

Every LogScopeError becomes a soft error result with a readable message;
anything else is a defect and propagates.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, TYPE_CHECKING

from ..core.cache import LogCache
from ..core.query import LogQueryEngine
from ..core.snapshot import CachedSnapshot
from ..errors import (
    LogScopeError, ValidationError, CacheResolutionError,
    DeliveryIOError, CancellationError,
)
from ..output import ToolResult
from .requests import JobRequest

if TYPE_CHECKING:
    from ..cli import LogScopeCLI


logger = logging.getLogger(__name__)

# Error type -> message prefix (first match wins)
ERROR_PREFIXES = (
    (CancellationError, "Query cancelled"),
    (CacheResolutionError, "Failed to create log reader"),
    (DeliveryIOError, "Failed to deliver job log"),
)


def error_message(error: LogScopeError) -> str:
    """Readable text for a soft failure."""
    for error_type, prefix in ERROR_PREFIXES:
        if isinstance(error, error_type):
            return f"{prefix}: {error.message}"
    return error.message


class BaseHandler:
    """
    Base class for operation handlers with access to shared resources.

    Subclasses set `operation` and implement execute(); check_request() is
    an optional hook for validation that must happen before any cache
    access.
    """

    operation = ""
    timed = True  # add query_time_ms to the payload

    def __init__(self, cli: 'LogScopeCLI'):
        self._cli = cli

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    @property
    def config(self):
        """Application configuration."""
        return self._cli.config

    @property
    def cache(self) -> LogCache:
        """Snapshot cache for job logs."""
        return self._cli.cache

    @property
    def delivery(self):
        """Adaptive delivery controller for whole-log fetches."""
        return self._cli.delivery

    @property
    def token(self):
        """Cancellation token for the running request."""
        return self._cli.token

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def run(self, request: JobRequest) -> ToolResult:
        started = time.perf_counter()
        try:
            problem = request.validate()
            if problem:
                raise ValidationError(problem)
            self.check_request(request)
            payload = self.execute(request)
        except LogScopeError as e:
            message = error_message(e)
            logger.warning("%s failed for %s: %s", self.operation, request.key.as_path(), message)
            return ToolResult.error(message)

        if self.timed:
            payload["query_time_ms"] = elapsed_ms(started)
        return ToolResult.success(payload)

    def check_request(self, request: JobRequest) -> None:
        """Extra validation run before the snapshot is resolved."""

    def execute(self, request: JobRequest) -> Dict[str, Any]:
        raise NotImplementedError

    @contextmanager
    def snapshot(self, request: JobRequest) -> Iterator[CachedSnapshot]:
        """Resolve and hold the snapshot for the duration of the block."""
        ttl = request.cache_ttl or self.config.cache.ttl
        resolved = self.cache.resolve(request.key, ttl=ttl, force_refresh=request.force_refresh)
        with resolved:
            yield resolved

    @contextmanager
    def engine(self, request: JobRequest) -> Iterator[LogQueryEngine]:
        with self.snapshot(request) as resolved:
            yield LogQueryEngine(resolved, self.token)


def elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


# =============================================================================
# Shared argparse wiring
# =============================================================================

def add_job_arguments(parser) -> None:
    """Identity positionals and cache controls common to every operation."""
    parser.add_argument('org', help='Organization slug')
    parser.add_argument('pipeline', help='Pipeline slug')
    parser.add_argument('build', help='Build number')
    parser.add_argument('job', help='Job ID')
    parser.add_argument('--cache-ttl', default='',
                        help='Maximum snapshot age, e.g. 30s or 5m (default: cache.ttl)')
    parser.add_argument('--force-refresh', action='store_true',
                        help='Download the log even when a fresh snapshot exists')
    parser.add_argument('--source-dir', metavar='DIR',
                        help='Read logs from DIR/<org>/<pipeline>/<build>/<job>.log')


def add_output_arguments(parser) -> None:
    """Encoding flags for operations that return entries."""
    parser.add_argument('--format', default=None,
                        help='raw, text, json or json-terse (default: display.format)')
    parser.add_argument('--raw', action='store_true',
                        help='Content only, same as --format raw')
    parser.add_argument('--preserve-ansi', action='store_true',
                        help='Keep ANSI escape codes in content')


def job_fields(args) -> Dict[str, Any]:
    """Request keyword arguments common to every operation."""
    return {
        "org": args.org,
        "pipeline": args.pipeline,
        "build": args.build,
        "job": args.job,
        "cache_ttl": args.cache_ttl,
        "force_refresh": args.force_refresh,
    }


def output_fields(cli, args) -> Dict[str, Any]:
    return {
        "format": args.format or cli.config.display.format,
        "raw": args.raw,
        "preserve_ansi": args.preserve_ansi,
    }
