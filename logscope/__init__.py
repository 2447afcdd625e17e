"""
LogScope — Query and fetch CI job logs within a token budget

Cached, paginated access to Buildkite job logs for consumers that can
only read so much at once.

Usage:
    logscope info   my-org my-pipeline 42 0190-job-uuid
    logscope tail   my-org my-pipeline 42 0190-job-uuid --tail 20
    logscope read   my-org my-pipeline 42 0190-job-uuid --seek 100 --limit 50
    logscope search my-org my-pipeline 42 0190-job-uuid "error|fail" -C 2
    logscope fetch  my-org my-pipeline 42 0190-job-uuid
    logscope config --set delivery.token_threshold=20000
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.entry import JobKey, LogEntry, SnapshotInfo, SearchOptions, SearchResult
from .core.cache import LogCache, SnapshotCache, MemorySnapshotCache, parse_cache_ttl
from .core.query import LogQueryEngine
from .core.cancellation import CancellationToken

# Output and delivery
from .output import OutputFormat, ToolResult
from .delivery import AdaptiveDeliveryController, DeliveryMode, DeliveryResult, estimate_tokens

# Errors
from .errors import (
    LogScopeError, ValidationError, InvalidPatternError, LogSourceError,
    CacheResolutionError, DeliveryIOError, CancellationError,
)

# Configuration
from .config import Config, ConfigManager, get_config

__all__ = [
    "__version__",
    "JobKey", "LogEntry", "SnapshotInfo", "SearchOptions", "SearchResult",
    "LogCache", "SnapshotCache", "MemorySnapshotCache", "parse_cache_ttl",
    "LogQueryEngine", "CancellationToken",
    "OutputFormat", "ToolResult",
    "AdaptiveDeliveryController", "DeliveryMode", "DeliveryResult", "estimate_tokens",
    "LogScopeError", "ValidationError", "InvalidPatternError", "LogSourceError",
    "CacheResolutionError", "DeliveryIOError", "CancellationError",
    "Config", "ConfigManager", "get_config",
]
