"""
Errors — Failure taxonomy for log queries

Every externally caused failure (bad input, network, disk, cancellation)
derives from LogScopeError. Handlers turn these into readable error text
inside a normal result; anything else is a defect and propagates.
"""

from typing import Optional


class LogScopeError(Exception):
    """Base class for soft, user-reportable failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ValidationError(LogScopeError):
    """Missing or invalid request field."""


class InvalidPatternError(ValidationError):
    """Search pattern does not compile as a regular expression."""

    def __init__(self, pattern: str, cause: Optional[BaseException] = None):
        self.pattern = pattern
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"invalid regex pattern{detail}", cause)


class LogSourceError(LogScopeError):
    """Raw job log could not be fetched from its source."""


class CacheResolutionError(LogScopeError):
    """A job key could not be resolved into a cached snapshot."""


class DeliveryIOError(LogScopeError):
    """Temporary directory or file for file-mode delivery could not be written."""


class CancellationError(LogScopeError):
    """The enclosing request was cancelled or ran out of time."""
