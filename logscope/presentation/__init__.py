"""
Presentation — Terminal markup removal for log content
"""

from .sanitize import sanitize, strip_escapes, collapse_carriage_returns

__all__ = ["sanitize", "strip_escapes", "collapse_carriage_returns"]
