"""
ToolResult — Response envelope for operation handlers

Handlers never raise for bad input, network or disk problems. They return
a ToolResult whose text is either a compact JSON payload or a readable
error message, flagged with is_error.

Serialization uses orjson. A payload orjson cannot encode is a
programming defect and is allowed to raise.
"""

from dataclasses import dataclass
from typing import Any, Dict

import orjson


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the consumer, success or soft failure."""

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, payload: Dict[str, Any]) -> "ToolResult":
        """Serialize payload as compact JSON."""
        return cls(text=dumps(payload))

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        """Soft failure carrying a human-readable message."""
        return cls(text=message, is_error=True)

    def json(self) -> Any:
        """Parse the payload back (success results only)."""
        return orjson.loads(self.text)


def dumps(payload: Any) -> str:
    """Compact JSON, non-ASCII preserved."""
    return orjson.dumps(payload).decode("utf-8")
