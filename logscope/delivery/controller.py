"""
Adaptive Delivery — Inline or file, decided by estimated token size

Whole job logs can be far larger than a consumer's context budget.
The controller estimates the size of the (already rendered) text and:

    threshold <= 0             → inline
    estimate <= threshold      → inline
    estimate >  threshold      → file: new temp dir, job.log, absolute path

The decision depends only on (text, threshold). Written files hold
exactly the text inline mode would have returned.

Failure policy: any error creating the directory or writing the file
raises DeliveryIOError. There is no fallback to inline delivery.
Files are left in place; cleaning them up is the environment's business.
"""

import logging
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .tokens import estimate_tokens
from ..errors import DeliveryIOError


logger = logging.getLogger(__name__)

TEMP_PREFIX = "logscope-job-logs-"
LOG_FILE_NAME = "job.log"


class DeliveryMode(str, Enum):
    INLINE = "inline"
    FILE = "file"


@dataclass(frozen=True)
class DeliveryResult:
    mode: DeliveryMode
    estimated_tokens: int
    content: Optional[str] = None      # inline only
    file_path: Optional[str] = None    # file only
    file_size_bytes: Optional[int] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"delivery_mode": self.mode.value}
        if self.mode is DeliveryMode.INLINE:
            data["content"] = self.content
        else:
            data["file_path"] = self.file_path
            data["file_size_bytes"] = self.file_size_bytes
        data["estimated_tokens"] = self.estimated_tokens
        if self.reason:
            data["reason"] = self.reason
        return data


def choose_mode(estimated_tokens: int, threshold: int) -> DeliveryMode:
    """File delivery iff a threshold is set and the estimate exceeds it."""
    if threshold > 0 and estimated_tokens > threshold:
        return DeliveryMode.FILE
    return DeliveryMode.INLINE


class AdaptiveDeliveryController:
    """
    Chooses and performs delivery for a rendered log.

    Args:
        threshold: Token budget (0 or less disables file mode)
        temp_root: Parent for temporary directories (system default if None)
    """

    def __init__(self, threshold: int = 0, temp_root: Optional[Path] = None):
        self.threshold = threshold
        self.temp_root = temp_root

    def deliver(self, text: str) -> DeliveryResult:
        tokens = estimate_tokens(text)

        if choose_mode(tokens, self.threshold) is DeliveryMode.INLINE:
            return DeliveryResult(mode=DeliveryMode.INLINE, estimated_tokens=tokens, content=text)

        logger.info(
            "Job log exceeds token threshold, switching to file mode (tokens=%d, threshold=%d)",
            tokens, self.threshold,
        )
        return self._write_file(text, tokens)

    def _write_file(self, text: str, tokens: int) -> DeliveryResult:
        try:
            output_dir = tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=self.temp_root)
        except OSError as e:
            raise DeliveryIOError(f"failed to create temporary output directory: {e}", e)

        path = Path(output_dir) / LOG_FILE_NAME
        try:
            with open(path, "x", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise DeliveryIOError(f"failed to write log file {path}: {e}", e)

        try:
            size = path.stat().st_size
            absolute = path.resolve()
        except OSError as e:
            raise DeliveryIOError(f"failed to get file info for {path}: {e}", e)

        return DeliveryResult(
            mode=DeliveryMode.FILE,
            estimated_tokens=tokens,
            file_path=str(absolute),
            file_size_bytes=size,
            reason=f"Log exceeded {self.threshold} token threshold, saved to file",
        )
