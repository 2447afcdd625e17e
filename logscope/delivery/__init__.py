"""
Delivery — Token estimate and inline/file switching for whole-log fetches
"""

from .tokens import estimate_tokens, CHARS_PER_TOKEN
from .controller import (
    AdaptiveDeliveryController, DeliveryMode, DeliveryResult, choose_mode,
    TEMP_PREFIX, LOG_FILE_NAME,
)

__all__ = [
    "estimate_tokens", "CHARS_PER_TOKEN",
    "AdaptiveDeliveryController", "DeliveryMode", "DeliveryResult", "choose_mode",
    "TEMP_PREFIX", "LOG_FILE_NAME",
]
