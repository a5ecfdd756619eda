"""
Utility functions.
"""

from itemscan.utils.retry import RetryConfig, retry_call, call_with_timeout
from itemscan.utils.image import (
    analyze_image,
    decode_image,
    draw_results,
    resize_for_api,
)

__all__ = [
    "RetryConfig",
    "retry_call",
    "call_with_timeout",
    "analyze_image",
    "decode_image",
    "draw_results",
    "resize_for_api",
]
