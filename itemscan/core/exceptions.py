"""
Custom exceptions for itemscan.
"""

from typing import Optional, List


class ItemScanError(Exception):
    """Base exception for all itemscan errors."""
    pass


class InvalidInputError(ItemScanError):
    """Raised when a search has nothing valid to work with."""

    def __init__(self, message: str, rejected: Optional[List[str]] = None):
        self.rejected = rejected or []
        if self.rejected:
            message += f" (rejected: {', '.join(self.rejected[:5])})"
        super().__init__(message)


class HashingError(ItemScanError):
    """Raised when an image cannot be read as bytes for fingerprinting."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class RecognitionError(ItemScanError):
    """Raised when a recognizer fails or has nothing to report."""

    def __init__(self, recognizer: str, message: str, cause: Optional[Exception] = None):
        self.recognizer = recognizer
        self.cause = cause
        super().__init__(f"{recognizer} recognizer failed: {message}")


class RecognitionTimeoutError(RecognitionError):
    """Raised when a recognizer call misses its deadline."""

    def __init__(self, recognizer: str, timeout: float):
        self.timeout = timeout
        super().__init__(recognizer, f"timed out after {timeout}s")


class ImageDecodeError(RecognitionError):
    """Raised when a recognizer cannot decode the image it was given."""
    pass


class PersistenceError(ItemScanError):
    """Raised when a cache snapshot cannot be read or written."""

    def __init__(self, key: str, message: str, cause: Optional[Exception] = None):
        self.key = key
        self.cause = cause
        super().__init__(f"Cache snapshot '{key}': {message}")


class CatalogError(ItemScanError):
    """Raised when the item catalog cannot be loaded."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class RetryExhaustedError(ItemScanError):
    """Raised when all retry attempts have failed."""

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation '{operation}' failed after {attempts} attempts: {last_error}"
        )


class ConfigurationError(ItemScanError):
    """Raised for configuration issues."""
    pass
