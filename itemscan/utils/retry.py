"""
Retry with exponential backoff, and deadlines for blocking calls.
"""

import functools
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from itemscan.core.exceptions import RecognitionTimeoutError, RetryExhaustedError


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 5.0
    exponential_base: float = 2.0
    retry_on: Tuple[Type[Exception], ...] = (Exception,)
    # Raised straight through, even when they also match retry_on
    give_up_on: Tuple[Type[Exception], ...] = ()


T = TypeVar("T")


def retry_call(
    func: Callable[..., T],
    args: tuple = (),
    kwargs: Optional[dict] = None,
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call a function with retry logic.

        result = retry_call(some_api_call, args=(param,), config=RetryConfig(max_attempts=5))
    """
    kwargs = kwargs or {}
    cfg = config or RetryConfig()

    last_exception = None
    delay = cfg.base_delay

    for attempt in range(1, cfg.max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except cfg.give_up_on:
            raise
        except cfg.retry_on as e:
            last_exception = e

            if attempt == cfg.max_attempts:
                break

            sleep(delay)
            delay = min(delay * cfg.exponential_base, cfg.max_delay)

    raise RetryExhaustedError(
        operation=getattr(func, "__name__", repr(func)),
        attempts=cfg.max_attempts,
        last_error=last_exception,
    )


# Shared pool for deadline-bound calls. Threads that overrun their deadline
# keep running to completion in the background; their result is discarded.
_deadline_pool: Optional[ThreadPoolExecutor] = None
_pool_lock = threading.Lock()


def _get_pool() -> ThreadPoolExecutor:
    global _deadline_pool
    with _pool_lock:
        if _deadline_pool is None:
            _deadline_pool = ThreadPoolExecutor(max_workers=8, thread_name_prefix="itemscan-deadline")
        return _deadline_pool


def call_with_timeout(
    func: Callable[..., T],
    timeout: Optional[float],
    *args: Any,
    name: str = "call",
    **kwargs: Any,
) -> T:
    """
    Run func with a deadline.

    Raises RecognitionTimeoutError if it has not returned within timeout
    seconds. A timeout of None or <= 0 runs func inline with no deadline.
    """
    if not timeout or timeout <= 0:
        return func(*args, **kwargs)

    future = _get_pool().submit(functools.partial(func, *args, **kwargs))
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        raise RecognitionTimeoutError(name, timeout)
