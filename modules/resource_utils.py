"""
Resource utilities for calls into AWS that may fail transiently
"""

import time
from typing import Callable, TypeVar

import pulumi

T = TypeVar("T")


def retry_with_backoff(func: Callable[[], T], max_retries: int = 3, initial_delay: float = 1.0,
                       sleep: Callable[[float], None] = time.sleep) -> T:
    """
    Retry a function with exponential backoff

    Args:
        func: Function to retry
        max_retries: Maximum number of retries
        initial_delay: Initial delay in seconds
        sleep: Sleep function, replaced in tests

    Returns:
        Result of the function call

    Raises:
        Exception: Last exception if all retries fail
    """
    delay = initial_delay
    last_exception = None

    for attempt in range(max_retries + 1):
        try:
            return func()
        except Exception as e:
            last_exception = e
            if attempt < max_retries:
                pulumi.log.warn(f"Attempt {attempt + 1} failed, retrying in {delay}s: {str(e)}")
                sleep(delay)
                delay *= 2  # Exponential backoff
            else:
                pulumi.log.error(f"All {max_retries + 1} attempts failed")

    raise last_exception
