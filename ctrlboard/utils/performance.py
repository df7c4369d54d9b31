"""Performance monitoring utilities."""

import logging
import time
from functools import wraps
from typing import Callable

from ctrlboard.config import get_config

logger = logging.getLogger(__name__)


def log_slow_operations(threshold_ms: float | None = None):
    """Decorator to log slow evaluation functions.

    Args:
        threshold_ms: Log a warning if the call takes longer than this many
            milliseconds (defaults to SLOW_EVALUATION_MS from config)

    Example:
        @log_slow_operations(threshold_ms=1000)
        def expensive_evaluation(records):
            ...
    """

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                limit = threshold_ms if threshold_ms is not None else get_config().slow_evaluation_ms

                if duration_ms > limit:
                    logger.warning(
                        f"Slow evaluation detected: {func.__name__} took {duration_ms:.2f}ms "
                        f"(threshold: {limit}ms)"
                    )
                else:
                    logger.debug(f"{func.__name__} completed in {duration_ms:.2f}ms")

        return wrapper

    return decorator
