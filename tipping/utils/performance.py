"""
Timing helpers for evaluation runs and wager submissions.

`timer` wraps whole service functions and warns when one crosses
SLOW_FUNCTION_THRESHOLD. `PerformanceMonitor` times a block and exposes
`duration_ms` for audit records.
"""

import functools
import time

from flask import current_app, g, has_app_context

from tipping.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SLOW_THRESHOLD = 1.0


def _slow_threshold():
    if not has_app_context():
        return DEFAULT_SLOW_THRESHOLD
    return current_app.config.get("SLOW_FUNCTION_THRESHOLD", DEFAULT_SLOW_THRESHOLD)


def timer(func):
    """Log how long func took; slow or failing calls are logged louder"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"{func.__qualname__} failed after "
                f"{time.perf_counter() - started:.2f}s: {e}"
            )
            raise

        elapsed = time.perf_counter() - started
        threshold = _slow_threshold()
        if elapsed > threshold:
            logger.warning(
                f"Slow call {func.__qualname__}: {elapsed:.2f}s (threshold {threshold}s)"
            )
        else:
            logger.debug(f"{func.__qualname__} took {elapsed:.3f}s")
        return result

    return wrapper


class PerformanceMonitor:
    """
    Time a block of work.

        with PerformanceMonitor("evaluate match 12") as monitor:
            ...
        audit(duration_ms=monitor.duration_ms)

    Samples are collected on `g.performance_metrics` for the current
    request or app context.
    """

    def __init__(self, operation_name, log_threshold=0.1):
        self.operation_name = operation_name
        self.log_threshold = log_threshold
        self.started = None
        self.finished = None

    @property
    def duration_ms(self):
        """Milliseconds so far; final once the block has exited"""
        if self.started is None:
            return 0
        end = self.finished if self.finished is not None else time.perf_counter()
        return int((end - self.started) * 1000)

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finished = time.perf_counter()
        seconds = self.finished - self.started

        if exc_type is not None:
            logger.info(f"{self.operation_name} failed after {seconds:.3f}s: {exc_val}")
        elif seconds > self.log_threshold:
            logger.info(f"{self.operation_name} completed in {seconds:.3f}s")

        if has_app_context():
            g.setdefault("performance_metrics", []).append(
                {
                    "operation": self.operation_name,
                    "duration_ms": self.duration_ms,
                    "success": exc_type is None,
                }
            )
        return False
