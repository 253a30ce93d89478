"""Performance Logging.

Decorator and context manager for timing pipeline stages and flagging
slow ones.
"""

import functools
import logging
import time
from typing import Any, Callable, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


def _report(
    _logger: logging.Logger,
    name: str,
    duration_ms: float,
    threshold_ms: float,
    failure: Optional[type] = None,
    extra_data: Optional[str] = None,
) -> None:
    extra: dict[str, Any] = {"duration_ms": round(duration_ms, 2), "stage": name}
    if extra_data is not None:
        extra["extra_data"] = extra_data
    if failure is not None:
        _logger.error(
            "%s failed after %.1fms: %s", name, duration_ms, failure.__name__, extra=extra,
        )
    elif duration_ms >= threshold_ms:
        _logger.warning("Slow stage: %s took %.1fms", name, duration_ms, extra=extra)
    else:
        _logger.debug("%s completed in %.1fms", name, duration_ms, extra=extra)


def log_performance(
    threshold_ms: Optional[float] = None,
    logger_name: Optional[str] = None,
    include_args: bool = False,
) -> Callable:
    """Decorator that logs function execution time.

    Logs every call at DEBUG, slow calls (at or above the threshold) at
    WARNING and failing calls at ERROR before re-raising.

    Args:
        threshold_ms: Slow stage threshold in milliseconds.
                     Defaults to config.slow_threshold_ms (1000ms).
        logger_name: Custom logger name. Defaults to the function's module.
        include_args: Whether to include a summary of the arguments.

    Example:
        @log_performance(threshold_ms=500)
        def load_sources(data_dir, files):
            ...
    """
    if threshold_ms is None:
        threshold_ms = DEFAULT_LOGGING_CONFIG.slow_threshold_ms

    def decorator(func: Callable) -> Callable:
        _logger = logging.getLogger(logger_name or func.__module__)
        func_name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            failure = None
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                failure = type(exc)
                raise
            finally:
                _report(
                    _logger,
                    func_name,
                    (time.perf_counter() - start) * 1000,
                    threshold_ms,
                    failure=failure,
                    extra_data=_summarize_args(args, kwargs) if include_args else None,
                )

        return wrapper

    return decorator


def _summarize_args(args: tuple, kwargs: dict, max_len: int = 100) -> str:
    """Create a short summary of function arguments for logging."""
    parts = []
    for arg in args[:3]:
        rep = repr(arg)
        if len(rep) > max_len:
            rep = rep[:max_len] + "..."
        parts.append(rep)
    if len(args) > 3:
        parts.append(f"... +{len(args) - 3} more args")

    for key, val in list(kwargs.items())[:3]:
        rep = repr(val)
        if len(rep) > max_len:
            rep = rep[:max_len] + "..."
        parts.append(f"{key}={rep}")

    return ", ".join(parts)


class PerformanceTimer:
    """Context manager for timing one pipeline stage.

    Example:
        with PerformanceTimer("score") as timer:
            result = scorer.score(records)
        timings["score"] = timer.duration_ms
    """

    def __init__(self, operation_name: str, threshold_ms: Optional[float] = None):
        self.operation_name = operation_name
        self.threshold_ms = threshold_ms or DEFAULT_LOGGING_CONFIG.slow_threshold_ms
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        _report(
            logger,
            self.operation_name,
            self.duration_ms,
            self.threshold_ms,
            failure=exc_type,
        )
