"""Structured Run Logging.

JSON or console logging, run-id propagation and stage timing for the
daily intelligence pipeline.

Example:
    from src.logging_config import RunContext, configure_logging

    configure_logging()
    with RunContext(run_date="2026-10-18"):
        ...
"""

from src.logging_config.config import (
    DEFAULT_LOGGING_CONFIG,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from src.logging_config.context import (
    RunContext,
    generate_run_id,
    get_context_dict,
    get_run_date,
    get_run_id,
)
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
    resolve_config,
)

__all__ = [
    # Config
    "DEFAULT_LOGGING_CONFIG",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    # Context
    "RunContext",
    "generate_run_id",
    "get_context_dict",
    "get_run_date",
    "get_run_id",
    # Performance
    "PerformanceTimer",
    "log_performance",
    # Setup
    "ConsoleFormatter",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "resolve_config",
]
