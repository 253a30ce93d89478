"""Logging Configuration.

Settings for structured run logging: level, output format and the slow
stage threshold used by the performance helpers.
"""

from dataclasses import dataclass
from enum import Enum


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


ENV_LOG_LEVEL = "INTEL_LOG_LEVEL"
ENV_LOG_FORMAT = "INTEL_LOG_FORMAT"


@dataclass
class LoggingConfig:
    """Structured logging configuration.

    Logs go to stderr so that `main.py --json` can keep stdout for the
    run result.
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.CONSOLE
    include_caller: bool = False
    slow_threshold_ms: float = 1000.0
    service_name: str = "competitive-momentum"


DEFAULT_LOGGING_CONFIG = LoggingConfig()
