"""Logging Setup.

One-call configuration for run logging. JSON lines for scheduled runs,
colored console output for local use.
"""

import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from src.logging_config.config import (
    DEFAULT_LOGGING_CONFIG,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from src.logging_config.context import get_context_dict

# Record attributes copied into structured entries when present
EXTRA_FIELDS = ("duration_ms", "stage", "extra_data", "path", "counts")


def _event_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _exception_info(formatter: logging.Formatter, record: logging.LogRecord) -> Optional[dict]:
    if not record.exc_info or record.exc_info[0] is None:
        return None
    exc_type, exc_value, _ = record.exc_info
    return {
        "type": exc_type.__name__,
        "message": str(exc_value),
        "traceback": formatter.formatException(record.exc_info),
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.

    Every entry carries time, level, logger, message and service, then the
    bound run context (run_id, run_date, extras), then any EXTRA_FIELDS the
    call site passed via `extra=`.
    """

    def __init__(self, service_name: str = "competitive-momentum", include_caller: bool = False):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _event_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            **get_context_dict(),
        }
        if self.include_caller:
            entry.update(module=record.module, function=record.funcName, line=record.lineno)

        exception = _exception_info(self, record)
        if exception:
            entry["exception"] = exception

        entry.update({
            key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)
        })
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for local runs.

    Stage timings logged by PerformanceTimer are appended as "(12.3ms)".
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",     # cyan
        logging.INFO: "\033[32m",      # green
        logging.WARNING: "\033[33m",   # yellow
        logging.ERROR: "\033[31m",     # red
        logging.CRITICAL: "\033[35m",  # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        parts = [
            f"{color}{_event_time(record):%H:%M:%S} {record.levelname:<8}{self.RESET}",
            f"{record.name}: {record.getMessage()}",
        ]
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            parts.append(f"({duration:.1f}ms)")
        ctx = get_context_dict()
        if ctx:
            parts.append("[" + " ".join(f"{k}={v}" for k, v in ctx.items()) + "]")

        line = " ".join(parts)
        exception = _exception_info(self, record)
        if exception:
            line += "\n" + exception["traceback"]
        return line


def resolve_config(config: Optional[LoggingConfig] = None) -> LoggingConfig:
    """Apply INTEL_LOG_LEVEL / INTEL_LOG_FORMAT overrides to a config."""
    config = config or DEFAULT_LOGGING_CONFIG

    env_level = os.environ.get(ENV_LOG_LEVEL, "").upper()
    if env_level in LogLevel.__members__:
        config = replace(config, level=LogLevel(env_level))

    env_format = os.environ.get(ENV_LOG_FORMAT, "").lower()
    if env_format in [f.value for f in LogFormat]:
        config = replace(config, format=LogFormat(env_format))

    return config


def configure_logging(
    config: Optional[LoggingConfig] = None,
    apply_env: bool = True,
) -> LoggingConfig:
    """Configure the root logger for a pipeline run.

    Call once at startup. Replaces any existing root handlers with a
    single stderr handler using the configured formatter.

    Args:
        config: Logging configuration. Uses defaults if not provided.
                Level can be overridden with INTEL_LOG_LEVEL.
                Format can be overridden with INTEL_LOG_FORMAT.
        apply_env: Apply the env overrides (False when the caller already
                did, e.g. to let a CLI flag win over the environment).

    Returns:
        The effective configuration after env overrides.
    """
    config = resolve_config(config) if apply_env else (config or DEFAULT_LOGGING_CONFIG)

    if config.format == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.value))

    return config


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Convenience wrapper returning a standard library logger; once
    configure_logging() has run, output goes through its formatter.
    """
    return logging.getLogger(name)
