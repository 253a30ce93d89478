"""Tests for structured run logging and stage timing."""

import json
import logging
import sys
import time

import pytest

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
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


def _make_record(msg="test", level=logging.INFO, name="test", lineno=1, exc_info=None):
    return logging.LogRecord(
        name=name, level=level, pathname="test.py",
        lineno=lineno, msg=msg, args=(), exc_info=exc_info,
    )


class TestLoggingConfig:
    """Tests for logging configuration dataclasses."""

    def test_default_config_values(self):
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.CONSOLE
        assert config.include_caller is False
        assert config.slow_threshold_ms == 1000.0
        assert config.service_name == "competitive-momentum"

    def test_custom_config(self):
        config = LoggingConfig(
            level=LogLevel.DEBUG,
            format=LogFormat.JSON,
            slow_threshold_ms=500.0,
            service_name="test",
        )
        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.JSON
        assert config.slow_threshold_ms == 500.0

    def test_log_format_enum_values(self):
        assert LogFormat.JSON.value == "json"
        assert LogFormat.CONSOLE.value == "console"

    def test_resolve_config_without_env(self):
        config = resolve_config(LoggingConfig(level=LogLevel.ERROR))
        assert config.level == LogLevel.ERROR

    def test_resolve_config_ignores_unknown_env_values(self, monkeypatch):
        monkeypatch.setenv("INTEL_LOG_LEVEL", "LOUD")
        monkeypatch.setenv("INTEL_LOG_FORMAT", "xml")
        config = resolve_config(LoggingConfig(level=LogLevel.ERROR))
        assert config.level == LogLevel.ERROR
        assert config.format == LogFormat.CONSOLE


class TestRunContext:
    """Tests for run-scoped logging context."""

    def test_generate_run_id_unique(self):
        ids = {generate_run_id() for _ in range(100)}
        assert len(ids) == 100

    def test_run_id_is_short_hex(self):
        rid = generate_run_id()
        assert len(rid) == 12
        int(rid, 16)

    def test_context_sets_run_id_and_date(self):
        with RunContext(run_id="run-1", run_date="2026-10-18"):
            assert get_run_id() == "run-1"
            assert get_run_date() == "2026-10-18"
        assert get_run_id() == ""
        assert get_run_date() == ""

    def test_auto_generates_run_id(self):
        with RunContext() as ctx:
            assert ctx.run_id != ""
            assert get_run_id() == ctx.run_id

    def test_get_context_dict(self):
        with RunContext(run_id="r1", run_date="2026-10-18"):
            ctx = get_context_dict()
            assert ctx == {"run_id": "r1", "run_date": "2026-10-18"}

    def test_context_dict_empty_outside(self):
        assert get_context_dict() == {}

    def test_bind_extra_context(self):
        with RunContext(run_id="r1") as ctx:
            ctx.bind(stage="score")
            assert get_context_dict()["stage"] == "score"
        assert "stage" not in get_context_dict()

    def test_nested_contexts_restore_outer(self):
        with RunContext(run_id="outer"):
            with RunContext(run_id="inner"):
                assert get_run_id() == "inner"
            assert get_run_id() == "outer"
        assert get_run_id() == ""

    def test_elapsed_ms(self):
        with RunContext() as ctx:
            time.sleep(0.01)
            assert ctx.elapsed_ms >= 10


class TestStructuredFormatter:
    """Tests for JSON structured log formatting."""

    def test_formats_as_json(self):
        parsed = json.loads(StructuredFormatter().format(_make_record("hello world")))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert "timestamp" in parsed

    def test_includes_service_name(self):
        formatter = StructuredFormatter(service_name="my-service")
        parsed = json.loads(formatter.format(_make_record()))
        assert parsed["service"] == "my-service"

    def test_includes_caller_info(self):
        formatter = StructuredFormatter(include_caller=True)
        parsed = json.loads(formatter.format(_make_record(lineno=42)))
        assert parsed["line"] == 42
        assert "function" in parsed

    def test_excludes_caller_by_default(self):
        parsed = json.loads(StructuredFormatter().format(_make_record(lineno=42)))
        assert "line" not in parsed

    def test_includes_run_context(self):
        formatter = StructuredFormatter()
        with RunContext(run_id="ctx-test", run_date="2026-10-18"):
            parsed = json.loads(formatter.format(_make_record()))
        assert parsed["run_id"] == "ctx-test"
        assert parsed["run_date"] == "2026-10-18"

    def test_formats_exception(self):
        formatter = StructuredFormatter()
        try:
            raise ValueError("test error")
        except ValueError:
            record = _make_record("failed", level=logging.ERROR, exc_info=sys.exc_info())
            parsed = json.loads(formatter.format(record))
        assert parsed["exception"]["type"] == "ValueError"
        assert "test error" in parsed["exception"]["message"]

    def test_includes_extra_fields(self):
        record = _make_record()
        record.duration_ms = 42.5
        record.stage = "score"
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["duration_ms"] == 42.5
        assert parsed["stage"] == "score"


class TestConsoleFormatter:
    """Tests for colored console log formatting."""

    def test_formats_readable_output(self):
        output = ConsoleFormatter().format(_make_record("hello", name="test.module"))
        assert "test.module" in output
        assert "hello" in output

    def test_includes_level_name(self):
        output = ConsoleFormatter().format(_make_record("warn", level=logging.WARNING))
        assert "WARNING" in output

    def test_includes_context_info(self):
        with RunContext(run_id="abc"):
            output = ConsoleFormatter().format(_make_record())
        assert "run_id=abc" in output

    def test_has_color_codes(self):
        output = ConsoleFormatter().format(_make_record("error", level=logging.ERROR))
        assert "\033[31m" in output  # Red for ERROR


class TestConfigureLogging:
    """Tests for the configure_logging setup function."""

    def test_configures_root_logger(self):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_json_format(self):
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)

    def test_console_format(self):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert isinstance(logging.getLogger().handlers[0].formatter, ConsoleFormatter)

    def test_sets_log_level(self):
        configure_logging(LoggingConfig(level=LogLevel.DEBUG))
        assert logging.getLogger().level == logging.DEBUG

    def test_only_root_logger_changes(self):
        configure_logging(LoggingConfig(level=LogLevel.DEBUG))
        assert logging.getLogger("numexpr").level == logging.NOTSET
        assert logging.getLogger("numexpr").getEffectiveLevel() == logging.DEBUG

    def test_returns_effective_config(self):
        effective = configure_logging(LoggingConfig(level=LogLevel.WARNING))
        assert effective.level == LogLevel.WARNING

    def test_get_logger_returns_logger(self):
        logger = get_logger("test.module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"

    def test_env_var_override_level(self, monkeypatch):
        monkeypatch.setenv("INTEL_LOG_LEVEL", "debug")
        configure_logging(LoggingConfig(level=LogLevel.ERROR))
        assert logging.getLogger().level == logging.DEBUG

    def test_env_var_override_format(self, monkeypatch):
        monkeypatch.setenv("INTEL_LOG_FORMAT", "JSON")
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)

    def test_env_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv("INTEL_LOG_LEVEL", "DEBUG")
        configure_logging(LoggingConfig(level=LogLevel.ERROR), apply_env=False)
        assert logging.getLogger().level == logging.ERROR


class TestPerformanceLogging:
    """Tests for the timing decorator and context manager."""

    def test_log_performance_returns_value(self):
        @log_performance(threshold_ms=10000)
        def fast_func():
            return 42

        assert fast_func() == 42

    def test_log_performance_preserves_name(self):
        @log_performance()
        def my_function():
            """My docstring."""

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "My docstring."

    def test_log_performance_reraises_and_logs_error(self, caplog):
        @log_performance(threshold_ms=10000)
        def failing_func():
            raise ValueError("test error")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError, match="test error"):
                failing_func()
        assert any("failed after" in r.getMessage() for r in caplog.records)

    def test_slow_call_logged_as_warning(self, caplog):
        @log_performance(threshold_ms=0)
        def slow_func():
            return "done"

        with caplog.at_level(logging.WARNING):
            slow_func()
        assert any("Slow stage" in r.getMessage() for r in caplog.records)

    def test_log_performance_with_args(self):
        @log_performance(threshold_ms=10000, include_args=True)
        def func_with_args(a, b, c=None):
            return a + b

        assert func_with_args(1, 2, c=3) == 3

    def test_performance_timer_records_duration(self):
        with PerformanceTimer("test_op") as timer:
            time.sleep(0.01)
        assert timer.duration_ms >= 10

    def test_performance_timer_with_exception(self):
        with pytest.raises(ValueError):
            with PerformanceTimer("failing_op") as timer:
                raise ValueError("oops")
        assert timer.duration_ms >= 0

    def test_default_threshold(self):
        assert PerformanceTimer("op").threshold_ms == 1000.0

    def test_custom_threshold(self):
        assert PerformanceTimer("op", threshold_ms=500.0).threshold_ms == 500.0
