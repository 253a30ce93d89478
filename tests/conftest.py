"""Pytest configuration and shared fixtures."""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def reset_root_logger(monkeypatch):
    """Restore root logger handlers and level after each test."""
    monkeypatch.delenv("INTEL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("INTEL_LOG_FORMAT", raising=False)

    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level

    yield

    root.handlers[:] = original_handlers
    root.setLevel(original_level)
