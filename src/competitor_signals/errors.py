"""Exception hierarchy for the momentum engine.

Bad input never raises: it is skipped and counted. The only faults that
escape a run are storage faults: a history that cannot be read or written
would silently corrupt every later trend comparison, and an output that
cannot be written leaves the renderer with stale data.
"""

from typing import Optional


class IntelError(Exception):
    """Base exception for the momentum engine."""


class HistoryStoreError(IntelError):
    """Raised when a history file cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class OutputWriteError(IntelError):
    """Raised when a run output document cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
