"""Run Context Management.

Binds the run id, run date and any extra keys to every log line emitted
while a pipeline run is in progress, using contextvars.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


_run_id_var: ContextVar[str] = ContextVar("run_id", default="")
_run_date_var: ContextVar[str] = ContextVar("run_date", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_run_id() -> str:
    """Short unique id for one pipeline run."""
    return uuid.uuid4().hex[:12]


def get_run_id() -> str:
    return _run_id_var.get()


def get_run_date() -> str:
    return _run_date_var.get()


def get_context_dict() -> dict[str, Any]:
    """All bound context values, for merging into a log entry."""
    ctx = {}
    run_id = _run_id_var.get()
    if run_id:
        ctx["run_id"] = run_id
    run_date = _run_date_var.get()
    if run_date:
        ctx["run_date"] = run_date
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class RunContext:
    """Context manager for run-scoped logging context.

    Example:
        with RunContext(run_date="2026-10-18") as ctx:
            logger.info("scoring")  # carries run_id and run_date
            ctx.bind(stage="detect")
    """

    run_id: str = ""
    run_date: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.run_id:
            self.run_id = generate_run_id()

    def __enter__(self) -> "RunContext":
        self._tokens = [
            _run_id_var.set(self.run_id),
            _run_date_var.set(self.run_date),
            _extra_context_var.set(self.extra.copy()),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        run_token, date_token, extra_token = self._tokens
        _extra_context_var.reset(extra_token)
        _run_date_var.reset(date_token)
        _run_id_var.reset(run_token)
        self._tokens = []

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the active context."""
        _extra_context_var.set({**_extra_context_var.get(), **kwargs})
        self.extra.update(kwargs)
