"""Score History.

Date-keyed snapshot persistence for momentum scores and hiring counts,
with retention trimming and series analytics.

Example:
    from src.score_history import JsonHistoryStore

    store = JsonHistoryStore("data/history/momentum-history.json", retention=90)
    series = store.append("2026-10-18", {"cursor": 58, "replit": 12})
"""

from src.competitor_signals.errors import HistoryStoreError
from src.score_history.models import (
    ScoreSnapshot,
    append_snapshot,
    find_snapshot,
    latest_pair,
    trim_series,
)
from src.score_history.store import (
    HistoryStore,
    InMemoryHistoryStore,
    JsonHistoryStore,
)
from src.score_history.archive import InstallSnapshotArchive
from src.score_history.analysis import (
    hiring_report,
    latest_deltas,
    series_to_frame,
    weekly_changes,
)

__all__ = [
    # Models
    "ScoreSnapshot",
    "append_snapshot",
    "find_snapshot",
    "latest_pair",
    "trim_series",
    # Stores
    "HistoryStore",
    "HistoryStoreError",
    "InMemoryHistoryStore",
    "JsonHistoryStore",
    "InstallSnapshotArchive",
    # Analysis
    "hiring_report",
    "latest_deltas",
    "series_to_frame",
    "weekly_changes",
]
