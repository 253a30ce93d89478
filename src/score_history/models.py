"""Score snapshots and the pure operations on a historical series.

A series is a list of ScoreSnapshot ordered by date with at most one
entry per calendar date.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class ScoreSnapshot:
    """One date's complete value map.

    Attributes:
        date: Calendar date, YYYY-MM-DD.
        scores: slug -> number (momentum score or job count).
        signals: slug -> explanation strings, when the producer kept them.
    """

    date: str
    scores: dict[str, Any] = field(default_factory=dict)
    signals: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self, value_key: str = "scores") -> dict[str, Any]:
        data: dict[str, Any] = {"date": self.date, value_key: dict(self.scores)}
        if self.signals:
            data["signals"] = {k: list(v) for k, v in self.signals.items()}
        return data


def append_snapshot(
    series: Sequence[ScoreSnapshot],
    snapshot: ScoreSnapshot,
) -> list[ScoreSnapshot]:
    """Upsert a snapshot by date and return the new series.

    An existing entry for the same date is replaced in place; otherwise
    the snapshot is inserted at its chronological position.
    """
    result = list(series)
    for i, existing in enumerate(result):
        if existing.date == snapshot.date:
            result[i] = snapshot
            return result
    dates = [s.date for s in result]
    result.insert(bisect.bisect_right(dates, snapshot.date), snapshot)
    return result


def trim_series(
    series: Sequence[ScoreSnapshot],
    max_entries: int,
) -> list[ScoreSnapshot]:
    """Keep the chronologically latest max_entries snapshots, in date order."""
    if max_entries <= 0:
        return []
    ordered = sorted(series, key=lambda s: s.date)
    return ordered[-max_entries:]


def latest_pair(
    series: Sequence[ScoreSnapshot],
) -> Optional[tuple[ScoreSnapshot, ScoreSnapshot]]:
    """(previous, latest) or None with fewer than two entries."""
    if len(series) < 2:
        return None
    return series[-2], series[-1]


def find_snapshot(series: Sequence[ScoreSnapshot], date: str) -> Optional[ScoreSnapshot]:
    for snapshot in series:
        if snapshot.date == date:
            return snapshot
    return None
