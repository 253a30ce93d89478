"""Historical store: date-keyed snapshot persistence with retention.

HistoryStore is the interface the pipeline is given; InMemoryHistoryStore
backs tests, JsonHistoryStore backs production runs. The JSON store uses
atomic writes (tmp + rename) and reads every shape earlier versions of the
pipeline wrote.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from src.competitor_signals.errors import HistoryStoreError
from src.competitor_signals.values import coerce_int, date_key
from src.score_history.models import ScoreSnapshot, append_snapshot, trim_series

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 90


class HistoryStore(ABC):
    """Append-only, date-keyed series of snapshots.

    Args:
        retention: Maximum number of entries kept after every append.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        self.retention = retention

    @abstractmethod
    def read(self) -> list[ScoreSnapshot]:
        """Return the series in date order."""

    @abstractmethod
    def _write(self, series: list[ScoreSnapshot]) -> None:
        """Replace the persisted series."""

    def append(
        self,
        date: str,
        scores: dict[str, Any],
        signals: Optional[dict[str, list[str]]] = None,
    ) -> list[ScoreSnapshot]:
        """Upsert the snapshot for date, trim to retention, persist.

        Running twice on the same date replaces that date's entry.
        """
        snapshot = ScoreSnapshot(
            date=date, scores=dict(scores), signals=dict(signals or {}),
        )
        series = trim_series(append_snapshot(self.read(), snapshot), self.retention)
        self._write(series)
        logger.debug("Appended snapshot %s (%d entries kept)", date, len(series))
        return series

    def trim(self, max_entries: Optional[int] = None) -> list[ScoreSnapshot]:
        """Trim the persisted series to max_entries (default retention)."""
        limit = self.retention if max_entries is None else max_entries
        series = trim_series(self.read(), limit)
        self._write(series)
        return series

    def dates(self) -> set[str]:
        return {s.date for s in self.read()}


class InMemoryHistoryStore(HistoryStore):
    """Volatile store for tests and dry runs."""

    def __init__(
        self,
        retention: int = DEFAULT_RETENTION,
        series: Optional[list[ScoreSnapshot]] = None,
    ) -> None:
        super().__init__(retention)
        self._series: list[ScoreSnapshot] = trim_series(series or [], retention)

    def read(self) -> list[ScoreSnapshot]:
        return list(self._series)

    def _write(self, series: list[ScoreSnapshot]) -> None:
        self._series = list(series)


class JsonHistoryStore(HistoryStore):
    """File-backed store: {"history": [{date, <value_key>, signals}], "lastUpdated"}.

    Args:
        path: JSON file location. A missing file is an empty series.
        retention: Maximum entries kept.
        value_key: Name of the per-entry value map ("scores" for momentum,
            "counts" for hiring).

    Raises:
        HistoryStoreError: when the file exists but cannot be read or
            parsed, or when a write fails.
    """

    def __init__(
        self,
        path: str | Path,
        retention: int = DEFAULT_RETENTION,
        value_key: str = "scores",
    ) -> None:
        super().__init__(retention)
        self.path = Path(path)
        self.value_key = value_key

    def read(self) -> list[ScoreSnapshot]:
        if not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read history file %s: %s", self.path, e)
            raise HistoryStoreError(
                f"Cannot read history file {self.path}: {e}", path=str(self.path)
            ) from e
        series: list[ScoreSnapshot] = []
        for snapshot in self._parse(raw):
            series = append_snapshot(series, snapshot)
        return series

    def _write(self, series: list[ScoreSnapshot]) -> None:
        payload = {
            "history": [s.to_dict(self.value_key) for s in series],
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
        tmp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w") as f:
                json.dump(payload, f, indent=2)
            tmp_file.replace(self.path)
        except OSError as e:
            logger.error("Failed to persist history file %s: %s", self.path, e)
            raise HistoryStoreError(
                f"Cannot write history file {self.path}: {e}", path=str(self.path)
            ) from e

    # ── Parsing ──────────────────────────────────────────────────────

    def _parse(self, raw: Any) -> list[ScoreSnapshot]:
        """Accept {"history": [...]}, {"entries": [...]}, [...] or {date: scores}."""
        if isinstance(raw, dict):
            for key in ("history", "entries"):
                if isinstance(raw.get(key), list):
                    return self._parse_entries(raw[key])
            return self._parse_date_map(raw)
        if isinstance(raw, list):
            return self._parse_entries(raw)
        logger.warning("Unrecognized history layout in %s", self.path)
        return []

    def _parse_entries(self, entries: list) -> list[ScoreSnapshot]:
        snapshots = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping non-object history entry in %s", self.path)
                continue
            day = date_key(entry.get("date"))
            if day is None:
                logger.warning("Skipping history entry without a date in %s", self.path)
                continue
            values = self._entry_values(entry)
            signals = entry.get("signals")
            snapshots.append(ScoreSnapshot(
                date=day,
                scores=values,
                signals=signals if isinstance(signals, dict) else {},
            ))
        return snapshots

    def _entry_values(self, entry: dict) -> dict[str, int]:
        for key in (self.value_key, "scores", "counts"):
            if isinstance(entry.get(key), dict):
                return self._numeric(entry[key], entry.get("date"))
        companies = entry.get("companies")
        if isinstance(companies, dict):
            values = {}
            for slug, data in companies.items():
                count = coerce_int(data.get("count")) if isinstance(data, dict) else None
                if count is not None:
                    values[slug] = count
            return values
        return {}

    def _parse_date_map(self, raw: dict) -> list[ScoreSnapshot]:
        snapshots = []
        for key, values in raw.items():
            day = date_key(key)
            if day is None or not isinstance(values, dict):
                continue
            snapshots.append(ScoreSnapshot(date=day, scores=self._numeric(values, key)))
        snapshots.sort(key=lambda s: s.date)
        return snapshots

    def _numeric(self, values: dict, day: Any) -> dict[str, int]:
        """Coerce a value map to ints, dropping entries that are not numeric."""
        numeric = {}
        for slug, value in values.items():
            coerced = coerce_int(value)
            if coerced is None:
                logger.warning(
                    "Dropping non-numeric value %r for %s on %s in %s",
                    value, slug, day, self.path,
                )
                continue
            numeric[slug] = coerced
        return numeric
