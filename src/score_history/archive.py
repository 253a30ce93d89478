"""Dated marketplace snapshots: one `<prefix>YYYY-MM-DD.json` file per run.

The install-velocity detector compares today's marketplace data to the most
recent archived snapshot, which is the last available run and not
necessarily yesterday.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from src.competitor_signals.errors import HistoryStoreError

logger = logging.getLogger(__name__)


class InstallSnapshotArchive:
    """Directory of dated JSON snapshots selected by filename sort.

    Example:
        archive = InstallSnapshotArchive("data/history")
        archive.save("2026-10-18", vscode_data)
        prev = archive.latest_before("2026-10-19")  # ("2026-10-18", {...})
    """

    def __init__(self, directory: str | Path, prefix: str = "vscode-") -> None:
        self.directory = Path(directory)
        self.prefix = prefix

    def _filename(self, date: str) -> str:
        return f"{self.prefix}{date}.json"

    def filenames(self) -> list[str]:
        """Archived snapshot filenames in lexicographic order."""
        if not self.directory.exists():
            return []
        return sorted(
            p.name for p in self.directory.iterdir()
            if p.name.startswith(self.prefix) and p.name.endswith(".json")
        )

    def save(self, date: str, data: Any) -> Path:
        """Write (or overwrite) the snapshot for date."""
        path = self.directory / self._filename(date)
        tmp_file = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w") as f:
                json.dump(data, f, indent=2)
            tmp_file.replace(path)
        except OSError as e:
            logger.error("Failed to archive snapshot %s: %s", path, e)
            raise HistoryStoreError(f"Cannot write {path}: {e}", path=str(path)) from e
        return path

    def latest_before(self, date: str) -> Optional[tuple[str, Any]]:
        """Most recent snapshot strictly before date, as (date, data)."""
        cutoff = self._filename(date)
        candidates = [name for name in self.filenames() if name < cutoff]
        if not candidates:
            return None
        name = candidates[-1]
        path = self.directory / name
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read archived snapshot %s: %s", path, e)
            raise HistoryStoreError(f"Cannot read {path}: {e}", path=str(path)) from e
        return name[len(self.prefix):-len(".json")], data
