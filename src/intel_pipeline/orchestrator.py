"""Daily intelligence run.

One run processes one day's already-collected source documents:

    load sources -> maintain hiring history -> build signal records
    -> score -> append momentum history -> detect trends -> correlate
    -> write outputs -> archive the marketplace snapshot

Bad input degrades to empty results. Only storage faults
(HistoryStoreError, OutputWriteError) escape.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from src.competitor_signals.adapters import (
    LoadReport,
    SourceBundle,
    build_signal_records,
    load_sources,
)
from src.competitor_signals.errors import OutputWriteError
from src.competitor_signals.keywords import DEFAULT_KEYWORDS, KeywordTables
from src.competitor_signals.models import Competitor
from src.competitor_signals.roster import default_matcher, load_roster
from src.competitor_signals.values import coerce_int, date_key
from src.cross_source.config import CorrelatorConfig
from src.cross_source.correlator import CrossSourceCorrelator
from src.cross_source.models import Pattern
from src.intel_pipeline.config import PipelineConfig
from src.logging_config.context import RunContext
from src.logging_config.performance import PerformanceTimer, log_performance
from src.momentum.ranking import rank_entities
from src.momentum.scorer import MomentumScorer, ScoringResult
from src.score_history.analysis import hiring_report, latest_deltas, weekly_changes
from src.score_history.archive import InstallSnapshotArchive
from src.score_history.models import ScoreSnapshot
from src.score_history.store import HistoryStore, JsonHistoryStore
from src.trend_alerts.config import TrendConfig
from src.trend_alerts.detector import TrendDetector
from src.trend_alerts.models import Alert, TrendInputs

logger = logging.getLogger(__name__)


def write_json(path: Path, payload: Any) -> Path:
    """Atomically write a JSON document (tmp file, then rename)."""
    tmp_file = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_file, "w") as f:
            json.dump(payload, f, indent=2)
        tmp_file.replace(path)
    except OSError as e:
        logger.error("Failed to write output %s: %s", path, e)
        raise OutputWriteError(f"Cannot write {path}: {e}", path=str(path)) from e
    return path


def end_of_day(run_date: str) -> datetime:
    """Reference time for a back-dated run: the last second of that UTC day."""
    day = datetime.strptime(run_date, "%Y-%m-%d")
    return day.replace(hour=23, minute=59, second=59, tzinfo=timezone.utc)


@dataclass
class RunResult:
    """Everything one daily run produced.

    Attributes:
        run_id: Id bound to every log line of the run.
        date: Run date (YYYY-MM-DD).
        scoring: Scores, explanations and per-record outcomes.
        ranked: Report rows sorted by score.
        alerts: Severity-ordered trend alerts.
        patterns: Strength-ordered cross-source patterns.
        load_report: Missing documents and skipped records.
        weekly: Week-over-week momentum changes, if history allows.
        hiring: Hiring trend report, if history allows.
        outputs: Output name -> written path.
        timings_ms: Stage name -> duration.
    """

    run_id: str
    date: str
    scoring: ScoringResult
    ranked: list[dict] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    patterns: list[Pattern] = field(default_factory=list)
    load_report: LoadReport = field(default_factory=LoadReport)
    weekly: Optional[dict] = None
    hiring: Optional[dict] = None
    outputs: dict[str, str] = field(default_factory=dict)
    timings_ms: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "date": self.date,
            **self.scoring.to_dict(),
            "ranked": self.ranked,
            "alerts": [a.to_dict() for a in self.alerts],
            "patterns": [p.to_dict() for p in self.patterns],
            "skipped": {
                "malformed": self.scoring.malformed_count,
                "unresolved": self.scoring.unresolved_count,
                "load": self.load_report.to_dict(),
            },
            "weekly": self.weekly,
            "hiring": self.hiring,
            "outputs": dict(self.outputs),
            "timings_ms": {k: round(v, 2) for k, v in self.timings_ms.items()},
        }


class IntelPipeline:
    """Wires the engine components for a daily run.

    Stores and the snapshot archive are injected so tests can run against
    in-memory history; by default they live under config.history_dir.

    Args:
        config: Directories, file names and retention.
        roster: Competitors to score (config.COMPETITORS by default).
        momentum_store: Momentum score history.
        hiring_store: Hiring count history.
        archive: Dated marketplace snapshots.
        keywords: Keyword tables shared by every component.
        trend_config: Trend detector thresholds.
        correlator_config: Correlator thresholds.

    Example:
        pipeline = IntelPipeline(PipelineConfig(data_dir="data"))
        result = pipeline.run("2026-10-18")
        print(result.ranked[0]["name"], len(result.alerts))
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        roster: Optional[Sequence[Competitor]] = None,
        momentum_store: Optional[HistoryStore] = None,
        hiring_store: Optional[HistoryStore] = None,
        archive: Optional[InstallSnapshotArchive] = None,
        keywords: Optional[KeywordTables] = None,
        trend_config: Optional[TrendConfig] = None,
        correlator_config: Optional[CorrelatorConfig] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.roster = list(roster or load_roster())
        self.keywords = keywords or DEFAULT_KEYWORDS
        self.matcher = default_matcher(self.roster)
        names = {c.slug: c.name for c in self.roster}

        self.momentum_store = momentum_store or JsonHistoryStore(
            self.config.momentum_history_path,
            retention=self.config.momentum_retention,
            value_key="scores",
        )
        self.hiring_store = hiring_store or JsonHistoryStore(
            self.config.hiring_history_path,
            retention=self.config.hiring_retention,
            value_key="counts",
        )
        self.archive = archive or InstallSnapshotArchive(
            self.config.history_dir, prefix=self.config.install_snapshot_prefix,
        )

        self.scorer = MomentumScorer(self.roster, keywords=self.keywords)
        self.detector = TrendDetector(
            self.matcher, config=trend_config, keywords=self.keywords, names=names,
        )
        self.correlator = CrossSourceCorrelator(
            self.matcher, config=correlator_config, keywords=self.keywords, names=names,
        )

    # ── Public API ────────────────────────────────────────────────────

    def run(
        self,
        run_date: Optional[str] = None,
        as_of: Optional[datetime] = None,
        write_outputs: bool = True,
    ) -> RunResult:
        """Execute one daily run.

        Args:
            run_date: Calendar date keying history entries (default: as_of's date).
            as_of: Reference time for recency windows (default: now, or the
                end of run_date when only the date is given).
            write_outputs: Write the three output documents.

        Raises:
            HistoryStoreError: history cannot be read or written.
            OutputWriteError: an output document cannot be written.
        """
        if as_of is None:
            as_of = end_of_day(run_date) if run_date else datetime.now(timezone.utc)
        elif as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        run_date = run_date or as_of.strftime("%Y-%m-%d")

        with RunContext(run_date=run_date) as ctx:
            logger.info("Starting momentum run for %s", run_date)
            timings: dict[str, float] = {}

            with PerformanceTimer("load_sources") as timer:
                bundle, report = load_sources(self.config.data_dir, self.config.source_files)
            timings["load_sources"] = timer.duration_ms

            with PerformanceTimer("hiring_history") as timer:
                hiring_series = self.update_hiring_history(bundle, run_date)
            timings["hiring_history"] = timer.duration_ms

            with PerformanceTimer("score") as timer:
                deltas = self.hiring_deltas(hiring_series, run_date)
                records = build_signal_records(bundle, self.matcher, hiring_deltas=deltas)
                scoring = self.scorer.score(records, as_of=as_of)
                momentum_series = self.momentum_store.append(
                    run_date, scoring.scores, scoring.signals,
                )
            timings["score"] = timer.duration_ms

            with PerformanceTimer("detect") as timer:
                previous = self.archive.latest_before(run_date)
                alerts = self.detector.detect(TrendInputs(
                    hiring_series=hiring_series,
                    momentum_series=momentum_series,
                    installs_current=bundle.vscode,
                    installs_previous=previous[1] if previous else None,
                    pricing_changes=bundle.pricing_changes,
                    articles=[*bundle.funding, *bundle.news],
                    as_of=as_of,
                ))
            timings["detect"] = timer.duration_ms

            with PerformanceTimer("correlate") as timer:
                patterns = self.correlator.correlate(
                    bundle,
                    hiring_series=hiring_series,
                    momentum_series=momentum_series,
                    as_of=as_of,
                )
            timings["correlate"] = timer.duration_ms

            result = RunResult(
                run_id=ctx.run_id,
                date=run_date,
                scoring=scoring,
                ranked=rank_entities(scoring.scores, scoring.signals, self.roster),
                alerts=alerts,
                patterns=patterns,
                load_report=report,
                weekly=weekly_changes(momentum_series),
                hiring=hiring_report(
                    hiring_series, names={c.slug: c.name for c in self.roster},
                ),
                timings_ms=timings,
            )

            if write_outputs:
                result.outputs = self.write_outputs(result, as_of)
            if bundle.vscode:
                self.archive.save(run_date, bundle.vscode)

            logger.info(
                "Run complete: %d alerts, %d patterns, %d records skipped",
                len(alerts), len(patterns), len(scoring.skipped) + report.malformed_count,
            )
            return result

    # ── Stages ────────────────────────────────────────────────────────

    def update_hiring_history(self, bundle: SourceBundle, run_date: str) -> list[ScoreSnapshot]:
        """Merge the hiring document into the hiring store and return the series.

        Embedded history entries only fill dates the store lacks; today's
        counts always upsert the run date.
        """
        known = self.hiring_store.dates()
        for entry in bundle.hiring_history:
            day = date_key(entry.get("date"))
            if day is None or day in known or day == run_date:
                continue
            counts = _entry_counts(entry)
            if not counts:
                continue
            self.hiring_store.append(day, counts)
            known.add(day)

        if bundle.hiring_current:
            return self.hiring_store.append(run_date, bundle.hiring_current)
        return self.hiring_store.read()

    @staticmethod
    def hiring_deltas(series: Sequence[ScoreSnapshot], run_date: str) -> dict[str, int]:
        """Net new postings for today; empty unless today has an entry."""
        if not series or series[-1].date != run_date:
            return {}
        return latest_deltas(series)

    @log_performance(threshold_ms=500)
    def write_outputs(self, result: RunResult, as_of: datetime) -> dict[str, str]:
        """Write scores, alerts and patterns documents."""
        generated = as_of.isoformat()
        cfg = self.config
        written = {
            "scores": write_json(cfg.output_path(cfg.scores_output_file), {
                "date": result.date,
                **result.scoring.to_dict(),
                "ranked": result.ranked,
            }),
            "alerts": write_json(cfg.output_path(cfg.alerts_output_file), {
                "generated": generated,
                "alerts": [a.to_dict() for a in result.alerts],
            }),
            "patterns": write_json(cfg.output_path(cfg.patterns_output_file), {
                "generated": generated,
                "patterns": [p.to_dict() for p in result.patterns],
            }),
        }
        return {name: str(path) for name, path in written.items()}


def _entry_counts(entry: dict) -> dict[str, int]:
    raw = entry.get("counts") or entry.get("companies") or {}
    counts = {}
    for slug, value in raw.items() if isinstance(raw, dict) else ():
        if isinstance(value, dict):
            value = value.get("count")
        count = coerce_int(value)
        if count is not None:
            counts[slug] = count
    return counts


def run_daily(
    config: Optional[PipelineConfig] = None,
    run_date: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> RunResult:
    """Convenience wrapper: build the default pipeline and run it once."""
    return IntelPipeline(config).run(run_date=run_date, as_of=as_of)
