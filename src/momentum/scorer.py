"""Momentum Scoring Engine.

Reduces one run's SignalRecords to a comparable per-competitor score plus
the ordered reasons the points were awarded. Scores are a same-day
aggregate: no cap, no decay, no carry-over between runs.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from src.competitor_signals.keywords import DEFAULT_KEYWORDS, KeywordTables
from src.competitor_signals.models import (
    Competitor,
    RecordOutcome,
    RecordResult,
    SignalCategory,
    SignalRecord,
)
from src.competitor_signals.values import coerce_int
from src.momentum.config import (
    CHANGELOG_POINTS,
    CHANGELOG_WINDOW_DAYS,
    COMMUNITY_TIERS,
    DEFAULT_INSTALLS_PER_POINT,
    INSTALLS_PER_POINT,
    MAJOR_FUNDING_POINTS,
    MINOR_FUNDING_POINTS,
    NEWS_MENTION_POINTS,
    POINTS_PER_NEW_JOB,
    SCORING_ORDER,
    SOCIAL_MENTION_POINTS,
    SOURCE_LABELS,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoringResult:
    """Scores, explanations and the per-record outcomes behind them."""

    scores: dict[str, int] = field(default_factory=dict)
    signals: dict[str, list[str]] = field(default_factory=dict)
    results: list[RecordResult] = field(default_factory=list)

    def _count(self, outcome: RecordOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def applied_count(self) -> int:
        return self._count(RecordOutcome.APPLIED)

    @property
    def malformed_count(self) -> int:
        return self._count(RecordOutcome.MALFORMED)

    @property
    def unresolved_count(self) -> int:
        return self._count(RecordOutcome.UNRESOLVED)

    @property
    def skipped(self) -> list[RecordResult]:
        return [r for r in self.results if r.skipped]

    def to_dict(self) -> dict:
        return {
            "scores": dict(self.scores),
            "signals": {slug: list(s) for slug, s in self.signals.items()},
        }


class _RunState:
    """Per-call scratch state shared by the handlers."""

    def __init__(self, as_of: datetime):
        self.as_of = as_of
        self.changelog_credited: set[str] = set()


Handler = Callable[[SignalRecord, str, _RunState], RecordResult]


class MomentumScorer:
    """Scores signal batches against a fixed competitor roster.

    One handler per SignalCategory, evaluated in SCORING_ORDER. Within a
    category records are processed in input order, so the explanation
    list for a competitor is byte-identical across runs on the same input.

    Args:
        roster: The competitors to score. Every slug appears in the output.
        keywords: Keyword tables (major-funding regex).

    Example:
        scorer = MomentumScorer(load_roster())
        result = scorer.score(records)
        result.scores["cursor"]   # 58
        result.signals["cursor"]  # ["Funding news (+50)", "+4 jobs (+8)"]
    """

    def __init__(
        self,
        roster: Sequence[Competitor],
        keywords: Optional[KeywordTables] = None,
    ) -> None:
        self.roster = list(roster)
        self.keywords = keywords or DEFAULT_KEYWORDS
        self._slugs = {c.slug for c in self.roster}
        self._handlers: dict[SignalCategory, Handler] = {}
        self.register(SignalCategory.FUNDING, self._score_funding)
        self.register(SignalCategory.HIRING, self._score_hiring)
        self.register(SignalCategory.MARKETPLACE_INSTALL, self._score_marketplace)
        self.register(SignalCategory.NEWS, self._score_news)
        self.register(SignalCategory.SOCIAL, self._score_social)
        self.register(SignalCategory.CHANGELOG, self._score_changelog)
        self.register(SignalCategory.COMMUNITY_SIZE, self._score_community)

    def register(self, category: SignalCategory, handler: Handler) -> None:
        """Attach the handler for a category in SCORING_ORDER."""
        if category not in SCORING_ORDER:
            raise ValueError(f"Category {category.value} has no scoring slot")
        self._handlers[category] = handler

    # ── Public API ────────────────────────────────────────────────────

    def score(
        self,
        records: Sequence[SignalRecord],
        as_of: Optional[datetime] = None,
    ) -> ScoringResult:
        """Score one batch.

        Args:
            records: Signal records for the run, any category order.
            as_of: Reference time for the changelog window (default now).

        Returns:
            ScoringResult with a score and explanation list for every
            roster slug. Malformed and unresolved records are skipped and
            reported in `results`; they never abort the batch.
        """
        as_of = as_of or datetime.now(timezone.utc)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        state = _RunState(as_of)
        result = ScoringResult(
            scores={c.slug: 0 for c in self.roster},
            signals={c.slug: [] for c in self.roster},
        )

        by_category: dict[SignalCategory, list[SignalRecord]] = defaultdict(list)
        for record in records:
            by_category[record.category].append(record)

        for category in SCORING_ORDER:
            handler = self._handlers.get(category)
            for record in by_category.get(category, []):
                outcome = self._evaluate(record, handler, state)
                result.results.append(outcome)
                if outcome.outcome == RecordOutcome.APPLIED:
                    result.scores[outcome.entity_slug] += outcome.points
                    result.signals[outcome.entity_slug].append(outcome.reason)

        for category, recs in by_category.items():
            if category in SCORING_ORDER:
                continue
            for record in recs:
                result.results.append(RecordResult(
                    record=record,
                    outcome=RecordOutcome.NO_CONTRIBUTION,
                    entity_slug=record.entity_slug,
                    reason=f"{category.value} is not scored",
                ))

        logger.info(
            "Scored %d records: %d applied, %d malformed, %d unresolved",
            len(records), result.applied_count,
            result.malformed_count, result.unresolved_count,
        )
        return result

    # ── Dispatch ──────────────────────────────────────────────────────

    def _evaluate(
        self,
        record: SignalRecord,
        handler: Optional[Handler],
        state: _RunState,
    ) -> RecordResult:
        slug = record.entity_slug
        if not slug or slug not in self._slugs:
            logger.debug("Unresolved %s record: %r", record.category.value, record.raw_text)
            return RecordResult(
                record=record,
                outcome=RecordOutcome.UNRESOLVED,
                reason="no competitor match",
            )
        if handler is None:
            return RecordResult(
                record=record,
                outcome=RecordOutcome.NO_CONTRIBUTION,
                entity_slug=slug,
                reason="no handler",
            )
        return handler(record, slug, state)

    @staticmethod
    def _applied(record: SignalRecord, slug: str, points: int, reason: str) -> RecordResult:
        return RecordResult(
            record=record,
            outcome=RecordOutcome.APPLIED,
            entity_slug=slug,
            points=points,
            reason=reason,
        )

    @staticmethod
    def _nothing(record: SignalRecord, slug: str, reason: str) -> RecordResult:
        return RecordResult(
            record=record,
            outcome=RecordOutcome.NO_CONTRIBUTION,
            entity_slug=slug,
            reason=reason,
        )

    @staticmethod
    def _malformed(record: SignalRecord, slug: str, reason: str) -> RecordResult:
        logger.warning(
            "Skipping malformed %s record for %s: %s",
            record.category.value, slug, reason,
        )
        return RecordResult(
            record=record,
            outcome=RecordOutcome.MALFORMED,
            entity_slug=slug,
            reason=reason,
        )

    # ── Handlers ──────────────────────────────────────────────────────

    def _score_funding(self, record, slug, state) -> RecordResult:
        title = record.metadata.get("title") or record.raw_text
        if self.keywords.is_major_funding(title):
            points = MAJOR_FUNDING_POINTS
        else:
            points = MINOR_FUNDING_POINTS
        return self._applied(record, slug, points, f"Funding news (+{points})")

    def _score_hiring(self, record, slug, state) -> RecordResult:
        delta = coerce_int(record.magnitude)
        if delta is None:
            return self._malformed(record, slug, f"job delta {record.magnitude!r}")
        if delta <= 0:
            return self._nothing(record, slug, f"no net new jobs ({delta})")
        points = delta * POINTS_PER_NEW_JOB
        return self._applied(record, slug, points, f"+{delta} jobs (+{points})")

    def _score_marketplace(self, record, slug, state) -> RecordResult:
        growth = coerce_int(record.magnitude)
        if growth is None:
            return self._malformed(record, slug, f"weekly growth {record.magnitude!r}")
        per_point = INSTALLS_PER_POINT.get(record.source, DEFAULT_INSTALLS_PER_POINT)
        points = growth // per_point if growth > 0 else 0
        if points <= 0:
            return self._nothing(record, slug, f"growth {growth} below one point")
        label = SOURCE_LABELS.get(record.source, record.source or "Marketplace")
        return self._applied(
            record, slug, points, f"{label} +{growth:,} weekly installs (+{points})"
        )

    def _score_news(self, record, slug, state) -> RecordResult:
        return self._applied(
            record, slug, NEWS_MENTION_POINTS, f"News mention (+{NEWS_MENTION_POINTS})"
        )

    def _score_social(self, record, slug, state) -> RecordResult:
        label = SOURCE_LABELS.get(record.source, "Social")
        return self._applied(
            record, slug, SOCIAL_MENTION_POINTS,
            f"{label} mention (+{SOCIAL_MENTION_POINTS})",
        )

    def _score_changelog(self, record, slug, state) -> RecordResult:
        if record.timestamp is None:
            return self._malformed(record, slug, "release without a publish date")
        cutoff = state.as_of - timedelta(days=CHANGELOG_WINDOW_DAYS)
        if record.timestamp <= cutoff:
            return self._nothing(record, slug, "release outside the window")
        if slug in state.changelog_credited:
            return self._nothing(record, slug, "recent release already credited")
        state.changelog_credited.add(slug)
        return self._applied(
            record, slug, CHANGELOG_POINTS, f"Recent changelog (+{CHANGELOG_POINTS})"
        )

    def _score_community(self, record, slug, state) -> RecordResult:
        members = coerce_int(record.magnitude)
        if members is None:
            return self._malformed(record, slug, f"member count {record.magnitude!r}")
        for threshold, points in COMMUNITY_TIERS:
            if members > threshold:
                return self._applied(
                    record, slug, points, f"Discord: {members:,} members (+{points})"
                )
        return self._nothing(record, slug, f"{members} members below every tier")
