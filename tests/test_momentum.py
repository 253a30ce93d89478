"""Tests for the momentum scoring engine and ranking helpers."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from src.competitor_signals.models import (
    Competitor,
    RecordOutcome,
    SignalCategory,
    SignalRecord,
)
from src.momentum import (
    MomentumScorer,
    rank_changes,
    rank_entities,
    rank_map,
    ranked_slugs,
)
from src.momentum.config import SCORING_ORDER


AS_OF = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────


def _make_roster():
    return [
        Competitor("acme", "Acme"),
        Competitor("globex", "Globex"),
        Competitor("initech", "Initech"),
    ]


def _make_record(category, slug="acme", **kwargs):
    return SignalRecord(category=category, entity_slug=slug, **kwargs)


def _make_batch():
    return [
        _make_record(SignalCategory.NEWS, raw_text="Acme ships"),
        _make_record(SignalCategory.FUNDING, metadata={"title": "Acme raises $50M Series B"}),
        _make_record(SignalCategory.HIRING, magnitude=4),
        _make_record(SignalCategory.MARKETPLACE_INSTALL, "globex", magnitude=25_000, source="vscode"),
        _make_record(SignalCategory.SOCIAL, "globex", source="hackernews"),
        _make_record(SignalCategory.CHANGELOG, "initech", timestamp=AS_OF - timedelta(days=2)),
        _make_record(SignalCategory.COMMUNITY_SIZE, "initech", magnitude=12_000),
        _make_record(SignalCategory.PRICING, "globex"),
        _make_record(SignalCategory.NEWS, None, raw_text="Unknown startup"),
    ]


def _score(records, roster=None):
    return MomentumScorer(roster or _make_roster()).score(records, as_of=AS_OF)


# ── Scoring ──────────────────────────────────────────────────────────


class TestMomentumScorer:
    """Tests for weighted per-entity scoring."""

    def test_keys_are_exactly_the_roster(self):
        result = _score(_make_batch())
        assert set(result.scores) == {"acme", "globex", "initech"}
        assert set(result.signals) == {"acme", "globex", "initech"}

    def test_empty_batch_scores_zero(self):
        result = _score([])
        assert result.scores == {"acme": 0, "globex": 0, "initech": 0}
        assert all(v == [] for v in result.signals.values())

    def test_scores_never_negative(self):
        result = _score(_make_batch() + [_make_record(SignalCategory.HIRING, magnitude=-30)])
        assert all(v >= 0 for v in result.scores.values())

    def test_batch_totals(self):
        result = _score(_make_batch())
        # funding 50 + hiring 4*2 + news 5
        assert result.scores["acme"] == 63
        # vscode 25000 // 10000 + HN 3
        assert result.scores["globex"] == 5
        # changelog 10 + discord tier 10
        assert result.scores["initech"] == 20

    def test_explanations_follow_category_order(self):
        result = _score(_make_batch())
        assert result.signals["acme"] == [
            "Funding news (+50)",
            "+4 jobs (+8)",
            "News mention (+5)",
        ]
        assert result.signals["globex"] == [
            "VS Code +25,000 weekly installs (+2)",
            "HN mention (+3)",
        ]
        assert result.signals["initech"] == [
            "Recent changelog (+10)",
            "Discord: 12,000 members (+10)",
        ]

    def test_deterministic(self):
        first = _score(_make_batch()).to_dict()
        second = _score(_make_batch()).to_dict()
        assert first == second

    def test_minor_funding(self):
        result = _score([_make_record(
            SignalCategory.FUNDING, metadata={"title": "Acme closes seed round"},
        )])
        assert result.scores["acme"] == 20
        assert result.signals["acme"] == ["Funding news (+20)"]

    def test_chrome_uses_its_own_rate(self):
        result = _score([_make_record(
            SignalCategory.MARKETPLACE_INSTALL, magnitude="+12,345", source="chrome",
        )])
        assert result.scores["acme"] == 2
        assert result.signals["acme"] == ["Chrome +12,345 weekly installs (+2)"]

    def test_growth_with_unit_suffix(self):
        result = _score([_make_record(
            SignalCategory.MARKETPLACE_INSTALL, magnitude="12.5K", source="vscode",
        )])
        assert result.results[0].outcome == RecordOutcome.APPLIED
        assert result.signals["acme"] == ["VS Code +12,500 weekly installs (+1)"]

    def test_growth_with_unknown_suffix_is_malformed(self):
        result = _score([_make_record(
            SignalCategory.MARKETPLACE_INSTALL, magnitude="12.5x", source="vscode",
        )])
        assert result.results[0].outcome == RecordOutcome.MALFORMED

    def test_small_growth_contributes_nothing(self):
        result = _score([_make_record(
            SignalCategory.MARKETPLACE_INSTALL, magnitude=9_999, source="vscode",
        )])
        assert result.scores["acme"] == 0
        assert result.results[0].outcome == RecordOutcome.NO_CONTRIBUTION

    @pytest.mark.parametrize("members,points", [
        (50_001, 15), (50_000, 10), (10_001, 10), (1_001, 5), (1_000, 0),
    ])
    def test_community_tiers(self, members, points):
        result = _score([_make_record(SignalCategory.COMMUNITY_SIZE, magnitude=members)])
        assert result.scores["acme"] == points

    def test_changelog_window_and_once_per_entity(self):
        result = _score([
            _make_record(SignalCategory.CHANGELOG, timestamp=AS_OF - timedelta(days=8)),
            _make_record(SignalCategory.CHANGELOG, timestamp=AS_OF - timedelta(days=1)),
            _make_record(SignalCategory.CHANGELOG, timestamp=AS_OF - timedelta(hours=1)),
        ])
        assert result.scores["acme"] == 10
        outcomes = [r.outcome for r in result.results]
        assert outcomes == [
            RecordOutcome.NO_CONTRIBUTION,
            RecordOutcome.APPLIED,
            RecordOutcome.NO_CONTRIBUTION,
        ]

    def test_pricing_is_not_scored(self):
        result = _score([_make_record(SignalCategory.PRICING)])
        assert result.scores["acme"] == 0
        assert result.results[0].outcome == RecordOutcome.NO_CONTRIBUTION


class TestScoringFailures:
    """Tests for malformed and unresolved records."""

    def test_malformed_magnitude_skipped_not_fatal(self, caplog):
        records = [
            _make_record(SignalCategory.HIRING, magnitude="many"),
            _make_record(SignalCategory.HIRING, "globex", magnitude=None),
            _make_record(SignalCategory.NEWS),
        ]
        with caplog.at_level(logging.WARNING):
            result = _score(records)
        assert result.scores["acme"] == 5
        assert result.signals["acme"] == ["News mention (+5)"]
        assert result.malformed_count == 2
        assert any("malformed" in r.getMessage() for r in caplog.records)

    def test_changelog_without_timestamp_is_malformed(self):
        result = _score([_make_record(SignalCategory.CHANGELOG)])
        assert result.malformed_count == 1

    def test_unresolved_counted(self):
        result = _score([
            _make_record(SignalCategory.NEWS, None),
            _make_record(SignalCategory.NEWS, "not-on-roster"),
        ])
        assert result.unresolved_count == 2
        assert len(result.skipped) == 2
        assert sum(result.scores.values()) == 0

    def test_naive_as_of_treated_as_utc(self):
        scorer = MomentumScorer(_make_roster())
        result = scorer.score(
            [_make_record(SignalCategory.CHANGELOG, timestamp=AS_OF - timedelta(days=1))],
            as_of=AS_OF.replace(tzinfo=None),
        )
        assert result.scores["acme"] == 10

    def test_register_rejects_unscored_category(self):
        scorer = MomentumScorer(_make_roster())
        with pytest.raises(ValueError):
            scorer.register(SignalCategory.PRICING, lambda record, slug, state: None)

    def test_scoring_order_excludes_pricing(self):
        assert SignalCategory.PRICING not in SCORING_ORDER
        assert SCORING_ORDER[0] == SignalCategory.FUNDING


# ── Ranking ──────────────────────────────────────────────────────────


class TestRanking:
    """Tests for rank maps, rank movement and report rows."""

    def test_ranked_slugs_stable_on_ties(self):
        assert ranked_slugs({"a": 5, "b": 10, "c": 5}) == ["b", "a", "c"]

    def test_ranked_slugs_skips_non_numeric(self):
        assert ranked_slugs({"a": None, "b": "7", "c": 3, "d": "n/a", "e": True}) == ["b", "c"]

    def test_rank_map(self):
        assert rank_map({"a": 1, "b": 3, "c": 2}) == {"b": 1, "c": 2, "a": 3}

    def test_rank_changes(self):
        previous = {"a": 10, "b": 8, "c": 6, "d": 4}
        latest = {"a": 1, "b": 8, "c": 6, "d": 9}
        changes = rank_changes(latest, previous)
        assert changes["d"] == {"current": 1, "previous": 4, "change": 3}
        assert changes["a"] == {"current": 4, "previous": 1, "change": -3}

    def test_rank_changes_skip_new_slugs(self):
        assert "z" not in rank_changes({"z": 5, "a": 1}, {"a": 1})

    def test_rank_entities_rows(self):
        rows = rank_entities(
            {"acme": 10, "globex": 30, "initech": 10},
            {"globex": ["HN mention (+3)"]},
            _make_roster(),
        )
        assert [r["slug"] for r in rows] == ["globex", "acme", "initech"]
        assert rows[0] == {
            "rank": 1,
            "slug": "globex",
            "name": "Globex",
            "score": 30,
            "signals": ["HN mention (+3)"],
        }

    def test_rank_entities_ties_follow_roster(self):
        rows = rank_entities({"initech": 0, "acme": 0, "globex": 0}, roster=_make_roster())
        assert [r["slug"] for r in rows] == ["acme", "globex", "initech"]
