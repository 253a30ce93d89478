"""Tests for cross-source pattern correlation."""

from datetime import datetime, timedelta, timezone

from src.competitor_signals.adapters import SourceBundle
from src.competitor_signals.matcher import EntityMatcher
from src.cross_source import (
    EXPANSION_WEIGHTS,
    CorrelatorConfig,
    CrossSourceCorrelator,
    Pattern,
    PatternType,
    Polarity,
    SentimentTally,
    classify_title,
    sort_patterns,
    tally_by_entity,
)
from src.cross_source.sentiment import post_points, post_title
from src.score_history.models import ScoreSnapshot


AS_OF = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────


def _make_matcher():
    return EntityMatcher([
        ("acme", ["acme"]),
        ("globex", ["globex"]),
        ("initech", ["initech"]),
        ("hooli", ["hooli"]),
    ])


def _make_correlator(**config):
    return CrossSourceCorrelator(
        _make_matcher(),
        config=CorrelatorConfig(**config),
        names={"acme": "Acme", "globex": "Globex", "initech": "Initech"},
    )


def _days_ago(days):
    return (AS_OF - timedelta(days=days)).isoformat()


def _release(company, tag, days=1, description=""):
    return {
        "company": company,
        "tag": tag,
        "publishedAt": _days_ago(days),
        "description": description,
    }


def _pair(previous, latest):
    return [
        ScoreSnapshot("2026-10-17", previous),
        ScoreSnapshot("2026-10-18", latest),
    ]


# ── Sentiment ────────────────────────────────────────────────────────


class TestSentiment:
    """Tests for keyword polarity and per-entity tallies."""

    def test_negative_checked_first(self):
        assert classify_title("Great tool, but broken on Linux") == Polarity.NEGATIVE

    def test_positive_and_neutral(self):
        assert classify_title("I love this editor") == Polarity.POSITIVE
        assert classify_title("Release notes for 2.0") == Polarity.NEUTRAL
        assert classify_title("") == Polarity.NEUTRAL

    def test_post_points_and_title(self):
        assert post_points({"points": 42}) == 42
        assert post_points({"votesCount": "17"}) == 17
        assert post_points({"points": -5}) == 0
        assert post_points({}) == 0
        assert post_title({"name": "Acme Launch"}) == "Acme Launch"

    def test_tally_by_entity(self):
        posts = [
            {"title": "Acme is broken again", "points": 100},
            {"title": "Acme is awesome", "points": 20},
            {"title": "Acme 2.0 notes", "points": 7},
            {"title": "Nobody in particular is terrible", "points": 500},
        ]
        tallies = tally_by_entity(posts, _make_matcher())
        assert list(tallies) == ["acme"]
        assert tallies["acme"] == SentimentTally(positive=20, negative=100, neutral=7, posts=3)
        assert tallies["acme"].total == 127


# ── Expansion ────────────────────────────────────────────────────────


class TestExpansion:
    """Tests for hiring combined with releases or install growth."""

    def _make_bundle(self):
        return SourceBundle(
            hiring_current={"acme": 30, "globex": 8, "initech": 15},
            releases=[
                _release("Acme", "v1.0", days=1),
                _release("Acme", "v1.1", days=2),
                _release("Acme", "v1.2", days=3),
                _release("Globex", "v9", days=1),
                _release("Initech", "v0.1", days=10),
            ],
            vscode={"acme.ai": {"name": "Acme AI", "weeklyGrowth": 150_000}},
        )

    def test_strength_sums_all_weights(self):
        series = _pair({"acme": 10, "globex": 8, "initech": 15}, {"acme": 30, "globex": 8, "initech": 15})
        patterns = _make_correlator().find_expansion(self._make_bundle(), series, AS_OF)

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.pattern_type == PatternType.EXPANSION
        assert pattern.entities == ["acme"]
        assert pattern.strength == sum(EXPANSION_WEIGHTS.values())
        assert pattern.message == (
            "Acme expanding: 20+ new positions, 3 recent releases, 150K install growth"
        )
        assert pattern.details["releases"] == ["v1.0", "v1.1", "v1.2"]

    def test_below_hiring_minimum_ignored(self):
        # globex ships but has fewer than ten open roles
        patterns = _make_correlator().find_expansion(self._make_bundle(), [], AS_OF)
        assert "globex" not in [p.entities[0] for p in patterns]

    def test_stale_releases_do_not_count(self):
        # initech's only release is outside the seven-day window
        patterns = _make_correlator().find_expansion(self._make_bundle(), [], AS_OF)
        assert [p.entities for p in patterns] == [["acme"]]

    def test_without_series_counts_are_new(self):
        patterns = _make_correlator().find_expansion(self._make_bundle(), [], AS_OF)
        assert patterns[0].details["hiring_percent"] == 100
        assert patterns[0].details["hiring_delta"] == 30

    def test_install_growth_alone_qualifies(self):
        bundle = SourceBundle(
            hiring_current={"hooli": 12},
            chrome={"hooli-helper": {"name": "Hooli Helper", "weeklyGrowth": "+60,000"}},
        )
        series = _pair({"hooli": 12}, {"hooli": 12})
        patterns = _make_correlator().find_expansion(bundle, series, AS_OF)
        assert patterns[0].strength == 0
        assert patterns[0].message == "hooli expanding: 60K install growth"

    def test_install_growth_at_threshold_does_not_qualify(self):
        bundle = SourceBundle(
            hiring_current={"hooli": 12},
            vscode={"hooli.ext": {"weeklyGrowth": 50_000}},
        )
        assert _make_correlator().find_expansion(bundle, [], AS_OF) == []

    def test_install_growth_sums_marketplaces(self):
        bundle = SourceBundle(
            vscode={"acme.ext": {"weeklyGrowth": 1000}, "other.ext": {"weeklyGrowth": 5}},
            chrome={"acme-chrome": {"weeklyGrowth": "2,500"}},
        )
        assert _make_correlator().install_growth(bundle) == {"acme": 3500}


# ── Competitive moves ────────────────────────────────────────────────


class TestPricingActivity:
    """Tests for the pricing cluster."""

    def test_three_entities_one_pattern(self):
        changes = [
            {"company": "Acme", "date": _days_ago(1)},
            {"company": "Globex", "date": _days_ago(5)},
            {"company": "Acme", "date": _days_ago(6)},
            {"company": "Initech", "date": _days_ago(20)},
        ]
        patterns = _make_correlator().find_pricing_activity(changes, AS_OF)
        assert len(patterns) == 1
        assert patterns[0].pattern_type == PatternType.PRICING_ACTIVITY
        assert patterns[0].entities == ["acme", "globex", "initech"]
        assert patterns[0].details == {"count": 4, "window_days": 30}
        assert patterns[0].strength is None

    def test_two_entities_not_a_cluster(self):
        changes = [
            {"company": "Acme", "date": _days_ago(1)},
            {"company": "Globex", "date": _days_ago(2)},
            {"company": "Acme", "date": _days_ago(3)},
        ]
        assert _make_correlator().find_pricing_activity(changes, AS_OF) == []

    def test_old_changes_outside_window(self):
        changes = [
            {"company": "Acme", "date": _days_ago(1)},
            {"company": "Globex", "date": _days_ago(2)},
            {"company": "Initech", "date": _days_ago(40)},
        ]
        assert _make_correlator().find_pricing_activity(changes, AS_OF) == []

    def test_unknown_company_kept_by_name(self):
        changes = [
            {"company": "Acme", "date": _days_ago(1)},
            {"company": "Globex", "date": _days_ago(2)},
            {"company": "Vandelay", "date": _days_ago(3)},
        ]
        patterns = _make_correlator().find_pricing_activity(changes, AS_OF)
        assert patterns[0].entities == ["acme", "globex", "Vandelay"]


class TestFeatureConvergence:
    """Tests for several entities shipping the same feature."""

    def test_patterns_follow_bucket_order(self):
        releases = [
            _release("Hooli", "h1", description="Team workspaces"),
            _release("Acme", "a1", description="New agent workflow mode"),
            _release("Initech", "i1", description="Team chat sharing"),
            _release("Globex", "g1", description="Autonomous agent beta"),
        ]
        patterns = _make_correlator().find_feature_convergence(releases)

        assert [p.details["feature"] for p in patterns] == ["agent", "collaboration"]
        agent = patterns[0]
        assert agent.entities == ["acme", "globex"]
        assert agent.details["releases"] == [
            {"entity": "acme", "version": "a1"},
            {"entity": "globex", "version": "g1"},
        ]
        assert patterns[1].entities == ["hooli", "initech"]

    def test_single_entity_is_not_convergence(self):
        releases = [
            _release("Acme", "a1", description="Agent mode"),
            _release("Acme", "a2", description="Agent mode, again"),
        ]
        assert _make_correlator().find_feature_convergence(releases) == []


# ── Market shifts ────────────────────────────────────────────────────


class TestMomentumShift:
    """Tests for simultaneous rank moves."""

    def test_two_movers(self):
        series = _pair(
            {"acme": 40, "globex": 30, "initech": 20, "hooli": 10},
            {"acme": 5, "globex": 30, "initech": 20, "hooli": 50},
        )
        patterns = _make_correlator().find_momentum_shift(series)
        assert len(patterns) == 1
        movers = {m["entity"]: m for m in patterns[0].details["movers"]}
        assert movers["hooli"]["direction"] == "up"
        assert movers["acme"]["direction"] == "down"
        assert movers["acme"]["change"] == -3

    def test_single_mover_ignored(self):
        series = _pair(
            {"acme": 40, "globex": 30, "initech": 20, "hooli": 10},
            {"acme": 40, "globex": 30, "initech": 20, "hooli": 50},
        )
        assert _make_correlator().find_momentum_shift(series) == []

    def test_needs_two_snapshots(self):
        assert _make_correlator().find_momentum_shift([]) == []


class TestCategoryGrowth:
    """Tests for marketplace category trends."""

    def _extensions(self):
        return {
            "acme.agent": {"name": "Acme Agent", "installs": 50_000, "trendingMonthly": 12},
            "globex.agent": {"name": "Globex Agent Mode", "installs": 90_000, "trendingMonthly": 8},
            "initech.chat": {"name": "Initech Chat", "installs": 10_000, "trendingMonthly": 20.5},
            "hooli.review": {"name": "Hooli Review", "installs": 5_000, "trendingMonthly": 3},
        }

    def test_fastest_category_first(self):
        patterns = _make_correlator().find_category_growth(self._extensions())

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.pattern_type == PatternType.CATEGORY_GROWTH
        assert pattern.message == "chat tools surging with 20.5% average growth"
        assert pattern.entities == ["initech", "globex"]
        assert [c["name"] for c in pattern.details["categories"]] == ["chat", "agent"]

    def test_leader_is_most_installed(self):
        pattern = _make_correlator().find_category_growth(self._extensions())[0]
        agent = pattern.details["categories"][1]
        assert agent == {
            "name": "agent",
            "growth": 10.0,
            "count": 2,
            "total_installs": 140_000,
            "leader": "Globex Agent Mode",
            "leader_entity": "globex",
        }

    def test_average_must_exceed_threshold(self):
        extensions = {
            "acme.agent": {"name": "Acme Agent", "trendingMonthly": 10},
            "other.agent": {"name": "Other agent"},
        }
        assert _make_correlator().find_category_growth(extensions) == []
        patterns = _make_correlator(category_growth_pct=4).find_category_growth(extensions)
        assert patterns[0].details["categories"][0]["growth"] == 5.0

    def test_non_numeric_trend_counts_as_zero(self):
        extensions = {
            "acme.chat": {"name": "Acme Chat", "trendingMonthly": "n/a"},
            "globex.chat": {"name": "Globex Chat", "trendingMonthly": "14%"},
        }
        pattern = _make_correlator().find_category_growth(extensions)[0]
        assert pattern.details["categories"][0]["growth"] == 7.0

    def test_unbucketed_extensions_ignored(self):
        extensions = {"acme.theme": {"name": "Acme Theme", "trendingMonthly": 50}}
        assert _make_correlator().find_category_growth(extensions) == []

    def test_included_in_correlate(self):
        bundle = SourceBundle(vscode=self._extensions())
        patterns = _make_correlator().correlate(bundle, as_of=AS_OF)
        assert [p.pattern_type for p in patterns] == [PatternType.CATEGORY_GROWTH]


# ── Discussions ──────────────────────────────────────────────────────


class TestSentimentMismatch:
    """Tests for tone against install growth."""

    def test_negative_tone_positive_growth(self):
        bundle = SourceBundle(
            vscode={"acme.ext": {"weeklyGrowth": 5000}},
            social={"hackerNews": [
                {"title": "Acme is broken again", "points": 100},
                {"title": "Acme is great", "points": 20},
            ]},
        )
        patterns = _make_correlator().find_sentiment_mismatch(bundle)
        assert len(patterns) == 1
        assert patterns[0].details["kind"] == "negative_sentiment_positive_growth"
        assert patterns[0].details["sentiment"]["negative"] == 100

    def test_positive_tone_negative_growth(self):
        bundle = SourceBundle(
            vscode={"globex.ext": {"weeklyGrowth": -2000}},
            social={"reddit": [{"title": "I love Globex", "points": 50}]},
        )
        patterns = _make_correlator().find_sentiment_mismatch(bundle)
        assert patterns[0].details["kind"] == "positive_sentiment_negative_growth"
        assert patterns[0].message == "Globex discussion skews positive but installs fell by 2,000"

    def test_agreeing_signals_ignored(self):
        bundle = SourceBundle(
            vscode={"acme.ext": {"weeklyGrowth": 5000}},
            social={"reddit": [{"title": "Acme is awesome", "points": 80}]},
        )
        assert _make_correlator().find_sentiment_mismatch(bundle) == []

    def test_requires_growth_data(self):
        bundle = SourceBundle(
            social={"reddit": [{"title": "Acme is broken", "points": 80}]},
        )
        assert _make_correlator().find_sentiment_mismatch(bundle) == []


class TestThemes:
    """Tests for discussion theme clustering."""

    def _make_posts(self):
        return [
            {"title": "Agent mode for Acme", "points": 100, "url": "https://example.com/1"},
            {"title": "Autonomous coding agents", "points": 50},
            {"title": "Local models offline", "points": 30},
            {"title": "Enterprise pricing for Globex", "points": 40},
            {"title": "Open source alternatives", "points": 10},
            {"title": "Safety debate", "points": 5},
        ]

    def test_top_three_by_points(self):
        patterns = _make_correlator().find_themes(self._make_posts())
        assert [p.details["theme"] for p in patterns] == ["agent", "enterprise", "local"]
        assert all(p.strength is None for p in patterns)

    def test_theme_summary(self):
        agent = _make_correlator().find_themes(self._make_posts())[0]
        assert agent.message == "'agent' theme: 2 discussions, 150 points"
        assert agent.entities == ["acme"]
        assert agent.details["count"] == 2
        assert agent.details["avg_points"] == 75
        assert agent.details["top_post"] == {
            "title": "Agent mode for Acme",
            "points": 100,
            "url": "https://example.com/1",
        }

    def test_unattributed_posts_count(self):
        local = _make_correlator().find_themes(self._make_posts())[2]
        assert local.entities == []
        assert local.details["total_points"] == 30

    def test_no_themes(self):
        assert _make_correlator().find_themes([{"title": "Hello world", "points": 3}]) == []


# ── Combined correlation ─────────────────────────────────────────────


class TestCorrelate:
    """Tests for the strength-ordered combined output."""

    def test_empty_bundle(self):
        assert _make_correlator().correlate(SourceBundle(), as_of=AS_OF) == []

    def test_strength_first_then_discovery_order(self):
        bundle = SourceBundle(
            hiring_current={"acme": 30},
            releases=[_release("Acme", "v1")],
            pricing_changes=[
                {"company": name, "date": _days_ago(2)}
                for name in ("Acme", "Globex", "Initech")
            ],
            social={"hackerNews": [{"title": "Agent tools roundup", "points": 12}]},
        )
        patterns = _make_correlator().correlate(bundle, as_of=AS_OF)
        assert [p.pattern_type for p in patterns] == [
            PatternType.EXPANSION,
            PatternType.PRICING_ACTIVITY,
            PatternType.THEME,
        ]

    def test_sort_patterns_is_stable(self):
        patterns = [
            Pattern(PatternType.THEME, message="1"),
            Pattern(PatternType.EXPANSION, message="2", strength=2),
            Pattern(PatternType.PRICING_ACTIVITY, message="3"),
            Pattern(PatternType.EXPANSION, message="4", strength=5),
        ]
        assert [p.message for p in sort_patterns(patterns)] == ["4", "2", "1", "3"]

    def test_pattern_to_dict(self):
        pattern = Pattern(PatternType.EXPANSION, ["acme"], "Acme expanding", strength=3)
        assert pattern.to_dict() == {
            "type": "expansion",
            "entities": ["acme"],
            "message": "Acme expanding",
            "strength": 3,
        }
