"""Cross-Source Pattern Correlator.

Works on the pre-aggregation source batches rather than on momentum
scores, so it can see category combinations the scorer folds away:
hiring alongside releases, several competitors repricing in the same
month, discussion tone against install growth.

Each finder is independent and returns nothing when its inputs are
missing. Results are ordered by strength, highest first; finders that do
not assign a strength rank as zero and keep their discovery order.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import numpy as np

from src.competitor_signals.adapters import SourceBundle, resolve_entity
from src.competitor_signals.keywords import DEFAULT_KEYWORDS, KeywordTables
from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.values import coerce_int, parse_timestamp
from src.cross_source.config import EXPANSION_WEIGHTS, CorrelatorConfig, PatternType
from src.cross_source.models import Pattern
from src.cross_source.sentiment import post_points, post_title, tally_by_entity
from src.momentum.ranking import rank_changes
from src.score_history.models import ScoreSnapshot, latest_pair

logger = logging.getLogger(__name__)


def sort_patterns(patterns: Sequence[Pattern]) -> list[Pattern]:
    """Stable sort by strength, highest first; no strength counts as 0."""
    return sorted(patterns, key=lambda p: -p.sort_weight)


class CrossSourceCorrelator:
    """Finds patterns that only appear when sources are read together.

    Args:
        matcher: Entity matcher shared with scoring and detection.
        config: Correlator thresholds.
        keywords: Sentiment, theme and feature keyword tables.
        names: Optional slug -> display name for messages.

    Example:
        correlator = CrossSourceCorrelator(matcher)
        patterns = correlator.correlate(
            bundle,
            hiring_series=hiring_store.read(),
            momentum_series=momentum_store.read(),
        )
    """

    def __init__(
        self,
        matcher: EntityMatcher,
        config: Optional[CorrelatorConfig] = None,
        keywords: Optional[KeywordTables] = None,
        names: Optional[dict[str, str]] = None,
    ) -> None:
        self.matcher = matcher
        self.config = config or CorrelatorConfig()
        self.keywords = keywords or DEFAULT_KEYWORDS
        self.names = dict(names or {})

    def _label(self, slug: str) -> str:
        return self.names.get(slug, slug)

    def correlate(
        self,
        bundle: SourceBundle,
        hiring_series: Sequence[ScoreSnapshot] = (),
        momentum_series: Sequence[ScoreSnapshot] = (),
        as_of: Optional[datetime] = None,
    ) -> list[Pattern]:
        """Run every finder and return strength-ordered patterns."""
        as_of = as_of or datetime.now(timezone.utc)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)

        patterns: list[Pattern] = []
        patterns.extend(self.find_expansion(bundle, hiring_series, as_of))
        patterns.extend(self.find_pricing_activity(bundle.pricing_changes, as_of))
        patterns.extend(self.find_feature_convergence(bundle.releases))
        patterns.extend(self.find_momentum_shift(momentum_series))
        patterns.extend(self.find_category_growth(bundle.vscode))
        patterns.extend(self.find_sentiment_mismatch(bundle))
        patterns.extend(self.find_themes(bundle.discussions))

        ordered = sort_patterns(patterns)
        logger.info("Cross-source correlation found %d patterns", len(ordered))
        return ordered

    # ── Shared helpers ────────────────────────────────────────────────

    def install_growth(self, bundle: SourceBundle) -> dict[str, int]:
        """Summed weekly install growth per entity across marketplaces."""
        growth: dict[str, int] = {}
        for extensions in (bundle.vscode, bundle.chrome):
            for ext_id, data in extensions.items():
                slug = self.matcher.match_first(
                    ext_id, data.get("name"), data.get("publisher"),
                )
                value = coerce_int(data.get("weeklyGrowth"))
                if slug is None or value is None:
                    continue
                growth[slug] = growth.get(slug, 0) + value
        return growth

    def hiring_changes(
        self,
        bundle: SourceBundle,
        hiring_series: Sequence[ScoreSnapshot],
    ) -> dict[str, dict]:
        """slug -> {current, previous, delta, percent} for hiring data.

        Uses the two latest series entries when available, otherwise treats
        today's counts as entirely new.
        """
        changes: dict[str, dict] = {}
        pair = latest_pair(hiring_series)
        if pair is None:
            for slug, count in bundle.hiring_current.items():
                changes[slug] = {"current": count, "previous": 0, "delta": count, "percent": 100}
            return changes

        previous, latest = pair
        for slug, raw in latest.scores.items():
            count = coerce_int(raw)
            prev_count = coerce_int(previous.scores.get(slug, 0)) or 0
            if count is None:
                logger.warning("Skipping non-numeric job count for %s", slug)
                continue
            delta = count - prev_count
            percent = round(delta / prev_count * 100) if prev_count > 0 else 100
            changes[slug] = {
                "current": count, "previous": prev_count, "delta": delta, "percent": percent,
            }
        return changes

    def recent_releases(self, releases: Sequence[dict], as_of: datetime) -> dict[str, list[dict]]:
        """Releases published inside the release window, grouped by entity."""
        window_start = as_of - timedelta(days=self.config.release_window_days)
        grouped: dict[str, list[dict]] = {}
        for release in releases:
            published = parse_timestamp(release.get("publishedAt") or release.get("date"))
            if published is None or published <= window_start:
                continue
            slug = resolve_entity(self.matcher, release, "company")
            if slug is None:
                continue
            grouped.setdefault(slug, []).append(release)
        return grouped

    # ── Expansion ─────────────────────────────────────────────────────

    def find_expansion(
        self,
        bundle: SourceBundle,
        hiring_series: Sequence[ScoreSnapshot],
        as_of: datetime,
    ) -> list[Pattern]:
        """Hiring plus shipping or adoption for the same entity."""
        cfg = self.config
        changes = self.hiring_changes(bundle, hiring_series)
        if not changes:
            return []
        releases = self.recent_releases(bundle.releases, as_of)
        growth = self.install_growth(bundle)

        patterns = []
        for slug, change in changes.items():
            if change["current"] < cfg.hiring_min:
                continue
            entity_releases = releases.get(slug, [])
            installs = growth.get(slug, 0)
            if not entity_releases and installs <= cfg.install_spike:
                continue

            strength = 0
            if change["percent"] > cfg.hiring_strong_pct:
                strength += EXPANSION_WEIGHTS["hiring"]
            if len(entity_releases) > cfg.releases_strong:
                strength += EXPANSION_WEIGHTS["releases"]
            if installs > cfg.install_strong:
                strength += EXPANSION_WEIGHTS["installs"]

            parts = []
            if change["delta"] > 0:
                parts.append(f"{change['delta']}+ new positions")
            if entity_releases:
                parts.append(f"{len(entity_releases)} recent releases")
            if installs > 1000:
                parts.append(f"{round(installs / 1000)}K install growth")

            patterns.append(Pattern(
                pattern_type=PatternType.EXPANSION,
                entities=[slug],
                message=f"{self._label(slug)} expanding: {', '.join(parts) or 'steady hiring'}",
                strength=strength,
                details={
                    "hiring_current": change["current"],
                    "hiring_delta": change["delta"],
                    "hiring_percent": change["percent"],
                    "release_count": len(entity_releases),
                    "releases": [r.get("tag", "") for r in entity_releases],
                    "install_growth": installs,
                },
            ))
        return sort_patterns(patterns)

    # ── Competitive moves ─────────────────────────────────────────────

    def find_pricing_activity(
        self,
        changes: Sequence[dict],
        as_of: datetime,
    ) -> list[Pattern]:
        """One aggregate pattern when enough entities reprice in the window."""
        cfg = self.config
        if not changes:
            return []
        window_start = as_of - timedelta(days=cfg.pricing_window_days)
        entities: list[str] = []
        recent = 0
        for change in changes:
            when = parse_timestamp(change.get("date"))
            if when is None:
                logger.warning("Skipping pricing change without a valid date: %r", change)
                continue
            if when <= window_start:
                continue
            recent += 1
            entity = resolve_entity(self.matcher, change, "company") or change.get("company")
            if entity and entity not in entities:
                entities.append(entity)

        if len(entities) < cfg.pricing_min_entities:
            return []
        return [Pattern(
            pattern_type=PatternType.PRICING_ACTIVITY,
            entities=entities,
            message=(
                f"{len(entities)} competitors changed pricing in the last "
                f"{cfg.pricing_window_days} days: "
                + ", ".join(self._label(e) for e in entities)
            ),
            details={"count": recent, "window_days": cfg.pricing_window_days},
        )]

    def find_feature_convergence(self, releases: Sequence[dict]) -> list[Pattern]:
        """One pattern per feature bucket shipped by several entities."""
        cfg = self.config
        matched: dict[str, list[tuple[str, dict]]] = {}
        for release in releases:
            buckets = self.keywords.buckets_for(
                release.get("description", ""), self.keywords.feature_buckets,
            )
            if not buckets:
                continue
            entity = resolve_entity(self.matcher, release, "company") or release.get("company")
            if not entity:
                continue
            for bucket in buckets:
                matched.setdefault(bucket, []).append((entity, release))

        patterns = []
        for feature in self.keywords.feature_buckets:
            hits = matched.get(feature)
            if not hits:
                continue
            entities = list(dict.fromkeys(entity for entity, _ in hits))
            if len(entities) < cfg.convergence_min_entities:
                continue
            patterns.append(Pattern(
                pattern_type=PatternType.FEATURE_CONVERGENCE,
                entities=entities,
                message=(
                    f"{len(entities)} competitors shipping {feature} features: "
                    + ", ".join(self._label(e) for e in entities)
                ),
                details={
                    "feature": feature,
                    "releases": [
                        {"entity": entity, "version": release.get("tag", "")}
                        for entity, release in hits
                    ],
                },
            ))
        return patterns

    # ── Market shifts ─────────────────────────────────────────────────

    def find_momentum_shift(self, series: Sequence[ScoreSnapshot]) -> list[Pattern]:
        """Several entities moving rank sharply in the same run."""
        cfg = self.config
        pair = latest_pair(series)
        if pair is None:
            return []
        previous, latest = pair
        movers = []
        for slug, move in rank_changes(latest.scores, previous.scores).items():
            if abs(move["change"]) < cfg.rank_shift:
                continue
            movers.append({
                "entity": slug,
                **move,
                "direction": "up" if move["change"] > 0 else "down",
            })
        if len(movers) < cfg.rank_shift_min_movers:
            return []
        return [Pattern(
            pattern_type=PatternType.MOMENTUM_SHIFT,
            entities=[m["entity"] for m in movers],
            message=f"{len(movers)} competitors showing significant momentum changes",
            details={"movers": movers},
        )]

    def find_category_growth(self, extensions: dict[str, dict]) -> list[Pattern]:
        """Marketplace categories whose extensions trend up on average.

        Extensions are bucketed by name. Buckets averaging more than
        category_growth_pct monthly are listed fastest first, each with its
        most-installed extension as leader.
        """
        buckets: dict[str, list[tuple[str, dict]]] = {}
        for ext_id, data in extensions.items():
            name = str(data.get("name") or ext_id)
            for category in self.keywords.buckets_for(name, self.keywords.category_buckets):
                buckets.setdefault(category, []).append((ext_id, data))

        categories = []
        for category, members in buckets.items():
            growth = np.array([_trend_percent(data.get("trendingMonthly")) for _, data in members])
            installs = np.array([coerce_int(data.get("installs")) or 0 for _, data in members])
            avg_growth = float(np.mean(growth))
            if avg_growth <= self.config.category_growth_pct:
                continue
            leader_id, leader = members[int(np.argmax(installs))]
            categories.append({
                "name": category,
                "growth": round(avg_growth, 1),
                "count": len(members),
                "total_installs": int(installs.sum()),
                "leader": str(leader.get("name") or leader_id),
                "leader_entity": self.matcher.match_first(leader_id, leader.get("name")),
            })
        if not categories:
            return []
        categories.sort(key=lambda c: -c["growth"])

        top = categories[0]
        return [Pattern(
            pattern_type=PatternType.CATEGORY_GROWTH,
            entities=list(dict.fromkeys(
                c["leader_entity"] for c in categories if c["leader_entity"]
            )),
            message=f"{top['name']} tools surging with {top['growth']:.1f}% average growth",
            details={"categories": categories},
        )]

    # ── Discussions ───────────────────────────────────────────────────

    def find_sentiment_mismatch(self, bundle: SourceBundle) -> list[Pattern]:
        """Discussion tone pointing one way while installs point the other."""
        posts = bundle.discussions
        growth = self.install_growth(bundle)
        if not posts or not growth:
            return []

        patterns = []
        for slug, tally in tally_by_entity(posts, self.matcher, self.keywords).items():
            if slug not in growth:
                continue
            installs = growth[slug]
            if tally.negative > tally.positive and installs > 0:
                kind = "negative_sentiment_positive_growth"
                message = (
                    f"{self._label(slug)} discussion skews negative "
                    f"but installs grew by {installs:,}"
                )
            elif tally.positive > tally.negative * self.config.hype_ratio and installs < 0:
                kind = "positive_sentiment_negative_growth"
                message = (
                    f"{self._label(slug)} discussion skews positive "
                    f"but installs fell by {abs(installs):,}"
                )
            else:
                continue
            patterns.append(Pattern(
                pattern_type=PatternType.SENTIMENT_MISMATCH,
                entities=[slug],
                message=message,
                details={"kind": kind, "sentiment": tally.to_dict(), "install_growth": installs},
            ))
        return patterns

    def find_themes(self, posts: Sequence[dict]) -> list[Pattern]:
        """Top discussion themes by summed points.

        Unattributed posts count too; a theme does not need an entity.
        """
        grouped: dict[str, list[dict]] = {}
        for post in posts:
            if not isinstance(post, dict):
                continue
            for theme in self.keywords.buckets_for(post_title(post), self.keywords.theme_buckets):
                grouped.setdefault(theme, []).append(post)
        if not grouped:
            return []

        summaries = []
        for theme, theme_posts in grouped.items():
            points = np.array([post_points(p) for p in theme_posts])
            top = theme_posts[int(np.argmax(points))]
            summaries.append({
                "theme": theme,
                "total_points": int(points.sum()),
                "count": len(theme_posts),
                "avg_points": int(round(float(np.mean(points)))),
                "top_post": {
                    "title": post_title(top),
                    "points": post_points(top),
                    "url": top.get("url", ""),
                },
                "entities": list(dict.fromkeys(
                    slug for slug in (self.matcher.match(post_title(p)) for p in theme_posts)
                    if slug
                )),
            })
        summaries.sort(key=lambda s: -s["total_points"])

        patterns = []
        for summary in summaries[: self.config.theme_limit]:
            patterns.append(Pattern(
                pattern_type=PatternType.THEME,
                entities=summary.pop("entities"),
                message=(
                    f"'{summary['theme']}' theme: {summary['count']} discussions, "
                    f"{summary['total_points']} points"
                ),
                details=summary,
            ))
        return patterns


def _trend_percent(value) -> float:
    """Monthly trend as a float percent; missing or non-numeric is 0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0.0 if np.isnan(value) else float(value)
    return float(coerce_int(value) or 0)
