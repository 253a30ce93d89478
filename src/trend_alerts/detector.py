"""Trend / anomaly detection across consecutive snapshots.

Five independent detectors, each with its own alert type and its own
minimum-data guard. Their outputs are concatenated and sorted globally by
severity (high, medium, low); the sort is stable, so within a severity
alerts keep detector order.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

from src.competitor_signals.keywords import DEFAULT_KEYWORDS, KeywordTables
from src.competitor_signals.matcher import EntityMatcher
from src.competitor_signals.values import coerce_int, parse_timestamp
from src.momentum.ranking import rank_changes
from src.score_history.models import ScoreSnapshot, latest_pair
from src.trend_alerts.config import AlertSeverity, AlertType, TrendConfig
from src.trend_alerts.models import Alert, TrendInputs

logger = logging.getLogger(__name__)


def sort_alerts(alerts: Sequence[Alert]) -> list[Alert]:
    """Stable sort by severity rank (high first)."""
    return sorted(alerts, key=lambda a: a.severity.rank)


def _normalize_extensions(data: Any) -> dict[str, dict]:
    """{extension_id: data} from either a map or a list of {name, ...}."""
    if isinstance(data, dict):
        if isinstance(data.get("extensions"), list):
            data = data["extensions"]
        else:
            return {str(k): v for k, v in data.items() if isinstance(v, dict)}
    if isinstance(data, list):
        return {
            str(item.get("extensionId") or item.get("name")): item
            for item in data
            if isinstance(item, dict) and (item.get("extensionId") or item.get("name"))
        }
    return {}


class TrendDetector:
    """Runs every trend detector and returns severity-ordered alerts.

    Args:
        matcher: Entity matcher shared with scoring, so attribution agrees.
        config: Detector thresholds.
        keywords: Funding keyword table.
        names: Optional slug -> display name for messages.

    Example:
        detector = TrendDetector(matcher)
        alerts = detector.detect(TrendInputs(hiring_series=series))
        for a in alerts:
            print(a.severity.value, a.message)
    """

    def __init__(
        self,
        matcher: EntityMatcher,
        config: Optional[TrendConfig] = None,
        keywords: Optional[KeywordTables] = None,
        names: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.matcher = matcher
        self.config = config or TrendConfig()
        self.keywords = keywords or DEFAULT_KEYWORDS
        self.names = dict(names or {})

    def _label(self, slug: Optional[str], fallback: str = "Unknown") -> str:
        if slug:
            return self.names.get(slug, slug)
        return fallback

    # ── Public API ────────────────────────────────────────────────────

    def detect(self, inputs: TrendInputs) -> list[Alert]:
        """Run all detectors on one run's inputs."""
        as_of = inputs.as_of or datetime.now(timezone.utc)
        alerts: list[Alert] = []
        alerts.extend(self.detect_hiring(inputs.hiring_series))
        alerts.extend(self.detect_installs(inputs.installs_current, inputs.installs_previous))
        alerts.extend(self.detect_momentum(inputs.momentum_series))
        alerts.extend(self.detect_pricing(inputs.pricing_changes, as_of))
        alerts.extend(self.detect_funding(inputs.articles))
        ordered = sort_alerts(alerts)
        logger.info(
            "Trend detection raised %d alerts (%d high)",
            len(ordered),
            sum(1 for a in ordered if a.severity == AlertSeverity.HIGH),
        )
        return ordered

    # ── Hiring ────────────────────────────────────────────────────────

    def detect_hiring(self, series: Sequence[ScoreSnapshot]) -> list[Alert]:
        """Job-count surges and drops between the two latest entries."""
        pair = latest_pair(series)
        if pair is None:
            return []
        previous, latest = pair
        cfg = self.config
        alerts = []
        for slug, raw_count in latest.scores.items():
            count = coerce_int(raw_count)
            prev_count = coerce_int(previous.scores.get(slug, 0))
            if count is None or prev_count is None:
                logger.warning("Skipping non-numeric job count for %s", slug)
                continue
            change = count - prev_count
            if prev_count > 0:
                pct = change / prev_count * 100
            else:
                pct = 100.0 if count > cfg.hiring_surge_min_count else 0.0

            name = self._label(slug)
            if change >= cfg.hiring_surge_delta or (
                pct >= cfg.hiring_surge_pct and count > cfg.hiring_surge_min_count
            ):
                alerts.append(Alert(
                    alert_type=AlertType.HIRING_SURGE,
                    entity_slug=slug,
                    severity=(
                        AlertSeverity.HIGH if change >= cfg.hiring_high_delta
                        else AlertSeverity.MEDIUM
                    ),
                    message=f"{name} added {change} jobs ({prev_count} → {count})",
                    delta=change,
                    percent=round(pct),
                ))
            elif change <= cfg.hiring_drop_delta or (
                pct <= cfg.hiring_drop_pct and prev_count > cfg.hiring_drop_min_previous
            ):
                alerts.append(Alert(
                    alert_type=AlertType.HIRING_DROP,
                    entity_slug=slug,
                    severity=(
                        AlertSeverity.HIGH if abs(change) >= cfg.hiring_high_delta
                        else AlertSeverity.MEDIUM
                    ),
                    message=f"{name} removed {abs(change)} jobs ({prev_count} → {count})",
                    delta=change,
                    percent=round(pct),
                ))
        return alerts

    # ── Installs ──────────────────────────────────────────────────────

    def detect_installs(self, current: Any, previous: Any) -> list[Alert]:
        """Install-velocity spikes against the last available snapshot."""
        if not current or not previous:
            return []
        cfg = self.config
        current_map = _normalize_extensions(current)
        previous_map = _normalize_extensions(previous)
        alerts = []
        for ext_id, data in current_map.items():
            prev = previous_map.get(ext_id)
            if prev is None:
                continue
            installs = coerce_int(data.get("installs"))
            prev_installs = coerce_int(prev.get("installs"))
            if installs is None or prev_installs is None:
                logger.warning("Skipping extension %s with non-numeric installs", ext_id)
                continue
            velocity = installs - prev_installs
            if installs > cfg.large_extension_installs:
                threshold = cfg.large_install_threshold
            else:
                threshold = cfg.small_install_threshold
            if velocity <= threshold:
                continue
            slug = self.matcher.match_first(ext_id, data.get("name"), data.get("publisher"))
            severity = (
                AlertSeverity.HIGH if velocity > threshold * cfg.install_high_multiplier
                else AlertSeverity.MEDIUM
            )
            alerts.append(Alert(
                alert_type=AlertType.INSTALL_SPIKE,
                entity_slug=slug,
                severity=severity,
                message=f"{data.get('name') or ext_id} gained {velocity:,} installs since last snapshot",
                delta=velocity,
                details={"extension": ext_id, "installs": installs, "threshold": threshold},
            ))
        return alerts

    # ── Momentum ranks ────────────────────────────────────────────────

    def detect_momentum(self, series: Sequence[ScoreSnapshot]) -> list[Alert]:
        """Rank moves of at least rank_shift positions."""
        pair = latest_pair(series)
        if pair is None:
            return []
        previous, latest = pair
        cfg = self.config
        alerts = []
        for slug, move in rank_changes(latest.scores, previous.scores).items():
            change = move["change"]
            if abs(change) < cfg.rank_shift:
                continue
            name = self._label(slug)
            severity = (
                AlertSeverity.HIGH if abs(change) >= cfg.rank_shift_high
                else AlertSeverity.MEDIUM
            )
            if change > 0:
                alert_type = AlertType.MOMENTUM_SURGE
                message = (
                    f"{name} jumped {change} positions in momentum ranking "
                    f"(#{move['previous']} → #{move['current']})"
                )
            else:
                alert_type = AlertType.MOMENTUM_DROP
                message = (
                    f"{name} dropped {abs(change)} positions in momentum ranking "
                    f"(#{move['previous']} → #{move['current']})"
                )
            alerts.append(Alert(
                alert_type=alert_type,
                entity_slug=slug,
                severity=severity,
                message=message,
                delta=change,
                details={"previous_rank": move["previous"], "current_rank": move["current"]},
            ))
        return alerts

    # ── Pricing ───────────────────────────────────────────────────────

    def detect_pricing(
        self,
        changes: Sequence[dict],
        as_of: Optional[datetime] = None,
    ) -> list[Alert]:
        """Every pricing-page change inside the window is high severity."""
        if not changes:
            return []
        as_of = as_of or datetime.now(timezone.utc)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        cutoff = as_of - timedelta(hours=self.config.pricing_window_hours)
        alerts = []
        for change in changes:
            if not isinstance(change, dict):
                continue
            when = parse_timestamp(change.get("date"))
            if when is None:
                logger.warning("Skipping pricing change without a valid date: %r", change)
                continue
            if when <= cutoff:
                continue
            company = change.get("company") or change.get("slug") or "Unknown"
            slug = change.get("slug") if change.get("slug") in self.matcher.slugs else None
            slug = slug or self.matcher.match(company)
            alerts.append(Alert(
                alert_type=AlertType.PRICING_CHANGE,
                entity_slug=slug,
                severity=AlertSeverity.HIGH,
                message=f"{self._label(slug, company)} updated their pricing page",
                details={"date": when.isoformat()},
            ))
        return alerts

    # ── Funding ───────────────────────────────────────────────────────

    def detect_funding(self, articles: Sequence[dict]) -> list[Alert]:
        """One high-severity alert per distinct funding headline."""
        alerts = []
        seen: set[str] = set()
        for article in articles or []:
            if not isinstance(article, dict):
                continue
            title = article.get("title") or ""
            if not title or title in seen or not self.keywords.is_funding_title(title):
                continue
            seen.add(title)
            slug = self.matcher.match_first(title, article.get("competitor"))
            alerts.append(Alert(
                alert_type=AlertType.FUNDING_NEWS,
                entity_slug=slug,
                severity=AlertSeverity.HIGH,
                message=title,
                details={
                    "url": article.get("url", ""),
                    "source": article.get("source", ""),
                },
            ))
        return alerts
