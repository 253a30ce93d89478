"""Series analytics: frames, deltas, week-over-week trends, hiring report."""

import logging
from typing import Optional, Sequence

import pandas as pd

from src.competitor_signals.values import coerce_int
from src.score_history.models import ScoreSnapshot, latest_pair

logger = logging.getLogger(__name__)


def series_to_frame(series: Sequence[ScoreSnapshot]) -> pd.DataFrame:
    """DataFrame indexed by date with one column per slug.

    Slugs absent on a date are NaN.
    """
    if not series:
        return pd.DataFrame()
    frame = pd.DataFrame(
        [s.scores for s in series],
        index=pd.Index([s.date for s in series], name="date"),
    )
    return frame.apply(pd.to_numeric, errors="coerce")


def latest_deltas(series: Sequence[ScoreSnapshot]) -> dict[str, int]:
    """slug -> latest value minus previous value (previous defaults to 0).

    Empty with fewer than two entries. Non-numeric values are skipped.
    """
    pair = latest_pair(series)
    if pair is None:
        return {}
    previous, latest = pair
    deltas = {}
    for slug, value in latest.scores.items():
        current = coerce_int(value)
        prior = coerce_int(previous.scores.get(slug, 0))
        if current is None or prior is None:
            logger.warning("Skipping non-numeric history value for %s", slug)
            continue
        deltas[slug] = current - prior
    return deltas


def weekly_changes(
    series: Sequence[ScoreSnapshot],
    min_days: int = 6,
) -> Optional[dict[str, dict[str, float]]]:
    """Compare the latest snapshot with the newest one at least min_days older.

    Falls back to the oldest snapshot when none is old enough.

    Returns:
        slug -> {"current", "previous", "change"}, or None with fewer than
        two snapshots.
    """
    if len(series) < 2:
        return None
    latest = series[-1]
    latest_day = pd.Timestamp(latest.date)
    baseline = series[0]
    for snapshot in reversed(series[:-1]):
        if (latest_day - pd.Timestamp(snapshot.date)).days >= min_days:
            baseline = snapshot
            break
    changes = {}
    for slug, value in latest.scores.items():
        current = coerce_int(value)
        previous = coerce_int(baseline.scores.get(slug) or 0)
        if current is None or previous is None:
            logger.warning("Skipping non-numeric weekly value for %s", slug)
            continue
        changes[slug] = {
            "current": current,
            "previous": previous,
            "change": current - previous,
        }
    return changes


def _pct(current: float, previous: float) -> Optional[float]:
    if pd.isna(previous) or pd.isna(current) or previous == 0:
        return None
    return round((current - previous) / previous * 100, 1)


def hiring_report(
    series: Sequence[ScoreSnapshot],
    names: Optional[dict[str, str]] = None,
    week_offset: int = 7,
) -> Optional[dict]:
    """Per-company hiring trends from a job-count series.

    The week-ago baseline is the entry `week_offset` positions back (or the
    oldest entry).

    Returns:
        {"date", "by_company", "market_total", "market_trend", "insights"},
        or None with fewer than two entries.
    """
    if len(series) < 2:
        return None
    names = names or {}
    frame = series_to_frame(series).fillna(0)
    latest = frame.iloc[-1]
    previous = frame.iloc[-2]
    week_ago = frame.iloc[max(0, len(frame) - week_offset)]

    by_company = {}
    insights = []
    for slug in sorted(latest.index, key=lambda s: -latest[s]):
        current = int(latest[slug])
        week_change = _pct(latest[slug], week_ago[slug])
        name = names.get(slug, slug)
        by_company[slug] = {
            "name": name,
            "current_jobs": current,
            "day_change": _pct(latest[slug], previous[slug]),
            "week_change": week_change,
        }
        if week_change is None:
            continue
        if current >= 50 and week_change > 20:
            insights.append(
                f"{name} is on a hiring spree (+{week_change}% this week, {current} open roles)"
            )
        elif current >= 20 and week_change > 10:
            insights.append(f"{name} ramping up hiring (+{week_change}% this week)")
        elif week_change < -20 and current > 0:
            insights.append(f"{name} slowing down hiring ({week_change}% this week)")

    market_total = int(latest.sum())
    return {
        "date": series[-1].date,
        "by_company": by_company,
        "market_total": market_total,
        "market_trend": _pct(market_total, float(week_ago.sum())),
        "insights": insights,
    }
