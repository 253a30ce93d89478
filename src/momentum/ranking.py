"""Ranking helpers shared by scoring output, trend detection and correlation."""

import logging
import math
from typing import Any, Mapping, Optional, Sequence

from src.competitor_signals.models import Competitor
from src.competitor_signals.values import coerce_int

logger = logging.getLogger(__name__)


def _score_value(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else value
    return coerce_int(value)


def ranked_slugs(scores: Mapping[str, Any]) -> list[str]:
    """Slugs by descending score; ties keep the mapping's order.

    Slugs whose score is not numeric are left out of the ranking.
    """
    numeric = []
    for slug, value in scores.items():
        score = _score_value(value)
        if score is None:
            logger.warning("Leaving %s out of the ranking: non-numeric score %r", slug, value)
            continue
        numeric.append((slug, score))
    return [slug for slug, _ in sorted(numeric, key=lambda kv: -kv[1])]


def rank_map(scores: Mapping[str, float]) -> dict[str, int]:
    """slug -> 1-indexed rank by descending score."""
    return {slug: i + 1 for i, slug in enumerate(ranked_slugs(scores))}


def rank_changes(
    latest: Mapping[str, float],
    previous: Mapping[str, float],
) -> dict[str, dict[str, int]]:
    """Rank movement for slugs ranked in both snapshots.

    Returns:
        slug -> {"current", "previous", "change"}, change > 0 meaning the
        slug moved up.
    """
    latest_ranks = rank_map(latest)
    prev_ranks = rank_map(previous)
    changes = {}
    for slug, rank in latest_ranks.items():
        prev_rank = prev_ranks.get(slug)
        if prev_rank is None:
            continue
        changes[slug] = {
            "current": rank,
            "previous": prev_rank,
            "change": prev_rank - rank,
        }
    return changes


def rank_entities(
    scores: Mapping[str, int],
    signals: Optional[Mapping[str, Sequence[str]]] = None,
    roster: Optional[Sequence[Competitor]] = None,
) -> list[dict]:
    """Ranked report rows: [{rank, slug, name, score, signals}]."""
    names = {c.slug: c.name for c in roster or []}
    signals = signals or {}
    if roster:
        ordered = {c.slug: scores.get(c.slug, 0) for c in roster}
        ordered.update({s: v for s, v in scores.items() if s not in ordered})
    else:
        ordered = dict(scores)
    return [
        {
            "rank": i + 1,
            "slug": slug,
            "name": names.get(slug, slug),
            "score": ordered[slug],
            "signals": list(signals.get(slug, [])),
        }
        for i, slug in enumerate(ranked_slugs(ordered))
    ]
