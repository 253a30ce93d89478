"""Momentum Scoring.

Weighted same-day aggregation of competitor signals into a single
comparable score, with the reasons behind every point.

Example:
    from src.momentum import MomentumScorer, rank_entities

    scorer = MomentumScorer(roster)
    result = scorer.score(records)
    rows = rank_entities(result.scores, result.signals, roster)
"""

from src.momentum.scorer import MomentumScorer, ScoringResult
from src.momentum.ranking import (
    rank_changes,
    rank_entities,
    rank_map,
    ranked_slugs,
)

__all__ = [
    "MomentumScorer",
    "ScoringResult",
    "rank_changes",
    "rank_entities",
    "rank_map",
    "ranked_slugs",
]
