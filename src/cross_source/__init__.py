"""Cross-Source Patterns.

Correlations that only show when several sources are read together:
expansion signals, pricing clusters, feature convergence, momentum
shifts, marketplace category growth, sentiment/adoption mismatches and
discussion themes.

Example:
    from src.cross_source import CrossSourceCorrelator

    correlator = CrossSourceCorrelator(matcher)
    for pattern in correlator.correlate(bundle, hiring_series, momentum_series):
        print(pattern.pattern_type.value, pattern.message)
"""

from src.cross_source.config import (
    EXPANSION_WEIGHTS,
    CorrelatorConfig,
    PatternType,
    Polarity,
)
from src.cross_source.models import Pattern, SentimentTally
from src.cross_source.sentiment import classify_title, tally_by_entity
from src.cross_source.correlator import CrossSourceCorrelator, sort_patterns

__all__ = [
    # Config
    "EXPANSION_WEIGHTS",
    "CorrelatorConfig",
    "PatternType",
    "Polarity",
    # Models
    "Pattern",
    "SentimentTally",
    # Sentiment
    "classify_title",
    "tally_by_entity",
    # Correlator
    "CrossSourceCorrelator",
    "sort_patterns",
]
