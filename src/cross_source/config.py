"""Configuration for cross-source pattern correlation."""

from dataclasses import dataclass
from enum import Enum


class PatternType(str, Enum):
    EXPANSION = "expansion"
    PRICING_ACTIVITY = "pricing_activity"
    FEATURE_CONVERGENCE = "feature_convergence"
    MOMENTUM_SHIFT = "momentum_shift"
    CATEGORY_GROWTH = "category_growth"
    SENTIMENT_MISMATCH = "sentiment_mismatch"
    THEME = "theme"


class Polarity(str, Enum):
    NEGATIVE = "negative"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


# Expansion
DEFAULT_HIRING_MIN = 10
DEFAULT_RELEASE_WINDOW_DAYS = 7
DEFAULT_INSTALL_SPIKE = 50_000
DEFAULT_HIRING_STRONG_PCT = 50
DEFAULT_RELEASES_STRONG = 2
DEFAULT_INSTALL_STRONG = 100_000

# Competitive moves
DEFAULT_PRICING_WINDOW_DAYS = 30
DEFAULT_PRICING_MIN_ENTITIES = 3
DEFAULT_CONVERGENCE_MIN_ENTITIES = 2

# Market shifts
DEFAULT_RANK_SHIFT = 3
DEFAULT_RANK_SHIFT_MIN_MOVERS = 2
DEFAULT_CATEGORY_GROWTH_PCT = 5.0

# Discussions
DEFAULT_HYPE_RATIO = 1.0
DEFAULT_THEME_LIMIT = 3

# Strength weights
EXPANSION_WEIGHTS = {
    "hiring": 3,
    "releases": 2,
    "installs": 2,
}


@dataclass
class CorrelatorConfig:
    """Thresholds for the cross-source pattern finders."""
    # Expansion: minimum open roles before an entity is considered
    hiring_min: int = DEFAULT_HIRING_MIN
    release_window_days: int = DEFAULT_RELEASE_WINDOW_DAYS
    install_spike: int = DEFAULT_INSTALL_SPIKE
    # Strength flags
    hiring_strong_pct: float = DEFAULT_HIRING_STRONG_PCT
    releases_strong: int = DEFAULT_RELEASES_STRONG
    install_strong: int = DEFAULT_INSTALL_STRONG
    # Pricing cluster
    pricing_window_days: int = DEFAULT_PRICING_WINDOW_DAYS
    pricing_min_entities: int = DEFAULT_PRICING_MIN_ENTITIES
    convergence_min_entities: int = DEFAULT_CONVERGENCE_MIN_ENTITIES
    rank_shift: int = DEFAULT_RANK_SHIFT
    rank_shift_min_movers: int = DEFAULT_RANK_SHIFT_MIN_MOVERS
    # Average monthly trend (percent) a marketplace category must exceed
    category_growth_pct: float = DEFAULT_CATEGORY_GROWTH_PCT
    # Positive-over-negative ratio needed for a hype mismatch
    hype_ratio: float = DEFAULT_HYPE_RATIO
    theme_limit: int = DEFAULT_THEME_LIMIT
