"""Configuration for day-over-day trend detection."""

from dataclasses import dataclass
from enum import Enum


class AlertType(str, Enum):
    HIRING_SURGE = "hiring_surge"
    HIRING_DROP = "hiring_drop"
    INSTALL_SPIKE = "install_spike"
    MOMENTUM_SURGE = "momentum_surge"
    MOMENTUM_DROP = "momentum_drop"
    PRICING_CHANGE = "pricing_change"
    FUNDING_NEWS = "funding_news"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER[self]


SEVERITY_ORDER = {
    AlertSeverity.HIGH: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.LOW: 2,
}


# Hiring
DEFAULT_HIRING_SURGE_DELTA = 10
DEFAULT_HIRING_SURGE_PCT = 50.0
DEFAULT_HIRING_SURGE_MIN_COUNT = 5
DEFAULT_HIRING_DROP_DELTA = -10
DEFAULT_HIRING_DROP_PCT = -30.0
DEFAULT_HIRING_DROP_MIN_PREVIOUS = 10
DEFAULT_HIRING_HIGH_DELTA = 20

# Installs (per day)
DEFAULT_LARGE_EXTENSION_INSTALLS = 1_000_000
DEFAULT_LARGE_INSTALL_THRESHOLD = 100_000
DEFAULT_SMALL_INSTALL_THRESHOLD = 10_000
DEFAULT_INSTALL_HIGH_MULTIPLIER = 2.0

# Momentum ranks
DEFAULT_RANK_SHIFT = 3
DEFAULT_RANK_SHIFT_HIGH = 5

# Pricing
DEFAULT_PRICING_WINDOW_HOURS = 24


@dataclass
class TrendConfig:
    """Thresholds for the independent trend detectors."""

    hiring_surge_delta: int = DEFAULT_HIRING_SURGE_DELTA
    hiring_surge_pct: float = DEFAULT_HIRING_SURGE_PCT
    hiring_surge_min_count: int = DEFAULT_HIRING_SURGE_MIN_COUNT
    hiring_drop_delta: int = DEFAULT_HIRING_DROP_DELTA
    hiring_drop_pct: float = DEFAULT_HIRING_DROP_PCT
    hiring_drop_min_previous: int = DEFAULT_HIRING_DROP_MIN_PREVIOUS
    hiring_high_delta: int = DEFAULT_HIRING_HIGH_DELTA
    large_extension_installs: int = DEFAULT_LARGE_EXTENSION_INSTALLS
    large_install_threshold: int = DEFAULT_LARGE_INSTALL_THRESHOLD
    small_install_threshold: int = DEFAULT_SMALL_INSTALL_THRESHOLD
    install_high_multiplier: float = DEFAULT_INSTALL_HIGH_MULTIPLIER
    rank_shift: int = DEFAULT_RANK_SHIFT
    rank_shift_high: int = DEFAULT_RANK_SHIFT_HIGH
    pricing_window_hours: int = DEFAULT_PRICING_WINDOW_HOURS
