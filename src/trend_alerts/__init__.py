"""Trend Alerts.

Day-over-day anomaly detection on the historical series: hiring velocity,
install velocity, momentum rank movement, pricing changes and funding news.

Example:
    from src.trend_alerts import TrendDetector, TrendInputs

    detector = TrendDetector(matcher)
    alerts = detector.detect(TrendInputs(
        hiring_series=hiring_store.read(),
        momentum_series=momentum_store.read(),
    ))
"""

from src.trend_alerts.config import (
    SEVERITY_ORDER,
    AlertSeverity,
    AlertType,
    TrendConfig,
)
from src.trend_alerts.models import Alert, TrendInputs
from src.trend_alerts.detector import TrendDetector, sort_alerts

__all__ = [
    # Config
    "SEVERITY_ORDER",
    "AlertSeverity",
    "AlertType",
    "TrendConfig",
    # Models
    "Alert",
    "TrendInputs",
    # Detector
    "TrendDetector",
    "sort_alerts",
]
